import logging
import sys

from svggraph.config import LOG_LEVEL


def setup_logging(level=None):
  if level is None:
    level = logging.getLevelName(LOG_LEVEL.upper())
    if not isinstance(level, int):
      level = logging.INFO

  handler = logging.StreamHandler(sys.stdout)
  formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
  handler.setFormatter(formatter)

  root = logging.getLogger()
  root.setLevel(level)
  root.handlers.clear()
  root.addHandler(handler)
