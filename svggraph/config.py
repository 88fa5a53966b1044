import os


def _bool(val: str, default: bool = True) -> bool:
  if val is None:
    return default
  return val.lower() in ("1", "true", "yes", "on")


LOG_LEVEL = os.getenv("SVGGRAPH_LOG_LEVEL", "INFO")

# Default SVG size
IMG_WIDTH = int(os.getenv("SVGGRAPH_WIDTH", "1000"))
IMG_HEIGHT = int(os.getenv("SVGGRAPH_HEIGHT", "1000"))

# Vertical grid density: a row is never lower than this many pixels
CELL_HEIGHT_MIN = int(os.getenv("SVGGRAPH_CELL_HEIGHT_MIN", "30"))

# Y axis sizing: label length * approximate character width, capped
APPROX_CHAR_WIDTH = int(os.getenv("SVGGRAPH_APPROX_CHAR_WIDTH", "10"))
MAX_YAXIS_WIDTH = int(os.getenv("SVGGRAPH_MAX_YAXIS_WIDTH", "120"))

DEFAULT_TZ = os.getenv("DEFAULT_TZ", "UTC")

# Working time: days 1-7 (Mon-Sun), hh:mm-hh:mm; several periods separated by ';'
WORK_PERIOD = os.getenv("SVGGRAPH_WORK_PERIOD", "1-5,09:00-18:00")
SHOW_WORKING_TIME = _bool(os.getenv("SVGGRAPH_SHOW_WORKING_TIME", "true"), True)

JPEG_QUALITY = int(os.getenv("SVGGRAPH_JPEG_QUALITY", "82"))
FONT_FAMILY = os.getenv("SVGGRAPH_FONT_FAMILY", "DejaVu Sans")
