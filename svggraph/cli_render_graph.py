from __future__ import annotations

import argparse
import dataclasses
import logging
import time
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(), override=False)

from svggraph.config import JPEG_QUALITY
from svggraph.errors import GraphError
from svggraph.graph import compose
from svggraph.loader import load_request_file, parse_time_bound, request_with, resolve_tz
from svggraph.logging_conf import setup_logging
from svggraph.svg import scene_to_svg_bytes

logger = logging.getLogger(__name__)

FORMATS = ("svg", "png", "jpeg")


def _guess_format(out: Path) -> str:
  suffix = out.suffix.lower().lstrip(".")
  if suffix == "jpg":
    return "jpeg"
  return suffix if suffix in FORMATS else "svg"


def _encode(scene, fmt: str, quality: int) -> bytes:
  if fmt == "svg":
    return scene_to_svg_bytes(scene)
  from svggraph.render import SkiaRenderer
  renderer = SkiaRenderer()
  if fmt == "png":
    return renderer.render_png(scene)
  return renderer.render_jpeg(scene, quality=quality)


def main(argv=None) -> int:
  p = argparse.ArgumentParser(description="Render a time-series graph request (JSON) to SVG, PNG or JPEG")
  p.add_argument("--input", type=Path, required=True, help="Request JSON file")
  p.add_argument("--out", type=Path, default=Path("graph.svg"))
  p.add_argument("--format", choices=FORMATS, help="Output format (default: from --out suffix)")
  p.add_argument("--width", type=int, help="Override image width")
  p.add_argument("--height", type=int, help="Override image height")
  p.add_argument("--from", dest="time_from", help="Override window start (timestamp or date text)")
  p.add_argument("--till", dest="time_till", help="Override window end (timestamp or date text)")
  p.add_argument("--tz", help="Time zone for date text and labels")
  p.add_argument("--quality", type=int, default=JPEG_QUALITY, help="JPEG quality 1-100")
  p.add_argument("--debug", action="store_true", help="Verbose logging")
  args = p.parse_args(argv)

  setup_logging(logging.DEBUG if args.debug else None)
  fmt = args.format or _guess_format(args.out)

  t0 = time.time()
  try:
    request = load_request_file(args.input)
    if args.tz:
      request = dataclasses.replace(request, tz=resolve_tz(args.tz))

    window = None
    if args.time_from or args.time_till:
      tf = request.window.time_from
      tt = request.window.time_till
      if args.time_from:
        tf = parse_time_bound(args.time_from, request.tz, "--from", request.now)
      if args.time_till:
        tt = parse_time_bound(args.time_till, request.tz, "--till", request.now)
      window = (tf, tt)
    request = request_with(request, width=args.width, height=args.height, window=window)

    graph = compose(request)
  except GraphError as e:
    logger.error("Cannot render %s: %s", args.input, e)
    return 1
  except OSError as e:
    logger.error("Cannot read %s: %s", args.input, e)
    return 1
  t_compose = time.time()

  data = _encode(graph.scene, fmt, args.quality)
  args.out.write_bytes(data)
  t1 = time.time()

  logger.info(
    "compose=%.1fms encode=%.1fms primitives=%d size=%.1fKB format=%s",
    1000 * (t_compose - t0),
    1000 * (t1 - t_compose),
    len(graph.scene),
    len(data) / 1024.0,
    fmt,
  )
  print(f"Wrote {args.out}")
  return 0


if __name__ == "__main__":
  raise SystemExit(main())
