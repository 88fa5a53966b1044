from __future__ import annotations

import logging
from typing import Dict, Optional

import skia

from svggraph.config import JPEG_QUALITY
from svggraph.scene import Circle, ClipRegion, Line, Polygon, Polyline, Primitive, Rect, Scene, Text
from svggraph.utils import color_hex

logger = logging.getLogger(__name__)

DASH_ON = 2.0
DASH_OFF = 2.0


def _argb(color: Optional[str], opacity: float = 1.0) -> int:
  c = color_hex(color or "")
  r = int(c[1:3], 16)
  g = int(c[3:5], 16)
  b = int(c[5:7], 16)
  a = int(round(255 * max(0.0, min(1.0, opacity))))
  return skia.ColorSetARGB(a, r, g, b)


class SkiaRenderer:
  """Raster back-end: paints a Scene onto a skia surface and encodes it."""

  def __init__(self, font_family: Optional[str] = None):
    self.font_family = font_family
    self._fonts: Dict[tuple, skia.Font] = {}

  def _font(self, family: str, size: float) -> skia.Font:
    key = (family, size)
    font = self._fonts.get(key)
    if font is None:
      tf = skia.Typeface(family)
      font = skia.Font(tf, size)
      self._fonts[key] = font
    return font

  @staticmethod
  def _stroke(color: str, width: float, opacity: float = 1.0, dashed: bool = False) -> skia.Paint:
    paint = skia.Paint(Style=skia.Paint.kStroke_Style, Color=_argb(color, opacity), StrokeWidth=float(width),
                       AntiAlias=True)
    if dashed:
      paint.setPathEffect(skia.DashPathEffect.Make([DASH_ON, DASH_OFF], 0.0))
    return paint

  @staticmethod
  def _fill(color: str, opacity: float = 1.0) -> skia.Paint:
    return skia.Paint(Style=skia.Paint.kFill_Style, Color=_argb(color, opacity), AntiAlias=True)

  @staticmethod
  def _path(points, close: bool) -> skia.Path:
    path = skia.Path()
    for i, (x, y) in enumerate(points):
      if i == 0:
        path.moveTo(float(x), float(y))
      else:
        path.lineTo(float(x), float(y))
    if close:
      path.close()
    return path

  def _draw(self, canvas: skia.Canvas, item: Primitive, font: skia.Font):
    if isinstance(item, Rect):
      rect = skia.Rect.MakeXYWH(float(item.x), float(item.y), float(item.width), float(item.height))
      if item.fill:
        canvas.drawRect(rect, self._fill(item.fill, item.fill_opacity))
      if item.stroke and item.stroke_width > 0:
        canvas.drawRect(rect, self._stroke(item.stroke, item.stroke_width, dashed=item.dashed))
    elif isinstance(item, Line):
      paint = self._stroke(item.stroke, item.stroke_width, item.opacity, item.dashed)
      canvas.drawLine(float(item.x1), float(item.y1), float(item.x2), float(item.y2), paint)
    elif isinstance(item, Polyline):
      if item.points:
        paint = self._stroke(item.stroke, item.stroke_width, item.opacity)
        canvas.drawPath(self._path(item.points, close=False), paint)
    elif isinstance(item, Polygon):
      if item.points:
        canvas.drawPath(self._path(item.points, close=True), self._fill(item.fill, item.fill_opacity))
    elif isinstance(item, Circle):
      canvas.drawCircle(float(item.cx), float(item.cy), float(item.r), self._fill(item.fill, item.opacity))
    elif isinstance(item, Text):
      x = float(item.x)
      if item.anchor != "start":
        w = font.measureText(item.text)
        x -= w / 2.0 if item.anchor == "middle" else w
      canvas.drawString(item.text, x, float(item.y), font, self._fill(item.color))

  def render_image(self, scene: Scene) -> skia.Image:
    surface = skia.Surface(int(scene.width), int(scene.height))
    canvas = surface.getCanvas()
    canvas.clear(_argb(scene.background) if scene.background else skia.ColorTRANSPARENT)

    font = self._font(self.font_family or scene.font_family, float(scene.font_size))
    clip: Optional[ClipRegion] = scene.clip
    clip_rect = None
    if clip is not None:
      clip_rect = skia.Rect.MakeXYWH(float(clip.x), float(clip.y), float(clip.width), float(clip.height))

    for item in scene:
      if isinstance(item, ClipRegion):
        continue
      if clip_rect is not None and getattr(item, "clipped", False):
        canvas.save()
        canvas.clipRect(clip_rect)
        self._draw(canvas, item, font)
        canvas.restore()
      else:
        self._draw(canvas, item, font)

    return surface.makeImageSnapshot()

  def render_png(self, scene: Scene) -> bytes:
    image = self.render_image(scene)
    data = image.encodeToData(skia.kPNG, 100)
    if data is None:
      logger.warning("PNG encoding returned no data for %dx%d scene", scene.width, scene.height)
      return b""
    return bytes(data)

  def render_jpeg(self, scene: Scene, quality: int = JPEG_QUALITY) -> bytes:
    image = self.render_image(scene)
    data = image.encodeToData(skia.kJPEG, quality)
    if data is None:
      logger.warning("JPEG encoding returned no data for %dx%d scene", scene.width, scene.height)
      return b""
    return bytes(data)
