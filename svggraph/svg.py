from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import Dict, Optional

from svggraph.scene import Circle, ClipRegion, Line, Polygon, Polyline, Primitive, Rect, Scene, Text
from svggraph.utils import color_hex

SVG_NS = "http://www.w3.org/2000/svg"
DASH_ARRAY = "2,2"


def _num(v: float) -> str:
  r = round(float(v), 2)
  if r == int(r):
    return str(int(r))
  return f"{r:.2f}".rstrip("0").rstrip(".")


def _points(points) -> str:
  return " ".join(f"{_num(x)},{_num(y)}" for x, y in points)


def _opacity(attrs: Dict[str, str], name: str, value: float):
  if value < 1.0:
    attrs[name] = _num(value)


def _element(item: Primitive, clip_ref: Optional[str]) -> Optional[ET.Element]:
  attrs: Dict[str, str] = {}
  if getattr(item, "role", ""):
    attrs["class"] = f"svg-graph-{item.role}"
  if clip_ref and getattr(item, "clipped", False):
    attrs["clip-path"] = clip_ref

  if isinstance(item, Rect):
    attrs.update(x=_num(item.x), y=_num(item.y), width=_num(item.width), height=_num(item.height))
    attrs["fill"] = color_hex(item.fill) if item.fill else "none"
    _opacity(attrs, "fill-opacity", item.fill_opacity)
    if item.stroke:
      attrs["stroke"] = color_hex(item.stroke)
      attrs["stroke-width"] = _num(item.stroke_width)
      if item.dashed:
        attrs["stroke-dasharray"] = DASH_ARRAY
    if item.data:
      attrs["data-info"] = json.dumps(item.data, sort_keys=True, separators=(",", ":"))
    return ET.Element("rect", attrs)

  if isinstance(item, Line):
    attrs.update(x1=_num(item.x1), y1=_num(item.y1), x2=_num(item.x2), y2=_num(item.y2))
    attrs["stroke"] = color_hex(item.stroke)
    attrs["stroke-width"] = _num(item.stroke_width)
    _opacity(attrs, "stroke-opacity", item.opacity)
    if item.dashed:
      attrs["stroke-dasharray"] = DASH_ARRAY
    return ET.Element("line", attrs)

  if isinstance(item, Polyline):
    attrs["points"] = _points(item.points)
    attrs["fill"] = "none"
    attrs["stroke"] = color_hex(item.stroke)
    attrs["stroke-width"] = _num(item.stroke_width)
    _opacity(attrs, "stroke-opacity", item.opacity)
    return ET.Element("polyline", attrs)

  if isinstance(item, Polygon):
    attrs["points"] = _points(item.points)
    attrs["fill"] = color_hex(item.fill)
    _opacity(attrs, "fill-opacity", item.fill_opacity)
    return ET.Element("polygon", attrs)

  if isinstance(item, Circle):
    attrs.update(cx=_num(item.cx), cy=_num(item.cy), r=_num(item.r))
    attrs["fill"] = color_hex(item.fill)
    _opacity(attrs, "fill-opacity", item.opacity)
    if item.label:
      attrs["label"] = item.label
    return ET.Element("circle", attrs)

  if isinstance(item, Text):
    attrs.update(x=_num(item.x), y=_num(item.y))
    attrs["fill"] = color_hex(item.color)
    if item.anchor != "start":
      attrs["text-anchor"] = item.anchor
    el = ET.Element("text", attrs)
    el.text = item.text
    return el

  return None


def scene_to_element(scene: Scene) -> ET.Element:
  root = ET.Element("svg", {
    "xmlns": SVG_NS,
    "width": str(scene.width),
    "height": str(scene.height),
    "viewBox": f"0 0 {scene.width} {scene.height}",
    "font-family": scene.font_family,
    "font-size": _num(scene.font_size),
  })

  clip_ref = None
  clip: Optional[ClipRegion] = scene.clip
  if clip is not None:
    defs = ET.SubElement(root, "defs")
    clip_path = ET.SubElement(defs, "clipPath", {"id": clip.id})
    ET.SubElement(clip_path, "rect", {
      "x": _num(clip.x), "y": _num(clip.y), "width": _num(clip.width), "height": _num(clip.height),
    })
    clip_ref = f"url(#{clip.id})"

  if scene.background:
    ET.SubElement(root, "rect", {
      "width": str(scene.width), "height": str(scene.height), "fill": color_hex(scene.background),
    })

  for item in scene:
    el = _element(item, clip_ref)
    if el is not None:
      root.append(el)
  return root


def scene_to_svg(scene: Scene) -> str:
  return ET.tostring(scene_to_element(scene), encoding="unicode")


def scene_to_svg_bytes(scene: Scene) -> bytes:
  return ET.tostring(scene_to_element(scene), encoding="utf-8", xml_declaration=True)
