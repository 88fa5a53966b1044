from __future__ import annotations

import dataclasses
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple, Union

Coord = Tuple[float, float]


@dataclasses.dataclass(frozen=True)
class Rect:
  kind: ClassVar[str] = "rect"
  x: float
  y: float
  width: float
  height: float
  fill: Optional[str] = None
  fill_opacity: float = 1.0
  stroke: Optional[str] = None
  stroke_width: float = 0.0
  dashed: bool = False
  role: str = ""
  clipped: bool = False
  data: Optional[Dict[str, Any]] = None


@dataclasses.dataclass(frozen=True)
class Line:
  kind: ClassVar[str] = "line"
  x1: float
  y1: float
  x2: float
  y2: float
  stroke: str
  stroke_width: float = 1.0
  opacity: float = 1.0
  dashed: bool = False
  role: str = ""
  clipped: bool = False


@dataclasses.dataclass(frozen=True)
class Polyline:
  kind: ClassVar[str] = "polyline"
  points: Tuple[Coord, ...]
  stroke: str
  stroke_width: float = 1.0
  opacity: float = 1.0
  role: str = ""
  clipped: bool = False


@dataclasses.dataclass(frozen=True)
class Polygon:
  kind: ClassVar[str] = "polygon"
  points: Tuple[Coord, ...]
  fill: str
  fill_opacity: float = 1.0
  role: str = ""
  clipped: bool = False


@dataclasses.dataclass(frozen=True)
class Circle:
  kind: ClassVar[str] = "circle"
  cx: float
  cy: float
  r: float
  fill: str
  opacity: float = 1.0
  label: str = ""
  role: str = ""
  clipped: bool = False


@dataclasses.dataclass(frozen=True)
class Text:
  kind: ClassVar[str] = "text"
  x: float
  y: float
  text: str
  color: str
  anchor: str = "start"  # start | middle | end
  role: str = ""


@dataclasses.dataclass(frozen=True)
class ClipRegion:
  kind: ClassVar[str] = "clip"
  id: str
  x: float
  y: float
  width: float
  height: float


Primitive = Union[Rect, Line, Polyline, Polygon, Circle, Text, ClipRegion]


@dataclasses.dataclass
class Scene:
  """Ordered drawing list; later primitives are painted over earlier ones."""
  width: int
  height: int
  background: Optional[str] = None
  font_family: str = "DejaVu Sans"
  font_size: float = 10.0
  items: List[Primitive] = dataclasses.field(default_factory=list)

  def add(self, item: Primitive) -> "Scene":
    self.items.append(item)
    return self

  def extend(self, items) -> "Scene":
    self.items.extend(items)
    return self

  def __iter__(self) -> Iterator[Primitive]:
    return iter(self.items)

  def __len__(self) -> int:
    return len(self.items)

  def by_role(self, role: str) -> List[Primitive]:
    return [it for it in self.items if getattr(it, "role", "") == role]

  def by_kind(self, kind: str) -> List[Primitive]:
    return [it for it in self.items if it.kind == kind]

  @property
  def clip(self) -> Optional[ClipRegion]:
    for it in self.items:
      if isinstance(it, ClipRegion):
        return it
    return None
