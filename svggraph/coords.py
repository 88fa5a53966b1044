from __future__ import annotations

import dataclasses
import math
from typing import Dict, List, Optional, Tuple

from svggraph.layout import Canvas
from svggraph.model import GraphType, Metric, TimeWindow
from svggraph.units import convert_units
from svggraph.utils import scaled_ratio

# Far outside any canvas, but small enough to keep renderers stable
Y_LIMIT = 2 ** 16


@dataclasses.dataclass(frozen=True)
class PathPoint:
  x: int
  y: int
  label: str


@dataclasses.dataclass(frozen=True)
class PathEntry:
  clock: int
  points: Dict[str, PathPoint]  # channel -> point; out-of-range channels of point series are absent

  def get(self, channel: str) -> Optional[PathPoint]:
    return self.points.get(channel)


@dataclasses.dataclass(frozen=True)
class MetricPaths:
  index: int
  metric: Metric
  paths: Tuple[Tuple[PathEntry, ...], ...]

  @property
  def first(self) -> Tuple[PathEntry, ...]:
    return self.paths[0] if self.paths else ()


def time_range(window: TimeWindow) -> int:
  return window.period or 1


def x_position(clock: float, timeshift: int, canvas: Canvas, window: TimeWindow) -> float:
  return canvas.x + canvas.width - canvas.width * (window.time_till - clock + timeshift) / time_range(window)


def y_position(value: float, y_min: float, y_max: float, canvas: Canvas) -> float:
  return canvas.y + canvas.height * scaled_ratio(y_max, value, y_max, y_min)


def map_point(clock: int, value: float, timeshift: int, y_min: float, y_max: float, canvas: Canvas,
              window: TimeWindow) -> Tuple[int, int]:
  """Pixel position of a sample; values off the axis are pinned at +-Y_LIMIT instead of projected."""
  x = x_position(clock, timeshift, canvas, window)
  y = y_position(value, y_min, y_max, canvas)
  if value > y_max:
    y = max(-Y_LIMIT, y)
  elif value < y_min:
    y = min(Y_LIMIT, y)
  return int(math.ceil(x)), int(math.ceil(y))


def build_paths(index: int, metric: Metric, y_min: float, y_max: float, canvas: Canvas,
                window: TimeWindow) -> Optional[MetricPaths]:
  """
  Split metric samples into paths of consecutive non-null samples and map them to pixels.

  Out-of-range samples of point series are left out; other series keep them so the shape is preserved.
  """
  opts = metric.options
  channels = opts.approximation.channels
  is_points = opts.type is GraphType.POINTS

  paths: List[List[PathEntry]] = []
  current: List[PathEntry] = []
  for clock, sample in metric.points.items():
    if sample is None:
      if current:
        paths.append(current)
        current = []
      continue

    entry: Dict[str, PathPoint] = {}
    for channel in channels:
      value = float(sample.value(channel))
      if math.isnan(value):
        continue
      in_range = y_min <= value <= y_max
      if not in_range and is_points:
        continue
      x, y = map_point(clock, value, opts.timeshift, y_min, y_max, canvas, window)
      entry[channel] = PathPoint(x=x, y=y, label=convert_units(value, metric.units))
    current.append(PathEntry(clock=clock, points=entry))

  if current:
    paths.append(current)
  if not paths:
    return None
  return MetricPaths(index=index, metric=metric, paths=tuple(tuple(p) for p in paths))
