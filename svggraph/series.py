from __future__ import annotations

import dataclasses
import math
from typing import Dict, Iterable, List, Sequence, Tuple

from svggraph.coords import MetricPaths, PathEntry, PathPoint, time_range
from svggraph.layout import Canvas, Layout
from svggraph.model import Approximation, AxisSide, GraphType, MetricOptions, TimeWindow
from svggraph.scene import Circle, Coord, Polygon, Polyline, Primitive, Rect

# Share of the distance between neighbouring bar groups taken by the bars
BAR_GROUP_FILL = 0.75


def _opacity(steps: int) -> float:
  return max(0, min(10, steps)) / 10


def _channel_points(path: Sequence[PathEntry], channel: str) -> List[PathPoint]:
  return [pt for pt in (entry.get(channel) for entry in path) if pt is not None]


def _coords(points: Iterable[PathPoint], staircase: bool) -> List[Coord]:
  out: List[Coord] = []
  for pt in points:
    if staircase and out:
      out.append((float(pt.x), out[-1][1]))
    out.append((float(pt.x), float(pt.y)))
  return out


def _line(coords: List[Coord], opts: MetricOptions, width: float, opacity: float) -> Primitive:
  if len(coords) == 1:
    x, y = coords[0]
    return Circle(cx=x, cy=y, r=max(1.0, width), fill=opts.color, opacity=opacity, role="series-line", clipped=True)
  return Polyline(points=tuple(coords), stroke=opts.color, stroke_width=width, opacity=opacity, role="series-line",
                  clipped=True)


def line_primitives(mp: MetricPaths, layout: Layout) -> List[Primitive]:
  """
  Line and staircase series: optional area fill under every path, then the lines.

  With approximation ALL the fill is the band between the min and max channels and
  thin min/max lines accompany the avg line.
  """
  opts = mp.metric.options
  staircase = opts.type is GraphType.STAIRCASE
  approximation = opts.approximation
  channel = approximation.channel
  out: List[Primitive] = []

  if opts.fill > 0:
    y_zero = layout.axis(opts.axis).zero
    for path in mp.paths:
      if len(path) < 2:
        continue
      if approximation is Approximation.ALL:
        upper = _coords(_channel_points(path, "max"), staircase)
        lower = _coords(_channel_points(path, "min"), staircase)
        polygon = upper + list(reversed(lower))
      else:
        line = _coords(_channel_points(path, channel), staircase)
        polygon = line + [(line[-1][0], y_zero), (line[0][0], y_zero)]
      if len(polygon) >= 3:
        out.append(Polygon(points=tuple(polygon), fill=opts.color, fill_opacity=_opacity(opts.fill),
                           role="series-area", clipped=True))

  opacity = _opacity(opts.transparency)
  for path in mp.paths:
    if approximation is Approximation.ALL:
      for band_channel in ("min", "max"):
        coords = _coords(_channel_points(path, band_channel), staircase)
        if coords:
          out.append(_line(coords, opts, 1.0, opacity / 2))
    coords = _coords(_channel_points(path, channel), staircase)
    if coords:
      out.append(_line(coords, opts, float(opts.line_width), opacity))
  return out


def point_primitives(mp: MetricPaths) -> List[Primitive]:
  opts = mp.metric.options
  channel = opts.approximation.channel
  out: List[Primitive] = []
  for pt in _channel_points(mp.first, channel):
    out.append(Circle(cx=float(pt.x), cy=float(pt.y), r=opts.point_size / 2, fill=opts.color,
                      opacity=_opacity(opts.transparency), label=pt.label, role="series-point", clipped=True))
  return out


@dataclasses.dataclass(frozen=True)
class BarMember:
  metric_index: int
  point_index: int


@dataclasses.dataclass(frozen=True)
class BarGroup:
  side: AxisSide
  bucket: int
  x: int  # pixel x shared by the group
  members: Tuple[BarMember, ...]


@dataclasses.dataclass(frozen=True)
class BarIndex:
  groups: Tuple[BarGroup, ...]
  group_width: Dict[AxisSide, float]


@dataclasses.dataclass(frozen=True)
class BarPlacement:
  metric_index: int
  point_index: int
  x: float  # bar center
  width: int
  group_left: float


def bar_bucket(clock: int, sec_per_px: int, px_per_sec: int) -> int:
  """Bars closer than one pixel apart share a bucket."""
  if sec_per_px > px_per_sec:
    return (clock // sec_per_px) * sec_per_px
  return clock


def build_bar_index(bars: Sequence[MetricPaths], canvas: Canvas, window: TimeWindow) -> BarIndex:
  """Group bars of all bar series by axis side and time bucket, and find the group width per side."""
  group_width = {AxisSide.LEFT: canvas.width * 0.25, AxisSide.RIGHT: canvas.width * 0.25}
  span = time_range(window)
  sec_per_px = int(math.ceil(span / canvas.width))
  px_per_sec = int(math.ceil(canvas.width / span))

  members: Dict[Tuple[AxisSide, int], Dict[int, BarMember]] = {}
  positions: Dict[Tuple[AxisSide, int], int] = {}

  for mp in bars:
    opts = mp.metric.options
    channel = opts.approximation.channel
    last_x = None
    for point_index, entry in enumerate(mp.first):
      pt = entry.get(channel)
      if pt is None:
        continue
      key = (opts.axis, bar_bucket(entry.clock, sec_per_px, px_per_sec))
      members.setdefault(key, {})[mp.index] = BarMember(metric_index=mp.index, point_index=point_index)
      positions.setdefault(key, pt.x)
      if last_x is not None:
        group_width[opts.axis] = min(pt.x - last_x, group_width[opts.axis])
      last_x = pt.x

  groups = tuple(
    BarGroup(side=side, bucket=bucket, x=positions[(side, bucket)], members=tuple(by_metric.values()))
    for (side, bucket), by_metric in members.items()
  )
  return BarIndex(groups=groups, group_width=group_width)


def place_bars(index: BarIndex) -> Dict[Tuple[int, int], BarPlacement]:
  """Horizontal placement of every bar, keyed by (metric index, point index)."""
  out: Dict[Tuple[int, int], BarPlacement] = {}
  for group in index.groups:
    count = len(group.members)
    group_width = index.group_width[group.side]
    bar_width = int(math.ceil(group_width / count * BAR_GROUP_FILL))
    group_left = group.x - group_width * (BAR_GROUP_FILL / 2)
    for i, member in enumerate(group.members):
      if count > 1:
        center = group_left + math.ceil(bar_width * (i + 0.5))
      else:
        center = float(group.x)
      out[(member.metric_index, member.point_index)] = BarPlacement(
        metric_index=member.metric_index,
        point_index=member.point_index,
        x=center,
        width=max(1, bar_width),
        group_left=group_left,
      )
  return out


def bar_primitives(bars: Sequence[MetricPaths], layout: Layout, window: TimeWindow) -> List[Primitive]:
  if not bars:
    return []
  placements = place_bars(build_bar_index(bars, layout.canvas, window))
  out: List[Primitive] = []
  for mp in bars:
    opts = mp.metric.options
    channel = opts.approximation.channel
    y_zero = layout.axis(opts.axis).zero
    for point_index, entry in enumerate(mp.first):
      pt = entry.get(channel)
      placement = placements.get((mp.index, point_index))
      if pt is None or placement is None:
        continue
      top = min(float(pt.y), y_zero)
      out.append(Rect(
        x=placement.x - placement.width / 2,
        y=top,
        width=float(placement.width),
        height=abs(y_zero - pt.y),
        fill=opts.color,
        fill_opacity=_opacity(opts.transparency),
        role="series-bar",
        clipped=True,
        data={"label": pt.label, "clock": entry.clock},
      ))
  return out
