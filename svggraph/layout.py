from __future__ import annotations

import dataclasses
from typing import Dict, Iterable, Optional, Tuple
from zoneinfo import ZoneInfo

from svggraph.errors import GraphError
from svggraph.model import AxisSide, GraphOptions, Metric, TimeWindow
from svggraph.scale import Scale, calculate_scale, calculate_scale_values, rows_range
from svggraph.units import calc_power_allowed, is_binary_units, normalize_units
from svggraph.utils import clamp01, format_clock, round_half_up, scaled_ratio

OFFSET_TOP = 10
X_AXIS_HEIGHT = 20
YAXIS_BASE_OFFSET = 20
Y_AXIS_RIGHT_LABEL_MARGIN = 12

# Grid cell width used to pick the time step
TIME_GRID_CELL_PX = 100

DATE_FORMAT = "%Y-%m-%d"
DATE_FORMAT_SHORT = "%m-%d"
DATE_TIME_FORMAT_SHORT = "%m-%d %H:%M"
TIME_FORMAT = "%H:%M"
TIME_FORMAT_SECONDS = "%H:%M:%S"

# coarsest first
TIME_FORMATS = (DATE_FORMAT, DATE_FORMAT_SHORT, DATE_TIME_FORMAT_SHORT, TIME_FORMAT, TIME_FORMAT_SECONDS)

EMPTY_SCALE = Scale(min=0.0, max=1.0, interval=1.0, power=0, rows=1)


@dataclasses.dataclass(frozen=True)
class DataRange:
  min: Optional[float] = None
  max: Optional[float] = None
  metrics: int = 0

  @property
  def empty(self) -> bool:
    return self.metrics == 0


@dataclasses.dataclass(frozen=True)
class AxisState:
  side: AxisSide
  scale: Scale
  units: str
  is_binary: bool
  min_calculated: bool
  max_calculated: bool
  empty: bool
  shown: bool
  zero: float = 0.0  # pixel y of the zero value line

  @property
  def min(self) -> float:
    return self.scale.min

  @property
  def max(self) -> float:
    return self.scale.max


@dataclasses.dataclass(frozen=True)
class Canvas:
  x: int
  y: int
  width: int
  height: int

  @property
  def drawable(self) -> bool:
    return self.width > 0 and self.height > 0

  @property
  def right(self) -> int:
    return self.x + self.width

  @property
  def bottom(self) -> int:
    return self.y + self.height


@dataclasses.dataclass(frozen=True)
class Layout:
  width: int
  height: int
  canvas: Canvas
  offset_left: int
  offset_right: int
  left: AxisState
  right: AxisState
  show_x_axis: bool

  def axis(self, side: AxisSide) -> AxisState:
    return self.right if side is AxisSide.RIGHT else self.left


def data_ranges(metrics: Iterable[Metric]) -> Dict[AxisSide, DataRange]:
  """Observed plotted min/max per axis side, after approximation."""
  ranges = {AxisSide.LEFT: DataRange(), AxisSide.RIGHT: DataRange()}
  for metric in metrics:
    side = metric.options.axis
    cur = ranges[side]
    lo, hi = metric.plotted_range()
    if lo is not None and (cur.min is None or lo < cur.min):
      cur = dataclasses.replace(cur, min=lo)
    if hi is not None and (cur.max is None or hi > cur.max):
      cur = dataclasses.replace(cur, max=hi)
    ranges[side] = dataclasses.replace(cur, metrics=cur.metrics + 1)
  return ranges


def resolve_units(explicit: Optional[str], metrics: Iterable[Metric], side: AxisSide) -> str:
  if explicit is not None:
    return normalize_units(explicit)
  for metric in metrics:
    if metric.options.axis is side:
      return normalize_units(metric.units)
  return ""


def _axis_scale(user_min: Optional[float], user_max: Optional[float], data: DataRange, units: str,
                rows_min: int, rows_max: int) -> Tuple[Scale, bool, bool, bool]:
  min_calculated = user_min is None
  max_calculated = user_max is None
  y_min = (data.min or 0.0) if min_calculated else float(user_min)
  y_max = (data.max or 1.0) if max_calculated else float(user_max)
  is_binary = is_binary_units(units)
  scale = calculate_scale(y_min, y_max, is_binary, calc_power_allowed(units), min_calculated, max_calculated,
                          rows_min, rows_max)
  return scale, is_binary, min_calculated, max_calculated


def value_grid(axis: AxisState, canvas_height: int) -> Dict[int, str]:
  """Value labels keyed by pixel distance from the canvas bottom."""
  if axis.empty:
    values = calculate_scale_values(EMPTY_SCALE, "", False)
  else:
    values = calculate_scale_values(axis.scale, axis.units, axis.is_binary)
  return {round_half_up(canvas_height * pos): label for pos, label in values}


def _axis_offset(axis: AxisState, canvas_height: int, options: GraphOptions, margin: int) -> int:
  values = value_grid(axis, canvas_height)
  if not values:
    return YAXIS_BASE_OFFSET
  longest = max(len(label) for label in values.values())
  offset = max(YAXIS_BASE_OFFSET, longest * options.approx_char_width) + margin
  return int(min(offset, options.max_yaxis_width))


def zero_line(axis: AxisState, canvas: Canvas) -> float:
  return canvas.y + canvas.height * clamp01(scaled_ratio(axis.max, 0.0, axis.max, axis.min))


def compute_layout(metrics: Tuple[Metric, ...], options: GraphOptions,
                   ranges: Optional[Dict[AxisSide, DataRange]] = None) -> Layout:
  if ranges is None:
    ranges = data_ranges(metrics)

  canvas_y = OFFSET_TOP
  canvas_height = options.height - OFFSET_TOP - X_AXIS_HEIGHT

  rows_min, rows_max = rows_range(canvas_height, options.cell_height_min)

  left_units = resolve_units(options.left_y_units, metrics, AxisSide.LEFT)
  left_scale, left_binary, left_min_calc, left_max_calc = _axis_scale(
    options.left_y_min, options.left_y_max, ranges[AxisSide.LEFT], left_units, rows_min, rows_max
  )

  # both sides auto-scaled: right axis follows the left row count so grid lines match
  if left_min_calc and left_max_calc:
    rows_min = rows_max = left_scale.rows

  right_units = resolve_units(options.right_y_units, metrics, AxisSide.RIGHT)
  right_scale, right_binary, right_min_calc, right_max_calc = _axis_scale(
    options.right_y_min, options.right_y_max, ranges[AxisSide.RIGHT], right_units, rows_min,
    rows_max
  )

  left = AxisState(
    side=AxisSide.LEFT, scale=left_scale, units=left_units, is_binary=left_binary,
    min_calculated=left_min_calc, max_calculated=left_max_calc, empty=ranges[AxisSide.LEFT].empty,
    shown=options.show_left_y_axis,
  )
  right = AxisState(
    side=AxisSide.RIGHT, scale=right_scale, units=right_units, is_binary=right_binary,
    min_calculated=right_min_calc, max_calculated=right_max_calc, empty=ranges[AxisSide.RIGHT].empty,
    shown=options.show_right_y_axis,
  )

  offset_left = _axis_offset(left, canvas_height, options, 0) if left.shown else 0
  offset_right = _axis_offset(right, canvas_height, options, Y_AXIS_RIGHT_LABEL_MARGIN) if right.shown else 0

  canvas = Canvas(
    x=offset_left,
    y=canvas_y,
    width=options.width - offset_left - offset_right,
    height=canvas_height,
  )

  left = dataclasses.replace(left, zero=zero_line(left, canvas))
  right = dataclasses.replace(right, zero=zero_line(right, canvas))

  return Layout(
    width=options.width,
    height=options.height,
    canvas=canvas,
    offset_left=offset_left,
    offset_right=offset_right,
    left=left,
    right=right,
    show_x_axis=options.show_x_axis,
  )


def time_grid(window: TimeWindow, canvas_width: int, tz: ZoneInfo) -> Dict[int, str]:
  """
  Time labels keyed by pixel offset from the canvas left edge.

  One label per ~100px; the coarsest date/time format that keeps every label distinct is used.
  """
  period = window.period
  if period < 0:
    raise GraphError(f"Time window ends before it starts: {window.time_from} > {window.time_till}")
  if canvas_width <= 0:
    raise GraphError(f"Cannot lay out time labels on a {canvas_width}px wide canvas")

  step = round_half_up(period / canvas_width * TIME_GRID_CELL_PX)

  # too short to place labels: show both ends only
  if step == 0:
    return {
      0: format_clock(window.time_from, tz, TIME_FORMAT_SECONDS),
      canvas_width: format_clock(window.time_till, tz, TIME_FORMAT_SECONDS),
    }

  start = window.time_from + step - window.time_from % step
  clocks = range(start, window.time_till + 1, step)

  grid: Dict[int, str] = {}
  for fmt in TIME_FORMATS:
    grid = {}
    for clock in clocks:
      pos = round_half_up(canvas_width - canvas_width * (window.time_till - clock) / period)
      grid[pos] = format_clock(clock, tz, fmt)
    if len(set(grid.values())) == len(grid):
      return grid
  return grid


def grid_lines(layout: Layout, time_points: Dict[int, str]) -> Tuple[Dict[int, str], Dict[int, str]]:
  """
  Gridline positions as (value_points, time_points), without the lines that fall on an axis.
  """
  canvas = layout.canvas
  time_points = dict(time_points)
  value_points: Dict[int, str] = {}

  if layout.left.shown:
    value_points = value_grid(layout.left, canvas.height)
    time_points.pop(0, None)
  elif layout.right.shown:
    value_points = value_grid(layout.right, canvas.height)
    time_points.pop(canvas.width, None)

  if layout.show_x_axis:
    value_points.pop(0, None)

  return value_points, time_points


def axis_labels(layout: Layout, side: AxisSide) -> Dict[int, str]:
  values = value_grid(layout.axis(side), layout.canvas.height)
  if side is AxisSide.RIGHT:
    # bottom label would sit on the X axis
    values.pop(0, None)
  return values
