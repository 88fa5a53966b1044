from __future__ import annotations

import dataclasses
import enum
import time
from typing import Dict, Optional, Tuple
from zoneinfo import ZoneInfo

from svggraph.config import (
  APPROX_CHAR_WIDTH,
  CELL_HEIGHT_MIN,
  DEFAULT_TZ,
  FONT_FAMILY,
  IMG_HEIGHT,
  IMG_WIDTH,
  MAX_YAXIS_WIDTH,
  WORK_PERIOD,
)

DEFAULT_COLOR = "#b0af07"
DEFAULT_TRANSPARENCY = 5
DEFAULT_POINT_SIZE = 1
DEFAULT_LINE_WIDTH = 1


class GraphType(enum.Enum):
  LINE = "line"
  POINTS = "points"
  STAIRCASE = "staircase"
  BAR = "bar"


class AxisSide(enum.Enum):
  LEFT = "left"
  RIGHT = "right"


class Approximation(enum.Enum):
  MIN = "min"
  AVG = "avg"
  MAX = "max"
  ALL = "all"

  @property
  def channel(self) -> str:
    """Sample channel drawn as the main line, bar or point."""
    if self is Approximation.MIN:
      return "min"
    if self is Approximation.MAX:
      return "max"
    return "avg"

  @property
  def channels(self) -> Tuple[str, ...]:
    if self is Approximation.ALL:
      return ("min", "avg", "max")
    return (self.channel,)

  @property
  def bounds(self) -> Tuple[str, str]:
    """Channels giving the lowest and highest plotted value of a sample."""
    if self is Approximation.ALL:
      return ("min", "max")
    return (self.channel, self.channel)


class MissingData(enum.Enum):
  CONNECTED = "connected"
  NONE = "none"
  ZERO = "zero"
  LAST_KNOWN = "last_known"


@dataclasses.dataclass(frozen=True)
class Sample:
  min: float
  avg: float
  max: float

  @classmethod
  def single(cls, value: float) -> "Sample":
    return cls(min=value, avg=value, max=value)

  def value(self, channel: str) -> float:
    return getattr(self, channel)


# clock -> sample; None marks a deliberate break in the line
Points = Dict[int, Optional[Sample]]


@dataclasses.dataclass(frozen=True)
class MetricOptions:
  type: GraphType = GraphType.LINE
  axis: AxisSide = AxisSide.LEFT
  approximation: Approximation = Approximation.AVG
  color: str = DEFAULT_COLOR
  transparency: int = DEFAULT_TRANSPARENCY  # 0..10, line opacity
  fill: int = 3  # 0..10, area opacity
  line_width: int = DEFAULT_LINE_WIDTH
  point_size: int = DEFAULT_POINT_SIZE
  missing_data: MissingData = MissingData.CONNECTED
  timeshift: int = 0
  order: int = 0


@dataclasses.dataclass(frozen=True)
class Metric:
  name: str
  itemid: str
  units: str = ""
  host: str = ""
  options: MetricOptions = dataclasses.field(default_factory=MetricOptions)
  points: Points = dataclasses.field(default_factory=dict)

  def plotted_range(self) -> Tuple[Optional[float], Optional[float]]:
    lo_ch, hi_ch = self.options.approximation.bounds
    lo: Optional[float] = None
    hi: Optional[float] = None
    for sample in self.points.values():
      if sample is None:
        continue
      v_lo = float(sample.value(lo_ch))
      v_hi = float(sample.value(hi_ch))
      if lo is None or v_lo < lo:
        lo = v_lo
      if hi is None or v_hi > hi:
        hi = v_hi
    return lo, hi


@dataclasses.dataclass(frozen=True)
class SimpleTrigger:
  value: float
  constant: str = ""
  description: str = ""
  color: str = "#e45959"
  axis: AxisSide = AxisSide.LEFT


@dataclasses.dataclass(frozen=True)
class Acknowledge:
  action: int = 0
  clock: int = 0


@dataclasses.dataclass(frozen=True)
class Problem:
  eventid: str
  objectid: str
  name: str
  clock: int
  r_clock: int = 0  # 0 while not recovered
  r_eventid: str = "0"
  severity: int = 0
  acknowledges: Tuple[Acknowledge, ...] = ()


@dataclasses.dataclass(frozen=True)
class TimeWindow:
  time_from: int
  time_till: int

  @property
  def period(self) -> int:
    return self.time_till - self.time_from


@dataclasses.dataclass(frozen=True)
class GraphOptions:
  width: int = IMG_WIDTH
  height: int = IMG_HEIGHT

  show_simple_triggers: bool = False
  show_working_time: bool = False
  show_percentile_left: bool = False
  percentile_left_value: float = 0.0
  show_percentile_right: bool = False
  percentile_right_value: float = 0.0

  show_left_y_axis: bool = True
  left_y_min: Optional[float] = None
  left_y_max: Optional[float] = None
  left_y_units: Optional[str] = None

  show_right_y_axis: bool = False
  right_y_min: Optional[float] = None
  right_y_max: Optional[float] = None
  right_y_units: Optional[str] = None

  show_x_axis: bool = True

  cell_height_min: int = CELL_HEIGHT_MIN
  approx_char_width: int = APPROX_CHAR_WIDTH
  max_yaxis_width: int = MAX_YAXIS_WIDTH


@dataclasses.dataclass(frozen=True)
class Theme:
  background: str = "#ffffff"
  grid: str = "#ccd5d9"
  text: str = "#1f2c33"
  non_work_time: str = "#ebebeb"
  left_percentile: str = "#429e47"
  right_percentile: str = "#ff465c"
  problem_status: str = "#e45959"
  ok_status: str = "#429e47"
  severity: Tuple[str, ...] = ("#97aab3", "#7499ff", "#ffc859", "#ffa059", "#e97659", "#e45959")
  font_family: str = FONT_FAMILY
  font_size: float = 10.0

  def severity_color(self, severity: int) -> str:
    if 0 <= severity < len(self.severity):
      return self.severity[severity]
    return self.severity[-1]


@dataclasses.dataclass(frozen=True)
class GraphRequest:
  metrics: Tuple[Metric, ...]
  window: TimeWindow
  options: GraphOptions = dataclasses.field(default_factory=GraphOptions)
  simple_triggers: Tuple[SimpleTrigger, ...] = ()
  problems: Tuple[Problem, ...] = ()
  theme: Theme = dataclasses.field(default_factory=Theme)
  work_period: str = WORK_PERIOD
  tz: ZoneInfo = dataclasses.field(default_factory=lambda: ZoneInfo(DEFAULT_TZ))
  now: Optional[int] = None

  def resolved_now(self) -> int:
    return int(time.time()) if self.now is None else int(self.now)
