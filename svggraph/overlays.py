from __future__ import annotations

import dataclasses
import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

import numpy as np

from svggraph.coords import y_position
from svggraph.layout import Canvas, Layout, TIME_FORMAT_SECONDS
from svggraph.model import AxisSide, GraphOptions, Metric, Problem, SimpleTrigger, Theme, TimeWindow
from svggraph.scene import Line, Polygon, Primitive, Rect, Text
from svggraph.units import convert_units
from svggraph.workperiod import parse_work_period, working_intervals

SEC_PER_MONTH = 30 * 86400
WORKING_TIME_MAX_PERIOD = 3 * SEC_PER_MONTH

DATE_TIME_FORMAT_SECONDS = "%Y-%m-%d %H:%M:%S"

PROBLEM_UPDATE_CLOSE = 0x01

ANNOTATION_SIMPLE = "simple"
ANNOTATION_RANGE = "range"

# A problem must span more than this many pixels to be drawn as a range
RANGE_MIN_PX = 2

LABEL_PAD = 4


# Percentiles

@dataclasses.dataclass(frozen=True)
class PercentileMarker:
  side: AxisSide
  percent: float
  value: float
  label: str
  has_values: bool

  @property
  def text(self) -> str:
    return f"{self.percent:g}th percentile: {self.label}"


def percentile_value(values: Sequence[float], percent: float) -> Optional[float]:
  """Nearest-rank percentile: sorted(values)[ceil(percent / 100 * n) - 1]."""
  if len(values) == 0:
    return None
  ordered = np.sort(np.asarray(values, dtype=np.float64))
  rank = int(math.ceil(percent / 100 * ordered.size)) - 1
  rank = max(0, min(ordered.size - 1, rank))
  return float(ordered[rank])


def _percentile_sides(options: GraphOptions) -> Dict[AxisSide, float]:
  sides: Dict[AxisSide, float] = {}
  if options.show_percentile_left and options.percentile_left_value > 0:
    sides[AxisSide.LEFT] = float(options.percentile_left_value)
  if options.show_percentile_right and options.percentile_right_value > 0:
    sides[AxisSide.RIGHT] = float(options.percentile_right_value)
  return sides


def percentile_markers(metrics: Sequence[Metric], options: GraphOptions, layout: Layout) -> List[PercentileMarker]:
  sides = _percentile_sides(options)
  values: Dict[AxisSide, List[float]] = {side: [] for side in sides}
  for metric in metrics:
    side = metric.options.axis
    if side not in values:
      continue
    channel = metric.options.approximation.channel
    values[side].extend(float(s.value(channel)) for s in metric.points.values() if s is not None)

  markers = []
  for side, percent in sides.items():
    value = percentile_value(values[side], percent)
    if value is None:
      markers.append(PercentileMarker(side=side, percent=percent, value=0.0, label="-", has_values=False))
    else:
      label = convert_units(value, layout.axis(side).units)
      markers.append(PercentileMarker(side=side, percent=percent, value=value, label=label, has_values=True))
  return markers


def percentile_primitives(markers: Sequence[PercentileMarker], layout: Layout, theme: Theme) -> List[Primitive]:
  canvas = layout.canvas
  out: List[Primitive] = []
  for marker in markers:
    axis = layout.axis(marker.side)
    if not axis.min <= marker.value <= axis.max:
      continue
    color = theme.left_percentile if marker.side is AxisSide.LEFT else theme.right_percentile
    y = y_position(marker.value, axis.min, axis.max, canvas)
    out.append(Line(x1=canvas.x, y1=y, x2=canvas.right, y2=y, stroke=color, role="percentile"))
    if marker.side is AxisSide.LEFT:
      out.append(Text(x=canvas.x + LABEL_PAD, y=y - LABEL_PAD, text=marker.text, color=color, role="percentile"))
    else:
      out.append(Text(x=canvas.right - LABEL_PAD, y=y - LABEL_PAD, text=marker.text, color=color, anchor="end",
                      role="percentile"))
  return out


# Simple triggers

def visible_triggers(triggers: Sequence[SimpleTrigger], layout: Layout) -> List[Tuple[int, SimpleTrigger]]:
  out = []
  for index, trigger in enumerate(triggers):
    axis = layout.axis(trigger.axis)
    if axis.min <= trigger.value <= axis.max:
      out.append((index, trigger))
  return out


def trigger_primitives(triggers: Sequence[SimpleTrigger], layout: Layout) -> List[Primitive]:
  canvas = layout.canvas
  out: List[Primitive] = []
  for _index, trigger in visible_triggers(triggers, layout):
    axis = layout.axis(trigger.axis)
    y = y_position(trigger.value, axis.min, axis.max, canvas)
    out.append(Line(x1=canvas.x, y1=y, x2=canvas.right, y2=y, stroke=trigger.color, dashed=True,
                    role="simple-trigger"))
    title = f"{trigger.description} [{trigger.constant}]" if trigger.constant else trigger.description
    if title:
      out.append(Text(x=canvas.right - LABEL_PAD, y=y - LABEL_PAD, text=title, color=trigger.color, anchor="end",
                      role="simple-trigger"))
  return out


# Working time

def working_time_spans(work_period: str, window: TimeWindow, canvas: Canvas, tz: ZoneInfo) -> List[Tuple[int, int]]:
  """
  Non-working time as (x_from, x_to) pixel spans relative to the canvas left edge.
  Empty when the window is longer than three months.
  """
  if window.period > WORKING_TIME_MAX_PERIOD:
    return []
  periods = parse_work_period(work_period)

  span = window.period or 1
  points = [0]
  for start, end in working_intervals(periods, window.time_from, window.time_till, tz):
    points.append(int(math.floor((start - window.time_from) * canvas.width / span)))
    points.append(int(math.ceil((end - window.time_from) * canvas.width / span)))
  points.append(canvas.width)

  return [(points[i], points[i + 1]) for i in range(0, len(points) - 1, 2) if points[i + 1] > points[i]]


def working_time_primitives(spans: Sequence[Tuple[int, int]], canvas: Canvas, theme: Theme) -> List[Primitive]:
  return [
    Rect(x=canvas.x + x1, y=canvas.y, width=x2 - x1, height=canvas.height, fill=theme.non_work_time,
         role="working-time")
    for x1, x2 in spans
  ]


# Problems

@dataclasses.dataclass(frozen=True)
class ProblemAnnotation:
  x: int
  y: int
  width: int
  height: int
  mode: str
  start_dashed: bool
  end_dashed: bool
  name: str
  clock: str
  r_clock: str
  eventid: str
  r_eventid: str
  objectid: str
  severity: int
  severity_color: str
  status: str
  status_color: str

  def info(self) -> Dict[str, object]:
    return {
      "name": self.name,
      "clock": self.clock,
      "r_clock": self.r_clock,
      "eventid": self.eventid,
      "r_eventid": self.r_eventid,
      "objectid": self.objectid,
      "severity": self.severity,
      "status": self.status,
      "status_color": self.status_color,
    }


def problem_status(problem: Problem, theme: Theme) -> Tuple[str, str]:
  if problem.r_clock != 0:
    return "RESOLVED", theme.ok_status
  for ack in problem.acknowledges:
    if ack.action & PROBLEM_UPDATE_CLOSE:
      return "CLOSING", theme.ok_status
  return "PROBLEM", theme.problem_status


def _format_problem_clock(clock: int, today: int, tz: ZoneInfo) -> str:
  fmt = TIME_FORMAT_SECONDS if clock >= today else DATE_TIME_FORMAT_SECONDS
  return datetime.fromtimestamp(clock, tz).strftime(fmt)


def problem_annotations(problems: Sequence[Problem], window: TimeWindow, canvas: Canvas, theme: Theme, now: int,
                        tz: ZoneInfo) -> List[ProblemAnnotation]:
  today_dt = datetime.fromtimestamp(now, tz).replace(hour=0, minute=0, second=0, microsecond=0)
  today = int(today_dt.timestamp())
  span = window.period or 1

  out: List[ProblemAnnotation] = []
  for problem in problems:
    if problem.clock > window.time_till:
      continue
    if problem.r_clock != 0 and problem.r_clock < window.time_from:
      continue

    # unresolved problems last until now or the window end
    if problem.r_clock == 0:
      time_to = min(window.time_till, now)
    else:
      time_to = min(window.time_till, problem.r_clock)

    x1 = int(math.ceil(canvas.x + canvas.width - canvas.width * (window.time_till - problem.clock) / span))
    x2 = int(math.floor(canvas.x + canvas.width - canvas.width * (window.time_till - time_to) / span))

    left = max(x1, canvas.x)
    right = min(x2, canvas.right)
    status, status_color = problem_status(problem, theme)

    out.append(ProblemAnnotation(
      x=left,
      y=canvas.y,
      width=max(0, right - left),
      height=canvas.height,
      mode=ANNOTATION_RANGE if (x2 - x1) > RANGE_MIN_PX else ANNOTATION_SIMPLE,
      start_dashed=problem.clock <= window.time_from,
      end_dashed=time_to >= window.time_till,
      name=problem.name,
      clock=_format_problem_clock(problem.clock, today, tz),
      r_clock=_format_problem_clock(problem.r_clock, today, tz) if problem.r_clock != 0 else "",
      eventid=problem.eventid,
      r_eventid=problem.r_eventid,
      objectid=problem.objectid,
      severity=problem.severity,
      severity_color=theme.severity_color(problem.severity),
      status=status,
      status_color=status_color,
    ))
  return out


def problem_primitives(annotations: Sequence[ProblemAnnotation]) -> List[Primitive]:
  out: List[Primitive] = []
  for a in annotations:
    color = a.severity_color
    bottom = a.y + a.height
    if a.mode == ANNOTATION_RANGE:
      out.append(Rect(x=a.x, y=a.y, width=a.width, height=a.height, fill=color, fill_opacity=0.1,
                      role="problem", data=a.info()))
      out.append(Line(x1=a.x, y1=a.y, x2=a.x, y2=bottom, stroke=color, dashed=a.start_dashed, role="problem"))
      out.append(Line(x1=a.x + a.width, y1=a.y, x2=a.x + a.width, y2=bottom, stroke=color, dashed=a.end_dashed,
                      role="problem"))
    else:
      out.append(Line(x1=a.x, y1=a.y, x2=a.x, y2=bottom, stroke=color, dashed=a.start_dashed, role="problem"))
    out.append(Polygon(points=((a.x - 3.0, bottom + 6.0), (a.x + 3.0, bottom + 6.0), (float(a.x), float(bottom))),
                       fill=color, role="problem-marker"))
  return out
