from __future__ import annotations

import dataclasses
import hashlib
from typing import Dict, List, Sequence, Tuple

from svggraph.coords import MetricPaths, build_paths
from svggraph.gaps import applies_to, merge_points, missing_points
from svggraph.layout import (
  DataRange,
  Layout,
  axis_labels,
  compute_layout,
  data_ranges,
  grid_lines,
  time_grid,
)
from svggraph.model import AxisSide, GraphRequest, GraphType, Metric, MissingData
from svggraph.overlays import (
  PercentileMarker,
  ProblemAnnotation,
  percentile_markers,
  percentile_primitives,
  problem_annotations,
  problem_primitives,
  trigger_primitives,
  working_time_primitives,
  working_time_spans,
)
from svggraph.scene import ClipRegion, Line, Primitive, Scene, Text
from svggraph.series import bar_primitives, line_primitives, point_primitives

Y_AXIS_LEFT_LABEL_MARGIN = 5
Y_AXIS_RIGHT_LABEL_MARGIN = 12
X_AXIS_LABEL_MARGIN = 5
LABEL_BASELINE_DY = 4
X_AXIS_LABEL_DY = 15


@dataclasses.dataclass
class Graph:
  scene: Scene
  layout: Layout
  metrics: Tuple[Metric, ...]
  paths: List[MetricPaths] = dataclasses.field(default_factory=list)
  percentiles: List[PercentileMarker] = dataclasses.field(default_factory=list)
  problems: List[ProblemAnnotation] = dataclasses.field(default_factory=list)


def apply_missing_data(metrics: Sequence[Metric]) -> Tuple[Tuple[Metric, ...], Dict[AxisSide, DataRange]]:
  """
  Fill data gaps per metric policy. Treating gaps as zero pulls a positive axis minimum down to 0
  so the inserted zeros stay visible.
  """
  ranges = data_ranges(metrics)
  out: List[Metric] = []
  for metric in metrics:
    opts = metric.options
    if applies_to(opts):
      extra = missing_points(metric.points, opts.missing_data)
      if extra:
        metric = dataclasses.replace(metric, points=merge_points(metric.points, extra))
        if opts.missing_data is MissingData.ZERO:
          r = ranges[opts.axis]
          if r.min is not None and r.min > 0:
            ranges[opts.axis] = dataclasses.replace(r, min=0.0)
    out.append(metric)
  return tuple(out), ranges


def clip_id(request: GraphRequest) -> str:
  h = hashlib.sha1()
  h.update(f"{request.window.time_from}:{request.window.time_till}".encode("utf-8"))
  for m in request.metrics:
    h.update(f"|{m.itemid}:{m.options.order}".encode("utf-8"))
  return f"metric_clip_{h.hexdigest()[:12]}"


def _grid(layout: Layout, time_points: Dict[int, str], color: str) -> List[Primitive]:
  canvas = layout.canvas
  value_points, time_points = grid_lines(layout, time_points)
  out: List[Primitive] = []
  for pos in value_points:
    y = canvas.bottom - pos
    out.append(Line(x1=canvas.x, y1=y, x2=canvas.right, y2=y, stroke=color, dashed=True, role="grid"))
  for pos in time_points:
    x = canvas.x + pos
    out.append(Line(x1=x, y1=canvas.y, x2=x, y2=canvas.bottom, stroke=color, dashed=True, role="grid"))
  return out


def _y_axis(layout: Layout, side: AxisSide, line_color: str, text_color: str) -> List[Primitive]:
  canvas = layout.canvas
  x = canvas.x if side is AxisSide.LEFT else canvas.right
  out: List[Primitive] = [Line(x1=x, y1=canvas.y, x2=x, y2=canvas.bottom, stroke=line_color, role="axis")]
  for pos, label in axis_labels(layout, side).items():
    y = canvas.bottom - pos + LABEL_BASELINE_DY
    if side is AxisSide.LEFT:
      out.append(Text(x=x - Y_AXIS_LEFT_LABEL_MARGIN, y=y, text=label, color=text_color, anchor="end", role="axis"))
    else:
      out.append(Text(x=x + Y_AXIS_RIGHT_LABEL_MARGIN, y=y, text=label, color=text_color, role="axis"))
  return out


def _x_axis(layout: Layout, time_points: Dict[int, str], line_color: str, text_color: str) -> List[Primitive]:
  canvas = layout.canvas
  out: List[Primitive] = [
    Line(x1=canvas.x, y1=canvas.bottom, x2=canvas.right, y2=canvas.bottom, stroke=line_color, role="axis"),
  ]
  for pos, label in time_points.items():
    x = canvas.x + pos
    out.append(Line(x1=x, y1=canvas.bottom, x2=x, y2=canvas.bottom + X_AXIS_LABEL_MARGIN, stroke=line_color,
                    role="axis"))
    out.append(Text(x=x, y=canvas.bottom + X_AXIS_LABEL_DY, text=label, color=text_color, anchor="middle",
                    role="axis"))
  return out


def compose(request: GraphRequest) -> Graph:
  """
  Lay out and draw one graph.

  Drawing order: working time, grid, Y axes, X axis, lines, points, bars, percentiles,
  simple triggers, problems, clip region.
  """
  options = request.options
  theme = request.theme
  window = request.window

  metrics, ranges = apply_missing_data(request.metrics)
  layout = compute_layout(metrics, options, ranges)
  scene = Scene(width=options.width, height=options.height, background=theme.background,
                font_family=theme.font_family, font_size=theme.font_size)
  graph = Graph(scene=scene, layout=layout, metrics=metrics)

  canvas = layout.canvas
  if not canvas.drawable:
    return graph

  for index, metric in enumerate(metrics):
    axis = layout.axis(metric.options.axis)
    mp = build_paths(index, metric, axis.min, axis.max, canvas, window)
    if mp is not None:
      graph.paths.append(mp)

  if options.show_working_time:
    spans = working_time_spans(request.work_period, window, canvas, request.tz)
    scene.extend(working_time_primitives(spans, canvas, theme))

  time_points = time_grid(window, canvas.width, request.tz) if options.show_x_axis else {}

  scene.extend(_grid(layout, time_points, theme.grid))
  if layout.left.shown:
    scene.extend(_y_axis(layout, AxisSide.LEFT, theme.grid, theme.text))
  if layout.right.shown:
    scene.extend(_y_axis(layout, AxisSide.RIGHT, theme.grid, theme.text))
  if options.show_x_axis:
    scene.extend(_x_axis(layout, time_points, theme.grid, theme.text))

  for mp in graph.paths:
    if mp.metric.options.type in (GraphType.LINE, GraphType.STAIRCASE):
      scene.extend(line_primitives(mp, layout))
  for mp in graph.paths:
    if mp.metric.options.type is GraphType.POINTS:
      scene.extend(point_primitives(mp))
  scene.extend(bar_primitives([mp for mp in graph.paths if mp.metric.options.type is GraphType.BAR], layout, window))

  graph.percentiles = percentile_markers(metrics, options, layout)
  scene.extend(percentile_primitives(graph.percentiles, layout, theme))

  if options.show_simple_triggers:
    scene.extend(trigger_primitives(request.simple_triggers, layout))

  graph.problems = problem_annotations(request.problems, window, canvas, theme, request.resolved_now(), request.tz)
  scene.extend(problem_primitives(graph.problems))

  scene.add(ClipRegion(id=clip_id(request), x=canvas.x, y=canvas.y, width=canvas.width, height=canvas.height))
  return graph


def render_graph(request: GraphRequest) -> Scene:
  return compose(request).scene
