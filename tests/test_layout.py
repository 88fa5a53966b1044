import pytest

from svggraph.errors import GraphError
from svggraph.layout import (
  AxisState,
  Canvas,
  axis_labels,
  compute_layout,
  grid_lines,
  time_grid,
  zero_line,
)
from svggraph.model import AxisSide, GraphOptions, TimeWindow
from svggraph.scale import Scale

DAY = 86400


def test_canvas_geometry(make_metric):
  layout = compute_layout((make_metric({0: 0, 60: 100}),), GraphOptions(width=500, height=300))
  assert layout.canvas.y == 10
  assert layout.canvas.height == 270
  assert 20 <= layout.offset_left <= 120
  assert layout.offset_right == 0
  assert layout.canvas.x == layout.offset_left
  assert layout.canvas.width == 500 - layout.offset_left


def test_hidden_axes_give_full_width_canvas(make_metric):
  options = GraphOptions(width=500, height=300, show_left_y_axis=False, show_right_y_axis=False)
  layout = compute_layout((make_metric({0: 0, 60: 100}),), options)
  assert layout.canvas.x == 0
  assert layout.canvas.width == 500


def test_empty_axes_use_base_offset():
  options = GraphOptions(width=500, height=300, show_right_y_axis=True)
  layout = compute_layout((), options)
  assert layout.offset_left == 20
  assert layout.offset_right == 20 + 12
  assert layout.left.min == 0
  assert layout.left.max >= 1


def test_offsets_are_capped(make_metric):
  units = "!" + "x" * 30
  metrics = (
    make_metric({0: 0, 60: 100}, name="a"),
    make_metric({0: 0, 60: 100}, name="b", axis=AxisSide.RIGHT, order=1),
  )
  options = GraphOptions(width=800, height=300, show_right_y_axis=True, left_y_units=units, right_y_units=units)
  layout = compute_layout(metrics, options)
  assert layout.offset_left == 120
  assert layout.offset_right == 120


def test_approx_char_width_is_configurable(make_metric):
  metrics = (make_metric({0: 0, 60: 12345}),)
  narrow = compute_layout(metrics, GraphOptions(width=800, height=300, approx_char_width=5))
  wide = compute_layout(metrics, GraphOptions(width=800, height=300, approx_char_width=15))
  assert narrow.offset_left < wide.offset_left


def test_units_fall_back_to_first_metric_on_side(make_metric):
  metrics = (
    make_metric({0: 1}, name="a", units="B", order=0),
    make_metric({0: 1}, name="b", units="bps", order=1),
  )
  layout = compute_layout(metrics, GraphOptions(width=500, height=300))
  assert layout.left.units == "B"
  assert layout.left.is_binary
  assert layout.right.units == ""


def test_right_axis_follows_left_row_count(make_metric):
  metrics = (
    make_metric({0: 3, 60: 97}, name="a"),
    make_metric({0: 0.1, 60: 7.3}, name="b", axis=AxisSide.RIGHT, order=1),
  )
  layout = compute_layout(metrics, GraphOptions(width=500, height=400, show_right_y_axis=True))
  assert layout.right.scale.rows == layout.left.scale.rows


def test_zero_line():
  canvas = Canvas(x=0, y=10, width=100, height=200)
  axis = AxisState(side=AxisSide.LEFT, scale=Scale(min=-10.0, max=10.0, interval=5.0, power=0, rows=4),
                   units="", is_binary=False, min_calculated=True, max_calculated=True, empty=False, shown=True)
  assert zero_line(axis, canvas) == 110
  positive = AxisState(side=AxisSide.LEFT, scale=Scale(min=5.0, max=10.0, interval=1.0, power=0, rows=5),
                       units="", is_binary=False, min_calculated=True, max_calculated=True, empty=False,
                       shown=True)
  assert zero_line(positive, canvas) == 210


def test_time_grid_hourly_window(utc):
  grid = time_grid(TimeWindow(time_from=0, time_till=3600), 1000, utc)
  assert len(grid) == 10
  assert grid[100] == "01-01 00:06"
  assert grid[1000] == "01-01 01:00"
  assert len(set(grid.values())) == len(grid)


def test_time_grid_prefers_dates_for_long_windows(utc):
  grid = time_grid(TimeWindow(time_from=0, time_till=10 * DAY), 1000, utc)
  assert grid[100] == "1970-01-02"


def test_time_grid_too_short_window_shows_ends(utc):
  grid = time_grid(TimeWindow(time_from=0, time_till=1), 1000, utc)
  assert grid == {0: "00:00:00", 1000: "00:00:01"}


def test_time_grid_invalid_input(utc):
  with pytest.raises(GraphError):
    time_grid(TimeWindow(time_from=10, time_till=0), 1000, utc)
  with pytest.raises(GraphError):
    time_grid(TimeWindow(time_from=0, time_till=10), 0, utc)


def test_grid_lines_skip_axis_positions(make_metric):
  layout = compute_layout((make_metric({0: 0, 60: 100}),), GraphOptions(width=500, height=300))
  values, times = grid_lines(layout, {0: "a", 50: "b"})
  assert times == {50: "b"}
  assert 0 not in values
  assert values


def test_grid_lines_with_right_axis_only(make_metric):
  options = GraphOptions(width=500, height=300, show_left_y_axis=False, show_right_y_axis=True, show_x_axis=False)
  layout = compute_layout((make_metric({0: 0, 60: 100}, axis=AxisSide.RIGHT),), options)
  values, times = grid_lines(layout, {0: "a", layout.canvas.width: "b"})
  assert times == {0: "a"}
  assert 0 in values


def test_right_axis_skips_bottom_label(make_metric):
  options = GraphOptions(width=500, height=300, show_right_y_axis=True)
  layout = compute_layout((make_metric({0: 0, 60: 100}, axis=AxisSide.RIGHT),), options)
  assert 0 not in axis_labels(layout, AxisSide.RIGHT)
  assert 0 in axis_labels(layout, AxisSide.LEFT)
