from svggraph.coords import Y_LIMIT, build_paths, map_point, x_position
from svggraph.layout import Canvas
from svggraph.model import Approximation, GraphType, Sample, TimeWindow

CANVAS = Canvas(x=20, y=10, width=100, height=100)
WINDOW = TimeWindow(time_from=0, time_till=100)


def test_map_point_linear():
  assert map_point(50, 0.5, 0, 0.0, 1.0, CANVAS, WINDOW) == (70, 60)
  assert map_point(100, 1.0, 0, 0.0, 1.0, CANVAS, WINDOW) == (120, 10)
  assert map_point(0, 0.0, 0, 0.0, 1.0, CANVAS, WINDOW) == (20, 110)


def test_map_point_rounds_up():
  _, y = map_point(50, 1 / 3, 0, 0.0, 1.0, CANVAS, WINDOW)
  assert y == 77


def test_timeshift_moves_left():
  assert x_position(50, 10, CANVAS, WINDOW) == 60


def test_out_of_range_values_are_clamped():
  assert map_point(50, 1e9, 0, 0.0, 1.0, CANVAS, WINDOW)[1] == -Y_LIMIT
  assert map_point(50, -1e9, 0, 0.0, 1.0, CANVAS, WINDOW)[1] == Y_LIMIT


def test_zero_period_window_does_not_divide_by_zero():
  window = TimeWindow(time_from=100, time_till=100)
  assert map_point(100, 0.0, 0, 0.0, 1.0, CANVAS, window) == (120, 110)


def test_null_samples_split_paths(make_metric):
  metric = make_metric({10: 1, 20: 2, 30: None, 40: 3, 50: 4})
  mp = build_paths(0, metric, 0.0, 5.0, CANVAS, WINDOW)
  assert [len(p) for p in mp.paths] == [2, 2]
  assert [e.clock for e in mp.first] == [10, 20]


def test_all_channels_mapped_for_all_approximation(make_metric):
  metric = make_metric({10: Sample(min=1, avg=2, max=3)}, approximation=Approximation.ALL)
  entry = build_paths(0, metric, 0.0, 5.0, CANVAS, WINDOW).first[0]
  assert set(entry.points) == {"min", "avg", "max"}
  assert entry.get("min").y > entry.get("avg").y > entry.get("max").y


def test_point_series_drop_out_of_range_values(make_metric):
  metric = make_metric({10: 1, 20: 100}, type=GraphType.POINTS)
  mp = build_paths(0, metric, 0.0, 5.0, CANVAS, WINDOW)
  assert mp.first[0].get("avg") is not None
  assert mp.first[1].get("avg") is None


def test_line_series_keep_out_of_range_values(make_metric):
  metric = make_metric({10: 1, 20: 100})
  mp = build_paths(0, metric, 0.0, 5.0, CANVAS, WINDOW)
  assert mp.first[1].get("avg").y < CANVAS.y


def test_labels_carry_units(make_metric):
  metric = make_metric({10: 2048}, units="B")
  entry = build_paths(0, metric, 0.0, 4096.0, CANVAS, WINDOW).first[0]
  assert entry.get("avg").label == "2 KB"


def test_metric_without_samples_has_no_paths(make_metric):
  assert build_paths(0, make_metric({}), 0.0, 1.0, CANVAS, WINDOW) is None
  assert build_paths(0, make_metric({10: None}), 0.0, 1.0, CANVAS, WINDOW) is None


def test_x_is_monotonic_in_time():
  xs = [map_point(clock, 0.5, 0, 0.0, 1.0, CANVAS, WINDOW)[0] for clock in range(0, 101, 5)]
  assert xs == sorted(xs)
  assert len(set(xs)) == len(xs)
