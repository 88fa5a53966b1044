from zoneinfo import ZoneInfo

import pytest

from svggraph.errors import WorkPeriodError
from svggraph.layout import Canvas, compute_layout
from svggraph.model import (
  Acknowledge,
  AxisSide,
  GraphOptions,
  Problem,
  SimpleTrigger,
  Theme,
  TimeWindow,
)
from svggraph.overlays import (
  ANNOTATION_RANGE,
  ANNOTATION_SIMPLE,
  percentile_markers,
  percentile_primitives,
  percentile_value,
  problem_annotations,
  problem_primitives,
  problem_status,
  trigger_primitives,
  visible_triggers,
  working_time_spans,
)
from svggraph.scene import Line, Rect

UTC = ZoneInfo("UTC")

MONDAY = 1704067200  # 2024-01-01 00:00 UTC
SATURDAY = MONDAY + 5 * 86400
CANVAS = Canvas(x=0, y=10, width=1000, height=100)
WINDOW = TimeWindow(time_from=0, time_till=1000)
THEME = Theme()


def _problem(clock, r_clock=0, **kw):
  return Problem(eventid=str(clock), objectid="1", name="High CPU", clock=clock, r_clock=r_clock, **kw)


@pytest.mark.parametrize("values,percent,expected", [
  ([1, 2, 3, 4, 5], 50, 3),
  ([5, 4, 3, 2, 1], 50, 3),
  (list(range(1, 11)), 90, 9),
  ([7], 95, 7),
  ([3, 1, 2], 100, 3),
])
def test_percentile_value(values, percent, expected):
  assert percentile_value(values, percent) == expected


def test_percentile_without_values():
  assert percentile_value([], 50) is None


def test_percentile_markers(make_metric):
  metrics = (make_metric({i * 60: v for i, v in enumerate([1, 2, 3, 4, 5])}),)
  options = GraphOptions(width=600, height=300, show_percentile_left=True, percentile_left_value=50,
                         show_percentile_right=True, percentile_right_value=90)
  layout = compute_layout(metrics, options)
  left, right = percentile_markers(metrics, options, layout)
  assert left.side is AxisSide.LEFT
  assert left.value == 3
  assert left.text == "50th percentile: 3"
  assert not right.has_values
  assert right.text == "90th percentile: -"

  lines = [p for p in percentile_primitives([left, right], layout, THEME) if isinstance(p, Line)]
  assert [l.stroke for l in lines] == [THEME.left_percentile, THEME.right_percentile]
  # no values: drawn at 0 with a "-" label
  assert lines[1].y1 == layout.canvas.bottom


def test_triggers_outside_axis_are_hidden(make_metric):
  layout = compute_layout((make_metric({0: 0, 60: 100}),), GraphOptions(width=600, height=300))
  triggers = [
    SimpleTrigger(value=50, constant="50", description="Load too high"),
    SimpleTrigger(value=10 ** 6, description="Never reached"),
  ]
  visible = visible_triggers(triggers, layout)
  assert [i for i, _ in visible] == [0]
  items = trigger_primitives(triggers, layout)
  assert items[0].dashed
  assert items[1].text == "Load too high [50]"


def test_simple_and_range_problems():
  problems = [_problem(100, r_clock=101), _problem(100, r_clock=500)]
  simple, ranged = problem_annotations(problems, WINDOW, CANVAS, THEME, now=2000, tz=UTC)
  assert simple.mode == ANNOTATION_SIMPLE
  assert ranged.mode == ANNOTATION_RANGE
  assert ranged.x == 100
  assert ranged.width == 400
  assert not ranged.start_dashed
  assert not ranged.end_dashed


def test_problem_truncated_by_window_has_dashed_borders():
  (a,) = problem_annotations([_problem(-50)], WINDOW, CANVAS, THEME, now=2000, tz=UTC)
  assert a.x == 0
  assert a.width == 1000
  assert a.start_dashed
  assert a.end_dashed
  items = problem_primitives([a])
  rect = next(i for i in items if isinstance(i, Rect))
  assert rect.data["status"] == "PROBLEM"
  borders = [i for i in items if isinstance(i, Line)]
  assert [b.dashed for b in borders] == [True, True]


def test_unresolved_problem_lasts_until_now():
  (a,) = problem_annotations([_problem(100)], WINDOW, CANVAS, THEME, now=600, tz=UTC)
  assert a.width == 500
  assert not a.end_dashed


def test_problems_outside_window_are_skipped():
  problems = [_problem(-500, r_clock=-10), _problem(2000)]
  assert problem_annotations(problems, WINDOW, CANVAS, THEME, now=3000, tz=UTC) == []


def test_problem_status():
  assert problem_status(_problem(1, r_clock=5), THEME) == ("RESOLVED", THEME.ok_status)
  closing = _problem(1, acknowledges=(Acknowledge(action=1, clock=2),))
  assert problem_status(closing, THEME) == ("CLOSING", THEME.ok_status)
  commented = _problem(1, acknowledges=(Acknowledge(action=4, clock=2),))
  assert problem_status(commented, THEME) == ("PROBLEM", THEME.problem_status)


def test_problem_color_follows_severity():
  (a,) = problem_annotations([_problem(100, r_clock=500, severity=4)], WINDOW, CANVAS, THEME, now=2000, tz=UTC)
  assert a.severity_color == THEME.severity[4]


def test_working_time_spans_on_weekday(utc):
  window = TimeWindow(time_from=MONDAY, time_till=MONDAY + 86400)
  canvas = Canvas(x=0, y=0, width=960, height=100)
  assert working_time_spans("1-5,09:00-18:00", window, canvas, utc) == [(0, 360), (720, 960)]


def test_weekend_is_not_working_time(utc):
  window = TimeWindow(time_from=SATURDAY, time_till=SATURDAY + 86400)
  canvas = Canvas(x=0, y=0, width=960, height=100)
  assert working_time_spans("1-5,09:00-18:00", window, canvas, utc) == [(0, 960)]


def test_working_time_skipped_for_long_windows(utc):
  window = TimeWindow(time_from=MONDAY, time_till=MONDAY + 91 * 86400)
  assert working_time_spans("1-5,09:00-18:00", window, CANVAS, utc) == []


def test_malformed_work_period_raises(utc):
  window = TimeWindow(time_from=MONDAY, time_till=MONDAY + 86400)
  with pytest.raises(WorkPeriodError):
    working_time_spans("weekdays 9 to 6", window, CANVAS, utc)
