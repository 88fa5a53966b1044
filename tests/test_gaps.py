import pytest

from svggraph.gaps import applies_to, fill_gaps, gap_threshold, merge_points, missing_points
from svggraph.model import GraphType, MetricOptions, MissingData, Sample


def _points(*pairs):
  return {clock: Sample.single(value) for clock, value in pairs}


@pytest.fixture
def gappy():
  # deltas 10, 10, 10, 10, 960 -> mean 200, threshold 600
  return _points((0, 1), (10, 2), (20, 3), (30, 4), (40, 5), (1000, 6))


def test_threshold(gappy):
  assert gap_threshold(gappy) == 600
  assert gap_threshold(_points((0, 1))) == 0


def test_none_policy_breaks_line(gappy):
  assert missing_points(gappy, MissingData.NONE) == {41: None}


def test_zero_policy_drops_to_zero_on_both_sides(gappy):
  assert missing_points(gappy, MissingData.ZERO) == {41: Sample.single(0.0), 999: Sample.single(0.0)}


def test_last_known_policy_repeats_previous_sample(gappy):
  assert missing_points(gappy, MissingData.LAST_KNOWN) == {999: Sample.single(5)}


def test_connected_policy_adds_nothing(gappy):
  assert missing_points(gappy, MissingData.CONNECTED) == {}
  assert fill_gaps(gappy, MissingData.CONNECTED) == gappy


def test_regular_series_has_no_gaps():
  points = _points(*((i * 60, i) for i in range(10)))
  assert missing_points(points, MissingData.NONE) == {}


def test_fill_gaps_keeps_clock_order(gappy):
  filled = fill_gaps(gappy, MissingData.ZERO)
  assert list(filled) == [0, 10, 20, 30, 40, 41, 999, 1000]


def test_existing_points_win_on_merge():
  merged = merge_points(_points((10, 1)), {10: None, 5: Sample.single(0)})
  assert list(merged) == [5, 10]
  assert merged[10] == Sample.single(1)


@pytest.mark.parametrize("graph_type,policy,expected", [
  (GraphType.LINE, MissingData.NONE, True),
  (GraphType.STAIRCASE, MissingData.ZERO, True),
  (GraphType.LINE, MissingData.CONNECTED, False),
  (GraphType.POINTS, MissingData.NONE, False),
  (GraphType.BAR, MissingData.ZERO, False),
])
def test_applies_to(graph_type, policy, expected):
  assert applies_to(MetricOptions(type=graph_type, missing_data=policy)) is expected
