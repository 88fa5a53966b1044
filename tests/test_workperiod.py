from zoneinfo import ZoneInfo

import pytest

from svggraph.errors import GraphError, WorkPeriodError
from svggraph.workperiod import WorkPeriod, parse_work_period, working_intervals

MONDAY = 1704067200  # 2024-01-01 00:00 UTC
HOUR = 3600


def test_parse_single_period():
  assert parse_work_period("1-5,09:00-18:00") == (WorkPeriod(day_from=1, day_till=5, start=9 * HOUR, end=18 * HOUR),)


def test_parse_several_periods():
  periods = parse_work_period("1-5,09:00-18:00; 6,10:00-14:30")
  assert len(periods) == 2
  assert periods[1] == WorkPeriod(day_from=6, day_till=6, start=10 * HOUR, end=14 * HOUR + 30 * 60)
  assert periods[1].covers(6)
  assert not periods[1].covers(7)


@pytest.mark.parametrize("expr", [
  "",
  "1-5",
  "0-5,09:00-18:00",
  "1-8,09:00-18:00",
  "5-1,09:00-18:00",
  "1-5,18:00-09:00",
  "1-5,25:00-26:00",
  "1-5,09:61-18:00",
  "1-5,09:00-18:00;bogus",
])
def test_malformed_periods(expr):
  with pytest.raises(WorkPeriodError):
    parse_work_period(expr)


def test_work_period_error_is_graph_error():
  assert issubclass(WorkPeriodError, GraphError)
  assert issubclass(WorkPeriodError, ValueError)


def test_working_intervals_for_a_week():
  utc = ZoneInfo("UTC")
  intervals = working_intervals(parse_work_period("1-5,09:00-18:00"), MONDAY, MONDAY + 7 * 86400, utc)
  assert len(intervals) == 5
  assert intervals[0] == (MONDAY + 9 * HOUR, MONDAY + 18 * HOUR)


def test_overlapping_periods_are_merged():
  utc = ZoneInfo("UTC")
  periods = parse_work_period("1,09:00-13:00;1,12:00-18:00")
  assert working_intervals(periods, MONDAY, MONDAY + 86400, utc) == [(MONDAY + 9 * HOUR, MONDAY + 18 * HOUR)]


def test_intervals_follow_time_zone():
  riga = ZoneInfo("Europe/Riga")  # UTC+2 in January
  intervals = working_intervals(parse_work_period("1,09:00-18:00"), MONDAY, MONDAY + 86400, riga)
  assert intervals == [(MONDAY + 7 * HOUR, MONDAY + 16 * HOUR)]


def test_empty_window():
  assert working_intervals(parse_work_period("1-7,00:00-24:00"), MONDAY, MONDAY, ZoneInfo("UTC")) == []
