from __future__ import annotations

import dataclasses
import re
from datetime import date, datetime, time as dtime, timedelta
from typing import List, Tuple
from zoneinfo import ZoneInfo

from svggraph.errors import WorkPeriodError

SEC_PER_DAY = 86400

_PERIOD_RE = re.compile(r"^([1-7])(?:-([1-7]))?,(\d{1,2}):(\d{2})-(\d{1,2}):(\d{2})$")


@dataclasses.dataclass(frozen=True)
class WorkPeriod:
  day_from: int  # ISO weekday, 1 = Monday
  day_till: int
  start: int  # seconds since midnight
  end: int

  def covers(self, weekday: int) -> bool:
    return self.day_from <= weekday <= self.day_till


def _seconds(hours: str, minutes: str, expr: str) -> int:
  h, m = int(hours), int(minutes)
  if h > 24 or m > 59 or (h == 24 and m != 0):
    raise WorkPeriodError(f"Invalid time in work period: {expr!r}")
  return h * 3600 + m * 60


def parse_work_period(expr: str) -> Tuple[WorkPeriod, ...]:
  """
  Parse 'd[-d],hh:mm-hh:mm' periods separated by ';', e.g. '1-5,09:00-18:00;6-7,10:00-16:00'.
  """
  periods: List[WorkPeriod] = []
  for part in (expr or "").split(";"):
    part = part.strip()
    if not part:
      continue
    m = _PERIOD_RE.match(part)
    if m is None:
      raise WorkPeriodError(f"Malformed work period: {part!r}")
    day_from = int(m.group(1))
    day_till = int(m.group(2) or m.group(1))
    start = _seconds(m.group(3), m.group(4), part)
    end = _seconds(m.group(5), m.group(6), part)
    if day_from > day_till or start >= end:
      raise WorkPeriodError(f"Empty work period: {part!r}")
    periods.append(WorkPeriod(day_from=day_from, day_till=day_till, start=start, end=end))

  if not periods:
    raise WorkPeriodError(f"No work periods in {expr!r}")
  return tuple(periods)


def _local_ts(day: date, seconds: int, tz: ZoneInfo) -> int:
  extra_days, seconds = divmod(seconds, SEC_PER_DAY)
  day = day + timedelta(days=extra_days)
  hh, rem = divmod(seconds, 3600)
  return int(datetime.combine(day, dtime(hh, rem // 60), tzinfo=tz).timestamp())


def working_intervals(periods: Tuple[WorkPeriod, ...], time_from: int, time_till: int,
                      tz: ZoneInfo) -> List[Tuple[int, int]]:
  """Working time within [time_from, time_till] as sorted, merged (start, end) pairs."""
  if time_till <= time_from:
    return []

  first = datetime.fromtimestamp(time_from, tz).date() - timedelta(days=1)
  last = datetime.fromtimestamp(time_till, tz).date()

  raw: List[Tuple[int, int]] = []
  day = first
  while day <= last:
    weekday = day.isoweekday()
    for p in periods:
      if not p.covers(weekday):
        continue
      start = max(time_from, _local_ts(day, p.start, tz))
      end = min(time_till, _local_ts(day, p.end, tz))
      if start < end:
        raw.append((start, end))
    day += timedelta(days=1)

  raw.sort()
  merged: List[Tuple[int, int]] = []
  for start, end in raw:
    if merged and start <= merged[-1][1]:
      merged[-1] = (merged[-1][0], max(merged[-1][1], end))
    else:
      merged.append((start, end))
  return merged
