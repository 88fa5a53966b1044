from __future__ import annotations

import math

import numpy as np

from svggraph.model import GraphType, MetricOptions, MissingData, Points, Sample

GAP_FACTOR = 3


def applies_to(options: MetricOptions) -> bool:
  """Point and bar series are drawn as-is; CONNECTED needs no synthetic points."""
  return (options.type not in (GraphType.POINTS, GraphType.BAR)
          and options.missing_data is not MissingData.CONNECTED)


def gap_threshold(points: Points) -> float:
  """Three times the average distance between existing points (0 for fewer than two points)."""
  if len(points) < 2:
    return 0.0
  clocks = np.fromiter(sorted(points), dtype=np.int64, count=len(points))
  deltas = np.diff(clocks)
  return float(deltas.mean()) * GAP_FACTOR


def missing_points(points: Points, policy: MissingData) -> Points:
  """
  Synthetic points for every gap wider than the threshold:
  - NONE: one null point right after the gap start, which splits the line;
  - ZERO: zero points right after the gap start and right before the gap end;
  - LAST_KNOWN: the last known sample repeated right before the gap end.
  """
  if policy is MissingData.CONNECTED or len(points) < 2:
    return {}

  threshold = gap_threshold(points)
  missing: Points = {}
  prev_clock = None
  prev_point = None
  for clock in sorted(points):
    point = points[clock]
    if prev_clock is not None and (clock - prev_clock) > threshold:
      gap_interval = int(math.floor((clock - prev_clock) / threshold))

      if policy is MissingData.NONE:
        missing[prev_clock + gap_interval] = None
      elif policy is MissingData.ZERO:
        missing[prev_clock + gap_interval] = Sample.single(0.0)
        missing[clock - gap_interval] = Sample.single(0.0)
      elif policy is MissingData.LAST_KNOWN:
        missing[clock - gap_interval] = prev_point

    prev_clock = clock
    prev_point = point
  return missing


def merge_points(points: Points, extra: Points) -> Points:
  """Existing points win over synthetic ones at the same clock; result is ordered by clock."""
  merged = dict(extra)
  merged.update(points)
  return {clock: merged[clock] for clock in sorted(merged)}


def fill_gaps(points: Points, policy: MissingData) -> Points:
  extra = missing_points(points, policy)
  if not extra:
    return dict(points)
  return merge_points(points, extra)
