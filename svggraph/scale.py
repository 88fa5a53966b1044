from __future__ import annotations

import dataclasses
import math
import sys
from typing import List, Optional, Tuple

from svggraph.units import convert_units, decimals_for_step, power_for, units_base
from svggraph.utils import nice_ceil_step, next_nice_step, scaled_ratio

_EPS = 1e-9
_COARSEN_LIMIT = 40


@dataclasses.dataclass(frozen=True)
class Scale:
  min: float
  max: float
  interval: float
  power: int
  rows: int


def rows_range(canvas_height: float, cell_height_min: float) -> Tuple[int, int]:
  """Allowed number of value rows for a canvas of the given height."""
  rows_min = int(max(1, math.floor(canvas_height / cell_height_min / 1.5)))
  rows_max = int(max(1, math.floor(canvas_height / cell_height_min)))
  return rows_min, rows_max


def _restore(v: float, unit_base: float) -> float:
  # drop float noise picked up while scaling back from prefix units
  return float(f"{v * unit_base:.12g}")


def _restore_bound(v: float, unit_base: float, data_bound: float) -> float:
  # outward alignment may overflow near the float limits
  restored = _restore(v, unit_base)
  return restored if math.isfinite(restored) else data_bound


def _span(hi: float, lo: float) -> float:
  d = hi - lo
  if math.isinf(d):
    return (hi / 10 - lo / 10) * 10
  return d


def _snap(q: float) -> float:
  # float noise around a whole multiple, relative to that multiple
  n = round(q)
  if n != 0 and abs(q - n) <= _EPS * abs(n):
    return float(n)
  return q


def _align(v: float, step: float, down: bool) -> float:
  q = v / step
  if not math.isfinite(q):
    return v
  q = _snap(q)
  a = (math.floor(q) if down else math.ceil(q)) * step
  return a if math.isfinite(a) else v


def _fit(lo: float, hi: float, step: float, calc_min: bool, calc_max: bool) -> Tuple[float, float, int]:
  a_lo = _align(lo, step, True) if calc_min else lo
  a_hi = _align(hi, step, False) if calc_max else hi
  rows = int(max(1, math.ceil(_snap(scaled_ratio(a_hi, a_lo, step, 0.0)))))
  return a_lo, a_hi, rows


def _raw_step(lo: float, hi: float, rows: int) -> float:
  d = hi - lo
  if math.isinf(d):
    return (hi / 10 - lo / 10) / rows * 10
  return d / rows


def _coarsen_until(lo: float, hi: float, step: float, calc_min: bool, calc_max: bool,
                   rows_max: int) -> Tuple[float, float, float, int]:
  a_lo, a_hi, rows = _fit(lo, hi, step, calc_min, calc_max)
  guard = 0
  while rows > rows_max and guard < _COARSEN_LIMIT:
    step = next_nice_step(step)
    a_lo, a_hi, rows = _fit(lo, hi, step, calc_min, calc_max)
    guard += 1
  if rows > rows_max:
    # one row cannot span zero on a grid-aligned bound
    step = _cover_step(lo, hi, rows_max)
    a_lo, a_hi, rows = _fit(lo, hi, step, False, False)
    if calc_max:
      a_hi = lo + step * rows_max
      rows = rows_max
  return a_lo, a_hi, step, rows


def _cover_step(lo: float, hi: float, rows: int) -> float:
  step = nice_ceil_step(_raw_step(lo, hi, rows))
  if lo + step * rows < hi:
    step = next_nice_step(step)
  return step


def _pad_to_rows(lo: float, hi: float, rows: int) -> Optional[Tuple[float, float, float]]:
  """Grid-aligned minimum with the maximum padded to exactly `rows` intervals."""
  step = nice_ceil_step(_raw_step(lo, hi, rows))
  for _ in range(_COARSEN_LIMIT):
    a_lo = _align(lo, step, True)
    a_hi = a_lo + step * rows
    if a_hi >= hi:
      return a_lo, a_hi, step
    step = next_nice_step(step)
  return None


def _normalize_range(min_value: float, max_value: float, calc_min: bool, calc_max: bool) -> Tuple[float, float]:
  if not math.isfinite(min_value):
    min_value = 0.0
  if not math.isfinite(max_value):
    max_value = 1.0
  if min_value < max_value:
    return min_value, max_value
  if calc_max or not calc_min:
    return min_value, min_value + (abs(min_value) or 1.0)
  return max_value - (abs(max_value) or 1.0), max_value


def calculate_scale(min_value: float, max_value: float, is_binary: bool, calc_power: bool, calc_min: bool,
                    calc_max: bool, rows_min: int, rows_max: int) -> Scale:
  """
  Pick axis extremes and a "nice" interval for [min_value, max_value].

  Calculated bounds are aligned outwards to the interval; user-given bounds are kept.
  When both bounds are calculated the returned row count stays within [rows_min, rows_max].
  The interval is chosen in prefix units (K, M, Ki, Mi...) given by the returned power.
  """
  rows_min = max(1, int(rows_min))
  rows_max = max(rows_min, int(rows_max))
  min_value, max_value = _normalize_range(float(min_value), float(max_value), calc_min, calc_max)

  power = power_for(max(abs(min_value), abs(max_value)), is_binary) if calc_power else 0
  unit_base = float(units_base(is_binary) ** power)
  lo = min_value / unit_base
  hi = max_value / unit_base

  if calc_min and calc_max:
    best: Optional[Tuple[float, int, float, float, float]] = None
    for rows in range(rows_min, rows_max + 1):
      step = nice_ceil_step(_raw_step(lo, hi, rows))
      a_lo, a_hi, n = _fit(lo, hi, step, True, True)
      if not rows_min <= n <= rows_max:
        continue
      span = _span(a_hi, a_lo)
      # tightest fit wins, then the denser grid
      if best is None or span < best[0] - _EPS * abs(span) or (abs(span - best[0]) <= _EPS * abs(span) and n > best[1]):
        best = (span, n, a_lo, a_hi, step)

    if best is not None:
      _, rows, a_lo, a_hi, step = best
    else:
      padded = None
      for rows in range(rows_min, rows_max + 1):
        padded = _pad_to_rows(lo, hi, rows)
        if padded is not None:
          break
      if padded is None:
        # one row cannot span zero on a grid-aligned bound
        step = _cover_step(lo, hi, rows)
        padded = (lo, lo + step * rows, step)
      a_lo, a_hi, step = padded
  else:
    step = nice_ceil_step(_raw_step(lo, hi, rows_max))
    a_lo, a_hi, step, rows = _coarsen_until(lo, hi, step, calc_min, calc_max, rows_max)

  return Scale(
    min=_restore_bound(a_lo, unit_base, min_value) if calc_min else min_value,
    max=_restore_bound(a_hi, unit_base, max_value) if calc_max else max_value,
    interval=min(_restore(step, unit_base), sys.float_info.max),
    power=power,
    rows=rows,
  )


def calculate_scale_values(scale: Scale, units: str, is_binary: bool) -> List[Tuple[float, str]]:
  """
  Value axis ticks as (relative_pos, label), relative_pos going from 0.0 (axis bottom) to 1.0 (axis top).
  """
  lo, hi, step = scale.min, scale.max, scale.interval
  if step <= 0 or not math.isfinite(step):
    return []

  unit_base = float(units_base(is_binary) ** scale.power)
  decimals = max(decimals_for_step(step / unit_base), min(4, decimals_for_step(lo / unit_base)))

  values: List[float] = []
  for k in range(scale.rows + 1):
    v = lo + k * step
    if v > hi + _EPS * max(1.0, abs(hi)):
      break
    values.append(v)
  if values and values[-1] < hi - _EPS * max(1.0, abs(hi)):
    if len(values) > 1 and hi - values[-1] < step / 2:
      values.pop()
    values.append(hi)

  out: List[Tuple[float, str]] = []
  for v in values:
    if abs(v) < _EPS * step:
      v = 0.0
    pos = scaled_ratio(v, lo, hi, lo)
    out.append((pos, convert_units(v, units, power=scale.power, is_binary=is_binary, decimals=decimals)))
  return out
