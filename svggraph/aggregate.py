from __future__ import annotations

from typing import Dict, Tuple

import numpy as np
import numpy.typing as npt

from svggraph.model import Sample


def _check_window(t0: int, t1: int, width: int):
  if t1 <= t0:
    raise ValueError("t1 must be greater than t0")
  if width <= 0:
    raise ValueError("width must be positive")


def _bucket_index(clock: npt.NDArray[np.int64], t0: int, t1: int, width: int) -> npt.NDArray[np.int64]:
  # width+1 edges, inclusive of t0 and t1
  edges = np.linspace(t0, t1, num=width + 1, dtype=np.float64)
  idx = np.digitize(clock, edges, right=False) - 1
  return np.clip(idx, 0, width - 1)


def _window_mask(clock: npt.NDArray[np.int64], t0: int, t1: int) -> npt.NDArray[np.bool_]:
  return (clock >= t0) & (clock <= t1)


def aggregate_history(
    clock: npt.ArrayLike,
    value: npt.ArrayLike,
    t0: int,
    t1: int,
    width: int,
) -> Dict[int, Sample]:
  """
  Bucket raw history into at most `width` samples over [t0, t1].

  Each non-empty bucket becomes one min/avg/max sample keyed by the latest clock in it,
  so a graph that is `width` pixels wide gets about one sample per pixel column.
  """
  c = np.asarray(clock, dtype=np.int64)
  v = np.asarray(value, dtype=np.float64)
  if c.shape != v.shape:
    raise ValueError("clock and value must have the same length")
  _check_window(t0, t1, width)
  if c.size == 0:
    return {}

  mask = _window_mask(c, t0, t1) & np.isfinite(v)
  if not np.any(mask):
    return {}
  c = c[mask]
  v = v[mask]

  idx = _bucket_index(c, t0, t1, width)
  out: Dict[int, Sample] = {}
  for b in np.unique(idx):
    sel = idx == b
    members = v[sel]
    out[int(c[sel].max())] = Sample(
      min=float(members.min()),
      avg=float(members.mean()),
      max=float(members.max()),
    )
  return dict(sorted(out.items()))


def aggregate_trends(
    clock: npt.ArrayLike,
    vmin: npt.ArrayLike,
    vavg: npt.ArrayLike,
    vmax: npt.ArrayLike,
    t0: int,
    t1: int,
    width: int,
) -> Dict[int, Sample]:
  """Same as aggregate_history for pre-aggregated (hourly) min/avg/max triplets."""
  c = np.asarray(clock, dtype=np.int64)
  lo = np.asarray(vmin, dtype=np.float64)
  mid = np.asarray(vavg, dtype=np.float64)
  hi = np.asarray(vmax, dtype=np.float64)
  if not (c.shape == lo.shape == mid.shape == hi.shape):
    raise ValueError("clock, vmin, vavg and vmax must have the same length")
  _check_window(t0, t1, width)
  if c.size == 0:
    return {}

  mask = _window_mask(c, t0, t1) & np.isfinite(lo) & np.isfinite(mid) & np.isfinite(hi)
  if not np.any(mask):
    return {}
  c, lo, mid, hi = c[mask], lo[mask], mid[mask], hi[mask]

  idx = _bucket_index(c, t0, t1, width)
  out: Dict[int, Sample] = {}
  for b in np.unique(idx):
    sel = idx == b
    out[int(c[sel].max())] = Sample(
      min=float(lo[sel].min()),
      avg=float(mid[sel].mean()),
      max=float(hi[sel].max()),
    )
  return dict(sorted(out.items()))


def history_arrays(rows) -> Tuple[npt.NDArray[np.int64], npt.NDArray[np.float64]]:
  """[(clock, value), ...] or [{"clock": .., "value": ..}, ...] -> (clock, value) arrays."""
  clocks = []
  values = []
  for row in rows:
    if isinstance(row, dict):
      clocks.append(int(row["clock"]))
      values.append(float(row["value"]))
    else:
      clk, val = row
      clocks.append(int(clk))
      values.append(float(val))
  return np.asarray(clocks, dtype=np.int64), np.asarray(values, dtype=np.float64)


def trend_arrays(rows) -> Tuple[npt.NDArray[np.int64], npt.NDArray[np.float64], npt.NDArray[np.float64],
                                npt.NDArray[np.float64]]:
  """[(clock, min, avg, max), ...] or trend.get rows ({"clock", "value_min", "value_avg", "value_max"})."""
  clocks = []
  lo = []
  mid = []
  hi = []
  for row in rows:
    if isinstance(row, dict):
      clk, vmin, vavg, vmax = row["clock"], row["value_min"], row["value_avg"], row["value_max"]
    else:
      clk, vmin, vavg, vmax = row
    clocks.append(int(clk))
    lo.append(float(vmin))
    mid.append(float(vavg))
    hi.append(float(vmax))
  return (np.asarray(clocks, dtype=np.int64), np.asarray(lo, dtype=np.float64),
          np.asarray(mid, dtype=np.float64), np.asarray(hi, dtype=np.float64))
