import math
from datetime import datetime
from zoneinfo import ZoneInfo


PALETTE_20 = [
  "1f77b4", "ff7f0e", "2ca02c", "d62728", "9467bd",
  "8c564b", "756bb1", "7f7f7f", "bcbd22", "17becf",
  "393b79", "637939", "8c6d31", "843c39", "7b4173",
  "3182bd", "e6550d", "31a354", "dd1c77", "e377c2",
]

NICE_LADDER = (1.0, 2.0, 2.5, 5.0, 10.0)


def nice_ceil_step(raw: float) -> float:
  """Smallest ladder step (1, 2, 2.5, 5 x 10^n) that is >= raw."""
  if not math.isfinite(raw) or raw <= 0:
    return 1.0
  exp = math.floor(math.log10(raw))
  base = 10.0 ** exp
  factor = raw / base
  for m in NICE_LADDER:
    if factor <= m + 1e-9:
      return m * base
  return 10.0 * base


def next_nice_step(step: float) -> float:
  if step <= 0 or not math.isfinite(step):
    return 1.0
  exp = math.floor(math.log10(step))
  base = 10.0 ** exp
  factor = step / base
  for m in NICE_LADDER:
    if factor < m - 1e-9:
      return m * base
  return 1.0 * (10.0 ** (exp + 1))


def scaled_ratio(a: float, b: float, hi: float, lo: float) -> float:
  """
  (a - b) / (hi - lo), computed on operands divided by 10 when either
  difference overflows to infinity.
  """
  den = hi - lo
  num = a - b
  if math.isinf(den) or math.isinf(num):
    den = hi / 10 - lo / 10
    num = a / 10 - b / 10
  if den == 0:
    return 0.0
  return num / den


def clamp01(v: float) -> float:
  return max(0.0, min(1.0, v))


def format_clock(ts: float, tz: ZoneInfo, fmt: str) -> str:
  return datetime.fromtimestamp(ts, tz).strftime(fmt)


def color_hex(color: str) -> str:
  """Normalize 'RRGGBB' or '#RRGGBB' to '#rrggbb'."""
  c = (color or "").strip().lstrip("#")
  if len(c) == 3:
    c = "".join(ch * 2 for ch in c)
  if len(c) != 6:
    return "#000000"
  try:
    int(c, 16)
  except ValueError:
    return "#000000"
  return "#" + c.lower()


def round_half_up(v: float) -> int:
  """Round to the nearest integer, halves away from zero."""
  if v >= 0:
    return int(math.floor(v + 0.5))
  return -int(math.floor(-v + 0.5))
