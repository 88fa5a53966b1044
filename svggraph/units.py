from __future__ import annotations

import math
from typing import Optional

PREFIXES = ("", "K", "M", "G", "T", "P", "E", "Z", "Y")
MAX_POWER = len(PREFIXES) - 1

KIBIBYTE = 1024
KILO = 1000

# Units that are never scaled by a prefix
UNITS_BLACKLIST = {"%", "ms", "rpm", "RPM"}

ROUNDOFF_SUFFIXED = 2
ROUNDOFF_UNSUFFIXED = 4


def normalize_units(units: Optional[str]) -> str:
  """Collapse whitespace runs and trim."""
  return " ".join((units or "").split())


def is_binary_units(units: str) -> bool:
  return units in ("B", "Bps")


def calc_power_allowed(units: str) -> bool:
  return units == "" or (units[0] != "!" and units not in UNITS_BLACKLIST)


def units_base(is_binary: bool) -> int:
  return KIBIBYTE if is_binary else KILO


def power_for(value: float, is_binary: bool) -> int:
  """Largest prefix power p with base**p <= |value|, clamped to the prefix table."""
  v = abs(value)
  if not math.isfinite(v) or v < 1:
    return 0
  base = units_base(is_binary)
  p = int(math.floor(math.log(v, base)))
  # log() can land just below an exact power
  if base ** (p + 1) <= v:
    p += 1
  return max(0, min(MAX_POWER, p))


def decimals_for_step(step: float, limit: int = 10) -> int:
  if not math.isfinite(step) or step == 0:
    return 0
  step = abs(step)
  for d in range(limit + 1):
    if abs(round(step, d) - step) <= 1e-9 * max(1.0, step):
      return d
  return limit


def format_number(value: float, decimals: int) -> str:
  if not math.isfinite(value):
    return str(value)
  if value != 0 and abs(value) < 10 ** -decimals:
    return f"{value:.3g}"
  s = f"{value:.{decimals}f}"
  if "." in s:
    s = s.rstrip("0").rstrip(".")
  if s in ("-0", ""):
    s = "0"
  return s


def convert_units(value: float, units: str = "", power: Optional[int] = None, is_binary: Optional[bool] = None,
                  decimals: Optional[int] = None) -> str:
  """
  Format value with its units, scaling by a K/M/G... prefix.
  - units prefixed with '!' are printed as-is, without prefix scaling;
  - 'B' and 'Bps' scale by 1024, everything else by 1000;
  - power forces the prefix (axis labels share one prefix), otherwise it is derived from value.
  """
  units = normalize_units(units)
  if units.startswith("!"):
    num = format_number(value, ROUNDOFF_UNSUFFIXED if decimals is None else decimals)
    plain = units[1:]
    return f"{num} {plain}" if plain else num

  if is_binary is None:
    is_binary = is_binary_units(units)

  if not calc_power_allowed(units):
    power = 0
  elif power is None:
    power = power_for(value, is_binary)

  power = max(0, min(MAX_POWER, int(power)))
  scaled = value / (units_base(is_binary) ** power) if power else value
  if decimals is None:
    decimals = ROUNDOFF_SUFFIXED if power else ROUNDOFF_UNSUFFIXED

  suffix = PREFIXES[power] + units
  num = format_number(scaled, decimals)
  return f"{num} {suffix}" if suffix else num
