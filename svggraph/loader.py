from __future__ import annotations

import dataclasses
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import dateparser

from svggraph.aggregate import aggregate_history, aggregate_trends, history_arrays, trend_arrays
from svggraph.config import DEFAULT_TZ, SHOW_WORKING_TIME, WORK_PERIOD
from svggraph.errors import RequestError
from svggraph.model import (
  Acknowledge,
  Approximation,
  AxisSide,
  GraphOptions,
  GraphRequest,
  GraphType,
  Metric,
  MetricOptions,
  MissingData,
  Points,
  Problem,
  Sample,
  SimpleTrigger,
  Theme,
  TimeWindow,
)
from svggraph.utils import PALETTE_20, color_hex
from svggraph.workperiod import parse_work_period

logger = logging.getLogger(__name__)

_OPTION_FIELDS = {f.name: f for f in dataclasses.fields(GraphOptions)}
_THEME_FIELDS = {f.name for f in dataclasses.fields(Theme)}


def _enum(cls, raw: Any, what: str):
  if isinstance(raw, cls):
    return raw
  try:
    return cls(str(raw).strip().lower())
  except ValueError:
    allowed = ", ".join(m.value for m in cls)
    raise RequestError(f"Invalid {what} {raw!r}, expected one of: {allowed}") from None


def _number(raw: Any, what: str) -> float:
  if isinstance(raw, bool):
    raise RequestError(f"{what} must be a number, got {raw!r}")
  try:
    return float(raw)
  except (TypeError, ValueError):
    raise RequestError(f"{what} must be a number, got {raw!r}") from None


def _integer(raw: Any, what: str) -> int:
  return int(_number(raw, what))


def _flag(raw: Any) -> bool:
  if isinstance(raw, str):
    return raw.strip().lower() in ("1", "true", "yes", "on")
  return bool(raw)


def resolve_tz(name: Optional[str]) -> ZoneInfo:
  try:
    return ZoneInfo(name or DEFAULT_TZ)
  except (ZoneInfoNotFoundError, ValueError):
    raise RequestError(f"Unknown time zone {name!r}") from None


def parse_time_bound(raw: Any, tz: ZoneInfo, what: str, now: Optional[int] = None) -> int:
  """
  Unix timestamp from a number, a numeric string or a human-readable date
  ('2024-03-01 12:00', '3 hours ago'), interpreted in `tz`.
  """
  if isinstance(raw, (int, float)) and not isinstance(raw, bool):
    return int(raw)
  if not isinstance(raw, str) or not raw.strip():
    raise RequestError(f"{what} is required")
  text = raw.strip()
  if text.lstrip("-").isdigit():
    return int(text)

  settings: Dict[str, Any] = {
    'PREFER_DATES_FROM': 'past',
    'TIMEZONE': str(tz),
    'RETURN_AS_TIMEZONE_AWARE': True,
  }
  if now is not None:
    settings['RELATIVE_BASE'] = datetime.fromtimestamp(now, tz).replace(tzinfo=None)
  dt = dateparser.parse(text, languages=['en'], settings=settings)
  if dt is None:
    raise RequestError(f"Cannot parse {what}: {raw!r}")
  return int(dt.timestamp())


def _sample(raw: Any, what: str) -> Optional[Sample]:
  if raw is None:
    return None
  if isinstance(raw, Mapping):
    try:
      avg = raw["avg"] if "avg" in raw else raw["value"]
    except KeyError:
      raise RequestError(f"{what} needs 'avg' or 'value'") from None
    avg = _number(avg, what)
    return Sample(
      min=_number(raw.get("min", avg), what),
      avg=avg,
      max=_number(raw.get("max", avg), what),
    )
  return Sample.single(_number(raw, what))


def _points(raw: Any, what: str) -> Points:
  if raw is None:
    return {}
  if isinstance(raw, Mapping):
    items = raw.items()
  elif isinstance(raw, (list, tuple)):
    items = []
    for row in raw:
      if isinstance(row, Mapping):
        items.append((row.get("clock"), {k: v for k, v in row.items() if k != "clock"}))
      else:
        try:
          clk, val = row
        except (TypeError, ValueError):
          raise RequestError(f"{what}: expected [clock, value] pairs") from None
        items.append((clk, val))
  else:
    raise RequestError(f"{what} must be an object or a list")

  out: Points = {}
  for clk, val in items:
    out[_integer(clk, f"{what} clock")] = _sample(val, f"{what} value")
  return dict(sorted(out.items()))


def load_metric(raw: Mapping[str, Any], index: int, window: TimeWindow, width: int) -> Metric:
  if not isinstance(raw, Mapping):
    raise RequestError(f"metrics[{index}] must be an object")
  what = f"metrics[{index}]"
  name = str(raw.get("name", f"metric {index + 1}"))

  opts = MetricOptions(
    type=_enum(GraphType, raw.get("type", GraphType.LINE.value), f"{what}.type"),
    axis=_enum(AxisSide, raw.get("axis", AxisSide.LEFT.value), f"{what}.axis"),
    approximation=_enum(Approximation, raw.get("approximation", Approximation.AVG.value), f"{what}.approximation"),
    color=color_hex(raw.get("color") or PALETTE_20[index % len(PALETTE_20)]),
    transparency=_integer(raw.get("transparency", 5), f"{what}.transparency"),
    fill=_integer(raw.get("fill", 3), f"{what}.fill"),
    line_width=_integer(raw.get("line_width", 1), f"{what}.line_width"),
    point_size=_integer(raw.get("point_size", 1), f"{what}.point_size"),
    missing_data=_enum(MissingData, raw.get("missing_data", MissingData.CONNECTED.value), f"{what}.missing_data"),
    timeshift=_integer(raw.get("timeshift", 0), f"{what}.timeshift"),
    order=index,
  )

  points = _points(raw.get("points"), f"{what}.points")
  history = raw.get("history")
  if history:
    try:
      clock, value = history_arrays(history)
    except (KeyError, TypeError, ValueError):
      raise RequestError(f"{what}.history: expected [clock, value] pairs") from None
    if window.period > 0:
      aggregated = aggregate_history(clock, value, window.time_from, window.time_till, max(1, width))
      logger.debug("Metric %s: %d raw values aggregated into %d samples", name, clock.size, len(aggregated))
      points = dict(sorted({**aggregated, **points}.items()))
  trends = raw.get("trends")
  if trends:
    try:
      clock, vmin, vavg, vmax = trend_arrays(trends)
    except (KeyError, TypeError, ValueError):
      raise RequestError(f"{what}.trends: expected [clock, min, avg, max] rows") from None
    if window.period > 0:
      aggregated = aggregate_trends(clock, vmin, vavg, vmax, window.time_from, window.time_till, max(1, width))
      logger.debug("Metric %s: %d trend rows aggregated into %d samples", name, clock.size, len(aggregated))
      points = dict(sorted({**aggregated, **points}.items()))

  return Metric(
    name=name,
    itemid=str(raw.get("itemid", index)),
    units=str(raw.get("units") or ""),
    host=str(raw.get("host") or ""),
    options=opts,
    points=points,
  )


def load_options(raw: Optional[Mapping[str, Any]]) -> GraphOptions:
  raw = dict(raw or {})
  raw.setdefault("show_working_time", SHOW_WORKING_TIME)
  unknown = sorted(set(raw) - set(_OPTION_FIELDS))
  if unknown:
    raise RequestError(f"Unknown graph options: {', '.join(unknown)}")

  values: Dict[str, Any] = {}
  for key, val in raw.items():
    default = _OPTION_FIELDS[key].default
    if key.endswith("_units"):
      values[key] = None if val is None else str(val)
    elif default is None:
      values[key] = None if val is None else _number(val, f"options.{key}")
    elif isinstance(default, bool):
      values[key] = _flag(val)
    elif isinstance(default, int):
      values[key] = _integer(val, f"options.{key}")
    else:
      values[key] = _number(val, f"options.{key}")
  if values.get("cell_height_min", 1) <= 0:
    raise RequestError(f"Invalid options.cell_height_min '{values['cell_height_min']}': must be positive")
  return GraphOptions(**values)


def load_theme(raw: Optional[Mapping[str, Any]]) -> Theme:
  if not raw:
    return Theme()
  unknown = sorted(set(raw) - _THEME_FIELDS)
  if unknown:
    raise RequestError(f"Unknown theme keys: {', '.join(unknown)}")
  values: Dict[str, Any] = {}
  for key, val in raw.items():
    if key == "severity":
      values[key] = tuple(color_hex(c) for c in val)
    elif key == "font_size":
      values[key] = _number(val, "theme.font_size")
    elif key == "font_family":
      values[key] = str(val)
    else:
      values[key] = color_hex(val)
  return Theme(**values)


def _trigger(raw: Mapping[str, Any], index: int) -> SimpleTrigger:
  what = f"simple_triggers[{index}]"
  return SimpleTrigger(
    value=_number(raw.get("value"), f"{what}.value"),
    constant=str(raw.get("constant", "")),
    description=str(raw.get("description", "")),
    color=color_hex(raw.get("color") or "e45959"),
    axis=_enum(AxisSide, raw.get("axis", AxisSide.LEFT.value), f"{what}.axis"),
  )


def _problem(raw: Mapping[str, Any], index: int) -> Problem:
  what = f"problems[{index}]"
  acks: List[Acknowledge] = []
  for ack in raw.get("acknowledges") or ():
    acks.append(Acknowledge(
      action=_integer(ack.get("action", 0), f"{what}.acknowledges.action"),
      clock=_integer(ack.get("clock", 0), f"{what}.acknowledges.clock"),
    ))
  return Problem(
    eventid=str(raw.get("eventid", "")),
    objectid=str(raw.get("objectid", "")),
    name=str(raw.get("name", "")),
    clock=_integer(raw.get("clock"), f"{what}.clock"),
    r_clock=_integer(raw.get("r_clock", 0), f"{what}.r_clock"),
    r_eventid=str(raw.get("r_eventid", "0")),
    severity=_integer(raw.get("severity", 0), f"{what}.severity"),
    acknowledges=tuple(acks),
  )


def load_window(raw: Mapping[str, Any], tz: ZoneInfo, now: Optional[int]) -> TimeWindow:
  time_from = parse_time_bound(raw.get("time_from"), tz, "time_from", now)
  time_till = parse_time_bound(raw.get("time_till"), tz, "time_till", now)
  if time_from > time_till:
    raise RequestError(f"time_from ({time_from}) is after time_till ({time_till})")
  return TimeWindow(time_from=time_from, time_till=time_till)


def load_request(raw: Mapping[str, Any]) -> GraphRequest:
  """Build a GraphRequest from a decoded JSON document."""
  if not isinstance(raw, Mapping):
    raise RequestError("Request must be a JSON object")

  tz = resolve_tz(raw.get("tz"))
  now = raw.get("now")
  now = None if now is None else _integer(now, "now")
  window = load_window(raw, tz, now)
  options = load_options(raw.get("options"))

  metrics_raw = raw.get("metrics") or []
  if not isinstance(metrics_raw, list):
    raise RequestError("metrics must be a list")
  metrics = tuple(load_metric(m, i, window, options.width) for i, m in enumerate(metrics_raw))

  work_period = str(raw.get("work_period") or WORK_PERIOD)
  if options.show_working_time:
    parse_work_period(work_period)

  return GraphRequest(
    metrics=metrics,
    window=window,
    options=options,
    simple_triggers=tuple(_trigger(t, i) for i, t in enumerate(raw.get("simple_triggers") or ())),
    problems=tuple(_problem(p, i) for i, p in enumerate(raw.get("problems") or ())),
    theme=load_theme(raw.get("theme")),
    work_period=work_period,
    tz=tz,
    now=now,
  )


def load_request_file(path: Path) -> GraphRequest:
  try:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
  except json.JSONDecodeError as e:
    raise RequestError(f"{path}: invalid JSON: {e}") from e
  logger.info("Loaded request %s", path)
  return load_request(data)


def request_with(request: GraphRequest, *, width: Optional[int] = None, height: Optional[int] = None,
                 window: Optional[Tuple[int, int]] = None) -> GraphRequest:
  """Copy of `request` with the canvas size or time window overridden."""
  options = request.options
  if width is not None:
    options = dataclasses.replace(options, width=width)
  if height is not None:
    options = dataclasses.replace(options, height=height)
  tw = request.window
  if window is not None:
    if window[0] > window[1]:
      raise RequestError(f"time_from ({window[0]}) is after time_till ({window[1]})")
    tw = TimeWindow(time_from=window[0], time_till=window[1])
  return dataclasses.replace(request, options=options, window=tw)
