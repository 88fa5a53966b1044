from zoneinfo import ZoneInfo

import pytest

from svggraph.model import (
  Approximation,
  AxisSide,
  GraphType,
  Metric,
  MetricOptions,
  MissingData,
  Sample,
)


@pytest.fixture
def utc():
  return ZoneInfo("UTC")


@pytest.fixture
def make_metric():
  def _make(values, name="cpu", units="", type=GraphType.LINE, axis=AxisSide.LEFT,
            approximation=Approximation.AVG, missing_data=MissingData.CONNECTED, fill=0, order=0, **opts):
    points = {}
    for clock, value in values.items():
      if value is None or isinstance(value, Sample):
        points[clock] = value
      else:
        points[clock] = Sample.single(float(value))
    options = MetricOptions(type=type, axis=axis, approximation=approximation, missing_data=missing_data,
                            fill=fill, order=order, **opts)
    return Metric(name=name, itemid=f"{name}-{order}", units=units, options=options, points=points)

  return _make
