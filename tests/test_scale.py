import math

import pytest

from svggraph.scale import Scale, calculate_scale, calculate_scale_values, rows_range
from svggraph.utils import nice_ceil_step, next_nice_step, scaled_ratio


def test_rows_range():
  assert rows_range(970, 30) == (21, 32)
  assert rows_range(10, 30) == (1, 1)


def test_nice_steps():
  assert nice_ceil_step(14.3) == 20
  assert nice_ceil_step(2.2) == 2.5
  assert nice_ceil_step(0.07) == pytest.approx(0.1)
  assert next_nice_step(2.0) == 2.5
  assert next_nice_step(5.0) == 10.0


def test_scale_for_simple_range():
  scale = calculate_scale(0, 100, False, True, True, True, 5, 10)
  assert scale.min == 0
  assert scale.max == 100
  assert scale.interval == 10
  assert scale.rows == 10
  assert scale.power == 0


@pytest.mark.parametrize("lo,hi", [
  (3, 97),
  (-5, 5),
  (0.001, 0.002),
  (1e6, 5e6),
  (1, 1),
  (-250, -10),
  (0, 123456789),
])
def test_calculated_scale_covers_data_within_row_bounds(lo, hi):
  scale = calculate_scale(lo, hi, False, True, True, True, 6, 9)
  assert 6 <= scale.rows <= 9
  assert scale.min <= lo
  assert scale.max >= hi
  assert scale.max > scale.min
  assert scale.interval > 0


def test_row_count_forced_to_single_value():
  scale = calculate_scale(0, 100, False, True, True, True, 7, 7)
  assert scale.rows == 7
  assert scale.min <= 0
  assert scale.max >= 100


def test_fixed_bounds_are_kept():
  scale = calculate_scale(0, 50, False, True, False, False, 5, 10)
  assert scale.min == 0
  assert scale.max == 50


def test_binary_units_use_1024_power():
  scale = calculate_scale(0, 3 * 1024 ** 2, True, True, True, True, 5, 10)
  assert scale.power == 2
  assert scale.max >= 3 * 1024 ** 2


def test_degenerate_range_gets_nonzero_interval():
  scale = calculate_scale(5, 5, False, True, True, True, 5, 10)
  assert scale.interval > 0
  assert scale.max > scale.min


def test_overflowing_difference_is_scaled_down():
  big = 1.7e308
  assert scaled_ratio(big, -big, big, -big) == pytest.approx(1.0)
  assert scaled_ratio(0.0, -big, big, -big) == pytest.approx(0.5)


def test_scale_values_from_bottom_to_top():
  values = calculate_scale_values(Scale(min=0.0, max=100.0, interval=10.0, power=0, rows=10), "", False)
  assert len(values) == 11
  assert values[0] == (0.0, "0")
  assert values[-1] == (1.0, "100")
  assert values[5] == (pytest.approx(0.5), "50")


def test_scale_values_use_axis_prefix():
  values = calculate_scale_values(Scale(min=0.0, max=2000.0, interval=500.0, power=1, rows=4), "bps", False)
  labels = [label for _, label in values]
  assert labels == ["0 Kbps", "0.5 Kbps", "1 Kbps", "1.5 Kbps", "2 Kbps"]


def test_small_negative_minimum_is_not_rounded_away():
  scale = calculate_scale(-3, 1e12, False, True, True, True, 6, 9)
  assert scale.min < 0
  assert scale.max >= 1e12
  assert 6 <= scale.rows <= 9


@pytest.mark.parametrize("lo,hi", [(-3, 4), (-0.5, 1e9), (-1e6, 2)])
def test_single_row_for_range_crossing_zero(lo, hi):
  scale = calculate_scale(lo, hi, False, True, True, True, 1, 1)
  assert scale.rows == 1
  assert scale.min <= lo
  assert scale.max >= hi
  assert scale.max > scale.min
  assert scale.interval > 0


def test_single_row_with_fixed_maximum_crossing_zero():
  scale = calculate_scale(-3, 4, False, True, True, False, 1, 1)
  assert scale.max == 4
  assert scale.min <= -3
  assert scale.rows == 1


def test_single_row_with_fixed_minimum_crossing_zero():
  scale = calculate_scale(-3, 4, False, True, False, True, 1, 1)
  assert scale.min == -3
  assert scale.max >= 4
  assert scale.rows == 1


def test_scale_at_float_limits_stays_finite():
  big = 1.7e308
  scale = calculate_scale(-big, big, False, True, True, True, 5, 10)
  assert math.isfinite(scale.min) and math.isfinite(scale.max) and math.isfinite(scale.interval)
  assert scale.min <= -big
  assert scale.max >= big
  values = calculate_scale_values(scale, "", False)
  assert values[0][0] == pytest.approx(0.0)
  assert values[-1][0] == pytest.approx(1.0)
