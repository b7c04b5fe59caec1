"""Tests for the statistics helpers (ml/stats.py)."""
import pytest

from app.ml.stats import clamp, pearson, round_or_none, safe_mean, safe_pstdev


class TestSafeAggregates:
    def test_mean_of_empty_is_none(self):
        assert safe_mean([]) is None

    def test_mean(self):
        assert safe_mean([1.0, 2.0, 3.0]) == 2.0

    def test_pstdev_single_value_is_zero(self):
        assert safe_pstdev([5.0]) == 0.0

    def test_pstdev_is_population(self):
        # Population stddev of 2, 4, 4, 4, 5, 5, 7, 9 is exactly 2
        assert safe_pstdev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_pstdev_of_empty_is_none(self):
        assert safe_pstdev([]) is None


class TestPearson:
    def test_perfect_positive(self):
        assert pearson([1, 2, 3, 4], [10, 20, 30, 40]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert pearson([1, 2, 3, 4], [4, 3, 2, 1]) == pytest.approx(-1.0)

    def test_constant_series_is_undefined(self):
        assert pearson([1, 1, 1], [1, 2, 3]) is None

    def test_too_few_points(self):
        assert pearson([1], [2]) is None

    def test_mismatched_lengths(self):
        assert pearson([1, 2, 3], [1, 2]) is None


class TestRounding:
    def test_clamp(self):
        assert clamp(1.4) == 1.0
        assert clamp(-0.2) == 0.0
        assert clamp(0.3) == 0.3

    def test_round_or_none(self):
        assert round_or_none(None, 2) is None
        assert round_or_none(3.14159, 2) == 3.14
