"""
Tests for the half-life weighted moving average.
"""
from datetime import date, timedelta

import pytest

from stock_coverage.config_validator import merge_and_validate_config
from stock_coverage.domain.models import ProcessedDataPoint
from stock_coverage.weighted_average import WeightedMovingAverage


START = date(2024, 1, 1)


def _point(offset, demand, availability=1.0, promotion=False, is_outlier=False):
    day = START + timedelta(days=offset)
    return ProcessedDataPoint(
        date=day,
        day_of_week=day.weekday(),
        original_sales=demand,
        availability_factor=availability,
        is_available=availability >= 0.6,
        adjusted_demand=demand,
        weight=1.0,
        is_promotion=promotion,
        is_outlier=is_outlier,
    )


@pytest.fixture
def wma():
    return WeightedMovingAverage(merge_and_validate_config())


class TestWeights:

    def test_half_life_decay(self, wma):
        weights = wma.calculate_weights([_point(0, 10), _point(14, 10), _point(28, 10)])
        assert list(weights) == pytest.approx([0.25, 0.5, 1.0])

    def test_partial_availability_penalised(self, wma):
        weights = wma.calculate_weights([_point(0, 10, availability=0.8), _point(0, 10, availability=0.2)])
        assert list(weights) == pytest.approx([0.8, 0.5])

    def test_promotion_penalised(self, wma):
        assert wma.calculate_weights([_point(0, 10, promotion=True)])[0] == pytest.approx(0.8)

    def test_promotion_weight_disabled(self):
        wma = WeightedMovingAverage(merge_and_validate_config({"enable_promotion_adjustment": False}))
        assert wma.calculate_weights([_point(0, 10, promotion=True)])[0] == pytest.approx(1.0)


class TestCalculate:

    def test_constant_series(self, wma):
        result = wma.calculate([_point(i, 10.0) for i in range(30)])
        assert result.mean == pytest.approx(10.0)
        assert result.variance == pytest.approx(0.0)
        assert result.standard_deviation == pytest.approx(0.0)

    def test_empty(self, wma):
        result = wma.calculate([])
        assert result.mean == 0.0
        assert result.sum_weights == 0.0
        assert result.effective_samples == 0.0

    def test_recent_points_dominate(self, wma):
        # Weights 0.5 and 1.0
        result = wma.calculate([_point(0, 10.0), _point(14, 20.0)])
        assert result.mean == pytest.approx((0.5 * 10 + 20) / 1.5)
        assert result.sum_weights == pytest.approx(1.5)

    def test_variance(self, wma):
        result = wma.calculate([_point(0, 5.0), _point(0, 15.0)])
        assert result.mean == pytest.approx(10.0)
        assert result.variance == pytest.approx(25.0)
        assert result.standard_deviation == pytest.approx(5.0)

    def test_effective_samples_equal_weights(self, wma):
        result = wma.calculate([_point(0, float(v)) for v in range(5)])
        assert result.effective_samples == pytest.approx(5.0)

    def test_outliers_included(self, wma):
        result = wma.calculate([_point(0, 10.0), _point(0, 30.0, is_outlier=True)])
        assert result.mean == pytest.approx(20.0)


class TestVariants:

    def test_by_day_of_week(self, wma):
        points = [_point(i, 20.0 if i % 7 == 0 else 10.0) for i in range(14)]
        by_day = wma.calculate_by_day_of_week(points)
        assert by_day[0].mean == pytest.approx(20.0)
        assert by_day[1].mean == pytest.approx(10.0)
        assert set(by_day) == set(range(7))

    def test_by_day_of_week_missing_day_uses_overall(self, wma):
        points = [_point(0, 10.0), _point(1, 20.0)]
        by_day = wma.calculate_by_day_of_week(points)
        assert by_day[3] == wma.calculate(points)

    def test_rolling(self, wma):
        points = [_point(i, float(i)) for i in range(10)]
        rolling = wma.calculate_rolling(points, window_days=3)
        assert len(rolling) == 10
        assert rolling[0] == pytest.approx(0.0)
        assert rolling[1] < rolling[5] < rolling[9]

    def test_confidence_interval(self, wma):
        result = wma.calculate([_point(0, 5.0), _point(0, 15.0)])
        interval = WeightedMovingAverage.calculate_confidence_interval(result, 0.95)
        margin = 1.96 * 5.0 / 2 ** 0.5
        assert interval["lower"] == pytest.approx(10.0 - margin)
        assert interval["upper"] == pytest.approx(10.0 + margin)

    def test_confidence_interval_floored(self, wma):
        result = wma.calculate([_point(0, 0.0), _point(0, 20.0)])
        assert WeightedMovingAverage.calculate_confidence_interval(result, 0.99)["lower"] == 0.0
