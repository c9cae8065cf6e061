"""
Tests for day-of-week seasonality factors and related analysis.
"""
from datetime import date, timedelta

import pytest

from stock_coverage.config_validator import merge_and_validate_config
from stock_coverage.domain.models import ProcessedDataPoint, SeasonalityFactors
from stock_coverage.seasonality import SeasonalityAdjuster, smooth_factor


START = date(2024, 1, 1)  # Monday


def _point(day, demand, weight=1.0, is_outlier=False):
    return ProcessedDataPoint(
        date=day,
        day_of_week=day.weekday(),
        original_sales=demand,
        availability_factor=1.0,
        is_available=True,
        adjusted_demand=demand,
        weight=weight,
        is_outlier=is_outlier,
    )


def _weekend_series(days=28, weekday=10.0, weekend=20.0):
    points = []
    for i in range(days):
        day = START + timedelta(days=i)
        points.append(_point(day, weekend if day.weekday() >= 5 else weekday))
    return points


@pytest.fixture
def adjuster():
    return SeasonalityAdjuster(merge_and_validate_config())


class TestSmoothFactor:

    def test_within_band_unchanged(self):
        assert smooth_factor(0.8) == 0.8
        assert smooth_factor(1.5) == 1.5

    def test_extremes_compressed(self):
        assert 1.5 < smooth_factor(3.0) < 1.7
        assert 0.4 < smooth_factor(0.2) < 0.5

    def test_floor(self):
        assert smooth_factor(0.0) == 0.1
        assert smooth_factor(-1.0) == 0.1


class TestSeasonalityFactors:

    def test_weekend_pattern(self, adjuster):
        factors = adjuster.calculate_seasonality_factors(_weekend_series())
        overall = (5 * 10 + 2 * 20) / 7
        assert factors.monday == pytest.approx(10 / overall)
        assert factors.friday == pytest.approx(10 / overall)
        # 20 / overall ≈ 1.556 is log-compressed just above 1.5
        assert factors.saturday == pytest.approx(smooth_factor(20 / overall))
        assert 1.5 < factors.sunday < 20 / overall

    def test_flat_series_neutral(self, adjuster):
        points = [_point(START + timedelta(days=i), 10.0) for i in range(21)]
        factors = adjuster.calculate_seasonality_factors(points)
        assert factors.values() == pytest.approx([1.0] * 7)

    def test_too_few_points_neutral(self, adjuster):
        assert adjuster.calculate_seasonality_factors(_weekend_series(days=13)) == SeasonalityFactors()

    def test_disabled_neutral(self):
        adjuster = SeasonalityAdjuster(merge_and_validate_config({"enable_seasonality": False}))
        assert adjuster.calculate_seasonality_factors(_weekend_series()) == SeasonalityFactors()

    def test_weekday_without_usable_points_stays_neutral(self, adjuster):
        points = [
            _point(START + timedelta(days=i), 0.0 if (START + timedelta(days=i)).weekday() == 6 else 10.0)
            for i in range(21)
        ]
        factors = adjuster.calculate_seasonality_factors(points)
        assert factors.sunday == 1.0
        assert factors.monday == pytest.approx(1.0)

    def test_outliers_excluded(self, adjuster):
        points = _weekend_series(weekend=10.0)
        points[0] = _point(START, 500.0, is_outlier=True)
        factors = adjuster.calculate_seasonality_factors(points)
        assert factors.monday == pytest.approx(1.0)

    def test_factors_never_below_floor(self, adjuster):
        points = _weekend_series(weekday=0.01, weekend=100.0)
        assert min(adjuster.calculate_seasonality_factors(points).values()) >= 0.1

    def test_recency_weighting(self, adjuster):
        # Mondays: old 10, recent 30 with much larger weight
        points = [_point(START + timedelta(days=i), 10.0, weight=0.1) for i in range(14)]
        points += [_point(START + timedelta(days=14 + i), 10.0, weight=1.0) for i in range(14)]
        points[14] = _point(START + timedelta(days=14), 30.0, weight=1.0)
        points[21] = _point(START + timedelta(days=21), 30.0, weight=1.0)
        factors = adjuster.calculate_seasonality_factors(points)
        assert factors.monday > factors.tuesday


class TestDeseasonalize:

    def test_divides_by_factor(self, adjuster):
        points = _weekend_series()
        factors = adjuster.calculate_seasonality_factors(points)
        deseasonalized = adjuster.deseasonalize(points, factors)
        for original, adjusted in zip(points, deseasonalized):
            expected = original.adjusted_demand / factors.for_weekday(original.day_of_week)
            assert adjusted.adjusted_demand == pytest.approx(expected)

    def test_original_points_untouched(self, adjuster):
        points = _weekend_series()
        adjuster.deseasonalize(points, SeasonalityFactors(saturday=2.0))
        assert points[5].adjusted_demand == 20.0

    def test_apply_seasonality(self, adjuster):
        factors = SeasonalityFactors(saturday=2.0)
        assert adjuster.apply_seasonality(10.0, date(2024, 1, 6), factors) == 20.0
        assert adjuster.apply_seasonality(10.0, date(2024, 1, 8), factors) == 10.0


class TestAverageFactor:

    def test_full_week_is_mean_of_factors(self, adjuster):
        factors = SeasonalityFactors(saturday=1.4, sunday=1.4, monday=0.6, tuesday=0.6)
        assert adjuster.average_factor(factors, START, 7) == pytest.approx(sum(factors.values()) / 7)

    def test_partial_horizon(self, adjuster):
        factors = SeasonalityFactors(monday=2.0)
        # Monday and Tuesday
        assert adjuster.average_factor(factors, START, 2) == pytest.approx(1.5)

    def test_disabled(self):
        adjuster = SeasonalityAdjuster(merge_and_validate_config({"enable_seasonality": False}))
        assert adjuster.average_factor(SeasonalityFactors(monday=2.0), START, 1) == 1.0


class TestPatternAnalysis:

    def test_weekly_pattern_detected(self, adjuster):
        patterns = adjuster.detect_weekly_patterns(_weekend_series())
        assert patterns["has_weekly_pattern"]
        assert patterns["peak_days"] == [5, 6]
        assert patterns["low_days"] == [0, 1, 2, 3, 4]

    def test_flat_series_no_pattern(self, adjuster):
        points = [_point(START + timedelta(days=i), 10.0) for i in range(21)]
        patterns = adjuster.detect_weekly_patterns(points)
        assert not patterns["has_weekly_pattern"]
        assert patterns["peak_days"] == []

    def test_monthly_needs_ninety_points(self, adjuster):
        assert adjuster.calculate_monthly_seasonality(_weekend_series()) == {m: 1.0 for m in range(1, 13)}

    def test_monthly_factors(self, adjuster):
        points = [
            _point(START + timedelta(days=i), 20.0 if (START + timedelta(days=i)).month == 2 else 10.0)
            for i in range(91)
        ]
        factors = adjuster.calculate_monthly_seasonality(points)
        assert factors[2] > 1.0 > factors[1]
        assert factors[6] == 1.0

    def test_holiday_uplift_normalised(self, adjuster):
        points = [_point(START + timedelta(days=i), 10.0) for i in range(14)]
        holiday = START + timedelta(days=6)
        points[6] = _point(holiday, 30.0)
        adjusted = adjuster.adjust_for_holidays(points, [holiday])
        assert adjusted[6].adjusted_demand == pytest.approx(10.0)
        assert adjusted[0].adjusted_demand == 10.0

    def test_small_holiday_uplift_kept(self, adjuster):
        points = [_point(START + timedelta(days=i), 10.0) for i in range(14)]
        holiday = START + timedelta(days=6)
        points[6] = _point(holiday, 11.0)
        assert adjuster.adjust_for_holidays(points, [holiday])[6].adjusted_demand == 11.0
