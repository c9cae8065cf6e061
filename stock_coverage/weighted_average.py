"""
Exponentially weighted moving average with half-life decay.

    weight_i = 0.5 ** (age_i / half_life) × adjustment_i

age is measured in days from the most recent point, so an observation
half_life days old weighs half as much as the latest one. Adjustments:
- partially available days: × max(0.5, availability_factor)
- promotion days (promotion adjustment enabled): × 0.8

Capped outliers stay in the average with their capped value.
"""
from typing import Dict, List

import numpy as np

from .domain.models import ProcessedDataPoint, StockCoverageConfig, WeightedAverageResult
from .uncertainty import z_score_for_confidence


MIN_AVAILABILITY_WEIGHT = 0.5
PROMOTION_WEIGHT = 0.8

_EMPTY_RESULT = WeightedAverageResult(
    mean=0.0,
    variance=0.0,
    standard_deviation=0.0,
    sum_weights=0.0,
    effective_samples=0.0,
)


class WeightedMovingAverage:
    """Base demand estimator."""

    def __init__(self, config: StockCoverageConfig):
        self.config = config

    def calculate_weights(self, points: List[ProcessedDataPoint]) -> np.ndarray:
        """Decay × adjustment weight for every point."""
        if not points:
            return np.zeros(0)

        latest = points[-1].date
        ages = np.array([(latest - p.date).days for p in points], dtype=float)
        weights = np.power(0.5, ages / self.config.half_life)

        adjustments = np.ones(len(points))
        for i, point in enumerate(points):
            if point.availability_factor < 1.0:
                adjustments[i] *= max(MIN_AVAILABILITY_WEIGHT, point.availability_factor)
            if self.config.enable_promotion_adjustment and point.is_promotion:
                adjustments[i] *= PROMOTION_WEIGHT

        return weights * adjustments

    def calculate(self, points: List[ProcessedDataPoint]) -> WeightedAverageResult:
        """
        Weighted mean and variance of adjusted demand.

        Returns:
            WeightedAverageResult (all zeros for empty input)
        """
        if not points:
            return _EMPTY_RESULT

        values = np.array([p.adjusted_demand for p in points], dtype=float)
        weights = self.calculate_weights(points)
        sum_weights = float(np.sum(weights))
        if sum_weights <= 0:
            return _EMPTY_RESULT

        mean = float(np.sum(weights * values) / sum_weights)
        variance = float(np.sum(weights * (values - mean) ** 2) / sum_weights)
        effective_samples = sum_weights ** 2 / float(np.sum(weights ** 2))

        return WeightedAverageResult(
            mean=mean,
            variance=variance,
            standard_deviation=variance ** 0.5,
            sum_weights=sum_weights,
            effective_samples=effective_samples,
        )

    def calculate_by_day_of_week(self, points: List[ProcessedDataPoint]) -> Dict[int, WeightedAverageResult]:
        """Per-weekday averages; weekdays without data use the overall average."""
        overall = self.calculate(points)
        results = {}
        for dow in range(7):
            day_points = [p for p in points if p.day_of_week == dow]
            results[dow] = self.calculate(day_points) if day_points else overall
        return results

    def calculate_rolling(self, points: List[ProcessedDataPoint], window_days: int = 7) -> List[float]:
        """Trailing weighted mean over the last `window_days` points at each index."""
        return [
            self.calculate(points[max(0, i - window_days + 1):i + 1]).mean
            for i in range(len(points))
        ]

    @staticmethod
    def calculate_confidence_interval(result: WeightedAverageResult, confidence_level: float = 0.95) -> Dict[str, float]:
        """
        Two-sided confidence interval for the weighted mean.

        Standard error uses the effective sample size; the lower bound is
        floored at 0.
        """
        z = z_score_for_confidence(confidence_level)
        if result.effective_samples > 0:
            standard_error = result.standard_deviation / result.effective_samples ** 0.5
        else:
            standard_error = result.standard_deviation
        margin = z * standard_error

        return {
            "lower": max(0.0, result.mean - margin),
            "upper": result.mean + margin,
        }
