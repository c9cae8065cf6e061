"""
Day-of-week seasonality for demand.

Model: multiplicative factors per weekday.
- factor[dow] = weighted mean demand on dow / mean of weekday means
- deseasonalized demand = demand / factor[dow]
- forecast side: the AVERAGE factor over the horizon is applied, so a
  multi-day forecast is not biased toward the first weekday.

Fallbacks:
- Seasonality disabled or < MIN_POINTS_FOR_SEASONALITY points: neutral factors
- Weekday with < MIN_POINTS_PER_WEEKDAY usable points: factor 1.0
"""
import logging
import math
import statistics
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, List

from .domain.models import DAY_NAMES, ProcessedDataPoint, SeasonalityFactors, StockCoverageConfig


logger = logging.getLogger(__name__)

MIN_POINTS_FOR_SEASONALITY = 14
MIN_POINTS_PER_WEEKDAY = 2
MIN_FACTOR = 0.1                  # Floor to keep deseasonalization finite
FACTOR_MAX_DEVIATION = 0.5        # Factors outside [0.5, 1.5] are log-compressed
WEEKLY_PATTERN_CV_THRESHOLD = 0.15
PEAK_LOW_THRESHOLD = 0.10
MIN_POINTS_FOR_MONTHLY = 90
HOLIDAY_UPLIFT_THRESHOLD = 1.2


def smooth_factor(factor: float, max_deviation: float = FACTOR_MAX_DEVIATION) -> float:
    """
    Compress extreme factors logarithmically.

    Examples:
        >>> smooth_factor(1.2)
        1.2
        >>> round(smooth_factor(3.0), 4)  # 1.5 * (1 + ln(2) * 0.1)
        1.604
    """
    low = 1 - max_deviation
    high = 1 + max_deviation

    if factor <= 0:
        return MIN_FACTOR
    if factor < low:
        factor = low * (1 + math.log(factor / low) * 0.1)
    elif factor > high:
        factor = high * (1 + math.log(factor / high) * 0.1)

    return max(MIN_FACTOR, factor)


def _usable(point: ProcessedDataPoint) -> bool:
    return point.adjusted_demand > 0 and not point.is_outlier


class SeasonalityAdjuster:
    """Computes and removes day-of-week effects."""

    def __init__(self, config: StockCoverageConfig):
        self.config = config

    def calculate_seasonality_factors(self, points: List[ProcessedDataPoint]) -> SeasonalityFactors:
        """
        Calculate recency-weighted day-of-week factors.

        Args:
            points: Preprocessed data points

        Returns:
            SeasonalityFactors (neutral when disabled / insufficient data)
        """
        if not self.config.enable_seasonality or len(points) < MIN_POINTS_FOR_SEASONALITY:
            return SeasonalityFactors()

        sums = [0.0] * 7
        weights = [0.0] * 7
        counts = [0] * 7
        for point in points:
            if _usable(point):
                sums[point.day_of_week] += point.adjusted_demand * point.weight
                weights[point.day_of_week] += point.weight
                counts[point.day_of_week] += 1

        averages: Dict[int, float] = {
            dow: sums[dow] / weights[dow]
            for dow in range(7)
            if counts[dow] >= MIN_POINTS_PER_WEEKDAY and weights[dow] > 0
        }
        if not averages:
            return SeasonalityFactors()

        overall = statistics.mean(averages.values())
        if overall <= 0:
            return SeasonalityFactors()

        factors = {name: 1.0 for name in DAY_NAMES}
        for dow, avg in averages.items():
            factors[DAY_NAMES[dow]] = smooth_factor(avg / overall)

        logger.debug("Seasonality factors from %d weekday(s): %s", len(averages), factors)
        return SeasonalityFactors(**factors)

    def deseasonalize(
        self,
        points: List[ProcessedDataPoint],
        factors: SeasonalityFactors,
    ) -> List[ProcessedDataPoint]:
        """Divide each point's demand by its weekday factor (new points)."""
        if not self.config.enable_seasonality:
            return list(points)

        return [
            replace(p, adjusted_demand=p.adjusted_demand / factors.for_weekday(p.day_of_week))
            for p in points
        ]

    def apply_seasonality(self, base_demand: float, target_date: date, factors: SeasonalityFactors) -> float:
        """Re-apply a single day's factor to a base demand."""
        if not self.config.enable_seasonality:
            return base_demand
        return base_demand * factors.for_date(target_date)

    def average_factor(self, factors: SeasonalityFactors, start_date: date, horizon: int) -> float:
        """Mean factor over `horizon` days starting at start_date."""
        if not self.config.enable_seasonality or horizon <= 0:
            return 1.0
        total = sum(factors.for_date(start_date + timedelta(days=i)) for i in range(horizon))
        return total / horizon

    def detect_weekly_patterns(self, points: List[ProcessedDataPoint]) -> Dict:
        """
        Summarise weekly pattern strength.

        Returns:
            Dict with keys:
                - "has_weekly_pattern": CV of factors > 15%
                - "pattern_strength": CV of the factors
                - "peak_days": weekday indices > +10%
                - "low_days": weekday indices < -10%
        """
        values = self.calculate_seasonality_factors(points).values()
        mean = statistics.mean(values)
        cv = statistics.pstdev(values) / mean if mean > 0 else 0.0

        return {
            "has_weekly_pattern": cv > WEEKLY_PATTERN_CV_THRESHOLD,
            "pattern_strength": cv,
            "peak_days": [i for i, f in enumerate(values) if f > 1 + PEAK_LOW_THRESHOLD],
            "low_days": [i for i, f in enumerate(values) if f < 1 - PEAK_LOW_THRESHOLD],
        }

    def calculate_monthly_seasonality(self, points: List[ProcessedDataPoint]) -> Dict[int, float]:
        """
        Month-of-year factors (1-12).

        Neutral unless at least MIN_POINTS_FOR_MONTHLY points are available.
        """
        neutral = {month: 1.0 for month in range(1, 13)}
        if len(points) < MIN_POINTS_FOR_MONTHLY:
            return neutral

        by_month: Dict[int, List[float]] = {}
        for point in points:
            if _usable(point):
                by_month.setdefault(point.date.month, []).append(point.adjusted_demand)

        all_values = [v for values in by_month.values() for v in values]
        if not all_values:
            return neutral
        overall = statistics.mean(all_values)

        factors = dict(neutral)
        for month, values in by_month.items():
            factors[month] = smooth_factor(statistics.mean(values) / overall)
        return factors

    def adjust_for_holidays(
        self,
        points: List[ProcessedDataPoint],
        holidays: Iterable[date],
    ) -> List[ProcessedDataPoint]:
        """Normalise holiday demand to baseline when holiday uplift > 20%."""
        holiday_set = set(holidays)
        holiday_demand = [p.adjusted_demand for p in points if p.date in holiday_set]
        normal_demand = [p.adjusted_demand for p in points if p.date not in holiday_set]
        if not holiday_demand or not normal_demand:
            return list(points)

        avg_normal = statistics.mean(normal_demand)
        if avg_normal == 0:
            return list(points)

        holiday_factor = statistics.mean(holiday_demand) / avg_normal
        if holiday_factor <= HOLIDAY_UPLIFT_THRESHOLD:
            return list(points)

        return [
            replace(p, adjusted_demand=p.adjusted_demand / holiday_factor) if p.date in holiday_set else p
            for p in points
        ]
