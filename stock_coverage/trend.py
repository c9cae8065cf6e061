"""
Trend analysis via weighted log-linear regression.

Model:
    log(demand + EPS) = intercept + slope × day
    trend_factor = exp(slope)          (per-day multiplicative growth)
    current_level = exp(intercept + slope × day_last) - EPS

Regression weights are the recency weights from preprocessing, so recent
days dominate the fit. Confidence blends R², the share of usable points and
the amount of usable data. The calculator only applies the trend when
confidence > TREND_CONFIDENCE_GATE.
"""
import logging
import math
from typing import List, Tuple

import numpy as np

from .domain.models import ProcessedDataPoint, StockCoverageConfig, TrendAnalysis


logger = logging.getLogger(__name__)

EPSILON = 0.1                      # Keeps log() finite for small demand
MIN_POINTS_FOR_TREND = 7
MIN_POINTS_FOR_FULL_CONFIDENCE = 14
DEFAULT_TREND_CONFIDENCE = 0.5
TREND_CONFIDENCE_GATE = 0.3        # Below this the trend is treated as noise

# Confidence weights (sum = 1.0)
CONFIDENCE_WEIGHT_R_SQUARED = 0.5
CONFIDENCE_WEIGHT_COMPLETENESS = 0.3
CONFIDENCE_WEIGHT_DATA_POINTS = 0.2

CHANGE_POINT_WINDOW = 14
CHANGE_POINT_THRESHOLD = 0.3
UNDAMPED_PROJECTION_DAYS = 7
DAMPENING_PER_DAY = 0.01


def weighted_linear_regression(
    x: np.ndarray,
    y: np.ndarray,
    w: np.ndarray,
) -> Tuple[float, float, float]:
    """
    Weighted least squares fit of y = intercept + slope × x.

    Returns:
        (intercept, slope, r_squared) with r_squared clamped to [0, 1]
    """
    if len(x) < 2:
        return 0.0, 0.0, 0.0

    sum_w = float(np.sum(w))
    if sum_w <= 0:
        return 0.0, 0.0, 0.0

    sum_wx = float(np.sum(w * x))
    sum_wy = float(np.sum(w * y))
    sum_wxx = float(np.sum(w * x * x))
    sum_wxy = float(np.sum(w * x * y))

    denominator = sum_w * sum_wxx - sum_wx * sum_wx
    if abs(denominator) < 1e-10:
        return sum_wy / sum_w, 0.0, 0.0

    slope = (sum_w * sum_wxy - sum_wx * sum_wy) / denominator
    intercept = (sum_wy - slope * sum_wx) / sum_w

    mean_y = sum_wy / sum_w
    residuals = y - (intercept + slope * x)
    ss_residual = float(np.sum(w * residuals * residuals))
    ss_total = float(np.sum(w * (y - mean_y) ** 2))
    r_squared = 1 - ss_residual / ss_total if ss_total > 1e-12 else 0.0

    return intercept, slope, max(0.0, min(1.0, r_squared))


class TrendAnalyzer:
    """Fits a trend to the deseasonalized series."""

    def __init__(self, config: StockCoverageConfig):
        self.config = config

    def analyze(self, points: List[ProcessedDataPoint]) -> TrendAnalysis:
        """
        Fit the trend.

        Args:
            points: Deseasonalized data points

        Returns:
            TrendAnalysis (default flat trend when disabled or < 7 usable points)
        """
        if not self.config.enable_trend_correction or len(points) < MIN_POINTS_FOR_TREND:
            return self.default_trend(points)

        valid = [p for p in points if p.adjusted_demand > 0]
        if len(valid) < MIN_POINTS_FOR_TREND:
            return self.default_trend(points)

        origin = valid[0].date
        x = np.array([(p.date - origin).days + 1 for p in valid], dtype=float)
        y = np.log(np.array([p.adjusted_demand for p in valid], dtype=float) + EPSILON)
        w = np.array([p.weight for p in valid], dtype=float)

        if float(np.sum(w)) <= 0:
            return self.default_trend(points)

        intercept, slope, r_squared = weighted_linear_regression(x, y, w)

        current_level = math.exp(intercept + slope * float(x[-1])) - EPSILON
        confidence = self.calculate_confidence(r_squared, len(valid), len(points))

        return TrendAnalysis(
            intercept=intercept,
            slope=slope,
            r_squared=r_squared,
            trend_factor=math.exp(slope),
            current_level=max(0.0, current_level),
            confidence=confidence,
        )

    def default_trend(self, points: List[ProcessedDataPoint]) -> TrendAnalysis:
        """Flat trend at the mean positive demand."""
        positive = [p.adjusted_demand for p in points if p.adjusted_demand > 0]
        avg_demand = sum(positive) / len(positive) if positive else 0.0

        return TrendAnalysis(
            intercept=math.log(max(EPSILON, avg_demand)),
            slope=0.0,
            r_squared=0.0,
            trend_factor=1.0,
            current_level=avg_demand,
            confidence=DEFAULT_TREND_CONFIDENCE,
        )

    @staticmethod
    def calculate_confidence(r_squared: float, n_valid: int, n_total: int) -> float:
        """Blend fit quality, usable-point share and data volume into [0, 1]."""
        completeness = n_valid / n_total if n_total > 0 else 0.0
        points_factor = min(1.0, n_valid / MIN_POINTS_FOR_FULL_CONFIDENCE)

        confidence = (
            r_squared * CONFIDENCE_WEIGHT_R_SQUARED
            + completeness * CONFIDENCE_WEIGHT_COMPLETENESS
            + points_factor * CONFIDENCE_WEIGHT_DATA_POINTS
        )
        return max(0.0, min(1.0, confidence))

    def detect_change_points(self, points: List[ProcessedDataPoint]) -> List[int]:
        """
        Indices where the trend factor shifts by more than 30% between the
        preceding and following CHANGE_POINT_WINDOW points.
        """
        change_points: List[int] = []
        if len(points) < CHANGE_POINT_WINDOW * 2:
            return change_points

        for i in range(CHANGE_POINT_WINDOW, len(points) - CHANGE_POINT_WINDOW + 1):
            before = self.analyze(points[i - CHANGE_POINT_WINDOW:i])
            after = self.analyze(points[i:i + CHANGE_POINT_WINDOW])
            change = abs(after.trend_factor - before.trend_factor) / before.trend_factor
            if change > CHANGE_POINT_THRESHOLD:
                change_points.append(i)

        if change_points:
            logger.debug("Trend change points at indices %s", change_points)
        return change_points

    @staticmethod
    def project_trend(trend: TrendAnalysis, days_ahead: int) -> List[float]:
        """
        Daily demand projection from the current level.

        Compound growth for the first week; afterwards the growth rate is
        damped 1% per day toward flat.
        """
        projections = []
        for day in range(1, days_ahead + 1):
            if day <= UNDAMPED_PROJECTION_DAYS:
                projection = trend.current_level * trend.trend_factor ** day
            else:
                damping = 1 / (1 + DAMPENING_PER_DAY * day)
                damped_factor = 1 + (trend.trend_factor - 1) * damping
                projection = trend.current_level * damped_factor ** day
            projections.append(max(0.0, projection))
        return projections
