"""
Stock coverage calculator.

Orchestrates the pipeline for one product:

    preprocess → data quality → seasonality factors → deseasonalize
    → trend → weighted moving average → forecast
    → coverage percentiles / replenishment → confidence

Instances hold an immutable validated config plus stateless components, so
`calculate` is safe to call concurrently on one instance.
"""
import logging
import math
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional

from .config_validator import merge_and_validate_config
from .domain.models import (
    ALGORITHM_VERSION,
    DataQualityScore,
    ProcessedDataPoint,
    Product,
    SeasonalityFactors,
    StockCoverageInput,
    StockCoverageResult,
    TrendAnalysis,
)
from .domain.validation import validate_coverage_input
from .errors import StockCoverageCalculationError, StockCoverageError
from .preprocessing import DataPreprocessor
from .replenishment_policy import ReorderRecommendation, recommend_replenishment
from .seasonality import SeasonalityAdjuster
from .trend import TREND_CONFIDENCE_GATE, TrendAnalyzer
from .uncertainty import Z_SCORES
from .weighted_average import WeightedMovingAverage


logger = logging.getLogger(__name__)

COVERAGE_INFINITE_DAYS = 999.0     # Sentinel: stock on hand, no demand
MIN_P10_DEMAND = 0.1

# Overall confidence weights (sum = 1.0)
CONFIDENCE_WEIGHT_DATA_QUALITY = 0.4
CONFIDENCE_WEIGHT_TREND = 0.3
CONFIDENCE_WEIGHT_DATA_VOLUME = 0.3
FULL_CONFIDENCE_DATA_POINTS = 30


@dataclass(frozen=True)
class DemandForecast:
    """Daily demand forecast over the configured horizon."""
    demand_forecast: float
    demand_std_dev: float
    adjusted_demand: float     # Trend-adjusted level before seasonality
    seasonality_index: float   # Average factor over the horizon


@dataclass(frozen=True)
class CoveragePercentiles:
    p10: float   # Optimistic (low demand)
    p50: float
    p90: float   # Conservative (high demand)


class StockCoverageCalculator:
    """
    Demand forecast and coverage-day calculator.

    Args:
        partial_config: Overrides merged over the defaults (snake_case or
            camelCase keys). None = defaults.

    Raises:
        StockCoverageCalculationError: INVALID_CONFIGURATION listing every
            violated field (a ConfigValidationError)
    """

    def __init__(self, partial_config: Optional[Mapping[str, Any]] = None):
        self.config = merge_and_validate_config(partial_config)

        self.preprocessor = DataPreprocessor(self.config)
        self.seasonality_adjuster = SeasonalityAdjuster(self.config)
        self.trend_analyzer = TrendAnalyzer(self.config)
        self.weighted_average = WeightedMovingAverage(self.config)

    def calculate(self, input_data: StockCoverageInput) -> StockCoverageResult:
        """
        Run the full pipeline for one product.

        Raises:
            StockCoverageCalculationError: INVALID_INPUT for a malformed
                product/series, CALCULATION_ERROR for numerical failures
        """
        is_valid, error = validate_coverage_input(input_data)
        if not is_valid:
            sku = getattr(getattr(input_data, "product", None), "sku", None)
            raise StockCoverageCalculationError(
                StockCoverageError.INVALID_INPUT,
                error,
                {"sku": sku},
            )

        input_data = input_data.with_calendar_dates()

        try:
            return self._run_pipeline(input_data)
        except (ArithmeticError, ValueError) as exc:
            raise StockCoverageCalculationError(
                StockCoverageError.CALCULATION_ERROR,
                f"Calculation failed: {exc}",
                {"sku": input_data.product.sku},
            ) from exc

    def _run_pipeline(self, input_data: StockCoverageInput) -> StockCoverageResult:
        product = input_data.product
        current_date = input_data.current_date or date.today()

        points = self.preprocessor.preprocess(input_data)
        data_quality = self.preprocessor.calculate_data_quality(input_data, points)

        factors = self.seasonality_adjuster.calculate_seasonality_factors(points)
        deseasonalized = self.seasonality_adjuster.deseasonalize(points, factors)

        trend = self.trend_analyzer.analyze(deseasonalized)
        base = self.weighted_average.calculate(deseasonalized)

        forecast = self.generate_forecast(base.mean, trend, factors, current_date)
        coverage = self.calculate_coverage(
            product.current_stock,
            forecast.demand_forecast,
            forecast.demand_std_dev,
        )
        recommendation = self.calculate_recommendations(
            product,
            forecast.demand_forecast,
            forecast.demand_std_dev,
        )
        confidence = self.calculate_overall_confidence(data_quality, trend.confidence, len(points))

        logger.debug(
            "SKU %s: %d point(s), base=%.3f forecast=%.3f coverage=%.1f confidence=%.2f",
            product.sku, len(points), base.mean, forecast.demand_forecast,
            coverage.p50, confidence,
        )

        calculated_at = datetime.now()
        return StockCoverageResult(
            coverage_days=coverage.p50,
            coverage_days_p90=coverage.p90,
            coverage_days_p10=coverage.p10,
            demand_forecast=forecast.demand_forecast,
            demand_std_dev=forecast.demand_std_dev,
            adjusted_demand=forecast.adjusted_demand,
            trend_factor=trend.trend_factor,
            seasonality_index=forecast.seasonality_index,
            availability_adjustment=self._average_availability(points),
            confidence=confidence,
            data_quality=data_quality,
            reorder_point=recommendation.reorder_point,
            reorder_quantity=recommendation.reorder_quantity,
            stockout_risk=recommendation.stockout_risk,
            historical_days_used=len(points),
            algorithm=ALGORITHM_VERSION,
            calculated_at=calculated_at,
            expires_at=calculated_at + timedelta(seconds=self.config.cache_timeout_seconds),
        )

    def generate_forecast(
        self,
        base_demand: float,
        trend: TrendAnalysis,
        factors: SeasonalityFactors,
        start_date: date,
    ) -> DemandForecast:
        """
        Daily demand forecast.

        The trend is applied only when enabled and trusted (confidence above
        the gate); it is projected to the middle of the horizon. Standard
        deviation assumes Poisson noise around the base, widened by the
        trend slope over the horizon.
        """
        horizon = self.config.forecast_horizon

        level = base_demand
        if self.config.enable_trend_correction and trend.confidence > TREND_CONFIDENCE_GATE:
            level = trend.current_level * trend.trend_factor ** (horizon // 2)

        seasonality_index = self.seasonality_adjuster.average_factor(factors, start_date, horizon)

        return DemandForecast(
            demand_forecast=max(0.0, level * seasonality_index),
            demand_std_dev=math.sqrt(max(0.0, base_demand)) * (1 + abs(trend.slope) * horizon),
            adjusted_demand=level,
            seasonality_index=seasonality_index,
        )

    @staticmethod
    def calculate_coverage(current_stock: float, demand: float, demand_std_dev: float) -> CoveragePercentiles:
        """
        Coverage days at the 10th/50th/90th demand percentiles.

        Always p10 >= p50 >= p90. With no demand every percentile is
        COVERAGE_INFINITE_DAYS when stock is on hand, else 0.
        """
        if demand <= 0:
            days = COVERAGE_INFINITE_DAYS if current_stock > 0 else 0.0
            return CoveragePercentiles(p10=days, p50=days, p90=days)

        p10_demand = min(demand, max(MIN_P10_DEMAND, demand + Z_SCORES["P10"] * demand_std_dev))
        p90_demand = demand + Z_SCORES["P90"] * max(0.0, demand_std_dev)

        return CoveragePercentiles(
            p10=current_stock / p10_demand,
            p50=current_stock / demand,
            p90=current_stock / p90_demand,
        )

    def calculate_recommendations(
        self,
        product: Product,
        demand: float,
        demand_std_dev: float,
    ) -> ReorderRecommendation:
        """Reorder point, clamped EOQ and stockout risk."""
        return recommend_replenishment(product, demand, demand_std_dev, self.config)

    @staticmethod
    def calculate_overall_confidence(
        data_quality: DataQualityScore,
        trend_confidence: float,
        data_points_used: int,
    ) -> float:
        """0.4 × quality + 0.3 × trend confidence + 0.3 × data volume, in [0, 1]."""
        data_volume = min(1.0, data_points_used / FULL_CONFIDENCE_DATA_POINTS)
        confidence = (
            data_quality.overall_score * CONFIDENCE_WEIGHT_DATA_QUALITY
            + trend_confidence * CONFIDENCE_WEIGHT_TREND
            + data_volume * CONFIDENCE_WEIGHT_DATA_VOLUME
        )
        return max(0.0, min(1.0, confidence))

    @staticmethod
    def _average_availability(points: List[ProcessedDataPoint]) -> float:
        if not points:
            return 1.0
        return sum(p.availability_factor for p in points) / len(points)

    def calculate_batch(
        self,
        inputs: List[StockCoverageInput],
        on_progress: Optional[Callable[[int, int], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Dict[str, StockCoverageResult]:
        """
        Calculate many products in chunks of `batch_size`.

        Failed items are logged and left out of the returned mapping.
        """
        from .workflows.batch import run_coverage_batch  # noqa: PLC0415

        results, _ = run_coverage_batch(self, inputs, on_progress=on_progress, cancel_event=cancel_event)
        return results
