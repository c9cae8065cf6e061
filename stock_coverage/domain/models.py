"""
Domain models for the stock coverage engine.

Pure data classes + value objects. No I/O, no side effects.
Every record is frozen: pipeline stages return new instances instead of
mutating the ones they receive.
"""
from dataclasses import dataclass, field, asdict, replace
from datetime import date as Date, datetime
from typing import Dict, List, Optional


ALGORITHM_VERSION = "EWMA_TREND_SEASONALITY_V1"

# Index = datetime.date.weekday() (0=Monday, 6=Sunday)
DAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MINUTES_PER_DAY = 1440


def _as_date(value: Date) -> Date:
    return value.date() if isinstance(value, datetime) else value


@dataclass(frozen=True)
class StockCoverageConfig:
    """
    Tuning parameters for one calculator instance.

    Build through config_validator.merge_and_validate_config() so that every
    bound is checked; the dataclass itself performs no validation.
    """
    # Data window
    historical_days: int = 90          # Days of history to use
    forecast_horizon: int = 7          # Days to forecast ahead

    # Weighted moving average
    half_life: float = 14              # Half-life in days for exponential decay

    # Availability / outliers
    min_availability_factor: float = 0.6  # Below this a day counts as stocked out
    outlier_cap_multiplier: float = 3     # Cap = multiplier × rolling median

    # Feature flags
    enable_seasonality: bool = True
    enable_trend_correction: bool = True
    enable_promotion_adjustment: bool = True

    # Performance (cache is owned by the caller; only expires_at is derived here)
    enable_cache: bool = True
    cache_timeout_seconds: int = 3600
    batch_size: int = 100

    # Service levels
    service_level: float = 0.95
    safety_stock_days: float = 3

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class Product:
    """
    Product descriptor supplied by the caller.

    Not validated on construction: a malformed product must be able to reach
    the calculator and fail there (INVALID_INPUT), so that one bad SKU in a
    batch is isolated instead of breaking the caller's input building.
    """
    sku: str
    current_stock: float
    minimum_stock: float = 0
    maximum_stock: float = 0
    lead_time_days: float = 7
    cost_price: Optional[float] = None  # None/0 = unknown, EOQ falls back to max-current


@dataclass(frozen=True)
class SalesObservation:
    """One day of sales."""
    date: Date
    units_sold: float
    promotion: bool = False


@dataclass(frozen=True)
class StockAvailability:
    """Minutes the product was in stock on a given day (0-1440)."""
    date: Date
    minutes_in_stock: int

    @property
    def availability_factor(self) -> float:
        return self.minutes_in_stock / MINUTES_PER_DAY


@dataclass(frozen=True)
class StockCoverageInput:
    """Everything needed for one coverage calculation."""
    product: Product
    sales_history: List[SalesObservation] = field(default_factory=list)
    stock_availability: List[StockAvailability] = field(default_factory=list)
    current_date: Optional[Date] = None  # None = today

    def with_calendar_dates(self) -> "StockCoverageInput":
        """Copy with every datetime (current_date and series dates) truncated to its date."""
        return replace(
            self,
            sales_history=[replace(obs, date=_as_date(obs.date)) for obs in self.sales_history],
            stock_availability=[replace(rec, date=_as_date(rec.date)) for rec in self.stock_availability],
            current_date=_as_date(self.current_date) if self.current_date is not None else None,
        )


@dataclass(frozen=True)
class ProcessedDataPoint:
    """
    Cleaned daily observation produced by the preprocessor.

    Attributes:
        date: Observation date
        day_of_week: 0=Monday ... 6=Sunday
        original_sales: Raw units sold
        availability_factor: Fraction of the day in stock (0-1)
        is_available: False when the day counts as a stockout day
        adjusted_demand: Demand after availability/outlier/promo adjustments
        weight: Recency weight 0.5^(days_before_current / half_life)
        is_promotion: Promotion flag
        is_outlier: True when the demand was capped
    """
    date: Date
    day_of_week: int
    original_sales: float
    availability_factor: float
    is_available: bool
    adjusted_demand: float
    weight: float
    is_promotion: bool = False
    is_outlier: bool = False


@dataclass(frozen=True)
class DataQualityScore:
    """Data quality assessment (all fields in [0, 1])."""
    completeness: float         # Observed days / expected days
    consistency: float          # 1 - coefficient of variation (floored at 0)
    availability_issues: float  # Fraction of stocked-out days
    outlier_percentage: float   # Fraction of capped days
    overall_score: float

    def to_dict(self) -> Dict:
        return {
            "completeness": self.completeness,
            "consistency": self.consistency,
            "availabilityIssues": self.availability_issues,
            "outlierPercentage": self.outlier_percentage,
            "overallScore": self.overall_score,
        }


@dataclass(frozen=True)
class SeasonalityFactors:
    """Multiplicative day-of-week factors (1.0 = neutral)."""
    sunday: float = 1.0
    monday: float = 1.0
    tuesday: float = 1.0
    wednesday: float = 1.0
    thursday: float = 1.0
    friday: float = 1.0
    saturday: float = 1.0

    def for_weekday(self, weekday: int) -> float:
        """Factor for a datetime.date.weekday() index."""
        return getattr(self, DAY_NAMES[weekday])

    def for_date(self, target: Date) -> float:
        return self.for_weekday(target.weekday())

    def values(self) -> List[float]:
        """Factors ordered Monday..Sunday."""
        return [self.for_weekday(i) for i in range(7)]

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class TrendAnalysis:
    """
    Trend fit over the deseasonalized series.

    Attributes:
        intercept: Regression intercept (log scale)
        slope: Regression slope (log scale, per day)
        r_squared: Fit quality (0-1)
        trend_factor: Daily growth factor exp(slope), e.g. 1.02 = +2%/day
        current_level: Demand level at the most recent observation
        confidence: Confidence in the trend (0-1)
    """
    intercept: float
    slope: float
    r_squared: float
    trend_factor: float
    current_level: float
    confidence: float


@dataclass(frozen=True)
class WeightedAverageResult:
    mean: float
    variance: float
    standard_deviation: float
    sum_weights: float
    effective_samples: float


@dataclass(frozen=True)
class StockCoverageResult:
    """
    Final calculation result.

    Field names (camelCase in to_dict()) and `algorithm` are the stable
    contract consumed by cache and transport layers.
    """
    # Coverage
    coverage_days: float       # P50
    coverage_days_p90: float   # Conservative (high demand)
    coverage_days_p10: float   # Optimistic (low demand)

    # Demand
    demand_forecast: float
    demand_std_dev: float
    adjusted_demand: float     # Trend-adjusted level before seasonality

    # Analysis components
    trend_factor: float
    seasonality_index: float
    availability_adjustment: float

    # Metadata
    confidence: float
    data_quality: DataQualityScore

    # Recommendations
    reorder_point: int
    reorder_quantity: int
    stockout_risk: float

    # Diagnostics
    historical_days_used: int
    algorithm: str
    calculated_at: datetime
    expires_at: datetime

    def to_dict(self) -> Dict:
        """JSON-safe dict using the external camelCase field names."""
        return {
            "coverageDays": self.coverage_days,
            "coverageDaysP90": self.coverage_days_p90,
            "coverageDaysP10": self.coverage_days_p10,
            "demandForecast": self.demand_forecast,
            "demandStdDev": self.demand_std_dev,
            "adjustedDemand": self.adjusted_demand,
            "trendFactor": self.trend_factor,
            "seasonalityIndex": self.seasonality_index,
            "availabilityAdjustment": self.availability_adjustment,
            "confidence": self.confidence,
            "dataQuality": self.data_quality.to_dict(),
            "reorderPoint": self.reorder_point,
            "reorderQuantity": self.reorder_quantity,
            "stockoutRisk": self.stockout_risk,
            "historicalDaysUsed": self.historical_days_used,
            "algorithm": self.algorithm,
            "calculatedAt": self.calculated_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
        }


@dataclass
class BatchProcessingResult:
    """Summary of one batch run."""
    successful: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    total_time: float = 0.0              # Seconds
    average_time_per_sku: float = 0.0    # Seconds
    cancelled: bool = False
