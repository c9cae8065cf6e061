"""Domain models and input validation."""
from .models import (
    ALGORITHM_VERSION,
    DAY_NAMES,
    BatchProcessingResult,
    DataQualityScore,
    ProcessedDataPoint,
    Product,
    SalesObservation,
    SeasonalityFactors,
    StockAvailability,
    StockCoverageConfig,
    StockCoverageInput,
    StockCoverageResult,
    TrendAnalysis,
    WeightedAverageResult,
)

__all__ = [
    "ALGORITHM_VERSION",
    "DAY_NAMES",
    "BatchProcessingResult",
    "DataQualityScore",
    "ProcessedDataPoint",
    "Product",
    "SalesObservation",
    "SeasonalityFactors",
    "StockAvailability",
    "StockCoverageConfig",
    "StockCoverageInput",
    "StockCoverageResult",
    "TrendAnalysis",
    "WeightedAverageResult",
]
