"""
Stock coverage forecasting engine.

Turns a product's daily sales history into a demand forecast, coverage days
at three demand percentiles, a stockout risk and replenishment
recommendations.

Typical use:
    calculator = StockCoverageCalculator({"service_level": 0.98})
    result = calculator.calculate(StockCoverageInput(product=..., sales_history=[...]))
"""
from .calculator import COVERAGE_INFINITE_DAYS, StockCoverageCalculator
from .config import CONFIG_PRESETS, DEFAULT_CONFIG, get_preset_config, load_config_file
from .config_validator import (
    format_config_errors,
    merge_and_validate_config,
    safe_validate_config,
    validate_config,
)
from .coverage_status import coverage_status, format_coverage_days, reorder_urgency
from .data_source import InMemorySalesDataSource, SalesDataSource
from .domain.models import (
    ALGORITHM_VERSION,
    BatchProcessingResult,
    DataQualityScore,
    Product,
    SalesObservation,
    StockAvailability,
    StockCoverageConfig,
    StockCoverageInput,
    StockCoverageResult,
)
from .errors import (
    ConfigIssue,
    ConfigValidationError,
    StockCoverageCalculationError,
    StockCoverageError,
)
from .workflows import StockCoverageService, run_coverage_batch

__version__ = "1.0.0"

__all__ = [
    "ALGORITHM_VERSION",
    "BatchProcessingResult",
    "CONFIG_PRESETS",
    "COVERAGE_INFINITE_DAYS",
    "ConfigIssue",
    "ConfigValidationError",
    "DEFAULT_CONFIG",
    "DataQualityScore",
    "InMemorySalesDataSource",
    "Product",
    "SalesDataSource",
    "SalesObservation",
    "StockAvailability",
    "StockCoverageCalculationError",
    "StockCoverageCalculator",
    "StockCoverageConfig",
    "StockCoverageError",
    "StockCoverageInput",
    "StockCoverageResult",
    "StockCoverageService",
    "coverage_status",
    "format_config_errors",
    "format_coverage_days",
    "get_preset_config",
    "load_config_file",
    "merge_and_validate_config",
    "reorder_urgency",
    "run_coverage_batch",
    "safe_validate_config",
    "validate_config",
]
