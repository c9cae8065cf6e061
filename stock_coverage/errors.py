"""
Error taxonomy for the stock coverage engine.

Configuration and input problems are raised as StockCoverageCalculationError.
Insufficient history, zero demand and missing optional fields are NOT errors:
they produce a valid result with lower confidence / data quality.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class StockCoverageError(Enum):
    """Error types raised by the engine."""
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"  # Construction time
    INVALID_INPUT = "INVALID_INPUT"                  # Malformed product / series
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"          # Data source could not supply an input
    CALCULATION_ERROR = "CALCULATION_ERROR"          # Unexpected numerical failure


class StockCoverageCalculationError(Exception):
    """Structured engine error."""

    def __init__(
        self,
        error_type: StockCoverageError,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error_type.value}] {self.message}"


@dataclass(frozen=True)
class ConfigIssue:
    """One violated configuration constraint."""
    field: str
    value: Any
    constraint: str

    def __str__(self) -> str:
        return f"{self.field}: {self.constraint} (got {self.value!r})"


class ConfigValidationError(StockCoverageCalculationError):
    """Raised when a configuration violates one or more constraints."""

    def __init__(self, issues: List[ConfigIssue]):
        self.issues = list(issues)
        fields = ", ".join(issue.field for issue in self.issues)
        super().__init__(
            StockCoverageError.INVALID_CONFIGURATION,
            f"Invalid configuration: {len(self.issues)} violation(s) ({fields})",
            {"issues": [str(issue) for issue in self.issues]},
        )
