"""
Error formatting for coverage calculations.

Turns engine exceptions into ErrorContext objects: a readable message,
a severity, context (SKU, operation) and recovery steps. Used for batch
error messages and CLI output.
"""

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import ConfigValidationError, StockCoverageCalculationError, StockCoverageError


class ErrorSeverity(Enum):
    """Error severity classification."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """
    Structured error context.

    Attributes:
        message: Readable error description
        severity: Error severity level
        technical_details: Technical error info (for logs/debugging)
        context: Additional context (SKU, operation)
        recovery_steps: Actions the caller can take
        error_code: Optional stable error code
    """
    message: str
    severity: ErrorSeverity
    technical_details: str
    context: Dict[str, Any] = field(default_factory=dict)
    recovery_steps: List[str] = field(default_factory=list)
    error_code: Optional[str] = None

    def format_for_display(self, include_technical: bool = False) -> str:
        """Multi-line message for terminal output."""
        lines = [self.message]

        if self.context:
            lines.append("")
            lines.append("Details:")
            for key, value in self.context.items():
                if value is not None:
                    lines.append(f"  - {key}: {value}")

        if self.recovery_steps:
            lines.append("")
            lines.append("Suggested actions:")
            for i, step in enumerate(self.recovery_steps, 1):
                lines.append(f"  {i}. {step}")

        if include_technical and self.technical_details:
            lines.append("")
            lines.append("Technical details:")
            lines.append(f"  {self.technical_details}")

        if self.error_code:
            lines.append("")
            lines.append(f"Error code: {self.error_code}")

        return "\n".join(lines)

    def format_for_log(self) -> str:
        """Single-line form for structured logging."""
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items() if v is not None)
        return f"[{self.severity.value.upper()}] {self.message} | Context: {context_str} | Technical: {self.technical_details}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "severity": self.severity.value,
            "errorCode": self.error_code,
            "context": self.context,
            "recoverySteps": self.recovery_steps,
            "technicalDetails": self.technical_details,
        }


_RECOVERY_STEPS = {
    StockCoverageError.INVALID_CONFIGURATION: [
        "Check every listed field against its allowed range",
        "Start from a preset (conservative, balanced, aggressive, minimal)",
    ],
    StockCoverageError.INVALID_INPUT: [
        "Verify stock levels and lead time are non-negative numbers",
        "Verify maximum_stock is not below minimum_stock",
        "Verify daily sales are non-negative",
    ],
    StockCoverageError.INSUFFICIENT_DATA: [
        "Check that the data source knows this SKU",
        "Load sales history for the product before calculating",
    ],
    StockCoverageError.CALCULATION_ERROR: [
        "Retry the calculation",
        "Inspect the sales history for extreme values",
    ],
}

_SEVERITY = {
    StockCoverageError.INVALID_CONFIGURATION: ErrorSeverity.CRITICAL,
    StockCoverageError.INVALID_INPUT: ErrorSeverity.ERROR,
    StockCoverageError.INSUFFICIENT_DATA: ErrorSeverity.WARNING,
    StockCoverageError.CALCULATION_ERROR: ErrorSeverity.ERROR,
}


def format_calculation_error(
    exc: Exception,
    operation: str,
    sku: Optional[str] = None,
) -> ErrorContext:
    """
    Format an exception raised by a coverage calculation.

    Args:
        exc: The exception raised
        operation: Operation that failed (e.g. "calculate", "batch")
        sku: SKU involved (if applicable)

    Returns:
        ErrorContext; unexpected exceptions are reported as CALCULATION_ERROR
        with the traceback in technical_details
    """
    context: Dict[str, Any] = {"operation": operation}
    if sku:
        context["sku"] = sku

    if isinstance(exc, StockCoverageCalculationError):
        context.update({k: v for k, v in exc.details.items() if k not in ("sku", "issues")})
        steps = list(_RECOVERY_STEPS[exc.error_type])
        if isinstance(exc, ConfigValidationError):
            steps = [str(issue) for issue in exc.issues] + steps
        return ErrorContext(
            message=exc.message,
            severity=_SEVERITY[exc.error_type],
            technical_details=str(exc),
            context=context,
            recovery_steps=steps,
            error_code=exc.error_type.value,
        )

    return ErrorContext(
        message=f"Unexpected error during {operation}",
        severity=ErrorSeverity.ERROR,
        technical_details=f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}",
        context=context,
        recovery_steps=list(_RECOVERY_STEPS[StockCoverageError.CALCULATION_ERROR]),
        error_code=StockCoverageError.CALCULATION_ERROR.value,
    )
