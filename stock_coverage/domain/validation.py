"""
Centralized validation rules for calculation inputs.

Each validator returns (is_valid, error_message); the calculator turns a
failure into an INVALID_INPUT error.
"""
from datetime import date
import math
from numbers import Real
from typing import List, Tuple

from .models import MINUTES_PER_DAY, Product, SalesObservation, StockAvailability, StockCoverageInput


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_sku_code(sku: str) -> Tuple[bool, str]:
    """
    Validate SKU code.

    Args:
        sku: SKU code to validate

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(sku, str) or not sku.strip():
        return False, "SKU cannot be empty"

    return True, ""


def validate_product(product: Product) -> Tuple[bool, str]:
    """
    Validate product stock parameters.

    Stock levels and lead time must be non-negative numbers and
    maximum_stock >= minimum_stock. cost_price is optional.

    Returns:
        (is_valid, error_message)
    """
    if product is None:
        return False, "Product data is required"

    ok, error = validate_sku_code(product.sku)
    if not ok:
        return False, error

    for name in ("current_stock", "minimum_stock", "maximum_stock", "lead_time_days"):
        value = getattr(product, name)
        if not _is_number(value):
            return False, f"{name} must be a finite number"
        if value < 0:
            return False, f"{name} cannot be negative (got {value})"

    if product.maximum_stock < product.minimum_stock:
        return False, (
            f"maximum_stock ({product.maximum_stock}) must be >= "
            f"minimum_stock ({product.minimum_stock})"
        )

    if product.cost_price is not None:
        if not _is_number(product.cost_price) or product.cost_price < 0:
            return False, "cost_price must be a non-negative number"

    return True, ""


def validate_sales_history(history: List[SalesObservation]) -> Tuple[bool, str]:
    """
    Validate the raw sales series.

    Empty history is valid (result degrades to zero demand).
    """
    if not isinstance(history, (list, tuple)):
        return False, "sales_history must be a list"

    for i, record in enumerate(history):
        if not isinstance(record.date, date):
            return False, f"Record {i} 'date' is not a date object"
        if not _is_number(record.units_sold):
            return False, f"Record {i} 'units_sold' is not numeric"
        if record.units_sold < 0:
            return False, f"Record {i} 'units_sold' cannot be negative"

    return True, ""


def validate_stock_availability(records: List[StockAvailability]) -> Tuple[bool, str]:
    """minutes_in_stock must lie within one day."""
    if not isinstance(records, (list, tuple)):
        return False, "stock_availability must be a list"

    for i, record in enumerate(records):
        if not isinstance(record.date, date):
            return False, f"Availability record {i} 'date' is not a date object"
        if not _is_number(record.minutes_in_stock):
            return False, f"Availability record {i} 'minutes_in_stock' is not numeric"
        if not 0 <= record.minutes_in_stock <= MINUTES_PER_DAY:
            return False, (
                f"Availability record {i} 'minutes_in_stock' must be between 0 and {MINUTES_PER_DAY}"
            )

    return True, ""


def validate_coverage_input(input_data: StockCoverageInput) -> Tuple[bool, str]:
    """Run every input validator, returning the first failure."""
    if input_data is None:
        return False, "Input is required"

    for ok, error in (
        validate_product(input_data.product),
        validate_sales_history(input_data.sales_history),
        validate_stock_availability(input_data.stock_availability),
    ):
        if not ok:
            return False, error

    if input_data.current_date is not None and not isinstance(input_data.current_date, date):
        return False, "current_date must be a date"

    return True, ""
