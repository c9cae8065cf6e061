"""
JSON payload <-> domain model conversion.

Payload keys use the camelCase names of the external contract; snake_case
keys are accepted too. Dates are ISO strings (YYYY-MM-DD).
"""
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from .domain.models import Product, SalesObservation, StockAvailability, StockCoverageInput


def _get(data: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def parse_date(value: Any) -> date:
    """Accept a date, a datetime (truncated) or an ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid date {value!r}: expected YYYY-MM-DD") from exc


def product_from_dict(data: Mapping[str, Any]) -> Product:
    return Product(
        sku=data.get("sku", ""),
        current_stock=_get(data, "currentStock", "current_stock", 0),
        minimum_stock=_get(data, "minimumStock", "minimum_stock", 0),
        maximum_stock=_get(data, "maximumStock", "maximum_stock", 0),
        lead_time_days=_get(data, "leadTimeDays", "lead_time_days", 7),
        cost_price=_get(data, "costPrice", "cost_price"),
    )


def input_from_dict(data: Mapping[str, Any], default_date: Optional[date] = None) -> StockCoverageInput:
    """
    Build a StockCoverageInput from one product payload.

    Values are passed through unvalidated; the calculator rejects malformed
    products with INVALID_INPUT.

    Raises:
        ValueError: unparseable dates
    """
    sales = [
        SalesObservation(
            date=parse_date(row["date"]),
            units_sold=_get(row, "unitsSold", "units_sold", 0),
            promotion=bool(_get(row, "promotion", "promotion_flag", False)),
        )
        for row in _get(data, "salesHistory", "sales_history", [])
    ]
    availability = [
        StockAvailability(
            date=parse_date(row["date"]),
            minutes_in_stock=_get(row, "minutesInStock", "minutes_in_stock", 1440),
        )
        for row in _get(data, "stockAvailability", "stock_availability", [])
    ]
    current = _get(data, "currentDate", "current_date")

    return StockCoverageInput(
        product=product_from_dict(_get(data, "product", "product", data)),
        sales_history=sales,
        stock_availability=availability,
        current_date=parse_date(current) if current else default_date,
    )


def inputs_from_payload(payload: Any) -> List[StockCoverageInput]:
    """
    Accept a single product payload, a list of them, or
    {"currentDate": ..., "products": [...]}.
    """
    default_date = None
    if isinstance(payload, Mapping) and "products" in payload:
        current = _get(payload, "currentDate", "current_date")
        default_date = parse_date(current) if current else None
        payload = payload["products"]

    if isinstance(payload, Mapping):
        payload = [payload]
    if not isinstance(payload, list):
        raise ValueError("Input must be a product object, a list of products or {\"products\": [...]}")

    return [input_from_dict(item, default_date) for item in payload]


def results_to_dict(results: Mapping[str, Any], errors: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "results": {sku: result.to_dict() for sku, result in results.items()},
        "errors": dict(errors),
    }
