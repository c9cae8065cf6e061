"""
Sales data sources.

The calculator never loads data itself; services receive a SalesDataSource
from the caller. InMemorySalesDataSource backs tests, examples and the CLI.
"""
import threading
from datetime import date, timedelta
from typing import Dict, List, Optional, Protocol

from .domain.models import Product, SalesObservation, StockAvailability, StockCoverageInput


class SalesDataSource(Protocol):
    """Read/write access to products and their daily series."""

    def list_skus(self) -> List[str]:
        ...

    def load_input(self, sku: str, current_date: date, history_days: int) -> Optional[StockCoverageInput]:
        """Input for `sku` with history ending at current_date; None if unknown."""
        ...

    def upsert_sales(self, sku: str, observation: SalesObservation) -> None:
        ...

    def upsert_availability(self, sku: str, record: StockAvailability) -> None:
        ...


class InMemorySalesDataSource:
    """Thread-safe dict-backed data source (one series per SKU, keyed by date)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._products: Dict[str, Product] = {}
        self._sales: Dict[str, Dict[date, SalesObservation]] = {}
        self._availability: Dict[str, Dict[date, StockAvailability]] = {}

    def add_product(
        self,
        product: Product,
        sales_history: Optional[List[SalesObservation]] = None,
        stock_availability: Optional[List[StockAvailability]] = None,
    ) -> None:
        """Register (or replace) a product with its series."""
        with self._lock:
            self._products[product.sku] = product
            self._sales[product.sku] = {obs.date: obs for obs in sales_history or []}
            self._availability[product.sku] = {rec.date: rec for rec in stock_availability or []}

    def list_skus(self) -> List[str]:
        with self._lock:
            return sorted(self._products)

    def load_input(self, sku: str, current_date: date, history_days: int) -> Optional[StockCoverageInput]:
        with self._lock:
            product = self._products.get(sku)
            if product is None:
                return None
            start = current_date - timedelta(days=history_days - 1)
            sales = [
                obs for day, obs in sorted(self._sales[sku].items())
                if start <= day <= current_date
            ]
            availability = [
                rec for day, rec in sorted(self._availability[sku].items())
                if start <= day <= current_date
            ]
        return StockCoverageInput(
            product=product,
            sales_history=sales,
            stock_availability=availability,
            current_date=current_date,
        )

    def upsert_sales(self, sku: str, observation: SalesObservation) -> None:
        with self._lock:
            if sku not in self._products:
                raise KeyError(sku)
            self._sales[sku][observation.date] = observation

    def upsert_availability(self, sku: str, record: StockAvailability) -> None:
        with self._lock:
            if sku not in self._products:
                raise KeyError(sku)
            self._availability[sku][record.date] = record
