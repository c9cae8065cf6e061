"""
Coverage service: the calculator wired to a SalesDataSource.

Responsibilities:
- Load inputs by SKU and calculate coverage (single and batch)
- Record a day of sales and recalculate
- Rank products by stockout risk
- Summarise coverage insights for one product
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..calculator import StockCoverageCalculator
from ..data_source import SalesDataSource
from ..domain.models import (
    MINUTES_PER_DAY,
    BatchProcessingResult,
    Product,
    SalesObservation,
    StockAvailability,
    StockCoverageInput,
    StockCoverageResult,
)
from ..errors import StockCoverageCalculationError, StockCoverageError
from .batch import run_coverage_batch


logger = logging.getLogger(__name__)

RECENT_SALES_DAYS = 7
OVERSTOCK_COVERAGE_DAYS = 60
DEFAULT_RISK_THRESHOLD = 0.5
NO_SALES_MINUTES_IN_STOCK = MINUTES_PER_DAY // 2  # Assumed half-day availability on a zero-sales day


@dataclass(frozen=True)
class StockoutRiskItem:
    product: Product
    coverage: StockCoverageResult
    days_until_stockout: int


@dataclass(frozen=True)
class CoverageInsights:
    """Coverage result plus simple inventory indicators for one product."""
    product: Product
    coverage: StockCoverageResult
    recent_average_daily_sales: float
    stock_turnover: float          # Annual turns at the recent sales rate
    days_of_supply: float
    is_overstocked: bool
    needs_reorder: bool            # current_stock <= minimum_stock
    stockout_risk: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sku": self.product.sku,
            "coverage": self.coverage.to_dict(),
            "insights": {
                "recentAverageDailySales": self.recent_average_daily_sales,
                "stockTurnover": self.stock_turnover,
                "daysOfSupply": self.days_of_supply,
                "isOverstocked": self.is_overstocked,
                "needsReorder": self.needs_reorder,
                "stockoutRisk": self.stockout_risk,
            },
        }


class StockCoverageService:
    """
    Coverage calculations for products known to a data source.

    Args:
        data_source: Injected SalesDataSource
        partial_config: Calculator configuration overrides
    """

    def __init__(self, data_source: SalesDataSource, partial_config: Optional[Mapping[str, Any]] = None):
        self.data_source = data_source
        self.calculator = StockCoverageCalculator(partial_config)

    def _load_input(self, sku: str, current_date: Optional[date]) -> StockCoverageInput:
        as_of = current_date or date.today()
        if isinstance(as_of, datetime):
            as_of = as_of.date()
        input_data = self.data_source.load_input(sku, as_of, self.calculator.config.historical_days)
        if input_data is None:
            raise StockCoverageCalculationError(
                StockCoverageError.INSUFFICIENT_DATA,
                "Product not found",
                {"sku": sku},
            )
        return input_data

    def calculate_coverage(self, sku: str, current_date: Optional[date] = None) -> StockCoverageResult:
        """
        Calculate coverage for one SKU.

        Raises:
            StockCoverageCalculationError: INSUFFICIENT_DATA if the SKU is unknown
        """
        return self.calculator.calculate(self._load_input(sku, current_date))

    def calculate_batch_coverage(
        self,
        skus: Optional[List[str]] = None,
        current_date: Optional[date] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Tuple[Dict[str, StockCoverageResult], BatchProcessingResult]:
        """
        Calculate coverage for many SKUs (all known SKUs by default).

        Unknown SKUs are reported as failed; they never stop the batch.

        Returns:
            (results by SKU, batch report)
        """
        skus = self.data_source.list_skus() if skus is None else list(skus)

        inputs: List[StockCoverageInput] = []
        missing: Dict[str, str] = {}
        for sku in skus:
            try:
                inputs.append(self._load_input(sku, current_date))
            except StockCoverageCalculationError as exc:
                logger.error("Cannot load input for SKU %s: %s", sku, exc)
                missing[sku] = exc.message

        results, report = run_coverage_batch(self.calculator, inputs, on_progress=on_progress, cancel_event=cancel_event)

        report.failed.extend(missing)
        report.errors.update(missing)
        return results, report

    def update_sales_and_recalculate(
        self,
        sku: str,
        observation: SalesObservation,
        current_date: Optional[date] = None,
    ) -> StockCoverageResult:
        """
        Record one day of sales, then recalculate.

        Without inventory data, availability is estimated: a full day when
        something sold, half a day otherwise.

        Raises:
            StockCoverageCalculationError: INSUFFICIENT_DATA if the SKU is unknown
        """
        if sku not in self.data_source.list_skus():
            raise StockCoverageCalculationError(
                StockCoverageError.INSUFFICIENT_DATA,
                "Product not found",
                {"sku": sku},
            )

        minutes = MINUTES_PER_DAY if observation.units_sold > 0 else NO_SALES_MINUTES_IN_STOCK
        self.data_source.upsert_sales(sku, observation)
        self.data_source.upsert_availability(sku, StockAvailability(date=observation.date, minutes_in_stock=minutes))
        return self.calculate_coverage(sku, current_date or observation.date)

    def get_stockout_risk_products(
        self,
        risk_threshold: float = DEFAULT_RISK_THRESHOLD,
        current_date: Optional[date] = None,
    ) -> List[StockoutRiskItem]:
        """Products with stockout_risk >= risk_threshold, highest risk first."""
        at_risk: List[StockoutRiskItem] = []
        for sku in self.data_source.list_skus():
            try:
                input_data = self._load_input(sku, current_date)
                coverage = self.calculator.calculate(input_data)
            except StockCoverageCalculationError as exc:
                logger.error("Failed to calculate coverage for SKU %s: %s", sku, exc)
                continue

            if coverage.stockout_risk >= risk_threshold:
                at_risk.append(StockoutRiskItem(
                    product=input_data.product,
                    coverage=coverage,
                    days_until_stockout=int(coverage.coverage_days),
                ))

        at_risk.sort(key=lambda item: item.coverage.stockout_risk, reverse=True)
        return at_risk

    def get_coverage_insights(self, sku: str, current_date: Optional[date] = None) -> CoverageInsights:
        """Coverage plus recent-sales, turnover, overstock and reorder indicators."""
        input_data = self._load_input(sku, current_date)
        coverage = self.calculator.calculate(input_data)
        product = input_data.product

        as_of = input_data.current_date or date.today()
        recent_start = as_of - timedelta(days=RECENT_SALES_DAYS - 1)
        recent_sales = sum(
            obs.units_sold for obs in input_data.sales_history
            if recent_start <= obs.date <= as_of
        )
        avg_daily_sales = recent_sales / RECENT_SALES_DAYS

        if avg_daily_sales > 0 and product.current_stock > 0:
            stock_turnover = 365 / (product.current_stock / avg_daily_sales)
        else:
            stock_turnover = 0.0

        return CoverageInsights(
            product=product,
            coverage=coverage,
            recent_average_daily_sales=avg_daily_sales,
            stock_turnover=stock_turnover,
            days_of_supply=coverage.coverage_days,
            is_overstocked=coverage.coverage_days > OVERSTOCK_COVERAGE_DAYS,
            needs_reorder=product.current_stock <= product.minimum_stock,
            stockout_risk=coverage.stockout_risk,
        )
