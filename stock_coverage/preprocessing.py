"""
Sales data preprocessing for stock coverage calculation.

Turns a raw, possibly gappy/noisy daily sales series into
ProcessedDataPoint records plus a DataQualityScore.

Steps:
1. Window: keep observations within the last `historical_days` days
   (one per date, last wins). Gaps are NOT filled: no synthetic points.
2. Availability adjustment: sales / availability factor on available days,
   capped at outlier_cap_multiplier × rolling median. Days below
   min_availability_factor are stockout days: zero sales there is not zero
   demand, so demand is imputed from comparable available days.
3. Robust outlier pass: modified z-score (MAD) capping.
4. Promotion normalisation (optional): remove promo uplift > 20%.

Capped points are flagged (is_outlier) but kept.
"""
import logging
import statistics
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, List

from .domain.models import (
    DataQualityScore,
    ProcessedDataPoint,
    StockCoverageConfig,
    StockCoverageInput,
)


logger = logging.getLogger(__name__)

ROLLING_MEDIAN_WINDOW = 7         # Neighbours on each side for the rolling median
IMPUTATION_LOOKBACK_DAYS = 28     # Same-weekday lookback for stockout imputation
MODIFIED_Z_THRESHOLD = 3.5
MODIFIED_Z_CONSTANT = 0.6745
PROMO_UPLIFT_THRESHOLD = 1.2      # Only normalise uplifts above +20%

# Data quality weights (sum = 1.0)
QUALITY_WEIGHT_COMPLETENESS = 0.3
QUALITY_WEIGHT_CONSISTENCY = 0.3
QUALITY_WEIGHT_AVAILABILITY = 0.2
QUALITY_WEIGHT_OUTLIERS = 0.2


def _upper_median(values: List[float]) -> float:
    """Median taking the upper middle element for even lengths."""
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


class DataPreprocessor:
    """Cleans raw sales history for one calculator configuration."""

    def __init__(self, config: StockCoverageConfig):
        self.config = config

    def preprocess(self, input_data: StockCoverageInput) -> List[ProcessedDataPoint]:
        """
        Preprocess raw input into cleaned data points.

        Args:
            input_data: Validated calculation input

        Returns:
            Chronological list of ProcessedDataPoint (may be empty)
        """
        current_date = input_data.current_date or date.today()
        window_start = current_date - timedelta(days=self.config.historical_days - 1)

        availability_by_date: Dict[date, float] = {
            record.date: record.availability_factor for record in input_data.stock_availability
        }

        sales_by_date = {}
        for record in input_data.sales_history:
            if window_start <= record.date <= current_date:
                sales_by_date[record.date] = record  # Duplicates: last wins

        points: List[ProcessedDataPoint] = []
        for day in sorted(sales_by_date):
            record = sales_by_date[day]
            factor = availability_by_date.get(day, 1.0)
            days_ago = (current_date - day).days
            points.append(ProcessedDataPoint(
                date=day,
                day_of_week=day.weekday(),
                original_sales=float(record.units_sold),
                availability_factor=factor,
                is_available=factor >= self.config.min_availability_factor,
                adjusted_demand=0.0,
                weight=0.5 ** (days_ago / self.config.half_life),
                is_promotion=bool(record.promotion),
                is_outlier=False,
            ))

        points = self.adjust_for_availability(points)
        points = self.detect_outliers(points)

        if self.config.enable_promotion_adjustment:
            points = self.adjust_for_promotions(points)

        n_dropped = len(input_data.sales_history) - len(points)
        if n_dropped:
            logger.debug(
                "SKU %s: %d observation(s) outside window or duplicated",
                input_data.product.sku, n_dropped,
            )

        return points

    def _rolling_median(self, points: List[ProcessedDataPoint], index: int) -> float:
        start = max(0, index - ROLLING_MEDIAN_WINDOW)
        end = min(len(points), index + ROLLING_MEDIAN_WINDOW + 1)
        window = [p.original_sales for p in points[start:end] if p.original_sales > 0]
        if not window:
            return points[index].original_sales
        return _upper_median(window)

    def adjust_for_availability(self, points: List[ProcessedDataPoint]) -> List[ProcessedDataPoint]:
        """
        Scale demand by availability and cap at multiplier × rolling median.

        Returns new points; stockout days are imputed after available days are
        known so imputation only draws on adjusted available demand.
        """
        medians = [self._rolling_median(points, i) for i in range(len(points))]
        adjusted: List[ProcessedDataPoint] = []

        for point, median in zip(points, medians):
            if not point.is_available:
                adjusted.append(point)
                continue

            demand = point.original_sales / max(point.availability_factor, self.config.min_availability_factor)
            cap = median * self.config.outlier_cap_multiplier
            capped = demand > cap
            adjusted.append(replace(
                point,
                adjusted_demand=min(demand, cap),
                is_outlier=capped,
            ))

        for i, point in enumerate(adjusted):
            if not point.is_available:
                adjusted[i] = replace(point, adjusted_demand=self.impute_demand(adjusted, i, medians[i]))

        return adjusted

    def impute_demand(self, points: List[ProcessedDataPoint], index: int, fallback_median: float) -> float:
        """
        Impute demand for a stockout day.

        Uses the mean of same-weekday available days in the preceding
        IMPUTATION_LOOKBACK_DAYS, falling back to the rolling median.
        """
        target = points[index]
        lookback_start = target.date - timedelta(days=IMPUTATION_LOOKBACK_DAYS)
        similar = [
            p.adjusted_demand
            for p in points[:index]
            if p.date >= lookback_start
            and p.day_of_week == target.day_of_week
            and p.is_available
        ]
        if similar:
            return sum(similar) / len(similar)
        return fallback_median

    def detect_outliers(self, points: List[ProcessedDataPoint]) -> List[ProcessedDataPoint]:
        """Cap points whose modified z-score exceeds MODIFIED_Z_THRESHOLD."""
        demands = [p.adjusted_demand for p in points if p.adjusted_demand > 0]
        if not demands:
            return list(points)

        median = _upper_median(demands)
        mad = _upper_median([abs(d - median) for d in demands])
        if mad == 0:
            return list(points)

        band = MODIFIED_Z_THRESHOLD * mad / MODIFIED_Z_CONSTANT
        upper = median + band
        lower = max(0.0, median - band)

        result = []
        for point in points:
            if point.adjusted_demand == 0:
                result.append(point)
                continue
            z_score = MODIFIED_Z_CONSTANT * (point.adjusted_demand - median) / mad
            if abs(z_score) > MODIFIED_Z_THRESHOLD:
                result.append(replace(
                    point,
                    adjusted_demand=max(lower, min(upper, point.adjusted_demand)),
                    is_outlier=True,
                ))
            else:
                result.append(point)
        return result

    def adjust_for_promotions(self, points: List[ProcessedDataPoint]) -> List[ProcessedDataPoint]:
        """Normalise promotional demand to baseline when uplift is significant."""
        promo = [p.adjusted_demand for p in points if p.is_promotion and not p.is_outlier]
        normal = [p.adjusted_demand for p in points if not p.is_promotion and not p.is_outlier]
        if not promo or not normal:
            return list(points)

        avg_normal = statistics.mean(normal)
        if avg_normal == 0:
            return list(points)

        uplift = statistics.mean(promo) / avg_normal
        if uplift <= PROMO_UPLIFT_THRESHOLD:
            return list(points)

        logger.debug("Normalising promo demand (uplift %.2f)", uplift)
        return [
            replace(p, adjusted_demand=p.adjusted_demand / uplift) if p.is_promotion else p
            for p in points
        ]

    def calculate_data_quality(
        self,
        input_data: StockCoverageInput,
        points: List[ProcessedDataPoint],
    ) -> DataQualityScore:
        """
        Score the cleaned series.

        completeness uses historical_days as the expected day count, so a short
        history lowers the score instead of failing the calculation.
        """
        if not points:
            return DataQualityScore(
                completeness=0.0,
                consistency=0.0,
                availability_issues=0.0,
                outlier_percentage=0.0,
                overall_score=0.0,
            )

        n_points = len(points)
        completeness = min(1.0, n_points / self.config.historical_days)
        availability_issues = sum(1 for p in points if not p.is_available) / n_points
        outlier_percentage = sum(1 for p in points if p.is_outlier) / n_points

        demands = [p.adjusted_demand for p in points if not p.is_outlier]
        if demands:
            mean = statistics.mean(demands)
            cv = statistics.pstdev(demands) / mean if mean > 0 else 1.0
        else:
            cv = 1.0
        consistency = max(0.0, 1.0 - cv)

        overall = (
            completeness * QUALITY_WEIGHT_COMPLETENESS
            + consistency * QUALITY_WEIGHT_CONSISTENCY
            + (1 - availability_issues) * QUALITY_WEIGHT_AVAILABILITY
            + (1 - outlier_percentage) * QUALITY_WEIGHT_OUTLIERS
        )

        return DataQualityScore(
            completeness=completeness,
            consistency=consistency,
            availability_issues=availability_issues,
            outlier_percentage=outlier_percentage,
            overall_score=max(0.0, min(1.0, overall)),
        )
