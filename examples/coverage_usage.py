"""
Example: Stock Coverage Usage

Demonstrates:
1. Single product coverage with a weekly pattern
2. Stockout days and promotions in the history
3. Batch calculation with progress and a failing SKU
4. Service over an in-memory data source (risk ranking, insights)
"""

from datetime import date, timedelta

from stock_coverage import (
    InMemorySalesDataSource,
    Product,
    SalesObservation,
    StockAvailability,
    StockCoverageCalculator,
    StockCoverageInput,
    StockCoverageService,
    coverage_status,
    format_coverage_days,
    get_preset_config,
    reorder_urgency,
)


TODAY = date(2024, 3, 31)


def _weekly_history(days=90, weekday_qty=10.0, weekend_qty=18.0):
    start = TODAY - timedelta(days=days - 1)
    history = []
    for i in range(days):
        d = start + timedelta(days=i)
        qty = weekend_qty if d.weekday() >= 5 else weekday_qty
        history.append(SalesObservation(date=d, units_sold=qty))
    return history


def basic_coverage_example():
    """One product, 90 days of history with busier weekends."""
    print("=" * 60)
    print("BASIC COVERAGE EXAMPLE")
    print("=" * 60)

    product = Product(
        sku="SKU001",
        current_stock=120,
        minimum_stock=20,
        maximum_stock=400,
        lead_time_days=5,
        cost_price=4.5,
    )
    calculator = StockCoverageCalculator()
    result = calculator.calculate(StockCoverageInput(
        product=product,
        sales_history=_weekly_history(),
        current_date=TODAY,
    ))

    print(f"\nDemand forecast: {result.demand_forecast:.2f} ± {result.demand_std_dev:.2f} units/day")
    print(f"Seasonality index: {result.seasonality_index:.3f}  Trend factor: {result.trend_factor:.4f}")
    print(f"\nCoverage:")
    print(f"  P10 (optimistic):   {result.coverage_days_p10:.1f} days")
    print(f"  P50 (median):       {result.coverage_days:.1f} days ({format_coverage_days(result.coverage_days)})")
    print(f"  P90 (conservative): {result.coverage_days_p90:.1f} days")
    print(f"  Status: {coverage_status(result.coverage_days).value}")
    print(f"\nReorder point: {result.reorder_point}  Reorder quantity: {result.reorder_quantity}")
    print(f"Stockout risk: {result.stockout_risk:.0%}  "
          f"Urgency: {reorder_urgency(result.coverage_days, product.lead_time_days).value}")
    print(f"Confidence: {result.confidence:.2f}  Data quality: {result.data_quality.overall_score:.2f}")


def censored_history_example():
    """Stockout days are imputed; promotion uplift is removed."""
    print("\n" + "=" * 60)
    print("STOCKOUTS AND PROMOTIONS")
    print("=" * 60)

    history = _weekly_history(days=60)
    stockout_days = {TODAY - timedelta(days=d) for d in (2, 3)}
    history = [
        SalesObservation(date=obs.date, units_sold=0) if obs.date in stockout_days
        else SalesObservation(date=obs.date, units_sold=obs.units_sold * 2.5, promotion=True) if obs.date.day == 15
        else obs
        for obs in history
    ]
    availability = [StockAvailability(date=d, minutes_in_stock=0) for d in stockout_days]

    calculator = StockCoverageCalculator(get_preset_config("aggressive"))
    result = calculator.calculate(StockCoverageInput(
        product=Product(sku="SKU002", current_stock=60, maximum_stock=300, lead_time_days=3),
        sales_history=history,
        stock_availability=availability,
        current_date=TODAY,
    ))

    quality = result.data_quality
    print(f"\nDays used: {result.historical_days_used}")
    print(f"Availability issues: {quality.availability_issues:.1%}  Outliers: {quality.outlier_percentage:.1%}")
    print(f"Average availability: {result.availability_adjustment:.3f}")
    print(f"Demand forecast: {result.demand_forecast:.2f} units/day")


def batch_example():
    """Batch with progress; one SKU has invalid stock levels."""
    print("\n" + "=" * 60)
    print("BATCH EXAMPLE")
    print("=" * 60)

    inputs = [
        StockCoverageInput(
            product=Product(sku=f"SKU{i:03d}", current_stock=stock, maximum_stock=500),
            sales_history=_weekly_history(days=30),
            current_date=TODAY,
        )
        for i, stock in enumerate([40, 250, -5, 12])
    ]

    calculator = StockCoverageCalculator({"batch_size": 2})
    results = calculator.calculate_batch(
        inputs,
        on_progress=lambda done, total: print(f"  progress: {done}/{total}"),
    )

    print(f"\nCalculated {len(results)} of {len(inputs)} SKUs")
    for sku, result in results.items():
        print(f"  {sku}: {result.coverage_days:6.1f} days  risk {result.stockout_risk:.0%}")


def service_example():
    """Risk ranking and insights through the service."""
    print("\n" + "=" * 60)
    print("SERVICE EXAMPLE")
    print("=" * 60)

    source = InMemorySalesDataSource()
    source.add_product(Product(sku="FAST", current_stock=30, minimum_stock=50, maximum_stock=600, lead_time_days=7), _weekly_history())
    source.add_product(Product(sku="SLOW", current_stock=900, minimum_stock=50, maximum_stock=1000, lead_time_days=7), _weekly_history(weekday_qty=3, weekend_qty=4))

    service = StockCoverageService(source)

    print("\nAt risk (>= 50%):")
    for item in service.get_stockout_risk_products(current_date=TODAY):
        print(f"  {item.product.sku}: risk {item.coverage.stockout_risk:.0%}, ~{item.days_until_stockout} days left")

    insights = service.get_coverage_insights("SLOW", current_date=TODAY)
    print(f"\nSLOW: {insights.days_of_supply:.0f} days of supply, "
          f"turnover {insights.stock_turnover:.1f}/year, overstocked={insights.is_overstocked}")


if __name__ == "__main__":
    basic_coverage_example()
    censored_history_example()
    batch_example()
    service_example()
