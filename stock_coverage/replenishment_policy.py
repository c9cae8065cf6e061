"""
Reorder point / reorder quantity policy.

Policy Formula:
    LTD  = μ × L                               (Lead-time demand)
    SS   = z(CSL) × σ × √L + safety_days × μ    (Safety stock)
    ROP  = ceil(LTD + SS)                       (Reorder point)
    EOQ  = √(2 × D_year × K / (h × c))          (Economic order quantity)
    Q    = clamp(ceil(EOQ), minimum_stock, maximum_stock - current_stock)

Where:
    - μ, σ: Daily demand forecast and standard deviation
    - L: Lead time in days
    - K: Fixed ordering cost, h: annual holding cost rate, c: unit cost

When the unit cost is zero or unknown, Q falls back to filling up to
maximum_stock. K and h are calibrated constants, not supplier data.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .domain.models import Product, StockCoverageConfig
from .uncertainty import calculate_safety_stock, calculate_stockout_probability


ORDERING_COST = 50.0        # Assumed fixed cost per order
HOLDING_COST_RATE = 0.25    # 25% of unit cost per year
DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class ReorderRecommendation:
    """Replenishment recommendation for one product."""
    reorder_point: int
    reorder_quantity: int
    stockout_risk: float
    safety_stock: float
    lead_time_demand: float


def calculate_reorder_point(lead_time_demand: float, safety_stock: float) -> int:
    """
    Reorder point rounded up to whole units.

    Examples:
        >>> calculate_reorder_point(70.0, 10.2)
        81
    """
    return int(math.ceil(lead_time_demand + safety_stock))


def economic_order_quantity(
    annual_demand: float,
    unit_cost: Optional[float],
    ordering_cost: float = ORDERING_COST,
    holding_cost_rate: float = HOLDING_COST_RATE,
) -> Optional[float]:
    """
    Classic EOQ.

    Returns:
        EOQ in units, or None when unit_cost is zero/unknown

    Examples:
        >>> round(economic_order_quantity(3650, 10.0), 1)  # √(2×3650×50 / 2.5)
        382.1
    """
    if not unit_cost or unit_cost <= 0:
        return None
    return math.sqrt(2 * max(0.0, annual_demand) * ordering_cost / (holding_cost_rate * unit_cost))


def clamp_order_quantity(quantity: float, product: Product) -> int:
    """
    Clamp an order quantity to [minimum_stock, maximum_stock - current_stock].

    The upper bound wins when the bounds cross; the result is never negative.

    Examples:
        >>> p = Product(sku="A", current_stock=20, minimum_stock=10, maximum_stock=100)
        >>> clamp_order_quantity(3, p)
        10
        >>> clamp_order_quantity(500, p)
        80
    """
    lower = int(math.ceil(product.minimum_stock))
    upper = int(math.floor(product.maximum_stock - product.current_stock))

    quantity = max(int(math.ceil(quantity)), lower)
    quantity = min(quantity, upper)

    return max(0, quantity)


def calculate_reorder_quantity(product: Product, demand_forecast: float) -> int:
    """EOQ (or fill-to-max fallback) clamped to the product's stock limits."""
    eoq = economic_order_quantity(demand_forecast * DAYS_PER_YEAR, product.cost_price)
    if eoq is None:
        eoq = product.maximum_stock - product.current_stock
    return clamp_order_quantity(eoq, product)


def days_until_stockout(current_stock: float, demand_forecast: float) -> float:
    """Days the current stock lasts at the forecast rate (inf with no demand)."""
    if demand_forecast <= 0:
        return math.inf if current_stock > 0 else 0.0
    return current_stock / demand_forecast


def recommend_replenishment(
    product: Product,
    demand_forecast: float,
    demand_std_dev: float,
    config: StockCoverageConfig,
) -> ReorderRecommendation:
    """
    Compute reorder point, reorder quantity and stockout risk.

    Args:
        product: Validated product
        demand_forecast: Daily demand forecast (μ)
        demand_std_dev: Daily demand standard deviation (σ)
        config: Calculator configuration (service level, safety stock days)

    Returns:
        ReorderRecommendation

    Notes:
        - Zero demand: reorder point from safety stock only, stockout risk 0
    """
    lead_time_demand = demand_forecast * product.lead_time_days
    safety_stock = calculate_safety_stock(
        demand_forecast=demand_forecast,
        demand_std_dev=demand_std_dev,
        lead_time_days=product.lead_time_days,
        service_level=config.service_level,
        safety_stock_days=config.safety_stock_days,
    )

    if demand_forecast > 0:
        stockout_risk = calculate_stockout_probability(
            days_until_stockout(product.current_stock, demand_forecast),
            product.lead_time_days,
            demand_std_dev / demand_forecast,
        )
    else:
        stockout_risk = 0.0

    return ReorderRecommendation(
        reorder_point=calculate_reorder_point(lead_time_demand, safety_stock),
        reorder_quantity=calculate_reorder_quantity(product, demand_forecast),
        stockout_risk=stockout_risk,
        safety_stock=safety_stock,
        lead_time_demand=lead_time_demand,
    )
