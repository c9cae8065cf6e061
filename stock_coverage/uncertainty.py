"""
Uncertainty helpers for coverage and safety stock.

Provides:
- Standard-normal z-scores for percentile demand scenarios and service levels
- Time aggregation of daily sigma over a lead time (σ_L = σ_day × √L)
- Safety stock for a target service level
- Bounded stockout-probability heuristic

Mathematical Foundation:
    For lead time L days with independent daily errors:
    σ_L = σ_day × √L
    SS  = z(service_level) × σ_L + safety_stock_days × μ_day

The stockout probability is a calibrated heuristic, not a closed-form
distribution; its band thresholds are kept as named constants.
"""

from typing import Dict


# Standard-normal quantiles
Z_SCORES: Dict[str, float] = {
    "P10": -1.282,  # 10th percentile (low demand, optimistic coverage)
    "P50": 0.0,     # Median
    "P90": 1.282,   # 90th percentile (high demand, conservative coverage)
    "P95": 1.645,   # 95% one-tailed service level
    "P99": 2.326,
}

# One-tailed z-score lookup by cycle service level
CSL_Z_SCORES: Dict[float, float] = {
    0.50: 0.000,
    0.75: 0.674,
    0.80: 0.842,
    0.85: 1.036,
    0.90: 1.282,
    0.95: 1.645,
    0.98: 2.054,
    0.99: 2.326,
    0.995: 2.576,
    0.999: 3.090,
}

# Two-tailed z-score lookup for confidence intervals
CONFIDENCE_Z_SCORES: Dict[float, float] = {
    0.90: 1.645,
    0.95: 1.960,
    0.99: 2.576,
}

# Stockout probability bands: (min ratio days_until_stockout / lead_time, scale, offset)
# risk = scale × (1 + CV) - offset, evaluated top-down
STOCKOUT_RISK_BANDS = (
    (1.5, 0.1, 0.1),
    (1.0, 0.3, 0.2),
    (0.5, 0.6, 0.3),
)
STOCKOUT_RISK_CRITICAL_SCALE = 0.9   # ratio <= 0.5
STOCKOUT_SAFE_LEAD_TIME_MULTIPLE = 2  # beyond 2× lead time risk is 0


def z_score_for_service_level(service_level: float) -> float:
    """
    Get z-score for a target cycle service level.

    Uses the closest entry in CSL_Z_SCORES.

    Examples:
        >>> z_score_for_service_level(0.95)
        1.645
        >>> z_score_for_service_level(0.951)
        1.645
    """
    if service_level in CSL_Z_SCORES:
        return CSL_Z_SCORES[service_level]

    closest = min(CSL_Z_SCORES, key=lambda level: abs(level - service_level))
    return CSL_Z_SCORES[closest]


def z_score_for_confidence(confidence_level: float) -> float:
    """Two-tailed z-score for a confidence interval (default 1.96)."""
    return CONFIDENCE_Z_SCORES.get(confidence_level, 1.960)


def sigma_over_horizon(protection_period_days: float, sigma_daily: float) -> float:
    """
    Scale daily uncertainty to a multi-day period.

    Formula:
        σ_P = σ_day × √P

    Examples:
        >>> sigma_over_horizon(4, 10.0)
        20.0

    Notes:
        - Returns 0.0 if sigma_daily <= 0 or P <= 0
        - Assumes independent daily errors
    """
    if protection_period_days <= 0 or sigma_daily <= 0:
        return 0.0

    return sigma_daily * (protection_period_days ** 0.5)


def calculate_safety_stock(
    demand_forecast: float,
    demand_std_dev: float,
    lead_time_days: float,
    service_level: float,
    safety_stock_days: float,
) -> float:
    """
    Safety stock = service-level buffer over lead-time variability plus a flat
    `safety_stock_days` of forecast demand.

    Args:
        demand_forecast: Daily demand forecast (μ)
        demand_std_dev: Daily demand standard deviation (σ)
        lead_time_days: Replenishment lead time (L)
        service_level: Target cycle service level
        safety_stock_days: Extra days of cover

    Returns:
        float: Safety stock in units (>= 0)
    """
    z = z_score_for_service_level(service_level)
    buffer = z * sigma_over_horizon(lead_time_days, demand_std_dev)
    return max(0.0, buffer + safety_stock_days * max(0.0, demand_forecast))


def calculate_stockout_probability(
    days_until_stockout: float,
    lead_time_days: float,
    coefficient_of_variation: float,
) -> float:
    """
    Heuristic probability of stocking out before replenishment arrives.

    - 0 when stock outlasts STOCKOUT_SAFE_LEAD_TIME_MULTIPLE × lead time
    - 1 when already stocked out
    - otherwise a band on days_until_stockout / lead_time, inflated by CV

    Returns:
        float in [0, 1]

    Examples:
        >>> calculate_stockout_probability(30, 7, 0.2)
        0.0
        >>> calculate_stockout_probability(0, 7, 0.2)
        1.0
    """
    if days_until_stockout > lead_time_days * STOCKOUT_SAFE_LEAD_TIME_MULTIPLE:
        return 0.0

    if days_until_stockout <= 0:
        return 1.0

    ratio = days_until_stockout / lead_time_days
    variability = 1 + max(0.0, coefficient_of_variation)

    for min_ratio, scale, offset in STOCKOUT_RISK_BANDS:
        if ratio > min_ratio:
            return max(0.0, min(1.0, scale * variability - offset))

    return max(0.0, min(1.0, STOCKOUT_RISK_CRITICAL_SCALE * variability))
