"""
Tests for reorder point, EOQ and reorder quantity clamping.

Reorder quantity is always within [minimum_stock, maximum_stock - current_stock]
(upper bound wins) and never negative.
"""
import math

import pytest

from stock_coverage.config_validator import merge_and_validate_config
from stock_coverage.domain.models import Product
from stock_coverage.replenishment_policy import (
    calculate_reorder_point,
    calculate_reorder_quantity,
    clamp_order_quantity,
    days_until_stockout,
    economic_order_quantity,
    recommend_replenishment,
)


def _product(**overrides):
    values = dict(
        sku="SKU001",
        current_stock=100,
        minimum_stock=10,
        maximum_stock=500,
        lead_time_days=7,
        cost_price=5.0,
    )
    values.update(overrides)
    return Product(**values)


class TestReorderPoint:

    def test_rounds_up(self):
        assert calculate_reorder_point(70.0, 10.01) == 81

    def test_integer_sum_unchanged(self):
        assert calculate_reorder_point(70.0, 30.0) == 100


class TestEconomicOrderQuantity:

    def test_formula(self):
        assert economic_order_quantity(3650, 5.0) == pytest.approx(math.sqrt(2 * 3650 * 50 / (0.25 * 5.0)))

    @pytest.mark.parametrize("cost", [None, 0, 0.0])
    def test_unknown_cost(self, cost):
        assert economic_order_quantity(3650, cost) is None

    def test_zero_demand(self):
        assert economic_order_quantity(0, 5.0) == 0.0


class TestClamp:

    def test_raised_to_minimum(self):
        assert clamp_order_quantity(3, _product(current_stock=20)) == 10

    def test_capped_to_headroom(self):
        assert clamp_order_quantity(1000, _product(current_stock=450)) == 50

    def test_fraction_rounded_up(self):
        assert clamp_order_quantity(20.2, _product()) == 21

    def test_upper_bound_wins_when_bounds_cross(self):
        # headroom 5 < minimum 10
        assert clamp_order_quantity(50, _product(current_stock=495)) == 5

    def test_never_negative(self):
        assert clamp_order_quantity(50, _product(current_stock=600)) == 0

    @pytest.mark.parametrize("quantity", [0, 1, 9, 10, 11, 250, 400, 401, 10_000])
    def test_within_bounds(self, quantity):
        product = _product()
        result = clamp_order_quantity(quantity, product)
        assert product.minimum_stock <= result <= product.maximum_stock - product.current_stock


class TestReorderQuantity:

    def test_eoq_capped(self):
        # EOQ ≈ 540.4 > headroom 400
        assert calculate_reorder_quantity(_product(), 10.0) == 400

    def test_eoq_within_bounds(self):
        # annual 365, cost 50 → √(2×365×50 / 12.5) ≈ 54.04
        assert calculate_reorder_quantity(_product(cost_price=50.0), 1.0) == 55

    def test_fill_to_max_without_cost(self):
        assert calculate_reorder_quantity(_product(cost_price=None), 10.0) == 400


class TestRecommendation:

    def test_zero_demand_no_risk(self):
        config = merge_and_validate_config()
        recommendation = recommend_replenishment(_product(), 0.0, 0.0, config)
        assert recommendation.stockout_risk == 0.0
        assert recommendation.reorder_point == 0

    def test_reorder_point_includes_safety_stock(self):
        config = merge_and_validate_config({"safety_stock_days": 0, "service_level": 0.5})
        recommendation = recommend_replenishment(_product(), 10.0, 3.0, config)
        # z(0.5) = 0 → reorder point is the lead-time demand
        assert recommendation.reorder_point == 70
        assert recommendation.lead_time_demand == pytest.approx(70.0)

    def test_low_stock_high_risk(self):
        config = merge_and_validate_config()
        recommendation = recommend_replenishment(_product(current_stock=5), 10.0, 3.0, config)
        assert recommendation.stockout_risk == 1.0

    def test_days_until_stockout(self):
        assert days_until_stockout(100, 10) == 10
        assert days_until_stockout(100, 0) == math.inf
        assert days_until_stockout(0, 0) == 0.0
