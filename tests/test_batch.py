"""
Tests for chunked batch calculation: failure isolation, progress reporting
and cooperative cancellation.
"""
import logging
import threading
from datetime import date, timedelta

import pytest

from stock_coverage.calculator import StockCoverageCalculator
from stock_coverage.domain.models import Product, SalesObservation, StockCoverageInput
from stock_coverage.workflows.batch import run_coverage_batch


CURRENT_DATE = date(2024, 3, 31)


def _input(sku, current_stock=100):
    history = [
        SalesObservation(date=CURRENT_DATE - timedelta(days=i), units_sold=10)
        for i in range(30)
    ]
    return StockCoverageInput(
        product=Product(sku=sku, current_stock=current_stock, minimum_stock=0, maximum_stock=500),
        sales_history=history,
        current_date=CURRENT_DATE,
    )


class TestPartialFailure:

    def test_invalid_item_isolated(self, caplog):
        calculator = StockCoverageCalculator()
        inputs = [_input("SKU001"), _input("SKU002", current_stock=-1), _input("SKU003")]

        with caplog.at_level(logging.ERROR, logger="stock_coverage"):
            results = calculator.calculate_batch(inputs)

        assert set(results) == {"SKU001", "SKU003"}
        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(failures) == 1
        assert "SKU002" in failures[0].getMessage()

    def test_report(self):
        calculator = StockCoverageCalculator()
        inputs = [_input("SKU001"), _input("SKU002", current_stock=-1), _input("SKU003")]

        results, report = run_coverage_batch(calculator, inputs)

        assert report.successful == ["SKU001", "SKU003"]
        assert report.failed == ["SKU002"]
        assert "current_stock cannot be negative" in report.errors["SKU002"]
        assert report.total_time >= 0.0
        assert report.average_time_per_sku == pytest.approx(report.total_time / 3)
        assert not report.cancelled
        assert results["SKU001"].coverage_days == pytest.approx(10.0)

    def test_empty_batch(self):
        results, report = run_coverage_batch(StockCoverageCalculator(), [])
        assert results == {}
        assert report.successful == [] and report.failed == []

    def test_duplicate_sku_last_wins(self, caplog):
        inputs = [_input("SKU001"), _input("SKU002"), _input("SKU001", current_stock=200)]

        with caplog.at_level(logging.WARNING, logger="stock_coverage"):
            results, report = run_coverage_batch(StockCoverageCalculator(), inputs)

        assert report.successful == ["SKU002", "SKU001"]
        assert results["SKU001"].coverage_days == pytest.approx(20.0)
        assert any("Duplicate SKU" in r.getMessage() and "SKU001" in r.getMessage() for r in caplog.records)

    def test_duplicate_sku_failing_last(self):
        inputs = [_input("SKU001"), _input("SKU001", current_stock=-1)]

        results, report = run_coverage_batch(StockCoverageCalculator(), inputs)

        assert report.successful == []
        assert report.failed == ["SKU001"]
        assert results == {}


class TestProgress:

    def test_called_after_every_chunk(self):
        calculator = StockCoverageCalculator({"batch_size": 2})
        calls = []
        calculator.calculate_batch(
            [_input(f"SKU{i:03d}") for i in range(5)],
            on_progress=lambda completed, total: calls.append((completed, total)),
        )
        assert calls == [(2, 5), (4, 5), (5, 5)]

    def test_callback_error_does_not_stop_batch(self, caplog):
        calculator = StockCoverageCalculator({"batch_size": 1})

        def broken(completed, total):
            raise RuntimeError("progress bar gone")

        with caplog.at_level(logging.WARNING, logger="stock_coverage"):
            results = calculator.calculate_batch([_input("A"), _input("B")], on_progress=broken)

        assert set(results) == {"A", "B"}
        assert any("progress callback" in r.getMessage() for r in caplog.records)

    def test_results_same_as_single_calculation(self):
        calculator = StockCoverageCalculator({"batch_size": 3})
        inputs = [_input(f"SKU{i}", current_stock=10 * (i + 1)) for i in range(7)]
        results = calculator.calculate_batch(inputs)
        for input_data in inputs:
            single = calculator.calculate(input_data)
            assert results[input_data.product.sku].coverage_days == pytest.approx(single.coverage_days)


class TestCancellation:

    def test_cancelled_before_start(self):
        calculator = StockCoverageCalculator({"batch_size": 2})
        cancel = threading.Event()
        cancel.set()
        results, report = run_coverage_batch(calculator, [_input("A"), _input("B")], cancel_event=cancel)
        assert results == {}
        assert report.cancelled

    def test_cancelled_between_chunks(self):
        calculator = StockCoverageCalculator({"batch_size": 2})
        cancel = threading.Event()

        def stop_after_first_chunk(completed, total):
            cancel.set()

        results, report = run_coverage_batch(
            calculator,
            [_input(f"SKU{i}") for i in range(6)],
            on_progress=stop_after_first_chunk,
            cancel_event=cancel,
        )
        assert set(results) == {"SKU0", "SKU1"}
        assert report.cancelled
