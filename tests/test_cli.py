"""
Tests for JSON payload parsing and the command-line entry point.
"""
import json
import logging
from datetime import date, datetime, timedelta

import pytest

from stock_coverage.__main__ import main
from stock_coverage.serialization import input_from_dict, inputs_from_payload, parse_date


def _product_payload(sku="SKU001", current_stock=100, days=30):
    end = date(2024, 3, 31)
    return {
        "sku": sku,
        "currentStock": current_stock,
        "minimumStock": 10,
        "maximumStock": 500,
        "leadTimeDays": 7,
        "costPrice": 5.0,
        "currentDate": end.isoformat(),
        "salesHistory": [
            {"date": (end - timedelta(days=i)).isoformat(), "unitsSold": 10}
            for i in range(days)
        ],
    }


class TestParsing:

    def test_parse_date(self):
        assert parse_date("2024-03-31") == date(2024, 3, 31)
        assert parse_date("2024-03-31T10:00:00Z") == date(2024, 3, 31)
        assert parse_date(datetime(2024, 3, 31, 12)) == date(2024, 3, 31)
        assert type(parse_date(datetime(2024, 3, 31, 12))) is date
        with pytest.raises(ValueError):
            parse_date("31/03/2024")

    def test_camel_case_product(self):
        input_data = input_from_dict(_product_payload())
        assert input_data.product.current_stock == 100
        assert input_data.product.cost_price == 5.0
        assert len(input_data.sales_history) == 30
        assert input_data.current_date == date(2024, 3, 31)

    def test_snake_case_and_availability(self):
        input_data = input_from_dict({
            "product": {"sku": "X", "current_stock": 3, "lead_time_days": 2},
            "sales_history": [{"date": "2024-01-01", "units_sold": 4, "promotion": True}],
            "stock_availability": [{"date": "2024-01-01", "minutes_in_stock": 720}],
        })
        assert input_data.product.lead_time_days == 2
        assert input_data.sales_history[0].promotion
        assert input_data.stock_availability[0].availability_factor == 0.5
        assert input_data.current_date is None

    def test_products_envelope(self):
        payload = {"currentDate": "2024-02-01", "products": [{"sku": "A", "currentStock": 1}]}
        inputs = inputs_from_payload(payload)
        assert inputs[0].current_date == date(2024, 2, 1)

    def test_bad_payload(self):
        with pytest.raises(ValueError):
            inputs_from_payload("nonsense")


class TestMain:

    def test_prints_results(self, tmp_path, capsys):
        path = tmp_path / "input.json"
        path.write_text(json.dumps([_product_payload("A"), _product_payload("B", current_stock=-1)]), encoding="utf-8")

        exit_code = main([str(path)])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 2
        assert set(output["results"]) == {"A"}
        assert output["results"]["A"]["algorithm"] == "EWMA_TREND_SEASONALITY_V1"
        assert output["results"]["A"]["coverageDays"] == pytest.approx(10.0)
        assert "B" in output["errors"]

    def test_success_exit_code(self, tmp_path, capsys):
        path = tmp_path / "input.json"
        path.write_text(json.dumps(_product_payload()), encoding="utf-8")
        assert main([str(path), "--preset", "conservative"]) == 0
        assert "SKU001" in json.loads(capsys.readouterr().out)["results"]

    def test_invalid_config_file(self, tmp_path, capsys):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"historicalDays": 2}), encoding="utf-8")
        path = tmp_path / "input.json"
        path.write_text(json.dumps(_product_payload()), encoding="utf-8")

        assert main([str(path), "--config", str(settings)]) == 1
        assert "historical_days" in capsys.readouterr().err

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.json")]) == 1
        assert "Cannot read input" in capsys.readouterr().err

    def test_log_dir(self, tmp_path, capsys):
        path = tmp_path / "input.json"
        path.write_text(json.dumps(_product_payload()), encoding="utf-8")
        app_logger = logging.getLogger("stock_coverage")
        try:
            assert main([str(path), "--log-dir", str(tmp_path / "logs")]) == 0
            assert (tmp_path / "logs").is_dir()
            assert app_logger.handlers
        finally:
            for handler in list(app_logger.handlers):
                handler.close()
                app_logger.removeHandler(handler)
            app_logger.setLevel(logging.NOTSET)
