#!/usr/bin/env python3
"""
Stock coverage CLI.

Reads products with their sales history from a JSON file (or stdin) and
prints coverage results as JSON.

Usage:
    python -m stock_coverage input.json
    python -m stock_coverage input.json --preset conservative
    python -m stock_coverage input.json --config settings.json --indent 2
    cat input.json | python -m stock_coverage -

Exit codes:
    0 - every product calculated
    1 - invalid configuration or input file
    2 - at least one product failed (others are still printed)
"""
import argparse
import json
import sys
from typing import List, Optional

from .calculator import StockCoverageCalculator
from .config import CONFIG_PRESETS, get_preset_config, load_config_file
from .errors import StockCoverageCalculationError
from .serialization import inputs_from_payload, results_to_dict
from .utils.error_formatting import format_calculation_error
from .utils.logging_config import setup_logging
from .workflows.batch import run_coverage_batch


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m stock_coverage",
        description="Forecast demand and stock coverage days from sales history",
    )
    parser.add_argument("input", help="JSON input file ('-' for stdin)")
    parser.add_argument("--preset", choices=sorted(CONFIG_PRESETS), help="Start from a configuration preset")
    parser.add_argument("--config", help="JSON settings file with configuration overrides")
    parser.add_argument("--indent", type=int, default=None, help="Indent JSON output")
    parser.add_argument("--log-dir", default=None, help="Write warning/error log files to this directory")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.log_dir:
        setup_logging(args.log_dir)

    partial = get_preset_config(args.preset) if args.preset else {}

    try:
        if args.config:
            partial.update(load_config_file(args.config))

        calculator = StockCoverageCalculator(partial)

        if args.input == "-":
            payload = json.load(sys.stdin)
        else:
            with open(args.input, "r", encoding="utf-8") as f:
                payload = json.load(f)
        inputs = inputs_from_payload(payload)

    except StockCoverageCalculationError as exc:
        print(format_calculation_error(exc, "configure").format_for_display(), file=sys.stderr)
        return 1
    except (OSError, ValueError, KeyError) as exc:
        print(f"❌ Cannot read input: {exc}", file=sys.stderr)
        return 1

    results, report = run_coverage_batch(calculator, inputs)

    json.dump(results_to_dict(results, report.errors), sys.stdout, indent=args.indent)
    sys.stdout.write("\n")

    return 2 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
