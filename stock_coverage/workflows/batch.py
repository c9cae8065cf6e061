"""
Chunked concurrent coverage calculation.

Architecture
------------
* Inputs are split into chunks of ``config.batch_size``. Chunks run one after
  another; the items of a chunk run concurrently on a ``ThreadPoolExecutor``.
* One failing SKU never fails the batch: its error is logged, recorded in the
  BatchProcessingResult and the SKU is left out of the results.
* The results dict is only written by the orchestrating thread, after a
  chunk's futures have completed.
* ``on_progress(completed, total)`` is called after every chunk. Callback
  errors are logged and swallowed.
* ``cancel_event`` is checked between chunks (cooperative cancellation);
  a running chunk always finishes.
* A SKU that appears more than once is calculated each time; the last
  occurrence wins and the SKU is reported once.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from collections import Counter
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from ..domain.models import BatchProcessingResult, StockCoverageInput, StockCoverageResult
from ..utils.error_formatting import format_calculation_error

if TYPE_CHECKING:
    from ..calculator import StockCoverageCalculator

logger = logging.getLogger(__name__)


def _sku_of(input_data: StockCoverageInput, index: int) -> str:
    sku = getattr(getattr(input_data, "product", None), "sku", None)
    return str(sku) if sku else f"<item {index}>"


def _record(report: BatchProcessingResult, sku: str, error: Optional[str] = None) -> None:
    if sku in report.successful:
        report.successful.remove(sku)
    if sku in report.failed:
        report.failed.remove(sku)
        report.errors.pop(sku, None)

    if error is None:
        report.successful.append(sku)
    else:
        report.failed.append(sku)
        report.errors[sku] = error


def run_coverage_batch(
    calculator: "StockCoverageCalculator",
    inputs: List[StockCoverageInput],
    on_progress: Optional[Callable[[int, int], None]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Tuple[Dict[str, StockCoverageResult], BatchProcessingResult]:
    """
    Calculate coverage for every input.

    Parameters
    ----------
    calculator : StockCoverageCalculator
        Configured calculator; its ``batch_size`` sets chunk size and the
        number of worker threads.
    inputs : list[StockCoverageInput]
    on_progress : callable(completed: int, total: int) | None
        Called after each chunk with the cumulative number of processed items.
    cancel_event : threading.Event | None
        When set, no further chunk is started.

    Returns
    -------
    (dict {sku: StockCoverageResult}, BatchProcessingResult)
    """
    total = len(inputs)
    report = BatchProcessingResult()
    results: Dict[str, StockCoverageResult] = {}
    if total == 0:
        return results, report

    duplicates = sorted(sku for sku, n in Counter(_sku_of(item, i) for i, item in enumerate(inputs)).items() if n > 1)
    if duplicates:
        logger.warning("Duplicate SKU(s) in batch, last occurrence wins: %s", ", ".join(duplicates))

    batch_size = calculator.config.batch_size
    started = time.perf_counter()
    completed = 0

    with ThreadPoolExecutor(max_workers=min(batch_size, total)) as executor:
        for offset in range(0, total, batch_size):
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                logger.warning("Batch cancelled after %d of %d item(s)", completed, total)
                break

            chunk = inputs[offset:offset + batch_size]
            futures = [
                (_sku_of(item, offset + i), executor.submit(calculator.calculate, item))
                for i, item in enumerate(chunk)
            ]

            for sku, future in futures:
                try:
                    results[sku] = future.result()
                    _record(report, sku)
                except Exception as exc:
                    error = format_calculation_error(exc, "batch", sku=sku)
                    logger.error("Coverage calculation failed for SKU %s: %s", sku, error.format_for_log())
                    results.pop(sku, None)
                    _record(report, sku, error.message)

            completed += len(chunk)
            if on_progress:
                try:
                    on_progress(completed, total)
                except Exception as exc:
                    logger.warning("Batch progress callback raised: %s", exc)

    report.total_time = time.perf_counter() - started
    if completed:
        report.average_time_per_sku = report.total_time / completed

    logger.info(
        "Batch done: %d ok, %d failed, %.3fs",
        len(report.successful), len(report.failed), report.total_time,
    )
    return results, report
