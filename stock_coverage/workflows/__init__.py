"""Workflows module."""
from .batch import run_coverage_batch
from .coverage_service import CoverageInsights, StockCoverageService, StockoutRiskItem

__all__ = ['run_coverage_batch', 'StockCoverageService', 'CoverageInsights', 'StockoutRiskItem']
