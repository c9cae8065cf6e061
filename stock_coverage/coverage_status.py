"""
Presentation helpers for coverage results: readable durations, status bands
and reorder urgency.
"""
from enum import Enum


class CoverageStatus(Enum):
    CRITICAL = "critical"   # <= 7 days
    LOW = "low"             # <= 15 days
    WARNING = "warning"     # <= 30 days
    HEALTHY = "healthy"     # <= 60 days
    EXCESS = "excess"


class ReorderUrgency(Enum):
    IMMEDIATE = "immediate"  # Stock runs out within the lead time
    URGENT = "urgent"
    SOON = "soon"
    NORMAL = "normal"
    NONE = "none"


# (upper bound inclusive, status), evaluated in order
COVERAGE_STATUS_BANDS = (
    (7, CoverageStatus.CRITICAL),
    (15, CoverageStatus.LOW),
    (30, CoverageStatus.WARNING),
    (60, CoverageStatus.HEALTHY),
)

# (max days of slack after lead time, urgency)
REORDER_URGENCY_BANDS = (
    (0, ReorderUrgency.IMMEDIATE),
    (3, ReorderUrgency.URGENT),
    (7, ReorderUrgency.SOON),
    (14, ReorderUrgency.NORMAL),
)


def format_coverage_days(days: float) -> str:
    """
    Human-readable coverage.

    Examples:
        >>> format_coverage_days(0)
        'out of stock'
        >>> format_coverage_days(12.7)
        '12 days'
        >>> format_coverage_days(120)
        '4 months'
        >>> format_coverage_days(999)
        '> 1 year'
    """
    if days == 0:
        return "out of stock"
    if days < 1:
        return "< 1 day"
    if days == 1:
        return "1 day"
    if days > 365:
        return "> 1 year"
    if days > 90:
        return f"{int(days // 30)} months"
    return f"{int(days)} days"


def coverage_status(days: float) -> CoverageStatus:
    for upper, status in COVERAGE_STATUS_BANDS:
        if days <= upper:
            return status
    return CoverageStatus.EXCESS


def reorder_urgency(coverage_days: float, lead_time_days: float) -> ReorderUrgency:
    """Urgency from the days left after covering the lead time."""
    slack = coverage_days - lead_time_days
    for upper, urgency in REORDER_URGENCY_BANDS:
        if slack <= upper:
            return urgency
    return ReorderUrgency.NONE
