"""
Configuration validator for the stock coverage engine.

Every field is checked independently and all violations are reported
together; nothing is applied unless the whole configuration is valid.

Keys may be snake_case (Python) or camelCase (external callers, e.g.
"historicalDays").
"""
import math
import re
from dataclasses import fields
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .config import CONFIG_BOUNDS, DEFAULT_CONFIG
from .domain.models import StockCoverageConfig
from .errors import ConfigIssue, ConfigValidationError


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _normalize_key(key: str) -> str:
    """historicalDays -> historical_days (snake_case passes through)."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _check_field(name: str, value: Any) -> Optional[str]:
    """Return the violated constraint for one field, or None."""
    kind, low, high, low_exclusive = CONFIG_BOUNDS[name]

    if kind == "bool":
        if not isinstance(value, bool):
            return "must be a boolean"
        return None

    if isinstance(value, bool) or not isinstance(value, Real):
        return "must be a number"
    if not math.isfinite(value):
        return "must be a finite number"
    if kind == "int" and value != int(value):
        return "must be an integer"

    if low_exclusive and value <= low:
        return f"must be greater than {low}"
    if not low_exclusive and value < low:
        return f"must be at least {low}"
    if value > high:
        return f"cannot exceed {high}"

    return None


def safe_validate_config(raw: Mapping[str, Any]) -> Tuple[Optional[StockCoverageConfig], List[ConfigIssue]]:
    """
    Validate a complete raw configuration without raising.

    Args:
        raw: Mapping with every StockCoverageConfig field

    Returns:
        (config, []) when valid, (None, issues) otherwise
    """
    if not isinstance(raw, Mapping):
        return None, [ConfigIssue("<config>", raw, "must be a mapping")]

    issues: List[ConfigIssue] = []
    values: Dict[str, Any] = {}

    for key, value in raw.items():
        name = _normalize_key(str(key))
        if name not in CONFIG_BOUNDS:
            issues.append(ConfigIssue(str(key), value, "unknown configuration field"))
            continue
        values[name] = value

    for name in CONFIG_BOUNDS:
        if name not in values:
            issues.append(ConfigIssue(name, None, "is required"))
            continue
        constraint = _check_field(name, values[name])
        if constraint is not None:
            issues.append(ConfigIssue(name, values[name], constraint))

    if issues:
        return None, issues

    for name, (kind, _low, _high, _excl) in CONFIG_BOUNDS.items():
        if kind == "int":
            values[name] = int(values[name])

    return StockCoverageConfig(**values), []


def validate_config(raw: Mapping[str, Any]) -> StockCoverageConfig:
    """
    Validate a complete raw configuration.

    Raises:
        ConfigValidationError: listing every violated field
    """
    config, issues = safe_validate_config(raw)
    if issues:
        raise ConfigValidationError(issues)
    return config


def merge_and_validate_config(
    partial: Optional[Mapping[str, Any]] = None,
    defaults: StockCoverageConfig = DEFAULT_CONFIG,
) -> StockCoverageConfig:
    """
    Merge a partial configuration over defaults and validate the result.

    Args:
        partial: Overrides (snake_case or camelCase keys); None = defaults only
        defaults: Baseline configuration

    Returns:
        Validated StockCoverageConfig

    Raises:
        ConfigValidationError: listing every violated field
    """
    merged: Dict[str, Any] = {f.name: getattr(defaults, f.name) for f in fields(defaults)}
    if partial is not None:
        if not isinstance(partial, Mapping):
            raise ConfigValidationError([ConfigIssue("<config>", partial, "must be a mapping")])
        for key, value in partial.items():
            name = _normalize_key(str(key))
            # Keep the caller's spelling for unknown keys so the issue names them
            merged[name if name in CONFIG_BOUNDS else str(key)] = value
    return validate_config(merged)


def format_config_errors(issues: List[ConfigIssue]) -> List[str]:
    """Readable "field: message" lines."""
    return [f"{issue.field}: {issue.constraint}" for issue in issues]
