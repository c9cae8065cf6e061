"""
Configuration defaults, bounds and presets.

DEFAULT_CONFIG is the baseline every partial configuration is merged into.
CONFIG_BOUNDS is the single source of truth for validation
(see config_validator.py).
"""
from pathlib import Path
import json
import logging
from typing import Any, Dict, Union

from .domain.models import StockCoverageConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG = StockCoverageConfig()

# field -> (kind, min, max, min_exclusive)
# kind: "int" (integral number), "float" (any real number), "bool"
CONFIG_BOUNDS: Dict[str, tuple] = {
    "historical_days": ("int", 7, 365, False),
    "forecast_horizon": ("int", 1, 90, False),
    "half_life": ("float", 0, 90, True),
    "min_availability_factor": ("float", 0.1, 1, False),
    "outlier_cap_multiplier": ("float", 1, 10, False),
    "enable_seasonality": ("bool", None, None, False),
    "enable_trend_correction": ("bool", None, None, False),
    "enable_promotion_adjustment": ("bool", None, None, False),
    "enable_cache": ("bool", None, None, False),
    "cache_timeout_seconds": ("int", 60, 86400, False),
    "batch_size": ("int", 1, 1000, False),
    "service_level": ("float", 0.5, 0.999, False),
    "safety_stock_days": ("float", 0, 30, False),
}

CONFIG_PRESETS: Dict[str, Dict[str, Any]] = {
    # Critical items: long memory, high service level
    "conservative": {
        "historical_days": 120,
        "forecast_horizon": 14,
        "half_life": 21,
        "min_availability_factor": 0.7,
        "outlier_cap_multiplier": 2.5,
        "service_level": 0.99,
        "safety_stock_days": 7,
    },
    # Normal items (matches the defaults)
    "balanced": {
        "historical_days": 90,
        "forecast_horizon": 7,
        "half_life": 14,
        "min_availability_factor": 0.6,
        "outlier_cap_multiplier": 3,
        "service_level": 0.95,
        "safety_stock_days": 3,
    },
    # Fast movers: short memory, reacts quickly
    "aggressive": {
        "historical_days": 60,
        "forecast_horizon": 5,
        "half_life": 7,
        "min_availability_factor": 0.5,
        "outlier_cap_multiplier": 4,
        "service_level": 0.9,
        "safety_stock_days": 1,
    },
    # Testing / quick checks
    "minimal": {
        "historical_days": 14,
        "forecast_horizon": 3,
        "half_life": 3,
        "min_availability_factor": 0.4,
        "outlier_cap_multiplier": 5,
        "service_level": 0.85,
        "safety_stock_days": 0,
    },
}


def get_preset_config(preset: str) -> Dict[str, Any]:
    """
    Get a preset partial configuration.

    Args:
        preset: "conservative", "balanced", "aggressive" or "minimal"

    Returns:
        Copy of the preset's partial configuration

    Raises:
        KeyError: Unknown preset name
    """
    if preset not in CONFIG_PRESETS:
        raise KeyError(f"Unknown preset '{preset}' (available: {', '.join(CONFIG_PRESETS)})")
    return dict(CONFIG_PRESETS[preset])


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a partial configuration from a JSON settings file.

    The file may hold the configuration at the top level or under a
    "stock_coverage" section. A missing file yields an empty partial config.

    Raises:
        ValueError: File exists but is not a JSON object
    """
    settings_file = Path(path)
    if not settings_file.exists():
        logger.info("Settings file %s not found, using defaults", settings_file)
        return {}

    with open(settings_file, "r", encoding="utf-8") as f:
        try:
            settings = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Settings file {settings_file} is not valid JSON: {exc}") from exc

    if not isinstance(settings, dict):
        raise ValueError(f"Settings file {settings_file} must contain a JSON object")

    section = settings.get("stock_coverage", settings)
    if not isinstance(section, dict):
        raise ValueError(f"'stock_coverage' section in {settings_file} must be an object")

    return dict(section)
