"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files

_PROJECT_ROOT = Path(__file__).resolve().parents[1]


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class AnalyticsSettings:
    """
    Business constants used by normalization and classification.

    The revenue thresholds are currency-unit specific and carried over
    as configured defaults.
    """

    cost_ratio: float = 0.6
    revenue_floor: float = 1000.0
    vat_rate: float = 0.2
    liquidity_threshold: int = 3
    abc_a_threshold: float = 80.0
    abc_b_threshold: float = 95.0
    xyz_x_threshold: float = 15.0
    xyz_y_threshold: float = 35.0
    ax_critical_revenue: float = 50000.0
    ay_critical_revenue: float = 40000.0
    az_high_revenue: float = 60000.0
    az_mid_revenue: float = 30000.0


@dataclass(frozen=True)
class IngestionSettings:
    """
    Runtime settings for sales file ingestion.
    """

    max_upload_bytes: int = 50 * 1024 * 1024
    field_aliases_path: Path = _PROJECT_ROOT / "config" / "field_aliases.json"
    log_normalization_samples: int = 5


@lru_cache(maxsize=1)
def get_analytics_settings() -> AnalyticsSettings:
    """
    Return cached analytics settings from environment variables.
    """

    return AnalyticsSettings(
        cost_ratio=min(1.0, max(0.0, _get_float_env("SALES_COST_RATIO", 0.6))),
        revenue_floor=max(1.0, _get_float_env("SALES_REVENUE_FLOOR", 1000.0)),
        vat_rate=max(0.0, _get_float_env("SALES_VAT_RATE", 0.2)),
        liquidity_threshold=max(0, _get_int_env("SALES_LIQUIDITY_THRESHOLD", 3)),
        abc_a_threshold=_get_float_env("ABC_A_THRESHOLD", 80.0),
        abc_b_threshold=_get_float_env("ABC_B_THRESHOLD", 95.0),
        xyz_x_threshold=_get_float_env("XYZ_X_THRESHOLD", 15.0),
        xyz_y_threshold=_get_float_env("XYZ_Y_THRESHOLD", 35.0),
        ax_critical_revenue=_get_float_env("ABCXYZ_AX_CRITICAL_REVENUE", 50000.0),
        ay_critical_revenue=_get_float_env("ABCXYZ_AY_CRITICAL_REVENUE", 40000.0),
        az_high_revenue=_get_float_env("ABCXYZ_AZ_HIGH_REVENUE", 60000.0),
        az_mid_revenue=_get_float_env("ABCXYZ_AZ_MID_REVENUE", 30000.0),
    )


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """
    Return cached ingestion settings from environment variables.
    """

    default_path = IngestionSettings().field_aliases_path
    aliases_path = Path(_get_str_env("SALES_FIELD_ALIASES_PATH", str(default_path)))
    if not aliases_path.is_absolute():
        aliases_path = _PROJECT_ROOT / aliases_path
    return IngestionSettings(
        max_upload_bytes=max(1, _get_int_env("SALES_MAX_UPLOAD_BYTES", 50 * 1024 * 1024)),
        field_aliases_path=aliases_path,
        log_normalization_samples=max(0, _get_int_env("SALES_LOG_NORMALIZATION_SAMPLES", 5)),
    )
