"""
Environment-driven tuning for the ingestion service.

Preview lifetime, page size, upload limits and the duplicate-matching band all
come from here so the HTTP layer and the orchestrator read one consistent view.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

PREVIEW_TTL_ENV = "IMPORT_PREVIEW_TTL_SECONDS"
PREVIEW_SWEEP_ENV = "IMPORT_PREVIEW_SWEEP_SECONDS"
PREVIEW_PAGE_SIZE_ENV = "IMPORT_PREVIEW_PAGE_SIZE"
MAX_UPLOAD_BYTES_ENV = "IMPORT_MAX_UPLOAD_BYTES"
DUPLICATE_TOLERANCE_ENV = "DUPLICATE_AMOUNT_TOLERANCE"
DUPLICATE_DAY_WINDOW_ENV = "DUPLICATE_DAY_WINDOW"


class IngestionSettingsError(RuntimeError):
    """Raised when ingestion configuration cannot be constructed."""


@dataclass(frozen=True, slots=True)
class IngestionSettings:
    preview_ttl_seconds: float = 1800.0
    preview_sweep_seconds: float = 300.0
    preview_page_size: int = 50
    max_upload_bytes: int = 10 * 1024 * 1024
    duplicate_amount_tolerance: Decimal = Decimal("0.01")
    duplicate_day_window: int = 0


def load_ingestion_settings() -> IngestionSettings:
    """
    Construct IngestionSettings from the environment.

    Unset or blank variables fall back to the dataclass defaults; anything that
    fails to parse, or is out of range, raises IngestionSettingsError naming the
    offending variable.
    """

    defaults = IngestionSettings()
    settings = IngestionSettings(
        preview_ttl_seconds=_parse_float(os.getenv(PREVIEW_TTL_ENV), defaults.preview_ttl_seconds, PREVIEW_TTL_ENV),
        preview_sweep_seconds=_parse_float(
            os.getenv(PREVIEW_SWEEP_ENV), defaults.preview_sweep_seconds, PREVIEW_SWEEP_ENV
        ),
        preview_page_size=_parse_int(os.getenv(PREVIEW_PAGE_SIZE_ENV), defaults.preview_page_size, PREVIEW_PAGE_SIZE_ENV),
        max_upload_bytes=_parse_int(os.getenv(MAX_UPLOAD_BYTES_ENV), defaults.max_upload_bytes, MAX_UPLOAD_BYTES_ENV),
        duplicate_amount_tolerance=_parse_decimal(
            os.getenv(DUPLICATE_TOLERANCE_ENV), defaults.duplicate_amount_tolerance, DUPLICATE_TOLERANCE_ENV
        ),
        duplicate_day_window=_parse_int(
            os.getenv(DUPLICATE_DAY_WINDOW_ENV), defaults.duplicate_day_window, DUPLICATE_DAY_WINDOW_ENV
        ),
    )

    if settings.preview_ttl_seconds <= 0:
        raise IngestionSettingsError(f"{PREVIEW_TTL_ENV} must be positive")
    if settings.preview_sweep_seconds <= 0:
        raise IngestionSettingsError(f"{PREVIEW_SWEEP_ENV} must be positive")
    if settings.preview_page_size < 1:
        raise IngestionSettingsError(f"{PREVIEW_PAGE_SIZE_ENV} must be at least 1")
    if settings.max_upload_bytes < 1:
        raise IngestionSettingsError(f"{MAX_UPLOAD_BYTES_ENV} must be at least 1")
    if not Decimal("0") <= settings.duplicate_amount_tolerance < Decimal("1"):
        raise IngestionSettingsError(f"{DUPLICATE_TOLERANCE_ENV} must be between 0 and 1")
    if settings.duplicate_day_window < 0:
        raise IngestionSettingsError(f"{DUPLICATE_DAY_WINDOW_ENV} cannot be negative")
    return settings


def _parse_float(raw_value: Optional[str], default: float, env_key: str) -> float:
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        return float(raw_value)
    except ValueError as exc:
        raise IngestionSettingsError(f"{env_key} must be numeric (received '{raw_value}')") from exc


def _parse_int(raw_value: Optional[str], default: int, env_key: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        return int(raw_value)
    except ValueError as exc:
        raise IngestionSettingsError(f"{env_key} must be an integer (received '{raw_value}')") from exc


def _parse_decimal(raw_value: Optional[str], default: Decimal, env_key: str) -> Decimal:
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        value = Decimal(raw_value.strip())
    except InvalidOperation as exc:
        raise IngestionSettingsError(f"{env_key} must be numeric (received '{raw_value}')") from exc
    if not value.is_finite():
        raise IngestionSettingsError(f"{env_key} must be numeric (received '{raw_value}')")
    return value
