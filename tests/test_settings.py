from decimal import Decimal

import pytest

from ledger_ingestion import settings as settings_module
from ledger_ingestion.settings import IngestionSettings, IngestionSettingsError, load_ingestion_settings

ENV_KEYS = (
    settings_module.PREVIEW_TTL_ENV,
    settings_module.PREVIEW_SWEEP_ENV,
    settings_module.PREVIEW_PAGE_SIZE_ENV,
    settings_module.MAX_UPLOAD_BYTES_ENV,
    settings_module.DUPLICATE_TOLERANCE_ENV,
    settings_module.DUPLICATE_DAY_WINDOW_ENV,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_apply_when_unset():
    assert load_ingestion_settings() == IngestionSettings()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("IMPORT_PREVIEW_TTL_SECONDS", "90")
    monkeypatch.setenv("IMPORT_PREVIEW_PAGE_SIZE", "25")
    monkeypatch.setenv("IMPORT_MAX_UPLOAD_BYTES", "2048")
    monkeypatch.setenv("DUPLICATE_AMOUNT_TOLERANCE", "0.05")
    monkeypatch.setenv("DUPLICATE_DAY_WINDOW", "2")
    monkeypatch.setenv("IMPORT_PREVIEW_SWEEP_SECONDS", " ")

    loaded = load_ingestion_settings()

    assert loaded.preview_ttl_seconds == 90.0
    assert loaded.preview_sweep_seconds == 300.0
    assert loaded.preview_page_size == 25
    assert loaded.max_upload_bytes == 2048
    assert loaded.duplicate_amount_tolerance == Decimal("0.05")
    assert loaded.duplicate_day_window == 2


@pytest.mark.parametrize(
    ("key", "value", "message"),
    [
        ("IMPORT_PREVIEW_TTL_SECONDS", "soon", "must be numeric"),
        ("IMPORT_PREVIEW_PAGE_SIZE", "2.5", "must be an integer"),
        ("DUPLICATE_AMOUNT_TOLERANCE", "abc", "must be numeric"),
        ("DUPLICATE_AMOUNT_TOLERANCE", "NaN", "must be numeric"),
        ("IMPORT_PREVIEW_TTL_SECONDS", "0", "must be positive"),
        ("IMPORT_PREVIEW_PAGE_SIZE", "0", "at least 1"),
        ("DUPLICATE_AMOUNT_TOLERANCE", "1.5", "between 0 and 1"),
        ("DUPLICATE_DAY_WINDOW", "-1", "cannot be negative"),
    ],
)
def test_invalid_values_name_the_variable(monkeypatch, key, value, message):
    monkeypatch.setenv(key, value)

    with pytest.raises(IngestionSettingsError) as excinfo:
        load_ingestion_settings()

    assert key in str(excinfo.value)
    assert message in str(excinfo.value)


def test_module_docstring_is_exposed():
    assert settings_module.__doc__
    assert "Environment-driven tuning" in settings_module.__doc__
