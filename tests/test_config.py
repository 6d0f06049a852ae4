"""
Tests for configuration loading.
"""

from zoneinfo import ZoneInfo

import pytest

from ledgerbook.config import (
    AppSettings,
    DisplaySettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from ledgerbook.engine import create_ledger
from ledgerbook.storage import InMemoryLedgerStore


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for the settings classes."""

    def test_storage_from_environment(self, monkeypatch, tmp_path):
        """Test env prefix handling."""
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("LEDGER_STORAGE_DATABASE_PATH", str(tmp_path / "shop.db"))
        settings = StorageSettings()
        assert settings.backend == "sqlite"
        assert settings.database_path == tmp_path / "shop.db"

    def test_unknown_backend_rejected(self):
        """Test that only known backends load."""
        with pytest.raises(ValueError):
            StorageSettings(backend="sheets")

    def test_timezone_validation(self):
        """Test IANA zone checking."""
        assert DisplaySettings(timezone="Asia/Kolkata").tzinfo == ZoneInfo("Asia/Kolkata")
        assert DisplaySettings(timezone="").tzinfo is None
        with pytest.raises(ValueError):
            DisplaySettings(timezone="Mars/Olympus_Mons")

    def test_log_level_normalized(self):
        """Test that log levels are upper-cased and checked."""
        assert AppSettings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            AppSettings(log_level="chatty")

    def test_validate_all_settings_reports_failures(self, monkeypatch):
        """Test startup validation output."""
        monkeypatch.setenv("LEDGER_DISPLAY_TIMEZONE", "Nowhere/Special")
        results = validate_all_settings()
        assert results["storage"] is True
        assert results["display"] is False
        assert "display_error" in results


class TestCreateLedger:
    """Tests for the wiring factory."""

    def test_default_backend_is_memory(self, monkeypatch):
        """Test a ledger built purely from configuration."""
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LEDGER_DISPLAY_TIMEZONE", "UTC")
        monkeypatch.setenv("LOG_JSON", "false")

        ledger = create_ledger()

        assert isinstance(ledger.store, InMemoryLedgerStore)
        customer = ledger.add_customer("Ravi", "555")
        assert ledger.get_customer(customer.id) == customer

    def test_explicit_store_wins(self, monkeypatch):
        """Test that a passed store is used as-is."""
        monkeypatch.setenv("LEDGER_DISPLAY_TIMEZONE", "UTC")
        store = InMemoryLedgerStore()
        assert create_ledger(store=store).store is store
