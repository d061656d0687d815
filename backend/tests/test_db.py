"""Tests for engine configuration."""

from backend.config.settings import Settings
from backend.database.db import API_CONNECTIONS, engine_options


def test_sqlite_is_shared_across_threads():
    options = engine_options(Settings(database_url="sqlite:///./test.db"))
    assert options["connect_args"] == {"check_same_thread": False}
    assert "pool_size" not in options


def test_server_pool_fits_scheduler_workers():
    settings = Settings(database_url="postgresql://carwatch@db/carwatch", scheduler_max_workers=16)
    options = engine_options(settings)
    assert options["pool_size"] == 16 + API_CONNECTIONS
    assert options["max_overflow"] == 16
    assert options["pool_pre_ping"] is True
