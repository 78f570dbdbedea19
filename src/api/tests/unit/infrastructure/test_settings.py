"""Unit tests for infrastructure settings."""

import pytest
from pydantic import ValidationError

from infrastructure.settings import (
    AuthmanSettings,
    DatabaseSettings,
    NotificationsSettings,
    SyncSettings,
)


class TestDatabaseSettingsPoolConfiguration:
    """Tests for connection pool configuration."""

    def test_default_pool_settings(self):
        """Should have sensible pool defaults."""
        settings = DatabaseSettings()
        assert settings.pool_min_connections >= 1
        assert settings.pool_max_connections >= settings.pool_min_connections

    def test_pool_max_must_be_greater_than_or_equal_to_min(self):
        """Should validate max >= min."""
        with pytest.raises(ValidationError) as exc_info:
            DatabaseSettings(pool_min_connections=10, pool_max_connections=5)

        assert "pool_max_connections" in str(exc_info.value)

    def test_pool_max_respects_upper_limit(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(pool_max_connections=101)

    def test_connection_string_hides_password(self):
        settings = DatabaseSettings(
            host="db.internal", username="groups", password="hunter2"
        )
        assert "hunter2" not in settings.connection_string
        assert settings.connection_string.startswith("postgresql://groups@db.internal")


class TestAuthmanSettings:
    """Tests for directory client settings."""

    def test_admin_external_ids_split_on_commas(self):
        settings = AuthmanSettings(admin_uins="111, 222 ,,333")
        assert settings.admin_external_ids == ["111", "222", "333"]

    def test_no_admin_external_ids_by_default(self):
        assert AuthmanSettings(admin_uins="").admin_external_ids == []

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            AuthmanSettings(request_timeout_seconds=0)


class TestSyncSettings:
    """Tests for sync engine defaults."""

    def test_defaults(self):
        settings = SyncSettings()
        assert settings.default_timeout_minutes == 60
        assert settings.membership_batch_size == 1000
        assert settings.scheduler_enabled is False

    def test_batch_size_bounds(self):
        with pytest.raises(ValidationError):
            SyncSettings(membership_batch_size=0)


class TestNotificationsSettings:
    def test_app_id_defaults_to_all(self):
        assert NotificationsSettings().app_id == "all"
