"""
Unit tests for settings and store options
"""

import os
from unittest.mock import patch

import pytest

from sessionstore.core.config import Settings, StoreOptions
from sessionstore.db.health import supports_limit_subquery

pytestmark = pytest.mark.unit


class TestSettings:

    def test_default_settings(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Settings(_env_file=None)

        assert config.DATABASE_URL == "sqlite:///./data/sessions.db"
        assert config.SESSION_TTL is None
        assert config.SESSION_CLEANUP_LIMIT == 0
        assert config.SESSION_LIMIT_SUBQUERY is None
        assert config.LOG_LEVEL == "INFO"
        assert config.LOG_JSON is True

    def test_environment_override(self):
        with patch.dict(os.environ, {
            "DATABASE_URL": "postgresql://localhost/sessions",
            "session_ttl": "120",
            "SESSION_CLEANUP_LIMIT": "25",
            "SESSION_LIMIT_SUBQUERY": "false",
        }, clear=True):
            config = Settings(_env_file=None)

        assert config.DATABASE_URL == "postgresql://localhost/sessions"
        assert config.SESSION_TTL == 120
        assert config.SESSION_CLEANUP_LIMIT == 25
        assert config.SESSION_LIMIT_SUBQUERY is False


class TestStoreOptions:

    def test_defaults(self):
        options = StoreOptions()
        assert options.ttl is None
        assert options.cleanup_limit == 0
        assert options.limit_subquery is True
        assert options.on_error is None

    def test_rejects_negative_cleanup_limit(self):
        with pytest.raises(ValueError, match="cleanup_limit"):
            StoreOptions(cleanup_limit=-1)

    def test_rejects_negative_ttl(self):
        with pytest.raises(ValueError, match="ttl"):
            StoreOptions(ttl=-1)

    def test_zero_ttl_is_accepted(self):
        assert StoreOptions(ttl=0).ttl == 0

    def test_none_cleanup_limit_disables(self):
        assert StoreOptions(cleanup_limit=None).cleanup_limit == 0

    def test_from_settings_explicit_strategy(self):
        config = Settings(
            _env_file=None,
            SESSION_TTL=60,
            SESSION_CLEANUP_LIMIT=3,
            SESSION_LIMIT_SUBQUERY=False,
        )
        options = StoreOptions.from_settings(config, dialect_name="postgresql")

        assert options.ttl == 60
        assert options.cleanup_limit == 3
        assert options.limit_subquery is False

    @pytest.mark.parametrize("dialect,expected", [
        ("sqlite", True),
        ("postgresql", True),
        ("mysql", False),
        ("mariadb", False),
        (None, True),
    ])
    def test_from_settings_detects_strategy(self, dialect, expected):
        config = Settings(_env_file=None, SESSION_LIMIT_SUBQUERY=None)
        options = StoreOptions.from_settings(config, dialect_name=dialect)

        assert options.limit_subquery is expected
        assert supports_limit_subquery(dialect) is expected

    def test_from_settings_passes_error_handler(self):
        def handler(store, error):
            pass

        options = StoreOptions.from_settings(Settings(_env_file=None), on_error=handler)
        assert options.on_error is handler
