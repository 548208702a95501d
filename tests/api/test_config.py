"""Tests for configuration classes."""

import os
import pytest
from unittest.mock import patch

from config import (
    AppConfig,
    CORSConfig,
    RateLimitConfig,
    SecurityConfig,
    TableConfig,
    _parse_cors_origins,
)


class TestCORSConfig:
    """Tests for CORSConfig class."""

    def test_cors_default_origins(self):
        """Test that default CORS origins are set correctly."""
        with patch.dict(os.environ, {}, clear=True):
            config = CORSConfig()

            assert config.allowed_origins == ["http://localhost:8000"]

    def test_cors_parses_origins_with_whitespace(self):
        """Test that CORS origins are split on commas and stripped."""
        env_origins = "  http://example.com  ,  http://localhost:3000  ,"
        with patch.dict(os.environ, {"CORS_ORIGINS": env_origins}):
            origins = _parse_cors_origins()

            assert origins == ["http://example.com", "http://localhost:3000"]

    def test_cors_default_methods_and_headers(self):
        """Test that default methods and headers allow all."""
        config = CORSConfig()

        assert config.allow_credentials is True
        assert "*" in config.allow_methods
        assert "*" in config.allow_headers


class TestRateLimitConfig:
    """Tests for RateLimitConfig class."""

    def test_rate_limit_defaults(self):
        """Test default rate limit values."""
        with patch.dict(os.environ, {}, clear=True):
            config = RateLimitConfig()

            assert config.enabled is True
            assert config.requests_per_minute == 60

    def test_rate_limit_from_env(self):
        """Test rate limit configuration from environment."""
        with patch.dict(
            os.environ,
            {"RATE_LIMIT_ENABLED": "FALSE", "RATE_LIMIT_RPM": "120"},
        ):
            config = RateLimitConfig()

            assert config.enabled is False
            assert config.requests_per_minute == 120

    @pytest.mark.parametrize("value", ["false", "0", "no", "off"])
    def test_only_true_enables(self, value):
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": value}):
            assert RateLimitConfig().enabled is False


class TestSecurityConfig:
    """Tests for SecurityConfig class."""

    def test_secret_key_auto_generates(self):
        """Test that secret key is auto-generated when not in env."""
        with patch.dict(os.environ, {}, clear=True):
            config = SecurityConfig()

            assert len(config.secret_key) > 0

    def test_secret_key_from_env(self):
        """Test that secret key is read from environment."""
        with patch.dict(os.environ, {"SECRET_KEY": "my-super-secret-key-12345"}):
            assert SecurityConfig().secret_key == "my-super-secret-key-12345"


class TestTableConfig:
    """Tests for TableConfig class."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = TableConfig()

            assert config.num_decks == 6
            assert config.reshuffle_threshold == 15
            assert config.starting_balance == 1000
            assert config.default_bet == 50
            assert config.auto_dealer is True

    def test_from_env(self):
        with patch.dict(
            os.environ,
            {
                "BJ_NUM_DECKS": "2",
                "BJ_RESHUFFLE_THRESHOLD": "20",
                "BJ_STARTING_BALANCE": "500",
                "BJ_DEFAULT_BET": "25",
                "BJ_AUTO_DEALER": "false",
            },
        ):
            config = TableConfig()

            assert config.num_decks == 2
            assert config.reshuffle_threshold == 20
            assert config.starting_balance == 500
            assert config.default_bet == 25
            assert config.auto_dealer is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"num_decks": 0},
            {"num_decks": 1, "reshuffle_threshold": 52},
            {"reshuffle_threshold": -1},
            {"starting_balance": -1},
            {"default_bet": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            TableConfig(**kwargs)

    def test_zero_threshold_allowed(self):
        """Test that a shoe may be dealt down to its last card."""
        assert TableConfig(num_decks=1, reshuffle_threshold=0).reshuffle_threshold == 0

    def test_frozen(self):
        config = TableConfig()
        with pytest.raises(Exception):  # dataclasses.FrozenInstanceError
            config.num_decks = 8


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_app_config_defaults(self):
        """Test default AppConfig values."""
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig()

            assert config.debug is False
            assert config.log_level == "INFO"
            assert config.session_ttl == 3600

    def test_app_config_from_env(self):
        with patch.dict(os.environ, {"DEBUG": "true", "LOG_LEVEL": "debug"}):
            config = AppConfig()

            assert config.debug is True
            assert config.log_level == "DEBUG"

    def test_app_config_has_nested_configs(self):
        """Test that AppConfig has nested configuration objects."""
        config = AppConfig()

        assert isinstance(config.table, TableConfig)
        assert isinstance(config.cors, CORSConfig)
        assert isinstance(config.rate_limit, RateLimitConfig)
        assert isinstance(config.security, SecurityConfig)
