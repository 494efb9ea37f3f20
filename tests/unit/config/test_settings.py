"""
Unit tests for configuration management.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from flight_billing.config.settings import (
    BillingEngineConfig,
    get_config,
    load_config,
    reload_config,
)


class TestBillingEngineConfig:
    """Test cases for BillingEngineConfig."""

    def test_config_with_valid_env_vars(self, test_config):
        """Test configuration loads correctly with valid environment variables."""
        assert test_config.api_base_url == "https://billing.test/api"
        assert test_config.api_token == "test-token"
        assert test_config.request_timeout == 5
        assert test_config.environment == "testing"
        assert test_config.debug is True
        assert test_config.log_level == "DEBUG"
        assert test_config.max_retries == 2
        assert test_config.retry_delay == 0
        assert test_config.rate_cache_ttl_seconds == 30
        assert test_config.rate_cache_max_size == 16

    def test_default_values(self, mock_env):
        """Test defaults for values not set in the environment."""
        config = BillingEngineConfig()

        assert config.default_total_time_method == "hobbs"
        assert config.rate_cache_enabled

    def test_request_headers(self, test_config):
        headers = test_config.get_request_headers()

        assert headers["Authorization"] == "Bearer test-token"
        assert headers["Accept"] == "application/json"

    def test_request_headers_without_token(self, mock_env):
        with patch.dict(os.environ, {"BILLING_API_TOKEN": ""}):
            config = BillingEngineConfig()

        assert "Authorization" not in config.get_request_headers()

    def test_trailing_slash_removed(self, mock_env):
        with patch.dict(os.environ, {"BILLING_API_BASE_URL": "https://api.test/"}):
            config = BillingEngineConfig()

        assert config.api_base_url == "https://api.test"

    def test_invalid_base_url(self, mock_env):
        with patch.dict(os.environ, {"BILLING_API_BASE_URL": "ftp://api.test"}):
            with pytest.raises(ValidationError):
                BillingEngineConfig()

    def test_invalid_environment(self, mock_env):
        with patch.dict(os.environ, {"ENVIRONMENT": "staging"}):
            with pytest.raises(ValidationError):
                BillingEngineConfig()

    def test_invalid_log_level(self, mock_env):
        with patch.dict(os.environ, {"LOG_LEVEL": "LOUD"}):
            with pytest.raises(ValidationError):
                BillingEngineConfig()

    def test_log_level_normalised(self, mock_env):
        with patch.dict(os.environ, {"LOG_LEVEL": "warning"}):
            assert BillingEngineConfig().log_level == "WARNING"

    def test_total_time_method(self, mock_env):
        with patch.dict(os.environ, {"DEFAULT_TOTAL_TIME_METHOD": "Tacho less 5%"}):
            assert BillingEngineConfig().default_total_time_method == "tacho less 5%"

        with patch.dict(os.environ, {"DEFAULT_TOTAL_TIME_METHOD": "sundial"}):
            with pytest.raises(ValidationError):
                BillingEngineConfig()

    def test_negative_retries_rejected(self, mock_env):
        with patch.dict(os.environ, {"MAX_RETRIES": "-1"}):
            with pytest.raises(ValidationError):
                BillingEngineConfig()

    def test_zero_ttl_disables_cache(self, mock_env):
        with patch.dict(os.environ, {"RATE_CACHE_TTL_SECONDS": "0"}):
            assert not BillingEngineConfig().rate_cache_enabled


class TestConfigLoading:
    """Test module-level loading helpers."""

    def test_get_config_is_cached(self, mock_env):
        assert get_config() is get_config()

    def test_reload_config_replaces_instance(self, mock_env):
        first = get_config()

        with patch.dict(os.environ, {"MAX_RETRIES": "4"}):
            second = reload_config()

        assert second is not first
        assert second.max_retries == 4
        assert get_config() is second

    def test_load_config_reads_env_file(self, mock_env, tmp_path, monkeypatch):
        monkeypatch.delenv("RATE_CACHE_MAX_SIZE")
        env_file = tmp_path / ".env"
        env_file.write_text("RATE_CACHE_MAX_SIZE=99\n")

        config = load_config(str(env_file))

        assert config.rate_cache_max_size == 99
