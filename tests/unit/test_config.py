"""Tests for settings and startup validation."""

import pytest

from housekeeping_sync.core.config import Settings


@pytest.mark.unit
class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DEFAULT_PER_PAGE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.default_per_page == 10
        assert settings.mutation_timeout_seconds == 30.0
        assert settings.page_stale_after_seconds == 600

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("API_BASE_URL", "https://pms.example.com/api")
        monkeypatch.setenv("MUTATION_TIMEOUT_SECONDS", "5")

        settings = Settings(_env_file=None)

        assert settings.api_base_url == "https://pms.example.com/api"
        assert settings.mutation_timeout_seconds == 5.0


@pytest.mark.unit
class TestRequireCredential:
    def test_returns_value(self):
        settings = Settings(_env_file=None, api_token="abc")
        assert settings.require_credential("api_token", "Task API token") == "abc"

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_value(self, value):
        settings = Settings(_env_file=None, api_token=value)

        with pytest.raises(ValueError, match="API_TOKEN"):
            settings.require_credential("api_token", "Task API token")
