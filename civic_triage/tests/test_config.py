"""Tests for Settings"""
from civic_triage.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        settings = Settings(_env_file=None)
        assert settings.tickets_table == "tickets"
        assert settings.enforce_engineer_roster is True
        assert settings.reporting_timezone == "UTC"

    def test_supabase_configured_prefers_service_role_key(self):
        settings = Settings(
            _env_file=None,
            supabase_url="https://example.supabase.co",
            supabase_key="anon",
            supabase_service_role_key="service",
        )
        assert settings.supabase_configured
        assert settings.supabase_api_key == "service"

    def test_url_without_key_is_not_configured(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        settings = Settings(_env_file=None, supabase_url="https://example.supabase.co")
        assert not settings.supabase_configured

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ENFORCE_ENGINEER_ROSTER", "false")
        assert Settings(_env_file=None).enforce_engineer_roster is False
