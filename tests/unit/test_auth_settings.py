"""
Unit tests for settings and the admin gate.
"""

from certpath.config import Settings
from certpath.core.auth import verify_admin


class TestSettings:
    def test_defaults(self, settings):
        assert settings.pass_threshold == 80
        assert settings.questions_per_day == 10
        assert settings.unlock_codes == ["dqadm", "adm"]
        assert settings.sync_timeout_seconds is None
        assert not settings.has_ai_configured()
        assert not settings.has_sync_configured()

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("CERTPATH_STORE_URL", "sqlite:///state.db")
        monkeypatch.setenv("CERTPATH_SYNC_URL", "https://example.com/snapshot.json")
        settings = Settings(_env_file=None)
        assert settings.store_url == "sqlite:///state.db"
        assert settings.has_sync_configured()


class TestAdminGate:
    def test_accepts_configured_secret(self, settings):
        assert verify_admin(settings.admin_username, settings.admin_password, settings)

    def test_rejects_wrong_password(self, settings):
        assert not verify_admin(settings.admin_username, "wrong", settings)

    def test_rejects_wrong_user(self, settings):
        assert not verify_admin("root", settings.admin_password, settings)
