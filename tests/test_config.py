"""Tests for settings loading and the settings-driven database and logging setup."""

from repository_manager import config
from repository_manager.api import app
from repository_manager.config import Settings
from repository_manager.db import base
from repository_manager.db.base import get_database_url, get_engine
from repository_manager.logs import service_fields


def use_env_file(monkeypatch, tmp_path, content: str) -> Settings:
    """Load settings from a ``.env`` in ``tmp_path`` with DATABASE_URL unset."""
    (tmp_path / ".env").write_text(content)
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = Settings()
    monkeypatch.setattr(config, "settings", settings)
    return settings


class TestDatabaseUrl:
    def test_env_file_database_url(self, tmp_path, monkeypatch):
        settings = use_env_file(monkeypatch, tmp_path, "DATABASE_URL=postgresql://u:p@db/rm\n")

        assert settings.database_url == "postgresql://u:p@db/rm"
        assert get_database_url() == "postgresql://u:p@db/rm"

    def test_async_driver_is_normalized(self, tmp_path, monkeypatch):
        use_env_file(monkeypatch, tmp_path, "DATABASE_URL=postgresql+asyncpg://u:p@db/rm\n")

        assert get_database_url() == "postgresql+psycopg://u:p@db/rm"

    def test_explicit_url_wins(self, tmp_path, monkeypatch):
        use_env_file(monkeypatch, tmp_path, "DATABASE_URL=postgresql://u:p@db/rm\n")

        assert get_database_url("sqlite://") == "sqlite://"

    def test_engine_uses_configured_url(self, tmp_path, monkeypatch):
        db_file = tmp_path / "artifacts.db"
        use_env_file(monkeypatch, tmp_path, f"DATABASE_URL=sqlite:///{db_file}\n")
        monkeypatch.setattr(base, "_engine", None)

        engine = get_engine()
        try:
            assert engine.url.get_backend_name() == "sqlite"
            assert engine.url.database == str(db_file)
        finally:
            engine.dispose()


class TestServiceIdentity:
    def test_log_events_carry_service_fields(self):
        settings = Settings(app_name="repo-manager-test", environment="staging")

        event = service_fields(settings)(None, "info", {"event": "resolve_start"})

        assert event == {
            "event": "resolve_start",
            "service": "repo-manager-test",
            "environment": "staging",
        }

    def test_app_title_is_app_name(self):
        assert app.title == config.get_settings().app_name
