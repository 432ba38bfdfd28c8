"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from captains_log.config import BACKEND_ROOT, DEFAULT_SECRET_KEY, Settings


@pytest.fixture
def make_settings(tmp_path):
    def build(**overrides):
        values = {
            "media_storage_path": str(tmp_path / "uploads"),
            "client_state_path": str(tmp_path / "state" / "client.json"),
            **overrides,
        }
        return Settings(_env_file=None, **values)

    return build


def test_defaults(make_settings):
    config = make_settings(environment="development")
    assert config.session_expire_days == 7
    assert config.reset_token_expire_hours == 24
    assert config.transcription_model == "whisper-1"
    assert config.search_debounce_seconds == 0.3
    assert config.is_development


def test_storage_directories_created(make_settings, tmp_path):
    make_settings()
    assert (tmp_path / "uploads").is_dir()
    assert (tmp_path / "state").is_dir()


def test_cors_origins_list(make_settings):
    config = make_settings(cors_origins="http://a.example, http://b.example,,")
    assert config.cors_origins_list == ["http://a.example", "http://b.example"]


def test_production_rejects_default_secret(make_settings):
    with pytest.raises(ValidationError):
        make_settings(environment="production", secret_key=DEFAULT_SECRET_KEY)


def test_production_rejects_short_secret(make_settings):
    with pytest.raises(ValidationError):
        make_settings(environment="production", secret_key="too-short")


def test_production_accepts_long_secret(make_settings):
    config = make_settings(environment="production", secret_key="x" * 40)
    assert config.is_production


@pytest.mark.parametrize("field", ["session_expire_days", "reset_token_expire_hours", "search_debounce_ms"])
def test_positive_values_required(make_settings, field):
    with pytest.raises(ValidationError):
        make_settings(**{field: 0})


def test_relative_sqlite_path_is_anchored_to_backend(make_settings):
    config = make_settings(database_url="sqlite+aiosqlite:///./journal.db")
    assert config.database_url == f"sqlite+aiosqlite:///{(BACKEND_ROOT / 'journal.db').resolve()}"


def test_memory_and_non_sqlite_urls_untouched(make_settings):
    assert make_settings(database_url="sqlite+aiosqlite:///:memory:").database_url.endswith(":memory:")
    url = "postgresql+asyncpg://user:pw@db/journal"
    assert make_settings(database_url=url).database_url == url
