"""Tests for the client-side JSON state file."""

import json

import pytest

from captains_log.models.user import DEFAULT_USER_SETTINGS
from captains_log.services.local_state import LocalStateStore


@pytest.fixture
def store(tmp_path):
    return LocalStateStore(tmp_path / "client" / "state.json")


def test_defaults_when_file_missing(store):
    assert store.load_settings() == DEFAULT_USER_SETTINGS
    assert store.load_api_key() is None
    assert store.is_api_key_configured() is False
    assert store.load_logs() == []


def test_settings_merge_over_defaults(store):
    assert store.save_settings({"audio_quality": "high"}) is True
    settings = store.load_settings()
    assert settings["audio_quality"] == "high"
    assert settings["silence_threshold"] == DEFAULT_USER_SETTINGS["silence_threshold"]


def test_api_key_is_trimmed_and_clearable(store):
    store.save_api_key("  sk-abc  ")
    assert store.load_api_key() == "sk-abc"
    assert store.is_api_key_configured()

    store.save_api_key("   ")
    assert store.load_api_key() is None


def test_keys_are_stored_side_by_side(store):
    store.save_settings({"audio_quality": "low"})
    store.save_api_key("sk-abc")
    store.save_logs([{"id": "a"}])

    data = json.loads(store.path.read_text())
    assert set(data) == {"settings", "openai_api_key", "logs"}
    assert not (store.path.parent / "state.json.tmp").exists()


def test_corrupt_file_is_ignored(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json")
    assert store.load_logs() == []
    assert store.load_settings() == DEFAULT_USER_SETTINGS
    assert store.save_logs([{"id": "b"}]) is True
    assert store.load_logs() == [{"id": "b"}]


def test_wrong_shapes_fall_back(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({"settings": "loud", "logs": {"id": "a"}}))
    assert store.load_settings() == DEFAULT_USER_SETTINGS
    assert store.load_logs() == []


def test_write_failure_returns_false(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")
    store = LocalStateStore(blocker / "state.json")
    assert store.save_logs([]) is False
