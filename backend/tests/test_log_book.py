"""Tests for the in-memory log book and its entries."""

from datetime import datetime

import pytest

from captains_log.models import Recording, Tag, Transcription
from captains_log.models.transcription import TranscriptionStatus
from captains_log.schemas.recording import SearchHit
from captains_log.services.local_state import LocalStateStore
from captains_log.services.log_book import NO_TRANSCRIPT, LogBook, LogEntry


def entry(entry_id, transcript="", **kwargs):
    return LogEntry(id=entry_id, recorded_at=datetime(2025, 1, 1, 12, 0), transcript=transcript, **kwargs)


@pytest.fixture
def log_book():
    return LogBook()


class TestLogEntry:
    def test_duration_is_formatted(self):
        assert entry("a", duration_ms=3_725_000).duration == "01:02:05"

    def test_matches_is_case_insensitive(self):
        item = entry("a", "Shields up, Red Alert")
        assert item.matches("red alert")
        assert not item.matches("yellow")

    def test_dict_round_trip_keeps_status_and_tags(self):
        item = entry("a", "Make it so", duration_ms=900, status=TranscriptionStatus.ERROR, tags=["bridge"])
        restored = LogEntry.from_dict(item.to_dict())
        assert restored == item

    def test_from_dict_defaults(self):
        restored = LogEntry.from_dict({"id": "a", "recorded_at": "2025-01-01T12:00:00"})
        assert restored.status is TranscriptionStatus.COMPLETED
        assert restored.duration_ms == 0
        assert restored.tags == []

    def test_from_recording_without_transcription(self):
        recording = Recording(
            id="r1", user_id="u", filename="r1.webm", duration_ms=5000,
            recorded_at=datetime(2025, 1, 1), audio_data=b"x",
        )
        item = LogEntry.from_recording(recording)
        assert item.transcript == NO_TRANSCRIPT
        assert item.audio_url == "/api/recordings/r1"

    def test_from_recording_without_audio(self):
        recording = Recording(id="r1", user_id="u", filename="r1.webm", recorded_at=datetime(2025, 1, 1))
        transcription = Transcription(
            id="t1", recording_id="r1", content="Log text", meta={"status": "completed"}
        )
        item = LogEntry.from_recording(recording, transcription, [Tag(id="g", name="away-team")])
        assert item.audio_url is None
        assert item.transcript == "Log text"
        assert item.tags == ["away-team"]

    def test_from_search_hit(self):
        hit = SearchHit(
            transcription_id="t1", recording_id="r1", content="Engage",
            metadata={"status": "error"}, filename="r1.webm", duration_ms=10,
            recorded_at=datetime(2025, 1, 1),
        )
        item = LogEntry.from_search_hit(hit)
        assert item.id == "r1"
        assert item.status is TranscriptionStatus.ERROR


class TestLogBook:
    def test_add_puts_newest_on_top(self, log_book):
        log_book.add(entry("a"))
        log_book.add(entry("b"))
        assert [e.id for e in log_book.entries] == ["b", "a"]

    def test_add_existing_id_replaces(self, log_book):
        log_book.add(entry("a", "old"))
        log_book.add(entry("b"))
        log_book.add(entry("a", "new"))
        assert [e.id for e in log_book] == ["b", "a"]
        assert log_book.get("a").transcript == "new"

    def test_replace_keeps_position(self, log_book):
        log_book.load([entry("a"), entry("b"), entry("c")])
        assert log_book.replace(entry("b", "updated")) is True
        assert [e.id for e in log_book] == ["a", "b", "c"]
        assert log_book.replace(entry("zzz")) is False

    def test_remove_and_clear(self, log_book):
        log_book.load([entry("a"), entry("b")])
        assert log_book.remove("a") is True
        assert log_book.remove("a") is False
        log_book.clear()
        assert len(log_book) == 0

    def test_filter(self, log_book):
        log_book.load([entry("a", "Warp speed"), entry("b", "Impulse power"), entry("c", "WARP core")])
        assert [e.id for e in log_book.filter("warp")] == ["a", "c"]
        assert len(log_book.filter("   ")) == 3
        assert log_book.filter("transwarp") == []

    def test_listeners_receive_snapshots(self, log_book):
        seen = []
        unsubscribe = log_book.subscribe(lambda entries: seen.append([e.id for e in entries]))
        log_book.add(entry("a"))
        log_book.add(entry("b"))
        unsubscribe()
        log_book.add(entry("c"))
        assert seen == [["a"], ["b", "a"]]

    def test_failing_listener_does_not_block_others(self, log_book):
        seen = []

        def broken(entries):
            raise RuntimeError("listener bug")

        log_book.subscribe(broken)
        log_book.subscribe(lambda entries: seen.append(len(entries)))
        log_book.add(entry("a"))
        assert seen == [1]

    def test_entries_is_a_copy(self, log_book):
        log_book.add(entry("a"))
        log_book.entries.clear()
        assert len(log_book) == 1

    def test_writes_through_to_cache(self, tmp_path):
        cache = LocalStateStore(tmp_path / "state.json")
        log_book = LogBook(cache=cache)
        log_book.add(entry("a", "First"))
        log_book.add(entry("b", "Second"))
        log_book.remove("a")

        cached = cache.load_logs()
        assert [item["id"] for item in cached] == ["b"]
        assert cached[0]["transcript"] == "Second"
