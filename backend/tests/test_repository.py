"""Repository contract tests, run against the in-memory and SQL backends."""

from datetime import datetime

import pytest

from captains_log.exceptions import DuplicateKeyError, NotFoundError
from captains_log.models.transcription import TranscriptionStatus
from captains_log.repositories import memory as memory_module
from captains_log.repositories import sql as sql_module
from captains_log.repositories.sql import like_pattern


async def add_recording(repository, user_id, recorded_at, **extra):
    attributes = {
        "user_id": user_id,
        "filename": f"recording-{recorded_at:%H%M}.webm",
        "duration_ms": 4200,
        "recorded_at": recorded_at,
    }
    attributes.update(extra)
    return await repository.recordings.create(attributes)


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_assigns_id_and_defaults(self, repository):
        user_id = await repository.users.create(
            {"email": "Data@Enterprise.Example", "password_hash": "x"}
        )
        user = await repository.users.get_by_id(user_id)

        assert len(user_id) == 36
        assert user.email == "data@enterprise.example"
        assert user.name == "data"
        assert user.settings == {"audio_quality": "medium", "silence_threshold": 30}
        assert user.created_at is not None

    @pytest.mark.asyncio
    async def test_create_with_caller_id(self, repository):
        user_id = await repository.users.create(
            {"email": "worf@enterprise.example", "password_hash": "x"}, id="fixed-id"
        )
        assert user_id == "fixed-id"
        assert (await repository.users.get_by_id("fixed-id")).email == "worf@enterprise.example"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_case_insensitive(self, repository, user_id):
        with pytest.raises(DuplicateKeyError):
            await repository.users.create(
                {"email": "PICARD@enterprise.example", "password_hash": "x"}
            )

    @pytest.mark.asyncio
    async def test_duplicate_id(self, repository, user_id):
        with pytest.raises(DuplicateKeyError):
            await repository.users.create(
                {"email": "troi@enterprise.example", "password_hash": "x"}, id=user_id
            )

    @pytest.mark.asyncio
    async def test_get_by_email(self, repository, user_id):
        user = await repository.users.get_by_email("Picard@Enterprise.example")
        assert user.id == user_id
        assert await repository.users.get_by_email("nobody@example.com") is None

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, repository, user_id, monkeypatch):
        later = datetime(2030, 1, 1, 12, 0, 0)
        monkeypatch.setattr(memory_module, "utcnow", lambda: later)
        monkeypatch.setattr(sql_module, "utcnow", lambda: later)

        assert await repository.users.update(user_id, {"name": "Jean-Luc"}) is True
        user = await repository.users.get_by_id(user_id)

        assert user.name == "Jean-Luc"
        assert user.email == "picard@enterprise.example"
        assert user.updated_at == later

    @pytest.mark.asyncio
    async def test_update_missing_returns_false(self, repository):
        assert await repository.users.update("missing", {"name": "x"}) is False

    @pytest.mark.asyncio
    async def test_update_email_collision(self, repository, user_id):
        await repository.users.create({"email": "crusher@enterprise.example", "password_hash": "x"})
        with pytest.raises(DuplicateKeyError):
            await repository.users.update(user_id, {"email": "crusher@enterprise.example"})

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, repository, user_id):
        with pytest.raises(ValueError):
            await repository.users.update(user_id, {"rank": "captain"})

    @pytest.mark.asyncio
    async def test_get_by_reset_token(self, repository, user_id):
        await repository.users.update(user_id, {"reset_token": "abc123"})
        assert (await repository.users.get_by_reset_token("abc123")).id == user_id
        assert await repository.users.get_by_reset_token("other") is None

    @pytest.mark.asyncio
    async def test_delete_cascades_to_recordings(self, repository, user_id):
        recording_id = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))
        await repository.transcriptions.create({"recording_id": recording_id, "content": "log"})

        assert await repository.users.delete(user_id) is True
        assert await repository.users.get_by_id(user_id) is None
        assert await repository.recordings.get_by_id(recording_id) is None
        assert await repository.transcriptions.get_by_owner(recording_id) == []
        assert await repository.users.delete(user_id) is False


class TestRecordings:
    @pytest.mark.asyncio
    async def test_get_by_owner_most_recent_first(self, repository, user_id):
        older = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))
        newer = await add_recording(repository, user_id, datetime(2025, 1, 2, 9, 0))
        other_user = await repository.users.create(
            {"email": "q@continuum.example", "password_hash": "x"}
        )
        await add_recording(repository, other_user, datetime(2025, 1, 3, 9, 0))

        recordings = await repository.recordings.get_by_owner(user_id)
        assert [r.id for r in recordings] == [newer, older]

    @pytest.mark.asyncio
    async def test_inline_audio_round_trips(self, repository, user_id):
        recording_id = await add_recording(
            repository, user_id, datetime(2025, 1, 1, 9, 0), audio_data=b"\x1a\x45\xdf\xa3"
        )
        recording = await repository.recordings.get_by_id(recording_id)
        assert recording.audio_data == b"\x1a\x45\xdf\xa3"
        assert recording.duration_ms == 4200
        assert recording.has_audio is True

    @pytest.mark.asyncio
    async def test_create_for_missing_user(self, repository):
        with pytest.raises(NotFoundError):
            await repository.recordings.create(
                {"user_id": "ghost", "filename": "x.webm", "duration_ms": 1}
            )

    @pytest.mark.asyncio
    async def test_delete_cascades(self, repository, user_id):
        recording_id = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))
        transcription_id = await repository.transcriptions.create(
            {"recording_id": recording_id, "content": "Captain's log"}
        )
        await repository.tags.tag_recording(recording_id, "mission")

        assert await repository.recordings.delete(recording_id) is True
        assert await repository.transcriptions.get_by_id(transcription_id) is None
        assert await repository.tags.get_by_recording(recording_id) == []
        # The tag itself survives
        assert await repository.tags.get_by_name("mission") is not None
        assert await repository.recordings.delete(recording_id) is False


class TestTranscriptions:
    @pytest.mark.asyncio
    async def test_get_by_recording_and_status(self, repository, user_id):
        recording_id = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))
        transcription_id = await repository.transcriptions.create(
            {"recording_id": recording_id, "content": "pending", "meta": {"status": "pending"}}
        )
        await repository.transcriptions.update(
            transcription_id, {"content": "done", "meta": {"status": "completed"}}
        )

        transcription = await repository.transcriptions.get_by_recording(recording_id)
        assert transcription.id == transcription_id
        assert transcription.content == "done"
        assert transcription.status is TranscriptionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_create_for_missing_recording(self, repository):
        with pytest.raises(NotFoundError):
            await repository.transcriptions.create({"recording_id": "ghost", "content": "x"})

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_and_scoped(self, repository, user_id):
        first = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))
        second = await add_recording(repository, user_id, datetime(2025, 1, 2, 9, 0))
        await repository.transcriptions.create(
            {"recording_id": first, "content": "Entered the Neutral Zone"}
        )
        await repository.transcriptions.create(
            {"recording_id": second, "content": "Left the neutral zone at warp 6"}
        )
        stranger = await repository.users.create(
            {"email": "romulan@empire.example", "password_hash": "x"}
        )
        theirs = await add_recording(repository, stranger, datetime(2025, 1, 3, 9, 0))
        await repository.transcriptions.create({"recording_id": theirs, "content": "neutral zone"})

        hits = await repository.transcriptions.search(user_id, "NEUTRAL zone")

        assert [hit.recording_id for hit in hits] == [second, first]
        assert hits[0].duration_ms == 4200
        assert hits[0].filename.endswith(".webm")

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, repository, user_id):
        recording_id = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))
        await repository.transcriptions.create(
            {"recording_id": recording_id, "content": "Shields at 100%"}
        )
        other = await add_recording(repository, user_id, datetime(2025, 1, 2, 9, 0))
        await repository.transcriptions.create({"recording_id": other, "content": "Shields at 1000"})

        assert [h.recording_id for h in await repository.transcriptions.search(user_id, "100%")] == [
            recording_id
        ]
        assert await repository.transcriptions.search(user_id, "at_1") == []


class TestTags:
    @pytest.mark.asyncio
    async def test_get_or_create_is_idempotent(self, repository):
        first = await repository.tags.get_or_create("away-mission")
        second = await repository.tags.get_or_create("away-mission")
        assert first == second
        assert [t.name for t in await repository.tags.list_all()] == ["away-mission"]

    @pytest.mark.asyncio
    async def test_duplicate_tag_name(self, repository):
        await repository.tags.create({"name": "borg"})
        with pytest.raises(DuplicateKeyError):
            await repository.tags.create({"name": "borg"})

    @pytest.mark.asyncio
    async def test_tag_and_untag_recording(self, repository, user_id):
        recording_id = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))

        assert await repository.tags.tag_recording(recording_id, "klingon") is True
        assert await repository.tags.tag_recording(recording_id, "klingon") is True
        await repository.tags.tag_recording(recording_id, "diplomacy")

        names = [t.name for t in await repository.tags.get_by_recording(recording_id)]
        assert names == ["diplomacy", "klingon"]

        assert await repository.tags.untag_recording(recording_id, "klingon") is True
        assert await repository.tags.untag_recording(recording_id, "klingon") is False
        assert await repository.tags.untag_recording(recording_id, "unknown") is False

    @pytest.mark.asyncio
    async def test_tag_missing_recording(self, repository):
        with pytest.raises(NotFoundError):
            await repository.tags.tag_recording("ghost", "anything")

    @pytest.mark.asyncio
    async def test_get_recordings_by_tag(self, repository, user_id):
        older = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))
        newer = await add_recording(repository, user_id, datetime(2025, 1, 2, 9, 0))
        untagged = await add_recording(repository, user_id, datetime(2025, 1, 3, 9, 0))
        await repository.tags.tag_recording(older, "ops")
        await repository.tags.tag_recording(newer, "ops")

        recordings = await repository.tags.get_recordings_by_tag(user_id, "ops")
        assert [r.id for r in recordings] == [newer, older]
        assert untagged not in [r.id for r in recordings]
        assert await repository.tags.get_recordings_by_tag(user_id, "nothing") == []

    @pytest.mark.asyncio
    async def test_delete_tag_removes_links(self, repository, user_id):
        recording_id = await add_recording(repository, user_id, datetime(2025, 1, 1, 9, 0))
        await repository.tags.tag_recording(recording_id, "temp")
        tag = await repository.tags.get_by_name("temp")

        assert await repository.tags.delete(tag.id) is True
        assert await repository.tags.get_by_recording(recording_id) == []


@pytest.mark.asyncio
async def test_ping(repository):
    assert await repository.ping() is True


def test_like_pattern_escapes_wildcards():
    assert like_pattern("50%_off\\") == "%50\\%\\_off\\\\%"
