"""Tests for the speech-to-text client."""

from types import SimpleNamespace

import httpx
import openai
import pytest

from captains_log.services import transcription as transcription_module
from captains_log.services.transcription import (
    FAILURE_PLACEHOLDER,
    MISSING_KEY_PLACEHOLDER,
    TranscriptionClient,
    TranscriptionResult,
)
from captains_log.exceptions import TranscriptionFailure

OPENAI_URL = "https://api.openai.com/v1/audio/transcriptions"


class FakeOpenAI:
    """Stands in for AsyncOpenAI; ``behaviour`` is a response object or an exception."""

    behaviour = None
    instances: list["FakeOpenAI"] = []

    def __init__(self, api_key=None, max_retries=None):
        self.api_key = api_key
        self.max_retries = max_retries
        self.calls = []
        self.audio = SimpleNamespace(transcriptions=SimpleNamespace(create=self._create))
        FakeOpenAI.instances.append(self)

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(FakeOpenAI.behaviour, Exception):
            raise FakeOpenAI.behaviour
        return FakeOpenAI.behaviour


@pytest.fixture
def fake_openai(monkeypatch):
    FakeOpenAI.behaviour = SimpleNamespace(text="  Captain's log, stardate 41153.7.  ")
    FakeOpenAI.instances = []
    monkeypatch.setattr(transcription_module, "AsyncOpenAI", FakeOpenAI)
    return FakeOpenAI


@pytest.mark.asyncio
async def test_missing_key_returns_placeholder(fake_openai):
    client = TranscriptionClient(api_key=None)
    result = await client.transcribe(b"audio")

    assert result.error is True
    assert result.error_kind == "missing_credentials"
    assert result.text == MISSING_KEY_PLACEHOLDER
    assert fake_openai.instances == []


@pytest.mark.asyncio
async def test_blank_key_counts_as_missing(fake_openai):
    result = await TranscriptionClient(api_key="   ").transcribe(b"audio")
    assert result.error_kind == "missing_credentials"


@pytest.mark.asyncio
async def test_success(fake_openai):
    client = TranscriptionClient(api_key="sk-test")
    result = await client.transcribe(b"webm-bytes", "recording-1.webm")

    assert result.error is False
    assert result.text == "Captain's log, stardate 41153.7."
    assert result.metadata["model"] == "whisper-1"
    assert result.metadata["processing_time"] >= 0

    instance = fake_openai.instances[0]
    assert instance.api_key == "sk-test"
    assert instance.max_retries == 0
    call = instance.calls[0]
    assert call["file"] == ("recording-1.webm", b"webm-bytes", "audio/webm")
    assert call["model"] == "whisper-1"
    assert call["response_format"] == "json"


@pytest.mark.asyncio
async def test_plain_text_response(fake_openai):
    fake_openai.behaviour = "plain text body"
    result = await TranscriptionClient(api_key="sk-test", response_format="text").transcribe(b"a")
    assert result.text == "plain text body"


@pytest.mark.asyncio
async def test_transport_failure(fake_openai):
    fake_openai.behaviour = openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL))

    result = await TranscriptionClient(api_key="sk-test").transcribe(b"audio")

    assert result.error is True
    assert result.error_kind == "transport"
    assert result.text == FAILURE_PLACEHOLDER
    assert len(fake_openai.instances[0].calls) == 1


@pytest.mark.asyncio
async def test_service_failure(fake_openai):
    request = httpx.Request("POST", OPENAI_URL)
    fake_openai.behaviour = openai.AuthenticationError(
        "Incorrect API key provided",
        response=httpx.Response(401, request=request),
        body=None,
    )

    result = await TranscriptionClient(api_key="sk-bad").transcribe(b"audio")

    assert result.error_kind == "service"
    assert "401" in result.message
    assert result.text == FAILURE_PLACEHOLDER
    assert result.metadata["error_kind"] == "service"


@pytest.mark.asyncio
async def test_response_without_text(fake_openai):
    fake_openai.behaviour = SimpleNamespace()
    result = await TranscriptionClient(api_key="sk-test").transcribe(b"audio")
    assert result.error_kind == "service"


@pytest.mark.asyncio
async def test_set_api_key_enables_client(fake_openai):
    client = TranscriptionClient()
    assert (await client.transcribe(b"a")).error_kind == "missing_credentials"

    client.set_api_key("sk-late")
    assert (await client.transcribe(b"a")).error is False


def test_result_from_failure():
    result = TranscriptionResult.from_failure(TranscriptionFailure("transport", "timed out"))
    assert result.text == FAILURE_PLACEHOLDER
    assert result.message == "timed out"
