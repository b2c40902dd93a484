"""Unit tests for TranscriptionClient."""

import asyncio

import aiohttp
import pytest

from medivoice.errors import (
    AuthenticationFailedError,
    EmptyInputError,
    EmptyTranscriptionError,
    QuotaExceededError,
    RateLimitedError,
    RequestTimeoutError,
    ServiceError,
    ServiceUnavailableError,
)
from medivoice.transcription.base import StaticSessionProvider
from medivoice.transcription.whisper_client import TranscriptionClient, audio_extension


@pytest.mark.unit
class TestAudioExtension:
    """Test cases for audio_extension()."""

    @pytest.mark.parametrize("mime_type,expected", [
        ("audio/mp4", "mp4"),
        ("audio/mp3", "mp3"),
        ("audio/mpeg; codecs=mp3", "mp3"),
        ("audio/wav", "wav"),
        ("audio/ogg;codecs=opus", "ogg"),
        ("audio/webm;codecs=opus", "webm"),
        ("audio/flac", "webm"),
        ("", "webm"),
        (None, "webm"),
    ])
    def test_extension_mapping(self, mime_type, expected):
        assert audio_extension(mime_type) == expected


@pytest.mark.unit
class TestTranscriptionClient:
    """Test cases for TranscriptionClient class."""

    def make_client(self, base_url, session_provider, session, **kwargs):
        return TranscriptionClient(base_url, session_provider, http_session=session, **kwargs)

    def test_transcribe_success(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={
            "text": "Patient reports chest pain.",
            "duration": 4.2,
            "language": "en",
            "segments": [{"start": 0.0, "end": 4.2, "text": "Patient reports chest pain.", "id": 0}],
        }))
        client = self.make_client(base_url, session_provider, session)

        result = asyncio.run(client.transcribe(b"\x1a\x45\xdf\xa3", mime_type="audio/webm"))

        assert result.text == "Patient reports chest pain."
        assert result.duration_seconds == 4.2
        assert result.language == "en"
        assert len(result.segments) == 1
        assert result.segments[0].end == 4.2

        assert session.call_count == 1
        call = session.calls[0]
        assert call["url"] == f"{base_url}/transcribe"
        assert call["headers"] == {"Authorization": "Bearer test-token"}
        assert isinstance(call["data"], aiohttp.FormData)

    def test_missing_optional_fields_use_defaults(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"text": "Bonjour docteur"}))
        client = self.make_client(base_url, session_provider, session)

        result = asyncio.run(client.transcribe(b"abc", mime_type="audio/ogg", language="fr"))

        assert result.language == "fr"
        assert result.duration_seconds == 0.0
        assert result.segments == []

    def test_reversed_segment_keeps_transcription(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={
            "text": "Blood pressure one forty over ninety.",
            "segments": [
                {"start": 0.0, "end": 2.0, "text": "Blood pressure"},
                {"start": 3.5, "end": 3.1, "text": "one forty over ninety."},
            ],
        }))
        client = self.make_client(base_url, session_provider, session)

        result = asyncio.run(client.transcribe(b"abc", mime_type="audio/webm"))

        assert result.text == "Blood pressure one forty over ninety."
        assert len(result.segments) == 2
        assert result.segments[1].start == 3.5
        assert result.segments[1].end == 3.5
        assert result.segments[1].text == "one forty over ninety."

    def test_empty_audio_makes_no_request(self, base_url, session_provider, fake_session):
        session = fake_session()
        client = self.make_client(base_url, session_provider, session)

        with pytest.raises(EmptyInputError):
            asyncio.run(client.transcribe(b""))

        assert session.call_count == 0

    def test_empty_transcription(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"text": "   "}))
        client = self.make_client(base_url, session_provider, session)

        with pytest.raises(EmptyTranscriptionError):
            asyncio.run(client.transcribe(b"abc"))

    @pytest.mark.parametrize("status,error_class", [
        (429, RateLimitedError),
        (401, AuthenticationFailedError),
        (402, QuotaExceededError),
    ])
    def test_status_mapping(self, base_url, session_provider, fake_session, fake_response, status, error_class):
        session = fake_session(fake_response(status, json_body={"error": "nope"}))
        client = self.make_client(base_url, session_provider, session)

        with pytest.raises(error_class) as exc_info:
            asyncio.run(client.transcribe(b"abc"))

        assert exc_info.value.status == status

    def test_server_error_message_is_carried(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(500, json_body={"error": "Whisper upstream failed"}))
        client = self.make_client(base_url, session_provider, session)

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(client.transcribe(b"abc"))

        assert exc_info.value.user_message == "Whisper upstream failed"
        assert exc_info.value.status == 500

    def test_server_error_without_json_body(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(503))
        client = self.make_client(base_url, session_provider, session)

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(client.transcribe(b"abc"))

        assert "503" in exc_info.value.user_message

    def test_timeout(self, base_url, session_provider, fake_session):
        session = fake_session(asyncio.TimeoutError())
        client = self.make_client(base_url, session_provider, session)

        with pytest.raises(RequestTimeoutError):
            asyncio.run(client.transcribe(b"abc"))

    def test_network_error(self, base_url, session_provider, fake_session):
        session = fake_session(aiohttp.ClientConnectionError("connection refused"))
        client = self.make_client(base_url, session_provider, session)

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(client.transcribe(b"abc"))

        assert "Network error" in exc_info.value.user_message

    def test_missing_service_url(self, session_provider, fake_session):
        session = fake_session()
        client = self.make_client(None, session_provider, session)

        with pytest.raises(ServiceUnavailableError):
            asyncio.run(client.transcribe(b"abc"))

        assert session.call_count == 0

    def test_publishable_key_used_without_access_token(self, base_url, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"text": "ok"}))
        provider = StaticSessionProvider(publishable_key="anon-key")
        client = self.make_client(base_url, provider, session)

        asyncio.run(client.transcribe(b"abc"))

        assert session.calls[0]["headers"] == {"Authorization": "Bearer anon-key"}

    def test_no_credentials_sends_no_auth_header(self, base_url, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"text": "ok"}))
        client = self.make_client(base_url, StaticSessionProvider(), session)

        asyncio.run(client.transcribe(b"abc"))

        assert session.calls[0]["headers"] == {}

    def test_custom_path(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"text": "ok"}))
        client = self.make_client(base_url + "/", session_provider, session, path="/whisper")

        asyncio.run(client.transcribe(b"abc"))

        assert session.calls[0]["url"] == f"{base_url}/whisper"
