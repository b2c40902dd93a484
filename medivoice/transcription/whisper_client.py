"""Client for the batch transcription function."""

import logging
from typing import Optional

import aiohttp
from pydantic import ValidationError

from ..errors import EmptyInputError, EmptyTranscriptionError, ServiceError
from ..models.transcription import TranscriptResult, TranscriptSegment
from ..models.wire import TranscriptionResponse
from .base import AIServiceClient, SessionProvider

logger = logging.getLogger(__name__)

_EXTENSIONS = ("mp4", "mp3", "wav", "ogg")


def audio_extension(mime_type: Optional[str]) -> str:
    """File extension for an audio container; webm unless recognized."""
    mime_type = (mime_type or "").lower()
    for extension in _EXTENSIONS:
        if extension in mime_type:
            return extension
    return "webm"


class TranscriptionClient(AIServiceClient):
    """Sends recorded audio to the transcription function."""

    service_name = "Transcription service"

    def __init__(self,
                 base_url: Optional[str],
                 session_provider: SessionProvider,
                 http_session: Optional[aiohttp.ClientSession] = None,
                 path: str = "transcribe",
                 timeout_seconds: float = 120.0,
                 default_language: str = "en"):
        super().__init__(base_url, path, session_provider, http_session, timeout_seconds)
        self.default_language = default_language
        logger.info(f"TranscriptionClient initialized for endpoint: {self.endpoint}")

    async def transcribe(self,
                         audio: bytes,
                         mime_type: str = "audio/webm",
                         language: Optional[str] = None) -> TranscriptResult:
        """Transcribe one recording.

        Args:
            audio: Encoded audio blob
            mime_type: MIME type of the blob; picks the upload filename extension
            language: Language hint, defaults to the configured language

        Returns:
            Normalized transcription result

        Raises:
            EmptyInputError: If the audio payload is empty
            EmptyTranscriptionError: If the service answered without text
            ServiceError: Or one of its subclasses for any service failure
        """
        if not audio:
            raise EmptyInputError("No audio data to transcribe")

        language = language or self.default_language
        extension = audio_extension(mime_type)
        filename = f"recording.{extension}"
        logger.info(f"Transcribing {filename}: {len(audio)} bytes, language={language}")

        form = aiohttp.FormData()
        form.add_field("audio", audio, filename=filename, content_type=mime_type or f"audio/{extension}")
        form.add_field("language", language)

        data = await self._post(data=form)
        result = self._parse_result(data, language)
        logger.info(f"Transcription successful. Duration: {result.duration_seconds}s, Language: {result.language}")
        return result

    def _parse_result(self, data, language: str) -> TranscriptResult:
        if not isinstance(data, dict):
            raise ServiceError("Transcription service returned an invalid response.")
        try:
            response = TranscriptionResponse.model_validate(data)
        except ValidationError as e:
            raise ServiceError("Transcription service returned an invalid response.") from e

        if not response.text or not response.text.strip():
            raise EmptyTranscriptionError()

        return TranscriptResult(
            text=response.text,
            duration_seconds=response.duration or 0.0,
            language=response.language or language,
            segments=[TranscriptSegment(start=s.start, end=s.end, text=s.text) for s in response.segments],
        )
