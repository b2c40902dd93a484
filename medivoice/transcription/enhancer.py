"""Transcript enhancement and speaker diarization client."""

import logging
from typing import List, Optional

import aiohttp
from pydantic import ValidationError

from ..errors import ServiceError, TranscriptTooShortError
from ..models.transcription import EnhancedTranscript, SpeakerLabel
from ..models.wire import EnhanceTranscriptionResponse, ProcessTranscriptionResponse
from .base import AIServiceClient, SessionProvider

logger = logging.getLogger(__name__)

PROCESS_MIN_LENGTH = 10
ENHANCE_MIN_LENGTH = 3


def extract_speakers(text: str) -> List[SpeakerLabel]:
    """Speaker labels in order of first appearance, without duplicates."""
    speakers: List[SpeakerLabel] = []
    for line in text.splitlines():
        line = line.lstrip()
        for label in SpeakerLabel:
            if line.startswith(f"{label.value}:") and label not in speakers:
                speakers.append(label)
    return speakers


class TranscriptEnhancer(AIServiceClient):
    """Improves transcripts through the remote processing functions.

    ``process`` corrects terminology and optionally labels DOCTOR/PATIENT
    turns; ``enhance`` only fixes terminology and grammar.
    """

    service_name = "Enhancement service"

    def __init__(self,
                 base_url: Optional[str],
                 session_provider: SessionProvider,
                 http_session: Optional[aiohttp.ClientSession] = None,
                 path: str = "process-transcription",
                 enhance_path: str = "enhance-transcription",
                 timeout_seconds: float = 60.0):
        super().__init__(base_url, path, session_provider, http_session, timeout_seconds)
        self.enhance_path = enhance_path

    async def process(self,
                      text: str,
                      diarize: bool = True,
                      enhance_terminology: bool = True) -> EnhancedTranscript:
        """Enhance and optionally diarize a transcript."""
        if len((text or "").strip()) < PROCESS_MIN_LENGTH:
            raise TranscriptTooShortError("Transcription too short to process")

        logger.info(f"Processing transcription of length: {len(text)}, diarization: {diarize}, enhance: {enhance_terminology}")
        data = await self.post_json({
            "transcription": text,
            "enableDiarization": diarize,
            "enhanceTerminology": enhance_terminology,
        })
        try:
            response = ProcessTranscriptionResponse.model_validate(data)
        except ValidationError as e:
            raise ServiceError("Failed to process transcription") from e

        processed = (response.processed or "").strip()
        if not processed:
            raise ServiceError("Failed to process transcription")

        speakers = extract_speakers(processed) if diarize else []
        logger.info(f"Processed transcription. Detected speakers: {', '.join(s.value for s in speakers) or 'none'}")
        return EnhancedTranscript(
            text=processed,
            original_text=text,
            speakers=speakers,
            diarized=diarize,
            terminology_enhanced=enhance_terminology,
        )

    async def enhance(self, text: str) -> EnhancedTranscript:
        """Fix terminology and grammar only."""
        if len((text or "").strip()) < ENHANCE_MIN_LENGTH:
            raise TranscriptTooShortError("Transcription too short to enhance")

        logger.info(f"Enhancing transcription of length: {len(text)}")
        data = await self.post_json({"transcription": text}, path=self.enhance_path)
        try:
            response = EnhanceTranscriptionResponse.model_validate(data)
        except ValidationError as e:
            raise ServiceError("Failed to enhance transcription") from e

        enhanced = (response.enhanced or "").strip()
        if not enhanced:
            raise ServiceError("Failed to enhance transcription")
        return EnhancedTranscript(text=enhanced, original_text=text)

