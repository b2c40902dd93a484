"""Transcription module for MediVoice."""

from .base import AIServiceClient, SessionProvider, StaticSessionProvider
from ..models.transcription import TranscriptResult, EnhancedTranscript
from .whisper_client import TranscriptionClient
from .enhancer import TranscriptEnhancer, extract_speakers

__all__ = [
    "AIServiceClient",
    "SessionProvider",
    "StaticSessionProvider",
    "TranscriptResult",
    "EnhancedTranscript",
    "TranscriptionClient",
    "TranscriptEnhancer",
    "extract_speakers",
]
