"""Services layer for MediVoice application logic."""

from .dictation_service import DictationService

__all__ = [
    "DictationService",
]
