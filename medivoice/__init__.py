"""MediVoice - medical dictation transcription and streaming report generation."""

__version__ = "0.1.0"
