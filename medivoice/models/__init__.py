"""Data models for the MediVoice pipeline."""

from .transcription import (
    SpeakerLabel,
    TranscriptSegment,
    TranscriptResult,
    EnhancedTranscript,
    Transcript,
)
from .report import ReportType, ReportStatus, ReportRequest, ReportResult, StoredReport
from .events import RawEvent, ReportUpdateEvent

__all__ = [
    "SpeakerLabel",
    "TranscriptSegment",
    "TranscriptResult",
    "EnhancedTranscript",
    "Transcript",
    # Report models
    "ReportType",
    "ReportStatus",
    "ReportRequest",
    "ReportResult",
    "StoredReport",
    # Events
    "RawEvent",
    "ReportUpdateEvent",
]
