"""Report storage for MediVoice."""

from .record_store import RecordStore, JsonFileRecordStore

__all__ = [
    "RecordStore",
    "JsonFileRecordStore",
]
