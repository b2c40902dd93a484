"""Report request/result models."""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from ..errors import InvalidReportTypeError


class ReportType(Enum):
    """Supported report layouts."""
    GENERAL = "general"
    SOAP = "soap"
    DIAGNOSTIC = "diagnostic"

    @classmethod
    def parse(cls, value) -> "ReportType":
        """Strictly parse a report type; unknown values are rejected."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidReportTypeError(
                f"Invalid reportType '{value}'. Supported types: "
                + ", ".join(t.value for t in cls)
            )


class ReportStatus(Enum):
    """Status of a report generation run."""
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FALLBACK_USED = "failed-fallback-used"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self not in (ReportStatus.PENDING, ReportStatus.STREAMING)


@dataclass
class ReportRequest:
    """Input to report generation."""
    transcript_text: str
    report_type: ReportType = ReportType.GENERAL
    patient_id: Optional[str] = None
    doctor_name: Optional[str] = None

    def __post_init__(self):
        self.report_type = ReportType.parse(self.report_type)

    def transmission_text(self) -> str:
        """Transcript with the patient/physician context lines prepended."""
        text = self.transcript_text
        if self.patient_id:
            text = f"Patient ID: {self.patient_id}\n\n{text}"
        if self.doctor_name:
            text = f"Attending Physician: {self.doctor_name}\n\n{text}"
        return text


@dataclass
class ReportResult:
    """Progressively growing report owned by a single generation run."""
    report_type: ReportType = ReportType.GENERAL
    accumulated_text: str = ""
    status: ReportStatus = ReportStatus.PENDING
    notice: Optional[str] = None
    error: Optional[str] = None
    updates: int = 0

    def append(self, fragment: str) -> str:
        if self.status.is_terminal:
            raise RuntimeError(f"Report is already {self.status.value}")
        self.accumulated_text += fragment
        self.updates += 1
        return self.accumulated_text

    def replace(self, text: str) -> str:
        """Swap in a whole report (fallback delivery)."""
        if self.status.is_terminal:
            raise RuntimeError(f"Report is already {self.status.value}")
        self.accumulated_text = text
        self.updates += 1
        return self.accumulated_text

    def finish(self, status: ReportStatus, notice: Optional[str] = None,
               error: Optional[str] = None) -> None:
        if self.status.is_terminal:
            raise RuntimeError(f"Report is already {self.status.value}")
        self.status = status
        self.notice = notice
        self.error = error


@dataclass
class StoredReport:
    """Persisted report record."""
    id: str
    transcription: str
    report_content: str
    report_type: ReportType
    created_at: datetime
    updated_at: datetime
    duration_seconds: float = 0.0
    word_count: int = 0
    patient_id: Optional[str] = None
    doctor_name: Optional[str] = None
    audio_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['report_type'] = self.report_type.value
        data['created_at'] = self.created_at.isoformat()
        data['updated_at'] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredReport":
        data = dict(data)
        data['report_type'] = ReportType.parse(data['report_type'])
        data['created_at'] = datetime.fromisoformat(data['created_at'])
        data['updated_at'] = datetime.fromisoformat(data['updated_at'])
        return cls(**data)
