"""
Typed JSON contracts of the remote AI functions.

Responses are validated at the HTTP boundary so that downstream code only
ever sees well-formed values.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class WireSegment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    start: float = Field(default=0.0, ge=0.0)
    end: float = Field(default=0.0, ge=0.0)
    text: str = ""

    @model_validator(mode="after")
    def _clamp_window(self) -> "WireSegment":
        # A reversed window keeps its text; the segment collapses to its start.
        if self.end < self.start:
            self.end = self.start
        return self


class TranscriptionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None
    duration: Optional[float] = None
    language: Optional[str] = None
    segments: List[WireSegment] = Field(default_factory=list)


class ProcessTranscriptionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    processed: Optional[str] = None
    speakers: List[str] = Field(default_factory=list)


class EnhanceTranscriptionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enhanced: Optional[str] = None


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: Optional[str] = None


class GenerateReportPayload(BaseModel):
    transcription: str = Field(min_length=1)
    report_type: str = Field(alias="reportType")

    model_config = ConfigDict(populate_by_name=True)
