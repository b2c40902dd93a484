"""Transcription-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from ..errors import TranscriptFrozenError


class SpeakerLabel(Enum):
    """Speaker roles detected by diarization."""
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"


@dataclass
class TranscriptSegment:
    """Timed piece of a batch transcription."""
    start: float
    end: float
    text: str


@dataclass
class TranscriptResult:
    """Normalized result of a batch transcription request."""
    text: str
    duration_seconds: float = 0.0
    language: str = "en"
    segments: List[TranscriptSegment] = field(default_factory=list)


@dataclass
class EnhancedTranscript:
    """Result of an enhancement/diarization request."""
    text: str
    original_text: str
    speakers: List[SpeakerLabel] = field(default_factory=list)
    diarized: bool = False
    terminology_enhanced: bool = True


@dataclass
class Transcript:
    """Working transcript for one dictation.

    Live recognition appends final fragments to ``text`` and overwrites
    ``interim_text`` on every update. A batch transcription replaces the
    whole thing. Once frozen only enhancement may change the text.
    """
    text: str = ""
    interim_text: str = ""
    language: str = "en"
    duration_seconds: float = 0.0
    segments: List[TranscriptSegment] = field(default_factory=list)
    frozen: bool = False
    speakers: List[SpeakerLabel] = field(default_factory=list)

    def _check_live(self) -> None:
        if self.frozen:
            raise TranscriptFrozenError()

    def apply_interim(self, fragment: str) -> None:
        self._check_live()
        self.interim_text = fragment

    def apply_final(self, fragment: str) -> None:
        self._check_live()
        fragment = fragment.strip()
        if fragment:
            self.text = f"{self.text} {fragment}".strip() if self.text else fragment
        self.interim_text = ""

    def replace_with(self, result: TranscriptResult) -> None:
        self._check_live()
        self.text = result.text
        self.interim_text = ""
        self.language = result.language
        self.duration_seconds = result.duration_seconds
        self.segments = list(result.segments)

    def freeze(self) -> None:
        """Stop accepting live updates; any pending interim text is discarded."""
        self.interim_text = ""
        self.frozen = True

    def apply_enhancement(self, enhanced: EnhancedTranscript) -> None:
        self.text = enhanced.text
        self.speakers = list(enhanced.speakers)

    @property
    def word_count(self) -> int:
        return len(f"{self.text} {self.interim_text}".split())
