"""Dictation service that wires transcription, enhancement, reports and storage."""

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional

import aiohttp

from ..config import MediVoiceConfig
from ..errors import EmptyInputError
from ..models.report import ReportRequest, ReportResult, ReportStatus, StoredReport
from ..models.transcription import EnhancedTranscript, Transcript
from ..report.fallback import FallbackReportBuilder
from ..report.generator import ReportGenerator
from ..storage.record_store import JsonFileRecordStore, RecordStore
from ..transcription.base import SessionProvider, StaticSessionProvider
from ..transcription.enhancer import TranscriptEnhancer
from ..transcription.whisper_client import TranscriptionClient

logger = logging.getLogger(__name__)


class DictationService:
    """Application layer for one clinician's dictation workflow.

    Owns the lifecycle of the collaborators it is given; the report
    generator never persists, this service does after a run finishes.
    """

    def __init__(self,
                 transcription_client: TranscriptionClient,
                 enhancer: TranscriptEnhancer,
                 generator: ReportGenerator,
                 store: RecordStore):
        self.transcription_client = transcription_client
        self.enhancer = enhancer
        self.generator = generator
        self.store = store

    @classmethod
    def from_config(cls,
                    config: MediVoiceConfig,
                    http_session: Optional[aiohttp.ClientSession] = None,
                    session_provider: Optional[SessionProvider] = None,
                    store: Optional[RecordStore] = None) -> "DictationService":
        """Build the service and its collaborators from configuration.

        Args:
            config: Application configuration
            http_session: Shared HTTP session; each call opens its own if None
            session_provider: Source of bearer tokens; configured credentials if None
            store: Report store; a JSON store under the data directory if None
        """
        base_url = config.get_service_url()
        if session_provider is None:
            session_provider = StaticSessionProvider(
                access_token=config.get('auth.access_token') or None,
                publishable_key=config.get('auth.publishable_key') or None,
            )

        transcription_client = TranscriptionClient(
            base_url,
            session_provider,
            http_session=http_session,
            path=config.get_endpoint_path('transcribe'),
            timeout_seconds=config.get_timeout('transcription', 120),
            default_language=config.get('transcription.language', 'en'),
        )
        enhancer = TranscriptEnhancer(
            base_url,
            session_provider,
            http_session=http_session,
            path=config.get_endpoint_path('process'),
            enhance_path=config.get_endpoint_path('enhance'),
            timeout_seconds=config.get_timeout('enhancement', 60),
        )
        generator = ReportGenerator(
            base_url,
            session_provider,
            http_session=http_session,
            path=config.get_endpoint_path('generate'),
            timeout_seconds=config.get_timeout('generation', 30),
            fallback_builder=FallbackReportBuilder(word_delay=config.get_fallback_word_delay()),
        )
        if store is None:
            store = JsonFileRecordStore(config.get_data_directory())

        logger.info(f"DictationService initialized (service url: {base_url or 'not configured'})")
        return cls(transcription_client, enhancer, generator, store)

    async def transcribe_recording(self,
                                   audio: bytes,
                                   mime_type: str = "audio/webm",
                                   language: Optional[str] = None,
                                   transcript: Optional[Transcript] = None) -> Transcript:
        """Transcribe a recording into a (new or given) transcript."""
        result = await self.transcription_client.transcribe(audio, mime_type=mime_type, language=language)
        transcript = transcript or Transcript()
        transcript.replace_with(result)
        return transcript

    async def enhance_transcript(self,
                                 transcript: Transcript,
                                 diarize: bool = True,
                                 terminology_only: bool = False) -> EnhancedTranscript:
        """Enhance a transcript in place and return the enhancement result."""
        if terminology_only:
            enhanced = await self.enhancer.enhance(transcript.text)
        else:
            enhanced = await self.enhancer.process(transcript.text, diarize=diarize)
        transcript.apply_enhancement(enhanced)
        return enhanced

    async def generate_report(self,
                              transcript: Transcript,
                              report_type="general",
                              patient_id: Optional[str] = None,
                              doctor_name: Optional[str] = None,
                              on_update: Optional[Callable[[str], None]] = None) -> ReportResult:
        """Freeze the transcript and stream a report for it.

        A blank transcript is rejected before anything changes. After a
        terminal service error the transcript stays frozen so a retry reports
        on the same text.
        """
        if not transcript.text.strip():
            raise EmptyInputError()
        request = ReportRequest(
            transcript_text=transcript.text,
            report_type=report_type,
            patient_id=patient_id,
            doctor_name=doctor_name,
        )
        transcript.freeze()
        return await self.generator.generate(request, on_update=on_update)

    def save_report(self,
                    transcript: Transcript,
                    result: ReportResult,
                    patient_id: Optional[str] = None,
                    doctor_name: Optional[str] = None,
                    audio_url: Optional[str] = None) -> StoredReport:
        """Persist a finished report.

        Raises:
            EmptyInputError: If there is no report content to save
        """
        if not result.accumulated_text.strip():
            raise EmptyInputError("No report to save. Please generate a report first.")
        if result.status not in (ReportStatus.COMPLETE, ReportStatus.FALLBACK_USED):
            raise ValueError(f"Only finished reports can be saved (status: {result.status.value})")

        now = datetime.now()
        report = StoredReport(
            id=str(uuid.uuid4()),
            transcription=transcript.text,
            report_content=result.accumulated_text,
            report_type=result.report_type,
            created_at=now,
            updated_at=now,
            duration_seconds=transcript.duration_seconds,
            word_count=transcript.word_count,
            patient_id=patient_id,
            doctor_name=doctor_name,
            audio_url=audio_url,
        )
        self.store.put(report)
        logger.info(f"Saved {report.report_type.value} report {report.id} ({report.word_count} words)")
        return report
