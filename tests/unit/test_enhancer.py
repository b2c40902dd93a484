"""Unit tests for TranscriptEnhancer."""

import asyncio

import pytest

from medivoice.errors import QuotaExceededError, ServiceError, TranscriptTooShortError
from medivoice.models.transcription import SpeakerLabel
from medivoice.transcription.enhancer import TranscriptEnhancer, extract_speakers


DIARIZED = """DOCTOR: What brings you in today?
PATIENT: I've had a headache for three days.
DOCTOR: Any nausea?
  PATIENT: A little, in the mornings."""


@pytest.mark.unit
class TestExtractSpeakers:
    """Test cases for extract_speakers()."""

    def test_order_of_first_appearance(self):
        assert extract_speakers(DIARIZED) == [SpeakerLabel.DOCTOR, SpeakerLabel.PATIENT]

    def test_patient_first(self):
        text = "PATIENT: It hurts.\nDOCTOR: Where?"
        assert extract_speakers(text) == [SpeakerLabel.PATIENT, SpeakerLabel.DOCTOR]

    def test_labels_must_start_a_line(self):
        assert extract_speakers("The DOCTOR: said nothing") == []

    def test_no_labels(self):
        assert extract_speakers("Patient reports mild fever.") == []


@pytest.mark.unit
class TestTranscriptEnhancer:
    """Test cases for TranscriptEnhancer class."""

    def make_enhancer(self, base_url, session_provider, session):
        return TranscriptEnhancer(base_url, session_provider, http_session=session)

    def test_process_with_diarization(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"processed": DIARIZED + "\n"}))
        enhancer = self.make_enhancer(base_url, session_provider, session)
        text = "what brings you in today ive had a headache for three days"

        enhanced = asyncio.run(enhancer.process(text))

        assert enhanced.text == DIARIZED
        assert enhanced.original_text == text
        assert enhanced.speakers == [SpeakerLabel.DOCTOR, SpeakerLabel.PATIENT]
        assert enhanced.diarized is True

        call = session.calls[0]
        assert call["url"] == f"{base_url}/process-transcription"
        assert call["json"] == {
            "transcription": text,
            "enableDiarization": True,
            "enhanceTerminology": True,
        }

    def test_process_without_diarization(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"processed": DIARIZED}))
        enhancer = self.make_enhancer(base_url, session_provider, session)

        enhanced = asyncio.run(enhancer.process("patient has hypertension", diarize=False))

        assert enhanced.speakers == []
        assert enhanced.diarized is False
        assert session.calls[0]["json"]["enableDiarization"] is False

    def test_process_too_short_makes_no_request(self, base_url, session_provider, fake_session):
        session = fake_session()
        enhancer = self.make_enhancer(base_url, session_provider, session)

        with pytest.raises(TranscriptTooShortError):
            asyncio.run(enhancer.process("  short   "))

        assert session.call_count == 0

    def test_process_empty_result(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"processed": ""}))
        enhancer = self.make_enhancer(base_url, session_provider, session)

        with pytest.raises(ServiceError, match="Failed to process transcription"):
            asyncio.run(enhancer.process("patient has hypertension"))

    def test_process_quota_exceeded(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(402, json_body={"error": "Payment required"}))
        enhancer = self.make_enhancer(base_url, session_provider, session)

        with pytest.raises(QuotaExceededError):
            asyncio.run(enhancer.process("patient has hypertension"))

    def test_enhance_uses_enhance_endpoint(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"enhanced": "Patient has hypertension."}))
        enhancer = self.make_enhancer(base_url, session_provider, session)

        enhanced = asyncio.run(enhancer.enhance("patient has hyper tension"))

        assert enhanced.text == "Patient has hypertension."
        assert enhanced.speakers == []
        assert session.calls[0]["url"] == f"{base_url}/enhance-transcription"
        assert session.calls[0]["json"] == {"transcription": "patient has hyper tension"}

    def test_enhance_minimum_length(self, base_url, session_provider, fake_session, fake_response):
        session = fake_session(fake_response(200, json_body={"enhanced": "BP ok."}))
        enhancer = self.make_enhancer(base_url, session_provider, session)

        with pytest.raises(TranscriptTooShortError):
            asyncio.run(enhancer.enhance("ok"))
        assert session.call_count == 0

        asyncio.run(enhancer.enhance("bp ok"))
        assert session.call_count == 1
