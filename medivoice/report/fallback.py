"""Local template-based report synthesis used when the report service is down."""

import asyncio
import logging
import re
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "Not specified"

_PATIENT_ID = re.compile(r"^Patient ID:[ \t]*(.*)$", re.MULTILINE)
_DOCTOR = re.compile(r"^Attending Physician:[ \t]*(.*)$", re.MULTILINE)
_WORDS = re.compile(r"\S+\s*")

_HEADER = """MEDIVOICE HOSPITAL

COMPREHENSIVE DIAGNOSTIC REPORT

PATIENT INFORMATION
- Patient ID: {patient_id}{patient_extra}

ATTENDING PHYSICIAN
{doctor_name}
"""

_TEMPLATES = {
    "general": _HEADER + """
BACKGROUND & MANIFESTATIONS
{body}

TESTS ADMINISTERED AND RESULTS OBTAINED
- Information not provided in transcription

OBSERVATIONS
- Clinical observations not detailed in transcription

SUMMARY / DIAGNOSIS
- Diagnosis information not available in transcription

RECOMMENDATION
- Treatment recommendations not specified in transcription

Note: This is a basic template generated from your transcription. AI-powered report generation was unavailable.""",

    "soap": _HEADER + """
S (Subjective)
{body}

O (Objective)
- Vital signs: Not specified
- Physical examination: Not detailed in transcription

A (Assessment)
- Primary diagnosis: Not specified in transcription

P (Plan)
- Treatment plan: Not specified in transcription

RECOMMENDATION
- Follow-up recommendations not available

Note: This is a basic SOAP template generated from your transcription. AI-powered report generation was unavailable.""",

    "diagnostic": _HEADER + """
CLINICAL HISTORY
{body}

SPECIMEN INFORMATION
- Specimen type: Not specified in transcription
- Collection details: Not available

GROSS DESCRIPTION
- Gross findings: Not described in transcription

MICROSCOPIC DESCRIPTION
- Microscopic findings: Not detailed in transcription

DIAGNOSIS
- Pathologic diagnosis: Not specified in transcription

COMMENT
- Additional comments: Not provided

Note: This is a basic diagnostic template generated from your transcription. AI-powered report generation was unavailable.""",
}

_DIAGNOSTIC_PATIENT_EXTRA = "\n- Age, Gender: Not specified\n- Date of specimen collection: Not specified"

_GENERIC_TEMPLATE = """MEDIVOICE HOSPITAL

BASIC TRANSCRIPTION SUMMARY

Patient ID: {patient_id}
Attending Physician: {doctor_name}

TRANSCRIPTION:
{body}

Note: This is a basic summary. AI-powered report generation was unavailable."""


def _first_value(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return NOT_SPECIFIED


def _strip_label_line(pattern: re.Pattern, text: str) -> str:
    """Remove the first label line together with one following blank line."""
    match = pattern.search(text)
    if not match:
        return text
    end = match.end()
    if text.startswith("\n\n", end):
        end += 2
    elif text.startswith("\n", end):
        end += 1
    return text[:match.start()] + text[end:]


class FallbackReportBuilder:
    """Deterministic report synthesis from transcript text alone."""

    def __init__(self, word_delay: float = 0.05):
        """Initialize builder.

        Args:
            word_delay: Seconds to wait between revealed words in ``stream``
        """
        self.word_delay = word_delay

    def extract_context(self, transcript_text: str) -> Tuple[str, str]:
        """Return ``(patient_id, doctor_name)`` found in the transcript."""
        return _first_value(_PATIENT_ID, transcript_text), _first_value(_DOCTOR, transcript_text)

    def strip_context(self, transcript_text: str) -> str:
        body = _strip_label_line(_PATIENT_ID, transcript_text)
        body = _strip_label_line(_DOCTOR, body)
        return body.strip()

    def build(self, transcript_text: str, report_type) -> str:
        """Render the full report for a report type (enum or plain string)."""
        report_type = getattr(report_type, "value", report_type)
        patient_id, doctor_name = self.extract_context(transcript_text)
        body = self.strip_context(transcript_text)

        template = _TEMPLATES.get(report_type)
        if template is None:
            logger.warning(f"No fallback template for report type {report_type!r}, using generic summary")
            template = _GENERIC_TEMPLATE

        return template.format(
            patient_id=patient_id,
            doctor_name=doctor_name,
            patient_extra=_DIAGNOSTIC_PATIENT_EXTRA if report_type == "diagnostic" else "",
            body=body,
        )

    async def stream(self,
                     transcript_text: str,
                     report_type,
                     on_update: Optional[Callable[[str], None]] = None,
                     word_delay: Optional[float] = None) -> str:
        """Build the report and reveal it word by word.

        Every update carries the growing prefix of the report; the last one
        is the complete report.
        """
        report = self.build(transcript_text, report_type)
        delay = self.word_delay if word_delay is None else word_delay
        logger.info(f"Generating fallback report for type: {getattr(report_type, 'value', report_type)}")

        current = ""
        for word in _WORDS.findall(report):
            current += word
            if on_update:
                on_update(current)
            if delay > 0:
                await asyncio.sleep(delay)
        return report
