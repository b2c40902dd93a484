"""Error taxonomy for the dictation pipeline.

Every error carries a short ``user_message`` that the CLI can show as-is.
"""

from typing import Optional


class MediVoiceError(Exception):
    """Base class for all MediVoice errors."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        self.user_message = message or self.default_message
        self.status = status
        super().__init__(self.user_message)


class EmptyInputError(MediVoiceError):
    """Raised when there is nothing to send (empty transcript or audio)."""

    default_message = "No transcription. Please record some audio first."


class InvalidReportTypeError(MediVoiceError, ValueError):
    """Raised for a report type outside general/soap/diagnostic."""

    default_message = "Invalid report type. Supported types: general, soap, diagnostic"


class TranscriptTooShortError(MediVoiceError):
    """Raised before a network call when the text is below the minimum length."""

    default_message = "Transcription too short to process"


class TranscriptFrozenError(MediVoiceError):
    """Raised when live updates hit a transcript that is already frozen."""

    default_message = "Transcript is frozen and can no longer receive live updates."


class GenerationInProgressError(MediVoiceError):
    """Raised when report generation is started while another one is running."""

    default_message = "A report is already being generated. Please wait for it to finish."


class ServiceError(MediVoiceError):
    """Generic failure of a remote service."""

    default_message = "The AI service returned an error. Please try again."


class RateLimitedError(ServiceError):
    default_message = "Rate limit exceeded. Please wait and try again."


class AuthenticationFailedError(ServiceError):
    default_message = "Authentication failed. Please sign in again."


class QuotaExceededError(ServiceError):
    default_message = "Usage limit reached. Please add credits to continue."


class ServiceUnavailableError(ServiceError):
    """The service is missing or down. Report generation degrades on this."""

    default_message = "AI service temporarily unavailable. Please try again later."


class RequestTimeoutError(ServiceError):
    default_message = "Request timeout. Please try again."


class EmptyTranscriptionError(ServiceError):
    default_message = "No transcription received from the transcription service."


class GenerationFailedError(ServiceError):
    default_message = "Failed to generate report."
