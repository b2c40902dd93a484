"""Report generation module for MediVoice."""

from .fallback import FallbackReportBuilder
from .generator import ReportGenerator, GeneratorState
from .publisher import ReportPublisher

__all__ = [
    "FallbackReportBuilder",
    "ReportGenerator",
    "GeneratorState",
    "ReportPublisher",
]
