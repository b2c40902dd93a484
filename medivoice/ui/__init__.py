"""Terminal UI for MediVoice."""

from .report_screen import ReportScreen, print_transcript, print_enhanced, print_history

__all__ = [
    "ReportScreen",
    "print_transcript",
    "print_enhanced",
    "print_history",
]
