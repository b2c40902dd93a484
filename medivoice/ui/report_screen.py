"""Terminal views for transcripts and streaming reports."""

import logging
from typing import List, Optional

from pubsub import pub
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.events import ReportUpdateEvent
from ..models.report import ReportResult, ReportStatus, StoredReport
from ..models.transcription import EnhancedTranscript, Transcript

logger = logging.getLogger(__name__)

_STATUS_STYLES = {
    ReportStatus.COMPLETE: "bold green",
    ReportStatus.FALLBACK_USED: "bold yellow",
    ReportStatus.FAILED: "bold red",
    ReportStatus.CANCELLED: "bold red",
}


class ReportScreen:
    """Live panel that follows report updates published on a pub/sub topic."""

    def __init__(self, topic: str = "report_updates", console: Optional[Console] = None):
        self.topic = topic
        self.console = console or Console()
        self.live: Optional[Live] = None
        self.updates_seen = 0
        self.current_text = ""

    def _render(self, text: str, status: str) -> Panel:
        title = Text.assemble(("MediVoice report", "bold blue"), "  |  ", (status.upper(), "bold"))
        return Panel(Text(text or "Waiting for the report service..."), title=title, border_style="bright_blue")

    def on_update(self, event: ReportUpdateEvent) -> None:
        """Pub/sub listener; redraws the panel with the full text so far."""
        self.updates_seen += 1
        self.current_text = event.text
        if self.live is not None:
            self.live.update(self._render(event.text, event.status))

    def __enter__(self) -> "ReportScreen":
        self.live = Live(self._render("", "requesting"), console=self.console, refresh_per_second=8)
        self.live.__enter__()
        pub.subscribe(self.on_update, self.topic)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        pub.unsubscribe(self.on_update, self.topic)
        if self.live is not None:
            self.live.__exit__(exc_type, exc, tb)
            self.live = None

    def show_result(self, result: ReportResult) -> None:
        style = _STATUS_STYLES.get(result.status, "bold")
        self.console.print(f"Status: {result.status.value}", style=style)
        if result.notice:
            self.console.print(result.notice, style="yellow")


def print_transcript(console: Console, transcript: Transcript) -> None:
    console.print(Panel(Text(transcript.text), title="Transcript", border_style="green"))
    console.print(f"Language: {transcript.language}  Duration: {transcript.duration_seconds:.1f}s  "
                  f"Words: {transcript.word_count}")


def print_enhanced(console: Console, enhanced: EnhancedTranscript) -> None:
    console.print(Panel(Text(enhanced.text), title="Enhanced transcript", border_style="green"))
    if enhanced.speakers:
        console.print("Detected speakers: " + ", ".join(s.value for s in enhanced.speakers))


def print_history(console: Console, reports: List[StoredReport]) -> None:
    table = Table(title="Stored reports")
    table.add_column("Created")
    table.add_column("Type")
    table.add_column("Patient")
    table.add_column("Words", justify="right")
    table.add_column("Id")
    for report in reports:
        table.add_row(
            report.created_at.strftime("%Y-%m-%d %H:%M"),
            report.report_type.value,
            report.patient_id or "-",
            str(report.word_count),
            report.id,
        )
    console.print(table)
