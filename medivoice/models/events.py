"""Event models for stream parsing and report updates."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class RawEvent:
    """One parsed line of a server-sent-event stream.

    ``kind`` is ``"data"``, ``"done"`` or ``"skip"``. For data events
    ``payload`` is the text after ``data: `` and ``data`` its decoded JSON.
    """
    kind: str
    payload: Optional[str] = None
    data: Any = None

    DATA = "data"
    DONE = "done"
    SKIP = "skip"

    @property
    def is_data(self) -> bool:
        return self.kind == self.DATA

    @property
    def is_done(self) -> bool:
        return self.kind == self.DONE


@dataclass
class ReportUpdateEvent:
    """Report update fanned out to pub/sub subscribers."""
    text: str
    status: str
    sequence_number: int
    timestamp: datetime = field(default_factory=datetime.now)
