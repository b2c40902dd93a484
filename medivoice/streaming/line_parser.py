"""Incremental parser for server-sent-event (SSE) response bodies."""

import codecs
import json
import logging
from typing import List, Union

from ..models.events import RawEvent

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_TOKEN = "[DONE]"


class StreamLineParser:
    """Turns chunks of a streamed HTTP body into SSE events.

    Chunks may split lines (and UTF-8 characters) anywhere. The trailing
    incomplete line is held back until the next ``feed`` or ``flush``.
    Lines whose payload is not valid JSON are logged and dropped; they are
    never merged back into the buffer.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self.lines_seen = 0
        self.malformed_lines = 0

    @property
    def pending(self) -> str:
        """Buffered partial line not yet terminated by a newline."""
        return self._buffer

    def feed(self, chunk: Union[bytes, str]) -> List[RawEvent]:
        """Consume one chunk and return the events of every completed line."""
        if isinstance(chunk, bytes):
            text = self._decoder.decode(chunk)
        else:
            text = chunk
        if not text:
            return []

        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        return [self._parse_line(line) for line in lines]

    def flush(self) -> List[RawEvent]:
        """Process whatever is left once the transport reports completion."""
        remaining = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        self._decoder.reset()

        events = []
        for line in remaining.split("\n"):
            if line.strip():
                events.append(self._parse_line(line))
        return events

    def reset(self) -> None:
        """Discard any buffered state."""
        self._buffer = ""
        self._decoder.reset()

    def _parse_line(self, line: str) -> RawEvent:
        self.lines_seen += 1
        if line.endswith("\r"):
            line = line[:-1]

        if not line.strip() or line.startswith(":"):
            return RawEvent(RawEvent.SKIP)
        if not line.startswith(DATA_PREFIX):
            logger.debug(f"Skipping non-data line: {line[:80]!r}")
            return RawEvent(RawEvent.SKIP)

        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_TOKEN:
            return RawEvent(RawEvent.DONE, payload=payload)

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            self.malformed_lines += 1
            logger.warning(f"Dropping malformed stream fragment ({e}): {payload[:80]!r}")
            return RawEvent(RawEvent.SKIP, payload=payload)

        return RawEvent(RawEvent.DATA, payload=payload, data=data)
