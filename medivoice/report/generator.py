"""Streaming clinical report generation with local fallback."""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, List, Optional

import aiohttp

from ..errors import (
    EmptyInputError,
    GenerationFailedError,
    GenerationInProgressError,
    QuotaExceededError,
    RateLimitedError,
    ServiceError,
    ServiceUnavailableError,
)
from ..models.events import RawEvent
from ..models.report import ReportRequest, ReportResult, ReportStatus, ReportType
from ..models.wire import GenerateReportPayload
from ..streaming.line_parser import StreamLineParser
from ..streaming.sanitizer import clean
from ..transcription.base import AIServiceClient, SessionProvider
from .fallback import FallbackReportBuilder

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Basic report created. The AI report service was unavailable."


class GeneratorState(Enum):
    """Lifecycle of one ReportGenerator."""
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FALLBACK_REQUESTED = "fallback_requested"
    DONE = "done"
    ERRORED = "errored"
    CANCELLED = "cancelled"


def delta_content(data: Any) -> Optional[str]:
    """Pull ``choices[0].delta.content`` out of a chat-completion chunk."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class ReportGenerator(AIServiceClient):
    """Turns a transcript into a clinical report streamed from the report service.

    Subscribers receive the full accumulated text on every non-empty update.
    A missing endpoint, a 404/5xx answer, a timeout or a dropped connection
    degrades to FallbackReportBuilder; 429, 402 and other client errors are
    raised to the caller. One generation may run at a time per instance; it
    runs in a task owned by the generator so ``cancel()`` stops only that task.

    ``timeout_seconds`` bounds connecting, each socket read, and the wait for
    the next piece of report content. Keep-alive comments do not count as
    content, so a stream that only sends them ends in the fallback.
    """

    service_name = "Report service"

    def __init__(self,
                 base_url: Optional[str],
                 session_provider: SessionProvider,
                 http_session: Optional[aiohttp.ClientSession] = None,
                 path: str = "generate-report",
                 timeout_seconds: float = 30.0,
                 fallback_builder: Optional[FallbackReportBuilder] = None):
        super().__init__(base_url, path, session_provider, http_session, timeout_seconds)
        self.fallback_builder = fallback_builder or FallbackReportBuilder()

        self.state = GeneratorState.IDLE
        self.transitions: List[GeneratorState] = []
        self.last_result: Optional[ReportResult] = None
        self._task: Optional[asyncio.Task] = None
        self._parser: Optional[StreamLineParser] = None

        logger.info(f"ReportGenerator initialized for endpoint: {self.endpoint}")

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    def client_timeout(self) -> aiohttp.ClientTimeout:
        # No total: a long report that keeps producing content is not cut off.
        return aiohttp.ClientTimeout(total=None,
                                     sock_connect=self.timeout_seconds,
                                     sock_read=self.timeout_seconds)

    def error_for_status(self, status: int, server_message: Optional[str] = None) -> ServiceError:
        if status == 404 or status >= 500:
            return ServiceUnavailableError(status=status)
        if status == 429:
            return RateLimitedError("Rate limit exceeded. Please try again later.", status=status)
        if status == 402:
            return QuotaExceededError("AI usage limit reached. Please add credits to continue.", status=status)
        return GenerationFailedError(server_message or f"Failed to generate report ({status})", status=status)

    async def generate(self,
                       request: ReportRequest,
                       on_update: Optional[Callable[[str], None]] = None) -> ReportResult:
        """Generate a report for a transcript.

        Args:
            request: Transcript, report type and optional patient/physician context
            on_update: Called with the full accumulated text after every update

        Returns:
            Finished result with status ``complete`` or ``failed-fallback-used``

        Raises:
            EmptyInputError: If the transcript is blank (no network call is made)
            GenerationInProgressError: If this generator is already running
            RateLimitedError, QuotaExceededError, GenerationFailedError: Terminal service errors
            asyncio.CancelledError: If ``cancel()`` was called
        """
        if not request.transcript_text or not request.transcript_text.strip():
            raise EmptyInputError()
        if self.in_flight:
            raise GenerationInProgressError()

        self.transitions = []
        result = ReportResult(report_type=request.report_type)
        self.last_result = result

        task = self._task = asyncio.ensure_future(self._run(request, result, on_update))
        try:
            return await task
        finally:
            if self._task is task:
                self._task = None
                self._parser = None

    def cancel(self) -> bool:
        """Abort the in-flight generation, if any.

        The generator is idle again as soon as this returns, so a new
        ``generate()`` may start right away.

        Returns:
            True if a running generation was cancelled
        """
        task = self._task
        if task is None or task.done():
            return False
        logger.info("Cancelling in-flight report generation")
        self._task = None
        task.cancel()
        self._mark_cancelled(self.last_result)
        self._parser = None
        return True

    async def _run(self,
                   request: ReportRequest,
                   result: ReportResult,
                   on_update: Optional[Callable[[str], None]]) -> ReportResult:
        transcription = request.transmission_text()

        self._transition(GeneratorState.REQUESTING)
        logger.info(f"Generating {request.report_type.value} report for transcription length: {len(transcription)}")
        try:
            try:
                await self._stream_remote(transcription, request.report_type, result, on_update)
            except ServiceUnavailableError as e:
                await self._run_fallback(transcription, request.report_type, result, on_update, e.user_message)
            except asyncio.TimeoutError:
                await self._run_fallback(transcription, request.report_type, result, on_update,
                                         f"no report content within {self.timeout_seconds}s")
            except aiohttp.ClientError as e:
                await self._run_fallback(transcription, request.report_type, result, on_update, f"network error: {e}")
            except ServiceError as e:
                self._transition(GeneratorState.ERRORED)
                result.finish(ReportStatus.FAILED, error=e.user_message)
                raise
        except asyncio.CancelledError:
            self._mark_cancelled(result)
            raise

        return result

    async def _stream_remote(self,
                             transcription: str,
                             report_type: ReportType,
                             result: ReportResult,
                             on_update: Optional[Callable[[str], None]]) -> None:
        endpoint = self.require_endpoint()
        headers = await self.auth_headers()
        payload = GenerateReportPayload(transcription=transcription, report_type=report_type.value)

        async with self.open_session() as session:
            async with session.post(endpoint,
                                    json=payload.model_dump(by_alias=True),
                                    headers=headers,
                                    timeout=self.client_timeout()) as response:
                if response.status != 200:
                    server_message = await self.read_error_message(response)
                    logger.error(f"Report service error: {response.status} - {server_message}")
                    raise self.error_for_status(response.status, server_message)

                self._transition(GeneratorState.STREAMING)
                result.status = ReportStatus.STREAMING
                parser = self._parser = StreamLineParser()

                loop = asyncio.get_running_loop()
                deadline = loop.time() + self.timeout_seconds
                chunks = response.content.iter_any().__aiter__()
                finished = False
                while not finished:
                    try:
                        chunk = await asyncio.wait_for(chunks.__anext__(), max(deadline - loop.time(), 0))
                    except StopAsyncIteration:
                        break
                    received = len(result.accumulated_text)
                    finished = self._consume(parser.feed(chunk), result, on_update)
                    if len(result.accumulated_text) > received:
                        deadline = loop.time() + self.timeout_seconds
                if not finished:
                    self._consume(parser.flush(), result, on_update)

        logger.info(f"Report stream complete: {len(result.accumulated_text)} chars, "
                    f"{parser.malformed_lines} malformed fragments dropped")
        self._transition(GeneratorState.COMPLETED)
        result.finish(ReportStatus.COMPLETE)
        self._transition(GeneratorState.DONE)

    def _consume(self,
                 events: List[RawEvent],
                 result: ReportResult,
                 on_update: Optional[Callable[[str], None]]) -> bool:
        """Apply parsed events in order; True once the done sentinel is seen."""
        for event in events:
            if event.is_done:
                return True
            if not event.is_data:
                continue
            fragment = clean(delta_content(event.data) or "")
            if not fragment:
                continue
            text = result.append(fragment)
            if on_update:
                on_update(text)
        return False

    async def _run_fallback(self,
                            transcription: str,
                            report_type: ReportType,
                            result: ReportResult,
                            on_update: Optional[Callable[[str], None]],
                            reason: str) -> None:
        logger.warning(f"Report service not available ({reason}), using fallback generation")
        self._transition(GeneratorState.FALLBACK_REQUESTED)
        if self._parser is not None:
            self._parser.reset()
        result.status = ReportStatus.STREAMING

        def deliver(text: str) -> None:
            result.replace(text)
            if on_update:
                on_update(text)

        await self.fallback_builder.stream(transcription, report_type, deliver)
        result.finish(ReportStatus.FALLBACK_USED, notice=FALLBACK_NOTICE)
        self._transition(GeneratorState.DONE)

    def _mark_cancelled(self, result: ReportResult) -> None:
        if result.status == ReportStatus.CANCELLED:
            return
        if self._parser is not None:
            self._parser.reset()
        if not result.status.is_terminal:
            result.finish(ReportStatus.CANCELLED)
        self._transition(GeneratorState.CANCELLED)
        logger.info("Report generation cancelled")

    def _transition(self, state: GeneratorState) -> None:
        logger.debug(f"ReportGenerator: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)
