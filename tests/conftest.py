"""Pytest configuration and fixtures for MediVoice tests."""

import asyncio
import json
import logging
import tempfile

import pytest

from medivoice.transcription.base import StaticSessionProvider


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_URL = "https://medivoice.test/functions/v1"


class FakeStreamReader:
    """Stands in for ``aiohttp.StreamReader``; yields preset body chunks.

    ``repeat`` is sent every ``delay`` seconds forever once the preset
    chunks run out, the way a server holding the stream open with
    keep-alive comments behaves.
    """

    def __init__(self, chunks, error=None, hang=False, delay=0, repeat=None):
        self.chunks = list(chunks)
        self.error = error
        self.hang = hang
        self.delay = delay
        self.repeat = repeat

    async def iter_any(self):
        for chunk in self.chunks:
            await asyncio.sleep(self.delay)
            yield chunk
        if self.error is not None:
            raise self.error
        while self.repeat is not None:
            await asyncio.sleep(self.delay)
            yield self.repeat
        if self.hang:
            await asyncio.Event().wait()


class FakeResponse:
    """Minimal async-context-manager response with aiohttp's surface."""

    def __init__(self, status=200, json_body=None, chunks=(), stream_error=None, hang=False,
                 delay=0, repeat=None):
        self.status = status
        self.json_body = json_body
        self.content = FakeStreamReader(chunks, error=stream_error, hang=hang, delay=delay, repeat=repeat)

    async def json(self, content_type="application/json"):
        if self.json_body is None:
            raise ValueError("response body is not JSON")
        return self.json_body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FailingRequest:
    """Request context manager that fails before any response arrives."""

    def __init__(self, error):
        self.error = error

    async def __aenter__(self):
        raise self.error

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records POSTs and answers them with queued responses in order.

    A queued exception is raised when the request is entered, the way
    aiohttp surfaces connection failures and timeouts.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected request to {url}")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            return FailingRequest(response)
        return response

    @property
    def call_count(self):
        return len(self.calls)


def encode_sse(*fragments, done=True):
    """Encode content fragments as a chat-completion SSE body."""
    body = ""
    for fragment in fragments:
        chunk = {"choices": [{"delta": {"content": fragment}}]}
        body += "data: " + json.dumps(chunk, ensure_ascii=False) + "\n\n"
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def session_provider():
    """Session provider returning a fixed bearer token."""
    return StaticSessionProvider(access_token="test-token")


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def fake_session():
    """Factory for sessions answering with the given responses in order."""
    return FakeSession


@pytest.fixture
def fake_response():
    """Factory for fake aiohttp responses."""
    return FakeResponse


@pytest.fixture
def sse_body():
    """Encoder for report stream bodies."""
    return encode_sse


@pytest.fixture
def config_file(temp_data_dir):
    """Write YAML config content to a file and return its path."""
    def write(content: str, name: str = "medivoice.yaml") -> str:
        path = f"{temp_data_dir}/{name}"
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    return write
