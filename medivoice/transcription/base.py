"""Shared plumbing for clients of the remote AI functions."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Protocol

import aiohttp
from pydantic import ValidationError

from ..errors import (
    AuthenticationFailedError,
    QuotaExceededError,
    RateLimitedError,
    RequestTimeoutError,
    ServiceError,
    ServiceUnavailableError,
)
from ..models.wire import ErrorResponse

logger = logging.getLogger(__name__)


class SessionProvider(Protocol):
    """Supplies the bearer credential for outbound calls."""

    async def get_token(self) -> Optional[str]:
        """Return the current access token. Must be side-effect free."""
        ...


class StaticSessionProvider:
    """Session provider backed by configured credentials.

    The signed-in user's access token wins; the project's publishable key
    is used for anonymous calls.
    """

    def __init__(self, access_token: Optional[str] = None, publishable_key: Optional[str] = None):
        self.access_token = access_token
        self.publishable_key = publishable_key

    async def get_token(self) -> Optional[str]:
        return self.access_token or self.publishable_key


def join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


class AIServiceClient:
    """Base class for clients talking to one remote AI function."""

    service_name = "AI service"

    def __init__(self,
                 base_url: Optional[str],
                 path: str,
                 session_provider: SessionProvider,
                 http_session: Optional[aiohttp.ClientSession] = None,
                 timeout_seconds: float = 60.0):
        """Initialize client.

        Args:
            base_url: Base URL of the functions host, e.g. ``https://x.supabase.co/functions/v1``
            path: Function path below the base URL
            session_provider: Source of the bearer token
            http_session: Shared aiohttp session; a short-lived one is opened per call if None
            timeout_seconds: Total timeout for one request
        """
        self.base_url = base_url
        self.path = path
        self.session_provider = session_provider
        self.http_session = http_session
        self.timeout_seconds = timeout_seconds

    @property
    def endpoint(self) -> Optional[str]:
        return self.endpoint_for(self.path)

    def endpoint_for(self, path: str) -> Optional[str]:
        if not self.base_url:
            return None
        return join_url(self.base_url, path)

    def require_endpoint(self, path: Optional[str] = None) -> str:
        endpoint = self.endpoint_for(path or self.path)
        if not endpoint:
            raise ServiceUnavailableError(f"{self.service_name} is not configured (missing service URL).")
        return endpoint

    async def auth_headers(self) -> Dict[str, str]:
        token = await self.session_provider.get_token()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.timeout_seconds)

    @asynccontextmanager
    async def open_session(self):
        """Yield the injected HTTP session, or a fresh one closed afterwards."""
        if self.http_session is not None:
            yield self.http_session
            return
        async with aiohttp.ClientSession() as session:
            yield session

    async def read_error_message(self, response) -> Optional[str]:
        """Best-effort extraction of ``{"error": ...}`` from a failed response."""
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return None
        if not isinstance(body, dict):
            return None
        try:
            return ErrorResponse.model_validate(body).error
        except ValidationError:
            return None

    async def read_json(self, response) -> Any:
        try:
            return await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError) as e:
            raise ServiceError(f"{self.service_name} returned an invalid response.", status=response.status) from e

    def error_for_status(self, status: int, server_message: Optional[str] = None) -> ServiceError:
        """Map a non-2xx status onto the shared error taxonomy."""
        if status == 429:
            return RateLimitedError(status=status)
        if status == 401:
            return AuthenticationFailedError(status=status)
        if status == 402:
            return QuotaExceededError(status=status)
        return ServiceError(server_message or f"{self.service_name} failed ({status})", status=status)

    async def post_json(self, payload: Dict[str, Any], path: Optional[str] = None) -> Any:
        """POST a JSON body and return the decoded JSON response."""
        return await self._post(path, json=payload)

    async def _post(self, path: Optional[str] = None, **request_kwargs) -> Any:
        endpoint = self.require_endpoint(path)
        headers = await self.auth_headers()

        try:
            async with self.open_session() as session:
                async with session.post(endpoint,
                                        headers=headers,
                                        timeout=self.client_timeout(),
                                        **request_kwargs) as response:
                    if response.status != 200:
                        server_message = await self.read_error_message(response)
                        logger.error(f"{self.service_name} error: {response.status} - {server_message}")
                        raise self.error_for_status(response.status, server_message)
                    return await self.read_json(response)
        except asyncio.TimeoutError as e:
            logger.error(f"{self.service_name} request timed out after {self.timeout_seconds}s")
            raise RequestTimeoutError() from e
        except aiohttp.ClientError as e:
            logger.error(f"{self.service_name} request failed: {e}")
            raise ServiceError("Network error. Please check your connection and try again.") from e
