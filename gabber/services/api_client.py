"""
HTTP client for the Gabber REST API.

This module provides the client used to exchange a bearer credential for
LiveKit connection details and to read voices, personas, scenarios and
session history. The underlying httpx client is only built on the first
request, so constructing a GabberApiClient never touches the network.
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from gabber.config.constants import (
    API_PATH_PERSONA_LIST,
    API_PATH_REALTIME_START,
    API_PATH_SCENARIO_LIST,
    API_PATH_SESSION_MESSAGES,
    API_PATH_SESSION_START,
    API_PATH_VOICE_LIST,
    DEFAULT_API_TIMEOUT,
    DEFAULT_API_URL,
    LOGGER_NAME,
)
from gabber.models.api_schemas import (
    HistoryMessage,
    PaginatedResponse,
    Persona,
    Scenario,
    Voice,
)
from gabber.models.session_schemas import (
    RealtimeSessionStartRequest,
    SessionStartRequest,
    SessionStartResponse,
)

logger = logging.getLogger(LOGGER_NAME)

ModelT = TypeVar("ModelT", bound=BaseModel)


class GabberApiError(Exception):
    """Gabber REST API error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"{status_code}: {message}")
        else:
            super().__init__(message)


class GabberApiClient:
    """
    Async client for the Gabber REST API.

    Usable as an async context manager; otherwise call aclose() when done.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the API client configuration.

        Args:
            token: Bearer credential sent in the Authorization header
            base_url: Base URL of the Gabber API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """The httpx client, created on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        response_model: Type[ModelT],
        **kwargs,
    ) -> ModelT:
        """Send a request and validate the JSON body against a model."""
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise GabberApiError(f"Request to {path} timed out: {e}") from e
        except httpx.RequestError as e:
            raise GabberApiError(f"Request to {path} failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Gabber API {method} {path} returned {response.status_code}")
            raise GabberApiError(response.text or response.reason_phrase, response.status_code)

        try:
            return response_model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise GabberApiError(
                f"Unexpected response from {path}: {e}", response.status_code
            ) from e

    @staticmethod
    def _page_params(page: Optional[str]) -> Dict[str, Any]:
        return {"page": page} if page else {}

    async def start_session(self, request: SessionStartRequest) -> SessionStartResponse:
        """
        Start a session and obtain LiveKit connection details.

        Args:
            request: Persona, scenario and other session options

        Returns:
            The connection details for the session room

        Raises:
            GabberApiError: On transport failure or a non-2xx response
        """
        logger.info("Starting Gabber session")
        return await self._request(
            "POST",
            API_PATH_SESSION_START,
            SessionStartResponse,
            json=request.model_dump(exclude_none=True),
        )

    async def start_realtime_session(
        self, request: RealtimeSessionStartRequest
    ) -> SessionStartResponse:
        """
        Start a realtime session and obtain LiveKit connection details.

        Raises:
            GabberApiError: On transport failure or a non-2xx response
        """
        logger.info("Starting Gabber realtime session")
        return await self._request(
            "POST",
            API_PATH_REALTIME_START,
            SessionStartResponse,
            json=request.model_dump(),
        )

    async def list_voices(self, page: Optional[str] = None) -> PaginatedResponse[Voice]:
        return await self._request(
            "GET", API_PATH_VOICE_LIST, PaginatedResponse[Voice],
            params=self._page_params(page),
        )

    async def list_personas(self, page: Optional[str] = None) -> PaginatedResponse[Persona]:
        return await self._request(
            "GET", API_PATH_PERSONA_LIST, PaginatedResponse[Persona],
            params=self._page_params(page),
        )

    async def list_scenarios(self, page: Optional[str] = None) -> PaginatedResponse[Scenario]:
        return await self._request(
            "GET", API_PATH_SCENARIO_LIST, PaginatedResponse[Scenario],
            params=self._page_params(page),
        )

    async def get_session_messages(
        self, session_id: str, page: Optional[str] = None
    ) -> PaginatedResponse[HistoryMessage]:
        """Read the stored messages of a past session."""
        return await self._request(
            "GET",
            API_PATH_SESSION_MESSAGES.format(session_id=session_id),
            PaginatedResponse[HistoryMessage],
            params=self._page_params(page),
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if it was created."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GabberApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
