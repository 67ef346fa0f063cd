"""Shared aiohttp plumbing for HTTP model providers.

Every outbound call goes through an :class:`aiohttp.ClientSession`. The
session is created on :meth:`HTTPProvider.initialize` unless one is injected
(tests inject fakes; applications may share a pool). Streamed responses are
opened with :meth:`HTTPProvider._event_stream`, a scoped acquisition that
closes the response body exactly once on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Mapping, Sequence, Union

import aiohttp

from artiforge_common.settings import Settings
from artiforge_llm.base import AIConfig, AIMessage, ModelCapability, StreamingAIProvider
from artiforge_llm.exceptions import ProviderError
from artiforge_llm.sse import iter_sse_data

logger = logging.getLogger(__name__)


class HTTPProvider(StreamingAIProvider):
    """Base class for providers that talk JSON over HTTP.

    Args:
        config: Provider configuration
        session: Optional pre-built client session. An injected session is
            not closed by :meth:`close`.
    """

    default_base_url = ""

    def __init__(
        self,
        config: Union[AIConfig, Settings, Mapping[str, Any]],
        session: aiohttp.ClientSession | None = None,
    ):
        super().__init__(config)
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        """API base URL without trailing slash."""
        return (self.config.base_url or self.default_base_url).rstrip("/")

    def get_capabilities(self) -> list[ModelCapability]:
        """Get provider capabilities."""
        return [ModelCapability.TEXT_GENERATION, ModelCapability.STREAMING]

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    async def initialize(self) -> None:
        """Create the HTTP session if none was injected."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout or 120.0)
            )
            self._owns_session = True
        self._is_initialized = True

    async def close(self) -> None:
        """Close the HTTP session if this provider created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
        self._is_initialized = False

    @staticmethod
    def _history_messages(history: Sequence[AIMessage] | None) -> list[Dict[str, str]]:
        return [message.to_dict() for message in history or ()]

    async def _error_from_response(self, response: aiohttp.ClientResponse) -> ProviderError:
        message = None
        try:
            data = await response.json(content_type=None)
            if isinstance(data, dict):
                error = data.get("error")
                if isinstance(error, dict):
                    message = error.get("message")
                elif isinstance(error, str):
                    message = error
        except (aiohttp.ClientError, ValueError) as e:
            logger.debug("%s error body was not JSON: %s", self.display_name, e)

        message = message or response.reason or f"HTTP {response.status}"
        logger.error("%s API error (status %s): %s", self.display_name, response.status, message)
        return ProviderError(
            f"{self.display_name} API error: {message}",
            provider=self.provider_id,
            status=response.status,
        )

    async def _post_json(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST ``payload`` and return the decoded JSON body.

        Raises:
            ProviderError: On transport failure, timeout or a non-2xx status.
        """
        if not self._is_initialized:
            await self.initialize()

        logger.debug("%s request to %s (model=%s)", self.display_name, url, payload.get("model"))
        try:
            async with self._session.post(url, json=payload, headers=self._headers()) as response:
                if not 200 <= response.status < 300:
                    raise await self._error_from_response(response)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(
                f"{self.display_name} API request failed: {e}", provider=self.provider_id
            ) from e

    def _close_response(self, response: aiohttp.ClientResponse) -> None:
        try:
            response.close()
        except Exception as e:  # cleanup must never mask the original outcome
            logger.warning("%s: error closing response body: %s", self.display_name, e)

    @asynccontextmanager
    async def _event_stream(
        self, url: str, payload: Dict[str, Any]
    ) -> AsyncIterator[AsyncIterator[Dict[str, Any]]]:
        """Open a streamed POST and yield its decoded SSE payloads.

        The response body is closed exactly once when the block exits,
        whether it completes, raises, or is cancelled.

        Raises:
            ProviderError: On transport failure, a non-2xx status, or a
                missing response body.
        """
        if not self._is_initialized:
            await self.initialize()

        logger.debug("%s stream to %s (model=%s)", self.display_name, url, payload.get("model"))
        try:
            async with self._session.post(url, json=payload, headers=self._headers()) as response:
                try:
                    if not 200 <= response.status < 300:
                        raise await self._error_from_response(response)
                    if response.content is None:
                        raise ProviderError(
                            "No response body received", provider=self.provider_id
                        )
                    yield iter_sse_data(response.content)
                finally:
                    self._close_response(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(
                f"{self.display_name} streaming request failed: {e}", provider=self.provider_id
            ) from e
