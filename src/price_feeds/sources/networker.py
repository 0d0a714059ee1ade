"""Async HTTP transport that returns parsed JSON."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from price_feeds.core.config import NetworkConfig
from price_feeds.core.exceptions import NetworkError

logger = logging.getLogger(__name__)

# Response bodies are truncated to this many characters in error context
_MAX_ERROR_BODY = 500


@runtime_checkable
class Networker(Protocol):
    """Fetches a URL and returns its parsed JSON body."""

    async def fetch_json(self, url: str) -> Any: ...


class HttpxNetworker:
    """httpx-backed networker.

    One GET per call. No retries: a failed fetch surfaces as NetworkError
    and the caller decides when to try again.

    Use via ``async with HttpxNetworker(...) as networker:``.
    """

    def __init__(
        self,
        config: NetworkConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        config = config or NetworkConfig()
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
            timeout=httpx.Timeout(config.timeout),
            follow_redirects=True,
        )

    async def __aenter__(self) -> HttpxNetworker:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client. Called automatically by __aexit__."""
        await self._client.aclose()

    async def fetch_json(self, url: str) -> Any:
        """GET ``url`` and decode the JSON body.

        Raises:
            NetworkError: timeout, connection failure, non-2xx status,
                or a body that is not JSON.
        """
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"HTTP {e.response.status_code} from {url}",
                context={
                    "url": url,
                    "status_code": e.response.status_code,
                    "response": e.response.text[:_MAX_ERROR_BODY],
                },
            ) from e
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Request timed out: {url}",
                context={"url": url, "status_code": None, "error": str(e)},
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(
                f"Request failed: {url}",
                context={"url": url, "status_code": None, "error": str(e)},
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(
                f"Response from {url} is not valid JSON",
                context={
                    "url": url,
                    "status_code": response.status_code,
                    "response": response.text[:_MAX_ERROR_BODY],
                },
            ) from e
