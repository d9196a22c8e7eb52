"""Transport layer: performs the actual network call for a request URI.

The core only depends on the :class:`Transport` protocol, so anything with a
matching ``send`` coroutine can stand in (tests use in-memory stubs). The
shipped implementation wraps ``httpx.AsyncClient``:

    async with HttpxTransport(timeout=10.0) as transport:
        response = await transport.send("https://api.example.com/v1/teams/1")
        print(response.status_code, response.body)

Exactly one attempt is made per request. Failures (HTTP >= 400, timeouts,
network errors) are raised as TransportError carrying the failed URI.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from apiweave.config import settings
from apiweave.errors import TransportError, UnsupportedMethodError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[bytes], None]


@dataclass(frozen=True)
class TransportResponse:
    """Successful completion of a request."""

    status_code: int
    body: str


@runtime_checkable
class Transport(Protocol):
    """Anything that can GET a URI and hand back status plus body."""

    async def send(
        self,
        uri: str,
        method: str = "GET",
        on_progress: ProgressCallback | None = None,
    ) -> TransportResponse:
        """Perform the request.

        Args:
            uri: Fully-qualified request URI
            method: HTTP method (only GET is supported)
            on_progress: Optional callback, invoked with each body chunk

        Returns:
            Status code and decoded body

        Raises:
            TransportError: On any network or remote failure
        """
        ...


class HttpxTransport:
    """Async httpx transport with connection pooling.

    Args:
        headers: Default headers for every request
        timeout: Request timeout in seconds (default: settings.http_timeout)
        client: Pre-built AsyncClient to use instead of creating one
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.headers = {"User-Agent": settings.user_agent, **(headers or {})}
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "HttpxTransport":
        """Async context manager entry."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                follow_redirects=True,
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def send(
        self,
        uri: str,
        method: str = "GET",
        on_progress: ProgressCallback | None = None,
    ) -> TransportResponse:
        """Make a single GET request.

        Raises:
            UnsupportedMethodError: For anything but GET
            TransportError: On HTTP errors, timeouts and network failures
        """
        if method.upper() != "GET":
            raise UnsupportedMethodError(f"Only GET is supported, got {method}")
        if not self._client:
            raise RuntimeError("Transport not initialized. Use async with context manager.")

        logger.debug("GET %s", uri)

        try:
            async with self._client.stream("GET", uri) as response:
                chunks = []
                async for chunk in response.aiter_bytes():
                    chunks.append(chunk)
                    if on_progress is not None:
                        on_progress(chunk)

                body = b"".join(chunks).decode(
                    response.charset_encoding or "utf-8", errors="replace"
                )
                logger.debug("Response: %d for %s", response.status_code, uri)

                if response.status_code >= 400:
                    error_body = body[:500]
                    logger.error(
                        "API error: %d %s - %s",
                        response.status_code, uri, error_body,
                    )
                    raise TransportError(
                        uri,
                        f"Request failed: {response.status_code}",
                        status_code=response.status_code,
                        response_body=error_body,
                    )

                return TransportResponse(status_code=response.status_code, body=body)

        except httpx.TimeoutException as e:
            logger.error("Request timeout for %s: %s", uri, e)
            raise TransportError(uri, f"Request timeout: {e}") from e

        except httpx.NetworkError as e:
            logger.error("Network error for %s: %s", uri, e)
            raise TransportError(uri, f"Network error: {e}") from e

        except TransportError:
            raise

        except Exception as e:
            logger.error("Unexpected error for %s: %s", uri, e)
            raise TransportError(uri, f"Unexpected error: {e}") from e
