"""Dispatcher — catalog + cache + transport.

One Dispatcher per API catalog. It owns that catalog's CacheStore and
fetches endpoints by name with a cache-first policy: a fresh cached body is
returned with a synthesized 200 and no network call; otherwise the transport
is called once and a successful body is cached under the request URI.

Usage:
    async with HttpxTransport() as transport:
        dispatcher = Dispatcher(catalog, transport, cache_dir="cache/")
        result = await dispatcher.fetch("TeamByID", params={"id": 1})
        print(result.status_code, result.from_cache)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from apiweave.cache import CacheStore
from apiweave.clients.catalog import ApiCatalog, EndpointDefinition
from apiweave.clients.request_builder import EndpointRef, build_request_uri, resolve_endpoint
from apiweave.clients.transport import ProgressCallback, Transport
from apiweave.config import settings
from apiweave.errors import TransportError, UnsupportedMethodError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a successful fetch."""

    body: str
    status_code: int
    uri: str
    from_cache: bool = False


class Dispatcher:
    """Cache-first fetcher bound to one catalog.

    The cache key is the fully expanded request URI, so two requests that
    differ only in modifier order are cached separately.

    Args:
        catalog: API catalog (or a mapping validated into one)
        transport: Object implementing the Transport protocol
        cache: CacheStore to use; by default one named after the catalog slug
        cache_dir: Directory for the default cache (default: from settings)
        default_ttl: TTL for cacheable endpoints declaring none
            (default: settings.default_ttl)
    """

    def __init__(
        self,
        catalog: ApiCatalog | Mapping[str, Any],
        transport: Transport,
        cache: CacheStore | None = None,
        cache_dir: str | Path | None = None,
        default_ttl: int | None = None,
    ) -> None:
        self.catalog = ApiCatalog.from_mapping(catalog)
        self.transport = transport
        if cache is None:
            cache = CacheStore(
                name=self.catalog.slug,
                base_path=cache_dir or settings.cache_dir,
            )
        self.cache = cache
        self.default_ttl = default_ttl if default_ttl is not None else settings.default_ttl

    @property
    def slug(self) -> str:
        return self.catalog.slug

    def resolve_endpoint(self, ref: EndpointRef) -> EndpointDefinition:
        """Resolve an endpoint slug or handle.

        Raises:
            UnknownEndpointError: If the endpoint is not in this catalog
        """
        return resolve_endpoint(self.catalog, ref)

    def build_uri(
        self,
        ref: EndpointRef,
        params: Mapping[str, Any] | None = None,
        modifiers: Mapping[str, Any] | None = None,
    ) -> str:
        return build_request_uri(self.catalog, ref, params, modifiers)

    def ttl_for(self, endpoint: EndpointDefinition) -> int:
        if endpoint.ttl_seconds is not None:
            return endpoint.ttl_seconds
        return self.default_ttl

    async def fetch(
        self,
        ref: EndpointRef,
        params: Mapping[str, Any] | None = None,
        modifiers: Mapping[str, Any] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> FetchResult:
        """Fetch an endpoint, serving from cache when possible.

        Args:
            ref: Endpoint slug or definition
            params: Path placeholder bindings
            modifiers: Query modifier bindings
            on_progress: Passed through to the transport

        Returns:
            FetchResult with body, status code, URI and cache flag

        Raises:
            UnknownEndpointError: If the endpoint cannot be resolved
            UnsupportedMethodError: If the endpoint is not a GET endpoint
            TransportError: If the request fails (never cached, never retried)
        """
        endpoint = self.resolve_endpoint(ref)
        uri = build_request_uri(self.catalog, endpoint, params, modifiers)

        if endpoint.method != "GET":
            raise UnsupportedMethodError(
                f"Endpoint '{endpoint.slug}' uses {endpoint.method}; only GET is supported"
            )

        if endpoint.cacheable:
            cached = self.cache.lookup(uri)
            if cached is not None:
                logger.debug("Cache hit for %s", uri)
                return FetchResult(body=cached, status_code=200, uri=uri, from_cache=True)
            logger.debug("Cache miss for %s", uri)

        logger.info("Requesting %s", uri)
        try:
            response = await self.transport.send(uri, "GET", on_progress)
        except TransportError:
            raise
        except Exception as e:
            logger.error("Transport failure for %s: %s", uri, e)
            raise TransportError(uri, f"Transport failure: {e}") from e

        if endpoint.cacheable and 200 <= response.status_code < 300:
            self.cache.store(uri, response.body, self.ttl_for(endpoint))

        return FetchResult(body=response.body, status_code=response.status_code, uri=uri)
