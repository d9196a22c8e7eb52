"""API client layer for apiweave.

- Catalogs and endpoint definitions
- Request URI construction
- Transport protocol and the httpx implementation
- Dispatcher: cache-first fetch bound to one catalog
"""

from apiweave.clients.catalog import ApiCatalog, EndpointDefinition
from apiweave.clients.dispatcher import Dispatcher, FetchResult
from apiweave.clients.request_builder import EndpointRef, build_request_uri, resolve_endpoint
from apiweave.clients.transport import HttpxTransport, Transport, TransportResponse

__all__ = [
    "ApiCatalog",
    "EndpointDefinition",
    "EndpointRef",
    "Dispatcher",
    "FetchResult",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
    "build_request_uri",
    "resolve_endpoint",
]
