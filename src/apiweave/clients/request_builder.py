"""Request URI construction.

Pure functions, no I/O. An endpoint's path template is expanded with the
parameter bindings it allows, then the allowed modifiers are appended as a
query string in the order they were bound:

    >>> build_request_uri(catalog, "TeamByID", {"id": 7}, {"expand": "team.roster"})
    'https://statsapi.web.nhl.com/api/v1/teams/7?expand=team.roster'

Callers may pass a superset of bindings (a pipeline offers its whole
context); anything the endpoint does not allow is ignored, and placeholders
nobody bound stay in the output verbatim.
"""

import logging
from collections.abc import Mapping
from typing import Any

from apiweave.clients.catalog import ApiCatalog, EndpointDefinition
from apiweave.errors import UnknownEndpointError

logger = logging.getLogger(__name__)

# Slug(str) | Handle(EndpointDefinition)
EndpointRef = str | EndpointDefinition


def resolve_endpoint(catalog: ApiCatalog, ref: EndpointRef) -> EndpointDefinition:
    """Resolve a slug or an endpoint handle against a catalog.

    Raises:
        UnknownEndpointError: If the endpoint is not part of the catalog
    """
    match ref:
        case EndpointDefinition():
            if ref in catalog.endpoints:
                return ref
            raise UnknownEndpointError(
                f"Endpoint '{ref.slug}' is not registered in catalog '{catalog.slug}'"
            )
        case str():
            return catalog.endpoint(ref)
        case _:
            raise UnknownEndpointError(
                f"Expected an endpoint slug or EndpointDefinition, got {type(ref).__name__}"
            )


def _stringify(value: Any) -> str | None:
    """Coerce a binding to its URI form; None means "treat as unbound"."""
    if value is None or isinstance(value, (Mapping, list, tuple, set)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def expand_path(
    endpoint: EndpointDefinition,
    params: Mapping[str, Any] | None = None,
    modifiers: Mapping[str, Any] | None = None,
) -> str:
    """Expand an endpoint's path template and append its query modifiers."""
    path = endpoint.path_template

    for key, value in (params or {}).items():
        if key not in endpoint.allowed_parameters:
            continue
        text = _stringify(value)
        if text is None:
            logger.debug("Parameter %s=%r not substitutable, skipped", key, value)
            continue
        path = path.replace("{" + key + "}", text)

    query = []
    for key, value in (modifiers or {}).items():
        if key not in endpoint.allowed_modifiers:
            continue
        text = _stringify(value)
        if text is None:
            logger.debug("Modifier %s=%r not substitutable, skipped", key, value)
            continue
        query.append(f"{key}={text}")

    if query:
        path += "?" + "&".join(query)
    return path


def build_request_uri(
    catalog: ApiCatalog,
    endpoint: EndpointRef,
    params: Mapping[str, Any] | None = None,
    modifiers: Mapping[str, Any] | None = None,
) -> str:
    """Build the fully-qualified request URI for an endpoint.

    Args:
        catalog: Catalog owning the endpoint
        endpoint: Endpoint slug or definition
        params: Path placeholder bindings
        modifiers: Query modifier bindings (insertion order is preserved)

    Returns:
        ``catalog.request_base_uri`` + expanded path

    Raises:
        UnknownEndpointError: If the endpoint cannot be resolved
    """
    definition = resolve_endpoint(catalog, endpoint)
    return catalog.request_base_uri + expand_path(definition, params, modifiers)
