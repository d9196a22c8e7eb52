"""API catalogs: a base URI, a version and a set of endpoint definitions.

Catalogs can be declared in snake_case or in the camelCase declarative
spelling used by hand-written API definition files:

    {
        "slug": "NHLPublicAPI",
        "parentURI": "https://statsapi.web.nhl.com/api",
        "version": "v1",
        "endpoints": [
            {
                "slug": "TeamByID",
                "request": "teams/{id}",
                "useCache": True,
                "parameters": ["id"],
                "modifiers": [{"handle": "expand"}, {"handle": "stats"}],
            },
        ],
    }
"""

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from apiweave.errors import UnknownEndpointError
from apiweave.models import DefinitionModel, as_list

# Catalog slugs double as cache file names
_SLUG_PATTERN = r"^[A-Za-z0-9_.-]+$"


class EndpointDefinition(DefinitionModel):
    """A single templated endpoint.

    Attributes:
        slug: Unique name within the owning catalog
        path_template: Path relative to the catalog base, with {placeholder} tokens
        allowed_parameters: Placeholder names that may be substituted
        allowed_modifiers: Query-string keys that may be appended
        cacheable: Whether responses are stored in the cache
        ttl_seconds: Cache lifetime; None falls back to the dispatcher default
        method: HTTP method; anything but GET is refused at dispatch time
    """

    slug: str = Field(..., min_length=1)
    path_template: str = Field(
        ...,
        validation_alias=AliasChoices("path_template", "request"),
    )
    allowed_parameters: frozenset[str] = Field(
        default=frozenset(),
        validation_alias=AliasChoices("allowed_parameters", "parameters"),
    )
    allowed_modifiers: frozenset[str] = Field(
        default=frozenset(),
        validation_alias=AliasChoices("allowed_modifiers", "modifiers"),
    )
    cacheable: bool = Field(
        default=True,
        validation_alias=AliasChoices("cacheable", "useCache"),
    )
    ttl_seconds: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("ttl_seconds", "cacheTTL"),
    )
    method: str = "GET"

    @field_validator("allowed_parameters", mode="before")
    @classmethod
    def validate_parameters(cls, v: Any) -> list[Any]:
        return as_list(v, "parameters")

    @field_validator("allowed_modifiers", mode="before")
    @classmethod
    def validate_modifiers(cls, v: Any) -> list[Any]:
        """Accept plain names or ``{"handle": name}`` objects."""
        names = []
        for item in as_list(v, "modifiers"):
            if isinstance(item, dict):
                if "handle" not in item:
                    raise ValueError(f"modifier object without 'handle': {item}")
                item = item["handle"]
            names.append(item)
        return names

    @field_validator("path_template")
    @classmethod
    def strip_leading_slash(cls, v: str) -> str:
        # Joined onto request_base_uri, which already ends with /
        return v.lstrip("/")

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.upper()


class ApiCatalog(DefinitionModel):
    """A versioned API: base URI plus endpoint definitions.

    Attributes:
        slug: Catalog name, referenced by work units and used as cache name
        base_uri: API root without trailing slash, e.g. https://foo.com/api
        version: Version path segment; may be empty
        endpoints: Endpoint definitions with unique slugs
    """

    slug: str = Field(..., pattern=_SLUG_PATTERN)
    base_uri: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("base_uri", "parentURI"),
    )
    version: str = ""
    endpoints: tuple[EndpointDefinition, ...] = ()

    @field_validator("base_uri")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("version")
    @classmethod
    def strip_version_slashes(cls, v: str) -> str:
        return v.strip("/")

    @field_validator("endpoints", mode="before")
    @classmethod
    def validate_endpoints(cls, v: Any) -> list[Any]:
        return as_list(v, "endpoints")

    @model_validator(mode="after")
    def check_unique_slugs(self) -> "ApiCatalog":
        seen: set[str] = set()
        for endpoint in self.endpoints:
            if endpoint.slug in seen:
                raise ValueError(
                    f"Duplicate endpoint with slug '{endpoint.slug}' in catalog '{self.slug}'"
                )
            seen.add(endpoint.slug)
        return self

    @property
    def request_base_uri(self) -> str:
        """``base_uri/version/``, or ``base_uri/`` when no version is set."""
        if self.version:
            return f"{self.base_uri}/{self.version}/"
        return f"{self.base_uri}/"

    def endpoint(self, slug: str) -> EndpointDefinition:
        """Look up an endpoint by slug.

        Raises:
            UnknownEndpointError: If no endpoint has this slug
        """
        for endpoint in self.endpoints:
            if endpoint.slug == slug:
                return endpoint
        raise UnknownEndpointError(
            f"Unknown endpoint '{slug}' in catalog '{self.slug}'"
        )

    def has_endpoint(self, slug: str) -> bool:
        return any(endpoint.slug == slug for endpoint in self.endpoints)
