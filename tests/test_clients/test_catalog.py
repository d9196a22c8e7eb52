"""Tests for catalog and endpoint definitions."""

import pytest

from apiweave.clients.catalog import ApiCatalog, EndpointDefinition
from apiweave.errors import UnknownEndpointError, ValidationError


class TestEndpointDefinition:
    """Endpoint validation and the camelCase declarative spelling."""

    def test_snake_case_fields(self) -> None:
        endpoint = EndpointDefinition.from_mapping(
            {
                "slug": "TeamByID",
                "path_template": "teams/{id}",
                "allowed_parameters": ["id"],
                "allowed_modifiers": ["expand"],
                "ttl_seconds": 60,
            }
        )
        assert endpoint.allowed_parameters == frozenset({"id"})
        assert endpoint.allowed_modifiers == frozenset({"expand"})
        assert endpoint.cacheable is True
        assert endpoint.ttl_seconds == 60
        assert endpoint.method == "GET"

    def test_declarative_spelling(self) -> None:
        endpoint = EndpointDefinition.from_mapping(
            {
                "slug": "TeamByID",
                "request": "teams/{id}",
                "useCache": False,
                "cacheTTL": 120,
                "parameters": ["id"],
                "modifiers": [{"handle": "expand"}, {"handle": "stats"}],
            }
        )
        assert endpoint.path_template == "teams/{id}"
        assert endpoint.cacheable is False
        assert endpoint.ttl_seconds == 120
        assert endpoint.allowed_modifiers == frozenset({"expand", "stats"})

    def test_ttl_defaults_to_none(self) -> None:
        endpoint = EndpointDefinition.from_mapping({"slug": "Teams", "request": "teams"})
        assert endpoint.ttl_seconds is None

    def test_leading_slash_stripped(self) -> None:
        endpoint = EndpointDefinition.from_mapping({"slug": "Teams", "request": "/teams"})
        assert endpoint.path_template == "teams"

    def test_method_uppercased(self) -> None:
        endpoint = EndpointDefinition.from_mapping(
            {"slug": "Teams", "request": "teams", "method": "get"}
        )
        assert endpoint.method == "GET"

    @pytest.mark.parametrize("field", ["parameters", "modifiers"])
    def test_rejects_non_list(self, field: str) -> None:
        with pytest.raises(ValidationError, match="must be a list"):
            EndpointDefinition.from_mapping(
                {"slug": "Teams", "request": "teams", field: "id"}
            )

    def test_rejects_modifier_without_handle(self) -> None:
        with pytest.raises(ValidationError, match="handle"):
            EndpointDefinition.from_mapping(
                {"slug": "Teams", "request": "teams", "modifiers": [{"name": "expand"}]}
            )

    def test_requires_slug_and_template(self) -> None:
        with pytest.raises(ValidationError):
            EndpointDefinition.from_mapping({"slug": "Teams"})

    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(ValidationError, match="mapping"):
            EndpointDefinition.from_mapping(["Teams"])


class TestApiCatalog:
    """Catalog validation and lookups."""

    def test_request_base_uri_with_version(self, catalog: ApiCatalog) -> None:
        assert catalog.request_base_uri == "https://api.example.com/api/v1/"

    def test_request_base_uri_without_version(self) -> None:
        catalog = ApiCatalog.from_mapping({"slug": "X", "base_uri": "https://x.io/api/"})
        assert catalog.request_base_uri == "https://x.io/api/"

    def test_parent_uri_alias(self) -> None:
        catalog = ApiCatalog.from_mapping(
            {"slug": "X", "parentURI": "https://x.io/api", "version": "v2"}
        )
        assert catalog.request_base_uri == "https://x.io/api/v2/"

    def test_endpoint_lookup(self, catalog: ApiCatalog) -> None:
        assert catalog.endpoint("TeamRoster").path_template == "teams/{id}/roster"
        assert catalog.has_endpoint("Teams")
        assert not catalog.has_endpoint("Nope")

    def test_unknown_endpoint(self, catalog: ApiCatalog) -> None:
        with pytest.raises(UnknownEndpointError, match="Nope"):
            catalog.endpoint("Nope")

    def test_duplicate_endpoint_slugs_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate endpoint"):
            ApiCatalog.from_mapping(
                {
                    "slug": "X",
                    "base_uri": "https://x.io",
                    "endpoints": [
                        {"slug": "Teams", "request": "teams"},
                        {"slug": "Teams", "request": "teams/{id}"},
                    ],
                }
            )

    def test_slug_must_be_file_safe(self) -> None:
        with pytest.raises(ValidationError):
            ApiCatalog.from_mapping({"slug": "../etc", "base_uri": "https://x.io"})

    def test_endpoints_must_be_list(self) -> None:
        with pytest.raises(ValidationError, match="must be a list"):
            ApiCatalog.from_mapping(
                {"slug": "X", "base_uri": "https://x.io", "endpoints": {"slug": "Teams"}}
            )

    def test_from_mapping_passes_instances_through(self, catalog: ApiCatalog) -> None:
        assert ApiCatalog.from_mapping(catalog) is catalog
