"""Declarative pipeline definitions.

A pipeline is a set of API catalogs, the work units that fetch from them
(executed in ascending priority, ties in declaration order) and the output
transform rules that shape the final record. Everything is validated once,
at construction, and raises :class:`apiweave.errors.ValidationError` through
``from_mapping``.
"""

from collections.abc import Callable
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from apiweave.clients.catalog import ApiCatalog
from apiweave.models import DefinitionModel, as_list

CustomTransform = Callable[[Any, dict[str, Any], dict[str, Any]], Any]


class RenameRule(DefinitionModel):
    """Copy the value at ``find`` to the top-level key ``replace``."""

    find: str = Field(..., min_length=1)
    replace: str = Field(..., min_length=1)


class OutputTransformRule(DefinitionModel):
    """Projection rule for the final record.

    Attributes:
        find: Path into the execution context
        replace: Key in the output record
        custom_transform: Optional ``fn(value, context, partial_record)``;
            only called when ``find`` resolves
    """

    find: str = Field(..., min_length=1)
    replace: str = Field(..., min_length=1)
    custom_transform: CustomTransform | None = Field(
        default=None,
        validation_alias=AliasChoices("custom_transform", "parseCustom"),
    )


def _bindings(value: Any, field: str) -> dict[str, str]:
    """Accept ``{remote: context_key}`` or ``[{"key": remote, "value": context_key}]``."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    mapping = {}
    for item in as_list(value, field):
        if not isinstance(item, dict) or "key" not in item or "value" not in item:
            raise ValueError(f"{field} entries need 'key' and 'value', got {item!r}")
        mapping[item["key"]] = item["value"]
    return mapping


class WorkUnit(DefinitionModel):
    """One fetch-and-merge step bound to a single endpoint.

    Attributes:
        api_slug: Catalog to fetch from
        endpoint_slug: Endpoint within that catalog
        rename_rules: Applied in order to the parsed response before merging
        priority: Lower runs first
        dependent_params: remote parameter name -> context key
        dependent_modifiers: remote modifier name -> context key
    """

    api_slug: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("api_slug", "apiSlug"),
    )
    endpoint_slug: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("endpoint_slug", "endpointSlug"),
    )
    rename_rules: tuple[RenameRule, ...] = Field(
        default=(),
        validation_alias=AliasChoices("rename_rules", "rename"),
    )
    priority: int = 0
    dependent_params: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("dependent_params", "depParams"),
    )
    dependent_modifiers: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("dependent_modifiers", "depMods"),
    )

    @field_validator("rename_rules", mode="before")
    @classmethod
    def validate_rename_rules(cls, v: Any) -> list[Any]:
        return as_list(v, "rename")

    @field_validator("dependent_params", mode="before")
    @classmethod
    def validate_dependent_params(cls, v: Any) -> dict[str, str]:
        return _bindings(v, "depParams")

    @field_validator("dependent_modifiers", mode="before")
    @classmethod
    def validate_dependent_modifiers(cls, v: Any) -> dict[str, str]:
        return _bindings(v, "depMods")


class PipelineDefinition(DefinitionModel):
    """Catalogs, work units and output transforms of one pipeline.

    Validation guarantees at least one catalog and one work unit, unique
    catalog slugs, and that every work unit targets an existing endpoint.
    """

    handle: str = Field(..., min_length=1)
    catalogs: tuple[ApiCatalog, ...] = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("catalogs", "apiDefs"),
    )
    work_units: tuple[WorkUnit, ...] = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("work_units", "workUnits"),
    )
    output_transforms: tuple[OutputTransformRule, ...] = Field(
        default=(),
        validation_alias=AliasChoices("output_transforms", "outputTransform"),
    )

    @field_validator("catalogs", "work_units", "output_transforms", mode="before")
    @classmethod
    def validate_lists(cls, v: Any, info) -> list[Any]:
        return as_list(v, info.field_name)

    @model_validator(mode="after")
    def check_references(self) -> "PipelineDefinition":
        catalogs: dict[str, ApiCatalog] = {}
        for catalog in self.catalogs:
            if catalog.slug in catalogs:
                raise ValueError(f"Duplicate catalog slug '{catalog.slug}'")
            catalogs[catalog.slug] = catalog

        for unit in self.work_units:
            catalog = catalogs.get(unit.api_slug)
            if catalog is None:
                raise ValueError(
                    f"Work unit references unknown catalog '{unit.api_slug}'"
                )
            if not catalog.has_endpoint(unit.endpoint_slug):
                raise ValueError(
                    f"Work unit references unknown endpoint '{unit.endpoint_slug}' "
                    f"in catalog '{unit.api_slug}'"
                )
            method = catalog.endpoint(unit.endpoint_slug).method
            if method != "GET":
                raise ValueError(
                    f"Work unit targets {method} endpoint '{unit.endpoint_slug}'; "
                    "only GET is supported"
                )
        return self

    @property
    def ordered_work_units(self) -> list[WorkUnit]:
        """Work units by ascending priority; ties keep declaration order."""
        return sorted(self.work_units, key=lambda unit: unit.priority)
