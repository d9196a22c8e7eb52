"""Shared base for declarative definition models."""

from collections.abc import Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from apiweave.errors import ValidationError


class DefinitionModel(BaseModel):
    """Frozen pydantic model that can be built from a loose mapping.

    ``from_mapping`` is the supported way to turn user supplied dictionaries
    into definitions: every problem is reported as a single
    :class:`apiweave.errors.ValidationError`.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | Self) -> Self:
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"{cls.__name__} must be built from a mapping, got {type(data).__name__}"
            )
        try:
            return cls.model_validate(dict(data))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {cls.__name__}: {e}") from e


def as_list(value: Any, field: str) -> list[Any]:
    """Reject scalars and mappings where a list is required."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    raise ValueError(f"{field} must be a list, got {type(value).__name__}")
