"""Path expressions over nested JSON-like data.

A path addresses a value inside mappings and lists using dots and brackets;
``teams[0][venue][name]`` and ``teams.0.venue.name`` are equivalent.
Resolution never raises: the first missing step yields :data:`MISSING`,
which is distinct from a JSON ``null`` that really is present.
"""

import logging
import re
from collections.abc import Callable, Iterable, Mapping, MutableMapping
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_BRACKET = re.compile(r"\[([^\[\]]*)\]")


class _Missing:
    """Sentinel for "no value at this path"."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class ProjectionRule(Protocol):
    find: str
    replace: str
    custom_transform: Callable[[Any, dict[str, Any], dict[str, Any]], Any] | None


def parse_path(expr: str) -> list[str]:
    """Split a path expression into keys: ``a[0][b]`` -> ``["a", "0", "b"]``."""
    normalized = _BRACKET.sub(r".\1", expr)
    if normalized.startswith("."):
        normalized = normalized[1:]
    if not normalized:
        return []
    return normalized.split(".")


def resolve(root: Any, expr: str) -> Any:
    """Walk ``root`` along ``expr``.

    Mappings are indexed by key, lists by non-negative integer index.

    Returns:
        The value found, or MISSING as soon as a step is absent or the
        current value is not a container
    """
    current = root
    for key in parse_path(expr):
        if isinstance(current, Mapping):
            if key not in current:
                return MISSING
            current = current[key]
        elif isinstance(current, list):
            if not key.isdecimal():
                return MISSING
            index = int(key)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def rename_in_place(structure: MutableMapping[str, Any], find: str, replace: str) -> bool:
    """Copy the value at ``find`` to the top-level key ``replace``.

    The original path is left untouched. A miss is not an error.

    Returns:
        True if the value was found and assigned
    """
    value = resolve(structure, find)
    if value is MISSING:
        logger.debug("Couldn't find key %s (rename to %s skipped)", find, replace)
        return False
    structure[replace] = value
    return True


def project(context: MutableMapping[str, Any], rules: Iterable[ProjectionRule]) -> dict[str, Any]:
    """Build an output record from ``context`` using ordered rules.

    Plain rules rename in place on the context, then copy ``context[replace]``
    into the record. Rules with a custom transform only fire when ``find``
    resolves; they receive the value, the whole context and the record built
    so far, so they may read keys set by earlier rules.
    """
    record: dict[str, Any] = {}
    for rule in rules:
        if rule.custom_transform is None:
            rename_in_place(context, rule.find, rule.replace)
            if rule.replace in context:
                record[rule.replace] = context[rule.replace]
            continue

        value = resolve(context, rule.find)
        if value is MISSING:
            logger.warning("Undefined value for transform base %s", rule.find)
            continue
        record[rule.replace] = rule.custom_transform(value, context, record)
    return record
