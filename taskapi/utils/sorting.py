"""
Sorting Utilities

Parses client sort directives such as ``"-severity,title"`` and orders
in-memory record sequences by them using a field registry.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from functools import cmp_to_key
from typing import Any, NamedTuple

from taskapi.utils.field_registry import NOT_FOUND, FieldRegistry

logger = logging.getLogger(__name__)

DESCENDING_SIGIL = "-"
ASCENDING_SIGIL = "+"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"

    def reversed(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class SortKey(NamedTuple):
    field: str
    direction: SortDirection = SortDirection.ASC


SortDirective = tuple[SortKey, ...]


def parse_sort(spec: str | None) -> SortDirective:
    """
    Parse a comma-separated sort directive.

    A leading ``-`` sorts the field descending; a leading ``+`` or no sigil
    sorts it ascending. Blank input yields an empty directive, and tokens
    that are empty once the sigil is removed are skipped.

    Example:
        >>> parse_sort("-severity, title")
        (SortKey(field='severity', direction=<SortDirection.DESC: 'desc'>),
         SortKey(field='title', direction=<SortDirection.ASC: 'asc'>))
    """
    if not spec or not spec.strip():
        return ()

    keys: list[SortKey] = []
    for token in spec.split(","):
        token = token.strip()
        direction = SortDirection.ASC
        if token.startswith(DESCENDING_SIGIL):
            direction = SortDirection.DESC
            token = token[1:]
        elif token.startswith(ASCENDING_SIGIL):
            token = token[1:]

        name = token.strip()
        if not name:
            logger.debug(f"Skipping empty sort token in {spec!r}")
            continue
        keys.append(SortKey(name, direction))

    return tuple(keys)


def reverse_directive(directive: Iterable[SortKey]) -> SortDirective:
    """Flip the direction of every key, keeping key priority."""
    return tuple(SortKey(key.field, key.direction.reversed()) for key in directive)


def _natural_key(value: Any) -> Any:
    # Enums order by declaration position
    if isinstance(value, enum.Enum):
        return list(type(value)).index(value)
    return value


def compare_values(left: Any, right: Any) -> int:
    """Three-way comparison using the natural ordering of the values; None sorts first."""
    if left is None or right is None:
        return (left is not None) - (right is not None)

    a, b = _natural_key(left), _natural_key(right)
    try:
        return (a > b) - (a < b)
    except TypeError:
        a, b = str(a), str(b)
        return (a > b) - (a < b)


def build_comparator(
    directive: Iterable[SortKey],
    registry: FieldRegistry,
    case_sensitive: bool = True,
) -> Callable[[Any, Any], int]:
    """
    Build a multi-key comparator over records described by ``registry``.

    Keys are evaluated in order and the first non-zero comparison wins. A
    field that does not resolve on either record counts as equal for that
    key, so one unknown name never aborts the sort.
    """
    keys = tuple(directive)

    def compare(first: Any, second: Any) -> int:
        for key in keys:
            left = registry.resolve(first, key.field, case_sensitive)
            right = registry.resolve(second, key.field, case_sensitive)
            if left is NOT_FOUND or right is NOT_FOUND:
                continue
            result = compare_values(left, right)
            if result:
                return -result if key.direction is SortDirection.DESC else result
        return 0

    return compare


def sort_records(
    records: Iterable[Any],
    directive: Iterable[SortKey],
    registry: FieldRegistry,
    case_sensitive: bool = True,
) -> list[Any]:
    """
    Return a new list of ``records`` ordered by ``directive``.

    Python's sort is stable, so records that tie on every key keep their
    original relative order; an empty directive returns the input order.
    """
    keys = tuple(directive)
    items = list(records)
    if not keys:
        return items

    unknown = [key.field for key in keys if registry.get(key.field, case_sensitive) is None]
    if unknown:
        logger.warning(f"Ignoring unknown sort fields for {registry.resource}: {', '.join(unknown)}")

    return sorted(items, key=cmp_to_key(build_comparator(keys, registry, case_sensitive)))
