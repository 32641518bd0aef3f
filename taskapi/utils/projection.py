"""
Sparse Fieldset Projection

Reduces records to a client-requested subset of fields, keeping the
declaration order of the record type.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from taskapi.utils.field_registry import NOT_FOUND, FieldRegistry

FieldSet = frozenset[str]


def parse_fields(fields: str | None) -> FieldSet | None:
    """Split a comma-separated field directive; blank input means no selection."""
    if not fields:
        return None
    requested = frozenset(f.strip() for f in fields.split(",") if f.strip())
    return requested or None


def project(
    record: Any,
    field_names: Iterable[str] | None,
    registry: FieldRegistry,
    case_sensitive: bool = True,
) -> Any:
    """
    Reduce ``record`` to the requested fields.

    Args:
        record: A full record or an already projected mapping
        field_names: Requested field names; empty or None keeps the record whole
        registry: Field table of the record type
        case_sensitive: Whether requested names must match declared spelling

    Returns:
        The record itself when nothing was requested, otherwise a dict of the
        requested and resolvable fields in declared order.
    """
    if not field_names:
        return record

    if case_sensitive:
        wanted = set(field_names)
    else:
        wanted = {name.casefold() for name in field_names}

    projected: dict[str, Any] = {}
    for spec in registry:
        key = spec.name if case_sensitive else spec.name.casefold()
        if key not in wanted:
            continue
        value = registry.resolve(record, spec.name)
        if value is NOT_FOUND:
            continue
        projected[spec.name] = value
    return projected
