"""
Field Registry

Statically declared, ordered field tables for record types. A registry maps
each field name to an accessor so that sorting, sparse fieldsets and exports
can address fields by name without reflecting over the record class.

Usage::

    TASK_FIELDS = FieldRegistry(
        "task",
        [FieldSpec("id", attrgetter("id")), FieldSpec("title", attrgetter("title"))],
        collection="tasks",
    )

    TASK_FIELDS.resolve(task, "title")        # -> "Write docs"
    TASK_FIELDS.resolve(task, "missing")      # -> NOT_FOUND
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


class _NotFound:
    """Sentinel returned when a field name does not resolve on a record."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND: Any = _NotFound()


@dataclass(frozen=True)
class FieldSpec:
    """A named field and the function that reads it from a record."""

    name: str
    getter: Callable[[Any], Any]


class FieldRegistry:
    """Ordered, immutable table of the fields declared on one record type."""

    def __init__(self, resource: str, fields: Iterable[FieldSpec], collection: str | None = None):
        self.resource = resource
        self.collection = collection or f"{resource}s"
        self._fields: tuple[FieldSpec, ...] = tuple(fields)
        self._by_name: dict[str, FieldSpec] = {}
        self._by_folded_name: dict[str, FieldSpec] = {}
        for spec in self._fields:
            if spec.name in self._by_name:
                raise ValueError(f"Duplicate field '{spec.name}' on {resource}")
            self._by_name[spec.name] = spec
            # First declaration wins when two names differ only by case
            self._by_folded_name.setdefault(spec.name.casefold(), spec)

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def names(self) -> tuple[str, ...]:
        """Declared field names in canonical order."""
        return tuple(spec.name for spec in self._fields)

    def get(self, name: str, case_sensitive: bool = True) -> FieldSpec | None:
        """Look up a field by name, optionally ignoring case."""
        if case_sensitive:
            return self._by_name.get(name)
        return self._by_folded_name.get(name.casefold())

    def canonical_name(self, name: str, case_sensitive: bool = True) -> str | None:
        """Return the declared spelling of ``name`` or None when it is unknown."""
        spec = self.get(name, case_sensitive)
        return spec.name if spec else None

    def resolve(self, record: Any, name: str, case_sensitive: bool = True) -> Any:
        """
        Read a field value from a full record or a projected mapping.

        Returns:
            The native value, or NOT_FOUND when the name is not declared or
            a projected record does not carry it.
        """
        spec = self.get(name, case_sensitive)
        if spec is None:
            return NOT_FOUND
        if isinstance(record, Mapping):
            return record.get(spec.name, NOT_FOUND)
        return spec.getter(record)

    def items(self, record: Any) -> Iterator[tuple[str, Any]]:
        """Yield ``(name, value)`` pairs of a record in declared order."""
        if isinstance(record, Mapping):
            for spec in self._fields:
                if spec.name in record:
                    yield spec.name, record[spec.name]
            # Keys outside the registry keep their own order after the declared ones
            for key, value in record.items():
                if key not in self._by_name:
                    yield key, value
            return
        for spec in self._fields:
            yield spec.name, spec.getter(record)

    def to_dict(self, record: Any) -> dict[str, Any]:
        """Expand a record into an ordered dict of native values."""
        return dict(self.items(record))

    @staticmethod
    def render(value: Any) -> str:
        """String form used by the tabular and markup encoders."""
        if value is None or value is NOT_FOUND:
            return ""
        if isinstance(value, enum.Enum):
            return value.name
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    @staticmethod
    def native(value: Any) -> Any:
        """Typed form used by the structured encoder; enums serialize by name."""
        if isinstance(value, enum.Enum):
            return value.name
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return value
