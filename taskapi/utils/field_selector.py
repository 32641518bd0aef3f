"""
Field Selection Utility

Provides sparse fieldset support for API responses via the ``X-Fields``
request header (e.g. ``X-Fields: id,title,status``). Use as a FastAPI
dependency on any list or detail endpoint.
"""

from __future__ import annotations

from typing import Any

from fastapi import Header

from taskapi.config import settings
from taskapi.utils.field_registry import FieldRegistry
from taskapi.utils.projection import parse_fields, project


class FieldSelector:
    """
    FastAPI dependency for field selection.

    Usage::

        @router.get("/items")
        async def list_items(fields: FieldSelector = Depends()):
            items = await get_items(db)
            return fields.apply(items, ITEM_FIELDS)
    """

    def __init__(
        self,
        fields: str | None = Header(
            default=None,
            alias="X-Fields",
            description="Comma-separated list of fields to include (e.g. id,title,status)",
        ),
    ):
        self.raw = fields
        self.requested_fields = parse_fields(fields)

    @property
    def has_selection(self) -> bool:
        """Return True when the caller requested specific fields."""
        return self.requested_fields is not None

    def apply(self, data: Any, registry: FieldRegistry, case_sensitive: bool | None = None) -> Any:
        """Project one record or a list of records to the requested fields."""
        if self.requested_fields is None:
            return data
        if case_sensitive is None:
            case_sensitive = settings.field_names_case_sensitive
        if isinstance(data, list):
            return [project(item, self.requested_fields, registry, case_sensitive) for item in data]
        return project(data, self.requested_fields, registry, case_sensitive)
