"""
Query Service

Runs the sort, sparse-fieldset and encoding steps over a record sequence
already fetched and filtered by the storage layer.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from taskapi.config import settings
from taskapi.services.export_service import EncodedPayload, OutputFormat, export_service
from taskapi.utils.field_registry import FieldRegistry
from taskapi.utils.projection import parse_fields, project
from taskapi.utils.sorting import parse_sort, sort_records

logger = logging.getLogger(__name__)

ACCEPT_FORMATS = {
    "application/json": OutputFormat.JSON,
    "text/json": OutputFormat.JSON,
    "text/csv": OutputFormat.CSV,
    "application/csv": OutputFormat.CSV,
    "application/xml": OutputFormat.XML,
    "text/xml": OutputFormat.XML,
}


def negotiate_format(accept: str | None, default: OutputFormat = OutputFormat.JSON) -> OutputFormat:
    """
    Pick an output format from an Accept header.

    Media ranges are tried by descending quality and then by position;
    wildcards and unknown types fall back to ``default``.
    """
    if not accept:
        return default

    candidates: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept.split(",")):
        media_type, *params = [piece.strip() for piece in part.split(";")]
        quality = 1.0
        for param in params:
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if media_type and quality > 0:
            candidates.append((-quality, position, media_type.lower()))

    for _, _, media_type in sorted(candidates):
        if media_type in ACCEPT_FORMATS:
            return ACCEPT_FORMATS[media_type]
        if media_type in ("*/*", "application/*"):
            return default
    return default


@dataclass(frozen=True)
class TaskQuery:
    """Client-supplied sort and sparse-fieldset directives."""

    sort: str | None = None
    fields: str | None = None


def prepare_items(
    records: Sequence[Any],
    query: TaskQuery,
    registry: FieldRegistry,
    case_sensitive: bool | None = None,
) -> list[Any]:
    """Sort ``records`` by the query's directive and project them to its field set."""
    if case_sensitive is None:
        case_sensitive = settings.field_names_case_sensitive

    items = sort_records(records, parse_sort(query.sort), registry, case_sensitive)

    field_names = parse_fields(query.fields)
    if field_names:
        unknown = [name for name in field_names if registry.get(name, case_sensitive) is None]
        if unknown:
            logger.info(f"Ignoring unknown fields for {registry.resource}: {', '.join(sorted(unknown))}")
        items = [project(item, field_names, registry, case_sensitive) for item in items]
    return items


def run_query(
    records: Sequence[Any],
    query: TaskQuery,
    export_format: OutputFormat,
    registry: FieldRegistry,
    case_sensitive: bool | None = None,
) -> EncodedPayload | None:
    """
    Sort, project and encode ``records``.

    Returns:
        The encoded payload, or None when there are no records, or when a
        CSV export has no column left after projection; an empty result is
        a valid outcome, not an error.
    """
    if not records:
        logger.debug(f"No {registry.collection} matched; skipping encoding")
        return None

    items = prepare_items(records, query, registry, case_sensitive)

    if export_format is OutputFormat.CSV:
        if not any(items):
            logger.info(f"No requested field exists on {registry.collection}; nothing to tabulate")
            return None
        return export_service.export_csv(
            items,
            registry,
            sanitize=settings.csv_sanitize_fields,
            filename=settings.csv_filename,
        )
    return export_service.export(items, registry, export_format)
