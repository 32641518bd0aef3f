"""
Export Service

Encodes record sequences (full records or sparse projections) as JSON, CSV
or XML. Field names and order come from the record type's field registry.
"""

import csv
import enum
import io
import json
import logging
import re
import xml.etree.ElementTree as ET  # nosec B405
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from taskapi.exceptions import EncodingError, EncodingPreconditionError
from taskapi.utils.field_registry import FieldRegistry
from taskapi.utils.security import sanitize_csv_field

logger = logging.getLogger(__name__)

DEFAULT_CSV_FILENAME = "items.csv"

# Characters outside the XML 1.0 Char production
XML_INVALID_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class OutputFormat(str, enum.Enum):
    JSON = "json"
    CSV = "csv"
    XML = "xml"

    @property
    def media_type(self) -> str:
        return MEDIA_TYPES[self]


MEDIA_TYPES = {
    OutputFormat.JSON: "application/json",
    OutputFormat.CSV: "text/csv",
    OutputFormat.XML: "application/xml",
}


@dataclass(frozen=True)
class EncodedPayload:
    """Serialized response body plus the metadata the transport needs."""

    format: OutputFormat
    content: str
    header: tuple[str, ...] | None = None
    filename: str | None = None

    @property
    def media_type(self) -> str:
        return self.format.media_type


def _row_items(item: Any, registry: FieldRegistry) -> dict[str, Any]:
    if isinstance(item, Mapping):
        return dict(registry.items(item))
    return registry.to_dict(item)


def _json_object(item: Any, registry: FieldRegistry) -> dict[str, Any]:
    return {name: registry.native(value) for name, value in _row_items(item, registry).items()}


def _dump_json(data: Any) -> str:
    try:
        return json.dumps(data, indent=2, default=str)
    except (TypeError, ValueError) as e:
        logger.error(f"JSON export failed: {e}")
        raise EncodingError(OutputFormat.JSON.value) from e


def tabular_header(rows: Sequence[Mapping[str, Any]], registry: FieldRegistry) -> tuple[str, ...]:
    """
    Column names for a CSV export.

    For homogeneous rows this is the first row's field set. Rows projected
    to different field sets contribute the union of their names, ordered by
    the registry's declaration order.
    """
    seen: dict[str, None] = {}
    for row in rows:
        for name in row:
            seen.setdefault(name, None)
    declared = [name for name in registry.names if name in seen]
    extra = [name for name in seen if name not in registry]
    return tuple(declared + extra)


def xml_text(value: Any) -> str:
    """Rendered value with characters XML 1.0 cannot carry removed."""
    text = FieldRegistry.render(value)
    cleaned = XML_INVALID_CHARS.sub("", text)
    if cleaned != text:
        logger.debug("Removed characters not allowed in XML from an exported value")
    return cleaned


class ExportService:
    """Service for encoding records in various formats"""

    @staticmethod
    def export_json(items: Sequence[Any], registry: FieldRegistry) -> EncodedPayload:
        """
        Encode records as a JSON array of objects.

        Enum values serialize by name; projected records keep only their
        selected keys.
        """
        export_data = [_json_object(item, registry) for item in items]
        return EncodedPayload(format=OutputFormat.JSON, content=_dump_json(export_data))

    @staticmethod
    def export_json_item(item: Any, registry: FieldRegistry) -> EncodedPayload:
        """Encode a single record as a JSON object."""
        return EncodedPayload(format=OutputFormat.JSON, content=_dump_json(_json_object(item, registry)))

    @staticmethod
    def export_csv(
        items: Sequence[Any],
        registry: FieldRegistry,
        sanitize: bool = True,
        filename: str = DEFAULT_CSV_FILENAME,
    ) -> EncodedPayload:
        """
        Encode records as CSV with a header row.

        Args:
            items: Non-empty sequence of records or projected records
            registry: Field table of the record type
            sanitize: Guard cells against spreadsheet formula injection. A
                cell starting with ``=``, ``+``, ``-``, ``@`` or a control
                character is written with a leading ``'`` (``-5 degrees``
                becomes ``'-5 degrees``) and embedded newlines become spaces.
                Pass False to write each field's plain string form.
            filename: Suggested download filename

        Returns:
            EncodedPayload carrying the header and filename

        Raises:
            EncodingPreconditionError: If ``items`` is empty or carries no
                fields at all, so no header can be derived
            EncodingError: If writing the CSV fails
        """
        if not items:
            raise EncodingPreconditionError(OutputFormat.CSV.value, "no rows to derive a header from")

        rows = [_row_items(item, registry) for item in items]
        header = tabular_header(rows, registry)
        if not header:
            raise EncodingPreconditionError(OutputFormat.CSV.value, "no fields to derive a header from")

        output = io.StringIO()
        try:
            writer = csv.writer(output)
            writer.writerow(header)
            for row in rows:
                cells = [registry.render(row.get(name)) for name in header]
                if sanitize:
                    cells = [sanitize_csv_field(cell) for cell in cells]
                writer.writerow(cells)
        except (OSError, csv.Error) as e:
            logger.error(f"CSV export failed: {e}")
            raise EncodingError(OutputFormat.CSV.value) from e

        return EncodedPayload(format=OutputFormat.CSV, content=output.getvalue(), header=header, filename=filename)

    @staticmethod
    def export_xml(items: Sequence[Any], registry: FieldRegistry) -> EncodedPayload:
        """
        Encode records as generic XML (UTF-8 with declaration).

        Control characters that XML 1.0 forbids are dropped from values so
        the document always parses.
        """
        root = ET.Element(registry.collection)
        root.set("count", str(len(items)))

        for item in items:
            element = ET.SubElement(root, registry.resource)
            for name, value in _row_items(item, registry).items():
                # Null fields are left out rather than written as empty elements
                if value is None:
                    continue
                ET.SubElement(element, name).text = xml_text(value)

        ET.indent(root, space="  ")
        buf = io.BytesIO()
        try:
            ET.ElementTree(root).write(buf, encoding="utf-8", xml_declaration=True)
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"XML export failed: {e}")
            raise EncodingError(OutputFormat.XML.value) from e
        return EncodedPayload(format=OutputFormat.XML, content=buf.getvalue().decode("utf-8"))

    def export(self, items: Sequence[Any], registry: FieldRegistry, export_format: OutputFormat, **options) -> EncodedPayload:
        """Dispatch to the encoder for ``export_format``."""
        if export_format is OutputFormat.CSV:
            return self.export_csv(items, registry, **options)
        if export_format is OutputFormat.XML:
            return self.export_xml(items, registry)
        return self.export_json(items, registry)


export_service = ExportService()
