"""
Security Utilities

Input sanitization helpers for exported files.
"""

import logging
import re

logger = logging.getLogger(__name__)

FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r", "\n")


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a download filename for use in a Content-Disposition header.

    Example:
        >>> sanitize_filename("../../tasks.csv")
        'tasks.csv'
        >>> sanitize_filename('items"<1>.csv')
        'items1.csv'
    """
    # Remove path separators and null bytes
    filename = filename.replace("/", "").replace("\\", "").replace("\x00", "")

    # Remove characters that break the quoted header value
    filename = re.sub(r'[<>:"|?*\r\n]', "", filename)

    filename = filename.strip(". ")

    if not filename or filename.startswith("."):
        filename = "file" + filename

    return filename


def sanitize_csv_field(value: str) -> str:
    """
    Sanitize a rendered CSV cell to prevent CSV injection attacks.

    Spreadsheet applications interpret cells starting with =, +, -, @ as
    formulas; such cells are prefixed with a single quote.

    Example:
        >>> sanitize_csv_field("=SUM(A1:A10)")
        "'=SUM(A1:A10)"
        >>> sanitize_csv_field("normal text")
        'normal text'
    """
    if value and value.startswith(FORMULA_PREFIXES):
        value = "'" + value
        logger.debug("CSV injection attempt prevented: prefixed value with quote")

    # Remove any embedded newlines/carriage returns
    return re.sub(r"[\r\n]+", " ", value)
