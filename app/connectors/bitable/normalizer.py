"""Expense Bridge — Bitable Field Value Normalizer.

Coerces raw field values into a canonical JSON-safe shape. Date detection is a
heuristic: an ordered list of patterns, then a general parse. Any string the
general parser accepts is rewritten as a timestamp, including free text that
merely looks like a date (e.g. "March"). Parts the string leaves out are
filled from PARSE_DEFAULT, not from the current date, so the same input
always normalizes to the same timestamp.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

from dateutil import parser as dateparser

from app.models.record_models import FieldValue, to_iso

# Fills missing components ("May" -> 1970-05-01) for the general parser.
PARSE_DEFAULT = datetime(1970, 1, 1)

DATE_PATTERNS = [
    (re.compile(r"^\d{4}-\d{2}-\d{2}$"), "%Y-%m-%d"),
    (re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z?$"), None),
    (re.compile(r"^\d{2}/\d{2}/\d{4}$"), "%m/%d/%Y"),
    (re.compile(r"^\d{4}/\d{2}/\d{2}$"), "%Y/%m/%d"),
]


def _parse_known_pattern(value: str) -> Optional[datetime]:
    for pattern, fmt in DATE_PATTERNS:
        if not pattern.match(value):
            continue
        try:
            if fmt:
                return datetime.strptime(value, fmt)
            return dateparser.isoparse(value)
        except (ValueError, OverflowError):
            return None
    return None


def parse_date(value: str) -> Optional[datetime]:
    """Return the datetime a string denotes, or None if it is not a date."""
    parsed = _parse_known_pattern(value)
    if parsed is not None:
        return parsed
    if not value.strip():
        return None
    try:
        return dateparser.parse(value, default=PARSE_DEFAULT)
    except (ValueError, OverflowError):
        return None


def is_date_string(value: str) -> bool:
    return parse_date(value) is not None


def normalize_value(value: Any) -> FieldValue:
    """Normalize a single field value, recursing into arrays and mappings."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is None:
            return value
        try:
            return to_iso(parsed)
        except (OverflowError, ValueError):
            # shifting to UTC left the datetime range
            return value
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    if isinstance(value, dict):
        return {key: normalize_value(item) for key, item in value.items()}
    return value


def normalize_fields(fields: Any) -> Dict[str, FieldValue]:
    """Normalize every value of a record's ``fields`` mapping.

    Anything that is not a mapping yields an empty dict.
    """
    if not fields or not isinstance(fields, dict):
        return {}
    return {key: normalize_value(value) for key, value in fields.items()}
