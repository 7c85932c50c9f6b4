"""Expense Bridge — Record Models.

ProcessedRecord is the canonical unit of storage. Once appended to the store it
is never mutated; only a full clear removes it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

# JSON field value variants. Normalization handles each one explicitly.
FieldValue = Union[
    None, bool, int, float, str, List["FieldValue"], Dict[str, "FieldValue"]
]


class Action(str, Enum):
    """Inferred intent of an ingested record."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"
    CUSTOM_DATA = "custom_data"


def utc_now_iso() -> str:
    """Current time in the ``YYYY-MM-DDTHH:MM:SS.mmmZ`` shape."""
    return to_iso(datetime.now(timezone.utc))


def to_iso(value: datetime) -> str:
    """Render a datetime as UTC with millisecond precision and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return (
        f"{value.year:04d}"
        + value.strftime("-%m-%dT%H:%M:%S.")
        + f"{value.microsecond // 1000:03d}Z"
    )


class RecordMetadata(BaseModel):
    """Provenance tags."""

    source: str = "unknown"
    table_id: str = "unknown"
    app_id: str = "unknown"


class ProcessedRecord(BaseModel):
    """Normalized, timestamped representation of one ingested data row."""

    id: str
    raw_id: Optional[Any] = None
    fields: Dict[str, Any] = Field(default_factory=dict)
    action: str
    created_at: str
    updated_at: str
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)


class ValidationResult(BaseModel):
    """Advisory outcome of a payload structure check."""

    valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ReceivedEntry(BaseModel):
    """Raw payload envelope as kept in the received-data file."""

    data: Any
    timestamp: str
    headers: Dict[str, Optional[str]]
