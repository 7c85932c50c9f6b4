"""Expense Bridge — Bitable Payload Validator.

Advisory only: callers keep processing even when the result is invalid.
"""

from typing import Any

from app.models.record_models import ValidationResult

EMPTY_DATA = "empty data"
NO_RECORDS_ARRAY = "payload does not contain the standard records array, may be a non-standard format"


def validate_payload(payload: Any) -> ValidationResult:
    """Best-effort structural check of an incoming push."""
    result = ValidationResult()

    if not payload:
        result.valid = False
        result.errors.append(EMPTY_DATA)
        return result

    records = payload.get("records") if isinstance(payload, dict) else None
    if not isinstance(records, list):
        result.warnings.append(NO_RECORDS_ARRAY)
    else:
        for index, record in enumerate(records):
            fields = record.get("fields") if isinstance(record, dict) else None
            fields_missing = fields is None or (
                not fields and not isinstance(fields, dict)
            )
            if not isinstance(record, dict) or (
                fields_missing and not record.get("id")
            ):
                result.errors.append(
                    f"record {index + 1} is missing the required fields or id"
                )

    result.valid = not result.errors
    return result
