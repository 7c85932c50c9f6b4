"""Expense Bridge — Bitable Raw → ProcessedRecord Transformer.

Wraps raw incoming rows with an id, timestamps, an inferred action and
provenance metadata, and coerces non-standard payloads into the
``{"records": [...]}`` shape every consumer iterates.
"""

import time
from typing import Any, Dict, Optional

from app.connectors.bitable.normalizer import normalize_fields
from app.models.record_models import Action, ProcessedRecord, RecordMetadata, utc_now_iso

SOURCE = "feishu"


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def determine_action(record: Dict[str, Any]) -> str:
    """Infer what a raw record means.

    Precedence: explicit ``action`` field, missing id (create), deleted flag
    (delete), modification timestamp (update), otherwise read.
    """
    if record.get("action"):
        return str(record["action"])
    if not record.get("id"):
        return Action.CREATE.value
    if record.get("deleted") or record.get("is_deleted"):
        return Action.DELETE.value
    if record.get("updated_at") or record.get("modified_time"):
        return Action.UPDATE.value
    return Action.READ.value


def process_record(record: Any) -> Optional[ProcessedRecord]:
    """Turn one raw row into a ProcessedRecord. Falsy input yields None."""
    if not record:
        return None
    if not isinstance(record, dict):
        raise ValueError(f"record must be an object, got {type(record).__name__}")

    now = utc_now_iso()
    raw_id = record.get("id")
    record_id = str(raw_id) if raw_id else f"record_{_epoch_millis()}"

    return ProcessedRecord(
        id=record_id,
        raw_id=raw_id,
        fields=normalize_fields(record.get("fields")),
        action=determine_action(record),
        created_at=str(record.get("created_at") or now),
        updated_at=now,
        metadata=RecordMetadata(
            source=SOURCE,
            table_id=str(record.get("table_id") or "unknown"),
            app_id=str(record.get("app_id") or "unknown"),
        ),
    )


def convert_to_standard_format(payload: Any) -> Dict[str, Any]:
    """Guarantee a ``records`` list.

    A payload that already carries one is returned as-is; anything else is
    wrapped whole as a single ``custom_data`` record.
    """
    if isinstance(payload, dict) and isinstance(payload.get("records"), list):
        return payload

    return {
        "records": [
            {
                "id": f"converted_{_epoch_millis()}",
                "fields": payload,
                "action": Action.CUSTOM_DATA.value,
                "created_at": utc_now_iso(),
            }
        ]
    }
