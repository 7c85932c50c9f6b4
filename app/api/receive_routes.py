"""Expense Bridge — Bitable Ingest Routes.

POST /api/receive-data runs validate → convert → process → append → persist.
Validation is advisory and per-record failures only skip that record.
"""

import json
from typing import Any

from fastapi import APIRouter, Body, Depends

from app.config import Settings, get_settings
from app.connectors.bitable.transformer import convert_to_standard_format, process_record
from app.connectors.bitable.validator import validate_payload
from app.core.errors import ServiceError, StorageError
from app.core.logging import get_logger, truncate
from app.core.signature import SignatureHeaders, require_valid_signature
from app.models.record_models import ReceivedEntry, utc_now_iso
from app.storage import JsonFileStore, get_store

logger = get_logger("api.receive")

router = APIRouter(prefix="/api", tags=["Ingest"])


@router.post("/receive-data")
def receive_data(
    payload: Any = Body(None),
    signature: SignatureHeaders = Depends(require_valid_signature),
    store: JsonFileStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Accept a bitable push (or any JSON object) and store its records."""
    try:
        entry = ReceivedEntry(
            data=payload,
            timestamp=utc_now_iso(),
            headers={
                "x-lark-timestamp": signature.timestamp,
                "x-lark-nonce": signature.nonce,
            },
        )
        if settings.log_request_bodies:
            logger.info(
                "Received bitable data: "
                + truncate(json.dumps(payload, ensure_ascii=False, default=str))
            )

        validation = validate_payload(payload)
        if not validation.valid:
            logger.error(f"Payload validation failed: {validation.errors}")
        elif validation.warnings:
            logger.warning(f"Payload validation warnings: {validation.warnings}")

        standard = convert_to_standard_format(payload)
        raw_records = standard["records"]
        logger.info(f"Processing {len(raw_records)} records")

        processed = []
        for index, raw in enumerate(raw_records, start=1):
            try:
                record = process_record(raw)
            except Exception as e:
                logger.error(f"Failed to process record {index}: {e}", exc_info=True)
                continue
            if record is None:
                continue
            processed.append(record.model_dump(mode="json"))
            logger.info(
                f"Processed record {index}/{len(raw_records)}",
                extra={"record_id": record.id, "action": record.action},
            )

        if not store.append(entry.model_dump(mode="json"), processed):
            raise StorageError("Data processing failed", "failed to persist data to disk")
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Data processing failed: {e}", exc_info=True)
        raise ServiceError(500, "Data processing failed", str(e)) from e

    logger.info(f"Data processing complete, {len(processed)} records processed")
    return {
        "code": 0,
        "message": "success",
        "data": {
            "received_at": entry.timestamp,
            "processed_count": len(processed),
            "total_stored": store.processed_count,
            "validation_warnings": validation.warnings,
        },
    }


@router.post("/clear-data", dependencies=[Depends(require_valid_signature)])
def clear_data(store: JsonFileStore = Depends(get_store)):
    """Wipe both in-memory sequences and their files."""
    if not store.clear():
        raise StorageError("Failed to clear data", "could not delete storage files")
    logger.info("All data cleared")
    return {
        "code": 0,
        "message": "success",
        "data": {
            "cleared_at": utc_now_iso(),
            "action": "all_data_cleared",
        },
    }
