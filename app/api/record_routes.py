"""Expense Bridge — Record Query Routes."""

import csv
import io
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.analyzer.expense_engine import (
    EXPORT_COLUMNS,
    compute_summary,
    export_rows,
    filter_records,
)
from app.core.errors import ServiceError
from app.core.logging import get_logger
from app.models.record_models import utc_now_iso
from app.storage import JsonFileStore, get_store

logger = get_logger("api.records")

router = APIRouter(prefix="/api", tags=["Records"])

STARTED_AT = time.monotonic()


@router.get("/data")
def get_data(store: JsonFileStore = Depends(get_store)):
    """Debug dump of everything held in memory."""
    return {
        "total_received": store.received_count,
        "total_processed": store.processed_count,
        "last_received": store.last_received_at,
        "last_processed": store.last_processed_at,
        "received_data": store.received,
        "processed_records": store.processed,
        "server_time": utc_now_iso(),
        "status": "active",
    }


@router.get("/records")
def get_records(
    category: Optional[str] = Query(None, description="Exact 分类 match"),
    action: Optional[str] = Query(None, description="create | update | delete | read | custom_data"),
    min_amount: Optional[float] = Query(None),
    max_amount: Optional[float] = Query(None),
    store: JsonFileStore = Depends(get_store),
):
    """List processed records, optionally filtered."""
    records = store.processed
    if any(v is not None for v in (category, action, min_amount, max_amount)):
        records = filter_records(records, category, action, min_amount, max_amount)
    return {
        "count": len(records),
        "records": records,
        "last_updated": store.last_processed_at,
    }


@router.get("/stats")
def get_stats(store: JsonFileStore = Depends(get_store)):
    """Storage file stats plus in-memory counts."""
    try:
        storage_data = store.stats()
    except Exception as e:
        logger.error(f"Failed to get storage stats: {e}")
        raise ServiceError(500, "Failed to get stats", str(e)) from e
    return {
        "server_time": utc_now_iso(),
        "memory_data": {
            "received_count": store.received_count,
            "processed_count": store.processed_count,
        },
        "storage_data": storage_data,
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }


@router.get("/summary")
def get_summary(store: JsonFileStore = Depends(get_store)):
    """Expense totals by category, day and action."""
    return compute_summary(store.processed)


@router.get("/export")
def export_records(
    format: str = Query("json", pattern="^(json|csv)$"),
    store: JsonFileStore = Depends(get_store),
):
    """Download processed records as JSON or CSV."""
    records = store.processed
    if format == "json":
        return records

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(export_rows(records))
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=expense_records.csv"},
    )
