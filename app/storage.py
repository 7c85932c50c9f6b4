"""Expense Bridge — Flat-File JSON Store.

Two JSON array files (raw received envelopes and processed records) are loaded
into memory once and rewritten in full on every mutation. There is no atomic
rename or partial-write protection; a crash mid-write can corrupt a file.
"""

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Request

from app.config import Settings
from app.core.logging import get_logger

logger = get_logger("storage")


def _load_file(path: Path) -> List[Any]:
    """Parse a JSON array file. Missing or unreadable files yield []."""
    try:
        if not path.exists():
            return []
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load data from {path}: {e}")
        return []
    if not isinstance(data, list):
        logger.error(f"Ignoring {path}: top-level JSON value is not an array")
        return []
    return data


def _save_file(data: List[Any], path: Path) -> bool:
    """Rewrite a whole file. Failures are logged and reported as False."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to save data to {path}: {e}")
        return False


def _file_stats(path: Path) -> Dict[str, Any]:
    try:
        st = path.stat()
    except OSError:
        return {"exists": False, "size": 0, "modified_at": None}
    modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
    return {"exists": True, "size": st.st_size, "modified_at": modified.isoformat()}


class JsonFileStore:
    """In-memory cache of two JSON array files.

    The lock covers the whole append-then-rewrite section so concurrent
    requests (FastAPI runs sync handlers in a thread pool) cannot interleave
    and lose a write.
    """

    def __init__(self, received_path: Path, processed_path: Path):
        self.received_path = Path(received_path)
        self.processed_path = Path(processed_path)
        self._received: List[Dict[str, Any]] = []
        self._processed: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "JsonFileStore":
        return cls(settings.received_data_path, settings.processed_records_path)

    # ── Reads ──

    @property
    def received(self) -> List[Dict[str, Any]]:
        return list(self._received)

    @property
    def processed(self) -> List[Dict[str, Any]]:
        return list(self._processed)

    @property
    def received_count(self) -> int:
        return len(self._received)

    @property
    def processed_count(self) -> int:
        return len(self._processed)

    @property
    def last_received_at(self) -> Optional[str]:
        return self._received[-1].get("timestamp") if self._received else None

    @property
    def last_processed_at(self) -> Optional[str]:
        return self._processed[-1].get("updated_at") if self._processed else None

    # ── Mutations ──

    def load(self) -> None:
        """(Re)read both files into memory."""
        with self._lock:
            self._received = _load_file(self.received_path)
            self._processed = _load_file(self.processed_path)
        logger.info(
            f"Loaded {len(self._received)} received entries and "
            f"{len(self._processed)} processed records"
        )

    def append(
        self, entry: Dict[str, Any], records: List[Dict[str, Any]]
    ) -> bool:
        """Append one raw envelope and its processed records, then persist.

        Memory is not rolled back when the write fails.
        """
        with self._lock:
            self._received.append(entry)
            self._processed.extend(records)
            return self._save_all_locked()

    def save_all(self) -> bool:
        with self._lock:
            return self._save_all_locked()

    def _save_all_locked(self) -> bool:
        received_ok = _save_file(self._received, self.received_path)
        processed_ok = _save_file(self._processed, self.processed_path)
        return received_ok and processed_ok

    def clear(self) -> bool:
        """Drop everything in memory and delete both files."""
        with self._lock:
            self._received = []
            self._processed = []
            try:
                for path in (self.received_path, self.processed_path):
                    if path.exists():
                        path.unlink()
            except OSError as e:
                logger.error(f"Failed to clear storage: {e}")
                return False
        return True

    def stats(self) -> Dict[str, Dict[str, Any]]:
        return {
            "received_data": _file_stats(self.received_path),
            "processed_records": _file_stats(self.processed_path),
        }


def get_store(request: Request) -> JsonFileStore:
    """Dependency — the store created at application startup."""
    return request.app.state.store
