"""Expense Bridge — Bitable Push Client.

Signs and posts payloads to a running bridge the same way the bitable platform
does. Used by ``scripts/send_test_data.py`` and for smoke-testing deployments.
"""

import secrets
import string
import time
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.core.logging import get_logger
from app.core.signature import compute_signature

logger = get_logger("bitable.client")

NONCE_ALPHABET = string.ascii_lowercase + string.digits


class PushClientError(Exception):
    """Raised when the bridge answers with a non-zero envelope or HTTP error."""

    def __init__(self, message: str, status_code: int = 0, code: int = 0):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


def signature_headers(token: str) -> Dict[str, str]:
    """Fresh timestamp/nonce/signature header triple."""
    timestamp = str(int(time.time() * 1000))
    nonce = "".join(secrets.choice(NONCE_ALPHABET) for _ in range(8))
    return {
        "x-lark-request-timestamp": timestamp,
        "x-lark-request-nonce": nonce,
        "x-lark-signature": compute_signature(timestamp, nonce, token),
    }


class BitablePushClient:
    """Async HTTP client for an Expense Bridge server."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        sign: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token if token is not None else settings.verification_token
        self.sign = sign
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=30.0, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "BitablePushClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── Core Request Method ──

    async def _request(
        self, method: str, path: str, json: Any = None, signed: bool = False
    ) -> Dict[str, Any]:
        client = await self._get_client()
        headers = signature_headers(self.token) if signed and self.sign else {}
        try:
            resp = await client.request(method, path, json=json, headers=headers)
        except httpx.RequestError as e:
            raise PushClientError(f"Connection to {self.base_url} failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise PushClientError(
                message or f"HTTP {resp.status_code}",
                resp.status_code,
                body.get("code", 0) if isinstance(body, dict) else 0,
            )
        return body

    # ── Operations ──

    async def send_payload(self, payload: Any) -> Dict[str, Any]:
        """Push an arbitrary payload to /api/receive-data."""
        result = await self._request("POST", "/api/receive-data", json=payload, signed=True)
        data = result.get("data", {})
        logger.info(
            f"Pushed payload: {data.get('processed_count', 0)} processed, "
            f"{data.get('total_stored', 0)} stored"
        )
        return result

    async def send_records(
        self, records: List[Dict[str, Any]], table_id: str | None = None
    ) -> Dict[str, Any]:
        """Push a standard ``{"records": [...]}`` batch."""
        if table_id:
            records = [{**r, "table_id": r.get("table_id", table_id)} for r in records]
        return await self.send_payload({"records": records})

    async def ping(self) -> bool:
        result = await self._request("GET", "/api/ping")
        return bool(result.get("success"))

    async def list_records(self) -> List[Dict[str, Any]]:
        result = await self._request("GET", "/api/records")
        return result.get("records", [])

    async def clear(self) -> Dict[str, Any]:
        return await self._request("POST", "/api/clear-data", signed=True)
