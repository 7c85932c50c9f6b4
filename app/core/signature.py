"""Expense Bridge — Bitable Request Signatures.

A push may carry a timestamp, a nonce and a signature header. The signature is
``sha1(timestamp + nonce + verification_token)`` in hex. When any of the three
headers is missing the check is skipped unless ``require_signature`` is set.
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.core.errors import ServiceError, SignatureError
from app.core.logging import get_logger

logger = get_logger("signature")

TIMESTAMP_HEADERS = ("x-lark-request-timestamp", "x-lark-timestamp")
NONCE_HEADERS = ("x-lark-request-nonce", "x-lark-nonce")
SIGNATURE_HEADER = "x-lark-signature"


@dataclass
class SignatureHeaders:
    timestamp: Optional[str]
    nonce: Optional[str]
    signature: Optional[str]

    @property
    def complete(self) -> bool:
        return bool(self.timestamp and self.nonce and self.signature)


def _first_header(headers: Mapping[str, str], names: tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = headers.get(name)
        if value:
            return value
    return None


def extract_signature_headers(headers: Mapping[str, str]) -> SignatureHeaders:
    """Pick the signature triple out of request headers (either naming scheme)."""
    return SignatureHeaders(
        timestamp=_first_header(headers, TIMESTAMP_HEADERS),
        nonce=_first_header(headers, NONCE_HEADERS),
        signature=headers.get(SIGNATURE_HEADER),
    )


def compute_signature(timestamp: str, nonce: str, token: str) -> str:
    return hashlib.sha1((timestamp + nonce + token).encode("utf-8")).hexdigest()


def verify_signature(headers: SignatureHeaders, token: str, required: bool = False) -> bool:
    """Check a signature triple.

    Returns True when the signature matched, False when verification was
    skipped because headers were missing. Raises SignatureError on mismatch,
    or on missing headers when ``required`` is set.
    """
    if not headers.complete:
        if required:
            raise SignatureError("Missing signature headers")
        logger.warning("Incomplete signature headers, skipping verification")
        return False

    expected = compute_signature(headers.timestamp, headers.nonce, token)
    supplied = headers.signature.encode("utf-8", "surrogateescape")
    if not hmac.compare_digest(expected.encode("ascii"), supplied):
        logger.error("Signature verification failed: computed hash does not match")
        raise SignatureError()
    logger.info("Signature verified")
    return True


async def require_valid_signature(
    request: Request, settings: Settings = Depends(get_settings)
) -> SignatureHeaders:
    """Dependency — gates mutating endpoints on the bitable signature."""
    headers = extract_signature_headers(request.headers)
    try:
        verify_signature(
            headers, settings.verification_token, settings.require_signature
        )
    except SignatureError:
        raise
    except Exception as e:
        logger.error(f"Signature verification error: {e}")
        raise ServiceError(500, "Signature verification error", str(e)) from e
    return headers
