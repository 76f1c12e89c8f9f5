"""Opaque page cursors anchored on a ``(sort_value, id)`` composite key.

Token layout: ``<payload>.<signature>``, both url-safe base64 without padding.
The payload is compact JSON carrying the sort key and direction the cursor was
issued under, so a cursor replayed under a different sort fails to decode.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any, Mapping

from talentlist.core.config import get_settings
from talentlist.services.sorting import ResolvedSort

_SIGNATURE_BYTES = 16


class InvalidCursorError(ValueError):
    """Raised when a cursor cannot be decoded for the requested sort."""


@dataclass(frozen=True, slots=True)
class PageCursor:
    sort_key: str
    sort_dir: str
    sort_value: Any
    tie_break_id: str


class CursorCodec:
    def __init__(self, signing_key: str) -> None:
        self._signing_key = signing_key.encode("utf-8")

    def encode(self, record: Mapping[str, Any], sort: ResolvedSort) -> str:
        value, value_type = _dump_value(record.get(sort.field))
        payload = {
            "k": sort.key,
            "d": sort.direction,
            "v": value,
            "t": value_type,
            "id": str(record["id"]),
        }
        body = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        return f"{_b64encode(body)}.{_b64encode(self._sign(body))}"

    def decode(self, token: str, sort: ResolvedSort) -> PageCursor:
        body_part, separator, signature_part = token.strip().partition(".")
        if not separator or not body_part or not signature_part:
            raise InvalidCursorError("malformed cursor")

        try:
            body = _b64decode(body_part)
            signature = _b64decode(signature_part)
        except (binascii.Error, ValueError) as exc:
            raise InvalidCursorError("cursor is not valid base64") from exc

        if not hmac.compare_digest(signature, self._sign(body)):
            raise InvalidCursorError("cursor signature mismatch")

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidCursorError("cursor payload is not JSON") from exc
        if not isinstance(payload, dict):
            raise InvalidCursorError("cursor payload must be an object")

        if payload.get("k") != sort.key or payload.get("d") != sort.direction:
            raise InvalidCursorError("cursor was issued for a different sort")

        tie_break_id = payload.get("id")
        if not isinstance(tie_break_id, str) or not tie_break_id:
            raise InvalidCursorError("cursor is missing its tie-break id")

        return PageCursor(
            sort_key=sort.key,
            sort_dir=sort.direction,
            sort_value=_load_value(payload.get("v"), payload.get("t")),
            tie_break_id=tie_break_id,
        )

    def _sign(self, body: bytes) -> bytes:
        return hmac.new(self._signing_key, body, hashlib.sha256).digest()[:_SIGNATURE_BYTES]


def _dump_value(value: Any) -> tuple[Any, str]:
    if isinstance(value, datetime):
        return value.isoformat(), "datetime"
    if value is None or isinstance(value, (str, int, float, bool)):
        return value, "json"
    return str(value), "json"


def _load_value(value: Any, value_type: Any) -> Any:
    if value_type == "datetime":
        if not isinstance(value, str):
            raise InvalidCursorError("cursor datetime must be a string")
        try:
            return datetime.fromisoformat(value)
        except ValueError as exc:
            raise InvalidCursorError("cursor datetime is not ISO formatted") from exc
    if value_type == "json":
        return value
    raise InvalidCursorError("cursor value type is unknown")


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    return base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)


@lru_cache
def get_cursor_codec() -> CursorCodec:
    return CursorCodec(get_settings().cursor_signing_key)
