"""Proof-of-booking token codec.

A token is the compact JSON payload rendered into a booking's QR code::

    {"bookingId": "u1_7", "userId": "u1", "eventId": 7, "timestamp": 1717000000000}

``timestamp`` is the issue time in epoch milliseconds. When a signing key is
configured an extra ``sig`` field carries an HMAC-SHA256 over the payload.

:func:`parse` sits between an untrusted physical scan and the attendance
redeemer: whatever it is given, it either returns a :class:`DecodedProof`
or raises :class:`MalformedTokenError`.
"""

import datetime as dt
import hashlib
import hmac
import json
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from clubpass.core.errors import MalformedTokenError
from clubpass.services.booking_store import booking_id_for

MAX_TOKEN_LENGTH = 2048


class _ProofPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    booking_id: StrictStr = Field(alias="bookingId", min_length=1)
    user_id: StrictStr = Field(alias="userId", min_length=1)
    event_id: StrictInt = Field(alias="eventId", ge=1)
    timestamp: StrictInt = Field(ge=0)
    sig: StrictStr | None = Field(default=None, pattern=r"^[0-9a-f]{64}$")


@dataclass(frozen=True)
class DecodedProof:
    booking_id: str
    user_id: str
    event_id: int
    issued_at: dt.datetime


def _canonical(booking_id: str, user_id: str, event_id: int, timestamp: int) -> bytes:
    return f"{booking_id}|{user_id}|{event_id}|{timestamp}".encode()


def _signature(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def issue(
    booking_id: str,
    user_id: str,
    event_id: int,
    issued_at: dt.datetime,
    *,
    secret: str | None = None,
) -> str:
    timestamp = round(issued_at.timestamp() * 1000)
    payload = {
        "bookingId": booking_id,
        "userId": user_id,
        "eventId": event_id,
        "timestamp": timestamp,
    }
    if secret:
        payload["sig"] = _signature(secret, _canonical(booking_id, user_id, event_id, timestamp))
    return json.dumps(payload, separators=(",", ":"))


def parse(raw: object, *, secret: str | None = None) -> DecodedProof:
    """Decode a scanned token.

    Raises:
        MalformedTokenError: On anything that is not a well-formed token.
    """
    if not isinstance(raw, str):
        raise MalformedTokenError("expected text")
    raw = raw.strip()
    if not raw:
        raise MalformedTokenError("empty scan")
    if len(raw) > MAX_TOKEN_LENGTH:
        raise MalformedTokenError("too long")

    try:
        payload = _ProofPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedTokenError("not a proof payload") from exc

    if payload.booking_id != booking_id_for(payload.user_id, payload.event_id):
        raise MalformedTokenError("booking id does not match its user and event")

    if secret:
        expected = _signature(
            secret,
            _canonical(payload.booking_id, payload.user_id, payload.event_id, payload.timestamp),
        )
        if payload.sig is None or not hmac.compare_digest(payload.sig.encode(), expected.encode()):
            raise MalformedTokenError("bad signature")

    try:
        issued_at = dt.datetime.fromtimestamp(payload.timestamp / 1000, tz=dt.timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedTokenError("timestamp out of range") from exc

    return DecodedProof(
        booking_id=payload.booking_id,
        user_id=payload.user_id,
        event_id=payload.event_id,
        issued_at=issued_at,
    )
