"""Household invitation tokens - signed, time-boxed, validated without raising"""

import base64
import binascii
import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Dict, Optional, Union

from finplan_gateway.domain.exceptions import InvalidInputError, MalformedTokenError
from finplan_gateway.domain.models import HouseholdRole, InviteValidation

INVITE_TTL_MS = 7 * 24 * 60 * 60 * 1000  # 7 days


def _now_ms() -> int:
    return int(time.time() * 1000)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


def _signature(secret: Union[str, bytes], payload: bytes) -> bytes:
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    return hmac.new(key, payload, hashlib.sha256).digest()


def generate_invite_token(
    household_id: str,
    role: HouseholdRole,
    secret: Union[str, bytes],
    now_ms: Optional[int] = None,
    nonce: Optional[str] = None,
) -> str:
    """
    Issue an invite token for a household role.

    Format: base64url(JSON payload) + "." + base64url(HMAC-SHA256(secret, payload)).
    Payload keys: householdId, role, timestamp (epoch ms), random (nonce).
    """
    if not household_id:
        raise InvalidInputError("household_id is required")
    if not secret:
        raise InvalidInputError("An invite signing secret is required")

    payload = {
        "householdId": household_id,
        "role": HouseholdRole(role).value,
        "timestamp": _now_ms() if now_ms is None else now_ms,
        "random": nonce or secrets.token_urlsafe(12),
    }
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return f"{_b64encode(raw)}.{_b64encode(_signature(secret, raw))}"


def decode_invite_token(token: str, secret: Union[str, bytes]) -> Dict[str, Any]:
    """
    Verify the signature and return the payload.

    Raises:
        MalformedTokenError: bad encoding, bad signature, or missing/invalid fields
    """
    try:
        encoded_payload, encoded_signature = token.split(".")
        raw = _b64decode(encoded_payload)
        signature = _b64decode(encoded_signature)
    except (AttributeError, ValueError, binascii.Error) as e:
        raise MalformedTokenError("Invite token is not correctly encoded") from e

    if not hmac.compare_digest(signature, _signature(secret, raw)):
        raise MalformedTokenError("Invite token signature does not match")

    try:
        payload = json.loads(raw.decode("utf-8"))
        household_id = payload["householdId"]
        role = HouseholdRole(payload["role"])
        timestamp = payload["timestamp"]
    except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
        raise MalformedTokenError(f"Invite token payload is invalid: {e}") from e

    if not isinstance(household_id, str) or not household_id:
        raise MalformedTokenError("Invite token has no household id")
    if not isinstance(timestamp, int) or isinstance(timestamp, bool):
        raise MalformedTokenError("Invite token timestamp is not an integer")

    return {"householdId": household_id, "role": role, "timestamp": timestamp}


def validate_invite_token(
    token: str,
    secret: Union[str, bytes],
    now_ms: Optional[int] = None,
    max_age_ms: int = INVITE_TTL_MS,
) -> InviteValidation:
    """
    Check an invite token. Never raises for user-supplied input.

    - malformed or forged: valid=False
    - older than max_age_ms: valid=False, expired=True
    - otherwise: valid=True with household id and role
    """
    try:
        payload = decode_invite_token(token, secret)
    except MalformedTokenError:
        return InviteValidation(valid=False)

    now = _now_ms() if now_ms is None else now_ms
    if now - payload["timestamp"] > max_age_ms:
        return InviteValidation(valid=False, expired=True)

    return InviteValidation(
        valid=True,
        household_id=payload["householdId"],
        role=payload["role"],
    )


def invite_expires_at_ms(issued_at_ms: int, max_age_ms: int = INVITE_TTL_MS) -> int:
    return issued_at_ms + max_age_ms
