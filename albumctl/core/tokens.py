"""Helpers for reading expiry hints out of JWT access tokens.

The signature is never checked: the decoded payload is only a hint about when
the server will consider the session expired.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from typing import Any


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode the payload segment of a JWT without verification.

    Returns:
        The payload dict, or None if the token is malformed.
    """
    parts = token.split(".")
    if len(parts) < 2 or not parts[1]:
        return None

    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    return payload if isinstance(payload, dict) else None


def time_until_expiration(token: str, now: float | None = None) -> float | None:
    """Seconds until the token's ``exp`` claim, or None when there is none."""
    payload = decode_token(token)
    if not payload or not isinstance(payload.get("exp"), (int, float)):
        return None
    current = time.time() if now is None else now
    return float(payload["exp"]) - current


def is_token_expiring_soon(token: str, minutes: float = 1, now: float | None = None) -> bool:
    """Check if the token expires within ``minutes``.

    Undecodable tokens count as expiring.
    """
    remaining = time_until_expiration(token, now)
    if remaining is None:
        return True
    return remaining < minutes * 60
