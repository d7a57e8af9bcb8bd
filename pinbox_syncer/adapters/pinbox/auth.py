"""Derive the Pinbox user identity from an access token."""

from __future__ import annotations

import logging
from typing import Any

import jwt

from pinbox_syncer.domain.exceptions import AuthError

logger = logging.getLogger(__name__)

# Pinbox signs tokens server-side; the client only reads the claims
_DECODE_OPTIONS: dict[str, Any] = {
    "verify_signature": False,
    "verify_aud": False,
    "verify_exp": False,
}


def derive_user_id(token: str) -> str:
    """Return the user id carried in the ``aud`` claim of a JWT access token.

    The signature is not verified.

    Raises:
        AuthError: If the token is empty, malformed, or has no ``aud`` claim.
    """
    if not token or not token.strip():
        raise AuthError("Access token is not configured")

    token = token.strip()
    segments = token.count(".") + 1
    if segments != 3:
        raise AuthError("Access token is not a JWT", {"segments": segments})

    try:
        payload = jwt.decode(token, options=_DECODE_OPTIONS)
    except jwt.DecodeError as exc:
        raise AuthError("Access token payload cannot be decoded") from exc
    except jwt.PyJWTError as exc:
        raise AuthError(f"Access token is invalid: {exc}") from exc

    audience = payload.get("aud")
    if isinstance(audience, list):
        audience = audience[0] if audience else None
    if audience is None or str(audience).strip() == "":
        raise AuthError("Access token has no user claim")

    user_id = str(audience).strip()
    logger.debug("pinbox_user_id_derived", extra={"user_id": user_id})
    return user_id
