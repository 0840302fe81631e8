"""
Admin session helpers.

Write operations can be gated behind a short-lived admin session.  An
operator logs in with a numeric PIN and receives a cookie carrying a
signed token of the form ``payload.signature``, where ``payload`` is
the base64url-encoded JSON ``{"iat": <ms since epoch>}`` and
``signature`` is the base64url-encoded HMAC-SHA256 of the payload
computed with the server-held secret.  Tokens are valid for
``session_max_age_days`` after issue.  Signatures and PINs are
compared in constant time.
"""

import base64
import binascii
import hmac
import hashlib
import json
import logging
import time
from typing import Optional

from fastapi import HTTPException, Request, status

from .config import Settings


logger = logging.getLogger(__name__)

# Tokens issued slightly "in the future" by a host with a skewed clock
# are still accepted.
CLOCK_SKEW_MS = 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC-SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_session_token(secret: str, issued_at: Optional[int] = None) -> str:
    """Create a signed admin session token.

    Parameters
    ----------
    secret : str
        Server-held signing secret.  Must not be empty.
    issued_at : Optional[int]
        Issue time in milliseconds since epoch.  Defaults to now.

    Returns
    -------
    str
        Token string ``payload.signature``.
    """
    if not secret:
        raise ValueError("Session secret is not configured")
    iat = _now_ms() if issued_at is None else int(issued_at)
    payload_b64 = _b64_url_encode(json.dumps({"iat": iat}, separators=(",", ":")).encode("utf-8"))
    signature_b64 = _b64_url_encode(_sign(payload_b64.encode("utf-8"), secret))
    return f"{payload_b64}.{signature_b64}"


def verify_session_token(
    token: Optional[str],
    secret: str,
    max_age_seconds: int,
    now: Optional[int] = None,
) -> bool:
    """Return ``True`` if ``token`` is authentic and not expired.

    Any malformed input (wrong number of parts, bad base64, non-JSON
    payload, missing or non-integer ``iat``) yields ``False``.
    """
    if not token or not secret:
        return False
    parts = token.split(".")
    if len(parts) != 2:
        return False
    payload_b64, signature_b64 = parts
    try:
        actual_sig = _b64_url_decode(signature_b64)
        payload = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return False
    expected_sig = _sign(payload_b64.encode("utf-8"), secret)
    if not hmac.compare_digest(expected_sig, actual_sig):
        return False
    if not isinstance(payload, dict):
        return False
    iat = payload.get("iat")
    if not isinstance(iat, int) or isinstance(iat, bool):
        return False
    current = _now_ms() if now is None else now
    if iat > current + CLOCK_SKEW_MS:
        return False
    return current - iat <= max_age_seconds * 1000


def is_pin_well_formed(pin: object, length: int) -> bool:
    """A PIN is a string of exactly ``length`` ASCII digits."""
    return isinstance(pin, str) and len(pin) == length and pin.isascii() and pin.isdigit()


def check_pin(candidate: str, expected: str) -> bool:
    """Constant-time comparison of a submitted PIN with the configured one."""
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def get_settings(request: Request) -> Settings:
    """Dependency returning the settings the running app was built with."""
    return request.app.state.settings


def is_admin(request: Request) -> bool:
    """Check whether the request carries a valid admin session cookie."""
    app_settings = get_settings(request)
    token = request.cookies.get(app_settings.session_cookie_name)
    return verify_session_token(
        token,
        app_settings.admin_secret,
        app_settings.session_max_age_seconds,
    )


def require_admin(request: Request) -> None:
    """Dependency guarding write endpoints.

    Does nothing unless ``admin_required`` is enabled.  Otherwise a
    missing, forged or expired session cookie results in HTTP 401.
    """
    if not get_settings(request).admin_required:
        return None
    if not is_admin(request):
        logger.info("Rejected unauthenticated %s %s", request.method, request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return None
