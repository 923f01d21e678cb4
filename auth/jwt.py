"""
JWT (HS256) codec using Python standard library only.
Base64url without padding, HMAC-SHA256 signature, millisecond `exp` injected on encode.

decode_and_verify() never raises: every failure (malformed, tampered, expired)
returns None so callers cannot tell the cases apart.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import math
import time
from typing import Any, Dict, Mapping, Optional

from auth.errors import CryptoUnavailableError

logger = logging.getLogger(__name__)

TOKEN_TTL_MS = 24 * 60 * 60 * 1000

_HEADER = {"alg": "HS256", "typ": "JWT"}


def b64url_encode(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    """
    Strict base64url decode with padding restoration.
    Rejects characters outside the url-safe alphabet and non-canonical trailing bits.
    """
    s = data.encode("ascii")
    raw = base64.b64decode(s + b"=" * (-len(s) % 4), altchars=b"-_", validate=True)
    if b64url_encode(raw) != data:
        raise ValueError("non-canonical base64url segment")
    return raw


def now_ms() -> int:
    """Return current UNIX timestamp (milliseconds)."""
    return int(time.time() * 1000)


def _reject_constant(name: str) -> None:
    raise ValueError(f"non-standard JSON constant {name}")


def _json_segment(obj: Mapping[str, Any]) -> str:
    return b64url_encode(json.dumps(obj, separators=(",", ":"), allow_nan=False).encode("ascii"))


def _sign(signing_input: str, secret: str) -> bytes:
    key = secret.encode("utf-8")
    msg = signing_input.encode("ascii")
    try:
        return hmac.new(key, msg, hashlib.sha256).digest()
    except ValueError as e:
        # hashlib raises ValueError when sha256 is disabled (e.g. restricted FIPS builds)
        raise CryptoUnavailableError(f"HMAC-SHA256 unavailable: {e}") from e


def ensure_crypto_available() -> None:
    """Probe HMAC-SHA256 once; raise CryptoUnavailableError if the runtime cannot compute it."""
    _sign("probe", "probe")


def encode(claims: Mapping[str, Any], secret: str) -> str:
    """
    Encode claims into an HS256 token.
    'exp' is always (re)set to now + 24h in milliseconds; any caller value is overwritten.
    """
    payload: Dict[str, Any] = dict(claims)
    payload["exp"] = now_ms() + TOKEN_TTL_MS

    signing_input = f"{_json_segment(_HEADER)}.{_json_segment(payload)}"
    signature = _sign(signing_input, secret)
    return f"{signing_input}.{b64url_encode(signature)}"


def decode_and_verify(token: Any, secret: str) -> Optional[Dict[str, Any]]:
    """
    Verify signature and expiry of a token.
    Returns the claims (including 'exp') on success, None on any failure.
    """
    try:
        if not isinstance(token, str):
            raise ValueError("token is not a string")
        parts = token.split(".")
        if len(parts) != 3 or not all(parts):
            raise ValueError("expected three non-empty segments")

        header_b64, payload_b64, sig_b64 = parts
        expected_sig = _sign(f"{header_b64}.{payload_b64}", secret)
        if not hmac.compare_digest(expected_sig, b64url_decode(sig_b64)):
            raise ValueError("signature mismatch")

        # latin-1 keeps tokens from byte-string issuers readable; ours are ASCII
        payload = json.loads(b64url_decode(payload_b64).decode("latin-1"), parse_constant=_reject_constant)
        if not isinstance(payload, dict):
            raise ValueError("payload is not an object")

        if "exp" in payload:
            exp = payload["exp"]
            if isinstance(exp, bool) or not isinstance(exp, (int, float)) or not math.isfinite(exp):
                raise ValueError("'exp' is not a number")
            if exp < now_ms():
                raise ValueError("token expired")

        return payload
    except CryptoUnavailableError:
        raise
    except (ValueError, UnicodeError, binascii.Error, RecursionError) as e:
        logger.debug("Token rejected: %s", e)
        return None
