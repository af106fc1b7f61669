"""
Credentials for the JSON API: password hashing and signed bearer tokens.

Tokens are `<payload>.<signature>` where payload is base64url JSON
{"sub": user_id, "iat": issued_at, "exp": expires_at} and signature is
HMAC-SHA256(secret, payload), also base64url.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Callable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from mingle.errors import Unauthenticated

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as proven by a token."""
    user_id: str
    issued_at: int
    expires_at: int


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(payload: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload.encode("ascii"), hashlib.sha256).digest()
    return _b64encode(digest)


def verify_token(token: Optional[str], secret: str, now: Optional[float] = None) -> Principal:
    """
    Validate a bearer token and return its principal.

    Raises Unauthenticated for a missing, malformed, tampered or expired token.
    """
    if not token or not secret:
        raise Unauthenticated("Authentication required")

    try:
        payload, signature = token.split(".", 1)
    except ValueError:
        raise Unauthenticated("Invalid token")

    if not hmac.compare_digest(signature, _sign(payload, secret)):
        raise Unauthenticated("Invalid token")

    try:
        claims = json.loads(_b64decode(payload))
        user_id = str(claims["sub"])
        issued_at = int(claims["iat"])
        expires_at = int(claims["exp"])
    except (ValueError, KeyError, TypeError):
        raise Unauthenticated("Invalid token")

    current = int(now if now is not None else time.time())
    if current >= expires_at:
        raise Unauthenticated("Token expired")

    return Principal(user_id=user_id, issued_at=issued_at, expires_at=expires_at)


class Credentials:
    """Hashes passwords and issues tokens for one signing secret."""

    def __init__(self, secret: str, ttl_seconds: int = 7 * 24 * 3600, clock: Callable[[], float] = time.time):
        if not secret:
            raise ValueError("A signing secret is required")
        self.secret = secret
        self.ttl_seconds = int(ttl_seconds)
        self.clock = clock

    def hash_password(self, password: str) -> str:
        return generate_password_hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        if not password or not password_hash:
            return False
        return check_password_hash(password_hash, password)

    def issue_token(self, user_id: str) -> str:
        issued_at = int(self.clock())
        claims = {"sub": str(user_id), "iat": issued_at, "exp": issued_at + self.ttl_seconds}
        payload = _b64encode(json.dumps(claims, separators=(",", ":")).encode("utf-8"))
        return f"{payload}.{_sign(payload, self.secret)}"

    def verify_token(self, token: Optional[str]) -> Principal:
        return verify_token(token, self.secret, now=self.clock())
