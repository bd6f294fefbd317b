# -*- coding: utf-8 -*-
"""Auth — password hashing, signed session tokens and the current-user dependency."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, HTTPException, Request

from ..config import Settings
from ..users.storage import get_user_by_id

TOKEN_COOKIE_NAME = "fittrack_token"

_HASH_SCHEME = "pbkdf2_sha256"
_HASH_ITERATIONS = 200_000
_SALT_BYTES = 16
_TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _json_segment(obj: Dict[str, Any]) -> str:
    return _b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def _pbkdf2(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<digest>``."""
    salt = os.urandom(_SALT_BYTES)
    digest = _pbkdf2(password, salt, _HASH_ITERATIONS)
    return "$".join((_HASH_SCHEME, str(_HASH_ITERATIONS), _b64url_encode(salt), _b64url_encode(digest)))


def _split_hash(stored: str) -> Optional[Tuple[int, bytes, bytes]]:
    parts = stored.split("$")
    if len(parts) != 4 or parts[0] != _HASH_SCHEME:
        return None
    try:
        return int(parts[1]), _b64url_decode(parts[2]), _b64url_decode(parts[3])
    except (ValueError, TypeError):
        return None


def verify_password(password: str, stored: str) -> bool:
    parsed = _split_hash(stored)
    if parsed is None:
        return False
    iterations, salt, expected = parsed
    return hmac.compare_digest(_pbkdf2(password, salt, iterations), expected)


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    username: str
    expires_at: int


class TokenSigner:
    """Issues and checks HS256 JWTs carrying the user id and username."""

    def __init__(self, secret: str, ttl_days: int) -> None:
        self._key = secret.encode("utf-8")
        self.ttl = timedelta(days=int(ttl_days))

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenSigner":
        return cls(settings.jwt_secret, settings.token_ttl_days)

    def _signature(self, signing_input: str) -> bytes:
        return hmac.new(self._key, signing_input.encode("ascii"), hashlib.sha256).digest()

    def issue(self, user_id: str, username: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": user_id,
            "username": username,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        signing_input = f"{_json_segment(_TOKEN_HEADER)}.{_json_segment(claims)}"
        return f"{signing_input}.{_b64url_encode(self._signature(signing_input))}"

    def verify(self, token: str) -> TokenClaims:
        """Raise ``HTTPException(401)`` unless the token is authentic and unexpired."""
        try:
            header_b64, claims_b64, sig_b64 = token.split(".")
            signature = _b64url_decode(sig_b64)
            authentic = hmac.compare_digest(self._signature(f"{header_b64}.{claims_b64}"), signature)
            claims = json.loads(_b64url_decode(claims_b64)) if authentic else None
        except (ValueError, UnicodeError) as exc:
            raise HTTPException(status_code=401, detail="Invalid token") from exc
        if not isinstance(claims, dict) or not claims.get("sub"):
            raise HTTPException(status_code=401, detail="Invalid token")

        expires_at = int(claims.get("exp") or 0)
        if expires_at and expires_at < int(datetime.now(timezone.utc).timestamp()):
            raise HTTPException(status_code=401, detail="Token expired")
        return TokenClaims(user_id=str(claims["sub"]), username=str(claims.get("username") or ""), expires_at=expires_at)


def get_token_from_request(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(TOKEN_COOKIE_NAME) or None


def get_current_user_from_request(request: Request) -> Dict[str, Any]:
    user = getattr(request.state, "user", None)
    if user:
        return user

    token = get_token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    claims = TokenSigner.from_settings(request.app.state.settings).verify(token)
    user_row = get_user_by_id(request.app.state.db, claims.user_id)
    if not user_row:
        raise HTTPException(status_code=401, detail="User not found")

    request.state.user = user_row
    return user_row


def get_current_user(user: Dict[str, Any] = Depends(get_current_user_from_request)) -> Dict[str, Any]:
    return user
