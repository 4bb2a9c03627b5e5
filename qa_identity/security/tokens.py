"""Utilities for issuing and validating application JWTs."""

from __future__ import annotations

import time
from typing import Any

import jwt

ALGORITHM = "HS256"


class TokenIssuer:
    """Signs account identity claims into bearer tokens.

    Parameters
    ----------
    secret:
        Signing key supplied once at process start. An empty key is a
        configuration error.
    ttl_seconds:
        Lifetime embedded as the ``exp`` claim. ``0`` issues tokens without an
        expiry.
    """

    def __init__(self, secret: str, *, ttl_seconds: int = 0) -> None:
        if not secret:
            raise ValueError("token signing secret must be configured")
        if ttl_seconds < 0:
            raise ValueError("token ttl must not be negative")
        self._secret = secret
        self._ttl_seconds = ttl_seconds

    def __repr__(self) -> str:
        return f"TokenIssuer(algorithm={ALGORITHM!r}, ttl_seconds={self._ttl_seconds})"

    def issue(self, account_id: str) -> str:
        """Create a signed JWT whose ``id`` claim is the account identifier."""
        now = int(time.time())
        payload: dict[str, Any] = {"id": account_id, "iat": now}
        if self._ttl_seconds:
            payload["exp"] = now + self._ttl_seconds
        # PyJWT returns str for HS256 even in PyJWT>=2
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> dict[str, Any]:
        """Decode and verify a token issued by this service.

        Raises
        ------
        jwt.PyJWTError
            Propagated when the token is malformed, expired or signed with
            another key.
        """
        return jwt.decode(token, self._secret, algorithms=[ALGORITHM])
