"""Salted one-way hashing of user passwords."""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """bcrypt-backed password hashing with a fixed work factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        """Validate the work factor once so misconfiguration fails at startup."""
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self._rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Return a bcrypt hash embedding a freshly generated salt."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str, password_hash: str) -> bool:
        """Return ``True`` when ``plaintext`` matches ``password_hash``.

        A malformed or empty stored hash verifies as ``False``.
        """
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False
