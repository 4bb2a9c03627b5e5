"""Error taxonomy raised by the identity workflows."""

from __future__ import annotations

from typing import Mapping


class IdentityError(Exception):
    """Base class for caller-facing identity failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(IdentityError):
    """Caller input failed validation.

    The first message of ``errors`` (in insertion order) becomes the primary
    message; the whole map stays available for field-level reporting.
    """

    def __init__(self, errors: Mapping[str, str]) -> None:
        if not errors:
            raise ValueError("ValidationError requires at least one field error")
        self.errors = dict(errors)
        super().__init__(next(iter(self.errors.values())))


class ConflictError(IdentityError):
    """A username is already registered (case-insensitively)."""


class NotFoundError(IdentityError):
    """The referenced account does not exist."""


class AuthenticationError(IdentityError):
    """The supplied credential did not match the stored hash."""
