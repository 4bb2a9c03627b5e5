"""Domain-level request and result contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field

from .account import Account, QuestionSummary


@dataclass(slots=True)
class RegistrationRequest:
    """Fields supplied by a caller registering a new account."""

    first_name: str
    last_name: str
    username: str
    email: str
    country: str
    contact_number: str
    gender: str
    institution_type: str
    institution_name: str
    department: str
    password: str = field(repr=False)


@dataclass(slots=True)
class LoginRequest:
    """Credentials supplied by a returning user."""

    username: str
    password: str = field(repr=False)


@dataclass(slots=True)
class AccountDraft:
    """Validated account values ready to be persisted."""

    first_name: str
    last_name: str
    username: str
    email: str
    country: str
    contact_number: str
    gender: str
    institution_type: str
    institution_name: str
    department: str
    password_hash: str = field(repr=False)

    @classmethod
    def from_request(cls, request: RegistrationRequest, password_hash: str) -> "AccountDraft":
        """Copy the caller's fields verbatim alongside the derived hash."""
        return cls(
            first_name=request.first_name,
            last_name=request.last_name,
            username=request.username,
            email=request.email,
            country=request.country,
            contact_number=request.contact_number,
            gender=request.gender,
            institution_type=request.institution_type,
            institution_name=request.institution_name,
            department=request.department,
            password_hash=password_hash,
        )


@dataclass(slots=True)
class AuthResult:
    """Outcome of a successful registration or login."""

    account: Account
    token: str


@dataclass(slots=True)
class UserProfile:
    """Account joined with its most recent authored and answered questions."""

    account: Account
    recent_questions: list[QuestionSummary]
    recent_answers: list[QuestionSummary]
