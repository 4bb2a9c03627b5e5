from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_ROLE = "user"


@dataclass(slots=True)
class Account:
    """Aggregate root for a registered platform user."""

    user_id: str
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
    created_at: datetime
    role: str = DEFAULT_ROLE
    questions: list[str] = field(default_factory=list)
    answers: list[str] = field(default_factory=list)


@dataclass(slots=True)
class QuestionSummary:
    """Projection of a question used on profile pages."""

    question_id: str
    title: str
    points: int
    created_at: datetime


@dataclass(slots=True)
class UserSummary:
    """Directory listing row: the only fields exposed by ``get_all_users``."""

    username: str
    department: str
    created_at: datetime
