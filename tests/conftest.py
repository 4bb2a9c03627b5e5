from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from qa_identity.api import routes
from qa_identity.domain.account import Account, QuestionSummary, UserSummary
from qa_identity.domain.contracts import AccountDraft, RegistrationRequest
from qa_identity.domain.errors import ConflictError
from qa_identity.domain.service import UserService
from qa_identity.security.passwords import PasswordHasher
from qa_identity.security.tokens import TokenIssuer

TEST_SECRET = "test-secret-signing-key-0123456789"


class FakeUserRepository:
    """In-memory directory mimicking the Postgres unique index on lower(username)."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self.insert_calls = 0
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def find_by_username(self, username: str) -> Account | None:
        return self._accounts.get(username.lower())

    def exists(self, username: str) -> bool:
        return username.lower() in self._accounts

    def insert(self, draft: AccountDraft) -> Account:
        self.insert_calls += 1
        key = draft.username.lower()
        if key in self._accounts:
            raise ConflictError(f"Username '{draft.username}' is already taken.")
        self._clock += timedelta(seconds=1)
        account = Account(
            user_id=str(uuid.uuid4()),
            first_name=draft.first_name,
            last_name=draft.last_name,
            username=draft.username,
            email=draft.email,
            country=draft.country,
            contact_number=draft.contact_number,
            gender=draft.gender,
            institution_type=draft.institution_type,
            institution_name=draft.institution_name,
            department=draft.department,
            password_hash=draft.password_hash,
            created_at=self._clock,
        )
        self._accounts[key] = account
        return account

    def list_summaries(self) -> list[UserSummary]:
        return [
            UserSummary(
                username=account.username,
                department=account.department,
                created_at=account.created_at,
            )
            for account in self._accounts.values()
        ]

    def usernames(self) -> list[str]:
        return [account.username for account in self._accounts.values()]


@dataclass
class FakeQuestion:
    question_id: str
    author_id: str
    title: str
    points: int
    created_at: datetime
    answer_authors: list[str] = field(default_factory=list)


class FakeQuestionRepository:
    """In-memory question store supporting the profile aggregation queries."""

    def __init__(self) -> None:
        self.questions: list[FakeQuestion] = []

    def add_question(
        self,
        author_id: str,
        title: str,
        created_at: datetime,
        *,
        points: int = 0,
        answer_authors: list[str] | None = None,
    ) -> FakeQuestion:
        question = FakeQuestion(
            question_id=str(uuid.uuid4()),
            author_id=author_id,
            title=title,
            points=points,
            created_at=created_at,
            answer_authors=list(answer_authors or []),
        )
        self.questions.append(question)
        return question

    def recent_authored(self, account_id: str, limit: int = 5) -> list[QuestionSummary]:
        return self._project(q for q in self.questions if q.author_id == account_id)[:limit]

    def recent_answered(self, account_id: str, limit: int = 5) -> list[QuestionSummary]:
        return self._project(q for q in self.questions if account_id in q.answer_authors)[:limit]

    def _project(self, questions) -> list[QuestionSummary]:
        ordered = sorted(questions, key=lambda q: q.created_at, reverse=True)
        return [
            QuestionSummary(
                question_id=q.question_id,
                title=q.title,
                points=q.points,
                created_at=q.created_at,
            )
            for q in ordered
        ]


def make_registration(**overrides) -> RegistrationRequest:
    values = {
        "first_name": "Alice",
        "last_name": "Liddell",
        "username": "Alice",
        "email": "alice@wonderland.org",
        "country": "United Kingdom",
        "contact_number": "+44 20 7946 0958",
        "gender": "female",
        "institution_type": "university",
        "institution_name": "Oxford",
        "department": "Mathematics",
        "password": "wonderland",
    }
    values.update(overrides)
    return RegistrationRequest(**values)


@pytest.fixture
def user_repository() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def question_repository() -> FakeQuestionRepository:
    return FakeQuestionRepository()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET)


@pytest.fixture
def service(user_repository, question_repository, token_issuer) -> UserService:
    # minimum bcrypt cost keeps the suite fast
    return UserService(
        user_repository,
        question_repository,
        PasswordHasher(rounds=4),
        token_issuer,
    )


@pytest.fixture
def api_client(service):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    app.state.user_service = service

    with TestClient(app) as client:
        yield client


@pytest.fixture
def registration():
    """Factory building a valid registration request with optional overrides."""
    return make_registration
