from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from qa_identity.domain.contracts import LoginRequest
from qa_identity.domain.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


class RacingUserRepository:
    """Wraps a repository so the pre-check misses a concurrent insert."""

    def __init__(self, inner) -> None:
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def exists(self, username: str) -> bool:
        return False


def test_register_returns_account_and_token(service, registration, token_issuer):
    result = service.register(registration())

    assert result.account.username == "Alice"
    assert result.account.role == "user"
    assert token_issuer.decode(result.token)["id"] == result.account.user_id


def test_register_copies_fields_verbatim(service, registration):
    result = service.register(registration(institution_name="  Oxford  "))
    assert result.account.institution_name == "  Oxford  "


def test_register_hashes_password(service, registration):
    result = service.register(registration())
    assert result.account.password_hash != "wonderland"
    assert result.account.password_hash.startswith("$2")
    assert "password_hash" not in repr(result.account)


def test_register_rejects_case_insensitive_duplicate(service, registration, user_repository):
    service.register(registration(username="Alice"))

    with pytest.raises(ConflictError) as excinfo:
        service.register(registration(username="alice"))

    assert "alice" in str(excinfo.value)
    assert user_repository.insert_calls == 1


def test_register_translates_storage_race_into_conflict(
    service, registration, user_repository
):
    service.register(registration(username="Bob"))
    service._users = RacingUserRepository(user_repository)

    with pytest.raises(ConflictError):
        service.register(registration(username="BOB"))

    assert user_repository.usernames() == ["Bob"]


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"username": "   "}, "username"),
        ({"password": ""}, "password"),
        ({"email": "not-an-email"}, "email"),
    ],
)
def test_register_validation_never_reaches_storage(
    service, registration, user_repository, overrides, field
):
    with pytest.raises(ValidationError) as excinfo:
        service.register(registration(**overrides))

    assert field in excinfo.value.errors
    assert user_repository.insert_calls == 0


def test_validation_error_promotes_first_message(service, registration):
    with pytest.raises(ValidationError) as excinfo:
        service.register(registration(first_name="", department=""))

    error = excinfo.value
    assert list(error.errors) == ["first_name", "department"]
    assert error.message == "First name must be provided."
    assert str(error) == error.message


def test_login_succeeds_case_insensitively(service, registration, token_issuer):
    registered = service.register(registration())

    result = service.login(LoginRequest(username="ALICE", password="wonderland"))

    assert result.account.user_id == registered.account.user_id
    assert token_issuer.decode(result.token)["id"] == registered.account.user_id


def test_login_wrong_password(service, registration):
    service.register(registration())

    with pytest.raises(AuthenticationError) as excinfo:
        service.login(LoginRequest(username="Alice", password="looking-glass"))

    assert excinfo.value.message == "Invalid credentials."
    assert "$2" not in str(excinfo.value)


def test_login_unknown_user(service):
    with pytest.raises(NotFoundError) as excinfo:
        service.login(LoginRequest(username="ghost", password="whatever"))
    assert "ghost" in str(excinfo.value)


def test_login_requires_both_fields(service):
    with pytest.raises(ValidationError) as excinfo:
        service.login(LoginRequest(username="", password=""))
    assert set(excinfo.value.errors) == {"username", "password"}


def test_get_user_rejects_blank_username(service):
    with pytest.raises(ValidationError):
        service.get_user("   ")
    with pytest.raises(ValidationError):
        service.get_user("")


def test_get_user_not_found_names_user(service):
    with pytest.raises(NotFoundError) as excinfo:
        service.get_user("nonexistent")
    assert "nonexistent" in str(excinfo.value)


def test_get_user_limits_recent_questions(service, registration, question_repository):
    account = service.register(registration()).account
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    for idx in range(7):
        question_repository.add_question(account.user_id, f"q{idx}", base + timedelta(hours=idx))

    profile = service.get_user("alice")

    titles = [item.title for item in profile.recent_questions]
    assert titles == ["q6", "q5", "q4", "q3", "q2"]
    assert profile.recent_answers == []


def test_get_user_lists_answered_question_once(service, registration, question_repository):
    account = service.register(registration()).account
    other = service.register(registration(username="carroll")).account
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    question_repository.add_question(
        other.user_id,
        "twice answered",
        base,
        answer_authors=[account.user_id, account.user_id],
    )
    question_repository.add_question(other.user_id, "unanswered", base + timedelta(days=1))

    profile = service.get_user("Alice")

    assert [item.title for item in profile.recent_answers] == ["twice answered"]
    assert profile.recent_questions == []


def test_get_all_users_projects_summaries(service, registration):
    service.register(registration(username="alice"))
    service.register(registration(username="bob", department="Physics"))

    summaries = service.get_all_users()

    assert [(s.username, s.department) for s in summaries] == [
        ("alice", "Mathematics"),
        ("bob", "Physics"),
    ]
