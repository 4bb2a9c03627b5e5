"""User service orchestrating registration, login and profile lookups."""

from __future__ import annotations

import logging
from typing import Protocol

from .account import Account, QuestionSummary, UserSummary
from .contracts import AccountDraft, AuthResult, LoginRequest, RegistrationRequest, UserProfile
from .errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .validators import validate_login, validate_registration
from ..security.passwords import PasswordHasher
from ..security.tokens import TokenIssuer

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    """Storage operations the service needs for accounts."""

    def find_by_username(self, username: str) -> Account | None: ...

    def exists(self, username: str) -> bool: ...

    def insert(self, draft: AccountDraft) -> Account: ...

    def list_summaries(self) -> list[UserSummary]: ...


class ContentAggregator(Protocol):
    """Read-only question queries used to build profiles."""

    def recent_authored(self, account_id: str, limit: int = 5) -> list[QuestionSummary]: ...

    def recent_answered(self, account_id: str, limit: int = 5) -> list[QuestionSummary]: ...


class UserService:
    """Identity workflows backed by a user directory and question store."""

    def __init__(
        self,
        users: UserDirectory,
        questions: ContentAggregator,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        *,
        recent_items_limit: int = 5,
    ) -> None:
        """Store dependencies used to orchestrate persistence, hashing and token issuance."""
        self._users = users
        self._questions = questions
        self._hasher = hasher
        self._tokens = tokens
        self._recent_items_limit = recent_items_limit

    def register(self, request: RegistrationRequest) -> AuthResult:
        """Create an account and return it with a freshly issued token.

        Raises
        ------
        ValidationError
            When any field fails validation; nothing is written.
        ConflictError
            When the username is taken, either by the pre-check or by the
            storage uniqueness constraint losing a concurrent race.
        """
        errors, valid = validate_registration(request)
        if not valid:
            raise ValidationError(errors)

        if self._users.exists(request.username):
            logger.info("registration rejected, username %r already taken", request.username)
            raise ConflictError(f"Username '{request.username}' is already taken.")

        password_hash = self._hasher.hash(request.password)
        account = self._users.insert(AccountDraft.from_request(request, password_hash))
        token = self._tokens.issue(account.user_id)
        logger.info("registered user %r (%s)", account.username, account.user_id)
        return AuthResult(account=account, token=token)

    def login(self, request: LoginRequest) -> AuthResult:
        """Verify credentials and return the account with a new token."""
        errors, valid = validate_login(request.username, request.password)
        if not valid:
            raise ValidationError(errors)

        account = self._users.find_by_username(request.username)
        if account is None:
            logger.info("login failed, unknown user %r", request.username)
            raise NotFoundError(f"User: '{request.username}' not found.")

        if not self._hasher.verify(request.password, account.password_hash):
            logger.info("login failed, invalid credentials for %r", account.username)
            raise AuthenticationError("Invalid credentials.")

        token = self._tokens.issue(account.user_id)
        logger.info("user %r logged in", account.username)
        return AuthResult(account=account, token=token)

    def get_user(self, username: str) -> UserProfile:
        """Return the public profile for ``username`` with recent activity."""
        if username.strip() == "":
            raise ValidationError({"username": "Username must be provided."})

        account = self._users.find_by_username(username)
        if account is None:
            raise NotFoundError(f"User '{username}' does not exist.")

        return UserProfile(
            account=account,
            recent_questions=self._questions.recent_authored(
                account.user_id, limit=self._recent_items_limit
            ),
            recent_answers=self._questions.recent_answered(
                account.user_id, limit=self._recent_items_limit
            ),
        )

    def get_all_users(self) -> list[UserSummary]:
        """Return the directory listing of every account."""
        return self._users.list_summaries()
