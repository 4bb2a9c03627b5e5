"""HTTP route definitions for the identity service."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..domain.account import Account, QuestionSummary, UserSummary
from ..domain.contracts import AuthResult, LoginRequest, RegistrationRequest, UserProfile
from ..domain.errors import (
    AuthenticationError,
    ConflictError,
    IdentityError,
    NotFoundError,
    ValidationError,
)
from ..domain.service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """Payload accepted when registering a new account."""

    first_name: str | None = ""
    last_name: str | None = ""
    username: str | None = ""
    email: str | None = ""
    country: str | None = ""
    contact_number: str | None = ""
    gender: str | None = ""
    institution_type: str | None = ""
    institution_name: str | None = ""
    department: str | None = ""
    password: str | None = Field(default="", repr=False)

    def to_domain(self) -> RegistrationRequest:
        return RegistrationRequest(
            first_name=self.first_name,
            last_name=self.last_name,
            username=self.username,
            email=self.email,
            country=self.country,
            contact_number=self.contact_number,
            gender=self.gender,
            institution_type=self.institution_type,
            institution_name=self.institution_name,
            department=self.department,
            password=self.password,
        )


class LoginBody(CamelModel):
    """Credentials presented by a returning user."""

    username: str | None = ""
    password: str | None = Field(default="", repr=False)


class AccountResponse(CamelModel):
    """Public fields of an `Account`; the password hash has no counterpart here."""

    id: str
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
    role: str

    @classmethod
    def fields_from_domain(cls, account: Account) -> dict:
        return {
            "id": account.user_id,
            "first_name": account.first_name,
            "last_name": account.last_name,
            "username": account.username,
            "email": account.email,
            "country": account.country,
            "contact_number": account.contact_number,
            "gender": account.gender,
            "institution_type": account.institution_type,
            "institution_name": account.institution_name,
            "department": account.department,
            "role": account.role,
        }


class AuthResponse(AccountResponse):
    """Account view returned by register and login, with the bearer token."""

    token: str

    @classmethod
    def from_domain(cls, result: AuthResult) -> "AuthResponse":
        return cls(**cls.fields_from_domain(result.account), token=result.token)


class QuestionSummaryResponse(CamelModel):
    id: str
    title: str
    points: int
    created_at: datetime

    @classmethod
    def from_domain(cls, question: QuestionSummary) -> "QuestionSummaryResponse":
        return cls(
            id=question.question_id,
            title=question.title,
            points=question.points,
            created_at=question.created_at,
        )


class UserProfileResponse(AccountResponse):
    """Full public profile with the user's most recent activity."""

    questions: list[str]
    answers: list[str]
    created_at: datetime
    recent_questions: list[QuestionSummaryResponse]
    recent_answers: list[QuestionSummaryResponse]

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "UserProfileResponse":
        account = profile.account
        return cls(
            **cls.fields_from_domain(account),
            questions=list(account.questions),
            answers=list(account.answers),
            created_at=account.created_at,
            recent_questions=[
                QuestionSummaryResponse.from_domain(item) for item in profile.recent_questions
            ],
            recent_answers=[
                QuestionSummaryResponse.from_domain(item) for item in profile.recent_answers
            ],
        )


class UserSummaryResponse(CamelModel):
    """Directory listing entry."""

    username: str
    department: str
    created_at: datetime

    @classmethod
    def from_domain(cls, summary: UserSummary) -> "UserSummaryResponse":
        return cls(
            username=summary.username,
            department=summary.department,
            created_at=summary.created_at,
        )


def get_service(request: Request) -> UserService:
    """Resolve the `UserService` stored on the FastAPI application state."""
    service: UserService = request.app.state.user_service
    return service


@router.post(
    "/users/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    service: UserService = Depends(get_service),
) -> AuthResponse:
    """Register an account and return it with a bearer token."""
    try:
        result = service.register(payload.to_domain())
    except IdentityError as exc:
        raise _http_error_from_identity_error(exc) from exc
    return AuthResponse.from_domain(result)


@router.post("/users/login", response_model=AuthResponse)
def login(
    payload: LoginBody,
    service: UserService = Depends(get_service),
) -> AuthResponse:
    """Authenticate a returning user and issue a bearer token."""
    try:
        result = service.login(LoginRequest(username=payload.username, password=payload.password))
    except IdentityError as exc:
        raise _http_error_from_identity_error(exc) from exc
    return AuthResponse.from_domain(result)


@router.get("/users", response_model=list[UserSummaryResponse])
def get_all_users(service: UserService = Depends(get_service)) -> list[UserSummaryResponse]:
    """List every registered user as username, department and creation time."""
    return [UserSummaryResponse.from_domain(summary) for summary in service.get_all_users()]


@router.get("/users/{username}", response_model=UserProfileResponse)
def get_user(
    username: str,
    service: UserService = Depends(get_service),
) -> UserProfileResponse:
    """Return a user's public profile with their recent questions and answers."""
    try:
        profile = service.get_user(username)
    except IdentityError as exc:
        raise _http_error_from_identity_error(exc) from exc
    return UserProfileResponse.from_domain(profile)


def _http_error_from_identity_error(exc: IdentityError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": exc.message, "errors": exc.errors},
        )
    status_code = status.HTTP_400_BAD_REQUEST
    if isinstance(exc, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, AuthenticationError):
        status_code = status.HTTP_401_UNAUTHORIZED
    logger.debug("request failed with %s: %s", type(exc).__name__, exc.message)
    return HTTPException(status_code=status_code, detail=exc.message)
