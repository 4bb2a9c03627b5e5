"""Field validation for registration and login inputs.

Both validators are pure: they never touch storage and return every
violation found as an ordered ``field -> message`` map together with a
validity flag.
"""

from __future__ import annotations

import re

from email_validator import EmailNotValidError, validate_email

from .contracts import RegistrationRequest

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72

_CONTACT_NUMBER = re.compile(r"^\+?[0-9][0-9 \-]{5,18}[0-9]$")

_REQUIRED_REGISTRATION_FIELDS: tuple[tuple[str, str], ...] = (
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("username", "Username"),
    ("email", "Email"),
    ("country", "Country"),
    ("contact_number", "Contact number"),
    ("gender", "Gender"),
    ("institution_type", "Institution type"),
    ("institution_name", "Institution name"),
    ("department", "Department"),
    ("password", "Password"),
)


def _is_blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def _digit_count(value: str) -> int:
    return sum(1 for char in value if char.isdigit())


def validate_registration(request: RegistrationRequest) -> tuple[dict[str, str], bool]:
    """Check every registration field and return ``(errors, valid)``."""
    errors: dict[str, str] = {}

    for name, label in _REQUIRED_REGISTRATION_FIELDS:
        value = getattr(request, name)
        if _is_blank(value):
            errors[name] = f"{label} must be provided."
            continue

        if name == "username":
            if any(char == "/" or char.isspace() or not char.isprintable() for char in value):
                errors[name] = "Username must not contain whitespace, control characters or '/'."
        elif name == "email":
            try:
                validate_email(value, check_deliverability=False)
            except EmailNotValidError:
                errors[name] = "Email must be a valid email address."
        elif name == "contact_number":
            digits = _digit_count(value)
            if not _CONTACT_NUMBER.match(value.strip()) or not 7 <= digits <= 15:
                errors[name] = "Contact number must be a valid phone number."
        elif name == "password":
            if len(value) < MIN_PASSWORD_LENGTH:
                errors[name] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
            elif len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
                # bcrypt only consumes the first 72 bytes
                errors[name] = f"Password must be at most {MAX_PASSWORD_BYTES} bytes long."

    return errors, not errors


def validate_login(username: str | None, password: str | None) -> tuple[dict[str, str], bool]:
    """Check that both login credentials are present."""
    errors: dict[str, str] = {}
    if _is_blank(username):
        errors["username"] = "Username must be provided."
    if _is_blank(password):
        errors["password"] = "Password must be provided."
    return errors, not errors
