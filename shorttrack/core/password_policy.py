# shorttrack/core/password_policy.py
from __future__ import annotations

from email_validator import EmailNotValidError, validate_email as _check_email

from shorttrack.core.config import settings
from shorttrack.core.errors import ValidationError

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 80
PASSWORD_MAX_LENGTH = 64  # Policy ≙ Hashing (bcrypt-Kappung)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_email(email: str) -> str:
    value = normalize_email(email)
    try:
        _check_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Invalid e-mail", field="email")
    return value


def validate_name(name: str) -> str:
    value = (name or "").strip()
    if not (NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH):
        raise ValidationError(
            f"Name must have {NAME_MIN_LENGTH} to {NAME_MAX_LENGTH} characters", field="name"
        )
    return value


def validate_password(password: str, *, field: str = "password") -> None:
    minimum = settings.PASSWORD_MIN_LENGTH
    if not password or len(password) < minimum:
        raise ValidationError(f"Password must have at least {minimum} characters", field=field)
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(f"Password must have at most {PASSWORD_MAX_LENGTH} characters", field=field)
