# shorttrack/core/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    """Erwarteter Fehler mit HTTP-Status, maschinenlesbarem Code und optionalem Feld."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, field: Optional[str] = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.code, "field": self.field, "message": self.message}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    default_message = "No account for this e-mail"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Already in use"


class VerificationError(AppError):
    status_code = 400
    code = "INVALID_CODE"
    default_message = "Invalid or expired code"


class BadCredentials(AppError):
    status_code = 401
    code = "BAD_CREDENTIALS"
    default_message = "Wrong password"


class Unverified(AppError):
    status_code = 403
    code = "UNVERIFIED"
    default_message = "Verification pending"


class AccountInactive(AppError):
    status_code = 403
    code = "ACCOUNT_INACTIVE"
    default_message = "Account is not active"


class TotpRequired(AppError):
    status_code = 401
    code = "TOTP_REQUIRED"
    default_message = "Authenticator code required"


class TotpInvalid(AppError):
    status_code = 401
    code = "TOTP_INVALID"
    default_message = "Invalid authenticator code"


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class InternalError(AppError):
    pass


class DeliveryError(InternalError):
    """Konfigurierter Mail-/SMS-Kanal hat den Versand nicht geschafft."""
