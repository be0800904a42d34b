# shorttrack/services/auth_service.py
from __future__ import annotations

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from shorttrack.core.codes import generate_numeric_code, now_utc
from shorttrack.core.config import settings
from shorttrack.core.errors import (
    AccountInactive,
    BadCredentials,
    ConflictError,
    TotpInvalid,
    TotpRequired,
    Unverified,
    UserNotFound,
    VerificationError,
)
from shorttrack.core.password_policy import (
    normalize_email,
    validate_email,
    validate_name,
    validate_password,
)
from shorttrack.core.phone import require_phone
from shorttrack.core.security import hash_password, jwt_service, verify_password
from shorttrack.models.user import User
from shorttrack.models.verification_code import CodePurpose
from shorttrack.repositories.user_repo import (
    create_user,
    get_by_email,
    get_by_id,
    get_by_phone,
    update_user,
)
from shorttrack.services.delivery import DeliveryGateway, code_email
from shorttrack.services.totp_service import spend_backup_code, verify_totp
from shorttrack.services.verification_code_service import (
    consume_code,
    exposed,
    is_throttled,
    issue_code,
)

log = logging.getLogger(__name__)

NEXT_DONE = "done"
NEXT_VERIFY_PHONE = "verify-phone"


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------
def user_projection(user: User) -> Dict:
    """Oeffentliche Sicht auf den User: keine Hashes, kein TOTP-Secret."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
    }


def session_payload(user: User) -> Dict:
    return {
        "ok": True,
        "token": jwt_service.issue(user.id),
        "user": user_projection(user),
    }


def _sms_body(code: str, ttl_minutes: int) -> str:
    return f"Your {settings.APP_NAME} code: {code} (expires in {ttl_minutes} minutes)."


def _issue_phone_code(db: Session, phone: str, *, commit: bool = True) -> str:
    code = generate_numeric_code()
    issue_code(
        db,
        CodePurpose.PHONE_CONFIRMATION,
        phone,
        code,
        settings.CODE_TTL_MINUTES,
        commit=commit,
    )
    return code


# ------------------------------------------------------------
# Registrierung
# ------------------------------------------------------------
def request_email_code(db: Session, email: str, *, delivery: DeliveryGateway) -> Dict:
    """
    Schickt einen 6-stelligen Code an die E-Mail-Adresse.
    Innerhalb des Throttle-Fensters: Erfolg ohne neuen Code.
    """
    target = validate_email(email)

    if is_throttled(db, CodePurpose.EMAIL_REGISTRATION, target):
        log.info("E-Mail-Code gedrosselt fuer %s", target)
        return {"ok": True}

    code = generate_numeric_code()
    issue_code(db, CodePurpose.EMAIL_REGISTRATION, target, code, settings.CODE_TTL_MINUTES)

    subject = f"{settings.APP_NAME}: confirm your e-mail"
    html, text = code_email(subject, code, settings.CODE_TTL_MINUTES)
    result = delivery.send_email(target, subject, html, text=text, plaintext=code)
    return {"ok": True, **exposed(result, "dev_code")}


def register(
    db: Session,
    *,
    name: str,
    email: str,
    password: str,
    email_code: str,
    phone: Optional[str] = None,
    delivery: DeliveryGateway,
) -> Dict:
    name = validate_name(name)
    email = validate_email(email)
    validate_password(password)
    phone_e164 = require_phone(phone) if phone and phone.strip() else None

    # Deduplizieren
    if get_by_email(db, email):
        raise ConflictError("E-mail already registered", field="email")
    if phone_e164 and get_by_phone(db, phone_e164):
        raise ConflictError("Phone already registered", field="phone")

    sms_code: Optional[str] = None
    try:
        # Code verbrauchen + User anlegen: eine Transaktion
        consume_code(db, CodePurpose.EMAIL_REGISTRATION, email, email_code, commit=False)
        user = create_user(
            db,
            name=name,
            email=email,
            password_hash=hash_password(password),
            phone=phone_e164,
            email_verified_at=now_utc(),
            is_active=phone_e164 is None,
            commit=False,
        )
        if phone_e164:
            sms_code = _issue_phone_code(db, phone_e164, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log.info("User registriert: id=%s phone=%s", user.id, bool(phone_e164))

    if sms_code is None:
        return {"next": NEXT_DONE, **session_payload(user)}

    result = delivery.send_sms(
        user.phone, _sms_body(sms_code, settings.CODE_TTL_MINUTES), plaintext=sms_code
    )
    return {
        "ok": True,
        "next": NEXT_VERIFY_PHONE,
        "user": user_projection(user),
        **exposed(result, "dev_sms_code"),
    }


def request_phone_code(db: Session, *, user_id: int, phone: str, delivery: DeliveryGateway) -> Dict:
    """Bestaetigungscode fuer die hinterlegte Nummer erneut senden."""
    phone_e164 = require_phone(phone)
    user = get_by_id(db, user_id)
    if not user or user.phone != phone_e164:
        raise VerificationError("Phone does not match account", field="phone")
    if user.phone_verified_at is not None:
        return {"ok": True}

    if is_throttled(db, CodePurpose.PHONE_CONFIRMATION, phone_e164):
        return {"ok": True}

    code = _issue_phone_code(db, phone_e164)
    result = delivery.send_sms(phone_e164, _sms_body(code, settings.CODE_TTL_MINUTES), plaintext=code)
    return {"ok": True, **exposed(result, "dev_sms_code")}


def confirm_phone(db: Session, *, user_id: int, phone: str, code: str) -> Dict:
    phone_e164 = require_phone(phone)
    user = get_by_id(db, user_id)
    if not user or user.phone != phone_e164:
        raise VerificationError(field="code")

    try:
        consume_code(db, CodePurpose.PHONE_CONFIRMATION, phone_e164, code, commit=False)
        update_user(db, user, phone_verified_at=now_utc(), is_active=True, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log.info("Telefon bestaetigt: user_id=%s", user.id)
    return session_payload(user)


# ------------------------------------------------------------
# Login (feste Pruefreihenfolge)
# ------------------------------------------------------------
def login(db: Session, *, email: str, password: str, code: Optional[str] = None) -> Dict:
    user = get_by_email(db, normalize_email(email))
    if not user:
        raise UserNotFound(field="email")

    if not verify_password(password or "", user.password_hash):
        raise BadCredentials(field="password")

    if user.email_verified_at is None:
        raise Unverified("E-mail not verified", field="email")

    if user.phone and user.phone_verified_at is None:
        raise Unverified("Phone not verified", field="phone")

    if not user.is_active:
        raise AccountInactive(field="account")

    if user.totp_enabled:
        if not code or not code.strip():
            raise TotpRequired(field="code")
        if not verify_totp(user.totp_secret, code) and not spend_backup_code(db, user, code):
            raise TotpInvalid(field="code")

    log.info("Login erfolgreich: user_id=%s", user.id)
    return session_payload(user)
