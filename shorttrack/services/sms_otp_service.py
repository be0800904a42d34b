# shorttrack/services/sms_otp_service.py
from __future__ import annotations

import logging
from typing import Dict

from sqlalchemy.orm import Session

from shorttrack.core.codes import generate_numeric_code, in_minutes, now_utc
from shorttrack.core.config import settings
from shorttrack.core.errors import NotFoundError, VerificationError
from shorttrack.core.phone import require_phone
from shorttrack.core.security import hash_token
from shorttrack.repositories.user_repo import clear_otp_if_matches, get_by_phone, update_user
from shorttrack.services.auth_service import session_payload
from shorttrack.services.delivery import DeliveryGateway
from shorttrack.services.verification_code_service import exposed

log = logging.getLogger(__name__)


def request_otp(db: Session, phone: str, *, delivery: DeliveryGateway) -> Dict:
    """6-stelligen Login-Code per SMS; der Code liegt (gehasht) direkt am User."""
    phone_e164 = require_phone(phone)
    user = get_by_phone(db, phone_e164)
    if not user:
        raise NotFoundError("Phone not found", field="phone")

    code = generate_numeric_code()
    ttl = settings.SMS_OTP_TTL_MINUTES
    update_user(db, user, otp_code_hash=hash_token(code), otp_expires_at=in_minutes(ttl))

    body = f"Your {settings.APP_NAME} login code: {code} (expires in {ttl} minutes)."
    result = delivery.send_sms(phone_e164, body, plaintext=code)
    return {"ok": True, **exposed(result, "dev_code")}


def verify_otp(db: Session, *, phone: str, code: str) -> Dict:
    phone_e164 = require_phone(phone)
    user = get_by_phone(db, phone_e164)
    if not user or not code or not code.strip():
        raise VerificationError(field="code")

    # Code leeren nur wenn Hash + Ablauf passen; zweiter Versuch findet nichts mehr
    if not clear_otp_if_matches(db, user.id, hash_token(code), now_utc()):
        raise VerificationError(field="code")

    db.refresh(user)
    log.info("SMS-Login: user_id=%s", user.id)
    return session_payload(user)
