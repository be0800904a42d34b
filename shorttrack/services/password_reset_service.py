# shorttrack/services/password_reset_service.py
from __future__ import annotations

import logging
from typing import Dict

from sqlalchemy.orm import Session

from shorttrack.core.codes import generate_numeric_code
from shorttrack.core.config import settings
from shorttrack.core.password_policy import normalize_email, validate_password
from shorttrack.core.security import hash_password
from shorttrack.models.verification_code import CodePurpose
from shorttrack.repositories.user_repo import get_by_email, update_user
from shorttrack.services.delivery import DeliveryGateway, code_email
from shorttrack.services.verification_code_service import (
    consume_code,
    exposed,
    is_throttled,
    issue_code,
)

log = logging.getLogger(__name__)

# --------------- Config ---------------
TOKEN_EXPIRE_MINUTES: int = settings.RESET_CODE_TTL_MINUTES


# --------------- Public API ---------------
def request_password_reset(db: Session, email: str, *, delivery: DeliveryGateway) -> Dict:
    """
    Erzeugt einen Reset-Code (nur Hash in der DB) und verschickt ihn.
    Ob die E-Mail einem Konto gehoert, wird nicht geprueft: bekannte und
    unbekannte Adressen liefern dieselbe Antwort.
    """
    target = normalize_email(email)
    if not target:
        return {"ok": True}

    if is_throttled(db, CodePurpose.PASSWORD_RESET, target):
        return {"ok": True}

    code = generate_numeric_code()
    issue_code(db, CodePurpose.PASSWORD_RESET, target, code, TOKEN_EXPIRE_MINUTES)

    subject = f"{settings.APP_NAME}: reset your password"
    html, text = code_email(subject, code, TOKEN_EXPIRE_MINUTES)
    result = delivery.send_email(target, subject, html, text=text, plaintext=code)
    return {"ok": True, **exposed(result, "dev_code")}


def confirm_password_reset(db: Session, *, email: str, code: str, new_password: str) -> Dict:
    """
    Verbraucht den Code und setzt das neue Passwort in einer Transaktion.
    Gibt es zur E-Mail kein Konto, wird nur der Code verbraucht.
    """
    validate_password(new_password, field="password")
    target = normalize_email(email)

    try:
        consume_code(db, CodePurpose.PASSWORD_RESET, target, code, commit=False)
        user = get_by_email(db, target)
        if user is not None:
            update_user(db, user, password_hash=hash_password(new_password), commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if user is not None:
        log.info("Passwort zurueckgesetzt: user_id=%s", user.id)
    return {"ok": True}
