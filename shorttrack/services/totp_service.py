# shorttrack/services/totp_service.py
from __future__ import annotations

import logging
from typing import Dict, Optional

import pyotp
from sqlalchemy.orm import Session

from shorttrack.core.codes import generate_backup_codes, normalize_backup_code
from shorttrack.core.config import settings
from shorttrack.core.errors import ConflictError, VerificationError
from shorttrack.core.security import hash_token
from shorttrack.models.user import User
from shorttrack.repositories import backup_code_repo
from shorttrack.repositories.user_repo import update_user
from shorttrack.utils.qr import qr_data_url

log = logging.getLogger(__name__)

# Ein Zeitschritt Toleranz in beide Richtungen (Uhrabweichung)
VALID_WINDOW = 1


def verify_totp(secret: Optional[str], code: Optional[str]) -> bool:
    if not secret or not code:
        return False
    code = code.strip().replace(" ", "")
    if not code.isdigit():
        return False
    return pyotp.TOTP(secret).verify(code, valid_window=VALID_WINDOW)


def spend_backup_code(db: Session, user: User, code: Optional[str]) -> bool:
    """
    Backup-Code pruefen und verbrauchen.
    Nur der Aufrufer, dessen bedingtes UPDATE greift, bekommt True.
    """
    normalized = normalize_backup_code(code or "")
    if not normalized:
        return False
    rec = backup_code_repo.find_unused(db, user.id, hash_token(normalized))
    if rec is None or not backup_code_repo.mark_used(db, rec.id):
        return False
    log.info(
        "Backup-Code verbraucht: user_id=%s, verbleibend=%s",
        user.id,
        len(backup_code_repo.unused_hashes(db, user.id)),
    )
    return True


def setup_totp(db: Session, user: User) -> Dict:
    """
    Neues Secret erzeugen und speichern (ueberschreibt ein altes).
    Startet die Einrichtung neu: totp_enabled=False, alte Backup-Codes verfallen.
    """
    secret = pyotp.random_base32()
    try:
        update_user(db, user, totp_secret=secret, totp_enabled=False, commit=False)
        backup_code_repo.replace_codes(db, user.id, [], commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    otpauth_url = pyotp.TOTP(secret).provisioning_uri(
        name=user.email,
        issuer_name=settings.TOTP_ISSUER,
    )
    log.info("TOTP-Setup gestartet: user_id=%s", user.id)
    return {
        "ok": True,
        "otpauth_url": otpauth_url,
        "qr_data_url": qr_data_url(otpauth_url),
    }


def enable_totp(db: Session, user: User, code: str) -> Dict:
    """
    Aktiviert TOTP nach gueltigem Code und liefert die Backup-Codes.
    Die Codes werden nur gehasht gespeichert und sind danach nicht mehr abrufbar.
    Neue Codes gibt es erst nach erneutem setup_totp.
    """
    if user.totp_enabled:
        raise ConflictError("TOTP already enabled", field="code")
    if not user.totp_secret:
        raise VerificationError("TOTP setup not started", field="code")
    if not verify_totp(user.totp_secret, code):
        raise VerificationError("Invalid authenticator code", field="code")

    backup_codes = generate_backup_codes()
    try:
        update_user(db, user, totp_enabled=True, commit=False)
        backup_code_repo.replace_codes(db, user.id, [hash_token(c) for c in backup_codes], commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log.info("TOTP aktiviert: user_id=%s", user.id)
    return {"ok": True, "backup_codes": backup_codes}
