# shorttrack/services/verification_code_service.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session

from shorttrack.core.codes import in_minutes, now_utc
from shorttrack.core.config import settings
from shorttrack.core.errors import VerificationError
from shorttrack.core.security import hash_token, token_matches
from shorttrack.models.verification_code import CodePurpose, VerificationCode
from shorttrack.repositories.verification_code_repo import (
    create_code,
    find_latest,
    find_latest_active,
    mark_consumed,
)
from shorttrack.services.delivery import DeliveryResult

log = logging.getLogger(__name__)


def _as_aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_throttled(
    db: Session,
    purpose: CodePurpose,
    target: str,
    seconds: Optional[int] = None,
) -> bool:
    """True, wenn fuer (purpose, target) in den letzten 'seconds' schon ein Code erzeugt wurde."""
    if seconds is None:
        seconds = settings.CODE_THROTTLE_SECONDS
    if seconds <= 0:
        return False
    latest = find_latest(db, purpose, target)
    if latest is None:
        return False
    created = _as_aware_utc(latest.created_at)
    return created is not None and created > now_utc() - timedelta(seconds=seconds)


def issue_code(
    db: Session,
    purpose: CodePurpose,
    target: str,
    plaintext: str,
    ttl_minutes: int,
    *,
    commit: bool = True,
) -> VerificationCode:
    """Speichert nur den Hash; der Klartext bleibt beim Aufrufer."""
    rec = create_code(db, purpose, target, hash_token(plaintext), in_minutes(ttl_minutes), commit=commit)
    log.info("Code ausgestellt: purpose=%s target=%s", purpose.value, target)
    return rec


def consume_code(
    db: Session,
    purpose: CodePurpose,
    target: str,
    plaintext: str,
    *,
    commit: bool = True,
) -> VerificationCode:
    """
    Prueft den Klartext gegen den juengsten aktiven Code und verbraucht ihn.
    Ein zweiter Versuch mit demselben Code scheitert an mark_consumed.
    """
    rec = find_latest_active(db, purpose, target)
    if rec is None or not token_matches(plaintext or "", rec.code_hash):
        raise VerificationError(field="code")
    if not mark_consumed(db, rec.id, commit=commit):
        raise VerificationError("Code already used", field="code")
    return rec


def exposed(result: DeliveryResult, key: str) -> Dict[str, str]:
    """Dev-Modus: Klartext nur zurueckgeben, wenn nichts zugestellt wurde."""
    if result.delivered or result.plaintext is None:
        return {}
    return {key: result.plaintext}
