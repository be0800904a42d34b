# shorttrack/repositories/verification_code_repo.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shorttrack.core.codes import now_utc
from shorttrack.models.verification_code import CodePurpose, VerificationCode


def create_code(
    db: Session,
    purpose: CodePurpose,
    target: str,
    code_hash: str,
    expires_at: datetime,
    *,
    commit: bool = True,
) -> VerificationCode:
    rec = VerificationCode(
        purpose=purpose,
        target=target,
        code_hash=code_hash,
        created_at=now_utc(),
        expires_at=expires_at,
    )
    db.add(rec)
    if commit:
        db.commit()
        db.refresh(rec)
    else:
        db.flush()
    return rec


def find_latest(db: Session, purpose: CodePurpose, target: str) -> Optional[VerificationCode]:
    """Juengster Code fuer (purpose, target), egal ob verbraucht/abgelaufen (Throttle)."""
    stmt = (
        select(VerificationCode)
        .where(VerificationCode.purpose == purpose, VerificationCode.target == target)
        .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
        .limit(1)
    )
    return db.scalars(stmt).first()


def find_latest_active(db: Session, purpose: CodePurpose, target: str) -> Optional[VerificationCode]:
    """Juengster unverbrauchter, nicht abgelaufener Code fuer (purpose, target)."""
    stmt = (
        select(VerificationCode)
        .where(
            VerificationCode.purpose == purpose,
            VerificationCode.target == target,
            VerificationCode.consumed_at.is_(None),
            VerificationCode.expires_at > now_utc(),
        )
        .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
        .limit(1)
    )
    return db.scalars(stmt).first()


def mark_consumed(db: Session, code_id: int, *, commit: bool = True) -> bool:
    """
    UPDATE verification_codes SET consumed_at = :now
     WHERE id = :id AND consumed_at IS NULL

    Liefert False, wenn ein anderer Request den Code schon verbraucht hat.
    """
    res = db.execute(
        update(VerificationCode)
        .where(VerificationCode.id == code_id, VerificationCode.consumed_at.is_(None))
        .values(consumed_at=now_utc())
        .execution_options(synchronize_session="fetch")
    )
    if commit:
        db.commit()
    else:
        db.flush()
    return res.rowcount == 1
