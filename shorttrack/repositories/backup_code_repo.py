# shorttrack/repositories/backup_code_repo.py
from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from shorttrack.core.codes import now_utc
from shorttrack.models.backup_code import BackupCode


def _write(db: Session, commit: bool) -> None:
    if commit:
        db.commit()
    else:
        db.flush()


def replace_codes(db: Session, user_id: int, code_hashes: Iterable[str], *, commit: bool = True) -> None:
    """Alte Codes des Users loeschen, neue anlegen."""
    db.execute(delete(BackupCode).where(BackupCode.user_id == user_id))
    db.add_all(BackupCode(user_id=user_id, code_hash=h) for h in code_hashes)
    _write(db, commit)


def unused_hashes(db: Session, user_id: int) -> List[str]:
    stmt = (
        select(BackupCode.code_hash)
        .where(BackupCode.user_id == user_id, BackupCode.used_at.is_(None))
        .order_by(BackupCode.id)
    )
    return list(db.scalars(stmt).all())


def find_unused(db: Session, user_id: int, code_hash: str) -> Optional[BackupCode]:
    stmt = select(BackupCode).where(
        BackupCode.user_id == user_id,
        BackupCode.code_hash == code_hash,
        BackupCode.used_at.is_(None),
    )
    return db.scalars(stmt).first()


def mark_used(db: Session, code_id: int, *, commit: bool = True) -> bool:
    """
    UPDATE backup_codes SET used_at = :now
     WHERE id = :id AND used_at IS NULL

    False, wenn ein paralleler Login den Code schon verbraucht hat.
    """
    res = db.execute(
        update(BackupCode)
        .where(BackupCode.id == code_id, BackupCode.used_at.is_(None))
        .values(used_at=now_utc())
        .execution_options(synchronize_session="fetch")
    )
    _write(db, commit)
    return res.rowcount == 1
