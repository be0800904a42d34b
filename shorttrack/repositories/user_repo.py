# shorttrack/repositories/user_repo.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from shorttrack.core.errors import ConflictError
from shorttrack.models.user import User


def _conflict_from(ex: IntegrityError) -> ConflictError:
    msg = str(getattr(ex, "orig", ex)).lower()
    if "phone" in msg:
        return ConflictError("Phone already registered", field="phone")
    return ConflictError("E-mail already registered", field="email")


def _write(db: Session, commit: bool) -> None:
    """Commit oder nur Flush (wenn der Aufrufer die Transaktion fuehrt)."""
    try:
        if commit:
            db.commit()
        else:
            db.flush()
    except IntegrityError as ex:
        db.rollback()
        raise _conflict_from(ex) from ex


# ------------------------------------------------------------
# READ
# ------------------------------------------------------------
def get_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.scalar(select(User).where(User.email == (email or "").strip().lower()))


def get_by_phone(db: Session, phone: str) -> Optional[User]:
    return db.scalar(select(User).where(User.phone == phone))


# ------------------------------------------------------------
# CREATE
# ------------------------------------------------------------
def create_user(
    db: Session,
    *,
    name: str,
    email: str,
    password_hash: str,
    phone: Optional[str] = None,
    email_verified_at: Optional[datetime] = None,
    is_active: bool = False,
    commit: bool = True,
) -> User:
    user = User(
        name=name,
        email=email.strip().lower(),
        password_hash=password_hash,
        phone=phone,
        email_verified_at=email_verified_at,
        is_active=is_active,
        totp_enabled=False,
    )
    db.add(user)
    _write(db, commit)
    if commit:
        db.refresh(user)
    return user


# ------------------------------------------------------------
# UPDATE
# ------------------------------------------------------------
def update_user(db: Session, user: User, *, commit: bool = True, **fields: Any) -> User:
    """Setzt nur die uebergebenen Felder (partielles Update)."""
    for key, value in fields.items():
        if not hasattr(User, key):
            raise AttributeError(f"User has no field {key!r}")
        setattr(user, key, value)
    db.add(user)
    _write(db, commit)
    return user


def clear_otp_if_matches(db: Session, user_id: int, code_hash: str, now: datetime, *, commit: bool = True) -> bool:
    """
    UPDATE users SET otp_code_hash = NULL, otp_expires_at = NULL
     WHERE id = :user_id AND otp_code_hash = :code_hash AND otp_expires_at > :now

    True nur fuer genau einen erfolgreichen Aufrufer.
    """
    res = db.execute(
        update(User)
        .where(
            User.id == user_id,
            User.otp_code_hash == code_hash,
            User.otp_expires_at > now,
        )
        .values(otp_code_hash=None, otp_expires_at=None)
        .execution_options(synchronize_session="fetch")
    )
    _write(db, commit)
    return res.rowcount == 1
