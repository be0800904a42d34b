# shorttrack/models/user.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, TYPE_CHECKING, List

from sqlalchemy import Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shorttrack.db.database import Base

if TYPE_CHECKING:
    from shorttrack.models.backup_code import BackupCode
    from shorttrack.models.link import Link


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(80), nullable=False)
    # immer klein geschrieben gespeichert
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # E.164, optional
    phone: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)

    email_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    phone_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # TOTP (Authenticator-App)
    totp_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    totp_secret: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # SMS-Login: ein Slot pro User
    otp_code_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    otp_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    links: Mapped[List["Link"]] = relationship(
        "Link",
        back_populates="owner",
        cascade="all, delete-orphan",
        lazy="select",
    )
    # Backup-Codes liegen in eigener Tabelle (Verbrauch per bedingtem UPDATE)
    backup_codes: Mapped[List["BackupCode"]] = relationship(
        "BackupCode",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def __repr__(self) -> str:
        return (
            f"<User id={self.id} "
            f"email={self.email!r} "
            f"phone={self.phone!r} "
            f"active={self.is_active} "
            f"totp={self.totp_enabled}>"
        )
