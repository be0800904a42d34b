# shorttrack/models/verification_code.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Enum as SAEnum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from shorttrack.core.codes import now_utc
from shorttrack.db.database import Base


class CodePurpose(str, enum.Enum):
    EMAIL_REGISTRATION = "email-registration"
    PHONE_CONFIRMATION = "phone-confirmation"
    PASSWORD_RESET = "password-reset"
    MAGIC_LOGIN = "magic-login"


class VerificationCode(Base):
    __tablename__ = "verification_codes"
    __table_args__ = (
        Index("ix_verification_codes_lookup", "purpose", "target", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    purpose: Mapped[CodePurpose] = mapped_column(
        SAEnum(CodePurpose, name="verification_code_purpose", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    # E-Mail (klein) oder Telefonnummer (E.164)
    target: Mapped[str] = mapped_column(String(255), nullable=False)
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=now_utc)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    consumed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<VerificationCode id={self.id} purpose={self.purpose.value} target={self.target!r}>"
