# shorttrack/models/link.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, TYPE_CHECKING, List

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shorttrack.db.database import Base

if TYPE_CHECKING:
    from shorttrack.models.user import User
    from shorttrack.models.visit import Visit


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    slug: Mapped[str] = mapped_column(String(24), unique=True, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    # Soft-Delete: Slug bleibt reserviert
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    owner: Mapped["User"] = relationship("User", back_populates="links")
    visits: Mapped[List["Visit"]] = relationship(
        "Visit",
        back_populates="link",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Link id={self.id} slug={self.slug!r} user_id={self.user_id}>"
