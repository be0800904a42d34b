# shorttrack/repositories/link_repo.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from shorttrack.models.link import Link
from shorttrack.models.visit import Visit


def _active_for_user(user_id: int, q: Optional[str] = None):
    conds = [Link.user_id == user_id, Link.deleted_at.is_(None)]
    if q and q.strip():
        pattern = f"%{q.strip().lower()}%"
        conds.append(
            or_(
                func.lower(Link.slug).like(pattern),
                func.lower(Link.url).like(pattern),
                func.lower(Link.title).like(pattern),
            )
        )
    return conds


def list_links(
    db: Session,
    user_id: int,
    *,
    q: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[Tuple[Link, int]], int]:
    conds = _active_for_user(user_id, q)
    total = db.scalar(select(func.count()).select_from(Link).where(*conds)) or 0

    visit_count = (
        select(func.count(Visit.id)).where(Visit.link_id == Link.id).correlate(Link).scalar_subquery()
    )
    stmt = (
        select(Link, visit_count)
        .where(*conds)
        .order_by(Link.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = [(link, int(count or 0)) for link, count in db.execute(stmt).all()]
    return rows, int(total)


def get_owned(db: Session, link_id: int, user_id: int) -> Optional[Link]:
    return db.scalar(
        select(Link).where(Link.id == link_id, Link.user_id == user_id, Link.deleted_at.is_(None))
    )


def get_active_by_slug(db: Session, slug: str) -> Optional[Link]:
    return db.scalar(select(Link).where(Link.slug == slug, Link.deleted_at.is_(None)))


def slug_exists(db: Session, slug: str) -> bool:
    """Auch geloeschte Links blockieren ihren Slug (Unique-Constraint)."""
    return db.scalar(select(Link.id).where(Link.slug == slug)) is not None


def create_link(db: Session, *, user_id: int, url: str, slug: str, title: Optional[str]) -> Link:
    link = Link(user_id=user_id, url=url, slug=slug, title=title)
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def save(db: Session, link: Link) -> Link:
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def add_visit(db: Session, visit: Visit) -> None:
    db.add(visit)
    db.commit()


def visits_between(db: Session, link_id: int, start: datetime, end: datetime) -> List[Visit]:
    stmt = select(Visit).where(
        Visit.link_id == link_id,
        Visit.created_at >= start,
        Visit.created_at <= end,
    )
    return list(db.scalars(stmt).all())
