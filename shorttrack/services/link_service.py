# shorttrack/services/link_service.py
from __future__ import annotations

import logging
import re
from typing import Dict, Optional
from urllib.parse import urlparse

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from user_agents import parse as parse_user_agent

from shorttrack.core.codes import now_utc, random_string
from shorttrack.core.config import settings
from shorttrack.core.errors import ConflictError, NotFoundError, ValidationError
from shorttrack.models.link import Link
from shorttrack.models.visit import Visit
from shorttrack.repositories import link_repo

log = logging.getLogger(__name__)

SLUG_LENGTH = 7
SLUG_RE = re.compile(r"^[a-z0-9-]{3,24}$")
# kollidieren mit oeffentlichen Routen
RESERVED_SLUGS = {"api", "health", "favicon.ico", "docs", "openapi.json", "redoc"}


def link_out(link: Link, total: Optional[int] = None) -> Dict:
    data = {
        "id": link.id,
        "slug": link.slug,
        "url": link.url,
        "title": link.title,
        "short_url": short_url(link.slug),
        "created_at": link.created_at.isoformat() if link.created_at else None,
    }
    if total is not None:
        data["total"] = total
    return data


def short_url(slug: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/{slug}"


def validate_url(url: str) -> str:
    value = (url or "").strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc or len(value) > 2048:
        raise ValidationError("Invalid URL", field="url")
    return value


def _check_slug(db: Session, slug: str) -> str:
    slug = slug.strip()
    if not SLUG_RE.match(slug):
        raise ValidationError("Slug must be 3-24 characters of a-z, 0-9 or -", field="slug")
    if slug in RESERVED_SLUGS:
        raise ConflictError("Slug is reserved", field="slug")
    if link_repo.slug_exists(db, slug):
        raise ConflictError("Slug already in use", field="slug")
    return slug


def _random_slug(db: Session) -> str:
    while True:
        slug = random_string(SLUG_LENGTH)
        if not link_repo.slug_exists(db, slug):
            return slug


# ------------------------------------------------------------
# CRUD
# ------------------------------------------------------------
def list_links(db: Session, user_id: int, *, q: Optional[str], page: int, page_size: int) -> Dict:
    rows, total = link_repo.list_links(db, user_id, q=q, page=page, page_size=page_size)
    return {
        "ok": True,
        "items": [link_out(link, count) for link, count in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


def get_link(db: Session, link_id: int, user_id: int) -> Link:
    link = link_repo.get_owned(db, link_id, user_id)
    if not link:
        raise NotFoundError("Link not found")
    return link


def create_link(db: Session, user_id: int, *, url: str, slug: Optional[str] = None, title: Optional[str] = None) -> Link:
    url = validate_url(url)
    slug = _check_slug(db, slug) if slug and slug.strip() else _random_slug(db)
    title = (title or "").strip() or None
    try:
        return link_repo.create_link(db, user_id=user_id, url=url, slug=slug, title=title)
    except IntegrityError:
        db.rollback()
        raise ConflictError("Slug already in use", field="slug")


def update_link(
    db: Session,
    link_id: int,
    user_id: int,
    *,
    url: Optional[str] = None,
    slug: Optional[str] = None,
    title: Optional[str] = None,
    title_set: bool = False,
) -> Link:
    link = get_link(db, link_id, user_id)
    if url:
        link.url = validate_url(url)
    if title_set:
        link.title = (title or "").strip() or None
    if slug and slug.strip() != link.slug:
        link.slug = _check_slug(db, slug)
    try:
        return link_repo.save(db, link)
    except IntegrityError:
        db.rollback()
        raise ConflictError("Slug already in use", field="slug")


def delete_link(db: Session, link_id: int, user_id: int) -> None:
    link = get_link(db, link_id, user_id)
    link.deleted_at = now_utc()
    link_repo.save(db, link)


# ------------------------------------------------------------
# Redirect
# ------------------------------------------------------------
def resolve_slug(db: Session, slug: str) -> Link:
    link = link_repo.get_active_by_slug(db, slug)
    if not link:
        raise NotFoundError("Link not found")
    return link


def _country_from_language(language: Optional[str]) -> Optional[str]:
    # "pt-BR,pt;q=0.9" -> "BR"
    if not language:
        return None
    first = language.split(",")[0].strip()
    parts = first.split("-")
    return parts[1].upper()[:8] if len(parts) > 1 and parts[1] else None


def _device_of(ua) -> str:
    if ua.is_tablet:
        return "Tablet"
    if ua.is_mobile:
        return "Mobile"
    if ua.is_bot:
        return "Bot"
    return "Desktop"


def record_visit(
    db: Session,
    link: Link,
    *,
    ip: Optional[str],
    user_agent: Optional[str],
    language: Optional[str],
    referer: Optional[str],
) -> None:
    """Visit protokollieren; Fehler duerfen den Redirect nicht blockieren."""
    try:
        ua = parse_user_agent(user_agent or "")
        visit = Visit(
            link_id=link.id,
            created_at=now_utc(),
            ip=ip,
            user_agent=(user_agent or None) and user_agent[:512],
            language=(language or None) and language[:64],
            referer=(referer or None) and referer[:512],
            browser=ua.browser.family if ua.browser.family != "Other" else None,
            os=ua.os.family if ua.os.family != "Other" else None,
            device=_device_of(ua),
            country=_country_from_language(language),
        )
        link_repo.add_visit(db, visit)
    except Exception:
        db.rollback()
        log.exception("Visit-Log fehlgeschlagen fuer link_id=%s", link.id)
