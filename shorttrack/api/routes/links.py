# shorttrack/api/routes/links.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from shorttrack.api.deps import get_current_user_api
from shorttrack.core.rate_limit import limiter, RATE_LIMITS
from shorttrack.db.database import get_db
from shorttrack.models.user import User
from shorttrack.schemas.link import LinkCreateIn, LinkUpdateIn
from shorttrack.services import link_service, stats_service
from shorttrack.utils.qr import qr_png

router = APIRouter(tags=["Links"])
public_router = APIRouter(tags=["Redirect"])


def _png(data: bytes) -> Response:
    return Response(content=data, media_type="image/png", headers={"Cache-Control": "no-store, max-age=0"})


def _client_ip(request: Request) -> str | None:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else None


# ============================================================
# JSON: Links des eingeloggten Users
# ============================================================

@router.get("")
def api_list_links(
    q: str = Query(default=""),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    return link_service.list_links(db, current_user.id, q=q, page=page, page_size=page_size)


@router.post("", status_code=201)
def api_create_link(
    body: LinkCreateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    link = link_service.create_link(db, current_user.id, url=body.url, slug=body.slug, title=body.title)
    return {"ok": True, "link": link_service.link_out(link)}


# vor "/{link_id}" registrieren, sonst greift die Int-Route
@router.get("/qr/slug/{slug}", openapi_extra={"security": []})
def api_qr_by_slug(slug: str):
    return _png(qr_png(link_service.short_url(slug)))


@router.get("/{link_id}")
def api_get_link(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    link = link_service.get_link(db, link_id, current_user.id)
    return {"ok": True, "link": link_service.link_out(link)}


@router.put("/{link_id}")
def api_update_link(
    link_id: int,
    body: LinkUpdateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    link = link_service.update_link(
        db,
        link_id,
        current_user.id,
        url=body.url,
        slug=body.slug,
        title=body.title,
        title_set="title" in body.model_fields_set,
    )
    return {"ok": True, "link": link_service.link_out(link)}


@router.delete("/{link_id}", status_code=204)
def api_delete_link(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    link_service.delete_link(db, link_id, current_user.id)
    return Response(status_code=204)


@router.get("/{link_id}/qr")
def api_link_qr(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    link = link_service.get_link(db, link_id, current_user.id)
    return _png(qr_png(link_service.short_url(link.slug)))


@router.get("/{link_id}/stats")
def api_link_stats(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    return stats_service.link_stats(db, link_id, current_user.id)


# ============================================================
# Oeffentlich: Redirect (zuletzt registrieren)
# ============================================================

@public_router.get("/{slug}", include_in_schema=False)
@limiter.limit(RATE_LIMITS["redirect"])
def redirect_slug(request: Request, slug: str, db: Session = Depends(get_db)):
    link = link_service.resolve_slug(db, slug)
    link_service.record_visit(
        db,
        link,
        ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        language=request.headers.get("accept-language"),
        referer=request.headers.get("referer"),
    )
    return RedirectResponse(url=link.url, status_code=302)
