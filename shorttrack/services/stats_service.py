# shorttrack/services/stats_service.py
from __future__ import annotations

from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from shorttrack.repositories import link_repo
from shorttrack.services.link_service import get_link

WINDOW_DAYS = 30
TOP_N = 6
OTHERS_KEY = "Other"


def top_kv(values: Iterable[Optional[str]], max_items: int = TOP_N) -> List[Dict]:
    """Haeufigste Werte; der Rest wird unter "Other" zusammengefasst."""
    counts = Counter(str(v or "N/A") for v in values)
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    top = [{"key": k, "value": v} for k, v in ordered[:max_items]]
    others = sum(v for _, v in ordered[max_items:])
    if others > 0:
        top.append({"key": OTHERS_KEY, "value": others})
    return top


def _day_of(dt: datetime) -> date:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).date()


def link_stats(db: Session, link_id: int, user_id: int, *, today: Optional[date] = None) -> Dict:
    link = get_link(db, link_id, user_id)

    # letzte 30 Tage inklusive heute (UTC)
    today = today or datetime.now(timezone.utc).date()
    first_day = today - timedelta(days=WINDOW_DAYS - 1)
    start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(today, time.max, tzinfo=timezone.utc)

    visits = link_repo.visits_between(db, link.id, start, end)

    buckets = {first_day + timedelta(days=i): 0 for i in range(WINDOW_DAYS)}
    for v in visits:
        day = _day_of(v.created_at)
        if day in buckets:
            buckets[day] += 1

    return {
        "ok": True,
        "link": {
            "id": link.id,
            "slug": link.slug,
            "url": link.url,
            "title": link.title,
            "created_at": link.created_at.isoformat() if link.created_at else None,
        },
        "series": [{"date": d.isoformat(), "value": n} for d, n in buckets.items()],
        "by_browser": top_kv(v.browser for v in visits),
        "by_os": top_kv(v.os for v in visits),
        "by_referer": top_kv(v.referer for v in visits),
    }
