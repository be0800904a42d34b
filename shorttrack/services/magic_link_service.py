# shorttrack/services/magic_link_service.py
from __future__ import annotations

import logging
from html import escape
from typing import Dict
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from shorttrack.core.codes import generate_magic_token, now_utc
from shorttrack.core.config import settings
from shorttrack.core.errors import VerificationError
from shorttrack.core.password_policy import normalize_email
from shorttrack.repositories.user_repo import get_by_email, update_user
from shorttrack.models.verification_code import CodePurpose
from shorttrack.services.auth_service import session_payload
from shorttrack.services.delivery import DeliveryGateway
from shorttrack.services.verification_code_service import consume_code, exposed, issue_code

log = logging.getLogger(__name__)


def _build_magic_url(token: str, email: str) -> str:
    base = settings.APP_BASE_URL.rstrip("/")
    return f"{base}/magic?{urlencode({'token': token, 'email': email})}"


def request_magic_link(db: Session, email: str, *, delivery: DeliveryGateway) -> Dict:
    target = normalize_email(email)
    user = get_by_email(db, target) if target else None
    if not user:
        # nicht verraten, ob es das Konto gibt
        return {"ok": True}

    token = generate_magic_token()
    issue_code(db, CodePurpose.MAGIC_LOGIN, target, token, settings.MAGIC_LINK_TTL_MINUTES)
    link = _build_magic_url(token, target)

    subject = f"{settings.APP_NAME}: your sign-in link"
    html = f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6;">
        <h2 style="color: #7c3aed;">Sign in to {settings.APP_NAME}</h2>
        <p>Hello {escape(user.name)},</p>
        <p style="margin: 24px 0;">
            <a href="{link}" style="background-color: #7c3aed; color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: bold;">
                Sign in
            </a>
        </p>
        <p>The link can be used once and expires in {settings.MAGIC_LINK_TTL_MINUTES} minutes.</p>
        <p>If you did not request this, ignore this message.</p>
    </div>
    """.strip()
    text = (
        f"Hello {user.name},\n\n"
        f"sign in to {settings.APP_NAME} with this link:\n{link}\n\n"
        f"The link can be used once and expires in {settings.MAGIC_LINK_TTL_MINUTES} minutes."
    )

    result = delivery.send_email(target, subject, html, text=text, plaintext=link)
    return {"ok": True, **exposed(result, "magic_url")}


def consume_magic_link(db: Session, *, token: str, email: str) -> Dict:
    """Passwortloser Login: Token verbrauchen, E-Mail als bestaetigt markieren, Session ausstellen."""
    target = normalize_email(email)

    try:
        consume_code(db, CodePurpose.MAGIC_LOGIN, target, token, commit=False)
        user = get_by_email(db, target)
        if user is None:
            raise VerificationError(field="token")

        changes = {}
        if user.email_verified_at is None:
            changes["email_verified_at"] = now_utc()
        if not user.is_active:
            changes["is_active"] = True
        if changes:
            update_user(db, user, commit=False, **changes)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log.info("Magic-Link-Login: user_id=%s", user.id)
    return session_payload(user)
