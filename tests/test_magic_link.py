"""Passwortloser Login per E-Mail-Link."""

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import update

from shorttrack.core.codes import now_utc
from shorttrack.core.errors import VerificationError
from shorttrack.core.security import jwt_service
from shorttrack.models.verification_code import VerificationCode
from shorttrack.repositories.user_repo import get_by_email, update_user
from shorttrack.services.magic_link_service import consume_magic_link, request_magic_link


def _token_of(magic_url):
    query = parse_qs(urlparse(magic_url).query)
    return query["token"][0], query["email"][0]


class TestRequest:
    def test_unknown_user_gets_plain_ok(self, db, live_delivery, channel):
        assert request_magic_link(db, "ghost@x.com", delivery=live_delivery) == {"ok": True}
        assert channel.mails == []
        assert db.query(VerificationCode).count() == 0

    def test_dev_mode_returns_link(self, db, make_user, dev_delivery):
        make_user()
        res = request_magic_link(db, "A@x.com", delivery=dev_delivery)
        url = res["magic_url"]
        assert url.startswith("http://localhost:5174/magic?")
        token, email = _token_of(url)
        assert len(token) == 32
        assert email == "a@x.com"

    def test_link_is_mailed_when_configured(self, db, make_user, live_delivery, channel):
        make_user()
        assert request_magic_link(db, "a@x.com", delivery=live_delivery) == {"ok": True}
        to, _, html, text = channel.mails[0]
        assert to == "a@x.com"
        assert "/magic?token=" in html
        assert "/magic?token=" in text


class TestConsume:
    def test_logs_in_once(self, db, make_user, dev_delivery):
        user, _ = make_user()
        token, email = _token_of(request_magic_link(db, "a@x.com", delivery=dev_delivery)["magic_url"])

        res = consume_magic_link(db, token=token, email=email)
        assert jwt_service.verify(res["token"]) == user["id"]

        with pytest.raises(VerificationError):
            consume_magic_link(db, token=token, email=email)

    def test_marks_email_verified_and_activates(self, db, make_user, dev_delivery):
        make_user()
        user = get_by_email(db, "a@x.com")
        update_user(db, user, email_verified_at=None, is_active=False)

        token, email = _token_of(request_magic_link(db, "a@x.com", delivery=dev_delivery)["magic_url"])
        consume_magic_link(db, token=token, email=email)

        user = get_by_email(db, "a@x.com")
        assert user.email_verified_at is not None
        assert user.is_active is True

    def test_token_is_bound_to_email(self, db, make_user, dev_delivery):
        make_user()
        make_user(email="b@x.com", name="Bob")
        token, _ = _token_of(request_magic_link(db, "a@x.com", delivery=dev_delivery)["magic_url"])
        with pytest.raises(VerificationError):
            consume_magic_link(db, token=token, email="b@x.com")

    def test_expired_token(self, db, make_user, dev_delivery):
        make_user()
        token, email = _token_of(request_magic_link(db, "a@x.com", delivery=dev_delivery)["magic_url"])
        db.execute(update(VerificationCode).values(expires_at=now_utc() - timedelta(minutes=1)))
        db.commit()
        with pytest.raises(VerificationError):
            consume_magic_link(db, token=token, email=email)


class TestMailBody:
    def test_name_is_escaped_in_html(self, db, make_user, live_delivery, channel):
        make_user(name="<b>Eve</b>")
        request_magic_link(db, "a@x.com", delivery=live_delivery)
        _, _, html, _ = channel.mails[0]
        assert "<b>Eve</b>" not in html
        assert "&lt;b&gt;Eve&lt;/b&gt;" in html
