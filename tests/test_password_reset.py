"""Passwort-Reset: gleiche Antwort fuer bekannte und unbekannte Adressen, Code nur einmal."""

from datetime import timedelta

import pytest
from sqlalchemy import update

from shorttrack.core.codes import now_utc
from shorttrack.core.errors import BadCredentials, ValidationError, VerificationError
from shorttrack.models.verification_code import VerificationCode
from shorttrack.services import auth_service, password_reset_service
from shorttrack.services.password_reset_service import confirm_password_reset, request_password_reset


class TestRequest:
    def test_known_and_unknown_look_the_same(self, db, make_user, live_delivery, channel):
        make_user()
        known = request_password_reset(db, "a@x.com", delivery=live_delivery)
        unknown = request_password_reset(db, "ghost@x.com", delivery=live_delivery)
        assert known == unknown == {"ok": True}
        assert [m[0] for m in channel.mails] == ["a@x.com", "ghost@x.com"]

    def test_dev_mode_exposes_code(self, db, make_user, dev_delivery):
        make_user()
        res = request_password_reset(db, "a@x.com", delivery=dev_delivery)
        assert len(res["dev_code"]) == 6

    def test_throttled_within_a_minute(self, db, live_delivery, channel):
        request_password_reset(db, "a@x.com", delivery=live_delivery)
        assert request_password_reset(db, "a@x.com", delivery=live_delivery) == {"ok": True}
        assert len(channel.mails) == 1

        db.execute(update(VerificationCode).values(created_at=now_utc() - timedelta(seconds=61)))
        db.commit()
        request_password_reset(db, "a@x.com", delivery=live_delivery)
        assert len(channel.mails) == 2


class TestConfirm:
    def test_sets_new_password(self, db, make_user, dev_delivery):
        make_user()
        code = request_password_reset(db, "a@x.com", delivery=dev_delivery)["dev_code"]
        assert confirm_password_reset(db, email="a@x.com", code=code, new_password="newpass1") == {"ok": True}

        assert auth_service.login(db, email="a@x.com", password="newpass1")["token"]
        with pytest.raises(BadCredentials):
            auth_service.login(db, email="a@x.com", password="secret1")

    def test_code_is_single_use(self, db, make_user, dev_delivery):
        make_user()
        code = request_password_reset(db, "a@x.com", delivery=dev_delivery)["dev_code"]
        confirm_password_reset(db, email="a@x.com", code=code, new_password="newpass1")
        with pytest.raises(VerificationError):
            confirm_password_reset(db, email="a@x.com", code=code, new_password="newpass2")

    def test_wrong_code_keeps_password(self, db, make_user, dev_delivery):
        make_user()
        request_password_reset(db, "a@x.com", delivery=dev_delivery)
        with pytest.raises(VerificationError) as exc:
            confirm_password_reset(db, email="a@x.com", code="000000", new_password="newpass1")
        assert exc.value.field == "code"
        assert auth_service.login(db, email="a@x.com", password="secret1")["token"]

    def test_expired_code(self, db, make_user, dev_delivery):
        make_user()
        code = request_password_reset(db, "a@x.com", delivery=dev_delivery)["dev_code"]
        db.execute(update(VerificationCode).values(expires_at=now_utc() - timedelta(seconds=1)))
        db.commit()
        with pytest.raises(VerificationError):
            confirm_password_reset(db, email="a@x.com", code=code, new_password="newpass1")

    def test_weak_password_is_rejected_before_code_is_spent(self, db, make_user, dev_delivery):
        make_user()
        code = request_password_reset(db, "a@x.com", delivery=dev_delivery)["dev_code"]
        with pytest.raises(ValidationError) as exc:
            confirm_password_reset(db, email="a@x.com", code=code, new_password="123")
        assert exc.value.field == "password"
        confirm_password_reset(db, email="a@x.com", code=code, new_password="newpass1")

    def test_unknown_email_only_spends_code(self, db, dev_delivery):
        code = request_password_reset(db, "ghost@x.com", delivery=dev_delivery)["dev_code"]
        assert confirm_password_reset(db, email="ghost@x.com", code=code, new_password="newpass1") == {"ok": True}


class TestConfirmAtomic:
    def test_failed_password_update_leaves_code_usable(self, db, make_user, dev_delivery, monkeypatch):
        make_user()
        code = request_password_reset(db, "a@x.com", delivery=dev_delivery)["dev_code"]

        def broken(*args, **kwargs):
            raise RuntimeError("db write failed")

        monkeypatch.setattr(password_reset_service, "update_user", broken)
        with pytest.raises(RuntimeError):
            confirm_password_reset(db, email="a@x.com", code=code, new_password="newpass1")
        monkeypatch.undo()

        assert auth_service.login(db, email="a@x.com", password="secret1")["token"]
        confirm_password_reset(db, email="a@x.com", code=code, new_password="newpass1")
        assert auth_service.login(db, email="a@x.com", password="newpass1")["token"]
