"""Einrichtung der Authenticator-App und Backup-Codes."""

import time

import pyotp
import pytest

from shorttrack.core.errors import ConflictError, VerificationError
from shorttrack.core.security import hash_token
from shorttrack.db.database import SessionLocal
from shorttrack.models.user import User
from shorttrack.repositories import backup_code_repo
from shorttrack.repositories.backup_code_repo import unused_hashes
from shorttrack.repositories.user_repo import get_by_email
from shorttrack.services import totp_service


@pytest.fixture
def user(db, make_user):
    make_user()
    return get_by_email(db, "a@x.com")


def _wrong_code(secret):
    totp = pyotp.TOTP(secret)
    for candidate in ("000000", "111111", "222222", "333333"):
        if not totp.verify(candidate, valid_window=1):
            return candidate
    raise AssertionError("no wrong code found")


class TestSetup:
    def test_returns_otpauth_url_and_qr(self, db, user):
        res = totp_service.setup_totp(db, user)
        assert res["ok"] is True
        assert res["otpauth_url"].startswith("otpauth://totp/")
        assert res["qr_data_url"].startswith("data:image/png;base64,")

        parsed = pyotp.parse_uri(res["otpauth_url"])
        assert parsed.secret == user.totp_secret
        assert parsed.issuer == "ShortTrack"
        assert user.totp_enabled is False

    def test_secret_is_not_exposed_in_projection(self, db, user):
        from shorttrack.services.auth_service import user_projection

        totp_service.setup_totp(db, user)
        assert "totp_secret" not in user_projection(user)


class TestEnable:
    def test_current_code_enables_and_returns_six_backup_codes(self, db, user):
        res = totp_service.setup_totp(db, user)
        code = pyotp.parse_uri(res["otpauth_url"]).now()

        enabled = totp_service.enable_totp(db, user, code)
        assert enabled["ok"] is True
        assert len(enabled["backup_codes"]) == 6
        assert len(set(enabled["backup_codes"])) == 6
        assert user.totp_enabled is True
        # nur Hashes gespeichert
        assert unused_hashes(db, user.id) == [hash_token(c) for c in enabled["backup_codes"]]

    def test_wrong_code_keeps_totp_disabled(self, db, user):
        totp_service.setup_totp(db, user)
        with pytest.raises(VerificationError) as exc:
            totp_service.enable_totp(db, user, _wrong_code(user.totp_secret))
        assert exc.value.field == "code"
        assert user.totp_enabled is False
        assert unused_hashes(db, user.id) == []

    def test_enable_without_setup(self, db, user):
        with pytest.raises(VerificationError):
            totp_service.enable_totp(db, user, "123456")

    def test_new_setup_resets_enrollment(self, db, user):
        totp_service.setup_totp(db, user)
        totp_service.enable_totp(db, user, pyotp.TOTP(user.totp_secret).now())
        old_secret = user.totp_secret

        totp_service.setup_totp(db, user)
        assert user.totp_secret != old_secret
        assert user.totp_enabled is False
        assert unused_hashes(db, user.id) == []


class TestVerify:
    def test_adjacent_time_step_is_accepted(self):
        secret = pyotp.random_base32()
        totp = pyotp.TOTP(secret)
        previous = totp.at(int(time.time()) - 30)
        assert totp_service.verify_totp(secret, previous)

    def test_non_digits_and_missing_secret(self):
        assert not totp_service.verify_totp(None, "123456")
        assert not totp_service.verify_totp(pyotp.random_base32(), "abcdef")
        assert not totp_service.verify_totp(pyotp.random_base32(), "")


class TestBackupCodeRace:
    """Zwei Sessions, die denselben User geladen haben, bevor eine schreibt."""

    @pytest.fixture
    def enrolled(self, db, user):
        totp_service.setup_totp(db, user)
        codes = totp_service.enable_totp(db, user, pyotp.TOTP(user.totp_secret).now())["backup_codes"]
        first, second = SessionLocal(), SessionLocal()
        try:
            yield user, codes, first, second
        finally:
            first.close()
            second.close()

    def test_same_code_is_accepted_once(self, enrolled):
        user, codes, first, second = enrolled
        u1 = first.get(User, user.id)
        u2 = second.get(User, user.id)

        assert totp_service.spend_backup_code(first, u1, codes[0]) is True
        assert totp_service.spend_backup_code(second, u2, codes[0]) is False

    def test_lost_update_is_rejected(self, enrolled):
        user, codes, first, second = enrolled
        code_hash = hash_token(codes[0])
        rec1 = backup_code_repo.find_unused(first, user.id, code_hash)
        rec2 = backup_code_repo.find_unused(second, user.id, code_hash)
        assert rec1.id == rec2.id

        assert backup_code_repo.mark_used(first, rec1.id) is True
        assert backup_code_repo.mark_used(second, rec2.id) is False

    def test_other_codes_stay_valid(self, db, enrolled):
        user, codes, first, second = enrolled
        assert totp_service.spend_backup_code(first, first.get(User, user.id), codes[0])
        assert totp_service.spend_backup_code(second, second.get(User, user.id), codes[1])
        assert len(unused_hashes(db, user.id)) == 4


class TestEnableTwice:
    def test_second_enable_keeps_backup_codes(self, db, user):
        totp_service.setup_totp(db, user)
        totp_service.enable_totp(db, user, pyotp.TOTP(user.totp_secret).now())
        before = unused_hashes(db, user.id)

        with pytest.raises(ConflictError) as exc:
            totp_service.enable_totp(db, user, pyotp.TOTP(user.totp_secret).now())
        assert exc.value.field == "code"
        assert unused_hashes(db, user.id) == before
