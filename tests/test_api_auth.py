"""Auth-Endpunkte ueber HTTP: Antwortformat und Fehler-Envelope."""

from urllib.parse import parse_qs, urlparse

import pyotp

PHONE = "+15551234567"


def _register(client, email="a@x.com", phone=None):
    sent = client.post("/api/auth/request-email-code", json={"email": email})
    assert sent.status_code == 200
    body = {
        "name": "Alice",
        "email": email,
        "password": "secret1",
        "email_code": sent.json()["dev_code"],
    }
    if phone:
        body["phone"] = phone
    return client.post("/api/auth/register", json=body)


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


class TestRegistrationFlow:
    def test_register_and_me(self, client):
        res = _register(client)
        assert res.status_code == 201
        data = res.json()
        assert data["next"] == "done"

        me = client.get("/api/auth/me", headers=_auth(data["token"]))
        assert me.status_code == 200
        assert me.json()["user"] == {"id": data["user"]["id"], "name": "Alice", "email": "a@x.com", "phone": None}

    def test_phone_flow(self, client):
        data = _register(client, phone=PHONE).json()
        assert data["next"] == "verify-phone"

        blocked = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert blocked.status_code == 403
        assert blocked.json()["error"] == "UNVERIFIED"
        assert blocked.json()["field"] == "phone"

        confirmed = client.post(
            "/api/auth/confirm-phone",
            json={"user_id": data["user"]["id"], "phone": PHONE, "code": data["dev_sms_code"]},
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["token"]

        login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert login.status_code == 200

    def test_duplicate_email_is_conflict(self, client):
        _register(client)
        again = client.post(
            "/api/auth/register",
            json={"name": "Bob", "email": "a@x.com", "password": "secret1", "email_code": "123456"},
        )
        assert again.status_code == 409
        assert again.json() == {
            "ok": False,
            "error": "CONFLICT",
            "field": "email",
            "message": "E-mail already registered",
        }


class TestErrorEnvelope:
    def test_unknown_user(self, client):
        res = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "secret1"})
        assert res.status_code == 404
        body = res.json()
        assert body["ok"] is False
        assert body["error"] == "USER_NOT_FOUND"
        assert body["field"] == "email"

    def test_missing_field_is_validation_error(self, client):
        res = client.post("/api/auth/login", json={"email": "a@x.com"})
        assert res.status_code == 400
        assert res.json()["error"] == "VALIDATION_ERROR"
        assert res.json()["field"] == "password"

    def test_me_without_token(self, client):
        res = client.get("/api/auth/me")
        assert res.status_code == 401
        assert res.json()["error"] == "UNAUTHORIZED"

    def test_me_with_garbage_token(self, client):
        res = client.get("/api/auth/me", headers=_auth("garbage"))
        assert res.status_code == 401


class TestTotpEndpoints:
    def test_setup_enable_and_login(self, client):
        token = _register(client).json()["token"]

        setup = client.post("/api/auth/setup-totp", headers=_auth(token))
        assert setup.status_code == 200
        totp = pyotp.parse_uri(setup.json()["otpauth_url"])

        enabled = client.post("/api/auth/enable-totp", json={"code": totp.now()}, headers=_auth(token))
        assert enabled.status_code == 200
        assert len(enabled.json()["backup_codes"]) == 6

        required = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
        assert required.status_code == 401
        assert required.json()["error"] == "TOTP_REQUIRED"

        ok = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "secret1", "code": totp.now()}
        )
        assert ok.status_code == 200

    def test_setup_requires_login(self, client):
        assert client.post("/api/auth/setup-totp").status_code == 401


class TestRecoveryEndpoints:
    def test_password_reset(self, client):
        _register(client)
        sent = client.post("/api/auth/request-password-reset", json={"email": "a@x.com"}).json()
        res = client.post(
            "/api/auth/confirm-password-reset",
            json={"email": "a@x.com", "code": sent["dev_code"], "password": "newpass1"},
        )
        assert res.status_code == 200
        login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "newpass1"})
        assert login.status_code == 200

    def test_magic_link(self, client):
        _register(client)
        url = client.post("/api/auth/request-magic-link", json={"email": "a@x.com"}).json()["magic_url"]
        query = parse_qs(urlparse(url).query)
        res = client.post(
            "/api/auth/consume-magic-link",
            json={"token": query["token"][0], "email": query["email"][0]},
        )
        assert res.status_code == 200
        assert res.json()["user"]["email"] == "a@x.com"

    def test_sms_otp(self, client):
        unknown = client.post("/api/auth/request-otp", json={"phone": PHONE})
        assert unknown.status_code == 404

        data = _register(client, phone=PHONE).json()
        client.post(
            "/api/auth/confirm-phone",
            json={"user_id": data["user"]["id"], "phone": PHONE, "code": data["dev_sms_code"]},
        )
        code = client.post("/api/auth/request-otp", json={"phone": PHONE}).json()["dev_code"]
        res = client.post("/api/auth/verify-otp", json={"phone": PHONE, "code": code})
        assert res.status_code == 200
        again = client.post("/api/auth/verify-otp", json={"phone": PHONE, "code": code})
        assert again.status_code == 400
        assert again.json()["error"] == "INVALID_CODE"


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
