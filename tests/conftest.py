"""
Gemeinsame Fixtures: In-Memory-SQLite, frische Tabellen pro Test,
Delivery-Gateways ohne echten Versand.
"""

import os

# vor dem Import von shorttrack setzen (Settings werden beim Import gelesen)
os.environ["SECRET_KEY"] = "test-secret-key-0123456789"
os.environ["DB_URL"] = "sqlite://"
os.environ["MAIL_SERVER"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["REDIRECT_RATE_LIMIT"] = "1000/minute"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

import shorttrack.models  # noqa: F401
from shorttrack.api.deps import get_delivery
from shorttrack.db.database import Base, SessionLocal, engine
from shorttrack.main import app
from shorttrack.services.delivery import DeliveryGateway


class RecordingChannel:
    """Merkt sich alles, was versendet worden waere."""

    def __init__(self):
        self.mails: List[Tuple[str, str, str, Optional[str]]] = []
        self.sms: List[Tuple[str, str]] = []

    def mail(self, to, subject, html, text=None):
        self.mails.append((to, subject, html, text))

    def send_sms(self, to, body):
        self.sms.append((to, body))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def dev_delivery():
    """Kein Kanal konfiguriert: Klartext kommt im Ergebnis zurueck."""
    return DeliveryGateway()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def live_delivery(channel):
    """Beide Kanaele 'konfiguriert': nichts wird offengelegt."""
    return DeliveryGateway(mail_sender=channel.mail, sms_sender=channel.send_sms)


@pytest.fixture
def client(db, dev_delivery):
    app.dependency_overrides[get_delivery] = lambda: dev_delivery
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db, dev_delivery):
    """Registriert einen User ohne Telefon und liefert (user_dict, token)."""
    from shorttrack.services import auth_service

    def _make(email="a@x.com", password="secret1", name="Alice"):
        sent = auth_service.request_email_code(db, email, delivery=dev_delivery)
        res = auth_service.register(
            db,
            name=name,
            email=email,
            password=password,
            email_code=sent["dev_code"],
            delivery=dev_delivery,
        )
        return res["user"], res["token"]

    return _make
