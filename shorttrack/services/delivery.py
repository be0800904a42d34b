# shorttrack/services/delivery.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from shorttrack.core.config import settings
from shorttrack.core.errors import DeliveryError
from shorttrack.utils.email_utils import send_mail
from shorttrack.utils.sms_utils import send_sms

log = logging.getLogger(__name__)

MailSender = Callable[[str, str, str, Optional[str]], None]
SmsSender = Callable[[str, str], None]


@dataclass(frozen=True)
class DeliveryResult:
    """
    delivered=True  : Nachricht ist raus, Klartext bleibt intern.
    delivered=False : Kanal nicht konfiguriert, plaintext geht an den Aufrufer (Dev).
    """
    delivered: bool
    plaintext: Optional[str] = None


class DeliveryGateway:
    """Versand von E-Mail und SMS. Ein fehlender Sender bedeutet: Kanal nicht konfiguriert."""

    def __init__(self, mail_sender: Optional[MailSender] = None, sms_sender: Optional[SmsSender] = None):
        self.mail_sender = mail_sender
        self.sms_sender = sms_sender

    def send_email(
        self,
        to: str,
        subject: str,
        html: str,
        *,
        plaintext: str,
        text: Optional[str] = None,
    ) -> DeliveryResult:
        if self.mail_sender is None:
            log.warning("Mail nicht konfiguriert, Code fuer %s wird direkt zurueckgegeben", to)
            return DeliveryResult(delivered=False, plaintext=plaintext)
        try:
            self.mail_sender(to, subject, html, text)
        except Exception as ex:
            log.exception("Mailversand an %s fehlgeschlagen", to)
            raise DeliveryError("Could not send e-mail") from ex
        return DeliveryResult(delivered=True)

    def send_sms(self, to: str, body: str, *, plaintext: str) -> DeliveryResult:
        if self.sms_sender is None:
            log.warning("SMS nicht konfiguriert, Code fuer %s wird direkt zurueckgegeben", to)
            return DeliveryResult(delivered=False, plaintext=plaintext)
        try:
            self.sms_sender(to, body)
        except Exception as ex:
            log.exception("SMS-Versand an %s fehlgeschlagen", to)
            raise DeliveryError("Could not send SMS") from ex
        return DeliveryResult(delivered=True)


def build_gateway() -> DeliveryGateway:
    return DeliveryGateway(
        mail_sender=send_mail if settings.mail_configured else None,
        sms_sender=send_sms if settings.sms_configured else None,
    )


delivery_gateway = build_gateway()


def code_email(subject: str, code: str, ttl_minutes: int) -> tuple[str, str]:
    """HTML- und Text-Body fuer einen Einmalcode."""
    html = f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6;">
        <h2 style="color: #7c3aed;">{subject}</h2>
        <p>Your code is:</p>
        <div style="font-size: 28px; font-weight: 700; letter-spacing: 4px;">{code}</div>
        <p>It expires in {ttl_minutes} minutes.</p>
        <p>If you did not request this, ignore this message.</p>
    </div>
    """.strip()
    text = (
        f"{subject}\n\n"
        f"Your code: {code}\n"
        f"It expires in {ttl_minutes} minutes.\n\n"
        "If you did not request this, ignore this message."
    )
    return html, text
