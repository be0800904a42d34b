# shorttrack/utils/sms_utils.py
import logging

from twilio.rest import Client

from shorttrack.core.config import settings

log = logging.getLogger(__name__)

_client: Client | None = None


def _get_client() -> Client:
    global _client
    if _client is None:
        _client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
    return _client


def send_sms(to: str, body: str) -> None:
    """Sendet eine SMS ueber Twilio (to im E.164-Format)."""
    message = _get_client().messages.create(from_=settings.TWILIO_FROM, to=to, body=body)
    log.info("SMS gesendet an %s (sid=%s)", to, message.sid)
