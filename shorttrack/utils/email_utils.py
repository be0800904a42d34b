# shorttrack/utils/email_utils.py
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from shorttrack.core.config import settings

log = logging.getLogger(__name__)


def send_mail(to_email: str, subject: str, html_body: str, text_body: str | None = None) -> None:
    """Sendet eine E-Mail via SMTP. Fehler werden an den Aufrufer weitergereicht."""
    msg = MIMEMultipart("alternative")
    msg["From"] = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM}>"
    msg["To"] = to_email
    msg["Subject"] = subject

    if text_body:
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    with smtplib.SMTP(settings.MAIL_SERVER, settings.MAIL_PORT, timeout=20) as server:
        server.ehlo()
        if settings.MAIL_USE_TLS:
            server.starttls()
            server.ehlo()
        if settings.MAIL_USERNAME and settings.MAIL_PASSWORD:
            server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
        server.sendmail(str(settings.MAIL_FROM), [to_email], msg.as_string())

    log.info("Mail gesendet an %s: %s", to_email, subject)
