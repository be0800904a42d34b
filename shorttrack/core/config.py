# shorttrack/core/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, EmailStr


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,  # .env keys dürfen groß/klein geschrieben sein
        extra="ignore",
    )

    # ------------------------------------------------------------
    # 🧭 Allgemeine App-Einstellungen
    # ------------------------------------------------------------
    APP_NAME: str = "ShortTrack"
    APP_ENV: str = "development"
    SECRET_KEY: str = Field(..., min_length=16)
    LOG_LEVEL: str = "INFO"

    # Basis-URL der Kurzlinks (Redirect + QR)
    PUBLIC_BASE_URL: str = "http://localhost:4500"
    # Basis-URL des Frontends (Magic-Links)
    APP_BASE_URL: str = "http://localhost:5174"
    CORS_ORIGINS: str = "http://localhost:5174"

    # Session-Token (JWT)
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # ------------------------------------------------------------
    # 🗄️ Datenbank
    # ------------------------------------------------------------
    DB_URL: str = "sqlite:///./shorttrack.db"

    # ------------------------------------------------------------
    # 🔐 Passwoerter & Codes
    # ------------------------------------------------------------
    PASSWORD_SCHEME: str = "argon2"  # "argon2" | "bcrypt"
    PASSWORD_MIN_LENGTH: int = 6

    CODE_TTL_MINUTES: int = 10
    CODE_THROTTLE_SECONDS: int = 60
    RESET_CODE_TTL_MINUTES: int = 30
    MAGIC_LINK_TTL_MINUTES: int = 15
    SMS_OTP_TTL_MINUTES: int = 10

    TOTP_ISSUER: str = "ShortTrack"

    # ------------------------------------------------------------
    # 📩 SMTP / Mail (ohne MAIL_SERVER/MAIL_FROM: Dev-Modus)
    # ------------------------------------------------------------
    MAIL_FROM: Optional[EmailStr] = None
    MAIL_FROM_NAME: str = "ShortTrack"
    MAIL_SERVER: Optional[str] = None
    MAIL_PORT: int = 587
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_USE_TLS: bool = True

    # ------------------------------------------------------------
    # 📱 SMS / Twilio (unvollstaendig: Dev-Modus)
    # ------------------------------------------------------------
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_FROM: Optional[str] = None

    # ------------------------------------------------------------
    # 🚦 Rate-Limit fuer Redirects (slowapi-Syntax)
    # ------------------------------------------------------------
    REDIRECT_RATE_LIMIT: str = "100/minute"

    @property
    def mail_configured(self) -> bool:
        return bool(self.MAIL_SERVER and self.MAIL_FROM)

    @property
    def sms_configured(self) -> bool:
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_FROM)


# ------------------------------------------------------------
# Globale Settings-Instanz
# ------------------------------------------------------------
settings = Settings()
