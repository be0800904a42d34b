# shorttrack/core/security.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import hashlib
import hmac
import jwt

# Passwörter: bevorzugt Argon2, Alt-Hashes (bcrypt_sha256) bleiben gültig
from passlib.hash import bcrypt_sha256, argon2

from shorttrack.core.config import settings
from shorttrack.core.errors import Unauthorized

# =============================
# 🔐 Passwort-Hashing
# =============================

# bcrypt hat ein 72-Byte-Limit; wir kappen auf 64 Zeichen für bcrypt.
MAX_PWD_LEN_BCRYPT_SAFE = 64

PASSWORD_SCHEME = settings.PASSWORD_SCHEME.lower().strip()  # "argon2" | "bcrypt"


# --- Hash-Schema-Erkennung über Präfixe ---
def _scheme_of(hash_str: str) -> str:
    if not hash_str:
        return "unknown"
    h = hash_str.lower()
    if h.startswith("$argon2"):                  # z. B. $argon2id$...
        return "argon2"
    if h.startswith("$bcrypt-sha256$"):         # passlib's bcrypt_sha256
        return "bcrypt"
    if h.startswith("$2a$") or h.startswith("$2b$") or h.startswith("$2y$"):
        return "bcrypt"                         # klassische bcrypt-Hashes
    return "unknown"


def hash_password(password: str) -> str:
    """
    Erzeugt einen sicheren Passwort-Hash.
    - Standard: Argon2id
    - Alternativ: bcrypt_sha256 (PASSWORD_SCHEME="bcrypt")
    """
    if PASSWORD_SCHEME == "argon2":
        return argon2.using(
            type="ID",            # Argon2id
            time_cost=2,
            memory_cost=65_536,   # 64 MiB
            parallelism=4,
        ).hash(password)
    return bcrypt_sha256.hash(password[:MAX_PWD_LEN_BCRYPT_SAFE])


def verify_password(password: str, password_hash: str) -> bool:
    """Prüft ein Passwort gegen Argon2- oder bcrypt_sha256-Hashes."""
    scheme = _scheme_of(password_hash)
    try:
        if scheme == "argon2":
            return argon2.verify(password, password_hash)
        if scheme == "bcrypt":
            return bcrypt_sha256.verify(password[:MAX_PWD_LEN_BCRYPT_SAFE], password_hash)
        return False
    except (ValueError, TypeError):
        # Kaputter Hash: wie falsches Passwort behandeln
        return False


# =============================
# 🔑 Code-Hashing (Einmal-Codes, Magic-Token, Backup-Codes)
# =============================

def hash_token(token: str) -> str:
    """Einmal-Codes nur als HMAC-SHA256 (Schluessel: SECRET_KEY) speichern."""
    key = settings.SECRET_KEY.encode("utf-8")
    return hmac.new(key, token.strip().encode("utf-8"), hashlib.sha256).hexdigest()


def token_matches(token: str, token_hash: Optional[str]) -> bool:
    if not token or not token_hash:
        return False
    return hmac.compare_digest(hash_token(token), token_hash)


# =============================
# 🪙 JWT Service (Session-Token)
# =============================

ALGORITHM = "HS256"


class JWTService:
    def __init__(self, secret: str, algorithm: str = ALGORITHM, lifetime: timedelta = timedelta(days=7)):
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime

    def create_token(
        self,
        subject: str | int,
        expires_delta: timedelta,
        claims: Optional[dict[str, Any]] = None,
    ) -> str:
        """JWT erstellen (mit Ablaufzeit, Subject und optionalen Claims)."""
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int((now + expires_delta).timestamp()),
        }
        if claims:
            payload.update(claims)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any]:
        """JWT entschlüsseln und validieren."""
        return jwt.decode(token, self.secret, algorithms=[self.algorithm])

    def issue(self, user_id: int) -> str:
        """Session-Token mit fester Laufzeit ausstellen."""
        return self.create_token(user_id, self.lifetime)

    def verify(self, token: str) -> int:
        """Liefert die User-ID aus dem Token oder wirft Unauthorized."""
        if not token:
            raise Unauthorized("No token")
        try:
            payload = self.decode_token(token)
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token expired")
        except jwt.InvalidTokenError:
            raise Unauthorized("Invalid token")

        sub = str(payload.get("sub") or "")
        if not sub.isdigit():
            raise Unauthorized("Invalid token payload")
        return int(sub)


# Globale Instanz für die gesamte App
jwt_service = JWTService(settings.SECRET_KEY, lifetime=timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))
