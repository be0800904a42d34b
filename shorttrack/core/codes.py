# shorttrack/core/codes.py
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import List

# Magic-Token / Slugs: Kleinbuchstaben + Ziffern
TOKEN_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
# Backup-Codes: ohne verwechselbare Zeichen (0/O, 1/I/L)
BACKUP_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"

MAGIC_TOKEN_LENGTH = 32
BACKUP_CODE_LENGTH = 10
BACKUP_CODE_COUNT = 6


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def in_minutes(minutes: int) -> datetime:
    return now_utc() + timedelta(minutes=minutes)


def random_string(length: int, alphabet: str = TOKEN_ALPHABET) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_numeric_code() -> str:
    """6 Ziffern, ohne fuehrende Null (100000..999999)."""
    return str(100_000 + secrets.randbelow(900_000))


def generate_magic_token() -> str:
    return random_string(MAGIC_TOKEN_LENGTH)


def generate_backup_codes(count: int = BACKUP_CODE_COUNT) -> List[str]:
    return [random_string(BACKUP_CODE_LENGTH, BACKUP_ALPHABET) for _ in range(count)]


def normalize_backup_code(code: str) -> str:
    return (code or "").strip().replace("-", "").replace(" ", "").upper()
