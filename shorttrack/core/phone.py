# shorttrack/core/phone.py
from __future__ import annotations

from typing import Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from shorttrack.core.errors import ValidationError


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """
    Liefert die Nummer im E.164-Format (+<Laendercode><Nummer>) oder None.
    Erwartet internationale Schreibweise mit fuehrendem "+".
    Geprueft wird die formale Laenge je Region (is_possible_number).
    """
    if not raw or not raw.strip():
        return None
    try:
        parsed = phonenumbers.parse(raw.strip(), None)
    except NumberParseException:
        return None
    if not phonenumbers.is_possible_number(parsed):
        return None
    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def require_phone(raw: Optional[str]) -> str:
    phone = normalize_phone(raw)
    if not phone:
        raise ValidationError("Invalid phone number", field="phone")
    return phone
