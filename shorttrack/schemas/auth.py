# shorttrack/schemas/auth.py
from __future__ import annotations
from typing import Optional, Annotated
from pydantic import BaseModel, Field
from pydantic import StringConstraints

# Formatregeln (Name, E-Mail, Passwort, Telefon) prueft der Service,
# damit die Fehler dasselbe field-Tag tragen wie im Service.
TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]
CodeStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]


# ---------- Registrierung ----------
class EmailIn(BaseModel):
    email: TrimmedStr


class RegisterIn(BaseModel):
    name: TrimmedStr
    email: TrimmedStr
    password: str = Field(..., max_length=255)
    phone: Optional[TrimmedStr] = Field(default=None, description="E.164, z. B. +5511999998888")
    email_code: CodeStr


class PhoneCodeRequestIn(BaseModel):
    user_id: int
    phone: TrimmedStr


class ConfirmPhoneIn(BaseModel):
    user_id: int
    phone: TrimmedStr
    code: CodeStr


# ---------- Login ----------
class LoginIn(BaseModel):
    email: TrimmedStr
    password: str = Field(..., max_length=255)
    code: Optional[str] = Field(default=None, description="TOTP- oder Backup-Code")


# ---------- SMS-Login ----------
class OtpRequestIn(BaseModel):
    phone: TrimmedStr


class OtpVerifyIn(BaseModel):
    phone: TrimmedStr
    code: CodeStr


# ---------- Password-Reset ----------
class PasswordResetConfirmIn(BaseModel):
    email: TrimmedStr
    code: CodeStr
    password: str = Field(..., max_length=255)


# ---------- Magic-Link ----------
class MagicConsumeIn(BaseModel):
    token: CodeStr
    email: TrimmedStr


# ---------- TOTP ----------
class TotpEnableIn(BaseModel):
    code: CodeStr
