# shorttrack/api/routes/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shorttrack.api.deps import get_current_user_api, get_delivery
from shorttrack.db.database import get_db
from shorttrack.models.user import User
from shorttrack.schemas.auth import (
    ConfirmPhoneIn,
    EmailIn,
    LoginIn,
    MagicConsumeIn,
    OtpRequestIn,
    OtpVerifyIn,
    PasswordResetConfirmIn,
    PhoneCodeRequestIn,
    RegisterIn,
    TotpEnableIn,
)
from shorttrack.services import (
    auth_service,
    magic_link_service,
    password_reset_service,
    sms_otp_service,
    totp_service,
)
from shorttrack.services.delivery import DeliveryGateway

router = APIRouter(tags=["Auth"])

# Fehler (AppError) rendert der Exception-Handler in main.py


# ============================================================
# Registrierung
# ============================================================

@router.post("/request-email-code")
def api_request_email_code(
    body: EmailIn,
    db: Session = Depends(get_db),
    delivery: DeliveryGateway = Depends(get_delivery),
):
    return auth_service.request_email_code(db, body.email, delivery=delivery)


@router.post("/register", status_code=201)
def api_register(
    body: RegisterIn,
    db: Session = Depends(get_db),
    delivery: DeliveryGateway = Depends(get_delivery),
):
    return auth_service.register(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        phone=body.phone,
        email_code=body.email_code,
        delivery=delivery,
    )


@router.post("/request-phone-code")
def api_request_phone_code(
    body: PhoneCodeRequestIn,
    db: Session = Depends(get_db),
    delivery: DeliveryGateway = Depends(get_delivery),
):
    return auth_service.request_phone_code(db, user_id=body.user_id, phone=body.phone, delivery=delivery)


@router.post("/confirm-phone")
def api_confirm_phone(body: ConfirmPhoneIn, db: Session = Depends(get_db)):
    return auth_service.confirm_phone(db, user_id=body.user_id, phone=body.phone, code=body.code)


# ============================================================
# Login
# ============================================================

@router.post("/login")
def api_login(body: LoginIn, db: Session = Depends(get_db)):
    return auth_service.login(db, email=body.email, password=body.password, code=body.code)


@router.get("/me")
def api_me(current_user: User = Depends(get_current_user_api)):
    return {"ok": True, "user": auth_service.user_projection(current_user)}


# ----------------------------
# SMS-Login
# ----------------------------

@router.post("/request-otp")
def api_request_otp(
    body: OtpRequestIn,
    db: Session = Depends(get_db),
    delivery: DeliveryGateway = Depends(get_delivery),
):
    return sms_otp_service.request_otp(db, body.phone, delivery=delivery)


@router.post("/verify-otp")
def api_verify_otp(body: OtpVerifyIn, db: Session = Depends(get_db)):
    return sms_otp_service.verify_otp(db, phone=body.phone, code=body.code)


# ----------------------------
# Passwort-Reset
# ----------------------------

@router.post("/request-password-reset")
def api_request_password_reset(
    body: EmailIn,
    db: Session = Depends(get_db),
    delivery: DeliveryGateway = Depends(get_delivery),
):
    return password_reset_service.request_password_reset(db, body.email, delivery=delivery)


@router.post("/confirm-password-reset")
def api_confirm_password_reset(body: PasswordResetConfirmIn, db: Session = Depends(get_db)):
    return password_reset_service.confirm_password_reset(
        db, email=body.email, code=body.code, new_password=body.password
    )


# ----------------------------
# Magic-Link
# ----------------------------

@router.post("/request-magic-link")
def api_request_magic_link(
    body: EmailIn,
    db: Session = Depends(get_db),
    delivery: DeliveryGateway = Depends(get_delivery),
):
    return magic_link_service.request_magic_link(db, body.email, delivery=delivery)


@router.post("/consume-magic-link")
def api_consume_magic_link(body: MagicConsumeIn, db: Session = Depends(get_db)):
    return magic_link_service.consume_magic_link(db, token=body.token, email=body.email)


# ============================================================
# TOTP (eingeloggt)
# ============================================================

@router.post("/setup-totp")
def api_setup_totp(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    return totp_service.setup_totp(db, current_user)


@router.post("/enable-totp")
def api_enable_totp(
    body: TotpEnableIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_api),
):
    return totp_service.enable_totp(db, current_user, body.code)
