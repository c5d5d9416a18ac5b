# portal/api/v1/checkout.py
"""
Payment form endpoints.

- POST /otp/send    -> proxies send-otp, returns the verification handle
- POST /otp/verify  -> proxies verify-otp, returns a short-lived token proving
                       the email was verified
- POST /checkout    -> validates the form, checks that token, returns the
                       active gateway and the plan's current price
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from portal.api.v1.errors import to_http
from portal.api.v1.schemas import CheckoutIn, CheckoutOut, SendOtpIn, SendOtpOut, VerifyOtpIn, VerifyOtpOut
from portal.core.errors import PortalError, ValidationFailed
from portal.core.security import create_verification_token, verification_token_matches
from portal.db.session import get_db
from portal.services import admin as admin_service
from portal.services.checkout import OTP_LENGTH, CheckoutData, country_for_code, is_valid_email, validate_checkout
from portal.services.otp import send_otp, verify_otp

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/otp/send", response_model=SendOtpOut)
async def otp_send(payload: SendOtpIn):
    if not is_valid_email(payload.email):
        raise to_http(ValidationFailed({"email": "Please enter a valid email first"}))
    try:
        result = await send_otp(payload.email)
    except PortalError as exc:
        raise to_http(exc)
    if not result.get("success"):
        raise HTTPException(status_code=502, detail=result.get("error") or "Failed to send OTP")
    return SendOtpOut(success=True, hash=result.get("hash"))


@router.post("/otp/verify", response_model=VerifyOtpOut)
async def otp_verify(payload: VerifyOtpIn):
    if not payload.otp.isdigit() or len(payload.otp) != OTP_LENGTH:
        raise to_http(ValidationFailed({"otp": f"Enter the {OTP_LENGTH}-digit code"}))
    try:
        result = await verify_otp(payload.email, payload.otp, payload.hash)
    except PortalError as exc:
        logger.info("verify-otp rejected for %s: %s", payload.email, exc)
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")
    if not result.get("success"):
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")
    return VerifyOtpOut(success=True, verification_token=create_verification_token(payload.email))


@router.post("/checkout", response_model=CheckoutOut)
def checkout(payload: CheckoutIn, db: Session = Depends(get_db)):
    country = country_for_code(payload.country_code) or {"country": "US", "location": "US"}
    data = CheckoutData(
        **payload.model_dump(exclude={"plan_id", "verification_token"}),
        country=country["country"],
        location=country["location"],
    )
    errors = validate_checkout(data)
    if errors:
        raise to_http(ValidationFailed(errors))
    if not verification_token_matches(payload.verification_token, data.email):
        raise to_http(ValidationFailed({"email": "Please verify your email address via OTP"}))

    try:
        amount = admin_service.get_plan_price(db, payload.plan_id)
    except PortalError as exc:
        raise to_http(exc)
    gateway = admin_service.get_payment_settings(db)
    logger.info("Checkout for plan=%s via %s/%s", payload.plan_id, gateway["method"], gateway["account"])
    return CheckoutOut(
        plan_id=payload.plan_id,
        amount=amount,
        method=gateway["method"],
        account=gateway["account"],
        country=data.country,
        location=data.location,
    )
