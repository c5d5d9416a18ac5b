# portal/services/checkout.py
"""
Checkout form: field validation plus the email OTP gate.

``CheckoutForm`` keeps the form values and OTP progress for one checkout and
refuses to submit until every field is valid and the email has been verified.
``validate_checkout`` holds the field rules so the HTTP endpoint applies the
same checks as the form.
"""

import logging
import re
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel

from portal.services import otp as otp_service

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[0-9]{7,15}$")
OTP_LENGTH = 6
MIN_NAME_LENGTH = 3

COUNTRY_CODES = [
    {"code": "+971", "country": "UAE", "location": "Dubai", "flag": "🇦🇪"},
    {"code": "+91", "country": "India", "location": "India", "flag": "🇮🇳"},
    {"code": "+1", "country": "USA", "location": "USA", "flag": "🇺🇸"},
    {"code": "+44", "country": "UK", "location": "London", "flag": "🇬🇧"},
    {"code": "+61", "country": "Australia", "location": "Australia", "flag": "🇦🇺"},
    {"code": "+65", "country": "Singapore", "location": "Singapore", "flag": "🇸🇬"},
    {"code": "+81", "country": "Japan", "location": "Tokyo", "flag": "🇯🇵"},
    {"code": "+86", "country": "China", "location": "Beijing", "flag": "🇨🇳"},
]

SendOtp = Callable[[str], Awaitable[Dict[str, Any]]]
VerifyOtp = Callable[[str, str, Optional[str]], Awaitable[Dict[str, Any]]]


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_RE.fullmatch(email) is not None


def country_for_code(code: str) -> Optional[Dict[str, str]]:
    return next((c for c in COUNTRY_CODES if c["code"] == code), None)


class CheckoutData(BaseModel):
    full_name: str = ""
    email: str = ""
    country_code: str = "+1"
    mobile_number: str = ""
    promo_code: str = ""
    gender: str = ""
    location: str = "US"
    country: str = "US"
    agree_to_terms: bool = False


class OtpState(BaseModel):
    sent: bool = False
    verified: bool = False
    hash: Optional[str] = None
    value: str = ""
    sending: bool = False
    verifying: bool = False
    error: Optional[str] = None


def validate_checkout(data: CheckoutData) -> Dict[str, str]:
    """Field -> message for every failing field; empty when the form is valid."""
    errors: Dict[str, str] = {}

    name = data.full_name.strip()
    if not name:
        errors["full_name"] = "Full name is required"
    elif len(name) < MIN_NAME_LENGTH:
        errors["full_name"] = f"Full name must be at least {MIN_NAME_LENGTH} characters"

    if not data.email.strip():
        errors["email"] = "Email is required"
    elif not is_valid_email(data.email):
        errors["email"] = "Please enter a valid email address"

    if not data.gender:
        errors["gender"] = "Gender is required"

    if not data.mobile_number.strip():
        errors["mobile_number"] = "Mobile number is required"
    elif not PHONE_RE.fullmatch(data.mobile_number):
        errors["mobile_number"] = "Please enter a valid mobile number (7-15 digits)"

    if not data.agree_to_terms:
        errors["agree_to_terms"] = "You must accept the terms and conditions"

    return errors


class CheckoutForm:
    def __init__(self, send_otp: SendOtp = otp_service.send_otp,
                 verify_otp: VerifyOtp = otp_service.verify_otp):
        self.data = CheckoutData()
        self.otp = OtpState()
        self.errors: Dict[str, str] = {}
        self.is_submitting = False
        self._send_otp = send_otp
        self._verify_otp = verify_otp

    def set_field(self, name: str, value: Any) -> None:
        if name not in CheckoutData.model_fields:
            raise KeyError(name)
        setattr(self.data, name, value)

        if name == "country_code":
            match = country_for_code(value)
            if match:
                self.data.country = match["country"]
                self.data.location = match["location"]

        if name == "email":
            # a code sent to the old address proves nothing about the new one
            self.otp = self.otp.model_copy(update={
                "sent": False, "verified": False, "hash": None, "value": "", "error": None,
            })

        if self.errors.get(name):
            self.errors[name] = ""

    def set_otp_value(self, value: str) -> None:
        self.otp.value = re.sub(r"[^0-9]", "", value or "")[:OTP_LENGTH]

    async def send_code(self) -> bool:
        email = self.data.email
        if not is_valid_email(email):
            self.errors["email"] = "Please enter a valid email first"
            return False

        self.otp.sending, self.otp.error = True, None
        try:
            result = await self._send_otp(email)
            if not result.get("success"):
                raise RuntimeError(result.get("error") or "Failed to send OTP")
        except Exception as exc:
            logger.warning("Sending OTP failed: %s", exc)
            self.otp.sending = False
            self.otp.error = str(exc) or "Failed to send OTP. Please try again."
            return False

        self.otp.sent, self.otp.hash, self.otp.sending = True, result.get("hash"), False
        self.errors["email"] = ""
        return True

    async def verify_code(self) -> bool:
        if len(self.otp.value) < OTP_LENGTH:
            return False

        self.otp.verifying, self.otp.error = True, None
        try:
            result = await self._verify_otp(self.data.email, self.otp.value, self.otp.hash)
            if not result.get("success"):
                raise RuntimeError(result.get("error") or "Invalid OTP")
        except Exception as exc:
            logger.info("OTP verification failed: %s", exc)
            self.otp.verifying = False
            self.otp.error = "Invalid or expired OTP"
            return False

        self.otp.verified, self.otp.verifying = True, False
        return True

    def validate(self) -> bool:
        self.errors = validate_checkout(self.data)
        return not self.errors

    async def submit(self, on_submit: Callable[[CheckoutData], Awaitable[Any]]) -> bool:
        if not self.validate():
            return False
        if not self.otp.verified:
            self.errors["email"] = "Please verify your email address via OTP"
            return False

        self.is_submitting = True
        try:
            await on_submit(self.data)
        except Exception:
            logger.exception("Checkout submission failed")
            self.errors = {"submit": "An error occurred. Please try again."}
            return False
        finally:
            self.is_submitting = False
        return True
