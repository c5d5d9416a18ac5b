# portal/api/v1/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    email: str
    id: int
    login_time: datetime


class AdminOut(BaseModel):
    id: int
    email: str
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class AdminCreate(BaseModel):
    email: str
    password: str


class AdminStatusIn(BaseModel):
    is_active: bool


class AdminPasswordIn(BaseModel):
    new_password: str


class PaymentSettings(BaseModel):
    method: str
    account: str


class PricingSettings(BaseModel):
    monthly: str
    threeMonth: str
    sixMonth: str


class TransactionOut(BaseModel):
    id: int
    jb_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    mobile_number: Optional[str] = None
    gender: Optional[str] = None
    location: Optional[str] = None
    country: Optional[str] = None
    plan_id: Optional[str] = None
    amount: Decimal
    payment_method: Optional[str] = None
    payment_account: Optional[str] = None
    payment_status: str
    plan_started: Optional[datetime] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class TransactionPage(BaseModel):
    items: List[TransactionOut]
    next_cursor: Optional[str] = None


class TransactionStats(BaseModel):
    total: int
    success: int
    failed: int
    pending: int
    totalRevenue: float
    byMethod: Dict[str, int]
    byAccount: Dict[str, int]
    byPlan: Dict[str, int]


class SendOtpIn(BaseModel):
    email: str


class SendOtpOut(BaseModel):
    success: bool
    hash: Optional[str] = None


class VerifyOtpIn(BaseModel):
    email: str
    otp: str
    hash: Optional[str] = None


class VerifyOtpOut(BaseModel):
    success: bool
    verification_token: str


class CheckoutIn(BaseModel):
    plan_id: str
    full_name: str
    email: str
    country_code: str = "+1"
    mobile_number: str
    gender: str
    promo_code: str = ""
    agree_to_terms: bool = False
    # issued by /otp/verify; checkout answers with a field error when it is missing
    verification_token: Optional[str] = None


class CheckoutOut(BaseModel):
    plan_id: str
    amount: str
    method: str
    account: str
    country: str
    location: str


class OnboardingOptions(BaseModel):
    genders: List[str]
    work_authorizations: List[str]
    work_preferences: List[str]
    education: List[str]
    job_roles: List[str]
