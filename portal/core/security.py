# portal/core/security.py
from datetime import datetime, timedelta
from typing import Optional, Tuple
from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import BaseModel

from portal.core.config import settings

# pbkdf2_sha256 for new hashes. hex_sha256 matches the unsalted digests the
# admin_users table was seeded with; those verify once and get replaced.
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "hex_sha256"], deprecated="auto")

ALGORITHM = "HS256"
ADMIN_TOKEN_TYPE = "admin"
VERIFIED_EMAIL_TOKEN_TYPE = "email_verified"


class AdminSession(BaseModel):
    id: int
    email: str
    login_time: datetime


def hash_password(password: str) -> str:
    return pwd_context.hash(password or "")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password or "", hashed_password)
    except (ValueError, TypeError):
        # unknown hash format
        return False


def verify_and_update(plain_password: str, hashed_password: str) -> Tuple[bool, Optional[str]]:
    """
    Verify a password and return a replacement hash when the stored one uses a
    deprecated scheme.
    """
    try:
        return pwd_context.verify_and_update(plain_password or "", hashed_password)
    except (ValueError, TypeError):
        return False, None


def create_access_token(admin_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(admin_id),
        "email": email,
        "typ": ADMIN_TOKEN_TYPE,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[AdminSession]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("typ") != ADMIN_TOKEN_TYPE:
        return None
    try:
        return AdminSession(
            id=int(payload["sub"]),
            email=payload.get("email", ""),
            login_time=datetime.utcfromtimestamp(payload["iat"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def create_verification_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.VERIFICATION_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": email.strip().lower(), "typ": VERIFIED_EMAIL_TOKEN_TYPE, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def verification_token_matches(token: Optional[str], email: str) -> bool:
    """True when ``token`` proves that ``email`` passed OTP verification."""
    if not token:
        return False
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return False
    return (
        payload.get("typ") == VERIFIED_EMAIL_TOKEN_TYPE
        and payload.get("sub") == email.strip().lower()
    )
