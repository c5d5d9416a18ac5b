# portal/api/v1/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.api.v1.schemas import AdminOut, LoginIn, TokenOut
from portal.core.errors import AuthenticationError
from portal.core.security import AdminSession, create_access_token, decode_access_token
from portal.db.session import get_db
from portal.services import admin as admin_service

logger = logging.getLogger(__name__)

router = APIRouter()

security = HTTPBearer(auto_error=False)


@router.post("/admin/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Please enter both email and password")
    try:
        admin = admin_service.verify_admin_login(db, payload.email, payload.password)
    except AuthenticationError:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    except SQLAlchemyError:
        logger.exception("Error verifying admin login")
        raise HTTPException(status_code=500, detail="Login failed")

    token = create_access_token(admin.id, admin.email)
    session = decode_access_token(token)
    return TokenOut(access_token=token, email=admin.email, id=admin.id, login_time=session.login_time)


# Dependency guarding every admin route: token signature and expiry, then the
# account itself must still exist and be active.
def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> AdminSession:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Please login to access admin dashboard")
    session = decode_access_token(credentials.credentials)
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    if admin_service.get_active_admin(db, session.id) is None:
        raise HTTPException(status_code=401, detail="Admin account not found or disabled")
    return session


@router.get("/admin/me", response_model=AdminOut)
def me(session: AdminSession = Depends(get_current_admin), db: Session = Depends(get_db)):
    return admin_service.get_active_admin(db, session.id)
