# portal/api/v1/admin.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from portal.api.v1.auth import get_current_admin
from portal.api.v1.errors import to_http
from portal.api.v1.schemas import (
    AdminCreate,
    AdminOut,
    AdminPasswordIn,
    AdminStatusIn,
    PaymentSettings,
    PricingSettings,
    TransactionOut,
    TransactionPage,
    TransactionStats,
)
from portal.core.errors import PortalError
from portal.db.session import get_db
from portal.services import admin as admin_service

router = APIRouter(prefix="/admin", dependencies=[Depends(get_current_admin)])


@router.get("/gateways")
def list_gateways():
    return {"items": admin_service.PAYMENT_COMBINATIONS}


@router.get("/settings/payment", response_model=PaymentSettings)
def get_payment_settings(db: Session = Depends(get_db)):
    return admin_service.get_payment_settings(db)


@router.put("/settings/payment")
def update_payment_settings(payload: PaymentSettings, db: Session = Depends(get_db)):
    try:
        return admin_service.update_payment_settings(db, payload.method, payload.account)
    except PortalError as exc:
        raise to_http(exc)


@router.get("/settings/pricing", response_model=PricingSettings)
def get_pricing_settings(db: Session = Depends(get_db)):
    return admin_service.get_pricing_settings(db)


@router.put("/settings/pricing")
def update_pricing_settings(payload: PricingSettings, db: Session = Depends(get_db)):
    try:
        return admin_service.update_pricing_settings(db, payload.model_dump())
    except PortalError as exc:
        raise to_http(exc)


@router.get("/transactions", response_model=TransactionPage)
def list_transactions(
    status: str = Query("all"),
    method: str = Query("all"),
    account: str = Query("all"),
    search: str = Query(""),
    cursor: Optional[str] = Query(None),
    limit: int = Query(admin_service.DEFAULT_PAGE_SIZE, ge=1, le=admin_service.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    filters = {"status": status, "method": method, "account": account, "search": search}
    try:
        return admin_service.get_transactions(db, filters, cursor=cursor, limit=limit)
    except PortalError as exc:
        raise to_http(exc)


@router.get("/transactions/stats", response_model=TransactionStats)
def transaction_stats(db: Session = Depends(get_db)):
    return admin_service.get_transaction_stats(db)


@router.get("/transactions/{jb_id}", response_model=TransactionOut)
def get_transaction(jb_id: str, db: Session = Depends(get_db)):
    try:
        return admin_service.get_transaction_by_id(db, jb_id)
    except PortalError as exc:
        raise to_http(exc)


@router.get("/users", response_model=List[AdminOut])
def list_admin_users(db: Session = Depends(get_db)):
    return admin_service.get_admin_users(db)


@router.post("/users", response_model=AdminOut, status_code=201)
def create_admin_user(payload: AdminCreate, db: Session = Depends(get_db)):
    try:
        return admin_service.create_admin_user(db, payload.email, payload.password)
    except PortalError as exc:
        raise to_http(exc)


@router.delete("/users/{admin_id}")
def delete_admin_user(admin_id: int, db: Session = Depends(get_db)):
    try:
        return admin_service.delete_admin_user(db, admin_id)
    except PortalError as exc:
        raise to_http(exc)


@router.patch("/users/{admin_id}/status")
def toggle_admin_status(admin_id: int, payload: AdminStatusIn, db: Session = Depends(get_db)):
    try:
        return admin_service.toggle_admin_status(db, admin_id, payload.is_active)
    except PortalError as exc:
        raise to_http(exc)


@router.put("/users/{admin_id}/password")
def update_admin_password(admin_id: int, payload: AdminPasswordIn, db: Session = Depends(get_db)):
    try:
        return admin_service.update_admin_password(db, admin_id, payload.new_password)
    except PortalError as exc:
        raise to_http(exc)
