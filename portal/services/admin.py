# portal/services/admin.py
"""
Admin dashboard operations over the transactional store.

Covers the active payment gateway, plan pricing, transaction listing and
statistics, and admin account management. Each function is one
request/response unit of work on the given session; writes commit before
returning.
"""

import base64
import datetime
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationFailed
from portal.core.security import hash_password, verify_and_update
from portal.db.models import AdminSetting, AdminUser, Transaction

logger = logging.getLogger(__name__)

PAYMENT_COMBINATIONS = [
    {"method": "paypal", "account": "dubai", "label": "PayPal Dubai", "color": "blue"},
    {"method": "paypal", "account": "india", "label": "PayPal India", "color": "blue"},
    {"method": "stripe", "account": "dubai", "label": "Stripe Dubai", "color": "purple"},
    {"method": "stripe", "account": "india", "label": "Stripe India", "color": "purple"},
]

DEFAULT_PAYMENT_SETTINGS = {"method": "paypal", "account": "dubai"}

# pricing field -> admin_settings key
PRICE_KEYS = {
    "monthly": "price_monthly",
    "threeMonth": "price_3_months",
    "sixMonth": "price_6_months",
}
DEFAULT_PRICES = {"monthly": "45", "threeMonth": "119.99", "sixMonth": "224"}

# plan_id -> pricing field
PLAN_PRICE_FIELDS = {"monthly": "monthly", "3-months": "threeMonth", "6-months": "sixMonth"}

TRANSACTION_STATUSES = ("success", "failed", "pending")
PAYMENT_METHODS = ("paypal", "stripe")
PAYMENT_ACCOUNTS = ("dubai", "india")
PLAN_IDS = ("monthly", "3-months", "6-months")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200
MIN_PASSWORD_LENGTH = 6

# stands in for a missing created_at in ordering and cursors
UNDATED = datetime.datetime(1970, 1, 1)


def _now() -> datetime.datetime:
    return datetime.datetime.utcnow()


def _read_settings(db: Session, keys: List[str]) -> Dict[str, Optional[str]]:
    rows = db.execute(select(AdminSetting).where(AdminSetting.setting_key.in_(keys))).scalars().all()
    return {row.setting_key: row.setting_value for row in rows}


def _write_settings(db: Session, values: Dict[str, str]) -> None:
    """Upsert every key in one transaction."""
    now = _now()
    try:
        for key, value in values.items():
            db.merge(AdminSetting(setting_key=key, setting_value=value, updated_at=now))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


# -------------------------
# Payment gateway
# -------------------------
def get_payment_settings(db: Session) -> Dict[str, str]:
    try:
        found = _read_settings(db, ["payment_method", "payment_account"])
    except SQLAlchemyError:
        logger.exception("Error fetching payment settings, using defaults")
        return dict(DEFAULT_PAYMENT_SETTINGS)
    return {
        "method": found.get("payment_method") or DEFAULT_PAYMENT_SETTINGS["method"],
        "account": found.get("payment_account") or DEFAULT_PAYMENT_SETTINGS["account"],
    }


def update_payment_settings(db: Session, method: str, account: str) -> Dict[str, Any]:
    method, account = (method or "").lower(), (account or "").lower()
    if not any(c["method"] == method and c["account"] == account for c in PAYMENT_COMBINATIONS):
        raise ValidationFailed({"gateway": f"Unknown payment gateway {method}/{account}"})

    _write_settings(db, {"payment_method": method, "payment_account": account})
    logger.info("Payment gateway switched to %s %s", method, account)
    return {"success": True, "method": method, "account": account}


# -------------------------
# Pricing
# -------------------------
def get_pricing_settings(db: Session) -> Dict[str, str]:
    try:
        found = _read_settings(db, list(PRICE_KEYS.values()))
    except SQLAlchemyError:
        logger.exception("Error fetching pricing settings, using defaults")
        return dict(DEFAULT_PRICES)
    return {field: found.get(key) or DEFAULT_PRICES[field] for field, key in PRICE_KEYS.items()}


def update_pricing_settings(db: Session, prices: Dict[str, str]) -> Dict[str, Any]:
    errors = {}
    values = {}
    for field, key in PRICE_KEYS.items():
        raw = str(prices.get(field, "") or "").strip()
        try:
            price = float(raw)
            if not math.isfinite(price) or price < 0:
                raise ValueError(raw)
        except ValueError:
            errors[field] = "Price must be a non-negative number"
            continue
        values[key] = raw
    if errors:
        raise ValidationFailed(errors)

    _write_settings(db, values)
    logger.info("Pricing updated: %s", values)
    return {"success": True}


def get_plan_price(db: Session, plan_id: str) -> str:
    field = PLAN_PRICE_FIELDS.get(plan_id)
    if field is None:
        raise ValidationFailed({"plan_id": f"Unknown plan {plan_id}"})
    return get_pricing_settings(db)[field]


# -------------------------
# Transactions
# -------------------------
def _created_sort_key():
    # rows without created_at sort as the oldest
    return func.coalesce(Transaction.created_at, UNDATED)


def encode_cursor(row: Transaction) -> str:
    raw = f"{(row.created_at or UNDATED).isoformat()}|{row.id}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> Tuple[datetime.datetime, int]:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
        ts, row_id = raw.split("|", 1)
        return datetime.datetime.fromisoformat(ts), int(row_id)
    except (ValueError, UnicodeDecodeError):
        raise ValidationFailed({"cursor": "Invalid cursor"})


def _is_set(value: Optional[str]) -> bool:
    return bool(value) and value != "all"


def get_transactions(db: Session, filters: Optional[Dict[str, Any]] = None,
                     cursor: Optional[str] = None, limit: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
    """
    Newest-first page of transactions.

    filters: status / method / account ("all" or empty means no filter) and
    search, a case-insensitive substring over jb_id, email and full_name.
    Returns ``{"items": [...], "next_cursor": str | None}``.
    """
    filters = filters or {}
    limit = max(1, min(int(limit), MAX_PAGE_SIZE))

    query = select(Transaction)
    if _is_set(filters.get("status")):
        query = query.where(Transaction.payment_status == filters["status"])
    if _is_set(filters.get("method")):
        query = query.where(Transaction.payment_method == filters["method"])
    if _is_set(filters.get("account")):
        query = query.where(Transaction.payment_account == filters["account"])
    search = (filters.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Transaction.jb_id.ilike(pattern),
            Transaction.email.ilike(pattern),
            Transaction.full_name.ilike(pattern),
        ))
    if cursor:
        created_at, row_id = decode_cursor(cursor)
        sort_key = _created_sort_key()
        query = query.where(or_(
            sort_key < created_at,
            and_(sort_key == created_at, Transaction.id < row_id),
        ))

    query = query.order_by(_created_sort_key().desc(), Transaction.id.desc()).limit(limit + 1)
    rows = db.execute(query).scalars().all()

    next_cursor = encode_cursor(rows[limit - 1]) if len(rows) > limit else None
    return {"items": rows[:limit], "next_cursor": next_cursor}


def _success_counts(db: Session, column, keys) -> Dict[str, int]:
    counts = {key: 0 for key in keys}
    rows = db.execute(
        select(column, func.count())
        .where(Transaction.payment_status == "success")
        .group_by(column)
    ).all()
    for value, count in rows:
        if value is not None:
            counts[value] = count
    return counts


def get_transaction_stats(db: Session) -> Dict[str, Any]:
    """Aggregate counts and revenue. Breakdowns only count successful payments."""
    by_status = dict(
        db.execute(select(Transaction.payment_status, func.count()).group_by(Transaction.payment_status)).all()
    )
    revenue = db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(Transaction.payment_status == "success")
    ).scalar_one()

    return {
        "total": sum(by_status.values()),
        "success": by_status.get("success", 0),
        "failed": by_status.get("failed", 0),
        "pending": by_status.get("pending", 0),
        "totalRevenue": float(revenue or 0),
        "byMethod": _success_counts(db, Transaction.payment_method, PAYMENT_METHODS),
        "byAccount": _success_counts(db, Transaction.payment_account, PAYMENT_ACCOUNTS),
        "byPlan": _success_counts(db, Transaction.plan_id, PLAN_IDS),
    }


def get_transaction_by_id(db: Session, jb_id: str) -> Transaction:
    row = db.execute(select(Transaction).where(Transaction.jb_id == jb_id)).scalar_one_or_none()
    if row is None:
        raise NotFoundError(f"No client found with JB ID {jb_id}")
    return row


# -------------------------
# Admin users
# -------------------------
def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def verify_admin_login(db: Session, email: str, password: str) -> AdminUser:
    """
    Check credentials and stamp last_login. Every failure, unknown email or
    wrong password or disabled account, raises the same AuthenticationError.
    """
    normalized = normalize_email(email)
    admin = db.execute(
        select(AdminUser).where(func.lower(AdminUser.email) == normalized, AdminUser.is_active.is_(True))
    ).scalar_one_or_none()

    if admin is None:
        raise AuthenticationError("Invalid credentials")
    valid, new_hash = verify_and_update(password, admin.password_hash)
    if not valid:
        raise AuthenticationError("Invalid credentials")

    if new_hash:
        logger.info("Upgrading password hash for admin %s", admin.id)
        admin.password_hash = new_hash
        admin.updated_at = _now()
    admin.last_login = _now()
    db.commit()
    db.refresh(admin)
    return admin


def get_active_admin(db: Session, admin_id: int) -> Optional[AdminUser]:
    admin = db.get(AdminUser, admin_id)
    if admin is None or not admin.is_active:
        return None
    return admin


def get_admin_users(db: Session) -> List[AdminUser]:
    return db.execute(select(AdminUser).order_by(AdminUser.created_at.desc(), AdminUser.id.desc())).scalars().all()


def _check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed({"password": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"})


def create_admin_user(db: Session, email: str, password: str) -> AdminUser:
    normalized = normalize_email(email)
    if not normalized or not password:
        raise ValidationFailed({"email": "Email and password are required"})
    _check_password(password)

    admin = AdminUser(
        email=normalized,
        password_hash=hash_password(password),
        is_active=True,
        created_at=_now(),
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Admin user with this email already exists")
    db.refresh(admin)
    logger.info("Created admin user %s", admin.id)
    return admin


def _get_admin(db: Session, admin_id: int) -> AdminUser:
    admin = db.get(AdminUser, admin_id)
    if admin is None:
        raise NotFoundError("Admin user not found")
    return admin


def delete_admin_user(db: Session, admin_id: int) -> Dict[str, Any]:
    db.delete(_get_admin(db, admin_id))
    db.commit()
    logger.info("Deleted admin user %s", admin_id)
    return {"success": True}


def toggle_admin_status(db: Session, admin_id: int, is_active: bool) -> Dict[str, Any]:
    admin = _get_admin(db, admin_id)
    admin.is_active = bool(is_active)
    db.commit()
    return {"success": True}


def update_admin_password(db: Session, admin_id: int, new_password: str) -> Dict[str, Any]:
    _check_password(new_password)
    admin = _get_admin(db, admin_id)
    admin.password_hash = hash_password(new_password)
    admin.updated_at = _now()
    db.commit()
    return {"success": True}
