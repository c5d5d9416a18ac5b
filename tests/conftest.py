# tests/conftest.py
import datetime
from decimal import Decimal
import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")
os.environ.setdefault("ONBOARDING_API_URL", "https://onboard.test/api/direct-onboard")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal.core.security import create_access_token, hash_password
from portal.db.base import Base
from portal.db.models import AdminUser, Transaction
from portal.db.session import get_db
from portal.main import app


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def override_db(session_factory):
    """Route the app's get_db dependency to the in-memory database."""
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def admin_user(db):
    admin = AdminUser(email="admin@applywizz.com", password_hash=hash_password("Secret@2026"), is_active=True)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def auth_headers(admin_user):
    token = create_access_token(admin_user.id, admin_user.email)
    return {"Authorization": f"Bearer {token}"}


def make_transaction(jb_id, status="success", amount="45", method="paypal", account="dubai",
                     plan_id="monthly", created_at=None, **extra):
    return Transaction(
        jb_id=jb_id,
        full_name=extra.pop("full_name", f"Client {jb_id}"),
        email=extra.pop("email", f"{jb_id.lower()}@example.com"),
        payment_status=status,
        amount=Decimal(str(amount)),
        payment_method=method,
        payment_account=account,
        plan_id=plan_id,
        created_at=created_at or datetime.datetime(2026, 1, 1),
        **extra,
    )
