# portal/db/models.py
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean
from .base import Base
import datetime


class Transaction(Base):
    """Job-board payment. Rows are written by the payment webhook, read here."""
    __tablename__ = "jobboard_transactions"
    id = Column(Integer, primary_key=True, index=True)
    jb_id = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    email = Column(String, index=True, nullable=True)
    mobile_number = Column(String, nullable=True)
    gender = Column(String, nullable=True)
    location = Column(String, nullable=True)
    country = Column(String, nullable=True)
    plan_id = Column(String, nullable=True)  # monthly / 3-months / 6-months
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    payment_method = Column(String, nullable=True)  # paypal / stripe
    payment_account = Column(String, nullable=True)  # dubai / india
    payment_status = Column(String, index=True, nullable=False, default="pending")
    plan_started = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow, index=True)


class AdminSetting(Base):
    __tablename__ = "admin_settings"
    setting_key = Column(String, primary_key=True)
    setting_value = Column(String, nullable=True)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow)


class AdminUser(Base):
    __tablename__ = "admin_users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)
    last_login = Column(DateTime, nullable=True)
