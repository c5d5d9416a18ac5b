# tests/test_checkout_api.py
import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock

from portal.core.errors import RemoteCallError
from portal.core.security import create_verification_token
from portal.main import app
from portal.services import admin as admin_service


def _checkout_payload(**overrides):
    payload = {
        "plan_id": "3-months",
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "country_code": "+91",
        "mobile_number": "9876543210",
        "gender": "Female",
        "promo_code": "",
        "agree_to_terms": True,
        "verification_token": create_verification_token("jane@example.com"),
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_send_otp_invalid_email_makes_no_call(monkeypatch):
    fake_send = AsyncMock()
    monkeypatch.setattr("portal.api.v1.checkout.send_otp", fake_send)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.post("/api/v1/otp/send", json={"email": "not-an-email"})
    assert r.status_code == 422
    assert r.json()["detail"]["errors"] == {"email": "Please enter a valid email first"}
    fake_send.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_and_verify_issue_token(monkeypatch):
    monkeypatch.setattr("portal.api.v1.checkout.send_otp", AsyncMock(return_value={"success": True, "hash": "h1"}))
    monkeypatch.setattr("portal.api.v1.checkout.verify_otp", AsyncMock(return_value={"success": True}))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.post("/api/v1/otp/send", json={"email": "jane@example.com"})
        assert r.json() == {"success": True, "hash": "h1"}

        r2 = await ac.post("/api/v1/otp/verify", json={"email": "jane@example.com", "otp": "123456", "hash": "h1"})
        assert r2.status_code == 200
        assert r2.json()["verification_token"]

        r3 = await ac.post("/api/v1/otp/verify", json={"email": "jane@example.com", "otp": "123", "hash": "h1"})
        assert r3.status_code == 422


@pytest.mark.asyncio
async def test_verify_failure(monkeypatch):
    monkeypatch.setattr("portal.api.v1.checkout.verify_otp",
                        AsyncMock(side_effect=RemoteCallError("expired", status_code=400)))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.post("/api/v1/otp/verify", json={"email": "jane@example.com", "otp": "123456", "hash": "h1"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid or expired OTP"


@pytest.mark.asyncio
async def test_checkout_returns_active_gateway_and_price(override_db, db):
    admin_service.update_payment_settings(db, "stripe", "india")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.post("/api/v1/checkout", json=_checkout_payload())
    assert r.status_code == 200
    assert r.json() == {
        "plan_id": "3-months",
        "amount": "119.99",
        "method": "stripe",
        "account": "india",
        "country": "India",
        "location": "India",
    }


@pytest.mark.asyncio
async def test_checkout_requires_verification_for_same_email(override_db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        other = create_verification_token("someone@example.com")
        r = await ac.post("/api/v1/checkout", json=_checkout_payload(verification_token=other))
        assert r.status_code == 422
        assert r.json()["detail"]["errors"] == {"email": "Please verify your email address via OTP"}

        r2 = await ac.post("/api/v1/checkout", json=_checkout_payload(mobile_number="12", agree_to_terms=False))
        assert r2.status_code == 422
        assert set(r2.json()["detail"]["errors"]) == {"mobile_number", "agree_to_terms"}

        r3 = await ac.post("/api/v1/checkout", json=_checkout_payload(plan_id="yearly"))
        assert r3.status_code == 422

        missing = _checkout_payload()
        del missing["verification_token"]
        r4 = await ac.post("/api/v1/checkout", json=missing)
        assert r4.status_code == 422
        assert r4.json()["detail"]["errors"] == {"email": "Please verify your email address via OTP"}
