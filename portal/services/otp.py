# portal/services/otp.py
"""
Email OTP through the hosted backend's edge functions.

Env configuration:
- SUPABASE_URL: project URL, functions live under /functions/v1/<name>
- SUPABASE_ANON_KEY: sent as both the apikey header and the bearer token
- HTTP_TIMEOUT_SEC: request timeout

No retries: a failed call is reported to the caller as RemoteCallError.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from portal.core.config import settings
from portal.core.errors import ConfigurationError, RemoteCallError

logger = logging.getLogger(__name__)

SEND_OTP_FUNCTION = "send-otp"
VERIFY_OTP_FUNCTION = "verify-otp"


def _function_url(name: str) -> str:
    if not settings.SUPABASE_URL or not settings.SUPABASE_ANON_KEY:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY must be set to call remote functions")
    return f"{settings.SUPABASE_URL.rstrip('/')}/functions/v1/{name}"


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or f"Function returned {resp.status_code}"
    if isinstance(body, dict):
        return body.get("error") or body.get("message") or f"Function returned {resp.status_code}"
    return f"Function returned {resp.status_code}"


async def invoke_function(name: str, body: Dict[str, Any],
                          client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    """
    POST ``body`` as JSON to the named function and return its JSON result.
    """
    url = _function_url(name)
    headers = {
        "Authorization": f"Bearer {settings.SUPABASE_ANON_KEY}",
        "apikey": settings.SUPABASE_ANON_KEY,
        "Content-Type": "application/json",
    }

    async def _post(c: httpx.AsyncClient) -> httpx.Response:
        return await c.post(url, json=body, headers=headers, timeout=settings.HTTP_TIMEOUT_SEC)

    try:
        if client is not None:
            resp = await _post(client)
        else:
            async with httpx.AsyncClient() as c:
                resp = await _post(c)
    except httpx.HTTPError as exc:
        logger.error("%s call failed: %r", name, exc)
        raise RemoteCallError(f"Could not reach {name}") from exc

    if resp.status_code >= 400:
        message = _error_message(resp)
        logger.error("%s returned %s: %s", name, resp.status_code, message)
        raise RemoteCallError(message, status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError as exc:
        raise RemoteCallError(f"{name} returned a non-JSON response") from exc


async def send_otp(email: str, client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    """Returns ``{"success": True, "hash": ...}`` on success."""
    return await invoke_function(SEND_OTP_FUNCTION, {"email": email}, client=client)


async def verify_otp(email: str, otp: str, hash: Optional[str],
                     client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    return await invoke_function(VERIFY_OTP_FUNCTION, {"email": email, "otp": otp, "hash": hash}, client=client)
