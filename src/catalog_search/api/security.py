"""
Admin Access and Client Identification

Security
--------
Admin endpoints are protected by ``verify_admin`` which requires:
- ``x-admin-key`` header OR
- ``key`` query parameter

Search endpoints identify clients by IP for rate limiting; the IP is read
from the usual proxy headers.
"""

from typing import Optional

from fastapi import HTTPException, Query, Header, Request, status

from ..config import settings


# Checked in order; the first present header wins.
_CLIENT_IP_HEADERS = (
    "x-real-ip",
    "x-vercel-forwarded-for",
    "cf-connecting-ip",
)

FALLBACK_CLIENT_IP = "127.0.0.1"


async def verify_admin(
    x_admin_key: Optional[str] = Header(None, alias="x-admin-key"),
    key: Optional[str] = Query(None)
):
    """
    Verify the request is from an admin using the configured API key.
    Checks header first, then query param.
    """
    expected_key = settings.admin_api_key.get_secret_value() if settings.admin_api_key else None

    if not expected_key:
        # If no key is configured, disable admin access securely
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access is not configured (ADMIN_API_KEY missing)"
        )

    provided_key = x_admin_key or key

    if not provided_key or provided_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing admin API key"
        )


def get_client_ip(request: Request) -> str:
    """
    Best-effort client IP behind proxies and load balancers.

    ``x-forwarded-for`` may hold "client, proxy1, proxy2"; the first hop is
    the client.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    for header in _CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.strip()

    return FALLBACK_CLIENT_IP


def get_user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or "unknown"
