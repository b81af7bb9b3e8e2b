"""
Dependency wiring for the FastAPI app.

The settings object and the document store are created once in
``create_app`` and stored on ``app.state``; handlers receive them here.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from portfolio_api.config import Settings
from portfolio_api.db import DocumentStore
from portfolio_api.errors import Forbidden, ValidationError
from portfolio_api.security import decode_token, parse_bearer


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Resolve the bearer token to ``{"id", "role"}``."""
    return decode_token(parse_bearer(authorization), settings)


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user["role"] != "admin":
        raise Forbidden("Admin access required")
    return user


def get_expected_version(
    if_match: Optional[str] = Header(default=None),
) -> Optional[int]:
    """
    Optional ``If-Match`` header carrying the project version the caller read.
    Writes against a newer version are rejected with 409.
    """
    if if_match is None:
        return None
    value = if_match.strip().strip('"')
    if value.startswith("W/"):
        value = value[2:].strip('"')
    try:
        return int(value)
    except ValueError:
        raise ValidationError("If-Match must be a document version number")


def get_device_info(
    request: Request,
    x_device_id: Optional[str] = Header(default=None),
    x_forwarded_for: Optional[str] = Header(default=None),
    user_agent: Optional[str] = Header(default=None),
) -> dict:
    if x_forwarded_for:
        ip = x_forwarded_for.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else None
    return {"device_id": x_device_id or None, "ip": ip, "user_agent": user_agent}
