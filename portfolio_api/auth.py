"""
Account operations: signup, login and profile management.
"""

from __future__ import annotations

import logging

from portfolio_api.config import Settings
from portfolio_api.db import USERS, DocumentStore
from portfolio_api.errors import (
    DuplicateEmail,
    DuplicateKeyError,
    Forbidden,
    InvalidCredentials,
    NotFound,
    ValidationError,
)
from portfolio_api.schemas import AdminSignupRequest, ProfileUpdate, SignupRequest
from portfolio_api.security import create_token, hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

PROFILE_DEFAULTS = {
    "contact": "",
    "phone": "",
    "company": "",
    "country": "",
    "city": "",
    "project_experience": "",
    "contact_method": "email",
    "budget_preference": "",
}


def public_user(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "password_hash"}


def _token_user(user: dict) -> dict:
    return {
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "role": user["role"],
    }


def _create_user(
    store: DocumentStore, payload: SignupRequest, role: str
) -> dict:
    name = payload.name.strip()
    email = str(payload.email).strip().lower()
    if not name or not payload.password:
        raise ValidationError("All fields are required")
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if store.find_one(USERS, {"email": email}):
        raise DuplicateEmail()

    doc = {
        **PROFILE_DEFAULTS,
        "name": name,
        "email": email,
        "password_hash": hash_password(payload.password),
        "contact": payload.contact,
        "role": role,
    }
    try:
        return store.insert(USERS, doc)
    except DuplicateKeyError:
        raise DuplicateEmail()


def signup(store: DocumentStore, payload: SignupRequest, settings: Settings) -> dict:
    user = _create_user(store, payload, "client")
    logger.info("Client created: %s", user["email"])
    return {
        "message": "User created successfully",
        "token": create_token(user["id"], user["role"], settings),
        "user": _token_user(user),
    }


def admin_signup(
    store: DocumentStore, payload: AdminSignupRequest, settings: Settings
) -> dict:
    if payload.admin_secret != settings.admin_secret:
        logger.warning("Admin signup rejected for %s: bad secret", payload.email)
        raise Forbidden("Invalid admin secret key")
    user = _create_user(store, payload, "admin")
    logger.info("Admin created: %s", user["email"])
    return {
        "message": "Admin created successfully",
        "token": create_token(user["id"], user["role"], settings),
        "user": _token_user(user),
    }


def login(store: DocumentStore, email: str, password: str, settings: Settings) -> dict:
    email = (email or "").strip().lower()
    if not email or not password:
        raise ValidationError("Email and password are required")
    user = store.find_one(USERS, {"email": email})
    if not user or not verify_password(password, user.get("password_hash", "")):
        logger.warning("Failed login for %s", email)
        raise InvalidCredentials()
    if user.get("role") not in ("client", "admin"):
        # Legacy records are fixed by scripts/migrate_user_roles.py, not here.
        logger.warning("User %s has no valid role; run the role migration", email)
        raise InvalidCredentials()
    return {
        "message": "Login successful",
        "token": create_token(user["id"], user["role"], settings),
        "user": _token_user(user),
    }


def get_profile(store: DocumentStore, user_id: str) -> dict:
    user = store.get(USERS, user_id)
    if not user:
        raise NotFound("User not found")
    return public_user(user)


def update_profile(store: DocumentStore, user_id: str, payload: ProfileUpdate) -> dict:
    user = store.get(USERS, user_id)
    if not user:
        raise NotFound("User not found")
    user.update(payload.model_dump(exclude_unset=True, exclude_none=True))
    user = store.replace(USERS, user)
    return {"message": "Profile updated successfully", "user": public_user(user)}
