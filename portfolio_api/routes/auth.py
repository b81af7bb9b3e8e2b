"""
Account routes under ``/auth``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_api import auth
from portfolio_api.config import Settings
from portfolio_api.db import DocumentStore
from portfolio_api.dependencies import get_current_user, get_settings, get_store
from portfolio_api.schemas import (
    AdminSignupRequest,
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    SignupRequest,
    TokenStatusResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=201)
def signup(
    payload: SignupRequest,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return auth.signup(store, payload, settings)


@router.post("/admin/signup", response_model=AuthResponse, status_code=201)
def admin_signup(
    payload: AdminSignupRequest,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return auth.admin_signup(store, payload, settings)


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return auth.login(store, payload.email, payload.password, settings)


@router.post("/logout")
def logout():
    # Tokens are stateless; the client discards its copy.
    return {"message": "Logged out successfully"}


@router.get("/profile")
def profile(
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return auth.get_profile(store, user["id"])


@router.put("/profile/update")
def update_profile(
    payload: ProfileUpdate,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return auth.update_profile(store, user["id"], payload)


@router.get("/verify", response_model=TokenStatusResponse)
def verify(user: dict = Depends(get_current_user)):
    return TokenStatusResponse(user_id=user["id"], role=user["role"])
