"""
Shared fixtures for the API tests: a fresh in-memory app per test case.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from portfolio_api.app import create_app
from portfolio_api.config import Settings

ADMIN_SECRET = "test-admin-secret"

PROJECT_FIELDS = {
    "project_name": "Bakery storefront",
    "duration": "6 weeks",
    "budget": 1000,
    "tools": "React, FastAPI",
    "project_type": "web",
    "description": "Online ordering for a local bakery",
}


def make_settings(**overrides) -> Settings:
    values = {
        "use_in_memory_backends": True,
        "jwt_secret": "test-jwt-secret",
        "admin_secret": ADMIN_SECRET,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


def make_client(**overrides) -> TestClient:
    return TestClient(create_app(make_settings(**overrides)))


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup_client(client: TestClient, email: str = "ada@studio.io", name: str = "Ada") -> dict:
    response = client.post(
        "/api/auth/signup",
        json={"name": name, "email": email, "password": "secret123", "contact": "555-0101"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return {"id": body["user"]["id"], "headers": auth_header(body["token"])}


def signup_admin(client: TestClient, email: str = "owner@studio.io") -> dict:
    response = client.post(
        "/api/auth/admin/signup",
        json={
            "name": "Owner",
            "email": email,
            "password": "secret123",
            "admin_secret": ADMIN_SECRET,
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return {"id": body["user"]["id"], "headers": auth_header(body["token"])}


def submit_project(client: TestClient, user: dict, **fields) -> dict:
    response = client.post(
        "/api/projects/requests",
        json={**PROJECT_FIELDS, **fields},
        headers=user["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["project"]


def accept_project(client: TestClient, admin: dict, project_id: str, **payload) -> dict:
    response = client.put(
        f"/api/admin/projects/requests/{project_id}/accept",
        json=payload,
        headers=admin["headers"],
    )
    assert response.status_code == 200, response.text
    return response.json()["project"]
