"""
Admin routes under ``/admin``: clients, project decisions, payments and
progress commits.

Mutating project routes honour an optional ``If-Match: <version>`` header.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from portfolio_api import projects
from portfolio_api.config import Settings
from portfolio_api.db import DocumentStore
from portfolio_api.dependencies import (
    get_expected_version,
    get_settings,
    get_store,
    require_admin,
)
from portfolio_api.schemas import (
    AcceptPayload,
    CommitPayload,
    CommitUpdatePayload,
    DashboardStats,
    NegotiatePayload,
    PaymentPayload,
    ProjectStatus,
    RejectPayload,
)

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


@router.get("/clients")
def list_clients(store: DocumentStore = Depends(get_store)):
    return projects.list_clients(store)


@router.get("/clients/{client_id}")
def get_client(client_id: str, store: DocumentStore = Depends(get_store)):
    return projects.get_client(store, client_id)


@router.get("/projects/requests")
def list_projects(
    status: Optional[ProjectStatus] = Query(default=None),
    store: DocumentStore = Depends(get_store),
):
    return projects.list_projects(store, status)


@router.get("/projects/requests/{project_id}")
def get_project(project_id: str, store: DocumentStore = Depends(get_store)):
    return projects.get_project(store, project_id)


@router.put("/projects/requests/{project_id}/accept")
def accept_project(
    project_id: str,
    payload: AcceptPayload,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    project = projects.accept_project(
        store,
        project_id,
        payload,
        expected_version=expected_version,
        invoice_due_days=settings.invoice_due_days,
    )
    return {"message": "Project accepted successfully", "project": project}


@router.put("/projects/requests/{project_id}/negotiate")
def negotiate_project(
    project_id: str,
    payload: NegotiatePayload,
    store: DocumentStore = Depends(get_store),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    project = projects.negotiate_project(
        store, project_id, payload, expected_version=expected_version
    )
    return {"message": "Negotiation proposal sent successfully", "project": project}


@router.put("/projects/requests/{project_id}/reject")
def reject_project(
    project_id: str,
    payload: RejectPayload,
    store: DocumentStore = Depends(get_store),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    project = projects.reject_project(
        store, project_id, payload, expected_version=expected_version
    )
    return {"message": "Project rejected successfully", "project": project}


@router.post("/projects/requests/{project_id}/payment")
def add_payment(
    project_id: str,
    payload: PaymentPayload,
    store: DocumentStore = Depends(get_store),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    project = projects.add_payment(
        store, project_id, payload, expected_version=expected_version
    )
    return {"message": "Payment added successfully", "project": project}


@router.post("/projects/requests/{project_id}/commit")
def add_commit(
    project_id: str,
    payload: CommitPayload,
    store: DocumentStore = Depends(get_store),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    project = projects.add_commit(
        store, project_id, payload, expected_version=expected_version
    )
    return {"message": "Progress update added successfully", "project": project}


@router.put("/projects/requests/{project_id}/commit/{week_number}")
def update_commit(
    project_id: str,
    week_number: int,
    payload: CommitUpdatePayload,
    store: DocumentStore = Depends(get_store),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    return projects.update_commit(
        store, project_id, week_number, payload, expected_version=expected_version
    )


@router.delete("/projects/requests/{project_id}/commit/{week_number}")
def delete_commit(
    project_id: str,
    week_number: int,
    store: DocumentStore = Depends(get_store),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    return projects.delete_commit(
        store, project_id, week_number, expected_version=expected_version
    )


@router.get("/projects/statistics")
def project_statistics(store: DocumentStore = Depends(get_store)):
    return projects.project_statistics(store)


@router.get("/projects/{project_id}/commits")
def project_commits(
    project_id: str,
    user: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    return projects.get_commits(store, project_id, user)


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(store: DocumentStore = Depends(get_store)):
    return projects.dashboard_stats(store)
