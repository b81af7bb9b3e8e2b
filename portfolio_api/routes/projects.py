"""
Client project routes under ``/projects``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_api import projects
from portfolio_api.db import DocumentStore
from portfolio_api.dependencies import get_current_user, get_store
from portfolio_api.schemas import NotificationCounts, ProjectRequestPayload

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("/requests", status_code=201)
def submit_project(
    payload: ProjectRequestPayload,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    project = projects.submit_project(store, user, payload)
    return {"message": "Project request submitted successfully", "project": project}


@router.get("/requests")
def list_my_projects(
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return projects.list_user_projects(store, user["id"])


@router.get("/requests/{project_id}")
def get_my_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return projects.get_user_project(store, project_id, user)


@router.get("/work")
def work_projects(
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return projects.work_projects(store, user["id"])


@router.get("/notifications", response_model=NotificationCounts)
def notifications(
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return projects.notifications(store, user["id"])


@router.get("/{project_id}/commits")
def project_commits(
    project_id: str,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return projects.get_commits(store, project_id, user)
