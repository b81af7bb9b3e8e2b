"""
Project request lifecycle: client submission, admin decisions, payments and
weekly progress commits.

Status workflow::

    requested  -> accepted | negotiable | rejected
    negotiable -> accepted | negotiable | rejected

``accepted`` and ``rejected`` are final decisions. Every mutation marks the
project unread for the other role; that role's next read clears the flag.
"""

from __future__ import annotations

import logging
from typing import Optional

from portfolio_api.auth import public_user
from portfolio_api.billing import (
    build_invoice,
    new_payment,
    normalize_project,
    record_payment,
)
from portfolio_api.db import PROJECTS, USERS, DocumentStore, to_iso, utcnow_iso
from portfolio_api.errors import (
    DuplicateWeek,
    Forbidden,
    NotFound,
    StaleDocumentError,
    ValidationError,
)
from portfolio_api.schemas import (
    AcceptPayload,
    CommitPayload,
    CommitUpdatePayload,
    NegotiatePayload,
    PaymentPayload,
    ProjectRequestPayload,
    RejectPayload,
)

logger = logging.getLogger(__name__)

ADMIN = "admin"
CLIENT = "client"
STATUSES = ("requested", "accepted", "negotiable", "rejected")
DECIDABLE = ("requested", "negotiable")
REQUIRED_FIELDS = (
    "project_name",
    "duration",
    "budget",
    "tools",
    "project_type",
    "description",
)
INITIAL_PAYMENT_SHARE = 0.5


def load_project(
    store: DocumentStore, project_id: str, expected_version: Optional[int] = None
) -> dict:
    project = store.get(PROJECTS, project_id)
    if not project:
        raise NotFound("Project not found")
    if expected_version is not None and project["version"] != expected_version:
        raise StaleDocumentError()
    return project


def save_project(store: DocumentStore, project: dict) -> dict:
    normalize_project(project)
    return store.replace(PROJECTS, project, expected_version=project["version"])


def touch(project: dict, role: str) -> None:
    project["has_unread_update"] = True
    project["last_updated_by"] = role


def mark_read(store: DocumentStore, project: dict, reader_role: str) -> dict:
    """Clear the unread flag when the counterpart role made the last update."""
    if not project.get("has_unread_update") or project.get("last_updated_by") == reader_role:
        return project
    project["has_unread_update"] = False
    try:
        return save_project(store, project)
    except StaleDocumentError:
        # A concurrent write landed first; its flag wins.
        logger.info("Read receipt for %s lost a race, returning fresh copy", project["id"])
        return load_project(store, project["id"])


def ensure_access(project: dict, user: dict) -> None:
    if user["role"] != ADMIN and project.get("user_id") != user["id"]:
        raise Forbidden("Access denied")


def client_summary(store: DocumentStore, user_id: str) -> Optional[dict]:
    user = store.get(USERS, user_id)
    if not user:
        return None
    return {
        "id": user["id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "contact": user.get("contact", ""),
    }


def _ensure_decidable(project: dict, action: str) -> None:
    if project["status"] not in DECIDABLE:
        raise ValidationError(
            f"Cannot {action} a project that is already {project['status']}"
        )


# Client operations


def submit_project(store: DocumentStore, user: dict, payload: ProjectRequestPayload) -> dict:
    data = payload.model_dump()
    attachment = (data.get("attachment_link") or "").strip()
    missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
    if not attachment and missing:
        raise ValidationError("Upload document or fill all fields")

    project = store.insert(
        PROJECTS,
        {
            "user_id": user["id"],
            "project_name": (data.get("project_name") or "").strip(),
            "duration": data.get("duration") or "",
            "budget": float(data.get("budget") or 0),
            "tools": data.get("tools") or "",
            "project_type": data.get("project_type") or "",
            "description": data.get("description") or "",
            "attachment_link": attachment,
            "status": "requested",
            "negotiation": None,
            "rejection": None,
            "payment": None,
            "invoices": [],
            "timeline": None,
            "commits": [],
            "has_unread_update": True,
            "last_updated_by": CLIENT,
        },
    )
    logger.info("Project %s submitted by %s", project["id"], user["id"])
    return project


def list_user_projects(store: DocumentStore, user_id: str) -> list[dict]:
    return store.find(
        PROJECTS, {"user_id": user_id}, sort_by="created_at", descending=True
    )


def get_user_project(store: DocumentStore, project_id: str, user: dict) -> dict:
    project = store.get(PROJECTS, project_id)
    if not project or project.get("user_id") != user["id"]:
        raise NotFound("Project not found")
    return mark_read(store, project, CLIENT)


def work_projects(store: DocumentStore, user_id: str) -> list[dict]:
    return store.find(
        PROJECTS,
        {"user_id": user_id, "status": "accepted"},
        sort_by="created_at",
        descending=True,
    )


def notifications(store: DocumentStore, user_id: str) -> dict:
    def unread(status: str) -> int:
        return store.count(
            PROJECTS,
            {
                "user_id": user_id,
                "status": status,
                "has_unread_update": True,
                "last_updated_by": ADMIN,
            },
        )

    return {
        "new_work_projects": unread("accepted"),
        "negotiable_projects": unread("negotiable"),
        "rejected_projects": unread("rejected"),
    }


def get_commits(store: DocumentStore, project_id: str, user: dict) -> dict:
    project = load_project(store, project_id)
    ensure_access(project, user)
    project = mark_read(store, project, user["role"])
    return {
        "commits": project.get("commits") or [],
        "project_name": project["project_name"],
    }


# Admin decisions


def accept_project(
    store: DocumentStore,
    project_id: str,
    payload: AcceptPayload,
    *,
    expected_version: Optional[int] = None,
    invoice_due_days: int = 30,
) -> dict:
    project = load_project(store, project_id, expected_version)
    _ensure_decidable(project, "accept")
    final_budget = payload.final_budget or project.get("budget")
    if not final_budget or final_budget <= 0:
        raise ValidationError("A positive final budget is required")

    project["status"] = "accepted"
    project["payment"] = new_payment(final_budget)
    project["timeline"] = {
        "start_date": to_iso(payload.start_date) or utcnow_iso(),
        "deadline": to_iso(payload.deadline),
        "completed_date": None,
    }

    invoice = None
    if payload.create_invoice:
        invoice = build_invoice(project, "initial", due_days=invoice_due_days)
        project["invoices"].append(invoice)
    if payload.initial_payment:
        amount = final_budget * INITIAL_PAYMENT_SHARE
        if invoice:
            invoice["amount_paid"] = amount
        record_payment(
            project,
            amount,
            note="Initial payment (50%)",
            invoice_number=invoice["invoice_number"] if invoice else None,
            is_initial_payment=True,
        )

    touch(project, ADMIN)
    project = save_project(store, project)
    logger.info("Project %s accepted with final budget %s", project_id, final_budget)
    return project


def negotiate_project(
    store: DocumentStore,
    project_id: str,
    payload: NegotiatePayload,
    *,
    expected_version: Optional[int] = None,
) -> dict:
    project = load_project(store, project_id, expected_version)
    _ensure_decidable(project, "negotiate")
    if project.get("payment"):
        raise ValidationError("Cannot negotiate a project with payment records")

    project["status"] = "negotiable"
    project["negotiation"] = {
        "proposed_budget": payload.proposed_budget or project.get("budget"),
        "proposed_duration": payload.proposed_duration or project.get("duration"),
        "admin_notes": payload.admin_notes or "",
        "negotiated_at": utcnow_iso(),
    }
    touch(project, ADMIN)
    logger.info("Negotiation proposed for project %s", project_id)
    return save_project(store, project)


def reject_project(
    store: DocumentStore,
    project_id: str,
    payload: RejectPayload,
    *,
    expected_version: Optional[int] = None,
) -> dict:
    reason = (payload.reason or "").strip()
    if not reason:
        raise ValidationError("Rejection reason is required")
    project = load_project(store, project_id, expected_version)
    _ensure_decidable(project, "reject")

    project["status"] = "rejected"
    project["rejection"] = {"reason": reason, "rejected_at": utcnow_iso()}
    touch(project, ADMIN)
    logger.info("Project %s rejected", project_id)
    return save_project(store, project)


def add_payment(
    store: DocumentStore,
    project_id: str,
    payload: PaymentPayload,
    *,
    expected_version: Optional[int] = None,
) -> dict:
    if payload.amount is None or payload.amount <= 0:
        raise ValidationError("Valid payment amount is required")
    project = load_project(store, project_id, expected_version)
    if project["status"] != "accepted":
        raise ValidationError("Can only add payments to accepted projects")

    record_payment(
        project,
        payload.amount,
        note=payload.note or "",
        payment_method=payload.payment_method,
    )
    touch(project, ADMIN)
    project = save_project(store, project)
    logger.info(
        "Payment of %s recorded on %s, due now %s",
        payload.amount,
        project_id,
        project["payment"]["due_amount"],
    )
    return project


def add_commit(
    store: DocumentStore,
    project_id: str,
    payload: CommitPayload,
    *,
    expected_version: Optional[int] = None,
) -> dict:
    description = (payload.description or "").strip()
    if not payload.week_number or not description:
        raise ValidationError("Week number and description are required")
    if payload.week_number < 1:
        raise ValidationError("Week number must be positive")
    project = load_project(store, project_id, expected_version)
    if project["status"] != "accepted":
        raise ValidationError("Can only add commits to accepted projects")
    if any(c["week_number"] == payload.week_number for c in project["commits"]):
        raise DuplicateWeek(
            f"Week {payload.week_number} already has a progress update"
        )

    project["commits"].append(
        {
            "week_number": payload.week_number,
            "description": description,
            "completed_tasks": payload.completed_tasks,
            "date": utcnow_iso(),
        }
    )
    touch(project, ADMIN)
    return save_project(store, project)


def _find_commit(project: dict, week_number: int) -> int:
    for index, commit in enumerate(project.get("commits") or []):
        if commit["week_number"] == week_number:
            return index
    raise NotFound("Commit not found")


def update_commit(
    store: DocumentStore,
    project_id: str,
    week_number: int,
    payload: CommitUpdatePayload,
    *,
    expected_version: Optional[int] = None,
) -> dict:
    project = load_project(store, project_id, expected_version)
    index = _find_commit(project, week_number)
    commit = project["commits"][index]
    if payload.description:
        commit["description"] = payload.description
    if payload.completed_tasks is not None:
        commit["completed_tasks"] = payload.completed_tasks
    touch(project, ADMIN)
    project = save_project(store, project)
    return {"message": "Commit updated successfully", "commit": project["commits"][index]}


def delete_commit(
    store: DocumentStore,
    project_id: str,
    week_number: int,
    *,
    expected_version: Optional[int] = None,
) -> dict:
    project = load_project(store, project_id, expected_version)
    index = _find_commit(project, week_number)
    project["commits"].pop(index)
    project = save_project(store, project)
    return {
        "message": "Commit deleted successfully",
        "remaining_commits": project["commits"],
    }


# Admin reads


def list_projects(store: DocumentStore, status: Optional[str] = None) -> list[dict]:
    if status and status not in STATUSES:
        raise ValidationError(f"Unknown status {status}")
    filters = {"status": status} if status else None
    projects = store.find(PROJECTS, filters, sort_by="created_at", descending=True)
    for project in projects:
        project["client"] = client_summary(store, project["user_id"])
    return projects


def get_project(store: DocumentStore, project_id: str) -> dict:
    project = mark_read(store, load_project(store, project_id), ADMIN)
    project["client"] = client_summary(store, project["user_id"])
    return project


def project_statistics(store: DocumentStore) -> list[dict]:
    results = []
    for project in store.find(PROJECTS, {"status": "accepted"}):
        commits = project.get("commits") or []
        results.append(
            {
                "id": project["id"],
                "project_name": project["project_name"],
                "client_id": project["user_id"],
                "total_commits": len(commits),
                "last_commit_date": commits[-1]["date"] if commits else None,
                "payment": project.get("payment"),
                "timeline": project.get("timeline"),
            }
        )
    return results


def _status_stats(projects: list[dict]) -> dict:
    accepted = [p for p in projects if p["status"] == "accepted" and p.get("payment")]
    return {
        "total_projects": len(projects),
        "requested_projects": sum(1 for p in projects if p["status"] == "requested"),
        "accepted_projects": sum(1 for p in projects if p["status"] == "accepted"),
        "rejected_projects": sum(1 for p in projects if p["status"] == "rejected"),
        "negotiable_projects": sum(1 for p in projects if p["status"] == "negotiable"),
        "total_paid": sum(p["payment"]["paid_amount"] for p in accepted),
        "total_due": sum(p["payment"]["due_amount"] for p in accepted),
    }


def dashboard_stats(store: DocumentStore) -> dict:
    projects = store.find(PROJECTS)
    stats = _status_stats(projects)
    stats["total_clients"] = store.count(USERS, {"role": CLIENT})
    stats["total_revenue"] = sum(
        p["payment"]["final_budget"]
        for p in projects
        if p["status"] == "accepted" and p.get("payment")
    )
    return stats


def list_clients(store: DocumentStore) -> list[dict]:
    clients = store.find(USERS, {"role": CLIENT}, sort_by="created_at", descending=True)
    return [
        {
            **public_user(client),
            "stats": _status_stats(store.find(PROJECTS, {"user_id": client["id"]})),
        }
        for client in clients
    ]


def get_client(store: DocumentStore, client_id: str) -> dict:
    client = store.get(USERS, client_id)
    if not client:
        raise NotFound("Client not found")
    projects = list_user_projects(store, client_id)
    return {
        "client": public_user(client),
        "projects": projects,
        "stats": _status_stats(projects),
    }
