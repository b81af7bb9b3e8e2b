"""
Invoices embedded in project documents.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from portfolio_api.billing import (
    build_invoice,
    normalize_project,
    payment_view,
    project_totals,
    record_payment,
)
from portfolio_api.config import Settings
from portfolio_api.db import PROJECTS, USERS, DocumentStore, parse_iso, to_iso, utcnow_iso
from portfolio_api.errors import NotFound, ValidationError
from portfolio_api.invoice_pdf import render_invoice_pdf
from portfolio_api.projects import (
    ADMIN,
    CLIENT,
    client_summary,
    ensure_access,
    load_project,
    save_project,
    touch,
)
from portfolio_api.schemas import CreateInvoicePayload, MarkPaidPayload

logger = logging.getLogger(__name__)


def _find_invoice(project: dict, invoice_number: str) -> dict:
    for invoice in project.get("invoices") or []:
        if invoice["invoice_number"] == invoice_number:
            return invoice
    raise NotFound("Invoice not found")


def _load_for(store: DocumentStore, project_id: str, user: dict) -> dict:
    project = load_project(store, project_id)
    ensure_access(project, user)
    return project


def create_invoice(
    store: DocumentStore,
    payload: CreateInvoicePayload,
    user: dict,
    settings: Settings,
) -> dict:
    project = _load_for(store, payload.project_id, user)
    if project["status"] != "accepted":
        raise ValidationError("Invoices can only be created for accepted projects")
    if not project.get("payment") or not project["payment"].get("final_budget"):
        raise ValidationError("Project payment details not configured")

    tax_rate = payload.tax_rate if payload.tax_rate is not None else settings.default_tax_rate
    invoice = build_invoice(
        project,
        payload.invoice_type,
        items=[item.model_dump() for item in payload.items],
        tax_rate=tax_rate,
        due_date=to_iso(payload.due_date),
        due_days=settings.invoice_due_days,
        payment_method=payload.payment_method,
        notes=payload.notes,
    )
    project["invoices"].append(invoice)
    touch(project, ADMIN if user["role"] == ADMIN else CLIENT)
    project = save_project(store, project)
    logger.info(
        "Invoice %s (%s) created for project %s",
        invoice["invoice_number"],
        payload.invoice_type,
        project["id"],
    )

    client = client_summary(store, project["user_id"]) or {}
    return {
        **_find_invoice(project, invoice["invoice_number"]),
        "project_id": project["id"],
        "project_name": project["project_name"],
        "client_name": client.get("name"),
        "client_email": client.get("email"),
    }


def payment_summary(store: DocumentStore, project_id: str, user: dict) -> dict:
    project = normalize_project(_load_for(store, project_id, user))
    payment = project.get("payment") or {}
    return {
        "project_id": project["id"],
        "project_name": project["project_name"],
        "project_status": project["status"],
        "client": client_summary(store, project["user_id"]),
        "payment": payment_view(project),
        "totals": project_totals(project),
        "invoices": project.get("invoices") or [],
        "payment_history": payment.get("payment_history") or [],
    }


def project_invoices(store: DocumentStore, project_id: str, user: dict) -> dict:
    project = normalize_project(_load_for(store, project_id, user))
    return {
        "project_name": project["project_name"],
        "invoices": project.get("invoices") or [],
        "payment_summary": payment_view(project),
    }


def invoice_details(
    store: DocumentStore, project_id: str, invoice_number: str, user: dict
) -> dict:
    project = normalize_project(_load_for(store, project_id, user))
    invoice = _find_invoice(project, invoice_number)
    return {
        **invoice,
        "project_id": project["id"],
        "project_name": project["project_name"],
        "client": client_summary(store, project["user_id"]),
    }


def quick_options(store: DocumentStore, project_id: str, user: dict) -> dict:
    project = _load_for(store, project_id, user)
    if project["status"] != "accepted":
        raise ValidationError("Project must be accepted to create invoices")

    payment = project.get("payment") or {}
    budget = payment.get("final_budget") or 0
    paid = payment.get("paid_amount") or 0
    due = payment.get("due_amount") or 0
    options = []

    def option(kind: str, label: str, description: str, line: str, amount: float) -> dict:
        return {
            "type": kind,
            "label": label,
            "description": description,
            "amount": amount,
            "items": [
                {"description": line, "quantity": 1, "unit_price": amount, "total": amount}
            ],
        }

    if not payment.get("initial_payment") and budget > 0:
        options.append(
            option(
                "initial",
                "Initial Payment",
                "50% deposit to start the project",
                "Initial Deposit - Project Kickoff",
                budget * 0.5,
            )
        )
    if paid > 0 and due > 0:
        options.append(
            option(
                "milestone",
                "Milestone Payment",
                "Progress payment for completed work",
                "Milestone Payment - Progress Update",
                budget * 0.25,
            )
        )
    if due > 0 and payment.get("initial_payment"):
        options.append(
            option(
                "final",
                "Final Payment",
                "Remaining balance payment",
                "Final Payment - Project Completion",
                due,
            )
        )
    options.append(
        {
            "type": "custom",
            "label": "Custom Invoice",
            "description": "Create an invoice with custom items and amounts",
            "custom": True,
        }
    )
    return {
        "project_name": project["project_name"],
        "current_payment_status": payment_view(project),
        "options": options,
    }


def mark_paid(
    store: DocumentStore,
    project_id: str,
    invoice_number: str,
    payload: MarkPaidPayload,
    *,
    expected_version: Optional[int] = None,
) -> dict:
    project = load_project(store, project_id, expected_version)
    if not project.get("payment"):
        raise ValidationError("Project payment details not configured")
    invoice = _find_invoice(project, invoice_number)
    if invoice.get("status") == "cancelled":
        raise ValidationError("Cannot pay a cancelled invoice")

    amount = payload.amount if payload.amount is not None else invoice["balance_due"]
    if amount <= 0:
        raise ValidationError("Invalid payment amount")

    invoice["amount_paid"] = invoice.get("amount_paid", 0) + amount
    invoice["payment_method"] = payload.payment_method
    record_payment(
        project,
        amount,
        note=payload.note or f"Payment for invoice {invoice_number}",
        invoice_number=invoice_number,
        payment_method=payload.payment_method,
        is_initial_payment=payload.is_initial_payment,
    )
    if project["payment"]["fully_paid"] and project.get("timeline"):
        project["timeline"]["completed_date"] = utcnow_iso()
    touch(project, ADMIN)
    project = save_project(store, project)
    logger.info("Invoice %s paid %s on project %s", invoice_number, amount, project_id)

    return {
        "invoice": {
            **_find_invoice(project, invoice_number),
            "project_name": project["project_name"],
        },
        "project_payment": payment_view(project),
    }


def cancel_invoice(
    store: DocumentStore,
    project_id: str,
    invoice_number: str,
    *,
    expected_version: Optional[int] = None,
) -> dict:
    project = load_project(store, project_id, expected_version)
    invoice = _find_invoice(project, invoice_number)
    if invoice.get("amount_paid", 0) > 0:
        raise ValidationError("Cannot cancel an invoice with recorded payments")
    invoice["status"] = "cancelled"
    touch(project, ADMIN)
    project = save_project(store, project)
    return _find_invoice(project, invoice_number)


def list_invoices(
    store: DocumentStore,
    *,
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    project_id: Optional[str] = None,
) -> dict:
    filters = {"id": project_id} if project_id else None
    start = parse_iso(to_iso(start_date))
    end = parse_iso(to_iso(end_date))
    invoices = []
    for project in store.find(PROJECTS, filters):
        normalize_project(project)
        client = client_summary(store, project["user_id"]) or {}
        for invoice in project.get("invoices") or []:
            issued = parse_iso(invoice["issue_date"])
            if status and invoice["status"] != status:
                continue
            if start and issued < start:
                continue
            if end and issued > end:
                continue
            invoices.append(
                {
                    **invoice,
                    "project_id": project["id"],
                    "project_name": project["project_name"],
                    "client_name": client.get("name"),
                    "client_email": client.get("email"),
                    "project_status": project["status"],
                }
            )
    invoices.sort(key=lambda inv: inv["issue_date"], reverse=True)
    summary = {
        "total_invoices": len(invoices),
        "total_amount": sum(inv["total_amount"] for inv in invoices),
        "pending_amount": sum(
            inv["balance_due"]
            for inv in invoices
            if inv["status"] in ("pending", "partial", "overdue")
        ),
        "paid_amount": sum(
            inv["total_amount"] for inv in invoices if inv["status"] == "paid"
        ),
    }
    return {"summary": summary, "invoices": invoices, "total": len(invoices)}


def invoice_pdf(
    store: DocumentStore,
    project_id: str,
    invoice_number: str,
    user: dict,
    settings: Settings,
) -> tuple[str, bytes]:
    project = normalize_project(_load_for(store, project_id, user))
    invoice = _find_invoice(project, invoice_number)
    client = store.get(USERS, project["user_id"])
    content = render_invoice_pdf(invoice, project, client, settings)
    return f"invoice-{invoice_number}.pdf", content
