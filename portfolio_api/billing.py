"""
Derived payment and invoice fields for project documents.

``normalize_project`` is the only place where ``due_amount``, ``fully_paid``,
``balance_due`` and invoice ``status`` are computed; the services call it
before every persist of a project.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from portfolio_api.db import parse_iso, utcnow_iso
from portfolio_api.errors import ValidationError


def new_payment(final_budget: float) -> dict:
    return {
        "final_budget": final_budget,
        "initial_payment": False,
        "paid_amount": 0.0,
        "due_amount": final_budget,
        "payment_history": [],
        "fully_paid": False,
    }


def invoice_status(invoice: dict, now: datetime) -> str:
    if invoice.get("balance_due", 0) <= 0:
        return "paid"
    if invoice.get("status") == "cancelled":
        return "cancelled"
    due_date = parse_iso(invoice.get("due_date"))
    if due_date and now > due_date:
        return "overdue"
    if invoice.get("amount_paid", 0) > 0:
        return "partial"
    return "pending"


def normalize_project(project: dict, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    payment = project.get("payment")
    if payment:
        payment["due_amount"] = payment["final_budget"] - payment.get("paid_amount", 0)
        payment["fully_paid"] = payment["due_amount"] <= 0
    for invoice in project.get("invoices") or []:
        invoice["balance_due"] = invoice["total_amount"] - invoice.get("amount_paid", 0)
        invoice["status"] = invoice_status(invoice, now)
    return project


def record_payment(
    project: dict,
    amount: float,
    *,
    note: str = "",
    invoice_number: Optional[str] = None,
    payment_method: Optional[str] = None,
    is_initial_payment: bool = False,
) -> dict:
    """Append a history entry and fold ``amount`` into the payment totals."""
    payment = project["payment"]
    entry = {
        "amount": amount,
        "date": utcnow_iso(),
        "note": note,
        "invoice_number": invoice_number,
        "payment_method": payment_method,
        "is_initial_payment": is_initial_payment,
    }
    payment["payment_history"].append(entry)
    payment["paid_amount"] = payment.get("paid_amount", 0) + amount
    if is_initial_payment:
        payment["initial_payment"] = True
    normalize_project(project)
    return entry


def project_totals(project: dict) -> dict:
    payment = project.get("payment") or {}
    invoices = project.get("invoices") or []
    final_budget = payment.get("final_budget") or 0
    progress = 0
    if final_budget:
        progress = round(payment.get("paid_amount", 0) / final_budget * 100)
    return {
        "payment_progress": progress,
        "total_invoice_amount": sum(i.get("total_amount", 0) for i in invoices),
        "pending_invoice_amount": sum(
            i.get("balance_due", 0)
            for i in invoices
            if i.get("status") in ("pending", "partial", "overdue")
        ),
        "paid_invoice_amount": sum(
            i.get("total_amount", 0) for i in invoices if i.get("status") == "paid"
        ),
    }


def payment_view(project: dict) -> dict:
    payment = project.get("payment") or {}
    return {
        "total_budget": payment.get("final_budget", 0),
        "paid_amount": payment.get("paid_amount", 0),
        "due_amount": payment.get("due_amount", 0),
        "initial_payment_made": payment.get("initial_payment", False),
        "fully_paid": payment.get("fully_paid", False),
    }


TEMPLATE_SHARES = {
    "initial": 0.5,
    "milestone": 0.25,
    "standard": 1.0,
}


def generate_invoice_number(project_name: str, now: Optional[datetime] = None) -> str:
    """
    ``INV-<PRE>-<epoch ms>-<0..999>``. Collisions are possible; the store's
    unique key on ``invoices.invoice_number`` rejects them.
    """
    now = now or datetime.now(timezone.utc)
    prefix = (project_name or "")[:3].upper()
    return f"INV-{prefix}-{int(now.timestamp() * 1000)}-{random.randint(0, 999)}"


def template_subtotal(project: dict, invoice_type: str) -> float:
    payment = project["payment"]
    if invoice_type == "initial":
        if payment.get("initial_payment"):
            raise ValidationError("Initial payment already made for this project")
    elif invoice_type == "final":
        if payment.get("due_amount", 0) <= 0:
            raise ValidationError("No balance due for final payment")
        return payment["due_amount"]
    return payment["final_budget"] * TEMPLATE_SHARES[invoice_type]


def build_invoice(
    project: dict,
    invoice_type: str = "standard",
    *,
    items: Optional[list[dict]] = None,
    tax_rate: float = 0.0,
    due_date: Optional[str] = None,
    due_days: int = 30,
    payment_method: str = "Bank Transfer",
    notes: Optional[str] = None,
) -> dict:
    """Return a new pending invoice; the caller appends it to the project."""
    if items:
        lines = [
            {
                "description": item["description"],
                "quantity": item.get("quantity", 1),
                "unit_price": item["unit_price"],
                "total": item.get("quantity", 1) * item["unit_price"],
            }
            for item in items
        ]
    else:
        amount = template_subtotal(project, invoice_type)
        lines = [
            {
                "description": f"{invoice_type.capitalize()} Payment - {project['project_name']}",
                "quantity": 1,
                "unit_price": amount,
                "total": amount,
            }
        ]
    subtotal = sum(line["total"] for line in lines)
    tax = subtotal * (tax_rate / 100)
    now = datetime.now(timezone.utc)
    return {
        "invoice_number": generate_invoice_number(project["project_name"], now),
        "issue_date": now.isoformat(),
        "due_date": due_date or (now + timedelta(days=due_days)).isoformat(),
        "invoice_type": invoice_type,
        "items": lines,
        "subtotal": subtotal,
        "tax_rate": tax_rate,
        "tax": tax,
        "total_amount": subtotal + tax,
        "amount_paid": 0.0,
        "balance_due": subtotal + tax,
        "status": "pending",
        "payment_method": payment_method,
        "notes": notes
        or f"Invoice for {project['project_name']} - {invoice_type} payment",
        "created_at": now.isoformat(),
    }
