"""
Invoice routes under ``/invoices``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from portfolio_api import invoices
from portfolio_api.config import Settings
from portfolio_api.db import DocumentStore
from portfolio_api.dependencies import (
    get_current_user,
    get_expected_version,
    get_settings,
    get_store,
    require_admin,
)
from portfolio_api.schemas import CreateInvoicePayload, InvoiceStatus, MarkPaidPayload

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("", status_code=201)
def create_invoice(
    payload: CreateInvoicePayload,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    invoice = invoices.create_invoice(store, payload, user, settings)
    return {"success": True, "message": "Invoice created successfully", "invoice": invoice}


@router.get("", dependencies=[Depends(require_admin)])
def list_invoices(
    status: Optional[InvoiceStatus] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    project_id: Optional[str] = Query(default=None),
    store: DocumentStore = Depends(get_store),
):
    result = invoices.list_invoices(
        store,
        status=status,
        start_date=start_date,
        end_date=end_date,
        project_id=project_id,
    )
    return {"success": True, **result}


@router.get("/project/{project_id}/summary")
def payment_summary(
    project_id: str,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return {"success": True, "summary": invoices.payment_summary(store, project_id, user)}


@router.get("/project/{project_id}/options")
def quick_options(
    project_id: str,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return {"success": True, **invoices.quick_options(store, project_id, user)}


@router.get("/project/{project_id}")
def project_invoices(
    project_id: str,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return {"success": True, **invoices.project_invoices(store, project_id, user)}


@router.get("/project/{project_id}/{invoice_number}")
def invoice_details(
    project_id: str,
    invoice_number: str,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    invoice = invoices.invoice_details(store, project_id, invoice_number, user)
    return {"success": True, "invoice": invoice}


@router.put("/project/{project_id}/{invoice_number}/pay", dependencies=[Depends(require_admin)])
def mark_paid(
    project_id: str,
    invoice_number: str,
    payload: MarkPaidPayload,
    store: DocumentStore = Depends(get_store),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    result = invoices.mark_paid(
        store, project_id, invoice_number, payload, expected_version=expected_version
    )
    return {"success": True, "message": "Invoice marked as paid", **result}


@router.put("/project/{project_id}/{invoice_number}/cancel", dependencies=[Depends(require_admin)])
def cancel_invoice(
    project_id: str,
    invoice_number: str,
    store: DocumentStore = Depends(get_store),
    expected_version: Optional[int] = Depends(get_expected_version),
):
    invoice = invoices.cancel_invoice(
        store, project_id, invoice_number, expected_version=expected_version
    )
    return {"success": True, "message": "Invoice cancelled", "invoice": invoice}


@router.get("/project/{project_id}/{invoice_number}/pdf")
def invoice_pdf(
    project_id: str,
    invoice_number: str,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    filename, content = invoices.invoice_pdf(
        store, project_id, invoice_number, user, settings
    )
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
