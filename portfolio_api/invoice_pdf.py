"""
Render a single invoice as an A4 PDF.
"""

from __future__ import annotations

import io

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from portfolio_api.config import Settings
from portfolio_api.db import parse_iso


def format_currency(amount: float) -> str:
    return f"${amount:,.2f}"


def _format_date(value) -> str:
    parsed = parse_iso(value)
    return parsed.strftime("%Y-%m-%d") if parsed else "-"


def render_invoice_pdf(
    invoice: dict, project: dict, client: dict | None, settings: Settings
) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    client = client or {}
    y = height - 60

    pdf.setFont("Helvetica-Bold", 22)
    pdf.drawCentredString(width / 2, y, "INVOICE")
    y -= 20
    pdf.setFont("Helvetica", 10)
    pdf.drawCentredString(width / 2, y, f"Invoice #: {invoice['invoice_number']}")
    y -= 14
    pdf.drawCentredString(
        width / 2,
        y,
        f"Issue Date: {_format_date(invoice.get('issue_date'))}    "
        f"Due Date: {_format_date(invoice.get('due_date'))}",
    )

    y -= 36
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(50, y, "FROM:")
    pdf.drawString(300, y, "BILL TO:")
    pdf.setFont("Helvetica", 10)
    left = [settings.business_name, settings.business_address, settings.business_email]
    right = [
        client.get("name") or "",
        client.get("company") or "",
        client.get("email") or "",
        ", ".join(filter(None, [client.get("city"), client.get("country")])),
    ]
    for offset, (a, b) in enumerate(zip(left + [""], right)):
        pdf.drawString(50, y - 14 * (offset + 1), a or "")
        pdf.drawString(300, y - 14 * (offset + 1), b)
    y -= 14 * 6

    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(50, y, f"Project: {project['project_name']}")
    y -= 28

    pdf.setFont("Helvetica-Bold", 10)
    for x, label in ((50, "#"), (80, "Description"), (340, "Qty"), (390, "Unit Price"), (480, "Total")):
        pdf.drawString(x, y, label)
    pdf.line(50, y - 5, 550, y - 5)
    y -= 20
    pdf.setFont("Helvetica", 10)
    for index, item in enumerate(invoice.get("items") or [], start=1):
        description = item["description"]
        if len(description) > 45:
            description = description[:45] + "..."
        pdf.drawString(50, y, str(index))
        pdf.drawString(80, y, description)
        pdf.drawString(340, y, f"{item['quantity']:g}")
        pdf.drawString(390, y, format_currency(item["unit_price"]))
        pdf.drawString(480, y, format_currency(item["total"]))
        y -= 18

    y -= 10
    rows = [("Subtotal:", invoice["subtotal"], False)]
    if invoice.get("tax"):
        rows.append((f"Tax ({invoice.get('tax_rate', 0):g}%):", invoice["tax"], False))
    rows += [
        ("Total:", invoice["total_amount"], True),
        ("Amount Paid:", invoice.get("amount_paid", 0), False),
        ("Balance Due:", invoice["balance_due"], True),
    ]
    for label, amount, bold in rows:
        pdf.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        pdf.drawString(390, y, label)
        pdf.drawString(480, y, format_currency(amount))
        y -= 16

    y -= 20
    pdf.setFont("Helvetica", 10)
    pdf.drawString(50, y, f"Payment Status: {invoice['status'].upper()}")
    if invoice.get("notes"):
        y -= 20
        pdf.drawString(50, y, f"Notes: {invoice['notes'][:90]}")

    pdf.setFont("Helvetica", 8)
    pdf.drawCentredString(width / 2, 50, "Thank you for your business!")
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
