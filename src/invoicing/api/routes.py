"""FastAPI routes for the Invoicing domain."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from invoicing.api.schemas import (
    CancelInvoiceRequest,
    GenerateInvoiceRequest,
    InvoiceIdResponse,
    InvoicePreviewResponse,
    PreviewInvoiceRequest,
    PricedLineResponse,
    ReviseInvoiceRequest,
    StatusResponse,
)
from invoicing.invoice.generation import GenerateInvoice, ReviseInvoice
from invoicing.invoice.lifecycle import CancelInvoice, MarkInvoiceOverdue, MarkInvoicePaid, SendInvoice
from invoicing.pricing.totals import derive_totals

invoice_router = APIRouter(prefix="/invoices", tags=["invoices"])


def _lines_json(lines) -> str:
    return json.dumps([line.model_dump(exclude_none=True) for line in lines])


def _discount_json(discount) -> str | None:
    return json.dumps(discount.model_dump(exclude_none=True)) if discount else None


@invoice_router.post("/preview", response_model=InvoicePreviewResponse)
async def preview_invoice(body: PreviewInvoiceRequest) -> InvoicePreviewResponse:
    """Price a draft without persisting anything."""
    derivation = derive_totals(
        [line.to_line() for line in body.lines],
        body.global_discount.to_spec() if body.global_discount else None,
    )
    record = derivation.as_record()
    return InvoicePreviewResponse(
        lines=[
            PricedLineResponse(
                id=item["id"],
                description=item["description"],
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                tax_rate=item["tax_rate"],
                discount_amount=item["discount_amount"],
                tax_amount=item["tax_amount"],
                total=item["total"],
            )
            for item in record["items"]
        ],
        subtotal=record["subtotal"],
        tax_total=record["tax_amount"],
        discount_amount=derivation.global_deduction,
        total=record["total_amount"],
    )


@invoice_router.post("", status_code=201, response_model=InvoiceIdResponse)
async def generate_invoice(body: GenerateInvoiceRequest) -> InvoiceIdResponse:
    """Generate a new draft invoice."""
    command = GenerateInvoice(
        client_id=body.client_id,
        lines=_lines_json(body.lines),
        global_discount=_discount_json(body.global_discount),
        issue_date=body.issue_date,
        payment_term_days=body.payment_term_days,
        currency=body.currency,
        notes=body.notes,
        invoice_number=body.invoice_number,
    )
    result = current_domain.process(command, asynchronous=False)
    return InvoiceIdResponse(invoice_id=result)


@invoice_router.put("/{invoice_id}/lines", response_model=StatusResponse)
async def revise_invoice(invoice_id: str, body: ReviseInvoiceRequest) -> StatusResponse:
    """Re-price a draft invoice."""
    command = ReviseInvoice(
        invoice_id=invoice_id,
        lines=_lines_json(body.lines),
        global_discount=_discount_json(body.global_discount),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="revised")


@invoice_router.put("/{invoice_id}/send", response_model=StatusResponse)
async def send_invoice(invoice_id: str) -> StatusResponse:
    current_domain.process(SendInvoice(invoice_id=invoice_id), asynchronous=False)
    return StatusResponse(status="sent")


@invoice_router.put("/{invoice_id}/overdue", response_model=StatusResponse)
async def mark_invoice_overdue(invoice_id: str) -> StatusResponse:
    current_domain.process(MarkInvoiceOverdue(invoice_id=invoice_id), asynchronous=False)
    return StatusResponse(status="overdue")


@invoice_router.put("/{invoice_id}/pay", response_model=StatusResponse)
async def mark_invoice_paid(invoice_id: str) -> StatusResponse:
    current_domain.process(MarkInvoicePaid(invoice_id=invoice_id), asynchronous=False)
    return StatusResponse(status="paid")


@invoice_router.put("/{invoice_id}/cancel", response_model=StatusResponse)
async def cancel_invoice(invoice_id: str, body: CancelInvoiceRequest) -> StatusResponse:
    """Cancel an invoice that has not been paid."""
    command = CancelInvoice(invoice_id=invoice_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")
