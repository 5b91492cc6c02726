"""Invoice lifecycle: send, overdue, payment and cancellation commands."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from invoicing.domain import invoicing
from invoicing.invoice.invoice import Invoice

logger = structlog.get_logger(__name__)


@invoicing.command(part_of="Invoice")
class SendInvoice:
    invoice_id = Identifier(required=True)


@invoicing.command(part_of="Invoice")
class MarkInvoiceOverdue:
    invoice_id = Identifier(required=True)


@invoicing.command(part_of="Invoice")
class MarkInvoicePaid:
    invoice_id = Identifier(required=True)


@invoicing.command(part_of="Invoice")
class CancelInvoice:
    """Cancel a draft, sent or overdue invoice."""

    invoice_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@invoicing.command_handler(part_of=Invoice)
class InvoiceLifecycleHandler:
    @handle(SendInvoice)
    def send_invoice(self, command):
        repo = current_domain.repository_for(Invoice)
        invoice = repo.get(command.invoice_id)
        invoice.send()
        repo.add(invoice)
        logger.info("Invoice sent", invoice_id=str(invoice.id), invoice_number=invoice.invoice_number)

    @handle(MarkInvoiceOverdue)
    def mark_overdue(self, command):
        repo = current_domain.repository_for(Invoice)
        invoice = repo.get(command.invoice_id)
        invoice.mark_overdue()
        repo.add(invoice)
        logger.warning("Invoice overdue", invoice_id=str(invoice.id), due_date=str(invoice.due_date))

    @handle(MarkInvoicePaid)
    def mark_paid(self, command):
        repo = current_domain.repository_for(Invoice)
        invoice = repo.get(command.invoice_id)
        invoice.mark_paid()
        repo.add(invoice)
        logger.info("Invoice paid", invoice_id=str(invoice.id), total=invoice.total)

    @handle(CancelInvoice)
    def cancel_invoice(self, command):
        repo = current_domain.repository_for(Invoice)
        invoice = repo.get(command.invoice_id)
        invoice.cancel(reason=command.reason)
        repo.add(invoice)
        logger.info("Invoice cancelled", invoice_id=str(invoice.id), reason=command.reason)
