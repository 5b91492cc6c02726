"""Invoice generation and revision: commands and handler."""

import json

from protean import handle
from protean.fields import Date, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from invoicing.domain import invoicing
from invoicing.invoice.invoice import Invoice


def _load(payload):
    return json.loads(payload) if isinstance(payload, str) else payload


@invoicing.command(part_of="Invoice")
class GenerateInvoice:
    """Generate a new draft invoice from priced service lines."""

    client_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of {description, quantity, unit_price, tax_rate, discount}
    global_discount = Text()  # JSON: {type, value, description}
    issue_date = Date()
    payment_term_days = Integer(min_value=0)
    currency = String(max_length=3, default="EUR")
    notes = Text()
    invoice_number = String(max_length=50)


@invoicing.command(part_of="Invoice")
class ReviseInvoice:
    """Re-price a draft invoice with new lines and global discount."""

    invoice_id = Identifier(required=True)
    lines = Text(required=True)
    global_discount = Text()


@invoicing.command_handler(part_of=Invoice)
class GenerateInvoiceHandler:
    @handle(GenerateInvoice)
    def generate_invoice(self, command):
        invoice = Invoice.create(
            client_id=command.client_id,
            lines_data=_load(command.lines),
            global_discount=_load(command.global_discount) if command.global_discount else None,
            issue_date=command.issue_date,
            payment_term_days=command.payment_term_days,
            currency=command.currency or "EUR",
            notes=command.notes,
            invoice_number=command.invoice_number,
        )
        current_domain.repository_for(Invoice).add(invoice)
        return str(invoice.id)

    @handle(ReviseInvoice)
    def revise_invoice(self, command):
        repo = current_domain.repository_for(Invoice)
        invoice = repo.get(command.invoice_id)
        invoice.revise(
            lines_data=_load(command.lines),
            global_discount=_load(command.global_discount) if command.global_discount else None,
        )
        repo.add(invoice)
