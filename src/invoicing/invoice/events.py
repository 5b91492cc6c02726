"""Domain events for the Invoice aggregate.

All events are versioned, immutable facts representing invoice state changes.
"""

from protean.fields import Date, DateTime, Float, Identifier, Integer, String

from invoicing.domain import invoicing


@invoicing.event(part_of="Invoice")
class InvoiceGenerated:
    """A new invoice was generated from a priced draft."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    client_id = Identifier(required=True)
    invoice_number = String(required=True)
    line_count = Integer(required=True)
    subtotal = Float(required=True)
    tax_amount = Float(required=True)
    discount_amount = Float(default=0.0)
    total = Float(required=True)
    currency = String(max_length=3, required=True)
    generated_at = DateTime(required=True)


@invoicing.event(part_of="Invoice")
class InvoiceRevised:
    """The lines or global discount of a draft invoice were re-priced."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    line_count = Integer(required=True)
    subtotal = Float(required=True)
    tax_amount = Float(required=True)
    discount_amount = Float(default=0.0)
    total = Float(required=True)
    revised_at = DateTime(required=True)


@invoicing.event(part_of="Invoice")
class InvoiceSent:
    """An invoice was sent to the client."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    total = Float(required=True)
    due_date = Date()
    sent_at = DateTime(required=True)


@invoicing.event(part_of="Invoice")
class InvoiceMarkedOverdue:
    """A sent invoice passed its due date unpaid."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    due_date = Date()
    marked_at = DateTime(required=True)


@invoicing.event(part_of="Invoice")
class InvoicePaid:
    """An invoice was marked as paid."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    total = Float(required=True)
    paid_at = DateTime(required=True)


@invoicing.event(part_of="Invoice")
class InvoiceCancelled:
    """An invoice was cancelled."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    invoice_number = String(required=True)
    reason = String(required=True)
    cancelled_at = DateTime(required=True)
