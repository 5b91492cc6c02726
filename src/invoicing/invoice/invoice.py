"""Invoice aggregate (CQRS): the persisted, priced invoice.

An invoice is generated from a draft's service lines and global discount.
Pricing always goes through ``derive_totals``: the aggregate stores the
derived flat record (line totals, per-line discount and tax amounts,
subtotal, tax amount, grand total) and never computes amounts of its own.

State Machine:
    DRAFT → SENT → PAID
    SENT → OVERDUE → PAID
    DRAFT / SENT / OVERDUE → CANCELLED
"""

from datetime import UTC, date, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from invoicing.domain import invoicing
from invoicing.invoice.events import (
    InvoiceCancelled,
    InvoiceGenerated,
    InvoiceMarkedOverdue,
    InvoicePaid,
    InvoiceRevised,
    InvoiceSent,
)
from invoicing.invoice.numbering import next_invoice_number
from invoicing.pricing.discount import DiscountSpec
from invoicing.pricing.line import ServiceLine
from invoicing.pricing.totals import Derivation, derive_totals
from invoicing.settings import get_settings


class InvoiceStatus(Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    OVERDUE = "Overdue"
    PAID = "Paid"
    CANCELLED = "Cancelled"


_VALID_TRANSITIONS = {
    InvoiceStatus.DRAFT: {InvoiceStatus.SENT, InvoiceStatus.CANCELLED},
    InvoiceStatus.SENT: {InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED},
    InvoiceStatus.OVERDUE: {InvoiceStatus.PAID, InvoiceStatus.CANCELLED},
    InvoiceStatus.PAID: set(),  # Terminal
    InvoiceStatus.CANCELLED: set(),  # Terminal
}


def _as_line(data) -> ServiceLine:
    return data if isinstance(data, ServiceLine) else ServiceLine.from_dict(data)


def _as_discount(data) -> DiscountSpec | None:
    return data if isinstance(data, DiscountSpec) or data is None else DiscountSpec.from_dict(data)


def _resolved_type(spec: DiscountSpec | None) -> str | None:
    """Stored discount type; unrecognised types took no discount and are kept as None."""
    if spec is None or spec.discount_type is None:
        return None
    return spec.discount_type.value


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@invoicing.value_object(part_of="Invoice")
class AppliedDiscount:
    """The global discount as it was applied to the grand total."""

    discount_type = String(max_length=20)
    value = Float(default=0.0)
    amount = Float(default=0.0)
    description = String(max_length=255)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@invoicing.entity(part_of="Invoice")
class InvoiceLineItem:
    """A priced service line on an invoice.

    ``total`` is the net amount after the line discount and before tax;
    ``tax_amount`` is reported separately.
    """

    description = String(max_length=500, default="")
    product_id = Identifier()
    quantity = Float(default=0.0)
    unit_price = Float(default=0.0)
    tax_rate = Float(default=0.0)
    discount_type = String(max_length=20)
    discount_value = Float(default=0.0)
    discount_amount = Float(default=0.0)
    tax_amount = Float(default=0.0)
    total = Float(default=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@invoicing.aggregate
class Invoice:
    client_id = Identifier(required=True)
    invoice_number = String(required=True, max_length=50)
    line_items = HasMany(InvoiceLineItem)
    discount = ValueObject(AppliedDiscount)
    subtotal = Float(default=0.0)
    tax_amount = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="EUR")
    issue_date = Date()
    payment_term_days = Integer(min_value=0)
    due_date = Date()
    notes = Text()
    status = String(
        choices=InvoiceStatus,
        default=InvoiceStatus.DRAFT.value,
    )
    cancellation_reason = String(max_length=500)
    sent_at = DateTime()
    paid_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    def _assert_can_transition(self, target_status: InvoiceStatus) -> None:
        current = InvoiceStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _apply_derivation(self, derivation: Derivation) -> None:
        for item in list(self.line_items):
            self.remove_line_items(item)

        for line, tax_amount in zip(derivation.lines, derivation.line_taxes, strict=True):
            record = line.to_dict()
            discount = record["discount"] or {}
            self.add_line_items(
                InvoiceLineItem(
                    description=record["description"],
                    product_id=record["product_id"],
                    quantity=record["quantity"],
                    unit_price=record["unit_price"],
                    tax_rate=record["tax_rate"],
                    discount_type=_resolved_type(line.discount),
                    discount_value=discount.get("value", 0.0),
                    discount_amount=discount.get("amount", 0.0),
                    tax_amount=tax_amount,
                    total=line.total,
                )
            )

        if derivation.global_discount:
            applied = derivation.global_discount.to_dict()
            self.discount = AppliedDiscount(
                discount_type=_resolved_type(derivation.global_discount),
                value=applied["value"],
                amount=applied["amount"],
                description=applied["description"],
            )
        else:
            self.discount = None
        self.subtotal = derivation.subtotal
        self.tax_amount = derivation.tax_total
        self.total = derivation.total

    @classmethod
    def create(
        cls,
        client_id: str,
        lines_data: list,
        global_discount=None,
        issue_date: date | None = None,
        payment_term_days: int | None = None,
        currency: str = "EUR",
        notes: str | None = None,
        invoice_number: str | None = None,
    ):
        """Create a draft invoice priced from service lines.

        Args:
            client_id: The client being invoiced.
            lines_data: ServiceLine values or dicts with description, quantity,
                        unit_price, tax_rate and an optional discount dict.
            global_discount: DiscountSpec or dict applied after tax.
        """
        if not lines_data:
            raise ValidationError({"line_items": ["An invoice needs at least one service line"]})

        now = datetime.now(UTC)
        issue_date = issue_date or now.date()
        if payment_term_days is None:
            payment_term_days = get_settings().payment_term_days
        invoice_number = invoice_number or next_invoice_number(on=issue_date)

        derivation = derive_totals([_as_line(data) for data in lines_data], _as_discount(global_discount))

        invoice = cls(
            client_id=client_id,
            invoice_number=invoice_number,
            currency=currency,
            issue_date=issue_date,
            payment_term_days=payment_term_days,
            due_date=issue_date + timedelta(days=payment_term_days),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        invoice._apply_derivation(derivation)

        invoice.raise_(
            InvoiceGenerated(
                invoice_id=str(invoice.id),
                client_id=str(client_id),
                invoice_number=invoice_number,
                line_count=len(derivation.lines),
                subtotal=derivation.subtotal,
                tax_amount=derivation.tax_total,
                discount_amount=derivation.global_deduction,
                total=derivation.total,
                currency=currency,
                generated_at=now,
            )
        )
        return invoice

    def revise(self, lines_data: list, global_discount=None) -> None:
        """Re-price a draft invoice from a new set of lines and global discount."""
        if InvoiceStatus(self.status) != InvoiceStatus.DRAFT:
            raise ValidationError({"status": ["Only draft invoices can be revised"]})
        if not lines_data:
            raise ValidationError({"line_items": ["An invoice needs at least one service line"]})

        derivation = derive_totals([_as_line(data) for data in lines_data], _as_discount(global_discount))
        self._apply_derivation(derivation)
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            InvoiceRevised(
                invoice_id=str(self.id),
                line_count=len(derivation.lines),
                subtotal=derivation.subtotal,
                tax_amount=derivation.tax_total,
                discount_amount=derivation.global_deduction,
                total=derivation.total,
                revised_at=now,
            )
        )

    def send(self) -> None:
        """Send the invoice to the client."""
        self._assert_can_transition(InvoiceStatus.SENT)
        now = datetime.now(UTC)
        self.status = InvoiceStatus.SENT.value
        self.sent_at = now
        self.updated_at = now
        self.raise_(
            InvoiceSent(
                invoice_id=str(self.id),
                invoice_number=self.invoice_number,
                total=self.total,
                due_date=self.due_date,
                sent_at=now,
            )
        )

    def mark_overdue(self) -> None:
        """Flag a sent invoice as overdue."""
        self._assert_can_transition(InvoiceStatus.OVERDUE)
        now = datetime.now(UTC)
        self.status = InvoiceStatus.OVERDUE.value
        self.updated_at = now
        self.raise_(
            InvoiceMarkedOverdue(
                invoice_id=str(self.id),
                invoice_number=self.invoice_number,
                due_date=self.due_date,
                marked_at=now,
            )
        )

    def mark_paid(self) -> None:
        """Mark the invoice as paid."""
        self._assert_can_transition(InvoiceStatus.PAID)
        now = datetime.now(UTC)
        self.status = InvoiceStatus.PAID.value
        self.paid_at = now
        self.updated_at = now
        self.raise_(
            InvoicePaid(
                invoice_id=str(self.id),
                invoice_number=self.invoice_number,
                total=self.total,
                paid_at=now,
            )
        )

    def cancel(self, reason: str) -> None:
        """Cancel the invoice."""
        self._assert_can_transition(InvoiceStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = InvoiceStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now
        self.raise_(
            InvoiceCancelled(
                invoice_id=str(self.id),
                invoice_number=self.invoice_number,
                reason=reason,
                cancelled_at=now,
            )
        )
