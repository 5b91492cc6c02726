"""Tests for Invoice aggregate creation, pricing and lifecycle."""

from datetime import date

import pytest
from invoicing.invoice.events import (
    InvoiceCancelled,
    InvoiceGenerated,
    InvoiceMarkedOverdue,
    InvoicePaid,
    InvoiceRevised,
    InvoiceSent,
)
from invoicing.invoice.invoice import Invoice, InvoiceStatus
from invoicing.pricing.discount import DiscountSpec
from invoicing.pricing.line import ServiceLine
from protean.exceptions import ValidationError

_CONSULTING = {
    "description": "Consulting (day)",
    "quantity": 2,
    "unit_price": 100,
    "tax_rate": 20,
    "discount": {"type": "percentage", "value": 10},
}


def _make_invoice(**overrides):
    defaults = {
        "client_id": "client-001",
        "lines_data": [dict(_CONSULTING), dict(_CONSULTING)],
        "global_discount": {"type": "fixed", "value": 50},
        "issue_date": date(2026, 10, 1),
    }
    defaults.update(overrides)
    return Invoice.create(**defaults)


class TestInvoiceCreation:
    def test_create_sets_client_id(self):
        invoice = _make_invoice()
        assert str(invoice.client_id) == "client-001"

    def test_create_generates_invoice_number(self):
        invoice = _make_invoice()
        assert invoice.invoice_number.startswith("INV-202610-")

    def test_create_keeps_explicit_invoice_number(self):
        invoice = _make_invoice(invoice_number="INV-2026-0001")
        assert invoice.invoice_number == "INV-2026-0001"

    def test_create_calculates_subtotal(self):
        invoice = _make_invoice()
        assert invoice.subtotal == pytest.approx(360.0)

    def test_create_calculates_tax_amount(self):
        invoice = _make_invoice()
        assert invoice.tax_amount == pytest.approx(72.0)

    def test_create_applies_global_discount_after_tax(self):
        invoice = _make_invoice()
        assert invoice.total == pytest.approx(382.0)
        assert invoice.discount.amount == pytest.approx(50.0)
        assert invoice.discount.discount_type == "fixed"

    def test_create_without_global_discount(self):
        invoice = _make_invoice(global_discount=None)
        assert invoice.discount is None
        assert invoice.total == pytest.approx(432.0)

    def test_create_accepts_service_line_values(self):
        invoice = _make_invoice(
            lines_data=[ServiceLine(quantity="3", unit_price="10", tax_rate=0)],
            global_discount=DiscountSpec("percentage", 10),
        )
        assert invoice.subtotal == pytest.approx(30.0)
        assert invoice.total == pytest.approx(27.0)

    def test_create_sets_status_to_draft(self):
        invoice = _make_invoice()
        assert invoice.status == InvoiceStatus.DRAFT.value

    def test_create_derives_due_date_from_default_term(self):
        invoice = _make_invoice()
        assert invoice.payment_term_days == 30
        assert invoice.due_date == date(2026, 10, 31)

    def test_create_derives_due_date_from_custom_term(self):
        invoice = _make_invoice(payment_term_days=0)
        assert invoice.due_date == date(2026, 10, 1)

    def test_create_requires_lines(self):
        with pytest.raises(ValidationError):
            _make_invoice(lines_data=[])

    def test_create_raises_event(self):
        invoice = _make_invoice()
        assert len(invoice._events) == 1
        event = invoice._events[0]
        assert isinstance(event, InvoiceGenerated)
        assert event.total == pytest.approx(382.0)
        assert event.discount_amount == pytest.approx(50.0)
        assert event.line_count == 2


class TestUnknownDiscountTypes:
    _UNKNOWN = "loyalty-programme-voucher-2026"

    def test_unknown_line_discount_type_prices_without_discount(self):
        line = dict(_CONSULTING, discount={"type": self._UNKNOWN, "value": 10})
        invoice = _make_invoice(lines_data=[line], global_discount=None)
        item = invoice.line_items[0]
        assert item.discount_type is None
        assert item.discount_amount == 0.0
        assert invoice.total == pytest.approx(240.0)

    def test_unknown_global_discount_type_prices_without_discount(self):
        invoice = _make_invoice(global_discount={"type": self._UNKNOWN, "value": 50})
        assert invoice.discount.discount_type is None
        assert invoice.discount.amount == 0.0
        assert invoice.total == pytest.approx(432.0)

    def test_known_line_discount_type_is_stored(self):
        invoice = _make_invoice()
        assert {item.discount_type for item in invoice.line_items} == {"percentage"}


class TestInvoiceRevision:
    def test_revise_reprices_draft(self):
        invoice = _make_invoice()
        invoice._events.clear()
        invoice.revise(lines_data=[dict(_CONSULTING)], global_discount=None)
        assert len(invoice.line_items) == 1
        assert invoice.subtotal == pytest.approx(180.0)
        assert invoice.total == pytest.approx(216.0)
        assert invoice.discount is None

    def test_revise_raises_event(self):
        invoice = _make_invoice()
        invoice._events.clear()
        invoice.revise(lines_data=[dict(_CONSULTING)])
        assert len(invoice._events) == 1
        assert isinstance(invoice._events[0], InvoiceRevised)

    def test_cannot_revise_sent_invoice(self):
        invoice = _make_invoice()
        invoice.send()
        with pytest.raises(ValidationError):
            invoice.revise(lines_data=[dict(_CONSULTING)])

    def test_cannot_revise_to_no_lines(self):
        invoice = _make_invoice()
        with pytest.raises(ValidationError):
            invoice.revise(lines_data=[])


class TestInvoiceSend:
    def test_send_sets_status(self):
        invoice = _make_invoice()
        invoice.send()
        assert invoice.status == InvoiceStatus.SENT.value
        assert invoice.sent_at is not None

    def test_send_raises_event(self):
        invoice = _make_invoice()
        invoice._events.clear()
        invoice.send()
        assert len(invoice._events) == 1
        assert isinstance(invoice._events[0], InvoiceSent)

    def test_cannot_send_twice(self):
        invoice = _make_invoice()
        invoice.send()
        with pytest.raises(ValidationError):
            invoice.send()


class TestInvoiceOverdue:
    def test_mark_overdue_after_send(self):
        invoice = _make_invoice()
        invoice.send()
        invoice._events.clear()
        invoice.mark_overdue()
        assert invoice.status == InvoiceStatus.OVERDUE.value
        assert isinstance(invoice._events[0], InvoiceMarkedOverdue)

    def test_cannot_mark_draft_overdue(self):
        invoice = _make_invoice()
        with pytest.raises(ValidationError):
            invoice.mark_overdue()


class TestInvoiceMarkPaid:
    def test_mark_paid_sets_status(self):
        invoice = _make_invoice()
        invoice.send()
        invoice._events.clear()
        invoice.mark_paid()
        assert invoice.status == InvoiceStatus.PAID.value
        assert invoice.paid_at is not None
        assert isinstance(invoice._events[0], InvoicePaid)

    def test_overdue_invoice_can_be_paid(self):
        invoice = _make_invoice()
        invoice.send()
        invoice.mark_overdue()
        invoice.mark_paid()
        assert invoice.status == InvoiceStatus.PAID.value

    def test_cannot_pay_draft_invoice(self):
        invoice = _make_invoice()
        with pytest.raises(ValidationError):
            invoice.mark_paid()


class TestInvoiceCancel:
    def test_cancel_draft_invoice(self):
        invoice = _make_invoice()
        invoice._events.clear()
        invoice.cancel(reason="Duplicate")
        assert invoice.status == InvoiceStatus.CANCELLED.value
        assert invoice.cancellation_reason == "Duplicate"
        assert isinstance(invoice._events[0], InvoiceCancelled)

    def test_cancel_overdue_invoice(self):
        invoice = _make_invoice()
        invoice.send()
        invoice.mark_overdue()
        invoice.cancel(reason="Written off")
        assert invoice.status == InvoiceStatus.CANCELLED.value

    def test_cannot_cancel_paid_invoice(self):
        invoice = _make_invoice()
        invoice.send()
        invoice.mark_paid()
        with pytest.raises(ValidationError):
            invoice.cancel(reason="Too late")
