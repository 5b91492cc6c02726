"""Aggregate calculator: invoice totals and the global discount.

``derive_totals`` is the single entry point collaborators use. It is pure:
the input lines and discount are never mutated, and the result carries the
derived lines and derived global discount alongside the totals.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from invoicing.pricing.coercion import finite_or_zero
from invoicing.pricing.discount import GlobalDiscount, resolve_discount
from invoicing.pricing.line import ServiceLine, compute_line


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float = 0.0
    tax_total: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class Derivation:
    """Output of one derivation pass."""

    lines: tuple[ServiceLine, ...]
    subtotal: float
    tax_total: float
    total: float
    global_discount: GlobalDiscount | None = None
    line_taxes: tuple[float, ...] = ()

    @property
    def totals(self) -> InvoiceTotals:
        return InvoiceTotals(subtotal=self.subtotal, tax_total=self.tax_total, total=self.total)

    @property
    def global_deduction(self) -> float:
        return self.global_discount.amount if self.global_discount else 0.0

    def as_record(self) -> dict:
        """Flat record for persistence, preview and payment collaborators."""
        items = []
        for line, tax_amount in zip(self.lines, self.line_taxes, strict=True):
            item = line.to_dict()
            item["tax_amount"] = tax_amount
            item["discount_amount"] = line.discount.amount if line.discount else 0.0
            items.append(item)

        return {
            "items": items,
            "subtotal": self.subtotal,
            "tax_amount": self.tax_total,
            "discount": self.global_discount.to_dict() if self.global_discount else None,
            "total_amount": self.total,
        }


def derive_totals(lines: Iterable[ServiceLine], global_discount: GlobalDiscount | None = None) -> Derivation:
    """Run the line calculator over ``lines`` and apply ``global_discount``.

    The global discount is resolved against ``subtotal + tax_total``. With no
    lines the basis is zero, so any global discount deducts nothing.
    """
    derived_lines = []
    line_taxes = []
    subtotal = 0.0
    tax_total = 0.0

    for line in lines:
        computation = compute_line(line)
        derived_lines.append(computation.line)
        line_taxes.append(computation.tax_amount)
        subtotal += computation.net_amount
        tax_total += computation.tax_amount

    subtotal = finite_or_zero(subtotal)
    tax_total = finite_or_zero(tax_total)
    raw_total = finite_or_zero(subtotal + tax_total)
    resolution = resolve_discount(raw_total, global_discount)
    derived_discount = global_discount.with_amount(resolution.deduction) if global_discount else None

    return Derivation(
        lines=tuple(derived_lines),
        subtotal=subtotal,
        tax_total=tax_total,
        total=max(0.0, resolution.net_amount),
        global_discount=derived_discount,
        line_taxes=tuple(line_taxes),
    )
