"""Service lines and the line calculator."""

from dataclasses import dataclass, field, replace
from uuid import uuid4

from invoicing.pricing.coercion import finite_or_zero, to_number
from invoicing.pricing.discount import DiscountSpec, resolve_discount
from invoicing.settings import get_settings


@dataclass(frozen=True)
class ServiceLine:
    """One billable line of an invoice draft.

    ``quantity``, ``unit_price`` and ``tax_rate`` hold whatever the editor
    supplied (number or text) and are only ever read through the coercion
    boundary. ``total`` is derived: the net amount after the line discount,
    before tax.
    """

    id: str = field(default_factory=lambda: str(uuid4()))
    description: str = ""
    quantity: float | str = 1.0
    unit_price: float | str = 0.0
    tax_rate: float | str = 20.0
    discount: DiscountSpec | None = None
    total: float = 0.0
    product_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "quantity": to_number(self.quantity),
            "unit_price": to_number(self.unit_price),
            "tax_rate": to_number(self.tax_rate),
            "discount": self.discount.to_dict() if self.discount else None,
            "total": self.total,
            "product_id": self.product_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ServiceLine":
        settings = get_settings()
        kwargs = {
            "description": data.get("description") or "",
            "quantity": data.get("quantity", settings.default_quantity),
            "unit_price": data.get("unit_price", 0.0),
            "tax_rate": data.get("tax_rate", settings.default_tax_rate),
            "discount": DiscountSpec.from_dict(data.get("discount")),
            "total": data.get("total", 0.0) or 0.0,
            "product_id": data.get("product_id"),
        }
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)


def new_service_line(description="", unit_price=0.0, tax_rate=None, product_id=None) -> ServiceLine:
    """Create a blank line with the configured defaults.

    A catalog product may pre-populate the price and tax rate; those values
    are treated exactly like typed input.
    """
    settings = get_settings()
    return ServiceLine(
        description=description,
        quantity=settings.default_quantity,
        unit_price=unit_price,
        tax_rate=settings.default_tax_rate if tax_rate is None else tax_rate,
        product_id=product_id,
    )


@dataclass(frozen=True)
class LineComputation:
    line: ServiceLine
    raw_amount: float
    deduction: float
    net_amount: float
    tax_amount: float


def compute_line(line: ServiceLine) -> LineComputation:
    """Derive a line's net amount, tax amount and display total.

    Negative quantities or prices are not clamped; such credit lines take no
    discount. A product that overflows the float range counts as zero. The
    returned line is ``line`` itself when none of its derived fields changed.
    """
    quantity = to_number(line.quantity)
    unit_price = to_number(line.unit_price)
    tax_rate = to_number(line.tax_rate)

    raw_amount = finite_or_zero(quantity * unit_price)
    resolution = resolve_discount(raw_amount, line.discount)
    net_amount = resolution.net_amount
    tax_amount = finite_or_zero(net_amount * tax_rate / 100)

    discount = line.discount.with_amount(resolution.deduction) if line.discount else None
    if discount is line.discount and net_amount == line.total:
        derived = line
    else:
        derived = replace(line, discount=discount, total=net_amount)

    return LineComputation(
        line=derived,
        raw_amount=raw_amount,
        deduction=resolution.deduction,
        net_amount=net_amount,
        tax_amount=tax_amount,
    )
