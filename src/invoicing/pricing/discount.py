"""Discount specifications and the discount resolver.

The same resolver serves line discounts (basis: quantity × unit price) and
the global discount (basis: subtotal + tax).
"""

import math
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Context, Decimal
from enum import Enum

from invoicing.pricing.coercion import to_number

_CENT = Decimal("0.01")
# Wide enough to hold any finite float to the cent (max float has 309 digits).
_MONEY = Context(prec=400, rounding=ROUND_HALF_UP)


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class DiscountSpec:
    """A discount as entered by the user.

    ``value`` is a percentage or a fixed amount depending on ``type``.
    ``amount`` is derived: the last deduction computed for it, kept for display.
    """

    type: str | DiscountType = DiscountType.PERCENTAGE.value
    value: float | str = 0.0
    amount: float = 0.0
    description: str | None = None

    @property
    def discount_type(self) -> DiscountType | None:
        """The parsed discount type, or None when ``type`` is not recognised."""
        raw = self.type.value if isinstance(self.type, DiscountType) else self.type
        try:
            return DiscountType(raw)
        except ValueError:
            return None

    def with_amount(self, amount: float) -> "DiscountSpec":
        if amount == self.amount:
            return self
        return replace(self, amount=amount)

    def to_dict(self) -> dict:
        discount_type = self.discount_type
        return {
            "type": discount_type.value if discount_type else str(self.type),
            "value": to_number(self.value),
            "amount": self.amount,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "DiscountSpec | None":
        if not data:
            return None
        return cls(
            type=data.get("type", DiscountType.PERCENTAGE.value),
            value=data.get("value", 0.0),
            amount=data.get("amount", 0.0) or 0.0,
            description=data.get("description"),
        )


# Applied once to the post-tax grand total instead of a single line.
GlobalDiscount = DiscountSpec


@dataclass(frozen=True)
class DiscountResolution:
    deduction: float
    net_amount: float


def round_half_up(amount: float) -> float:
    """Round to two decimals, halves away from zero.

    Non-finite amounts are returned unchanged.
    """
    if not math.isfinite(amount):
        return amount
    return float(Decimal(repr(amount)).quantize(_CENT, context=_MONEY))


def resolve_discount(basis: float, spec: DiscountSpec | None = None) -> DiscountResolution:
    """Compute the deduction ``spec`` takes from ``basis``.

    The deduction is clamped to the basis so the net amount is never
    negative. A missing spec, a non-positive value, an unknown type or a
    non-positive basis all resolve to "no discount".
    """
    if spec is None or basis <= 0:
        return DiscountResolution(deduction=0.0, net_amount=basis)

    value = to_number(spec.value)
    discount_type = spec.discount_type
    if value <= 0 or discount_type is None:
        return DiscountResolution(deduction=0.0, net_amount=basis)

    if discount_type is DiscountType.PERCENTAGE:
        # An overflowing percentage takes the whole basis.
        deduction = min(round_half_up(basis * value / 100), basis)
        return DiscountResolution(deduction=deduction, net_amount=max(0.0, basis - deduction))

    deduction = min(value, basis)
    return DiscountResolution(deduction=deduction, net_amount=basis - deduction)
