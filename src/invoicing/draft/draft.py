"""Invoice draft: the immutable value behind the invoice editor.

Every edit is a small action value; :func:`apply_edit` reduces the current
draft and an action into a new draft. Nothing is ever mutated in place.

Rules enforced here raise ``ValidationError`` (the session turns them into
refusals):
    - the last remaining service line cannot be removed
    - line edits must target an existing line and an editable field
"""

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from functools import singledispatch

from protean.exceptions import ValidationError

from invoicing.pricing.discount import DiscountSpec, GlobalDiscount
from invoicing.pricing.line import ServiceLine, new_service_line
from invoicing.pricing.totals import Derivation
from invoicing.settings import get_settings

EDITABLE_LINE_FIELDS = frozenset({"description", "quantity", "unit_price", "tax_rate", "product_id"})
EDITABLE_DETAIL_FIELDS = frozenset({"client_id", "issue_date", "payment_term_days", "currency", "notes"})


@dataclass(frozen=True)
class InvoiceDraft:
    lines: tuple[ServiceLine, ...] = ()
    global_discount: GlobalDiscount | None = None
    client_id: str | None = None
    issue_date: date | None = None
    payment_term_days: int | None = None
    currency: str = "EUR"
    notes: str | None = None

    @classmethod
    def blank(cls, **details) -> "InvoiceDraft":
        """A new draft holding a single default service line."""
        return cls(lines=(new_service_line(),), **details)

    @property
    def due_date(self) -> date | None:
        if self.issue_date is None:
            return None
        days = self.payment_term_days
        if days is None:
            days = get_settings().payment_term_days
        return self.issue_date + timedelta(days=days)

    def line(self, line_id: str) -> ServiceLine:
        for line in self.lines:
            if line.id == line_id:
                return line
        raise ValidationError({"line_id": [f"Service line {line_id} not found"]})

    def with_derivation(self, derivation: Derivation) -> "InvoiceDraft":
        """Fold derived lines and the derived global discount back in."""
        return replace(self, lines=derivation.lines, global_discount=derivation.global_discount)


# ---------------------------------------------------------------------------
# Edit actions
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AddLine:
    """Append a line, optionally pre-populated from a catalog product."""

    description: str = ""
    unit_price: float | str = 0.0
    tax_rate: float | str | None = None
    product_id: str | None = None


@dataclass(frozen=True)
class UpdateLine:
    """Set one or more raw fields of an existing line."""

    line_id: str
    changes: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SetLineDiscount:
    line_id: str
    discount: DiscountSpec | None = None


@dataclass(frozen=True)
class RemoveLine:
    line_id: str


@dataclass(frozen=True)
class SetGlobalDiscount:
    discount: GlobalDiscount | None = None


@dataclass(frozen=True)
class UpdateDetails:
    """Edit invoice header fields that do not take part in pricing."""

    changes: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------
def _replace_line(draft: InvoiceDraft, updated: ServiceLine) -> InvoiceDraft:
    return replace(draft, lines=tuple(updated if line.id == updated.id else line for line in draft.lines))


@singledispatch
def apply_edit(edit, draft: InvoiceDraft) -> InvoiceDraft:
    """Return the draft that results from applying ``edit`` to ``draft``."""
    raise ValidationError({"edit": [f"Unsupported edit: {type(edit).__name__}"]})


@apply_edit.register
def _(edit: AddLine, draft: InvoiceDraft) -> InvoiceDraft:
    line = new_service_line(
        description=edit.description,
        unit_price=edit.unit_price,
        tax_rate=edit.tax_rate,
        product_id=edit.product_id,
    )
    return replace(draft, lines=draft.lines + (line,))


@apply_edit.register
def _(edit: UpdateLine, draft: InvoiceDraft) -> InvoiceDraft:
    unknown = sorted(set(edit.changes) - EDITABLE_LINE_FIELDS)
    if unknown:
        raise ValidationError({"changes": [f"Field {name} is not editable" for name in unknown]})
    line = draft.line(edit.line_id)
    return _replace_line(draft, replace(line, **edit.changes))


@apply_edit.register
def _(edit: SetLineDiscount, draft: InvoiceDraft) -> InvoiceDraft:
    line = draft.line(edit.line_id)
    return _replace_line(draft, replace(line, discount=edit.discount))


@apply_edit.register
def _(edit: RemoveLine, draft: InvoiceDraft) -> InvoiceDraft:
    draft.line(edit.line_id)
    if len(draft.lines) <= 1:
        raise ValidationError({"lines": ["An invoice must keep at least one service line"]})
    return replace(draft, lines=tuple(line for line in draft.lines if line.id != edit.line_id))


@apply_edit.register
def _(edit: SetGlobalDiscount, draft: InvoiceDraft) -> InvoiceDraft:
    return replace(draft, global_discount=edit.discount)


@apply_edit.register
def _(edit: UpdateDetails, draft: InvoiceDraft) -> InvoiceDraft:
    unknown = sorted(set(edit.changes) - EDITABLE_DETAIL_FIELDS)
    if unknown:
        raise ValidationError({"changes": [f"Field {name} is not editable" for name in unknown]})
    return replace(draft, **edit.changes)
