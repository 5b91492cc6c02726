"""Invoice numbering: ``INV-202610-0042`` style identifiers."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import uuid4

from invoicing.settings import get_settings


@dataclass(frozen=True)
class InvoiceNumbering:
    prefix: str = "INV"
    separator: str = "-"
    padding: int = 4
    include_date: bool = True
    suffix: str | None = None

    @classmethod
    def from_settings(cls) -> "InvoiceNumbering":
        settings = get_settings()
        return cls(
            prefix=settings.number_prefix,
            separator=settings.number_separator,
            padding=settings.number_padding,
            include_date=settings.number_include_date,
        )


def format_invoice_number(sequence: int, numbering: InvoiceNumbering | None = None, on: date | None = None) -> str:
    """Render ``sequence`` as an invoice number.

    Parts are prefix, an optional ``YYYYMM`` block for ``on`` (default: today),
    the zero-padded sequence and an optional suffix. Empty parts are skipped.
    """
    numbering = numbering or InvoiceNumbering.from_settings()
    on = on or datetime.now(UTC).date()

    parts = [numbering.prefix]
    if numbering.include_date:
        parts.append(on.strftime("%Y%m"))
    parts.append(str(sequence).zfill(numbering.padding))
    parts.append(numbering.suffix)
    return numbering.separator.join(part for part in parts if part)


def next_invoice_number(numbering: InvoiceNumbering | None = None, on: date | None = None) -> str:
    """Invoice number with a random sequence, for callers that keep no counter."""
    numbering = numbering or InvoiceNumbering.from_settings()
    sequence = uuid4().int % (10 ** max(numbering.padding, 1))
    return format_invoice_number(sequence, numbering, on)
