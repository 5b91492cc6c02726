"""Pydantic request/response schemas for the Invoicing API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands and the pricing engine's values.
"""

from datetime import date

from pydantic import BaseModel, Field

from invoicing.pricing.discount import DiscountSpec
from invoicing.pricing.line import ServiceLine


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class DiscountSchema(BaseModel):
    type: str = "percentage"
    value: float | str = 0.0
    description: str | None = None

    def to_spec(self) -> DiscountSpec:
        return DiscountSpec(type=self.type, value=self.value, description=self.description)


class ServiceLineSchema(BaseModel):
    id: str | None = None
    description: str = ""
    # Raw editor input: numbers or text, coerced by the pricing engine
    quantity: float | str = 1
    unit_price: float | str = 0
    tax_rate: float | str = 20
    discount: DiscountSchema | None = None
    product_id: str | None = None

    def to_line(self) -> ServiceLine:
        return ServiceLine.from_dict(self.model_dump(exclude_none=True))


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class PreviewInvoiceRequest(BaseModel):
    lines: list[ServiceLineSchema]
    global_discount: DiscountSchema | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "lines": [
                        {
                            "description": "Consulting (day)",
                            "quantity": 2,
                            "unit_price": 100,
                            "tax_rate": 20,
                            "discount": {"type": "percentage", "value": 10},
                        }
                    ],
                    "global_discount": {"type": "fixed", "value": 50},
                }
            ]
        }
    }


class GenerateInvoiceRequest(BaseModel):
    client_id: str
    lines: list[ServiceLineSchema] = Field(min_length=1)
    global_discount: DiscountSchema | None = None
    issue_date: date | None = None
    payment_term_days: int | None = Field(default=None, ge=0)
    currency: str = "EUR"
    notes: str | None = None
    invoice_number: str | None = None


class ReviseInvoiceRequest(BaseModel):
    lines: list[ServiceLineSchema] = Field(min_length=1)
    global_discount: DiscountSchema | None = None


class CancelInvoiceRequest(BaseModel):
    reason: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class PricedLineResponse(BaseModel):
    id: str
    description: str
    quantity: float
    unit_price: float
    tax_rate: float
    discount_amount: float
    tax_amount: float
    total: float


class InvoicePreviewResponse(BaseModel):
    lines: list[PricedLineResponse]
    subtotal: float
    tax_total: float
    discount_amount: float
    total: float


class InvoiceIdResponse(BaseModel):
    invoice_id: str


class StatusResponse(BaseModel):
    status: str
