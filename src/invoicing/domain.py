"""Invoicing bounded context: invoice drafting, pricing and lifecycle.

Derives line and invoice totals from editable drafts (pure pricing engine),
persists the derived record on the Invoice aggregate (CQRS) and drives the
Draft → Sent → Paid lifecycle.
"""

import structlog
from protean.domain import Domain

invoicing = Domain(name="invoicing")

logger = structlog.get_logger(__name__)
