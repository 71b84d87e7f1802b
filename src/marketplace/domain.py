"""Marketplace bounded context — campus buy/sell cart, checkout and receipts.

Handles the buyer's shopping cart (CQRS), order placement with per-seller
fan-out, and the event-sourced order/receipt lifecycle from placement to the
buyer's delivery confirmation.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
