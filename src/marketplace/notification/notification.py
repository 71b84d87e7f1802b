"""Seller notification (CQRS) — a write-once "you made a sale" message.

One notification is fanned out per distinct seller in an order. It has no
lifecycle beyond being created and listed.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.utils.money import D


class NotificationKind(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@marketplace.aggregate
class SellerNotification:
    seller_id = Identifier(required=True)
    order_id = Identifier(required=True)
    message = String(required=True, max_length=1000)
    kind = String(choices=NotificationKind, default=NotificationKind.SUCCESS.value)
    read = Boolean(default=False)
    created_at = DateTime()

    @classmethod
    def for_sale(cls, seller_id, order_id, buyer_name, amount, item_names):
        """Build the "New Order!" notice a seller receives at checkout."""
        message = f"New Order! {buyer_name or 'A buyer'} paid ₦{D(amount):,.2f} for: {', '.join(item_names)}."
        return cls(
            seller_id=seller_id,
            order_id=order_id,
            message=message,
            kind=NotificationKind.SUCCESS.value,
            read=False,
            created_at=datetime.now(UTC),
        )


def notifications_for(seller_id):
    """A seller's notifications, newest first."""
    return (
        current_domain.repository_for(SellerNotification)
        ._dao.query.filter(seller_id=str(seller_id))
        .order_by("-created_at")
        .all()
        .items
    )
