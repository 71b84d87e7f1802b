"""Escrow settlement: Payment reacts to the buyer confirming receipt.

Payments are matched to the completed order by their ``order_id``, so a
seller with several open orders only gets paid for the one that completed.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.order.events import OrderCompleted
from marketplace.payment.payment import MerchantBalance, Payment, PaymentStatus, get_or_open_balance

logger = structlog.get_logger(__name__)


@marketplace.event_handler(part_of=Payment, stream_category="marketplace::order")
class EscrowSettlementHandler:
    @handle(OrderCompleted)
    def on_order_completed(self, event: OrderCompleted) -> None:
        """Release every held payment for the completed order."""
        payment_repo = current_domain.repository_for(Payment)
        balance_repo = current_domain.repository_for(MerchantBalance)

        held = payment_repo._dao.query.filter(
            order_id=str(event.order_id),
            status=PaymentStatus.HELD.value,
        ).all()
        if not held or not held.items:
            logger.info("No held payments for completed order", order_id=str(event.order_id))
            return

        for payment in held.items:
            payment.release()
            payment_repo.add(payment)

            balance = get_or_open_balance(balance_repo, payment.seller_id)
            balance.release(payment.amount)
            balance_repo.add(balance)

            logger.info(
                "Funds released to seller",
                order_id=str(event.order_id),
                seller_id=str(payment.seller_id),
                amount=payment.amount,
            )
