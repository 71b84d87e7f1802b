"""Dispatch reacts to order delivery events.

Keeps every dispatch record of an order in step with the order's delivery
status, including the rider details once one is assigned.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.logistics.dispatch import Dispatch, dispatches_for_order
from marketplace.order.events import OrderDelivered, OrderInTransit, RiderAssigned

logger = structlog.get_logger(__name__)


@marketplace.event_handler(part_of=Dispatch, stream_category="marketplace::order")
class OrderDispatchEventHandler:
    def _update(self, order_id, change):
        repo = current_domain.repository_for(Dispatch)
        dispatches = dispatches_for_order(order_id)
        if not dispatches:
            logger.info("No dispatch records for order", order_id=str(order_id))
            return

        for dispatch in dispatches:
            change(dispatch)
            repo.add(dispatch)

    @handle(RiderAssigned)
    def on_rider_assigned(self, event: RiderAssigned) -> None:
        self._update(event.order_id, lambda dispatch: dispatch.assign(event.rider_name, event.rider_phone))

    @handle(OrderInTransit)
    def on_order_in_transit(self, event: OrderInTransit) -> None:
        self._update(event.order_id, lambda dispatch: dispatch.mark_in_transit())

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        self._update(event.order_id, lambda dispatch: dispatch.mark_delivered())
