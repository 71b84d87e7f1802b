"""Order status tracker — a live, monotonic view of one order's progress.

The tracker subscribes to the status feed for its order and renders each
update as an index into ``STATUS_SEQUENCE``. It never moves backwards: an
update whose index is lower than one already reported is treated as stale
and ignored. It does not check that transitions happen in order.

    with OrderStatusTracker(order_id) as tracker:
        tracker.add_listener(lambda index, status: ...)
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.order.status import STATUS_SEQUENCE, status_index
from marketplace.projections.receipt_view import ReceiptView
from marketplace.tracking.feed import status_feed

logger = structlog.get_logger(__name__)


class OrderStatusTracker:
    def __init__(self, order_id, feed=None, listener=None):
        self.order_id = str(order_id)
        self.index = 0
        self._listeners = [listener] if listener else []
        self._feed = feed if feed is not None else status_feed
        self._unsubscribe = self._feed.subscribe(self.order_id, self._on_update)

        try:
            receipt = current_domain.repository_for(ReceiptView).get(self.order_id)
        except ObjectNotFoundError:
            receipt = None
        if receipt is not None:
            self._on_update(receipt)

    @property
    def status(self):
        return STATUS_SEQUENCE[self.index]

    @property
    def is_open(self):
        return self._unsubscribe is not None

    def add_listener(self, listener):
        self._listeners.append(listener)

    def _on_update(self, receipt):
        raw = receipt.get("status") if isinstance(receipt, dict) else getattr(receipt, "status", None)
        index = status_index(raw)
        if index < self.index:
            logger.debug(
                "Ignoring stale status update",
                order_id=self.order_id,
                reported=STATUS_SEQUENCE[self.index],
                received=raw,
            )
            return

        self.index = index
        for listener in list(self._listeners):
            listener(self.index, self.status)

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
