"""In-process push hub for order status updates.

Subscribers register a callback per order id and get every updated
``ReceiptView`` for that order. ``subscribe`` hands back the function that
cancels the subscription.
"""

import threading
from collections import defaultdict

import structlog

logger = structlog.get_logger(__name__)


class StatusFeed:
    def __init__(self):
        self._subscribers = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, order_id, callback):
        key = str(order_id)
        with self._lock:
            self._subscribers[key].append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(key, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(key, None)

        return unsubscribe

    def subscriber_count(self, order_id):
        with self._lock:
            return len(self._subscribers.get(str(order_id), []))

    def publish(self, order_id, receipt):
        with self._lock:
            callbacks = list(self._subscribers.get(str(order_id), []))

        # Subscribers run inside the projector's commit and must never fail it.
        for callback in callbacks:
            try:
                callback(receipt)
            except Exception:
                logger.exception("Status subscriber failed", order_id=str(order_id))

    def reset(self):
        with self._lock:
            self._subscribers.clear()


# Process-wide feed the receipt projector publishes to.
status_feed = StatusFeed()
