"""Client-side cart session — a write-through cache over the ShoppingCart aggregate.

The session applies every mutation to its local copy straight away, queues the
matching command, and (by default) flushes the queue immediately. Each queued
command carries the revision the session last saw, so a concurrent edit from
another device surfaces as a ``CartRevisionConflict`` instead of a lost update.

Failures never disappear: the failed command and everything queued behind it
stay in ``pending``, ``sync_status`` flips to ``FAILED`` and ``last_error``
holds the exception. ``flush()`` retries, ``rebase()`` replays the queue on
top of the latest server revision and ``refresh()`` throws local edits away.
Selection changes are queued as the target value, not as a flip, so a
replayed command lands on the same state no matter what the server holds.
"""

from collections import deque
from enum import Enum

import structlog
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.items import AddToCart, RemoveFromCart, SetCartQuantity
from marketplace.cart.management import ClearCart, OpenCart
from marketplace.cart.selection import SetAllSelection, SetSelection
from marketplace.utils.money import sum_lines

logger = structlog.get_logger(__name__)


class SyncStatus(Enum):
    SYNCED = "synced"
    PENDING = "pending"
    FAILED = "failed"


class CartSession:
    def __init__(self, user_id, autoflush=True):
        self.user_id = str(user_id)
        self.autoflush = autoflush
        self.lines = []
        self.revision = 0
        self.sync_status = SyncStatus.SYNCED
        self.last_error = None
        self._pending = deque()
        self.refresh()

    # -------------------------------------------------------------------
    # Sync
    # -------------------------------------------------------------------
    @property
    def pending(self):
        return [command_cls.__name__ for command_cls, _ in self._pending]

    def _server_cart(self):
        return current_domain.repository_for(ShoppingCart).get(self.user_id)

    def _load(self):
        snapshot = self._server_cart().to_dict()
        self.lines = snapshot["lines"]
        self.revision = snapshot["revision"]

    def refresh(self):
        """Discard queued writes and reload the authoritative cart."""
        self._pending.clear()
        current_domain.process(OpenCart(user_id=self.user_id), asynchronous=False)
        self._load()
        self.sync_status = SyncStatus.SYNCED
        self.last_error = None

    def flush(self):
        """Send queued commands in order. Returns True once the queue is drained."""
        while self._pending:
            command_cls, fields = self._pending[0]
            try:
                current_domain.process(
                    command_cls(user_id=self.user_id, expected_revision=self.revision, **fields),
                    asynchronous=False,
                )
            except Exception as exc:
                self.sync_status = SyncStatus.FAILED
                self.last_error = exc
                logger.warning(
                    "Cart sync failed",
                    user_id=self.user_id,
                    command=command_cls.__name__,
                    pending=len(self._pending),
                    error=str(exc),
                )
                return False

            self._pending.popleft()
            self.revision = self._server_cart().revision or 0

        self._load()
        self.sync_status = SyncStatus.SYNCED
        self.last_error = None
        return True

    def rebase(self):
        """Adopt the server's current revision and replay the queued commands on top of it."""
        self.revision = self._server_cart().revision or 0
        return self.flush()

    def _enqueue(self, command_cls, **fields):
        self._pending.append((command_cls, fields))
        self.sync_status = SyncStatus.PENDING
        if self.autoflush:
            self.flush()

    def _line_for(self, product_id):
        return next((line for line in self.lines if line["product_id"] == str(product_id)), None)

    # -------------------------------------------------------------------
    # Mutations (optimistic)
    # -------------------------------------------------------------------
    def add_item(self, product_id, name, unit_price, seller_id, image=None, quantity=1):
        line = self._line_for(product_id)
        if line:
            line["quantity"] += quantity
        else:
            self.lines.append(
                {
                    "product_id": str(product_id),
                    "name": name,
                    "unit_price": unit_price,
                    "image": image,
                    "quantity": quantity,
                    "seller_id": str(seller_id),
                    "selected": True,
                }
            )
        self._enqueue(
            AddToCart,
            product_id=str(product_id),
            name=name,
            unit_price=unit_price,
            seller_id=str(seller_id),
            image=image,
            quantity=quantity,
        )

    def remove_item(self, product_id):
        line = self._line_for(product_id)
        if line is None:
            return
        self.lines.remove(line)
        self._enqueue(RemoveFromCart, product_id=str(product_id))

    def set_quantity(self, product_id, quantity):
        line = self._line_for(product_id)
        if line is None:
            return
        line["quantity"] = max(1, int(quantity))
        self._enqueue(SetCartQuantity, product_id=str(product_id), quantity=line["quantity"])

    def clear(self):
        self.lines = []
        self._enqueue(ClearCart)

    def toggle_selection(self, product_id):
        line = self._line_for(product_id)
        if line is None:
            return
        line["selected"] = not line["selected"]
        self._enqueue(SetSelection, product_id=str(product_id), selected=line["selected"])

    def toggle_all_selection(self, value):
        for line in self.lines:
            line["selected"] = bool(value)
        self._enqueue(SetAllSelection, selected=bool(value))

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    def total(self):
        return float(sum_lines(self.lines))

    def selected_subtotal(self):
        return float(sum_lines([line for line in self.lines if line["selected"]]))
