"""Shopping Cart aggregate (CQRS) — the buyer's pre-checkout list of purchases.

There is exactly one cart per user and its identity *is* the user id, so a
cart is created empty on first access and looked up directly by user.

Every state-changing mutation bumps ``revision``. Writers that pass the
revision they last read get an optimistic-concurrency check instead of
silently overwriting a concurrent edit from another device.

Lines carry a ``selected`` flag (the selection overlay). ``total()`` sums the
whole cart; ``selected_subtotal()`` sums only the lines marked for checkout.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartSelectionChanged,
)
from marketplace.domain import marketplace
from marketplace.utils.money import sum_lines


class CartRevisionConflict(ValidationError):
    """The cart was changed by another writer since the caller last read it."""


@marketplace.entity(part_of="ShoppingCart")
class CartLine:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    image = String(max_length=1024)
    quantity = Integer(required=True, min_value=1)
    seller_id = Identifier(required=True)
    selected = Boolean(default=True)
    added_at = DateTime()

    def to_dict(self):
        return {
            "product_id": str(self.product_id),
            "name": self.name,
            "unit_price": self.unit_price,
            "image": self.image,
            "quantity": self.quantity,
            "seller_id": str(self.seller_id),
            "selected": bool(self.selected),
        }


@marketplace.aggregate
class ShoppingCart:
    lines = HasMany(CartLine)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def product_ids_must_be_unique(self):
        product_ids = [str(line.product_id) for line in self.lines]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"lines": ["A product can appear only once in a cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(id=user_id, revision=0, created_at=now, updated_at=now)

    @property
    def user_id(self):
        return str(self.id)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _line_for(self, product_id):
        return next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

    def _touch(self):
        self.revision = (self.revision or 0) + 1
        self.updated_at = datetime.now(UTC)

    def assert_revision(self, expected_revision):
        """Raise ``CartRevisionConflict`` if ``expected_revision`` is stale."""
        if expected_revision is None:
            return
        if int(expected_revision) != (self.revision or 0):
            raise CartRevisionConflict(
                {"revision": [f"Cart is at revision {self.revision}, request was based on {expected_revision}"]}
            )

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, product_id, name, unit_price, seller_id, image=None, quantity=1):
        """Add a product, or increase its quantity if it is already in the cart."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = self._line_for(product_id)
        if existing:
            existing.quantity += quantity
            new_quantity = existing.quantity
        else:
            self.add_lines(
                CartLine(
                    product_id=product_id,
                    name=name,
                    unit_price=unit_price,
                    image=image,
                    quantity=quantity,
                    seller_id=seller_id,
                    selected=True,
                    added_at=datetime.now(UTC),
                )
            )
            new_quantity = quantity

        self._touch()
        self.raise_(
            CartItemAdded(
                cart_id=self.user_id,
                product_id=str(product_id),
                seller_id=str(seller_id),
                quantity=quantity,
                new_quantity=new_quantity,
                revision=self.revision,
            )
        )

    def remove_item(self, product_id):
        """Drop a line. Returns False (and changes nothing) if it is not in the cart."""
        line = self._line_for(product_id)
        if line is None:
            return False

        self.remove_lines(line)
        self._touch()
        self.raise_(CartItemRemoved(cart_id=self.user_id, product_id=str(product_id), revision=self.revision))
        return True

    def set_quantity(self, product_id, quantity):
        """Set a line's quantity, clamped to a minimum of 1."""
        line = self._line_for(product_id)
        if line is None:
            return False

        new_quantity = max(1, int(quantity))
        previous_quantity = line.quantity
        if new_quantity == previous_quantity:
            return False

        line.quantity = new_quantity
        self._touch()
        self.raise_(
            CartQuantityUpdated(
                cart_id=self.user_id,
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                revision=self.revision,
            )
        )
        return True

    def clear(self):
        """Remove every line from the cart."""
        removed = list(self.lines)
        if not removed:
            return False

        for line in removed:
            self.remove_lines(line)
        self._touch()
        self.raise_(CartCleared(cart_id=self.user_id, removed_count=len(removed), revision=self.revision))
        return True

    # -------------------------------------------------------------------
    # Selection overlay
    # -------------------------------------------------------------------
    def toggle_selection(self, product_id):
        """Flip the checkout flag of a single line."""
        line = self._line_for(product_id)
        if line is None:
            return False
        return self.set_selection(product_id, not line.selected)

    def set_selection(self, product_id, value):
        """Set the checkout flag of a single line. Setting the current value is a no-op."""
        line = self._line_for(product_id)
        if line is None or bool(line.selected) == bool(value):
            return False

        line.selected = bool(value)
        self._touch()
        self.raise_(
            CartSelectionChanged(
                cart_id=self.user_id,
                product_ids=json.dumps([str(product_id)]),
                selected=line.selected,
                revision=self.revision,
            )
        )
        return True

    def toggle_all_selection(self, value):
        """Set the checkout flag of every line to ``value``."""
        if not self.lines:
            return False

        for line in self.lines:
            line.selected = bool(value)
        self._touch()
        self.raise_(
            CartSelectionChanged(
                cart_id=self.user_id,
                product_ids=json.dumps([str(line.product_id) for line in self.lines]),
                selected=bool(value),
                revision=self.revision,
            )
        )
        return True

    def selected_lines(self):
        return [line for line in self.lines if line.selected]

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def check_out(self, order_id, product_ids):
        """Remove the lines that were just turned into an order."""
        wanted = {str(pid) for pid in product_ids}
        checked_out = [line for line in self.lines if str(line.product_id) in wanted]
        if not checked_out:
            raise ValidationError({"lines": ["None of the checked out products are in the cart"]})

        for line in checked_out:
            self.remove_lines(line)
        self._touch()
        self.raise_(
            CartCheckedOut(
                cart_id=self.user_id,
                order_id=str(order_id),
                product_ids=json.dumps(sorted(wanted)),
                revision=self.revision,
            )
        )

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    def total(self):
        """Sum over every line, selected or not."""
        return float(sum_lines(self.lines))

    def selected_subtotal(self):
        """Sum over the lines marked for checkout."""
        return float(sum_lines(self.selected_lines()))

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "revision": self.revision or 0,
            "lines": [line.to_dict() for line in self.lines],
            "total": self.total(),
            "selected_subtotal": self.selected_subtotal(),
        }
