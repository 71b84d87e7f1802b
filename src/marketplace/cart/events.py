"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Boolean, Identifier, Integer, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the cart, or its quantity bumped on a repeat add."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    revision = Integer(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart line was set explicitly."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    revision = Integer(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    revision = Integer(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartSelectionChanged:
    """One or more lines were marked (or unmarked) for checkout."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_ids = Text(required=True)  # JSON: list of product ids
    selected = Boolean(default=False)
    revision = Integer(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    removed_count = Integer(required=True)
    revision = Integer(required=True)


@marketplace.event(part_of="ShoppingCart")
class CartCheckedOut:
    """The selected lines left the cart because an order was placed for them."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_ids = Text(required=True)  # JSON: list of product ids
    revision = Integer(required=True)
