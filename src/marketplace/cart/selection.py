"""Selection overlay — marking cart lines for a partial checkout."""

from protean import handle
from protean.fields import Boolean, Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.management import get_or_create_cart
from marketplace.domain import marketplace


@marketplace.command(part_of="ShoppingCart")
class ToggleSelection:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    expected_revision = Integer()


@marketplace.command(part_of="ShoppingCart")
class SetSelection:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    selected = Boolean(default=True)
    expected_revision = Integer()


@marketplace.command(part_of="ShoppingCart")
class SetAllSelection:
    user_id = Identifier(required=True)
    selected = Boolean(default=True)
    expected_revision = Integer()


@marketplace.command_handler(part_of=ShoppingCart)
class CartSelectionHandler:
    @handle(ToggleSelection)
    def toggle_selection(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_or_create_cart(repo, command.user_id)
        cart.assert_revision(command.expected_revision)
        if cart.toggle_selection(command.product_id):
            repo.add(cart)

    @handle(SetAllSelection)
    def set_all_selection(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_or_create_cart(repo, command.user_id)
        cart.assert_revision(command.expected_revision)
        if cart.toggle_all_selection(command.selected):
            repo.add(cart)

    @handle(SetSelection)
    def set_selection(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_or_create_cart(repo, command.user_id)
        cart.assert_revision(command.expected_revision)
        if cart.set_selection(command.product_id, command.selected):
            repo.add(cart)
