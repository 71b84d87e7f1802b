"""Order delivery lifecycle — commands issued by dispatch and by the buyer."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class AssignRider:
    order_id = Identifier(required=True)
    rider_name = String(required=True, max_length=255)
    rider_phone = String(max_length=50)


@marketplace.command(part_of="Order")
class StartTransit:
    order_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class RecordDelivery:
    """Record the handover; the rider quotes the buyer's confirmation code."""

    order_id = Identifier(required=True)
    confirmation_code = String(required=True, max_length=6)


@marketplace.command(part_of="Order")
class ConfirmReceipt:
    """The buyer acknowledges a delivered order, completing it."""

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)


@marketplace.command_handler(part_of=Order)
class OrderDeliveryHandler:
    @handle(AssignRider)
    def assign_rider(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assign_rider(rider_name=command.rider_name, rider_phone=command.rider_phone)
        repo.add(order)

    @handle(StartTransit)
    def start_transit(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.start_transit()
        repo.add(order)

    @handle(RecordDelivery)
    def record_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_delivery(confirmation_code=command.confirmation_code)
        repo.add(order)

    @handle(ConfirmReceipt)
    def confirm_receipt(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm_receipt(buyer_id=command.buyer_id)
        repo.add(order)
