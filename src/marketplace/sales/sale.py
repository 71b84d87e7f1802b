"""Sale records (CQRS) — one row per purchased line, for seller analytics."""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.utils.money import round_money, sum_lines


@marketplace.aggregate
class Sale:
    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    created_at = DateTime()

    @classmethod
    def record(cls, order_id, buyer_id, line):
        return cls(
            product_id=line["product_id"],
            seller_id=line["seller_id"],
            buyer_id=buyer_id,
            order_id=order_id,
            unit_price=line["unit_price"],
            quantity=line["quantity"],
            created_at=datetime.now(UTC),
        )


def sales_summary(product_id):
    """Units sold, revenue and distinct buyers for one listing."""
    sales = current_domain.repository_for(Sale)._dao.query.filter(product_id=str(product_id)).all().items
    return {
        "product_id": str(product_id),
        "total_sales": sum(sale.quantity for sale in sales),
        "total_revenue": float(round_money(sum_lines(sales))),
        "unique_buyers": len({str(sale.buyer_id) for sale in sales}),
    }
