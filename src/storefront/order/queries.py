"""Order lookups."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.order.order import Order


def get_order(order_id) -> Order:
    return current_domain.repository_for(Order).get(order_id)


def get_order_for_checkout(checkout_id) -> Order:
    order = (
        current_domain.repository_for(Order)._dao.query.filter(checkout_session_id=str(checkout_id)).all().first
    )
    if order is None:
        raise ObjectNotFoundError({"_entity": f"No order for checkout {checkout_id}"})
    return order
