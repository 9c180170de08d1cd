"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A completed checkout was turned into an order and its stock committed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    checkout_session_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    owner_type = String(required=True)
    owner_reference = String(required=True)
    item_count = Integer(required=True)
    grand_total = Float(required=True)
    currency = String(default="USD")
    placed_at = DateTime(required=True)
