"""Order aggregate — the immutable record of a completed checkout.

An order is written once, by the Order Materializer, and never changed by
this subsystem again. It holds frozen copies of everything it needs (names,
SKUs, prices, addresses) rather than references, so later catalog or cart
edits cannot alter an order already placed. Fulfillment and refunds are
handled elsewhere.
"""

import json
from uuid import uuid4

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.order.events import OrderPlaced
from storefront.shared.address import Address
from storefront.utils.clock import utcnow


@storefront.entity(part_of="Order")
class OrderItem:
    """A frozen copy of one cart line at the moment the order was placed."""

    variant_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    variant_name = String(max_length=255)
    sku = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)
    attributes = Text()  # JSON: opaque variant attributes

    @property
    def attribute_map(self):
        return json.loads(self.attributes) if self.attributes else {}


@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    cart_id = Identifier(required=True)
    checkout_session_id = Identifier(required=True, unique=True)
    owner_type = String(required=True, max_length=20)
    owner_reference = String(required=True, max_length=255)
    email = String(max_length=254)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    shipping_method_id = String(max_length=50)
    subtotal = Float(default=0.0)
    shipping_cost = Float(default=0.0)
    tax_total = Float(default=0.0)
    grand_total = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    payment_intent_id = String(max_length=255)
    created_at = DateTime()

    @classmethod
    def place(cls, session, cart, variants):
        """Build an order from a paid session, its cart, and catalog variants keyed by id."""
        now = utcnow()

        items = []
        for cart_item in cart.items:
            variant = variants[str(cart_item.variant_id)]
            items.append(
                OrderItem(
                    variant_id=str(cart_item.variant_id),
                    product_name=variant.product_name,
                    variant_name=variant.variant_name,
                    sku=variant.sku,
                    quantity=cart_item.quantity,
                    unit_price=cart_item.unit_price_snapshot,
                    line_total=cart_item.line_total,
                    attributes=json.dumps(variant.attributes) if variant.attributes else None,
                )
            )

        subtotal = round(sum(item.line_total for item in items), 2)
        shipping_cost = session.shipping_cost or 0.0
        tax_total = 0.0

        order = cls(
            order_number=_order_number(now),
            cart_id=cart.id,
            checkout_session_id=session.id,
            owner_type=cart.owner_type,
            owner_reference=cart.owner_reference,
            email=cart.email,
            items=items,
            shipping_address=session.shipping_address,
            billing_address=session.billing_address,
            shipping_method_id=session.shipping_method_id,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax_total=tax_total,
            grand_total=round(subtotal + shipping_cost + tax_total, 2),
            currency=session.currency,
            payment_intent_id=session.payment_intent_id,
            created_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                checkout_session_id=str(session.id),
                cart_id=str(cart.id),
                owner_type=order.owner_type,
                owner_reference=order.owner_reference,
                item_count=sum(item.quantity for item in items),
                grand_total=order.grand_total,
                currency=order.currency,
                placed_at=now,
            )
        )
        return order

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)


def _order_number(now):
    """``ORD-YYYYMMDD-XXXXXXXX``: placement date plus eight random hex digits."""
    return f"ORD-{now:%Y%m%d}-{uuid4().hex[:8].upper()}"
