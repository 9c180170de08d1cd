"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartCreated:
    """A new cart was opened for a session or a customer."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_type = String(required=True)
    owner_reference = String(required=True)
    currency = String(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A variant was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    unit_price_snapshot = Float(required=True)


@storefront.event(part_of="Cart")
class CartItemUpdated:
    """A cart line's quantity was changed and its price snapshot refreshed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    unit_price_snapshot = Float(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    variant_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartEmailSet:
    """The contact email for the cart was recorded."""

    __version__ = 1

    cart_id = Identifier(required=True)
    email = String(required=True)


@storefront.event(part_of="Cart")
class CartMerged:
    """A guest cart was folded into a customer's cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    merged_into_cart_id = Identifier(required=True)
    items_merged_count = Integer(required=True)


@storefront.event(part_of="Cart")
class CartCompleted:
    """The cart was turned into an order."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartAbandoned:
    """An idle cart was marked as abandoned."""

    __version__ = 1

    cart_id = Identifier(required=True)
    abandoned_at = DateTime(required=True)
