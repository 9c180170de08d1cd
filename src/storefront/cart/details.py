"""Cart read side — summary with warnings, and checkout readiness.

Warnings are informational and never block cart edits. ``validate_cart``
turns the blocking ones into issues; checkout only starts on a valid cart.
"""

from dataclasses import dataclass, field

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart.availability import LOW_STOCK, OUT_OF_STOCK, assess
from storefront.cart.cart import Cart
from storefront.catalog import get_catalog
from storefront.config import get_settings

PRICE_CHANGED = "price_changed"
UNAVAILABLE = "unavailable"

EMPTY_CART = "empty_cart"
MISSING_EMAIL = "missing_email"
CART_NOT_ACTIVE = "cart_not_active"
QUANTITY_EXCEEDS_MAXIMUM = "quantity_exceeds_maximum"

# Warnings that prevent checkout
_BLOCKING = {OUT_OF_STOCK, PRICE_CHANGED, UNAVAILABLE}


@dataclass(frozen=True)
class CartWarning:
    code: str
    item_id: str
    variant_id: str
    message: str


@dataclass(frozen=True)
class CartLine:
    item_id: str
    variant_id: str
    quantity: int
    unit_price_snapshot: float
    current_price: float | None
    line_total: float


@dataclass(frozen=True)
class CartDetails:
    cart_id: str
    status: str
    owner_type: str
    owner_reference: str
    currency: str
    email: str | None
    item_count: int
    subtotal: float
    lines: list[CartLine] = field(default_factory=list)
    warnings: list[CartWarning] = field(default_factory=list)

    def warning_codes(self):
        return {w.code for w in self.warnings}


@dataclass(frozen=True)
class CartIssue:
    code: str
    message: str
    item_id: str | None = None


@dataclass(frozen=True)
class CartValidation:
    valid: bool
    issues: list[CartIssue] = field(default_factory=list)

    def issue_codes(self):
        return {issue.code for issue in self.issues}


def get_cart_details(cart_id) -> CartDetails:
    cart = current_domain.repository_for(Cart).get(cart_id)
    lines, warnings = _inspect(cart)

    return CartDetails(
        cart_id=str(cart.id),
        status=cart.status,
        owner_type=cart.owner_type,
        owner_reference=cart.owner_reference,
        currency=cart.currency,
        email=cart.email,
        item_count=cart.item_count,
        subtotal=cart.subtotal,
        lines=lines,
        warnings=warnings,
    )


def validate_cart(cart_id) -> CartValidation:
    cart = current_domain.repository_for(Cart).get(cart_id)
    max_quantity = get_settings().max_item_quantity
    issues = []

    if not cart.is_active:
        message = "Cart has expired" if cart.is_expired else f"Cart is {cart.status}"
        issues.append(CartIssue(CART_NOT_ACTIVE, message))
    if not cart.items:
        issues.append(CartIssue(EMPTY_CART, "Cart is empty"))
    if not cart.email:
        issues.append(CartIssue(MISSING_EMAIL, "A contact email is required"))

    for item in cart.items:
        # Merged lines are not capped until here
        if item.quantity > max_quantity:
            issues.append(
                CartIssue(
                    QUANTITY_EXCEEDS_MAXIMUM,
                    f"Quantity {item.quantity} exceeds the maximum of {max_quantity}",
                    item_id=str(item.id),
                )
            )

    _, warnings = _inspect(cart)
    issues.extend(CartIssue(w.code, w.message, item_id=w.item_id) for w in warnings if w.code in _BLOCKING)

    return CartValidation(valid=not issues, issues=issues)


def _inspect(cart):
    catalog = get_catalog()
    lines, warnings = [], []

    for item in cart.items:
        item_id, variant_id = str(item.id), str(item.variant_id)
        try:
            variant = catalog.get_variant(variant_id)
        except ObjectNotFoundError:
            variant = None

        lines.append(
            CartLine(
                item_id=item_id,
                variant_id=variant_id,
                quantity=item.quantity,
                unit_price_snapshot=item.unit_price_snapshot,
                current_price=variant.unit_price if variant else None,
                line_total=item.line_total,
            )
        )

        if variant is None:
            warnings.append(CartWarning(UNAVAILABLE, item_id, variant_id, "This item is no longer available"))
            continue

        if round(variant.unit_price, 2) != round(item.unit_price_snapshot, 2):
            warnings.append(
                CartWarning(
                    PRICE_CHANGED,
                    item_id,
                    variant_id,
                    f"Price changed from {item.unit_price_snapshot:.2f} to {variant.unit_price:.2f}",
                )
            )

        stock = assess(variant, item.quantity)
        if stock == OUT_OF_STOCK:
            warnings.append(CartWarning(OUT_OF_STOCK, item_id, variant_id, "Not enough stock for this quantity"))
        elif stock == LOW_STOCK:
            warnings.append(CartWarning(LOW_STOCK, item_id, variant_id, "Only a few left in stock"))

    return lines, warnings
