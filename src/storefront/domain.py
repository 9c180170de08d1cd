"""Storefront bounded context: Cart, Inventory Ledger, Checkout and Orders.

Turns a mutable shopping cart into an immutable order. Inventory is reserved
only at the payment step of checkout and committed when the order is
materialized, so stock is never oversold and never left stranded in a
reserved-but-unsellable state.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging

configure_logging()

storefront = Domain(name="storefront")
