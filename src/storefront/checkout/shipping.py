"""Shipping methods offered at checkout and their pricing."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ShippingMethod:
    method_id: str
    name: str
    base_cost: float
    estimated_days: str
    free_shipping_eligible: bool = False

    def cost_for(self, subtotal, free_shipping_threshold):
        """Shipping cost for an order of ``subtotal``.

        Eligible methods ship free once the subtotal reaches the threshold.
        A threshold of zero or less disables free shipping.
        """
        if self.free_shipping_eligible and 0 < free_shipping_threshold <= subtotal:
            return 0.0
        return self.base_cost


SHIPPING_METHODS = {
    method.method_id: method
    for method in (
        ShippingMethod("standard", "Standard Shipping", 5.99, "5-7", free_shipping_eligible=True),
        ShippingMethod("express", "Express Shipping", 14.99, "2-3"),
        ShippingMethod("overnight", "Overnight Shipping", 29.99, "1"),
    )
}


def find_method(method_id):
    return SHIPPING_METHODS.get(method_id)
