"""Tests for shipping method pricing."""

from storefront.checkout.shipping import SHIPPING_METHODS, find_method


class TestShippingMethods:
    def test_known_methods(self):
        assert set(SHIPPING_METHODS) == {"standard", "express", "overnight"}

    def test_unknown_method(self):
        assert find_method("teleport") is None

    def test_standard_is_free_at_threshold(self):
        assert find_method("standard").cost_for(100.0, 100.0) == 0.0

    def test_standard_below_threshold(self):
        assert find_method("standard").cost_for(99.99, 100.0) == 5.99

    def test_express_never_free(self):
        assert find_method("express").cost_for(500.0, 100.0) == 14.99

    def test_zero_threshold_disables_free_shipping(self):
        assert find_method("standard").cost_for(500.0, 0) == 5.99
