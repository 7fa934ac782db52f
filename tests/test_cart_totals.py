"""
test_cart_totals.py — Tests for storefront/services/cart_totals.py

Called by: pytest
Depends on: storefront/services/cart_totals.py
"""

import pytest

from storefront.schemas.cart import CartItem
from storefront.services.cart_totals import (
    CART_CONSTANTS,
    calculate_cart_totals,
    format_price,
    get_featured_image,
)


def test_totals_below_threshold():
    totals = calculate_cart_totals([
        {"quantity": 2, "unit_price": 100},
        {"quantity": 1, "unit_price": 50},
    ])
    assert totals.subtotal == 250
    assert totals.shipping == 29.99
    assert totals.tax == pytest.approx(45)
    assert totals.total == pytest.approx(324.99)
    assert totals.free_shipping is False


def test_exactly_at_threshold_still_pays_shipping():
    totals = calculate_cart_totals([{"quantity": 5, "unit_price": 100}])
    assert totals.subtotal == 500
    assert totals.shipping == 29.99


def test_just_over_threshold_ships_free():
    totals = calculate_cart_totals([{"quantity": 1, "unit_price": 500.01}])
    assert totals.shipping == 0
    assert totals.free_shipping is True
    assert totals.total == pytest.approx(500.01 * 1.18)


def test_empty_cart():
    totals = calculate_cart_totals([])
    assert totals.subtotal == 0
    assert totals.tax == 0
    assert totals.shipping == 29.99
    assert totals.total == 29.99


def test_accepts_cart_item_models(cart_item):
    items = [CartItem.model_validate(cart_item(1, 3, 33.33))]
    totals = calculate_cart_totals(items)
    assert totals.subtotal == pytest.approx(99.99)
    assert totals.tax == pytest.approx(99.99 * 0.18)


def test_camel_case_mapping_keys():
    totals = calculate_cart_totals([{"quantity": 2, "unitPrice": 100}, {"quantity": 1, "unitPrice": 50}])
    assert totals.subtotal == 250


def test_constants():
    assert CART_CONSTANTS == {
        "free_shipping_threshold": 500,
        "tax_rate": 0.18,
        "default_shipping_cost": 29.99,
    }


@pytest.mark.parametrize(
    "price, expected",
    [
        (0, "₺0,00"),
        (29.99, "₺29,99"),
        (1234.56, "₺1.234,56"),
        (1234567.8, "₺1.234.567,80"),
        (-100, "-₺100,00"),
    ],
)
def test_format_price(price, expected):
    assert format_price(price) == expected


class TestFeaturedImage:
    def _item(self, cart_item, images):
        return CartItem.model_validate(cart_item(1, images=images))

    def test_prefers_featured(self, cart_item):
        item = self._item(cart_item, [
            {"url": "a.jpg", "is_featured": False},
            {"url": "featured.jpg", "is_featured": True},
        ])
        assert get_featured_image(item).url == "featured.jpg"

    def test_falls_back_to_first(self, cart_item):
        item = self._item(cart_item, [{"url": "a.jpg"}, {"url": "b.jpg"}])
        assert get_featured_image(item).url == "a.jpg"

    def test_none_without_images(self, cart_item):
        assert get_featured_image(self._item(cart_item, [])) is None
