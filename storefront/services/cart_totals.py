"""
cart_totals.py — Subtotal, shipping, tax and total for a cart

Business Rules:
- subtotal = Σ unit_price × quantity over all lines
- shipping is free only when subtotal is strictly above 500; at exactly 500
  the flat 29.99 fee still applies
- tax is 18% of the subtotal (shipping is not taxed)
- total = subtotal + shipping + tax
- Prices are shown in Turkish lira format: ₺1.234,56

Called by: services/cart_service.py, host UI
Depends on: schemas/cart.py
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from storefront.schemas.cart import CartItem, ProductImage

FREE_SHIPPING_THRESHOLD = 500
TAX_RATE = 0.18
DEFAULT_SHIPPING_COST = 29.99

CART_CONSTANTS = {
    "free_shipping_threshold": FREE_SHIPPING_THRESHOLD,
    "tax_rate": TAX_RATE,
    "default_shipping_cost": DEFAULT_SHIPPING_COST,
}


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    shipping: float
    tax: float
    total: float

    @property
    def free_shipping(self) -> bool:
        return self.shipping == 0


def _line_amount(item: CartItem | Mapping[str, Any]) -> float:
    if isinstance(item, Mapping):
        price = item.get("unit_price", item.get("unitPrice", 0)) or 0
        quantity = item.get("quantity", 0) or 0
        return float(price) * quantity
    return item.unit_price * item.quantity


def calculate_cart_totals(items: Iterable[CartItem | Mapping[str, Any]]) -> CartTotals:
    """Compute the cart summary; an empty cart still carries the flat shipping fee."""
    subtotal = sum(_line_amount(item) for item in items)
    shipping = 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else DEFAULT_SHIPPING_COST
    tax = subtotal * TAX_RATE
    return CartTotals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
    )


def format_price(price: float) -> str:
    """₺-prefixed price with '.' thousands and ',' decimals, e.g. ₺1.234,56."""
    text = f"{abs(price):,.2f}".replace(",", "\0").replace(".", ",").replace("\0", ".")
    sign = "-" if round(price, 2) < 0 else ""
    return f"{sign}₺{text}"


def get_featured_image(item: CartItem) -> ProductImage | None:
    """Featured product image of a cart line, falling back to the first one."""
    images = item.variants.product.product_images
    for image in images:
        if image.is_featured:
            return image
    return images[0] if images else None
