"""
cart_service.py — Cart endpoints and their queries/mutations

CartAPI issues the raw calls (GET/POST /carts, PUT/DELETE /cart-items/{id}).
CartService binds them to the orchestrator under the ["cart"] query key.

Business Rules:
- Every cart mutation invalidates ["cart"] on success
- Adding to cart retries up to 3 times on 5xx/network failures; update and
  remove are not retried
- A quantity of 0 or less never reaches PUT /cart-items; it is a removal
  (see services/cart_items.py)

Called by: host UI
Depends on: api/client.py, orchestrator.py, schemas/cart.py,
            services/cart_items.py, services/cart_totals.py
"""

from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import Any

from loguru import logger

from storefront.api.client import ApiClient
from storefront.orchestrator import Mutation, Orchestrator, QueryResult
from storefront.retry import RetryPolicy
from storefront.schemas.cart import AddToCartRequest, CartResponse, UpdateCartItemRequest
from storefront.services.cart_items import CartItemOperations
from storefront.services.cart_totals import CartTotals, calculate_cart_totals

CART_QUERY_KEY = ("cart",)
ADD_TO_CART_RETRIES = 3


class CartAPI:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_cart(self) -> CartResponse:
        return await self.client.get("/carts", response_schema=CartResponse)

    async def add_to_cart(self, variant_id: int, quantity: int = 1) -> Any:
        return await self.client.post(
            "/carts",
            {"variant_id": variant_id, "quantity": quantity},
            request_schema=AddToCartRequest,
        )

    async def update_cart_item(self, item_id: int, quantity: int) -> Any:
        return await self.client.put(
            f"/cart-items/{item_id}",
            {"quantity": quantity},
            request_schema=UpdateCartItemRequest,
        )

    async def remove_cart_item(self, item_id: int) -> Any:
        return await self.client.delete(f"/cart-items/{item_id}")


class CartService:
    """Cart query plus the add/update/remove mutations.

    Mutation variables:
        add_item     {"variant_id": int, "quantity": int (default 1)}
        update_item  {"item_id": int, "quantity": int}
        remove_item  item_id

    update_item and remove_item are single handles shared by all cart lines;
    their state is last-writer-wins under concurrent calls. Per-item state
    lives in item_operations().
    """

    def __init__(self, orchestrator: Orchestrator, api: CartAPI | None = None):
        self.orchestrator = orchestrator
        self.api = api or CartAPI(orchestrator.client)

        self.add_item: Mutation = orchestrator.run_mutation(
            self._add,
            retry=RetryPolicy.from_retries(ADD_TO_CART_RETRIES, orchestrator.retry.delay_seconds),
            invalidates=[CART_QUERY_KEY],
            name="add_to_cart",
        )
        self.update_item: Mutation = orchestrator.run_mutation(
            self._update, invalidates=[CART_QUERY_KEY], name="update_cart_item"
        )
        self.remove_item: Mutation = orchestrator.run_mutation(
            self.api.remove_cart_item, invalidates=[CART_QUERY_KEY], name="remove_cart_item"
        )

    async def _add(self, variables: dict) -> Any:
        return await self.api.add_to_cart(variables["variant_id"], variables.get("quantity", 1))

    async def _update(self, variables: dict) -> Any:
        return await self.api.update_cart_item(variables["item_id"], variables["quantity"])

    async def get_cart(self) -> QueryResult:
        return await self.orchestrator.run_query(CART_QUERY_KEY, self.api.get_cart)

    async def totals(self) -> CartTotals | None:
        """Totals of the current cart, or None when the cart could not be loaded."""
        result = await self.get_cart()
        if not result.is_success or result.data is None:
            logger.debug("Cart totals unavailable: {}", result.status.value)
            return None
        return calculate_cart_totals(result.data.items)

    def item_operations(
        self,
        *,
        on_item_update: Callable[[Hashable], Any] | None = None,
        on_item_remove: Callable[[Hashable], Any] | None = None,
    ) -> CartItemOperations:
        return CartItemOperations(
            self.update_item,
            self.remove_item,
            on_item_update=on_item_update,
            on_item_remove=on_item_remove,
        )
