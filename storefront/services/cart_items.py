"""Per-item async state for cart lines.

Tracks which cart lines have an update or removal in flight so a UI can
disable just those rows while the rest of the cart stays interactive.

Rules:
  - an item is "busy" while it is in the updating or removing set
  - a quantity change to 0 or below is a removal; the line is marked both
    updating and removing for the duration
  - markers are always released, whether the mutation succeeds or fails
  - a second operation on an item that is already busy is ignored
  - operations on different items never touch each other's markers

Usage:
    from storefront.services.cart_items import CartItemOperations
    ops = CartItemOperations(cart.update_item, cart.remove_item)
    await ops.update_quantity(7, 3)
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger

from storefront.errors import AppError
from storefront.orchestrator import Mutation, maybe_await


class BusySet:
    """A set of item ids with paired begin/end markers."""

    def __init__(self) -> None:
        self._ids: set[Hashable] = set()

    def begin(self, item_id: Hashable) -> None:
        self._ids.add(item_id)

    def end(self, item_id: Hashable) -> None:
        self._ids.discard(item_id)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def snapshot(self) -> frozenset:
        return frozenset(self._ids)

    @contextmanager
    def hold(self, item_id: Hashable) -> Iterator[None]:
        self.begin(item_id)
        try:
            yield
        finally:
            self.end(item_id)


class CartItemOperations:
    """Update/remove cart lines with per-item busy tracking.

    update_quantity() and remove_item() return True on success, False when
    the mutation failed (the error is kept in `errors[item_id]`) and None
    when the call was ignored because the item was already busy.

    The two Mutation handles are shared by every line, so their
    status/data/variables reflect whichever call settled last. Read per-item
    outcomes from the return value and `errors`, never from the handles.
    """

    def __init__(
        self,
        update_mutation: Mutation,
        remove_mutation: Mutation,
        *,
        on_item_update: Callable[[Hashable], Any] | None = None,
        on_item_remove: Callable[[Hashable], Any] | None = None,
    ):
        self._update = update_mutation
        self._remove = remove_mutation
        self.on_item_update = on_item_update
        self.on_item_remove = on_item_remove
        self.updating = BusySet()
        self.removing = BusySet()
        self.errors: dict[Hashable, AppError] = {}

    # ── State ───────────────────────────────────────────────────────────

    def is_updating(self, item_id: Hashable) -> bool:
        return item_id in self.updating

    def is_removing(self, item_id: Hashable) -> bool:
        return item_id in self.removing

    def is_busy(self, item_id: Hashable) -> bool:
        return self.is_updating(item_id) or self.is_removing(item_id)

    # ── Operations ──────────────────────────────────────────────────────

    async def update_quantity(self, item_id: Hashable, new_quantity: int) -> bool | None:
        if self.is_busy(item_id):
            logger.debug("Cart item {} is busy; ignoring quantity change to {}", item_id, new_quantity)
            return None

        if new_quantity <= 0:
            with self.updating.hold(item_id), self.removing.hold(item_id):
                ok = await self._run(item_id, self._remove, item_id)
            await self._notify(self.on_item_remove, item_id)
            return ok

        with self.updating.hold(item_id):
            ok = await self._run(
                item_id, self._update, {"item_id": item_id, "quantity": new_quantity}
            )
        await self._notify(self.on_item_update, item_id)
        return ok

    async def remove_item(self, item_id: Hashable) -> bool | None:
        if self.is_busy(item_id):
            logger.debug("Cart item {} is busy; ignoring removal", item_id)
            return None

        with self.removing.hold(item_id):
            ok = await self._run(item_id, self._remove, item_id)
        await self._notify(self.on_item_remove, item_id)
        return ok

    @staticmethod
    async def _notify(callback: Callable[[Hashable], Any] | None, item_id: Hashable) -> None:
        if callback is not None:
            await maybe_await(callback(item_id))

    async def _run(self, item_id: Hashable, mutation: Mutation, variables: Any) -> bool:
        try:
            await mutation.mutate_async(variables)
        except AppError as exc:
            self.errors[item_id] = exc
            return False
        self.errors.pop(item_id, None)
        return True
