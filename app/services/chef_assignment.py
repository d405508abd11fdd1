import asyncio
import logging
import random
from typing import Any, List, Optional
from uuid import UUID

from tortoise.expressions import F

from app.core.db import atomic
from app.core.errors import InvalidOrderError, NoChefsAvailableError, NotFoundError
from app.models.chef import Chef, ChefAssignment
from app.models.order import ACTIVE_STATUSES, Order

log = logging.getLogger("chef_assignment")


class ChefAssignmentPolicy:
    """
    Binds active orders to chefs, least-loaded first.

    Choosing a chef reads every chef and then writes one of them, so all choosing
    paths run under one lock and inside a transaction that row-locks the chefs.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._lock = asyncio.Lock()

    def _pick(self, chefs: List[Chef]) -> Chef:
        minimum = min(c.active_order_count for c in chefs)
        tied = [c for c in chefs if c.active_order_count == minimum]
        return self._rng.choice(tied)

    async def _bind(self, chef: Chef, order_id: UUID, conn: Any) -> None:
        await ChefAssignment.create(chef_id=chef.id, order_id=order_id, using_db=conn)
        await Chef.filter(id=chef.id).using_db(conn).update(active_order_count=F("active_order_count") + 1)
        await Order.filter(id=order_id).using_db(conn).update(chef_id=chef.id)
        chef.active_order_count += 1

    async def assign_least_loaded(self, order_id: UUID) -> Chef:
        """Raises NoChefsAvailableError when the kitchen has no chefs at all."""
        async with self._lock:
            async with atomic() as conn:
                chefs = await Chef.all().using_db(conn).select_for_update()
                if not chefs:
                    raise NoChefsAvailableError("No chefs available to take the order")
                chef = self._pick(chefs)
                await self._bind(chef, order_id, conn)

        log.info(f"Order {order_id} assigned to chef {chef.name} ({chef.active_order_count} active).")
        return chef

    async def release(self, chef_id: Optional[UUID], order_id: UUID, conn: Optional[Any] = None) -> bool:
        """
        Frees the chef's capacity held by the order. Safe to repeat, and a no-op for
        chefs that have since been deleted. Returns True only on an actual release.
        """
        if chef_id is None:
            return False
        async with atomic(conn) as trx:
            removed = await ChefAssignment.filter(chef_id=chef_id, order_id=order_id).using_db(trx).delete()
            if removed:
                await Chef.filter(id=chef_id, active_order_count__gt=0).using_db(trx).update(
                    active_order_count=F("active_order_count") - 1
                )
        return bool(removed)

    async def release_order(self, order_id: UUID, conn: Optional[Any] = None) -> bool:
        """Releases whichever chef currently holds the order, if any."""
        async with atomic(conn) as trx:
            assignment = await ChefAssignment.filter(order_id=order_id).using_db(trx).first()
            if assignment is None:
                return False
            return await self.release(assignment.chef_id, order_id, conn=trx)

    async def reassign(self, order_id: UUID, from_chef_id: Optional[UUID], to_chef_id: UUID) -> Chef:
        """
        Moves an active order to 'to_chef_id'. Release and re-bind commit together,
        so a failure leaves the original binding in place.
        """
        async with self._lock:
            async with atomic() as conn:
                order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
                if order is None:
                    raise NotFoundError(f"Order not found: {order_id}")
                if order.status not in ACTIVE_STATUSES:
                    raise InvalidOrderError(f"Only pending or processing orders can be reassigned, order is {order.status.value}")

                target = await Chef.filter(id=to_chef_id).using_db(conn).select_for_update().first()
                if target is None:
                    raise NotFoundError(f"Chef not found: {to_chef_id}")

                for previous in {from_chef_id, order.chef_id} - {None}:
                    await self.release(previous, order.id, conn=conn)
                await self._bind(target, order.id, conn)

        log.info(f"Order {order_id} reassigned from chef {from_chef_id} to chef {target.name}.")
        return target

    async def retire(self, chef_id: UUID) -> int:
        """
        Deletes a chef, handing each of its active orders to the least-loaded remaining
        chef. Returns the number of orders moved.
        """
        async with self._lock:
            async with atomic() as conn:
                chefs = await Chef.all().using_db(conn).select_for_update()
                chef = next((c for c in chefs if c.id == chef_id), None)
                if chef is None:
                    raise NotFoundError(f"Chef not found: {chef_id}")

                others = [c for c in chefs if c.id != chef_id]
                assignments = await ChefAssignment.filter(chef_id=chef_id).using_db(conn)
                if assignments and not others:
                    raise InvalidOrderError("Cannot delete the last chef with assigned orders")

                for assignment in assignments:
                    target = self._pick(others)
                    await ChefAssignment.filter(id=assignment.id).using_db(conn).delete()
                    await self._bind(target, assignment.order_id, conn)

                await chef.delete(using_db=conn)

        log.info(f"Chef {chef_id} retired, {len(assignments)} orders reassigned.")
        return len(assignments)
