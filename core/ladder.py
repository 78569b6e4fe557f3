"""
Ladder Reconciler — restores N resting orders per side.

Cold start places the full ladder (one order per rung, longs then shorts).
Otherwise each side is topped up to N at the single replacement distance;
missing rungs are not tracked individually, and sides above N are left
alone.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Sequence, Tuple, TYPE_CHECKING
from core.timing import settle
from exchange.models import Order, Side
import logging

if TYPE_CHECKING:
    from config import LadderConfig, TimingConfig
    from trading.order_executor import OrderExecutor

logger = logging.getLogger(__name__)


class LadderReconciler:

    def __init__(
        self,
        executor: "OrderExecutor",
        config: "LadderConfig",
        timing: "TimingConfig",
    ):
        self.executor = executor
        self.config = config
        self.timing = timing

    async def reconcile(
        self,
        orders: Sequence[Order],
        current_price: Decimal,
        cancelled: bool = False,
    ) -> Tuple[int, int]:
        """Returns (placements attempted, placements that went through)."""
        if not orders:
            return await self._cold_start(current_price)
        return await self._top_up(orders, cancelled)

    async def _cold_start(self, current_price: Decimal) -> Tuple[int, int]:
        logger.info(
            f"[LADDER] No open orders found around {current_price}. "
            f"Placing initial ladder {[str(b) for b in self.config.bps_ladder]} bps."
        )
        attempts = succeeded = 0
        for side in (Side.LONG, Side.SHORT):
            for bps in self.config.bps_ladder:
                succeeded += await self._place(side, bps)
                attempts += 1
        logger.info(f"[LADDER] Initial placement complete ({succeeded}/{attempts} placed).")
        return attempts, succeeded

    async def _top_up(self, orders: Sequence[Order], cancelled: bool) -> Tuple[int, int]:
        target = self.config.rungs
        attempts = succeeded = 0
        deficits = {}

        for side in (Side.LONG, Side.SHORT):
            count = sum(1 for o in orders if o.side == side)
            deficit = target - count
            deficits[side] = deficit
            if deficit <= 0:
                continue

            logger.info(
                f"[LADDER] Found {count} {side.value} order(s), need {target}. "
                f"Placing {deficit} at {self.config.replacement_bps} bps."
            )
            for _ in range(deficit):
                succeeded += await self._place(side, self.config.replacement_bps)
                attempts += 1

        if not cancelled and all(d <= 0 for d in deficits.values()):
            logger.info("[LADDER] All open orders are correct and safe.")
        return attempts, succeeded

    async def _place(self, side: Side, bps: Decimal) -> bool:
        placed = await self.executor.place_order(side, side.price_multiplier(bps))
        await settle(self.timing.placement_delay_sec)
        return placed
