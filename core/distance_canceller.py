"""
Distance Canceller — cancels resting orders that drifted outside the
[min_distance_bps, max_distance_bps] band around the current price.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Optional, Sequence, TYPE_CHECKING
from core.timing import settle
from exchange.models import BPS_DIVISOR, Order
import logging

if TYPE_CHECKING:
    from config import LadderConfig, TimingConfig
    from exchange.venue import VenueAdapter

logger = logging.getLogger(__name__)


def distance_bps(order_price: Decimal, current_price: Decimal) -> Decimal:
    """|order - price| / price in basis points."""
    if current_price <= 0:
        raise ValueError(f"current price must be positive, got {current_price}")
    return abs(order_price - current_price) / current_price * BPS_DIVISOR


def band_violation(distance: Decimal, config: "LadderConfig") -> Optional[str]:
    """'too far' / 'too close' or None when inside the band (bounds inclusive)."""
    if distance > config.max_distance_bps:
        return "too far"
    if distance < config.min_distance_bps:
        return "too close"
    return None


class DistanceCanceller:

    def __init__(self, venue: "VenueAdapter", config: "LadderConfig", timing: "TimingConfig"):
        self.venue = venue
        self.config = config
        self.timing = timing

    async def cancel_out_of_band(self, orders: Sequence[Order], current_price: Decimal) -> bool:
        """
        Returns True if any cancel was issued, so the caller re-reads the
        order list before placing anything.
        """
        if not orders:
            logger.info("[CANCEL] No existing open orders to check.")
            return False

        logger.info(f"[CANCEL] Checking distances for {len(orders)} open order(s)...")
        cancelled = False
        for order in orders:
            distance = distance_bps(order.price, current_price)
            reason = band_violation(distance, self.config)
            if reason is None:
                continue

            logger.info(
                f"[CANCEL] Order at {order.price} ({order.side.value}) is {reason} "
                f"({distance:.2f} bps). Cancelling."
            )
            cancelled = True
            try:
                await self.venue.cancel_order(order.cancel_handle)
                await settle(self.timing.cancel_settle_sec)
            except Exception as e:
                logger.error(f"[CANCEL] Cancel failed for order at {order.price}: {e}")

        return cancelled
