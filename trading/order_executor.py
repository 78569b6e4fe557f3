"""
Order Executor — places one limit order through the venue's order panel.

Steps: sample price → target price → LIMIT tab → price/size inputs →
side submit button. Any failed step aborts this attempt only; fields
already filled stay filled and nothing is retried.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, TYPE_CHECKING
from core.timing import settle, wait_for
from exchange.models import Side
import logging

if TYPE_CHECKING:
    from config import LadderConfig, TimingConfig
    from exchange.venue import VenueAdapter

logger = logging.getLogger(__name__)

PRICE_STEP = Decimal("0.01")
LIMIT_LABEL = "LIMIT"


class OrderExecutor:
    """Handles single-shot limit order placement."""

    def __init__(
        self,
        venue: "VenueAdapter",
        config: "LadderConfig",
        timing: "TimingConfig",
    ):
        self.venue = venue
        self.config = config
        self.timing = timing

    async def place_order(self, side: Side, price_multiplier: Decimal) -> bool:
        """
        Place one limit order at current price × multiplier.
        Returns True if the submit button was pressed. Never raises.
        """
        try:
            return await self._place(side, price_multiplier)
        except Exception as e:
            logger.error(f"[EXEC] {side.label}: Error during placement: {e}", exc_info=True)
            return False

    async def _place(self, side: Side, price_multiplier: Decimal) -> bool:
        logger.info(f"[EXEC] Executing {side.label} order with multiplier {price_multiplier}")

        # 1. Fresh price sample for every placement
        price = await self._sample_price()
        if price is None:
            logger.error(f"[EXEC] {side.label}: Could not get current price. Aborting.")
            return False

        # 2. Target price
        target_price = self._round_price(price * price_multiplier)
        logger.info(f"[EXEC] {side.label}: price={price}, target={target_price}")

        # 3. Order type
        limit_button = await self.venue.find_order_type_button(LIMIT_LABEL)
        if limit_button is None:
            logger.error(f"[EXEC] {side.label}: Could not find the Limit order button.")
            return False
        await self.venue.press(limit_button)

        # 4. Inputs
        price_input = await wait_for(
            self.venue.find_price_input,
            timeout=self.timing.element_timeout_sec,
            interval=self.timing.poll_interval_sec,
        )
        quantity_input = await wait_for(
            self.venue.find_quantity_input,
            timeout=self.timing.element_timeout_sec,
            interval=self.timing.poll_interval_sec,
        )
        if price_input is None or quantity_input is None:
            logger.error(f"[EXEC] {side.label}: Price or quantity input missing after selecting Limit.")
            return False

        # 5. Fill
        await self.venue.set_input_value(price_input, str(target_price))
        await settle(self.timing.input_settle_sec)
        await self.venue.set_input_value(quantity_input, str(self.config.quantity))
        await settle(self.timing.input_settle_sec)
        await settle(self.timing.pre_submit_sec)

        # 6-7. Submit
        submit = await self.venue.find_submit_button(side.label)
        if submit is None or not submit.enabled:
            logger.error(f"[EXEC] {side.label}: Could not find or click the {side.label} button.")
            return False
        await self.venue.press(submit)

        logger.info(
            f"[EXEC] {side.label}: Submitted {self.config.quantity} "
            f"{self.config.symbol} @ {target_price}"
        )
        return True

    async def _sample_price(self) -> Optional[Decimal]:
        try:
            return await self.venue.read_current_price()
        except Exception as e:
            logger.error(f"[EXEC] Price read failed: {e}")
            return None

    @staticmethod
    def _round_price(price: Decimal) -> Decimal:
        """Round to cents, half up."""
        return price.quantize(PRICE_STEP, rounding=ROUND_HALF_UP)
