"""
Position Closer — empties every open position through the venue's
two-step close flow (close button, then side-inverse confirmation).
"""

from __future__ import annotations
from typing import Sequence, TYPE_CHECKING
from core.timing import settle, wait_for
from exchange.models import Position
import logging

if TYPE_CHECKING:
    from config import TimingConfig
    from exchange.venue import VenueAdapter

logger = logging.getLogger(__name__)


class PositionCloser:

    def __init__(self, venue: "VenueAdapter", timing: "TimingConfig"):
        self.venue = venue
        self.timing = timing

    async def close_all(self, positions: Sequence[Position]) -> int:
        """Close each position in turn. Never raises; returns how many were confirmed."""
        closed = 0
        for position in positions:
            try:
                if await self._close(position):
                    closed += 1
            except Exception as e:
                logger.error(f"[CLOSE] Error closing {position.side.value} position: {e}", exc_info=True)
        return closed

    async def _close(self, position: Position) -> bool:
        logger.info(f"[CLOSE] Closing {position.side.value} position (step 1/2)...")
        await self.venue.press_close(position.close_handle)

        dialog = await wait_for(
            self.venue.find_confirmation_dialog,
            timeout=self.timing.element_timeout_sec,
            interval=self.timing.poll_interval_sec,
        )
        if dialog is None:
            logger.error(
                f"[CLOSE] Confirmation dialog did not appear within "
                f"{self.timing.element_timeout_sec}s."
            )
            return False

        # Closing a long is confirmed with the SHORT button and vice versa
        label = position.side.confirm_label
        logger.info(f"[CLOSE] Looking for '{label}' confirmation (step 2/2)...")
        button = await self.venue.find_dialog_button(dialog, label)
        if button is None:
            logger.error(f"[CLOSE] No '{label}' confirmation button inside the dialog.")
            return False

        await self.venue.press(button)
        await settle(self.timing.close_settle_sec)
        logger.info(f"[CLOSE] {position.side.value} position close confirmed.")
        return True
