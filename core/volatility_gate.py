"""
Volatility Gate — suppresses new order placement when ATR is too high or
jumped too far since the last reading.
"""

from __future__ import annotations
from typing import Optional, TYPE_CHECKING
from exchange.models import CycleState, IndicatorReading
import logging

if TYPE_CHECKING:
    from config import LadderConfig

logger = logging.getLogger(__name__)


class VolatilityGate:

    def __init__(self, config: "LadderConfig"):
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.use_indicators

    def evaluate(self, reading: Optional[IndicatorReading], state: CycleState) -> bool:
        """
        Returns True when placement should be skipped this cycle.
        Updates state.previous_atr whenever an ATR value was read; the
        change check always compares against the prior value.
        """
        if not self.enabled:
            return False

        atr = reading.atr if reading is not None else None
        if atr is None:
            logger.warning("[GATE] Could not retrieve ATR from chart. Ensure indicator is enabled.")
            return False

        prev = state.previous_atr
        logger.info(
            f"[GATE] ATR: {atr:.2f} (Prev: {f'{prev:.2f}' if prev is not None else 'N/A'})"
            + (f" ADX: {reading.adx:.2f}" if reading.adx is not None else "")
            + (f" RSI: {reading.rsi:.2f}" if reading.rsi is not None else "")
        )

        skip = False
        if atr > self.config.max_atr:
            logger.info(
                f"[GATE] ATR ({atr:.2f}) higher than max ({self.config.max_atr}). Skipping placement."
            )
            skip = True
        elif prev is not None:
            change = abs(atr - prev)
            if change > self.config.atr_change_threshold:
                logger.info(
                    f"[GATE] ATR change ({change:.2f}) > threshold "
                    f"({self.config.atr_change_threshold}). Skipping placement."
                )
                skip = True

        state.previous_atr = atr
        return skip
