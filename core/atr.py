"""
ATR Calculator — Average True Range over a rolling candle buffer.
Feeds the paper venue's simulated chart indicator.
"""

from __future__ import annotations
from decimal import Decimal
from typing import List, Optional
from exchange.models import Candle
import logging

logger = logging.getLogger(__name__)


class ATRCalculator:
    """
    Calculates ATR(period) with the SMA method.
    Needs period+1 candles before the first value is available.
    """

    def __init__(self, period: int = 14):
        if period < 1:
            raise ValueError("ATR period must be >= 1")
        self.period = period
        self._candles: List[Candle] = []
        self._atr: Optional[Decimal] = None

    @property
    def value(self) -> Optional[Decimal]:
        return self._atr

    def initialize(self, candles: List[Candle]):
        """Seed with historical candles, oldest first."""
        self._candles = list(candles[-(self.period + 10):])
        self._recalculate()

    def update(self, candle: Candle):
        """Process a newly closed candle."""
        self._candles.append(candle)

        # Keep buffer manageable
        max_buffer = self.period + 20
        if len(self._candles) > max_buffer:
            self._candles = self._candles[-max_buffer:]

        self._recalculate()

    def _recalculate(self):
        if len(self._candles) < self.period + 1:
            return

        true_ranges: List[Decimal] = []
        for i in range(1, len(self._candles)):
            curr = self._candles[i]
            prev_close = self._candles[i - 1].close

            tr = max(
                curr.high - curr.low,
                abs(curr.high - prev_close),
                abs(curr.low - prev_close),
            )
            true_ranges.append(tr)

        recent_trs = true_ranges[-self.period:]
        self._atr = sum(recent_trs) / Decimal(str(self.period))
        logger.debug(f"[ATR] ATR({self.period}) = {self._atr:.4f}")
