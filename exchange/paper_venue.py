"""
Paper Venue — in-memory stand-in for the trading page (dry run mode).

Price is a seeded random walk advanced on every price read; the sampled
ticks are bucketed into candles and fed to the ATR calculator so the
volatility gate has something to look at. Orders and positions only change
through the same stepwise primitives the real page exposes. No fills.
"""

from __future__ import annotations
import itertools
import random
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Optional
import logging

from core.atr import ATRCalculator
from exchange.errors import ElementNotFound
from exchange.models import BPS_DIVISOR, Candle, Control, IndicatorReading, Order, Position, Side
from exchange.parsing import parse_number
from exchange.venue import VenueAdapter

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class PaperVenue(VenueAdapter):

    def __init__(
        self,
        start_price: Decimal = Decimal("50000"),
        step_bps: Decimal = Decimal("1"),
        candle_ticks: int = 4,
        atr_period: int = 14,
        seed: Optional[int] = None,
        price_source: Optional[Callable[[], Decimal]] = None,
    ):
        self._price = Decimal(start_price)
        self.step_bps = Decimal(step_bps)
        self.candle_ticks = max(1, candle_ticks)
        self._rng = random.Random(seed)
        self._price_source = price_source
        self.atr = ATRCalculator(period=atr_period)

        self._ids = itertools.count(1)
        self._orders: Dict[str, Order] = {}
        self._positions: Dict[str, Position] = {}

        # Order entry panel
        self._limit_selected = False
        self._inputs: Dict[str, str] = {"price": "", "size": ""}

        # Close confirmation dialog: close handle of the position being closed
        self._dialog_for: Optional[str] = None

        self._ticks: List[Decimal] = []
        self._tick_started_ms = 0

    # ==================== Simulation ====================

    def _next_price(self) -> Decimal:
        if self._price_source is not None:
            self._price = Decimal(self._price_source())
        else:
            step = Decimal(str(self._rng.uniform(-1.0, 1.0))) * self.step_bps / BPS_DIVISOR
            self._price = (self._price * (1 + step)).quantize(CENT, rounding=ROUND_HALF_UP)
        return self._price

    def _record_tick(self, price: Decimal):
        if not self._ticks:
            self._tick_started_ms = int(time.time() * 1000)
        self._ticks.append(price)
        if len(self._ticks) >= self.candle_ticks:
            self.atr.update(Candle(
                timestamp=self._tick_started_ms,
                open=self._ticks[0],
                high=max(self._ticks),
                low=min(self._ticks),
                close=self._ticks[-1],
            ))
            self._ticks = []

    def seed_position(self, side: Side) -> str:
        handle = f"close-{next(self._ids)}"
        self._positions[handle] = Position(side=side, close_handle=handle)
        return handle

    def seed_order(self, side: Side, price: Decimal) -> str:
        handle = f"cancel-{next(self._ids)}"
        self._orders[handle] = Order(side=side, price=Decimal(price), cancel_handle=handle)
        return handle

    # ==================== Reads ====================

    async def read_current_price(self) -> Optional[Decimal]:
        price = self._next_price()
        self._record_tick(price)
        return price

    async def read_indicators(self) -> Optional[IndicatorReading]:
        return IndicatorReading(atr=self.atr.value)

    async def read_open_orders(self) -> List[Order]:
        return list(self._orders.values())

    async def read_open_positions(self) -> List[Position]:
        return list(self._positions.values())

    # ==================== Orders ====================

    async def cancel_order(self, handle: Any) -> None:
        order = self._orders.pop(handle, None)
        if order is None:
            raise ElementNotFound(f"no cancel button {handle!r}")
        logger.info(f"[PAPER] Cancelled {order.side.value} @ {order.price}")

    async def find_order_type_button(self, label: str) -> Optional[Control]:
        if label.strip().upper() != "LIMIT":
            return None
        return Control(handle="order-type:LIMIT", label="LIMIT")

    async def find_price_input(self) -> Optional[Control]:
        if not self._limit_selected:
            return None
        return Control(handle="input:price", label="Price")

    async def find_quantity_input(self) -> Optional[Control]:
        if not self._limit_selected:
            return None
        return Control(handle="input:size", label="Size")

    async def set_input_value(self, control: Control, value: str) -> None:
        key = str(control.handle).split(":", 1)[-1]
        if key not in self._inputs:
            raise ElementNotFound(f"no input {control.handle!r}")
        self._inputs[key] = value

    async def find_submit_button(self, label: str) -> Optional[Control]:
        side = Side.parse(label)
        if side is None:
            return None
        enabled = self._limit_selected and all(self._inputs.values())
        return Control(handle=f"submit:{side.value}", label=side.label, enabled=enabled)

    def _submit(self, side: Side):
        price = parse_number(self._inputs["price"])
        handle = self.seed_order(side, price)
        logger.info(f"[PAPER] Placed {side.value} {self._inputs['size']} @ {price} ({handle})")

    # ==================== Positions ====================

    async def press_close(self, handle: Any) -> None:
        if handle not in self._positions:
            raise ElementNotFound(f"no close button {handle!r}")
        self._dialog_for = handle

    async def find_confirmation_dialog(self) -> Optional[Control]:
        if self._dialog_for is None:
            return None
        return Control(handle=f"dialog:{self._dialog_for}", label="Close position")

    async def find_dialog_button(self, dialog: Control, label: str) -> Optional[Control]:
        if self._dialog_for is None:
            return None
        position = self._positions.get(self._dialog_for)
        if position is None:
            return None
        button_label = f"Close {position.side.confirm_label.title()}"
        if label.strip().upper() not in button_label.upper():
            return None
        return Control(handle=f"confirm:{self._dialog_for}", label=button_label)

    def _confirm_close(self, handle: str):
        position = self._positions.pop(handle, None)
        self._dialog_for = None
        if position:
            logger.info(f"[PAPER] Closed {position.side.value} position")

    # ==================== Generic ====================

    async def press(self, control: Control) -> None:
        kind, _, target = str(control.handle).partition(":")
        if kind == "order-type":
            self._limit_selected = True
        elif kind == "submit":
            if not control.enabled:
                raise ElementNotFound(f"{control.label} is disabled")
            self._submit(Side(target))
        elif kind == "confirm":
            self._confirm_close(target)
        else:
            raise ElementNotFound(f"cannot press {control.handle!r}")
