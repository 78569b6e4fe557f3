"""Shared fixtures: a recording fake venue and zero-delay timings."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional

import pytest

from config import LadderConfig, TimingConfig
from exchange.models import Control, IndicatorReading, Order, Position, Side
from exchange.venue import VenueAdapter


class FakeVenue(VenueAdapter):
    """Scripted venue that records every call in order."""

    def __init__(
        self,
        prices: Optional[List[Optional[Decimal]]] = None,
        orders: Optional[List[Order]] = None,
        positions: Optional[List[Position]] = None,
        indicators: Optional[IndicatorReading] = None,
    ):
        self.prices = list(prices) if prices is not None else [Decimal("50000")]
        self.orders = list(orders or [])
        self.positions = list(positions or [])
        self.indicators = indicators

        # Knobs for the stepwise flows
        self.limit_button = True
        self.price_input = True
        self.quantity_input = True
        self.submit_present = True
        self.submit_enabled = True
        self.dialog_appears = True
        self.dialog_labels = ["Cancel", "Close Long", "Close Short"]
        self.fail_cancel = False
        self.fail_press_close = False
        self.orders_after_cancel: Optional[List[Order]] = None

        self.calls: List[tuple] = []
        self.placements: List[tuple] = []
        self._inputs = {}
        self._close_pressed = False

    # reads
    async def read_current_price(self):
        self.calls.append(("price",))
        if len(self.prices) > 1:
            return self.prices.pop(0)
        return self.prices[0]

    async def read_indicators(self):
        self.calls.append(("indicators",))
        return self.indicators

    async def read_open_orders(self):
        self.calls.append(("orders",))
        return list(self.orders)

    async def read_open_positions(self):
        self.calls.append(("positions",))
        return list(self.positions)

    # orders
    async def cancel_order(self, handle: Any):
        self.calls.append(("cancel", handle))
        if self.fail_cancel:
            raise RuntimeError("cancel button vanished")
        if self.orders_after_cancel is not None:
            self.orders = list(self.orders_after_cancel)

    async def find_order_type_button(self, label):
        return Control(handle="limit", label=label) if self.limit_button else None

    async def find_price_input(self):
        return Control(handle="price-input") if self.price_input else None

    async def find_quantity_input(self):
        return Control(handle="qty-input") if self.quantity_input else None

    async def set_input_value(self, control, value):
        self.calls.append(("input", control.handle, value))
        self._inputs[control.handle] = value

    async def find_submit_button(self, label):
        if not self.submit_present:
            return None
        return Control(handle=f"submit:{label}", label=label, enabled=self.submit_enabled)

    # positions
    async def press_close(self, handle):
        self.calls.append(("press_close", handle))
        if self.fail_press_close:
            raise RuntimeError("close button detached")
        self._close_pressed = True

    async def find_confirmation_dialog(self):
        if self.dialog_appears and self._close_pressed:
            return Control(handle="dialog")
        return None

    async def find_dialog_button(self, dialog, label):
        for text in self.dialog_labels:
            if label.upper() in text.upper():
                return Control(handle=f"confirm:{text}", label=text)
        return None

    # generic
    async def press(self, control):
        self.calls.append(("press", control.handle))
        if str(control.handle).startswith("submit:"):
            self.placements.append((
                control.label,
                self._inputs.get("price-input"),
                self._inputs.get("qty-input"),
            ))
        if str(control.handle).startswith("confirm:"):
            self._close_pressed = False

    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("cancel", "press", "press_close", "input")]


def order(side: Side, price: str, handle: str = None) -> Order:
    return Order(side=side, price=Decimal(price), cancel_handle=handle or f"{side.value}@{price}")


@pytest.fixture
def timing() -> TimingConfig:
    return TimingConfig(
        cycle_interval_sec=0.05,
        element_timeout_sec=0.05,
        poll_interval_sec=0.01,
        close_settle_sec=0,
        post_close_settle_sec=0,
        cancel_settle_sec=0,
        post_cancel_settle_sec=0,
        placement_delay_sec=0,
        input_settle_sec=0,
        pre_submit_sec=0,
    )


@pytest.fixture
def ladder_config() -> LadderConfig:
    return LadderConfig()


@pytest.fixture
def venue() -> FakeVenue:
    return FakeVenue()
