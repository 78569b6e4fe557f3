"""
Venue Adapter — the read/mutate surface the decision engine consumes.

Reads return snapshots. Mutations are low-level steps (press, find, type);
the multi-step close and place sequences are composed by the core so each
step can have its own timeout and abort. Nothing here is atomic.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, List, Optional
from exchange.models import Control, IndicatorReading, Order, Position


class VenueAdapter(ABC):

    # ==================== Reads ====================

    @abstractmethod
    async def read_current_price(self) -> Optional[Decimal]:
        """Last traded price, or None if it cannot be read right now."""

    @abstractmethod
    async def read_indicators(self) -> Optional[IndicatorReading]:
        """Chart indicators; None when no indicator is visible at all."""

    @abstractmethod
    async def read_open_orders(self) -> List[Order]:
        ...

    @abstractmethod
    async def read_open_positions(self) -> List[Position]:
        ...

    # ==================== Orders ====================

    @abstractmethod
    async def cancel_order(self, handle: Any) -> None:
        ...

    @abstractmethod
    async def find_order_type_button(self, label: str) -> Optional[Control]:
        """Order-type selector (e.g. "LIMIT") in the order entry panel."""

    @abstractmethod
    async def find_price_input(self) -> Optional[Control]:
        ...

    @abstractmethod
    async def find_quantity_input(self) -> Optional[Control]:
        ...

    @abstractmethod
    async def set_input_value(self, control: Control, value: str) -> None:
        ...

    @abstractmethod
    async def find_submit_button(self, label: str) -> Optional[Control]:
        """
        Global submit control whose label equals `label`.
        Must never return a row-level button living inside a table.
        """

    # ==================== Positions ====================

    @abstractmethod
    async def press_close(self, handle: Any) -> None:
        ...

    @abstractmethod
    async def find_confirmation_dialog(self) -> Optional[Control]:
        ...

    @abstractmethod
    async def find_dialog_button(self, dialog: Control, label: str) -> Optional[Control]:
        """Button inside `dialog` whose label contains `label` (case-insensitive)."""

    # ==================== Generic ====================

    @abstractmethod
    async def press(self, control: Control) -> None:
        ...

    async def close(self):
        """Release any transport resources."""
