"""
Data models for the Ladder Keeper.
Uses Decimal for all price/distance calculations — no floating point errors.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from datetime import datetime

BPS_DIVISOR = Decimal("10000")


@dataclass(frozen=True)
class SideTraits:
    sign: int                   # price direction relative to market
    label: str                  # label the venue shows for this side
    confirm_label: str          # label to confirm when closing a position of this side


class Side(Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def traits(self) -> SideTraits:
        return _SIDE_TRAITS[self]

    @property
    def label(self) -> str:
        return self.traits.label

    @property
    def confirm_label(self) -> str:
        return self.traits.confirm_label

    def price_multiplier(self, bps: Decimal) -> Decimal:
        """LONG rests below price, SHORT above: 1 ∓ bps/10000."""
        return Decimal("1") + Decimal(self.traits.sign) * Decimal(bps) / BPS_DIVISOR

    @classmethod
    def parse(cls, text: str) -> Optional["Side"]:
        value = (text or "").strip().lower()
        for side in cls:
            if value == side.value:
                return side
        return None


_SIDE_TRAITS = {
    Side.LONG: SideTraits(sign=-1, label="LONG", confirm_label="SHORT"),
    Side.SHORT: SideTraits(sign=1, label="SHORT", confirm_label="LONG"),
}


class SchedulerState(Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


@dataclass
class Order:
    """Resting limit order as seen in one snapshot. No identity across cycles."""
    side: Side
    price: Decimal
    cancel_handle: Any = None


@dataclass
class Position:
    """Open position as seen in one snapshot."""
    side: Side
    close_handle: Any = None


@dataclass
class IndicatorReading:
    """Chart indicator values; any of them may be missing."""
    atr: Optional[Decimal] = None
    adx: Optional[Decimal] = None
    rsi: Optional[Decimal] = None


@dataclass
class Candle:
    """OHLC candle built from sampled prices."""
    timestamp: int          # Unix ms of the first tick
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal


@dataclass
class Control:
    """A located UI control (button, input, dialog) on the venue."""
    handle: Any
    label: str = ""
    enabled: bool = True


@dataclass
class CycleState:
    """Scheduler-owned state. In-memory only."""
    loop_counter: int = 0
    previous_atr: Optional[Decimal] = None
    running: bool = False


@dataclass
class CycleReport:
    """What one decision cycle observed and did."""
    number: int
    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    placement_skipped: bool = False
    positions_seen: int = 0
    positions_closed: int = 0
    orders_seen: int = 0
    orders_cancelled: bool = False
    placements_attempted: int = 0
    placements_succeeded: int = 0
    price: Optional[Decimal] = None
    atr: Optional[Decimal] = None
    aborted: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "placement_skipped": self.placement_skipped,
            "positions_seen": self.positions_seen,
            "positions_closed": self.positions_closed,
            "orders_seen": self.orders_seen,
            "orders_cancelled": self.orders_cancelled,
            "placements_attempted": self.placements_attempted,
            "placements_succeeded": self.placements_succeeded,
            "price": self.price,
            "atr": self.atr,
            "aborted": self.aborted,
        }
