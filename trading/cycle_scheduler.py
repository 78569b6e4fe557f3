"""
Cycle Scheduler — drives the decision pipeline on a fixed period.

Lifecycle: IDLE → RUNNING → STOPPED (start() again resumes from STOPPED).
Each cycle runs Gate → Close positions → Cancel out-of-band → Reconcile,
strictly in that order.

Ticks are time based, not completion based: a cycle that outlives the
period overlaps the next one, and both read and mutate the same venue
state without locking. Set TimingConfig.skip_overlapping_ticks to drop a
tick while a cycle is still in flight instead.
"""

from __future__ import annotations
import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Set, TYPE_CHECKING
import logging

from core.distance_canceller import DistanceCanceller
from core.ladder import LadderReconciler
from core.position_closer import PositionCloser
from core.timing import settle
from core.volatility_gate import VolatilityGate
from exchange.models import CycleReport, CycleState, IndicatorReading, SchedulerState
from trading.order_executor import OrderExecutor

if TYPE_CHECKING:
    from config import LadderConfig, TimingConfig
    from exchange.venue import VenueAdapter

logger = logging.getLogger(__name__)


class CycleScheduler:

    def __init__(
        self,
        venue: "VenueAdapter",
        config: "LadderConfig",
        timing: "TimingConfig",
        on_stopped: Optional[Callable[["CycleScheduler"], None]] = None,
    ):
        self.venue = venue
        self.config = config
        self.timing = timing
        self.on_stopped = on_stopped

        self.cycle_state = CycleState()
        self.last_report: Optional[CycleReport] = None
        self._state = SchedulerState.IDLE
        self._timer: Optional[asyncio.Task] = None
        self._cycles: Set[asyncio.Task] = set()
        self._stopped = asyncio.Event()

        self.gate = VolatilityGate(config)
        self.closer = PositionCloser(venue, timing)
        self.canceller = DistanceCanceller(venue, config, timing)
        self.executor = OrderExecutor(venue, config, timing)
        self.reconciler = LadderReconciler(self.executor, config, timing)

    # ==================== Observability ====================

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    @property
    def loop_counter(self) -> int:
        return self.cycle_state.loop_counter

    @property
    def previous_atr(self) -> Optional[Decimal]:
        return self.cycle_state.previous_atr

    @property
    def in_flight(self) -> int:
        return len(self._cycles)

    # ==================== Lifecycle ====================

    def start(self) -> bool:
        """Run one cycle now and arm the periodic timer. Must be called inside a running loop."""
        if self.running:
            logger.info("[CYCLE] Trading loop is already running.")
            return False

        self.cycle_state.loop_counter = 0
        self._set_state(SchedulerState.RUNNING)
        self._stopped.clear()
        logger.info(
            f"[CYCLE] Starting trading loop for {self.config.symbol} "
            f"(every {self.timing.cycle_interval_sec:g}s, "
            f"max loops: {self.config.max_loops if self.config.max_loops > 0 else 'unbounded'})"
        )

        self._spawn_cycle()
        self._timer = asyncio.create_task(self._tick_loop())
        return True

    def stop(self) -> bool:
        """Prevent future ticks. Cycles already in flight run to completion."""
        if not self.running:
            logger.info("[CYCLE] Trading loop is not running.")
            return False

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._set_state(SchedulerState.STOPPED)
        self._stopped.set()
        logger.info("[CYCLE] Trading loop stopped.")
        if self.on_stopped is not None:
            self.on_stopped(self)
        return True

    async def wait_stopped(self):
        await self._stopped.wait()

    async def drain(self, timeout: Optional[float] = None):
        """Wait for in-flight cycles to finish (used on shutdown)."""
        if not self._cycles:
            return
        await asyncio.wait(set(self._cycles), timeout=timeout)

    def _set_state(self, state: SchedulerState):
        self._state = state
        self.cycle_state.running = state == SchedulerState.RUNNING

    async def _tick_loop(self):
        while self.running:
            await asyncio.sleep(self.timing.cycle_interval_sec)
            if not self.running:
                break
            self._spawn_cycle()

    def _spawn_cycle(self):
        if self.timing.skip_overlapping_ticks and self._cycles:
            logger.warning("[CYCLE] Previous cycle still running. Skipping this tick.")
            return
        task = asyncio.create_task(self.run_cycle())
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)

    # ==================== Cycle ====================

    def _loop_label(self, number: int) -> str:
        if self.config.max_loops > 0:
            return f"{number}/{self.config.max_loops}"
        return str(number)

    async def run_cycle(self) -> CycleReport:
        """One full decision cycle. Never raises."""
        self.cycle_state.loop_counter += 1
        report = CycleReport(number=self.cycle_state.loop_counter)
        logger.info(
            f"[CYCLE] --- Running trading cycle [{self._loop_label(report.number)}] "
            f"at {report.started_at:%H:%M:%S} ---"
        )

        try:
            await self._pipeline(report)
        except Exception as e:
            report.aborted = f"error: {e}"
            logger.error(f"[CYCLE] A critical error occurred in the trading cycle: {e}", exc_info=True)

        report.finished_at = datetime.utcnow()
        self.last_report = report
        logger.info("[CYCLE] --- Trading cycle complete ---")

        max_loops = self.config.max_loops
        if max_loops > 0 and self.cycle_state.loop_counter >= max_loops and self.running:
            logger.info(f"[CYCLE] Max loops ({max_loops}) reached. Stopping.")
            self.stop()
        return report

    async def _pipeline(self, report: CycleReport):
        # 1. Volatility gate
        skip = False
        if self.gate.enabled:
            reading = await self._read_indicators()
            report.atr = reading.atr if reading else None
            skip = self.gate.evaluate(reading, self.cycle_state)
        report.placement_skipped = skip

        # 2. Positions are always closed
        positions = await self.venue.read_open_positions()
        report.positions_seen = len(positions)
        if positions:
            logger.info(f"[CYCLE] Found {len(positions)} open position(s). Closing them now.")
            report.positions_closed = await self.closer.close_all(positions)
            logger.info("[CYCLE] Waiting for venue to update after closing positions...")
            await settle(self.timing.post_close_settle_sec)

        # 3. Distance check
        orders = await self.venue.read_open_orders()
        report.orders_seen = len(orders)
        price = await self._read_price()
        if price is None:
            report.aborted = "no price"
            logger.error("[CYCLE] Halting cycle: could not get current price.")
            return
        report.price = price

        cancelled = await self.canceller.cancel_out_of_band(orders, price)
        report.orders_cancelled = cancelled
        if cancelled:
            logger.info("[CYCLE] Waiting for venue to update after cancellations...")
            await settle(self.timing.post_cancel_settle_sec)

        # 4. Placement
        if skip:
            logger.info("[CYCLE] New order placement skipped due to volatility.")
            return

        current = await self.venue.read_open_orders() if cancelled else orders
        report.placements_attempted, report.placements_succeeded = await self.reconciler.reconcile(
            current, price, cancelled,
        )

    async def _read_indicators(self) -> Optional[IndicatorReading]:
        try:
            return await self.venue.read_indicators()
        except Exception as e:
            logger.error(f"[GATE] Indicator read failed: {e}")
            return None

    async def _read_price(self) -> Optional[Decimal]:
        try:
            price = await self.venue.read_current_price()
        except Exception as e:
            logger.error(f"[CYCLE] Price read failed: {e}")
            return None
        if price is not None and price <= 0:
            logger.error(f"[CYCLE] Ignoring non-positive price {price}")
            return None
        return price
