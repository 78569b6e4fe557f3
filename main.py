"""
Ladder Keeper — Main Orchestrator.
Ties all components together: startup, venue selection, scheduling, shutdown.
"""

from __future__ import annotations
import asyncio
import os
import sys
import signal
import logging

from dotenv import load_dotenv

from config import BotConfig
from dashboard import Dashboard
from exchange.bridge_client import VenueBridgeClient
from exchange.paper_venue import PaperVenue
from exchange.venue import VenueAdapter
from notifications.telegram import TelegramNotifier
from trading.cycle_scheduler import CycleScheduler

logger = logging.getLogger(__name__)


def setup_logging(level: str, log_file: str):
    """Configure root logging once: stdout plus a log file."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def build_venue(config: BotConfig) -> VenueAdapter:
    venue = config.venue
    if venue.mode == "bridge":
        return VenueBridgeClient(
            base_url=venue.bridge_url,
            token=venue.bridge_token,
            timeout_sec=venue.request_timeout_sec,
        )
    return PaperVenue(
        start_price=venue.paper_start_price,
        step_bps=venue.paper_step_bps,
        candle_ticks=venue.paper_candle_ticks,
        atr_period=venue.paper_atr_period,
        seed=venue.paper_seed,
    )


class Bot:
    """Main bot orchestrator."""

    def __init__(self, config: BotConfig, venue: VenueAdapter | None = None):
        self.config = config
        self._shutdown = asyncio.Event()
        self._pending: set[asyncio.Task] = set()

        self.venue = venue if venue is not None else build_venue(config)
        self.notifier = TelegramNotifier(
            bot_token=config.notifications.telegram_bot_token,
            chat_id=config.notifications.telegram_chat_id,
            enabled=config.notifications.enabled,
        )
        self.scheduler = CycleScheduler(
            self.venue,
            config.ladder,
            config.timing,
            on_stopped=self._on_scheduler_stopped,
        )
        self.dashboard = (
            Dashboard(
                self.scheduler,
                port=config.dashboard.port,
                log_path=config.log_file,
                host=config.dashboard.host,
                token=config.dashboard.token,
            )
            if config.dashboard.enabled else None
        )

    async def start(self):
        """Full startup sequence. Returns once shutdown is requested."""
        logger.info("=" * 60)
        logger.info("   LADDER KEEPER — STARTING")
        logger.info("=" * 60)

        ladder = self.config.ladder
        logger.info(
            f"[BOOT] {ladder.symbol}: qty={ladder.quantity}, "
            f"ladder={[str(b) for b in ladder.bps_ladder]} bps, "
            f"band=[{ladder.min_distance_bps}, {ladder.max_distance_bps}] bps, "
            f"venue={self.config.venue.mode}"
        )

        if self.dashboard is not None:
            await self.dashboard.start()

        await self.notifier.send_bot_status(
            f"Started ✅\n"
            f"Symbol: {ladder.symbol}\n"
            f"Venue: {self.config.venue.mode}"
        )

        self.scheduler.start()

        # With a dashboard the process stays up so the loop can be restarted remotely
        waiters = [asyncio.create_task(self._shutdown.wait())]
        if self.dashboard is None:
            waiters.append(asyncio.create_task(self.scheduler.wait_stopped()))
        done, pending = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()

    def request_shutdown(self):
        self._shutdown.set()

    def _on_scheduler_stopped(self, scheduler: CycleScheduler):
        task = asyncio.create_task(
            self.notifier.send_loop_finished(
                self.config.ladder.symbol, scheduler.loop_counter, scheduler.last_report,
            )
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def stop(self):
        """Graceful shutdown. In-flight cycles are allowed to finish."""
        logger.info("[SHUTDOWN] Stopping bot...")
        self.scheduler.stop()
        await self.scheduler.drain(timeout=self.config.timing.cycle_interval_sec)

        if self._pending:
            await asyncio.wait(set(self._pending), timeout=5)
        if self.dashboard is not None:
            await self.dashboard.stop()
        await self.venue.close()
        await self.notifier.close()

        logger.info("[SHUTDOWN] Complete.")


async def main():
    """Entry point."""
    load_dotenv()

    try:
        config = BotConfig.from_env()
    except ValueError as e:
        setup_logging("INFO", "")
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)

    setup_logging(config.log_level, config.log_file)
    bot = Bot(config)

    # Graceful shutdown handler
    if sys.platform != "win32":
        loop = asyncio.get_running_loop()

        def handle_signal(sig):
            logger.info(f"Received signal {sig}. Initiating shutdown...")
            bot.request_shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))

    try:
        await bot.start()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received in main loop.")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        await bot.stop()
        sys.exit(1)

    await bot.stop()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
