"""
Dashboard — Lightweight web server for diagnostics and start/stop control.
Uses aiohttp.web (already a dependency) to serve a small JSON API.
"""

from __future__ import annotations
import os
import hmac
import json
from decimal import Decimal
from datetime import datetime
from typing import TYPE_CHECKING
from aiohttp import web
import logging

if TYPE_CHECKING:
    from trading.cycle_scheduler import CycleScheduler

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-Dashboard-Token"


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types."""
    def default(self, o):
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def json_response(data, status=200):
    return web.Response(
        text=json.dumps(data, cls=DecimalEncoder),
        content_type="application/json",
        status=status,
    )


class Dashboard:
    """Web dashboard server."""

    def __init__(
        self,
        scheduler: "CycleScheduler",
        port: int = 8080,
        log_path: str = "data/bot.log",
        host: str = "127.0.0.1",
        token: str = "",
    ):
        self.scheduler = scheduler
        self.port = port
        self.host = host
        self.token = token
        self.log_path = log_path
        self.app = web.Application()
        self._runner: web.AppRunner | None = None
        self._setup_routes()

    def _setup_routes(self):
        self.app.router.add_get("/api/status", self._api_status)
        self.app.router.add_get("/api/logs", self._api_logs)
        self.app.router.add_post("/api/start", self._api_start)
        self.app.router.add_post("/api/stop", self._api_stop)

    async def start(self):
        """Start the dashboard web server."""
        self._runner = web.AppRunner(self.app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(f"[DASHBOARD] Running on http://{self.host}:{self.port}")
        if not self.token:
            logger.warning("[DASHBOARD] No DASHBOARD_TOKEN set. Start/stop control is disabled.")

    async def stop(self):
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    # ─── Routes ───

    def status(self) -> dict:
        s = self.scheduler
        config = s.config
        return {
            "state": s.state.value,
            "running": s.running,
            "loop_counter": s.loop_counter,
            "max_loops": config.max_loops,
            "previous_atr": s.previous_atr,
            "in_flight": s.in_flight,
            "last_cycle": s.last_report.to_dict() if s.last_report else None,
            "config": {
                "symbol": config.symbol,
                "quantity": config.quantity,
                "bps_ladder": list(config.bps_ladder),
                "replacement_bps": config.replacement_bps,
                "min_distance_bps": config.min_distance_bps,
                "max_distance_bps": config.max_distance_bps,
                "use_indicators": config.use_indicators,
                "max_atr": config.max_atr,
                "atr_change_threshold": config.atr_change_threshold,
            },
            "timestamp": datetime.utcnow().isoformat(),
        }

    async def _api_status(self, request: web.Request) -> web.Response:
        try:
            return json_response(self.status())
        except Exception as e:
            logger.error(f"[DASHBOARD] API error: {e}", exc_info=True)
            return json_response({"error": str(e)}, status=500)

    def _authorized(self, request: web.Request) -> bool:
        """Control routes need the configured token. No token, no control."""
        supplied = request.headers.get(TOKEN_HEADER, "")
        return bool(self.token) and hmac.compare_digest(supplied.encode(), self.token.encode())

    def _unauthorized(self, request: web.Request) -> web.Response:
        logger.warning(f"[DASHBOARD] Rejected {request.method} {request.path} from {request.remote}")
        return json_response({"error": "unauthorized"}, status=401)

    async def _api_start(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return self._unauthorized(request)
        started = self.scheduler.start()
        return json_response({"started": started, **self.status()})

    async def _api_stop(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return self._unauthorized(request)
        stopped = self.scheduler.stop()
        return json_response({"stopped": stopped, **self.status()})

    async def _api_logs(self, request: web.Request) -> web.Response:
        """Return last N lines from the log file."""
        try:
            n = int(request.query.get("n", 50))
            lines = []
            if os.path.exists(self.log_path):
                with open(self.log_path, "r") as f:
                    all_lines = f.readlines()
                    lines = [l.strip() for l in all_lines[-n:]]
            return json_response({"lines": lines, "total": len(lines)})
        except Exception as e:
            return json_response({"error": str(e)}, status=500)
