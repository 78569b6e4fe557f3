"""
Venue Bridge Client.
Talks JSON over HTTP to the browser-side bridge that owns the trading page
(DOM lookups, clicks, synthetic input). Implements the VenueAdapter surface.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, List, Optional
import aiohttp
import logging

from exchange.errors import BridgeError
from exchange.models import Control, IndicatorReading, Order, Position
from exchange.parsing import (
    parse_indicator_legend,
    parse_order_rows,
    parse_position_rows,
    parse_price_from_title,
)
from exchange.venue import VenueAdapter

logger = logging.getLogger(__name__)


class VenueBridgeClient(VenueAdapter):
    """Async wrapper around the bridge's /v1 API."""

    def __init__(self, base_url: str, token: str = "", timeout_sec: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_sec = timeout_sec
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_sec),
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["X-Bridge-Token"] = self.token
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """Make a bridge request and unwrap the result envelope."""
        session = await self._get_session()
        url = f"{self.base_url}{endpoint}"

        try:
            if method == "GET":
                async with session.get(url, headers=self._headers(), params=params) as resp:
                    data = await resp.json()
            else:
                async with session.post(url, headers=self._headers(), json=params or {}) as resp:
                    data = await resp.json()
        except (aiohttp.ClientError, ValueError) as e:
            logger.error(f"[BRIDGE] {method} {endpoint} Exception: {e}")
            raise BridgeError(f"{method} {endpoint}: {e}")

        code = data.get("retCode", -1)
        if code != 0:
            logger.error(
                f"[BRIDGE] {method} {endpoint} Error: "
                f"code={code}, msg={data.get('retMsg')}"
            )
            raise BridgeError(data.get("retMsg") or "bridge error", code=code)
        return data.get("result") or {}

    # ==================== Reads ====================

    async def read_current_price(self) -> Optional[Decimal]:
        result = await self._request("GET", "/v1/page/title")
        return parse_price_from_title(result.get("title", ""))

    async def read_indicators(self) -> Optional[IndicatorReading]:
        result = await self._request("GET", "/v1/page/indicators")
        items = result.get("legend", [])
        if not items:
            return None
        return parse_indicator_legend(items)

    async def read_open_orders(self) -> List[Order]:
        result = await self._request("GET", "/v1/tables/orders")
        return parse_order_rows(result.get("rows", []))

    async def read_open_positions(self) -> List[Position]:
        result = await self._request("GET", "/v1/tables/positions")
        return parse_position_rows(result.get("rows", []))

    # ==================== Element lookups ====================

    async def _find(self, kind: str, **query) -> Optional[Control]:
        params = {"kind": kind, **{k: v for k, v in query.items() if v is not None}}
        result = await self._request("POST", "/v1/element/find", params)
        handle = result.get("handle")
        if handle is None:
            return None
        return Control(
            handle=handle,
            label=result.get("label", ""),
            enabled=bool(result.get("enabled", True)),
        )

    async def find_order_type_button(self, label: str) -> Optional[Control]:
        return await self._find("button", label=label, match="exact")

    async def find_price_input(self) -> Optional[Control]:
        return await self._find("input", placeholder="Price")

    async def find_quantity_input(self) -> Optional[Control]:
        return await self._find("input", placeholder="Size")

    async def find_submit_button(self, label: str) -> Optional[Control]:
        return await self._find("button", label=label, match="exact", excludeTables=True)

    async def find_confirmation_dialog(self) -> Optional[Control]:
        return await self._find("dialog")

    async def find_dialog_button(self, dialog: Control, label: str) -> Optional[Control]:
        return await self._find("button", label=label, match="contains", within=dialog.handle)

    # ==================== Mutations ====================

    async def press(self, control: Control) -> None:
        await self._request("POST", "/v1/element/click", {"handle": control.handle})

    async def cancel_order(self, handle: Any) -> None:
        logger.info(f"[BRIDGE] Cancel click: {handle}")
        await self._request("POST", "/v1/element/click", {"handle": handle})

    async def press_close(self, handle: Any) -> None:
        logger.info(f"[BRIDGE] Close click: {handle}")
        await self._request("POST", "/v1/element/click", {"handle": handle})

    async def set_input_value(self, control: Control, value: str) -> None:
        await self._request(
            "POST", "/v1/element/input",
            {"handle": control.handle, "value": value},
        )
