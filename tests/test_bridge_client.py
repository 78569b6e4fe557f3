"""Tests for the bridge venue client (HTTP layer faked)."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

import aiohttp
import pytest

from exchange.bridge_client import VenueBridgeClient
from exchange.errors import BridgeError
from exchange.models import Control, Side


class FakeResponse:

    def __init__(self, payload):
        self._payload = payload

    async def __aenter__(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self):
        return self._payload


class FakeSession:
    """Maps endpoint path -> payload and records requests."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []
        self.closed = False

    def _respond(self, method, url, **kwargs):
        path = url.split("8765", 1)[-1]
        self.requests.append((method, path, kwargs.get("json") or kwargs.get("params"), kwargs.get("headers")))
        return FakeResponse(self.routes[path])

    def get(self, url, **kwargs):
        return self._respond("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._respond("POST", url, **kwargs)


def _client(routes, token=""):
    client = VenueBridgeClient("http://127.0.0.1:8765/", token=token)
    session = FakeSession(routes)
    client._get_session = AsyncMock(return_value=session)
    return client, session


def ok(result):
    return {"retCode": 0, "retMsg": "OK", "result": result}


class TestReads:

    async def test_price_from_title(self):
        client, _ = _client({"/v1/page/title": ok({"title": "50,012.5 | BTC-USD"})})
        assert await client.read_current_price() == Decimal("50012.5")

    async def test_unparseable_title_is_none(self):
        client, _ = _client({"/v1/page/title": ok({"title": "Loading..."})})
        assert await client.read_current_price() is None

    async def test_indicators(self):
        client, _ = _client({"/v1/page/indicators": ok({"legend": ["ATR 14 RMA 3.21"]})})
        reading = await client.read_indicators()
        assert reading.atr == Decimal("3.21")

    async def test_no_legend_means_no_reading(self):
        client, _ = _client({"/v1/page/indicators": ok({"legend": []})})
        assert await client.read_indicators() is None

    async def test_orders_and_positions(self):
        client, _ = _client({
            "/v1/tables/orders": ok({"rows": [{"side": "long", "price": "49,970.00", "cancel": "e12"}]}),
            "/v1/tables/positions": ok({"rows": [{"side": "SHORT", "close": "e40"}]}),
        })

        orders = await client.read_open_orders()
        positions = await client.read_open_positions()

        assert orders[0].side == Side.LONG
        assert orders[0].cancel_handle == "e12"
        assert positions[0].close_handle == "e40"


class TestEnvelope:

    async def test_non_zero_ret_code_raises(self):
        client, _ = _client({"/v1/tables/orders": {"retCode": 404, "retMsg": "table not found"}})

        with pytest.raises(BridgeError) as exc:
            await client.read_open_orders()
        assert exc.value.code == 404

    async def test_transport_error_wrapped(self):
        client, _ = _client({"/v1/page/title": aiohttp.ClientConnectionError("refused")})

        with pytest.raises(BridgeError):
            await client.read_current_price()

    async def test_token_header(self):
        client, session = _client({"/v1/page/title": ok({"title": "1.5"})}, token="s3cret")

        await client.read_current_price()

        assert session.requests[0][3]["X-Bridge-Token"] == "s3cret"


class TestElements:

    async def test_submit_lookup_excludes_tables(self):
        client, session = _client({
            "/v1/element/find": ok({"handle": "e7", "label": "LONG", "enabled": False}),
        })

        control = await client.find_submit_button("LONG")

        assert control == Control(handle="e7", label="LONG", enabled=False)
        assert session.requests[0][2] == {
            "kind": "button", "label": "LONG", "match": "exact", "excludeTables": True,
        }

    async def test_not_found_is_none(self):
        client, _ = _client({"/v1/element/find": ok({"handle": None})})
        assert await client.find_confirmation_dialog() is None

    async def test_dialog_button_scoped_to_dialog(self):
        client, session = _client({"/v1/element/find": ok({"handle": "e9", "label": "Close Short"})})

        await client.find_dialog_button(Control(handle="d1"), "SHORT")

        assert session.requests[0][2]["within"] == "d1"
        assert session.requests[0][2]["match"] == "contains"

    async def test_mutations(self):
        client, session = _client({
            "/v1/element/click": ok({}),
            "/v1/element/input": ok({}),
        })

        await client.cancel_order("e12")
        await client.set_input_value(Control(handle="e3"), "49970.00")

        assert session.requests == [
            ("POST", "/v1/element/click", {"handle": "e12"}, session.requests[0][3]),
            ("POST", "/v1/element/input", {"handle": "e3", "value": "49970.00"}, session.requests[1][3]),
        ]
