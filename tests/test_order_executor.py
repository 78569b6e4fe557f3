"""Tests for single-shot limit order placement."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

from conftest import FakeVenue
from exchange.models import Side
from trading.order_executor import OrderExecutor


class TestPlaceOrder:

    async def test_happy_path_step_order(self, venue, ladder_config, timing):
        executor = OrderExecutor(venue, ladder_config, timing)

        ok = await executor.place_order(Side.SHORT, Side.SHORT.price_multiplier(Decimal("6")))

        assert ok is True
        assert venue.mutations() == [
            ("press", "limit"),
            ("input", "price-input", "50030.00"),
            ("input", "qty-input", "0.001"),
            ("press", "submit:SHORT"),
        ]

    async def test_target_price_rounded_half_up_to_cents(self, ladder_config, timing):
        venue = FakeVenue(prices=[Decimal("43210.55")])
        executor = OrderExecutor(venue, ladder_config, timing)

        await executor.place_order(Side.LONG, Side.LONG.price_multiplier(Decimal("7")))

        # 43210.55 * 0.9993 = 43180.302615
        assert venue.placements == [("LONG", "43180.30", "0.001")]

    async def test_missing_price_aborts_before_touching_the_panel(self, ladder_config, timing):
        venue = FakeVenue(prices=[None])
        executor = OrderExecutor(venue, ladder_config, timing)

        assert await executor.place_order(Side.LONG, Decimal("0.9994")) is False
        assert venue.mutations() == []

    async def test_missing_limit_button_aborts(self, venue, ladder_config, timing):
        venue.limit_button = False
        executor = OrderExecutor(venue, ladder_config, timing)

        assert await executor.place_order(Side.LONG, Decimal("0.9994")) is False
        assert venue.mutations() == []

    async def test_missing_quantity_input_times_out(self, venue, ladder_config, timing):
        venue.quantity_input = False
        executor = OrderExecutor(venue, ladder_config, timing)

        assert await executor.place_order(Side.LONG, Decimal("0.9994")) is False
        assert venue.mutations() == [("press", "limit")]

    async def test_disabled_submit_leaves_fields_filled(self, venue, ladder_config, timing):
        venue.submit_enabled = False
        executor = OrderExecutor(venue, ladder_config, timing)

        assert await executor.place_order(Side.LONG, Decimal("0.9994")) is False
        assert venue.mutations() == [
            ("press", "limit"),
            ("input", "price-input", "49970.00"),
            ("input", "qty-input", "0.001"),
        ]
        assert venue.placements == []

    async def test_missing_submit_aborts(self, venue, ladder_config, timing):
        venue.submit_present = False
        executor = OrderExecutor(venue, ladder_config, timing)

        assert await executor.place_order(Side.SHORT, Decimal("1.0006")) is False
        assert venue.placements == []

    async def test_venue_error_is_reported_not_raised(self, venue, ladder_config, timing):
        venue.set_input_value = AsyncMock(side_effect=RuntimeError("input detached"))
        executor = OrderExecutor(venue, ladder_config, timing)

        assert await executor.place_order(Side.LONG, Decimal("0.9994")) is False

    async def test_price_read_error_aborts(self, venue, ladder_config, timing):
        venue.read_current_price = AsyncMock(side_effect=RuntimeError("title gone"))
        executor = OrderExecutor(venue, ladder_config, timing)

        assert await executor.place_order(Side.LONG, Decimal("0.9994")) is False
        assert venue.mutations() == []
