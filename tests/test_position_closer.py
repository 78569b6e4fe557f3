"""Tests for the two-step position close flow."""

from __future__ import annotations

from exchange.models import Position, Side
from core.position_closer import PositionCloser


class TestCloseAll:

    async def test_long_is_confirmed_with_short_button(self, venue, timing):
        closer = PositionCloser(venue, timing)

        closed = await closer.close_all([Position(side=Side.LONG, close_handle="p1")])

        assert closed == 1
        assert venue.mutations() == [
            ("press_close", "p1"),
            ("press", "confirm:Close Short"),
        ]

    async def test_short_is_confirmed_with_long_button(self, venue, timing):
        closer = PositionCloser(venue, timing)

        await closer.close_all([Position(side=Side.SHORT, close_handle="p2")])

        assert ("press", "confirm:Close Long") in venue.mutations()

    async def test_dialog_timeout_aborts_only_that_position(self, venue, timing):
        venue.dialog_appears = False
        closer = PositionCloser(venue, timing)

        closed = await closer.close_all([
            Position(side=Side.LONG, close_handle="a"),
            Position(side=Side.SHORT, close_handle="b"),
        ])

        assert closed == 0
        assert venue.mutations() == [("press_close", "a"), ("press_close", "b")]

    async def test_missing_confirmation_button(self, venue, timing):
        venue.dialog_labels = ["Cancel", "Close Long"]
        closer = PositionCloser(venue, timing)

        closed = await closer.close_all([
            Position(side=Side.LONG, close_handle="a"),
            Position(side=Side.SHORT, close_handle="b"),
        ])

        assert closed == 1
        assert ("press", "confirm:Close Long") in venue.mutations()

    async def test_errors_never_escape(self, venue, timing):
        venue.fail_press_close = True
        closer = PositionCloser(venue, timing)

        closed = await closer.close_all([
            Position(side=Side.LONG, close_handle="a"),
            Position(side=Side.LONG, close_handle="b"),
        ])

        assert closed == 0
        assert [c[1] for c in venue.calls if c[0] == "press_close"] == ["a", "b"]
