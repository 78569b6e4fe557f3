"""
Parsers for the raw texts the bridge scrapes off the trading page.
"""

from __future__ import annotations
import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional
from exchange.errors import UnparseableValue
from exchange.models import IndicatorReading, Order, Position, Side
import logging

logger = logging.getLogger(__name__)

_TITLE_PRICE = re.compile(r"^[0-9,.]+")
_DECIMAL_TOKEN = re.compile(r"\d+\.\d+")
_INT_TOKEN = re.compile(r"\d+")

# TradingView renders "ATR 14" next to the value; sometimes the two get mashed together
_DEFAULT_PERIOD_PREFIX = "14"


def parse_number(text: str) -> Decimal:
    """'50,012.5' -> Decimal('50012.5'). Raises UnparseableValue."""
    cleaned = (text or "").strip().replace(",", "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise UnparseableValue(f"not a number: {text!r}")
    if not value.is_finite():
        raise UnparseableValue(f"not a finite number: {text!r}")
    return value


def parse_price_from_title(title: str) -> Optional[Decimal]:
    """The page title starts with the last price, e.g. '50,012.5 | BTC-USD'."""
    match = _TITLE_PRICE.match(title or "")
    if not match:
        logger.error(f"[PARSE] No price number in page title: {title!r}")
        return None
    try:
        price = parse_number(match.group(0))
    except UnparseableValue:
        logger.error(f"[PARSE] Could not parse price from page title: {title!r}")
        return None
    if price <= 0:
        logger.error(f"[PARSE] Non-positive price in page title: {title!r}")
        return None
    return price


def parse_indicator_legend(items: Iterable[str]) -> IndicatorReading:
    """
    Pull ATR / ADX / RSI values out of chart legend texts.
    The value is the last decimal number in the item (falling back to the
    last integer).
    """
    values: Dict[str, Decimal] = {}
    for raw in items:
        text = (raw or "").strip().upper()
        if "ATR" in text:
            key = "atr"
        elif "ADX" in text:
            key = "adx"
        elif "RSI" in text:
            key = "rsi"
        else:
            continue

        matches = _DECIMAL_TOKEN.findall(text) or _INT_TOKEN.findall(text)
        if not matches:
            continue
        token = matches[-1]
        if token.startswith(_DEFAULT_PERIOD_PREFIX) and len(token) > 4:
            token = token[len(_DEFAULT_PERIOD_PREFIX):]
        try:
            values[key] = Decimal(token)
        except InvalidOperation:
            logger.warning(f"[PARSE] Bad indicator value in legend: {raw!r}")

    return IndicatorReading(
        atr=values.get("atr"),
        adx=values.get("adx"),
        rsi=values.get("rsi"),
    )


def parse_order_rows(rows: Iterable[dict]) -> List[Order]:
    """Rows: {"side": "long"|"short", "price": "50,000.10", "cancel": <handle>}."""
    orders = []
    for row in rows:
        side = Side.parse(row.get("side", ""))
        handle = row.get("cancel")
        if side is None or handle is None:
            continue
        try:
            price = parse_number(row.get("price", ""))
        except UnparseableValue as e:
            logger.warning(f"[PARSE] Skipping order row: {e}")
            continue
        orders.append(Order(side=side, price=price, cancel_handle=handle))
    return orders


def parse_position_rows(rows: Iterable[dict]) -> List[Position]:
    """Rows: {"side": "LONG"|"SHORT", "close": <handle>}."""
    positions = []
    for row in rows:
        side = Side.parse(row.get("side", ""))
        handle = row.get("close")
        if side and handle is not None:
            positions.append(Position(side=side, close_handle=handle))
    return positions
