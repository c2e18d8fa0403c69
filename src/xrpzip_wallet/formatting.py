"""Numeric, currency and timestamp formatting helpers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from xrpl.constants import XRPLException
from xrpl.utils import ripple_time_to_datetime

from xrpzip_wallet.records import NATIVE_CURRENCY

UNKNOWN_TIME = "Unknown time"
DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S UTC"

_FIAT_SYMBOLS = {"usd": "$", "eur": "€", "gbp": "£", "jpy": "¥"}

Number = Union[Decimal, float, int]


@dataclass(frozen=True)
class BalanceSummary:
    """Balance of the active account and its value at the current spot price."""

    balance: Decimal
    spot_price: float
    fiat_currency: str = "usd"

    @property
    def fiat_value(self) -> Decimal:
        return self.balance * to_decimal(self.spot_price)

    def lines(self) -> list[str]:
        return [
            f"Balance: {format_native(self.balance)}",
            f"Price:   {format_fiat(self.spot_price, self.fiat_currency)} per {NATIVE_CURRENCY}",
            f"Value:   {format_fiat(self.fiat_value, self.fiat_currency)}",
        ]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_native(amount: Number) -> str:
    return f"{to_decimal(amount):,.6f} {NATIVE_CURRENCY}"


def format_fiat(amount: Number, currency: str = "usd") -> str:
    symbol = _FIAT_SYMBOLS.get(currency.lower(), "")
    return f"{symbol}{to_decimal(amount):,.2f} {currency.upper()}"


def format_timestamp(raw: Union[int, str, None]) -> str:
    """Render a ledger-epoch integer or an ISO-8601 string as one display string."""

    moment = _parse_timestamp(raw)
    if moment is None:
        return UNKNOWN_TIME
    return moment.strftime(DISPLAY_FORMAT)


def _parse_timestamp(raw: Union[int, str, None]) -> Optional[datetime]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        try:
            moment = ripple_time_to_datetime(raw)
        except (XRPLException, OverflowError, OSError, ValueError):
            return None
    else:
        text = str(raw).strip()
        if not text:
            return None
        if text.isascii() and text.isdigit():
            try:
                return _parse_timestamp(int(text))
            except ValueError:
                return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def parse_decimal(value: object) -> Optional[Decimal]:
    """Return ``value`` as a finite Decimal, or None when it is not a number."""

    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        return None
    return result if result.is_finite() else None
