"""Canonical representation of raw ledger transaction records."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence, Union

from xrpl.constants import XRPLException
from xrpl.utils import drops_to_xrp

NATIVE_CURRENCY = "XRP"

RawAmount = Union[str, int, Mapping[str, Any]]
RawTimestamp = Union[int, str, None]

_DELIVERED_KEYS = ("deliveredAmount", "delivered_amount", "DeliveredAmount")


class MalformedRecordError(ValueError):
    """Raised when a raw payload cannot be mapped to a canonical record."""


@dataclass(frozen=True)
class LedgerAmount:
    """An amount in major units together with its currency."""

    value: Decimal
    currency: str = NATIVE_CURRENCY
    issuer: Optional[str] = None
    native: bool = False

    @property
    def is_native(self) -> bool:
        return self.native


@dataclass(frozen=True)
class RawTransactionRecord:
    """A ledger transaction with field names settled to one spelling."""

    transaction_type: str
    source_account: str
    destination_account: Optional[str]
    nominal_amount: Optional[RawAmount]
    delivered_amount: Optional[RawAmount]
    hash: str
    timestamp: RawTimestamp = None
    ledger_index: Optional[int] = None
    validated: bool = False
    fee_drops: Optional[str] = None
    result_code: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RawTransactionRecord":
        """Create a record from an ``account_tx`` entry or a flat dictionary.

        Both API versions of ``account_tx`` are accepted: v1 nests the
        transaction under ``tx`` and dates it in ledger-epoch seconds, v2 nests
        it under ``tx_json``, moves ``hash`` and ``ledger_index`` to the
        envelope and adds ``close_time_iso``.
        """

        if not isinstance(payload, Mapping):
            raise MalformedRecordError(f"expected a mapping, got {type(payload).__name__}")

        tx = payload.get("tx_json") or payload.get("tx") or payload
        if not isinstance(tx, Mapping):
            raise MalformedRecordError("transaction body is not a mapping")
        meta = payload.get("meta")
        if not isinstance(meta, Mapping):
            meta = {}
        sources = (payload, tx, meta)

        transaction_type = _first(sources, "transactionType", "TransactionType")
        source_account = _first(sources, "sourceAccount", "Account")
        tx_hash = _first(sources, "hash")
        if not transaction_type or not source_account or not tx_hash:
            raise MalformedRecordError("record lacks a type, source account or hash")

        delivered = _first(sources, *_DELIVERED_KEYS)
        if delivered == "unavailable":
            delivered = None

        return cls(
            transaction_type=str(transaction_type),
            source_account=str(source_account),
            destination_account=_first(sources, "destinationAccount", "Destination"),
            nominal_amount=_first(sources, "nominalAmount", "Amount", "DeliverMax"),
            delivered_amount=delivered,
            hash=str(tx_hash),
            timestamp=_first(sources, "timestamp", "close_time_iso", "date"),
            ledger_index=_safe_int(_first(sources, "ledgerIndex", "ledger_index")),
            validated=bool(_first(sources, "validated") or False),
            fee_drops=_optional_str(_first(sources, "feeDrops", "fee", "Fee")),
            result_code=_optional_str(_first(sources, "resultCode", "TransactionResult")),
        )

    @property
    def effective_amount(self) -> Optional[RawAmount]:
        """The delivered amount when the ledger reports one, else the authored amount."""

        if self.delivered_amount is not None:
            return self.delivered_amount
        return self.nominal_amount


def parse_amount(raw: Optional[RawAmount]) -> LedgerAmount:
    """Convert a drops string or an issued-currency object to a :class:`LedgerAmount`."""

    if isinstance(raw, bool) or raw is None:
        raise MalformedRecordError(f"unparseable amount {raw!r}")
    if isinstance(raw, (str, int)):
        return LedgerAmount(value=drops_to_major(raw), native=True)
    if isinstance(raw, Mapping):
        currency = raw.get("currency")
        value = raw.get("value")
        if not currency or value is None:
            raise MalformedRecordError(f"issued amount lacks currency or value: {raw!r}")
        try:
            major = Decimal(str(value))
        except InvalidOperation as exc:
            raise MalformedRecordError(f"invalid issued value {value!r}") from exc
        if not major.is_finite():
            raise MalformedRecordError(f"invalid issued value {value!r}")
        issuer = raw.get("issuer")
        return LedgerAmount(value=major, currency=str(currency), issuer=str(issuer) if issuer else None)
    raise MalformedRecordError(f"unparseable amount {raw!r}")


def drops_to_major(drops: Union[str, int]) -> Decimal:
    """Convert an integer number of drops to XRP."""

    text = str(drops).strip()
    if not (text.isascii() and text.isdigit()):
        raise MalformedRecordError(f"drops must be a non-negative integer, got {drops!r}")
    try:
        return drops_to_xrp(text.lstrip("0") or "0")
    except XRPLException as exc:
        raise MalformedRecordError(f"drops out of range: {drops!r}") from exc


def _first(sources: Sequence[Mapping[str, Any]], *keys: str) -> Any:
    for source in sources:
        for key in keys:
            value = source.get(key)
            if value is not None:
                return value
    return None


def _safe_int(value: Any) -> Optional[int]:
    try:
        return None if value is None else int(value)
    except (ValueError, TypeError):
        return None


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
