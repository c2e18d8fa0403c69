"""Reconcile raw ledger history into display-ready transaction summaries."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Set

from xrpzip_wallet.formatting import format_fiat, format_native, format_timestamp, to_decimal
from xrpzip_wallet.records import (
    MalformedRecordError,
    RawTransactionRecord,
    drops_to_major,
    parse_amount,
)

LOGGER = logging.getLogger(__name__)

PAYMENT_TYPE = "Payment"
EMPTY_HISTORY = "No transactions yet"


class Direction(enum.Enum):
    SENT = "Sent"
    RECEIVED = "Received"


@dataclass(frozen=True)
class NormalizedTransaction:
    direction: Direction
    counterparty_address: str
    amount_major_units: Decimal
    currency_label: str
    issuer: Optional[str]
    fiat_equivalent: Optional[Decimal]
    hash: str
    timestamp_display: str
    ledger_index: Optional[int]
    validated: bool
    fee_major_units: Optional[Decimal]
    result_code: Optional[str]
    source_address: str
    destination_address: str

    @property
    def is_native(self) -> bool:
        return self.fiat_equivalent is not None

    def summary_line(self, fiat_currency: str = "usd") -> str:
        label = self.direction.name
        if self.is_native:
            amount = f"{format_native(self.amount_major_units)} ≈ {format_fiat(self.fiat_equivalent, fiat_currency)}"
        else:
            amount = f"{self.amount_major_units:,f} {self.currency_label}"
        return f"{label:<8} {amount}  {self.timestamp_display}"

    def detail_lines(self) -> List[str]:
        fee = "N/A" if self.fee_major_units is None else format_native(self.fee_major_units)
        lines = [
            f"Type: {PAYMENT_TYPE}",
            f"Hash: {self.hash}",
            f"From: {self.source_address}",
            f"To: {self.destination_address}",
            f"Fee: {fee}",
            f"Ledger Index: {'N/A' if self.ledger_index is None else self.ledger_index}",
            f"Validated: {'Yes' if self.validated else 'No'}",
            f"Result: {self.result_code or 'N/A'}",
        ]
        if self.issuer:
            lines.insert(4, f"Issuer: {self.issuer}")
        return lines


def reconcile(
    raw_records: Iterable[Any], owner_address: str, spot_price: float
) -> List[NormalizedTransaction]:
    """Return the displayable payments in ``raw_records`` in their original order.

    Records that are not payments, carry no value, repeat an earlier hash or
    cannot be parsed are left out; one bad record never hides the rest.
    """

    price = to_decimal(spot_price)
    seen_hashes: Set[str] = set()
    results: List[NormalizedTransaction] = []
    for position, payload in enumerate(raw_records):
        try:
            normalized = _normalize(payload, owner_address, price)
        except (ValueError, ArithmeticError) as exc:
            LOGGER.debug("Skipping raw record %d: %s", position, exc)
            continue
        if normalized is None:
            continue
        if normalized.hash in seen_hashes:
            LOGGER.debug("Skipping duplicate transaction %s", normalized.hash)
            continue
        seen_hashes.add(normalized.hash)
        results.append(normalized)
    return results


def _normalize(
    payload: Any, owner_address: str, price: Decimal
) -> Optional[NormalizedTransaction]:
    record = payload if isinstance(payload, RawTransactionRecord) else RawTransactionRecord.from_payload(payload)
    if record.transaction_type != PAYMENT_TYPE:
        return None
    if not record.destination_account:
        raise MalformedRecordError(f"payment {record.hash} has no destination")

    amount = parse_amount(record.effective_amount)
    if amount.value == 0:
        return None

    if record.source_account == owner_address:
        direction = Direction.SENT
        counterparty = str(record.destination_account)
    else:
        direction = Direction.RECEIVED
        counterparty = record.source_account

    return NormalizedTransaction(
        direction=direction,
        counterparty_address=counterparty,
        amount_major_units=amount.value,
        currency_label=amount.currency,
        issuer=amount.issuer,
        fiat_equivalent=amount.value * price if amount.is_native else None,
        hash=record.hash,
        timestamp_display=format_timestamp(record.timestamp),
        ledger_index=record.ledger_index,
        validated=record.validated,
        fee_major_units=_fee(record.fee_drops),
        result_code=record.result_code,
        source_address=record.source_account,
        destination_address=str(record.destination_account),
    )


def _fee(fee_drops: Optional[str]) -> Optional[Decimal]:
    if fee_drops is None:
        return None
    try:
        return drops_to_major(fee_drops)
    except MalformedRecordError:
        return None


@dataclass
class HistoryView:
    """The reconciled history plus the one row whose details are shown."""

    fiat_currency: str = "usd"
    transactions: List[NormalizedTransaction] = field(default_factory=list)
    expanded_index: Optional[int] = None

    def refresh(
        self, raw_records: Iterable[Mapping[str, Any]], owner_address: str, spot_price: float
    ) -> List[NormalizedTransaction]:
        self.transactions = reconcile(raw_records, owner_address, spot_price)
        if self.expanded_index is not None and self.expanded_index >= len(self.transactions):
            self.expanded_index = None
        return self.transactions

    def toggle_expanded(self, index: int) -> None:
        if not 0 <= index < len(self.transactions):
            raise IndexError(f"no transaction at row {index}")
        self.expanded_index = None if self.expanded_index == index else index

    def render_lines(self) -> List[str]:
        if not self.transactions:
            return [EMPTY_HISTORY]
        lines: List[str] = []
        for index, transaction in enumerate(self.transactions):
            lines.append(f"[{index}] {transaction.summary_line(self.fiat_currency)}")
            if index == self.expanded_index:
                lines.extend(f"      {detail}" for detail in transaction.detail_lines())
        return lines
