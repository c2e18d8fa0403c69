"""The wallet session: active address, signing handle and ledger collaborators."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
from xrpl.clients import JsonRpcClient
from xrpl.constants import XRPLException
from xrpl.core.addresscodec import is_valid_classic_address
from xrpl.models.transactions import Payment
from xrpl.transaction import submit_and_wait
from xrpl.utils import xrp_to_drops
from xrpl.wallet import Wallet

from xrpzip_wallet.formatting import parse_decimal
from xrpzip_wallet.ledger_client import LedgerClient

LOGGER = logging.getLogger(__name__)

SUCCESS_RESULT = "tesSUCCESS"


class PaymentFailed(RuntimeError):
    """Raised when the ledger does not apply a submitted payment."""


class WalletSession:
    """Everything tied to one loaded wallet, from load or generation until logout.

    The signing key is held for the lifetime of the session and is never
    re-derived between operations. A session opened from a stored address
    alone is view-only.
    """

    def __init__(self, address: str, ledger: LedgerClient, signer: Optional[Wallet] = None) -> None:
        self.address = address
        self.ledger = ledger
        self._signer = signer

    @classmethod
    def generate(cls, ledger: LedgerClient) -> "WalletSession":
        signer = Wallet.create()
        LOGGER.info("Generated wallet %s", signer.classic_address)
        return cls(signer.classic_address, ledger, signer)

    @classmethod
    def from_seed(cls, seed: str, ledger: LedgerClient) -> "WalletSession":
        seed = seed.strip()
        if not seed:
            raise ValueError("Enter a seed")
        try:
            signer = Wallet.from_seed(seed)
        except (XRPLException, ValueError) as exc:
            raise ValueError("Invalid seed") from exc
        LOGGER.info("Imported wallet %s", signer.classic_address)
        return cls(signer.classic_address, ledger, signer)

    @classmethod
    def view_only(cls, address: str, ledger: LedgerClient) -> "WalletSession":
        if not is_valid_classic_address(address):
            raise ValueError(f"Invalid address: {address}")
        return cls(address, ledger)

    @property
    def can_sign(self) -> bool:
        return self._signer is not None

    @property
    def seed(self) -> Optional[str]:
        return None if self._signer is None else self._signer.seed

    def balance(self) -> Decimal:
        return self.ledger.fetch_balance(self.address)

    def raw_history(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self.ledger.fetch_transactions(self.address, limit=limit)

    def send_payment(self, destination: str, amount_xrp: object, submitter: JsonRpcClient) -> str:
        """Sign and submit an XRP payment, returning its transaction hash."""

        if self._signer is None:
            raise PermissionError("This session is view-only; import the seed to send payments")
        destination = destination.strip()
        if not is_valid_classic_address(destination):
            raise ValueError(f"Invalid destination address: {destination}")
        if destination == self.address:
            raise ValueError("Cannot send a payment to the sending account")
        amount = parse_decimal(amount_xrp)
        if amount is None or amount <= 0:
            raise ValueError(f"Amount must be a positive number, got {amount_xrp!r}")

        try:
            drops = xrp_to_drops(amount)
        except XRPLException as exc:
            raise ValueError(f"Amount out of range: {amount_xrp!r}") from exc

        payment = Payment(account=self.address, destination=destination, amount=drops)
        LOGGER.info("Sending %s XRP from %s to %s", amount, self.address, destination)
        try:
            response = submit_and_wait(payment, submitter, self._signer)
        except (XRPLException, httpx.HTTPError) as exc:
            LOGGER.exception("Payment submission failed")
            raise PaymentFailed(str(exc)) from exc

        result = response.result
        outcome = result.get("meta", {}).get("TransactionResult")
        if outcome != SUCCESS_RESULT:
            raise PaymentFailed(f"Payment was not applied: {outcome or 'unknown result'}")
        tx_hash = result.get("hash") or result.get("tx_json", {}).get("hash", "")
        LOGGER.info("Payment %s validated", tx_hash)
        return tx_hash

    def close(self) -> None:
        """Drop the signing handle; the session can no longer sign."""

        self._signer = None
