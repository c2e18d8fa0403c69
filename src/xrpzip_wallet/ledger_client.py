"""Client utilities for querying an XRP Ledger JSON-RPC server."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
from xrpl.clients import JsonRpcClient
from xrpl.models.requests import AccountInfo, AccountTx
from xrpl.models.requests.request import Request

from xrpzip_wallet.records import drops_to_major

LOGGER = logging.getLogger(__name__)

TESTNET_RPC_URL = "https://s.altnet.rippletest.net:51234/"
ACCOUNT_NOT_FOUND = "actNotFound"


class LedgerError(RuntimeError):
    """Raised when the ledger server answers a request with an error status."""

    def __init__(self, method: str, error: str, message: str = "") -> None:
        self.method = method
        self.error = error
        super().__init__(f"{method} failed: {error}" + (f" ({message})" if message else ""))


class LedgerClient:
    """The ledger queries the wallet needs, on top of one JSON-RPC client.

    The same client is handed to payment submission, so reads and writes share
    a transport.
    """

    def __init__(
        self,
        *,
        rpc_url: str = TESTNET_RPC_URL,
        client: Optional[JsonRpcClient] = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._client = client or JsonRpcClient(rpc_url)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    @property
    def client(self) -> JsonRpcClient:
        return self._client

    def fetch_balance(self, address: str) -> Decimal:
        """Return the validated XRP balance of ``address``.

        An account the ledger has never seen is unfunded rather than broken,
        so it reports a zero balance.
        """

        try:
            result = self._request(AccountInfo(account=address, ledger_index="validated"))
        except LedgerError as exc:
            if exc.error == ACCOUNT_NOT_FOUND:
                LOGGER.info("Account %s is not funded yet", address)
                return Decimal(0)
            raise
        balance = result.get("account_data", {}).get("Balance", "0")
        return drops_to_major(balance)

    def fetch_transactions(self, address: str, *, limit: int = 10) -> List[Dict[str, Any]]:
        """Return the raw ``account_tx`` entries for ``address``, newest first."""

        result = self._request(
            AccountTx(account=address, ledger_index_min=-1, ledger_index_max=-1, limit=limit)
        )
        transactions = result.get("transactions") or []
        LOGGER.info("Ledger returned %d transactions for %s", len(transactions), address)
        return list(transactions)

    def _request(self, request: Request) -> Dict[str, Any]:
        method = request.method.value
        LOGGER.debug("Ledger request %s %s", self._rpc_url, method)
        try:
            response = self._client.request(request)
        except httpx.HTTPError as exc:
            raise LedgerError(method, "transport", str(exc)) from exc
        result = response.result
        if not response.is_successful():
            raise LedgerError(method, result.get("error", "unknown"), result.get("error_message", ""))
        return result
