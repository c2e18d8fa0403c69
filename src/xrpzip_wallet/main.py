"""Command-line XRP Ledger wallet: keys, balance, history and payments."""
from __future__ import annotations

import argparse
import getpass
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import requests

from xrpzip_wallet.formatting import BalanceSummary
from xrpzip_wallet.ledger_client import TESTNET_RPC_URL, LedgerClient, LedgerError
from xrpzip_wallet.price_client import COINGECKO_URL, PriceClient, PriceUnavailable
from xrpzip_wallet.reconciliation import HistoryView
from xrpzip_wallet.session import PaymentFailed, WalletSession
from xrpzip_wallet.state_manager import WalletState

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
LOGGER = logging.getLogger(__name__)

# Get project root (2 levels up from this file: src/xrpzip_wallet/main.py -> root)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_CONFIG: Dict[str, Any] = {
    "rpc_url": TESTNET_RPC_URL,
    "price_url": COINGECKO_URL,
    "price_asset": "ripple",
    "fiat_currency": "usd",
    "history_limit": 10,
    "default_spot_price": 2.17,
    "state_file": str(PROJECT_ROOT / "data" / "wallet_state.json"),
}


def load_config(path: str | Path) -> Dict:
    with open(path, "r", encoding="utf-8") as config_file:
        return json.load(config_file)


def resolve_config() -> Dict[str, Any]:
    """Merge the config file (if any) and environment overrides onto the defaults."""

    config_env = os.environ.get("WALLET_CONFIG")
    config_path = Path(config_env) if config_env else PROJECT_ROOT / "config" / "config.json"
    config = dict(DEFAULT_CONFIG)
    if config_path.exists():
        config.update(load_config(config_path))
    elif config_env:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if os.environ.get("XRPL_RPC_URL"):
        config["rpc_url"] = os.environ["XRPL_RPC_URL"]
    return config


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("generate", help="Generate a new wallet and make it the active one")

    import_parser = subparsers.add_parser("import", help="Import a wallet from its seed")
    import_parser.add_argument("--seed", help="Family seed; prompted for when omitted")

    subparsers.add_parser("balance", help="Show the balance of the active wallet and its fiat value")

    history_parser = subparsers.add_parser("history", help="Show recent payments of the active wallet")
    history_parser.add_argument("--limit", type=_positive_int, help="Maximum number of ledger transactions to fetch")
    history_parser.add_argument("--expand", type=int, metavar="ROW", help="Show the details of one row")

    send_parser = subparsers.add_parser("send", help="Send XRP from the active wallet")
    send_parser.add_argument("--to", required=True, dest="destination", help="Destination address")
    send_parser.add_argument("--amount", required=True, help="Amount of XRP to send")
    send_parser.add_argument("--seed", help="Seed of the active wallet; prompted for when omitted")

    subparsers.add_parser("logout", help="Forget the active wallet")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    config = resolve_config()
    try:
        return _dispatch(args, config)
    except (ValueError, PermissionError, IndexError) as exc:
        LOGGER.error("%s", exc)
    except (LedgerError, PaymentFailed):
        LOGGER.exception("Ledger operation failed")
    return 1


def _dispatch(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    state_path = Path(config["state_file"])
    ledger = LedgerClient(rpc_url=config["rpc_url"])

    if args.command == "logout":
        WalletState.clear(state_path)
        LOGGER.info("Active wallet forgotten")
        return 0

    if args.command == "generate":
        session = WalletSession.generate(ledger)
        WalletState(address=session.address).save(state_path)
        print(f"Address: {session.address}")
        print(f"Seed:    {session.seed}")
        print("Write the seed down; it is not stored and cannot be recovered.")
        return 0

    if args.command == "import":
        session = WalletSession.from_seed(args.seed or getpass.getpass("Seed: "), ledger)
        WalletState(address=session.address).save(state_path)
        print(f"Address: {session.address}")
        return 0

    state = WalletState.load(state_path)
    if not state.address:
        raise ValueError("No active wallet; run 'generate' or 'import' first")

    if args.command == "send":
        session = WalletSession.from_seed(args.seed or getpass.getpass("Seed: "), ledger)
        if session.address != state.address:
            raise ValueError(f"Seed belongs to {session.address}, not the active wallet {state.address}")
        try:
            tx_hash = session.send_payment(args.destination, args.amount, ledger.client)
        finally:
            session.close()
        print(f"Success! Sent {args.amount} XRP ({tx_hash})")
        return 0

    session = WalletSession.view_only(state.address, ledger)
    spot_price = fetch_spot_price(config)
    fiat_currency = config["fiat_currency"]

    if args.command == "balance":
        summary = BalanceSummary(balance=session.balance(), spot_price=spot_price, fiat_currency=fiat_currency)
        print(f"Address: {session.address}")
        for line in summary.lines():
            print(line)
        return 0

    limit = args.limit if args.limit is not None else int(config["history_limit"])
    view = HistoryView(fiat_currency=fiat_currency)
    view.refresh(session.raw_history(limit), session.address, spot_price)
    if args.expand is not None:
        view.toggle_expanded(args.expand)
    for line in view.render_lines():
        print(line)
    return 0


def fetch_spot_price(config: Dict[str, Any], client: Optional[PriceClient] = None) -> float:
    """Return the live spot price, or the configured fallback when it cannot be fetched."""

    client = client or PriceClient(base_url=config["price_url"])
    try:
        return client.fetch_spot_price(config["price_asset"], config["fiat_currency"])
    except (PriceUnavailable, requests.RequestException, ValueError) as exc:
        fallback = float(config["default_spot_price"])
        LOGGER.warning("Price fetch failed (%s); using fallback price %.2f", exc, fallback)
        return fallback


if __name__ == "__main__":
    raise SystemExit(main())
