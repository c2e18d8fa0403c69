"""Simple persistence for remembering the active wallet address."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class WalletState:
    """Represents persisted metadata for the wallet between runs.

    Only the public address is stored; seeds never touch the disk.
    """

    address: Optional[str] = None

    @classmethod
    def load(cls, path: Path) -> "WalletState":
        if not path.exists():
            return cls()
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return cls()
        if not isinstance(payload, dict):
            return cls()
        address = payload.get("address")
        return cls(address=address if isinstance(address, str) and address else None)

    def save(self, path: Path) -> None:
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"address": self.address}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    @staticmethod
    def clear(path: Path) -> None:
        if path.exists():
            path.unlink()
