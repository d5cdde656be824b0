from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import find_dotenv, load_dotenv

from .project_constants import CAPACITY, ORACLE_FEE, ORACLE_KEY_HASH, PASS_ID


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw, 0)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    rpc_url: str | None
    pass_id: str = PASS_ID
    capacity: int = CAPACITY
    oracle_fee: int = ORACLE_FEE
    oracle_key_hash: str = ORACLE_KEY_HASH

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))

        # If user provides --rpc-url, trust it.
        rpc_url = rpc_url_override or os.getenv("RPC_URL", "").strip() or None

        capacity = _int_env("CAPACITY", CAPACITY)
        if capacity <= 0:
            raise RuntimeError(f"CAPACITY must be positive, got {capacity}")

        return Settings(
            rpc_url=rpc_url,
            pass_id=os.getenv("PASS_ID", "").strip() or PASS_ID,
            capacity=capacity,
            oracle_fee=_int_env("ORACLE_FEE", ORACLE_FEE),
            oracle_key_hash=os.getenv("ORACLE_KEY_HASH", "").strip() or ORACLE_KEY_HASH,
        )

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise RuntimeError("Missing RPC_URL. Put it in .env, export it, or pass --rpc-url.")
        return self.rpc_url
