from __future__ import annotations

import json
from typing import Dict, List, Tuple

import base58

from .project_constants import HEX_ADDRESS_BYTES


def address_bytes(address: str) -> bytes:
    """
    Canonical byte form of a wallet address.
    0x-prefixed hex (EVM) is left-padded to 20 bytes; anything else is base58 (Solana).
    """
    raw = address.strip()
    if not raw:
        raise ValueError("Empty address.")

    if raw[:2] in ("0x", "0X"):
        digits = raw[2:]
        if len(digits) % 2:
            digits = "0" + digits
        value = bytes.fromhex(digits)
        if len(value) > HEX_ADDRESS_BYTES:
            raise ValueError(f"Hex address longer than {HEX_ADDRESS_BYTES} bytes: {address}")
        return value.rjust(HEX_ADDRESS_BYTES, b"\x00")

    return base58.b58decode(raw)


def canonical_address(address: str) -> str:
    raw = address.strip()
    value = address_bytes(raw)
    if raw[:2] in ("0x", "0X"):
        return "0x" + value.hex()
    return base58.b58encode(value).decode("ascii")


def parse_allowlist_rows(rows: List[Tuple[str, int]]) -> List[Tuple[str, int]]:
    seen: Dict[str, int] = {}
    for addr, allowance in rows:
        key = canonical_address(addr)
        allowance = int(allowance)
        if allowance < 0:
            raise RuntimeError(f"Negative allowance for {addr}: {allowance}")
        if key in seen:
            raise RuntimeError(f"Duplicate allowlist address: {addr}")
        seen[key] = allowance

    # Deterministic ordering (the tree itself is order-independent, the output file is not)
    return sorted(seen.items(), key=lambda x: x[0])


def load_allowlist(path: str) -> List[Tuple[str, int]]:
    """
    Supports:
    1) Text lines "address,allowance" (blank lines and # comments ignored)
    2) JSON object {"address": allowance, ...}
    3) JSON list [{"address": "...", "allowance": 5}, ...]
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read().strip()

    rows: List[Tuple[str, int]] = []
    if raw[:1] in ("{", "["):
        try:
            j = json.loads(raw)
        except ValueError as e:
            raise RuntimeError(f"Allowlist file is not valid JSON: {e}")
        if isinstance(j, dict):
            rows = [(str(k), int(v)) for k, v in j.items()]
        elif isinstance(j, list):
            for item in j:
                if not isinstance(item, dict) or "address" not in item or "allowance" not in item:
                    raise RuntimeError(f"Allowlist entry missing address/allowance: {item!r}")
                rows.append((str(item["address"]), int(item["allowance"])))
        return parse_allowlist_rows(rows)

    for lineno, line in enumerate(raw.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = [p.strip() for p in line.split(",")]
        if len(parts) != 2:
            raise RuntimeError(f"{path}:{lineno}: expected 'address,allowance', got {line!r}")
        rows.append((parts[0], int(parts[1])))
    return parse_allowlist_rows(rows)
