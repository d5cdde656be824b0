from __future__ import annotations

import json
from typing import Any, Dict, List

from .addresses import canonical_address, parse_allowlist_rows
from .merkle import allowance_leaf, build_allowlist_tree, from_hex, to_hex, verify


def load_tree_file(tree_path: str) -> Dict[str, Any]:
    with open(tree_path, "r", encoding="utf-8") as f:
        return json.load(f)


def verify_tree_file(tree_path: str) -> Dict[str, Any]:
    doc = load_tree_file(tree_path)

    root_expected = doc["metadata"]["merkle_root"]
    entries = doc["entries"]

    # Recreate the allowlist from stored entries (deterministic)
    rows = parse_allowlist_rows([(e["address"], int(e["allowance"])) for e in entries])
    tree, leaf_by_address = build_allowlist_tree(rows)

    root = to_hex(tree.root)
    if root != root_expected:
        raise RuntimeError(f"Root mismatch: file={root_expected} recomputed={root}")

    for e in entries:
        leaf = leaf_by_address[canonical_address(e["address"])]
        if to_hex(leaf) != e["leaf"]:
            raise RuntimeError(f"Leaf mismatch for {e['address']}: file={e['leaf']} recomputed={to_hex(leaf)}")
        proof = [from_hex(p) for p in e["proof"]]
        if not verify(proof, tree.root, leaf):
            raise RuntimeError(f"Proof for {e['address']} does not reach the root.")

    return {
        "ok": True,
        "merkle_root": root,
        "entry_count": len(entries),
        "total_allowance": sum(a for _, a in rows),
    }


def find_proof(tree_path: str, address: str, allowance: int) -> List[bytes]:
    """Proof stored for (address, allowance); raises if it does not verify against the file's root."""
    doc = load_tree_file(tree_path)
    root = from_hex(doc["metadata"]["merkle_root"])
    key = canonical_address(address)

    for e in doc["entries"]:
        if canonical_address(e["address"]) != key:
            continue
        proof = [from_hex(p) for p in e["proof"]]
        if not verify(proof, root, allowance_leaf(address, allowance)):
            raise RuntimeError(
                f"{address} is listed with allowance {e['allowance']}, not {allowance}."
            )
        return proof

    raise RuntimeError(f"{address} is not in the allowlist tree.")
