from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from .addresses import load_allowlist
from .config import Settings
from .ledger import LocalRandomnessOracle
from .merkle import build_allowlist_tree, to_hex
from .project_constants import (
    ALLOWANCE_BYTES,
    BASE_EXTENSION,
    DELEGATION_INCLUDE_CALLER,
    DELEGATION_INCLUDE_EXPIRED,
    DELEGATION_MIN_COUNT,
    LEAF_SEPARATOR,
)
from .reveal import RevealStateMachine
from .rpc import RpcClient, RpcDelegationDirectory
from .verify import find_proof, verify_tree_file


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def cmd_build(args: argparse.Namespace) -> int:
    log = logging.getLogger("build")

    entries = load_allowlist(args.allowlist)
    log.info("Allowlist entries : %d", len(entries))
    if not entries:
        raise SystemExit("Allowlist is empty. Nothing to commit.")

    tree, leaf_by_address = build_allowlist_tree(entries)
    log.info("Tree depth        : %d", len(tree.levels) - 1)

    doc: Dict[str, Any] = {
        "metadata": {
            "tool": "pass-claim",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "leaf_encoding": (
                f"sha256(address || {LEAF_SEPARATOR.decode('ascii')!r} || "
                f"uint{8 * ALLOWANCE_BYTES}_be(allowance))"
            ),
            "pair_hash": "sha256(min(a, b) || max(a, b))",
            "entry_count": len(entries),
            "total_allowance": sum(a for _, a in entries),
            "merkle_root": to_hex(tree.root),
        },
        # Entries in deterministic order so anyone can rebuild the root.
        "entries": [
            {
                "address": addr,
                "allowance": allowance,
                "leaf": to_hex(leaf_by_address[addr]),
                "proof": [to_hex(p) for p in tree.proof(leaf_by_address[addr]) or []],
            }
            for addr, allowance in entries
        ],
    }

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2)

    print("========================================")
    print("ALLOWLIST COMMITMENT")
    print("========================================")
    print(f"Entries       : {len(entries)}")
    print(f"Total allowed : {doc['metadata']['total_allowance']}")
    print(f"Merkle root   : {doc['metadata']['merkle_root']}")
    print("----------------------------------------")
    print(f"Wrote tree: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_tree_file(args.tree)
    print("TREE VERIFIED")
    print(f"Merkle root   : {result['merkle_root']}")
    print(f"Entries       : {result['entry_count']}")
    print(f"Total allowed : {result['total_allowance']}")
    return 0


def cmd_prove(args: argparse.Namespace) -> int:
    proof = find_proof(args.tree, args.address, args.allowance)
    print(json.dumps([to_hex(p) for p in proof], indent=2))
    return 0


def cmd_sources(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    log = logging.getLogger("sources")

    rpc = RpcClient(settings.require_rpc_url(), timeout_s=args.timeout)
    try:
        sources = RpcDelegationDirectory(rpc).resolve(
            args.caller,
            settings.pass_id,
            DELEGATION_MIN_COUNT,
            DELEGATION_INCLUDE_CALLER,
            DELEGATION_INCLUDE_EXPIRED,
        )
    finally:
        rpc.close()

    log.info("Pass          : %s", settings.pass_id)
    print(f"Caller        : {args.caller}")
    print(f"Sources       : {len(sources)} (proofs are tried in this order)")
    for i, source in enumerate(sources):
        print(f"  {i}: {source}")
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    capacity = args.capacity or settings.capacity

    # Answer a local request with the given value, exactly as the oracle callback would
    machine = RevealStateMachine(
        capacity,
        LocalRandomnessOracle(fee_balance=settings.oracle_fee),
        settings.oracle_key_hash,
        settings.oracle_fee,
        track_finalized=args.track_finalized,
    )
    machine.fulfill(machine.trigger(), args.random_value)

    print(f"Random value  : {args.random_value}")
    print(f"Capacity      : {capacity}")
    print(f"Revealed      : {machine.revealed}")
    print(f"Offset        : {machine.random_offset}")
    if not machine.revealed:
        print("Offset is 0: the reveal would stay hidden.")
    print("----------------------------------------")
    for token_id in range(min(args.tokens, capacity)):
        index = machine.metadata_index(token_id)
        if index is None:
            uri = args.placeholder_uri
        elif args.base_uri:
            uri = f"{args.base_uri}{index}{BASE_EXTENSION}"
        else:
            uri = ""
        print(f"Token {token_id:<7d}: {uri}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pass-claim",
        description="Allowlist commitment and reveal tooling for pass-holder claims.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("build", help="Build the Merkle tree and write a tree JSON.")
    b.add_argument(
        "--allowlist",
        required=True,
        help="Allowlist file: 'address,allowance' lines or JSON.",
    )
    b.add_argument("--out", default="tree.json", help="Tree output JSON path.")
    b.set_defaults(func=cmd_build)

    v = sub.add_parser("verify", help="Verify an existing tree JSON deterministically.")
    v.add_argument("--tree", required=True, help="Path to tree.json.")
    v.set_defaults(func=cmd_verify)

    pr = sub.add_parser("prove", help="Print the proof for one address and allowance.")
    pr.add_argument("--tree", required=True, help="Path to tree.json.")
    pr.add_argument("--address", required=True)
    pr.add_argument("--allowance", required=True, type=int)
    pr.set_defaults(func=cmd_prove)

    s = sub.add_parser("sources", help="Show the delegated sources a caller claims for.")
    s.add_argument("--caller", required=True, help="Claiming (hot) wallet address.")
    s.set_defaults(func=cmd_sources)

    o = sub.add_parser(
        "preview", help="Preview the reveal offset and token URIs for a random value."
    )
    o.add_argument(
        "--random-value",
        required=True,
        type=lambda s: int(s, 0),
        help="Random value delivered by the oracle (decimal or 0x hex).",
    )
    o.add_argument("--capacity", type=int, default=None, help="Override CAPACITY.")
    o.add_argument("--tokens", type=int, default=10, help="How many token ids to show.")
    o.add_argument("--base-uri", default="", help="Metadata base URI.")
    o.add_argument("--placeholder-uri", default="", help="URI shown before the reveal.")
    o.add_argument(
        "--track-finalized",
        action="store_true",
        help="Finalize even when the offset comes out as 0.",
    )
    o.set_defaults(func=cmd_preview)

    return p


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
