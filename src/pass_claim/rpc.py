from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import RandomnessRequestFailed

log = logging.getLogger("rpc")


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)
        self._next_id = 1

    def close(self) -> None:
        self.client.close()

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RuntimeError(f"RPC error: {data['error']}")
        return data

    def call(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "params": params,
        }
        self._next_id += 1
        log.debug("RPC %s %s", method, params)
        return self._post(payload).get("result")


class RpcDelegationDirectory:
    """Delegation lookups served by a JSON-RPC endpoint; never cached."""

    def __init__(self, client: RpcClient) -> None:
        self.client = client

    def resolve(
        self,
        caller: str,
        pass_id: str,
        min_count: int,
        include_caller: bool,
        include_expired: bool,
    ) -> List[str]:
        result = self.client.call(
            "delegation_resolve",
            [caller, pass_id, min_count, include_caller, include_expired],
        )
        if result is None:
            return []
        if not isinstance(result, list) or not all(isinstance(a, str) for a in result):
            raise RuntimeError(f"delegation_resolve returned unexpected result: {result!r}")
        return result


class RpcRandomnessOracle:
    def __init__(self, client: RpcClient, requester: str) -> None:
        self.client = client
        self.requester = requester

    def request(self, seed: str, fee: int) -> str:
        try:
            result = self.client.call(
                "randomness_request",
                [{"keyHash": seed, "fee": str(fee), "requester": self.requester}],
            )
        except (RuntimeError, httpx.HTTPError) as e:
            raise RandomnessRequestFailed(f"Randomness request rejected: {e}")

        if not isinstance(result, dict) or not isinstance(result.get("requestId"), str):
            raise RandomnessRequestFailed(f"randomness_request returned no requestId: {result!r}")
        return result["requestId"]
