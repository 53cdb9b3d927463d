"""
Minimal JSON-RPC 2.0 client over httpx.

Used where a fetch must talk to an endpoint directly instead of through the
session's Connection (per-endpoint contract probing). It only speaks the
methods the dashboard needs: eth_blockNumber, eth_getCode and eth_call.
"""

import itertools
from typing import Any, List, Optional

import httpx
from eth_utils import to_checksum_address

from fula_stats.shared.exceptions import TransientRpcError
from fula_stats.shared.services.http_client import get_async_client


class RawRpcClient:
    """Stateless JSON-RPC caller; the endpoint URL is passed per request."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client
        self._ids = itertools.count(1)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = get_async_client()
        return self._client

    async def request(self, url: str, method: str, params: List[Any]) -> Any:
        """
        POST one JSON-RPC request and return its `result`.

        Raises:
            TransientRpcError: transport failure, non-2xx status, non-JSON
                body, an `error` member, or a body without `result`.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = await self.client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise TransientRpcError(f"{method} request to {url} failed: {e}") from e
        except ValueError as e:
            raise TransientRpcError(
                f"{method} response from {url} is not valid JSON"
            ) from e

        if not isinstance(body, dict):
            raise TransientRpcError(f"{method} response from {url} is malformed")
        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise TransientRpcError(f"{method} error from {url}: {message}")
        if "result" not in body:
            raise TransientRpcError(f"{method} response from {url} has no result")
        return body["result"]

    async def get_code(self, url: str, address: str) -> str:
        return await self.request(
            url, "eth_getCode", [to_checksum_address(address), "latest"]
        )

    async def eth_call(self, url: str, to: str, data: str) -> str:
        return await self.request(
            url,
            "eth_call",
            [{"to": to_checksum_address(to), "data": data}, "latest"],
        )
