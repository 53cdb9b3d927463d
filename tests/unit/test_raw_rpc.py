"""
Unit tests for the raw JSON-RPC client.
"""

import json

import httpx
import pytest

from fula_stats.shared.exceptions import TransientRpcError
from fula_stats.shared.services.raw_rpc import RawRpcClient

URL = "https://rpc1.test"


def client_for(handler):
    return RawRpcClient(
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


class TestRawRpcClient:
    """Tests for request handling and error mapping."""

    @pytest.mark.asyncio
    async def test_request_payload(self):
        """Requests are JSON-RPC 2.0 with increasing ids."""
        bodies = []

        def handler(request):
            body = json.loads(request.content)
            bodies.append(body)
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": body["id"], "result": "0x10"}
            )

        rpc = client_for(handler)

        assert await rpc.request(URL, "eth_blockNumber", []) == "0x10"
        await rpc.get_code(URL, "0x4e875e0a4fea97e83f1350b63420c36e38241db4")

        assert bodies[0]["jsonrpc"] == "2.0"
        assert bodies[0]["method"] == "eth_blockNumber"
        assert bodies[1]["method"] == "eth_getCode"
        assert bodies[1]["params"][1] == "latest"
        assert bodies[1]["id"] > bodies[0]["id"]

    @pytest.mark.asyncio
    async def test_eth_call_params(self):
        """eth_call sends a checksummed `to` and the call data."""
        seen = {}

        def handler(request):
            body = json.loads(request.content)
            seen.update(body["params"][0])
            return httpx.Response(200, json={"id": body["id"], "result": "0x"})

        result = await client_for(handler).eth_call(
            URL, "0x4e875e0a4fea97e83f1350b63420c36e38241db4", "0x817b1cd2"
        )

        assert result == "0x"
        assert seen["data"] == "0x817b1cd2"
        assert seen["to"] != seen["to"].lower()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(429, text="Too Many Requests"),
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
            httpx.Response(200, json={"id": 1, "error": {"code": -32000, "message": "x"}}),
            httpx.Response(200, json={"id": 1}),
        ],
        ids=["status", "not-json", "not-object", "error-member", "no-result"],
    )
    async def test_bad_responses_are_transient(self, response):
        """Every malformed or failed answer becomes TransientRpcError."""
        rpc = client_for(lambda request: response)

        with pytest.raises(TransientRpcError):
            await rpc.request(URL, "eth_blockNumber", [])

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Connection failures become TransientRpcError."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransientRpcError, match="refused"):
            await client_for(handler).request(URL, "eth_blockNumber", [])
