"""
RPC session module: endpoint selection and live connections.

This module replaces a process-wide provider with an explicit RpcSession that
owns the prioritized endpoint list, the currently active Connection and the
"last good index" cursor. Every fetch receives the session it should use.

A Connection is only handed out after a liveness probe (`eth_blockNumber`)
succeeds against its endpoint. Any failed call on a Connection invalidates it;
the next caller re-runs selection starting from the last good index.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from eth_utils import to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3

from fula_stats.shared.exceptions import (
    AllEndpointsUnreachableError,
    ConfigurationException,
    RetryableException,
    TransientRpcError,
)
from fula_stats.shared.logging import get_logger
from fula_stats.shared.retry import RetryConfig

T = TypeVar("T")

logger = get_logger(__name__)

DEFAULT_PROBE_TIMEOUT = 8.0
DEFAULT_CALL_TIMEOUT = 15.0


@dataclass(frozen=True)
class Endpoint:
    """A JSON-RPC node URL and its position in the priority order."""

    url: str
    index: int


class Connection:
    """
    One endpoint bound to a verified-reachable AsyncWeb3 session.

    All calls go through a semaphore sized by `max_in_flight`. The default of
    1 keeps reads strictly sequential, which public providers that reject
    bursts of parallel calls require.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        w3: AsyncWeb3,
        max_in_flight: int = 1,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
    ):
        self.endpoint = endpoint
        self.w3 = w3
        self.call_timeout = call_timeout
        self.max_in_flight = max_in_flight
        self._semaphore = asyncio.Semaphore(max_in_flight)

    @classmethod
    def from_endpoint(
        cls,
        endpoint: Endpoint,
        max_in_flight: int = 1,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
    ) -> "Connection":
        # Retries belong to select_endpoint and RpcSession.run only.
        provider = AsyncHTTPProvider(
            endpoint.url, exception_retry_configuration=None
        )
        w3 = AsyncWeb3(provider)
        return cls(endpoint, w3, max_in_flight, call_timeout)

    @property
    def url(self) -> str:
        return self.endpoint.url

    async def _guarded(self, method: str, awaitable_factory: Callable[[], Awaitable]) -> Any:
        async with self._semaphore:
            try:
                return await asyncio.wait_for(
                    awaitable_factory(), timeout=self.call_timeout
                )
            except RetryableException:
                raise
            except asyncio.TimeoutError as e:
                raise TransientRpcError(
                    f"{method} timed out after {self.call_timeout}s on {self.url}"
                ) from e
            except Exception as e:
                raise TransientRpcError(
                    f"{method} failed on {self.url}: {str(e)[:200]}"
                ) from e

    async def block_number(self) -> int:
        """Current block height; used as the liveness probe."""
        return await self._guarded(
            "eth_blockNumber", lambda: self.w3.eth.block_number
        )

    async def eth_call(self, to: str, data: str) -> bytes:
        """Read-only call at the latest block; returns raw return data."""
        tx = {"to": to_checksum_address(to), "data": data}
        result = await self._guarded(
            "eth_call", lambda: self.w3.eth.call(tx, "latest")
        )
        return bytes(result)

    async def close(self) -> None:
        provider = self.w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()


ConnectionFactory = Callable[[Endpoint], Connection]


async def select_endpoint(
    candidates: Sequence[Endpoint],
    start_index: int,
    connect: ConnectionFactory,
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> Connection:
    """
    Return a Connection to the first candidate that answers a liveness probe.

    Candidates are tried once each, starting at `start_index` and wrapping
    around. Raises AllEndpointsUnreachableError if the whole pass fails.
    """
    if not candidates:
        raise ConfigurationException("No RPC endpoints configured")

    total = len(candidates)
    failures: List[str] = []

    for offset in range(total):
        endpoint = candidates[(start_index + offset) % total]
        connection = connect(endpoint)
        try:
            block = await asyncio.wait_for(
                connection.block_number(), timeout=probe_timeout
            )
        except (RetryableException, asyncio.TimeoutError) as e:
            logger.debug(f"Probe failed for {endpoint.url}: {e}")
            failures.append(endpoint.url)
            await connection.close()
            continue

        logger.debug(f"Endpoint {endpoint.url} alive at block {block}")
        return connection

    raise AllEndpointsUnreachableError(
        f"All {total} RPC endpoints failed the liveness probe: "
        f"{', '.join(failures)}"
    )


class RpcSession:
    """
    Owns the endpoint list, the active Connection and the last-good cursor.

    The cursor is a locality heuristic: selection starts from the endpoint
    that last worked. It only moves on a successful selection.
    """

    def __init__(
        self,
        urls: Sequence[str],
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
        max_in_flight: int = 1,
        connection_factory: Optional[ConnectionFactory] = None,
    ):
        if not urls:
            raise ConfigurationException("RpcSession needs at least one URL")
        self.endpoints = [Endpoint(url=url, index=i) for i, url in enumerate(urls)]
        self.probe_timeout = probe_timeout
        self.last_good_index = 0
        self._connection: Optional[Connection] = None
        self._connect = connection_factory or (
            lambda endpoint: Connection.from_endpoint(
                endpoint, max_in_flight=max_in_flight, call_timeout=call_timeout
            )
        )

    @property
    def current(self) -> Optional[Connection]:
        return self._connection

    async def select(self, start_index: Optional[int] = None) -> Connection:
        """Run endpoint selection and make the winner the active Connection."""
        start = self.last_good_index if start_index is None else start_index
        connection = await select_endpoint(
            self.endpoints, start, self._connect, self.probe_timeout
        )
        if connection.endpoint.index != self.last_good_index:
            logger.info(
                f"Switched RPC endpoint to {connection.url} "
                f"(index {connection.endpoint.index})"
            )
        self.last_good_index = connection.endpoint.index
        self._connection = connection
        return connection

    async def connection(self) -> Connection:
        """Active Connection, selecting one first if there is none."""
        if self._connection is None:
            return await self.select()
        return self._connection

    async def invalidate(self) -> None:
        """Discard the active Connection after a failed call."""
        if self._connection is not None:
            connection, self._connection = self._connection, None
            await connection.close()

    async def rotate(self, failed_index: Optional[int] = None) -> Connection:
        """Drop the active Connection and select again after `failed_index`."""
        if failed_index is None:
            failed_index = (
                self._connection.endpoint.index
                if self._connection is not None
                else self.last_good_index
            )
        await self.invalidate()
        return await self.select((failed_index + 1) % len(self.endpoints))

    async def run(
        self,
        operation: Callable[[Connection], Awaitable[T]],
        retry_config: Optional[RetryConfig] = None,
        operation_name: Optional[str] = None,
    ) -> T:
        """
        Run `operation` against the active Connection.

        A retryable failure invalidates the Connection. With a retry config,
        each further attempt first moves to the next endpoint and re-runs
        selection; without one the failure propagates after one attempt.
        AllEndpointsUnreachableError from selection always propagates.
        """
        failed = {"index": self.last_good_index}

        async def attempt() -> T:
            connection = await self.connection()
            try:
                return await operation(connection)
            except RetryableException:
                failed["index"] = connection.endpoint.index
                await self.invalidate()
                raise

        async def advance(exception: Exception, attempt_number: int) -> None:
            await self.rotate(failed["index"])

        if retry_config is None:
            return await attempt()

        return await retry_config.run(
            attempt,
            on_retry=advance,
            operation_name=operation_name or getattr(operation, "__name__", None),
        )

    async def aclose(self) -> None:
        await self.invalidate()
