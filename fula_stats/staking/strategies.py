"""
Pool fetch strategies.

Both staking pools expose `totalStaked()` plus one `totalStaked<N>Days()`
view per lock-duration bucket, but they are read with different resilience
policies:

- ProbeAllEndpointsStrategy walks the endpoint list with raw JSON-RPC,
  bypassing the session's Connection. The first endpoint that has the
  contract's code and answers `totalStaked()` serves every remaining read of
  the pool for this cycle.
- ClientRetryStrategy reads through the session's Connection and, on
  failure, retries on the next endpoint up to a fixed number of attempts.

The strategy for a pool is picked from its configuration by name.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from fula_stats.contracts.reader import ContractReader, contract_reader
from fula_stats.shared.constants import PoolConfig
from fula_stats.shared.exceptions import (
    ConfigurationException,
    ErrorKind,
    NoContractDataError,
    NonRetryableException,
    RetryableException,
)
from fula_stats.shared.logging import get_logger
from fula_stats.shared.results import Result
from fula_stats.shared.retry import RetryConfig
from fula_stats.shared.services.raw_rpc import RawRpcClient
from fula_stats.shared.services.rpc_session import RpcSession
from fula_stats.staking.models import PoolSnapshot

logger = get_logger(__name__)

TOTAL_STAKED = "totalStaked()(uint256)"


def bucket_signature(days: int) -> str:
    """View function for one lock-duration bucket, e.g. totalStaked365Days()."""
    return f"totalStaked{days}Days()(uint256)"


class PoolFetchStrategy(ABC):
    """Reads one pool's totals and returns them as a PoolSnapshot Result."""

    name: str = ""

    def __init__(self, reader: Optional[ContractReader] = None):
        self.reader = reader or contract_reader

    @abstractmethod
    async def fetch(
        self, pool: PoolConfig, session: RpcSession
    ) -> Result[PoolSnapshot]:
        ...


class ProbeAllEndpointsStrategy(PoolFetchStrategy):
    """Per-endpoint contract probing over raw JSON-RPC."""

    name = "probe_all_endpoints"

    def __init__(
        self,
        rpc: Optional[RawRpcClient] = None,
        reader: Optional[ContractReader] = None,
    ):
        super().__init__(reader)
        self.rpc = rpc or RawRpcClient()

    async def _read(self, url: str, address: str, signature: str) -> int:
        _, _, return_type = self.reader.parse_signature(signature)
        raw = await self.rpc.eth_call(
            url, address, self.reader.encode_call(signature)
        )
        return self.reader.decode_result(return_type, raw)

    async def _probe(self, url: str, pool: PoolConfig) -> int:
        code = await self.rpc.get_code(url, pool.address)
        if not code or code in ("0x", "0x0"):
            raise NoContractDataError(f"No code for {pool.address} on {url}")
        return await self._read(url, pool.address, TOTAL_STAKED)

    async def fetch(
        self, pool: PoolConfig, session: RpcSession
    ) -> Result[PoolSnapshot]:
        failures: List[str] = []

        for endpoint in session.endpoints:
            try:
                total_staked = await self._probe(endpoint.url, pool)
            except (RetryableException, NonRetryableException) as e:
                logger.debug(f"{pool.name}: {endpoint.url} rejected: {e}")
                failures.append(f"{endpoint.url}: {e}")
                continue

            try:
                buckets: Dict[int, int] = {}
                for days in pool.buckets:
                    buckets[days] = await self._read(
                        endpoint.url, pool.address, bucket_signature(days)
                    )
            except (RetryableException, NonRetryableException) as e:
                logger.warning(
                    f"{pool.name}: bucket reads failed on {endpoint.url}: {e}"
                )
                return Result.fail_from_exception(
                    pool.name,
                    e,
                    context={"pool": pool.address, "endpoint": endpoint.url},
                )

            logger.info(f"{pool.name}: served by {endpoint.url}")
            return Result.ok(
                PoolSnapshot(
                    pool=pool.name,
                    address=pool.address,
                    total_staked=total_staked,
                    buckets=buckets,
                    endpoint=endpoint.url,
                )
            )

        logger.error(
            f"{pool.name}: no endpoint returned contract data "
            f"({len(failures)} tried)"
        )
        return Result.fail_with_message(
            source=pool.name,
            message=f"No endpoint returned data for pool {pool.address}",
            kind=ErrorKind.NO_CONTRACT_DATA,
            context={"pool": pool.address, "failures": failures},
        )


class ClientRetryStrategy(PoolFetchStrategy):
    """Shared Connection with endpoint rotation between attempts."""

    name = "client_retry"

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        reader: Optional[ContractReader] = None,
    ):
        super().__init__(reader)
        self.retry_config = RetryConfig(
            max_attempts=max_attempts,
            base_delay=base_delay,
            max_delay=10.0,
            exponential=True,
        )

    async def fetch(
        self, pool: PoolConfig, session: RpcSession
    ) -> Result[PoolSnapshot]:
        signatures = [TOTAL_STAKED] + [bucket_signature(d) for d in pool.buckets]
        served_by: Dict[str, str] = {}

        async def read_pool(connection) -> List[int]:
            values = await self.reader.read_many(
                connection, pool.address, signatures
            )
            served_by["url"] = connection.url
            return values

        try:
            values = await session.run(
                read_pool, self.retry_config, operation_name=pool.name
            )
        except (RetryableException, NonRetryableException) as e:
            logger.error(f"{pool.name}: giving up after retries: {e}")
            return Result.fail_from_exception(
                pool.name, e, context={"pool": pool.address}
            )

        total_staked, bucket_values = values[0], values[1:]
        return Result.ok(
            PoolSnapshot(
                pool=pool.name,
                address=pool.address,
                total_staked=total_staked,
                buckets=dict(zip(pool.buckets, bucket_values)),
                endpoint=served_by.get("url"),
            )
        )


def build_strategy(
    name: str,
    rpc: Optional[RawRpcClient] = None,
    reader: Optional[ContractReader] = None,
    max_attempts: int = 3,
    base_delay: float = 1.0,
) -> PoolFetchStrategy:
    """Instantiate the strategy a pool configuration names."""
    if name == ProbeAllEndpointsStrategy.name:
        return ProbeAllEndpointsStrategy(rpc=rpc, reader=reader)
    if name == ClientRetryStrategy.name:
        return ClientRetryStrategy(
            max_attempts=max_attempts, base_delay=base_delay, reader=reader
        )
    raise ConfigurationException(f"Unknown pool fetch strategy: {name}")


class StakingService:
    """Fetches every configured pool, one after the other."""

    def __init__(self, pools: Sequence[PoolConfig], strategies: Dict[str, PoolFetchStrategy]):
        self.pools = list(pools)
        self.strategies = strategies

    async def fetch_all(self, session: RpcSession) -> Dict[str, Result[PoolSnapshot]]:
        results: Dict[str, Result[PoolSnapshot]] = {}
        for pool in self.pools:
            strategy = self.strategies[pool.strategy]
            results[pool.name] = await strategy.fetch(pool, session)
        return results
