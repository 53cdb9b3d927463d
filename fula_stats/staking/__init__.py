from fula_stats.staking.models import PoolSnapshot
from fula_stats.staking.strategies import (
    ClientRetryStrategy,
    PoolFetchStrategy,
    ProbeAllEndpointsStrategy,
    StakingService,
    build_strategy,
)

__all__ = [
    "PoolSnapshot",
    "PoolFetchStrategy",
    "ProbeAllEndpointsStrategy",
    "ClientRetryStrategy",
    "StakingService",
    "build_strategy",
]
