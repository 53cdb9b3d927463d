"""
Type definitions for the aggregated dashboard report.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from fula_stats.shared.results import Result
from fula_stats.staking.models import PoolSnapshot
from fula_stats.supply.models import TokenSnapshot


@dataclass
class AggregateReport:
    """
    Combined view of one refresh cycle, in base units.

    Recomputed from scratch every cycle. A pool that failed contributes zero
    to `bucket_totals` and `total_staked`; its failure stays visible in
    `pools`.
    """

    token: Result[TokenSnapshot]
    pools: Dict[str, Result[PoolSnapshot]]
    bucket_totals: Dict[int, int] = field(default_factory=dict)  # days -> staked
    total_staked: int = 0  # sum of the pools' own totalStaked()
    circulating_supply: Optional[int] = None  # None when token data failed
    holders: Optional[Result[int]] = None  # filled in by the refresh cycle
    updated_at: Optional[datetime] = None

    @property
    def decimals(self) -> int:
        if self.token.success:
            return self.token.data.decimals
        return 18
