"""
Type definitions for staking pool data.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class PoolSnapshot:
    """
    Staking totals of one pool at the latest block, in base units.

    `buckets` maps lock duration in days to the amount staked for it and only
    holds the durations the pool defines. `total_staked` comes from the
    contract's own counter and need not equal the sum of the buckets.
    """

    pool: str  # Pool name, e.g. "pool1"
    address: str  # Pool contract address
    total_staked: int
    buckets: Dict[int, int] = field(default_factory=dict)
    endpoint: Optional[str] = None  # RPC URL that served the reads

    def staked_for(self, days: int) -> int:
        """Amount staked for `days`; 0 when the pool has no such bucket."""
        return self.buckets.get(days, 0)
