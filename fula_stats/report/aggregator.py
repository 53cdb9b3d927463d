"""
Aggregation of token and pool snapshots into the dashboard report.
"""

from typing import Dict, Iterable, Mapping

from fula_stats.report.models import AggregateReport
from fula_stats.shared.results import Result
from fula_stats.staking.models import PoolSnapshot
from fula_stats.supply.models import TokenSnapshot


def circulating_supply(token: TokenSnapshot) -> int:
    """
    Total supply minus the non-circulating balance, floored at zero.

    Burned tokens are not subtracted again: burn addresses are already on the
    non-circulating list, and destroyed tokens are already gone from
    totalSupply.
    """
    return max(0, token.total_supply - token.non_circulating)


def bucket_totals(
    pools: Iterable[PoolSnapshot], durations: Iterable[int] = ()
) -> Dict[int, int]:
    """
    Per-duration totals; a pool adds only to buckets it defines.

    `durations` lists buckets that must appear even when no successful pool
    defines them (they total 0).
    """
    totals: Dict[int, int] = {days: 0 for days in durations}
    for pool in pools:
        for days, amount in pool.buckets.items():
            totals[days] = totals.get(days, 0) + amount
    return dict(sorted(totals.items()))


def aggregate(
    token: Result[TokenSnapshot],
    pools: Mapping[str, Result[PoolSnapshot]],
    durations: Iterable[int] = (),
) -> AggregateReport:
    """Combine the cycle's results; failed pools count as zero."""
    good_pools = [result.data for result in pools.values() if result.success]

    return AggregateReport(
        token=token,
        pools=dict(pools),
        bucket_totals=bucket_totals(good_pools, durations),
        total_staked=sum(pool.total_staked for pool in good_pools),
        circulating_supply=(
            circulating_supply(token.data) if token.success else None
        ),
    )
