"""
Display slots for the dashboard surfaces.

Maps an AggregateReport to named slots (`totalSupply`, `pool1-365days`,
`allPools-total`, ...). Each slot is either a formatted string or an
error-flagged string picked from the failure's ErrorKind.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from fula_stats.report.models import AggregateReport
from fula_stats.shared.constants import PoolConfig
from fula_stats.shared.exceptions import ErrorKind
from fula_stats.shared.results import Result
from fula_stats.utils.formatters import (
    format_count,
    format_timestamp,
    format_token_amount,
)

ERROR_TEXT = {
    ErrorKind.ALL_ENDPOINTS_UNREACHABLE: "RPC unreachable",
    ErrorKind.NO_CONTRACT_DATA: "No contract data",
    ErrorKind.SOURCE_UNAVAILABLE: "Unavailable",
}


@dataclass(frozen=True)
class DisplayValue:
    """One rendered slot."""

    text: str
    is_error: bool = False
    kind: Optional[ErrorKind] = None

    @classmethod
    def error(cls, result: Result, default: str = "Error") -> "DisplayValue":
        kind = result.error_kind
        return cls(text=ERROR_TEXT.get(kind, default), is_error=True, kind=kind)


class DashboardPresenter:
    """Turns a report into display slots."""

    def __init__(self, pools: Sequence[PoolConfig]):
        self.pools = list(pools)

    def render(self, report: AggregateReport) -> Dict[str, DisplayValue]:
        slots: Dict[str, DisplayValue] = {}
        token = report.token
        decimals = report.decimals
        symbol = token.data.symbol if token.success else "FULA"

        def amount(value: int) -> DisplayValue:
            return DisplayValue(format_token_amount(value, decimals, symbol))

        if token.success:
            slots["totalSupply"] = amount(token.data.total_supply)
            slots["burnedTokens"] = amount(token.data.burned)
            slots["nonCirculating"] = amount(token.data.non_circulating)
            slots["circulatingSupply"] = amount(report.circulating_supply)
        else:
            failed = DisplayValue.error(token, default="Error loading")
            for slot in (
                "totalSupply",
                "burnedTokens",
                "nonCirculating",
                "circulatingSupply",
            ):
                slots[slot] = failed

        for pool in self.pools:
            result = report.pools.get(pool.name)
            if result is not None and result.success:
                for days in pool.buckets:
                    slots[f"{pool.name}-{days}days"] = amount(
                        result.data.staked_for(days)
                    )
                slots[f"{pool.name}-total"] = amount(result.data.total_staked)
            else:
                failed = (
                    DisplayValue.error(result)
                    if result is not None
                    else DisplayValue("Error", is_error=True)
                )
                for days in pool.buckets:
                    slots[f"{pool.name}-{days}days"] = failed
                slots[f"{pool.name}-total"] = failed

        for days, total in report.bucket_totals.items():
            slots[f"all-{days}days"] = amount(total)
        slots["allPools-total"] = amount(report.total_staked)

        holders = report.holders
        if holders is not None and holders.success:
            slots["holdersCount"] = DisplayValue(format_count(holders.data))
        elif holders is not None:
            slots["holdersCount"] = DisplayValue.error(holders, default="Unavailable")

        if report.updated_at is not None:
            slots["lastUpdated"] = DisplayValue(format_timestamp(report.updated_at))

        return slots
