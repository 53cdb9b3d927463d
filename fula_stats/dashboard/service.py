"""
Dashboard refresh cycle.

One cycle runs, strictly in order: token snapshot, each staking pool, holder
count; then aggregates everything into an AggregateReport. Cycles never
overlap: a trigger that arrives while one is running is dropped, not queued.
Nothing in a cycle raises to the caller; every failure ends up as an error
state on the field it concerns.
"""

import asyncio
import time
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional

from fula_stats.holders.service import HoldersService
from fula_stats.report.aggregator import aggregate
from fula_stats.report.models import AggregateReport
from fula_stats.shared.constants import DashboardSettings
from fula_stats.shared.exceptions import ErrorKind
from fula_stats.shared.logging import get_logger
from fula_stats.shared.results import RefreshSummary, Result
from fula_stats.shared.retry import RetryConfig
from fula_stats.shared.services.http_client import aclose_async_client
from fula_stats.shared.services.raw_rpc import RawRpcClient
from fula_stats.shared.services.rpc_session import RpcSession
from fula_stats.staking.models import PoolSnapshot
from fula_stats.staking.strategies import StakingService, build_strategy
from fula_stats.supply.service import SupplyService
from fula_stats.utils.cache import FileCache

logger = get_logger(__name__)

ReportCallback = Callable[[AggregateReport], Optional[Awaitable[None]]]


class DashboardService:
    """Owns the RPC session and runs refresh cycles."""

    def __init__(
        self,
        settings: Optional[DashboardSettings] = None,
        session: Optional[RpcSession] = None,
        supply: Optional[SupplyService] = None,
        staking: Optional[StakingService] = None,
        holders: Optional[HoldersService] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings or DashboardSettings.from_env()
        s = self.settings

        self.session = session or RpcSession(
            s.rpc_urls,
            probe_timeout=s.probe_timeout,
            max_in_flight=s.max_in_flight,
        )
        retry_config = RetryConfig(
            max_attempts=s.pool_retry_attempts,
            base_delay=s.retry_base_delay,
            max_delay=10.0,
        )
        self.supply = supply or SupplyService(
            token_address=s.token_address,
            initial_supply=s.initial_supply,
            burn_addresses=s.burn_addresses,
            non_circulating_addresses=s.non_circulating_addresses,
            default_symbol=s.token_symbol,
            retry_config=retry_config,
        )
        if staking is None:
            rpc = RawRpcClient()
            strategies = {
                pool.strategy: build_strategy(
                    pool.strategy,
                    rpc=rpc,
                    max_attempts=s.pool_retry_attempts,
                    base_delay=s.retry_base_delay,
                )
                for pool in s.pools
            }
            staking = StakingService(s.pools, strategies)
        self.staking = staking
        self.holders = holders or HoldersService(
            explorer_url=s.explorer_url,
            fallback_file=s.holders_fallback_file,
            cache=FileCache(s.cache_dir),
            cache_key=s.holders_cache_key,
            ttl=s.holders_cache_ttl,
        )
        self._clock = clock
        self._refreshing = False
        self.last_report: Optional[AggregateReport] = None
        self.last_summary: Optional[RefreshSummary] = None

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def durations(self):
        return sorted({days for pool in self.settings.pools for days in pool.buckets})

    async def refresh(self) -> Optional[AggregateReport]:
        """
        Run one cycle, or return None if a cycle is already running.
        """
        if self._refreshing:
            logger.info("Refresh already in progress; trigger ignored")
            return None

        self._refreshing = True
        try:
            return await self._run_cycle()
        finally:
            self._refreshing = False

    async def _run_cycle(self) -> AggregateReport:
        summary = RefreshSummary(started_at=time.time())

        token = await self.supply.fetch(self.session)
        summary.record(token)

        if token.error_kind == ErrorKind.ALL_ENDPOINTS_UNREACHABLE:
            pools = self._skip_pools()
        else:
            pools = await self.staking.fetch_all(self.session)
        for result in pools.values():
            summary.record(result)

        holders = await self.holders.get_holders_count()
        summary.record(holders)

        report = aggregate(token, pools, self.durations)
        report.holders = holders
        report.updated_at = self._clock()

        summary.finished_at = time.time()
        self.last_report = report
        self.last_summary = summary

        logger.info(
            f"Refresh done in {summary.finished_at - summary.started_at:.1f}s: "
            f"{summary.steps_succeeded} ok, {summary.steps_failed} failed, "
            f"{summary.warning_count()} warnings"
        )
        return report

    def _skip_pools(self) -> Dict[str, Result[PoolSnapshot]]:
        logger.warning("No RPC endpoint reachable; skipping pool reads this cycle")
        return {
            pool.name: Result.fail_with_message(
                source=pool.name,
                message="Skipped: no RPC endpoint reachable",
                kind=ErrorKind.ALL_ENDPOINTS_UNREACHABLE,
                context={"pool": pool.address},
            )
            for pool in self.settings.pools
        }

    async def _refresh_and_publish(self, on_report: Optional[ReportCallback]) -> None:
        report = await self.refresh()
        if report is not None and on_report is not None:
            outcome = on_report(report)
            if asyncio.iscoroutine(outcome):
                await outcome

    async def run_forever(
        self,
        interval: Optional[float] = None,
        on_report: Optional[ReportCallback] = None,
        iterations: Optional[int] = None,
    ) -> None:
        """
        Trigger a cycle every `interval` seconds.

        Ticks are fixed-rate; a tick that lands while the previous cycle is
        still running is skipped. `iterations` bounds the number of ticks.
        """
        interval = interval if interval is not None else self.settings.refresh_interval
        pending: Optional[asyncio.Task] = None
        tick = 0

        try:
            while iterations is None or tick < iterations:
                if self._refreshing:
                    logger.info("Previous refresh still running; skipping tick")
                else:
                    pending = asyncio.create_task(self._refresh_and_publish(on_report))
                tick += 1
                if iterations is not None and tick >= iterations:
                    break
                await asyncio.sleep(interval)
        finally:
            if pending is not None and not pending.done():
                await pending

    async def aclose(self) -> None:
        await self.session.aclose()
        await aclose_async_client()
