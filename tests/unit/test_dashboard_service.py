"""
Unit tests for the dashboard refresh cycle and settings.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from fula_stats.dashboard.service import DashboardService
from fula_stats.report.presenter import DashboardPresenter
from fula_stats.shared.constants import DashboardSettings
from fula_stats.shared.exceptions import ConfigurationException, ErrorKind
from fula_stats.shared.results import Result
from fula_stats.staking.models import PoolSnapshot
from fula_stats.supply.models import TokenSnapshot

M = 10**6 * 10**18
STAMP = datetime(2026, 10, 17, 12, 0, 0)


def token_ok():
    return Result.ok(
        TokenSnapshot(
            total_supply=490 * M,
            decimals=18,
            burned=13 * M,
            non_circulating=3 * M,
        )
    )


def pools_ok(settings):
    results = {}
    for pool in settings.pools:
        results[pool.name] = Result.ok(
            PoolSnapshot(
                pool=pool.name,
                address=pool.address,
                total_staked=len(pool.buckets) * M,
                buckets={days: M for days in pool.buckets},
            )
        )
    return results


@pytest.fixture
def settings(tmp_path):
    return DashboardSettings(
        rpc_urls=["https://rpc1.test", "https://rpc2.test"],
        cache_dir=tmp_path,
        holders_fallback_file=tmp_path / "holders.txt",
    )


@pytest.fixture
def parts(settings):
    supply = MagicMock()
    supply.fetch = AsyncMock(return_value=token_ok())
    staking = MagicMock()
    staking.fetch_all = AsyncMock(return_value=pools_ok(settings))
    holders = MagicMock()
    holders.get_holders_count = AsyncMock(return_value=Result.ok(1203))
    session = MagicMock()
    session.aclose = AsyncMock()
    return {
        "session": session,
        "supply": supply,
        "staking": staking,
        "holders": holders,
    }


def make_service(settings, parts):
    return DashboardService(settings, clock=lambda: STAMP, **parts)


class TestRefreshCycle:
    """Tests for one refresh cycle."""

    @pytest.mark.asyncio
    async def test_full_cycle(self, settings, parts):
        """A clean cycle fills every part of the report."""
        service = make_service(settings, parts)

        report = await service.refresh()

        assert report.circulating_supply == 487 * M
        assert report.total_staked == 6 * M
        assert report.bucket_totals[365] == 2 * M
        assert report.bucket_totals[90] == M
        assert report.holders.data == 1203
        assert report.updated_at == STAMP
        assert service.last_report is report
        assert service.last_summary.steps_succeeded == 4
        assert service.last_summary.steps_failed == 0

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, settings, parts):
        """Token, then pools, then holders."""
        order = []
        parts["supply"].fetch.side_effect = lambda s: order.append("token") or token_ok()
        parts["staking"].fetch_all.side_effect = (
            lambda s: order.append("pools") or pools_ok(settings)
        )
        parts["holders"].get_holders_count.side_effect = (
            lambda: order.append("holders") or Result.ok(1)
        )

        await make_service(settings, parts).refresh()

        assert order == ["token", "pools", "holders"]

    @pytest.mark.asyncio
    async def test_failing_pool_is_contained(self, settings, parts):
        """One failing pool leaves every other field populated."""
        pools = pools_ok(settings)
        pools["pool1"] = Result.fail_with_message(
            source="pool1", message="no data", kind=ErrorKind.NO_CONTRACT_DATA
        )
        parts["staking"].fetch_all.return_value = pools

        report = await make_service(settings, parts).refresh()
        slots = DashboardPresenter(settings.pools).render(report)

        assert slots["pool1-total"].is_error is True
        assert slots["pool2-total"].is_error is False
        assert slots["totalSupply"].is_error is False
        assert slots["holdersCount"].text == "1,203"
        assert report.total_staked == 3 * M

    @pytest.mark.asyncio
    async def test_unreachable_token_skips_pools(self, settings, parts):
        """With no endpoint reachable the pool reads are skipped."""
        parts["supply"].fetch.return_value = Result.fail_with_message(
            source="token",
            message="down",
            kind=ErrorKind.ALL_ENDPOINTS_UNREACHABLE,
        )
        service = make_service(settings, parts)

        report = await service.refresh()

        parts["staking"].fetch_all.assert_not_awaited()
        parts["holders"].get_holders_count.assert_awaited_once()
        for result in report.pools.values():
            assert result.error_kind == ErrorKind.ALL_ENDPOINTS_UNREACHABLE
        assert report.holders.data == 1203
        assert service.last_summary.steps_failed == 3

    @pytest.mark.asyncio
    async def test_other_token_failure_still_reads_pools(self, settings, parts):
        """Only unreachability skips the pools."""
        parts["supply"].fetch.return_value = Result.fail_with_message(
            source="token", message="bad", kind=ErrorKind.DECODE
        )

        report = await make_service(settings, parts).refresh()

        parts["staking"].fetch_all.assert_awaited_once()
        assert report.circulating_supply is None
        assert report.total_staked == 6 * M


class TestOverlap:
    """Tests for overlapping refresh triggers."""

    @pytest.mark.asyncio
    async def test_second_trigger_is_dropped(self, settings, parts):
        """A refresh requested mid-cycle returns None and does no work."""
        gate = asyncio.Event()

        async def slow_fetch(session):
            await gate.wait()
            return token_ok()

        parts["supply"].fetch = AsyncMock(side_effect=slow_fetch)
        service = make_service(settings, parts)

        first = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)
        assert service.is_refreshing is True

        assert await service.refresh() is None

        gate.set()
        report = await first

        assert report is not None
        assert parts["supply"].fetch.await_count == 1
        assert service.is_refreshing is False

    @pytest.mark.asyncio
    async def test_flag_reset_after_error(self, settings, parts):
        """An unexpected exception still clears the in-progress flag."""
        parts["holders"].get_holders_count.side_effect = RuntimeError("bug")
        service = make_service(settings, parts)

        with pytest.raises(RuntimeError):
            await service.refresh()

        assert service.is_refreshing is False


class TestRunForever:
    """Tests for the periodic loop."""

    @pytest.mark.asyncio
    async def test_publishes_each_tick(self, settings, parts):
        """Every tick of a fast cycle publishes a report."""
        on_report = AsyncMock()
        service = make_service(settings, parts)

        await service.run_forever(interval=0.01, on_report=on_report, iterations=3)

        assert on_report.await_count == 3

    @pytest.mark.asyncio
    async def test_skips_ticks_while_refreshing(self, settings, parts):
        """Ticks landing during a slow cycle are skipped, not queued."""

        async def slow_fetch(session):
            await asyncio.sleep(0.1)
            return token_ok()

        parts["supply"].fetch = AsyncMock(side_effect=slow_fetch)
        reports = []
        service = make_service(settings, parts)

        await service.run_forever(
            interval=0.01, on_report=reports.append, iterations=3
        )

        assert len(reports) == 1
        assert parts["supply"].fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_aclose(self, settings, parts):
        """aclose() closes the session."""
        service = make_service(settings, parts)
        await service.aclose()
        parts["session"].aclose.assert_awaited_once()


class TestDashboardSettings:
    """Tests for settings validation and env overrides."""

    def test_defaults(self):
        """Defaults describe the two FULA pools."""
        settings = DashboardSettings()
        assert [p.name for p in settings.pools] == ["pool1", "pool2"]
        pool1, pool2 = settings.pools
        assert pool1.strategy == "probe_all_endpoints"
        assert pool2.buckets == (90, 180, 365)
        assert settings.initial_supply == 500_000_000 * 10**18

    def test_empty_rpc_list(self):
        """An empty endpoint list is rejected."""
        with pytest.raises(ConfigurationException):
            DashboardSettings(rpc_urls=[])

    def test_bad_in_flight_cap(self):
        """The in-flight cap must be positive."""
        with pytest.raises(ConfigurationException):
            DashboardSettings(max_in_flight=0)

    def test_from_env(self, monkeypatch, tmp_path):
        """FULA_* variables override the defaults."""
        monkeypatch.setenv("FULA_RPC_URLS", "https://a.test, https://b.test")
        monkeypatch.setenv("FULA_MAX_IN_FLIGHT", "2")
        monkeypatch.setenv("FULA_CACHE_DIR", str(tmp_path))

        settings = DashboardSettings.from_env()

        assert settings.rpc_urls == ["https://a.test", "https://b.test"]
        assert settings.max_in_flight == 2
        assert settings.cache_dir == tmp_path
