#!/usr/bin/env python3
"""
Console front-end for FULA Stats.

Examples:
  - One refresh cycle, rendered as a table
    fula-stats snapshot

  - Same, as JSON (base-unit integers as strings plus display slots)
    fula-stats snapshot --json

  - Refresh every 60 seconds until interrupted
    fula-stats watch --interval 60
"""

import argparse
import asyncio
import json
from typing import Any, Dict, List, Optional

from rich.table import Table

from fula_stats.dashboard import DashboardService
from fula_stats.report import AggregateReport, DashboardPresenter, DisplayValue
from fula_stats.shared.constants import DashboardSettings
from fula_stats.utils.formatters import console, format_address

SECTIONS = (
    ("Supply", ("totalSupply", "circulatingSupply", "nonCirculating", "burnedTokens")),
    ("Community", ("holdersCount", "lastUpdated")),
)


def _cell(value: Optional[DisplayValue]) -> str:
    if value is None:
        return "-"
    if value.is_error:
        return f"[red]{value.text}[/red]"
    return value.text


def build_table(
    slots: Dict[str, DisplayValue], settings: DashboardSettings
) -> Table:
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Metric", width=26)
    table.add_column("Value", justify="right", width=22)

    for title, keys in SECTIONS:
        table.add_row(f"[bold]{title}[/bold]", "")
        for key in keys:
            table.add_row(f"  {key}", _cell(slots.get(key)))

    for pool in settings.pools:
        table.add_row(f"[bold]{pool.name}[/bold] {format_address(pool.address)}", "")
        for days in pool.buckets:
            key = f"{pool.name}-{days}days"
            table.add_row(f"  {days} days", _cell(slots.get(key)))
        table.add_row("  total", _cell(slots.get(f"{pool.name}-total")))

    table.add_row("[bold]All pools[/bold]", "")
    for key in sorted(k for k in slots if k.startswith("all-")):
        days = key[len("all-"):-len("days")]
        table.add_row(f"  {days} days", _cell(slots[key]))
    table.add_row("  total", _cell(slots.get("allPools-total")))
    return table


def report_to_dict(
    report: AggregateReport, slots: Dict[str, DisplayValue]
) -> Dict[str, Any]:
    """JSON-safe view; big integers are emitted as strings."""
    token = report.token
    return {
        "token": (
            {
                "total_supply": str(token.data.total_supply),
                "decimals": token.data.decimals,
                "burned": str(token.data.burned),
                "non_circulating": str(token.data.non_circulating),
                "failed_addresses": token.data.failed_addresses,
            }
            if token.success
            else None
        ),
        "pools": {
            name: (
                {
                    "total_staked": str(result.data.total_staked),
                    "buckets": {str(d): str(v) for d, v in result.data.buckets.items()},
                    "endpoint": result.data.endpoint,
                }
                if result.success
                else None
            )
            for name, result in report.pools.items()
        },
        "bucket_totals": {str(d): str(v) for d, v in report.bucket_totals.items()},
        "total_staked": str(report.total_staked),
        "circulating_supply": (
            str(report.circulating_supply)
            if report.circulating_supply is not None
            else None
        ),
        "holders": report.holders.data if report.holders and report.holders.success else None,
        "slots": {
            key: {"text": value.text, "is_error": value.is_error}
            for key, value in slots.items()
        },
    }


def cmd_snapshot(args: argparse.Namespace) -> None:
    async def run():
        settings = DashboardSettings.from_env()
        service = DashboardService(settings)
        presenter = DashboardPresenter(settings.pools)
        try:
            report = await service.refresh()
        finally:
            await service.aclose()

        slots = presenter.render(report)
        if args.json:
            payload = report_to_dict(report, slots)
            payload["summary"] = service.last_summary.to_dict()
            console.print_json(json.dumps(payload))
            return

        console.print(build_table(slots, settings))
        if service.last_summary.has_errors():
            console.print(
                f"[yellow]{service.last_summary.error_count()} field(s) "
                f"could not be loaded[/yellow]"
            )

    asyncio.run(run())


def cmd_watch(args: argparse.Namespace) -> None:
    async def run():
        settings = DashboardSettings.from_env()
        service = DashboardService(settings)
        presenter = DashboardPresenter(settings.pools)

        def show(report: AggregateReport) -> None:
            console.clear()
            console.print(build_table(presenter.render(report), settings))

        try:
            await service.run_forever(
                interval=args.interval, on_report=show, iterations=args.iterations
            )
        finally:
            await service.aclose()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fula-stats",
        description="Live FULA supply and staking statistics",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # snapshot
    p_snap = sub.add_parser("snapshot", help="Run one refresh cycle")
    p_snap.add_argument("--json", action="store_true", help="Print JSON")
    p_snap.set_defaults(func=cmd_snapshot)

    # watch
    p_watch = sub.add_parser("watch", help="Refresh periodically")
    p_watch.add_argument("--interval", type=float, default=None)
    p_watch.add_argument(
        "--iterations", type=int, default=None, help="Stop after N ticks"
    )
    p_watch.set_defaults(func=cmd_watch)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise


if __name__ == "__main__":
    main()
