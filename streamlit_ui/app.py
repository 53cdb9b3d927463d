"""
FULA Stats - Streamlit Dashboard

Live token supply and staking figures. The manual refresh button and the
60-second timer both run the same refresh cycle; a trigger is ignored while
a cycle is still running.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import pandas as pd
import streamlit as st

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fula_stats.dashboard import DashboardService
from fula_stats.report import DashboardPresenter, DisplayValue
from fula_stats.shared.constants import DashboardSettings
from fula_stats.shared.services.rpc_session import RpcSession


# Page configuration
st.set_page_config(
    page_title="FULA Stats",
    page_icon="📊",
    layout="wide"
)

settings = DashboardSettings.from_env()
presenter = DashboardPresenter(settings.pools)


# Initialize session state
if "slots" not in st.session_state:
    st.session_state.slots = {}
if "refreshing" not in st.session_state:
    st.session_state.refreshing = False
if "last_good_index" not in st.session_state:
    st.session_state.last_good_index = 0


async def run_refresh():
    """One cycle on a fresh event loop, carrying the endpoint cursor over."""
    session = RpcSession(
        settings.rpc_urls,
        probe_timeout=settings.probe_timeout,
        max_in_flight=settings.max_in_flight,
    )
    session.last_good_index = st.session_state.last_good_index
    service = DashboardService(settings, session=session)
    try:
        report = await service.refresh()
    finally:
        await service.aclose()
    st.session_state.last_good_index = session.last_good_index
    return report


def refresh():
    if st.session_state.refreshing:
        return
    st.session_state.refreshing = True
    try:
        report = asyncio.run(run_refresh())
        if report is not None:
            st.session_state.slots = presenter.render(report)
    finally:
        st.session_state.refreshing = False


def show_metric(column, label: str, value: Optional[DisplayValue]):
    with column:
        if value is None:
            st.metric(label, "-")
        elif value.is_error:
            st.metric(label, "-")
            st.caption(f":red[{value.text}]")
        else:
            st.metric(label, value.text)


def pool_table(slots) -> pd.DataFrame:
    durations = sorted({d for pool in settings.pools for d in pool.buckets})
    rows = []
    for days in durations:
        row = {"Lock": f"{days} days"}
        for pool in settings.pools:
            value = slots.get(f"{pool.name}-{days}days")
            row[pool.name] = value.text if value is not None else "-"
        value = slots.get(f"all-{days}days")
        row["All pools"] = value.text if value is not None else "-"
        rows.append(row)

    total = {"Lock": "Total"}
    for pool in settings.pools:
        value = slots.get(f"{pool.name}-total")
        total[pool.name] = value.text if value is not None else "-"
    value = slots.get("allPools-total")
    total["All pools"] = value.text if value is not None else "-"
    rows.append(total)
    return pd.DataFrame(rows)


@st.fragment(run_every=settings.refresh_interval)
def live_panel():
    # Clicking reruns this fragment, which refreshes again
    button_slot = st.empty()
    button_slot.button("🔄 Refresh", key="refresh-busy", disabled=True)
    refresh()
    button_slot.button("🔄 Refresh", key="refresh", type="primary")

    slots = st.session_state.slots

    col1, col2, col3, col4 = st.columns(4)
    show_metric(col1, "Total Supply", slots.get("totalSupply"))
    show_metric(col2, "Circulating Supply", slots.get("circulatingSupply"))
    show_metric(col3, "Burned", slots.get("burnedTokens"))
    show_metric(col4, "Holders", slots.get("holdersCount"))

    st.markdown("---")
    st.subheader("🔒 Staking")
    st.dataframe(pool_table(slots), use_container_width=True, hide_index=True)

    updated = slots.get("lastUpdated")
    st.caption(f"Last updated: {updated.text if updated else '-'}")


def main():
    st.title("📊 FULA Stats")
    st.markdown("Live supply and staking statistics for FULA on Base")

    live_panel()


if __name__ == "__main__":
    main()
