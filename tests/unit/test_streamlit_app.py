"""
Unit tests for the Streamlit page wiring.
"""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from streamlit.testing.v1 import AppTest

from fula_stats.dashboard import DashboardService

APP_PATH = str(Path(__file__).resolve().parents[2] / "streamlit_ui" / "app.py")


@pytest.fixture
def page_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FULA_CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("FULA_RPC_URLS", "https://rpc1.test")


class TestRefreshButton:
    """Tests for the manual refresh trigger."""

    def test_button_enabled_once_cycle_finishes(self, page_env):
        """The busy placeholder is replaced by the live button after a cycle."""
        with patch.object(
            DashboardService, "refresh", AsyncMock(return_value=None)
        ) as refresh:
            at = AppTest.from_file(APP_PATH, default_timeout=30).run()

        assert not at.exception
        assert refresh.await_count == 1
        assert at.button(key="refresh").disabled is False

    def test_click_runs_another_cycle(self, page_env):
        """Clicking the button refreshes again."""
        with patch.object(
            DashboardService, "refresh", AsyncMock(return_value=None)
        ) as refresh:
            at = AppTest.from_file(APP_PATH, default_timeout=30).run()
            at.button(key="refresh").click().run()

        assert not at.exception
        assert refresh.await_count == 2
