"""FULA Stats - live supply and staking figures for the FULA token on Base."""

__version__ = "1.0.0"

from .dashboard import DashboardService
from .report import AggregateReport, aggregate
from .shared.constants import DashboardSettings

__all__ = ["DashboardService", "DashboardSettings", "AggregateReport", "aggregate"]
