from fula_stats.dashboard.service import DashboardService

__all__ = ["DashboardService"]
