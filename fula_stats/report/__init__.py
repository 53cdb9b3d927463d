from fula_stats.report.aggregator import aggregate, bucket_totals, circulating_supply
from fula_stats.report.models import AggregateReport
from fula_stats.report.presenter import DashboardPresenter, DisplayValue

__all__ = [
    "AggregateReport",
    "DashboardPresenter",
    "DisplayValue",
    "aggregate",
    "bucket_totals",
    "circulating_supply",
]
