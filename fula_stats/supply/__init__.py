from fula_stats.supply.models import TokenSnapshot
from fula_stats.supply.service import SupplyService

__all__ = ["TokenSnapshot", "SupplyService"]
