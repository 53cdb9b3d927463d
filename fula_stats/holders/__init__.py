from fula_stats.holders.service import HoldersService

__all__ = ["HoldersService"]
