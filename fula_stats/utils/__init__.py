from fula_stats.utils.formatters import (
    format_address,
    format_count,
    format_number,
    format_timestamp,
    format_token_amount,
    to_display_units,
)

__all__ = [
    "format_address",
    "format_count",
    "format_number",
    "format_timestamp",
    "format_token_amount",
    "to_display_units",
]
