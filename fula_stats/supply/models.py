"""
Type definitions for token supply data.
"""

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class TokenSnapshot:
    """
    Point-in-time supply figures for the token, all in base units.

    `burned` blends two detection methods: balances parked at burn addresses
    plus the shrinkage of total supply below the initial mint. The two never
    overlap: tokens at a burn address still count in totalSupply, tokens
    destroyed through burn() no longer do.
    """

    total_supply: int  # totalSupply() at the latest block
    decimals: int  # decimals(), applied only when formatting
    burned: int  # burn-address balances + supply shrinkage
    non_circulating: int  # sum of balances on the non-circulating list
    symbol: str = "FULA"
    name: str = ""
    supply_shrinkage: int = 0  # max(0, initial supply - total supply)
    burn_balances: Dict[str, int] = field(default_factory=dict)
    non_circulating_balances: Dict[str, int] = field(default_factory=dict)
    failed_addresses: List[str] = field(default_factory=list)  # counted as 0
