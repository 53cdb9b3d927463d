"""All constants for the project"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv

from fula_stats.shared.exceptions import ConfigurationException

load_dotenv()


class GlobalConstants:
    """Global class constants for the FULA token and its staking pools"""

    CHAIN_ID = 8453  # Base
    CHAIN_NAME = "base"

    TOKEN_ADDRESS = "0x9e12735d77c72c5C3670636D428f2F3815d8A4cB"
    TOKEN_SYMBOL = "FULA"
    TOKEN_DECIMALS = 18

    # 500M FULA minted at genesis, in base units
    INITIAL_SUPPLY = 500_000_000 * 10**18

    ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
    DEAD_ADDRESS = "0x000000000000000000000000000000000000dEaD"

    BURN_ADDRESSES: Tuple[str, ...] = (ZERO_ADDRESS, DEAD_ADDRESS)

    # Curated list; burn addresses are part of it
    NON_CIRCULATING_ADDRESSES: Tuple[str, ...] = (
        ZERO_ADDRESS,
        DEAD_ADDRESS,
    )

    POOLS = {
        "pool1": {
            "address": "0xb2064743e3da40bB4C18e80620A02a38e87fB145",
            "buckets": (365, 730, 1095),
            "strategy": "probe_all_endpoints",
        },
        "pool2": {
            "address": "0x4E875E0A4fEa97E83f1350b63420c36e38241db4",
            "buckets": (90, 180, 365),
            "strategy": "client_retry",
        },
    }

    RPC_URLS: Tuple[str, ...] = (
        "https://mainnet.base.org",
        "https://base.llamarpc.com",
        "https://base-rpc.publicnode.com",
        "https://base.drpc.org",
        "https://1rpc.io/base",
    )

    EXPLORER_HOLDERS_URL = (
        "https://basescan.org/token/tokenholderchart/"
        "0x9e12735d77c72c5C3670636D428f2F3815d8A4cB"
    )

    HOLDERS_CACHE_KEY = "fula_holders_count"
    HOLDERS_CACHE_TTL = 3600  # 1 hour
    HOLDERS_FALLBACK_FILE = "holders.txt"

    REFRESH_INTERVAL = 60  # seconds
    POOL_RETRY_ATTEMPTS = 3


def _env_list(name: str) -> Optional[List[str]]:
    raw = os.getenv(name)
    if not raw:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationException(f"Invalid value for {name}: {raw!r}") from e


@dataclass(frozen=True)
class PoolConfig:
    """Static description of one staking pool."""

    name: str
    address: str
    buckets: Tuple[int, ...]
    strategy: str


@dataclass
class DashboardSettings:
    """
    Runtime settings for one dashboard process.

    Defaults come from GlobalConstants; `from_env` applies the optional
    FULA_* overrides. Tests build this directly.
    """

    rpc_urls: List[str] = field(
        default_factory=lambda: list(GlobalConstants.RPC_URLS)
    )
    token_address: str = GlobalConstants.TOKEN_ADDRESS
    token_symbol: str = GlobalConstants.TOKEN_SYMBOL
    initial_supply: int = GlobalConstants.INITIAL_SUPPLY
    burn_addresses: List[str] = field(
        default_factory=lambda: list(GlobalConstants.BURN_ADDRESSES)
    )
    non_circulating_addresses: List[str] = field(
        default_factory=lambda: list(GlobalConstants.NON_CIRCULATING_ADDRESSES)
    )
    pools: List[PoolConfig] = field(
        default_factory=lambda: [
            PoolConfig(name=name, **spec)
            for name, spec in GlobalConstants.POOLS.items()
        ]
    )
    probe_timeout: float = 8.0
    max_in_flight: int = 1
    pool_retry_attempts: int = GlobalConstants.POOL_RETRY_ATTEMPTS
    retry_base_delay: float = 1.0
    refresh_interval: float = GlobalConstants.REFRESH_INTERVAL
    explorer_url: str = GlobalConstants.EXPLORER_HOLDERS_URL
    cache_dir: Path = Path(".cache")
    holders_cache_key: str = GlobalConstants.HOLDERS_CACHE_KEY
    holders_cache_ttl: int = GlobalConstants.HOLDERS_CACHE_TTL
    holders_fallback_file: Path = Path(GlobalConstants.HOLDERS_FALLBACK_FILE)

    def __post_init__(self):
        if not self.rpc_urls:
            raise ConfigurationException("At least one RPC URL is required")
        if self.max_in_flight < 1:
            raise ConfigurationException("max_in_flight must be >= 1")

    @classmethod
    def from_env(cls) -> "DashboardSettings":
        """Build settings from defaults plus FULA_* environment overrides."""
        kwargs: Dict[str, object] = {}

        rpc_urls = _env_list("FULA_RPC_URLS")
        if rpc_urls:
            kwargs["rpc_urls"] = rpc_urls

        kwargs["probe_timeout"] = _env_number("FULA_PROBE_TIMEOUT", 8.0, float)
        kwargs["max_in_flight"] = _env_number("FULA_MAX_IN_FLIGHT", 1, int)

        explorer_url = os.getenv("FULA_EXPLORER_URL")
        if explorer_url:
            kwargs["explorer_url"] = explorer_url

        cache_dir = os.getenv("FULA_CACHE_DIR")
        if cache_dir:
            kwargs["cache_dir"] = Path(cache_dir)

        fallback = os.getenv("FULA_HOLDERS_FALLBACK_FILE")
        if fallback:
            kwargs["holders_fallback_file"] = Path(fallback)

        return cls(**kwargs)
