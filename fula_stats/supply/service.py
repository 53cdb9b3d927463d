"""
Supply service for reading token supply figures.

Reads totalSupply and decimals through the session's Connection, then the
balance of every burn address and every non-circulating address. A failed
balance read is logged and counts as zero; it never aborts the snapshot.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from fula_stats.contracts.reader import ContractReader, contract_reader
from fula_stats.shared.exceptions import (
    AllEndpointsUnreachableError,
    NonRetryableException,
    RetryableException,
)
from fula_stats.shared.logging import get_logger
from fula_stats.shared.results import Result
from fula_stats.shared.retry import RPC_RETRY_CONFIG, RetryConfig
from fula_stats.shared.services.rpc_session import RpcSession
from fula_stats.supply.models import TokenSnapshot

logger = get_logger(__name__)

TOTAL_SUPPLY = "totalSupply()(uint256)"
DECIMALS = "decimals()(uint8)"
NAME = "name()(string)"
SYMBOL = "symbol()(string)"
BALANCE_OF = "balanceOf(address)(uint256)"

FetchErrors = (RetryableException, NonRetryableException)


class SupplyService:
    """Builds a TokenSnapshot for one ERC-20 token."""

    def __init__(
        self,
        token_address: str,
        initial_supply: int,
        burn_addresses: Sequence[str],
        non_circulating_addresses: Sequence[str],
        default_symbol: str = "FULA",
        reader: Optional[ContractReader] = None,
        retry_config: RetryConfig = RPC_RETRY_CONFIG,
    ):
        self.token_address = token_address
        self.initial_supply = initial_supply
        self.burn_addresses = list(burn_addresses)
        self.non_circulating_addresses = list(non_circulating_addresses)
        self.default_symbol = default_symbol
        self.reader = reader or contract_reader
        self.retry_config = retry_config

    async def fetch(self, session: RpcSession) -> Result[TokenSnapshot]:
        """
        Read the token snapshot.

        Returns a failed Result only when totalSupply/decimals cannot be read;
        per-address and metadata failures come back as warnings.
        """
        try:
            total_supply, decimals = await session.run(
                lambda connection: self.reader.read_many(
                    connection, self.token_address, [TOTAL_SUPPLY, DECIMALS]
                ),
                self.retry_config,
                operation_name="token_supply",
            )
        except FetchErrors as e:
            logger.error(f"Could not read token supply: {e}")
            return Result.fail_from_exception(
                "token", e, context={"token": self.token_address}
            )

        name, symbol, metadata_warnings = await self._fetch_metadata(session)

        balances: Dict[str, int] = {}
        failed: List[str] = []
        await self._fetch_balances(
            session,
            self._unique(self.burn_addresses + self.non_circulating_addresses),
            balances,
            failed,
        )

        burn_balances = {a: balances.get(a.lower(), 0) for a in self.burn_addresses}
        non_circulating_balances = {
            a: balances.get(a.lower(), 0) for a in self.non_circulating_addresses
        }
        supply_shrinkage = max(0, self.initial_supply - total_supply)

        snapshot = TokenSnapshot(
            total_supply=total_supply,
            decimals=decimals,
            burned=sum(burn_balances.values()) + supply_shrinkage,
            non_circulating=sum(non_circulating_balances.values()),
            symbol=symbol,
            name=name,
            supply_shrinkage=supply_shrinkage,
            burn_balances=burn_balances,
            non_circulating_balances=non_circulating_balances,
            failed_addresses=failed,
        )

        result = Result.ok(snapshot)
        for message in metadata_warnings:
            result.add_warning("token", message)
        for address in failed:
            result.add_warning(
                "token",
                f"Balance of {address} unavailable, counted as 0",
                context={"address": address},
            )
        return result

    async def _fetch_metadata(
        self, session: RpcSession
    ) -> Tuple[str, str, List[str]]:
        warnings: List[str] = []
        values = {}
        # name() and symbol() are read independently
        for signature in (NAME, SYMBOL):
            try:
                values[signature] = await session.run(
                    lambda c, sig=signature: self.reader.call(
                        c, self.token_address, sig
                    )
                )
            except FetchErrors as e:
                message = f"Token {signature.split('(')[0]}() unavailable: {e}"
                logger.warning(message)
                warnings.append(message)
        name = values.get(NAME, "")
        symbol = values.get(SYMBOL) or self.default_symbol
        return name, symbol, warnings

    async def _fetch_balances(
        self,
        session: RpcSession,
        addresses: List[str],
        balances: Dict[str, int],
        failed: List[str],
    ) -> None:
        for position, address in enumerate(addresses):
            try:
                balances[address.lower()] = await session.run(
                    lambda c, a=address: self.reader.call(
                        c, self.token_address, BALANCE_OF, [a]
                    )
                )
            except AllEndpointsUnreachableError as e:
                logger.warning(f"Skipping remaining balances: {e}")
                failed.extend(addresses[position:])
                return
            except FetchErrors as e:
                logger.warning(f"Could not fetch balance for {address}: {e}")
                failed.append(address)

    @staticmethod
    def _unique(addresses: List[str]) -> List[str]:
        seen = set()
        ordered = []
        for address in addresses:
            key = address.lower()
            if key not in seen:
                seen.add(key)
                ordered.append(address)
        return ordered
