"""
Unit tests for SupplyService.
"""

import pytest

from fula_stats.shared.exceptions import ErrorKind, TransientRpcError
from fula_stats.supply.service import SupplyService

from tests.fakes import (
    DEAD,
    NO_DELAY_RETRY,
    TOKEN,
    UNIT,
    ZERO,
    contract_responder,
    make_session,
    selector,
)

INITIAL_SUPPLY = 500_000_000 * UNIT


def make_service(**overrides):
    params = dict(
        token_address=TOKEN,
        initial_supply=INITIAL_SUPPLY,
        burn_addresses=[ZERO, DEAD],
        non_circulating_addresses=[ZERO, DEAD],
        retry_config=NO_DELAY_RETRY,
    )
    params.update(overrides)
    return SupplyService(**params)


class TestSupplySnapshot:
    """Tests for a successful token snapshot."""

    @pytest.mark.asyncio
    async def test_snapshot_values(self, token_responder):
        """Supply, burned and non-circulating figures are exact integers."""
        session = make_session({0: token_responder})

        result = await make_service().fetch(session)

        assert result.success is True
        snapshot = result.data
        assert snapshot.total_supply == 490_000_000 * UNIT
        assert snapshot.decimals == 18
        assert snapshot.name == "Functionland"
        assert snapshot.symbol == "FULA"
        assert snapshot.supply_shrinkage == 10_000_000 * UNIT
        # 1M (zero) + 2M (dead) held, plus 10M destroyed
        assert snapshot.burned == 13_000_000 * UNIT
        assert snapshot.non_circulating == 3_000_000 * UNIT
        assert snapshot.failed_addresses == []
        assert result.has_warnings() is False

    @pytest.mark.asyncio
    async def test_duplicate_addresses_read_once(self, token_responder):
        """An address on both lists is only queried once."""
        session = make_session({0: token_responder})

        await make_service().fetch(session)

        balance_calls = [
            call
            for call in session.created[0].eth_call.await_args_list
            if call.args[1].startswith(selector("balanceOf(address)(uint256)"))
        ]
        assert len(balance_calls) == 2

    @pytest.mark.asyncio
    async def test_no_shrinkage_when_supply_grew(self):
        """A supply above the initial supply adds nothing to burned."""
        responder = contract_responder(
            {
                TOKEN: {
                    selector("totalSupply()(uint256)"): INITIAL_SUPPLY + 5,
                    selector("decimals()(uint8)"): 18,
                    selector("name()(string)"): "Functionland",
                    selector("symbol()(string)"): "FULA",
                    selector("balanceOf(address)(uint256)"): 0,
                }
            }
        )
        session = make_session({0: responder})

        result = await make_service().fetch(session)

        assert result.data.supply_shrinkage == 0
        assert result.data.burned == 0


class TestSupplyPartialFailures:
    """Tests for failures that degrade but do not fail the snapshot."""

    @pytest.mark.asyncio
    async def test_failed_balance_counts_as_zero(self):
        """A balance that cannot be read counts as 0 and is reported."""

        def balance(data):
            if data.endswith("dead"):
                return TransientRpcError("rate limited")
            return 1_000_000 * UNIT

        responder = contract_responder(
            {
                TOKEN: {
                    selector("totalSupply()(uint256)"): 490_000_000 * UNIT,
                    selector("decimals()(uint8)"): 18,
                    selector("name()(string)"): "Functionland",
                    selector("symbol()(string)"): "FULA",
                    selector("balanceOf(address)(uint256)"): balance,
                }
            }
        )
        session = make_session({0: responder})

        result = await make_service().fetch(session)

        assert result.success is True
        assert result.data.failed_addresses == [DEAD]
        assert result.data.burn_balances[DEAD] == 0
        assert result.data.non_circulating == 1_000_000 * UNIT
        assert result.data.burned == 11_000_000 * UNIT
        assert result.has_warnings() is True
        assert result.errors[0].context == {"address": DEAD}

    @pytest.mark.asyncio
    async def test_metadata_failure_uses_default_symbol(self):
        """Missing name/symbol falls back to the configured symbol."""
        responder = contract_responder(
            {
                TOKEN: {
                    selector("totalSupply()(uint256)"): 490_000_000 * UNIT,
                    selector("decimals()(uint8)"): 18,
                    selector("balanceOf(address)(uint256)"): 0,
                }
            }
        )
        session = make_session({0: responder})

        result = await make_service(default_symbol="FULA").fetch(session)

        assert result.success is True
        assert result.data.symbol == "FULA"
        assert result.data.name == ""
        assert result.has_warnings() is True

    @pytest.mark.asyncio
    async def test_symbol_read_when_name_fails(self):
        """A failing name() does not stop symbol() from being read."""
        responder = contract_responder(
            {
                TOKEN: {
                    selector("totalSupply()(uint256)"): 490_000_000 * UNIT,
                    selector("decimals()(uint8)"): 18,
                    selector("name()(string)"): TransientRpcError("reverted"),
                    selector("symbol()(string)"): "FULA",
                    selector("balanceOf(address)(uint256)"): 0,
                }
            }
        )
        session = make_session({i: responder for i in range(4)})

        result = await make_service(default_symbol="XXX").fetch(session)

        assert result.success is True
        assert result.data.name == ""
        assert result.data.symbol == "FULA"
        assert len(result.errors) == 1
        assert "name()" in result.errors[0].message


class TestSupplyFailures:
    """Tests for failures of the supply read itself."""

    @pytest.mark.asyncio
    async def test_all_endpoints_unreachable(self):
        """No reachable endpoint fails the snapshot with that kind."""
        session = make_session({}, dead=[0, 1, 2, 3])

        result = await make_service().fetch(session)

        assert result.success is False
        assert result.error_kind == ErrorKind.ALL_ENDPOINTS_UNREACHABLE

    @pytest.mark.asyncio
    async def test_supply_read_retried_on_next_endpoint(self, token_responder):
        """A failed supply read moves to the next endpoint."""
        broken = contract_responder(
            {TOKEN: {selector("totalSupply()(uint256)"): TransientRpcError("503")}}
        )
        session = make_session({0: broken, 1: token_responder})

        result = await make_service().fetch(session)

        assert result.success is True
        assert result.data.total_supply == 490_000_000 * UNIT
        assert session.last_good_index == 1

    @pytest.mark.asyncio
    async def test_no_contract_anywhere(self):
        """Empty return data on every attempt fails with NO_CONTRACT_DATA."""
        session = make_session({})

        result = await make_service().fetch(session)

        assert result.success is False
        assert result.error_kind == ErrorKind.NO_CONTRACT_DATA
