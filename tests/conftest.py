"""
Pytest configuration and shared fixtures.

This module provides common fixtures for all tests. The fake RPC plumbing
they build on lives in tests/fakes.py.
"""

import pytest

from tests.fakes import (
    RPC_URLS,
    TOKEN,
    UNIT,
    Responder,
    contract_responder,
    selector,
)


@pytest.fixture
def rpc_urls():
    return list(RPC_URLS)


@pytest.fixture
def token_responder() -> Responder:
    """Token with 490M supply, 1M at the zero address and 2M at 0xdEaD."""
    return contract_responder(
        {
            TOKEN: {
                selector("totalSupply()(uint256)"): 490_000_000 * UNIT,
                selector("decimals()(uint8)"): 18,
                selector("name()(string)"): "Functionland",
                selector("symbol()(string)"): "FULA",
                selector("balanceOf(address)(uint256)"): lambda data: (
                    1_000_000 * UNIT
                    if data.endswith("0" * 40)
                    else 2_000_000 * UNIT
                ),
            }
        }
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow-running")
