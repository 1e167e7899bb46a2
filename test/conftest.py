# /test/conftest.py
import pytest

from evm_fees.adapters.mock import MockRpcTransport, block_response, fee_history_response
from evm_fees.core.models import HistoricalBlock

GWEI = 10**9


def make_blocks(rewards, base_fee=20 * GWEI, ratio=0.5, start=100):
    """HistoricalBlock list with one entry per rewards row."""
    return [
        HistoricalBlock(
            number=start + i,
            base_fee_per_gas=base_fee,
            gas_used_ratio=ratio,
            priority_fee_per_gas=tuple(row),
        )
        for i, row in enumerate(rewards)
    ]


@pytest.fixture
def scenario_a_history():
    """Three identical blocks: tips 1/2/3 gwei, base fee 20 gwei, half full."""
    return fee_history_response(
        base_fees=[20 * GWEI] * 4,
        gas_used_ratios=[0.5, 0.5, 0.5],
        rewards=[[1 * GWEI, 2 * GWEI, 3 * GWEI]] * 3,
    )


@pytest.fixture
def transport(scenario_a_history):
    """A healthy Ethereum mainnet node."""
    return MockRpcTransport({
        "eth_chainId": "0x1",
        "net_version": "1",
        "eth_gasPrice": hex(25 * GWEI),
        "eth_maxPriorityFeePerGas": hex(2 * GWEI),
        "eth_feeHistory": scenario_a_history,
        "eth_getBlockByNumber": block_response(20 * GWEI),
    })


@pytest.fixture
def dead_transport():
    """Every call fails."""
    return MockRpcTransport(fail_all=True)
