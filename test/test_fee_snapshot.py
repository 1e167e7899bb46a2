# /test/test_fee_snapshot.py
import pytest
from conftest import GWEI

from evm_fees import get_fee_snapshot
from evm_fees.adapters.mock import block_response
from evm_fees.core.errors import InvalidArgument, TransportFailure


@pytest.mark.asyncio
async def test_eip1559_snapshot(transport):
    """
    GIVEN a healthy EIP-1559 node
    WHEN a snapshot is taken
    THEN maxFeePerGas is twice the base fee plus the node's tip.
    """
    snapshot = await get_fee_snapshot(transport)

    assert snapshot.gas_price == 25 * GWEI
    assert snapshot.max_priority_fee_per_gas == 2 * GWEI
    assert snapshot.max_fee_per_gas == 42 * GWEI
    assert snapshot.supports_eip1559
    assert snapshot.as_transaction_params() == {
        "maxFeePerGas": 42 * GWEI,
        "maxPriorityFeePerGas": 2 * GWEI,
    }
    assert transport.requests_for("eth_getBlockByNumber") == [["latest", False]]


@pytest.mark.asyncio
async def test_legacy_chain_only_reports_gas_price(transport):
    transport.set_response("eth_getBlockByNumber", block_response(None))

    snapshot = await get_fee_snapshot(transport)

    assert snapshot.gas_price == 25 * GWEI
    assert snapshot.max_fee_per_gas is None
    assert snapshot.max_priority_fee_per_gas is None
    assert snapshot.as_transaction_params() == {"gasPrice": 25 * GWEI}
    # No tip lookup without a base fee
    assert transport.requests_for("eth_maxPriorityFeePerGas") == []


@pytest.mark.asyncio
async def test_missing_priority_fee_method_uses_one_gwei(transport):
    transport.set_failure("eth_maxPriorityFeePerGas")

    snapshot = await get_fee_snapshot(transport)

    assert snapshot.max_priority_fee_per_gas == 1 * GWEI
    assert snapshot.max_fee_per_gas == 41 * GWEI


@pytest.mark.asyncio
async def test_recovery_hook_overrides_priority_fee(transport):
    transport.set_failure("eth_maxPriorityFeePerGas")
    seen = []

    def on_error(context):
        seen.append(context)
        return 3 * GWEI

    snapshot = await get_fee_snapshot(transport, on_error=on_error)

    assert snapshot.max_priority_fee_per_gas == 3 * GWEI
    assert snapshot.max_fee_per_gas == 43 * GWEI
    [context] = seen
    assert context.operation == "eth_maxPriorityFeePerGas"
    assert context.fallback_value == 1 * GWEI
    assert context.gas_price == 25 * GWEI
    assert context.base_fee_per_gas == 20 * GWEI
    assert isinstance(context.error, TransportFailure)


@pytest.mark.asyncio
async def test_gas_price_failure_defaults_to_profile_estimate(transport):
    transport.set_failure("eth_gasPrice")

    snapshot = await get_fee_snapshot(transport)

    assert snapshot.gas_price == 21_500_000_000
    assert snapshot.max_fee_per_gas == 42 * GWEI


@pytest.mark.asyncio
async def test_everything_failing_still_returns_gas_price(dead_transport):
    snapshot = await get_fee_snapshot(dead_transport)

    assert snapshot.gas_price == 21_500_000_000
    assert snapshot.max_fee_per_gas is None
    assert snapshot.max_priority_fee_per_gas is None


@pytest.mark.asyncio
async def test_hook_can_supply_the_base_fee(transport):
    transport.set_failure("eth_getBlockByNumber")

    def on_error(context):
        if context.operation == "eth_getBlockByNumber":
            assert context.fallback_value is None
            return 10 * GWEI
        return None

    snapshot = await get_fee_snapshot(transport, on_error=on_error)

    assert snapshot.max_fee_per_gas == 22 * GWEI
    assert snapshot.max_priority_fee_per_gas == 2 * GWEI


@pytest.mark.asyncio
async def test_malformed_gas_price_goes_through_the_hook(transport):
    transport.set_response("eth_gasPrice", "0xzz")
    operations = []

    snapshot = await get_fee_snapshot(transport, on_error=lambda ctx: operations.append(ctx.operation))

    assert operations == ["eth_gasPrice"]
    assert snapshot.gas_price == 21_500_000_000


@pytest.mark.asyncio
async def test_negative_hook_value_is_rejected(transport):
    transport.set_failure("eth_gasPrice")

    with pytest.raises(InvalidArgument):
        await get_fee_snapshot(transport, on_error=lambda ctx: -1)


@pytest.mark.asyncio
async def test_non_numeric_hook_value_is_rejected(transport):
    transport.set_failure("eth_maxPriorityFeePerGas")

    with pytest.raises(InvalidArgument, match="eth_maxPriorityFeePerGas"):
        await get_fee_snapshot(transport, on_error=lambda ctx: "n/a")
