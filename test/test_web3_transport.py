# /test/test_web3_transport.py
import pytest
from conftest import GWEI

from evm_fees import Web3RpcTransport, get_fee_snapshot, get_suggested_fees
from evm_fees.adapters.mock import block_response, fee_history_response
from evm_fees.core.config import settings
from evm_fees.core.errors import InvalidArgument, TransportFailure


class FakeProvider:
    """Stands in for AsyncHTTPProvider; replies are keyed by method."""
    def __init__(self, replies):
        self.replies = replies
        self.requests = []

    async def make_request(self, method, params):
        self.requests.append((method, params))
        reply = self.replies[method]
        if isinstance(reply, list):
            reply = reply.pop(0) if len(reply) > 1 else reply[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeWeb3:
    def __init__(self, replies):
        self.provider = FakeProvider(replies)


def ok(result):
    return {"jsonrpc": "2.0", "id": 1, "result": result}


@pytest.mark.asyncio
async def test_result_is_returned_raw():
    w3 = FakeWeb3({"eth_gasPrice": ok("0x5d21dba00")})
    transport = Web3RpcTransport.from_web3(w3)

    assert await transport.request("eth_gasPrice") == "0x5d21dba00"
    assert w3.provider.requests == [("eth_gasPrice", [])]


@pytest.mark.asyncio
async def test_error_payload_becomes_transport_failure():
    w3 = FakeWeb3({"eth_maxPriorityFeePerGas": {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}}})
    transport = Web3RpcTransport.from_web3(w3)

    with pytest.raises(TransportFailure, match="Method not found") as excinfo:
        await transport.request("eth_maxPriorityFeePerGas")
    assert excinfo.value.method == "eth_maxPriorityFeePerGas"


@pytest.mark.asyncio
async def test_connection_error_is_not_retried_by_default():
    w3 = FakeWeb3({"eth_chainId": ConnectionError("connection refused")})
    transport = Web3RpcTransport.from_web3(w3)

    with pytest.raises(TransportFailure, match="connection refused"):
        await transport.request("eth_chainId")
    assert len(w3.provider.requests) == 1


@pytest.mark.asyncio
async def test_opt_in_retry_recovers_from_a_blip():
    w3 = FakeWeb3({"eth_chainId": [ConnectionError("reset"), ok("0x1")]})
    transport = Web3RpcTransport.from_web3(w3, max_attempts=2)

    assert await transport.request("eth_chainId") == "0x1"
    assert len(w3.provider.requests) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [None, "0x1", {"jsonrpc": "2.0", "id": 1}])
async def test_unusable_replies_are_transport_failures(reply):
    transport = Web3RpcTransport.from_web3(FakeWeb3({"eth_gasPrice": reply}))

    with pytest.raises(TransportFailure):
        await transport.request("eth_gasPrice")


def test_url_is_required(monkeypatch):
    monkeypatch.setattr(settings, "RPC_URL", None)
    with pytest.raises(InvalidArgument):
        Web3RpcTransport()


def test_url_builds_an_http_provider():
    transport = Web3RpcTransport("http://127.0.0.1:8545", timeout=2.5)
    assert transport.w3.provider.endpoint_uri == "http://127.0.0.1:8545"


@pytest.mark.asyncio
async def test_engines_run_over_web3_transport():
    """
    GIVEN a web3-backed transport to an Ethereum mainnet node
    WHEN both engines run
    THEN their results match what the mock transport produces.
    """
    history = fee_history_response(
        base_fees=[20 * GWEI] * 4,
        gas_used_ratios=[0.5] * 3,
        rewards=[[1 * GWEI, 2 * GWEI, 3 * GWEI]] * 3,
    )
    w3 = FakeWeb3({
        "eth_chainId": ok("0x1"),
        "eth_gasPrice": ok(hex(25 * GWEI)),
        "eth_maxPriorityFeePerGas": ok(hex(2 * GWEI)),
        "eth_feeHistory": ok(history),
        "eth_getBlockByNumber": ok(block_response(20 * GWEI)),
    })
    transport = Web3RpcTransport.from_web3(w3)

    snapshot = await get_fee_snapshot(transport)
    fees = await get_suggested_fees(transport)

    assert snapshot.max_fee_per_gas == 42 * GWEI
    assert fees.average.max_priority_fee_per_gas == 2 * GWEI
    assert fees.base_fee_per_gas == 20 * GWEI
