# /evm_fees/adapters/mock.py
# Scripted RpcTransport for tests and offline simulation.

from typing import Any, Dict, List, Optional, Tuple

from evm_fees.core.errors import TransportFailure
from evm_fees.core.logger import get_logger

log = get_logger(__name__)


class MockRpcTransport:
    """
    Returns canned results per JSON-RPC method and records every call.

    A response may be a plain value, a list of values consumed one per call
    (the last one repeats), or a callable ``fn(params) -> result``.
    """
    def __init__(self, responses: Optional[Dict[str, Any]] = None, fail_all: bool = False):
        self.responses: Dict[str, Any] = dict(responses or {})
        self.failures: Dict[str, Exception] = {}
        self.fail_all = fail_all
        self.calls: List[Tuple[str, list]] = []
        self._sequence_pos: Dict[str, int] = {}
        log.info("MOCK_RPC_TRANSPORT_INITIALIZED", methods=sorted(self.responses))

    def set_response(self, method: str, result: Any):
        self.responses[method] = result
        self.failures.pop(method, None)

    def set_sequence(self, method: str, results: List[Any]):
        """Successive calls to ``method`` return successive entries; exception entries are raised."""
        self.responses[method] = _Sequence(results)
        self._sequence_pos[method] = 0

    def set_failure(self, method: str, error: Optional[Exception] = None):
        self.failures[method] = error or TransportFailure(method, "Forced failure for testing")

    def requests_for(self, method: str) -> List[list]:
        return [params for called, params in self.calls if called == method]

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        params = list(params or [])
        self.calls.append((method, params))

        if self.fail_all:
            raise TransportFailure(method, "Forced failure for testing")
        if method in self.failures:
            raise self.failures[method]
        if method not in self.responses:
            raise TransportFailure(method, "Method not found")

        result = self.responses[method]
        if isinstance(result, _Sequence):
            pos = self._sequence_pos[method]
            self._sequence_pos[method] = pos + 1
            item = result.items[min(pos, len(result.items) - 1)]
            if isinstance(item, Exception):
                raise item
            return item
        if callable(result):
            return result(params)
        return result


class _Sequence:
    def __init__(self, items: List[Any]):
        if not items:
            raise ValueError("A response sequence needs at least one item")
        self.items = list(items)


def fee_history_response(
    base_fees: List[int],
    gas_used_ratios: List[float],
    rewards: List[List[int]],
    oldest_block: int = 0x100,
) -> Dict[str, Any]:
    """Builds an eth_feeHistory result with hex-encoded quantities."""
    return {
        "oldestBlock": hex(oldest_block),
        "baseFeePerGas": [hex(fee) for fee in base_fees],
        "gasUsedRatio": list(gas_used_ratios),
        "reward": [[hex(r) for r in block] for block in rewards],
    }


def block_response(base_fee: Optional[int], number: int = 0x101) -> Dict[str, Any]:
    block: Dict[str, Any] = {"number": hex(number), "gasLimit": hex(30_000_000)}
    if base_fee is not None:
        block["baseFeePerGas"] = hex(base_fee)
    return block

