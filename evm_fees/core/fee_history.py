# /evm_fees/core/fee_history.py
from collections.abc import Mapping, Sequence
from typing import Any, List

from evm_fees.core import hexcodec
from evm_fees.core.errors import MalformedResponse, UnsupportedNetwork
from evm_fees.core.models import HistoricalBlock


def _require_list(history: Mapping, key: str) -> Sequence:
    value = history.get(key)
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise MalformedResponse(f"eth_feeHistory field '{key}' missing or not an array")
    return value


def _ratio(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponse(f"gasUsedRatio entry {value!r} is not a number")
    # Some rollups report ratios slightly above 1
    return min(max(float(value), 0.0), 1.0)


def parse_fee_history(response: Any, requested_blocks: int) -> List[HistoricalBlock]:
    """
    Turns a raw ``eth_feeHistory`` result into per-block records, oldest first.

    Only the prefix covered by every array is processed, so a node that
    returns fewer blocks (or shorter reward arrays) than requested degrades
    to a smaller sample instead of failing.
    """
    if not isinstance(response, Mapping):
        raise MalformedResponse("eth_feeHistory result is not an object")
    if "oldestBlock" not in response:
        raise MalformedResponse("eth_feeHistory field 'oldestBlock' missing")

    oldest_block = hexcodec.decode(response["oldestBlock"])
    base_fees = _require_list(response, "baseFeePerGas")
    ratios = _require_list(response, "gasUsedRatio")
    rewards = _require_list(response, "reward")

    count = max(0, min(requested_blocks, len(base_fees), len(ratios), len(rewards)))

    blocks = []
    for i in range(count):
        block_rewards = rewards[i]
        if not isinstance(block_rewards, Sequence) or isinstance(block_rewards, (str, bytes)):
            raise MalformedResponse(f"reward entry {i} is not an array")
        blocks.append(HistoricalBlock(
            number=oldest_block + i,
            base_fee_per_gas=hexcodec.decode(base_fees[i]),
            gas_used_ratio=_ratio(ratios[i]),
            priority_fee_per_gas=tuple(hexcodec.decode(r) for r in block_rewards),
        ))
    return blocks


def parse_base_fee(block: Any) -> int:
    """Reads ``baseFeePerGas`` from an ``eth_getBlockByNumber`` result."""
    if not isinstance(block, Mapping):
        raise MalformedResponse("Block result is not an object")
    base_fee = block.get("baseFeePerGas")
    if base_fee is None:
        raise UnsupportedNetwork("Block does not contain baseFeePerGas - EIP-1559 not supported")
    if isinstance(base_fee, str) and base_fee in ("", "0x", "0X"):
        raise MalformedResponse("Invalid baseFeePerGas format")
    return hexcodec.decode(base_fee)
