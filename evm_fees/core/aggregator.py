# /evm_fees/core/aggregator.py
from typing import List, Sequence

from evm_fees.core.models import HistoricalBlock
from evm_fees.core.networks import NetworkProfile, NetworkType

# Below this congestion, layer-2 estimates are blended with the median
LOW_CONGESTION_THRESHOLD = 0.3


def _tier_values(blocks: Sequence[HistoricalBlock], percentile_index: int, profile: NetworkProfile) -> List[int]:
    values = []
    for block in blocks:
        if len(block.priority_fee_per_gas) <= percentile_index:
            continue
        value = block.priority_fee_per_gas[percentile_index]
        # On fee-less rollups a zero tip says nothing about demand
        if value == 0 and not profile.has_priority_fee_market:
            value = profile.minimum_priority_fee_wei
        values.append(value)
    return values


def recency_weighted_mean(values: Sequence[int]) -> int:
    """
    Mean with weight ``1 + 2*i/n`` for the value at position ``i`` of ``n``.

    The oldest value weighs 1.0 and the newest close to 3.0. Computed with
    integer weights ``n + 2*i`` so large wei amounts keep full precision.
    """
    n = len(values)
    weights = [n + 2 * i for i in range(n)]
    return sum(v * w for v, w in zip(values, weights)) // sum(weights)


def median(values: Sequence[int]) -> int:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) // 2


def aggregate_priority_fee(
    blocks: Sequence[HistoricalBlock],
    percentile_index: int,
    profile: NetworkProfile,
    congestion: float,
    recency_weighted: bool = True,
    dampen_outliers: bool = True,
) -> int:
    """
    Representative priority fee for one tier across the sampled blocks.

    Falls back to the profile's default for the tier when no block carries a
    value at ``percentile_index``.
    """
    values = _tier_values(blocks, percentile_index, profile)
    if not values:
        return profile.default_priority_fee(percentile_index)

    if recency_weighted:
        fee = recency_weighted_mean(values)
    else:
        fee = sum(values) // len(values)

    if (dampen_outliers
            and profile.network_type == NetworkType.LAYER2
            and congestion < LOW_CONGESTION_THRESHOLD):
        fee = (fee + median(values)) // 2

    return max(fee, profile.minimum_priority_fee_wei)
