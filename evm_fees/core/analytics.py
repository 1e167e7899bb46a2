# /evm_fees/core/analytics.py
# Congestion measurement and the descriptive metrics attached to SuggestedFees.
import math
from typing import Dict, Optional, Sequence, Tuple

from evm_fees.core.models import FeeTrend, HistoricalBlock

NEUTRAL_CONGESTION = 0.5

# A change smaller than 1/10 of the earlier mean is reported as stable
_TREND_THRESHOLD_DIVISOR = 10


def estimate_congestion(blocks: Sequence[HistoricalBlock]) -> float:
    """
    Mean gas-used ratio across ``blocks``, clamped to [0, 1].

    An empty sample counts as moderate congestion.
    """
    if not blocks:
        return NEUTRAL_CONGESTION
    mean = sum(block.gas_used_ratio for block in blocks) / len(blocks)
    return min(max(mean, 0.0), 1.0)


def _mean_or_none(values: Sequence[int]) -> Optional[int]:
    return sum(values) // len(values) if values else None


def _trend(first: Optional[int], last: Optional[int]) -> FeeTrend:
    if first is None or last is None:
        return FeeTrend.STABLE
    if abs(last - first) < first // _TREND_THRESHOLD_DIVISOR:
        return FeeTrend.STABLE
    if last == first:
        return FeeTrend.STABLE
    return FeeTrend.UP if last > first else FeeTrend.DOWN


def _thirds(blocks: Sequence[HistoricalBlock]):
    n = len(blocks)
    return blocks[: n // 3], blocks[n * 2 // 3:]


def analyze_priority_fee_trend(blocks: Sequence[HistoricalBlock], percentile_index: int = 1) -> FeeTrend:
    """Compares the first and last third of the sample at ``percentile_index``."""
    if len(blocks) < 3:
        return FeeTrend.STABLE
    first, last = _thirds(blocks)
    first_avg = _mean_or_none([b.priority_fee_per_gas[percentile_index] for b in first
                               if len(b.priority_fee_per_gas) > percentile_index])
    last_avg = _mean_or_none([b.priority_fee_per_gas[percentile_index] for b in last
                              if len(b.priority_fee_per_gas) > percentile_index])
    return _trend(first_avg, last_avg)


def analyze_base_fee_trend(blocks: Sequence[HistoricalBlock]) -> FeeTrend:
    if len(blocks) < 3:
        return FeeTrend.STABLE
    first, last = _thirds(blocks)
    return _trend(
        _mean_or_none([b.base_fee_per_gas for b in first]),
        _mean_or_none([b.base_fee_per_gas for b in last]),
    )


def historical_priority_fee_range(blocks: Sequence[HistoricalBlock]) -> Tuple[int, int]:
    fees = [fee for block in blocks for fee in block.priority_fee_per_gas]
    if not fees:
        return (0, 0)
    return (min(fees), max(fees))


def historical_base_fee_range(blocks: Sequence[HistoricalBlock]) -> Tuple[int, int]:
    if not blocks:
        return (0, 0)
    base_fees = [block.base_fee_per_gas for block in blocks]
    return (min(base_fees), max(base_fees))


def estimate_wait_times(congestion: float, block_time_seconds: float) -> Dict[str, Tuple[int, int]]:
    """
    Rough (min_ms, max_ms) inclusion wait per tier.

    Fast waits 1-2 blocks, average 1-3 and slow 2-4, each upper bound
    stretched by ``1 + congestion``.
    """
    block_ms = int(block_time_seconds * 1000)
    stretch = 1.0 + min(max(congestion, 0.0), 1.0)
    return {
        "fast": (block_ms, math.ceil(2 * stretch) * block_ms),
        "average": (block_ms, math.ceil(3 * stretch) * block_ms),
        "slow": (math.ceil(2 * stretch) * block_ms, math.ceil(4 * stretch) * block_ms),
    }
