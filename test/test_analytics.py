from conftest import GWEI, make_blocks

from evm_fees.core.analytics import (
    analyze_base_fee_trend,
    analyze_priority_fee_trend,
    estimate_congestion,
    estimate_wait_times,
    historical_base_fee_range,
    historical_priority_fee_range,
)
from evm_fees.core.models import FeeTrend, HistoricalBlock


def test_empty_sample_is_neutral():
    assert estimate_congestion([]) == 0.5


def test_congestion_is_mean_gas_used_ratio():
    blocks = [
        HistoricalBlock(number=i, base_fee_per_gas=1, gas_used_ratio=r)
        for i, r in enumerate([0.2, 0.4, 0.9])
    ]
    assert abs(estimate_congestion(blocks) - 0.5) < 1e-9


def test_congestion_stays_within_bounds():
    full = make_blocks([[1]] * 4, ratio=1.0)
    empty = make_blocks([[1]] * 4, ratio=0.0)
    assert estimate_congestion(full) == 1.0
    assert estimate_congestion(empty) == 0.0


def test_priority_fee_trend():
    rising = make_blocks([[0, 1 * GWEI]] * 3 + [[0, 2 * GWEI]] * 3)
    falling = make_blocks([[0, 2 * GWEI]] * 3 + [[0, 1 * GWEI]] * 3)
    flat = make_blocks([[0, 100 * GWEI]] * 3 + [[0, 105 * GWEI]] * 3)

    assert analyze_priority_fee_trend(rising) == FeeTrend.UP
    assert analyze_priority_fee_trend(falling) == FeeTrend.DOWN
    assert analyze_priority_fee_trend(flat) == FeeTrend.STABLE


def test_trend_needs_three_blocks():
    blocks = make_blocks([[0, 1], [0, 100]])
    assert analyze_priority_fee_trend(blocks) == FeeTrend.STABLE
    assert analyze_base_fee_trend(blocks) == FeeTrend.STABLE


def test_base_fee_trend():
    blocks = make_blocks([[1]] * 3, base_fee=10 * GWEI) + make_blocks([[1]] * 3, base_fee=20 * GWEI, start=103)
    assert analyze_base_fee_trend(blocks) == FeeTrend.UP


def test_historical_ranges():
    blocks = make_blocks([[5, 7], [3, 9]], base_fee=4)
    assert historical_priority_fee_range(blocks) == (3, 9)
    assert historical_base_fee_range(blocks) == (4, 4)
    assert historical_priority_fee_range([]) == (0, 0)
    assert historical_base_fee_range([]) == (0, 0)


def test_wait_times_scale_with_congestion_and_block_time():
    calm = estimate_wait_times(0.0, 12.0)
    assert calm == {
        "fast": (12_000, 24_000),
        "average": (12_000, 36_000),
        "slow": (24_000, 48_000),
    }

    busy = estimate_wait_times(1.0, 12.0)
    assert busy["fast"] == (12_000, 48_000)
    assert busy["slow"] == (48_000, 96_000)

    rollup = estimate_wait_times(0.0, 2.0)
    assert rollup["fast"] == (2_000, 4_000)
