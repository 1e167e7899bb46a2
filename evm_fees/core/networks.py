# /evm_fees/core/networks.py
# Network archetypes, their tuning defaults, and the chain-id classifier.
#
# The numbers below are heuristics tuned against live fee markets. They are
# configuration, not correctness requirements: build a NetworkClassifier with
# your own tables to change them.
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from evm_fees.core.errors import InvalidArgument


GWEI = 10**9


class NetworkType(str, Enum):
    ETHEREUM_L1 = "ethereum-l1"
    LAYER2 = "layer2"
    SIDECHAIN = "sidechain"
    UNKNOWN = "unknown"


class NetworkProfile(BaseModel):
    """Static tuning parameters for one network archetype (or one specific chain)."""
    model_config = ConfigDict(frozen=True)

    network_type: NetworkType
    name: str
    percentiles: Tuple[int, int, int]
    historical_blocks: int = Field(gt=0)
    minimum_priority_fee_wei: int = Field(ge=0)
    default_slow_priority_fee_wei: int = Field(ge=0)
    default_average_priority_fee_wei: int = Field(ge=0)
    default_fast_priority_fee_wei: int = Field(ge=0)
    default_base_fee_wei: int = Field(ge=0)
    block_time_seconds: float = Field(gt=0)
    supports_eip1559: bool = True
    # False on rollups where a zero tip is normal rather than a sign of low demand
    has_priority_fee_market: bool = True
    # (congestion threshold, max-fee multiplier), highest threshold first
    max_fee_multipliers: Tuple[Tuple[float, Decimal], ...] = ((0.0, Decimal("1")),)

    @field_validator("percentiles")
    @classmethod
    def _percentiles_in_range(cls, v):
        if any(p < 1 or p > 99 for p in v):
            raise ValueError("percentiles must be between 1 and 99")
        return v

    def default_priority_fees(self) -> Tuple[int, int, int]:
        return (
            self.default_slow_priority_fee_wei,
            self.default_average_priority_fee_wei,
            self.default_fast_priority_fee_wei,
        )

    def default_priority_fee(self, tier_index: int) -> int:
        fees = self.default_priority_fees()
        return fees[min(max(tier_index, 0), len(fees) - 1)]

    def max_fee_multiplier(self, congestion: float) -> Decimal:
        for threshold, multiplier in self.max_fee_multipliers:
            if congestion > threshold:
                return multiplier
        return Decimal("1")


_L1_MULTIPLIERS = ((0.8, Decimal("1.5")), (0.5, Decimal("1.2")), (-1.0, Decimal("1.1")))
_DEFAULT_MULTIPLIERS = ((0.8, Decimal("1.2")), (0.5, Decimal("1.1")), (-1.0, Decimal("1")))

ETHEREUM_L1_PROFILE = NetworkProfile(
    network_type=NetworkType.ETHEREUM_L1,
    name="Ethereum L1",
    percentiles=(10, 50, 90),
    historical_blocks=20,
    minimum_priority_fee_wei=100_000,
    default_slow_priority_fee_wei=1 * GWEI,
    default_average_priority_fee_wei=1_500_000_000,
    default_fast_priority_fee_wei=2 * GWEI,
    default_base_fee_wei=20 * GWEI,
    block_time_seconds=12.0,
    max_fee_multipliers=_L1_MULTIPLIERS,
)

LAYER2_PROFILE = NetworkProfile(
    network_type=NetworkType.LAYER2,
    name="Layer 2 rollup",
    percentiles=(25, 50, 75),
    historical_blocks=20,
    minimum_priority_fee_wei=1_000_000,
    default_slow_priority_fee_wei=1_000_000,
    default_average_priority_fee_wei=1_500_000,
    default_fast_priority_fee_wei=2_000_000,
    default_base_fee_wei=10_000_000,
    block_time_seconds=2.0,
    has_priority_fee_market=False,
    max_fee_multipliers=_DEFAULT_MULTIPLIERS,
)

SIDECHAIN_PROFILE = NetworkProfile(
    network_type=NetworkType.SIDECHAIN,
    name="EVM sidechain",
    percentiles=(10, 50, 90),
    historical_blocks=30,
    minimum_priority_fee_wei=1 * GWEI,
    default_slow_priority_fee_wei=1 * GWEI,
    default_average_priority_fee_wei=2 * GWEI,
    default_fast_priority_fee_wei=3 * GWEI,
    default_base_fee_wei=5 * GWEI,
    block_time_seconds=3.0,
    max_fee_multipliers=_DEFAULT_MULTIPLIERS,
)

# Matches the historical defaults: MetaSwap-style 1/75/90 over 40 blocks
UNKNOWN_PROFILE = NetworkProfile(
    network_type=NetworkType.UNKNOWN,
    name="Unknown network",
    percentiles=(1, 75, 90),
    historical_blocks=40,
    minimum_priority_fee_wei=100_000,
    default_slow_priority_fee_wei=1 * GWEI,
    default_average_priority_fee_wei=1_500_000_000,
    default_fast_priority_fee_wei=2 * GWEI,
    default_base_fee_wei=20 * GWEI,
    block_time_seconds=12.0,
    max_fee_multipliers=_DEFAULT_MULTIPLIERS,
)

DEFAULT_PROFILES: Mapping[NetworkType, NetworkProfile] = MappingProxyType({
    NetworkType.ETHEREUM_L1: ETHEREUM_L1_PROFILE,
    NetworkType.LAYER2: LAYER2_PROFILE,
    NetworkType.SIDECHAIN: SIDECHAIN_PROFILE,
    NetworkType.UNKNOWN: UNKNOWN_PROFILE,
})

DEFAULT_MEMBERSHIPS: Mapping[NetworkType, frozenset] = MappingProxyType({
    NetworkType.ETHEREUM_L1: frozenset({
        1,          # Ethereum
        11155111,   # Sepolia
        17000,      # Holesky
        560048,     # Hoodi
    }),
    NetworkType.LAYER2: frozenset({
        10, 11155420,           # Optimism
        8453, 84532,            # Base
        42161, 42170, 421614,   # Arbitrum One / Nova / Sepolia
        59144, 59141,           # Linea
        324, 300,               # zkSync Era
        1101,                   # Polygon zkEVM
        81457,                  # Blast
        534352, 534351,         # Scroll
        5000,                   # Mantle
        1088,                   # Metis
        288,                    # Boba
    }),
    NetworkType.SIDECHAIN: frozenset({
        137, 80002,             # Polygon PoS / Amoy
        56, 97,                 # BNB Smart Chain
        43114, 43113,           # Avalanche C-Chain / Fuji
        250, 4002,              # Fantom
        100,                    # Gnosis
        42220, 44787,           # Celo
        1284, 1285,             # Moonbeam / Moonriver
        25,                     # Cronos
        199,                    # BitTorrent Chain
        1313161554,             # Aurora
        1666600000,             # Harmony
        321,                    # KCC
        2001,                   # Milkomeda C1
        9001,                   # Evmos
        42262,                  # Oasis Emerald
    }),
})

DEFAULT_OVERRIDES: Mapping[int, NetworkProfile] = MappingProxyType({
    1: ETHEREUM_L1_PROFILE.model_copy(update={"name": "Ethereum Mainnet"}),
    10: LAYER2_PROFILE.model_copy(update={"name": "Optimism"}),
    8453: LAYER2_PROFILE.model_copy(update={"name": "Base"}),
    42161: LAYER2_PROFILE.model_copy(update={
        "name": "Arbitrum One",
        "block_time_seconds": 0.25,
        "historical_blocks": 40,
    }),
    # Polygon PoS enforces a 30 gwei minimum tip
    137: SIDECHAIN_PROFILE.model_copy(update={
        "name": "Polygon PoS",
        "block_time_seconds": 2.0,
        "minimum_priority_fee_wei": 30 * GWEI,
        "default_slow_priority_fee_wei": 30 * GWEI,
        "default_average_priority_fee_wei": 35 * GWEI,
        "default_fast_priority_fee_wei": 40 * GWEI,
        "default_base_fee_wei": 50 * GWEI,
    }),
    56: SIDECHAIN_PROFILE.model_copy(update={
        "name": "BNB Smart Chain",
        "default_base_fee_wei": 0,
    }),
})


class NetworkClassifier:
    """
    Maps chain ids to network profiles.

    Lookup order: explicit per-chain override, then the L1 / layer-2 /
    sidechain membership sets, then the ``unknown`` profile. Never raises for
    an unknown or missing chain id. Tables are copied into read-only
    mappings at construction so one classifier can be shared by any number
    of concurrent estimations.
    """
    def __init__(
        self,
        profiles: Optional[Mapping[NetworkType, NetworkProfile]] = None,
        memberships: Optional[Mapping[NetworkType, frozenset]] = None,
        overrides: Optional[Mapping[int, NetworkProfile]] = None,
    ):
        merged = dict(DEFAULT_PROFILES)
        merged.update(profiles or {})
        self.profiles = MappingProxyType(merged)
        self.memberships = MappingProxyType({
            network_type: frozenset(ids)
            for network_type, ids in (DEFAULT_MEMBERSHIPS if memberships is None else memberships).items()
        })
        self.overrides = MappingProxyType(dict(DEFAULT_OVERRIDES if overrides is None else overrides))
        self._check_disjoint()

    def _check_disjoint(self):
        seen = {}
        for network_type, ids in self.memberships.items():
            if network_type == NetworkType.UNKNOWN:
                raise InvalidArgument("The unknown network type cannot have members")
            for chain_id in ids:
                if chain_id in seen:
                    raise InvalidArgument(
                        f"Chain {chain_id} is listed as both {seen[chain_id].value} and {network_type.value}"
                    )
                seen[chain_id] = network_type

    def network_type(self, chain_id: Optional[int]) -> NetworkType:
        if chain_id is None:
            return NetworkType.UNKNOWN
        if chain_id in self.overrides:
            return self.overrides[chain_id].network_type
        for network_type, ids in self.memberships.items():
            if chain_id in ids:
                return network_type
        return NetworkType.UNKNOWN

    def classify(self, chain_id: Optional[int]) -> NetworkProfile:
        if chain_id is not None and chain_id in self.overrides:
            return self.overrides[chain_id]
        return self.profiles[self.network_type(chain_id)]


_default_classifier: Optional[NetworkClassifier] = None


def default_classifier() -> NetworkClassifier:
    """Shared classifier built from the built-in tables."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = NetworkClassifier()
    return _default_classifier
