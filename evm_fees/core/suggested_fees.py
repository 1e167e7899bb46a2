# /evm_fees/core/suggested_fees.py
# Three-tier (slow / average / fast) EIP-1559 fee suggestions from eth_feeHistory.
#
# One call walks: classify network -> quick congestion sample -> pick
# blocks/percentiles -> fetch full history + pending block -> compute tiers.
# Any failure after argument validation lands in the fallback, so callers
# always get a usable SuggestedFees back.
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from evm_fees.core import hexcodec
from evm_fees.core.aggregator import aggregate_priority_fee
from evm_fees.core.analytics import (
    NEUTRAL_CONGESTION,
    analyze_base_fee_trend,
    analyze_priority_fee_trend,
    estimate_congestion,
    estimate_wait_times,
    historical_base_fee_range,
    historical_priority_fee_range,
)
from evm_fees.core.config import settings
from evm_fees.core.errors import FeeEstimationError, InvalidArgument, ParseError, TransportFailure
from evm_fees.core.fee_history import parse_base_fee, parse_fee_history
from evm_fees.core.logger import get_logger, FEE_ESTIMATES, FALLBACKS_TAKEN
from evm_fees.core.models import ErrorContext, FeeTierEstimate, FeeTrend, SuggestedFees
from evm_fees.core.networks import NetworkClassifier, NetworkProfile, NetworkType, default_classifier
from evm_fees.core.presets import get_preset
from evm_fees.core.recovery import as_recovery_hook, hook_value
from evm_fees.core.rpc import RpcTransport, call

log = get_logger(__name__)

TIER_NAMES = ("slow", "average", "fast")

# eth_feeHistory refuses larger windows on most clients
MAX_HISTORICAL_BLOCKS = 1024
MIN_ADAPTIVE_BLOCKS = 5

HIGH_CONGESTION = 0.8
ELEVATED_CONGESTION = 0.7
LOW_CONGESTION = 0.3


class FeeHistoryParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    historical_blocks: int
    percentiles: Tuple[int, int, int]

    def as_rpc_params(self) -> list:
        return [hexcodec.encode(self.historical_blocks), "pending", list(self.percentiles)]


def validate_historical_blocks(historical_blocks) -> int:
    if isinstance(historical_blocks, bool) or not isinstance(historical_blocks, int):
        raise InvalidArgument(f"historical_blocks must be an integer, got {historical_blocks!r}")
    if historical_blocks < 1 or historical_blocks > MAX_HISTORICAL_BLOCKS:
        raise InvalidArgument(f"historical_blocks must be between 1 and {MAX_HISTORICAL_BLOCKS}")
    return historical_blocks


def validate_percentiles(percentiles: Iterable[int]) -> Tuple[int, int, int]:
    if isinstance(percentiles, (str, bytes)):
        raise InvalidArgument(f"percentiles must be a sequence of 3 integers, got {percentiles!r}")
    try:
        percentiles = tuple(percentiles)
    except TypeError:
        raise InvalidArgument(f"percentiles must be a sequence of 3 integers, got {percentiles!r}")
    if len(percentiles) != 3:
        raise InvalidArgument("Exactly 3 percentiles must be provided (slow, average, fast)")
    for p in percentiles:
        if isinstance(p, bool) or not isinstance(p, int) or p < 1 or p > 99:
            raise InvalidArgument("Percentiles must be integers between 1 and 99")
    return percentiles


def _clamp_percentile(p: int) -> int:
    return min(max(p, 1), 99)


def select_parameters(
    profile: NetworkProfile,
    congestion: float,
    historical_blocks: Optional[int] = None,
    percentiles: Optional[Iterable[int]] = None,
    adaptive: bool = True,
) -> FeeHistoryParameters:
    """
    Chooses the eth_feeHistory window and percentiles for ``profile``.

    Explicit caller values always win. Otherwise, when ``adaptive``:
    Ethereum L1 widens its percentile spread as congestion rises, layer-2
    networks size the block window from block time and congestion, and
    sidechains push the upper tiers up once blocks are nearly full.
    Moderate congestion keeps the profile defaults.
    """
    blocks = profile.historical_blocks
    slow, average, fast = profile.percentiles

    if adaptive:
        if profile.network_type == NetworkType.ETHEREUM_L1:
            if congestion > HIGH_CONGESTION:
                slow, average, fast = slow - 5, average + 10, fast + 5
            elif congestion < LOW_CONGESTION:
                average, fast = average - 5, fast - 15
        elif profile.network_type == NetworkType.LAYER2:
            if profile.block_time_seconds < 1.0:
                blocks *= 2
            if congestion > ELEVATED_CONGESTION:
                blocks //= 2
                fast += 10
            elif congestion < LOW_CONGESTION:
                blocks = blocks * 3 // 2
            blocks = min(max(blocks, MIN_ADAPTIVE_BLOCKS), MAX_HISTORICAL_BLOCKS)
        elif profile.network_type == NetworkType.SIDECHAIN:
            if congestion > HIGH_CONGESTION:
                average, fast = average + 10, fast + 5

    chosen = tuple(_clamp_percentile(p) for p in (slow, average, fast))
    if historical_blocks is not None:
        blocks = historical_blocks
    if percentiles is not None:
        chosen = tuple(percentiles)

    return FeeHistoryParameters(
        historical_blocks=validate_historical_blocks(blocks),
        percentiles=validate_percentiles(chosen),
    )


def _parse_chain_id(value) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value[:2] in ("0x", "0X"):
            return hexcodec.decode(value)
        if value.isdigit():
            return int(value)
    raise ParseError(f"Unrecognised chain id {value!r}")


def validate_chain_id(chain_id) -> int:
    """Normalises a caller-supplied chain id; decimal and ``0x`` strings are accepted."""
    try:
        chain_id = _parse_chain_id(chain_id)
    except ParseError:
        raise InvalidArgument(f"force_chain_id must be an integer chain id, got {chain_id!r}")
    if chain_id < 0:
        raise InvalidArgument(f"force_chain_id must not be negative, got {chain_id}")
    return chain_id


def _tier(base_fee: int, priority_fee: int, multiplier_ratio: Tuple[int, int], wait: Tuple[int, int]) -> FeeTierEstimate:
    numerator, denominator = multiplier_ratio
    return FeeTierEstimate(
        max_priority_fee_per_gas=priority_fee,
        max_fee_per_gas=(base_fee + priority_fee) * numerator // denominator,
        min_wait_ms=wait[0],
        max_wait_ms=wait[1],
    )


def fallback_suggested_fees(profile: NetworkProfile, average_priority_fee: Optional[int] = None) -> SuggestedFees:
    """
    Static suggestion used when estimation fails.

    Without ``average_priority_fee`` the profile's default tiers are used
    verbatim; with it, slow is half and fast is double that value.
    """
    if average_priority_fee is None:
        priority_fees = profile.default_priority_fees()
    else:
        priority_fees = (average_priority_fee // 2, average_priority_fee, average_priority_fee * 2)

    base_fee = profile.default_base_fee_wei
    waits = estimate_wait_times(NEUTRAL_CONGESTION, profile.block_time_seconds)
    tiers = {
        name: _tier(base_fee, fee, (1, 1), waits[name])
        for name, fee in zip(TIER_NAMES, priority_fees)
    }
    return SuggestedFees(
        **tiers,
        base_fee_per_gas=base_fee,
        network_congestion=NEUTRAL_CONGESTION,
        priority_fee_trend=FeeTrend.STABLE,
        base_fee_trend=FeeTrend.STABLE,
        network_type=profile.network_type.value,
    )


class SuggestedFeeEngine:
    """
    Produces SuggestedFees for the chain behind ``transport``.

    The classifier and preset are injected so tests and callers can swap the
    network tables or pin an older estimation behaviour.
    """
    def __init__(self, transport: RpcTransport, classifier: Optional[NetworkClassifier] = None, preset=None):
        self.transport = transport
        self.classifier = classifier or default_classifier()
        self.preset = get_preset(preset if preset is not None else settings.ESTIMATION_PRESET)

    async def estimate(
        self,
        historical_blocks: Optional[int] = None,
        percentiles: Optional[Iterable[int]] = None,
        force_chain_id: Optional[int] = None,
        on_error=None,
    ) -> SuggestedFees:
        # Programmer errors surface before any network traffic
        if historical_blocks is not None:
            validate_historical_blocks(historical_blocks)
        if percentiles is not None:
            percentiles = validate_percentiles(percentiles)
        if force_chain_id is not None:
            force_chain_id = validate_chain_id(force_chain_id)
        hook = as_recovery_hook(on_error)

        chain_id = force_chain_id
        profile = self.classifier.classify(None)
        try:
            if chain_id is None:
                chain_id = await self._resolve_chain_id()
            profile = self.classifier.classify(chain_id)

            congestion = NEUTRAL_CONGESTION
            if self.preset.adaptive and (historical_blocks is None or percentiles is None):
                congestion = await self._quick_congestion_sample()

            params = select_parameters(
                profile, congestion, historical_blocks, percentiles, adaptive=self.preset.adaptive,
            )
            log.debug("FEE_HISTORY_PARAMETERS_SELECTED", chain_id=chain_id, network=profile.network_type.value,
                      historical_blocks=params.historical_blocks, percentiles=list(params.percentiles),
                      quick_congestion=congestion)

            history = await call(self.transport, "eth_feeHistory", params.as_rpc_params())
            pending_block = await call(self.transport, "eth_getBlockByNumber", ["pending", False])
            fees = self._compute_tiers(profile, params, history, pending_block)
        except InvalidArgument:
            raise
        except Exception as e:
            return self._fallback(profile, chain_id, e, hook)

        FEE_ESTIMATES.labels("suggested", "success").inc()
        log.info(
            "SUGGESTED_FEES_COMPUTED",
            chain_id=chain_id,
            network=profile.network_type.value,
            preset=self.preset.name,
            base_fee=fees.base_fee_per_gas,
            congestion=fees.network_congestion,
            average_priority_fee=fees.average.max_priority_fee_per_gas,
        )
        return fees

    async def _resolve_chain_id(self) -> Optional[int]:
        for method in ("eth_chainId", "net_version"):
            try:
                result = await call(self.transport, method)
            except TransportFailure:
                continue
            try:
                return _parse_chain_id(result)
            except ParseError as e:
                log.warning("CHAIN_ID_UNPARSEABLE", method=method, result=result, error=str(e))
        log.warning("CHAIN_ID_UNRESOLVED_USING_UNKNOWN_PROFILE")
        return None

    async def _quick_congestion_sample(self) -> float:
        sample_blocks = settings.QUICK_SAMPLE_BLOCKS
        try:
            response = await call(
                self.transport,
                "eth_feeHistory",
                [hexcodec.encode(sample_blocks), "pending", [settings.QUICK_SAMPLE_PERCENTILE]],
            )
            return estimate_congestion(parse_fee_history(response, sample_blocks))
        except (FeeEstimationError, ValueError) as e:
            log.warning("QUICK_CONGESTION_SAMPLE_FAILED", error=str(e), assumed=NEUTRAL_CONGESTION)
            return NEUTRAL_CONGESTION

    def _compute_tiers(self, profile: NetworkProfile, params: FeeHistoryParameters, history, pending_block) -> SuggestedFees:
        blocks = parse_fee_history(history, params.historical_blocks)
        base_fee = parse_base_fee(pending_block)
        congestion = estimate_congestion(blocks)
        congestion_aware = self.preset.congestion_aware

        priority_fees = [
            aggregate_priority_fee(
                blocks, index, profile, congestion,
                recency_weighted=self.preset.recency_weighted,
                dampen_outliers=congestion_aware,
            )
            for index in range(len(TIER_NAMES))
        ]
        # Tiers never invert and slow never drops under the network floor
        priority_fees[0] = max(priority_fees[0], profile.minimum_priority_fee_wei)
        for i in range(1, len(priority_fees)):
            priority_fees[i] = max(priority_fees[i], priority_fees[i - 1])

        if congestion_aware:
            multiplier_ratio = profile.max_fee_multiplier(congestion).as_integer_ratio()
        else:
            multiplier_ratio = (1, 1)
        waits = estimate_wait_times(congestion, profile.block_time_seconds)
        tiers = {
            name: _tier(base_fee, fee, multiplier_ratio, waits[name])
            for name, fee in zip(TIER_NAMES, priority_fees)
        }
        return SuggestedFees(
            **tiers,
            base_fee_per_gas=base_fee,
            network_congestion=congestion,
            priority_fee_trend=analyze_priority_fee_trend(blocks),
            base_fee_trend=analyze_base_fee_trend(blocks),
            historical_priority_fee_range=historical_priority_fee_range(blocks),
            historical_base_fee_range=historical_base_fee_range(blocks),
            network_type=profile.network_type.value,
        )

    def _fallback(self, profile: NetworkProfile, chain_id: Optional[int], error: Exception, hook) -> SuggestedFees:
        FEE_ESTIMATES.labels("suggested", "fallback").inc()
        FALLBACKS_TAKEN.labels("get_suggested_fees").inc()
        log.error(
            "SUGGESTED_FEES_FALLBACK",
            chain_id=chain_id,
            network=profile.network_type.value,
            error=str(error),
            error_type=type(error).__name__,
        )

        if hook is not None:
            default_average = profile.default_average_priority_fee_wei
            context = ErrorContext(
                operation="get_suggested_fees",
                error=error,
                fallback_value=default_average,
                gas_price=profile.default_base_fee_wei + default_average,
                base_fee_per_gas=profile.default_base_fee_wei,
                chain_id=chain_id,
            )
            value = hook_value(hook.recover(context), "get_suggested_fees")
            if value is not None:
                log.info("SUGGESTED_FEES_RECOVERED_BY_HOOK", chain_id=chain_id, average_priority_fee=value)
                return fallback_suggested_fees(profile, value)

        return fallback_suggested_fees(profile)


async def get_suggested_fees(
    client: RpcTransport,
    historical_blocks: Optional[int] = None,
    percentiles: Optional[Iterable[int]] = None,
    force_chain_id: Optional[int] = None,
    on_error=None,
    classifier: Optional[NetworkClassifier] = None,
    preset=None,
) -> SuggestedFees:
    """
    Suggests slow, average and fast EIP-1559 fees for the chain behind ``client``.

    Args:
        client: Any RpcTransport, e.g. ``Web3RpcTransport``.
        historical_blocks: Blocks of fee history to analyse (1-1024).
            Chosen from the network profile when omitted.
        percentiles: Exactly three reward percentiles (1-99) for the
            slow, average and fast tiers.
        force_chain_id: Skip chain-id detection and use this id.
        on_error: RecoveryHook or callable receiving an ErrorContext; its
            return value becomes the average priority fee of the fallback.
        classifier: Alternative NetworkClassifier tables.
        preset: Preset name or EstimationPreset ("adaptive", "congestion-aware", "static").

    Returns:
        SuggestedFees. Network failures never raise; bad arguments raise
        InvalidArgument.
    """
    engine = SuggestedFeeEngine(client, classifier=classifier, preset=preset)
    return await engine.estimate(
        historical_blocks=historical_blocks,
        percentiles=percentiles,
        force_chain_id=force_chain_id,
        on_error=on_error,
    )
