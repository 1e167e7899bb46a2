# /evm_fees/core/presets.py
# Behaviour presets for SuggestedFeeEngine. Earlier estimator generations
# survive as presets instead of separate code paths.
from typing import Dict

from pydantic import BaseModel, ConfigDict

from evm_fees.core.errors import InvalidArgument


class EstimationPreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    # Take a quick congestion sample and tune blocks/percentiles from it
    adaptive: bool = True
    # Recency-weighted mean instead of a plain mean per tier
    recency_weighted: bool = True
    # Median blending on quiet rollups and congestion-scaled maxFeePerGas
    congestion_aware: bool = True


ADAPTIVE = EstimationPreset(name="adaptive")
CONGESTION_AWARE = EstimationPreset(name="congestion-aware", adaptive=False)
STATIC = EstimationPreset(name="static", adaptive=False, recency_weighted=False, congestion_aware=False)

PRESETS: Dict[str, EstimationPreset] = {p.name: p for p in (ADAPTIVE, CONGESTION_AWARE, STATIC)}


def get_preset(preset) -> EstimationPreset:
    """Resolves a preset name or instance; ``None`` means the adaptive default."""
    if preset is None:
        return ADAPTIVE
    if isinstance(preset, EstimationPreset):
        return preset
    try:
        return PRESETS[preset]
    except KeyError:
        raise InvalidArgument(f"Unknown estimation preset {preset!r}; expected one of {sorted(PRESETS)}")
