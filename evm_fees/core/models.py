# /evm_fees/core/models.py
# Immutable value objects produced by the fee engines. Field names are
# snake_case in Python and dump to the JSON-RPC camelCase names by alias.
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class FeeTrend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class _FeeModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class FeeSnapshot(_FeeModel):
    """
    Current fee data, in the shape of ethers.js ``getFeeData()``.

    ``gas_price`` is always filled by the snapshot engine; the EIP-1559 pair
    is ``None`` on chains whose latest block carries no base fee.
    """
    gas_price: Optional[int] = Field(default=None, ge=0)
    max_fee_per_gas: Optional[int] = Field(default=None, ge=0)
    max_priority_fee_per_gas: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _max_fee_covers_priority(self) -> "FeeSnapshot":
        if self.max_fee_per_gas is not None and self.max_priority_fee_per_gas is not None:
            if self.max_fee_per_gas < self.max_priority_fee_per_gas:
                raise ValueError("maxFeePerGas must be >= maxPriorityFeePerGas")
        return self

    @property
    def supports_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None and self.max_priority_fee_per_gas is not None

    def as_transaction_params(self) -> Dict[str, int]:
        """Fee fields ready to merge into transaction params; legacy chains get ``gasPrice``."""
        if self.supports_eip1559:
            return {
                "maxFeePerGas": self.max_fee_per_gas,
                "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            }
        return {"gasPrice": self.gas_price} if self.gas_price is not None else {}


class FeeTierEstimate(_FeeModel):
    max_priority_fee_per_gas: int = Field(ge=0)
    max_fee_per_gas: int = Field(ge=0)
    min_wait_ms: Optional[int] = None
    max_wait_ms: Optional[int] = None

    @model_validator(mode="after")
    def _max_fee_covers_priority(self) -> "FeeTierEstimate":
        if self.max_fee_per_gas < self.max_priority_fee_per_gas:
            raise ValueError("maxFeePerGas must be >= maxPriorityFeePerGas")
        return self

    def as_transaction_params(self) -> Dict[str, int]:
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
        }


class SuggestedFees(_FeeModel):
    slow: FeeTierEstimate
    average: FeeTierEstimate
    fast: FeeTierEstimate
    base_fee_per_gas: int = Field(ge=0)
    network_congestion: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    priority_fee_trend: Optional[FeeTrend] = None
    base_fee_trend: Optional[FeeTrend] = None
    historical_priority_fee_range: Optional[Tuple[int, int]] = None
    historical_base_fee_range: Optional[Tuple[int, int]] = None
    network_type: Optional[str] = None

    def tier(self, name: str) -> FeeTierEstimate:
        if name not in ("slow", "average", "fast"):
            raise KeyError(name)
        return getattr(self, name)


class HistoricalBlock(_FeeModel):
    """One block of an ``eth_feeHistory`` response."""
    number: int
    base_fee_per_gas: int = Field(ge=0)
    gas_used_ratio: float = Field(ge=0.0, le=1.0)
    # one value per requested percentile, in request order
    priority_fee_per_gas: Tuple[int, ...] = ()


class ErrorContext(BaseModel):
    """Handed to a recovery hook at the moment a recoverable failure happens."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    operation: str
    error: Any
    fallback_value: Optional[int] = None
    gas_price: Optional[int] = None
    base_fee_per_gas: Optional[int] = None
    chain_id: Optional[int] = None
