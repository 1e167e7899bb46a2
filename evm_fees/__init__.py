"""EIP-1559 fee estimation for EVM chains.

Two entry points:

- ``get_fee_snapshot(client)`` - current ``gasPrice`` plus, where supported,
  a ``maxFeePerGas`` / ``maxPriorityFeePerGas`` pair.
- ``get_suggested_fees(client)`` - slow / average / fast suggestions derived
  from recent ``eth_feeHistory`` data.

Both always return a value; RPC failures go through the optional
``on_error`` recovery hook and fall back to network defaults.
"""

from evm_fees.adapters.web3_transport import Web3RpcTransport
from evm_fees.core.errors import (
    FeeEstimationError,
    InvalidArgument,
    MalformedResponse,
    ParseError,
    TransportFailure,
    UnsupportedNetwork,
)
from evm_fees.core.fee_snapshot import FeeSnapshotEngine, get_fee_snapshot
from evm_fees.core.models import (
    ErrorContext,
    FeeSnapshot,
    FeeTierEstimate,
    FeeTrend,
    HistoricalBlock,
    SuggestedFees,
)
from evm_fees.core.networks import NetworkClassifier, NetworkProfile, NetworkType, default_classifier
from evm_fees.core.presets import EstimationPreset
from evm_fees.core.recovery import RecoveryHook
from evm_fees.core.rpc import RpcTransport
from evm_fees.core.suggested_fees import SuggestedFeeEngine, get_suggested_fees

__all__ = [
    "ErrorContext",
    "EstimationPreset",
    "FeeEstimationError",
    "FeeSnapshot",
    "FeeSnapshotEngine",
    "FeeTierEstimate",
    "FeeTrend",
    "HistoricalBlock",
    "InvalidArgument",
    "MalformedResponse",
    "NetworkClassifier",
    "NetworkProfile",
    "NetworkType",
    "ParseError",
    "RecoveryHook",
    "RpcTransport",
    "SuggestedFeeEngine",
    "SuggestedFees",
    "TransportFailure",
    "UnsupportedNetwork",
    "Web3RpcTransport",
    "default_classifier",
    "get_fee_snapshot",
    "get_suggested_fees",
]
