# /evm_fees/core/fee_snapshot.py
# Current fee data in one shot, in the spirit of ethers.js getFeeData().

from evm_fees.core import hexcodec
from evm_fees.core.config import settings
from evm_fees.core.errors import UnsupportedNetwork
from evm_fees.core.fee_history import parse_base_fee
from evm_fees.core.logger import get_logger, FEE_ESTIMATES, FALLBACKS_TAKEN
from evm_fees.core.models import ErrorContext, FeeSnapshot
from evm_fees.core.networks import NetworkProfile, UNKNOWN_PROFILE
from evm_fees.core.recovery import as_recovery_hook, hook_value
from evm_fees.core.rpc import RpcTransport, call

log = get_logger(__name__)


class FeeSnapshotEngine:
    """
    Builds a FeeSnapshot from ``eth_gasPrice``, the latest block and
    ``eth_maxPriorityFeePerGas``.

    Each RPC failure is handed to the recovery hook and replaced by a
    default, so a snapshot is always returned.
    """
    def __init__(self, transport: RpcTransport, profile: NetworkProfile = UNKNOWN_PROFILE):
        self.transport = transport
        self.profile = profile

    async def snapshot(self, on_error=None) -> FeeSnapshot:
        hook = as_recovery_hook(on_error)
        recovered = False

        try:
            gas_price = hexcodec.decode(await call(self.transport, "eth_gasPrice"))
        except Exception as e:
            recovered = True
            default_gas_price = self.profile.default_base_fee_wei + self.profile.default_average_priority_fee_wei
            gas_price = self._recover(hook, "eth_gasPrice", e, fallback_value=default_gas_price)

        base_fee = None
        try:
            base_fee = parse_base_fee(await call(self.transport, "eth_getBlockByNumber", ["latest", False]))
        except UnsupportedNetwork:
            log.info("FEE_SNAPSHOT_LEGACY_NETWORK", gas_price=gas_price)
        except Exception as e:
            recovered = True
            base_fee = self._recover(hook, "eth_getBlockByNumber", e, fallback_value=None, gas_price=gas_price)

        max_fee = None
        priority_fee = None
        if base_fee is not None:
            try:
                priority_fee = hexcodec.decode(await call(self.transport, "eth_maxPriorityFeePerGas"))
            except Exception as e:
                # Not every node implements eth_maxPriorityFeePerGas
                recovered = True
                priority_fee = self._recover(
                    hook, "eth_maxPriorityFeePerGas", e,
                    fallback_value=settings.DEFAULT_PRIORITY_FEE_WEI,
                    gas_price=gas_price,
                    base_fee=base_fee,
                )
            # Headroom for the base fee to double before inclusion
            max_fee = base_fee * 2 + priority_fee

        FEE_ESTIMATES.labels("snapshot", "fallback" if recovered else "success").inc()
        log.info("FEE_SNAPSHOT_COMPUTED", gas_price=gas_price, base_fee=base_fee,
                 max_fee=max_fee, priority_fee=priority_fee, recovered=recovered)
        return FeeSnapshot(gas_price=gas_price, max_fee_per_gas=max_fee, max_priority_fee_per_gas=priority_fee)

    def _recover(self, hook, operation: str, error: Exception, fallback_value, gas_price=None, base_fee=None):
        FALLBACKS_TAKEN.labels(operation).inc()
        log.warning("FEE_SNAPSHOT_STAGE_FAILED", operation=operation, error=str(error),
                    error_type=type(error).__name__, fallback_value=fallback_value)
        if hook is None:
            return fallback_value

        value = hook_value(hook.recover(ErrorContext(
            operation=operation,
            error=error,
            fallback_value=fallback_value,
            gas_price=gas_price,
            base_fee_per_gas=base_fee,
        )), operation)
        return fallback_value if value is None else value


async def get_fee_snapshot(client: RpcTransport, on_error=None) -> FeeSnapshot:
    """
    Fetches current fee data.

    ``gasPrice`` is always set. ``maxFeePerGas`` (``2 * baseFee + tip``) and
    ``maxPriorityFeePerGas`` are ``None`` when the latest block has no base
    fee. ``on_error`` receives an ErrorContext for each failed call and may
    return a replacement value.
    """
    return await FeeSnapshotEngine(client).snapshot(on_error=on_error)
