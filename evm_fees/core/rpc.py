# /evm_fees/core/rpc.py
# The JSON-RPC seam between the engines and whatever transport the caller uses.
from typing import Any, List, Optional, Protocol, runtime_checkable

from evm_fees.core.errors import TransportFailure
from evm_fees.core.logger import get_logger, RPC_FAILURES

log = get_logger(__name__)


@runtime_checkable
class RpcTransport(Protocol):
    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Issues one JSON-RPC call and returns its raw ``result``."""
        ...


async def call(transport: RpcTransport, method: str, params: Optional[List[Any]] = None) -> Any:
    """
    Issues a single request, normalising every failure to TransportFailure.

    No retry happens here: a failed call is terminal for the calling stage.
    """
    try:
        return await transport.request(method, params or [])
    except TransportFailure as e:
        RPC_FAILURES.labels(method).inc()
        log.warning("RPC_CALL_FAILED", method=method, error=str(e))
        raise
    except Exception as e:
        RPC_FAILURES.labels(method).inc()
        log.warning("RPC_CALL_FAILED", method=method, error=str(e), error_type=type(e).__name__)
        raise TransportFailure(method, str(e)) from e
