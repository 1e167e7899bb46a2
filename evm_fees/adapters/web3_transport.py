# /evm_fees/adapters/web3_transport.py
# JSON-RPC transport backed by web3's async HTTP provider.

import aiohttp
from web3 import AsyncWeb3

from evm_fees.core.config import settings
from evm_fees.core.decorators import retriable_network_call
from evm_fees.core.errors import InvalidArgument, TransportFailure
from evm_fees.core.logger import get_logger

log = get_logger(__name__)


class Web3RpcTransport:
    """
    Issues raw JSON-RPC requests through ``AsyncWeb3.provider.make_request``.

    Results come back undecoded (hex strings), which is what the fee parsers
    expect. RPC error payloads and connection problems both surface as
    TransportFailure.
    """
    def __init__(self, url: str | None = None, timeout: float | None = None, max_attempts: int | None = None, w3: AsyncWeb3 | None = None):
        if w3 is None:
            url = url or settings.rpc_url
            if not url:
                raise InvalidArgument("No RPC URL given and EVM_FEES_RPC_URL is not set")
            client_timeout = aiohttp.ClientTimeout(total=timeout or settings.RPC_TIMEOUT_SECONDS)
            w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(url, request_kwargs={"timeout": client_timeout}))
        self.w3 = w3
        self._send = retriable_network_call(max_attempts)(self._send_once)
        log.info("WEB3_RPC_TRANSPORT_INITIALIZED", max_attempts=max_attempts or settings.RPC_MAX_ATTEMPTS)

    @classmethod
    def from_web3(cls, w3: AsyncWeb3, max_attempts: int | None = None) -> "Web3RpcTransport":
        """Wraps an already configured AsyncWeb3 instance."""
        return cls(w3=w3, max_attempts=max_attempts)

    async def _send_once(self, method: str, params: list):
        return await self.w3.provider.make_request(method, params)

    async def request(self, method: str, params: list | None = None):
        try:
            response = await self._send(method, params or [])
        except Exception as e:
            raise TransportFailure(method, str(e)) from e

        if not isinstance(response, dict):
            raise TransportFailure(method, f"Unexpected response type {type(response).__name__}")
        error = response.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise TransportFailure(method, message)
        if "result" not in response:
            raise TransportFailure(method, "Response has neither result nor error")
        return response["result"]
