# /evm_fees/core/errors.py
# Error taxonomy shared by the parsers, the transports and both engines.


class FeeEstimationError(Exception):
    pass


class TransportFailure(FeeEstimationError):
    """An RPC call failed, timed out or returned a JSON-RPC error payload."""

    def __init__(self, method: str, message: str = "RPC call failed"):
        self.method = method
        super().__init__(f"{method}: {message}")


class MalformedResponse(FeeEstimationError):
    """An RPC result did not have the expected JSON shape."""


class ParseError(FeeEstimationError):
    """A hex quantity could not be decoded."""


class InvalidArgument(FeeEstimationError, ValueError):
    """Caller supplied a bad percentile or block-count value."""


class UnsupportedNetwork(FeeEstimationError):
    """EIP-1559 data was required but the chain does not expose a base fee."""
