# /evm_fees/core/recovery.py
from typing import Callable, Optional, Protocol, runtime_checkable

from evm_fees.core.errors import InvalidArgument
from evm_fees.core.models import ErrorContext


@runtime_checkable
class RecoveryHook(Protocol):
    """
    Caller-supplied capability consulted when an estimation stage fails.

    Return an int to override the fallback value, or ``None`` to accept the
    engine's static default. Exceptions raised here propagate to the caller.
    """
    def recover(self, context: ErrorContext) -> Optional[int]:
        ...


class CallbackRecoveryHook:
    """Adapts a plain ``fn(context) -> int | None`` to the RecoveryHook protocol."""
    def __init__(self, callback: Callable[[ErrorContext], Optional[int]]):
        self.callback = callback

    def recover(self, context: ErrorContext) -> Optional[int]:
        return self.callback(context)


def as_recovery_hook(on_error) -> Optional[RecoveryHook]:
    if on_error is None or isinstance(on_error, RecoveryHook):
        return on_error
    if callable(on_error):
        return CallbackRecoveryHook(on_error)
    raise TypeError(f"on_error must be a RecoveryHook or callable, got {type(on_error).__name__}")


def hook_value(value, operation: str) -> Optional[int]:
    """Validates a hook's return value: ``None`` or a non-negative integer fee in wei."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidArgument(f"Recovery hook returned a non-numeric value for {operation}: {value!r}")
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"Recovery hook returned a non-numeric value for {operation}: {value!r}")
    if value < 0:
        raise InvalidArgument(f"Recovery hook returned a negative value for {operation}: {value}")
    return value
