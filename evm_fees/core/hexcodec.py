# /evm_fees/core/hexcodec.py
import string

from evm_fees.core.errors import InvalidArgument, ParseError

_HEX_DIGITS = frozenset(string.hexdigits)


def decode(value) -> int:
    """
    Decodes a JSON-RPC hex quantity to an int.

    Accepts ``0x``-prefixed and bare hex. ``""`` and ``"0x"`` decode to 0.
    Ints are returned unchanged since some clients already decode results.
    """
    if isinstance(value, bool):
        raise ParseError(f"Expected hex string, got {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ParseError(f"Negative quantity {value}")
        return value
    if not isinstance(value, str):
        raise ParseError(f"Expected hex string, got {type(value).__name__}")

    digits = value[2:] if value[:2] in ("0x", "0X") else value
    if not digits:
        return 0
    if not _HEX_DIGITS.issuperset(digits):
        raise ParseError(f"Invalid hex quantity {value!r}")
    return int(digits, 16)


def encode(n: int, min_width: int = 0) -> str:
    """Encodes a non-negative int as ``0x`` + lowercase hex, zero-padded to ``min_width`` digits."""
    if n < 0:
        raise InvalidArgument(f"Cannot hex-encode negative value {n}")
    return "0x" + format(n, "x").zfill(min_width)
