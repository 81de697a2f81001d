"""Parsing and formatting utilities for on-chain values."""

from decimal import ROUND_HALF_UP, Decimal
import math

from src.helpers.constants import WEI_DECIMALS


WEI_PER_ETH = Decimal(10) ** WEI_DECIMALS


def parse_hex_int(hex_value: str | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string or None
        default: Default value if hex_value is None

    Returns:
        int: Parsed integer value

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    if hex_value is None:
        return default
    return int(hex_value, 16)


def parse_hex_bytes(hex_value: str | None) -> bytes:
    """Parse a 0x-prefixed hex string to bytes.

    Example:
        >>> parse_hex_bytes("0x01ff")
        b'\\x01\\xff'
        >>> parse_hex_bytes("0x")
        b''
    """
    if not hex_value:
        return b""
    return bytes.fromhex(hex_value.removeprefix("0x"))


def to_hex(data: bytes) -> str:
    """Encode bytes as a 0x-prefixed hex string."""
    return "0x" + data.hex()


def from_wei(wei: int) -> Decimal:
    """Convert an 18-decimal fixed-point integer to an exact Decimal.

    Example:
        >>> from_wei(1500000000000000000)
        Decimal('1.5')
    """
    return Decimal(wei) / WEI_PER_ETH


def wei_to_eth(wei: int | None) -> float | None:
    """Convert Wei to ETH (divide by 1e18).

    Args:
        wei: Amount in Wei, or None

    Returns:
        float | None: Amount in ETH, or None if input was None

    Example:
        >>> wei_to_eth(1000000000000000000)
        1.0
        >>> wei_to_eth(None)
        None
    """
    return float(from_wei(wei)) if wei is not None else None


def to_fixed(value: float, digits: int) -> str:
    """Format a float with a fixed number of fractional digits.

    Rounds half up on the exact binary value, so results match what browsers
    show for the same figures. NaN and infinities are spelled out.

    Example:
        >>> to_fixed(2.380952380952381, 2)
        '2.38'
        >>> to_fixed(1.005, 2)
        '1.00'
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)
    return f"{rounded:.{digits}f}"


def format_number(value: float | int | Decimal) -> str:
    """Format a number with en-US thousands separators.

    Up to three fractional digits are kept, trailing zeros dropped.

    Example:
        >>> format_number(1500000)
        '1,500,000'
        >>> format_number(20500000.5)
        '20,500,000.5'
    """
    number = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if not number.is_finite():
        return "NaN" if number.is_nan() else "∞"

    rounded = number.quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    text = f"{rounded:,.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_reward(value: float) -> str:
    """Format a token amount in its shortest form.

    Example:
        >>> format_reward(250.0)
        '250'
        >>> format_reward(62.5)
        '62.5'
    """
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


__all__ = [
    "WEI_PER_ETH",
    "format_number",
    "format_reward",
    "from_wei",
    "parse_hex_bytes",
    "parse_hex_int",
    "to_fixed",
    "to_hex",
    "wei_to_eth",
]
