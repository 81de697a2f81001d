"""Well-known contract addresses and display labels for known miners."""

from eth_utils import to_checksum_address

from src.helpers.constants import EXPLORER_ADDRESS_URL, PLACEHOLDER


HYPERS_CONTRACT_ADDRESS = to_checksum_address("0xf8797db8a9eed416ca14e8dfaede2bf4e1aabfc3")
GAS_CONTRACT_ADDRESS = "0x4300000000000000000000000000000000000002"
MULTICALL_ADDRESS = to_checksum_address("0xca11bde05977b3631167028862be2a173976ca11")
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Known miner addresses -> display label, keyed by lowercase address
ADDRESS_LABELS: dict[str, str] = {
    "0xb82619c0336985e3ede16b97b950e674018925bb": "KONKPool",
    "0x2099a5d5da9db8a91a21b7a1cf7f969a5d078c15": "Machi",
    "0x6b8c262ca939adbe3793d3eca519a9d64f74d184": "Machi",
}


def format_address(address: str | None) -> str:
    """Return the display label for an address.

    Known addresses map to their label, anything else is shortened to its
    last four hex characters.

    Example:
        >>> format_address("0xb82619C0336985e3EDe16B97b950E674018925Bb")
        'KONKPool'
        >>> format_address("0x0000000000000000000000000000000000001234")
        '1234'
    """
    if not address:
        return PLACEHOLDER
    return ADDRESS_LABELS.get(address.lower(), address[38:])


def explorer_url(address: str) -> str:
    """Block explorer link for an address."""
    return f"{EXPLORER_ADDRESS_URL}{address}"


__all__ = [
    "ADDRESS_LABELS",
    "GAS_CONTRACT_ADDRESS",
    "HYPERS_CONTRACT_ADDRESS",
    "MULTICALL_ADDRESS",
    "ZERO_ADDRESS",
    "explorer_url",
    "format_address",
]
