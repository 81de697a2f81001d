"""Configuration management and environment variable utilities."""

import os
from pathlib import Path

from dotenv import load_dotenv

from src.helpers.constants import (
    DEFAULT_RPC_URL,
    POLL_INTERVAL,
    PRICE_REFRESH_INTERVAL,
)


# Load environment variables from .env file
load_dotenv()

DEFAULT_ABI_DIR = Path(__file__).resolve().parent.parent / "contracts" / "abi"


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_float_env(key: str, default: float) -> float:
    """Get a positive float from the environment.

    Args:
        key: Environment variable name
        default: Value used when the variable is unset or empty

    Returns:
        Parsed float value

    Raises:
        ValueError: If the value is not a positive number
    """
    raw = os.getenv(key)
    if not raw:
        return default

    try:
        value = float(raw)
    except ValueError:
        msg = f"{key} must be a number, got {raw!r}"
        raise ValueError(msg) from None

    if value <= 0:
        msg = f"{key} must be positive, got {value}"
        raise ValueError(msg)
    return value


def get_rpc_url(rpc_url: str | None = None) -> str:
    """Get the Blast RPC URL from parameter, environment or default.

    Args:
        rpc_url: Optional RPC URL to use directly

    Returns:
        RPC URL

    Example:
        ```python
        from src.helpers.config import get_rpc_url

        # HYPERS_RPC_URL, falling back to the public endpoint
        rpc_url = get_rpc_url()

        # Or provide explicitly
        rpc_url = get_rpc_url("https://blast.drpc.org")
        ```
    """
    if rpc_url:
        return rpc_url
    return get_optional_env("HYPERS_RPC_URL") or DEFAULT_RPC_URL


def get_poll_interval() -> float:
    """Seconds between two metrics cycles (POLL_INTERVAL)."""
    return get_float_env("POLL_INTERVAL", POLL_INTERVAL)


def get_price_refresh_interval() -> float:
    """Seconds between two price refreshes (PRICE_REFRESH_INTERVAL)."""
    return get_float_env("PRICE_REFRESH_INTERVAL", PRICE_REFRESH_INTERVAL)


def get_abi_dir(abi_dir: str | Path | None = None) -> Path:
    """Get the directory holding the contract ABI documents.

    Args:
        abi_dir: Optional directory to use directly

    Returns:
        Path from parameter, ABI_DIR, or the bundled ABI directory
    """
    if abi_dir:
        return Path(abi_dir)

    env_abi_dir = get_optional_env("ABI_DIR")
    if env_abi_dir:
        return Path(env_abi_dir)

    return DEFAULT_ABI_DIR


__all__ = [
    "DEFAULT_ABI_DIR",
    "get_abi_dir",
    "get_float_env",
    "get_optional_env",
    "get_poll_interval",
    "get_price_refresh_interval",
    "get_rpc_url",
]
