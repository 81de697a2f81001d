"""HTTP client utilities and helpers."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from src.helpers.constants import DEFAULT_TIMEOUT
from src.helpers.logging import get_logger


logger = get_logger(__name__)


def create_http_client(
    timeout: float = DEFAULT_TIMEOUT, **kwargs: Any
) -> httpx.AsyncClient:
    """Create a configured httpx AsyncClient.

    Args:
        timeout: Default timeout in seconds (default: DEFAULT_TIMEOUT)
        **kwargs: Additional httpx.AsyncClient kwargs

    Returns:
        Configured AsyncClient instance

    Example:
        ```python
        from src.helpers.http import create_http_client

        async with create_http_client(timeout=60.0) as client:
            response = await client.get("https://example.com")
        ```
    """
    return httpx.AsyncClient(timeout=timeout, **kwargs)


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float | None = None,
    raise_for_status: bool = True,
) -> dict[str, Any] | list[Any] | None:
    """Fetch JSON data from a URL.

    Args:
        client: HTTP client instance
        url: URL to fetch
        timeout: Optional timeout override
        raise_for_status: Whether to treat HTTP error statuses as failures

    Returns:
        Parsed JSON data or None on error

    Example:
        ```python
        async with httpx.AsyncClient() as client:
            data = await fetch_json(client, "https://api.example.com/data")
            if data:
                print(data)
        ```
    """
    try:
        if timeout is None:
            response = await client.get(url)
        else:
            response = await client.get(url, timeout=timeout)
        if raise_for_status:
            response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            logger.debug("URL not found: %s", url)
        else:
            logger.warning("HTTP error fetching %s: %s", url, e)
        return None
    except httpx.HTTPError as e:
        logger.warning("HTTP error fetching %s: %s", url, e)
        return None
    except ValueError as e:
        logger.warning("Invalid JSON from %s: %s", url, e)
        return None


@asynccontextmanager
async def log_and_suppress_errors(
    operation_name: str,
    *,
    log_level: str = "warning",
    suppress: bool = True,
) -> AsyncIterator[None]:
    """Context manager to log and optionally suppress errors.

    Args:
        operation_name: Description of the operation for logging
        log_level: Logging level ("debug", "info", "warning", "error")
        suppress: If True, suppress exceptions; if False, re-raise after logging

    Yields:
        None

    Example:
        ```python
        from src.helpers.http import log_and_suppress_errors

        async with log_and_suppress_errors("load older blocks"):
            await window.load_backward()
        ```
    """
    try:
        yield
    except Exception as e:
        log_method = getattr(logger, log_level, logger.warning)
        log_method("%s failed: %s", operation_name, e)

        if not suppress:
            raise


__all__ = [
    "create_http_client",
    "fetch_json",
    "log_and_suppress_errors",
]
