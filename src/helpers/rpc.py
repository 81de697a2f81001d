"""EVM JSON-RPC client utilities."""

import itertools
from typing import Any

import httpx

from src.helpers.constants import DEFAULT_TIMEOUT
from src.helpers.parsers import parse_hex_bytes, parse_hex_int, to_hex
from src.helpers.rpc_models import (
    EthCallRequest,
    EthGetBalanceRequest,
    JsonRpcRequest,
    JsonRpcResponse,
)


class RPCError(ValueError):
    """JSON-RPC error response, including execution reverts."""

    def __init__(self, method: str, code: int, message: str, data: Any = None) -> None:
        self.method = method
        self.code = code
        self.data = data
        super().__init__(f"RPC error: {method} failed ({code}): {message}")


class RPCClient:
    """JSON-RPC client for contract reads against an EVM node."""

    def __init__(self, rpc_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: JSON-RPC endpoint URL
            timeout: Default timeout for requests in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout
        self._ids = itertools.count(1)

    async def send(
        self,
        client: httpx.AsyncClient,
        request: JsonRpcRequest,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a JSON-RPC request and return its result.

        Args:
            client: HTTP client instance
            request: Request model
            timeout: Optional timeout override

        Returns:
            RPC result value

        Raises:
            httpx.HTTPError: If the HTTP request fails
            RPCError: If the RPC response contains an error
        """
        response = await client.post(
            self.rpc_url,
            json=request.model_dump(),
            timeout=timeout or self.timeout,
        )
        response.raise_for_status()
        result = JsonRpcResponse.model_validate(response.json())

        if result.error is not None:
            raise RPCError(
                request.method,
                result.error.code,
                result.error.message,
                result.error.data,
            )

        return result.result

    async def eth_call(
        self,
        client: httpx.AsyncClient,
        to: str,
        data: bytes,
        block: int | str = "latest",
    ) -> bytes:
        """Execute a read-only contract call.

        Args:
            client: HTTP client instance
            to: Contract address
            data: ABI-encoded call data
            block: Block number (int) or tag

        Returns:
            Raw return payload

        Raises:
            RPCError: If the call reverts or the node rejects it
        """
        block_param = hex(block) if isinstance(block, int) else block
        request = EthCallRequest(
            params=[{"to": to, "data": to_hex(data)}, block_param],
            id=next(self._ids),
        )
        result = await self.send(client, request)
        return parse_hex_bytes(result)

    async def get_balance(
        self,
        client: httpx.AsyncClient,
        address: str,
        block_number: int | str = "latest",
    ) -> int:
        """Get native balance for an address at a specific block.

        Args:
            client: HTTP client instance
            address: Account or contract address
            block_number: Block number (int) or "latest"

        Returns:
            Balance in wei
        """
        block_param = (
            hex(block_number) if isinstance(block_number, int) else block_number
        )
        request = EthGetBalanceRequest(params=[address, block_param], id=next(self._ids))
        result = await self.send(client, request)
        return parse_hex_int(result) if result else 0


__all__ = [
    "RPCClient",
    "RPCError",
]
