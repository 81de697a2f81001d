"""Pydantic models for JSON-RPC requests and responses."""

from typing import Any

from pydantic import BaseModel, Field


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int | str = Field(..., description="Request ID")


class EthCallRequest(JsonRpcRequest):
    """JSON-RPC request for eth_call."""

    method: str = Field(default="eth_call", frozen=True)


class EthGetBalanceRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getBalance."""

    method: str = Field(default="eth_getBalance", frozen=True)


class JsonRpcError(BaseModel):
    """Error object of a JSON-RPC 2.0 response."""

    code: int = Field(..., description="Error code")
    message: str = Field(default="", description="Error message")
    data: Any = Field(default=None, description="Revert data, if any")


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    id: int | str | None = Field(default=None, description="Request ID")
    result: Any = Field(default=None, description="Call result")
    error: JsonRpcError | None = Field(default=None, description="Call error")


__all__ = [
    "EthCallRequest",
    "EthGetBalanceRequest",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
]
