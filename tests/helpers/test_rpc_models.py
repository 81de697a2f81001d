"""Tests for RPC models."""

import pytest
from pydantic import ValidationError

from src.helpers.rpc_models import (
    EthCallRequest,
    EthGetBalanceRequest,
    JsonRpcRequest,
    JsonRpcResponse,
)


def test_json_rpc_request() -> None:
    """Test JsonRpcRequest model."""
    request = JsonRpcRequest(method="test_method", params=[1, "two"], id=1)
    assert request.jsonrpc == "2.0"
    assert request.method == "test_method"
    assert request.params == [1, "two"]
    assert request.id == 1


def test_json_rpc_request_default_params() -> None:
    """Test JsonRpcRequest with default params."""
    request = JsonRpcRequest(method="test_method", id="abc123")
    assert request.params == []
    assert request.id == "abc123"


def test_json_rpc_request_validation() -> None:
    """Test JsonRpcRequest validation."""
    with pytest.raises(ValidationError):
        JsonRpcRequest(id=1)  # type: ignore[call-arg]


def test_eth_call_request_serialization() -> None:
    """Test EthCallRequest serializes to a JSON-RPC body."""
    request = EthCallRequest(params=[{"to": "0xabc", "data": "0x1234"}, "latest"], id=7)
    assert request.model_dump() == {
        "jsonrpc": "2.0",
        "method": "eth_call",
        "params": [{"to": "0xabc", "data": "0x1234"}, "latest"],
        "id": 7,
    }


def test_eth_get_balance_request_frozen_method() -> None:
    """Test EthGetBalanceRequest method is frozen."""
    request = EthGetBalanceRequest(params=["0xabc", "latest"], id=1)
    with pytest.raises(ValidationError):
        request.method = "eth_call"


def test_json_rpc_response_result() -> None:
    """Test JsonRpcResponse with a result."""
    response = JsonRpcResponse.model_validate({"jsonrpc": "2.0", "id": 1, "result": "0x1"})
    assert response.result == "0x1"
    assert response.error is None


def test_json_rpc_response_error() -> None:
    """Test JsonRpcResponse with an error object."""
    response = JsonRpcResponse.model_validate(
        {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}}
    )
    assert response.result is None
    assert response.error is not None
    assert response.error.code == -32000
    assert response.error.message == "header not found"
    assert response.error.data is None
