"""Pytest configuration and shared fixtures for dashboard tests."""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from eth_abi import encode

from src.contracts.abi import ContractAbis, load_abis
from src.mining.models import ChainSnapshot, GasParams


WEI = 10**18


@pytest.fixture(scope="session")
def abis() -> ContractAbis:
    """Bundled HYPERS, gas and Multicall ABIs.

    Returns:
        ContractAbis: Loaded from src/contracts/abi
    """
    return load_abis()


@pytest.fixture
def mock_http_client() -> AsyncMock:
    """Provide an httpx.AsyncClient mock with an async `post`."""
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def rpc_response() -> Callable[..., MagicMock]:
    """Factory for mocked HTTP responses carrying a JSON-RPC body.

    Returns:
        Callable: build(result=None, error=None) -> MagicMock response
    """

    def build(result: Any = None, error: dict[str, Any] | None = None) -> MagicMock:
        body: dict[str, Any] = {"jsonrpc": "2.0", "id": 1}
        if error is not None:
            body["error"] = error
        else:
            body["result"] = result
        response = MagicMock()
        response.json.return_value = body
        return response

    return build


@pytest.fixture
def aggregate_result() -> Callable[..., str]:
    """Factory for the hex eth_call result of Multicall `aggregate`.

    Returns:
        Callable: build(payloads, block_number=1) -> 0x-prefixed hex string
    """

    def build(payloads: list[bytes], block_number: int = 1) -> str:
        return "0x" + encode(["uint256", "bytes[]"], [block_number, payloads]).hex()

    return build


@pytest.fixture
def snapshot() -> ChainSnapshot:
    """A realistic chain snapshot: 1M circulating out of a 20.5M max supply."""
    return ChainSnapshot(
        block_number=5_000,
        total_supply=1_000_000 * WEI,
        miner_reward=250 * WEI,
        last_block_time=1_700_000_000,
        halving_interval=42_000,
        last_halving_block=0,
        token_value=WEI // 1000,
        gas_params=GasParams(ether_seconds=0, ether_balance=5 * WEI),
        pending_miners_count=12,
        max_supply=20_500_000 * WEI,
    )


@pytest.fixture
def snapshot_payloads() -> Callable[[ChainSnapshot], list[bytes]]:
    """Factory encoding a snapshot as the ten payloads of a metrics batch."""

    def build(snap: ChainSnapshot) -> list[bytes]:
        uint = ["uint256"]
        return [
            encode(uint, [snap.block_number]),
            encode(uint, [snap.total_supply]),
            encode(uint, [snap.miner_reward]),
            encode(uint, [snap.last_block_time]),
            encode(uint, [snap.halving_interval]),
            encode(uint, [snap.last_halving_block]),
            encode(uint, [snap.token_value]),
            encode(
                ["uint256", "uint256", "uint256", "uint8"],
                [
                    snap.gas_params.ether_seconds,
                    snap.gas_params.ether_balance,
                    snap.last_block_time,
                    0,
                ],
            ),
            encode(uint, [snap.pending_miners_count]),
            encode(uint, [snap.max_supply]),
        ]

    return build
