"""Tests for result decoding."""

from collections.abc import Callable

import pytest
from eth_abi import encode
from eth_utils import to_checksum_address

from src.contracts.abi import ContractAbis
from src.contracts.calls import build_metrics_calls, build_miners_count_call
from src.contracts.decoder import (
    decode_addresses,
    decode_call,
    decode_results,
    decode_snapshot,
    pair_results,
)
from src.helpers.errors import BatchCallError, DecodeError
from src.mining.models import ChainSnapshot, GasParams


class TestDecodeSnapshot:
    """Tests for decode_snapshot."""

    def test_round_trip(
        self,
        abis: ContractAbis,
        snapshot: ChainSnapshot,
        snapshot_payloads: Callable[[ChainSnapshot], list[bytes]],
    ) -> None:
        """Test the metrics batch decodes into the same snapshot."""
        calls = build_metrics_calls(abis, snapshot.block_number - 1)

        decoded = decode_snapshot(calls, snapshot_payloads(snapshot))

        assert decoded == snapshot
        assert decoded.gas_params == GasParams(ether_seconds=0, ether_balance=5 * 10**18)

    def test_count_mismatch(
        self,
        abis: ContractAbis,
        snapshot: ChainSnapshot,
        snapshot_payloads: Callable[[ChainSnapshot], list[bytes]],
    ) -> None:
        """Test a missing payload is a batch failure."""
        calls = build_metrics_calls(abis, 0)

        with pytest.raises(BatchCallError, match="Got 9 payloads for 10 calls"):
            decode_snapshot(calls, snapshot_payloads(snapshot)[:-1])

    def test_bad_payload(
        self,
        abis: ContractAbis,
        snapshot: ChainSnapshot,
        snapshot_payloads: Callable[[ChainSnapshot], list[bytes]],
    ) -> None:
        """Test a truncated payload names the read that failed."""
        calls = build_metrics_calls(abis, 0)
        payloads = snapshot_payloads(snapshot)
        payloads[7] = encode(["uint256"], [1])

        with pytest.raises(DecodeError, match="gas_params"):
            decode_snapshot(calls, payloads)


class TestDecodeHelpers:
    """Tests for the lower-level decode helpers."""

    def test_pair_results(self, abis: ContractAbis) -> None:
        """Test calls pair with payloads positionally."""
        calls = build_metrics_calls(abis, 0)[:2]
        pairs = pair_results(calls, [b"a", b"b"])

        assert [(c.name, p) for c, p in pairs] == [
            ("block_number", b"a"),
            ("total_supply", b"b"),
        ]

    def test_decode_call_unwraps_single_value(self, abis: ContractAbis) -> None:
        """Test single-value returns come back unwrapped."""
        call = build_miners_count_call(abis, 1)
        assert decode_call(call, encode(["uint256"], [250])) == 250

    def test_decode_results_keyed_by_name(self, abis: ContractAbis) -> None:
        """Test decode_results maps names to values."""
        calls = build_metrics_calls(abis, 0)[:2]
        payloads = [encode(["uint256"], [9]), encode(["uint256"], [10])]

        assert decode_results(calls, payloads) == {"block_number": 9, "total_supply": 10}

    def test_decode_addresses_checksummed(self) -> None:
        """Test address payloads decode to checksummed addresses."""
        payloads = [
            encode(["address"], ["0xb82619c0336985e3ede16b97b950e674018925bb"]),
            encode(["address"], ["0x0000000000000000000000000000000000000000"]),
        ]

        assert decode_addresses(payloads) == [
            to_checksum_address("0xb82619c0336985e3ede16b97b950e674018925bb"),
            "0x0000000000000000000000000000000000000000",
        ]
