"""Decoding of multicall return payloads into typed values."""

from collections.abc import Sequence
from typing import Any

from eth_utils import to_checksum_address
from pydantic import ValidationError

from src.contracts.abi import decode_payload
from src.contracts.calls import CallSpec
from src.helpers.errors import BatchCallError, DecodeError
from src.mining.models import ChainSnapshot, GasParams


def pair_results(
    calls: Sequence[CallSpec], payloads: Sequence[bytes]
) -> list[tuple[CallSpec, bytes]]:
    """Pair each payload with the call that produced it.

    Raises:
        BatchCallError: If the two sequences differ in length
    """
    if len(calls) != len(payloads):
        msg = f"Got {len(payloads)} payloads for {len(calls)} calls"
        raise BatchCallError(msg, expected=len(calls), received=len(payloads))
    return list(zip(calls, payloads, strict=True))


def decode_call(call: CallSpec, payload: bytes) -> Any:
    """Decode one payload against its call's return schema.

    Single-value returns are unwrapped, multi-value returns stay tuples.
    """
    values = decode_payload(list(call.return_types), payload, name=call.name)
    return values[0] if len(values) == 1 else values


def decode_results(
    calls: Sequence[CallSpec], payloads: Sequence[bytes]
) -> dict[str, Any]:
    """Decode a batch into a mapping of call name to decoded value."""
    return {call.name: decode_call(call, payload) for call, payload in pair_results(calls, payloads)}


def decode_snapshot(
    calls: Sequence[CallSpec], payloads: Sequence[bytes]
) -> ChainSnapshot:
    """Decode the metrics batch built by `build_metrics_calls`.

    Args:
        calls: The calls the batch was built from
        payloads: Multicall return payloads, in request order

    Returns:
        Typed chain snapshot

    Raises:
        DecodeError: If any payload does not match its schema
        BatchCallError: If payload and call counts differ
    """
    fields = decode_results(calls, payloads)

    gas_params = fields.get("gas_params")
    if isinstance(gas_params, tuple) and len(gas_params) >= 2:
        fields["gas_params"] = GasParams(
            ether_seconds=gas_params[0], ether_balance=gas_params[1]
        )

    try:
        return ChainSnapshot.model_validate(fields)
    except ValidationError as e:
        raise DecodeError("snapshot", [c.name for c in calls], str(e)) from e


def decode_addresses(payloads: Sequence[bytes]) -> list[str]:
    """Decode payloads that each hold a single address.

    Raises:
        DecodeError: If a payload is not an ABI-encoded address
    """
    return [
        to_checksum_address(decode_payload(["address"], payload, name=f"address_{i}")[0])
        for i, payload in enumerate(payloads)
    ]


__all__ = [
    "decode_addresses",
    "decode_call",
    "decode_results",
    "decode_snapshot",
    "pair_results",
]
