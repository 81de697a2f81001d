"""Contract read descriptors and the batch builders that produce them.

Each CallSpec carries the return types of the read it encodes, so a return
payload is always decoded against the schema of the call that produced it.
"""

from pydantic import BaseModel, ConfigDict, Field

from src.contracts.abi import ContractAbis
from src.contracts.addresses import GAS_CONTRACT_ADDRESS, HYPERS_CONTRACT_ADDRESS


class CallSpec(BaseModel):
    """One contract read: where to send it, what to send, how to decode it."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Logical name of the read")
    target: str = Field(..., description="Contract address")
    call_data: bytes = Field(..., description="ABI-encoded call")
    return_types: tuple[str, ...] = Field(..., description="Return schema")

    def as_multicall_tuple(self) -> tuple[str, bytes]:
        """(target, callData) pair as expected by Multicall `aggregate`."""
        return self.target, self.call_data


# (snapshot field, HYPERS method) for the no-argument reads of a metrics cycle
HYPERS_METRIC_READS: list[tuple[str, str]] = [
    ("block_number", "blockNumber"),
    ("total_supply", "totalSupply"),
    ("miner_reward", "miningReward"),
    ("last_block_time", "lastBlockTime"),
    ("halving_interval", "halvingInterval"),
    ("last_halving_block", "lastHalvingBlock"),
    ("token_value", "tokenValue"),
]


def hypers_call(abis: ContractAbis, name: str, method: str, *args: int | str) -> CallSpec:
    """Build a CallSpec for a read on the HYPERS contract."""
    return CallSpec(
        name=name,
        target=HYPERS_CONTRACT_ADDRESS,
        call_data=abis.hypers.encode(method, *args),
        return_types=tuple(abis.hypers.output_types(method)),
    )


def build_metrics_calls(abis: ContractAbis, cursor: int) -> list[CallSpec]:
    """Build the ten reads of one metrics cycle, in request order.

    Args:
        abis: Loaded contract ABIs
        cursor: Last known block number, 0 when unknown

    Returns:
        Seven HYPERS reads, the gas parameters of the HYPERS contract, the
        miner count of the pending block (cursor + 1), and the max supply.
    """
    calls = [hypers_call(abis, name, method) for name, method in HYPERS_METRIC_READS]
    calls.append(
        CallSpec(
            name="gas_params",
            target=GAS_CONTRACT_ADDRESS,
            call_data=abis.gas.encode("readGasParams", HYPERS_CONTRACT_ADDRESS),
            return_types=tuple(abis.gas.output_types("readGasParams")),
        )
    )
    calls.append(
        hypers_call(abis, "pending_miners_count", "minersPerBlockCount", cursor + 1)
    )
    calls.append(hypers_call(abis, "max_supply", "maxSupply"))
    return calls


def build_miners_count_call(abis: ContractAbis, block_number: int) -> CallSpec:
    """Read of the number of miners that took part in a block."""
    return hypers_call(abis, "miners_count", "minersPerBlockCount", block_number)


def build_miner_calls(
    abis: ContractAbis, block_number: int, start: int, stop: int
) -> list[CallSpec]:
    """Reads of miner addresses `start` (inclusive) to `stop` (exclusive) of a block."""
    return [
        hypers_call(abis, f"miner_{index}", "minersPerBlock", block_number, index)
        for index in range(start, stop)
    ]


__all__ = [
    "HYPERS_METRIC_READS",
    "CallSpec",
    "build_metrics_calls",
    "build_miner_calls",
    "build_miners_count_call",
    "hypers_call",
]
