"""Pydantic models for chain state, derived metrics and mined blocks."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class GasParams(BaseModel):
    """Blast gas accounting of the HYPERS contract (first two fields)."""

    model_config = ConfigDict(frozen=True)

    ether_seconds: int = Field(..., description="Accumulated ether-seconds")
    ether_balance: int = Field(..., description="Claimable gas reserve in wei")


class ChainSnapshot(BaseModel):
    """Decoded result of one metrics multicall. Replaced wholesale each cycle."""

    model_config = ConfigDict(frozen=True)

    block_number: int = Field(..., description="Last mined HYPERS block")
    total_supply: int = Field(..., description="Circulating supply in wei units")
    miner_reward: int = Field(..., description="Current block reward in wei units")
    last_block_time: int = Field(..., description="Unix time of the last block")
    halving_interval: int = Field(..., description="Blocks between halvings")
    last_halving_block: int = Field(..., description="Block of the last halving")
    token_value: int = Field(..., description="Intrinsic token value in wei")
    gas_params: GasParams = Field(..., description="Gas reserve of the contract")
    pending_miners_count: int = Field(
        ..., description="Miners registered for the pending block"
    )
    max_supply: int = Field(..., description="Current max supply in wei units")


class DerivedMetrics(BaseModel):
    """Financial metrics recomputed from scratch every cycle."""

    model_config = ConfigDict(frozen=True)

    intrinsic_value_eth: str = Field(..., description="10 fractional digits")
    intrinsic_value_usd: str = Field(..., description="6 fractional digits")
    theoretical_value_eth: str = Field(..., description="10 fractional digits")
    theoretical_value_usd: str = Field(..., description="6 fractional digits")
    tvl_eth: float = Field(..., description="Total value locked in ETH")
    tvl_usd: float = Field(..., description="Total value locked in USD")
    burned_amount: float = Field(..., description="Tokens burned from max supply")
    burned_percentage: str = Field(..., description="2 fractional digits")
    mined_amount: float = Field(..., description="Tokens mined so far")
    mined_percentage: str = Field(..., description="2 fractional digits")
    next_halving_eta: str = Field(..., description="e.g. 1d 1h 30m")


class BlockState(StrEnum):
    """Fetch state of a block number. Absent from the window means unknown."""

    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class BlockRecord(BaseModel):
    """A mined block as shown in the block history."""

    model_config = ConfigDict(frozen=True)

    block_number: int = Field(..., description="Block number, unique key")
    miner_count: int = Field(..., description="Miners that took part")
    winner: str | None = Field(default=None, description="Winning address")
    reward: float = Field(..., description="Block reward in tokens")
    miner: str | None = Field(default=None, description="Miner address")


class MinerTallyEntry(BaseModel):
    """Number of participations of one address in a block."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., description="Miner address")
    count: int = Field(..., description="Entries in the block")


__all__ = [
    "BlockRecord",
    "BlockState",
    "ChainSnapshot",
    "DerivedMetrics",
    "GasParams",
    "MinerTallyEntry",
]
