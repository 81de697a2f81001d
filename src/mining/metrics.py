"""Derived mining metrics.

Everything here is a pure function of a ChainSnapshot, the ETH/USD price and
the contract's native balance. Metrics are recomputed from scratch on every
cycle; nothing is carried over between cycles.
"""

from decimal import Decimal
import math

from src.helpers.constants import (
    HALVING_INTERVAL,
    INIT_MAX_SUPPLY,
    INITIAL_REWARD,
    PLACEHOLDER,
    SECONDS_PER_BLOCK,
)
from src.helpers.parsers import (
    format_number,
    format_reward,
    from_wei,
    to_fixed,
    wei_to_eth,
)
from src.mining.models import ChainSnapshot, DerivedMetrics, GasParams


# Display slots reset to the placeholder when a cycle fails
METRIC_NAMES: tuple[str, ...] = (
    "last_block",
    "total_supply",
    "miner_reward",
    "miners_count",
    "last_block_time",
    "next_halving",
    "intrinsic_value",
    "intrinsic_value_eth",
    "theoretical_value",
    "theoretical_value_eth",
    "tvl",
    "tvl_usd",
    "max_supply",
    "burned_amount",
    "burned_percentage",
    "mined_amount",
    "mined_percentage",
)


def reward_at_block(block_number: int) -> float:
    """Block reward in tokens at a given block.

    The initial reward is halved once per complete halving interval.

    Example:
        >>> reward_at_block(41_999)
        250.0
        >>> reward_at_block(84_000)
        62.5
    """
    reward = float(INITIAL_REWARD)
    for _ in range(block_number // HALVING_INTERVAL):
        reward /= 2
    return reward


def format_time_until(hours: float) -> str:
    """Format a duration in hours as days, hours and minutes.

    Units that floor to zero are left out; an empty result is "0m". The hour
    unit is no exception, so 0.4 hours reads "24m" and never "0h 24m".

    Example:
        >>> format_time_until(25.5)
        '1d 1h 30m'
        >>> format_time_until(0.4)
        '24m'
        >>> format_time_until(0.0)
        '0m'
    """
    days = math.floor(hours / 24)
    remaining_hours = math.fmod(hours, 24)
    whole_hours = math.floor(remaining_hours)
    minutes = math.floor(math.fmod(remaining_hours, 1) * 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if whole_hours > 0:
        parts.append(f"{whole_hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    return " ".join(parts) or "0m"


def hours_until_halving(
    block_number: int, last_halving_block: int, halving_interval: int
) -> float:
    """Estimated hours until the next halving at one block per minute."""
    blocks_until_halving = (last_halving_block + halving_interval) - block_number
    return blocks_until_halving * SECONDS_PER_BLOCK / 3600


def calculate_tvl(contract_balance: int, gas_params: GasParams) -> Decimal:
    """Total value locked in ETH: contract balance plus the gas reserve."""
    return from_wei(contract_balance + gas_params.ether_balance)


def calculate_burned(max_supply: float) -> tuple[float, str]:
    """Tokens burned from the initial max supply, and the burned percentage."""
    burned = INIT_MAX_SUPPLY - max_supply
    return burned, to_fixed(burned / INIT_MAX_SUPPLY * 100, 2)


def calculate_mined(burned: float, total_supply: float) -> tuple[float, str]:
    """Tokens mined so far (burned + circulating), and the mined percentage."""
    mined = burned + total_supply
    return mined, to_fixed(mined / INIT_MAX_SUPPLY * 100, 2)


def _divide(numerator: float, denominator: float) -> float:
    # IEEE 754 division: x/0 is +-inf, 0/0 is nan
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def derive_metrics(
    snapshot: ChainSnapshot, price_usd: float, contract_balance: int
) -> DerivedMetrics:
    """Compute the dashboard's derived financial metrics.

    Args:
        snapshot: Decoded chain state of this cycle
        price_usd: ETH/USD price
        contract_balance: Native balance of the HYPERS contract in wei

    Returns:
        Derived metrics
    """
    tvl_eth = float(calculate_tvl(contract_balance, snapshot.gas_params))
    total_supply = wei_to_eth(snapshot.total_supply) or 0.0

    intrinsic_value_eth = to_fixed(wei_to_eth(snapshot.token_value) or 0.0, 10)
    theoretical_value_eth = to_fixed(_divide(tvl_eth, total_supply), 10)

    burned_amount, burned_percentage = calculate_burned(
        wei_to_eth(snapshot.max_supply) or 0.0
    )
    mined_amount, mined_percentage = calculate_mined(burned_amount, total_supply)

    return DerivedMetrics(
        intrinsic_value_eth=intrinsic_value_eth,
        intrinsic_value_usd=to_fixed(float(intrinsic_value_eth) * price_usd, 6),
        theoretical_value_eth=theoretical_value_eth,
        theoretical_value_usd=to_fixed(float(theoretical_value_eth) * price_usd, 6),
        tvl_eth=tvl_eth,
        tvl_usd=tvl_eth * price_usd,
        burned_amount=burned_amount,
        burned_percentage=burned_percentage,
        mined_amount=mined_amount,
        mined_percentage=mined_percentage,
        next_halving_eta=format_time_until(
            hours_until_halving(
                snapshot.block_number,
                snapshot.last_halving_block,
                snapshot.halving_interval,
            )
        ),
    )


def js_round(value: float) -> float:
    """Round half up, leaving NaN and infinities untouched."""
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


def seconds_since(timestamp: int, now: float) -> int:
    """Whole seconds elapsed since a unix timestamp."""
    return math.floor(now - timestamp)


def metric_display_values(
    snapshot: ChainSnapshot,
    metrics: DerivedMetrics,
    *,
    now: float,
    cursor: int,
) -> dict[str, str]:
    """Display text of every metric slot.

    Args:
        snapshot: Decoded chain state of this cycle
        metrics: Metrics derived from the same snapshot
        now: Current unix time
        cursor: Block cursor before this cycle, 0 while unknown

    Returns:
        Mapping of every name in METRIC_NAMES to its text
    """
    return {
        "last_block": str(snapshot.block_number),
        "total_supply": format_number(js_round(wei_to_eth(snapshot.total_supply) or 0.0)),
        "miner_reward": format_reward(wei_to_eth(snapshot.miner_reward) or 0.0),
        "miners_count": PLACEHOLDER if cursor == 0 else str(snapshot.pending_miners_count),
        "last_block_time": f"{seconds_since(snapshot.last_block_time, now)}s",
        "next_halving": metrics.next_halving_eta,
        "intrinsic_value": metrics.intrinsic_value_usd,
        "intrinsic_value_eth": metrics.intrinsic_value_eth,
        "theoretical_value": metrics.theoretical_value_usd,
        "theoretical_value_eth": metrics.theoretical_value_eth,
        "tvl": to_fixed(metrics.tvl_eth, 2),
        "tvl_usd": format_number(js_round(metrics.tvl_usd)),
        "max_supply": format_number(wei_to_eth(snapshot.max_supply) or 0.0),
        "burned_amount": format_number(js_round(metrics.burned_amount)),
        "burned_percentage": metrics.burned_percentage,
        "mined_amount": format_number(js_round(metrics.mined_amount)),
        "mined_percentage": metrics.mined_percentage,
    }


__all__ = [
    "METRIC_NAMES",
    "calculate_burned",
    "calculate_mined",
    "calculate_tvl",
    "derive_metrics",
    "format_time_until",
    "hours_until_halving",
    "js_round",
    "metric_display_values",
    "reward_at_block",
    "seconds_since",
]
