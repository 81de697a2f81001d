"""Common configuration constants used across the application."""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

PRICE_TIMEOUT = 10.0
"""Timeout for price API requests in seconds"""

DEFAULT_RPC_URL = "https://rpc.blast.io"
"""Public Blast RPC endpoint used when HYPERS_RPC_URL is not set"""

# Scheduling
POLL_INTERVAL = 1.0
"""Seconds between two metrics cycles"""

PRICE_REFRESH_INTERVAL = 60.0
"""Seconds between two ETH/USD price refreshes"""

# Token economics
WEI_DECIMALS = 18
"""Fixed-point decimals of ETH and of the HYPERS token"""

INIT_MAX_SUPPLY = 21_000_000
"""Max supply at launch, in tokens, before any burn"""

INITIAL_REWARD = 250
"""Block reward at genesis, in tokens"""

HALVING_INTERVAL = 42_000
"""Number of blocks between two reward halvings"""

SECONDS_PER_BLOCK = 60
"""Expected block production rate used for the halving ETA"""

# Block window
FORWARD_WINDOW = 10
"""Number of most recent blocks loaded on every cycle"""

BACKWARD_PAGE = 5
"""Number of older blocks loaded per infinite-scroll page"""

MINER_BATCH_SIZE = 100
"""Maximum minersPerBlock reads per multicall page"""

SCROLL_THRESHOLD = 0.2
"""Fraction of the viewport width left before older blocks are loaded"""

# Display
PLACEHOLDER = "..."
"""Text shown in place of an unknown metric"""

EXPLORER_ADDRESS_URL = "https://blastscan.io/address/"
"""Block explorer prefix for address links"""


__all__ = [
    "BACKWARD_PAGE",
    "DEFAULT_RPC_URL",
    "DEFAULT_TIMEOUT",
    "EXPLORER_ADDRESS_URL",
    "FORWARD_WINDOW",
    "HALVING_INTERVAL",
    "INITIAL_REWARD",
    "INIT_MAX_SUPPLY",
    "MINER_BATCH_SIZE",
    "PLACEHOLDER",
    "POLL_INTERVAL",
    "PRICE_REFRESH_INTERVAL",
    "PRICE_TIMEOUT",
    "SCROLL_THRESHOLD",
    "SECONDS_PER_BLOCK",
    "WEI_DECIMALS",
]
