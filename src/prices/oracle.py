"""ETH/USD price from public APIs, CoinGecko first and CryptoCompare second."""

import httpx
from pydantic import ValidationError

from src.helpers.constants import PRICE_TIMEOUT
from src.helpers.http import fetch_json
from src.helpers.logging import get_logger
from src.prices.models import CoinGeckoSimplePrice, CryptoComparePrice


logger = get_logger(__name__)

COINGECKO_PRICE_URL = (
    "https://api.coingecko.com/api/v3/simple/price?ids=ethereum&vs_currencies=usd"
)
CRYPTOCOMPARE_PRICE_URL = "https://min-api.cryptocompare.com/data/price?fsym=ETH&tsyms=USD"


class PriceOracle:
    """Fetches the ETH/USD price with a fallback provider."""

    def __init__(self, http_client: httpx.AsyncClient, timeout: float = PRICE_TIMEOUT) -> None:
        self.http_client = http_client
        self.timeout = timeout

    async def fetch_coingecko(self) -> float | None:
        data = await fetch_json(self.http_client, COINGECKO_PRICE_URL, timeout=self.timeout)
        if data is None:
            return None
        try:
            return CoinGeckoSimplePrice.model_validate(data).ethereum.usd
        except ValidationError as e:
            logger.warning("Invalid CoinGecko response: %s", e)
            return None

    async def fetch_cryptocompare(self) -> float | None:
        data = await fetch_json(
            self.http_client, CRYPTOCOMPARE_PRICE_URL, timeout=self.timeout
        )
        if data is None:
            return None
        try:
            return CryptoComparePrice.model_validate(data).usd
        except ValidationError as e:
            logger.warning("Invalid CryptoCompare response: %s", e)
            return None

    async def get_eth_price(self) -> float | None:
        """Get the ETH price in USD.

        Returns:
            Price from CoinGecko, else from CryptoCompare, else None
        """
        price = await self.fetch_coingecko()
        if price is not None:
            return price

        logger.warning("CoinGecko API failed, falling back to CryptoCompare")
        price = await self.fetch_cryptocompare()
        if price is not None:
            return price

        logger.error("Both price APIs failed")
        return None


__all__ = [
    "COINGECKO_PRICE_URL",
    "CRYPTOCOMPARE_PRICE_URL",
    "PriceOracle",
]
