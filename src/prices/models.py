"""Pydantic models for price API responses."""

from pydantic import BaseModel, ConfigDict, Field


class CoinGeckoUsdPrice(BaseModel):
    """USD quote of one asset."""

    usd: float = Field(..., gt=0, description="Price in USD")


class CoinGeckoSimplePrice(BaseModel):
    """Response of CoinGecko /simple/price?ids=ethereum&vs_currencies=usd."""

    model_config = ConfigDict(extra="allow")

    ethereum: CoinGeckoUsdPrice


class CryptoComparePrice(BaseModel):
    """Response of CryptoCompare /data/price?fsym=ETH&tsyms=USD."""

    model_config = ConfigDict(extra="allow")

    usd: float = Field(..., gt=0, alias="USD", description="Price in USD")


__all__ = [
    "CoinGeckoSimplePrice",
    "CoinGeckoUsdPrice",
    "CryptoComparePrice",
]
