"""Domain models for balance lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..constants import BTC_DECIMALS, ETH_DECIMALS, LAMPORTS_PER_SOL_DECIMALS
from ..errors import BadRequest


class Chain(str, Enum):
    ETHEREUM = "ethereum"
    BITCOIN = "bitcoin"
    SOLANA = "solana"

    @property
    def ticker(self) -> str:
        return _TICKERS[self]

    @property
    def decimals(self) -> int:
        return _NATIVE_DECIMALS[self]


_TICKERS = {
    Chain.ETHEREUM: "ETH",
    Chain.BITCOIN: "BTC",
    Chain.SOLANA: "SOL",
}

_NATIVE_DECIMALS = {
    Chain.ETHEREUM: ETH_DECIMALS,
    Chain.BITCOIN: BTC_DECIMALS,
    Chain.SOLANA: LAMPORTS_PER_SOL_DECIMALS,
}


@dataclass(frozen=True)
class BalanceQuery:
    """A request for the holdings of one address on one chain."""

    chain: Chain
    address: str

    @property
    def cache_key(self) -> str:
        return f"{self.chain.value}:{self.address}"

    @classmethod
    def parse(cls, chain: str | None, address: str | None) -> BalanceQuery:
        """Build a query from raw request values.

        Raises:
            BadRequest: If either value is missing or the chain is unsupported.
        """
        if not chain or not address or not address.strip():
            raise BadRequest("Blockchain and address are required")
        try:
            parsed = Chain(chain.strip().lower())
        except ValueError:
            raise BadRequest(f"Unsupported blockchain: {chain}") from None
        return cls(chain=parsed, address=address.strip())


@dataclass(frozen=True)
class TokenMetadata:
    symbol: str
    name: str
    decimals: int
    logo: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "logo": self.logo,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenMetadata:
        return cls(
            symbol=data["symbol"],
            name=data["name"],
            decimals=int(data["decimals"]),
            logo=data.get("logo"),
        )


@dataclass(frozen=True)
class TokenBalance:
    """A token holding with its amount already divided by 10**decimals."""

    token_address: str
    balance: str
    name: str | None = None
    symbol: str | None = None
    usd_value: float | None = None
    price: float | None = None
    change: float | None = None
    logo: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tokenAddress": self.token_address,
            "name": self.name,
            "symbol": self.symbol,
            "balance": self.balance,
            "usdValue": self.usd_value,
            "price": self.price,
            "change": self.change,
            "logo": self.logo,
        }
        return {key: value for key, value in data.items() if value is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenBalance:
        return cls(
            token_address=data["tokenAddress"],
            balance=data["balance"],
            name=data.get("name"),
            symbol=data.get("symbol"),
            usd_value=data.get("usdValue"),
            price=data.get("price"),
            change=data.get("change"),
            logo=data.get("logo"),
        )


@dataclass(frozen=True)
class NormalizedBalance:
    """Native balance plus token holdings in discovery order."""

    native_balance: str
    tokens: list[TokenBalance] = field(default_factory=list)
    native_usd_value: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "nativeBalance": self.native_balance,
            "tokens": [token.to_dict() for token in self.tokens],
        }
        if self.native_usd_value is not None:
            data["nativeUsdValue"] = self.native_usd_value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NormalizedBalance:
        return cls(
            native_balance=data["nativeBalance"],
            tokens=[TokenBalance.from_dict(token) for token in data.get("tokens", [])],
            native_usd_value=data.get("nativeUsdValue"),
        )


@dataclass(frozen=True)
class PriceQuote:
    coin_id: str
    usd: float
    change_24h: float | None = None


@dataclass(frozen=True)
class MarketAsset:
    """A row of the market listing."""

    id: str
    symbol: str
    name: str
    price: float
    change: float | None = None
    image: str | None = None
    market_cap_rank: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "image": self.image,
            "marketCapRank": self.market_cap_rank,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MarketAsset:
        return cls(
            id=data["id"],
            symbol=data["symbol"],
            name=data["name"],
            price=float(data["price"]),
            change=data.get("change"),
            image=data.get("image"),
            market_cap_rank=data.get("marketCapRank"),
        )
