"""Upstream endpoints, program ids and reference constants."""

from typing import TypedDict


class TokenListEntry(TypedDict, total=False):
    """Single entry of the public Solana token list."""

    chainId: int
    address: str
    symbol: str
    name: str
    decimals: int
    logoURI: str


ETH_DECIMALS = 18
BTC_DECIMALS = 8
LAMPORTS_PER_SOL_DECIMALS = 9

ALCHEMY_ETH_URL_TEMPLATE = "https://eth-{network}.g.alchemy.com/v2/{api_key}"
DEFAULT_BLOCKCYPHER_API_URL = "https://api.blockcypher.com/v1/btc/main"
DEFAULT_COINGECKO_API_URL = "https://api.coingecko.com/api/v3"
DEFAULT_SOLANA_TOKEN_LIST_URL = (
    "https://raw.githubusercontent.com/solana-labs/token-list/main/src/tokens/"
    "solana.tokenlist.json"
)

# https://spl.solana.com/token and https://spl.solana.com/token-2022
SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
SOLANA_TOKEN_PROGRAMS: tuple[str, ...] = (SPL_TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID)
SOLANA_COMMITMENT = "confirmed"

UNKNOWN_TOKEN_SYMBOL = "Unknown"
UNKNOWN_TOKEN_NAME = "Unknown Token"
UNKNOWN_SOLANA_TOKEN_DECIMALS = 9

# Cache TTLs in seconds
BALANCE_CACHE_TTL = 120
PRICE_CACHE_TTL = 60
TOKEN_LIST_CACHE_TTL = 3600
TOKEN_METADATA_CACHE_TTL = 3600
MARKET_DATA_CACHE_TTL = 300
CACHE_MAX_ENTRIES = 4096

SOLANA_TOKEN_LIST_CACHE_KEY = "solana:token-list"

# Symbol -> CoinGecko coin id
COINGECKO_IDS: dict[str, str] = {
    "ETH": "ethereum",
    "WETH": "weth",
    "STETH": "staked-ether",
    "WSTETH": "wrapped-steth",
    "BTC": "bitcoin",
    "WBTC": "wrapped-bitcoin",
    "SOL": "solana",
    "WSOL": "wrapped-solana",
    "MSOL": "msol",
    "USDC": "usd-coin",
    "USDT": "tether",
    "DAI": "dai",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "AAVE": "aave",
    "SHIB": "shiba-inu",
    "PEPE": "pepe",
    "BONK": "bonk",
    "JUP": "jupiter-exchange-solana",
    "RAY": "raydium",
}
