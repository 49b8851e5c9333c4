"""
Static market configuration: the tokens and pools to watch.

Markets are loaded once at startup, either from a JSON file or from the
built-in Polygon list, and turned into populated registries.
"""

from decimal import Decimal
from pathlib import Path

import orjson
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from dexarb.config.constants import FEE_UNITS_DENOMINATOR
from dexarb.core.types import Pool, Token, Venue
from dexarb.market.pools import PoolRegistry
from dexarb.market.tokens import TokenRegistry


class TokenConfig(BaseModel):
    """Token entry."""

    symbol: str = Field(..., min_length=1)
    address: str
    decimals: int = Field(..., ge=0, le=36)
    holdable: bool = False
    gas_fee_estimate: Decimal | None = None

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Require a 20-byte hex address."""
        if not (v.startswith("0x") and len(v) == 42):
            raise ValueError(f"invalid address {v!r}")
        int(v, 16)
        return v

    def to_token(self) -> Token:
        return Token(
            symbol=self.symbol,
            address=self.address,
            decimals=self.decimals,
            holdable=self.holdable,
            gas_fee_estimate=self.gas_fee_estimate,
        )


class PoolConfig(BaseModel):
    """Pool entry; tokens are referenced by symbol."""

    address: str
    venue: Venue
    fee: int = Field(..., ge=0, lt=FEE_UNITS_DENOMINATOR)
    token0: str
    token1: str
    router_address: str | None = None

    @model_validator(mode="after")
    def validate_pair(self) -> "PoolConfig":
        """A pool trades two different tokens."""
        if self.token0 == self.token1:
            raise ValueError(f"pool {self.address} pairs {self.token0} with itself")
        return self


class MarketsConfig(BaseModel):
    """Complete market definition."""

    tokens: list[TokenConfig]
    pools: list[PoolConfig]

    @model_validator(mode="after")
    def validate_pool_tokens(self) -> "MarketsConfig":
        """Every pool must reference declared tokens."""
        symbols = {token.symbol for token in self.tokens}
        for pool in self.pools:
            missing = {pool.token0, pool.token1} - symbols
            if missing:
                raise ValueError(
                    f"pool {pool.address} references undeclared tokens {sorted(missing)}"
                )
        return self


def load_markets(path: Path | None = None) -> MarketsConfig:
    """
    Load markets from a JSON file, or the built-in Polygon list.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or fails validation.
    """
    if path is None:
        return POLYGON_MARKETS

    try:
        raw = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e

    try:
        return MarketsConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"invalid markets file {path}: {e}") from e


def build_registries(config: MarketsConfig) -> tuple[TokenRegistry, PoolRegistry]:
    """
    Populate the token and pool registries.

    Raises:
        DuplicateKeyError: If a token symbol/address or pool address repeats.
    """
    tokens = TokenRegistry.from_tokens(entry.to_token() for entry in config.tokens)

    pools = PoolRegistry.from_pools(
        tokens,
        (
            Pool(
                address=entry.address,
                venue=entry.venue,
                fee_units=entry.fee,
                token0=tokens.lookup_by_symbol(entry.token0),
                token1=tokens.lookup_by_symbol(entry.token1),
                router_address=entry.router_address,
            )
            for entry in config.pools
        ),
    )

    return tokens, pools


# =============================================================================
# Built-in Polygon Markets
# =============================================================================

UNISWAP_V3_ROUTER = "0x68b3465833fb72a70ecdf485e0e4c7bd8665fc45"
QUICKSWAP_V3_ROUTER = "0xf5b509bB0909a69B1c207E495f687a596C168E12"


def _uni(address: str, fee: int, token0: str, token1: str) -> PoolConfig:
    return PoolConfig(
        address=address,
        venue=Venue.UNISWAP_V3,
        fee=fee,
        token0=token0,
        token1=token1,
        router_address=UNISWAP_V3_ROUTER,
    )


def _quick(address: str, fee: int, token0: str, token1: str) -> PoolConfig:
    return PoolConfig(
        address=address,
        venue=Venue.QUICKSWAP_V3,
        fee=fee,
        token0=token0,
        token1=token1,
        router_address=QUICKSWAP_V3_ROUTER,
    )


POLYGON_MARKETS = MarketsConfig(
    tokens=[
        TokenConfig(symbol="WBTC", address="0x1BFD67037B42Cf73acF2047067bd4F2C47D9BfD6", decimals=8),
        TokenConfig(symbol="WETH", address="0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619", decimals=18),
        TokenConfig(
            symbol="USDC",
            address="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
            decimals=6,
            holdable=True,
        ),
        TokenConfig(
            symbol="USDT",
            address="0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
            decimals=6,
            holdable=True,
        ),
        TokenConfig(symbol="WPOL", address="0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270", decimals=18),
        TokenConfig(
            symbol="DAI",
            address="0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063",
            decimals=18,
            holdable=True,
        ),
        TokenConfig(symbol="LINK", address="0x53E0bca35eC356BD5ddDFebbD1Fc0fD03FaBad39", decimals=18),
    ],
    pools=[
        _uni("0x50eaEDB835021E4A108B7290636d62E9765cc6d7", 500, "WBTC", "WETH"),
        _uni("0x32FAE204835e08b9374493d6B4628FD1F87DD045", 500, "WBTC", "USDC"),
        _uni("0x167384319B41F7094e62f7506409Eb38079AbfF8", 3000, "WPOL", "WETH"),
        _uni("0xA4D8c89f0c20efbe54cBa9e7e7a7E509056228D9", 500, "USDC", "WETH"),
        _uni("0x86f1d8390222a3691c28938ec7404a1661e618e0", 500, "WPOL", "WETH"),
        _uni("0x9b08288c3be4f62bbf8d1c20ac9c5e6f9467d8b7", 500, "WPOL", "USDT"),
        _uni("0xb6e57ed85c4c9dbfef2a68711e9d6f36c56e0fcb", 500, "WPOL", "USDC"),
        _uni("0x6b75F2189F0E11C52e814E09e280eb1a9A8A094a", 500, "WPOL", "WBTC"),
        _uni("0x0f663c16Dd7C65cF87eDB9229464cA77aEea536b", 500, "WPOL", "DAI"),
        _uni("0x0A28C2F5E0E8463E047C203F00F649812aE67E4f", 500, "WPOL", "LINK"),
        _uni("0x052C9b8f41f3855225495E78532aaAD0f22a925C", 500, "USDC", "LINK"),
        # Algebra fees float on-chain; these are snapshots
        _quick("0xdb975b96828352880409e86d5aE93c23c924f812", 1081, "WBTC", "USDC"),
        _quick("0xa6AeDF7c4Ed6e821E67a6BfD56FD1702aD9a9719", 888, "USDC", "WETH"),
        _quick("0x6669B4706cC152F359e947BCa68E263A87c52634", 1419, "WPOL", "USDC"),
        _quick("0xc10a06863f858f67C2Cd46F1675eE029D3F7acd8", 14913, "USDC", "LINK"),
        _quick("0x479e1b71a702a595e19b6d5932cd5c863ab57ee0", 900, "WPOL", "WETH"),
        _quick("0xac4494e30a85369e332bdb5230d6d694d4259dbc", 478, "WBTC", "WETH"),
        _quick("0x5b41eedcfc8e0ae47493d4945aa1ae4fe05430ff", 1419, "WPOL", "USDT"),
        _quick("0x9ceff2f5138fc59eb925d270b8a7a9c02a1810f2", 887, "WETH", "USDT"),
        _quick("0xab52931301078e2405c3a3ebb86e11ad0dfd2cfd", 2885, "LINK", "WETH"),
    ],
)
