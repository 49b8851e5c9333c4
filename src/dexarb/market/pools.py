"""
Pool registry.

Concurrent store of pool identity and exchange-rate state, keyed by
pool address, together with the best-pool-per-directed-pair index
that the triangular search reads.
"""

from collections.abc import Iterable
from decimal import Decimal

from dexarb.core.errors import DuplicateKeyError, NotFoundError
from dexarb.core.types import LegQuote, Pool, Venue
from dexarb.market.tokens import TokenRegistry
from dexarb.strategy.graph import BestPoolIndex
from dexarb.utils.locks import ReadWriteLock


class PoolRegistry:
    """
    Thread-safe pool store with O(1) address lookups.

    Addresses are matched case-insensitively: configuration carries
    checksummed addresses while nodes report lower-case ones.

    Every amount write replaces both fields and refreshes the best-pool
    index under the same write lock, so readers never observe a pool
    whose index entry is stale.
    """

    __slots__ = ("_tokens", "_by_address", "_index", "_lock", "_update_count")

    def __init__(self, tokens: TokenRegistry) -> None:
        """
        Initialize empty registry.

        Args:
            tokens: Registry the pools' tokens must resolve in.
        """
        self._tokens = tokens
        self._by_address: dict[str, Pool] = {}
        self._index = BestPoolIndex()
        self._lock = ReadWriteLock()
        self._update_count = 0

    @classmethod
    def from_pools(cls, tokens: TokenRegistry, pools: Iterable[Pool]) -> "PoolRegistry":
        """
        Build a registry from a pool list.

        Raises:
            DuplicateKeyError: If two pools share an address.
            NotFoundError: If a pool references an unregistered token.
        """
        registry = cls(tokens)
        for pool in pools:
            registry.insert(pool)
        return registry

    def _check_tokens(self, pool: Pool) -> None:
        """Pool tokens must be the registry's own objects."""
        for token in (pool.token0, pool.token1):
            registered = self._tokens.lookup_by_symbol(token.symbol)
            if registered is not token:
                raise NotFoundError("token", "identity", token.symbol)

    def insert(self, pool: Pool) -> None:
        """
        Add a pool.

        Raises:
            DuplicateKeyError: If the address is already present.
            NotFoundError: If a token does not resolve in the TokenRegistry.
        """
        self._check_tokens(pool)
        key = pool.address.lower()

        with self._lock.write():
            if key in self._by_address:
                raise DuplicateKeyError("pool", "address", pool.address)
            self._by_address[key] = pool
            self._index.add_pool(pool)

    def remove(self, address: str) -> Pool:
        """
        Remove a pool by address.

        Raises:
            NotFoundError: If no pool has this address.
        """
        with self._lock.write():
            pool = self._by_address.pop(address.lower(), None)
            if pool is None:
                raise NotFoundError("pool", "address", address)
            self._index.remove_pool(pool)
            return pool

    def lookup_by_address(self, address: str) -> Pool:
        """
        Get a pool by address.

        Raises:
            NotFoundError: If no pool has this address.
        """
        with self._lock.read():
            pool = self._by_address.get(address.lower())
        if pool is None:
            raise NotFoundError("pool", "address", address)
        return pool

    def lookup_by_tokens_and_venue(self, symbol0: str, symbol1: str, venue: Venue) -> Pool:
        """
        Get the first registered pool trading a pair on a venue.

        Token order does not matter.

        Raises:
            NotFoundError: If no such pool exists.
        """
        with self._lock.read():
            for pool in self._index.pools_for(symbol0, symbol1):
                if pool.venue == venue:
                    return pool
        raise NotFoundError("pool", "pair", f"{symbol0}/{symbol1}@{venue.value}")

    def list_all(self) -> list[Pool]:
        """Point-in-time snapshot of all pools, in registration order."""
        with self._lock.read():
            return list(self._by_address.values())

    def update_amounts(
        self,
        address: str,
        amount_out_forward: Decimal,
        amount_out_backward: Decimal,
    ) -> Pool:
        """
        Overwrite a pool's unit-input outputs.

        Identical values leave the state unchanged.

        Raises:
            NotFoundError: If no pool has this address.
        """
        with self._lock.write():
            pool = self._by_address.get(address.lower())
            if pool is None:
                raise NotFoundError("pool", "address", address)
            pool.amount_out_forward = amount_out_forward
            pool.amount_out_backward = amount_out_backward
            self._index.refresh(pool)
            self._update_count += 1
            return pool

    def best_pool(self, from_symbol: str, to_symbol: str) -> LegQuote | None:
        """Get the pool with the highest output for selling `from` into `to`."""
        with self._lock.read():
            return self._index.best(from_symbol, to_symbol)

    def best_quotes(self) -> dict[tuple[str, str], LegQuote]:
        """Consistent snapshot of the best quote for every directed pair."""
        with self._lock.read():
            return self._index.snapshot()

    def find_triangles(self) -> list[tuple[str, str, str]]:
        """Cycles allowed by the registered pools, regardless of quotes."""
        with self._lock.read():
            return self._index.find_triangles()

    @property
    def update_count(self) -> int:
        """Get total amount updates applied."""
        return self._update_count

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str):
            return False
        with self._lock.read():
            return address.lower() in self._by_address

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._by_address)
