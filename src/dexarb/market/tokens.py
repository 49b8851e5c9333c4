"""
Token registry.

Concurrent store of token identity keyed by symbol and by address.
Handed explicitly to every component that needs it; there is no
module-level instance.
"""

from collections.abc import Iterable
from decimal import Decimal

from dexarb.core.errors import DuplicateKeyError, NotFoundError
from dexarb.core.types import Token
from dexarb.utils.locks import ReadWriteLock


class TokenRegistry:
    """
    Thread-safe token store with O(1) lookups.

    Responsibilities:
    - Enforcing symbol and address uniqueness
    - Returning the shared Token objects (never copies)
    - Updating the gas fee estimate, the only mutable token field
    """

    __slots__ = ("_by_symbol", "_by_address", "_lock")

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._by_symbol: dict[str, Token] = {}
        self._by_address: dict[str, Token] = {}
        self._lock = ReadWriteLock()

    @classmethod
    def from_tokens(cls, tokens: Iterable[Token]) -> "TokenRegistry":
        """
        Build a registry from a token list.

        Raises:
            DuplicateKeyError: If two tokens share a symbol or address.
        """
        registry = cls()
        for token in tokens:
            registry.insert(token)
        return registry

    def insert(self, token: Token) -> None:
        """
        Add a token.

        Raises:
            DuplicateKeyError: If the symbol or address is already present.
        """
        address = token.address.lower()
        with self._lock.write():
            if token.symbol in self._by_symbol:
                raise DuplicateKeyError("token", "symbol", token.symbol)
            if address in self._by_address:
                raise DuplicateKeyError("token", "address", token.address)
            self._by_symbol[token.symbol] = token
            self._by_address[address] = token

    def remove(self, symbol: str) -> Token:
        """
        Remove a token by symbol.

        Raises:
            NotFoundError: If no token has this symbol.
        """
        with self._lock.write():
            token = self._by_symbol.pop(symbol, None)
            if token is None:
                raise NotFoundError("token", "symbol", symbol)
            del self._by_address[token.address.lower()]
            return token

    def lookup_by_symbol(self, symbol: str) -> Token:
        """
        Get a token by symbol.

        Raises:
            NotFoundError: If no token has this symbol.
        """
        with self._lock.read():
            token = self._by_symbol.get(symbol)
        if token is None:
            raise NotFoundError("token", "symbol", symbol)
        return token

    def lookup_by_address(self, address: str) -> Token:
        """
        Get a token by contract address (case-insensitive).

        Raises:
            NotFoundError: If no token has this address.
        """
        with self._lock.read():
            token = self._by_address.get(address.lower())
        if token is None:
            raise NotFoundError("token", "address", address)
        return token

    def list_all(self) -> list[Token]:
        """Point-in-time snapshot of all tokens."""
        with self._lock.read():
            return list(self._by_symbol.values())

    def symbols(self) -> list[str]:
        """Point-in-time snapshot of all token symbols."""
        with self._lock.read():
            return list(self._by_symbol)

    def update_gas_fee(self, symbol: str, gas_fee_estimate: Decimal | None) -> None:
        """
        Replace a token's gas fee estimate (in units of that token).

        Raises:
            NotFoundError: If no token has this symbol.
        """
        with self._lock.write():
            token = self._by_symbol.get(symbol)
            if token is None:
                raise NotFoundError("token", "symbol", symbol)
            token.gas_fee_estimate = gas_fee_estimate

    def __contains__(self, symbol: object) -> bool:
        with self._lock.read():
            return symbol in self._by_symbol

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._by_symbol)
