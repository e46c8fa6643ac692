"""Values tied to a bitcoin-protocol-compatible chain."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class Chain(enum.IntEnum):
    """Bitcoin-protocol-compatible chains; values are their wire tags."""

    BITCOIN = 0
    LIQUID = 1

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, order=True)
class Bp(Generic[T]):
    """A value bound to a chain (mainnet and testnets are not distinguished)."""

    chain: Chain
    value: T

    def __post_init__(self) -> None:
        if not isinstance(self.chain, Chain):
            object.__setattr__(self, "chain", Chain(self.chain))

    @classmethod
    def bitcoin(cls, value: T) -> Bp[T]:
        """Wrap ``value`` as belonging to the bitcoin blockchain."""
        return cls(Chain.BITCOIN, value)

    @classmethod
    def liquid(cls, value: T) -> Bp[T]:
        """Wrap ``value`` as belonging to the liquid blockchain."""
        return cls(Chain.LIQUID, value)

    def is_bitcoin(self) -> bool:
        return self.chain is Chain.BITCOIN

    def is_liquid(self) -> bool:
        return self.chain is Chain.LIQUID

    def as_bitcoin(self) -> Optional[T]:
        """The value if it belongs to bitcoin, otherwise None."""
        return self.value if self.is_bitcoin() else None

    def as_liquid(self) -> Optional[T]:
        """The value if it belongs to liquid, otherwise None."""
        return self.value if self.is_liquid() else None

    def map(self, f: Callable[[T], U]) -> Bp[U]:
        """Apply ``f`` to the value, keeping the chain."""
        return Bp(self.chain, f(self.value))

    def try_map(self, f: Callable[[T], U]) -> Bp[U]:
        """Apply ``f``, which may raise; its exception propagates unchanged."""
        result = f(self.value)
        return Bp(self.chain, result)

    def maybe_map(self, f: Callable[[T], Optional[U]]) -> Optional[Bp[U]]:
        """Apply ``f``; return None when it yields None."""
        result = f(self.value)
        if result is None:
            return None
        return Bp(self.chain, result)

    def __str__(self) -> str:
        return f"{self.chain}:{self.value}"