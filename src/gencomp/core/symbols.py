"""Symbol model shared by every algorithm.

A symbol is any value that is hashable, equality-comparable and totally
ordered (ints, strings, tuples of those). ``bytes`` input is the default
alphabet: iterating a ``bytes`` object yields ints in ``0..255``.

The capability set is a Protocol, not a base class: nothing has to inherit
from it, it only documents what the algorithms rely on.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, TypeVar

from gencomp.errors import AlphabetMismatch, InvalidConfiguration


class SupportsSymbol(Protocol):
    def __hash__(self) -> int: ...

    def __eq__(self, other: Any, /) -> bool: ...

    def __lt__(self, other: Any, /) -> bool: ...


S = TypeVar("S", bound=SupportsSymbol)

BYTE_ALPHABET: tuple[int, ...] = tuple(range(256))


def byte_alphabet() -> tuple[int, ...]:
    return BYTE_ALPHABET


def sorted_alphabet(seq: Iterable[S]) -> tuple[S, ...]:
    """Distinct symbols of ``seq`` in ascending order."""
    return tuple(sorted(set(seq)))


def check_alphabet(alphabet: Iterable[S]) -> tuple[S, ...]:
    """Return the alphabet as a tuple, rejecting duplicates."""
    out = tuple(alphabet)
    if len(set(out)) != len(out):
        raise InvalidConfiguration("alphabet: duplicate symbols")
    return out


class AlphabetIndex:
    """Dense ``symbol -> 0..k-1`` mapping over an ordered alphabet."""

    __slots__ = ("symbols", "_index")

    def __init__(self, alphabet: Iterable[Any]):
        self.symbols = check_alphabet(alphabet)
        self._index = {s: i for i, s in enumerate(self.symbols)}

    def __len__(self) -> int:
        return len(self.symbols)

    def index(self, symbol: Any) -> int:
        try:
            return self._index[symbol]
        except KeyError:
            raise AlphabetMismatch(f"symbol {symbol!r} not in alphabet") from None
        except TypeError as err:
            raise AlphabetMismatch(f"symbol {symbol!r} is not hashable") from err

    def symbol(self, index: int) -> Any:
        return self.symbols[index]

