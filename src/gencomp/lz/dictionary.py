"""Phrase dictionary shared by LZ78 and LZW.

The trie is stored as an arena: entry ``code`` is ``(prefix_code, symbol)``
and a phrase is rebuilt by walking the prefix chain. No node references,
so the structure matches the token stream one to one.

Layouts:
  - LZ78: code 0 is the empty root, new phrases get 1, 2, ...
  - LZW:  codes 0..k-1 are the seeded alphabet (prefix None), new
          phrases get k, k+1, ...

Bounded growth (``max_size`` = total number of codes, root/seeds included):
  - "freeze": once full, ``grow`` is a no-op.
  - "reset":  once full, ``grow`` drops every learned phrase (back to the
              initial root/seeds) and does not add the new one.

Phrase cap (``max_phrase``, encoder side only): a phrase is not extended
past ``max_phrase`` symbols. The decoder never needs it, it just replays
the codes it is given.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from gencomp.errors import InvalidConfiguration, InvalidDictionaryReference

OVERFLOW_POLICIES = ("freeze", "reset")

_ROOT = object()


def check_max_phrase(max_phrase: int | None) -> int | None:
    if max_phrase is None:
        return None
    if isinstance(max_phrase, bool) or not isinstance(max_phrase, int) or max_phrase < 1:
        raise InvalidConfiguration(f"dictionary: max_phrase must be an int >= 1, got {max_phrase!r}")
    return max_phrase


class PhraseDictionary:
    __slots__ = ("_prefix", "_symbol", "_first", "_length", "_children", "_initial", "max_size", "overflow")

    def __init__(self, max_size: int | None = None, overflow: str = "freeze"):
        if overflow not in OVERFLOW_POLICIES:
            raise InvalidConfiguration(
                f"dictionary: unknown overflow policy {overflow!r} (expected one of {OVERFLOW_POLICIES})"
            )
        self.max_size = None if max_size is None else int(max_size)
        self.overflow = overflow
        self._prefix: list[int | None] = []
        self._symbol: list[Any] = []
        self._first: list[Any] = []
        self._length: list[int] = []
        self._children: dict[tuple[int | None, Any], int] = {}
        self._initial = 0

    # ---- construction ----

    @classmethod
    def with_root(cls, max_size: int | None = None, overflow: str = "freeze") -> "PhraseDictionary":
        """LZ78 layout: code 0 is the empty phrase."""
        if max_size is not None and int(max_size) < 2:
            raise InvalidConfiguration(f"lz78: max_size must be >= 2 (root + 1), got {max_size}")
        d = cls(max_size, overflow)
        d._prefix.append(None)
        d._symbol.append(_ROOT)
        d._first.append(_ROOT)
        d._length.append(0)
        d._initial = 1
        return d

    @classmethod
    def seeded(
        cls, alphabet: Iterable[Any], max_size: int | None = None, overflow: str = "freeze"
    ) -> "PhraseDictionary":
        """LZW layout: one single-symbol phrase per alphabet symbol."""
        d = cls(max_size, overflow)
        for s in alphabet:
            if (None, s) in d._children:
                raise InvalidConfiguration(f"lzw: duplicate symbol {s!r} in alphabet")
            d._append(None, s)
        d._initial = len(d._prefix)
        if d._initial == 0:
            raise InvalidConfiguration("lzw: empty alphabet")
        if max_size is not None and int(max_size) <= d._initial:
            raise InvalidConfiguration(
                f"lzw: max_size must exceed the alphabet size ({d._initial}), got {max_size}"
            )
        return d

    def _append(self, prefix: int | None, symbol: Any) -> int:
        code = len(self._prefix)
        self._prefix.append(prefix)
        self._symbol.append(symbol)
        if prefix is None or self._length[prefix] == 0:
            self._first.append(symbol)
            self._length.append(1)
        else:
            self._first.append(self._first[prefix])
            self._length.append(self._length[prefix] + 1)
        self._children[(prefix, symbol)] = code
        return code

    # ---- queries ----

    def __len__(self) -> int:
        return len(self._prefix)

    @property
    def next_code(self) -> int:
        return len(self._prefix)

    @property
    def is_full(self) -> bool:
        return self.max_size is not None and len(self._prefix) >= self.max_size

    def lookup(self, prefix: int | None, symbol: Any) -> int | None:
        return self._children.get((prefix, symbol))

    def length(self, code: int) -> int:
        self.check(code)
        return self._length[code]

    def check(self, code: int) -> None:
        if not (0 <= code < len(self._prefix)):
            raise InvalidDictionaryReference(
                f"dictionary: code {code} not defined yet (next code is {len(self._prefix)})"
            )

    def first_symbol(self, code: int) -> Any:
        self.check(code)
        return self._first[code]

    def phrase(self, code: int) -> list[Any]:
        """Symbols of ``code``, in order. The LZ78 root is the empty phrase."""
        self.check(code)
        out: list[Any] = []
        c: int | None = code
        while c is not None and self._symbol[c] is not _ROOT:
            out.append(self._symbol[c])
            c = self._prefix[c]
        out.reverse()
        return out

    # ---- growth ----

    def grow(self, prefix: int, symbol: Any) -> int | None:
        """Add ``phrase(prefix) + [symbol]`` under the overflow policy.

        Returns the new code, or None when nothing was added.
        """
        if self.is_full:
            if self.overflow == "reset":
                self._reset()
            return None
        return self._append(prefix, symbol)

    def _reset(self) -> None:
        keep = self._initial
        del self._prefix[keep:]
        del self._symbol[keep:]
        del self._first[keep:]
        del self._length[keep:]
        self._children = {
            key: code for key, code in self._children.items() if code < keep
        }
