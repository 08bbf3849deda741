"""Move-to-Front transform.

Both sides start from the same ordered list (``alphabet``). A mismatch in
that initial order does not raise by itself: it silently yields the wrong
symbols, which is why the ordering is always passed explicitly.

Example (alphabet "ehlo"):  "hello" -> [1, 1, 2, 0, 3]
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from gencomp.core.symbols import check_alphabet
from gencomp.errors import AlphabetMismatch, InvalidIndex


def mtf_encode(seq: Iterable[Any], alphabet: Iterable[Any]) -> list[int]:
    order = list(check_alphabet(alphabet))
    out: list[int] = []
    for sym in seq:
        try:
            rank = order.index(sym)
        except ValueError:
            raise AlphabetMismatch(f"mtf: symbol {sym!r} not in the initial ordering") from None
        out.append(rank)
        if rank:
            del order[rank]
            order.insert(0, sym)
    return out


def mtf_decode(ranks: Sequence[int], alphabet: Iterable[Any]) -> list[Any]:
    order = list(check_alphabet(alphabet))
    out: list[Any] = []
    for pos, rank in enumerate(ranks):
        if not (0 <= rank < len(order)):
            raise InvalidIndex(f"mtf: rank {pos}: {rank} outside 0..{len(order) - 1}")
        sym = order[rank]
        out.append(sym)
        if rank:
            del order[rank]
            order.insert(0, sym)
    return out
