"""LZ78: incremental dictionary coder.

Each token is ``(index, symbol)``: the longest known phrase (0 = empty root)
followed by the first symbol that falls off the dictionary. The pair is
learned as a new phrase, so the dictionary grows by one entry per token.

If the input ends exactly on a known phrase the last token carries
``symbol=None`` and adds nothing.

With ``max_phrase`` the referenced phrase never grows past that many
symbols; the token that would extend it is emitted instead.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from gencomp.errors import InvalidToken
from gencomp.lz.dictionary import PhraseDictionary, check_max_phrase


@dataclass(frozen=True, slots=True)
class LZ78Token:
    index: int
    symbol: Any = None


def lz78_encode(
    seq: Sequence[Any],
    max_size: int | None = None,
    overflow: str = "freeze",
    max_phrase: int | None = None,
) -> list[LZ78Token]:
    cap = check_max_phrase(max_phrase)
    d = PhraseDictionary.with_root(max_size, overflow)
    out: list[LZ78Token] = []

    cur = 0
    for sym in seq:
        if cap is None or d.length(cur) < cap:
            nxt = d.lookup(cur, sym)
            if nxt is not None:
                cur = nxt
                continue
        out.append(LZ78Token(cur, sym))
        d.grow(cur, sym)
        cur = 0

    if cur != 0:
        out.append(LZ78Token(cur, None))
    return out


def lz78_decode(
    tokens: Sequence[LZ78Token], max_size: int | None = None, overflow: str = "freeze"
) -> list[Any]:
    """Rebuild the dictionary in encode order while replaying ``tokens``.

    ``max_size``/``overflow`` must match the encoder's.
    """
    d = PhraseDictionary.with_root(max_size, overflow)
    out: list[Any] = []
    last = len(tokens) - 1

    for pos, tok in enumerate(tokens):
        phrase = d.phrase(tok.index)
        if tok.symbol is None:
            if pos != last:
                raise InvalidToken(f"lz78: token {pos}: missing symbol before end of stream")
            if tok.index == 0:
                raise InvalidToken(f"lz78: token {pos}: empty token")
            out.extend(phrase)
            break
        out.extend(phrase)
        out.append(tok.symbol)
        d.grow(tok.index, tok.symbol)

    return out
