"""LZ77: sliding-window longest-match tokenizer.

Tokens are ``(offset, length, next_symbol)``:
  - match:   1 <= offset <= window_size, length >= 1
  - literal: offset = 0, length = 0

``next_symbol`` is always present, so every token makes progress.
Matches may run into the lookahead (offset < length), which is how runs
are encoded; decode copies symbol by symbol so that works on the way back.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from gencomp.errors import InvalidConfiguration, InvalidToken

SEARCH_STRATEGIES = ("naive", "hash")


@dataclass(frozen=True, slots=True)
class LZ77Token:
    offset: int
    length: int
    next_symbol: Any

    @property
    def is_literal(self) -> bool:
        return self.length == 0


def _check_config(window_size: int, max_length: int, search: str) -> None:
    if int(window_size) < 1:
        raise InvalidConfiguration(f"lz77: window_size must be >= 1, got {window_size}")
    if int(max_length) < 1:
        raise InvalidConfiguration(f"lz77: max_length must be >= 1, got {max_length}")
    if search not in SEARCH_STRATEGIES:
        raise InvalidConfiguration(
            f"lz77: unknown search strategy {search!r} (expected one of {SEARCH_STRATEGIES})"
        )


def _match_length(seq: Sequence[Any], j: int, i: int, limit: int) -> int:
    k = 0
    while k < limit and seq[j + k] == seq[i + k]:
        k += 1
    return k


def _longest_match_naive(
    seq: Sequence[Any], i: int, window_size: int, limit: int
) -> tuple[int, int]:
    # nearest candidate first; only a strictly longer match replaces it
    best_off, best_len = 0, 0
    for j in range(i - 1, max(0, i - window_size) - 1, -1):
        k = _match_length(seq, j, i, limit)
        if k > best_len:
            best_off, best_len = i - j, k
            if k == limit:
                break
    return best_off, best_len


class _HashChains:
    """Positions of each symbol seen so far, most recent last."""

    def __init__(self) -> None:
        self._chains: dict[Any, list[int]] = {}

    def add(self, symbol: Any, pos: int) -> None:
        self._chains.setdefault(symbol, []).append(pos)

    def candidates(self, symbol: Any, lowest: int):
        chain = self._chains.get(symbol)
        if not chain:
            return
        for idx in range(len(chain) - 1, -1, -1):
            pos = chain[idx]
            if pos < lowest:
                # older entries can never come back into the window
                del chain[: idx + 1]
                return
            yield pos


def _longest_match_hash(
    seq: Sequence[Any], i: int, window_size: int, limit: int, chains: _HashChains
) -> tuple[int, int]:
    best_off, best_len = 0, 0
    for j in chains.candidates(seq[i], i - window_size):
        k = _match_length(seq, j, i, limit)
        if k > best_len:
            best_off, best_len = i - j, k
            if k == limit:
                break
    return best_off, best_len


def lz77_encode(
    seq: Sequence[Any],
    window_size: int = 255,
    max_length: int = 255,
    search: str = "naive",
) -> list[LZ77Token]:
    """Tokenize ``seq``.

    ``search`` picks the match finder: "naive" scans the whole window,
    "hash" only visits positions that start with the same symbol. Both
    return the same tokens (longest match, nearest offset on ties).
    """
    _check_config(window_size, max_length, search)
    window_size = int(window_size)
    max_length = int(max_length)

    n = len(seq)
    out: list[LZ77Token] = []
    chains = _HashChains() if search == "hash" else None

    i = 0
    while i < n:
        # leave one symbol for next_symbol
        limit = min(max_length, n - i - 1)
        if limit <= 0:
            off, length = 0, 0
        elif chains is not None:
            off, length = _longest_match_hash(seq, i, window_size, limit, chains)
        else:
            off, length = _longest_match_naive(seq, i, window_size, limit)

        out.append(LZ77Token(off, length, seq[i + length]))

        if chains is not None:
            for p in range(i, i + length + 1):
                chains.add(seq[p], p)
        i += length + 1

    return out


def lz77_decode(tokens: Sequence[LZ77Token], window_size: int | None = None) -> list[Any]:
    """Replay ``tokens``.

    With ``window_size`` set, offsets beyond the window are rejected too.
    """
    if window_size is not None and int(window_size) < 1:
        raise InvalidConfiguration(f"lz77: window_size must be >= 1, got {window_size}")

    out: list[Any] = []
    for pos, tok in enumerate(tokens):
        offset, length = tok.offset, tok.length
        if offset < 0 or length < 0:
            raise InvalidToken(f"lz77: token {pos}: negative offset/length ({offset}, {length})")
        if length > 0 and offset == 0:
            raise InvalidToken(f"lz77: token {pos}: match of length {length} with offset 0")
        if offset > len(out):
            raise InvalidToken(
                f"lz77: token {pos}: offset {offset} exceeds decoded length {len(out)}"
            )
        if window_size is not None and offset > window_size:
            raise InvalidToken(
                f"lz77: token {pos}: offset {offset} exceeds window size {window_size}"
            )
        start = len(out) - offset
        for k in range(length):
            out.append(out[start + k])
        out.append(tok.next_symbol)
    return out
