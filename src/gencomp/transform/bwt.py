"""Burrows-Wheeler transform.

Forward: sort every cyclic rotation of the block (stable: equal rotations
keep start-index order), emit the last column and the row holding the
unrotated input.

    "banana" -> ("nnbaaa", 3)

Inverse: the i-th occurrence of a symbol in the last column is the i-th
occurrence of that symbol in the first column (stable counting sort), which
gives the row of the rotation starting one symbol later. Walking that
permutation from ``primary_index`` spells the input.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from gencomp.errors import InvalidIndex


@dataclass(frozen=True, slots=True)
class BWTResult:
    sequence: list[Any]
    primary_index: int


def sorted_rotations(seq: Sequence[Any]) -> list[int]:
    """Start offsets of the rotations of ``seq`` in sorted order.

    Prefix doubling: after the round with step k, ``rank`` orders rotations
    by their first 2k symbols. Python's sort is stable and each round sorts
    the previous order, so fully equal rotations stay in start-index order.
    """
    n = len(seq)
    if n == 0:
        return []

    alpha = {s: i for i, s in enumerate(sorted(set(seq)))}
    rank = [alpha[s] for s in seq]
    order = list(range(n))

    k = 1
    while True:
        rk = rank
        step = k

        def key(i: int) -> tuple[int, int]:
            return rk[i], rk[(i + step) % n]

        order.sort(key=key)

        new_rank = [0] * n
        r = 0
        prev = key(order[0])
        for idx in range(1, n):
            cur = key(order[idx])
            if cur != prev:
                r += 1
                prev = cur
            new_rank[order[idx]] = r
        rank = new_rank

        if r == n - 1 or 2 * k >= n:
            break
        k *= 2

    return order


def bwt_encode(seq: Sequence[Any]) -> BWTResult:
    n = len(seq)
    if n == 0:
        return BWTResult([], 0)
    order = sorted_rotations(seq)
    last = [seq[(start - 1) % n] for start in order]
    return BWTResult(last, order.index(0))


def _check_primary(n: int, primary_index: int) -> None:
    if n == 0:
        if primary_index != 0:
            raise InvalidIndex(f"bwt: primary_index {primary_index} for an empty block")
        return
    if not (0 <= primary_index < n):
        raise InvalidIndex(f"bwt: primary_index {primary_index} outside 0..{n - 1}")


def bwt_decode(sequence: Sequence[Any], primary_index: int) -> list[Any]:
    n = len(sequence)
    _check_primary(n, primary_index)
    if n == 0:
        return []

    counts: dict[Any, int] = {}
    for s in sequence:
        counts[s] = counts.get(s, 0) + 1

    # first row of each symbol in the (sorted) first column
    slot: dict[Any, int] = {}
    total = 0
    for s in sorted(counts):
        slot[s] = total
        total += counts[s]

    nxt = [0] * n
    for i, s in enumerate(sequence):
        nxt[slot[s]] = i
        slot[s] += 1

    out: list[Any] = []
    row = primary_index
    for _ in range(n):
        row = nxt[row]
        out.append(sequence[row])
    return out


def bwt_decode_naive(sequence: Sequence[Any], primary_index: int) -> list[Any]:
    """Rebuild the whole rotation matrix column by column. O(n^2 log n).

    Reference implementation for tests, not for real blocks.
    """
    n = len(sequence)
    _check_primary(n, primary_index)
    rows: list[tuple[Any, ...]] = [()] * n
    for _ in range(n):
        rows = sorted((sequence[i],) + rows[i] for i in range(n))
    return list(rows[primary_index]) if n else []
