"""Huffman coding over any symbol alphabet.

Tie-break (fixed, shared by encoder and decoder):
  heap key = (weight, order)
  - leaves: order = position in the frequency table
      "symbol":           table sorted by ascending symbol
      "first_occurrence": table in order of first appearance
  - internal nodes: order = len(table), len(table)+1, ... in creation order
  The first node popped becomes the 0 branch, the second the 1 branch.

A table with a single symbol gets the one-bit code "0".
The decoder only needs the frequency table (same order) and the symbol count.
"""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Optional

from gencomp.core.bitstream import BitReader, BitSink, BitSource, BitWriter
from gencomp.errors import (
    AlphabetMismatch,
    CorruptRepresentation,
    InvalidConfiguration,
    InvalidToken,
    TruncatedStream,
)

TIE_BREAKS = ("symbol", "first_occurrence")

FrequencyTable = list[tuple[Any, int]]


# -------------------
# Strutture di base Huffman
# -------------------
@dataclass
class HuffmanNode:
    weight: int
    order: int
    symbol: Any = None
    left: Optional["HuffmanNode"] = None
    right: Optional["HuffmanNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def _check_tie_break(tie_break: str) -> None:
    if tie_break not in TIE_BREAKS:
        raise InvalidConfiguration(
            f"huffman: unknown tie_break {tie_break!r} (expected one of {TIE_BREAKS})"
        )


def frequency_table(seq: Iterable[Any], order: str = "symbol") -> FrequencyTable:
    _check_tie_break(order)
    counts: dict[Any, int] = {}
    for s in seq:
        counts[s] = counts.get(s, 0) + 1
    if order == "symbol":
        return sorted(counts.items(), key=lambda kv: kv[0])
    return list(counts.items())


def check_frequency_table(freq: Iterable[tuple[Any, int]]) -> FrequencyTable:
    table = [(s, f) for s, f in freq]
    seen: set[Any] = set()
    for s, f in table:
        if not isinstance(f, int) or isinstance(f, bool) or f <= 0:
            raise InvalidConfiguration(f"frequency table: count for {s!r} must be a positive int, got {f!r}")
        if s in seen:
            raise InvalidConfiguration(f"frequency table: duplicate symbol {s!r}")
        seen.add(s)
    return table


def build_huffman_tree(freq: Sequence[tuple[Any, int]]) -> HuffmanNode | None:
    heap: list[tuple[int, int, HuffmanNode]] = []
    for order, (sym, f) in enumerate(freq):
        heapq.heappush(heap, (f, order, HuffmanNode(weight=f, order=order, symbol=sym)))

    if not heap:
        return None
    if len(heap) == 1:
        return heap[0][2]

    counter = itertools.count(len(heap))
    while len(heap) > 1:
        f1, _, n1 = heapq.heappop(heap)
        f2, _, n2 = heapq.heappop(heap)
        parent = HuffmanNode(weight=f1 + f2, order=next(counter), left=n1, right=n2)
        heapq.heappush(heap, (parent.weight, parent.order, parent))

    return heap[0][2]


def build_code_table(root: HuffmanNode | None) -> dict[Any, tuple[int, int]]:
    """symbol -> (code value, code width), from the root-to-leaf paths."""
    if root is None:
        return {}
    if root.is_leaf:
        return {root.symbol: (0, 1)}

    codes: dict[Any, tuple[int, int]] = {}
    stack: list[tuple[HuffmanNode, int, int]] = [(root, 0, 0)]
    while stack:
        node, value, width = stack.pop()
        if node.is_leaf:
            codes[node.symbol] = (value, width)
            continue
        if node.right is not None:
            stack.append((node.right, (value << 1) | 1, width + 1))
        if node.left is not None:
            stack.append((node.left, value << 1, width + 1))
    return codes


def canonical_code_table(lengths: dict[Any, int]) -> dict[Any, tuple[int, int]]:
    """Canonical codes: sort by (length, symbol), count upwards."""
    items = sorted(lengths.items(), key=lambda kv: (kv[1], kv[0]))
    out: dict[Any, tuple[int, int]] = {}
    code = 0
    prev_len = 0
    for sym, length in items:
        code <<= length - prev_len
        out[sym] = (code, length)
        code += 1
        prev_len = length
    return out


def _trie_from_codes(codes: dict[Any, tuple[int, int]]) -> HuffmanNode | None:
    if not codes:
        return None
    root = HuffmanNode(weight=0, order=0)
    for sym, (value, width) in codes.items():
        node = root
        for shift in range(width - 1, -1, -1):
            if (value >> shift) & 1:
                if node.right is None:
                    node.right = HuffmanNode(weight=0, order=0)
                node = node.right
            else:
                if node.left is None:
                    node.left = HuffmanNode(weight=0, order=0)
                node = node.left
        node.symbol = sym
    return root


class HuffmanCode:
    """Code table + decode trie derived from one frequency table."""

    def __init__(self, freq: Iterable[tuple[Any, int]], tie_break: str = "symbol", canonical: bool = False):
        _check_tie_break(tie_break)
        table = check_frequency_table(freq)
        if tie_break == "symbol":
            table.sort(key=lambda kv: kv[0])
        self.freq: FrequencyTable = table
        self.tie_break = tie_break
        self.canonical = bool(canonical)
        self.root = build_huffman_tree(table)

        codes = build_code_table(self.root)
        if self.canonical:
            codes = canonical_code_table({s: w for s, (_, w) in codes.items()})
        self.codes = codes
        self._trie = _trie_from_codes(codes)

    def code_lengths(self) -> dict[Any, int]:
        return {s: w for s, (_, w) in self.codes.items()}

    def encoded_bits(self) -> int:
        """Total bits for the block the table was counted on."""
        return sum(f * self.codes[s][1] for s, f in self.freq)

    def encode_symbols(self, seq: Iterable[Any], sink: BitSink) -> None:
        codes = self.codes
        for s in seq:
            try:
                value, width = codes[s]
            except KeyError:
                raise AlphabetMismatch(f"huffman: symbol {s!r} not in frequency table") from None
            sink.write_bits(value, width)

    def decode_symbols(self, source: BitSource, n: int) -> list[Any]:
        if n < 0:
            raise CorruptRepresentation(f"huffman: negative symbol count {n}")
        if n == 0:
            return []
        if self._trie is None:
            raise CorruptRepresentation(f"huffman: {n} symbols expected but the frequency table is empty")

        out: list[Any] = []
        for _ in range(n):
            node = self._trie
            while not node.is_leaf:
                try:
                    bit = source.read_bit()
                except TruncatedStream as err:
                    raise TruncatedStream(
                        f"huffman: bit stream ended after {len(out)} of {n} symbols"
                    ) from err
                nxt = node.right if bit else node.left
                if nxt is None:
                    raise InvalidToken(f"huffman: invalid code at symbol {len(out)}")
                node = nxt
            out.append(node.symbol)
        return out


@dataclass(frozen=True)
class HuffmanEncoded:
    freq: FrequencyTable
    n: int
    bitstream: bytes
    lastbits: int
    tie_break: str = "symbol"
    canonical: bool = False


def huffman_encode(
    seq: Sequence[Any],
    tie_break: str = "symbol",
    canonical: bool = False,
    freq: Iterable[tuple[Any, int]] | None = None,
) -> HuffmanEncoded:
    """Count (unless ``freq`` is given), build the code, pack MSB-first."""
    table = frequency_table(seq, tie_break) if freq is None else list(freq)
    code = HuffmanCode(table, tie_break=tie_break, canonical=canonical)
    w = BitWriter()
    code.encode_symbols(seq, w)
    return HuffmanEncoded(
        freq=code.freq,
        n=len(seq),
        bitstream=w.flush(),
        lastbits=w.lastbits,
        tie_break=tie_break,
        canonical=code.canonical,
    )


def huffman_decode(enc: HuffmanEncoded) -> list[Any]:
    code = HuffmanCode(enc.freq, tie_break=enc.tie_break, canonical=enc.canonical)
    try:
        source = BitReader(enc.bitstream, enc.lastbits)
    except ValueError as e:
        raise CorruptRepresentation(f"huffman: {e}") from e
    return code.decode_symbols(source, enc.n)
