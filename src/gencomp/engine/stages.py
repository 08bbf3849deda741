"""Pipeline stages over byte symbols (ints 0..255).

Every stage:
  encode(symbols) -> (rep, meta)     meta is JSON-able, goes in the header
  decode(rep, meta) -> symbols
  pack(rep, meta, sink)              only called on the last stage
  unpack(source, meta) -> rep

Transforms (bwt, mtf) return a symbol list as ``rep``; it stays in 0..255
(MTF ranks over the byte alphabet are bytes too), so they chain freely.

Packed layouts (MSB-first, through the bit port):
  bwt/mtf:     n x 8 bit
  lz77:        per token gamma(offset+1), gamma(length) if offset, 8 bit symbol
  lz78:        per token gamma(index+1), 8 bit symbol (omitted on an open end)
  lzw:         per code gamma(code+1)
  huffman/
  arithmetic:  the coder's own bit stream, ``nbits`` long
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from gencomp.core.bitstream import BitReader, BitSink, BitSource, BitWriter
from gencomp.core.elias import gamma_decode, gamma_encode
from gencomp.core.symbols import BYTE_ALPHABET
from gencomp.entropy.arithmetic import DEFAULT_PRECISION, ArithmeticEncoded, arithmetic_decode, arithmetic_encode
from gencomp.entropy.huffman import HuffmanEncoded, huffman_decode, huffman_encode
from gencomp.errors import CorruptRepresentation
from gencomp.lz.lz77 import LZ77Token, lz77_decode, lz77_encode
from gencomp.lz.lz78 import LZ78Token, lz78_decode, lz78_encode
from gencomp.lz.lzw import lzw_decode, lzw_encode
from gencomp.pipeline_spec import StageSpec
from gencomp.transform.bwt import bwt_decode, bwt_encode
from gencomp.transform.mtf import mtf_decode, mtf_encode


class Stage(Protocol):
    algo: str

    def encode(self, symbols: list[int]) -> tuple[Any, dict[str, Any]]: ...

    def decode(self, rep: Any, meta: dict[str, Any]) -> list[int]: ...

    def pack(self, rep: Any, meta: dict[str, Any], sink: BitSink) -> None: ...

    def unpack(self, source: BitSource, meta: dict[str, Any]) -> Any: ...


def meta_int(meta: dict[str, Any], key: str) -> int:
    v = meta.get(key)
    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
        raise CorruptRepresentation(f"stage meta: campo '{key}' mancante o non valido: {v!r}")
    return v


def _write_bytes(symbols: list[int], sink: BitSink) -> None:
    for s in symbols:
        sink.write_bits(s, 8)


def _read_bytes(source: BitSource, n: int) -> list[int]:
    return [source.read_bits(8) for _ in range(n)]


def _copy_bits(data: bytes, lastbits: int, sink: BitSink) -> None:
    r = BitReader(data, lastbits)
    while r.bits_remaining:
        sink.write_bit(r.read_bit())


def _take_bits(source: BitSource, nbits: int) -> tuple[bytes, int]:
    w = BitWriter()
    for _ in range(nbits):
        w.write_bit(source.read_bit())
    return w.flush(), w.lastbits


def _nbits(data: bytes, lastbits: int) -> int:
    if not data:
        return 0
    return len(data) * 8 - (8 - lastbits if lastbits else 0)


# -------------------
# Transforms
# -------------------
class BWTStage:
    algo = "bwt"

    def encode(self, symbols: list[int]) -> tuple[Any, dict[str, Any]]:
        res = bwt_encode(symbols)
        return res.sequence, {"n": len(res.sequence), "primary_index": res.primary_index}

    def decode(self, rep: Any, meta: dict[str, Any]) -> list[int]:
        return bwt_decode(rep, meta_int(meta, "primary_index"))

    def pack(self, rep: Any, meta: dict[str, Any], sink: BitSink) -> None:
        _write_bytes(rep, sink)

    def unpack(self, source: BitSource, meta: dict[str, Any]) -> Any:
        return _read_bytes(source, meta_int(meta, "n"))


class MTFStage:
    algo = "mtf"

    def encode(self, symbols: list[int]) -> tuple[Any, dict[str, Any]]:
        ranks = mtf_encode(symbols, BYTE_ALPHABET)
        return ranks, {"n": len(ranks)}

    def decode(self, rep: Any, meta: dict[str, Any]) -> list[int]:
        return mtf_decode(rep, BYTE_ALPHABET)

    def pack(self, rep: Any, meta: dict[str, Any], sink: BitSink) -> None:
        _write_bytes(rep, sink)

    def unpack(self, source: BitSource, meta: dict[str, Any]) -> Any:
        return _read_bytes(source, meta_int(meta, "n"))


# -------------------
# Dictionary coders
# -------------------
@dataclass
class LZ77Stage:
    window_size: int = 255
    max_length: int = 255
    search: str = "naive"
    algo: str = "lz77"

    def encode(self, symbols: list[int]) -> tuple[Any, dict[str, Any]]:
        tokens = lz77_encode(symbols, self.window_size, self.max_length, self.search)
        return tokens, {"n_tokens": len(tokens)}

    def decode(self, rep: Any, meta: dict[str, Any]) -> list[int]:
        return lz77_decode(rep, window_size=self.window_size)

    def pack(self, rep: Any, meta: dict[str, Any], sink: BitSink) -> None:
        for t in rep:
            gamma_encode(t.offset + 1, sink)
            if t.offset:
                gamma_encode(t.length, sink)
            sink.write_bits(t.next_symbol, 8)

    def unpack(self, source: BitSource, meta: dict[str, Any]) -> Any:
        out: list[LZ77Token] = []
        for _ in range(meta_int(meta, "n_tokens")):
            offset = gamma_decode(source) - 1
            length = gamma_decode(source) if offset else 0
            out.append(LZ77Token(offset, length, source.read_bits(8)))
        return out


@dataclass
class LZ78Stage:
    max_size: int | None = None
    overflow: str = "freeze"
    max_phrase: int | None = None
    algo: str = "lz78"

    def encode(self, symbols: list[int]) -> tuple[Any, dict[str, Any]]:
        tokens = lz78_encode(symbols, self.max_size, self.overflow, self.max_phrase)
        open_end = bool(tokens) and tokens[-1].symbol is None
        return tokens, {"n_tokens": len(tokens), "open_end": open_end}

    def decode(self, rep: Any, meta: dict[str, Any]) -> list[int]:
        return lz78_decode(rep, self.max_size, self.overflow)

    def pack(self, rep: Any, meta: dict[str, Any], sink: BitSink) -> None:
        for t in rep:
            gamma_encode(t.index + 1, sink)
            if t.symbol is not None:
                sink.write_bits(t.symbol, 8)

    def unpack(self, source: BitSource, meta: dict[str, Any]) -> Any:
        n = meta_int(meta, "n_tokens")
        open_end = bool(meta.get("open_end", False))
        out: list[LZ78Token] = []
        for i in range(n):
            index = gamma_decode(source) - 1
            if open_end and i == n - 1:
                out.append(LZ78Token(index, None))
            else:
                out.append(LZ78Token(index, source.read_bits(8)))
        return out


@dataclass
class LZWStage:
    max_size: int | None = None
    overflow: str = "freeze"
    max_phrase: int | None = None
    algo: str = "lzw"

    def encode(self, symbols: list[int]) -> tuple[Any, dict[str, Any]]:
        codes = lzw_encode(symbols, BYTE_ALPHABET, self.max_size, self.overflow, self.max_phrase)
        return codes, {"n_codes": len(codes)}

    def decode(self, rep: Any, meta: dict[str, Any]) -> list[int]:
        return lzw_decode(rep, BYTE_ALPHABET, self.max_size, self.overflow)

    def pack(self, rep: Any, meta: dict[str, Any], sink: BitSink) -> None:
        for code in rep:
            gamma_encode(code + 1, sink)

    def unpack(self, source: BitSource, meta: dict[str, Any]) -> Any:
        return [gamma_decode(source) - 1 for _ in range(meta_int(meta, "n_codes"))]


# -------------------
# Entropy coders
# -------------------
def _freq_from_meta(meta: dict[str, Any]) -> list[tuple[Any, int]]:
    rows = meta.get("freq")
    if not isinstance(rows, list):
        raise CorruptRepresentation("stage meta: campo 'freq' mancante")
    out = []
    for row in rows:
        if not isinstance(row, (list, tuple)) or len(row) != 2:
            raise CorruptRepresentation("stage meta: riga 'freq' malformata")
        sym, count = row
        if isinstance(sym, bool) or not isinstance(sym, int) or not (0 <= sym <= 255):
            raise CorruptRepresentation(f"stage meta: simbolo 'freq' fuori dal byte: {sym!r}")
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise CorruptRepresentation(f"stage meta: conteggio 'freq' non valido per {sym}: {count!r}")
        out.append((sym, count))
    return out


@dataclass
class HuffmanStage:
    tie_break: str = "symbol"
    canonical: bool = False
    algo: str = "huffman"

    def encode(self, symbols: list[int]) -> tuple[Any, dict[str, Any]]:
        enc = huffman_encode(symbols, tie_break=self.tie_break, canonical=self.canonical)
        meta = {
            "freq": [[s, f] for s, f in enc.freq],
            "n": enc.n,
            "nbits": _nbits(enc.bitstream, enc.lastbits),
        }
        return enc, meta

    def decode(self, rep: Any, meta: dict[str, Any]) -> list[int]:
        return huffman_decode(rep)

    def pack(self, rep: Any, meta: dict[str, Any], sink: BitSink) -> None:
        _copy_bits(rep.bitstream, rep.lastbits, sink)

    def unpack(self, source: BitSource, meta: dict[str, Any]) -> Any:
        data, lastbits = _take_bits(source, meta_int(meta, "nbits"))
        return HuffmanEncoded(
            freq=_freq_from_meta(meta),
            n=meta_int(meta, "n"),
            bitstream=data,
            lastbits=lastbits,
            tie_break=self.tie_break,
            canonical=self.canonical,
        )


@dataclass
class ArithmeticStage:
    precision: int = DEFAULT_PRECISION
    scaling: str = "scale"
    adaptive: bool = False
    algo: str = "arithmetic"

    def encode(self, symbols: list[int]) -> tuple[Any, dict[str, Any]]:
        enc = arithmetic_encode(
            symbols,
            precision=self.precision,
            scaling=self.scaling,
            adaptive=self.adaptive,
            alphabet=BYTE_ALPHABET if self.adaptive else None,
        )
        meta = {
            "freq": [[s, f] for s, f in enc.freq],
            "n": enc.n,
            "nbits": _nbits(enc.bitstream, enc.lastbits),
        }
        return enc, meta

    def decode(self, rep: Any, meta: dict[str, Any]) -> list[int]:
        return arithmetic_decode(rep)

    def pack(self, rep: Any, meta: dict[str, Any], sink: BitSink) -> None:
        _copy_bits(rep.bitstream, rep.lastbits, sink)

    def unpack(self, source: BitSource, meta: dict[str, Any]) -> Any:
        data, lastbits = _take_bits(source, meta_int(meta, "nbits"))
        return ArithmeticEncoded(
            freq=[] if self.adaptive else _freq_from_meta(meta),
            n=meta_int(meta, "n"),
            bitstream=data,
            lastbits=lastbits,
            precision=self.precision,
            scaling=self.scaling,
            adaptive=self.adaptive,
            alphabet=BYTE_ALPHABET if self.adaptive else (),
        )


STAGE_TYPES: dict[str, type] = {
    "bwt": BWTStage,
    "mtf": MTFStage,
    "lz77": LZ77Stage,
    "lz78": LZ78Stage,
    "lzw": LZWStage,
    "huffman": HuffmanStage,
    "arithmetic": ArithmeticStage,
}


def build_stage(spec: StageSpec) -> Stage:
    return STAGE_TYPES[spec.algo](**spec.options)
