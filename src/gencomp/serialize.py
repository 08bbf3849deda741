"""Structural (de)serialization of algorithm outputs.

Interchange form = plain JSON-compatible dict:

    {"kind": "lz77", "tokens": [[offset, length, symbol], ...]}
    {"kind": "lz78", "tokens": [[index, symbol_or_null], ...]}
    {"kind": "lzw",  "codes": [...]}
    {"kind": "mtf",  "ranks": [...]}
    {"kind": "bwt",  "sequence": [...], "primary_index": p}
    {"kind": "huffman", "freq": [[sym, count], ...], "n": .., "bitstream": <bytes>, ...}
    {"kind": "arithmetic", ... same shape as huffman + model options ...}

Values JSON cannot carry natively are tagged:
    bytes -> {"__t": "bytes", "b64": "..."}
    tuple -> {"__t": "tuple", "items": [...]}
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from gencomp.entropy.arithmetic import ArithmeticEncoded
from gencomp.entropy.huffman import HuffmanEncoded
from gencomp.errors import CorruptRepresentation
from gencomp.lz.lz77 import LZ77Token
from gencomp.lz.lz78 import LZ78Token
from gencomp.transform.bwt import BWTResult

KINDS = ("lz77", "lz78", "lzw", "mtf", "bwt", "huffman", "arithmetic")


# -------------------
# Tagged JSON values
# -------------------
def to_jsonable(obj: Any) -> Any:
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    if isinstance(obj, (bytes, bytearray)):
        b = bytes(obj)
        return {"__t": "bytes", "b64": base64.b64encode(b).decode("ascii")}
    if isinstance(obj, list):
        return [to_jsonable(x) for x in obj]
    if isinstance(obj, tuple):
        return {"__t": "tuple", "items": [to_jsonable(x) for x in obj]}
    if isinstance(obj, dict):
        out: dict[str, Any] = {}
        for k, v in obj.items():
            out[str(k)] = to_jsonable(v)
        return out
    raise TypeError(f"valore non serializzabile in JSON: {type(obj)}")


def from_jsonable(obj: Any) -> Any:
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    if isinstance(obj, list):
        return [from_jsonable(x) for x in obj]
    if isinstance(obj, dict):
        t = obj.get("__t")
        if t == "bytes":
            b64 = obj.get("b64")
            if not isinstance(b64, str):
                raise CorruptRepresentation("tagged bytes without a b64 string")
            try:
                return base64.b64decode(b64.encode("ascii"), validate=True)
            except (binascii.Error, UnicodeEncodeError) as e:
                raise CorruptRepresentation(f"tagged bytes: invalid base64: {e}") from e
        if t == "tuple":
            items = obj.get("items")
            if not isinstance(items, list):
                raise CorruptRepresentation("tagged tuple without an items list")
            return tuple(from_jsonable(x) for x in items)
        if t is not None:
            raise CorruptRepresentation(f"unknown JSON tag: {t!r}")
        return {k: from_jsonable(v) for k, v in obj.items()}
    raise CorruptRepresentation(f"unexpected JSON value: {type(obj)}")


# -------------------
# Field helpers
# -------------------
def _field(obj: dict[str, Any], name: str, kind: str) -> Any:
    if name not in obj:
        raise CorruptRepresentation(f"{kind}: missing field {name!r}")
    return obj[name]


def _int(obj: dict[str, Any], name: str, kind: str) -> int:
    v = _field(obj, name, kind)
    if isinstance(v, bool) or not isinstance(v, int):
        raise CorruptRepresentation(f"{kind}: field {name!r} must be an int, got {v!r}")
    return v


def _bool(obj: dict[str, Any], name: str, kind: str) -> bool:
    v = _field(obj, name, kind)
    if not isinstance(v, bool):
        raise CorruptRepresentation(f"{kind}: field {name!r} must be a bool, got {v!r}")
    return v


def _str(obj: dict[str, Any], name: str, kind: str) -> str:
    v = _field(obj, name, kind)
    if not isinstance(v, str):
        raise CorruptRepresentation(f"{kind}: field {name!r} must be a string, got {v!r}")
    return v


def _list(obj: dict[str, Any], name: str, kind: str) -> list[Any]:
    v = _field(obj, name, kind)
    if not isinstance(v, list):
        raise CorruptRepresentation(f"{kind}: field {name!r} must be a list")
    return v


def _int_list(obj: dict[str, Any], name: str, kind: str) -> list[int]:
    v = _list(obj, name, kind)
    for x in v:
        if isinstance(x, bool) or not isinstance(x, int):
            raise CorruptRepresentation(f"{kind}: {name!r} must hold ints, got {x!r}")
    return v


def _rows(obj: dict[str, Any], name: str, kind: str, width: int) -> list[list[Any]]:
    rows = _list(obj, name, kind)
    for row in rows:
        if not isinstance(row, list) or len(row) != width:
            raise CorruptRepresentation(f"{kind}: each {name!r} entry must be a list of {width}")
    return rows


def _freq(obj: dict[str, Any], kind: str) -> list[tuple[Any, int]]:
    out: list[tuple[Any, int]] = []
    for sym, count in _rows(obj, "freq", kind, 2):
        if isinstance(count, bool) or not isinstance(count, int):
            raise CorruptRepresentation(f"{kind}: frequency for {sym!r} must be an int")
        out.append((from_jsonable(sym), count))
    return out


def _lastbits(obj: dict[str, Any], kind: str) -> int:
    v = _int(obj, "lastbits", kind)
    if not (0 <= v <= 8):
        raise CorruptRepresentation(f"{kind}: field 'lastbits' must be in 0..8, got {v}")
    return v


def _bytes(obj: dict[str, Any], name: str, kind: str) -> bytes:
    v = from_jsonable(_field(obj, name, kind))
    if not isinstance(v, bytes):
        raise CorruptRepresentation(f"{kind}: field {name!r} must be tagged bytes")
    return v


# -------------------
# Public API
# -------------------
def to_interchange(kind: str, rep: Any) -> dict[str, Any]:
    if kind == "lz77":
        return {
            "kind": kind,
            "tokens": [[t.offset, t.length, to_jsonable(t.next_symbol)] for t in rep],
        }
    if kind == "lz78":
        return {"kind": kind, "tokens": [[t.index, to_jsonable(t.symbol)] for t in rep]}
    if kind == "lzw":
        return {"kind": kind, "codes": list(rep)}
    if kind == "mtf":
        return {"kind": kind, "ranks": list(rep)}
    if kind == "bwt":
        return {
            "kind": kind,
            "sequence": [to_jsonable(s) for s in rep.sequence],
            "primary_index": rep.primary_index,
        }
    if kind == "huffman":
        return {
            "kind": kind,
            "freq": [[to_jsonable(s), f] for s, f in rep.freq],
            "n": rep.n,
            "bitstream": to_jsonable(rep.bitstream),
            "lastbits": rep.lastbits,
            "tie_break": rep.tie_break,
            "canonical": rep.canonical,
        }
    if kind == "arithmetic":
        return {
            "kind": kind,
            "freq": [[to_jsonable(s), f] for s, f in rep.freq],
            "n": rep.n,
            "bitstream": to_jsonable(rep.bitstream),
            "lastbits": rep.lastbits,
            "precision": rep.precision,
            "scaling": rep.scaling,
            "adaptive": rep.adaptive,
            "alphabet": [to_jsonable(s) for s in rep.alphabet],
        }
    raise ValueError(f"kind non supportato: {kind!r} (expected one of {KINDS})")


def from_interchange(obj: Any) -> tuple[str, Any]:
    """Inverse of :func:`to_interchange`. Shape errors -> CorruptRepresentation."""
    if not isinstance(obj, dict):
        raise CorruptRepresentation("interchange root must be an object")
    kind = obj.get("kind")
    if kind not in KINDS:
        raise CorruptRepresentation(f"unknown representation kind: {kind!r}")

    if kind == "lz77":
        tokens = []
        for off, length, sym in _rows(obj, "tokens", kind, 3):
            if isinstance(off, bool) or isinstance(length, bool) or not isinstance(off, int) or not isinstance(length, int):
                raise CorruptRepresentation("lz77: offset and length must be ints")
            tokens.append(LZ77Token(off, length, from_jsonable(sym)))
        return kind, tokens

    if kind == "lz78":
        tokens78 = []
        for idx, sym in _rows(obj, "tokens", kind, 2):
            if isinstance(idx, bool) or not isinstance(idx, int):
                raise CorruptRepresentation("lz78: index must be an int")
            tokens78.append(LZ78Token(idx, from_jsonable(sym)))
        return kind, tokens78

    if kind == "lzw":
        return kind, list(_int_list(obj, "codes", kind))

    if kind == "mtf":
        return kind, list(_int_list(obj, "ranks", kind))

    if kind == "bwt":
        seq = [from_jsonable(s) for s in _list(obj, "sequence", kind)]
        return kind, BWTResult(seq, _int(obj, "primary_index", kind))

    if kind == "huffman":
        return kind, HuffmanEncoded(
            freq=_freq(obj, kind),
            n=_int(obj, "n", kind),
            bitstream=_bytes(obj, "bitstream", kind),
            lastbits=_lastbits(obj, kind),
            tie_break=_str(obj, "tie_break", kind),
            canonical=_bool(obj, "canonical", kind),
        )

    return kind, ArithmeticEncoded(
        freq=_freq(obj, kind),
        n=_int(obj, "n", kind),
        bitstream=_bytes(obj, "bitstream", kind),
        lastbits=_lastbits(obj, kind),
        precision=_int(obj, "precision", kind),
        scaling=_str(obj, "scaling", kind),
        adaptive=_bool(obj, "adaptive", kind),
        alphabet=tuple(from_jsonable(s) for s in _list(obj, "alphabet", kind)),
    )


def dumps(kind: str, rep: Any) -> str:
    return json.dumps(to_interchange(kind, rep), ensure_ascii=False, separators=(",", ":"))


def loads(text: str | bytes) -> tuple[str, Any]:
    try:
        obj = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptRepresentation(f"interchange: invalid JSON: {e}") from e
    return from_interchange(obj)
