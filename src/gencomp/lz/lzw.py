"""LZW: LZ78 with a dictionary pre-seeded by the alphabet.

Because every single symbol already has a code, tokens are bare codes.
Encoder and decoder must agree on the alphabet *and its order* (code i is
``alphabet[i]``), and on ``max_size``/``overflow``. ``max_phrase`` caps the
length of an emitted phrase and is encoder-only.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from gencomp.errors import AlphabetMismatch, InvalidDictionaryReference
from gencomp.lz.dictionary import PhraseDictionary, check_max_phrase


def _seed_code(d: PhraseDictionary, sym: Any) -> int:
    code = d.lookup(None, sym)
    if code is None:
        raise AlphabetMismatch(f"lzw: symbol {sym!r} not in alphabet")
    return code


def lzw_encode(
    seq: Sequence[Any],
    alphabet: Iterable[Any],
    max_size: int | None = None,
    overflow: str = "freeze",
    max_phrase: int | None = None,
) -> list[int]:
    cap = check_max_phrase(max_phrase)
    d = PhraseDictionary.seeded(alphabet, max_size, overflow)
    if not seq:
        return []

    out: list[int] = []
    w = _seed_code(d, seq[0])
    for sym in seq[1:]:
        seed = _seed_code(d, sym)
        if cap is None or d.length(w) < cap:
            nxt = d.lookup(w, sym)
            if nxt is not None:
                w = nxt
                continue
        out.append(w)
        d.grow(w, sym)
        w = seed
    out.append(w)
    return out


def lzw_decode(
    codes: Sequence[int],
    alphabet: Iterable[Any],
    max_size: int | None = None,
    overflow: str = "freeze",
) -> list[Any]:
    d = PhraseDictionary.seeded(alphabet, max_size, overflow)
    out: list[Any] = []

    prev: int | None = None
    prev_phrase: list[Any] = []
    for pos, code in enumerate(codes):
        if prev is None:
            phrase = d.phrase(code)
        else:
            if 0 <= code < d.next_code:
                phrase = d.phrase(code)
            elif code == d.next_code and not d.is_full:
                # the encoder used the phrase it learned one step earlier
                phrase = prev_phrase + [prev_phrase[0]]
            else:
                raise InvalidDictionaryReference(
                    f"lzw: code {pos}: {code} not defined yet (next code is {d.next_code})"
                )
            d.grow(prev, phrase[0])
        out.extend(phrase)
        prev = code
        prev_phrase = phrase

    return out
