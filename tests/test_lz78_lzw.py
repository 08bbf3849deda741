from __future__ import annotations

import pytest

from gencomp.errors import AlphabetMismatch, InvalidConfiguration, InvalidDictionaryReference, InvalidToken
from gencomp.lz.dictionary import PhraseDictionary
from gencomp.lz.lz78 import LZ78Token, lz78_decode, lz78_encode
from gencomp.lz.lzw import lzw_decode, lzw_encode

TEXT = b"TOBEORNOTTOBEORTOBEORNOT#" * 4


def test_lz78_vectors() -> None:
    assert lz78_encode("abab") == [LZ78Token(0, "a"), LZ78Token(0, "b"), LZ78Token(1, "b")]
    assert lz78_encode("aaa") == [LZ78Token(0, "a"), LZ78Token(1, "a")]
    # input ends on a known phrase: last token has no symbol
    assert lz78_encode("aba") == [LZ78Token(0, "a"), LZ78Token(0, "b"), LZ78Token(1, None)]
    assert "".join(lz78_decode(lz78_encode("aba"))) == "aba"


def test_lz78_roundtrip_unbounded() -> None:
    assert lz78_encode(b"") == []
    assert bytes(lz78_decode(lz78_encode(TEXT))) == TEXT


@pytest.mark.parametrize("overflow", ["freeze", "reset"])
@pytest.mark.parametrize("max_size", [2, 3, 8, 64])
def test_lz78_bounded_roundtrip(max_size: int, overflow: str) -> None:
    tokens = lz78_encode(TEXT, max_size=max_size, overflow=overflow)
    assert all(t.index < max_size for t in tokens)
    assert bytes(lz78_decode(tokens, max_size=max_size, overflow=overflow)) == TEXT


def test_lz78_reference_to_future_code() -> None:
    with pytest.raises(InvalidDictionaryReference):
        lz78_decode([LZ78Token(0, "a"), LZ78Token(5, "b")])


def test_lz78_missing_symbol_before_end() -> None:
    with pytest.raises(InvalidToken):
        lz78_decode([LZ78Token(0, None), LZ78Token(0, "a")])
    with pytest.raises(InvalidToken):
        lz78_decode([LZ78Token(0, None)])


def test_lz78_max_size_too_small() -> None:
    with pytest.raises(InvalidConfiguration):
        lz78_encode("abc", max_size=1)
    with pytest.raises(InvalidConfiguration):
        lz78_encode("abc", overflow="grow")


def test_lzw_vector_with_kwkwk() -> None:
    codes = lzw_encode("ABABABABA", "AB")
    assert codes == [0, 1, 2, 4, 3]
    # code 4 is used by the decoder one step before it defines it
    assert "".join(lzw_decode(codes, "AB")) == "ABABABABA"


def test_lzw_roundtrip_bytes() -> None:
    alphabet = range(256)
    assert lzw_encode(b"", alphabet) == []
    assert lzw_decode([], alphabet) == []
    codes = lzw_encode(TEXT, alphabet)
    assert len(codes) < len(TEXT)
    assert bytes(lzw_decode(codes, alphabet)) == TEXT


@pytest.mark.parametrize("overflow", ["freeze", "reset"])
@pytest.mark.parametrize("max_size", [257, 260, 300])
def test_lzw_bounded_roundtrip(max_size: int, overflow: str) -> None:
    codes = lzw_encode(TEXT, range(256), max_size=max_size, overflow=overflow)
    assert max(codes) < max_size
    assert bytes(lzw_decode(codes, range(256), max_size=max_size, overflow=overflow)) == TEXT


def test_lzw_unknown_code() -> None:
    with pytest.raises(InvalidDictionaryReference):
        lzw_decode([0, 7], "AB")
    with pytest.raises(InvalidDictionaryReference):
        lzw_decode([2], "AB")


def test_lzw_alphabet_errors() -> None:
    with pytest.raises(AlphabetMismatch):
        lzw_encode("ABC", "AB")
    with pytest.raises(InvalidConfiguration):
        lzw_encode("AB", "ABA")
    with pytest.raises(InvalidConfiguration):
        lzw_encode("AB", "AB", max_size=2)


def test_phrase_dictionary_reset_policy() -> None:
    d = PhraseDictionary.seeded("ab", max_size=3, overflow="reset")
    assert d.grow(0, "b") == 2
    assert d.phrase(2) == ["a", "b"]
    assert d.is_full
    # full: reset to the seeds, the new phrase is not added
    assert d.grow(1, "a") is None
    assert d.next_code == 2
    assert d.lookup(0, "b") is None


def test_phrase_dictionary_freeze_policy() -> None:
    d = PhraseDictionary.with_root(max_size=2)
    assert d.grow(0, "x") == 1
    assert d.grow(1, "y") is None
    assert d.phrase(1) == ["x"]
    assert d.phrase(0) == []
    assert d.first_symbol(1) == "x"


def test_lz78_max_phrase_vector() -> None:
    assert lz78_encode("aaaaaa") == [LZ78Token(0, "a"), LZ78Token(1, "a"), LZ78Token(2, "a")]
    capped = lz78_encode("aaaaaa", max_phrase=1)
    assert capped == [LZ78Token(0, "a"), LZ78Token(1, "a"), LZ78Token(1, "a"), LZ78Token(1, None)]
    assert "".join(lz78_decode(capped)) == "aaaaaa"


@pytest.mark.parametrize("overflow", ["freeze", "reset"])
@pytest.mark.parametrize("max_phrase", [1, 2, 5])
def test_lz78_max_phrase_roundtrip(max_phrase: int, overflow: str) -> None:
    tokens = lz78_encode(TEXT, max_size=32, overflow=overflow, max_phrase=max_phrase)
    assert bytes(lz78_decode(tokens, max_size=32, overflow=overflow)) == TEXT


def test_lzw_max_phrase_vector() -> None:
    assert lzw_encode("aaaaaa", "a") == [0, 1, 2]
    capped = lzw_encode("aaaaaa", "a", max_phrase=2)
    assert capped == [0, 1, 1, 0]
    assert "".join(lzw_decode(capped, "a")) == "aaaaaa"
    # one symbol per code
    assert lzw_encode("abba", "ab", max_phrase=1) == [0, 1, 1, 0]


@pytest.mark.parametrize("overflow", ["freeze", "reset"])
@pytest.mark.parametrize("max_phrase", [1, 3, 8])
def test_lzw_max_phrase_roundtrip(max_phrase: int, overflow: str) -> None:
    alphabet = range(256)
    codes = lzw_encode(TEXT, alphabet, max_size=300, overflow=overflow, max_phrase=max_phrase)
    assert bytes(lzw_decode(codes, alphabet, max_size=300, overflow=overflow)) == TEXT


def test_max_phrase_must_be_positive() -> None:
    with pytest.raises(InvalidConfiguration):
        lz78_encode("abc", max_phrase=0)
    with pytest.raises(InvalidConfiguration):
        lzw_encode("abc", "abc", max_phrase=0)
