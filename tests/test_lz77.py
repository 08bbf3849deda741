from __future__ import annotations

import pytest

from gencomp.errors import InvalidConfiguration, InvalidToken
from gencomp.lz.lz77 import LZ77Token, lz77_decode, lz77_encode


def test_lz77_window_4_repeating_pattern() -> None:
    tokens = lz77_encode("abababab", window_size=4)
    assert len(tokens) < 8
    assert tokens == [
        LZ77Token(0, 0, "a"),
        LZ77Token(0, 0, "b"),
        LZ77Token(2, 5, "b"),
    ]
    assert [t.is_literal for t in tokens] == [True, True, False]
    assert "".join(lz77_decode(tokens, window_size=4)) == "abababab"


def test_lz77_empty_and_single() -> None:
    assert lz77_encode("") == []
    assert lz77_decode([]) == []
    assert lz77_encode("x") == [LZ77Token(0, 0, "x")]


def test_lz77_overlapping_copy_decodes_runs() -> None:
    tokens = [LZ77Token(0, 0, 1), LZ77Token(1, 5, 2)]
    assert lz77_decode(tokens) == [1, 1, 1, 1, 1, 1, 2]


def test_lz77_nearest_offset_wins_ties() -> None:
    # "ab" occurs at 0 and 3; the copy at offset 3 is preferred over 6
    tokens = lz77_encode("abxabyabz", window_size=16)
    assert tokens[-1] == LZ77Token(3, 2, "z")


def test_lz77_max_length_caps_matches() -> None:
    tokens = lz77_encode("a" * 20, window_size=8, max_length=4)
    assert all(t.length <= 4 for t in tokens)
    assert lz77_decode(tokens) == ["a"] * 20


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"a",
        b"abracadabra abracadabra",
        b"\x00" * 100,
        bytes(range(256)) * 2,
        b"mississippi" * 7,
    ],
)
def test_lz77_naive_and_hash_agree(data: bytes) -> None:
    for window in (1, 3, 16, 255):
        naive = lz77_encode(data, window_size=window, max_length=10, search="naive")
        hashed = lz77_encode(data, window_size=window, max_length=10, search="hash")
        assert naive == hashed
        assert bytes(lz77_decode(naive, window_size=window)) == data


def test_lz77_bad_configuration() -> None:
    with pytest.raises(InvalidConfiguration):
        lz77_encode("abc", window_size=0)
    with pytest.raises(InvalidConfiguration):
        lz77_encode("abc", max_length=0)
    with pytest.raises(InvalidConfiguration):
        lz77_encode("abc", search="suffix-tree")


def test_lz77_offset_past_start_is_rejected() -> None:
    with pytest.raises(InvalidToken, match="exceeds decoded length"):
        lz77_decode([LZ77Token(0, 0, "a"), LZ77Token(3, 1, "b")])


def test_lz77_offset_outside_window_is_rejected() -> None:
    tokens = [LZ77Token(0, 0, "a"), LZ77Token(0, 0, "b"), LZ77Token(0, 0, "c"), LZ77Token(3, 1, "d")]
    assert lz77_decode(tokens) == list("abcad")
    with pytest.raises(InvalidToken, match="window size"):
        lz77_decode(tokens, window_size=2)


def test_lz77_malformed_tokens() -> None:
    with pytest.raises(InvalidToken):
        lz77_decode([LZ77Token(0, 2, "a")])
    with pytest.raises(InvalidToken):
        lz77_decode([LZ77Token(-1, 0, "a")])
