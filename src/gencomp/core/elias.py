"""Elias gamma code for positive integers.

``value`` with N significant bits is written as N-1 zero bits followed by
the N-bit binary form of ``value`` (which starts with a 1).
Example: 9 -> 000 1001.
"""

from __future__ import annotations

from gencomp.core.bitstream import BitSink, BitSource


def gamma_encode(value: int, sink: BitSink) -> None:
    if value < 1:
        raise ValueError(f"elias gamma: valore non positivo: {value}")
    n = value.bit_length()
    for _ in range(n - 1):
        sink.write_bit(0)
    sink.write_bits(value, n)


def gamma_decode(source: BitSource) -> int:
    zeros = 0
    while source.read_bit() == 0:
        zeros += 1
    return (1 << zeros) | source.read_bits(zeros)

