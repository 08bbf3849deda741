"""Bit-level I/O used by the entropy coders and by the file wrapper.

Bit order is fixed: most-significant bit first, both inside a value and
inside each output byte. The last byte is zero padded; ``lastbits`` is the
number of valid bits in it (1..8), or 0 for an empty stream.
"""

from __future__ import annotations

from typing import Protocol

from gencomp.errors import TruncatedStream


class BitSink(Protocol):
    def write_bit(self, bit: int) -> None: ...

    def write_bits(self, value: int, width: int) -> None: ...

    def flush(self) -> bytes: ...


class BitSource(Protocol):
    def read_bit(self) -> int: ...

    def read_bits(self, width: int) -> int: ...

    @property
    def bits_remaining(self) -> int: ...


class BitWriter:
    """Accumulate bits MSB-first into a bytearray."""

    __slots__ = ("_out", "_cur", "_count", "_nbits")

    def __init__(self) -> None:
        self._out = bytearray()
        self._cur = 0
        self._count = 0
        self._nbits = 0

    @property
    def nbits(self) -> int:
        return self._nbits

    @property
    def lastbits(self) -> int:
        if self._nbits == 0:
            return 0
        return self._count if self._count else 8

    def write_bit(self, bit: int) -> None:
        self._cur = (self._cur << 1) | (bit & 1)
        self._count += 1
        self._nbits += 1
        if self._count == 8:
            self._out.append(self._cur)
            self._cur = 0
            self._count = 0

    def write_bits(self, value: int, width: int) -> None:
        if width < 0:
            raise ValueError(f"write_bits: width negativo: {width}")
        if value < 0 or value >> width:
            raise ValueError(f"write_bits: {value} non sta in {width} bit")
        for shift in range(width - 1, -1, -1):
            self.write_bit((value >> shift) & 1)

    def flush(self) -> bytes:
        """Return the bytes written so far, last byte zero padded."""
        out = bytearray(self._out)
        if self._count:
            out.append(self._cur << (8 - self._count))
        return bytes(out)


class BitReader:
    """Read bits MSB-first from ``data``.

    ``lastbits`` = valid bits in the final byte (1..8); 0 means every byte
    is full.
    """

    __slots__ = ("_data", "_pos", "_total")

    def __init__(self, data: bytes, lastbits: int = 0):
        if not (0 <= lastbits <= 8):
            raise ValueError(f"lastbits fuori range: {lastbits}")
        self._data = bytes(data)
        self._pos = 0
        total = len(self._data) * 8
        if self._data and lastbits:
            total -= 8 - lastbits
        self._total = total

    @property
    def bits_remaining(self) -> int:
        return self._total - self._pos

    def read_bit(self) -> int:
        if self._pos >= self._total:
            raise TruncatedStream(f"bit stream esaurito dopo {self._total} bit")
        byte = self._data[self._pos >> 3]
        bit = (byte >> (7 - (self._pos & 7))) & 1
        self._pos += 1
        return bit

    def read_bits(self, width: int) -> int:
        if width < 0:
            raise ValueError(f"read_bits: width negativo: {width}")
        if width > self.bits_remaining:
            raise TruncatedStream(
                f"servono {width} bit, ne restano {self.bits_remaining}"
            )
        value = 0
        for _ in range(width):
            value = (value << 1) | self.read_bit()
        return value
