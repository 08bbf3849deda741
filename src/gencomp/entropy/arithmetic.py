"""Integer arithmetic coder (low/high/pending, E1/E2/E3 renormalisation).

With ``precision`` P the interval lives in ``0 .. 2**P - 1``:
  HALF    = 2**(P-1)
  QUARTER = 2**(P-2)
Model totals must stay <= QUARTER so every symbol keeps a non-empty slice
of the narrowest interval the renormalisation allows.

Models:
  - static:   cumulative ranges from a frequency table (order = table order)
  - adaptive: explicit alphabet, every count starts at 1 and grows by one
              per coded symbol; counts are halved (kept >= 1) whenever the
              total goes over the budget

The encoder flushes ``pending + 1`` final bits. The decoder reads missing
bits past the end of the stream as zeros, at most P of them; needing more
than that means the stream is short.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from gencomp.core.bitstream import BitReader, BitSink, BitSource, BitWriter
from gencomp.core.symbols import AlphabetIndex
from gencomp.entropy.huffman import FrequencyTable, check_frequency_table, frequency_table
from gencomp.errors import CorruptRepresentation, InvalidConfiguration, InvalidToken, TruncatedStream

DEFAULT_PRECISION = 32
MIN_PRECISION = 8
SCALING_POLICIES = ("scale", "strict")


def check_precision(precision: int) -> int:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise InvalidConfiguration(f"arithmetic: precision must be an int, got {precision!r}")
    if precision < MIN_PRECISION:
        raise InvalidConfiguration(f"arithmetic: precision must be >= {MIN_PRECISION}, got {precision}")
    return precision


def total_budget(precision: int) -> int:
    return 1 << (check_precision(precision) - 2)


def scale_counts(counts: Sequence[int], budget: int, scaling: str = "scale") -> list[int]:
    """Fit ``counts`` under ``budget`` keeping every count >= 1.

    Each count becomes ``1 + c * (budget - k) // total``, so the result sums
    to at most ``budget``.
    """
    if scaling not in SCALING_POLICIES:
        raise InvalidConfiguration(
            f"arithmetic: unknown scaling {scaling!r} (expected one of {SCALING_POLICIES})"
        )
    k = len(counts)
    total = sum(counts)
    if total <= budget:
        return list(counts)
    if scaling == "strict":
        raise InvalidConfiguration(f"arithmetic: frequency total {total} exceeds {budget}")
    if k > budget:
        raise InvalidConfiguration(f"arithmetic: {k} symbols do not fit a total of {budget}")
    spare = budget - k
    return [1 + c * spare // total for c in counts]


class StaticModel:
    __slots__ = ("alphabet", "counts", "_cum", "total")

    def __init__(self, freq: Iterable[tuple[Any, int]], precision: int, scaling: str = "scale"):
        table = check_frequency_table(freq)
        self.alphabet = AlphabetIndex(s for s, _ in table)
        self.counts = scale_counts([f for _, f in table], total_budget(precision), scaling)
        cum = [0]
        for c in self.counts:
            cum.append(cum[-1] + c)
        self._cum = cum
        self.total = cum[-1]

    def index(self, symbol: Any) -> int:
        return self.alphabet.index(symbol)

    def bounds(self, idx: int) -> tuple[int, int]:
        return self._cum[idx], self._cum[idx + 1]

    def find(self, target: int) -> int:
        return bisect_right(self._cum, target) - 1

    def update(self, idx: int) -> None:
        pass


class AdaptiveModel:
    __slots__ = ("alphabet", "counts", "total", "budget")

    def __init__(self, alphabet: Iterable[Any], precision: int):
        self.alphabet = AlphabetIndex(alphabet)
        k = len(self.alphabet)
        if not k:
            raise InvalidConfiguration("arithmetic: adaptive model needs a non-empty alphabet")
        self.budget = total_budget(precision)
        if k > self.budget:
            raise InvalidConfiguration(f"arithmetic: {k} symbols do not fit a total of {self.budget}")
        self.counts = [1] * k
        self.total = k

    def index(self, symbol: Any) -> int:
        return self.alphabet.index(symbol)

    def bounds(self, idx: int) -> tuple[int, int]:
        lo = sum(self.counts[:idx])
        return lo, lo + self.counts[idx]

    def find(self, target: int) -> int:
        acc = 0
        for i, c in enumerate(self.counts):
            acc += c
            if target < acc:
                return i
        return len(self.counts)

    def update(self, idx: int) -> None:
        self.counts[idx] += 1
        self.total += 1
        if self.total > self.budget:
            self.counts = [(c + 1) // 2 for c in self.counts]
            self.total = sum(self.counts)


def build_model(
    precision: int,
    scaling: str = "scale",
    adaptive: bool = False,
    freq: Iterable[tuple[Any, int]] | None = None,
    alphabet: Iterable[Any] | None = None,
) -> StaticModel | AdaptiveModel:
    if scaling not in SCALING_POLICIES:
        raise InvalidConfiguration(
            f"arithmetic: unknown scaling {scaling!r} (expected one of {SCALING_POLICIES})"
        )
    if adaptive:
        if alphabet is None:
            raise InvalidConfiguration("arithmetic: adaptive model needs an explicit alphabet")
        return AdaptiveModel(alphabet, precision)
    if freq is None:
        raise InvalidConfiguration("arithmetic: static model needs a frequency table")
    return StaticModel(freq, precision, scaling)


class ArithmeticCoder:
    """One coder instance per precision; models carry all the state."""

    __slots__ = ("precision", "top", "half", "quarter")

    def __init__(self, precision: int = DEFAULT_PRECISION):
        self.precision = check_precision(precision)
        self.top = (1 << precision) - 1
        self.half = 1 << (precision - 1)
        self.quarter = 1 << (precision - 2)

    def encode_symbols(self, seq: Iterable[Any], model: StaticModel | AdaptiveModel, sink: BitSink) -> int:
        """Code ``seq`` into ``sink``; returns the number of symbols."""
        top, half, quarter = self.top, self.half, self.quarter
        low, high, pending = 0, top, 0
        n = 0

        def emit(bit: int) -> None:
            nonlocal pending
            sink.write_bit(bit)
            while pending:
                sink.write_bit(bit ^ 1)
                pending -= 1

        for sym in seq:
            idx = model.index(sym)
            lo, hi = model.bounds(idx)
            total = model.total
            r = high - low + 1
            high = low + r * hi // total - 1
            low = low + r * lo // total

            while True:
                if high < half:
                    emit(0)
                elif low >= half:
                    emit(1)
                    low -= half
                    high -= half
                elif low >= quarter and high < half + quarter:
                    pending += 1
                    low -= quarter
                    high -= quarter
                else:
                    break
                low = low << 1
                high = (high << 1) | 1

            model.update(idx)
            n += 1

        if n:
            pending += 1
            emit(0 if low < quarter else 1)
        return n

    def decode_symbols(self, source: BitSource, model: StaticModel | AdaptiveModel, n: int) -> list[Any]:
        if n < 0:
            raise InvalidToken(f"arithmetic: negative symbol count {n}")
        if n == 0:
            return []

        precision = self.precision
        top, half, quarter = self.top, self.half, self.quarter
        padded = 0

        def next_bit() -> int:
            nonlocal padded
            if source.bits_remaining > 0:
                return source.read_bit()
            padded += 1
            if padded > precision:
                raise TruncatedStream(f"arithmetic: bit stream ended after {len(out)} of {n} symbols")
            return 0

        out: list[Any] = []
        value = 0
        for _ in range(precision):
            value = (value << 1) | next_bit()

        low, high = 0, top
        for _ in range(n):
            r = high - low + 1
            total = model.total
            if not (low <= value <= high):
                raise InvalidToken(f"arithmetic: code value left the interval at symbol {len(out)}")
            target = ((value - low + 1) * total - 1) // r
            idx = model.find(target)
            if not (0 <= idx < len(model.alphabet)):
                raise InvalidToken(f"arithmetic: no symbol for target {target} at symbol {len(out)}")
            lo, hi = model.bounds(idx)
            out.append(model.alphabet.symbol(idx))

            high = low + r * hi // total - 1
            low = low + r * lo // total

            while True:
                if high < half:
                    pass
                elif low >= half:
                    low -= half
                    high -= half
                    value -= half
                elif low >= quarter and high < half + quarter:
                    low -= quarter
                    high -= quarter
                    value -= quarter
                else:
                    break
                low = low << 1
                high = (high << 1) | 1
                value = (value << 1) | next_bit()

            model.update(idx)

        return out


@dataclass(frozen=True)
class ArithmeticEncoded:
    freq: FrequencyTable
    n: int
    bitstream: bytes
    lastbits: int
    precision: int = DEFAULT_PRECISION
    scaling: str = "scale"
    adaptive: bool = False
    alphabet: tuple[Any, ...] = ()


def arithmetic_encode(
    seq: Sequence[Any],
    precision: int = DEFAULT_PRECISION,
    scaling: str = "scale",
    adaptive: bool = False,
    alphabet: Iterable[Any] | None = None,
    freq: Iterable[tuple[Any, int]] | None = None,
) -> ArithmeticEncoded:
    """Encode ``seq``.

    Static (default): the frequency table is counted from ``seq`` (ascending
    symbol order) unless ``freq`` is given; it travels with the result.
    Adaptive: ``alphabet`` is required and travels instead.
    """
    coder = ArithmeticCoder(precision)
    if adaptive:
        table: FrequencyTable = []
        alpha = tuple(alphabet) if alphabet is not None else None
    else:
        table = frequency_table(seq, "symbol") if freq is None else check_frequency_table(freq)
        alpha = ()
    model = build_model(precision, scaling, adaptive, freq=table, alphabet=alpha)

    w = BitWriter()
    coder.encode_symbols(seq, model, w)
    return ArithmeticEncoded(
        freq=table,
        n=len(seq),
        bitstream=w.flush(),
        lastbits=w.lastbits,
        precision=precision,
        scaling=scaling,
        adaptive=bool(adaptive),
        alphabet=alpha or (),
    )


def arithmetic_decode(enc: ArithmeticEncoded) -> list[Any]:
    coder = ArithmeticCoder(enc.precision)
    model = build_model(
        enc.precision,
        enc.scaling,
        enc.adaptive,
        freq=enc.freq,
        alphabet=enc.alphabet if enc.adaptive else None,
    )
    try:
        source = BitReader(enc.bitstream, enc.lastbits)
    except ValueError as e:
        raise CorruptRepresentation(f"arithmetic: {e}") from e
    return coder.decode_symbols(source, model, enc.n)
