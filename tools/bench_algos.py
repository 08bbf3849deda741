#!/usr/bin/env python3
"""Per-algorithm benchmark over a set of files.

Runs compress -> decompress -> compare for every pipeline, collecting
timing, size and peak RSS. zlib (and zstandard, when installed) rows are
printed as baselines.

Usage example:
  python tools/bench_algos.py data/*.txt --algo lzw --algo bzip --iters 3
  python tools/bench_algos.py big.bin --pipeline @my_pipeline.json

Notes:
- Uses internal APIs (no subprocess). Run inside repo venv.
- One JSON row per (file, pipeline, iter) on stdout, then a summary row.
"""

from __future__ import annotations

import argparse
import json
import resource
import time
import zlib
from collections.abc import Callable
from pathlib import Path
from typing import Any

try:
    import zstandard as zstd  # type: ignore
except ImportError:  # pragma: no cover
    zstd = None

DEFAULT_ALGOS = ("lz77", "lz78", "lzw", "huffman", "arithmetic", "stack", "bzip")


def _peak_rss_kb() -> int:
    # Linux: ru_maxrss is KB
    return int(resource.getrusage(resource.RUSAGE_SELF).ru_maxrss)


def _baselines() -> dict[str, tuple[Callable[[bytes], bytes], Callable[[bytes], bytes]]]:
    out: dict[str, tuple[Callable[[bytes], bytes], Callable[[bytes], bytes]]] = {
        "zlib-9": (lambda b: zlib.compress(b, 9), zlib.decompress),
    }
    if zstd is not None:
        c = zstd.ZstdCompressor(level=19)
        d = zstd.ZstdDecompressor()
        out["zstd-19"] = (c.compress, d.decompress)
    return out


def _row(path: Path, name: str, it: int, data: bytes, blob: bytes, t_c: float, t_d: float, ok: bool) -> dict[str, Any]:
    return {
        "file": str(path),
        "pipeline": name,
        "iter": it,
        "in_bytes": len(data),
        "out_bytes": len(blob),
        "ratio": (len(blob) / len(data)) if data else 0.0,
        "times_sec": {"compress": t_c, "decompress": t_d},
        "peak_rss_kb": _peak_rss_kb(),
        "roundtrip_ok": bool(ok),
    }


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="bench_algos.py", description="gencomp per-algorithm benchmark")
    ap.add_argument("inputs", type=Path, nargs="+")
    ap.add_argument("--algo", action="append", default=None, help="Algorithm or preset (repeatable)")
    ap.add_argument("--pipeline", action="append", default=None, help="Pipeline spec (@file.json or inline JSON)")
    ap.add_argument("--iters", type=int, default=1)
    ap.add_argument("--no-baseline", action="store_true", help="Skip zlib/zstd rows")
    ns = ap.parse_args(argv)

    from gencomp.engine.container import compress_bytes, decompress_bytes
    from gencomp.pipeline_spec import load_pipeline_spec, spec_for_algo

    specs = [spec_for_algo(a) for a in (ns.algo or ([] if ns.pipeline else DEFAULT_ALGOS))]
    specs += [load_pipeline_spec(p) for p in (ns.pipeline or [])]

    rows: list[dict[str, Any]] = []
    t0_all = time.perf_counter()

    for path in ns.inputs:
        if not path.is_file():
            raise SystemExit(f"input non valido: {path}")
        data = path.read_bytes()

        for i in range(max(1, int(ns.iters))):
            for spec in specs:
                t0 = time.perf_counter()
                blob = compress_bytes(data, spec)
                t_c = time.perf_counter() - t0
                t1 = time.perf_counter()
                back = decompress_bytes(blob)
                t_d = time.perf_counter() - t1
                row = _row(path, spec.describe(), i + 1, data, blob, t_c, t_d, back == data)
                rows.append(row)
                print(json.dumps(row, ensure_ascii=False))
                if back != data:
                    raise SystemExit(f"roundtrip non lossless: {path} ({spec.describe()})")

            if ns.no_baseline:
                continue
            for name, (comp, decomp) in _baselines().items():
                t0 = time.perf_counter()
                blob = comp(data)
                t_c = time.perf_counter() - t0
                t1 = time.perf_counter()
                back = decomp(blob)
                t_d = time.perf_counter() - t1
                row = _row(path, name, i + 1, data, blob, t_c, t_d, back == data)
                rows.append(row)
                print(json.dumps(row, ensure_ascii=False))

    summary = {
        "schema": "gencomp.bench_algos.v1",
        "rows": len(rows),
        "wall_total_sec": time.perf_counter() - t0_all,
        "max_peak_rss_kb": max((r["peak_rss_kb"] for r in rows), default=0),
        "zstd_available": zstd is not None,
    }
    print(json.dumps(summary, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
