"""Verification and inspection of compressed files.

verify: parse the wrapper, decode the whole payload and compare the sha256
of the result with the one stored at compress time.
inspect: header only, no decode.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gencomp.engine.container import decompress_bytes, unpack_container
from gencomp.errors import HashMismatch


@dataclass(frozen=True)
class VerifyReport:
    path: str
    pipeline: str
    n: int
    compressed_size: int
    sha256: str

    @property
    def ratio(self) -> float:
        return (self.compressed_size / self.n) if self.n else 0.0


def _read(path: Path) -> bytes:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"file non trovato: {p}")
    return p.read_bytes()


def verify_container_file(path: Path) -> VerifyReport:
    blob = _read(path)
    header, _ = unpack_container(blob)

    out = decompress_bytes(blob, check_hash=False)
    got = hashlib.sha256(out).hexdigest()
    if got != header.sha256:
        raise HashMismatch(f"{path}: sha256 mismatch: atteso {header.sha256}, ottenuto {got}")

    return VerifyReport(
        path=str(path),
        pipeline=header.spec.describe(),
        n=header.n,
        compressed_size=len(blob),
        sha256=got,
    )


def inspect_container_file(path: Path) -> dict[str, Any]:
    blob = _read(path)
    header, payload = unpack_container(blob)
    return {
        "path": str(path),
        "pipeline": header.spec.to_json_obj(),
        "describe": header.spec.describe(),
        "stages": header.stage_metas,
        "n": header.n,
        "sha256": header.sha256,
        "compressed_size": len(blob),
        "payload_size": len(payload),
    }
