"""File wrapper for compressed output.

Layout:

    [MAGIC "GCP"(3) | VER(1) | HEADER_LEN(varint) | HEADER(JSON) | PAYLOAD]

HEADER (tagged JSON, see gencomp.serialize):
    {"pipeline": <pipeline spec v1>, "stages": [meta, ...],
     "n": <input length>, "sha256": <hex of the input>}

PAYLOAD is the last stage's packed representation (rest of file).
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from gencomp.core.bitstream import BitReader, BitWriter
from gencomp.engine.pipeline import Pipeline
from gencomp.errors import BadMagic, CorruptRepresentation, HashMismatch, UnsupportedVersion
from gencomp.pipeline_spec import PipelineSpecError, PipelineSpecV1, parse_pipeline_spec
from gencomp.serialize import from_jsonable, to_jsonable

MAGIC = b"GCP"
VERSION = 1


def _enc_varint(x: int) -> bytes:
    if x < 0:
        raise ValueError("varint negativo non supportato")
    out = bytearray()
    while True:
        b = x & 0x7F
        x >>= 7
        if x:
            out.append(0x80 | b)
        else:
            out.append(b)
            break
    return bytes(out)


def _dec_varint(buf: bytes, idx: int) -> tuple[int, int]:
    shift = 0
    x = 0
    while True:
        if idx >= len(buf):
            raise CorruptRepresentation("varint troncato")
        b = buf[idx]
        idx += 1
        x |= (b & 0x7F) << shift
        if (b & 0x80) == 0:
            break
        shift += 7
        if shift > 63:
            raise CorruptRepresentation("varint troppo grande")
    return x, idx


@dataclass(frozen=True)
class ContainerHeader:
    spec: PipelineSpecV1
    stage_metas: list[dict[str, Any]]
    n: int
    sha256: str

    def to_json_obj(self) -> dict[str, Any]:
        return {
            "pipeline": self.spec.to_json_obj(),
            "stages": self.stage_metas,
            "n": self.n,
            "sha256": self.sha256,
        }


def _parse_header(obj: Any) -> ContainerHeader:
    if not isinstance(obj, dict):
        raise CorruptRepresentation("header: la radice deve essere un oggetto")
    for key in ("pipeline", "stages", "n", "sha256"):
        if key not in obj:
            raise CorruptRepresentation(f"header: campo '{key}' mancante")

    pipeline = obj["pipeline"]
    if not isinstance(pipeline, dict):
        raise CorruptRepresentation("header: 'pipeline' deve essere un oggetto")
    try:
        spec = parse_pipeline_spec(pipeline)
    except PipelineSpecError as e:
        raise CorruptRepresentation(f"header: pipeline non valida: {e}") from e

    metas = obj["stages"]
    if not isinstance(metas, list) or not all(isinstance(m, dict) for m in metas):
        raise CorruptRepresentation("header: 'stages' deve essere una lista di oggetti")
    if len(metas) != len(spec.stages):
        raise CorruptRepresentation(
            f"header: {len(metas)} stage meta per {len(spec.stages)} stage"
        )

    n = obj["n"]
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise CorruptRepresentation(f"header: 'n' non valido: {n!r}")
    sha = obj["sha256"]
    if not isinstance(sha, str) or len(sha) != 64:
        raise CorruptRepresentation("header: 'sha256' malformato")

    return ContainerHeader(spec=spec, stage_metas=metas, n=n, sha256=sha.lower())


def pack_container(header: ContainerHeader, payload: bytes) -> bytes:
    header_b = json.dumps(
        to_jsonable(header.to_json_obj()), ensure_ascii=False, separators=(",", ":")
    ).encode("utf-8")
    return b"".join([MAGIC, bytes([VERSION]), _enc_varint(len(header_b)), header_b, payload])


def unpack_container(blob: bytes) -> tuple[ContainerHeader, bytes]:
    if len(blob) < 5:
        raise CorruptRepresentation("container: blob troppo corto")
    if blob[:3] != MAGIC:
        raise BadMagic(f"container: magic non valido: {blob[:3]!r}")
    ver = blob[3]
    if ver != VERSION:
        raise UnsupportedVersion(f"container: versione non supportata: {ver}")

    header_len, idx = _dec_varint(blob, 4)
    header_b = blob[idx:idx + header_len]
    if len(header_b) != header_len:
        raise CorruptRepresentation("container: header troncato")
    try:
        obj = json.loads(header_b.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptRepresentation(f"container: header JSON non valido: {e}") from e

    return _parse_header(from_jsonable(obj)), blob[idx + header_len:]


def compress_bytes(data: bytes, spec: PipelineSpecV1) -> bytes:
    pipe = Pipeline.from_spec(spec)
    rep, metas = pipe.encode(data)

    w = BitWriter()
    pipe.pack(rep, metas, w)

    header = ContainerHeader(
        spec=spec,
        stage_metas=metas,
        n=len(data),
        sha256=hashlib.sha256(data).hexdigest(),
    )
    return pack_container(header, w.flush())


def decompress_bytes(blob: bytes, *, check_hash: bool = True) -> bytes:
    header, payload = unpack_container(blob)
    pipe = Pipeline.from_spec(header.spec)

    rep = pipe.unpack(BitReader(payload), header.stage_metas)
    out = pipe.decode(rep, header.stage_metas)

    if len(out) != header.n:
        raise CorruptRepresentation(f"container: decodificati {len(out)} byte, attesi {header.n}")
    if check_hash:
        got = hashlib.sha256(out).hexdigest()
        if got != header.sha256:
            raise HashMismatch(f"sha256 mismatch: atteso {header.sha256}, ottenuto {got}")
    return out
