from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gencomp.core.bitstream import BitSink, BitSource
from gencomp.engine.stages import Stage, build_stage
from gencomp.errors import CorruptRepresentation
from gencomp.pipeline_spec import PipelineSpecV1


@dataclass
class Pipeline:
    """Run a spec's stages forward (encode) and backward (decode) over bytes."""

    spec: PipelineSpecV1
    stages: list[Stage]

    @classmethod
    def from_spec(cls, spec: PipelineSpecV1) -> "Pipeline":
        return cls(spec=spec, stages=[build_stage(s) for s in spec.stages])

    def encode(self, data: bytes) -> tuple[Any, list[dict[str, Any]]]:
        """Return the last stage's representation and every stage's meta."""
        cur: Any = list(data)
        metas: list[dict[str, Any]] = []
        for stage in self.stages:
            cur, meta = stage.encode(cur)
            metas.append(meta)
        return cur, metas

    def decode(self, rep: Any, metas: list[dict[str, Any]]) -> bytes:
        if len(metas) != len(self.stages):
            raise CorruptRepresentation(
                f"pipeline: {len(metas)} stage meta per {len(self.stages)} stage"
            )
        cur = rep
        for stage, meta in zip(reversed(self.stages), reversed(metas)):
            cur = stage.decode(cur, meta)
        try:
            return bytes(cur)
        except (TypeError, ValueError) as e:
            raise CorruptRepresentation(f"pipeline: output decodificato non valido come bytes: {e}") from e

    def pack(self, rep: Any, metas: list[dict[str, Any]], sink: BitSink) -> None:
        self.stages[-1].pack(rep, metas[-1], sink)

    def unpack(self, source: BitSource, metas: list[dict[str, Any]]) -> Any:
        if len(metas) != len(self.stages):
            raise CorruptRepresentation(
                f"pipeline: {len(metas)} stage meta per {len(self.stages)} stage"
            )
        return self.stages[-1].unpack(source, metas[-1])
