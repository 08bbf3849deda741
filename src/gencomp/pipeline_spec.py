"""Pipeline spec (v1) for gencomp.

Goal: make encode plans reproducible and portable (CLI, tests, CI).

This module intentionally stays *small* and strict:
  - JSON only
  - explicit schema id
  - unknown keys are rejected, option types are checked

Shape:

    {"spec": "gencomp.pipeline.v1", "name": "stack",
     "stages": [{"algo": "bwt"}, {"algo": "mtf"}, {"algo": "lzw", "max_size": 4096}]}

Only transforms (bwt, mtf) may appear before the last stage; a coder
(lz77, lz78, lzw, huffman, arithmetic) may only be the last one.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gencomp.entropy.arithmetic import MIN_PRECISION, SCALING_POLICIES
from gencomp.entropy.huffman import TIE_BREAKS
from gencomp.errors import InvalidConfiguration
from gencomp.lz.dictionary import OVERFLOW_POLICIES
from gencomp.lz.lz77 import SEARCH_STRATEGIES

SPEC_ID_V1 = "gencomp.pipeline.v1"

TRANSFORMS = ("bwt", "mtf")
CODERS = ("lz77", "lz78", "lzw", "huffman", "arithmetic")
ALGOS = TRANSFORMS + CODERS


class PipelineSpecError(InvalidConfiguration):
    pass


# -------------------
# Option checkers
# -------------------
def _int_at_least(lo: int) -> Callable[[str, Any], Any]:
    def check(key: str, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, int):
            raise PipelineSpecError(f"pipeline: opzione '{key}' deve essere un intero")
        if v < lo:
            raise PipelineSpecError(f"pipeline: opzione '{key}' deve essere >= {lo}, trovato {v}")
        return v

    return check


def _optional_int_at_least(lo: int) -> Callable[[str, Any], Any]:
    inner = _int_at_least(lo)

    def check(key: str, v: Any) -> Any:
        return None if v is None else inner(key, v)

    return check


def _choice(choices: tuple[str, ...]) -> Callable[[str, Any], Any]:
    def check(key: str, v: Any) -> Any:
        if not isinstance(v, str) or v not in choices:
            raise PipelineSpecError(
                f"pipeline: opzione '{key}' deve essere una di {', '.join(choices)}, trovato {v!r}"
            )
        return v

    return check


def _bool(key: str, v: Any) -> Any:
    if not isinstance(v, bool):
        raise PipelineSpecError(f"pipeline: opzione '{key}' deve essere booleana")
    return v


STAGE_OPTIONS: dict[str, dict[str, Callable[[str, Any], Any]]] = {
    "bwt": {},
    "mtf": {},
    "lz77": {
        "window_size": _int_at_least(1),
        "max_length": _int_at_least(1),
        "search": _choice(SEARCH_STRATEGIES),
    },
    "lz78": {
        "max_size": _optional_int_at_least(2),
        "overflow": _choice(OVERFLOW_POLICIES),
        "max_phrase": _optional_int_at_least(1),
    },
    "lzw": {
        "max_size": _optional_int_at_least(257),
        "overflow": _choice(OVERFLOW_POLICIES),
        "max_phrase": _optional_int_at_least(1),
    },
    "huffman": {
        "tie_break": _choice(TIE_BREAKS),
        "canonical": _bool,
    },
    "arithmetic": {
        "precision": _int_at_least(MIN_PRECISION),
        "scaling": _choice(SCALING_POLICIES),
        "adaptive": _bool,
    },
}

PRESETS: dict[str, tuple[str, ...]] = {
    "stack": ("bwt", "mtf", "lzw"),
    "bzip": ("bwt", "mtf", "huffman"),
}


@dataclass(frozen=True)
class StageSpec:
    algo: str
    options: dict[str, Any] = field(default_factory=dict)

    def to_json_obj(self) -> dict[str, Any]:
        return {"algo": self.algo, **self.options}


@dataclass(frozen=True)
class PipelineSpecV1:
    """A single lossless encode plan."""

    name: str
    stages: tuple[StageSpec, ...]

    def to_json_obj(self) -> dict[str, Any]:
        return {
            "spec": SPEC_ID_V1,
            "name": self.name,
            "stages": [s.to_json_obj() for s in self.stages],
        }

    def describe(self) -> str:
        """'bwt -> mtf -> lzw(max_size=4096)', deterministic order."""
        parts = []
        for s in self.stages:
            if s.options:
                opts = ",".join(f"{k}={s.options[k]}" for k in sorted(s.options))
                parts.append(f"{s.algo}({opts})")
            else:
                parts.append(s.algo)
        return " -> ".join(parts)


def _load_json_arg(pipeline_arg: str) -> dict[str, Any]:
    s = pipeline_arg.strip()
    if not s:
        raise PipelineSpecError("pipeline: argomento vuoto")

    if s.startswith("@"):
        p = Path(s[1:]).expanduser()
        if not p.exists() or not p.is_file():
            raise PipelineSpecError(f"pipeline: file non trovato: {p}")
        raw = p.read_text(encoding="utf-8")
        try:
            obj = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PipelineSpecError(f"pipeline: JSON non valido in {p}: {e}") from e
        if not isinstance(obj, dict):
            raise PipelineSpecError(f"pipeline: il JSON in {p} deve essere un oggetto")
        return obj

    try:
        obj = json.loads(s)
    except json.JSONDecodeError as e:
        raise PipelineSpecError(f"pipeline: JSON inline non valido: {e}") from e
    if not isinstance(obj, dict):
        raise PipelineSpecError("pipeline: il JSON inline deve essere un oggetto")
    return obj


def parse_stage(obj: Any, pos: int) -> StageSpec:
    if not isinstance(obj, dict):
        raise PipelineSpecError(f"pipeline: stage {pos} deve essere un oggetto")
    algo = obj.get("algo")
    if not isinstance(algo, str) or algo not in ALGOS:
        raise PipelineSpecError(
            f"pipeline: stage {pos}: algo non supportato: {algo!r} (attesi: {', '.join(ALGOS)})"
        )
    checkers = STAGE_OPTIONS[algo]
    extra = sorted(set(obj.keys()) - {"algo"} - set(checkers))
    if extra:
        raise PipelineSpecError(f"pipeline: stage {pos} ({algo}): opzioni non supportate: {', '.join(extra)}")
    options = {k: checkers[k](k, obj[k]) for k in sorted(obj) if k != "algo"}
    return StageSpec(algo=algo, options=options)


def parse_pipeline_spec(obj: dict[str, Any]) -> PipelineSpecV1:
    # Strict key set (keep it small and stable).
    allowed = {"spec", "name", "stages"}
    extra = sorted(set(obj.keys()) - allowed)
    if extra:
        raise PipelineSpecError(f"pipeline: chiavi non supportate: {', '.join(extra)}")

    spec_id = obj.get("spec")
    if spec_id != SPEC_ID_V1:
        raise PipelineSpecError(
            f"pipeline: spec non supportata: {spec_id!r} (attesa {SPEC_ID_V1!r})"
        )

    name = obj.get("name")
    if name is None:
        name = "pipeline"
    if not isinstance(name, str) or not name.strip():
        raise PipelineSpecError("pipeline: campo 'name' deve essere stringa")

    raw_stages = obj.get("stages")
    if not isinstance(raw_stages, list) or not raw_stages:
        raise PipelineSpecError("pipeline: campo 'stages' richiesto (lista non vuota)")

    stages = tuple(parse_stage(s, i) for i, s in enumerate(raw_stages))
    for i, s in enumerate(stages[:-1]):
        if s.algo not in TRANSFORMS:
            raise PipelineSpecError(
                f"pipeline: stage {i} ({s.algo}) e' un coder: solo {', '.join(TRANSFORMS)} "
                "possono precedere l'ultimo stage"
            )

    return PipelineSpecV1(name=name.strip(), stages=stages)


def load_pipeline_spec(pipeline_arg: str) -> PipelineSpecV1:
    """Load and validate a pipeline spec.

    pipeline_arg:
      - '@file.json'
      - inline JSON object
    """
    return parse_pipeline_spec(_load_json_arg(pipeline_arg))


def spec_for_algo(algo: str, options: dict[str, Any] | None = None) -> PipelineSpecV1:
    """Pipeline for a single ``--algo`` name or preset.

    ``options`` (already filtered to the ones the user set) apply to the last
    stage; options that stage does not take are rejected like in JSON specs.
    """
    if algo in PRESETS:
        algos = PRESETS[algo]
    elif algo in ALGOS:
        algos = (algo,)
    else:
        known = ", ".join([*ALGOS, *PRESETS])
        raise PipelineSpecError(f"pipeline: algo non supportato: {algo!r} (attesi: {known})")

    stages: list[dict[str, Any]] = [{"algo": a} for a in algos]
    stages[-1].update(options or {})
    return parse_pipeline_spec({"spec": SPEC_ID_V1, "name": algo, "stages": stages})
