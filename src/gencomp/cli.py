"""gencomp CLI.

This is the stable CLI entrypoint (console-script: ``gencomp``).

Notes:
  - --version is supported at top-level.
  - compress takes either --algo (single algorithm or preset) plus stage
    options, or a full --pipeline spec.
  - verify supports --json (machine-readable output, same exit codes).
  - Every subcommand accepts --debug (re-raise with traceback).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from gencomp.errors import EXIT_GENERIC, EXIT_USAGE, GenCompError
from gencomp.pipeline_spec import (
    ALGOS,
    PRESETS,
    PipelineSpecError,
    PipelineSpecV1,
    load_pipeline_spec,
    spec_for_algo,
)

# CLI flag -> stage option
STAGE_FLAGS = (
    "window_size",
    "max_length",
    "search",
    "max_size",
    "overflow",
    "max_phrase",
    "tie_break",
    "canonical",
    "precision",
    "scaling",
    "adaptive",
)


def _pkg_version() -> str:
    try:
        from importlib.metadata import PackageNotFoundError, version

        try:
            return version("generic-compression")
        except PackageNotFoundError:
            # script invoked from source, or metadata missing
            return "0+unknown"
    except ImportError:
        return "0+unknown"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--debug", action="store_true", help="Show stack traces on errors")


def _stage_options(ns: argparse.Namespace) -> dict[str, Any]:
    return {k: getattr(ns, k) for k in STAGE_FLAGS if getattr(ns, k, None) is not None}


def _print_verify_json(target: Path, report: Any) -> None:
    print(
        json.dumps(
            {
                "schema": "gencomp.verify.v1",
                "ok": True,
                "target": str(target),
                "pipeline": report.pipeline,
                "n": report.n,
                "compressed_size": report.compressed_size,
                "sha256": report.sha256,
                "version": _pkg_version(),
            },
            ensure_ascii=False,
            separators=(",", ":"),
        )
    )


def _print_verify_json_error(target: Path, *, err_type: str, message: str) -> None:
    """Emit stable JSON on stderr for verify errors when --json is used."""
    obj = {
        "schema": "gencomp.verify.v1",
        "ok": False,
        "target": str(target),
        "version": _pkg_version(),
        "error": {"type": err_type, "message": message},
    }
    print(json.dumps(obj, ensure_ascii=False, sort_keys=True), file=sys.stderr)


def _resolve_spec(ns: argparse.Namespace) -> PipelineSpecV1:
    options = _stage_options(ns)
    if ns.pipeline is not None:
        if ns.algo is not None or options:
            raise PipelineSpecError("compress: --pipeline esclude --algo e le opzioni di stage")
        return load_pipeline_spec(str(ns.pipeline))
    return spec_for_algo(ns.algo or "lzw", options)


def _cmd_compress(input_path: Path, output_path: Path, ns: argparse.Namespace) -> int:
    from gencomp.engine.container import compress_bytes

    spec = _resolve_spec(ns)
    data = Path(input_path).read_bytes()
    blob = compress_bytes(data, spec)
    Path(output_path).write_bytes(blob)
    print(f"{input_path}: {len(data)} -> {len(blob)} byte ({spec.describe()})")
    return 0


def _cmd_decompress(input_path: Path, output_path: Path) -> int:
    from gencomp.engine.container import decompress_bytes

    out = decompress_bytes(Path(input_path).read_bytes())
    Path(output_path).write_bytes(out)
    return 0


def _cmd_verify(input_path: Path, *, json_out: bool) -> int:
    from gencomp.verify import verify_container_file

    try:
        report = verify_container_file(input_path)
    except FileNotFoundError as e:
        if json_out:
            _print_verify_json_error(input_path, err_type="FileNotFound", message=str(e))
            return EXIT_USAGE
        raise
    except GenCompError as e:
        # For --json we must emit JSON on stderr (stable schema).
        if json_out:
            _print_verify_json_error(input_path, err_type=type(e).__name__, message=str(e))
            return int(e.exit_code)
        raise

    if json_out:
        _print_verify_json(input_path, report)
    else:
        print("OK")
    return 0


def _cmd_inspect(input_path: Path) -> int:
    from gencomp.verify import inspect_container_file

    info = inspect_container_file(input_path)
    print(json.dumps(info, ensure_ascii=False, indent=2, sort_keys=True))
    return 0


def _cmd_pipeline_validate(pipeline_arg: str) -> int:
    # load is the validation
    spec = load_pipeline_spec(pipeline_arg)
    print(f"OK {spec.describe()}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gencomp", description="Generic compression suite")
    p.add_argument("--version", action="version", version=f"%(prog)s {_pkg_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_c = sub.add_parser("compress", help="Compress a file")
    p_c.add_argument("input", type=Path)
    p_c.add_argument("output", type=Path)
    p_c.add_argument(
        "--algo",
        default=None,
        choices=[*ALGOS, *PRESETS],
        help="Algorithm or preset (stack = bwt+mtf+lzw, bzip = bwt+mtf+huffman). Default: lzw",
    )
    p_c.add_argument(
        "--pipeline",
        default=None,
        help="Pipeline spec (JSON). Use '@file.json' to load from file, or pass JSON inline.",
    )
    g = p_c.add_argument_group("stage options (applied to the last stage)")
    g.add_argument("--window-size", dest="window_size", type=int, default=None, help="lz77 window")
    g.add_argument("--max-length", dest="max_length", type=int, default=None, help="lz77 max match length")
    g.add_argument("--search", default=None, help="lz77 search strategy (naive, hash)")
    g.add_argument("--max-size", dest="max_size", type=int, default=None, help="lz78/lzw dictionary size")
    g.add_argument("--overflow", default=None, help="lz78/lzw overflow policy (freeze, reset)")
    g.add_argument("--max-phrase", dest="max_phrase", type=int, default=None, help="lz78/lzw longest phrase")
    g.add_argument("--tie-break", dest="tie_break", default=None, help="huffman tie-break (symbol, first_occurrence)")
    g.add_argument("--canonical", action="store_true", default=None, help="huffman canonical codes")
    g.add_argument("--precision", type=int, default=None, help="arithmetic precision in bits")
    g.add_argument("--scaling", default=None, help="arithmetic frequency scaling (scale, strict)")
    g.add_argument("--adaptive", action="store_true", default=None, help="arithmetic adaptive model")
    _add_common_args(p_c)

    p_d = sub.add_parser("decompress", help="Decompress a file")
    p_d.add_argument("input", type=Path)
    p_d.add_argument("output", type=Path)
    _add_common_args(p_d)

    p_v = sub.add_parser("verify", help="Decode a compressed file and check its sha256")
    p_v.add_argument("input", type=Path)
    p_v.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    _add_common_args(p_v)

    p_i = sub.add_parser("inspect", help="Show the header of a compressed file")
    p_i.add_argument("input", type=Path)
    _add_common_args(p_i)

    p_pv = sub.add_parser("pipeline-validate", help="Validate a pipeline spec (v1)")
    p_pv.add_argument("pipeline", help="Pipeline spec JSON (@file.json or inline JSON)")
    _add_common_args(p_pv)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)

    try:
        if ns.cmd == "compress":
            return _cmd_compress(ns.input, ns.output, ns)
        if ns.cmd == "decompress":
            return _cmd_decompress(ns.input, ns.output)
        if ns.cmd == "verify":
            return _cmd_verify(ns.input, json_out=bool(ns.json))
        if ns.cmd == "inspect":
            return _cmd_inspect(ns.input)
        if ns.cmd == "pipeline-validate":
            return _cmd_pipeline_validate(str(ns.pipeline))
        raise AssertionError("unreachable")

    except SystemExit:
        raise
    except GenCompError as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[gencomp] {e}", file=sys.stderr)
        return int(getattr(e, "exit_code", EXIT_GENERIC) or EXIT_GENERIC)
    except FileNotFoundError as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[gencomp] {e}", file=sys.stderr)
        return EXIT_USAGE
    except Exception as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[gencomp] error: {e}", file=sys.stderr)
        return EXIT_GENERIC


if __name__ == "__main__":
    raise SystemExit(main())
