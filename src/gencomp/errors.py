"""Typed errors for gencomp.

Single source of truth for exit codes lives here.

Policy:
- Errors are small and boring.
- The algorithms raise them; they never print or fall back to defaults.
- The CLI maps errors to stable exit codes (see EXIT_* constants).
- docs/exit_codes.md is generated from this module (scripts/gen_exit_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_GENERIC = 10
EXIT_INVALID_REPRESENTATION = 11
EXIT_TRUNCATED = 12
EXIT_ALPHABET_MISMATCH = 13
EXIT_HASH_MISMATCH = 14


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success"),
    ExitCodeInfo(
        EXIT_USAGE, "USAGE", "Usage/config error (invalid args, bad window size, invalid pipeline spec, etc.)"
    ),
    ExitCodeInfo(EXIT_GENERIC, "GENERIC", "Generic failure (corrupt file, unsupported version, unexpected error)"),
    ExitCodeInfo(
        EXIT_INVALID_REPRESENTATION,
        "INVALID_REPRESENTATION",
        "Malformed token, dictionary reference or index during decode",
    ),
    ExitCodeInfo(EXIT_TRUNCATED, "TRUNCATED_STREAM", "Bit stream ended before decode completed"),
    ExitCodeInfo(
        EXIT_ALPHABET_MISMATCH, "ALPHABET_MISMATCH", "Symbol outside the agreed alphabet / ordering"
    ),
    ExitCodeInfo(EXIT_HASH_MISMATCH, "HASH_MISMATCH", "Integrity failure (decoded sha256 differs)"),
)

_EXIT_CODE_BY_NAME: dict[str, int] = {e.name: e.code for e in EXIT_CODES}
_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def exit_code_by_name(name: str) -> int | None:
    return _EXIT_CODE_BY_NAME.get(name)


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE, do not edit manually.\n")
    lines.append("> Source of truth: `src/gencomp/errors.py` (EXIT_CODES).\n")
    lines.append("> Regenerate: `python scripts/gen_exit_codes_md.py`.\n\n")
    lines.append("These are the CLI exit codes you can rely on.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Every library error extends `GenCompError` and carries an `exit_code`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    lines.append(
        "- `verify --json` prints a JSON object to stdout (ok) or stderr (error), and returns the same exit code.\n"
    )
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class GenCompError(Exception):
    """Base error for gencomp."""

    exit_code: int = EXIT_GENERIC


class InvalidConfiguration(GenCompError, ValueError):
    """Bad parameters: zero window size, precision too low, duplicate alphabet..."""

    exit_code = EXIT_USAGE


class CorruptRepresentation(GenCompError):
    """A representation (or a file wrapping one) is internally inconsistent."""

    exit_code = EXIT_GENERIC


class InvalidToken(CorruptRepresentation):
    exit_code = EXIT_INVALID_REPRESENTATION


class InvalidDictionaryReference(CorruptRepresentation):
    exit_code = EXIT_INVALID_REPRESENTATION


class InvalidIndex(CorruptRepresentation):
    exit_code = EXIT_INVALID_REPRESENTATION


class TruncatedStream(CorruptRepresentation):
    exit_code = EXIT_TRUNCATED


class AlphabetMismatch(GenCompError):
    exit_code = EXIT_ALPHABET_MISMATCH


class BadMagic(CorruptRepresentation):
    pass


class UnsupportedVersion(CorruptRepresentation):
    pass


class HashMismatch(GenCompError):
    exit_code = EXIT_HASH_MISMATCH
