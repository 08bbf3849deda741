#!/usr/bin/env python3
"""Render the exit code table of gencomp.errors as markdown.

  python scripts/gen_exit_codes_md.py              write docs/exit_codes.md
  python scripts/gen_exit_codes_md.py --out X.md   write somewhere else
  python scripts/gen_exit_codes_md.py --check      exit 1 if the file is stale
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO = Path(__file__).resolve().parents[1]


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="gen_exit_codes_md.py")
    ap.add_argument("--out", type=Path, default=REPO / "docs" / "exit_codes.md")
    ap.add_argument("--check", action="store_true", help="Compare only, do not write")
    ns = ap.parse_args(argv)

    sys.path.insert(0, str(REPO / "src"))
    from gencomp.errors import render_exit_codes_markdown  # noqa: E402

    text = render_exit_codes_markdown()
    out: Path = ns.out

    if ns.check:
        current = out.read_text(encoding="utf-8") if out.is_file() else None
        if current != text:
            print(f"[gencomp] {out} non aggiornato, rigenera con scripts/gen_exit_codes_md.py", file=sys.stderr)
            return 1
        print(f"[gencomp] {out} OK")
        return 0

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    print(f"[gencomp] wrote {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
