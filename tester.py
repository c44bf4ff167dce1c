#!/usr/bin/env python3
import argparse
import glob
import subprocess
import sys
from pathlib import Path

def run_one(script: Path, testfile: str, extra: list[str]) -> int:
    tf = str(Path(testfile).resolve())
    print(f"==> {testfile}")
    p = subprocess.run([sys.executable, str(script), tf, *extra], cwd=str(script.parent))
    return p.returncode

def collect(paths: list[str]) -> list[str]:
    files: list[str] = []
    for p in paths:
        expanded = glob.glob(p)
        if expanded:
            for e in expanded:
                pe = Path(e)
                if pe.is_dir():
                    files.extend(sorted(str(x) for x in pe.rglob("*.imp")))
                else:
                    files.append(str(pe))
            continue

        pp = Path(p)
        if pp.is_dir():
            files.extend(sorted(str(x) for x in pp.rglob("*.imp")))
        elif pp.exists():
            files.append(str(pp))

    seen = set()
    return [f for f in files if not (f in seen or seen.add(f))]

def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        description="Run the IMP driver over multiple .imp programs (like a shell loop)."
    )
    ap.add_argument(
        "paths",
        nargs="+",
        help="Files/dirs/globs of .imp programs (e.g., tests/data/*.imp mytests/ foo.imp).",
    )
    ap.add_argument(
        "--script",
        default="python-imp/src/main.py",
        help="Path to the driver (default: python-imp/src/main.py).",
    )
    ap.add_argument(
        "--verify",
        action="store_true",
        help="Check each program's Hoare triple instead of running it.",
    )
    ap.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Loop iteration budget passed to the driver.",
    )
    ap.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first failing program (nonzero exit).",
    )
    args = ap.parse_args(argv)

    script = Path(args.script).resolve()
    if not script.exists():
        print(f"error: script not found: {script}", file=sys.stderr)
        return 2

    files = collect(args.paths)
    if not files:
        print("error: no .imp files found", file=sys.stderr)
        return 2

    extra: list[str] = []
    if args.verify:
        extra.append("--verify")
    if args.max_steps is not None:
        extra += ["--max-steps", str(args.max_steps)]

    worst_rc = 0
    for f in files:
        rc = run_one(script, f, extra)
        if rc != 0:
            worst_rc = max(worst_rc, rc)
            if args.fail_fast:
                return rc

    return worst_rc

if __name__ == "__main__":
    raise SystemExit(main())
