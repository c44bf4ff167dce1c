import sys

import z3
from loguru import logger

from evaluate import StepBudgetExceeded, run_program
from imp_lang import ImpError
from parse import ParseError, file_parse
from store import Store
from wlp import check_triple, find_counterexample


def print_and_exit(msg: str, code: int) -> None:
    try:
        print(msg)
    except BrokenPipeError:
        pass
    raise SystemExit(code)


class CmdLineArgs:
    def __init__(
        self,
        filename: str,
        bindings: dict[str, int],
        *,
        verbose: bool,
        verify: bool,
        print_vc: bool,
        max_steps: int | None,
    ):
        self.filename = filename
        self.bindings = bindings
        self.verbose = verbose
        self.verify = verify
        self.print_vc = print_vc
        self.max_steps = max_steps


def parse_binding(arg: str) -> tuple[str, int]:
    """Parse a `NAME=VALUE` initial-store argument."""
    name, sep, value = arg.partition("=")
    if not sep or not name:
        raise ValueError(f"expected NAME=VALUE, got {arg!r}")
    return name, int(value)


def parse_cmd_line_args(argv: list[str]) -> CmdLineArgs:
    verbose = False
    verify = False
    print_vc = False
    max_steps = None
    positional: list[str] = []
    bindings: dict[str, int] = {}

    i = 0
    while i < len(argv):
        a = argv[i]
        if a in ("--verbose", "-v"):
            verbose = True
            i += 1
        elif a == "--verify":
            verify = True
            i += 1
        elif a == "--print-vc":
            verify = True
            print_vc = True
            i += 1
        elif a == "--max-steps":
            if i + 1 >= len(argv):
                print_and_exit("expected integer after --max-steps", 1)
            try:
                max_steps = int(argv[i + 1])
            except ValueError:
                print_and_exit("expected integer after --max-steps", 1)
            if max_steps < 0:
                print_and_exit("expected integer after --max-steps", 1)
            i += 2
        elif a.startswith("-"):
            print_and_exit("error", 1)
        elif "=" in a:
            try:
                name, value = parse_binding(a)
            except ValueError:
                print_and_exit("error", 1)
            bindings[name] = value
            i += 1
        else:
            positional.append(a)
            i += 1

    if len(positional) != 1:
        print_and_exit("error", 1)

    return CmdLineArgs(
        positional[0],
        bindings,
        verbose=verbose,
        verify=verify,
        print_vc=print_vc,
        max_steps=max_steps,
    )


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING", format="{level} | {message}")


def format_store(store: Store) -> str:
    """One `name = value` line per binding, in name order."""
    return "\n".join(f"{name} = {store[name]}" for name in store)


def main(argv: list[str] | None = None) -> None:
    cmd = parse_cmd_line_args(sys.argv[1:] if argv is None else argv)
    configure_logging(cmd.verbose)
    try:
        with open(cmd.filename, "r", encoding="utf-8") as f:
            src = f.read()
    except OSError as e:
        logger.error("cannot read {}: {}", cmd.filename, e)
        print_and_exit("error", 1)

    try:
        prog = file_parse(src)
    except ParseError as e:
        if cmd.verbose:
            print(e.pretty(), file=sys.stderr)
        print_and_exit("error", 1)

    if cmd.verify:
        try:
            ok = check_triple(prog, verbose=cmd.verbose, print_vc=cmd.print_vc)
        except (TypeError, ValueError, z3.Z3Exception) as e:
            logger.error("{}", e)
            print_and_exit("error", 1)
        if ok:
            print_and_exit("valid", 0)
        if cmd.verbose:
            logger.info("counterexample: {}", find_counterexample(prog))
        print_and_exit("invalid", 2)

    try:
        final = run_program(prog, Store(cmd.bindings), max_steps=cmd.max_steps)
    except StepBudgetExceeded as e:
        logger.warning("{}", e)
        print_and_exit("diverged", 3)
    except ImpError as e:
        logger.error("{}", e)
        print_and_exit("error", 1)

    print_and_exit(format_store(final), 0)


if __name__ == "__main__":
    main()
