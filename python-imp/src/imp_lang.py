"""Abstract syntax of IMP.

Each syntactic category is a closed union of frozen dataclasses:

    Aexp ::= n | X | a0 + a1 | a0 - a1 | a0 * a1
    Bexp ::= true | false | a0 = a1 | a0 <= a1 | ... | not b | b0 and b1 | b0 or b1
    Com  ::= skip | X := a | c0 ; c1 | if b then c0 else c1 | while b do c
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

ARITH_OPS = ("+", "-", "*")
COMPARE_OPS = ("=", "!=", "<", "<=", ">", ">=")
BOOL_OPS = ("and", "or")


class ImpError(Exception):
    """Base class for every error raised while handling IMP programs."""


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError(f"identifier must be a non-empty string, got {name!r}")


def _check_op(op: str, allowed: tuple[str, ...]) -> None:
    if op not in allowed:
        raise ValueError(f"unknown operator {op!r} (expected one of {', '.join(allowed)})")


def _check_int(value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"integer literal must be an int, got {value!r}")


# --- Arithmetic expressions ---

@dataclass(frozen=True)
class IntConst:
    value: int

    def __post_init__(self):
        _check_int(self.value)


@dataclass(frozen=True)
class Var:
    name: str

    def __post_init__(self):
        _check_name(self.name)


@dataclass(frozen=True)
class ArithOp:
    op: str
    left: ArithExpr
    right: ArithExpr

    def __post_init__(self):
        _check_op(self.op, ARITH_OPS)


ArithExpr = Union[IntConst, Var, ArithOp]


# --- Boolean expressions ---

@dataclass(frozen=True)
class BoolConst:
    value: bool

    def __post_init__(self):
        if not isinstance(self.value, bool):
            raise TypeError(f"boolean literal must be a bool, got {self.value!r}")


@dataclass(frozen=True)
class Compare:
    op: str
    left: ArithExpr
    right: ArithExpr

    def __post_init__(self):
        _check_op(self.op, COMPARE_OPS)


@dataclass(frozen=True)
class Not:
    arg: BoolExpr


@dataclass(frozen=True)
class BoolOp:
    op: str
    left: BoolExpr
    right: BoolExpr

    def __post_init__(self):
        _check_op(self.op, BOOL_OPS)


BoolExpr = Union[BoolConst, Compare, Not, BoolOp]


# --- Commands ---

@dataclass(frozen=True)
class Skip:
    pass


@dataclass(frozen=True)
class Assign:
    name: str
    value: ArithExpr

    def __post_init__(self):
        _check_name(self.name)


@dataclass(frozen=True)
class Seq:
    first: Command
    second: Command


@dataclass(frozen=True)
class If:
    cond: BoolExpr
    then_branch: Command
    else_branch: Command


@dataclass(frozen=True)
class While:
    cond: BoolExpr
    body: Command
    # Annotation for Hoare-triple checking only; evaluation ignores it.
    invariants: tuple[BoolExpr, ...] = ()


Command = Union[Skip, Assign, Seq, If, While]


@dataclass(frozen=True)
class Program:
    """A command together with its `//@ requires` / `//@ ensures` annotations."""
    body: Command
    requires: tuple[BoolExpr, ...] = ()
    ensures: tuple[BoolExpr, ...] = ()


def seq(*cmds: Command) -> Command:
    """Chain `cmds` into right-nested `Seq` nodes (`skip` when empty)."""
    if not cmds:
        return Skip()
    result = cmds[-1]
    for c in reversed(cmds[:-1]):
        result = Seq(c, result)
    return result
