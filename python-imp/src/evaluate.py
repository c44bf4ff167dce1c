"""Big-step evaluation of IMP expressions and commands.

The evaluation relations are

    <a, s> -> n        eval_a
    <b, s> -> t        eval_b
    <c, s> -> s'       eval_c

and each `case` below is one inference rule. The while rule

    <b, s> -> true   <c, s> -> s''   <while b do c, s''> -> s'
    -----------------------------------------------------------
                    <while b do c, s> -> s'

recurses once per iteration, so `eval_c` never calls itself: it keeps a list
of commands still to run and unfolds compound commands by rewriting the
current one. Stack depth stays constant however deep the sequence nesting
or however long the loop. A loop whose guard never becomes false never
returns, exactly like the relation has no final store for it.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

import imp_lang as imp
from imp_lang import ImpError
from store import Store


class StepBudgetExceeded(ImpError):
    """A caller-imposed bound on loop iterations ran out."""

    def __init__(self, max_steps: int):
        self.max_steps = max_steps
        super().__init__(f"no final store after {max_steps} loop iterations")


def eval_a(e: imp.ArithExpr, store: Store) -> int:
    """Evaluate arithmetic expression `e` in `store`."""
    match e:
        case imp.IntConst(value):
            return value
        case imp.Var(name):
            return store.get(name)
        case imp.ArithOp(op, l, r):
            # Left operand first; only visible through which unbound read is reported.
            vl = eval_a(l, store)
            vr = eval_a(r, store)
            match op:
                case "+":
                    return vl + vr
                case "-":
                    return vl - vr
                case "*":
                    return vl * vr
            raise ValueError(f"Unknown arithmetic op {op}")
        case _:
            raise TypeError(f"eval_a got {type(e)}: {e}")


def eval_b(e: imp.BoolExpr, store: Store) -> bool:
    """Evaluate boolean expression `e` in `store`.

    `and`/`or` evaluate both operands: the rules have no short-circuit form.
    """
    match e:
        case imp.BoolConst(value):
            return value
        case imp.Compare(op, l, r):
            vl = eval_a(l, store)
            vr = eval_a(r, store)
            match op:
                case "=":
                    return vl == vr
                case "!=":
                    return vl != vr
                case "<":
                    return vl < vr
                case "<=":
                    return vl <= vr
                case ">":
                    return vl > vr
                case ">=":
                    return vl >= vr
            raise ValueError(f"Unknown comparison {op}")
        case imp.Not(arg):
            return not eval_b(arg, store)
        case imp.BoolOp(op, l, r):
            tl = eval_b(l, store)
            tr = eval_b(r, store)
            match op:
                case "and":
                    return tl and tr
                case "or":
                    return tl or tr
            raise ValueError(f"Unknown bool op {op}")
        case _:
            raise TypeError(f"eval_b got {type(e)}: {e}")


class _Budget:
    def __init__(self, max_steps: Optional[int]):
        if max_steps is not None and max_steps < 0:
            raise ValueError("max_steps must be non-negative")
        self.max_steps = max_steps
        self.steps = 0

    def tick(self) -> None:
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            raise StepBudgetExceeded(self.max_steps)


def _exec(c: imp.Command, store: Store, budget: _Budget) -> Store:
    # Commands still to run after `c`, innermost last.
    pending: list[imp.Command] = []
    while True:
        match c:
            case imp.Skip():
                pass

            case imp.Assign(name, value):
                n = eval_a(value, store)
                logger.trace("{} := {}", name, n)
                store = store.set(name, n)

            case imp.Seq(first, second):
                pending.append(second)
                c = first
                continue

            case imp.If(cond, then_branch, else_branch):
                c = then_branch if eval_b(cond, store) else else_branch
                continue

            case imp.While(cond, body, _):
                if eval_b(cond, store):
                    budget.tick()
                    # Unfold one iteration: body, then the same loop again.
                    pending.append(c)
                    c = body
                    continue

            case _:
                raise TypeError(f"eval_c got {type(c)}: {c}")

        if not pending:
            return store
        c = pending.pop()


def eval_c(c: imp.Command, store: Store, *, max_steps: Optional[int] = None) -> Store:
    """Run command `c` from `store` and return the final store.

    The input store is never modified. With `max_steps` set, more than that
    many loop iterations in total raise `StepBudgetExceeded` instead of
    running on; without it a diverging command never returns.
    """
    budget = _Budget(max_steps)
    final = _exec(c, store, budget)
    logger.debug("evaluation finished after {} loop iterations", budget.steps)
    return final


def run_program(prog: imp.Program, store: Store, *, max_steps: Optional[int] = None) -> Store:
    """Evaluate the body of `prog`; its annotations play no part in execution."""
    return eval_c(prog.body, store, max_steps=max_steps)
