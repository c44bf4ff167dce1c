"""Encode verification conditions into Z3 and discharge them.

This module provides:
- An encoding from `imp_lang.py` expressions into Z3, and
- Helpers to extract counterexample models as plain dictionaries.

IMP integers are mathematical integers, so variables are Z3 `Int`s rather
than bit-vectors.
"""

from dataclasses import dataclass
from typing import Optional

import z3

import imp_lang as imp


def simplify(func):
    """Decorate `func` to Z3-simplify any returned `z3.ExprRef`."""
    def simplifyInner(*args, **kwargs):
        """Call `func` and simplify its Z3 result (if any)."""
        ret = func(*args, **kwargs)
        if isinstance(ret, (z3.ExprRef)):
            return z3.simplify(ret)
        return ret
    return simplifyInner


def get_z3_var(name: str) -> z3.ArithRef:
    """Return the Z3 integer constant standing for IMP variable `name`."""
    return z3.Int(name)


def _enc(e) -> z3.ExprRef:
    match e:
        case imp.IntConst(val):
            return z3.IntVal(val)
        case imp.BoolConst(val):
            return z3.BoolVal(val)
        case imp.Var(name):
            return get_z3_var(name)

        case imp.ArithOp(op, l, r):
            el, er = _enc(l), _enc(r)
            match op:
                case "+":
                    return el + er
                case "-":
                    return el - er
                case "*":
                    return el * er
            raise ValueError(f"Unknown int op {op}")

        case imp.Compare(op, l, r):
            el, er = _enc(l), _enc(r)
            match op:
                case "=":
                    return el == er
                case "!=":
                    return el != er
                case "<":
                    return el < er
                case "<=":
                    return el <= er
                case ">":
                    return el > er
                case ">=":
                    return el >= er
            raise ValueError(f"Unknown comparison {op}")

        case imp.Not(arg):
            return z3.Not(_enc(arg))

        case imp.BoolOp(op, l, r):
            el, er = _enc(l), _enc(r)
            match op:
                case "and":
                    return z3.And(el, er)
                case "or":
                    return z3.Or(el, er)
            raise ValueError(f"Unknown bool op {op}")

        case _:
            raise TypeError(f"exp_enc got {type(e)}: {e}")


@simplify
def exp_enc(e) -> z3.ExprRef:
    """Encode an `imp_lang.py` expression as a Z3 expression."""
    return _enc(e)


def get_solver() -> z3.Solver:
    """Create a Z3 solver for the linear/non-linear integer arithmetic IMP produces."""
    t = z3.Tactic("smt")
    return t.solver()


def check_validity(f: z3.BoolRef) -> bool:
    """Return `True` iff formula `f` is valid (i.e. its negation is UNSAT)."""
    return get_model(f).status == "valid"


@dataclass(frozen=True)
class ModelResult:
    status: str  # "valid" | "invalid" | "unknown"
    model: Optional[z3.ModelRef]
    counterexample: Optional[dict[str, int]] = None


def get_model(f: z3.BoolRef, names: Optional[set[str]] = None) -> ModelResult:
    """
    Try to refute formula `f` and, if a refutation exists, return its model.

    `counterexample` maps each name in `names` (or every integer constant the
    model mentions) to its value in the model.
    """
    s = get_solver()
    s.add(z3.simplify(z3.Not(f)))
    res = s.check()
    if res == z3.unsat:
        return ModelResult("valid", None, None)
    if res != z3.sat:
        return ModelResult("unknown", None, None)

    m = s.model()
    if names is None:
        names = {d.name() for d in m.decls() if d.arity() == 0}
    cex = {}
    for name in sorted(names):
        val = m.eval(get_z3_var(name), model_completion=True)
        if z3.is_int_value(val):
            cex[name] = val.as_long()
    return ModelResult("invalid", m, cex)
