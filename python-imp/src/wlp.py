"""WLP-based checker for annotated IMP programs.

A program `//@ requires P; //@ ensures Q; c` denotes the partial-correctness
triple {P} c {Q}. Loops contribute their own verification conditions from
their `//@ loop_invariant` annotations (an unannotated loop has invariant
`true`); everything else is folded into `P => wlp(c, Q)`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

import imp_lang as imp
import imp_util
import solver


@dataclass(frozen=True)
class VC:
    kind: str  # "entry" | "preservation" | "exit"
    formula: imp.BoolExpr


def implies(p: imp.BoolExpr, q: imp.BoolExpr) -> imp.BoolExpr:
    """`p => q`, written with the connectives IMP has."""
    return imp.BoolOp("or", imp.Not(p), q)


def generate_vcs(prog: imp.Program) -> list[VC]:
    """Return the verification conditions whose joint validity proves `prog`'s triple."""
    vcs: list[VC] = []

    def wlp_com(c: imp.Command, Q: imp.BoolExpr) -> imp.BoolExpr:
        """Computes wlp(c, Q)."""
        match c:
            case imp.Skip():
                return Q

            case imp.Assign(name, value):
                return imp_util.subst_exp(Q, name, value)

            case imp.Seq(first, second):
                return wlp_com(first, wlp_com(second, Q))

            case imp.If(cond, t, f):
                wt, wf = wlp_com(t, Q), wlp_com(f, Q)
                return imp.BoolOp("and", implies(cond, wt), implies(imp.Not(cond), wf))

            case imp.While(cond, body, invs):
                I = imp_util.conj(invs)

                # Loop VCs must hold in every state, not just the initial one.
                preservation = implies(imp.BoolOp("and", I, cond), wlp_com(body, I))
                vcs.append(VC("preservation", imp_util.simplify(preservation)))

                exit_condition = implies(imp.BoolOp("and", I, imp.Not(cond)), Q)
                vcs.append(VC("exit", imp_util.simplify(exit_condition)))
                return I

            case _:
                raise TypeError(f"wlp got {type(c)}: {c}")

    Pre = imp_util.conj(prog.requires)
    Post = imp_util.conj(prog.ensures)
    entry = implies(Pre, wlp_com(prog.body, Post))
    vcs.append(VC("entry", imp_util.simplify(entry)))
    logger.debug("generated {} verification conditions", len(vcs))
    return vcs


def check_triple(
    prog: imp.Program,
    *,
    verbose: bool = False,
    print_vc: bool = False,
) -> bool:
    """Return `True` iff every verification condition of `prog` is valid."""
    ok = True
    for vc in generate_vcs(prog):
        if print_vc:
            print(f"[{vc.kind}] {imp_util.stringify(vc.formula)}")
        valid = solver.check_validity(solver.exp_enc(vc.formula))
        if verbose:
            logger.info("{} VC is {}", vc.kind, "valid" if valid else "not valid")
        if not valid:
            ok = False
            if not print_vc:
                break
    return ok


def find_counterexample(prog: imp.Program) -> Optional[dict[str, int]]:
    """Return a state refuting the first invalid VC of `prog`, or `None` if all are valid.

    For an entry VC this is an initial store meeting `requires` from which the
    program, if it terminates, violates `ensures`.
    """
    for vc in generate_vcs(prog):
        res = solver.get_model(solver.exp_enc(vc.formula), imp_util.vars_exp(vc.formula))
        if res.status == "invalid":
            logger.debug("{} VC refuted by {}", vc.kind, res.counterexample)
            return res.counterexample
    return None
