"""Utilities for manipulating and printing IMP ASTs.

AST nodes are frozen dataclasses, so they hash structurally and the
recursive helpers below cache on the nodes themselves. WLP produces large,
heavily shared formulas, and the caches keep repeated traversals cheap.
"""

from __future__ import annotations

import functools

import imp_lang as imp

Exp = imp.ArithExpr | imp.BoolExpr


@functools.lru_cache(maxsize=200_000)
def _vars_exp_cached(e: Exp) -> frozenset[str]:
    match e:
        case imp.Var(name): return frozenset([name])
        case imp.IntConst(_) | imp.BoolConst(_): return frozenset()
        case imp.ArithOp(_, l, r) | imp.Compare(_, l, r) | imp.BoolOp(_, l, r):
            return _vars_exp_cached(l) | _vars_exp_cached(r)
        case imp.Not(arg): return _vars_exp_cached(arg)
        case _: raise TypeError(f"vars_exp got {type(e)}: {e}")


@functools.lru_cache(maxsize=400_000)
def _subst_exp_cached(e: Exp, x: str, replacement: imp.ArithExpr) -> Exp:
    match e:
        case imp.Var(name): return replacement if name == x else e
        case imp.IntConst(_) | imp.BoolConst(_): return e
        case imp.ArithOp(op, l, r): return imp.ArithOp(op, _subst_exp_cached(l, x, replacement), _subst_exp_cached(r, x, replacement))
        case imp.Compare(op, l, r): return imp.Compare(op, _subst_exp_cached(l, x, replacement), _subst_exp_cached(r, x, replacement))
        case imp.BoolOp(op, l, r): return imp.BoolOp(op, _subst_exp_cached(l, x, replacement), _subst_exp_cached(r, x, replacement))
        case imp.Not(arg): return imp.Not(_subst_exp_cached(arg, x, replacement))
        case _: raise TypeError(f"subst_exp got {type(e)}: {e}")


@functools.lru_cache(maxsize=200_000)
def _simplify_cached(e: Exp) -> Exp:
    match e:
        case imp.BoolOp(op, l, r):
            sl = _simplify_cached(l)
            sr = _simplify_cached(r)
            if op == "and":
                if sl == imp.BoolConst(True): return sr
                if sr == imp.BoolConst(True): return sl
                if imp.BoolConst(False) in (sl, sr): return imp.BoolConst(False)
            if op == "or":
                if sl == imp.BoolConst(False): return sr
                if sr == imp.BoolConst(False): return sl
                if imp.BoolConst(True) in (sl, sr): return imp.BoolConst(True)
            return imp.BoolOp(op, sl, sr)
        case imp.Not(arg):
            sa = _simplify_cached(arg)
            if isinstance(sa, imp.BoolConst): return imp.BoolConst(not sa.value)
            return imp.Not(sa)
        case _: return e


@functools.lru_cache(maxsize=400_000)
def _stringify_cached(e: Exp) -> str:
    match e:
        case imp.Var(name): return name
        case imp.IntConst(v): return str(v)
        case imp.BoolConst(v): return "true" if v else "false"
        case imp.ArithOp(op, l, r) | imp.Compare(op, l, r) | imp.BoolOp(op, l, r):
            return f"({_stringify_cached(l)} {op} {_stringify_cached(r)})"
        case imp.Not(arg): return f"(not {_stringify_cached(arg)})"
        case _: return str(e)


def clear_caches() -> None:
    """Clear all substitution/stringify caches."""
    _vars_exp_cached.cache_clear()
    _subst_exp_cached.cache_clear()
    _simplify_cached.cache_clear()
    _stringify_cached.cache_clear()


def vars_exp(e: Exp) -> set[str]:
    """Return the set of variable names appearing in `e`."""
    return set(_vars_exp_cached(e))


def vars_com(c: imp.Command) -> set[str]:
    """Return the set of variable names appearing anywhere in command `c`."""
    match c:
        case imp.Skip(): return set()
        case imp.Assign(name, value): return {name} | vars_exp(value)
        case imp.Seq(first, second): return vars_com(first) | vars_com(second)
        case imp.If(cond, t, f): return vars_exp(cond) | vars_com(t) | vars_com(f)
        case imp.While(cond, body, invs):
            v = vars_exp(cond) | vars_com(body)
            for i in invs: v |= vars_exp(i)
            return v
        case _: raise TypeError(f"vars_com got {type(c)}: {c}")


def get_defs(c: imp.Command) -> set[str]:
    """Return variable names that may be assigned by executing `c`."""
    match c:
        case imp.Assign(name, _): return {name}
        case imp.Seq(first, second): return get_defs(first) | get_defs(second)
        case imp.If(_, t, f): return get_defs(t) | get_defs(f)
        case imp.While(_, body, _): return get_defs(body)
        case _: return set()


def subst_exp(e: Exp, x: str, replacement: imp.ArithExpr) -> Exp:
    """Return `e` with every occurrence of variable `x` replaced by `replacement`."""
    return _subst_exp_cached(e, x, replacement)


def simplify(e: Exp) -> Exp:
    """Return a simplified copy of `e` (cheap, local rewrites with boolean constants only)."""
    return _simplify_cached(e)


def conj(exps) -> imp.BoolExpr:
    """Fold `exps` with `and`; the empty conjunction is `true`."""
    result = imp.BoolConst(True)
    for e in exps:
        result = imp.BoolOp("and", result, e)
    return result


def stringify(e: Exp) -> str:
    """Convert expression `e` to fully parenthesised concrete syntax."""
    return _stringify_cached(e)


def stringify_com(c: imp.Command, indent: int = 0) -> str:
    """Convert command `c` to concrete syntax that `parse.parse_com` reads back."""
    space = "  " * indent
    match c:
        case imp.Skip(): return f"{space}skip"
        case imp.Assign(name, value): return f"{space}{name} := {stringify(value)}"
        case imp.Seq(first, second):
            # `;` associates to the right; a sequence on the left needs parentheses.
            return f"{_nested(first, indent)};\n{stringify_com(second, indent)}"
        case imp.If(cond, t, f):
            return (
                f"{space}if {stringify(cond)} then\n{_nested(t, indent + 1)}\n"
                f"{space}else\n{_nested(f, indent + 1)}"
            )
        case imp.While(cond, body, invs):
            annots = "".join(f"{space}  //@ loop_invariant {stringify(i)};\n" for i in invs)
            return f"{space}while {stringify(cond)}\n{annots}{space}do\n{_nested(body, indent + 1)}"
        case _: return str(c)


def _nested(c: imp.Command, indent: int) -> str:
    # Bodies are single commands in the grammar; wrap a sequence in parentheses.
    if isinstance(c, imp.Seq):
        space = "  " * indent
        return f"{space}(\n{stringify_com(c, indent + 1)}\n{space})"
    return stringify_com(c, indent)


def stringify_program(prog: imp.Program) -> str:
    """Convert `prog` (annotations included) to concrete syntax."""
    lines = [f"//@ requires {stringify(r)};" for r in prog.requires]
    lines += [f"//@ ensures {stringify(e)};" for e in prog.ensures]
    lines.append(stringify_com(prog.body))
    return "\n".join(lines) + "\n"
