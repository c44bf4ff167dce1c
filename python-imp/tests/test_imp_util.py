"""Tests for AST utilities and pretty printing."""

import pytest

import imp_util
from imp_lang import (
    ArithOp, Assign, BoolConst, BoolOp, Compare, If, IntConst, Not, Program, Seq, Skip, Var, While, seq,
)
from parse import file_parse, parse_bexp, parse_com


def test_ast_nodes_are_immutable():
    v = Var("x")
    with pytest.raises(AttributeError):
        v.name = "y"


def test_ast_nodes_validate():
    with pytest.raises(ValueError):
        Var("")
    with pytest.raises(ValueError):
        ArithOp("/", IntConst(1), IntConst(2))
    with pytest.raises(ValueError):
        Compare("==", IntConst(1), IntConst(2))
    with pytest.raises(ValueError):
        BoolOp("xor", BoolConst(True), BoolConst(False))


@pytest.mark.parametrize("value", [True, "1", 1.5, None])
def test_int_const_rejects_non_integers(value):
    with pytest.raises(TypeError):
        IntConst(value)


def test_bool_const_rejects_non_booleans():
    with pytest.raises(TypeError):
        BoolConst(1)


def test_structural_equality():
    # 3 + 5 and 5 + 3 are different terms even though they evaluate alike.
    assert ArithOp("+", IntConst(3), IntConst(5)) == ArithOp("+", IntConst(3), IntConst(5))
    assert ArithOp("+", IntConst(5), IntConst(3)) != ArithOp("+", IntConst(3), IntConst(5))
    assert IntConst(8) != ArithOp("+", IntConst(3), IntConst(5))


def test_seq_helper():
    a, b, c = Assign("a", IntConst(1)), Assign("b", IntConst(2)), Assign("c", IntConst(3))
    assert seq() == Skip()
    assert seq(a) == a
    assert seq(a, b, c) == Seq(a, Seq(b, c))


def test_vars_and_defs():
    c = parse_com("if x > 0 then y := z else (skip; w := 1); while n > 0 do n := n - 1")
    assert imp_util.vars_com(c) == {"x", "y", "z", "w", "n"}
    assert imp_util.get_defs(c) == {"y", "w", "n"}
    assert imp_util.vars_exp(parse_bexp("x + y < 3 or not z = 0")) == {"x", "y", "z"}


def test_subst_exp():
    e = parse_bexp("x + 1 < y")
    assert imp_util.subst_exp(e, "x", ArithOp("*", Var("y"), IntConst(2))) == Compare(
        "<", ArithOp("+", ArithOp("*", Var("y"), IntConst(2)), IntConst(1)), Var("y")
    )
    assert imp_util.subst_exp(e, "q", IntConst(0)) == e


def test_simplify():
    p = Compare("=", Var("x"), IntConst(0))
    assert imp_util.simplify(BoolOp("and", BoolConst(True), p)) == p
    assert imp_util.simplify(BoolOp("and", p, BoolConst(True))) == p
    assert imp_util.simplify(BoolOp("or", BoolConst(False), p)) == p
    assert imp_util.simplify(BoolOp("and", p, BoolConst(False))) == BoolConst(False)
    assert imp_util.simplify(Not(BoolConst(True))) == BoolConst(False)


def test_conj():
    p, q = parse_bexp("x = 0"), parse_bexp("y = 0")
    assert imp_util.conj([]) == BoolConst(True)
    assert imp_util.simplify(imp_util.conj([p, q])) == BoolOp("and", p, q)


def test_stringify():
    assert imp_util.stringify(parse_bexp("not x + 1 <= 2 * y")) == "(not ((x + 1) <= (2 * y)))"


@pytest.mark.parametrize("text", [
    "skip",
    "x := 1; y := x + 2",
    "if x > 0 then y := 1 else y := 0",
    "while x > 0 do (x := x - 1; y := y * 2); z := -1",
    "if true then (a := 1; b := 2) else while not a = 0 do a := a - 1",
    "(x := 1; y := 2); z := 3",
    "while x > 0 do ((x := x - 1; y := y + 1); z := z * 2)",
])
def test_stringify_com_reparses(text):
    c = parse_com(text)
    assert parse_com(imp_util.stringify_com(c)) == c


def test_stringify_program_reparses(test_data_dir):
    prog = file_parse((test_data_dir / "countdown.imp").read_text())
    assert file_parse(imp_util.stringify_program(prog)) == prog


def test_clear_caches():
    imp_util.stringify(IntConst(1))
    imp_util.clear_caches()
    assert imp_util.stringify(IntConst(1)) == "1"


def test_left_nested_sequence_keeps_its_shape():
    a, b, c = Assign("a", IntConst(1)), Assign("b", IntConst(2)), Assign("c", IntConst(3))
    left = Seq(Seq(a, b), c)
    text = imp_util.stringify_com(left)
    assert parse_com(text) == left
    assert parse_com(text) != seq(a, b, c)
