"""Tests for WLP generation and Z3-backed triple checking."""

import pytest
import z3

import imp_util
import solver
from evaluate import run_program
from imp_lang import BoolConst, Compare, IntConst, Var
from parse import file_parse, parse_bexp
from store import Store
from wlp import check_triple, find_counterexample, generate_vcs


def test_assignment_wlp_is_substitution():
    prog = file_parse("//@ ensures y = 3;\ny := x + 2")
    (entry,) = generate_vcs(prog)
    assert entry.kind == "entry"
    # true => ((x + 2) = 3), with the constant connectives simplified away
    assert imp_util.stringify(entry.formula) == "((x + 2) = 3)"


def test_loop_contributes_preservation_and_exit(test_data_dir):
    prog = file_parse((test_data_dir / "countdown.imp").read_text())
    kinds = [vc.kind for vc in generate_vcs(prog)]
    assert kinds == ["preservation", "exit", "entry"]


def test_countdown_is_verified(test_data_dir):
    prog = file_parse((test_data_dir / "countdown.imp").read_text())
    assert check_triple(prog)
    assert find_counterexample(prog) is None


def test_missing_invariant_fails(test_data_dir):
    prog = file_parse((test_data_dir / "bad_countdown.imp").read_text())
    assert not check_triple(prog)
    cex = find_counterexample(prog)
    # The exit condition fails for a negative x.
    assert cex is not None and cex["x"] < 0


def test_counterexample_is_a_real_failure():
    prog = file_parse("//@ requires x >= 0;\n//@ ensures y = 1;\nif x > 5 then y := 1 else y := x")
    cex = find_counterexample(prog)
    assert cex is not None
    final = run_program(prog, Store(cex))
    assert final["y"] != 1
    assert cex["x"] >= 0


def test_conditional_triple():
    prog = file_parse(
        "//@ ensures m >= x and m >= y;\n"
        "if x <= y then m := y else m := x"
    )
    assert check_triple(prog)


def test_swap_triple():
    prog = file_parse(
        "//@ requires x = 1 and y = 2;\n"
        "//@ ensures x = 2 and y = 1;\n"
        "t := x; x := y; y := t"
    )
    assert check_triple(prog)


def test_unannotated_program_is_trivially_valid(test_data_dir):
    prog = file_parse((test_data_dir / "seq.imp").read_text())
    assert check_triple(prog)


def test_print_vc(capsys, test_data_dir):
    prog = file_parse((test_data_dir / "countdown.imp").read_text())
    check_triple(prog, print_vc=True)
    out = capsys.readouterr().out
    assert "[preservation]" in out
    assert "[exit]" in out
    assert "[entry]" in out


def test_solver_encoding():
    f = solver.exp_enc(parse_bexp("x * 2 = x + x"))
    assert solver.check_validity(f)
    assert not solver.check_validity(solver.exp_enc(Compare("<", Var("x"), IntConst(0))))
    assert solver.check_validity(solver.exp_enc(BoolConst(True)))


def test_solver_uses_mathematical_integers():
    # No wrap-around: x + 1 > x holds for every integer.
    assert solver.check_validity(solver.exp_enc(parse_bexp("x + 1 > x")))


def test_get_model_reports_counterexample():
    res = solver.get_model(solver.exp_enc(parse_bexp("x = 4")), {"x"})
    assert res.status == "invalid"
    assert res.counterexample["x"] != 4
    assert isinstance(res.model, z3.ModelRef)


def test_solver_rejects_non_ast():
    with pytest.raises(TypeError):
        solver.exp_enc("x = 1")
