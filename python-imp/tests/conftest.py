"""Test configuration and shared fixtures."""

import pytest
from pathlib import Path

import imp_lang as imp


@pytest.fixture
def test_data_dir() -> Path:
    """Returns the absolute path to the directory containing sample programs."""
    return Path(__file__).parent / "data"


@pytest.fixture
def countdown() -> imp.Command:
    """while x > 0 do x := x - 1"""
    return imp.While(
        imp.Compare(">", imp.Var("x"), imp.IntConst(0)),
        imp.Assign("x", imp.ArithOp("-", imp.Var("x"), imp.IntConst(1))),
    )
