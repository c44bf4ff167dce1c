import functools
import re
from types import SimpleNamespace

import pyparsing
from loguru import logger
from pyparsing import (
    Word, alphas, alphanums, Literal, Keyword, Regex, Suppress, Group,
    Optional, ZeroOrMore, Forward, infixNotation, oneOf, opAssoc, ParserElement,
)

import imp_lang as imp
from imp_lang import ImpError

# Enable packrat for performance
ParserElement.enable_packrat()


class ParseError(ImpError):
    """Program text that does not match the IMP grammar."""

    def __init__(self, msg: str, lineno: int, col: int, line: str):
        self.msg = msg
        self.lineno = lineno
        self.col = col
        self.line = line
        super().__init__(f"{msg} (line {lineno}, column {col})")

    def pretty(self) -> str:
        """Render the error with the offending line and a caret under the column."""
        return "\n".join([
            f"Parse Error at line {self.lineno}, column {self.col}:",
            self.line,
            " " * (self.col - 1) + "^",
            f"Message: {self.msg}",
        ])


@functools.lru_cache(maxsize=None)
def _grammar() -> SimpleNamespace:
    NormalComment = Suppress(Regex(r"//(?![@]).*"))
    BlockComment = Suppress(Regex(r"/\*.*?\*/", flags=re.DOTALL))

    # Keywords
    SKIP = Keyword("skip")
    IF = Keyword("if")
    THEN = Keyword("then")
    ELSE = Keyword("else")
    WHILE = Keyword("while")
    DO = Keyword("do")
    TRUE = Keyword("true")
    FALSE = Keyword("false")
    NOT = Keyword("not")
    AND = Keyword("and")
    OR = Keyword("or")

    # Contract keywords
    ANNOTATION_START = Literal("//@")
    LOOP_INVARIANT = Keyword("loop_invariant")
    REQUIRES = Keyword("requires")
    ENSURES = Keyword("ensures")

    # Punctuation
    LPAREN = Suppress("(")
    RPAREN = Suppress(")")
    SEMI = Suppress(";")
    ASSIGN_OP = Suppress(":=")

    # Identifiers
    Ident = Word(alphas, alphanums + "_")
    Reserved = SKIP | IF | THEN | ELSE | WHILE | DO | TRUE | FALSE | NOT | AND | OR

    # Use NON-RESERVED identifier for variables
    Identifier = (~Reserved + Ident).setParseAction(lambda t: t[0])

    # Must use copy() to avoid mutating Identifier which is used elsewhere as string
    VarIdent = Identifier.copy().setParseAction(lambda t: imp.Var(t[0]))

    # --- Arithmetic expressions ---
    IntLit = Regex(r"-?\d+").setParseAction(lambda t: imp.IntConst(int(t[0])))

    def make_binop(cls):
        def action(t):
            tokens = t[0]
            res = tokens[0]
            i = 1
            while i < len(tokens):
                res = cls(tokens[i], res, tokens[i + 1])
                i += 2
            return res
        return action

    AExp = infixNotation(IntLit | VarIdent, [
        (Literal("*"), 2, opAssoc.LEFT, make_binop(imp.ArithOp)),
        (Literal("+") | Literal("-"), 2, opAssoc.LEFT, make_binop(imp.ArithOp)),
    ])

    # --- Boolean expressions ---
    BoolLit = (TRUE | FALSE).setParseAction(lambda t: imp.BoolConst(t[0] == "true"))
    CmpOp = oneOf("= != < <= > >=")
    Comparison = (AExp + CmpOp + AExp).setParseAction(lambda t: imp.Compare(t[1], t[0], t[2]))

    BExp = infixNotation(Comparison | BoolLit, [
        (NOT, 1, opAssoc.RIGHT, lambda t: imp.Not(t[0][1])),
        (AND, 2, opAssoc.LEFT, make_binop(imp.BoolOp)),
        (OR, 2, opAssoc.LEFT, make_binop(imp.BoolOp)),
    ])

    # --- Commands ---
    # `;` is the loosest operator; if/while bodies are single commands.
    Com = Forward()
    SimpleCom = Forward()

    SkipCmd = SKIP.copy().setParseAction(lambda: imp.Skip())

    AssignCmd = (Identifier + ASSIGN_OP + AExp).setParseAction(
        lambda t: imp.Assign(t[0], t[1])
    )

    IfCmd = (IF - BExp + THEN + SimpleCom + ELSE + SimpleCom).setParseAction(
        lambda t: imp.If(t[1], t[3], t[5])
    )

    LoopInvariant = (ANNOTATION_START + LOOP_INVARIANT + BExp + SEMI).setParseAction(lambda t: t[2])

    WhileCmd = (WHILE - BExp + ZeroOrMore(LoopInvariant) + DO + SimpleCom).setParseAction(
        lambda t: imp.While(t[1], t[-1], tuple(t[2:-2]))
    )

    SimpleCom <<= (
        SkipCmd |
        IfCmd |
        WhileCmd |
        AssignCmd |
        (LPAREN + Com + RPAREN)
    )

    Com <<= (SimpleCom + ZeroOrMore(SEMI + SimpleCom)).setParseAction(lambda t: imp.seq(*t))

    ContractRaw = Group(ANNOTATION_START + (REQUIRES | ENSURES) + BExp + SEMI)

    def make_program(t):
        *contracts, body = t
        reqs = tuple(c[2] for c in contracts if c[1] == "requires")
        ens = tuple(c[2] for c in contracts if c[1] == "ensures")
        return imp.Program(body, requires=reqs, ensures=ens)

    ProgramParser = (ZeroOrMore(ContractRaw) + Com + Optional(SEMI)).setParseAction(make_program)

    entries = SimpleNamespace(aexp=AExp, bexp=BExp, com=Com, program=ProgramParser)
    for element in vars(entries).values():
        element.ignore(NormalComment)
        element.ignore(BlockComment)
    return entries


def _parse(element: ParserElement, text: str):
    try:
        return element.parseString(text, parseAll=True)[0]
    except pyparsing.ParseBaseException as e:
        logger.debug("parse failed at {}:{}: {}", e.lineno, e.col, e.msg)
        raise ParseError(e.msg, e.lineno, e.col, e.line) from e


def parse_aexp(text: str) -> imp.ArithExpr:
    return _parse(_grammar().aexp, text)


def parse_bexp(text: str) -> imp.BoolExpr:
    return _parse(_grammar().bexp, text)


def parse_com(text: str) -> imp.Command:
    return _parse(_grammar().com, text)


def file_parse(text: str) -> imp.Program:
    """Parse a whole program file: leading `//@ requires`/`//@ ensures` lines, then a command."""
    prog = _parse(_grammar().program, text)
    logger.debug("parsed program with {} requires, {} ensures", len(prog.requires), len(prog.ensures))
    return prog
