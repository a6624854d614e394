# tests/test_parser.py
"""
Tests for the FormalLang parser: S-expression source → AST nodes, and the
canonical printers.
"""

import pytest

from formallang import ast as A
from formallang.errors import FormalLangErrorCodes as Codes
from formallang.errors import ParseError
from formallang.parser import format_program, parse_expr, parse_program, to_sexp
from tests.conftest import COUNTER_SRC, SCOPE_MUTATE_SRC

X = A.Ident("x")


class TestParseExpressions:

    def test_literals(self):
        assert parse_expr("true") == A.TRUE
        assert parse_expr("false") == A.FALSE

    def test_identifier(self):
        assert parse_expr("x") == X
        assert parse_expr("long_name-2") == A.Ident("long_name-2")

    def test_nand(self):
        assert parse_expr("(nand x (nand true false))") == A.Nand(
            X, A.Nand(A.TRUE, A.FALSE)
        )

    def test_single_letter_t_is_a_name(self):
        assert parse_expr("t") == A.Ident("t")

    def test_more_than_one_expression(self):
        with pytest.raises(ParseError) as exc:
            parse_expr("true false")
        assert exc.value.code == Codes.MALFORMED_SEXP

    @pytest.mark.parametrize("src,code", [
        ("(nand true)", Codes.WRONG_ARITY),
        ("(nand true true true)", Codes.WRONG_ARITY),
        ("(or a b)", Codes.UNKNOWN_FORM),
        ("42", Codes.UNKNOWN_FORM),
        ("seq", Codes.INVALID_NAME),
    ])
    def test_bad_expressions(self, src, code):
        with pytest.raises(ParseError) as exc:
            parse_expr(src)
        assert exc.value.code == code


class TestParseStatements:

    def test_decl(self):
        assert parse_program("(decl x true)") == A.Decl("x", A.TRUE)

    def test_assign(self):
        assert parse_program("(assign x (nand x x))") == A.Assign("x", A.Nand(X, X))

    def test_if_and_while(self):
        assert parse_program("(if x (free x))") == A.If(X, A.Free("x"))
        assert parse_program("(while x (free x))") == A.While(X, A.Free("x"))

    def test_seq_folds_right(self):
        prog = parse_program("(seq (free a) (free b) (free c))")
        assert prog == A.seq(A.Free("a"), A.Free("b"), A.Free("c"))

    def test_singleton_seq(self):
        assert parse_program("(seq (free a))") == A.Free("a")

    def test_top_level_forms_are_sequenced(self):
        prog = parse_program(SCOPE_MUTATE_SRC)
        assert prog == A.seq(
            A.Decl("x", A.TRUE),
            A.If(A.TRUE, A.Assign("x", A.FALSE)),
            A.Decl("result", X),
        )

    def test_comments_ignored(self):
        src = "; leading\n(decl x true) ; trailing\n; done\n"
        assert parse_program(src) == A.Decl("x", A.TRUE)

    def test_nodes_carry_filename(self):
        prog = parse_program("(decl x y)", filename="prog.fl")
        assert prog.loc.file == "prog.fl"
        assert prog.value.loc.file == "prog.fl"

    def test_locations_record_only_the_file(self):
        prog = parse_program("(decl x true)\n(free x)", filename="prog.fl")
        assert prog.second.loc == A.SourceLoc(file="prog.fl")
        assert str(prog.second.loc) == "prog.fl:0:0"


class TestParseErrors:

    @pytest.mark.parametrize("src,code", [
        ("(decl x true", Codes.MALFORMED_SEXP),
        ("(decl x true))", Codes.MALFORMED_SEXP),
        ("(loop x (free x))", Codes.UNKNOWN_FORM),
        ("()", Codes.UNKNOWN_FORM),
        ("x", Codes.UNKNOWN_FORM),
        ("(decl x)", Codes.WRONG_ARITY),
        ("(free x y)", Codes.WRONG_ARITY),
        ("(if x)", Codes.WRONG_ARITY),
        ("(seq)", Codes.WRONG_ARITY),
        ("(decl true false)", Codes.INVALID_NAME),
        ("(assign while true)", Codes.INVALID_NAME),
        ("(decl 7 true)", Codes.INVALID_NAME),
        ("(decl x nand)", Codes.INVALID_NAME),
        ("(if (decl x true) (free x))", Codes.UNKNOWN_FORM),
        ("(if true x)", Codes.UNKNOWN_FORM),
    ])
    def test_error_codes(self, src, code):
        with pytest.raises(ParseError) as exc:
            parse_program(src)
        assert exc.value.code == code

    @pytest.mark.parametrize("src", ["", "   \n\t", "; only a comment\n"])
    def test_empty_program(self, src):
        with pytest.raises(ParseError) as exc:
            parse_program(src, filename="empty.fl")
        assert exc.value.code == Codes.EMPTY_PROGRAM
        assert exc.value.loc.file == "empty.fl"

    def test_error_message_mentions_file(self):
        with pytest.raises(ParseError) as exc:
            parse_program("(decl x)", filename="bad.fl")
        assert str(exc.value).startswith("bad.fl:")
        assert "FL-1002" in str(exc.value)


class TestPrinter:

    def test_to_sexp(self):
        prog = parse_program("(decl x true) (while x (seq (assign x false) (free x)))")
        assert to_sexp(prog) == (
            "(seq (decl x true) (while x (seq (assign x false) (free x))))"
        )

    def test_left_nested_seq_is_preserved(self):
        a, b, c = A.Free("a"), A.Free("b"), A.Free("c")
        prog = A.Seq(A.Seq(a, b), c)
        assert to_sexp(prog) == "(seq (seq (free a) (free b)) (free c))"
        assert parse_program(to_sexp(prog)) == prog

    def test_format_program(self):
        prog = parse_program("(decl x true) (while x (seq (assign x false) (free x)))")
        assert format_program(prog) == "\n".join([
            "(seq",
            "  (decl x true)",
            "  (while x",
            "    (seq",
            "      (assign x false)",
            "      (free x))))",
        ])

    def test_format_program_reads_back(self):
        prog = parse_program(COUNTER_SRC)
        assert parse_program(format_program(prog, indent=4)) == prog

    def test_foreign_object(self):
        with pytest.raises(TypeError):
            to_sexp(["decl", "x"])
