"""Tests for the JoeML grammar: source text -> Program AST."""

import dataclasses

import pytest

from joeml import ParseError, parse
from joeml.peg.runtime import TOO_DEEP
from joeml.grammar.ast import (
    Application, FunctionAnnotation, FunctionDeclaration, IfExpression,
    LetExpression, NumberLiteral, RecordDeclaration, StringLiteral,
    UnionDeclaration,
)


def only_function(src: str) -> FunctionDeclaration:
    program = parse(src)
    assert len(program.functions) == 1
    return program.functions[0]


def body_of(src: str):
    return only_function(src).body


def call_shape(expr):
    """Nested (name, args...) tuples; literals become their source text."""
    if isinstance(expr, Application):
        return (expr.name.value,) + tuple(call_shape(p) for p in expr.parameters)
    if isinstance(expr, (NumberLiteral, StringLiteral)):
        return expr.value
    return expr.type


# --- Functions ---

class TestFunctions:
    def test_hello_world(self):
        fn = only_function('main args { print "Hello World" }')
        assert fn.name.value == "main"
        assert [p.value for p in fn.parameters] == ["args"]
        assert call_shape(fn.body) == ("print", '"Hello World"')

    def test_no_parameters(self):
        fn = only_function("main { 1 }")
        assert fn.parameters == ()
        assert fn.arity == 0
        assert isinstance(fn.body, NumberLiteral)

    def test_several_functions(self):
        program = parse("foo { 1 }\nbar { 2 }\n\nmain { bar + foo }\n")
        assert [f.name.value for f in program.functions] == ["foo", "bar", "main"]

    def test_multiline_body(self):
        fn = only_function("main {\n  1\n}")
        assert fn.body.value == "1"

    def test_keyword_prefix_is_an_identifier(self):
        fn = only_function("index iffy { iffy }")
        assert fn.name.value == "index"
        assert call_shape(fn.body) == ("iffy",)

    def test_locations(self):
        program = parse("foo { 1 }\n  bar { 2 }")
        bar = program.functions[1]
        assert bar.location.line == 2
        assert bar.location.col == 3
        assert bar.name.location.start == 12


# --- Expressions ---

class TestExpressions:
    def test_application_arguments(self):
        assert call_shape(body_of("main { f a b }")) == ("f", ("a",), ("b",))

    def test_parenthesized_argument(self):
        assert call_shape(body_of("main { f (g a) b }")) == ("f", ("g", ("a",)), ("b",))

    def test_literal_arguments(self):
        assert call_shape(body_of('main { f 1 "x" }')) == ("f", "1", '"x"')

    def test_infix_folds_left(self):
        assert call_shape(body_of("main { 1 - 2 - 3 }")) == ("-", ("-", "1", "2"), "3")

    def test_operators_share_one_level(self):
        assert call_shape(body_of("main { 1 + 2 * 3 }")) == ("*", ("+", "1", "2"), "3")

    def test_parentheses_group(self):
        assert call_shape(body_of("main { 1 + (2 * 3) }")) == ("+", "1", ("*", "2", "3"))

    def test_application_binds_tighter_than_operator(self):
        assert call_shape(body_of("main { n * fact (n - 1) }")) == (
            "*", ("n",), ("fact", ("-", ("n",), "1")))

    def test_comparison_operators(self):
        for op in ("==", "!=", "<=", ">=", "<", ">"):
            assert call_shape(body_of(f"main {{ a {op} b }}")) == (op, ("a",), ("b",))

    def test_operator_identifier_kind(self):
        assert body_of("main { 1 + 2 }").name.kind == "lower"

    def test_if_expression(self):
        expr = body_of("main { if a then 1 else 2 }")
        assert isinstance(expr, IfExpression)
        assert call_shape(expr.predicate) == ("a",)
        assert expr.true_expression.value == "1"
        assert expr.false_expression.value == "2"

    def test_if_across_lines(self):
        expr = body_of("main {\n  if n == 0\n  then 1\n  else 2\n}")
        assert call_shape(expr.predicate) == ("==", ("n",), "0")

    def test_let_expression(self):
        expr = body_of("main { let f { 1 } g x { x } in { f } }")
        assert isinstance(expr, LetExpression)
        assert [b.name.value for b in expr.bindings] == ["f", "g"]
        assert [p.value for p in expr.bindings[1].parameters] == ["x"]
        assert call_shape(expr.body) == ("f",)

    def test_let_location_offset(self):
        assert body_of("main { let f { 1 } in { f } }").location.start == 7

    def test_nodes_are_immutable(self):
        expr = body_of("main { 1 }")
        with pytest.raises(dataclasses.FrozenInstanceError):
            expr.value = "2"


# --- Declarations that produce no code ---

class TestDeclarations:
    def test_annotation(self):
        program = parse("fact : Int -> Int\nfact n { n }")
        ann, fn = program.statements
        assert isinstance(ann, FunctionAnnotation)
        assert ann.name.value == "fact"
        assert ann.type_annotation == "Int -> Int"
        assert program.functions == (fn,)

    def test_record(self):
        (rec,) = parse("record Point { x : Int, y : Int }").statements
        assert isinstance(rec, RecordDeclaration)
        assert rec.name.value == "Point"
        assert [f.name.value for f in rec.fields] == ["x", "y"]

    def test_union(self):
        (u,) = parse("union Maybe a = Just a | Nothing").statements
        assert isinstance(u, UnionDeclaration)
        assert [t.value for t in u.type_variables] == ["a"]
        assert [c.name.value for c in u.constructors] == ["Just", "Nothing"]
        assert u.constructors[0].arguments == ("a",)
        assert u.constructors[1].arguments == ()

    def test_empty_program(self):
        assert parse("").statements == ()
        assert parse("  \n\n").functions == ()


# --- Errors ---

class TestErrors:
    def test_unterminated_string(self):
        src = 'main { print "oops }'
        with pytest.raises(ParseError) as exc:
            parse(src)
        assert exc.value.offset == len(src)
        assert '"\\""' in exc.value.expected

    def test_unmatched_brace(self):
        src = "main { 1 "
        with pytest.raises(ParseError) as exc:
            parse(src)
        assert exc.value.offset == len(src)
        assert '"}"' in exc.value.expected

    def test_stray_closing_brace(self):
        with pytest.raises(ParseError) as exc:
            parse("main { 1 } }")
        assert exc.value.offset == 11

    def test_keyword_is_not_a_function_name(self):
        with pytest.raises(ParseError) as exc:
            parse("let { 1 }")
        assert exc.value.offset == 0

    def test_keyword_is_not_a_variable(self):
        with pytest.raises(ParseError):
            parse("main { in }")

    def test_message_has_position_and_caret(self):
        with pytest.raises(ParseError) as exc:
            parse("foo { 1 }\nmain { ) }")
        err = exc.value
        assert (err.line, err.col) == (2, 8)
        assert "Parse error at 2:8" in str(err)
        assert "main { ) }\n       ^" in str(err)

    def test_is_syntax_error(self):
        with pytest.raises(SyntaxError):
            parse("main")


class TestNesting:
    def test_deep_parentheses_parse(self):
        src = "main { " + "(" * 150 + "1" + ")" * 150 + " }"
        assert isinstance(body_of(src), NumberLiteral)

    def test_deep_unclosed_parentheses_report_position(self):
        src = "main { " + "(" * 150 + "1 }"
        with pytest.raises(ParseError) as exc:
            parse(src)
        assert exc.value.offset == len(src) - 1
        assert '")"' in exc.value.expected

    def test_too_deep_is_parse_error(self):
        with pytest.raises(ParseError) as exc:
            parse("main { " + "(" * 3000 + "1 }")
        assert exc.value.expected == (TOO_DEEP,)
