"""Tests for the packrat PEG engine and the PEG grammar-text parser."""

import sys

import pytest

from joeml.peg import (
    CharClass, Choice, Literal, PegMatchError, PegProgram, PegRunner, Ref,
    Repeat, deep_recursion, parse_peg_grammar,
)


SUM = r'''
# sums of numbers; "op" is spliced into Sum, "_" disappears
Sum <- Product (op Product)*
op <- _ Op _
Op "operator" <- "+" / "-"
Product <- [0-9]+
_ "space" <- [ ]*
'''


def runner(src: str) -> PegRunner:
    return PegRunner(PegProgram.from_source(src))


# --- Grammar text ---

class TestGrammarText:
    def test_first_rule_is_start(self):
        g = parse_peg_grammar(SUM)
        assert g.start == "Sum"
        assert set(g.rules) == {"Sum", "op", "Op", "Product", "_"}

    def test_display_name(self):
        g = parse_peg_grammar(SUM)
        assert g.rules["Op"].display == "operator"
        assert g.rules["Sum"].display is None

    def test_choice_of_literals(self):
        g = parse_peg_grammar(SUM)
        assert g.rules["Op"].expr == Choice((Literal("+"), Literal("-")))

    def test_class_ranges_and_singles(self):
        g = parse_peg_grammar(r"A <- [a-c_\n]")
        cc = g.rules["A"].expr
        assert isinstance(cc, CharClass)
        assert cc.ranges == ((ord("a"), ord("c")),)
        assert cc.singles == ("_", "\n")
        assert not cc.negated

    def test_negated_class(self):
        cc = parse_peg_grammar(r'A <- [^"]').rules["A"].expr
        assert cc.negated
        assert cc.singles == ('"',)

    def test_suffix(self):
        g = parse_peg_grammar("A <- B*\nB <- 'b'")
        assert g.rules["A"].expr == Repeat(Ref("B"), "*")

    def test_undefined_rule_rejected(self):
        with pytest.raises(SyntaxError, match="undefined rule 'Missing'"):
            parse_peg_grammar("A <- Missing")

    def test_duplicate_rule_rejected(self):
        with pytest.raises(SyntaxError, match="duplicate rule"):
            parse_peg_grammar("A <- 'a'\nA <- 'b'")

    def test_empty_grammar_rejected(self):
        with pytest.raises(SyntaxError, match="empty PEG grammar"):
            parse_peg_grammar("# nothing here\n")

    def test_unterminated_literal(self):
        with pytest.raises(SyntaxError, match="unterminated string"):
            parse_peg_grammar("A <- 'abc\n")


# --- Matching ---

class TestMatching:
    def test_tree_shape(self):
        tree = runner(SUM).parse_tree("12 + 3 - 4")
        assert tree.rule == "Sum"
        assert [c.rule for c in tree.children] == ["Product", "Op", "Product", "Op", "Product"]
        assert [c.text for c in tree.children] == ["12", "+", "3", "-", "4"]
        assert tree.children[2].start == 5

    def test_find(self):
        tree = runner(SUM).parse_tree("1+2")
        assert [c.text for c in tree.find("Product")] == ["1", "2"]

    def test_left_recursion_fails_instead_of_looping(self):
        r = runner('Expr <- Expr "+" "1" / "1"')
        assert r.parse_tree("1").text == "1"
        with pytest.raises(PegMatchError) as exc:
            r.parse_tree("1+1")
        assert exc.value.offset == 1

    def test_lookahead_consumes_nothing(self):
        r = runner('Word <- !"if" [a-z]+')
        assert r.parse_tree("fi").end == 2
        with pytest.raises(PegMatchError) as exc:
            r.parse_tree("iffy")
        assert exc.value.offset == 0


# --- Errors ---

class TestErrors:
    def test_farthest_failure(self):
        with pytest.raises(PegMatchError) as exc:
            runner(SUM).parse_tree("1 +")
        assert exc.value.offset == 3
        assert exc.value.expected == ("[0-9]",)

    def test_named_rule_reports_display_name(self):
        with pytest.raises(PegMatchError) as exc:
            runner(SUM).parse_tree("1 1")
        assert exc.value.offset == 2
        assert exc.value.expected == ("operator",)

    def test_end_of_input(self):
        with pytest.raises(PegMatchError) as exc:
            runner('Start <- "a" !.').parse_tree("ab")
        assert exc.value.offset == 1
        assert exc.value.expected == ("end of input",)

    def test_is_syntax_error(self):
        with pytest.raises(SyntaxError):
            runner(SUM).parse_tree("")


# --- Recursion limit ---

class TestDeepRecursion:
    def test_limit_restored(self):
        before = sys.getrecursionlimit()
        with deep_recursion(before + 100):
            assert sys.getrecursionlimit() == before + 100
        assert sys.getrecursionlimit() == before

    def test_never_lowers(self):
        before = sys.getrecursionlimit()
        with deep_recursion(10):
            assert sys.getrecursionlimit() == before
        assert sys.getrecursionlimit() == before

    def test_deep_nesting_is_match_error(self):
        r = runner('E <- "(" E ")" / "x"')
        assert r.parse_tree("(" * 50 + "x" + ")" * 50).end == 101
        with pytest.raises(PegMatchError):
            r.parse_tree("(" * 5000 + "x")
