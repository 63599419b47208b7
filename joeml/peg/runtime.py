# joeml/peg/runtime.py
from __future__ import annotations
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
from .ast import PegGrammar, ParseNode
from .parser import parse_peg_grammar
from .engine import Packrat, END_OF_INPUT


# The engine recurses a few frames per nesting level of the input.
DEEP_RECURSION_LIMIT = 5000
TOO_DEEP = "less deeply nested input"


@contextmanager
def deep_recursion(limit: int = DEEP_RECURSION_LIMIT) -> Iterator[None]:
    """Temporarily raise the interpreter recursion limit (never lowers it)."""
    old = sys.getrecursionlimit()
    sys.setrecursionlimit(max(old, limit))
    try:
        yield
    finally:
        sys.setrecursionlimit(old)


class PegMatchError(SyntaxError):
    """Input text did not match the grammar.

    `offset` is the farthest character offset any alternative reached and
    `expected` the sorted descriptions of what could have continued there.
    """

    def __init__(self, offset: int, expected: Tuple[str, ...]):
        super().__init__(f"PEG: no match at offset {offset}, expected one of {{{', '.join(expected)}}}")
        self.offset = offset
        self.expected = expected


@dataclass
class PegProgram:
    """Compiled PEG program."""
    grammar: PegGrammar

    @classmethod
    def from_source(cls, src: str) -> "PegProgram":
        g = parse_peg_grammar(src)
        return cls(g)


class PegRunner:
    """Match whole input texts against a compiled PEG program."""
    def __init__(self, program: PegProgram):
        self.program = program

    def parse_tree(self, text: str, rule_name: Optional[str] = None) -> ParseNode:
        """Match the whole of `text` and return the root node.

        The root is always a node for `rule_name`, even when the rule is
        silent or inline. Raises `PegMatchError` otherwise.
        """
        rule_name = rule_name or self.program.grammar.start
        engine = Packrat(self.program.grammar)
        try:
            with deep_recursion():
                ok, end, nodes = engine.parse(rule_name, text, 0)
        except RecursionError:
            raise PegMatchError(max(engine.fail_pos, 0), (TOO_DEEP,)) from None
        if ok and end == len(text):
            if len(nodes) == 1 and nodes[0].rule == rule_name:
                return nodes[0]
            return ParseNode(rule_name, 0, end, nodes, text)
        if ok and engine.fail_pos < end:
            # matched a prefix and nothing tried to go further
            raise PegMatchError(end, (END_OF_INPUT,))
        pos = max(engine.fail_pos, 0)
        expected = tuple(sorted(engine.expected)) or (END_OF_INPUT,)
        raise PegMatchError(pos, expected)
