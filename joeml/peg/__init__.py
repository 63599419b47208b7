# joeml/peg/__init__.py
"""Standalone PEG submodule for joeml.

This package provides:
- AST nodes for a small PEG subset, plus the parse tree nodes it produces
- A PEG grammar parser (parses `Rule <- expr` grammar text)
- A Packrat (memoizing) PEG engine/runtime with farthest-failure reporting

It is independent from the JoeML grammar; `joeml.grammar` drives it with the
bundled `grammar/joeml.peg` file.
"""

from .ast import (
    Literal, CharClass, Any, Seq, Choice, Repeat, And, Not, Ref,
    RuleDef, PegGrammar, ParseNode,
)
from .parser import parse_peg_grammar
from .runtime import PegProgram, PegRunner, PegMatchError, deep_recursion
