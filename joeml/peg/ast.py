# joeml/peg/ast.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union

# ---- PEG AST node definitions ----

@dataclass(frozen=True)
class Literal:
    text: str  # unescaped text

    def describe(self) -> str:
        return '"' + self.text.replace("\n", "\\n").replace('"', '\\"') + '"'

@dataclass(frozen=True)
class CharClass:
    negated: bool
    # ranges are inclusive (lo..hi) codepoints; singles are str of length 1
    ranges: Tuple[Tuple[int, int], ...] = ()
    singles: Tuple[str, ...] = ()
    source: str = ""  # the class as written, used in error messages

    def describe(self) -> str:
        return self.source or "character class"

@dataclass(frozen=True)
class Any:
    def describe(self) -> str:
        return "any character"

@dataclass(frozen=True)
class Ref:
    name: str

@dataclass(frozen=True)
class And:
    node: "Node"  # positive lookahead (&)

@dataclass(frozen=True)
class Not:
    node: "Node"  # negative lookahead (!)

@dataclass(frozen=True)
class Repeat:
    node: "Node"
    kind: str  # '?', '*', '+'

@dataclass(frozen=True)
class Seq:
    items: Tuple["Node", ...]

@dataclass(frozen=True)
class Choice:
    alts: Tuple["Node", ...]

Node = Union[Literal, CharClass, Any, Ref, And, Not, Repeat, Seq, Choice]

@dataclass(frozen=True)
class RuleDef:
    name: str
    expr: Node
    display: Optional[str] = None  # reported instead of the rule internals

    @property
    def silent(self) -> bool:
        return self.name.startswith("_")

    @property
    def inline(self) -> bool:
        return self.name[:1].islower()

@dataclass
class PegGrammar:
    rules: Dict[str, RuleDef]
    start: str

    def require_rule(self, name: str) -> RuleDef:
        try:
            return self.rules[name]
        except KeyError:
            raise SyntaxError(f"PEG: undefined rule '{name}'")

    def check_refs(self) -> None:
        """Fail early on references to rules that were never defined."""
        def walk(node: Node) -> None:
            if isinstance(node, Ref):
                self.require_rule(node.name)
            elif isinstance(node, (And, Not, Repeat)):
                walk(node.node)
            elif isinstance(node, Seq):
                for it in node.items:
                    walk(it)
            elif isinstance(node, Choice):
                for it in node.alts:
                    walk(it)
        for rule in self.rules.values():
            walk(rule.expr)

# ---- parse tree produced by the engine ----

@dataclass(frozen=True)
class ParseNode:
    rule: str
    start: int
    end: int
    children: Tuple["ParseNode", ...] = field(default_factory=tuple)
    text: str = ""

    def find(self, rule: str) -> Tuple["ParseNode", ...]:
        """Direct children produced by `rule`."""
        return tuple(c for c in self.children if c.rule == rule)
