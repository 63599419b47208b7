# joeml/peg/engine.py
from __future__ import annotations
from typing import Dict, Tuple, Set
from .ast import (
    Literal, CharClass, Any, Ref, And, Not, Repeat, Seq, Choice,
    PegGrammar, Node, ParseNode
)

# Packrat engine:
# - Memoize only rule applications (rule_name, pos, silent) -> (ok, end, nodes)
# - Left recursion is not supported (typical PEG restriction).
# - Every evaluation returns the parse nodes it produced; tree shape is decided
#   by rule names (see RuleDef.silent / RuleDef.inline).
# - The farthest failing position and what was expected there are tracked for
#   error reporting. Lookahead bodies and named rules do not report internals.

Result = Tuple[bool, int, Tuple[ParseNode, ...]]

_NOTHING: Tuple[ParseNode, ...] = ()
END_OF_INPUT = "end of input"


def _class_match(cc: CharClass, ch: str) -> bool:
    cp = ord(ch)
    ok = ch in cc.singles or any(lo <= cp <= hi for (lo, hi) in cc.ranges)
    return (not ok) if cc.negated else ok


class Packrat:
    def __init__(self, g: PegGrammar):
        self.g = g
        # visited_flag: 1=in progress, 2=done
        self.memo: Dict[Tuple[str, int, bool], Tuple[int, Result]] = {}
        self.fail_pos = -1
        self.expected: Set[str] = set()
        self._silent = 0

    # ---- Public entrypoint for one rule ----
    def parse(self, rule_name: str, text: str, pos: int = 0) -> Result:
        self.memo.clear()
        self.fail_pos = -1
        self.expected = set()
        self._silent = 0
        return self._apply_rule(rule_name, text, pos)

    def _expect(self, pos: int, what: str) -> None:
        if self._silent:
            return
        if pos > self.fail_pos:
            self.fail_pos = pos
            self.expected = {what}
        elif pos == self.fail_pos:
            self.expected.add(what)

    # ---- Rule application with memoization ----
    def _apply_rule(self, name: str, text: str, pos: int) -> Result:
        key = (name, pos, self._silent > 0)
        m = self.memo.get(key)
        if m is not None:
            flag, res = m
            if flag == 1:
                # left recursion or re-entry -> fail (PEG disallows left recursion)
                return False, pos, _NOTHING
            return res

        self.memo[key] = (1, (False, pos, _NOTHING))
        rule = self.g.require_rule(name)
        if rule.display is not None:
            self._silent += 1
        try:
            ok, end, nodes = self._eval(rule.expr, text, pos)
        finally:
            if rule.display is not None:
                self._silent -= 1

        if not ok:
            if rule.display is not None:
                self._expect(pos, rule.display)
            res: Result = (False, pos, _NOTHING)
        elif rule.silent:
            res = (True, end, _NOTHING)
        elif rule.inline:
            res = (True, end, nodes)
        else:
            res = (True, end, (ParseNode(name, pos, end, nodes, text[pos:end]),))
        self.memo[key] = (2, res)
        return res

    def _lookahead(self, node: Node, text: str, pos: int) -> bool:
        self._silent += 1
        try:
            ok, _, _ = self._eval(node, text, pos)
        finally:
            self._silent -= 1
        return ok

    def _repeat(self, node: Node, text: str, pos: int) -> Result:
        cur = pos
        out: Tuple[ParseNode, ...] = _NOTHING
        while True:
            ok, end, nodes = self._eval(node, text, cur)
            if not ok or end == cur:
                break
            cur = end
            out += nodes
        return True, cur, out

    # ---- Evaluator for expressions ----
    def _eval(self, node: Node, text: str, pos: int) -> Result:
        if isinstance(node, Literal):
            if text.startswith(node.text, pos):
                return True, pos + len(node.text), _NOTHING
            self._expect(pos, node.describe())
            return False, pos, _NOTHING

        if isinstance(node, Any):
            if pos < len(text):
                return True, pos + 1, _NOTHING
            self._expect(pos, node.describe())
            return False, pos, _NOTHING

        if isinstance(node, CharClass):
            if pos < len(text) and _class_match(node, text[pos]):
                return True, pos + 1, _NOTHING
            self._expect(pos, node.describe())
            return False, pos, _NOTHING

        if isinstance(node, Ref):
            return self._apply_rule(node.name, text, pos)

        if isinstance(node, And):
            return self._lookahead(node.node, text, pos), pos, _NOTHING

        if isinstance(node, Not):
            if self._lookahead(node.node, text, pos):
                if isinstance(node.node, Any):
                    self._expect(pos, END_OF_INPUT)
                return False, pos, _NOTHING
            return True, pos, _NOTHING

        if isinstance(node, Repeat):
            if node.kind == "?":
                ok, end, nodes = self._eval(node.node, text, pos)
                return (True, end, nodes) if ok else (True, pos, _NOTHING)
            elif node.kind == "*":
                return self._repeat(node.node, text, pos)
            elif node.kind == "+":
                ok, end, nodes = self._eval(node.node, text, pos)
                if not ok:
                    return False, pos, _NOTHING
                ok, end, more = self._repeat(node.node, text, end)
                return True, end, nodes + more
            else:
                raise AssertionError(f"unknown repeat kind {node.kind!r}")

        if isinstance(node, Seq):
            cur = pos
            out: Tuple[ParseNode, ...] = _NOTHING
            for it in node.items:
                ok, end, nodes = self._eval(it, text, cur)
                if not ok:
                    return False, pos, _NOTHING
                cur = end
                out += nodes
            return True, cur, out

        if isinstance(node, Choice):
            for it in node.alts:
                res = self._eval(it, text, pos)
                if res[0]:
                    return res
            return False, pos, _NOTHING

        raise AssertionError(f"unknown node: {node!r}")
