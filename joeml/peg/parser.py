# joeml/peg/parser.py
from __future__ import annotations
import regex as re
from typing import Optional, List, Tuple, Dict
from .ast import (
    Literal, CharClass, Any, Ref, And, Not, Repeat, Seq, Choice,
    RuleDef, PegGrammar, Node
)

# Notation accepted here (one rule per head, first rule starts):
#
#   Name "shown as" <- alt / alt      display literal is optional
#   alt      : prefixed items, in order
#   prefixed : &item | !item | item, with ? * + glued to the item
#   item     : Name | 'lit' | "lit" | [class] | [^class] | . | ( alts )
#
# Escapes in literals and classes: \n \r \t \\ \" \' \xHH \uXXXX.
# Whitespace inside [...] is matched literally. Comments start with # or //.
# A sequence ends where the next `Name ("shown as")? <-` begins.

_IDENT_RE = re.compile(r"[\p{L}_][\p{L}\p{N}_]*")
_RULE_HEAD_RE = re.compile(
    r"""[\p{L}_][\p{L}\p{N}_]*\s*(?:"(?:\\.|[^"\\])*"\s*|'(?:\\.|[^'\\])*'\s*)?<-"""
)

_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "'": "'", '"': '"', "\\": "\\",
                   "[": "[", "]": "]", "-": "-", "^": "^"}


class _TS:
    def __init__(self, src: str):
        self.s = src
        self.i = 0
        self.n = len(src)

    def _peek(self) -> Optional[str]:
        return self.s[self.i] if self.i < self.n else None

    def _eof(self) -> bool:
        return self.i >= self.n

    def _err(self, msg: str) -> SyntaxError:
        line = self.s.count("\n", 0, self.i) + 1
        col = self.i - (self.s.rfind("\n", 0, self.i) + 1) + 1
        return SyntaxError(f"PEG grammar error at {line}:{col}: {msg}")

    def _skip_ws(self) -> None:
        while not self._eof():
            ch = self.s[self.i]
            if ch in " \t\r\n":
                self.i += 1
            elif ch == "#" or self.s.startswith("//", self.i):
                j = self.s.find("\n", self.i)
                self.i = self.n if j == -1 else j + 1
            else:
                break

    def _try_eat(self, lit: str) -> bool:
        self._skip_ws()
        if self.s.startswith(lit, self.i):
            self.i += len(lit)
            return True
        return False

    def _eat(self, lit: str) -> None:
        if not self._try_eat(lit):
            raise self._err(f"expected {lit!r}")

    def _ident(self) -> str:
        self._skip_ws()
        m = _IDENT_RE.match(self.s, self.i)
        if m is None:
            raise self._err("expected IDENT")
        self.i = m.end()
        return m.group(0)

    def _at_rule_head(self) -> bool:
        self._skip_ws()
        return _RULE_HEAD_RE.match(self.s, self.i) is not None

    def _read_escape(self) -> str:
        c = self._peek()
        if c is None:
            raise self._err("unterminated escape")
        if c in _SIMPLE_ESCAPES:
            self.i += 1
            return _SIMPLE_ESCAPES[c]
        width = {"x": 2, "u": 4}.get(c)
        if width is None:
            # unknown escape: the character itself
            self.i += 1
            return c
        digits = self.s[self.i + 1:self.i + 1 + width]
        if len(digits) != width or not all(d in "0123456789abcdefABCDEF" for d in digits):
            raise self._err("invalid hex escape")
        self.i += 1 + width
        return chr(int(digits, 16))

    def _literal(self) -> Literal:
        self._skip_ws()
        q = self._peek()
        if q not in ("'", '"'):
            raise self._err("expected quote")
        self.i += 1
        out: List[str] = []
        while True:
            c = self._peek()
            if c is None or c == "\n":
                raise self._err("unterminated string")
            self.i += 1
            if c == q:
                break
            out.append(self._read_escape() if c == "\\" else c)
        return Literal("".join(out))

    def _class(self) -> CharClass:
        self._skip_ws()
        start = self.i
        if self._peek() != "[":
            raise self._err("expected '['")
        self.i += 1
        neg = False
        if self._peek() == "^":
            neg = True
            self.i += 1
        ranges: List[Tuple[int, int]] = []
        singles: List[str] = []

        def read_char() -> str:
            c = self._peek()
            if c is None or c == "\n":
                raise self._err("unterminated char class")
            self.i += 1
            return self._read_escape() if c == "\\" else c

        # whitespace inside a class is significant
        while self._peek() != "]":
            a = read_char()
            if self._peek() == "-" and self.s[self.i + 1:self.i + 2] not in ("]", ""):
                self.i += 1
                b = read_char()
                if ord(a) > ord(b):
                    a, b = b, a
                ranges.append((ord(a), ord(b)))
            else:
                singles.append(a)
        self.i += 1
        return CharClass(negated=neg, ranges=tuple(ranges), singles=tuple(singles),
                         source=self.s[start:self.i])

    # --- recursive descent for expressions ---

    def grammar(self) -> PegGrammar:
        rules: Dict[str, RuleDef] = {}
        first: Optional[str] = None
        while True:
            self._skip_ws()
            if self._eof():
                break
            name = self._ident()
            self._skip_ws()
            display = self._literal().text if self._peek() in ("'", '"') else None
            self._eat("<-")
            expr = self._choice()
            if name in rules:
                raise self._err(f"duplicate rule '{name}'")
            rules[name] = RuleDef(name, expr, display)
            if first is None:
                first = name
        if first is None:
            raise self._err("empty PEG grammar")
        g = PegGrammar(rules=rules, start=first)
        g.check_refs()
        return g

    def _choice(self) -> Node:
        alts = [self._sequence()]
        while self._try_eat("/"):
            alts.append(self._sequence())
        if len(alts) == 1:
            return alts[0]
        return Choice(tuple(alts))

    def _sequence(self) -> Node:
        items: List[Node] = []
        while True:
            self._skip_ws()
            ch = self._peek()
            # stop at ) or / or the next rule head (IDENT display? "<-")
            if ch is None or ch in ")/" or self._at_rule_head():
                break
            items.append(self._prefixed())
        if len(items) == 1:
            return items[0]
        return Seq(tuple(items))  # empty sequence is epsilon

    def _prefixed(self) -> Node:
        if self._try_eat("&"):
            return And(self._suffixed())
        if self._try_eat("!"):
            return Not(self._suffixed())
        return self._suffixed()

    def _suffixed(self) -> Node:
        node = self._item()
        # a suffix must follow its item directly
        ch = self._peek()
        if ch is not None and ch in "?*+":
            self.i += 1
            return Repeat(node, ch)
        return node

    def _item(self) -> Node:
        self._skip_ws()
        ch = self._peek()
        if ch == "(":
            self.i += 1
            e = self._choice()
            self._eat(")")
            return e
        if ch == ".":
            self.i += 1
            return Any()
        if ch in ("'", '"'):
            return self._literal()
        if ch == "[":
            return self._class()
        return Ref(self._ident())


def parse_peg_grammar(src: str) -> PegGrammar:
    """Parse PEG grammar text into a `PegGrammar`; the first rule is the start rule."""
    return _TS(src).grammar()
