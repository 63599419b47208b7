# joeml/grammar/transform.py
"""PEG 파스 트리(ParseNode)를 JoeML AST로 변환한다.

- 트리 모양은 joeml.peg의 규칙 이름 규약을 따른다
  (대문자 규칙만 노드가 되고, 소문자 규칙은 자식이 부모로 펼쳐지며, `_` 규칙은 사라진다).
- 중위 연산자 체인(Infix)은 평평한 [항, 연산자, 항, ...] 목록으로 들어오며
  여기서 **왼쪽 결합** 이항 Application으로 접는다: a - b - c == (a - b) - c
- 피연산자 위치의 맨 식별자는 인자 0개짜리 Application이 된다.
"""

from __future__     import annotations
from bisect         import bisect_right
from ..peg          import ParseNode
from .ast           import *


class _Transformer:
    def __init__(self, text: str):
        self.text = text
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(text) if ch == "\n"]

    def span(self, start: int, end: int) -> Span:
        line = bisect_right(self._line_starts, start)
        col = start - self._line_starts[line - 1] + 1
        return Span(start, end, line, col)

    def loc(self, node: ParseNode) -> Span:
        return self.span(node.start, node.end)

    # ---- identifiers / types ----

    def identifier(self, node: ParseNode) -> Identifier:
        kind = {"LowerIdentifier": "lower", "UpperIdentifier": "upper"}.get(node.rule)
        if kind is None:
            raise AssertionError(f"transform: expected identifier, got {node.rule}")
        return Identifier(kind, node.text, self.loc(node))

    # ---- statements ----

    def program(self, node: ParseNode) -> Program:
        return Program(tuple(self.statement(c) for c in node.children))

    def statement(self, node: ParseNode) -> Statement:
        if node.rule == "FunctionDeclaration":
            return self.function_declaration(node)
        if node.rule == "FunctionAnnotation":
            name, type_expr = node.children
            return FunctionAnnotation(self.identifier(name), type_expr.text, self.loc(node))
        if node.rule == "RecordDeclaration":
            name, *fields = node.children
            return RecordDeclaration(
                self.identifier(name),
                tuple(RecordField(self.identifier(f.children[0]), f.children[1].text, self.loc(f))
                      for f in fields),
                self.loc(node),
            )
        if node.rule == "UnionDeclaration":
            name = self.identifier(node.children[0])
            tvars = tuple(self.identifier(c) for c in node.find("LowerIdentifier"))
            ctors = tuple(
                Constructor(self.identifier(c.children[0]),
                            tuple(a.text for a in c.children[1:]),
                            self.loc(c))
                for c in node.find("Constructor")
            )
            return UnionDeclaration(name, tvars, ctors, self.loc(node))
        raise AssertionError(f"transform: unknown statement {node.rule}")

    def function_declaration(self, node: ParseNode) -> FunctionDeclaration:
        # [이름, 매개변수..., 본문]
        name, *params, body = node.children
        return FunctionDeclaration(
            self.identifier(name),
            tuple(self.identifier(p) for p in params),
            self.expression(body),
            self.loc(node),
        )

    # ---- expressions ----

    def expression(self, node: ParseNode) -> Expression:
        rule = node.rule
        if rule == "Infix":
            return self.infix(node)
        if rule == "Application":
            name, *args = node.children
            return Application(self.identifier(name),
                               tuple(self.expression(a) for a in args),
                               self.loc(node))
        if rule == "LowerIdentifier":
            return Application(self.identifier(node), (), self.loc(node))
        if rule == "LetExpression":
            *bindings, body = node.children
            return LetExpression(
                tuple(self.function_declaration(b) for b in bindings),
                self.expression(body),
                self.loc(node),
            )
        if rule == "IfExpression":
            pred, t, f = node.children
            return IfExpression(self.expression(pred), self.expression(t),
                                self.expression(f), self.loc(node))
        if rule == "Number":
            return NumberLiteral(node.text, self.loc(node))
        if rule == "String":
            return StringLiteral(node.text, self.loc(node))
        raise AssertionError(f"transform: unknown expression {rule}")

    def infix(self, node: ParseNode) -> Expression:
        items = node.children
        acc = self.expression(items[0])
        start = items[0].start
        # 왼쪽 접기(left fold)
        for i in range(1, len(items), 2):
            op, rhs = items[i], items[i + 1]
            acc = Application(
                Identifier("lower", op.text, self.loc(op)),
                (acc, self.expression(rhs)),
                self.span(start, rhs.end),
            )
        return acc


def to_program(tree: ParseNode, text: str) -> Program:
    """Program 파스 트리 → Program AST"""
    return _Transformer(text).program(tree)
