# joeml/grammar/ast.py
"""JoeML AST

- 파서(joeml.grammar.parser)가 한 번 만들고, 코드 생성기가 읽기만 한다.
- 모든 노드는 frozen dataclass이며 `location`(Span)을 가진다.
  Span은 진단 메시지와 생성 코드의 helper 이름에만 쓰이고 의미에는 영향이 없다.
- Expression은 닫힌 집합이다: Application | LetExpression | IfExpression
  | NumberLiteral | StringLiteral. 각 노드는 `type` 판별자를 갖는다.
- 레코드/유니온/타입 주석은 파싱만 하고 코드 생성은 하지 않는다.
"""

from __future__     import annotations
from dataclasses    import dataclass
from typing         import ClassVar, Optional, Tuple, Union


@dataclass(frozen=True)
class Span:
    start: int
    end: int
    line: int
    col: int


@dataclass(frozen=True)
class Identifier:
    """kind: 'lower'(변수/함수) | 'upper'(타입/생성자)"""
    kind: str
    value: str
    location: Optional[Span] = None


# ---- expressions ----

@dataclass(frozen=True)
class NumberLiteral:
    type: ClassVar[str] = "number"
    value: str                  # 숫자 원문
    location: Optional[Span] = None


@dataclass(frozen=True)
class StringLiteral:
    type: ClassVar[str] = "string"
    value: str                  # 따옴표 포함 원문, 그대로 방출
    location: Optional[Span] = None


@dataclass(frozen=True)
class Application:
    """함수 호출과 중위 연산자 사용을 모두 표현한다.
    인자가 없는 Application은 변수 참조일 수도 있다(코드 생성 시 판정)."""
    type: ClassVar[str] = "application"
    name: Identifier
    parameters: Tuple["Expression", ...] = ()
    location: Optional[Span] = None


@dataclass(frozen=True)
class LetExpression:
    type: ClassVar[str] = "let-expression"
    bindings: Tuple["FunctionDeclaration", ...]
    body: "Expression"
    location: Optional[Span] = None


@dataclass(frozen=True)
class IfExpression:
    type: ClassVar[str] = "if-expression"
    predicate: "Expression"
    true_expression: "Expression"
    false_expression: "Expression"
    location: Optional[Span] = None


Literal = Union[NumberLiteral, StringLiteral]
Expression = Union[Application, LetExpression, IfExpression, NumberLiteral, StringLiteral]


# ---- statements ----

@dataclass(frozen=True)
class FunctionDeclaration:
    type: ClassVar[str] = "function-declaration"
    name: Identifier
    parameters: Tuple[Identifier, ...]
    body: Expression
    location: Optional[Span] = None

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(frozen=True)
class FunctionAnnotation:
    type: ClassVar[str] = "function-annotation"
    name: Identifier
    type_annotation: str        # 타입 표기 원문
    location: Optional[Span] = None


@dataclass(frozen=True)
class RecordField:
    name: Identifier
    type_annotation: str
    location: Optional[Span] = None


@dataclass(frozen=True)
class RecordDeclaration:
    type: ClassVar[str] = "record-declaration"
    name: Identifier
    fields: Tuple[RecordField, ...] = ()
    location: Optional[Span] = None


@dataclass(frozen=True)
class Constructor:
    name: Identifier
    arguments: Tuple[str, ...] = ()   # 인자 타입 표기 원문
    location: Optional[Span] = None


@dataclass(frozen=True)
class UnionDeclaration:
    type: ClassVar[str] = "union-declaration"
    name: Identifier
    type_variables: Tuple[Identifier, ...]
    constructors: Tuple[Constructor, ...]
    location: Optional[Span] = None


Statement = Union[FunctionDeclaration, FunctionAnnotation, RecordDeclaration, UnionDeclaration]


@dataclass(frozen=True)
class Program:
    statements: Tuple[Statement, ...] = ()

    @property
    def functions(self) -> Tuple[FunctionDeclaration, ...]:
        return tuple(s for s in self.statements if isinstance(s, FunctionDeclaration))
