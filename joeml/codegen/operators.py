# joeml/codegen/operators.py
"""중위 연산자 테이블

JoeML 연산자 이름 → 호스트(Python) 이항 연산자.
닫힌 고정 집합이며 코드 생성기에 설정으로 주입된다(emit_py.generate(..., operators=)).
여기에 없는 이름은 절대 중위 연산으로 방출되지 않는다.

JoeML 연산자는 모두 같은 우선순위의 왼쪽 결합이다. 방출 결과는 항상 `(lhs op rhs)`로
감싸되, 왼쪽 피연산자가 Python에서도 같은 우선순위의 왼쪽 결합 연산이면 그 괄호는 벗긴다.
그래서 `1 + 2 - 3`은 `(1 + 2 - 3)`이 되고 괄호 깊이가 항 개수만큼 늘지 않는다.
비교 연산자는 Python에서 연쇄 비교가 되므로 벗기지 않는다.
"""

from __future__ import annotations
from types      import MappingProxyType
from typing     import Mapping, Optional

INFIX_OPERATORS: Mapping[str, str] = MappingProxyType({
    "==": "==",
    "!=": "!=",
    "<=": "<=",
    ">=": ">=",
    "<":  "<",
    ">":  ">",
    "+":  "+",
    "-":  "-",
    "*":  "*",
})

# Python에서 같은 우선순위로 왼쪽 결합하는 이항 연산자 묶음
_LEFT_CHAINS = (
    frozenset({"+", "-"}),
    frozenset({"*", "@", "/", "//", "%"}),
)


def chains_left(operators: Mapping[str, str], outer: str, inner: str) -> bool:
    """inner 연산 결과를 outer의 왼쪽 피연산자로 괄호 없이 쓸 수 있는가?"""
    a, b = operators[outer], operators[inner]
    return any(a in group and b in group for group in _LEFT_CHAINS)


def render_infix(operators: Mapping[str, str], name: str, lhs: str, rhs: str,
                 lhs_operator: Optional[str] = None) -> str:
    """`(lhs op rhs)`. lhs_operator는 lhs를 만든 연산자 이름(있다면)."""
    if lhs_operator is not None and chains_left(operators, name, lhs_operator):
        lhs = lhs[1:-1]
    return f"({lhs} {operators[name]} {rhs})"
