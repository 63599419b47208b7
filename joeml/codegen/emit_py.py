# joeml/codegen/emit_py.py
"""Python Code Emit (JoeML AST → Python 함수 정의 텍스트).

개요
----
- Program의 최상위 FunctionDeclaration 하나당 `def` 하나를 **문자열로** 생성한다.
- 레코드/유니온/타입 주석 문장은 무시한다.
- 재귀 내내 불변 컨텍스트(GenContext)를 값으로 넘긴다:
  * fn         : 현재 생성 중인 함수 (자기 꼬리 호출 판정용)
  * tail       : 이 위치가 곧바로 함수 결과인지(= return을 방출해야 하는지)
  * tail_calls : fn 본문의 구조적 꼬리 호출 목록 (tail_calls() 결과)
  * scope      : 인자 0개 Application을 변수 읽기로 볼 이름 집합
  * operators  : 주입된 중위 연산자 테이블

표현식 하나는 Fragment(lines, value)로 방출된다.
- tail 위치 : lines는 return/continue로 끝나는 완전한 문장들, value는 None
- 그 외     : lines는 value를 쓰는 문장 **앞에** 놓일 helper `def`들, value는 식
  helper는 `def` 문장뿐이라 앞으로 끌어올려도 평가 순서가 바뀌지 않는다.

꼬리 호출 최적화
----------------
- 함수 본문에 구조적 자기 꼬리 호출이 하나라도 있으면 본문 전체를
  `while True:` 루프로 감싼다.
- 그런 호출 지점은 모든 인자를 먼저 평가한 뒤 매개변수에 한꺼번에 대입하고
  (튜플 대입: f (a - 1) a 는 옛 a를 읽는다) `continue` 한다.
- 결과적으로 꼬리 재귀 함수의 스택 깊이는 입력 크기와 무관하게 O(1)이다.

let 식
------
- `_let_<offset>()` helper로 내린다. helper 안에 바인딩 함수들을 정의하고
  본문 값을 return 한다. 바인딩은 let 본문 밖으로 새지 않고, 형제끼리는 서로 보인다.
- 본문은 helper 경계를 넘으므로 바깥 함수 기준으로 tail 위치가 아니다.
"""

from __future__ import annotations
import keyword
import regex as re
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Mapping, Optional, Tuple
from ..peg import deep_recursion
from ..grammar.ast import (
    Application, Expression, FunctionDeclaration, IfExpression, LetExpression,
    NumberLiteral, Program, StringLiteral,
)
from .operators import INFIX_OPERATORS, render_infix

INDENT = "    "

_PY_IDENT_RE = re.compile(r"[\p{XID_Start}_]\p{XID_Continue}*")


class GenerationError(AssertionError):
    """생성기가 처리할 수 없는 AST (문법이 만든 트리라면 도달 불가)."""


@dataclass(frozen=True)
class GenContext:
    fn: Optional[FunctionDeclaration] = None
    tail: bool = False
    tail_calls: Tuple[Application, ...] = ()
    scope: FrozenSet[str] = frozenset()
    operators: Mapping[str, str] = field(default_factory=lambda: INFIX_OPERATORS)

    def derive(self, **changes) -> "GenContext":
        return replace(self, **changes)

    def is_loop_call(self, app: Application) -> bool:
        """루프 재진입으로 바꿀 수 있는 자기 꼬리 호출인가?"""
        return (
            self.tail
            and self.fn is not None
            and app.name.value == self.fn.name.value
            and len(app.parameters) == self.fn.arity
            and any(tc is app for tc in self.tail_calls)
        )


@dataclass(frozen=True)
class Fragment:
    lines: Tuple[str, ...] = ()
    value: Optional[str] = None


# ---------- 유틸 ----------

def _indent(lines: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(INDENT + ln if ln else ln for ln in lines)


def py_name(name: str) -> str:
    """JoeML 식별자 → Python 식별자.
    예약어는 앞에 `_`를 붙인다. JoeML 식별자는 `_`로 시작할 수 없어 충돌하지 않는다."""
    if not _PY_IDENT_RE.fullmatch(name):
        raise GenerationError(f"emit_py: {name!r} is not a valid host identifier")
    return "_" + name if keyword.iskeyword(name) else name


def _is_infix(ctx: GenContext, expr: Expression) -> bool:
    return (isinstance(expr, Application)
            and expr.name.value in ctx.operators
            and len(expr.parameters) == 2)


def _finish(ctx: GenContext, prelude: Tuple[str, ...], value: str) -> Fragment:
    """tail 위치면 return 문으로 마무리, 아니면 식 그대로."""
    if ctx.tail:
        return Fragment(prelude + (f"return {value}",))
    return Fragment(prelude, value)


def _values(ctx: GenContext, exprs: Tuple[Expression, ...]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """인자/피연산자들을 non-tail로 생성해 (helper 문장들, 값 식들)을 돌려준다."""
    value_ctx = ctx.derive(tail=False)
    prelude: Tuple[str, ...] = ()
    values = []
    for e in exprs:
        frag = generate_expression(value_ctx, e)
        prelude += frag.lines
        values.append(frag.value)
    return prelude, tuple(values)


# ---------- 꼬리 호출 스캔 ----------

def tail_calls(fn_name: str, arity: int, expr: Expression) -> Tuple[Application, ...]:
    """구조적 꼬리 호출 스캔.
    if 분기와 let 본문만 따라간다(인자/조건식은 보지 않는다).
    이름과 인자 수가 fn과 같은 Application을 모은다."""
    if isinstance(expr, Application):
        if expr.name.value == fn_name and len(expr.parameters) == arity:
            return (expr,)
        return ()
    if isinstance(expr, IfExpression):
        return (tail_calls(fn_name, arity, expr.true_expression)
                + tail_calls(fn_name, arity, expr.false_expression))
    if isinstance(expr, LetExpression):
        return tail_calls(fn_name, arity, expr.body)
    return ()


# ---------- 노드별 생성 ----------

def _application(ctx: GenContext, app: Application) -> Fragment:
    name = app.name.value

    if ctx.is_loop_call(app):
        prelude, values = _values(ctx, app.parameters)
        params = [py_name(p.value) for p in ctx.fn.parameters]
        lines = prelude
        if params:
            lines += (f"{', '.join(params)} = {', '.join(values)}",)
        return Fragment(lines + ("continue",))

    if _is_infix(ctx, app):
        prelude, (lhs, rhs) = _values(ctx, app.parameters)
        left = app.parameters[0]
        lhs_operator = left.name.value if _is_infix(ctx, left) else None
        return _finish(ctx, prelude, render_infix(ctx.operators, name, lhs, rhs, lhs_operator))

    if not app.parameters and name in ctx.scope:
        # 매개변수 읽기 (같은 이름의 함수보다 우선)
        return _finish(ctx, (), py_name(name))

    prelude, values = _values(ctx, app.parameters)
    return _finish(ctx, prelude, f"{py_name(name)}({', '.join(values)})")


def _let_helper_name(expr: LetExpression) -> str:
    if expr.location is not None:
        return f"_let_{expr.location.start}"
    return f"_let_{id(expr):x}"


def _let_expression(ctx: GenContext, expr: LetExpression) -> Fragment:
    helper = _let_helper_name(expr)
    # 바인딩 이름은 let 안에서 바깥 매개변수를 가린다
    inner = ctx.derive(scope=ctx.scope - {b.name.value for b in expr.bindings})

    body_lines: Tuple[str, ...] = ()
    for b in expr.bindings:
        body_lines += generate_function(inner, b)
    # 본문의 자기 호출은 helper 안의 일반 호출이다(루프로 바뀌지 않아 재귀 깊이만큼 스택을 쓴다)
    body = generate_expression(inner.derive(tail=False), expr.body)
    body_lines += body.lines + (f"return {body.value}",)

    helper_def = (f"def {helper}():",) + _indent(body_lines)
    return _finish(ctx, helper_def, f"{helper}()")


def _if_expression(ctx: GenContext, expr: IfExpression) -> Fragment:
    pred = generate_expression(ctx.derive(tail=False), expr.predicate)

    if ctx.tail:
        t = generate_expression(ctx, expr.true_expression)
        lines = pred.lines + (f"if {pred.value}:",) + _indent(t.lines)
        # else if 사슬은 들여쓰기를 늘리지 않도록 elif로 펼친다
        rest = expr.false_expression
        while isinstance(rest, IfExpression):
            p = generate_expression(ctx.derive(tail=False), rest.predicate)
            if p.lines:
                break
            t = generate_expression(ctx, rest.true_expression)
            lines += (f"elif {p.value}:",) + _indent(t.lines)
            rest = rest.false_expression
        f = generate_expression(ctx, rest)
        return Fragment(lines + ("else:",) + _indent(f.lines))

    value_ctx = ctx.derive(tail=False)
    t = generate_expression(value_ctx, expr.true_expression)
    f = generate_expression(value_ctx, expr.false_expression)
    return Fragment(pred.lines + t.lines + f.lines,
                    f"({t.value} if {pred.value} else {f.value})")


def generate_expression(ctx: GenContext, expr: Expression) -> Fragment:
    if isinstance(expr, Application):
        return _application(ctx, expr)
    if isinstance(expr, LetExpression):
        return _let_expression(ctx, expr)
    if isinstance(expr, IfExpression):
        return _if_expression(ctx, expr)
    if isinstance(expr, StringLiteral):
        return _finish(ctx, (), expr.value)
    if isinstance(expr, NumberLiteral):
        return _finish(ctx, (), str(int(expr.value)))

    raise GenerationError(f"emit_py: unhandled expression: {expr!r}")


def generate_function(ctx: GenContext, fn: FunctionDeclaration) -> Tuple[str, ...]:
    """FunctionDeclaration → `def` 문장 줄들 (들여쓰기 0 기준)."""
    params = tuple(p.value for p in fn.parameters)
    calls = tail_calls(fn.name.value, fn.arity, fn.body)
    inner = ctx.derive(fn=fn, tail=True, tail_calls=calls,
                       scope=ctx.scope | frozenset(params))

    body = generate_expression(inner, fn.body).lines
    if calls:
        body = (f"while True:  # {fn.name.value}",) + _indent(body)

    header = f"def {py_name(fn.name.value)}({', '.join(py_name(p) for p in params)}):"
    return (header,) + _indent(body)


def generate(program: Program, operators: Mapping[str, str] = INFIX_OPERATORS) -> str:
    """Program → 최상위 함수 정의들(Python 소스 텍스트).
    프로그램 래핑(print/printLn 주입, main 호출)은 codegen.program이 담당한다."""
    ctx = GenContext(operators=operators)
    with deep_recursion():
        defs = ["\n".join(generate_function(ctx, fn)) for fn in program.functions]
    return "\n\n\n".join(defs) + "\n"
