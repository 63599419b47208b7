# joeml/codegen/program.py
"""프로그램 래퍼 & 실행 하네스

- wrap_program(body): 생성된 함수 정의들을 `__program__(_io)` 하나로 감싼다.
  `print` / `printLn`은 `_io`(메모리 버퍼)에 쓰도록 주입되고, `main`을 돌려준다.
- run_program(source): 파싱 → 생성 → 래핑 → 새 네임스페이스에서 exec → main 호출.
  캡처된 stdout과 main의 반환값을 RunResult로 돌려준다.
"""

from __future__ import annotations
import inspect
from dataclasses import dataclass
from typing import Any, Sequence
from ..grammar.parser import parse
from .emit_py import INDENT, generate

ENTRY_POINT = "main"
PROGRAM_FN = "__program__"


class ProgramError(RuntimeError):
    """실행할 수 있는 main이 없거나 main 시그니처가 맞지 않음."""


@dataclass
class Io:
    """생성 코드가 이름으로 호출하는 I/O capability."""
    stdout: str = ""

    def print(self, value: Any) -> None:
        self.stdout += str(value)

    def print_ln(self, value: Any) -> None:
        self.stdout += str(value) + "\n"


@dataclass(frozen=True)
class RunResult:
    stdout: str
    value: Any


def wrap_program(body: str) -> str:
    """함수 정의 텍스트 → 실행 가능한 단위(모듈 소스)."""
    nested = "\n".join(INDENT + ln if ln.strip() else "" for ln in body.splitlines())
    return f"""\
def {PROGRAM_FN}(_io):
    def print(value):
        return _io.print(value)

    def printLn(value):
        return _io.print_ln(value)

{nested}

    return {ENTRY_POINT}
"""


def _entry_args(entry, args: Sequence[Any]) -> tuple:
    arity = len(inspect.signature(entry).parameters)
    if arity == 0:
        return ()
    if arity == 1:
        return (tuple(args),)
    raise ProgramError(f"'{ENTRY_POINT}' takes at most one parameter, got {arity}")


def run_program(source: str, args: Sequence[Any] = ()) -> RunResult:
    program = parse(source)
    if not any(fn.name.value == ENTRY_POINT for fn in program.functions):
        raise ProgramError(f"program has no '{ENTRY_POINT}' function")

    unit = wrap_program(generate(program))
    namespace: dict = {}
    exec(compile(unit, "<joeml>", "exec"), namespace)

    io = Io()
    entry = namespace[PROGRAM_FN](io)
    value = entry(*_entry_args(entry, args))
    return RunResult(io.stdout, value)
