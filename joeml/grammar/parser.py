"""JoeML 파서 (grammar-driven)
- 패키지에 포함된 joeml.peg 문법을 PEG 엔진(joeml.peg)으로 컴파일해 한 번만 캐시한다.
- parse(text) 호출마다 새 Packrat 엔진을 만들므로 호출 간 공유 가변 상태가 없다.
- 불일치 시 ParseError: 가장 멀리 진행한 오프셋 + 그 위치에서 기대한 항목 집합.
  부분 AST는 돌려주지 않는다.
"""

from __future__ import annotations
from functools  import lru_cache
from typing     import Tuple
from ..peg      import PegProgram, PegRunner, PegMatchError, deep_recursion
from .ast       import Program
from .loader    import load_grammar_text
from .transform import to_program


class ParseError(SyntaxError):
    """JoeML 구문 오류. offset(0-based 문자 위치), line/col(1-based), expected."""

    def __init__(self, src: str, offset: int, expected: Tuple[str, ...]):
        start, _ = _line_bounds(src, offset)
        line = src.count("\n", 0, offset) + 1
        col = (offset - start) + 1
        found = "end of input" if offset >= len(src) else repr(src[offset])
        super().__init__(
            f"Parse error at {line}:{col}: unexpected {found}, "
            f"expected one of {{{', '.join(expected)}}}\n" + _caret_snippet(src, offset)
        )
        self.offset = offset
        self.line = line
        self.col = col
        self.expected = expected


# ---------- error handling utils ----------

def _line_bounds(src: str, pos: int) -> Tuple[int, int]:
    """pos가 속한 라인의 [start, end) 범위를 반환."""
    start = src.rfind("\n", 0, pos)
    start = 0 if start < 0 else start + 1
    end = src.find("\n", pos)
    end = len(src) if end < 0 else end
    return start, end


def _caret_snippet(src: str, pos: int) -> str:
    """해당 절대 오프셋 pos에 캐럿(^)을 찍은 스니펫을 생성."""
    start, end = _line_bounds(src, pos)
    line = src[start:end]
    caret = " " * (pos - start) + "^"
    return f"{line}\n{caret}"


# ---------- entrypoint ----------

@lru_cache(maxsize=None)
def joeml_program() -> PegProgram:
    """joeml.peg를 컴파일한 PegProgram (불변, 프로세스당 1회)"""
    return PegProgram.from_source(load_grammar_text())


def parse(text: str) -> Program:
    """JoeML 소스 텍스트 → Program AST"""
    runner = PegRunner(joeml_program())
    try:
        tree = runner.parse_tree(text, "Program")
    except PegMatchError as e:
        raise ParseError(text, e.offset, e.expected) from None
    with deep_recursion():
        return to_program(tree, text)
