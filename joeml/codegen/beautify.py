# joeml/codegen/beautify.py
"""생성 코드 정리(beautify) 패스.

Python `ast`로 한 번 파싱했다가 다시 출력해 들여쓰기/괄호/따옴표를 정규화한다.
실패(생성 텍스트가 올바른 Python이 아님)는 FormatError로 따로 보고하며,
원본 텍스트는 손대지 않고 `.raw`에 그대로 담는다.
"""

from __future__ import annotations
import ast as _pyast
from ..peg import deep_recursion


class FormatError(ValueError):
    def __init__(self, message: str, raw: str):
        super().__init__(message)
        self.raw = raw


def format_source(code: str) -> str:
    with deep_recursion():
        try:
            tree = _pyast.parse(code)
        except SyntaxError as e:
            raise FormatError(f"beautify: generated code does not parse ({e.msg} at line {e.lineno})", code) from e
        return _pyast.unparse(tree) + "\n"
