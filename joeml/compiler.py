# joeml/compiler.py
"""컴파일 파이프라인: 소스 → AST → Python 함수 정의 (→ beautify)"""

from __future__ import annotations
from .grammar.parser import parse
from .codegen.emit_py import generate
from .codegen.beautify import format_source


def compile_source(code: str, beautify: bool = True) -> str:
    """JoeML 소스를 Python 소스로 컴파일한다.

    ParseError / GenerationError는 그대로 전파된다(부분 출력 없음).
    beautify 실패는 FormatError(.raw에 원본 생성 코드)로 구분해 전파된다.
    """
    py_code = generate(parse(code))
    if not beautify:
        return py_code
    return format_source(py_code)
