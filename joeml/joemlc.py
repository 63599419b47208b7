# joeml/joemlc.py
"""joemlc – JoeML CLI

사용 예)
    $ python -m joeml.joemlc fact.jml
    $ python -m joeml.joemlc -e 'main { 1 + 2 }' --raw
    $ python -m joeml.joemlc -e 'main args { printLn "hi" }' --run -D

기능
----
- 기본   : JoeML 소스를 Python 코드로 컴파일해 표준출력에 쓴다(beautify 적용)
- --raw  : beautify 없이 생성 코드를 그대로 출력
- --run  : main을 실행하고 캡처된 표준출력을 그대로 출력

생성 코드와 형식화된 오류 메시지는 표준출력으로 나간다.
종료 코드: 0=성공(beautify 실패 시에도 원본 코드를 출력하고 0), 1=입력 없음/읽기 실패/컴파일 오류.
디버그 모드(-D/--debug)를 켜면 단계별 요약을 표준에러로 출력합니다.
"""

from __future__ import annotations
import argparse
import sys
from typing import Optional

# ------------------------------
# 헬퍼
# ------------------------------

def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)


def _read_input(args) -> Optional[str]:
    """-e 코드 또는 파일 경로에서 소스를 읽는다. 실패 시 None."""
    from .grammar.loader import load_source_text

    if args.eval is not None:
        return args.eval
    if args.file is None:
        _eprint("Error: No joeml code provided. Use a file path or -e option.")
        return None
    try:
        return load_source_text(args.file)
    except (OSError, UnicodeDecodeError) as e:
        _eprint(f"Error: Could not read file '{args.file}': {e}")
        return None

# ------------------------------
# 파이프라인
# ------------------------------

def _compile(code: str, debug: bool, raw: bool) -> str:
    from .grammar.parser import parse
    from .codegen.emit_py import generate
    from .codegen.beautify import format_source

    program = parse(code)
    if debug: _eprint("[DEBUG] AST ready | statements=%d functions=%d" %
                      (len(program.statements), len(program.functions)))

    py_code = generate(program)
    if debug: _eprint(f"[DEBUG] generated | bytes={len(py_code)}")

    if raw:
        return py_code
    return format_source(py_code)


def _run(code: str, debug: bool) -> str:
    from .codegen.program import run_program

    result = run_program(code)
    if debug: _eprint(f"[DEBUG] main returned {result.value!r} | stdout bytes={len(result.stdout)}")
    return result.stdout

# ------------------------------
# 엔트리포인트
# ------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    from .grammar.parser import ParseError
    from .codegen.emit_py import GenerationError
    from .codegen.beautify import FormatError
    from .codegen.program import ProgramError

    ap = argparse.ArgumentParser(prog="joemlc", description="JoeML to Python code generator")
    ap.add_argument("file", nargs="?", help="JoeML 소스 파일")
    ap.add_argument("-e", "--eval", metavar="CODE", help="JoeML 코드 문자열을 직접 컴파일")
    ap.add_argument("-r", "--raw", action="store_true", help="beautify 없이 생성 코드를 그대로 출력")
    ap.add_argument("--run", action="store_true", help="main을 실행하고 캡처된 출력을 표시")
    ap.add_argument("-D", "--debug", action="store_true", help="디버그 정보를 상세 출력")
    args = ap.parse_args(argv)

    code = _read_input(args)
    if code is None:
        return 1

    try:
        out = _run(code, args.debug) if args.run else _compile(code, args.debug, args.raw)
    except ParseError as e:
        print("[SYNTAX ERROR]")
        print(str(e))
        return 1
    except FormatError as e:
        # 정리만 실패: 오류와 함께 생성 코드를 그대로 내보낸다
        print("[FORMAT ERROR]", str(e))
        print()
        print(e.raw, end="")
        return 0
    except (GenerationError, ProgramError) as e:
        print("[ERROR]", type(e).__name__, str(e))
        return 1
    except Exception as e:
        # --run: 사용자 프로그램 실행 중 오류 (미해결 이름 등)
        print("[RUNTIME ERROR]", type(e).__name__, str(e))
        return 1

    print(out, end="")
    return 0

if __name__ == "__main__":
    sys.exit(main())
