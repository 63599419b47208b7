"""소스/문법 텍스트 로더"""

from __future__ import annotations
from pathlib    import Path

GRAMMAR_PATH = Path(__file__).with_name("joeml.peg")


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def load_source_text(path: str) -> str:
    """
    Load JoeML source text (개행은 \\n으로 통일)
    """
    return _normalize_newlines(Path(path).read_text(encoding="utf-8"))


def load_grammar_text(path: Path = GRAMMAR_PATH) -> str:
    """
    Load PEG grammar text (기본값: 패키지에 포함된 joeml.peg)
    """
    return _normalize_newlines(path.read_text(encoding="utf-8"))
