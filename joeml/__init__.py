# joeml/__init__.py
"""joeml: JoeML → Python source-to-source compiler.

    >>> from joeml import run_program
    >>> run_program('main { 1 + 2 }').value
    3
"""

from .grammar.ast import Program
from .grammar.parser import parse, ParseError
from .codegen.emit_py import generate, GenerationError
from .codegen.beautify import format_source, FormatError
from .codegen.program import wrap_program, run_program, RunResult, ProgramError
from .compiler import compile_source

__version__ = "0.1.0"
