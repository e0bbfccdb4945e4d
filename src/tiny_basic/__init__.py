"""
Tiny BASIC Interpreter

Scans, parses and runs line-numbered BASIC programs with 16-bit integer
variables A-Z, GOTO/GOSUB control flow and PRINT/INPUT.
"""

from .main import run_basic, parse_program

__version__ = "0.1.0"
__all__ = ["run_basic", "parse_program"]
