"""
Compiler package.

Turns rule package documents into immutable compiled packages: parsed
condition and action trees keyed by rule name, plus the filter index.
"""

from bre.compiler.ir import CompiledPackage, CompiledRule
from bre.compiler.compiler import BOOLEAN_OPERATORS, RuleCompiler, compile_package

__all__ = [
    # IR Types
    "CompiledPackage",
    "CompiledRule",
    # Compiler
    "BOOLEAN_OPERATORS",
    "RuleCompiler",
    "compile_package",
]
