"""
Expression language for rule conditions and actions.

Provides the tokenizer, parser and tree types shared by the compiler and
the runtime evaluator.
"""

from bre.expressions.nodes import (
    BinaryExpr,
    Expression,
    GroupExpr,
    IdentifierExpr,
    LiteralExpr,
    LiteralKind,
    Operator,
    to_source,
    unwrap_groups,
)
from bre.expressions.parser import Parser, parse

__all__ = [
    # Tree types
    "BinaryExpr",
    "Expression",
    "GroupExpr",
    "IdentifierExpr",
    "LiteralExpr",
    "LiteralKind",
    "Operator",
    # Parsing
    "Parser",
    "parse",
    "to_source",
    "unwrap_groups",
]
