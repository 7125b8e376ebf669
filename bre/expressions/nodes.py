"""
Expression tree types.

Trees are produced by the parser once per rule condition or action and are
then shared read-only by every evaluation call, so all nodes are frozen.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class LiteralKind(str, Enum):
    """Kinds of literal supported by the grammar."""

    INTEGER = "integer"
    STRING = "string"


class Operator(str, Enum):
    """Binary operators, grouped by precedence level."""

    MUL = "*"
    DIV = "/"
    ADD = "+"
    SUB = "-"
    EQ = "=="
    NE = "!="
    AND = "&&"
    OR = "||"

    @property
    def precedence(self) -> int:
        return PRECEDENCE[self]

    @property
    def is_arithmetic(self) -> bool:
        return self in ARITHMETIC_OPERATORS

    @property
    def is_logical(self) -> bool:
        return self in (Operator.AND, Operator.OR)


PRECEDENCE: dict[Operator, int] = {
    Operator.MUL: 5,
    Operator.DIV: 5,
    Operator.ADD: 4,
    Operator.SUB: 4,
    Operator.EQ: 3,
    Operator.NE: 3,
    Operator.AND: 2,
    Operator.OR: 1,
}

ARITHMETIC_OPERATORS = frozenset({Operator.MUL, Operator.DIV, Operator.ADD, Operator.SUB})


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


class LiteralExpr(_Node):
    """An integer or string literal.

    ``raw`` is the source text exactly as written; string literals keep
    their quotes.
    """

    node: Literal["literal"] = "literal"
    kind: LiteralKind
    raw: str


class IdentifierExpr(_Node):
    """A bare name: a fact, or an escape-marked literal word."""

    node: Literal["identifier"] = "identifier"
    name: str


class BinaryExpr(_Node):
    """``left <operator> right``."""

    node: Literal["binary"] = "binary"
    operator: Operator
    left: Expression
    right: Expression


class GroupExpr(_Node):
    """A parenthesized sub-expression."""

    node: Literal["group"] = "group"
    inner: Expression


Expression = Annotated[
    Union[LiteralExpr, IdentifierExpr, BinaryExpr, GroupExpr],
    Field(discriminator="node"),
]

BinaryExpr.model_rebuild()
GroupExpr.model_rebuild()


def unwrap_groups(expr: Expression) -> Expression:
    """Strip any number of enclosing parentheses."""
    while isinstance(expr, GroupExpr):
        expr = expr.inner
    return expr


def to_source(expr: Expression) -> str:
    """Render a tree back to expression text.

    Groups keep their parentheses and binary operators are separated by
    single spaces, so ``parse(to_source(tree)) == tree``.
    """
    if isinstance(expr, LiteralExpr):
        return expr.raw
    if isinstance(expr, IdentifierExpr):
        return expr.name
    if isinstance(expr, GroupExpr):
        return f"({to_source(expr.inner)})"
    if isinstance(expr, BinaryExpr):
        return f"{to_source(expr.left)} {expr.operator.value} {to_source(expr.right)}"
    raise TypeError(f"Not an expression node: {expr!r}")

