"""
Tree-walking evaluator for compiled expressions.

Every node evaluates to a string: booleans are the tokens ``"true"`` and
``"false"``, numbers are text and are coerced to float only inside an
arithmetic operator.

Identifiers and ``==`` behave differently depending on the evaluation
context:

- In condition context an identifier yields its own name, so that the
  enclosing ``==``/``!=`` can look it up in the fact table itself.
- In action context an identifier resolves to its fact value, unless it
  carries the escape marker, and ``==`` assigns instead of comparing.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import AbstractSet, MutableMapping

from bre.config import get_settings
from bre.errors import EvaluationDepthError, NumericConversionError
from bre.expressions import (
    BinaryExpr,
    Expression,
    GroupExpr,
    IdentifierExpr,
    LiteralExpr,
    Operator,
)

TRUE = "true"
FALSE = "false"


class EvalContext(str, Enum):
    """Evaluation mode."""

    CONDITION = "condition"
    ACTION = "action"


class Operation(str, Enum):
    """What a binary node does once its operands are evaluated."""

    ARITHMETIC = "arithmetic"
    LOGICAL = "logical"
    COMPARE = "compare"
    ASSIGN = "assign"


def resolve_operation(operator: Operator, context: EvalContext) -> Operation:
    """Select the operation for an operator in a given context.

    ``==`` is a comparison when testing a condition and an assignment when
    running an action. ``!=`` always compares.
    """
    if operator.is_arithmetic:
        return Operation.ARITHMETIC
    if operator.is_logical:
        return Operation.LOGICAL
    if operator == Operator.EQ and context == EvalContext.ACTION:
        return Operation.ASSIGN
    return Operation.COMPARE


def _bool_token(value: bool) -> str:
    return TRUE if value else FALSE


# Plain decimal text only: float() alone would also take "1_000", " 3 " and
# non-ASCII digits
_NUMBER = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.ASCII | re.IGNORECASE,
)


def _to_float(value: str, operator: Operator) -> float:
    if not _NUMBER.fullmatch(value):
        raise NumericConversionError(value, operator.value)
    return float(value)


def _divide(left: float, right: float) -> float:
    # IEEE semantics instead of ZeroDivisionError
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


_ARITHMETIC = {
    Operator.ADD: lambda a, b: a + b,
    Operator.SUB: lambda a, b: a - b,
    Operator.MUL: lambda a, b: a * b,
    Operator.DIV: _divide,
}


class Evaluator:
    """Evaluates expression trees against a fact table and filter index.

    The fact table is mutated in place by assignments; the filter index is
    only read.
    """

    def __init__(
        self,
        facts: MutableMapping[str, str],
        filters: AbstractSet[str],
        *,
        filter_prefix: str | None = None,
        escape_marker: str | None = None,
        max_depth: int | None = None,
    ):
        settings = get_settings()
        self.facts = facts
        self.filters = filters
        self.filter_prefix = filter_prefix if filter_prefix is not None else settings.filter_prefix
        self.escape_marker = escape_marker if escape_marker is not None else settings.escape_marker
        self.max_depth = max_depth if max_depth is not None else settings.max_expression_depth

    def evaluate(self, expr: Expression, context: EvalContext, depth: int = 0) -> str:
        """Evaluate a node and return its string value.

        Raises:
            NumericConversionError: If an arithmetic operand is not a number
            EvaluationDepthError: If the tree is deeper than ``max_depth``
        """
        if depth >= self.max_depth:
            raise EvaluationDepthError(self.max_depth)

        if isinstance(expr, LiteralExpr):
            return expr.raw
        if isinstance(expr, GroupExpr):
            return self.evaluate(expr.inner, context, depth + 1)
        if isinstance(expr, IdentifierExpr):
            return self._evaluate_identifier(expr, context)
        if isinstance(expr, BinaryExpr):
            return self._evaluate_binary(expr, context, depth)
        raise TypeError(f"Not an expression node: {expr!r}")

    def _evaluate_identifier(self, expr: IdentifierExpr, context: EvalContext) -> str:
        name = expr.name
        if context == EvalContext.CONDITION:
            return name
        if self.escape_marker and name.startswith(self.escape_marker):
            return name[len(self.escape_marker):]
        return self.facts.get(name, name)

    def _evaluate_binary(self, expr: BinaryExpr, context: EvalContext, depth: int) -> str:
        # Both sides always run: no short-circuit for && and ||
        left = self.evaluate(expr.left, context, depth + 1)
        right = self.evaluate(expr.right, context, depth + 1)
        operator = expr.operator

        operation = resolve_operation(operator, context)
        if operation == Operation.ARITHMETIC:
            return self._arithmetic(operator, left, right)
        if operation == Operation.LOGICAL:
            return self._logical(operator, left, right)
        if operation == Operation.COMPARE:
            return self._compare(operator, left, right)
        if operation == Operation.ASSIGN:
            self.facts[left] = right
            return ""
        raise AssertionError(f"Unhandled operation {operation}")

    def _arithmetic(self, operator: Operator, left: str, right: str) -> str:
        result = _ARITHMETIC[operator](_to_float(left, operator), _to_float(right, operator))
        return f"{result:.2f}"

    @staticmethod
    def _logical(operator: Operator, left: str, right: str) -> str:
        if operator == Operator.AND:
            return _bool_token(left == TRUE and right == TRUE)
        return _bool_token(left == TRUE or right == TRUE)

    def _compare(self, operator: Operator, left: str, right: str) -> str:
        """Compare the fact named ``left`` against ``right``.

        A right operand starting with the filter prefix switches to
        dimension membership: the fact's value is looked up in the filter
        index as ``<right>-<value>``. A missing fact is never a member and
        never matches, for both ``==`` and ``!=``.
        """
        if self.filter_prefix and right.startswith(self.filter_prefix):
            if left not in self.facts:
                return FALSE
            member = f"{right}-{self.facts[left]}" in self.filters
            return _bool_token(member if operator == Operator.EQ else not member)

        equal = self.facts.get(left, "") == right
        return _bool_token(equal if operator == Operator.EQ else not equal)


def evaluate(
    expr: Expression,
    context: EvalContext,
    facts: MutableMapping[str, str],
    filters: AbstractSet[str],
) -> str:
    """Convenience function to evaluate a single tree.

    Args:
        expr: The expression tree
        context: Condition or action context
        facts: Fact table, mutated by assignments
        filters: Dimension membership keys

    Returns:
        The string value of the expression
    """
    return Evaluator(facts, filters).evaluate(expr, context)
