"""
Runtime package.

Provides the expression evaluator and the rule runner that executes
compiled packages against fact tables.
"""

from bre.runtime.evaluator import (
    FALSE,
    TRUE,
    EvalContext,
    Evaluator,
    Operation,
    evaluate,
    resolve_operation,
)
from bre.runtime.executor import RuleRunner, RunResult, run_rules

__all__ = [
    # Evaluator
    "FALSE",
    "TRUE",
    "EvalContext",
    "Evaluator",
    "Operation",
    "evaluate",
    "resolve_operation",
    # Executor
    "RuleRunner",
    "RunResult",
    "run_rules",
]
