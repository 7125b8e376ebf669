"""
Rule compiler for transforming rule packages into compiled trees.

Parses every condition and action of a package once, at load time, so that
evaluation calls only walk prebuilt trees.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

from bre.config import get_settings
from bre.errors import CompileError, ParseError, RuleFailure
from bre.expressions import BinaryExpr, Expression, Operator, parse, unwrap_groups

from .ir import CompiledPackage, CompiledRule

if TYPE_CHECKING:
    from bre.rules.loader import RulePackage, RuleSpec

logger = logging.getLogger(__name__)

# Outermost operators whose result is always "true" or "false"
BOOLEAN_OPERATORS = frozenset({Operator.EQ, Operator.NE, Operator.AND, Operator.OR})


class RuleCompiler:
    """Compiles rule packages to CompiledPackage.

    Compilation is all-or-nothing: every failure in the package is
    collected, and if there is at least one, a single CompileError carrying
    all of them is raised instead of returning a partial result.
    """

    def __init__(self, max_depth: int | None = None):
        self.max_depth = max_depth if max_depth is not None else get_settings().max_expression_depth

    def compile(self, package: RulePackage) -> CompiledPackage:
        """Compile a package.

        Args:
            package: The validated package document

        Returns:
            Immutable compiled package

        Raises:
            CompileError: If any rule fails to parse or validate
        """
        failures: list[RuleFailure] = []
        compiled: list[CompiledRule] = []
        seen: set[str] = set()

        for spec in package.rule_set:
            if not spec.rule_name:
                failures.append(RuleFailure("", "rule", "Rule name is empty"))
            elif spec.rule_name in seen:
                failures.append(
                    RuleFailure(spec.rule_name, "rule", "Duplicate rule name")
                )
            seen.add(spec.rule_name)

            rule = self._compile_rule(spec, failures)
            if rule is not None:
                compiled.append(rule)

        if failures:
            logger.warning(
                "Package %r rejected with %d compile error(s)",
                package.package_name,
                len(failures),
            )
            raise CompileError(package.package_name, failures)

        result = CompiledPackage(
            package_name=package.package_name,
            valid_from=package.valid_from,
            valid_to=package.valid_to,
            compiled_rules=tuple(compiled),
            filters=frozenset(package.filters),
            source_hash=hashlib.sha256(package.to_json().encode()).hexdigest()[:16],
        )
        logger.info(
            "Compiled package %r: %d rule(s), %d filter key(s)",
            result.package_name,
            len(result.compiled_rules),
            len(result.filters),
        )
        return result

    def _compile_rule(self, spec: RuleSpec, failures: list[RuleFailure]) -> CompiledRule | None:
        """Compile one rule, appending any problems to ``failures``."""
        condition = self._parse(spec.rule, spec.rule_name, "condition", failures)
        if condition is not None and not self._is_boolean(condition):
            failures.append(
                RuleFailure(
                    spec.rule_name,
                    "condition",
                    "Condition must be a comparison or logical expression",
                )
            )
            condition = None

        actions: list[Expression] = []
        for i, source in enumerate(spec.actions):
            action = self._parse(source, spec.rule_name, f"action[{i}]", failures)
            if action is None:
                continue
            if not self._is_assignment(action):
                logger.warning(
                    "Rule %r action[%d] %r is not an assignment and has no effect",
                    spec.rule_name,
                    i,
                    source,
                )
            actions.append(action)

        if condition is None or len(actions) != len(spec.actions):
            return None

        return CompiledRule(
            name=spec.rule_name,
            condition=condition,
            actions=tuple(actions),
            condition_source=spec.rule,
            action_sources=tuple(spec.actions),
        )

    def _parse(
        self,
        source: str,
        rule_name: str,
        location: str,
        failures: list[RuleFailure],
    ) -> Expression | None:
        try:
            return parse(source, self.max_depth)
        except ParseError as e:
            failures.append(RuleFailure(rule_name, location, e.message, e.position))
            return None

    @staticmethod
    def _is_boolean(expr: Expression) -> bool:
        expr = unwrap_groups(expr)
        return isinstance(expr, BinaryExpr) and expr.operator in BOOLEAN_OPERATORS

    @staticmethod
    def _is_assignment(expr: Expression) -> bool:
        expr = unwrap_groups(expr)
        return isinstance(expr, BinaryExpr) and expr.operator == Operator.EQ


def compile_package(package: RulePackage, max_depth: int | None = None) -> CompiledPackage:
    """Convenience function to compile a package.

    Args:
        package: The package to compile
        max_depth: Optional expression depth limit (defaults to settings)

    Returns:
        Compiled package
    """
    return RuleCompiler(max_depth).compile(package)
