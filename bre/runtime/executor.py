"""
Rule runner for compiled packages.

Runs every rule of a package in declared order against one fact table.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Any, Mapping, MutableMapping, Sequence

from pydantic import BaseModel, Field

from bre.compiler.ir import CompiledPackage, CompiledRule
from bre.config import get_settings
from bre.errors import EvaluationError, UnknownRuleError

from .evaluator import TRUE, EvalContext, Evaluator

logger = logging.getLogger(__name__)


class RunResult(BaseModel):
    """Outcome of running a package against one fact table."""

    package_name: str
    facts: dict[str, str]
    """The mutated fact table, including the trace fact."""

    fired: list[str] = Field(default_factory=list)
    """Names of the rules whose condition held, in firing order."""


def run_rules(
    compiled: Mapping[str, CompiledRule],
    rule_order: Sequence[str],
    filters: AbstractSet[str],
    facts: MutableMapping[str, str],
    fired: list[str] | None = None,
) -> MutableMapping[str, str]:
    """Run rules in declared order, mutating ``facts`` in place.

    For every rule whose condition evaluates to ``"true"``, ``<name>;`` is
    appended to the trace fact and the rule's actions run in order. Later
    rules see facts set by earlier ones.

    Args:
        compiled: Rule name to compiled rule
        rule_order: Rule names in declared order
        filters: Dimension membership keys
        facts: Fact table for this call
        fired: Optional list that receives the names of fired rules

    Returns:
        The same ``facts`` object

    Raises:
        EvaluationError: On the first failing condition or action; the
            fact table keeps every change made before the failure
        UnknownRuleError: If a name in ``rule_order`` was not compiled
    """
    trace_fact = get_settings().trace_fact
    evaluator = Evaluator(facts, filters)
    facts[trace_fact] = ""

    for name in rule_order:
        rule = compiled.get(name)
        if rule is None:
            raise UnknownRuleError(name)

        try:
            matched = evaluator.evaluate(rule.condition, EvalContext.CONDITION) == TRUE
        except EvaluationError as e:
            e.annotate(name, "condition")
            raise

        if not matched:
            continue

        facts[trace_fact] = facts.get(trace_fact, "") + f"{name};"
        if fired is not None:
            fired.append(name)
        logger.debug("Rule %r fired", name)

        for i, action in enumerate(rule.actions):
            try:
                evaluator.evaluate(action, EvalContext.ACTION)
            except EvaluationError as e:
                e.annotate(name, f"action[{i}]")
                raise

    return facts


class RuleRunner:
    """Runs a compiled package against fact tables."""

    def __init__(self, package: CompiledPackage):
        self.package = package

    def run(self, facts: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Run the package, mutating and returning ``facts``."""
        return run_rules(
            self.package.rules,
            self.package.rule_order,
            self.package.filters,
            facts,
        )

    def execute(self, facts: Mapping[str, Any]) -> RunResult:
        """Run the package against a copy of ``facts``.

        Returns:
            RunResult with the resulting facts and the fired rule names
        """
        table = dict(facts)
        fired: list[str] = []
        run_rules(self.package.rules, self.package.rule_order, self.package.filters, table, fired)
        logger.debug(
            "Package %r fired %d of %d rule(s)",
            self.package.package_name,
            len(fired),
            len(self.package.compiled_rules),
        )
        return RunResult(package_name=self.package.package_name, facts=table, fired=fired)
