"""
Compiled representation of a rule package.

These models are the compile-time output that the runtime consumes:
- one parsed condition tree and ordered action trees per rule
- the filter index used for dimension-membership checks
- the declared rule order

Everything here is immutable so a compiled package can be shared by any
number of concurrent evaluation calls.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from bre.errors import UnknownRuleError
from bre.expressions import Expression


class CompiledRule(BaseModel):
    """Parsed form of a single rule."""

    model_config = ConfigDict(frozen=True)

    name: str
    """Rule name, unique within its package."""

    condition: Expression
    """Condition tree, evaluated in condition context."""

    actions: tuple[Expression, ...] = ()
    """Action trees, evaluated in action context in this order."""

    condition_source: str = ""
    """Original condition text, kept for diagnostics."""

    action_sources: tuple[str, ...] = ()
    """Original action texts, kept for diagnostics."""


class CompiledPackage(BaseModel):
    """A fully compiled, activatable rule package."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    valid_from: str | None = None
    valid_to: str | None = None

    compiled_rules: tuple[CompiledRule, ...] = ()
    """Compiled rules in declared order."""

    filters: frozenset[str] = frozenset()
    """Dimension membership keys of the form ``<filterName>-<value>``."""

    source_hash: str | None = None
    """Hash of the package document for change detection."""

    compiled_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    """ISO timestamp of when the package was compiled."""

    _by_name: Mapping[str, CompiledRule] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        self._by_name = MappingProxyType({rule.name: rule for rule in self.compiled_rules})

    @property
    def rules(self) -> Mapping[str, CompiledRule]:
        """Read-only mapping of rule name to compiled rule."""
        return self._by_name

    @property
    def rule_order(self) -> tuple[str, ...]:
        """Rule names in declared order."""
        return tuple(rule.name for rule in self.compiled_rules)

    def get_rule(self, name: str) -> CompiledRule:
        """Look up a compiled rule by name.

        Raises:
            UnknownRuleError: If no rule with that name was compiled
        """
        try:
            return self.rules[name]
        except KeyError:
            raise UnknownRuleError(name) from None
