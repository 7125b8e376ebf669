"""Exception hierarchy for the rule engine."""

from __future__ import annotations

from dataclasses import dataclass


class BREError(Exception):
    """Base class for all rule engine errors."""

    pass


class ParseError(BREError):
    """Raised when expression text does not match the grammar."""

    def __init__(self, text: str, position: int, message: str):
        self.text = text
        self.position = position
        self.message = message
        super().__init__(f"{message} at position {position} in {text!r}")


@dataclass(frozen=True)
class RuleFailure:
    """A single compile-time failure inside a package."""

    rule_name: str
    location: str
    """``condition``, ``action[i]`` or ``rule``."""

    message: str
    position: int | None = None

    def __str__(self) -> str:
        where = f"{self.rule_name or '<unnamed>'} ({self.location})"
        if self.position is not None:
            return f"{where}: {self.message} at position {self.position}"
        return f"{where}: {self.message}"


class CompileError(BREError):
    """Raised when any rule of a package fails to compile.

    Compilation is all-or-nothing, so every failure found in the package is
    collected and reported together.
    """

    def __init__(self, package_name: str, failures: list[RuleFailure]):
        self.package_name = package_name
        self.failures = list(failures)
        summary = "; ".join(str(f) for f in self.failures)
        super().__init__(
            f"Package {package_name!r} failed to compile "
            f"({len(self.failures)} error(s)): {summary}"
        )


class PackageDocumentError(BREError):
    """Raised when a rule package document cannot be decoded or validated."""

    pass


class FactDocumentError(BREError):
    """Raised when a fact document cannot be decoded or validated."""

    pass


class PackageNotLoadedError(BREError):
    """Raised when evaluation is requested before any package is active."""

    pass


class UnknownRuleError(BREError, LookupError):
    """A declared rule name has no compiled entry.

    Compilation guarantees this cannot happen for a package built by the
    compiler; seeing it means the compiled state was assembled by hand.
    """

    def __init__(self, rule_name: str):
        self.rule_name = rule_name
        super().__init__(f"No compiled rule named {rule_name!r}")


class EvaluationError(BREError):
    """Base class for failures that abort a single evaluation call."""

    rule_name: str | None = None
    location: str | None = None

    def annotate(self, rule_name: str, location: str) -> "EvaluationError":
        """Attach the rule and expression where the failure happened."""
        self.rule_name = rule_name
        self.location = location
        return self

    def __str__(self) -> str:
        base = super().__str__()
        if self.rule_name is None:
            return base
        return f"{base} (rule {self.rule_name!r}, {self.location})"


class NumericConversionError(EvaluationError, ValueError):
    """An arithmetic operand is not a valid number."""

    def __init__(self, value: str, operator: str):
        self.value = value
        self.operator = operator
        super().__init__(f"Unable to convert {value!r} to float for operator {operator!r}")


class EvaluationDepthError(EvaluationError):
    """Expression nesting exceeded the configured evaluation depth."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Expression depth exceeds limit of {max_depth}")
