"""
Tests for the compiler layer.

Tests compiled types, package compilation and compile-time failures.
"""

import logging
from typing import Any

import pytest
from pydantic import ValidationError

from bre.compiler import CompiledPackage, CompiledRule, RuleCompiler, compile_package
from bre.errors import CompileError, UnknownRuleError
from bre.expressions import parse
from bre.rules import RulePackage


def make_package(rules: list[dict[str, Any]], filters: list[str] | None = None) -> RulePackage:
    return RulePackage.model_validate(
        {"packageName": "test", "ruleSet": rules, "filters": filters or []}
    )


class TestCompiledTypes:
    """Test compiled type definitions."""

    def test_compiled_rule_creation(self):
        """Test creating a CompiledRule."""
        rule = CompiledRule(name="r", condition=parse("a==1"), actions=(parse("b=2"),))
        assert rule.name == "r"
        assert len(rule.actions) == 1

    def test_compiled_rule_is_frozen(self):
        """Test compiled rules cannot be modified."""
        rule = CompiledRule(name="r", condition=parse("a==1"))
        with pytest.raises(ValidationError):
            rule.name = "other"

    def test_rules_mapping_is_read_only(self, chained_package: CompiledPackage):
        """Test the rule mapping cannot be modified."""
        with pytest.raises(TypeError):
            chained_package.rules["R3"] = chained_package.rules["R1"]

    def test_get_rule(self, chained_package: CompiledPackage):
        """Test looking up rules by name."""
        assert chained_package.get_rule("R1").name == "R1"
        with pytest.raises(UnknownRuleError):
            chained_package.get_rule("missing")

    def test_json_roundtrip(self, chained_package: CompiledPackage):
        """Test compiled trees survive JSON serialization."""
        rule = chained_package.get_rule("R1")
        restored = CompiledRule.model_validate_json(rule.model_dump_json())
        assert restored == rule


class TestRuleCompiler:
    """Test package compilation."""

    def test_compile_package(self, chained_package: CompiledPackage):
        """Test compiling a simple package."""
        assert chained_package.package_name == "chained"
        assert chained_package.valid_from == "2024-01-01"
        assert chained_package.valid_to == "2024-12-31"
        assert chained_package.rule_order == ("R1", "R2")
        assert set(chained_package.rules) == {"R1", "R2"}

        r1 = chained_package.get_rule("R1")
        assert r1.condition == parse("a==1")
        assert r1.actions == (parse("b==2"),)
        assert r1.condition_source == "a==1"
        assert r1.action_sources == ("b=2",)

    def test_declared_order_kept(self):
        """Test rules keep their declared order, not name order."""
        package = compile_package(
            make_package([
                {"ruleName": "z", "rule": "a==1"},
                {"ruleName": "a", "rule": "a==1"},
                {"ruleName": "m", "rule": "a==1"},
            ])
        )
        assert package.rule_order == ("z", "a", "m")

    def test_filter_index(self, pricing_package: CompiledPackage):
        """Test filters become a frozen membership set."""
        assert pricing_package.filters == frozenset({"xlsSeg-10", "xlsSeg-20"})
        assert isinstance(pricing_package.filters, frozenset)

    def test_rule_without_actions(self):
        """Test a rule may have no actions."""
        package = compile_package(make_package([{"ruleName": "r", "rule": "a==1"}]))
        assert package.get_rule("r").actions == ()

    def test_grouped_condition_accepted(self):
        """Test a parenthesized comparison is a valid condition."""
        package = compile_package(make_package([{"ruleName": "r", "rule": "((a==1))"}]))
        assert "r" in package.rules

    def test_idempotent(self, chained_document):
        """Test compiling the same document twice gives equal results."""
        first = compile_package(RulePackage.model_validate(chained_document))
        second = compile_package(RulePackage.model_validate(chained_document))
        assert first.compiled_rules == second.compiled_rules
        assert first.source_hash == second.source_hash

    def test_source_hash_changes_with_content(self, chained_document):
        """Test the source hash tracks document changes."""
        first = compile_package(RulePackage.model_validate(chained_document))
        chained_document["ruleSet"][0]["rule"] = "a==2"
        second = compile_package(RulePackage.model_validate(chained_document))
        assert first.source_hash != second.source_hash
        assert len(first.source_hash) == 16

    def test_non_assignment_action_warns(self, caplog):
        """Test actions that cannot change facts are accepted with a warning."""
        with caplog.at_level(logging.WARNING, logger="bre.compiler.compiler"):
            package = compile_package(
                make_package([{"ruleName": "r", "rule": "a==1", "actions": ["a!=1"]}])
            )
        assert len(package.get_rule("r").actions) == 1
        assert "not an assignment" in caplog.text

    def test_custom_depth_limit(self):
        """Test the compiler passes its depth limit to the parser."""
        compiler = RuleCompiler(max_depth=2)
        with pytest.raises(CompileError):
            compiler.compile(make_package([{"ruleName": "r", "rule": "a==1+1"}]))


class TestCompileErrors:
    """Test compile-time failures."""

    def test_condition_parse_error(self):
        """Test a malformed condition names the rule and location."""
        with pytest.raises(CompileError) as exc_info:
            compile_package(make_package([{"ruleName": "bad", "rule": "(a==1"}]))

        error = exc_info.value
        assert error.package_name == "test"
        assert len(error.failures) == 1
        failure = error.failures[0]
        assert failure.rule_name == "bad"
        assert failure.location == "condition"
        assert failure.position == 0

    def test_action_parse_error(self):
        """Test a malformed action reports its index."""
        with pytest.raises(CompileError) as exc_info:
            compile_package(
                make_package([
                    {"ruleName": "r", "rule": "a==1", "actions": ["b=2", "c=="]},
                ])
            )
        failure = exc_info.value.failures[0]
        assert failure.rule_name == "r"
        assert failure.location == "action[1]"

    def test_all_failures_collected(self):
        """Test every failure in the package is reported at once."""
        with pytest.raises(CompileError) as exc_info:
            compile_package(
                make_package([
                    {"ruleName": "ok", "rule": "a==1", "actions": ["b=2"]},
                    {"ruleName": "r1", "rule": "a==", "actions": ["b=2"]},
                    {"ruleName": "r2", "rule": "a==1", "actions": ["b=(2"]},
                ])
            )
        locations = [(f.rule_name, f.location) for f in exc_info.value.failures]
        assert locations == [("r1", "condition"), ("r2", "action[0]")]

    def test_duplicate_rule_names(self):
        """Test rule names must be unique within a package."""
        with pytest.raises(CompileError) as exc_info:
            compile_package(
                make_package([
                    {"ruleName": "dup", "rule": "a==1"},
                    {"ruleName": "dup", "rule": "a==2"},
                ])
            )
        failure = exc_info.value.failures[0]
        assert failure.rule_name == "dup"
        assert "Duplicate" in failure.message

    def test_empty_rule_name(self):
        """Test rules must be named."""
        with pytest.raises(CompileError, match="Rule name is empty"):
            compile_package(make_package([{"ruleName": "", "rule": "a==1"}]))

    @pytest.mark.parametrize("condition", ["a", "a+1", "(1*2)", '"true"'])
    def test_non_boolean_condition(self, condition):
        """Test conditions must reduce to a boolean token."""
        with pytest.raises(CompileError, match="comparison or logical"):
            compile_package(make_package([{"ruleName": "r", "rule": condition}]))
