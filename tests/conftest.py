"""Pytest fixtures for test suite."""

from typing import Any

import pytest

from bre.compiler import CompiledPackage, compile_package
from bre.rules import RuleEngine, RulePackage


# =============================================================================
# Package Documents
# =============================================================================


@pytest.fixture
def chained_document() -> dict[str, Any]:
    """Two rules where the second depends on a fact set by the first."""
    return {
        "packageName": "chained",
        "validFrom": "2024-01-01",
        "validTo": "2024-12-31",
        "ruleSet": [
            {"ruleName": "R1", "rule": "a==1", "actions": ["b=2"]},
            {"ruleName": "R2", "rule": "b==2", "actions": ["c=3"]},
        ],
        "filters": [],
    }


@pytest.fixture
def pricing_document() -> dict[str, Any]:
    """A package exercising filters, arithmetic and escape-marked values."""
    return {
        "packageName": "pricing",
        "validFrom": "2024-01-01",
        "validTo": "2024-12-31",
        "ruleSet": [
            {
                "ruleName": "segment_discount",
                "rule": "region==xlsSeg && tier!=bronze",
                "actions": ["discount=price*10/100", "segment=_preferred"],
            },
            {
                "ruleName": "net_price",
                "rule": "segment==preferred",
                "actions": ["net=price-discount"],
            },
            {
                "ruleName": "fallback",
                "rule": "region!=xlsSeg",
                "actions": ["segment=_standard", "net=price"],
            },
        ],
        "filters": ["xlsSeg-10", "xlsSeg-20"],
    }


# =============================================================================
# Compiled State
# =============================================================================


@pytest.fixture
def chained_package(chained_document: dict[str, Any]) -> CompiledPackage:
    """Compiled chained package."""
    return compile_package(RulePackage.model_validate(chained_document))


@pytest.fixture
def pricing_package(pricing_document: dict[str, Any]) -> CompiledPackage:
    """Compiled pricing package."""
    return compile_package(RulePackage.model_validate(pricing_document))


@pytest.fixture
def engine(pricing_document: dict[str, Any]) -> RuleEngine:
    """Engine with the pricing package active."""
    engine = RuleEngine()
    engine.load_package(pricing_document)
    return engine
