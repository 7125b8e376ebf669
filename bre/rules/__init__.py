"""Rules domain - package documents, loading, the engine service and its routes."""

from .loader import (
    RuleLoader,
    RulePackage,
    RuleSpec,
    parse_fact_document,
    parse_package_document,
)
from .service import RuleEngine
from .router import rules_router, get_engine
from .schemas import (
    CompileErrorResponse,
    EvaluateResponse,
    PackageSummaryResponse,
    RuleFailureResponse,
)

__all__ = [
    # Documents
    "RuleLoader",
    "RulePackage",
    "RuleSpec",
    "parse_fact_document",
    "parse_package_document",
    # Service
    "RuleEngine",
    # Router
    "rules_router",
    "get_engine",
    # Schemas
    "CompileErrorResponse",
    "EvaluateResponse",
    "PackageSummaryResponse",
    "RuleFailureResponse",
]
