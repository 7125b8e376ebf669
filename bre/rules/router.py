"""Routes for loading rule packages and evaluating facts."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, HTTPException

from bre.compiler import CompiledPackage
from bre.config import get_settings
from bre.errors import (
    CompileError,
    EvaluationError,
    FactDocumentError,
    PackageDocumentError,
    PackageNotLoadedError,
)

from .loader import RulePackage
from .schemas import (
    CompileErrorResponse,
    EvaluateResponse,
    PackageSummaryResponse,
    RuleFailureResponse,
)
from .service import RuleEngine

logger = logging.getLogger(__name__)

rules_router = APIRouter(tags=["Rules"])

# Global instance
_engine: RuleEngine | None = None


def get_engine() -> RuleEngine:
    """Get or create the rule engine instance.

    If ``package_path`` is configured, the package is loaded on first use.
    A package that fails to compile is raised and no engine is kept, so the
    next call tries again.
    """
    global _engine
    if _engine is None:
        engine = RuleEngine()
        settings = get_settings()
        if settings.package_path:
            try:
                engine.load_file(settings.package_path)
            except FileNotFoundError:
                logger.warning("Configured package file not found: %s", settings.package_path)
        _engine = engine
    return _engine


def _summarize(package: CompiledPackage) -> PackageSummaryResponse:
    return PackageSummaryResponse(
        package_name=package.package_name,
        valid_from=package.valid_from,
        valid_to=package.valid_to,
        rules=list(package.rule_order),
        filters=len(package.filters),
        source_hash=package.source_hash,
        compiled_at=package.compiled_at,
    )


@rules_router.put("/package", response_model=PackageSummaryResponse)
async def load_package(package: RulePackage) -> PackageSummaryResponse:
    """Compile and activate a rule package.

    The previous package stays active if compilation fails.
    """
    engine = get_engine()
    try:
        compiled = engine.load_package(package)
    except CompileError as e:
        detail = CompileErrorResponse(
            message=str(e),
            package_name=e.package_name,
            failures=[
                RuleFailureResponse(
                    rule_name=f.rule_name,
                    location=f.location,
                    message=f.message,
                    position=f.position,
                )
                for f in e.failures
            ],
        )
        raise HTTPException(status_code=422, detail=detail.model_dump())
    except PackageDocumentError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return _summarize(compiled)


@rules_router.get("/package", response_model=PackageSummaryResponse)
async def get_package() -> PackageSummaryResponse:
    """Describe the active rule package."""
    package = get_engine().active_package
    if package is None:
        raise HTTPException(status_code=404, detail="No rule package loaded")
    return _summarize(package)


@rules_router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate_facts(facts: dict[str, str] = Body(...)) -> EvaluateResponse:
    """Run the active package against a fact document.

    Returns the resulting facts, including the accumulated ``trace`` fact.
    """
    engine = get_engine()
    try:
        result = engine.run(facts)
    except PackageNotLoadedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (EvaluationError, FactDocumentError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    return EvaluateResponse(
        package_name=result.package_name,
        facts=result.facts,
        fired=result.fired,
    )
