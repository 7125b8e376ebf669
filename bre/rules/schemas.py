"""Pydantic models for rules API requests and responses."""

from pydantic import BaseModel, Field


# =============================================================================
# Package Models
# =============================================================================


class PackageSummaryResponse(BaseModel):
    """Summary of the active compiled package."""

    package_name: str
    valid_from: str | None = None
    valid_to: str | None = None
    rules: list[str] = Field(default_factory=list)
    filters: int = 0
    source_hash: str | None = None
    compiled_at: str


class RuleFailureResponse(BaseModel):
    """One compile failure inside a rejected package."""

    rule_name: str
    location: str
    message: str
    position: int | None = None


class CompileErrorResponse(BaseModel):
    """Body of a 422 response for a package that failed to compile."""

    message: str
    package_name: str
    failures: list[RuleFailureResponse]


# =============================================================================
# Evaluation Models
# =============================================================================


class EvaluateResponse(BaseModel):
    """Result of evaluating facts against the active package."""

    package_name: str
    facts: dict[str, str]
    fired: list[str] = Field(default_factory=list)
