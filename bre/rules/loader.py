"""Rule package and fact document models, and the package loader."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError, field_validator

from bre.errors import FactDocumentError, PackageDocumentError


class RuleSpec(BaseModel):
    """A single rule as it appears in a package document."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    rule_name: str = Field(alias="ruleName")
    rule: str
    """Condition source text."""

    actions: tuple[str, ...] = ()
    """Action source texts, run in order when the condition holds."""

    @field_validator("actions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


class RulePackage(BaseModel):
    """A versioned bundle of rules plus its dimension filters."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    package_name: str = Field(alias="packageName")
    valid_from: str | None = Field(None, alias="validFrom")
    valid_to: str | None = Field(None, alias="validTo")
    rule_set: tuple[RuleSpec, ...] = Field((), alias="ruleSet")
    filters: tuple[str, ...] = ()

    @field_validator("valid_from", "valid_to", mode="before")
    @classmethod
    def _dates_as_text(cls, value: Any) -> Any:
        # YAML turns bare dates into date objects; the window is opaque text
        if isinstance(value, date):
            return value.isoformat()
        return value

    @field_validator("rule_set", "filters", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value

    def to_json(self) -> str:
        """Serialize using the document field names."""
        return self.model_dump_json(by_alias=True)


_FACTS_ADAPTER = TypeAdapter(dict[str, StrictStr])


def parse_package_document(
    document: RulePackage | Mapping[str, Any] | str | bytes,
    format: str = "json",
) -> RulePackage:
    """Build a RulePackage from any supported document form.

    Args:
        document: A RulePackage, a mapping, or JSON/YAML text
        format: ``json`` or ``yaml``, used when ``document`` is text

    Returns:
        Validated RulePackage

    Raises:
        PackageDocumentError: If the document cannot be decoded or validated
    """
    if isinstance(document, RulePackage):
        return document

    if isinstance(document, (str, bytes)):
        document = _decode_text(document, format)

    if not isinstance(document, Mapping):
        raise PackageDocumentError(
            f"Package document must be an object, got {type(document).__name__}"
        )

    try:
        return RulePackage.model_validate(dict(document))
    except ValidationError as e:
        raise PackageDocumentError(f"Invalid package document: {e}") from e


def parse_fact_document(document: Mapping[str, Any] | str | bytes) -> dict[str, str]:
    """Build a fresh fact table from a fact document.

    The returned dict is always a new object, so the caller's mapping is
    never mutated by evaluation.

    Raises:
        FactDocumentError: If the document is not a mapping of strings
    """
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except ValueError as e:
            raise FactDocumentError(f"Fact document is not valid JSON: {e}") from e

    if not isinstance(document, Mapping):
        raise FactDocumentError(
            f"Fact document must be an object, got {type(document).__name__}"
        )

    try:
        return dict(_FACTS_ADAPTER.validate_python(dict(document)))
    except ValidationError as e:
        raise FactDocumentError(f"Fact values must be strings: {e}") from e


def _decode_text(text: str | bytes, format: str) -> Any:
    if format == "json":
        try:
            return json.loads(text)
        except ValueError as e:
            raise PackageDocumentError(f"Package document is not valid JSON: {e}") from e
    if format in ("yaml", "yml"):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise PackageDocumentError(f"Package document is not valid YAML: {e}") from e
    raise ValueError(f"Unsupported document format: {format}")


class RuleLoader:
    """Loads rule package documents from JSON or YAML files."""

    SUFFIX_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}

    def load_file(self, path: str | Path) -> RulePackage:
        """Load a package from a single file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Package file not found: {path}")

        format = self.SUFFIX_FORMATS.get(path.suffix.lower())
        if format is None:
            raise PackageDocumentError(f"Unsupported package file type: {path.suffix}")

        return parse_package_document(path.read_text(encoding="utf-8"), format)
