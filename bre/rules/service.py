"""
Rule engine service.

Owns the active compiled package and exposes the two boundary operations:
loading a package and evaluating a fact document against it.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Mapping

from bre.compiler import CompiledPackage, RuleCompiler
from bre.errors import BREError, PackageNotLoadedError
from bre.runtime import RuleRunner, RunResult

from .loader import RuleLoader, RulePackage, parse_fact_document, parse_package_document

logger = logging.getLogger(__name__)


class RuleEngine:
    """Loads rule packages and evaluates facts against the active one.

    The active package is an immutable CompiledPackage held by a single
    reference. A load compiles the new package completely before replacing
    that reference, so a failed load leaves the previous package active and
    concurrent evaluations always see one whole package. Loads are
    serialized; evaluations never lock.
    """

    def __init__(self, compiler: RuleCompiler | None = None):
        self._compiler = compiler or RuleCompiler()
        self._active: CompiledPackage | None = None
        self._load_lock = threading.Lock()

    @property
    def active_package(self) -> CompiledPackage | None:
        """The currently active compiled package, if any."""
        return self._active

    def load_package(
        self,
        document: RulePackage | Mapping[str, Any] | str | bytes,
        format: str = "json",
    ) -> CompiledPackage:
        """Compile and activate a package.

        Args:
            document: Package document (model, mapping, or JSON/YAML text)
            format: Text format when ``document`` is text

        Returns:
            The newly active compiled package

        Raises:
            PackageDocumentError: If the document is invalid
            CompileError: If any rule fails to compile
        """
        with self._load_lock:
            try:
                package = parse_package_document(document, format)
                compiled = self._compiler.compile(package)
            except BREError as e:
                logger.warning("Package load rejected: %s", e)
                raise

            previous = self._active
            self._active = compiled

        logger.info(
            "Activated package %r (%d rules, hash %s)%s",
            compiled.package_name,
            len(compiled.compiled_rules),
            compiled.source_hash,
            f", replacing {previous.package_name!r}" if previous is not None else "",
        )
        return compiled

    def load_file(self, path: str | Path) -> CompiledPackage:
        """Load and activate a package from a JSON or YAML file."""
        return self.load_package(RuleLoader().load_file(path))

    def run(self, document: Mapping[str, Any] | str | bytes) -> RunResult:
        """Evaluate a fact document and report which rules fired.

        Raises:
            PackageNotLoadedError: If no package has been loaded
            FactDocumentError: If the fact document is invalid
            EvaluationError: If a condition or action fails
        """
        package = self._active
        if package is None:
            raise PackageNotLoadedError("No rule package has been loaded")

        facts = parse_fact_document(document)
        return RuleRunner(package).execute(facts)

    def evaluate(self, document: Mapping[str, Any] | str | bytes) -> dict[str, str]:
        """Evaluate a fact document against the active package.

        Args:
            document: Mapping (or JSON text) of fact name to string value

        Returns:
            The resulting fact mapping, including the ``trace`` fact
        """
        return self.run(document).facts
