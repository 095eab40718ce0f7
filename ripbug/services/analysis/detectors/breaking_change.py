"""Экспортируемые функции, сломавшие вызовы в других файлах."""

import logging

from ..call_site_resolver import CallSiteResolver, ResolvedCall
from ..compatibility import CompatibilityChecker
from ..models import Finding, FunctionDefinition, ParsedFile, RelatedSite
from ..registry import FunctionRegistry
from .base import Detector, finding_id

logger = logging.getLogger(__name__)


class BreakingChangeDetector(Detector):
    """
    Поиск от определения к вызовам.

    Для каждой экспортируемой функции собирает несовместимые вызовы из других
    файлов в одну находку с предложением исправления для каждого вызова.
    """

    name = "breaking-change"

    def __init__(self, config=None):
        super().__init__(config)
        self.resolver = CallSiteResolver()
        self.checker = CompatibilityChecker(type_checks=self.config.type_mismatch)

    def prepare(self, files: list[ParsedFile], registry: FunctionRegistry) -> None:
        self.files = files

    def _detect_file(self, parsed: ParsedFile, registry: FunctionRegistry) -> list[Finding]:
        findings = []

        for definition in parsed.definitions:
            if not definition.is_exported:
                continue

            calls = self.resolver.find_call_sites(
                definition, self.files, same_file=self.config.include_same_file_calls
            )
            finding = self._analyze_definition(definition, calls, registry)
            if finding:
                findings.append(finding)

        return findings

    def _targets(
        self, definition: FunctionDefinition, resolved: ResolvedCall, registry: FunctionRegistry
    ) -> bool:
        """Вызов действительно относится к этому определению."""
        call = resolved.call_site
        if resolved.rule == "constructor":
            chosen = registry.lookup_constructor(call.base_name, call.source_file)
        else:
            chosen = registry.relevant_definition(definition.name, call.source_file)
        return chosen == definition

    def _analyze_definition(
        self, definition: FunctionDefinition, calls: list[ResolvedCall], registry: FunctionRegistry
    ) -> Finding | None:
        sites = []
        verdicts = []

        for resolved in calls:
            if not self._targets(definition, resolved, registry):
                continue

            verdict = self.checker.check(definition, resolved.call_site)
            if verdict is None:
                continue

            call = resolved.call_site
            verdicts.append(verdict)
            sites.append(
                RelatedSite(
                    file=call.source_file,
                    line=call.line,
                    column=call.column,
                    context=call.context,
                    suggestion=verdict.suggestion,
                )
            )

        if not verdicts:
            return None

        name = verdicts[0].details["function_name"]
        severity = "error" if any(v.severity == "error" for v in verdicts) else "warning"
        affected = sorted({site.file for site in sites})

        logger.debug(f"[Detector] {name}: {len(sites)} incompatible call sites")

        return Finding(
            id=finding_id(self.name, name, definition.source_file, definition.line, definition.column),
            kind="signature-mismatch",
            code="breaking-change",
            severity=severity,
            message=(
                f"Function '{name}' signature is incompatible with "
                f"{len(sites)} call site(s) in {len(affected)} file(s)."
            ),
            file=definition.source_file,
            line=definition.line,
            column=definition.column,
            subject=name,
            confidence=max(v.confidence for v in verdicts),
            related_sites=tuple(sites),
            suggestions=(
                "Check if function signature was changed without updating callers",
                f"Current signature: {definition.signature()}",
            ),
            details={
                "function_name": name,
                "signature": definition.signature(),
                "affected_files": affected,
                "breaking_change_types": sorted({v.code for v in verdicts}),
            },
        )
