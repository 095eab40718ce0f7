"""Вызовы, не совпадающие с сигнатурой функции."""

import logging

from ..compatibility import CompatibilityChecker, Verdict
from ..models import CallSite, Finding, FunctionDefinition, ParsedFile, RelatedSite
from ..registry import FunctionRegistry
from .base import Detector, ImportBinding, finding_id, is_runtime_name

logger = logging.getLogger(__name__)


class SignatureMismatchDetector(Detector):
    """Проверка каждого вызова против доступного определения."""

    name = "signature-mismatch"

    def __init__(self, config=None):
        super().__init__(config)
        self.checker = CompatibilityChecker(type_checks=self.config.type_mismatch)

    def _detect_file(self, parsed: ParsedFile, registry: FunctionRegistry) -> list[Finding]:
        bindings = self.bindings(parsed)
        findings = []

        for call in parsed.calls:
            definition = self._resolve(call, parsed.path, registry, bindings)
            if definition is None:
                continue

            verdict = self.checker.check(definition, call)
            if verdict:
                findings.append(self._make_finding(call, definition, verdict))

        return findings

    def _resolve(
        self,
        call: CallSite,
        file_path: str,
        registry: FunctionRegistry,
        bindings: dict[str, ImportBinding | None],
    ) -> FunctionDefinition | None:
        """Определение для вызова: конструктор класса или функция по имени или импорту."""
        if call.call_type == "constructor":
            return registry.lookup_constructor(call.base_name, file_path)

        if is_runtime_name(call, self.config.extra_globals):
            return None

        definition = self.definition_for(call, file_path, registry, bindings)
        if definition is None or definition.name == "constructor":
            return None
        return definition

    def _make_finding(
        self, call: CallSite, definition: FunctionDefinition, verdict: Verdict
    ) -> Finding:
        subject = verdict.details.get("function_name", definition.name)

        return Finding(
            id=finding_id(self.name, subject, call.source_file, call.line, call.column),
            kind="signature-mismatch",
            code=verdict.code,
            severity=verdict.severity,
            message=verdict.message,
            file=call.source_file,
            line=call.line,
            column=call.column,
            subject=subject,
            confidence=verdict.confidence,
            related_sites=(
                RelatedSite(
                    file=call.source_file,
                    line=call.line,
                    column=call.column,
                    context=call.context,
                    suggestion=verdict.suggestion,
                ),
            ),
            suggestions=(
                verdict.suggestion,
                f"Function signature: {definition.signature()}",
                f"Check function definition at {definition.location}",
            ),
            details={**verdict.details, "code_snippet": call.context},
        )
