"""Вызовы функций, которых больше нет."""

import logging

from ..models import CallSite, Finding, ImportInfo, ParsedFile, RelatedSite
from ..registry import FunctionRegistry
from .base import Detector, finding_id, is_runtime_name

logger = logging.getLogger(__name__)

CONFIDENCE = 0.9


class StaleReferenceDetector(Detector):
    """Вызов имени, не определённого ни в одном файле или недоступного из файла."""

    name = "stale-reference"

    def _detect_file(self, parsed: ParsedFile, registry: FunctionRegistry) -> list[Finding]:
        external = self._external_names(parsed.imports) if self.config.ignore_external_imports else set()
        bindings = self.bindings(parsed)
        # Колбэки и объекты, переданные параметрами: cb(), options.onDone()
        parameters = {p.name for d in parsed.definitions for p in d.parameters}
        findings = []

        for call in parsed.calls:
            # Классы не являются определениями функций
            if call.call_type == "constructor":
                continue

            if is_runtime_name(call, self.config.extra_globals):
                continue

            if call.base_name in external or call.receiver_root in external:
                continue

            if call.callee in parameters or call.receiver_root in parameters:
                continue

            # Default-импорт без именованного экспорта проверяет детектор импортов
            if call.callee in bindings and bindings[call.callee] is None:
                continue

            binding = bindings.get(call.callee)
            candidates = registry.lookup(binding.name if binding else call.base_name)
            if not candidates:
                findings.append(self._make_finding(call, None))
                continue

            if self.definition_for(call, parsed.path, registry, bindings) is None:
                findings.append(self._make_finding(call, candidates[0].location))

        return findings

    def _external_names(self, imports: tuple[ImportInfo, ...]) -> set[str]:
        """Локальные имена, импортированные из пакетов (не путей и не алиасов)."""
        return {imp.local_name for imp in imports if self.modules.is_bare(imp.module_path)}

    def _make_finding(self, call: CallSite, defined_at: str | None) -> Finding:
        name = call.base_name

        if defined_at is None:
            message = f"Function '{name}' is called but is no longer defined in scope."
        else:
            message = (
                f"Function '{name}' is called but is not accessible from this file "
                f"(defined at {defined_at} without export)."
            )

        return Finding(
            id=finding_id(self.name, name, call.source_file, call.line, call.column),
            kind="stale-reference",
            code="stale-reference",
            severity="error",
            message=message,
            file=call.source_file,
            line=call.line,
            column=call.column,
            subject=name,
            confidence=CONFIDENCE,
            related_sites=(
                RelatedSite(
                    file=call.source_file,
                    line=call.line,
                    column=call.column,
                    context=call.context,
                ),
            ),
            suggestions=(
                f"Verify that '{name}' is still defined and exported",
                "Check if the function was renamed or moved to a different file",
                "Ensure proper import statements if function is in another module",
            ),
            details={
                "function_name": name,
                "callee": call.callee,
                "context": call.context,
                "call_site": f"{call.source_file}:{call.line}:{call.column}",
                "defined_at": defined_at,
            },
        )
