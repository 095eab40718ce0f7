"""Импорты, которым нет соответствующего экспорта."""

import logging
import os

from ..models import ExportInfo, Finding, ImportInfo, ParsedFile, RelatedSite
from ..registry import FunctionRegistry
from .base import Detector, finding_id

logger = logging.getLogger(__name__)

CONFIDENCE = 0.95
EXTERNAL_CONFIDENCE = 0.5

# Импорты ресурсов сборщика (стили, картинки, данные)
ASSET_EXTENSIONS = (
    ".css",
    ".scss",
    ".sass",
    ".less",
    ".json",
    ".svg",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".webp",
    ".html",
    ".md",
    ".graphql",
    ".vue",
)


class ImportExportMismatchDetector(Detector):
    """Сверка импортов с экспортами целевых модулей."""

    name = "import-export-mismatch"

    def _detect_file(self, parsed: ParsedFile, registry: FunctionRegistry) -> list[Finding]:
        findings = []
        reported_modules = set()

        for imp in parsed.imports:
            if os.path.splitext(imp.module_path)[1].lower() in ASSET_EXTENSIONS:
                continue

            if self.modules.is_bare(imp.module_path):
                if imp.module_path not in reported_modules:
                    reported_modules.add(imp.module_path)
                    findings.append(self._external_module(imp))
                continue

            target = self.modules.resolve(imp.module_path, parsed.path)
            if target is None:
                if imp.module_path not in reported_modules:
                    reported_modules.add(imp.module_path)
                    findings.append(self._module_not_found(imp))
                continue

            # import * as ns: достаточно найти модуль
            if imp.is_namespace:
                continue

            exports = self.export_map.get(target, ())
            if self._find_matching_export(imp, exports):
                continue

            findings.append(self._missing_export(imp, exports))

        return findings

    def _find_matching_export(self, imp: ImportInfo, exports: tuple[ExportInfo, ...]) -> bool:
        """Default к default, именованный импорт к экспорту с тем же именем."""
        if imp.is_default:
            return any(exp.is_default for exp in exports)

        for exp in exports:
            # export * from '...' может содержать любое имя
            if exp.is_wildcard:
                return True
            if not exp.is_default and exp.exported_name == imp.imported_name:
                return True

        return False

    def _available_names(self, exports: tuple[ExportInfo, ...]) -> list[str]:
        names = []
        for exp in exports:
            if exp.exported_name not in names:
                names.append(exp.exported_name)
        return names

    def _related(self, imp: ImportInfo) -> tuple[RelatedSite, ...]:
        return (
            RelatedSite(
                file=imp.file,
                line=imp.line,
                column=imp.column,
                context=f"Import statement at {imp.file}:{imp.line}",
            ),
        )

    def _missing_export(self, imp: ImportInfo, exports: tuple[ExportInfo, ...]) -> Finding:
        available = self._available_names(exports)
        name = "default" if imp.is_default else imp.imported_name
        message = (
            f"Default export is imported as '{imp.local_name}' but '{imp.module_path}' has no default export."
            if imp.is_default
            else f"Function '{name}' is imported but not exported from '{imp.module_path}'."
        )

        return Finding(
            id=finding_id("missing-export", name, imp.file, imp.line, imp.column),
            kind="missing-export",
            code="missing-export",
            severity="error",
            message=message,
            file=imp.file,
            line=imp.line,
            column=imp.column,
            subject=name,
            confidence=CONFIDENCE,
            related_sites=self._related(imp),
            suggestions=(
                f"Available exports: {', '.join(available)}"
                if available
                else "No exports found in target module",
                f"Check if '{name}' was renamed or removed",
                "Verify the module path is correct",
            ),
            details={
                "import_name": name,
                "local_name": imp.local_name,
                "module_path": imp.module_path,
                "available_exports": available,
                "is_default": imp.is_default,
            },
        )

    def _module_not_found(self, imp: ImportInfo) -> Finding:
        return Finding(
            id=finding_id("module-not-found", imp.module_path, imp.file, imp.line, imp.column),
            kind="missing-export",
            code="module-not-found",
            severity="error",
            message=f"Module '{imp.module_path}' not found",
            file=imp.file,
            line=imp.line,
            column=imp.column,
            subject=imp.module_path,
            confidence=CONFIDENCE,
            related_sites=self._related(imp),
            suggestions=(
                "Verify the module path is correct",
                f"Check if '{imp.module_path}' was moved or deleted",
            ),
            details={"module_path": imp.module_path, "import_name": imp.imported_name},
        )

    def _external_module(self, imp: ImportInfo) -> Finding:
        return Finding(
            id=finding_id("external-module", imp.module_path, imp.file, imp.line, imp.column),
            kind="other",
            code="external-module",
            severity="warning",
            message=f"Module '{imp.module_path}' is an external package and was not analyzed",
            file=imp.file,
            line=imp.line,
            column=imp.column,
            subject=imp.module_path,
            confidence=EXTERNAL_CONFIDENCE,
            related_sites=self._related(imp),
            suggestions=(f"Make sure '{imp.module_path}' is installed",),
            details={"module_path": imp.module_path},
        )
