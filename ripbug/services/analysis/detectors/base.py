"""Базовый детектор и общие помощники."""

import logging
from dataclasses import dataclass

from ripbug.constants import BUILTIN_METHODS, JS_KEYWORDS, KNOWN_GLOBALS
from ..config import AnalysisConfig
from ..models import CallSite, ExportInfo, Finding, FunctionDefinition, ParsedFile
from ..module_resolver import ModuleResolver
from ..registry import FunctionRegistry

logger = logging.getLogger(__name__)


def finding_id(kind: str, subject: str, file: str, line: int, column: int) -> str:
    """Детерминированный идентификатор находки."""
    return f"{kind}:{subject}:{file}:{line}:{column}"


def is_runtime_name(call: CallSite, extra_globals: tuple[str, ...] = ()) -> bool:
    """Имя из рантайма JS: ключевое слово, глобал, встроенный метод или вызов на глобале."""
    name = call.base_name

    if name in JS_KEYWORDS or name in KNOWN_GLOBALS or name in extra_globals:
        return True

    root = call.receiver_root
    if root is None:
        return False

    if root in KNOWN_GLOBALS or root in extra_globals:
        return True

    return name in BUILTIN_METHODS


@dataclass(frozen=True)
class ImportBinding:
    """Локальное имя, связанное импортом из анализируемого модуля."""

    name: str  # имя в модуле-источнике
    target: str | None  # файл модуля или None, если не найден


class Detector:
    """
    Детектор проблем по распарсенным файлам.

    Подклассы реализуют _detect_file. Сбой на одном файле логируется
    и не прерывает анализ остальных.
    """

    name = "detector"

    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config if config is not None else AnalysisConfig()

    def detect(
        self, files: list[ParsedFile], definitions: list[FunctionDefinition]
    ) -> list[Finding]:
        """
        Найти проблемы.

        Args:
            files: распарсенные файлы
            definitions: все определения функций в порядке файлов

        Returns:
            список находок в порядке файлов
        """
        if files is None or definitions is None:
            raise ValueError(f"{self.name}: files and definitions are required")

        registry = FunctionRegistry(definitions)
        self.modules = ModuleResolver([parsed.path for parsed in files], self.config)
        self.export_map: dict[str, tuple[ExportInfo, ...]] = {
            parsed.path: parsed.exports for parsed in files
        }
        self.prepare(files, registry)

        findings = []
        for parsed in files:
            try:
                findings.extend(self._detect_file(parsed, registry))
            except Exception as e:
                logger.warning(f"[Detector] {self.name} failed on {parsed.path}: {e}")

        logger.debug(f"[Detector] {self.name}: {len(findings)} findings")
        return findings

    def prepare(self, files: list[ParsedFile], registry: FunctionRegistry) -> None:
        """Подготовка перед обходом файлов (по умолчанию ничего)."""

    def bindings(self, parsed: ParsedFile) -> dict[str, ImportBinding | None]:
        """
        Связи локальных имён с импортами из относительных модулей и алиасов.

        import { formatDate as fmt } связывает fmt с formatDate, import slug
        связывает slug с именем default-экспорта целевого файла. None: default
        импорт без именованного экспорта, такие вызовы не сопоставляются.
        """
        result: dict[str, ImportBinding | None] = {}

        for imp in parsed.imports:
            if imp.is_namespace or self.modules.is_bare(imp.module_path):
                continue

            target = self.modules.resolve(imp.module_path, parsed.path)
            if not imp.is_default:
                result[imp.local_name] = ImportBinding(imp.imported_name, target)
                continue

            default = next(
                (e for e in self.export_map.get(target, ()) if e.is_default), None
            )
            if default is None or default.exported_name == "default":
                result[imp.local_name] = None
            else:
                result[imp.local_name] = ImportBinding(default.exported_name, target)

        return result

    def definition_for(
        self,
        call: CallSite,
        file_path: str,
        registry: FunctionRegistry,
        bindings: dict[str, ImportBinding | None],
    ) -> FunctionDefinition | None:
        """Доступное определение для вызова с учётом импортированных имён."""
        if call.callee not in bindings:
            return registry.accessible_from(call.base_name, file_path)

        binding = bindings[call.callee]
        if binding is None:
            return None

        # Экспорт из целевого файла: export default x, export { x as y }
        for definition in registry.lookup(binding.name):
            if definition.source_file == binding.target:
                return definition
        return registry.accessible_from(binding.name, file_path)

    def _detect_file(self, parsed: ParsedFile, registry: FunctionRegistry) -> list[Finding]:
        raise NotImplementedError
