"""Конфигурация статического анализа."""

from dataclasses import dataclass, field

from ripbug.constants import LANGUAGE_MAP


@dataclass
class AnalysisConfig:
    """Конфигурация анализа сигнатур и ссылок."""

    # Расширения файлов для анализа
    file_extensions: tuple[str, ...] = tuple(f".{ext}" for ext in LANGUAGE_MAP.keys())

    # Шаблоны в стиле .gitignore (относительно root_dir)
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = (
        "node_modules/",
        "dist/",
        "build/",
        ".git/",
        "*.d.ts",
    )

    # Корень проекта для относительных шаблонов и алиасов
    root_dir: str | None = None

    # Лимит файлов за один запуск
    max_files: int = 100

    # Потоки для чтения и парсинга файлов
    workers: int = 4

    # Стратегии парсера
    enable_tree_sitter: bool = True
    fallback_to_regex: bool = True

    # Детекторы
    stale_reference: bool = True
    signature_mismatch: bool = True
    import_export_mismatch: bool = True
    breaking_change: bool = False
    type_mismatch: bool = True

    # Искать вызовы и в файле с определением
    include_same_file_calls: bool = False

    # Не отчитываться о модулях из node_modules
    suppress_external_modules: bool = False

    # Имена из внешних модулей не считаются устаревшими ссылками
    ignore_external_imports: bool = True

    # Дополнительные глобальные имена рантайма
    extra_globals: tuple[str, ...] = ()

    # Алиасы путей (для резолва импортов)
    path_aliases: dict[str, str] = field(default_factory=dict)

    # Суффиксы для резолва импортов в Node.js/JS экосистеме (пробуем по порядку)
    import_resolution_suffixes: tuple[str, ...] = (
        ".ts",
        ".tsx",
        ".js",
        ".jsx",
        ".mjs",
        ".cjs",
        "/index.ts",
        "/index.tsx",
        "/index.js",
        "/index.jsx",
    )

    def enabled_rules(self) -> list[str]:
        """Список включённых правил в стабильном порядке."""
        rules = []
        if self.stale_reference:
            rules.append("stale-reference")
        if self.signature_mismatch:
            rules.append("signature-mismatch")
        if self.import_export_mismatch:
            rules.append("import-export-mismatch")
        if self.breaking_change:
            rules.append("breaking-change")
        if self.type_mismatch:
            rules.append("type-mismatch")
        return rules
