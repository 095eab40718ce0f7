"""Настройки конфигурации."""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ripbug.services.analysis.config import AnalysisConfig


class Config(BaseSettings):
    """Конфигурация приложения (переменные окружения RIPBUG_*)."""

    model_config = SettingsConfigDict(
        env_prefix="RIPBUG_", case_sensitive=False, extra="ignore"
    )

    # Логирование
    log_level: str = Field(default="INFO")

    # Файлы
    root_dir: str | None = Field(default=None)
    max_files: int = Field(default=100, ge=1)
    workers: int = Field(default=4, ge=1)
    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(AnalysisConfig().exclude_patterns)
    )

    # Парсер
    enable_tree_sitter: bool = Field(default=True)
    fallback_to_regex: bool = Field(default=True)

    # Правила
    stale_reference: bool = Field(default=True)
    signature_mismatch: bool = Field(default=True)
    import_export_mismatch: bool = Field(default=True)
    breaking_change: bool = Field(default=False)
    type_mismatch: bool = Field(default=True)
    suppress_external_modules: bool = Field(default=False)

    def to_analysis_config(self) -> AnalysisConfig:
        """Собрать конфигурацию ядра анализа из настроек."""
        return AnalysisConfig(
            root_dir=self.root_dir,
            max_files=self.max_files,
            workers=self.workers,
            exclude_patterns=tuple(self.exclude_patterns),
            enable_tree_sitter=self.enable_tree_sitter,
            fallback_to_regex=self.fallback_to_regex,
            stale_reference=self.stale_reference,
            signature_mismatch=self.signature_mismatch,
            import_export_mismatch=self.import_export_mismatch,
            breaking_change=self.breaking_change,
            type_mismatch=self.type_mismatch,
            suppress_external_modules=self.suppress_external_modules,
        )

    def configure_logging(self) -> None:
        """Настроить корневой логгер."""
        logging.basicConfig(level=self.log_level.upper(), format="%(message)s")
