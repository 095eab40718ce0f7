"""Отбор файлов для анализа с поддержкой шаблонов в стиле gitignore."""

import os
import logging

import pathspec

from .config import AnalysisConfig

logger = logging.getLogger(__name__)


class FileScanner:
    """Фильтрация входного списка файлов по расширениям и шаблонам."""

    def __init__(self, config: AnalysisConfig):
        self.config = config
        self._exclude_spec = self._build_spec(config.exclude_patterns)
        self._include_spec = self._build_spec(config.include_patterns)

    def _build_spec(self, patterns: tuple[str, ...]) -> pathspec.PathSpec | None:
        if not patterns:
            return None
        return pathspec.PathSpec.from_lines("gitwildmatch", patterns)

    def select(self, paths: list[str]) -> list[str]:
        """
        Отобрать файлы для анализа.

        Args:
            paths: пути файлов в порядке поступления

        Returns:
            подходящие пути без дубликатов, не больше max_files
        """
        selected = []
        seen = set()

        for path in paths:
            key = os.path.normpath(path)
            if key in seen:
                continue
            seen.add(key)

            if self._should_include_file(path):
                selected.append(path)

        skipped = len(paths) - len(selected)
        if skipped:
            logger.debug(f"[Scanner] Filtered out {skipped} files")

        if len(selected) > self.config.max_files:
            logger.warning(
                f"[Scanner] {len(selected)} files exceed the limit, "
                f"analyzing first {self.config.max_files}"
            )
            selected = selected[: self.config.max_files]

        logger.info(f"[Scanner] Selected {len(selected)} files")
        return selected

    def _relative(self, path: str) -> str:
        """Путь относительно root_dir в формате posix."""
        if self.config.root_dir and os.path.isabs(path):
            path = os.path.relpath(path, self.config.root_dir)
        return os.path.normpath(path).replace(os.sep, "/")

    def _should_include_file(self, path: str) -> bool:
        """Проверить, нужно ли включать файл в анализ."""
        # Проверка расширения
        if not path.lower().endswith(self.config.file_extensions):
            return False

        rel_path = self._relative(path)

        if self._exclude_spec and self._exclude_spec.match_file(rel_path):
            return False

        if self._include_spec and not self._include_spec.match_file(rel_path):
            return False

        return True
