"""Гибридный парсер: tree-sitter с откатом на регулярные выражения."""

import logging
import threading

from .ast_parser import ParseError, TreeSitterParser
from .config import AnalysisConfig
from .models import ParsedFile
from .regex_parser import RegexParser

logger = logging.getLogger(__name__)


class SourceParser:
    """
    Парсер исходников с двумя стратегиями.

    Структурная стратегия (tree-sitter) пробуется первой. Если она упала или
    ничего не нашла, используется запасной парсер на регулярных выражениях.
    При fallback_to_regex=False сбой структурного парсера пробрасывается
    как ParseError.
    """

    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config if config is not None else AnalysisConfig()
        self.fallback = RegexParser()
        self.structural: TreeSitterParser | None = None

        self._lock = threading.Lock()
        self._reported: set[str] = set()

        if self.config.enable_tree_sitter:
            try:
                self.structural = TreeSitterParser()
            except Exception as e:
                logger.warning(f"[Parser] Tree-sitter unavailable, using regex parser only: {e}")

    @property
    def mode(self) -> str:
        """Режим парсера для метаданных результата."""
        if self.structural is None:
            return "regex"
        if self.config.fallback_to_regex:
            return "tree-sitter+regex"
        return "tree-sitter"

    def extract_definitions(self, content: str, file_path: str) -> list:
        return self._run("extract_definitions", content, file_path)

    def extract_calls(self, content: str, file_path: str) -> list:
        return self._run("extract_calls", content, file_path)

    def extract_imports(self, content: str, file_path: str) -> list:
        return self._run("extract_imports", content, file_path)

    def extract_exports(self, content: str, file_path: str) -> list:
        return self._run("extract_exports", content, file_path)

    def parse(self, content: str, file_path: str) -> ParsedFile:
        """Полный разбор файла: определения, вызовы, импорты, экспорты."""
        return ParsedFile(
            path=file_path,
            definitions=tuple(self.extract_definitions(content, file_path)),
            calls=tuple(self.extract_calls(content, file_path)),
            imports=tuple(self.extract_imports(content, file_path)),
            exports=tuple(self.extract_exports(content, file_path)),
            lines=tuple(content.split("\n")),
        )

    def _run(self, method: str, content: str, file_path: str) -> list:
        """Запустить извлечение: структурно, затем запасной вариант."""
        if self.structural is not None:
            try:
                result = getattr(self.structural, method)(content, file_path)
                if result:
                    return result
            except Exception as e:
                if not self.config.fallback_to_regex:
                    if isinstance(e, ParseError):
                        raise
                    raise ParseError(f"Structural parse failed for {file_path}: {e}") from e
                self._report_once(file_path, e)

            if not self.config.fallback_to_regex:
                return []

        try:
            return getattr(self.fallback, method)(content, file_path)
        except Exception as e:
            self._report_once(file_path, e)
            return []

    def _report_once(self, file_path: str, error: Exception) -> None:
        with self._lock:
            if file_path in self._reported:
                return
            self._reported.add(file_path)
        logger.warning(f"[Parser] Failed to parse {file_path}: {error}")
