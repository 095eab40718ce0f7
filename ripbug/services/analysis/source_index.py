"""Индекс распарсенных файлов: один разбор на файл за запуск."""

import logging
from concurrent.futures import ThreadPoolExecutor

from .models import FunctionDefinition, ParsedFile
from .source_parser import SourceParser

logger = logging.getLogger(__name__)


class SourceIndex:
    """Кэш чтения и парсинга файлов, общий для всех детекторов."""

    def __init__(self, parser: SourceParser, contents: dict[str, str] | None = None):
        self.parser = parser
        self.contents = contents or {}

        self._files: dict[str, ParsedFile] = {}
        self.failed: list[str] = []

    def build(self, paths: list[str], workers: int = 4) -> "SourceIndex":
        """
        Прочитать и распарсить файлы параллельно.

        Результаты собираются в порядке входного списка. Нечитаемые и
        неразобранные файлы пропускаются и попадают в failed.
        """
        logger.info(f"[Index] Parsing {len(paths)} files with {workers} workers...")

        with ThreadPoolExecutor(max_workers=max(workers, 1)) as pool:
            parsed = list(pool.map(self._load, paths))

        for path, parsed_file in zip(paths, parsed):
            if parsed_file is None:
                self.failed.append(path)
            else:
                self._files[path] = parsed_file

        logger.info(f"[Index] Parsed {len(self._files)} files, {len(self.failed)} failed")
        return self

    def _load(self, path: str) -> ParsedFile | None:
        content = self.read(path)
        if content is None:
            return None

        # Без запасного парсера ParseError приходит сюда: файл пропускается
        try:
            return self.parser.parse(content, path)
        except Exception as e:
            logger.warning(f"[Index] Failed to parse {path}: {e}")
            return None

    def read(self, path: str) -> str | None:
        """Текст файла: из переданного словаря или с диска (UTF-8)."""
        if path in self.contents:
            return self.contents[path]

        try:
            with open(path, encoding="utf-8") as f:
                return f.read()
        except Exception as e:
            logger.warning(f"[Index] Failed to read {path}: {e}")
            return None

    @property
    def files(self) -> list[ParsedFile]:
        return list(self._files.values())

    def definitions(self) -> list[FunctionDefinition]:
        """Все определения в порядке файлов."""
        return [d for parsed in self._files.values() for d in parsed.definitions]

    def __len__(self) -> int:
        return len(self._files)
