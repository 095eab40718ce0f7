"""Главный сервис анализа сигнатур (фасад)."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from ripbug import __version__
from .config import AnalysisConfig
from .detectors import (
    BreakingChangeDetector,
    Detector,
    ImportExportMismatchDetector,
    SignatureMismatchDetector,
    StaleReferenceDetector,
)
from .file_scanner import FileScanner
from .models import AnalysisResult, Finding, Summary, overall_confidence
from .source_index import SourceIndex
from .source_parser import SourceParser

logger = logging.getLogger(__name__)


class AnalysisService:
    """Сервис поиска ломающих изменений сигнатур в наборе файлов."""

    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config if config is not None else AnalysisConfig()

        self.scanner = FileScanner(self.config)
        self.parser = SourceParser(self.config)

    def _detectors(self) -> list[Detector]:
        """Включённые детекторы в фиксированном порядке."""
        detectors: list[Detector] = []
        if self.config.stale_reference:
            detectors.append(StaleReferenceDetector(self.config))
        if self.config.signature_mismatch:
            detectors.append(SignatureMismatchDetector(self.config))
        if self.config.import_export_mismatch:
            detectors.append(ImportExportMismatchDetector(self.config))
        if self.config.breaking_change:
            detectors.append(BreakingChangeDetector(self.config))
        return detectors

    def analyze(self, files: list[str], contents: dict[str, str] | None = None) -> AnalysisResult:
        """
        Проанализировать файлы.

        Args:
            files: пути файлов в порядке поступления
            contents: тексты файлов {path: text}; остальные читаются с диска

        Returns:
            AnalysisResult с находками, сводкой и метаданными
        """
        if files is None or isinstance(files, str):
            raise ValueError("files must be a list of paths")
        if not all(isinstance(path, str) for path in files):
            raise ValueError("files must contain only string paths")

        started = time.perf_counter()
        logger.info("[Analysis] Starting signature analysis...")

        # Шаг 1: Отбираем файлы
        logger.info(f"[1/4] Selecting files from {len(files)} candidates...")
        selected = self.scanner.select(list(files))

        # Шаг 2: Читаем и парсим
        logger.info(f"[2/4] Parsing {len(selected)} files...")
        index = SourceIndex(self.parser, contents).build(selected, self.config.workers)
        parsed_files = index.files
        definitions = index.definitions()
        logger.info(f"[2/4] Found {len(definitions)} function definitions")

        # Шаг 3: Запускаем детекторы
        detectors = self._detectors()
        logger.info(f"[3/4] Running {len(detectors)} detectors...")
        findings = self._run_detectors(detectors, parsed_files, definitions)

        if self.config.suppress_external_modules:
            findings = [f for f in findings if f.code != "external-module"]

        # Шаг 4: Сводка
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        summary = Summary(
            files_analyzed=len(index),
            files_skipped=len(files) - len(index),
            errors=sum(1 for f in findings if f.severity == "error"),
            warnings=sum(1 for f in findings if f.severity == "warning"),
            time_ms=elapsed_ms,
        )
        logger.info(
            f"[4/4] Complete: {summary.errors} errors, {summary.warnings} warnings "
            f"in {summary.files_analyzed} files ({elapsed_ms}ms)"
        )

        return AnalysisResult(
            success=summary.errors == 0,
            findings=tuple(findings),
            summary=summary,
            confidence=overall_confidence(findings),
            metadata={
                "version": __version__,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "rules": self.config.enabled_rules(),
                "parser": self.parser.mode,
            },
        )

    def _run_detectors(self, detectors: list[Detector], parsed_files, definitions) -> list[Finding]:
        """Запустить детекторы параллельно, собрать находки в порядке детекторов."""
        if not detectors:
            return []

        findings: list[Finding] = []

        with ThreadPoolExecutor(max_workers=len(detectors)) as pool:
            futures = [
                (detector, pool.submit(detector.detect, parsed_files, definitions))
                for detector in detectors
            ]

            for detector, future in futures:
                try:
                    result = future.result()
                except Exception as e:
                    logger.error(f"[Analysis] Detector {detector.name} failed: {e}")
                    continue

                logger.info(f"[Analysis] {detector.name}: {len(result)} findings")
                findings.extend(result)

        return findings
