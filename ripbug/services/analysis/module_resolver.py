"""Резолв путей импорта в файлы анализируемого набора."""

import os
import logging

from .config import AnalysisConfig

logger = logging.getLogger(__name__)

JS_SOURCE_SUFFIXES = (".js", ".jsx", ".mjs", ".cjs")


class ModuleResolver:
    """Сопоставление спецификатора импорта с файлом из набора."""

    def __init__(self, files: list[str], config: AnalysisConfig):
        self.config = config
        self._files = {os.path.normpath(path): path for path in files}

    def is_bare(self, module_path: str) -> bool:
        """Спецификатор пакета (react, lodash/fp), не путь и не алиас."""
        if module_path.startswith(".") or module_path.startswith("/"):
            return False
        return not any(module_path.startswith(alias) for alias in self.config.path_aliases)

    def resolve(self, module_path: str, from_file: str) -> str | None:
        """
        Резолвить путь импорта в путь к файлу.

        Args:
            module_path: спецификатор из import ... from '...'
            from_file: файл, содержащий импорт

        Returns:
            путь файла в том виде, в каком он передан в набор, или None
        """
        # Обработка алиасов
        for alias, real_path in self.config.path_aliases.items():
            if module_path.startswith(alias):
                resolved = module_path.replace(alias, real_path, 1)
                if self.config.root_dir and not os.path.isabs(resolved):
                    resolved = os.path.join(self.config.root_dir, resolved)
                return self._try_extensions(resolved)

        # Обработка относительных путей
        if module_path.startswith("."):
            current_dir = os.path.dirname(from_file)
            return self._try_extensions(os.path.join(current_dir, module_path))

        if module_path.startswith("/"):
            return self._try_extensions(module_path)

        # Внешний пакет
        return None

    def _try_extensions(self, base_path: str) -> str | None:
        """Попробовать путь как есть, с суффиксами и с заменой .js на .ts."""
        base_path = os.path.normpath(base_path)

        candidates = [base_path]
        candidates.extend(base_path + suffix for suffix in self.config.import_resolution_suffixes)

        # ESM в TypeScript: import './util.js' указывает на util.ts
        stem, ext = os.path.splitext(base_path)
        if ext in JS_SOURCE_SUFFIXES:
            candidates.extend((stem + ".ts", stem + ".tsx"))

        for candidate in candidates:
            found = self._files.get(os.path.normpath(candidate))
            if found is not None:
                return found

        logger.debug(f"[Resolver] Could not resolve {base_path}")
        return None
