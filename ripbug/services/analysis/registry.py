"""Реестр определений функций."""

import logging

from .models import FunctionDefinition

logger = logging.getLogger(__name__)


class FunctionRegistry:
    """Определения функций по имени в порядке добавления (без дедупликации)."""

    def __init__(self, definitions: list[FunctionDefinition] | None = None):
        self._by_name: dict[str, list[FunctionDefinition]] = {}

        for definition in definitions or []:
            self.add(definition)

    def add(self, definition: FunctionDefinition) -> None:
        self._by_name.setdefault(definition.name, []).append(definition)

    def lookup(self, name: str) -> list[FunctionDefinition]:
        """Все определения с точным именем."""
        return list(self._by_name.get(name, []))

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return sum(len(defs) for defs in self._by_name.values())

    def relevant_definition(self, name: str, from_file: str) -> FunctionDefinition | None:
        """
        Выбрать определение для вызова из файла.

        Порядок: определение в том же файле, затем первое экспортируемое,
        затем первое в порядке реестра.
        """
        candidates = self._by_name.get(name)
        if not candidates:
            return None

        if len(candidates) > 1:
            logger.debug(
                f"[Registry] {len(candidates)} definitions of '{name}', resolving for {from_file}"
            )

        for definition in candidates:
            if definition.source_file == from_file:
                return definition

        for definition in candidates:
            if definition.is_exported:
                return definition

        return candidates[0]

    def accessible_from(self, name: str, from_file: str) -> FunctionDefinition | None:
        """Определение, видимое из файла: в том же файле или экспортируемое."""
        definition = self.relevant_definition(name, from_file)
        if definition is None:
            return None
        if definition.source_file == from_file or definition.is_exported:
            return definition
        return None

    def lookup_constructor(self, class_name: str, from_file: str) -> FunctionDefinition | None:
        """Конструктор класса: new Foo() -> метод constructor с owner Foo."""
        constructors = [d for d in self._by_name.get("constructor", []) if d.owner == class_name]
        if not constructors:
            return None

        for definition in constructors:
            if definition.source_file == from_file:
                return definition

        for definition in constructors:
            if definition.is_exported:
                return definition

        return None
