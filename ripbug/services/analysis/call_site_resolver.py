"""Поиск мест вызова функции по всем файлам."""

import logging
import re
from dataclasses import dataclass
from typing import Literal

from .models import CallSite, FunctionDefinition, ParsedFile
from .text_scan import find_closing, mask_source, split_arguments

logger = logging.getLogger(__name__)

MatchRule = Literal["exact", "method", "constructor", "textual"]


@dataclass(frozen=True)
class ResolvedCall:
    """Место вызова и правило, по которому оно сопоставлено."""

    call_site: CallSite
    rule: MatchRule


class CallSiteResolver:
    """Сопоставление вызовов с определением функции."""

    def find_call_sites(
        self,
        definition: FunctionDefinition,
        files: list[ParsedFile],
        same_file: bool = False,
    ) -> list[ResolvedCall]:
        """
        Найти вызовы определения.

        Правила по порядку:
            1. имя вызова совпадает с именем функции
            2. вызов метода: obj.name(...)
            3. текстовое вхождение "name(" в строке (может давать ложные срабатывания)

        Args:
            definition: определение функции
            files: распарсенные файлы
            same_file: искать и в файле с определением

        Returns:
            список ResolvedCall в порядке файлов и строк
        """
        resolved = []

        for parsed in files:
            if parsed.path == definition.source_file and not same_file:
                continue

            matched_lines = set()

            for call in parsed.calls:
                rule = self._match(definition, call)
                if rule:
                    resolved.append(ResolvedCall(call_site=call, rule=rule))
                    matched_lines.add(call.line)

            if definition.name != "constructor":
                resolved.extend(self._textual_matches(definition, parsed, matched_lines))

        return resolved

    def _match(self, definition: FunctionDefinition, call: CallSite) -> MatchRule | None:
        if definition.name == "constructor":
            if (
                definition.owner
                and call.call_type == "constructor"
                and call.base_name == definition.owner
            ):
                return "constructor"
            return None

        if call.callee == definition.name:
            return "exact"
        if call.callee.endswith(f".{definition.name}"):
            return "method"
        return None

    def _textual_matches(
        self, definition: FunctionDefinition, parsed: ParsedFile, matched_lines: set[int]
    ) -> list[ResolvedCall]:
        """Текстовые вхождения name( в строках, где вызов не найден парсером."""
        pattern = re.compile(rf"(?<![\w$.])(?<!function )(?<!function\* ){re.escape(definition.name)}\s*\(")
        result = []

        for index, line in enumerate(parsed.lines):
            line_number = index + 1
            if line_number in matched_lines or definition.name not in line:
                continue

            masked = mask_source(line)
            for match in pattern.finditer(masked):
                open_index = match.end() - 1
                close = find_closing(masked, open_index)
                # Вызов продолжается на следующих строках: аргументы не восстановить
                if close is None:
                    continue

                call = CallSite(
                    callee=definition.name,
                    source_file=parsed.path,
                    line=line_number,
                    column=match.start(),
                    context=line.strip(),
                    arguments=tuple(split_arguments(line[open_index + 1 : close])),
                )
                logger.debug(f"[Resolver] Textual match for {definition.name} at {parsed.path}:{line_number}")
                result.append(ResolvedCall(call_site=call, rule="textual"))
                break

        return result
