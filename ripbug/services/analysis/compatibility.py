"""Проверка совместимости вызова с сигнатурой функции."""

import re
from dataclasses import dataclass, field
from typing import Any

from .models import CallSite, FunctionDefinition, Parameter, Severity

MISSING_CONFIDENCE = 0.95
EXTRA_CONFIDENCE = 0.7
TYPE_CONFIDENCE = 0.4

PRIMITIVE_TYPES = ("string", "number", "boolean")

NUMBER_RE = re.compile(r"^-?(?:0[xXbBoO][\da-fA-F_]+|\d[\d_]*(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+)n?$")


@dataclass(frozen=True)
class Verdict:
    """Результат проверки одного вызова."""

    code: str
    severity: Severity
    message: str
    confidence: float
    suggestion: str
    details: dict[str, Any] = field(default_factory=dict)


def placeholder_for(param: Parameter) -> str:
    """Значение-заглушка для недостающего аргумента по объявленному типу."""
    declared = (param.declared_type or "").strip()

    if declared == "string":
        return "''"
    if declared == "number":
        return "0"
    if declared == "boolean":
        return "false"
    if declared.endswith("[]") or declared.startswith("Array<"):
        return "[]"
    if declared.startswith("{") or declared.startswith("Record<") or declared == "object":
        return "{}"
    return "undefined"


def literal_shape(argument: str) -> str | None:
    """
    Форма литерального аргумента.

    Returns:
        string / number / boolean / object / array или None, если аргумент
        не литерал (переменная, вызов, выражение)
    """
    arg = argument.strip()
    if not arg:
        return None

    if arg[0] in "'\"`" and arg[-1] == arg[0] and len(arg) > 1:
        return "string"
    if arg in ("true", "false"):
        return "boolean"
    if NUMBER_RE.match(arg):
        return "number"
    if arg.startswith("{") and arg.endswith("}"):
        return "object"
    if arg.startswith("[") and arg.endswith("]"):
        return "array"
    return None


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class CompatibilityChecker:
    """Сравнение контракта параметров с аргументами вызова."""

    def __init__(self, type_checks: bool = True):
        self.type_checks = type_checks

    def check(self, definition: FunctionDefinition, call_site: CallSite) -> Verdict | None:
        """
        Проверить вызов.

        Returns:
            Verdict для несовместимого вызова, None если вызов безопасен
            или количество аргументов не определить (spread)
        """
        # f(...args): число аргументов неизвестно
        if call_site.has_spread:
            return None

        required = definition.required_count
        provided = call_site.argument_count
        total = definition.max_count
        name = definition.name if definition.name != "constructor" else f"new {definition.owner}"

        details = {
            "function_name": name,
            "expected_args": required,
            "actual_args": provided,
            "total_params": total,
            "signature": definition.signature(),
            "definition": definition.location,
        }

        if provided < required:
            missing = required - provided
            missing_params = [
                p for p in definition.parameters if not p.is_optional and not p.is_rest
            ][provided:]
            placeholders = ", ".join(placeholder_for(p) for p in missing_params)

            return Verdict(
                code="missing-parameters",
                severity="error",
                message=(
                    f"Function '{name}' called with {_plural(provided, 'argument')}, "
                    f"but expects {required}: missing {missing} required parameter(s)."
                ),
                confidence=MISSING_CONFIDENCE,
                suggestion=f"Add missing parameter(s): {placeholders}",
                details={**details, "missing_parameters": [p.name for p in missing_params]},
            )

        if total is not None and provided > total:
            extra = provided - total
            return Verdict(
                code="extra-arguments",
                severity="warning",
                message=(
                    f"Function '{name}' called with {_plural(provided, 'argument')}, "
                    f"but only accepts {total}."
                ),
                confidence=EXTRA_CONFIDENCE,
                suggestion=f"Remove {extra} extra argument(s)",
                details=details,
            )

        if self.type_checks:
            return self._check_types(definition, call_site, name, details)

        return None

    def _check_types(
        self, definition: FunctionDefinition, call_site: CallSite, name: str, details: dict
    ) -> Verdict | None:
        """Конфликт литерального аргумента с примитивным объявленным типом."""
        for index, (param, argument) in enumerate(zip(definition.parameters, call_site.arguments)):
            if param.is_rest:
                break

            declared = (param.declared_type or "").strip()
            if declared not in PRIMITIVE_TYPES:
                continue

            shape = literal_shape(argument)
            if shape is None or shape == declared:
                continue

            return Verdict(
                code="type-mismatch",
                severity="warning",
                message=(
                    f"Argument {index + 1} of '{name}' is a {shape} literal, "
                    f"but parameter '{param.name}' is declared as {declared}."
                ),
                confidence=TYPE_CONFIDENCE,
                suggestion=f"Pass a {declared} value for '{param.name}'",
                details={
                    **details,
                    "parameter": param.name,
                    "declared_type": declared,
                    "argument": argument,
                    "argument_shape": shape,
                },
            )

        return None
