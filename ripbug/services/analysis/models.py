"""Модели данных для анализа сигнатур."""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

Severity = Literal["error", "warning"]
FindingKind = Literal["stale-reference", "signature-mismatch", "missing-export", "other"]
CallType = Literal["function", "method", "constructor"]

# Общая уверенность: без находок и верхняя граница
NO_FINDINGS_CONFIDENCE = 0.95
MAX_CONFIDENCE = 0.99


@dataclass(frozen=True)
class Parameter:
    """Параметр функции."""

    name: str
    declared_type: str | None = None
    is_optional: bool = False
    default_value: str | None = None
    is_rest: bool = False

    def __post_init__(self):
        # Параметр со значением по умолчанию всегда необязательный
        if self.default_value is not None and not self.is_optional:
            object.__setattr__(self, "is_optional", True)

    def render(self) -> str:
        """Текстовое представление параметра."""
        text = f"...{self.name}" if self.is_rest else self.name
        if self.is_optional and self.default_value is None:
            text += "?"
        if self.declared_type:
            text += f": {self.declared_type}"
        if self.default_value is not None:
            text += f" = {self.default_value}"
        return text


@dataclass(frozen=True)
class FunctionDefinition:
    """Определение функции или метода."""

    name: str
    parameters: tuple[Parameter, ...]
    source_file: str
    line: int
    column: int
    is_exported: bool = False
    is_async: bool = False
    is_arrow: bool = False
    owner: str | None = None  # класс для методов
    return_type: str | None = None

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.parameters if not p.is_optional and not p.is_rest)

    @property
    def max_count(self) -> int | None:
        """Максимум аргументов; None если есть rest-параметр."""
        if any(p.is_rest for p in self.parameters):
            return None
        return len(self.parameters)

    @property
    def location(self) -> str:
        return f"{self.source_file}:{self.line}"

    def signature(self) -> str:
        params = ", ".join(p.render() for p in self.parameters)
        return f"{self.name}({params})"


@dataclass(frozen=True)
class CallSite:
    """Вызов функции в исходном коде."""

    callee: str
    source_file: str
    line: int
    column: int
    context: str
    arguments: tuple[str, ...] = ()
    call_type: CallType = "function"

    @property
    def argument_count(self) -> int:
        return len(self.arguments)

    @property
    def base_name(self) -> str:
        """Имя без получателя: obj.method -> method."""
        return self.callee.rsplit(".", 1)[-1]

    @property
    def receiver_root(self) -> str | None:
        """Корень цепочки получателя: a.b.c -> a."""
        if "." not in self.callee:
            return None
        return self.callee.split(".", 1)[0]

    @property
    def has_spread(self) -> bool:
        return any(arg.startswith("...") for arg in self.arguments)


@dataclass(frozen=True)
class ImportInfo:
    """Импортированное имя."""

    imported_name: str  # имя в исходном модуле; "default" / "*" для default и namespace
    local_name: str
    module_path: str
    file: str
    line: int
    column: int
    is_default: bool = False
    is_namespace: bool = False
    is_type_only: bool = False

    @property
    def is_relative(self) -> bool:
        return self.module_path.startswith("./") or self.module_path.startswith("../")


@dataclass(frozen=True)
class ExportInfo:
    """Экспортированное имя."""

    exported_name: str
    file: str
    line: int
    column: int
    is_default: bool = False
    is_reexport: bool = False
    is_wildcard: bool = False  # export * from '...'
    source_module: str | None = None


@dataclass(frozen=True)
class ParsedFile:
    """Результат парсинга файла."""

    path: str
    definitions: tuple[FunctionDefinition, ...] = ()
    calls: tuple[CallSite, ...] = ()
    imports: tuple[ImportInfo, ...] = ()
    exports: tuple[ExportInfo, ...] = ()
    lines: tuple[str, ...] = ()


@dataclass(frozen=True)
class RelatedSite:
    """Место вызова, связанное с находкой."""

    file: str
    line: int
    column: int
    context: str
    suggestion: str | None = None


@dataclass(frozen=True)
class Finding:
    """Найденная проблема."""

    id: str
    kind: FindingKind
    code: str
    severity: Severity
    message: str
    file: str
    line: int
    column: int
    subject: str
    confidence: float
    related_sites: tuple[RelatedSite, ...] = ()
    suggestions: tuple[str, ...] = ()
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Summary:
    """Сводка по запуску анализа."""

    files_analyzed: int
    files_skipped: int
    errors: int
    warnings: int
    time_ms: int


@dataclass(frozen=True)
class AnalysisResult:
    """Результат анализа."""

    success: bool
    findings: tuple[Finding, ...]
    summary: Summary
    confidence: float = NO_FINDINGS_CONFIDENCE
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == "error"]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == "warning"]

    def to_dict(self) -> dict:
        """Преобразовать в словарь для JSON сериализации."""
        return asdict(self)


def overall_confidence(findings: tuple[Finding, ...] | list[Finding]) -> float:
    """Средняя уверенность находок, не выше MAX_CONFIDENCE."""
    if not findings:
        return NO_FINDINGS_CONFIDENCE
    average = sum(f.confidence for f in findings) / len(findings)
    return min(average, MAX_CONFIDENCE)
