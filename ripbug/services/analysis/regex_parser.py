"""Построчный парсер на регулярных выражениях (запасная стратегия)."""

import logging
import re

from ripbug.constants import JS_KEYWORDS, KNOWN_GLOBALS
from .models import CallSite, ExportInfo, FunctionDefinition, ImportInfo, Parameter
from .text_scan import (
    find_closing,
    first_identifier,
    line_starts,
    mask_source,
    offset_to_line,
    split_arguments,
)

logger = logging.getLogger(__name__)

IDENT = r"[A-Za-z_$][\w$]*"
IDENT_RE = re.compile(IDENT)

# function name(...) / export async function name<T>(...)
FUNCTION_RE = re.compile(
    rf"(?P<export>\bexport\s+(?:default\s+)?)?(?P<async>\basync\s+)?"
    rf"(?P<kw>\bfunction)\s*\*?\s*(?P<name>{IDENT})\s*(?:<[^>(]*>)?\s*\("
)

# const name = (...) => / export const name = async (...) =>
ARROW_RE = re.compile(
    rf"(?P<export>\bexport\s+)?(?P<kw>\b(?:const|let|var))\s+(?P<name>{IDENT})\s*"
    rf"(?::[^=\n]+)?=\s*(?P<async>async\s*)?(?:<[^>(\n]*>\s*)?\("
)

# const name = x => ...
ARROW_SINGLE_RE = re.compile(
    rf"(?P<export>\bexport\s+)?(?P<kw>\b(?:const|let|var))\s+(?P<name>{IDENT})\s*"
    rf"=\s*(?P<async>async\s+)?(?P<param>{IDENT})\s*=>"
)

# const name = function (...) / const name = async function* (...)
FUNCTION_EXPR_RE = re.compile(
    rf"(?P<export>\bexport\s+)?(?P<kw>\b(?:const|let|var))\s+(?P<name>{IDENT})\s*"
    rf"(?::[^=\n]+)?=\s*(?P<async>async\s+)?function\s*\*?\s*(?:{IDENT})?\s*\("
)

# Заголовок метода в начале строки: async method(...) {
METHOD_RE = re.compile(
    rf"^[ \t]*(?P<mods>(?:(?:public|private|protected|static|readonly|override|abstract|async)\s+)*)"
    rf"(?P<name>#?{IDENT})\s*(?:<[^>(\n]*>)?\s*\(",
    re.MULTILINE,
)

# Поле класса со стрелочной функцией: handleClick = (e) => / private load = async () =>
FIELD_ARROW_RE = re.compile(
    rf"^[ \t]*(?P<mods>(?:(?:public|private|protected|static|readonly|override)\s+)*)"
    rf"(?P<name>#?{IDENT})\s*(?::[^=\n]+)?=\s*(?P<async>async\s*)?(?:<[^>(\n]*>\s*)?\(",
    re.MULTILINE,
)

# Свойство объекта с функцией: load: (id) => / save: async function (x)
PROPERTY_FUNCTION_RE = re.compile(
    rf"(?:^|[{{,])[ \t]*(?P<name>{IDENT})\s*:\s*(?P<async>async\s+)?"
    rf"(?P<fn>function\s*\*?\s*(?:{IDENT})?\s*)?(?:<[^>(\n]*>\s*)?\(",
    re.MULTILINE,
)

# Перед { литерала объекта: =, (, [, запятая, ?, =>, return, export default
OBJECT_CONTEXT_RE = re.compile(r"(?:[=(,\[?]|=>|\breturn|\bexport\s+default)\s*$")
TYPE_CONTEXT_RE = re.compile(r"^\s*(?:export\s+)?(?:declare\s+)?(?:type|interface)\b")
OBJECT_OWNER_RE = re.compile(rf"^\s*(?:export\s+)?(?:const|let|var)\s+(?P<name>{IDENT})")

CLASS_RE = re.compile(rf"\bclass\s+(?P<name>{IDENT})[^{{]*\{{")

# Вызов: name( / obj.method( / a?.b.c<T>(
CALL_RE = re.compile(
    rf"(?<![\w$.])(?P<callee>{IDENT}(?:\s*\??\.\s*#?{IDENT})*)\s*(?:<[^<>()\n]*>)?\s*\("
)

# После закрывающей скобки: тело функции (: ReturnType) {
BODY_AFTER_RE = re.compile(r"\s*(?::\s*[^;{}()=]+(?:\([^)]*\))?[^;{}()=]*)?\{")
# Сигнатура метода в типе: fn(x: number): void;
SIGNATURE_AFTER_RE = re.compile(r"\s*:\s*[^;{}()=]+;")
ARROW_AFTER_RE = re.compile(r"\s*(?::\s*(?P<ret>[^=;{]+?))?\s*=>")
RETURN_TYPE_RE = re.compile(r"\s*:\s*(?P<ret>[^{;=]+?)\s*(?:\{|$)")

MODIFIER_RE = re.compile(r"^(?:(?:public|private|protected|readonly|override)\s+)+")

IMPORT_RE = re.compile(
    r"\bimport\s+(?P<type>type\s+)?(?P<clause>[\w$*{}\s,]+?)\s+from\s*"
    r"(?P<q>['\"])(?P<source>[^'\"]+)(?P=q)"
)
NAMESPACE_RE = re.compile(rf"\*\s*as\s+(?P<name>{IDENT})")

EXPORT_DECL_RE = re.compile(
    rf"\bexport\s+(?:declare\s+)?(?:async\s+)?"
    rf"(?:function\s*\*?|abstract\s+class|class|const|let|var|interface|type|enum|namespace)"
    rf"\s+(?P<name>{IDENT})"
)
EXPORT_DEFAULT_RE = re.compile(
    rf"\bexport\s+default\s+(?:async\s+)?(?:function\s*\*?\s*|class\s+)?(?P<name>{IDENT})?"
)
EXPORT_LIST_RE = re.compile(
    r"\bexport\s+(?:type\s+)?\{(?P<names>[^}]*)\}"
    r"(?:\s*from\s*(?P<q>['\"])(?P<source>[^'\"]+)(?P=q))?"
)
EXPORT_STAR_RE = re.compile(
    rf"\bexport\s+\*\s*(?:as\s+(?P<name>{IDENT})\s+)?from\s*"
    rf"(?P<q>['\"])(?P<source>[^'\"]+)(?P=q)"
)

DECLARATION_PREFIX_RE = re.compile(r"\bfunction\s*\*?\s*$")
NEW_PREFIX_RE = re.compile(r"\bnew\s+$")
METHOD_PREFIX_RE = re.compile(
    r"^\s*(?:(?:public|private|protected|static|readonly|override|abstract|async|get|set)\s+)*#?$"
)


def parse_parameter_text(raw: str) -> Parameter | None:
    """
    Разобрать текст одного параметра.

    Поддерживает формы: name, name: Type, name?: Type, name = value,
    name: Type = value, ...rest, {a, b}: Props, [x, y] = [].
    """
    text = MODIFIER_RE.sub("", raw.strip())
    if not text:
        return None

    is_rest = text.startswith("...")
    if is_rest:
        text = text[3:].lstrip()

    default_value = None
    eq = _top_level_index(text, "=")
    if eq is not None:
        default_value = text[eq + 1 :].strip() or None
        text = text[:eq].strip()

    declared_type = None
    colon = _top_level_index(text, ":")
    if colon is not None:
        declared_type = text[colon + 1 :].strip() or None
        text = text[:colon].strip()

    optional = text.endswith("?")
    if optional:
        text = text[:-1].strip()

    # Деструктуризация: берём первый идентификатор из шаблона
    if text.startswith("{") or text.startswith("["):
        name = first_identifier(text[1:]) or text
    else:
        name = text

    # TypeScript: this-параметр не передаётся при вызове
    if name == "this":
        return None

    return Parameter(
        name=name,
        declared_type=declared_type,
        is_optional=optional or default_value is not None,
        default_value=default_value,
        is_rest=is_rest,
    )


def _top_level_index(text: str, target: str) -> int | None:
    """Индекс символа вне скобок, строк и дженериков."""
    masked = mask_source(text)
    depth = 0
    angle = 0

    for i, ch in enumerate(masked):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth = max(depth - 1, 0)
        elif ch == "<":
            angle += 1
        elif ch == ">" and angle > 0 and masked[i - 1] != "=":
            angle -= 1
        elif ch == target and depth == 0 and angle == 0:
            if target == "=":
                nxt = masked[i + 1] if i + 1 < len(masked) else ""
                prev = masked[i - 1] if i > 0 else ""
                if nxt in "=>" or prev in "=!<>":
                    continue
            return i
    return None


def parse_parameter_list(text: str) -> tuple[Parameter, ...]:
    """Разобрать список параметров без внешних скобок."""
    params = []
    for raw in split_arguments(text, track_angles=True):
        param = parse_parameter_text(raw)
        if param:
            params.append(param)
    return tuple(params)


class RegexParser:
    """Парсер на регулярных выражениях: функции, вызовы, импорты, экспорты."""

    def extract_definitions(self, content: str, file_path: str) -> list[FunctionDefinition]:
        """
        Извлечь определения функций.

        Распознаёт function-объявления, стрелочные функции и function-выражения,
        присвоенные переменной, заголовки методов, стрелочные поля классов
        и функции-свойства литералов объектов.
        """
        masked = mask_source(content)
        starts = line_starts(content)
        exported_names = self._export_list_names(content, masked)
        classes = self._class_spans(masked)
        found: dict[int, FunctionDefinition] = {}

        for pattern in (FUNCTION_RE, ARROW_RE, FUNCTION_EXPR_RE):
            for m in pattern.finditer(masked):
                open_index = m.end() - 1
                close = find_closing(masked, open_index)
                params_end = close if close is not None else content.find("\n", open_index)
                if params_end == -1:
                    params_end = len(content)

                after_pos = params_end + 1 if close is not None else len(masked)
                is_arrow = pattern is ARROW_RE
                if is_arrow:
                    arrow = ARROW_AFTER_RE.match(masked, after_pos)
                    if not arrow:
                        continue
                    return_type = arrow.group("ret")
                else:
                    ret = RETURN_TYPE_RE.match(masked, after_pos)
                    return_type = ret.group("ret") if ret else None

                found[m.start("kw")] = self._make_definition(
                    m,
                    content[open_index + 1 : params_end],
                    file_path,
                    starts,
                    exported_names,
                    is_arrow=is_arrow,
                    return_type=return_type.strip() if return_type else None,
                    owner=self._owner_at(classes, m.start("kw")),
                )

        for m in ARROW_SINGLE_RE.finditer(masked):
            found[m.start("kw")] = self._make_definition(
                m,
                m.group("param"),
                file_path,
                starts,
                exported_names,
                is_arrow=True,
                owner=None,
            )

        for m in METHOD_RE.finditer(masked):
            name = m.group("name")
            if name in JS_KEYWORDS and name != "constructor":
                continue
            owner = self._owner_at(classes, m.start("name"))
            if owner is None:
                continue
            open_index = m.end() - 1
            close = find_closing(masked, open_index)
            if close is None or not BODY_AFTER_RE.match(masked, close + 1):
                continue
            ret = RETURN_TYPE_RE.match(masked, close + 1)
            line_idx = offset_to_line(starts, m.start("name"))
            found[m.start("name")] = FunctionDefinition(
                name=name.lstrip("#"),
                parameters=parse_parameter_list(content[open_index + 1 : close]),
                source_file=file_path,
                line=line_idx + 1,
                column=m.start("name") - starts[line_idx],
                is_exported=owner in exported_names or self._class_exported(masked, owner),
                is_async="async" in m.group("mods").split(),
                is_arrow=False,
                owner=owner,
                return_type=ret.group("ret").strip() if ret else None,
            )

        for m in FIELD_ARROW_RE.finditer(masked):
            owner = self._owner_at(classes, m.start("name"))
            if owner is None:
                continue
            # Только поля самого класса, не присваивания внутри методов
            brace = self._enclosing_brace(masked, m.start("name"))
            if not any(start == brace for start, _, _ in classes):
                continue
            definition = self._member_definition(
                m,
                content,
                masked,
                starts,
                file_path,
                owner=owner,
                is_exported=owner in exported_names or self._class_exported(masked, owner),
            )
            if definition:
                found[m.start("name")] = definition

        for m in PROPERTY_FUNCTION_RE.finditer(masked):
            brace = self._enclosing_brace(masked, m.start("name"))
            if brace is None or not self._is_object_literal(masked, brace):
                continue
            head = masked[masked.rfind("\n", 0, brace) + 1 : brace]
            declared = OBJECT_OWNER_RE.match(head)
            is_exported = head.lstrip().startswith("export ") or (
                declared is not None and declared.group("name") in exported_names
            )
            definition = self._member_definition(
                m,
                content,
                masked,
                starts,
                file_path,
                owner=None,
                is_exported=is_exported,
                is_function=bool(m.group("fn")),
            )
            if definition:
                found[m.start("name")] = definition

        return [found[offset] for offset in sorted(found)]

    def _member_definition(
        self,
        m: re.Match,
        content: str,
        masked: str,
        starts: list[int],
        file_path: str,
        owner: str | None,
        is_exported: bool,
        is_function: bool = False,
    ) -> FunctionDefinition | None:
        """Определение из поля класса или свойства объекта; None если это не функция."""
        open_index = m.end() - 1
        close = find_closing(masked, open_index)
        if close is None:
            return None

        if is_function:
            ret = RETURN_TYPE_RE.match(masked, close + 1)
            return_type = ret.group("ret") if ret else None
        else:
            arrow = ARROW_AFTER_RE.match(masked, close + 1)
            if not arrow:
                return None
            return_type = arrow.group("ret")

        line_idx = offset_to_line(starts, m.start("name"))
        return FunctionDefinition(
            name=m.group("name").lstrip("#"),
            parameters=parse_parameter_list(content[open_index + 1 : close]),
            source_file=file_path,
            line=line_idx + 1,
            column=m.start("name") - starts[line_idx],
            is_exported=is_exported,
            is_async=bool(m.group("async")),
            is_arrow=not is_function,
            owner=owner,
            return_type=return_type.strip() if return_type else None,
        )

    def _enclosing_brace(self, masked: str, offset: int) -> int | None:
        """Позиция незакрытой { перед смещением; None если ближе незакрытая ( или [."""
        depth = 0
        for i in range(offset - 1, -1, -1):
            ch = masked[i]
            if ch in ")]}":
                depth += 1
            elif ch in "([{":
                if depth == 0:
                    return i if ch == "{" else None
                depth -= 1
        return None

    def _is_object_literal(self, masked: str, brace: int) -> bool:
        """{ открывает литерал объекта, а не тело, тип или интерфейс."""
        if not OBJECT_CONTEXT_RE.search(masked[max(0, brace - 80) : brace]):
            return False
        line_start = masked.rfind("\n", 0, brace) + 1
        return not TYPE_CONTEXT_RE.match(masked[line_start:brace])

    def _make_definition(
        self,
        m: re.Match,
        params_text: str,
        file_path: str,
        starts: list[int],
        exported_names: set[str],
        is_arrow: bool,
        owner: str | None,
        return_type: str | None = None,
    ) -> FunctionDefinition:
        """Собрать FunctionDefinition из совпадения."""
        name = m.group("name")
        offset = m.start("kw")
        line_idx = offset_to_line(starts, offset)
        return FunctionDefinition(
            name=name,
            parameters=parse_parameter_list(params_text),
            source_file=file_path,
            line=line_idx + 1,
            column=offset - starts[line_idx],
            is_exported=bool(m.group("export")) or name in exported_names,
            is_async=bool(m.group("async")),
            is_arrow=is_arrow,
            owner=owner,
            return_type=return_type,
        )

    def _class_spans(self, masked: str) -> list[tuple[int, int, str]]:
        """Границы тел классов: (начало, конец, имя)."""
        spans = []
        for m in CLASS_RE.finditer(masked):
            close = find_closing(masked, m.end() - 1)
            spans.append((m.end() - 1, close if close is not None else len(masked), m.group("name")))
        return spans

    def _owner_at(self, spans: list[tuple[int, int, str]], offset: int) -> str | None:
        """Имя самого вложенного класса, содержащего смещение."""
        owner = None
        best = None
        for start, end, name in spans:
            if start < offset < end and (best is None or start > best):
                owner, best = name, start
        return owner

    def _class_exported(self, masked: str, class_name: str) -> bool:
        return bool(re.search(rf"\bexport\s+(?:default\s+)?(?:abstract\s+)?class\s+{re.escape(class_name)}\b", masked))

    def _export_list_names(self, content: str, masked: str) -> set[str]:
        """Локальные имена из export { a, b as c }."""
        names = set()
        for m in EXPORT_LIST_RE.finditer(content):
            if not self._is_code(content, masked, m.start()) or m.group("source"):
                continue
            for entry in m.group("names").split(","):
                local = entry.strip().split(" as ")[0].strip()
                if local:
                    names.add(local)
        return names

    def extract_calls(self, content: str, file_path: str) -> list[CallSite]:
        """
        Извлечь вызовы функций.

        Пропускает ключевые слова, встроенные глобальные имена, само объявление
        функции и заголовки методов.
        """
        masked = mask_source(content)
        starts = line_starts(content)
        lines = content.split("\n")
        calls = []

        for m in CALL_RE.finditer(masked):
            callee = re.sub(r"\s+", "", m.group("callee")).replace("?.", ".")
            root = callee.split(".", 1)[0]

            if "." not in callee and callee in JS_KEYWORDS:
                continue
            if root in KNOWN_GLOBALS:
                continue

            line_idx = offset_to_line(starts, m.start())
            line_prefix = masked[starts[line_idx] : m.start()]

            if DECLARATION_PREFIX_RE.search(line_prefix):
                continue

            open_index = m.end() - 1
            close = find_closing(masked, open_index)

            # Заголовок метода: name(a, b) { ... }
            if (
                close is not None
                and "." not in callee
                and METHOD_PREFIX_RE.match(line_prefix)
                and (
                    BODY_AFTER_RE.match(masked, close + 1)
                    or SIGNATURE_AFTER_RE.match(masked, close + 1)
                )
            ):
                continue

            if close is not None:
                args_text = content[open_index + 1 : close]
            else:
                line_end = content.find("\n", open_index)
                args_text = content[open_index + 1 : line_end if line_end != -1 else len(content)]

            if NEW_PREFIX_RE.search(line_prefix):
                call_type = "constructor"
            elif "." in callee:
                call_type = "method"
            else:
                call_type = "function"

            calls.append(
                CallSite(
                    callee=callee,
                    source_file=file_path,
                    line=line_idx + 1,
                    column=m.start() - starts[line_idx],
                    context=lines[line_idx].strip(),
                    arguments=tuple(split_arguments(args_text)),
                    call_type=call_type,
                )
            )

        return calls

    def extract_imports(self, content: str, file_path: str) -> list[ImportInfo]:
        """Извлечь импорты: default, именованные, namespace, type-only."""
        masked = mask_source(content)
        starts = line_starts(content)
        imports = []

        for m in IMPORT_RE.finditer(content):
            if not self._is_code(content, masked, m.start()):
                continue

            clause = m.group("clause").strip()
            source = m.group("source")
            type_only = bool(m.group("type"))
            line_idx = offset_to_line(starts, m.start())
            line = line_idx + 1

            def column_of(name: str) -> int:
                pos = content.find(name, m.start("clause"))
                if pos == -1:
                    pos = m.start()
                return pos - starts[offset_to_line(starts, pos)]

            named_part = ""
            if "{" in clause:
                head, _, rest = clause.partition("{")
                named_part = rest.rsplit("}", 1)[0]
                clause = head
            clause = clause.strip().rstrip(",").strip()

            namespace = NAMESPACE_RE.search(clause)
            if namespace:
                clause = clause[: namespace.start()].strip().rstrip(",").strip()
                name = namespace.group("name")
                imports.append(
                    ImportInfo(
                        imported_name="*",
                        local_name=name,
                        module_path=source,
                        file=file_path,
                        line=line,
                        column=column_of(name),
                        is_namespace=True,
                        is_type_only=type_only,
                    )
                )

            if clause and IDENT_RE.fullmatch(clause):
                imports.append(
                    ImportInfo(
                        imported_name="default",
                        local_name=clause,
                        module_path=source,
                        file=file_path,
                        line=line,
                        column=column_of(clause),
                        is_default=True,
                        is_type_only=type_only,
                    )
                )

            for entry in named_part.split(","):
                entry = " ".join(entry.split())
                if not entry:
                    continue
                entry_type_only = type_only
                if entry.startswith("type "):
                    entry_type_only = True
                    entry = entry[5:].strip()
                imported, _, alias = entry.partition(" as ")
                imported = imported.strip()
                local = alias.strip() or imported
                imports.append(
                    ImportInfo(
                        imported_name=imported,
                        local_name=local,
                        module_path=source,
                        file=file_path,
                        line=line,
                        column=column_of(imported),
                        is_default=imported == "default",
                        is_type_only=entry_type_only,
                    )
                )

        imports.sort(key=lambda i: (i.line, i.column))
        return imports

    def extract_exports(self, content: str, file_path: str) -> list[ExportInfo]:
        """Извлечь экспорты: объявления, default, списки, реэкспорты."""
        masked = mask_source(content)
        starts = line_starts(content)
        exports = []

        def position(offset: int) -> tuple[int, int]:
            line_idx = offset_to_line(starts, offset)
            return line_idx + 1, offset - starts[line_idx]

        for m in EXPORT_DECL_RE.finditer(masked):
            line, column = position(m.start("name"))
            exports.append(
                ExportInfo(exported_name=m.group("name"), file=file_path, line=line, column=column)
            )

        for m in EXPORT_DEFAULT_RE.finditer(masked):
            line, column = position(m.start())
            exports.append(
                ExportInfo(
                    exported_name=m.group("name") or "default",
                    file=file_path,
                    line=line,
                    column=column,
                    is_default=True,
                )
            )

        for m in EXPORT_LIST_RE.finditer(content):
            if not self._is_code(content, masked, m.start()):
                continue
            source = m.group("source")
            cursor = m.start("names")
            for entry in m.group("names").split(","):
                entry = " ".join(entry.split())
                if entry.startswith("type "):
                    entry = entry[5:].strip()
                if not entry:
                    continue
                local, _, alias = entry.partition(" as ")
                exported = alias.strip() or local.strip()
                # Строка и колонка берутся от самого имени в списке
                found = re.compile(rf"(?<![\w$]){re.escape(exported)}(?![\w$])").search(
                    content, cursor, m.end("names")
                )
                if found:
                    cursor = found.end()
                line, column = position(found.start() if found else m.start())
                exports.append(
                    ExportInfo(
                        exported_name=exported,
                        file=file_path,
                        line=line,
                        column=column,
                        is_default=exported == "default",
                        is_reexport=source is not None,
                        source_module=source,
                    )
                )

        for m in EXPORT_STAR_RE.finditer(content):
            if not self._is_code(content, masked, m.start()):
                continue
            line, column = position(m.start())
            name = m.group("name")
            exports.append(
                ExportInfo(
                    exported_name=name or "*",
                    file=file_path,
                    line=line,
                    column=column,
                    is_reexport=True,
                    is_wildcard=name is None,
                    source_module=m.group("source"),
                )
            )

        exports.sort(key=lambda e: (e.line, e.column))
        return exports

    def _is_code(self, content: str, masked: str, offset: int) -> bool:
        """Совпадение начинается в коде, а не в комментарии или строке."""
        return masked[offset] == content[offset]
