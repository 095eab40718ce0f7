"""Парсинг AST для извлечения функций, вызовов, импортов и экспортов."""

import logging
import threading
from collections.abc import Iterator
from typing import cast

from tree_sitter import Node
from tree_sitter_language_pack import SupportedLanguage, get_parser

from ripbug.constants import LANGUAGE_MAP
from .models import CallSite, ExportInfo, FunctionDefinition, ImportInfo, Parameter
from .text_scan import first_identifier

logger = logging.getLogger(__name__)

FUNCTION_DECLARATIONS = ("function_declaration", "generator_function_declaration")
FUNCTION_VALUES = ("arrow_function", "function_expression", "function", "generator_function")
CLASS_NODES = ("class_declaration", "abstract_class_declaration", "class")
# Поля классов: JavaScript (field_definition) и TypeScript (public_field_definition)
FIELD_DEFINITIONS = ("field_definition", "public_field_definition")
NAMED_DECLARATIONS = (
    "function_declaration",
    "generator_function_declaration",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "internal_module",
    "module",
)


class ParseError(Exception):
    """Структурный парсер не смог разобрать файл."""


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf8", errors="replace")


def _walk(root: Node) -> Iterator[Node]:
    """Обход дерева в прямом порядке на явном стеке."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


class TreeSitterParser:
    """Парсер на tree-sitter (JavaScript, TypeScript, TSX)."""

    def __init__(self):
        # Парсеры tree-sitter не потокобезопасны: держим свои на каждый поток
        self._local = threading.local()

        # Проверяем доступность грамматик сразу
        for lang in ("javascript", "typescript"):
            self._get_parser(lang)

    def _get_parser(self, lang: str):
        """Получить parser для языка (кэш на поток)."""
        parsers = getattr(self._local, "parsers", None)
        if parsers is None:
            parsers = self._local.parsers = {}

        if lang not in parsers:
            parsers[lang] = get_parser(cast(SupportedLanguage, lang))

        return parsers[lang]

    def _detect_language(self, filename: str):
        """Определить язык по расширению файла."""
        ext = filename.rsplit(".", 1)[-1] if "." in filename else ""
        return LANGUAGE_MAP.get(ext.lower())

    def _parse(self, content: str, file_path: str) -> Node:
        """Распарсить файл и вернуть корневой узел."""
        lang = self._detect_language(file_path)
        if not lang:
            raise ParseError(f"Unsupported file type: {file_path}")

        try:
            tree = self._get_parser(lang).parse(bytes(content, "utf8"))
        except Exception as e:
            raise ParseError(f"Tree-sitter failed on {file_path}: {e}") from e

        if tree.root_node.has_error:
            logger.debug(f"[Parser] Syntax errors in {file_path}, results may be partial")

        return tree.root_node

    # ── Определения ──

    def extract_definitions(self, content: str, file_path: str) -> list[FunctionDefinition]:
        """
        Извлечь определения функций из AST.

        Returns:
            function-объявления, стрелочные функции и function-выражения,
            присвоенные переменной, полю класса или свойству объекта,
            и методы классов
        """
        root = self._parse(content, file_path)
        exported_names = self._export_clause_names(root)
        definitions = []

        for n in _walk(root):
            definition = None

            if n.type in FUNCTION_DECLARATIONS:
                name_node = n.child_by_field_name("name")
                if name_node:
                    definition = self._build_definition(
                        n, n, _text(name_node), file_path, exported_names, is_arrow=False
                    )

            elif n.type == "variable_declarator":
                name_node = n.child_by_field_name("name")
                value_node = n.child_by_field_name("value")

                if (
                    name_node
                    and name_node.type == "identifier"
                    and value_node
                    and value_node.type in FUNCTION_VALUES
                ):
                    definition = self._build_definition(
                        n,
                        value_node,
                        _text(name_node),
                        file_path,
                        exported_names,
                        is_arrow=value_node.type == "arrow_function",
                    )

            elif n.type == "method_definition":
                name_node = n.child_by_field_name("name")
                if name_node and name_node.type != "computed_property_name":
                    definition = self._build_definition(
                        n,
                        n,
                        _text(name_node).lstrip("#"),
                        file_path,
                        exported_names,
                        is_arrow=False,
                        owner=self._owner_class(n),
                    )

            # handleClick = (e) => ... / { load: (id) => ... }
            elif n.type in FIELD_DEFINITIONS or n.type == "pair":
                if n.type == "pair":
                    key = n.child_by_field_name("key")
                else:
                    key = n.child_by_field_name("name") or n.child_by_field_name("property")
                value_node = n.child_by_field_name("value")
                name = self._property_name(key)

                if name and value_node is not None and value_node.type in FUNCTION_VALUES:
                    definition = self._build_definition(
                        n,
                        value_node,
                        name,
                        file_path,
                        exported_names,
                        is_arrow=value_node.type == "arrow_function",
                        owner=self._owner_class(n),
                    )

            if definition:
                definitions.append(definition)

        return definitions

    def _property_name(self, node: Node | None) -> str | None:
        """Статическое имя свойства; None для вычисляемых ключей."""
        if node is None:
            return None
        if node.type in ("property_identifier", "identifier"):
            return _text(node)
        if node.type == "private_property_identifier":
            return _text(node).lstrip("#")
        if node.type == "string":
            return _text(node).strip("\"'") or None
        return None

    def _build_definition(
        self,
        node: Node,
        function_node: Node,
        name: str,
        file_path: str,
        exported_names: set[str],
        is_arrow: bool,
        owner: str | None = None,
    ) -> FunctionDefinition:
        """Собрать FunctionDefinition из узла объявления и узла функции."""
        return_type = function_node.child_by_field_name("return_type")
        return FunctionDefinition(
            name=name,
            parameters=self._parse_parameters(function_node),
            source_file=file_path,
            line=node.start_point[0] + 1,
            column=node.start_point[1],
            is_exported=self._is_exported(node)
            or (name in exported_names and self._is_top_level(node)),
            is_async=any(child.type == "async" for child in function_node.children),
            is_arrow=is_arrow,
            owner=owner,
            return_type=_text(return_type).lstrip(":").strip() or None,
        )

    def _is_exported(self, node: Node) -> bool:
        """Подняться по предкам до export_statement или корня."""
        current = node
        while current is not None:
            if current.type == "export_statement":
                return True
            current = current.parent
        return False

    def _is_top_level(self, node: Node) -> bool:
        """Объявление на верхнем уровне модуля."""
        parent = node.parent
        if node.type == "variable_declarator" and parent is not None:
            parent = parent.parent
        return parent is not None and parent.type == "program"

    def _owner_class(self, node: Node) -> str | None:
        """Имя класса, которому принадлежит метод."""
        body = node.parent
        if body is None or body.type != "class_body":
            return None
        cls = body.parent
        if cls is None or cls.type not in CLASS_NODES:
            return None
        name_node = cls.child_by_field_name("name")
        if name_node:
            return _text(name_node)
        # const Foo = class { ... }
        if cls.parent is not None and cls.parent.type == "variable_declarator":
            return _text(cls.parent.child_by_field_name("name")) or None
        return None

    # ── Параметры ──

    def _parse_parameters(self, function_node: Node) -> tuple[Parameter, ...]:
        """Разобрать параметры функции с поддержкой TypeScript."""
        # Стрелочная функция с одним параметром без скобок: x => ...
        single = function_node.child_by_field_name("parameter")
        if single is not None:
            return (Parameter(name=_text(single)),)

        params_node = function_node.child_by_field_name("parameters")
        if params_node is None:
            return ()

        parameters = []
        for child in params_node.named_children:
            if child.type == "comment":
                continue
            param = self._parse_parameter(child)
            if param:
                parameters.append(param)

        return tuple(parameters)

    def _parse_parameter(self, node: Node) -> Parameter | None:
        """Разобрать один параметр."""
        if node.type == "identifier":
            return Parameter(name=_text(node))

        # JavaScript: a = 1
        if node.type == "assignment_pattern":
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            return Parameter(
                name=self._pattern_name(left),
                is_optional=True,
                default_value=_text(right) or None,
            )

        if node.type in ("object_pattern", "array_pattern"):
            return Parameter(name=self._pattern_name(node))

        if node.type == "rest_pattern":
            return Parameter(name=self._pattern_name(node), is_rest=True)

        # TypeScript: required_parameter / optional_parameter
        if node.type in ("required_parameter", "optional_parameter"):
            pattern = node.child_by_field_name("pattern")
            if pattern is None or pattern.type == "this":
                return None

            type_node = node.child_by_field_name("type")
            value_node = node.child_by_field_name("value")
            declared_type = _text(type_node).lstrip(":").strip() if type_node else None

            return Parameter(
                name=self._pattern_name(pattern),
                declared_type=declared_type or None,
                is_optional=node.type == "optional_parameter" or value_node is not None,
                default_value=_text(value_node) if value_node else None,
                is_rest=pattern.type == "rest_pattern",
            )

        return None

    def _pattern_name(self, node: Node | None) -> str:
        """Имя параметра; для деструктуризации берётся первый связанный идентификатор."""
        if node is None:
            return ""
        if node.type in ("identifier", "shorthand_property_identifier_pattern"):
            return _text(node)

        found = self._first_bound_identifier(node)
        if found:
            return found
        return first_identifier(_text(node)) or _text(node)

    def _first_bound_identifier(self, node: Node) -> str | None:
        """Первый идентификатор внутри шаблона (обход в глубину)."""
        for child in node.named_children:
            if child.type in ("identifier", "shorthand_property_identifier_pattern"):
                return _text(child)
            # Значение по умолчанию внутри шаблона не связывает имён
            if child.type == "assignment_pattern":
                child = child.child_by_field_name("left") or child
                if child.type in ("identifier", "shorthand_property_identifier_pattern"):
                    return _text(child)
            found = self._first_bound_identifier(child)
            if found:
                return found
        return None

    # ── Вызовы ──

    def extract_calls(self, content: str, file_path: str) -> list[CallSite]:
        """Извлечь вызовы функций, методов и конструкторов."""
        root = self._parse(content, file_path)
        lines = content.split("\n")
        calls = []

        for n in _walk(root):
            call = None

            if n.type == "call_expression":
                call = self._parse_call(n, file_path, lines)

            elif n.type == "new_expression":
                call = self._parse_new(n, file_path, lines)

            if call:
                calls.append(call)

        return calls

    def _parse_call(self, node: Node, file_path: str, lines: list[str]) -> CallSite | None:
        """Разобрать call_expression: fn(...) или obj.method(...)."""
        func = node.child_by_field_name("function")
        args = node.child_by_field_name("arguments")

        # Тегированные шаблоны (tag`...`) не являются вызовом с аргументами
        if func is None or args is None or args.type != "arguments":
            return None

        if func.type == "identifier":
            callee = _text(func)
            call_type = "function"
        elif func.type == "member_expression":
            callee = self._member_name(func)
            # Получатель вычисляется: factory().run(...), items[0].save()
            if callee is None:
                return None
            call_type = "method"
        else:
            # super(...), import(...), (expr)(...), obj[key](...)
            return None

        return self._make_call(node, callee, args, call_type, file_path, lines)

    def _parse_new(self, node: Node, file_path: str, lines: list[str]) -> CallSite | None:
        """Разобрать new_expression: new ClassName(...)."""
        constructor = node.child_by_field_name("constructor")
        if constructor is None:
            return None

        if constructor.type == "identifier":
            callee = _text(constructor)
        elif constructor.type == "member_expression":
            callee = self._member_name(constructor)
            if callee is None:
                return None
        else:
            return None

        args = node.child_by_field_name("arguments")
        return self._make_call(node, callee, args, "constructor", file_path, lines)

    def _make_call(
        self, node: Node, callee: str, args: Node | None, call_type, file_path: str, lines: list[str]
    ) -> CallSite:
        row, column = node.start_point[0], node.start_point[1]
        arguments = ()
        if args is not None:
            arguments = tuple(_text(a) for a in args.named_children if a.type != "comment")

        return CallSite(
            callee=callee,
            source_file=file_path,
            line=row + 1,
            column=column,
            context=lines[row].strip() if row < len(lines) else "",
            arguments=arguments,
            call_type=call_type,
        )

    def _member_name(self, node: Node | None) -> str | None:
        """Имя цепочки a.b.c; None если в цепочке есть вычисления."""
        parts = []
        while node is not None and node.type == "member_expression":
            prop = node.child_by_field_name("property")
            if prop is None or prop.type not in ("property_identifier", "private_property_identifier"):
                return None
            parts.append(_text(prop).lstrip("#"))
            node = node.child_by_field_name("object")

        if node is None:
            return None
        if node.type in ("identifier", "this", "super", "property_identifier"):
            parts.append(_text(node))
        elif node.type == "private_property_identifier":
            parts.append(_text(node).lstrip("#"))
        else:
            return None
        return ".".join(reversed(parts))

    # ── Импорты и экспорты ──

    def extract_imports(self, content: str, file_path: str) -> list[ImportInfo]:
        """Извлечь импорты из AST."""
        root = self._parse(content, file_path)
        imports = []

        for n in _walk(root):
            if n.type == "import_statement":
                imports.extend(self._parse_import(n, file_path))

        return imports

    def _parse_import(self, node: Node, file_path: str) -> list[ImportInfo]:
        """Разобрать import_statement во все импортированные имена."""
        source = node.child_by_field_name("source")
        if source is None:
            return []

        module_path = _text(source).strip("\"'")
        type_only = any(child.type == "type" for child in node.children)
        result = []

        def add(imported: str, local_node, **flags):
            result.append(
                ImportInfo(
                    imported_name=imported,
                    local_name=_text(local_node),
                    module_path=module_path,
                    file=file_path,
                    line=local_node.start_point[0] + 1,
                    column=local_node.start_point[1],
                    **flags,
                )
            )

        for clause in node.named_children:
            if clause.type != "import_clause":
                continue

            for part in clause.named_children:
                if part.type == "identifier":
                    add("default", part, is_default=True, is_type_only=type_only)

                elif part.type == "namespace_import":
                    name = next((c for c in part.named_children if c.type == "identifier"), None)
                    if name is not None:
                        add("*", name, is_namespace=True, is_type_only=type_only)

                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        name_node = spec.child_by_field_name("name")
                        alias_node = spec.child_by_field_name("alias")
                        if name_node is None:
                            continue
                        imported = _text(name_node).strip("\"'")
                        add(
                            imported,
                            alias_node or name_node,
                            is_default=imported == "default",
                            is_type_only=type_only
                            or any(c.type == "type" for c in spec.children),
                        )

        return result

    def extract_exports(self, content: str, file_path: str) -> list[ExportInfo]:
        """Извлечь экспорты из AST."""
        root = self._parse(content, file_path)
        exports = []

        for n in _walk(root):
            if n.type == "export_statement":
                exports.extend(self._parse_export(n, file_path))

        return exports

    def _parse_export(self, node: Node, file_path: str) -> list[ExportInfo]:
        """Разобрать export_statement."""
        source = node.child_by_field_name("source")
        source_module = _text(source).strip("\"'") if source is not None else None
        is_default = any(child.type == "default" for child in node.children)

        def make(name: str, at: Node, **flags) -> ExportInfo:
            return ExportInfo(
                exported_name=name,
                file=file_path,
                line=at.start_point[0] + 1,
                column=at.start_point[1],
                **flags,
            )

        declaration = node.child_by_field_name("declaration")
        if is_default:
            value = declaration or node.child_by_field_name("value")
            name = None
            if value is not None:
                name_node = value.child_by_field_name("name")
                if name_node is not None:
                    name = _text(name_node)
                elif value.type == "identifier":
                    name = _text(value)
            return [make(name or "default", node, is_default=True)]

        if declaration is not None:
            return [make(name, at) for name, at in self._declared_names(declaration)]

        result = []
        for child in node.named_children:
            if child.type == "export_clause":
                for spec in child.named_children:
                    if spec.type != "export_specifier":
                        continue
                    name_node = spec.child_by_field_name("name")
                    alias_node = spec.child_by_field_name("alias")
                    exported = _text(alias_node or name_node).strip("\"'")
                    if not exported:
                        continue
                    result.append(
                        make(
                            exported,
                            alias_node or name_node,
                            is_default=exported == "default",
                            is_reexport=source_module is not None,
                            source_module=source_module,
                        )
                    )
            elif child.type == "namespace_export":
                name_node = next((c for c in child.named_children if c.type == "identifier"), None)
                if name_node is not None:
                    result.append(
                        make(_text(name_node), name_node, is_reexport=True, source_module=source_module)
                    )

        # export * from './module'
        if any(child.type == "*" for child in node.children) and not any(
            child.type == "namespace_export" for child in node.named_children
        ):
            result.append(
                make("*", node, is_reexport=True, is_wildcard=True, source_module=source_module)
            )

        return result

    def _declared_names(self, declaration: Node) -> list[tuple[str, Node]]:
        """Имена, объявленные в export-декларации."""
        if declaration.type == "ambient_declaration":
            inner = next(iter(declaration.named_children), None)
            return self._declared_names(inner) if inner is not None else []

        if declaration.type in NAMED_DECLARATIONS:
            name_node = declaration.child_by_field_name("name")
            return [(_text(name_node), name_node)] if name_node is not None else []

        if declaration.type in ("lexical_declaration", "variable_declaration"):
            names = []
            for child in declaration.named_children:
                if child.type != "variable_declarator":
                    continue
                name_node = child.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    names.append((_text(name_node), name_node))
            return names

        return []

    def _export_clause_names(self, root: Node) -> set[str]:
        """Локальные имена из export { a, b as c } без from."""
        names = set()
        for node in root.named_children:
            if node.type != "export_statement" or node.child_by_field_name("source") is not None:
                continue
            for child in node.named_children:
                if child.type != "export_clause":
                    continue
                for spec in child.named_children:
                    name_node = spec.child_by_field_name("name")
                    if name_node is not None:
                        names.add(_text(name_node))
        return names
