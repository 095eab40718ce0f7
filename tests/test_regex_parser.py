"""Tests for the regex-based fallback parser."""

import textwrap

import pytest

from ripbug.services.analysis.regex_parser import (
    RegexParser,
    parse_parameter_list,
    parse_parameter_text,
)


@pytest.fixture
def parser():
    return RegexParser()


def _defs(parser, source, path="test.ts"):
    return parser.extract_definitions(textwrap.dedent(source), path)


def _calls(parser, source, path="test.ts"):
    return parser.extract_calls(textwrap.dedent(source), path)


# ── Parameters ──


class TestParseParameter:
    def test_plain(self):
        param = parse_parameter_text("name")
        assert param.name == "name"
        assert not param.is_optional

    def test_typed_optional(self):
        param = parse_parameter_text("title?: string")
        assert param.name == "title"
        assert param.declared_type == "string"
        assert param.is_optional

    def test_default_makes_optional(self):
        param = parse_parameter_text("retries: number = 3")
        assert param.declared_type == "number"
        assert param.default_value == "3"
        assert param.is_optional

    def test_default_with_arrow_function(self):
        param = parse_parameter_text("cb = () => {}")
        assert param.name == "cb"
        assert param.default_value == "() => {}"

    def test_rest(self):
        param = parse_parameter_text("...items: string[]")
        assert param.is_rest
        assert param.name == "items"
        assert param.declared_type == "string[]"

    def test_destructured_object(self):
        param = parse_parameter_text("{ title, body }: Props")
        assert param.name == "title"
        assert param.declared_type == "Props"

    def test_accessibility_modifier_removed(self):
        param = parse_parameter_text("private readonly db: Database")
        assert param.name == "db"
        assert param.declared_type == "Database"

    def test_this_parameter_skipped(self):
        assert parse_parameter_text("this: HTMLElement") is None

    def test_generic_type_with_comma(self):
        params = parse_parameter_list("m: Map<string, number>, b: string")
        assert [p.name for p in params] == ["m", "b"]
        assert params[0].declared_type == "Map<string, number>"


# ── Definitions ──


class TestExtractDefinitions:
    def test_function_declaration(self, parser):
        defs = _defs(parser, "function name(a, b) {}\n")
        assert len(defs) == 1
        assert defs[0].name == "name"
        assert [p.name for p in defs[0].parameters] == ["a", "b"]
        assert defs[0].required_count == 2
        assert defs[0].line == 1
        assert not defs[0].is_exported

    def test_exported_async_function_with_types(self, parser):
        defs = _defs(
            parser,
            """\
            export async function load(url: string, retries = 3): Promise<void> {
            }
            """,
        )
        load = defs[0]
        assert load.is_exported
        assert load.is_async
        assert load.return_type == "Promise<void>"
        assert load.parameters[0].declared_type == "string"
        assert load.parameters[1].is_optional
        assert load.required_count == 1

    def test_arrow_function(self, parser):
        defs = _defs(parser, "const name = (a, b) => a + b;\n")
        assert len(defs) == 1
        assert defs[0].name == "name"
        assert defs[0].is_arrow
        assert defs[0].required_count == 2

    def test_exported_async_arrow_with_return_type(self, parser):
        defs = _defs(
            parser,
            "export const greet = async (name: string, title?: string): Promise<string> => {\n};\n",
        )
        greet = defs[0]
        assert greet.is_exported
        assert greet.is_async
        assert greet.return_type == "Promise<string>"
        assert greet.required_count == 1
        assert greet.max_count == 2

    def test_single_parameter_arrow(self, parser):
        defs = _defs(parser, "const double = x => x * 2;\n")
        assert defs[0].name == "double"
        assert [p.name for p in defs[0].parameters] == ["x"]

    def test_function_expression(self, parser):
        defs = _defs(parser, "const handler = function (req, res) {};\n")
        assert [d.name for d in defs] == ["handler"]
        assert not defs[0].is_arrow

    def test_named_function_expression_yields_both_names(self, parser):
        defs = _defs(parser, "const handler = function inner(a) {};\n")
        assert [d.name for d in defs] == ["handler", "inner"]

    def test_rest_parameter_unbounded(self, parser):
        defs = _defs(parser, "function sum(first, ...rest) {}\n")
        assert defs[0].required_count == 1
        assert defs[0].max_count is None

    def test_destructured_parameters(self, parser):
        defs = _defs(parser, "function render({ title, body }, [first, second] = []) {}\n")
        params = defs[0].parameters
        assert [p.name for p in params] == ["title", "first"]
        assert params[1].is_optional

    def test_this_parameter_not_counted(self, parser):
        defs = _defs(parser, "function onClick(this: HTMLElement, event: Event) {}\n")
        assert [p.name for p in defs[0].parameters] == ["event"]

    def test_generic_function(self, parser):
        defs = _defs(parser, "function pick<T, K extends keyof T>(obj: T, keys: K[]): Pick<T, K> {}\n")
        assert defs[0].name == "pick"
        assert len(defs[0].parameters) == 2

    def test_multiline_parameters(self, parser):
        defs = _defs(
            parser,
            """\
            function create(
              name: string,
              options?: Options,
            ) {
              return name;
            }
            """,
        )
        assert [p.name for p in defs[0].parameters] == ["name", "options"]
        assert defs[0].required_count == 1

    def test_class_methods_have_owner(self, parser):
        defs = _defs(
            parser,
            """\
            export class UserService {
              constructor(private db: Database) {}

              async getUser(id: string): Promise<User> {
                return this.db.find(id);
              }

              static create(): UserService {
                return new UserService(db);
              }
            }
            """,
        )
        assert [d.name for d in defs] == ["constructor", "getUser", "create"]
        assert all(d.owner == "UserService" for d in defs)
        assert all(d.is_exported for d in defs)
        assert defs[0].parameters[0].name == "db"
        assert defs[1].is_async

    def test_export_list_marks_definition_exported(self, parser):
        defs = _defs(parser, "function foo() {}\nexport { foo };\n")
        assert defs[0].is_exported

    def test_commented_out_function_ignored(self, parser):
        assert _defs(parser, "// function old(a) {}\n/* const gone = () => 1; */\n") == []

    def test_class_field_arrows_have_owner(self, parser):
        defs = _defs(
            parser,
            """\
            export class Widget {
              handleClick = (e: MouseEvent) => e;
              private load = async (id: string, force?: boolean): Promise<void> => {};
              count = 0;

              render() {
                const local = (x) => x;
                this.total = (a, b) => a + b;
              }
            }
            """,
        )
        assert [d.name for d in defs] == ["handleClick", "load", "render", "local"]
        fields = defs[:2]
        assert all(d.owner == "Widget" and d.is_arrow for d in fields)
        assert all(d.is_exported for d in fields)
        assert fields[1].is_async
        assert fields[1].required_count == 1
        assert fields[1].return_type == "Promise<void>"

    def test_object_literal_functions(self, parser):
        defs = _defs(
            parser,
            """\
            export const api = {
              load: (id) => id,
              save: async function (item, opts) {},
              limit: 10,
            };
            const local = { run: (x) => x };
            """,
        )
        assert [(d.name, d.owner, d.is_exported, d.is_arrow) for d in defs] == [
            ("load", None, True, True),
            ("save", None, True, False),
            ("run", None, False, True),
        ]
        assert defs[1].is_async
        assert len(defs[1].parameters) == 2

    def test_object_in_export_list_is_exported(self, parser):
        defs = _defs(parser, "const api = {\n  load: (id) => id,\n};\nexport { api };\n")
        assert [(d.name, d.is_exported) for d in defs] == [("load", True)]

    def test_parameter_types_are_not_properties(self, parser):
        defs = _defs(
            parser,
            """\
            interface Props {
              onDone: (value: string) => void;
            }
            type Handler = { run: (x: number) => void };
            const setup = () => {
              register(name, cb: (x: number) => void);
            };
            """,
        )
        assert [d.name for d in defs] == ["setup"]


# ── Calls ──


class TestExtractCalls:
    def test_argument_count_depth_aware(self, parser):
        calls = _calls(parser, "f(a, {x: 1, y: 2}, [1,2,3]);\n")
        assert len(calls) == 1
        assert calls[0].callee == "f"
        assert calls[0].argument_count == 3

    def test_multiline_call(self, parser):
        calls = _calls(
            parser,
            """\
            const result = compute(
              first,
              second,
            );
            """,
        )
        assert calls[0].callee == "compute"
        assert calls[0].arguments == ("first", "second")
        assert calls[0].line == 1

    def test_keywords_and_globals_skipped(self, parser):
        assert _calls(parser, "if (ok) { console.log(x); JSON.stringify(y); }\n") == []

    def test_declaration_is_not_a_call(self, parser):
        calls = _calls(parser, "function foo(a) { return bar(a); }\n")
        assert [c.callee for c in calls] == ["bar"]

    def test_comments_and_strings_ignored(self, parser):
        calls = _calls(parser, "// foo(1)\nconst s = 'bar(2)';\nbaz(3);\n")
        assert [c.callee for c in calls] == ["baz"]
        assert calls[0].line == 3

    def test_optional_chaining_normalized(self, parser):
        calls = _calls(parser, "user?.profile?.load(1);\n")
        assert calls[0].callee == "user.profile.load"
        assert calls[0].call_type == "method"
        assert calls[0].base_name == "load"
        assert calls[0].receiver_root == "user"

    def test_constructor_call(self, parser):
        calls = _calls(parser, "const w = new Widget(1, 2);\n")
        assert calls[0].callee == "Widget"
        assert calls[0].call_type == "constructor"

    def test_method_heads_are_not_calls(self, parser):
        calls = _calls(
            parser,
            """\
            class Store {
              async save(item) {
                persist(item);
              }
            }
            """,
        )
        assert [c.callee for c in calls] == ["persist"]

    def test_interface_signature_is_not_a_call(self, parser):
        calls = _calls(parser, "interface Api {\n  fetchUser(id: string): Promise<User>;\n}\n")
        assert calls == []

    def test_context_is_stripped_line(self, parser):
        calls = parser.extract_calls("if (ready) {\n    doStuff();\n}\n", "test.js")
        assert calls[0].context == "doStuff();"
        assert calls[0].column == 4


# ── Imports / Exports ──


class TestExtractImports:
    def test_import_forms(self, parser):
        source = textwrap.dedent(
            """\
            import React, { useState, type FC } from 'react';
            import * as utils from './utils';
            import { helper as h } from "../lib/helper";
            import type { User } from './types';
            """
        )
        imports = parser.extract_imports(source, "app.ts")
        assert [(i.imported_name, i.local_name) for i in imports] == [
            ("default", "React"),
            ("useState", "useState"),
            ("FC", "FC"),
            ("*", "utils"),
            ("helper", "h"),
            ("User", "User"),
        ]
        assert imports[0].is_default
        assert imports[2].is_type_only
        assert imports[3].is_namespace
        assert imports[3].is_relative
        assert imports[5].is_type_only
        assert imports[4].line == 3

    def test_multiline_named_import(self, parser):
        source = "import {\n  a,\n  b as c,\n} from './mod';\n"
        imports = parser.extract_imports(source, "app.ts")
        assert [i.imported_name for i in imports] == ["a", "b"]
        assert [i.local_name for i in imports] == ["a", "c"]

    def test_import_in_comment_ignored(self, parser):
        assert parser.extract_imports("// import { a } from './a';\n", "app.ts") == []


class TestExtractExports:
    def test_export_forms(self, parser):
        source = textwrap.dedent(
            """\
            export function foo() {}
            export const bar = 1;
            export default class App {}
            export { baz, qux as quux };
            export { x } from './x';
            export * from './all';
            export * as ns from './ns';
            export interface Props {}
            """
        )
        exports = parser.extract_exports(source, "mod.ts")
        assert [e.exported_name for e in exports] == [
            "foo",
            "bar",
            "App",
            "baz",
            "quux",
            "x",
            "*",
            "ns",
            "Props",
        ]
        assert exports[2].is_default
        assert exports[5].is_reexport and exports[5].source_module == "./x"
        assert exports[6].is_wildcard
        assert not exports[7].is_wildcard

    def test_multiline_export_list_positions(self, parser):
        source = "function a() {}\nfunction b() {}\nexport {\n  a,\n  b as c,\n  c as b\n};\n"

        exports = parser.extract_exports(source, "mod.js")

        assert [(e.exported_name, e.line, e.column) for e in exports] == [
            ("a", 4, 2),
            ("c", 5, 7),
            ("b", 6, 7),
        ]
