"""Общие константы анализатора."""

# Расширение файла -> грамматика tree-sitter
LANGUAGE_MAP = {
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "ts": "typescript",
    "tsx": "tsx",
}

TYPESCRIPT_EXTENSIONS = (".ts", ".tsx")

# Ключевые слова, которые выглядят как вызов: if (...), catch (...)
JS_KEYWORDS = frozenset(
    {
        "if",
        "else",
        "for",
        "while",
        "do",
        "switch",
        "case",
        "catch",
        "try",
        "finally",
        "return",
        "throw",
        "typeof",
        "instanceof",
        "in",
        "of",
        "new",
        "delete",
        "void",
        "function",
        "class",
        "extends",
        "super",
        "this",
        "import",
        "export",
        "default",
        "await",
        "async",
        "yield",
        "with",
        "const",
        "let",
        "var",
        "constructor",
    }
)

# Глобальные объекты и функции рантайма (браузер + Node.js)
KNOWN_GLOBALS = frozenset(
    {
        "console",
        "JSON",
        "Promise",
        "Object",
        "Array",
        "String",
        "Number",
        "Boolean",
        "Symbol",
        "BigInt",
        "Date",
        "Math",
        "RegExp",
        "Error",
        "TypeError",
        "RangeError",
        "SyntaxError",
        "Map",
        "Set",
        "WeakMap",
        "WeakSet",
        "Proxy",
        "Reflect",
        "Intl",
        "parseInt",
        "parseFloat",
        "isNaN",
        "isFinite",
        "encodeURIComponent",
        "decodeURIComponent",
        "encodeURI",
        "decodeURI",
        "setTimeout",
        "setInterval",
        "clearTimeout",
        "clearInterval",
        "setImmediate",
        "queueMicrotask",
        "structuredClone",
        "fetch",
        "require",
        "module",
        "exports",
        "process",
        "Buffer",
        "globalThis",
        "window",
        "document",
        "navigator",
        "localStorage",
        "sessionStorage",
        "alert",
        "confirm",
        "atob",
        "btoa",
        "URL",
        "URLSearchParams",
        "AbortController",
        "describe",
        "it",
        "test",
        "expect",
        "beforeEach",
        "afterEach",
        "beforeAll",
        "afterAll",
        "jest",
    }
)

# Методы встроенных прототипов: arr.map(...), promise.then(...)
BUILTIN_METHODS = frozenset(
    {
        "map",
        "filter",
        "reduce",
        "forEach",
        "find",
        "findIndex",
        "some",
        "every",
        "includes",
        "indexOf",
        "push",
        "pop",
        "shift",
        "unshift",
        "slice",
        "splice",
        "concat",
        "join",
        "sort",
        "reverse",
        "flat",
        "flatMap",
        "keys",
        "values",
        "entries",
        "split",
        "trim",
        "toLowerCase",
        "toUpperCase",
        "replace",
        "replaceAll",
        "startsWith",
        "endsWith",
        "padStart",
        "padEnd",
        "substring",
        "charAt",
        "match",
        "test",
        "toString",
        "toFixed",
        "valueOf",
        "then",
        "catch",
        "finally",
        "get",
        "set",
        "has",
        "add",
        "delete",
        "clear",
        "bind",
        "call",
        "apply",
        "emit",
        "on",
        "off",
        "addEventListener",
        "removeEventListener",
        "querySelector",
        "querySelectorAll",
        "getElementById",
        "json",
        "send",
        "log",
        "warn",
        "error",
        "info",
        "debug",
    }
)
