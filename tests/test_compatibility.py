"""Tests for the compatibility checker."""

import pytest

from ripbug.services.analysis.compatibility import (
    CompatibilityChecker,
    literal_shape,
    placeholder_for,
)
from ripbug.services.analysis.models import CallSite, FunctionDefinition, Parameter


def definition(*params, name="g"):
    return FunctionDefinition(name=name, parameters=tuple(params), source_file="lib.ts", line=3, column=0)


def call(*args, callee="g"):
    return CallSite(
        callee=callee,
        source_file="app.ts",
        line=7,
        column=2,
        context=f"{callee}({', '.join(args)})",
        arguments=tuple(args),
    )


@pytest.fixture
def checker():
    return CompatibilityChecker()


class TestArity:
    def test_missing_required_parameter(self, checker):
        g = definition(Parameter("a", "string"), Parameter("b", "number"))

        verdict = checker.check(g, call('"x"'))

        assert verdict.code == "missing-parameters"
        assert verdict.severity == "error"
        assert verdict.confidence == 0.95
        assert "'g'" in verdict.message
        assert "missing 1 required parameter(s)" in verdict.message
        assert verdict.suggestion == "Add missing parameter(s): 0"
        assert verdict.details["missing_parameters"] == ["b"]

    def test_optional_parameter_satisfied(self, checker):
        h = definition(Parameter("a", "string"), Parameter("b", "number", is_optional=True), name="h")
        assert checker.check(h, call('"x"', callee="h")) is None

    def test_default_value_satisfied(self, checker):
        f = definition(Parameter("a"), Parameter("b", default_value="1"))
        assert checker.check(f, call("x")) is None

    def test_extra_arguments_warning(self, checker):
        f = definition(Parameter("a"))

        verdict = checker.check(f, call("1", "2", "3"))

        assert verdict.code == "extra-arguments"
        assert verdict.severity == "warning"
        assert verdict.confidence == 0.7
        assert verdict.suggestion == "Remove 2 extra argument(s)"

    def test_rest_parameter_accepts_any_count(self, checker):
        f = definition(Parameter("first"), Parameter("rest", is_rest=True))
        assert checker.check(f, call("1", "2", "3", "4")) is None

    def test_rest_parameter_is_not_required(self, checker):
        f = definition(Parameter("rest", is_rest=True))
        assert checker.check(f, call()) is None

    def test_spread_argument_gives_no_verdict(self, checker):
        f = definition(Parameter("a"), Parameter("b"), Parameter("c"))
        assert checker.check(f, call("...args")) is None

    def test_constructor_named_after_owner(self, checker):
        ctor = FunctionDefinition(
            name="constructor",
            parameters=(Parameter("x"), Parameter("y")),
            source_file="point.ts",
            line=2,
            column=2,
            owner="Point",
        )
        verdict = checker.check(ctor, call("1", callee="Point"))
        assert "'new Point'" in verdict.message


class TestTypes:
    def test_literal_conflicts_with_primitive(self, checker):
        f = definition(Parameter("count", "number"))

        verdict = checker.check(f, call("'ten'"))

        assert verdict.code == "type-mismatch"
        assert verdict.severity == "warning"
        assert verdict.confidence == 0.4
        assert verdict.details["argument_shape"] == "string"

    def test_non_literal_argument_not_checked(self, checker):
        f = definition(Parameter("count", "number"))
        assert checker.check(f, call("total")) is None

    def test_non_primitive_declared_type_not_checked(self, checker):
        f = definition(Parameter("user", "User"))
        assert checker.check(f, call("42")) is None

    def test_type_checks_disabled(self):
        f = definition(Parameter("count", "number"))
        assert CompatibilityChecker(type_checks=False).check(f, call("'ten'")) is None

    @pytest.mark.parametrize(
        "argument, shape",
        [
            ("'a'", "string"),
            ('"a"', "string"),
            ("`a ${b}`", "string"),
            ("42", "number"),
            ("-3.5", "number"),
            ("0xff", "number"),
            ("true", "boolean"),
            ("{ a: 1 }", "object"),
            ("[1, 2]", "array"),
            ("value", None),
            ("getValue()", None),
            ("null", None),
        ],
    )
    def test_literal_shape(self, argument, shape):
        assert literal_shape(argument) == shape


class TestPlaceholders:
    @pytest.mark.parametrize(
        "declared, placeholder",
        [
            ("string", "''"),
            ("number", "0"),
            ("boolean", "false"),
            ("User[]", "[]"),
            ("Array<User>", "[]"),
            ("{ id: string }", "{}"),
            ("Record<string, number>", "{}"),
            ("User", "undefined"),
            (None, "undefined"),
        ],
    )
    def test_placeholder_for(self, declared, placeholder):
        assert placeholder_for(Parameter("p", declared)) == placeholder
