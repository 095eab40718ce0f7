"""End-to-end tests for AnalysisService."""

import json
import textwrap
from unittest.mock import patch

import pytest

from ripbug import __version__
from ripbug.services.analysis import AnalysisConfig, AnalysisService
from ripbug.services.analysis.ast_parser import TreeSitterParser
from ripbug.services.analysis.detectors import StaleReferenceDetector
from ripbug.services.analysis.source_index import SourceIndex
from ripbug.services.analysis.source_parser import SourceParser


def write(root, files):
    paths = []
    for name, source in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source))
        paths.append(str(path))
    return paths


@pytest.fixture(params=[True, False], ids=["tree-sitter", "regex"])
def make_service(request, tmp_path):
    def _make(**overrides):
        config = AnalysisConfig(root_dir=str(tmp_path), enable_tree_sitter=request.param, **overrides)
        return AnalysisService(config)

    return _make


@pytest.fixture
def broken_project(tmp_path):
    """lib.ts changed g's signature; app.ts still calls it the old way."""
    return write(
        tmp_path,
        {
            "lib.ts": """\
            export function g(a: string, b: number) {
              return a.repeat(b);
            }
            """,
            "app.ts": """\
            import { g } from './lib';

            export function main() {
              return g("x");
            }
            """,
        },
    )


class TestAnalyze:
    def test_single_missing_parameter_error(self, make_service, broken_project):
        result = make_service().analyze(broken_project)

        assert not result.success
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.code == "missing-parameters"
        assert error.details["missing_parameters"] == ["b"]
        assert error.line == 4
        assert result.summary.errors == 1
        assert result.summary.files_analyzed == 2
        assert result.summary.files_skipped == 0

    def test_idempotent(self, make_service, broken_project):
        service = make_service()

        first = service.analyze(broken_project)
        second = service.analyze(broken_project)

        assert first.findings == second.findings
        assert [f.id for f in first.findings] == [f.id for f in second.findings]

    def test_clean_project_succeeds(self, make_service, tmp_path):
        files = write(
            tmp_path,
            {
                "lib.js": "export function h(a, b = 1) {}\n",
                "app.js": "import { h } from './lib';\nh('x');\n",
            },
        )

        result = make_service().analyze(files)

        assert result.success
        assert result.findings == ()

    def test_unreadable_file_does_not_block_others(self, make_service, tmp_path):
        files = write(tmp_path, {"app.js": "doStuff();\n"})
        (tmp_path / "binary.js").write_bytes(b"\xff\xfe\x00\x81")
        missing = str(tmp_path / "missing.js")

        result = make_service().analyze([missing, str(tmp_path / "binary.js")] + files)

        assert [f.subject for f in result.findings] == ["doStuff"]
        assert result.summary.files_analyzed == 1
        assert result.summary.files_skipped == 2

    def test_contents_mapping(self, make_service):
        result = make_service().analyze(
            ["virtual.ts"], contents={"virtual.ts": "doStuff();\n"}
        )

        assert len(result.errors) == 1
        assert result.errors[0].kind == "stale-reference"
        assert result.errors[0].file == "virtual.ts"

    def test_suppress_external_modules(self, make_service, tmp_path):
        files = write(tmp_path, {"app.js": "import React from 'react';\nReact.createElement('div');\n"})

        noisy = make_service().analyze(files)
        quiet = make_service(suppress_external_modules=True).analyze(files)

        assert [f.code for f in noisy.findings] == ["external-module"]
        assert noisy.success
        assert quiet.findings == ()

    def test_breaking_change_detector_opt_in(self, make_service, broken_project):
        result = make_service(breaking_change=True).analyze(broken_project)

        codes = [f.code for f in result.findings]
        assert codes == ["missing-parameters", "breaking-change"]
        assert "breaking-change" in result.metadata["rules"]

    def test_detectors_can_be_disabled(self, make_service, broken_project):
        result = make_service(signature_mismatch=False).analyze(broken_project)
        assert result.success

    def test_max_files(self, make_service, tmp_path):
        files = write(tmp_path, {"a.js": "a1();\n", "b.js": "b1();\n", "c.js": "c1();\n"})

        result = make_service(max_files=2).analyze(files)

        assert result.summary.files_analyzed == 2
        assert [f.subject for f in result.findings] == ["a1", "b1"]

    def test_detector_failure_isolated(self, make_service, broken_project):
        with patch.object(StaleReferenceDetector, "detect", side_effect=RuntimeError("boom")):
            result = make_service().analyze(broken_project)

        assert [f.code for f in result.findings] == ["missing-parameters"]

    def test_metadata_and_serialization(self, make_service, broken_project):
        result = make_service().analyze(broken_project)

        assert result.metadata["version"] == __version__
        assert result.metadata["rules"] == [
            "stale-reference",
            "signature-mismatch",
            "import-export-mismatch",
            "type-mismatch",
        ]
        assert result.metadata["parser"] in ("tree-sitter+regex", "regex")
        assert "T" in result.metadata["timestamp"]

        data = json.loads(json.dumps(result.to_dict()))
        assert data["summary"]["errors"] == 1
        assert data["findings"][0]["related_sites"][0]["suggestion"] == "Add missing parameter(s): 0"

    @pytest.mark.parametrize("bad", [None, "app.js", ["ok.js", 42]])
    def test_invalid_input(self, make_service, bad):
        with pytest.raises(ValueError):
            make_service().analyze(bad)

    def test_overall_confidence_is_capped_mean(self, make_service, tmp_path, broken_project):
        clean = make_service().analyze(write(tmp_path, {"solo.js": "export function solo() {}\n"}))
        assert clean.confidence == 0.95
        assert clean.to_dict()["confidence"] == 0.95

        result = make_service(breaking_change=True).analyze(broken_project)
        expected = sum(f.confidence for f in result.findings) / len(result.findings)
        assert result.confidence == pytest.approx(min(expected, 0.99))


class TestParseFailures:
    @pytest.fixture
    def strict_service(self, tmp_path):
        config = AnalysisConfig(root_dir=str(tmp_path), enable_tree_sitter=True, fallback_to_regex=False)
        service = AnalysisService(config)
        if service.parser.structural is None:
            pytest.skip("tree-sitter grammars unavailable")
        return service

    def test_failing_file_skipped_without_fallback(self, strict_service, tmp_path, broken_project):
        bad = write(tmp_path, {"bad.js": "helper();\n"})
        original = TreeSitterParser.extract_calls

        def flaky(self, content, file_path):
            if file_path.endswith("bad.js"):
                raise RuntimeError("grammar crashed")
            return original(self, content, file_path)

        with patch.object(TreeSitterParser, "extract_calls", flaky):
            result = strict_service.analyze(bad + broken_project)

        assert [f.code for f in result.findings] == ["missing-parameters"]
        assert result.summary.files_analyzed == 2
        assert result.summary.files_skipped == 1

    def test_deeply_nested_file(self, make_service, tmp_path, broken_project):
        deep = write(tmp_path, {"deep.js": "export const total = " + " + ".join(["1"] * 5000) + ";\n"})

        result = make_service().analyze(deep + broken_project)

        assert [f.code for f in result.findings] == ["missing-parameters"]
        assert result.summary.files_analyzed == 3


class TestSourceIndex:
    def test_files_in_input_order_and_failures_listed(self, config):
        contents = {"b.js": "function b() {}\n", "a.js": "function a() {}\na();\n"}

        index = SourceIndex(SourceParser(config), contents).build(["b.js", "missing.js", "a.js"], workers=2)

        assert len(index) == 2
        assert [parsed.path for parsed in index.files] == ["b.js", "a.js"]
        assert [d.name for d in index.definitions()] == ["b", "a"]
        assert index.failed == ["missing.js"]
        assert index.read("a.js") == contents["a.js"]
