"""Shared fixtures for ripbug tests."""

import textwrap

import pytest

from ripbug.services.analysis.config import AnalysisConfig
from ripbug.services.analysis.models import ParsedFile
from ripbug.services.analysis.source_parser import SourceParser


@pytest.fixture(params=[True, False], ids=["tree-sitter", "regex"])
def config(request):
    """Analysis config for both parser modes (tree-sitter falls back to regex when unavailable)."""
    return AnalysisConfig(enable_tree_sitter=request.param)


@pytest.fixture
def parse(config):
    """Parse {path: source} into ParsedFile objects in input order."""
    parser = SourceParser(config)

    def _parse(sources: dict[str, str]) -> list[ParsedFile]:
        return [parser.parse(textwrap.dedent(text), path) for path, text in sources.items()]

    return _parse
