"""Shared fixtures and helpers for tests."""

from collections.abc import Callable
from pathlib import Path

import pytest
from tree_sitter import Language, Parser
from tree_sitter_language_pack import get_language, get_parser

from typebox_typegen.core.source import ParsedFile, parse_source

_REPO_ROOT = Path(__file__).parent.parent
_FIXTURE_WORKSPACE = Path(__file__).parent / "fixtures" / "workspace"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def typescript_parser() -> Parser:
    """Return a tree-sitter parser for TypeScript."""
    return get_parser("typescript")


@pytest.fixture
def typescript_language() -> Language:
    """Return the tree-sitter TypeScript language."""
    return get_language("typescript")


@pytest.fixture
def parse_ts() -> Callable[[str], ParsedFile]:
    """Parse a TypeScript snippet as if it were ``snippet.ts``."""

    def _parse(source: str) -> ParsedFile:
        return parse_source(Path("/virtual/snippet.ts"), source.encode("utf-8"))

    return _parse


@pytest.fixture
def write_sources(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write ``{relative_path: source}`` files under tmp_path and return the root."""

    def _write(files: dict[str, str]) -> Path:
        for relative, source in files.items():
            target = tmp_path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def fixture_workspace(monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from the fixture workspace so ``@/`` references resolve against its ``src``."""
    monkeypatch.chdir(_FIXTURE_WORKSPACE)
    monkeypatch.delenv("TYPEGEN_SOURCE_ROOT", raising=False)
    monkeypatch.delenv("TYPEGEN_FALLBACK_SOURCE_ROOT", raising=False)
    return _FIXTURE_WORKSPACE
