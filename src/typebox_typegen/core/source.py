import logging
import re
from dataclasses import dataclass
from functools import cache, cached_property
from pathlib import Path
from typing import TYPE_CHECKING, cast

from tree_sitter import Node, Query, QueryCursor, Tree
from tree_sitter_language_pack import SupportedLanguage, get_language, get_parser

from typebox_typegen.core.paths import resolve_module_path

if TYPE_CHECKING:
    from typebox_typegen.core.declarations import Declaration

logger = logging.getLogger(__name__)

_EXTENSION_LANGUAGE_MAP = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

# tsx shares node names with typescript, so it reuses the same query files
_QUERY_DIALECT = {"tsx": "typescript"}


def detect_language_from_path(file_path: Path) -> str:
    return _EXTENSION_LANGUAGE_MAP.get(file_path.suffix.lower(), "typescript")


@cache
def _load_query(language: str, query_type: str) -> Query:
    queries_dir = Path(__file__).parent.parent / "queries"
    query_path = queries_dir / f"{_QUERY_DIALECT.get(language, language)}_{query_type}.scm"
    if not query_path.exists():
        raise FileNotFoundError(f"Query file not found: {query_path}")
    query_text = query_path.read_text(encoding="utf-8")
    return Query(get_language(cast(SupportedLanguage, language)), query_text)


def node_text(node: Node) -> str:
    return (node.text or b"").decode("utf-8")


_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_ESCAPE_SEQUENCE = re.compile(r"\\(?:x([0-9A-Fa-f]{2})|u\{([0-9A-Fa-f]+)\}|u([0-9A-Fa-f]{4})|(\r\n|[\s\S]))")


def _unescape(match: re.Match[str]) -> str:
    code = match.group(1) or match.group(2) or match.group(3)
    if code is not None:
        return chr(int(code, 16))
    char = match.group(4)
    if char in ("\n", "\r\n", "\r", "\u2028", "\u2029"):
        return ""  # line continuation
    return _SIMPLE_ESCAPES.get(char, char)


def string_value(node: Node) -> str:
    """Return the value of a string literal node: quotes removed, escape sequences decoded."""
    return _ESCAPE_SEQUENCE.sub(_unescape, node_text(node)[1:-1])


def named_children(node: Node) -> list[Node]:
    """Named children with interleaved comments filtered out."""
    return [child for child in node.named_children if child.type != "comment"]


@dataclass(frozen=True, eq=False)
class ParsedFile:
    path: Path
    language: str
    source: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def directory(self) -> Path:
        return self.path.parent

    @cached_property
    def declarators(self) -> list[tuple[str, Node]]:
        """Every named ``variable_declarator`` in the file, in source order, regardless of nesting."""
        cursor = QueryCursor(_load_query(self.language, "declarations"))
        captured = sorted(cursor.captures(self.root).get("declarator", []), key=lambda n: n.start_byte)
        result: list[tuple[str, Node]] = []
        for declarator in captured:
            name = declarator.child_by_field_name("name")
            if name is not None:
                result.append((node_text(name), declarator))
        return result

    @cached_property
    def bindings(self) -> dict[str, Node]:
        """Map of variable name to its ``variable_declarator`` node.

        When a name is bound more than once the last binding in source order wins.
        """
        return dict(self.declarators)

    @cached_property
    def named_imports(self) -> dict[str, str]:
        """Map of imported (exported-side) name to module specifier for top-level named imports."""
        result: dict[str, str] = {}
        for statement in self.root.named_children:
            if statement.type != "import_statement":
                continue
            source = statement.child_by_field_name("source")
            if source is None or source.type != "string":
                continue
            for clause in statement.named_children:
                if clause.type != "import_clause":
                    continue
                for named in clause.named_children:
                    if named.type != "named_imports":
                        continue
                    for specifier in named_children(named):
                        if specifier.type != "import_specifier":
                            continue
                        imported = specifier.child_by_field_name("name")
                        if imported is None:
                            continue
                        name = string_value(imported) if imported.type == "string" else node_text(imported)
                        result.setdefault(name, string_value(source))
        return result


def parse_source(path: Path, source: bytes) -> ParsedFile:
    language = detect_language_from_path(path)
    parser = get_parser(cast(SupportedLanguage, language))
    return ParsedFile(path=path, language=language, source=source, tree=parser.parse(source))


class CompilationContext:
    """Per-invocation state: parsed files and declaration indexes keyed by resolved path.

    A context must not be shared between ``generate`` calls; each file is read
    and parsed at most once for the lifetime of the context.
    """

    def __init__(self) -> None:
        self._files: dict[Path, ParsedFile] = {}
        self.indexes: dict[Path, dict[str, "Declaration"]] = {}

    @property
    def loaded_paths(self) -> list[Path]:
        return list(self._files)

    def load(self, path: Path) -> ParsedFile:
        parsed = self._files.get(path)
        if parsed is None:
            parsed = parse_source(path, path.read_bytes())
            self._files[path] = parsed
            logger.debug("Parsed %s", path)
        return parsed

    def load_reference(self, reference: str, base_dir: Path | None = None) -> ParsedFile:
        return self.load(resolve_module_path(reference, base_dir))

    def load_import(self, parsed: ParsedFile, identifier: str) -> ParsedFile | None:
        """Load the file ``parsed`` imports ``identifier`` from, or None when it is not import-bound."""
        specifier = parsed.named_imports.get(identifier)
        if specifier is None:
            return None
        return self.load_reference(specifier, parsed.directory)
