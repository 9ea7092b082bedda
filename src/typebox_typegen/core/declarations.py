import logging
from dataclasses import dataclass
from pathlib import Path

from tree_sitter import Node

from typebox_typegen.core.shapes import ComposeCall, InlineObject, classify
from typebox_typegen.core.source import CompilationContext, ParsedFile, node_text

logger = logging.getLogger(__name__)

_DECLARATION_LISTS = frozenset({"lexical_declaration", "variable_declaration"})

_BindingKey = tuple[Path, str]


@dataclass(frozen=True, eq=False)
class Declaration:
    """A schema binding reduced to the object literals whose fields it exposes.

    A direct ``Type.Object({...})`` declaration has one object; a ``compose(...)``
    declaration has one per member, in argument order. ``statement`` is the
    enclosing statement used for the schema-level doc comment.
    """

    name: str
    objects: tuple[Node, ...]
    file: ParsedFile
    statement: Node | None = None


def enclosing_statement(declarator: Node) -> Node | None:
    declaration_list = declarator.parent
    if declaration_list is None or declaration_list.type not in _DECLARATION_LISTS:
        return None
    exported = declaration_list.parent
    if exported is not None and exported.type == "export_statement":
        return exported
    return declaration_list


def resolve_binding(context: CompilationContext, parsed: ParsedFile, name: str) -> tuple[ParsedFile, Node] | None:
    """Find the declarator for ``name``: locally first, then along named imports."""
    seen: set[_BindingKey] = set()
    current: ParsedFile | None = parsed
    while current is not None and (current.path, name) not in seen:
        seen.add((current.path, name))
        declarator = current.bindings.get(name)
        if declarator is not None:
            return current, declarator
        current = context.load_import(current, name)
    return None


def _member_objects(
    context: CompilationContext, parsed: ParsedFile, member: Node, active: frozenset[_BindingKey]
) -> list[Node]:
    shape = classify(member)
    if isinstance(shape, InlineObject):
        return [shape.literal]
    if member.type != "identifier":
        return []

    name = node_text(member)
    found = resolve_binding(context, parsed, name)
    if found is None:
        return []
    owner, declarator = found
    key = (owner.path, name)
    value = declarator.child_by_field_name("value")
    if key in active or value is None:
        return []
    return _object_literals(context, owner, value, active | {key})


def _object_literals(
    context: CompilationContext, parsed: ParsedFile, expression: Node, active: frozenset[_BindingKey]
) -> list[Node]:
    shape = classify(expression)
    if isinstance(shape, InlineObject):
        return [shape.literal]
    if isinstance(shape, ComposeCall):
        objects: list[Node] = []
        for member in shape.members:
            objects.extend(_member_objects(context, parsed, member, active))
        return objects
    return []


def _build_index(context: CompilationContext, parsed: ParsedFile) -> dict[str, Declaration]:
    index: dict[str, Declaration] = {}
    # a later binding of the same name replaces an entry only when it is itself an object shape
    for name, declarator in parsed.declarators:
        value = declarator.child_by_field_name("value")
        if value is None:
            continue
        objects = _object_literals(context, parsed, value, frozenset({(parsed.path, name)}))
        if objects:
            index[name] = Declaration(
                name=name,
                objects=tuple(objects),
                file=parsed,
                statement=enclosing_statement(declarator),
            )
    return index


def index_declarations(context: CompilationContext, parsed: ParsedFile) -> dict[str, Declaration]:
    """Return every ``Type.Object`` and ``compose`` declaration in ``parsed``, keyed by name.

    Initializers of any other shape are left out without error. The index is
    built once per file per compilation context.
    """
    index = context.indexes.get(parsed.path)
    if index is None:
        index = _build_index(context, parsed)
        context.indexes[parsed.path] = index
        logger.debug("Indexed %d declaration(s) in %s", len(index), parsed.path)
    return index
