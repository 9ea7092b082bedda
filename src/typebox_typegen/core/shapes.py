"""Classification of TypeBox builder expressions.

Every expression the compiler inspects is classified exactly once into one of
a closed set of shapes before any recursive evaluation happens. Evaluation
and declaration indexing then dispatch on the shape instead of re-inspecting
the syntax tree.
"""

from dataclasses import dataclass

from tree_sitter import Node

from typebox_typegen.core.source import named_children, node_text

BUILDER_NAMESPACE = "Type"
MODULE_BINDING = "module"
COMPOSE_FUNCTION = "compose"

# An identifier such as ``ContactObjectRef`` refers to the shape whose base name is ``ContactObject``.
REFERENCE_SUFFIX = "Ref"

PRIMITIVE_TYPES = {
    "String": "string",
    "Number": "number",
    "Boolean": "boolean",
    "Null": "null",
}

# Wrappers that may surround the object literal passed to Type.Module.
_TRANSPARENT_WRAPPERS = frozenset({"satisfies_expression", "as_expression", "parenthesized_expression"})


@dataclass(frozen=True)
class Primitive:
    type_name: str


@dataclass(frozen=True)
class OptionalOf:
    inner: Node


@dataclass(frozen=True)
class ArrayOf:
    inner: Node


@dataclass(frozen=True)
class InlineObject:
    literal: Node


@dataclass(frozen=True)
class Reference:
    base_name: str


@dataclass(frozen=True)
class ComposeCall:
    members: tuple[Node, ...]


@dataclass(frozen=True)
class ModuleImportCall:
    key: Node


@dataclass(frozen=True)
class ModuleTable:
    entries: Node


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class Unrecognized:
    node_type: str


Shape = (
    Primitive
    | OptionalOf
    | ArrayOf
    | InlineObject
    | Reference
    | ComposeCall
    | ModuleImportCall
    | ModuleTable
    | Identifier
    | Unrecognized
)


def unwrap(node: Node) -> Node:
    """Strip ``satisfies``/``as`` assertions and parentheses around an expression."""
    while node.type in _TRANSPARENT_WRAPPERS:
        inner = named_children(node)
        if not inner:
            break
        node = inner[0]
    return node


def strip_reference_suffix(name: str) -> str | None:
    if name.endswith(REFERENCE_SUFFIX) and len(name) > len(REFERENCE_SUFFIX):
        return name[: -len(REFERENCE_SUFFIX)]
    return None


def call_arguments(call: Node) -> list[Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments":
        return []
    return named_children(arguments)


def _classify_member_call(receiver: str, method: str, args: list[Node], node: Node) -> Shape:
    if receiver == MODULE_BINDING and method == "Import" and len(args) == 1:
        return ModuleImportCall(args[0])
    if receiver != BUILDER_NAMESPACE:
        return Unrecognized(node.type)
    if method == "Optional" and len(args) == 1:
        return OptionalOf(args[0])
    if method == "Array" and len(args) == 1:
        return ArrayOf(args[0])
    if method in PRIMITIVE_TYPES:
        return Primitive(PRIMITIVE_TYPES[method])
    if method == "Object" and args and args[0].type == "object":
        return InlineObject(args[0])
    if method == "Module" and args:
        entries = unwrap(args[0])
        if entries.type == "object":
            return ModuleTable(entries)
    return Unrecognized(node.type)


def classify(node: Node) -> Shape:
    if node.type == "identifier":
        name = node_text(node)
        base = strip_reference_suffix(name)
        return Reference(base) if base is not None else Identifier(name)

    if node.type != "call_expression":
        return Unrecognized(node.type)

    function = node.child_by_field_name("function")
    args = call_arguments(node)
    if function is None:
        return Unrecognized(node.type)

    if function.type == "identifier" and node_text(function) == COMPOSE_FUNCTION:
        return ComposeCall(tuple(args))

    if function.type == "member_expression":
        receiver = function.child_by_field_name("object")
        method = function.child_by_field_name("property")
        if receiver is not None and method is not None:
            return _classify_member_call(node_text(receiver), node_text(method), args, node)

    return Unrecognized(node.type)
