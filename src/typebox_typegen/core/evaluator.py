import re
from collections.abc import Mapping

from tree_sitter import Node

from typebox_typegen.core.comments import leading_doc_comment
from typebox_typegen.core.shapes import ArrayOf, InlineObject, OptionalOf, Primitive, Reference, classify
from typebox_typegen.core.source import named_children, node_text, string_value
from typebox_typegen.models import FieldDescriptor, InferredType

INDENT = "  "

# ContactObjectSchema / ContactObjectSchemaDefinition -> ContactObject
_SCHEMA_NAME_SUFFIX = re.compile(r"Schema(Definition)?$")
_BARE_PROPERTY_NAME = re.compile(r"^(?:[A-Za-z_$][A-Za-z0-9_$]*|\d+)$")
_QUOTED_ESCAPES = str.maketrans({"\\": "\\\\", "'": "\\'", "\n": "\\n", "\r": "\\r", "\t": "\\t"})


def schema_base_name(schema_name: str) -> str:
    return _SCHEMA_NAME_SUFFIX.sub("", schema_name)


def build_alias_table(request: Mapping[str, str]) -> dict[str, str]:
    """Map each requested schema's base name, and each public name, to its public name.

    Must be built from the whole request before any field is evaluated; lookups
    are a single flat step with no chaining.
    """
    aliases: dict[str, str] = {}
    for schema_name, type_name in request.items():
        aliases[schema_base_name(schema_name)] = type_name
        aliases[type_name] = type_name
    return aliases


def property_name(key: Node) -> str | None:
    if key.type in ("property_identifier", "identifier", "number"):
        return node_text(key)
    if key.type == "string":
        return string_value(key)
    return None


def format_property_name(name: str) -> str:
    if _BARE_PROPERTY_NAME.match(name):
        return name
    escaped = name.translate(_QUOTED_ESCAPES)
    return f"'{escaped}'"


def format_field(field: FieldDescriptor, depth: int = 1) -> str:
    optional_mark = "?" if field.optional else ""
    return f"{INDENT * depth}{format_property_name(field.name)}{optional_mark}: {field.type}"


def describe_fields(
    literal: Node, aliases: Mapping[str, str], depth: int = 1, with_docs: bool = False
) -> list[FieldDescriptor]:
    """Evaluate every ``key: value`` pair of an object literal.

    Pairs whose value has no recognizable shape are dropped, as are spreads,
    shorthand properties and computed keys.
    """
    fields: list[FieldDescriptor] = []
    for pair in named_children(literal):
        if pair.type != "pair":
            continue
        key = pair.child_by_field_name("key")
        value = pair.child_by_field_name("value")
        name = property_name(key) if key is not None else None
        if name is None or value is None:
            continue
        inferred = evaluate(value, aliases, depth)
        if inferred is None:
            continue
        fields.append(
            FieldDescriptor(
                name=name,
                type=inferred.type,
                optional=inferred.optional,
                doc=leading_doc_comment(pair, "last") if with_docs else None,
            )
        )
    return fields


def render_inline_object(literal: Node, aliases: Mapping[str, str], depth: int = 1) -> str:
    lines = ["{"]
    lines.extend(format_field(field, depth + 1) for field in describe_fields(literal, aliases, depth + 1))
    lines.append(f"{INDENT * depth}}}")
    return "\n".join(lines)


def evaluate(expression: Node, aliases: Mapping[str, str], depth: int = 1) -> InferredType | None:
    """Infer the TypeScript type of a builder expression.

    ``depth`` is the indentation level of the line the expression is rendered
    on; inline objects indent their fields one level deeper. Returns None for
    expressions outside the recognized vocabulary.
    """
    shape = classify(expression)

    if isinstance(shape, OptionalOf):
        inner = evaluate(shape.inner, aliases, depth)
        if inner is None:
            return None
        return InferredType(type=inner.type, optional=True)

    if isinstance(shape, ArrayOf):
        # the element's own optionality is not carried outward
        inner = evaluate(shape.inner, aliases, depth)
        if inner is None:
            return None
        return InferredType(type=f"{inner.type}[]", optional=False)

    if isinstance(shape, Primitive):
        return InferredType(type=shape.type_name)

    if isinstance(shape, InlineObject):
        return InferredType(type=render_inline_object(shape.literal, aliases, depth))

    if isinstance(shape, Reference):
        return InferredType(type=aliases.get(shape.base_name, shape.base_name))

    return None
