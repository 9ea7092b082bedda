"""Resolution of ``module.Import('Key')`` indirections.

A schema file may publish one name table::

    const module = Type.Module({
      [REF_DEFINITIONS.ContactObject]: ContactObjectSchemaDefinition,
      ...
    })
    export const ContactObjectSchema = module.Import('ContactObject')

Requested schemas bound to ``module.Import`` are dereferenced through that
table to the declaration of the target identifier, which may live in this
file or in a file it imports the identifier from.
"""

from tree_sitter import Node

from typebox_typegen.core.declarations import Declaration, index_declarations
from typebox_typegen.core.errors import SchemaResolutionError
from typebox_typegen.core.shapes import MODULE_BINDING, ModuleImportCall, ModuleTable, classify, unwrap
from typebox_typegen.core.source import CompilationContext, ParsedFile, named_children, node_text, string_value


def _table_key(key: Node) -> str | None:
    if key.type == "string":
        return string_value(key)
    if key.type in ("property_identifier", "identifier"):
        return node_text(key)
    if key.type == "computed_property_name":
        inner = named_children(key)
        if not inner:
            return None
        expression = unwrap(inner[0])
        if expression.type == "member_expression":
            # [REF_DEFINITIONS.ContactObject] -> ContactObject
            property_name = expression.child_by_field_name("property")
            return node_text(property_name) if property_name is not None else None
        if expression.type == "string":
            return string_value(expression)
    return None


def find_module_map(parsed: ParsedFile) -> dict[str, str] | None:
    """Return the key -> identifier table published by ``module = Type.Module({...})``, if any."""
    declarator = parsed.bindings.get(MODULE_BINDING)
    if declarator is None:
        return None
    value = declarator.child_by_field_name("value")
    if value is None:
        return None
    shape = classify(value)
    if not isinstance(shape, ModuleTable):
        return None

    table: dict[str, str] = {}
    for entry in named_children(shape.entries):
        if entry.type != "pair":
            continue
        key = entry.child_by_field_name("key")
        target = entry.child_by_field_name("value")
        if key is None or target is None or target.type != "identifier":
            continue
        key_name = _table_key(key)
        if key_name:
            table[key_name] = node_text(target)
    return table


def _module_import_key(parsed: ParsedFile, schema_name: str) -> Node | None:
    declarator = parsed.bindings.get(schema_name)
    value = declarator.child_by_field_name("value") if declarator is not None else None
    if value is None:
        return None
    shape = classify(value)
    return shape.key if isinstance(shape, ModuleImportCall) else None


def _resolve_module_import(
    context: CompilationContext, parsed: ParsedFile, schema_name: str, key_node: Node
) -> Declaration:
    if key_node.type != "string":
        raise SchemaResolutionError(
            f"Schema {schema_name} is a module.Import but key is not a string in {parsed.path}",
            schema_name=schema_name,
            path=parsed.path,
        )
    key = string_value(key_node)

    module_map = find_module_map(parsed)
    if module_map is None:
        raise SchemaResolutionError(
            f"Could not find Type.Module definition to resolve {key} for schema {schema_name} in {parsed.path}",
            schema_name=schema_name,
            path=parsed.path,
        )
    target = module_map.get(key)
    if target is None:
        raise SchemaResolutionError(
            f"Could not resolve definition for {key} from Type.Module for schema {schema_name} in {parsed.path}",
            schema_name=schema_name,
            path=parsed.path,
        )

    local = index_declarations(context, parsed).get(target)
    if local is not None:
        return local

    imported = context.load_import(parsed, target)
    if imported is None:
        raise SchemaResolutionError(
            f"Could not find import path for {target} (schema {schema_name}) in {parsed.path}",
            schema_name=schema_name,
            path=parsed.path,
        )
    declaration = index_declarations(context, imported).get(target)
    if declaration is None:
        raise SchemaResolutionError(
            f"Definition {target} for schema {schema_name} in {imported.path} is not a Type.Object",
            schema_name=schema_name,
            path=imported.path,
        )
    return declaration


def resolve_declaration(context: CompilationContext, parsed: ParsedFile, schema_name: str) -> Declaration:
    """Locate the declaration for ``schema_name`` as seen from ``parsed``.

    Raises ``SchemaResolutionError`` when the name is neither an indexed
    declaration nor a resolvable ``module.Import`` indirection.
    """
    declaration = index_declarations(context, parsed).get(schema_name)
    if declaration is not None:
        return declaration

    key_node = _module_import_key(parsed, schema_name)
    if key_node is not None:
        return _resolve_module_import(context, parsed, schema_name, key_node)

    raise SchemaResolutionError(
        f"Schema {schema_name} not found or not a Type.Object in {parsed.path}",
        schema_name=schema_name,
        path=parsed.path,
    )
