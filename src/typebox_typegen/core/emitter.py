import logging
from collections.abc import Mapping

from typebox_typegen.core.comments import leading_doc_comment
from typebox_typegen.core.declarations import Declaration
from typebox_typegen.core.evaluator import INDENT, build_alias_table, describe_fields, format_field
from typebox_typegen.core.modules import resolve_declaration
from typebox_typegen.core.source import CompilationContext

logger = logging.getLogger(__name__)


def render_declaration(declaration: Declaration, type_name: str, aliases: Mapping[str, str]) -> list[str]:
    """Render one ``export type`` block as a list of lines.

    Fields of every object in the declaration are emitted in order, without
    deduplication; fields whose type cannot be inferred are left out.
    """
    lines: list[str] = []
    if declaration.statement is not None:
        schema_doc = leading_doc_comment(declaration.statement, "first")
        if schema_doc:
            lines.append(schema_doc)

    lines.append(f"export type {type_name} = {{")
    for literal in declaration.objects:
        for field in describe_fields(literal, aliases, with_docs=True):
            if field.doc:
                lines.append(f"{INDENT}{field.doc}")
            lines.append(format_field(field))
    lines.append("}")
    return lines


def generate(
    entry_reference: str,
    request: Mapping[str, str],
    context: CompilationContext | None = None,
) -> str:
    """Compile the requested schemas reachable from ``entry_reference`` into TypeScript types.

    ``request`` maps schema names to public type names; its order is the order
    of the emitted blocks. Raises ``SchemaResolutionError`` if any requested
    schema cannot be resolved, in which case nothing is returned.
    """
    context = context or CompilationContext()
    entry = context.load_reference(entry_reference)
    aliases = build_alias_table(request)

    blocks: list[list[str]] = []
    for schema_name, type_name in request.items():
        declaration = resolve_declaration(context, entry, schema_name)
        logger.debug(
            "Rendering %s as %s from %s (%d object(s))",
            schema_name,
            type_name,
            declaration.file.path,
            len(declaration.objects),
        )
        blocks.append(render_declaration(declaration, type_name, aliases))

    return "\n".join(line for block in blocks for line in block)
