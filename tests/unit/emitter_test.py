"""Unit tests for type block rendering and the generate entry point."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from typebox_typegen import CompilationContext, SchemaResolutionError, generate
from typebox_typegen.core.declarations import index_declarations
from typebox_typegen.core.emitter import render_declaration


def test_render_declaration_returns_lines(write_sources: Callable[[dict[str, str]], Path]) -> None:
    root = write_sources(
        {
            "doc.ts": (
                "/** Pet docs. */\n"
                "export const PetSchema = Type.Object({\n"
                "  /** Pet name. */\n"
                "  name: Type.String(),\n"
                "  tag: Type.Optional(Type.String()),\n"
                "})\n"
            )
        }
    )
    context = CompilationContext()
    declaration = index_declarations(context, context.load(root / "doc.ts"))["PetSchema"]

    lines = render_declaration(declaration, "Pet", {})

    assert lines == [
        "/** Pet docs. */",
        "export type Pet = {",
        "  /** Pet name. */",
        "  name: string",
        "  tag?: string",
        "}",
    ]


def test_composition_concatenates_without_deduplication(write_sources: Callable[[dict[str, str]], Path]) -> None:
    root = write_sources(
        {
            "doc.ts": (
                "const A = Type.Object({ a1: Type.String(), a2: Type.Number() })\n"
                "const B = Type.Object({ b1: Type.Boolean(), a1: Type.Null() })\n"
                "export const ABSchema = compose(A, B)\n"
            )
        }
    )

    result = generate(str(root / "doc.ts"), {"ABSchema": "AB"})

    assert result == "export type AB = {\n  a1: string\n  a2: number\n  b1: boolean\n  a1: null\n}"


def test_output_follows_request_order(write_sources: Callable[[dict[str, str]], Path]) -> None:
    root = write_sources(
        {
            "doc.ts": (
                "export const ASchema = Type.Object({ a: Type.String() })\n"
                "export const BSchema = Type.Object({ b: Type.String() })\n"
            )
        }
    )

    forward = generate(str(root / "doc.ts"), {"ASchema": "A", "BSchema": "B"})
    backward = generate(str(root / "doc.ts"), {"BSchema": "B", "ASchema": "A"})

    assert forward.index("export type A ") < forward.index("export type B ")
    assert backward.index("export type B ") < backward.index("export type A ")


def test_duplicate_public_names_are_kept(write_sources: Callable[[dict[str, str]], Path]) -> None:
    root = write_sources({"doc.ts": "export const ASchema = Type.Object({})\nexport const BSchema = Type.Object({})\n"})

    result = generate(str(root / "doc.ts"), {"ASchema": "Same", "BSchema": "Same"})

    assert result == "export type Same = {\n}\nexport type Same = {\n}"


def test_unrecognized_fields_are_dropped_silently(write_sources: Callable[[dict[str, str]], Path]) -> None:
    root = write_sources(
        {
            "doc.ts": (
                "export const MixedSchema = Type.Object({\n"
                "  /** Dropped along with its field. */\n"
                "  union: Type.Union([Type.String(), Type.Number()]),\n"
                "  kept: Type.String(),\n"
                "})\n"
            )
        }
    )

    assert generate(str(root / "doc.ts"), {"MixedSchema": "Mixed"}) == "export type Mixed = {\n  kept: string\n}"


def test_unrecognized_schema_is_fatal(write_sources: Callable[[dict[str, str]], Path]) -> None:
    root = write_sources(
        {
            "doc.ts": (
                "export const GoodSchema = Type.Object({ a: Type.String() })\n"
                "export const UnionSchema = Type.Union([Type.String(), Type.Number()])\n"
            )
        }
    )

    with pytest.raises(SchemaResolutionError, match="UnionSchema") as excinfo:
        generate(str(root / "doc.ts"), {"GoodSchema": "Good", "UnionSchema": "Union"})

    assert excinfo.value.schema_name == "UnionSchema"
    assert excinfo.value.path == root / "doc.ts"


def test_missing_entry_file_propagates(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        generate(str(tmp_path / "missing"), {"ASchema": "A"})


def test_caller_context_records_loaded_files(write_sources: Callable[[dict[str, str]], Path]) -> None:
    root = write_sources(
        {
            "doc.ts": "import { Base } from './base'\nexport const ASchema = compose(Base)\n",
            "base.ts": "export const Base = Type.Object({ id: Type.String() })\n",
        }
    )
    context = CompilationContext()

    generate(str(root / "doc.ts"), {"ASchema": "A"}, context)

    assert context.loaded_paths == [root / "doc.ts", root / "base.ts"]
