from typebox_typegen.core.emitter import generate
from typebox_typegen.core.errors import SchemaResolutionError
from typebox_typegen.core.source import CompilationContext

__all__ = [
    "CompilationContext",
    "SchemaResolutionError",
    "generate",
]
