from pathlib import Path


class SchemaResolutionError(ValueError):
    """Raised when a requested schema cannot be resolved to an object shape.

    Carries the offending ``schema_name`` and the ``path`` of the file in which
    resolution failed.
    """

    def __init__(self, message: str, *, schema_name: str, path: Path | str) -> None:
        super().__init__(message)
        self.schema_name = schema_name
        self.path = Path(path)
