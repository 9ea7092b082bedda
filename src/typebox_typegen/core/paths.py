import os
from pathlib import Path

_ALIAS_PREFIX = "@/"
_RELATIVE_PREFIXES = ("./", "../")
_DEFAULT_SOURCE_SUFFIX = ".ts"


def get_source_roots() -> tuple[str, str]:
    """Return the (primary, fallback) roots that ``@/`` references resolve against."""
    primary = os.getenv("TYPEGEN_SOURCE_ROOT", "src")
    fallback = os.getenv("TYPEGEN_FALLBACK_SOURCE_ROOT", os.path.join("packages", "workspace-store", "src"))
    return primary, fallback


def _absolute(*parts: str | Path) -> Path:
    # abspath collapses ".." without following symlinks
    return Path(os.path.abspath(os.path.join(*parts)))


def ensure_source_suffix(path: Path) -> Path:
    if path.suffix:
        return path
    return path.with_name(path.name + _DEFAULT_SOURCE_SUFFIX)


def resolve_module_path(reference: str, base_dir: str | Path | None = None) -> Path:
    """Turn a module reference into a candidate file path.

    ``@/x`` is looked up under the primary source root and falls back to the
    secondary root when no file exists there. ``./x`` and ``../x`` are relative
    to ``base_dir`` (default: the working directory). Anything else is taken as
    a path, absolute or relative to the working directory. Only the ``@/``
    branch checks for existence; callers handle read failures.
    """
    cwd = Path.cwd()
    if reference.startswith(_ALIAS_PREFIX):
        rest = reference[len(_ALIAS_PREFIX) :]
        primary_root, fallback_root = get_source_roots()
        primary = ensure_source_suffix(_absolute(cwd, primary_root, rest))
        if primary.exists():
            return primary
        return ensure_source_suffix(_absolute(cwd, fallback_root, rest))

    if reference.startswith(_RELATIVE_PREFIXES):
        base = Path(base_dir) if base_dir is not None else cwd
        return ensure_source_suffix(_absolute(cwd, base, reference))

    return ensure_source_suffix(_absolute(cwd, reference))
