from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine, Iterable
from pathlib import Path
from typing import Any

from watchfiles import awatch

from typebox_typegen.core.source import _EXTENSION_LANGUAGE_MAP

logger = logging.getLogger(__name__)

# Extensions we can parse
_SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(_EXTENSION_LANGUAGE_MAP.keys())


def _is_supported_file(path: Path) -> bool:
    return path.suffix in _SUPPORTED_EXTENSIONS


def watch_directories(sources: Iterable[Path]) -> list[Path]:
    """Return the distinct directories holding ``sources``, in first-seen order."""
    directories: dict[Path, None] = {}
    for source in sources:
        directories.setdefault(source.parent, None)
    return list(directories)


class WatchfilesWatcher:
    """Watch schema source directories and trigger a callback on changes.

    Implements the ``SourceWatcherPort`` protocol.
    """

    def __init__(
        self,
        directories: Iterable[str | Path],
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
    ) -> None:
        self._directories = [Path(d) for d in directories]
        self._on_change = on_change
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watcher started for %s", ", ".join(str(d) for d in self._directories))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Watcher stopped")

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    async def _watch(self) -> None:
        async for changes in awatch(*self._directories):
            paths = {Path(p) for _, p in changes if _is_supported_file(Path(p))}
            if paths:
                logger.info("Detected changes in %d file(s)", len(paths))
                try:
                    await self._on_change(paths)
                except Exception:
                    logger.exception("Error in watcher callback")
