"""Backend-specific warm-up to cut first-query latency on cold indexes."""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import pathspec

from ..errors import BackendError, LSPContextError
from .backend import Backend

logger = logging.getLogger(__name__)


class WarmUpStrategy(ABC):
    """Best-effort initialization run once after the backend starts.

    ``warm_up`` never raises: every step logs and continues.
    """

    @abstractmethod
    async def warm_up(self, backend: Backend, workspace_root: Path) -> None:
        ...


class NoWarmUp(WarmUpStrategy):
    """For backends that need no priming."""

    async def warm_up(self, backend: Backend, workspace_root: Path) -> None:
        return None


class ClangdWarmUp(WarmUpStrategy):
    """Prime clangd's static index and open a few core C++ files.

    clangd loads its background index lazily: a couple of broad symbol
    queries pull it into memory, and opening source files starts semantic
    indexing before the first real query.
    """

    def __init__(
        self,
        queries: tuple[str, ...] = ("::", ""),
        query_delay: float = 0.1,
        max_files: int = 3,
        open_delay: float = 0.05,
        extensions: tuple[str, ...] = (".cpp", ".cxx", ".cc"),
        skip_dirs: tuple[str, ...] = ("build", "cmake-build-debug"),
        log: Optional[logging.Logger] = None,
    ):
        self.queries = queries
        self.query_delay = query_delay
        self.max_files = max_files
        self.open_delay = open_delay
        self.extensions = extensions
        self.skip_dirs = set(skip_dirs)
        self.log = log or logger

    async def warm_up(self, backend: Backend, workspace_root: Path) -> None:
        self.log.info("Warming up clangd for workspace: %s", workspace_root)

        # Index first, then files
        try:
            await self.warm_static_index(backend)
        except LSPContextError as e:
            self.log.warning("Failed to warm up static index (continuing anyway): %s", e)

        try:
            await self.open_core_files(backend, workspace_root)
        except (LSPContextError, OSError) as e:
            self.log.warning("Failed to open core C++ files (continuing anyway): %s", e)

        self.log.info("Clangd warm-up completed")

    async def warm_static_index(self, backend: Backend) -> None:
        """Send broad workspace/symbol queries to load the static index."""
        for i, query in enumerate(self.queries):
            if i > 0:
                await asyncio.sleep(self.query_delay)
            try:
                await backend.symbol(query)
            except BackendError as e:
                self.log.warning("Warm-up symbol query %r failed: %s", query, e)
            else:
                self.log.debug("Warm-up symbol query %r completed", query)

        self.log.info("Static index warm-up completed")

    async def open_core_files(self, backend: Backend, workspace_root: Path) -> int:
        """Open up to ``max_files`` source files. Returns how many opened."""
        opened = 0

        for file_path in self.discover_source_files(workspace_root):
            if opened >= self.max_files:
                break

            try:
                await backend.open_file(str(file_path))
            except (BackendError, OSError) as e:
                self.log.warning("Failed to open C++ file %s: %s", file_path, e)
                continue

            self.log.debug("Opened core C++ file: %s", file_path)
            opened += 1
            await asyncio.sleep(self.open_delay)

        self.log.info("Opened %d core C++ files", opened)
        return opened

    def discover_source_files(self, workspace_root: Path) -> list[Path]:
        """Source files under the workspace, in a stable walk order.

        Skips hidden directories, build output directories, and paths
        matched by the root .gitignore.
        """
        root = Path(workspace_root)
        if not root.is_dir():
            raise OSError(f"Workspace is not a directory: {root}")

        gitignore_spec = _load_gitignore(root)
        files = []

        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = Path(dirpath).relative_to(root)
            dirnames[:] = sorted(
                d for d in dirnames
                if not d.startswith(".")
                and d not in self.skip_dirs
                and not _ignored(gitignore_spec, (rel_dir / d).as_posix() + "/")
            )

            for filename in sorted(filenames):
                if not filename.endswith(self.extensions):
                    continue
                if _ignored(gitignore_spec, (rel_dir / filename).as_posix()):
                    continue
                files.append(Path(dirpath) / filename)

        return files


def _load_gitignore(root: Path) -> Optional[pathspec.PathSpec]:
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return None
    try:
        return pathspec.PathSpec.from_lines(
            "gitwildmatch",
            gitignore.read_text(encoding="utf-8", errors="replace").split("\n"),
        )
    except (OSError, ValueError) as e:
        logger.debug("Ignoring unreadable .gitignore: %s", e)
        return None


def _ignored(spec: Optional[pathspec.PathSpec], rel_path: str) -> bool:
    return spec is not None and spec.match_file(rel_path)


def select_warmup(command: list[str], log: Optional[logging.Logger] = None) -> WarmUpStrategy:
    """Pick the warm-up strategy for a language server command line."""
    if command and os.path.basename(command[0]).startswith("clangd"):
        return ClangdWarmUp(log=log)
    return NoWarmUp()
