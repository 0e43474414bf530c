"""File discovery — collect candidate source files and sample them.

The collector walks depth-first with entries sorted by name, so the order
it returns is stable for an unchanged tree. Analyzers never consume the
full list directly: they go through a ``SamplingPolicy`` that fixes both
the ordering and the bounded prefix each heuristic check reads.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

_logger = logging.getLogger(__name__)

# Dependency, vendor and build-output directories never worth scoring.
_DEFAULT_EXCLUDES = frozenset(
    {
        "node_modules",
        "bower_components",
        "vendor",
        "dist",
        "build",
        "coverage",
        "__pycache__",
        "venv",
        "env",
        "site-packages",
        "htmlcov",
    }
)

SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".mjs",
    ".cjs",
    ".vue",
    ".svelte",
    ".py",
)

JS_EXTENSIONS: tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")

_DEFAULT_MAX_FILE_BYTES = 1_000_000  # 1 MB


@dataclass(frozen=True)
class SamplingPolicy:
    """Bounded, deterministic prefix of a file list.

    Files are ordered by their root-relative POSIX path; a check then reads
    at most ``min(default, limit)`` of them. ``limit=None`` keeps each
    check's own default sample size.
    """

    limit: int | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"sample limit must be >= 0, got {self.limit}")

    def size(self, default: int) -> int:
        if self.limit is None:
            return default
        return min(default, self.limit)

    def sample(self, files: Sequence[Path], default: int, *, root: Path | None = None) -> list[Path]:
        if root is not None:
            ordered = sorted(files, key=lambda p: _relative_key(p, root))
        else:
            ordered = sorted(files, key=lambda p: p.as_posix())
        return ordered[: self.size(default)]


def _relative_key(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


@dataclass
class FileCollector:
    """Walk a project tree once and serve extension-filtered file lists.

    One collector belongs to one analyzer run; it is not shared between
    threads.
    """

    exclude_dirs: frozenset[str] = _DEFAULT_EXCLUDES
    max_file_bytes: int = _DEFAULT_MAX_FILE_BYTES
    skipped_dirs: int = 0
    skipped_files: int = 0
    _cache: dict[Path, list[Path]] = field(default_factory=dict, repr=False)

    @classmethod
    def with_extra_excludes(cls, extra: Iterable[str] = ()) -> FileCollector:
        return cls(exclude_dirs=_DEFAULT_EXCLUDES | frozenset(extra))

    def collect(self, root: Path, extensions: Iterable[str] = SOURCE_EXTENSIONS) -> list[Path]:
        """Return files under *root* whose suffix is in *extensions*.

        Never raises for an unreadable subdirectory; such directories are
        counted in ``skipped_dirs`` and skipped.
        """
        wanted = {e.lower() for e in extensions}
        return [p for p in self._walk(root) if p.suffix.lower() in wanted]

    def _walk(self, root: Path) -> list[Path]:
        cached = self._cache.get(root)
        if cached is not None:
            return cached
        files: list[Path] = []
        if root.is_dir():
            self._scan(root, files)
        self._cache[root] = files
        return files

    def _scan(self, directory: Path, out: list[Path]) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            self.skipped_dirs += 1
            _logger.debug("Skipping unreadable directory %s: %s", directory, exc)
            return

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name.startswith(".") or entry.name in self.exclude_dirs:
                        continue
                    self._scan(Path(entry.path), out)
                elif entry.is_file(follow_symlinks=False):
                    out.append(Path(entry.path))
            except OSError as exc:
                self.skipped_dirs += 1
                _logger.debug("Skipping unreadable entry %s: %s", entry.path, exc)

    def read_text(self, path: Path) -> str | None:
        """Read *path* as UTF-8, or ``None`` when it cannot be read.

        Oversized and unreadable files are counted in ``skipped_files``.
        """
        try:
            if path.stat().st_size > self.max_file_bytes:
                self.skipped_files += 1
                return None
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            self.skipped_files += 1
            return None
