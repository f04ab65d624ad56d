"""Recursive discovery of repository roots."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import structlog

logger = structlog.get_logger()

REPO_MARKER = ".git"
BUILTIN_SKIP_DIRS = frozenset({"vendor", "node_modules", REPO_MARKER})
DEFAULT_MAX_DEPTH = 5


@dataclass(frozen=True)
class ScanOptions:
    """Immutable scan configuration."""

    max_depth: int = DEFAULT_MAX_DEPTH
    include_hidden: bool = False
    extra_skip: frozenset[str] = field(default_factory=frozenset)

    def should_skip(self, name: str) -> bool:
        if name in BUILTIN_SKIP_DIRS or name in self.extra_skip:
            return True
        return not self.include_hidden and name.startswith(".")


def is_repository_root(path: Path) -> bool:
    """Check whether path carries a repository marker (directory or gitfile)."""
    try:
        os.stat(path / REPO_MARKER)
    except OSError:
        return False
    return True


def find_repositories(root: Path, options: ScanOptions | None = None) -> Iterator[Path]:
    """Yield repository roots under root in pre-order.

    A repository root does not stop the descent, so nested repositories are
    found too. Symlinked directories are never followed and unreadable
    directories are skipped. The root itself is depth 0.
    """
    yield from _walk(root, 0, options or ScanOptions())


def _walk(path: Path, depth: int, options: ScanOptions) -> Iterator[Path]:
    if depth > options.max_depth:
        return

    if is_repository_root(path):
        yield path

    try:
        with os.scandir(path) as it:
            entries = list(it)
    except OSError as e:
        logger.debug("scan_dir_unreadable", path=str(path), error=str(e))
        return

    for entry in entries:
        if options.should_skip(entry.name):
            continue
        try:
            if not entry.is_dir(follow_symlinks=False):
                continue
        except OSError:
            continue
        yield from _walk(Path(entry.path), depth + 1, options)
