# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Source file discovery under a root directory."""

import fnmatch
import logging
import os
from pathlib import PurePath
from typing import Iterable, List, Optional, Sequence

from .config import DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)

# Dependency, VCS and build output directories are never analyzed
ALWAYS_IGNORED = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "bower_components",
    ".next",
    ".nuxt",
    ".turbo",
    ".cache",
    "coverage",
    "dist",
    "build",
}


def _matches_pattern(path: PurePath, rel_path_str: str, pattern: str) -> bool:
    """Check if a relative path matches a single pattern.

    Wildcard patterns are matched against the whole relative path, the file
    name and each path component. Plain names must equal the file name or a
    path component.
    """
    if any(ch in pattern for ch in "*?["):
        if fnmatch.fnmatch(rel_path_str, pattern) or fnmatch.fnmatch(path.name, pattern):
            return True
        return any(fnmatch.fnmatch(part, pattern) for part in path.parts)
    return path.name == pattern or pattern in path.parts or rel_path_str == pattern


def should_ignore(rel_path: str, ignore_patterns: Iterable[str] = ()) -> bool:
    """Whether a path relative to the discovery root is excluded."""
    path = PurePath(rel_path)
    rel_path_str = path.as_posix()
    for pattern in ALWAYS_IGNORED:
        if _matches_pattern(path, rel_path_str, pattern):
            return True
    for pattern in ignore_patterns:
        if _matches_pattern(path, rel_path_str, pattern):
            return True
    return False


def list_source_files(
    root: str,
    extensions: Optional[Sequence[str]] = None,
    ignore_patterns: Iterable[str] = (),
) -> List[str]:
    """Enumerate source files under root.

    Args:
        root: Directory to scan.
        extensions: Recognized extensions (defaults to DEFAULT_EXTENSIONS).
        ignore_patterns: Additional fnmatch patterns to exclude.

    Returns:
        Sorted absolute paths of matching regular files.

    Raises:
        NotADirectoryError: If root is not an existing directory.
    """
    root = os.path.abspath(root)
    if not os.path.isdir(root):
        raise NotADirectoryError(f"Not a directory: {root}")

    exts = tuple(extensions or DEFAULT_EXTENSIONS)
    patterns = list(ignore_patterns)
    files: List[str] = []

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)
        # Prune ignored directories in place so os.walk skips them
        dirnames[:] = sorted(
            d
            for d in dirnames
            if not should_ignore(os.path.normpath(os.path.join(rel_dir, d)), patterns)
        )
        for filename in filenames:
            if not filename.endswith(exts):
                continue
            rel_path = os.path.normpath(os.path.join(rel_dir, filename))
            if should_ignore(rel_path, patterns):
                continue
            files.append(os.path.join(dirpath, filename))

    files.sort()
    logger.debug(f"Discovered {len(files)} source files under {root}")
    return files
