# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Dependency graph construction for a directory tree.

Files are analyzed concurrently on a thread pool. Per-file results come
from the analysis context's caches, so a file analyzed by an earlier query
is not parsed again, and two threads never parse the same file at once.

A file that cannot be read or parsed is skipped and reported on the
warning channel; the build continues with the remaining files.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .diagnostics import WarningCollector, WarningType
from .discovery import list_source_files
from .errors import ParseError
from .models import DependencyGraph, ImportRecord, ModuleNode

logger = logging.getLogger(__name__)

FileAnalyzer = Callable[[str, Optional[Sequence[str]]], Tuple[FrozenSet[str], ImportRecord]]


class DependencyGraphBuilder:
    """Builds a DependencyGraph for every source file under a root.

    Usage:
        builder = DependencyGraphBuilder(context.analyze_file, warnings, extensions)
        graph = builder.build("/path/to/src")
    """

    def __init__(
        self,
        analyze_file: FileAnalyzer,
        warnings: WarningCollector,
        extensions: Sequence[str],
        ignore_patterns: Iterable[str] = (),
        max_workers: int = 8,
    ) -> None:
        """Initialize the builder.

        Args:
            analyze_file: Returns (exports, import record) for a canonical path,
                resolving imports with the given extensions (None for defaults).
            warnings: Channel for files that are skipped.
            extensions: Default extensions of files to include.
            ignore_patterns: Extra fnmatch patterns to exclude.
            max_workers: Thread pool size.
        """
        self._analyze_file = analyze_file
        self._warnings = warnings
        self.extensions = tuple(extensions)
        self.ignore_patterns = list(ignore_patterns)
        self.max_workers = max_workers

    def discover(self, root: str, extensions: Optional[Sequence[str]] = None) -> List[str]:
        return list_source_files(root, extensions or self.extensions, self.ignore_patterns)

    def analyze_many(
        self, files: List[str], extensions: Optional[Sequence[str]] = None
    ) -> List[Optional[Tuple[FrozenSet[str], ImportRecord]]]:
        """Analyze files concurrently, in input order.

        Returns:
            One entry per file; None where the file was skipped.
        """
        if not files:
            return []
        workers = max(1, min(self.max_workers, len(files)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="esfinder") as executor:
            return list(executor.map(partial(self.analyze_or_warn, extensions=extensions), files))

    def analyze_or_warn(
        self, filepath: str, extensions: Optional[Sequence[str]] = None
    ) -> Optional[Tuple[FrozenSet[str], ImportRecord]]:
        """Analyze one discovered file, converting failures to warnings."""
        try:
            return self._analyze_file(filepath, extensions)
        except ParseError as e:
            self._warnings.emit(
                WarningType.PARSE_FAILURE,
                filepath,
                f"Skipping file that failed to parse: {e.reason}",
                line=e.line,
            )
        except OSError as e:
            self._warnings.emit(
                WarningType.READ_FAILURE, filepath, f"Skipping unreadable file: {e}"
            )
        return None

    def build(self, root: str, extensions: Optional[Sequence[str]] = None) -> DependencyGraph:
        """Build a fresh dependency graph for root.

        Raises:
            NotADirectoryError: If root is not an existing directory.
        """
        start_time = time.time()
        root = os.path.abspath(root)
        files = self.discover(root, extensions)

        nodes = {}
        for filepath, result in zip(files, self.analyze_many(files, extensions)):
            if result is None:
                continue
            exports, record = result
            nodes[filepath] = ModuleNode(path=filepath, exports=exports, record=record)

        graph = DependencyGraph(root, nodes)
        elapsed = time.time() - start_time
        skipped = len(files) - len(nodes)
        logger.info(
            f"Built dependency graph for {root}: {len(nodes)} files "
            f"({skipped} skipped) in {elapsed:.2f}s"
        )
        return graph
