# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Analysis context: the owner of caches, resolver, backend and warnings.

Every public query is a method on AnalysisContext. Independent contexts
share nothing, so several analyses (or tests) can run side by side.

Error handling:
- A file named directly by the caller that cannot be resolved raises
  UnresolvablePathError; one that cannot be parsed raises ParseError.
- Files discovered while scanning a directory, and imports found inside
  files, never raise. They are skipped and reported on the warning channel.
"""

import logging
import os
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from .algorithms import (
    collect_dependencies,
    find_cycles,
    match_related,
    reverse_dependencies,
)
from .algorithms import find_unused_exports as _find_unused_exports
from .cache import AnalysisCaches
from .config import Config
from .diagnostics import AnalysisWarning, WarningCollector, WarningType
from .errors import ParseError, UnresolvablePathError
from .extractor import extract_exports, extract_imports
from .graph import DependencyGraphBuilder
from .logging_setup import setup_logging
from .models import DependencyGraph, ImportEdge, ImportRecord
from .parsers.base import ParseOptions, ParserBackend, SyntaxNode
from .parsers.registry import BackendRegistry, create_default_registry
from .parsers.sfc import extract_script
from .resolver import PathResolver, is_resolvable_specifier

logger = logging.getLogger(__name__)


class AnalysisContext:
    """Module-graph analysis over one set of caches.

    Thread Safety:
        All query methods are safe to call concurrently. Per-file work is
        computed at most once per cache epoch.

    Usage:
        context = AnalysisContext()
        context.parse_exports("src/utils.ts")
        context.find_circular_dependencies("src")
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        backend: Optional[ParserBackend] = None,
        registry: Optional[BackendRegistry] = None,
    ) -> None:
        """Initialize the context.

        Args:
            config: Configuration. If None, loads .esfinder.yml from the
                current directory (or uses defaults).
            backend: Parser backend instance. If None, the backend named by
                config.parser_backend is created from registry.
            registry: Backend registry (defaults to the shipped backends).

        Raises:
            BackendUnavailableError: If the backend cannot run here.
        """
        self.config = config if config is not None else Config()
        if self.config.log_to_file:
            setup_logging(self.config, console_output=False)

        if backend is None:
            registry = registry if registry is not None else create_default_registry()
            backend = registry.create(self.config.parser_backend)
        backend.check_available()
        self.backend = backend

        self.caches = AnalysisCaches()
        self.resolver = PathResolver(self.config.extensions, self.caches.resolution)
        self.warnings = WarningCollector()
        self.graph_builder = DependencyGraphBuilder(
            self.analyze_file,
            self.warnings,
            self.config.extensions,
            self.config.ignore_patterns,
            self.config.max_workers,
        )

        logger.debug(
            f"AnalysisContext initialized with backend '{backend.name()}', "
            f"extensions={self.config.extensions}"
        )

    # ------------------------------------------------------------------
    # Per-file analysis
    # ------------------------------------------------------------------

    def _read_source(self, filepath: str) -> str:
        size = os.path.getsize(filepath)
        limit = self.config.max_file_size_kb * 1024
        if size > limit:
            raise ParseError(
                filepath, f"file is {size} bytes, over the {self.config.max_file_size_kb}KB limit"
            )
        try:
            with open(filepath, encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError:
            logger.warning(f"⚠️ {filepath} is not valid UTF-8, decoding as latin-1")
            with open(filepath, encoding="latin-1") as f:
                return f.read()

    def _parse_file(self, filepath: str) -> SyntaxNode:
        source = self._read_source(filepath)
        typescript = None
        if filepath.lower().endswith(".vue"):
            source, lang = extract_script(source)
            if lang == "ts":
                typescript = True
        return self.backend.parse(source, ParseOptions(filename=filepath, typescript=typescript))

    def _build_import_record(
        self, filepath: str, tree: SyntaxNode, extensions: Optional[Sequence[str]] = None
    ) -> ImportRecord:
        base_dir = os.path.dirname(filepath)
        edges = []
        for reference in extract_imports(tree):
            target = self.resolver.resolve(reference.specifier, base_dir, extensions)
            if target is None:
                if is_resolvable_specifier(reference.specifier):
                    self.warnings.emit(
                        WarningType.UNRESOLVED_IMPORT,
                        filepath,
                        f"Dropping import of '{reference.specifier}': no matching file",
                        specifier=reference.specifier,
                        line=reference.line,
                    )
                continue
            edges.append(
                ImportEdge(
                    target=target,
                    specifier=reference.specifier,
                    imported_names=reference.imported_names,
                    is_dynamic=reference.is_dynamic,
                    line=reference.line,
                )
            )
        return ImportRecord(source=filepath, edges=tuple(edges))

    def analyze_file(
        self, filepath: str, extensions: Optional[Sequence[str]] = None
    ) -> Tuple[FrozenSet[str], ImportRecord]:
        """Exports and import record of a canonical path, via the caches.

        The file is parsed at most once per call, and not at all if both
        results are already cached. Import records resolved with an
        extension order other than the configured one are cached separately.

        Raises:
            ParseError: If the file cannot be parsed.
            OSError: If the file cannot be read.
        """
        tree: Optional[SyntaxNode] = None

        def load() -> SyntaxNode:
            nonlocal tree
            if tree is None:
                tree = self._parse_file(filepath)
            return tree

        exports = self.caches.exports.get_or_compute(
            filepath, lambda: frozenset(extract_exports(load()))
        )
        exts = tuple(extensions) if extensions else self.resolver.extensions
        record_key = filepath if exts == self.resolver.extensions else (filepath, exts)
        record = self.caches.imports.get_or_compute(
            record_key, lambda: self._build_import_record(filepath, load(), exts)
        )
        return exports, record

    def _resolve_target(self, filepath: str, extensions: Optional[Sequence[str]] = None) -> str:
        resolved = self.resolver.resolve(filepath, extensions=extensions)
        if resolved is None:
            raise UnresolvablePathError(filepath)
        return resolved

    # ------------------------------------------------------------------
    # Single-file queries
    # ------------------------------------------------------------------

    def parse_exports(self, filepath: str) -> FrozenSet[str]:
        """Names exported by a file ("default" for a default export).

        Raises:
            UnresolvablePathError: If no file matches filepath.
            ParseError: If the file cannot be parsed.
        """
        resolved = self._resolve_target(filepath)
        return self.caches.exports.get_or_compute(
            resolved, lambda: frozenset(extract_exports(self._parse_file(resolved)))
        )

    def get_import_record(self, filepath: str) -> ImportRecord:
        """Resolved imports of a file with specifiers, names and lines.

        Raises:
            UnresolvablePathError: If no file matches filepath.
            ParseError: If the file cannot be parsed.
        """
        resolved = self._resolve_target(filepath)
        return self.caches.imports.get_or_compute(
            resolved, lambda: self._build_import_record(resolved, self._parse_file(resolved))
        )

    def parse_imports(self, filepath: str) -> FrozenSet[str]:
        """Canonical paths of the files a file imports.

        Unresolvable import specifiers are dropped with a warning.

        Raises:
            UnresolvablePathError: If no file matches filepath.
            ParseError: If the file cannot be parsed.
        """
        return self.get_import_record(filepath).targets

    def get_all_dependencies(self, filepath: str) -> FrozenSet[str]:
        """Every file reachable from filepath through imports.

        The file itself is included only when an import cycle leads back
        to it. Dependencies without a recognized extension are included but
        not followed. Dependencies that fail to parse are skipped with a
        warning.

        Raises:
            UnresolvablePathError: If no file matches filepath.
            ParseError: If filepath itself cannot be parsed.
        """
        start = self._resolve_target(filepath)
        start_record = self.get_import_record(start)
        source_extensions = tuple(self.config.extensions)

        def get_imports(path: str) -> FrozenSet[str]:
            if path == start:
                return start_record.targets
            if not path.endswith(source_extensions):
                return frozenset()
            result = self.graph_builder.analyze_or_warn(path)
            return result[1].targets if result is not None else frozenset()

        return frozenset(collect_dependencies(start, get_imports))

    # ------------------------------------------------------------------
    # Directory-wide queries
    # ------------------------------------------------------------------

    def build_dependency_graph(
        self, root_directory: str, extensions: Optional[Sequence[str]] = None
    ) -> DependencyGraph:
        """Build a fresh dependency graph of every source file under root_directory.

        Args:
            root_directory: Directory to scan.
            extensions: Extensions of files to include, also used to resolve
                their imports (defaults to config).
        """
        return self.graph_builder.build(root_directory, extensions)

    def find_circular_dependencies(self, root_directory: str) -> List[List[str]]:
        """Import cycles under root_directory, each starting and ending with the same file."""
        graph = self.build_dependency_graph(root_directory)
        return find_cycles(graph.adjacency())

    def find_unused_exports(
        self, root_directory: str, mode: Optional[str] = None
    ) -> Dict[str, FrozenSet[str]]:
        """Exports under root_directory that no other file consumes.

        Args:
            root_directory: Directory to scan.
            mode: "file" or "symbol"; defaults to config.unused_exports_mode.
        """
        graph = self.build_dependency_graph(root_directory)
        return _find_unused_exports(graph, mode or self.config.unused_exports_mode)

    def get_reverse_dependencies(self, target_file: str, root_directory: str) -> List[str]:
        """Files under root_directory that import target_file, sorted.

        Raises:
            UnresolvablePathError: If no file matches target_file.
        """
        target = self._resolve_target(target_file)
        graph = self.build_dependency_graph(root_directory)
        return reverse_dependencies(graph.adjacency(), target)

    def explain_related_files(
        self,
        files: Sequence[str],
        search_directory: str,
        extensions: Optional[Sequence[str]] = None,
    ) -> Dict[str, str]:
        """Files under search_directory related to any of files, with the reason.

        A candidate is related when it imports a name a target exports
        ("symbol") or imports the target file itself ("path").

        Targets that cannot be resolved are skipped with a warning. Targets
        that fail to parse are still matched by path.

        Args:
            files: Target files; extensionless and directory paths allowed.
            search_directory: Directory whose files are checked.
            extensions: Extensions for target resolution, candidate discovery
                and import resolution inside candidates (defaults to config).

        Returns:
            candidate path -> RelationReason value, ordered by path.
        """
        targets: Dict[str, FrozenSet[str]] = {}
        for filepath in files:
            resolved = self.resolver.resolve(filepath, extensions=extensions)
            if resolved is None:
                self.warnings.emit(
                    WarningType.UNRESOLVED_TARGET,
                    os.path.abspath(filepath),
                    f"Could not resolve file path: {filepath}",
                    specifier=filepath,
                )
                continue
            try:
                targets[resolved] = self.parse_exports(resolved)
            except (ParseError, OSError) as e:
                self.warnings.emit(
                    WarningType.PARSE_FAILURE,
                    resolved,
                    f"Exports unavailable, matching by path only: {e}",
                )
                targets[resolved] = frozenset()

        if not targets:
            return {}

        candidates = self.graph_builder.discover(search_directory, extensions)
        results = self.graph_builder.analyze_many(candidates, extensions)
        related: Dict[str, str] = {}
        for candidate, result in zip(candidates, results):
            if result is None:
                continue
            reason = match_related(result[1], targets)
            if reason is not None:
                related[candidate] = reason

        logger.debug(
            f"Found {len(related)} files related to {len(targets)} targets "
            f"among {len(candidates)} candidates"
        )
        return related

    def get_related_files(
        self,
        files: Sequence[str],
        search_directory: str,
        extensions: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Files under search_directory that import any of files, sorted."""
        return list(self.explain_related_files(files, search_directory, extensions))

    # ------------------------------------------------------------------
    # Cache and warning management
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        """Empty every cache table."""
        self.caches.clear()

    def get_cache_stats(self) -> Dict[str, int]:
        """Entry counts per cache table: exports, imports, resolution."""
        return self.caches.stats()

    def get_warnings(self, warning_type: Optional[str] = None) -> List[AnalysisWarning]:
        return self.warnings.get_warnings(warning_type)

    def clear_warnings(self) -> None:
        self.warnings.clear()
