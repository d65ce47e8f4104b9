# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for esfinder.

This module defines the data structures shared by every analysis:
- ImportReference: An import as written in source, before resolution
- ImportEdge: A resolved import from one file to another
- ImportRecord: All resolved imports of a single file
- ModuleNode: Exports and imports of one file in a dependency graph
- DependencyGraph: Read-only mapping from file path to ModuleNode

All models are immutable once built. Cached values are shared between
queries and must never be mutated.
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

# Imported-name markers
DEFAULT_EXPORT = "default"
NAMESPACE_IMPORT = "*"


@dataclass(frozen=True)
class ImportReference:
    """An import statement or dynamic import() call as written in source.

    Attributes:
        specifier: Raw module specifier, e.g. "./utils".
        imported_names: Names imported from the module. "default" marks a
            default import and "*" a namespace import. Empty for side-effect
            imports and dynamic imports.
        is_dynamic: True for import() calls.
        line: 1-based line number of the import.
    """

    specifier: str
    imported_names: FrozenSet[str] = frozenset()
    is_dynamic: bool = False
    line: Optional[int] = None


@dataclass(frozen=True)
class ImportEdge:
    """An import whose specifier resolved to an existing file."""

    target: str
    specifier: str
    imported_names: FrozenSet[str] = frozenset()
    is_dynamic: bool = False
    line: Optional[int] = None

    @property
    def uses_all_exports(self) -> bool:
        """Whether this import may reach every export of the target."""
        return self.is_dynamic or NAMESPACE_IMPORT in self.imported_names

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "target": self.target,
            "specifier": self.specifier,
            "imported_names": sorted(self.imported_names),
            "is_dynamic": self.is_dynamic,
        }
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass(frozen=True)
class ImportRecord:
    """Resolved imports of one file, in source order."""

    source: str
    edges: Tuple[ImportEdge, ...] = ()

    @property
    def targets(self) -> FrozenSet[str]:
        """Set of file paths this file depends on."""
        return frozenset(edge.target for edge in self.edges)

    def edges_to(self, target: str) -> List[ImportEdge]:
        return [edge for edge in self.edges if edge.target == target]

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "edges": [edge.to_dict() for edge in self.edges]}


@dataclass(frozen=True)
class ModuleNode:
    """One file in a dependency graph."""

    path: str
    exports: FrozenSet[str]
    record: ImportRecord

    @property
    def imports(self) -> FrozenSet[str]:
        return self.record.targets


class DependencyGraph(Mapping[str, ModuleNode]):
    """Mapping from canonical file path to its exports and resolved imports.

    Built fresh by each graph-building call. Keys are files that existed
    and parsed successfully at build time; import targets may point at
    files outside the graph (e.g. outside the root directory).
    """

    def __init__(self, root: str, nodes: Dict[str, ModuleNode]) -> None:
        self.root = root
        self._nodes = dict(sorted(nodes.items()))

    def __getitem__(self, filepath: str) -> ModuleNode:
        return self._nodes[filepath]

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def imports_of(self, filepath: str) -> FrozenSet[str]:
        """Resolved import targets of a file, empty if the file is not in the graph."""
        node = self._nodes.get(filepath)
        return node.imports if node is not None else frozenset()

    def adjacency(self) -> Dict[str, FrozenSet[str]]:
        """Plain file -> imported files mapping."""
        return {path: node.imports for path, node in self._nodes.items()}

    def to_dict(self, relative: bool = False) -> Dict[str, Any]:
        """Export graph to a JSON-compatible dict.

        Args:
            relative: Express paths relative to the graph root.

        Returns:
            {"root": ..., "files": {path: {"imports": [...], "exports": [...]}}}
            with all lists sorted.
        """

        def fmt(path: str) -> str:
            return self._relative_path(path) if relative else path

        files = {
            fmt(path): {
                "imports": sorted(fmt(target) for target in node.imports),
                "exports": sorted(node.exports),
            }
            for path, node in self._nodes.items()
        }
        return {"root": self.root, "files": files}

    def to_json(self, indent: Optional[int] = 2, relative: bool = False) -> str:
        return json.dumps(self.to_dict(relative=relative), indent=indent)

    def get_statistics(self) -> Dict[str, Any]:
        """Summary counts for the graph.

        Returns:
            Dictionary with total_files, total_imports, total_exports,
            average_imports and average_exports (rounded to 2 places).
        """
        total_files = len(self._nodes)
        total_imports = sum(len(node.imports) for node in self._nodes.values())
        total_exports = sum(len(node.exports) for node in self._nodes.values())
        return {
            "total_files": total_files,
            "total_imports": total_imports,
            "total_exports": total_exports,
            "average_imports": round(total_imports / total_files, 2) if total_files else 0.0,
            "average_exports": round(total_exports / total_files, 2) if total_files else 0.0,
        }

    def _relative_path(self, filepath: str) -> str:
        try:
            return os.path.relpath(filepath, self.root)
        except ValueError:
            # On Windows, relpath fails for paths on different drives
            return filepath
