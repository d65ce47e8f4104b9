# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Graph algorithms over resolved import edges.

All functions are pure and iterate nodes and edges in sorted order, so
results are deterministic for a given graph.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

from .models import DEFAULT_EXPORT, DependencyGraph, ImportRecord

logger = logging.getLogger(__name__)

# Gray/black marks for depth-first search
_ON_PATH = 1
_DONE = 2


class RelationReason:
    """Why a candidate file is related to a target.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    SYMBOL = "symbol"  # imports a name the target exports
    PATH = "path"  # imports the target file itself


def find_cycles(graph: Mapping[str, Iterable[str]]) -> List[List[str]]:
    """Report a cycle for every back edge found by depth-first search.

    Each cycle starts and ends with the same file, in discovery order.
    Nodes finished by an earlier search are not re-explored, so running
    time is linear in the size of the graph. This reports a cycle per
    back edge, not every simple cycle.

    Args:
        graph: file -> imported files. Imported files missing from the
            mapping are treated as leaves.

    Returns:
        List of cycles, e.g. [[a, b, a]] for a -> b -> a, [[a, a]] for a
        file importing itself.
    """
    state: Dict[str, int] = {}
    cycles: List[List[str]] = []

    for start in sorted(graph):
        if start in state:
            continue

        path = [start]
        position = {start: 0}
        state[start] = _ON_PATH
        iterators = [iter(sorted(graph[start]))]

        while iterators:
            dep = next(iterators[-1], None)
            if dep is None:
                iterators.pop()
                finished = path.pop()
                del position[finished]
                state[finished] = _DONE
                continue

            if dep in position:
                cycles.append(path[position[dep] :] + [dep])
                continue
            if dep in state:
                continue
            if dep not in graph:
                state[dep] = _DONE
                continue

            state[dep] = _ON_PATH
            position[dep] = len(path)
            path.append(dep)
            iterators.append(iter(sorted(graph[dep])))

    if cycles:
        logger.debug(f"Found {len(cycles)} circular import chains")
    return cycles


def collect_dependencies(start: str, get_imports: Callable[[str], Iterable[str]]) -> Set[str]:
    """Transitive closure of imports from start.

    The start file is included only if a cycle leads back to it.

    Args:
        start: File to begin from.
        get_imports: Returns the direct imports of a file.
    """
    result: Set[str] = set()
    visited = {start}
    stack = [start]

    while stack:
        current = stack.pop()
        for dep in sorted(get_imports(current)):
            result.add(dep)
            if dep not in visited:
                visited.add(dep)
                stack.append(dep)

    return result


def reverse_dependencies(graph: Mapping[str, Iterable[str]], target: str) -> List[str]:
    """Files whose imports contain target, sorted."""
    return sorted(path for path, imports in graph.items() if target in imports)


def find_unused_exports(graph: DependencyGraph, mode: str = "file") -> Dict[str, FrozenSet[str]]:
    """Exports that no other file in the graph consumes.

    Args:
        graph: Dependency graph to inspect.
        mode: "file" reports every non-default export of files that no
            other file imports at all. "symbol" reports each non-default
            export that no other file imports by name; namespace and
            dynamic imports count as using every export of their target.

    Returns:
        file -> unused export names, omitting files with none.

    Raises:
        ValueError: If mode is unknown.
    """
    if mode == "file":
        return _unused_by_file(graph)
    if mode == "symbol":
        return _unused_by_symbol(graph)
    raise ValueError(f"Unknown unused-export mode '{mode}', expected 'file' or 'symbol'")


def _unused_by_file(graph: DependencyGraph) -> Dict[str, FrozenSet[str]]:
    imported: Set[str] = set()
    for path, node in graph.items():
        imported.update(target for target in node.imports if target != path)

    result: Dict[str, FrozenSet[str]] = {}
    for path, node in graph.items():
        if path in imported:
            continue
        unused = node.exports - {DEFAULT_EXPORT}
        if unused:
            result[path] = frozenset(unused)
    return result


def _unused_by_symbol(graph: DependencyGraph) -> Dict[str, FrozenSet[str]]:
    used_names: Dict[str, Set[str]] = defaultdict(set)
    fully_used: Set[str] = set()

    for path, node in graph.items():
        for edge in node.record.edges:
            if edge.target == path:
                continue
            if edge.uses_all_exports:
                fully_used.add(edge.target)
            else:
                used_names[edge.target].update(edge.imported_names)

    result: Dict[str, FrozenSet[str]] = {}
    for path, node in graph.items():
        if path in fully_used:
            continue
        unused = node.exports - used_names.get(path, set()) - {DEFAULT_EXPORT}
        if unused:
            result[path] = frozenset(unused)
    return result


def match_related(record: ImportRecord, targets: Mapping[str, FrozenSet[str]]) -> Optional[str]:
    """Check whether a file's imports relate it to any target.

    Edges are examined in source order and the first match wins.

    Args:
        record: Resolved imports of the candidate file.
        targets: target path -> export names of that target.

    Returns:
        RelationReason.SYMBOL, RelationReason.PATH, or None if unrelated.
    """
    for edge in record.edges:
        if edge.target not in targets:
            continue
        if edge.imported_names & targets[edge.target]:
            return RelationReason.SYMBOL
        return RelationReason.PATH
    return None
