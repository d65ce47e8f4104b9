# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Module-level functions bound to a shared default AnalysisContext.

The default context is created on first use, from .esfinder.yml in the
current directory when present. Use AnalysisContext directly for
independent analyses.
"""

import threading
from typing import Dict, FrozenSet, List, Optional, Sequence

from .context import AnalysisContext
from .diagnostics import AnalysisWarning
from .models import DependencyGraph, ImportRecord

_default_context: Optional[AnalysisContext] = None
_default_context_lock = threading.Lock()


def get_default_context() -> AnalysisContext:
    """Return the shared context, creating it on first call.

    Raises:
        BackendUnavailableError: If the configured backend cannot run here.
    """
    global _default_context
    with _default_context_lock:
        if _default_context is None:
            _default_context = AnalysisContext()
        return _default_context


def set_default_context(context: Optional[AnalysisContext]) -> None:
    """Replace the shared context; None makes the next call create a fresh one."""
    global _default_context
    with _default_context_lock:
        _default_context = context


def parse_exports(file_path: str) -> FrozenSet[str]:
    return get_default_context().parse_exports(file_path)


def parse_imports(file_path: str) -> FrozenSet[str]:
    return get_default_context().parse_imports(file_path)


def get_import_record(file_path: str) -> ImportRecord:
    return get_default_context().get_import_record(file_path)


def get_related_files(
    files: Sequence[str], search_directory: str, extensions: Optional[Sequence[str]] = None
) -> List[str]:
    return get_default_context().get_related_files(files, search_directory, extensions)


def explain_related_files(
    files: Sequence[str], search_directory: str, extensions: Optional[Sequence[str]] = None
) -> Dict[str, str]:
    return get_default_context().explain_related_files(files, search_directory, extensions)


def build_dependency_graph(
    root_directory: str, extensions: Optional[Sequence[str]] = None
) -> DependencyGraph:
    return get_default_context().build_dependency_graph(root_directory, extensions)


def find_circular_dependencies(root_directory: str) -> List[List[str]]:
    return get_default_context().find_circular_dependencies(root_directory)


def find_unused_exports(root_directory: str) -> Dict[str, FrozenSet[str]]:
    return get_default_context().find_unused_exports(root_directory)


def get_all_dependencies(file_path: str) -> FrozenSet[str]:
    return get_default_context().get_all_dependencies(file_path)


def get_reverse_dependencies(target_file: str, root_directory: str) -> List[str]:
    return get_default_context().get_reverse_dependencies(target_file, root_directory)


def clear_cache() -> None:
    get_default_context().clear_cache()


def get_cache_stats() -> Dict[str, int]:
    return get_default_context().get_cache_stats()


def get_warnings() -> List[AnalysisWarning]:
    return get_default_context().get_warnings()


def clear_warnings() -> None:
    get_default_context().clear_warnings()
