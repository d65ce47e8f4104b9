# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Module graph analysis for JavaScript and TypeScript source trees."""

from .api import (
    build_dependency_graph,
    clear_cache,
    clear_warnings,
    explain_related_files,
    find_circular_dependencies,
    find_unused_exports,
    get_all_dependencies,
    get_cache_stats,
    get_default_context,
    get_import_record,
    get_related_files,
    get_reverse_dependencies,
    get_warnings,
    parse_exports,
    parse_imports,
    set_default_context,
)
from .config import Config, ConfigurationError
from .context import AnalysisContext
from .diagnostics import AnalysisWarning, WarningType
from .errors import BackendUnavailableError, EsfinderError, ParseError, UnresolvablePathError
from .logging_setup import setup_logging, teardown_logging
from .models import DependencyGraph, ImportEdge, ImportRecord, ModuleNode
from .resolver import PathResolver

__version__ = "0.1.0"

__all__ = [
    "AnalysisContext",
    "Config",
    "ConfigurationError",
    "DependencyGraph",
    "ModuleNode",
    "ImportEdge",
    "ImportRecord",
    "PathResolver",
    "AnalysisWarning",
    "WarningType",
    "EsfinderError",
    "UnresolvablePathError",
    "ParseError",
    "BackendUnavailableError",
    "parse_exports",
    "parse_imports",
    "get_import_record",
    "get_related_files",
    "explain_related_files",
    "build_dependency_graph",
    "find_circular_dependencies",
    "find_unused_exports",
    "get_all_dependencies",
    "get_reverse_dependencies",
    "clear_cache",
    "get_cache_stats",
    "get_warnings",
    "clear_warnings",
    "get_default_context",
    "set_default_context",
    "setup_logging",
    "teardown_logging",
]
