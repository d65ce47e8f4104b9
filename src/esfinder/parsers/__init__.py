# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Parser backends producing backend-neutral syntax trees."""

from .base import NodeKind, ParseOptions, ParserBackend, SyntaxNode
from .estree_backend import EstreeBackend, EstreeNode
from .registry import BackendRegistry, create_default_registry
from .sfc import extract_script
from .tree_sitter_backend import TreeSitterBackend, TreeSitterNode

__all__ = [
    "NodeKind",
    "ParseOptions",
    "ParserBackend",
    "SyntaxNode",
    "EstreeBackend",
    "EstreeNode",
    "TreeSitterBackend",
    "TreeSitterNode",
    "BackendRegistry",
    "create_default_registry",
    "extract_script",
]
