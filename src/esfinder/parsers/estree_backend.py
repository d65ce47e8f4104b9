# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Adapter for parsers producing ESTree-shaped dictionaries.

Babel, SWC (with ESTree output), Acorn, Esprima and oxc all emit JSON trees
of {"type": ..., ...} objects. This backend wraps any callable returning
such a tree, e.g. a bridge to a Node.js process or a pure-Python parser
such as esprima:

    backend = EstreeBackend(lambda source, options: esprima.parseModule(source).toDict())

Both the standard ESTree and the Babel flavours are understood:
- Literal / StringLiteral
- ImportExpression / CallExpression with an Import callee
- ExportAllDeclaration.exported / ExportNamespaceSpecifier
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..errors import BackendUnavailableError, ParseError
from .base import NodeKind, ParseOptions, ParserBackend, SyntaxNode

logger = logging.getLogger(__name__)

ParseFunction = Callable[[str, ParseOptions], Dict[str, Any]]

KIND_BY_TYPE: Dict[str, NodeKind] = {
    "ExportNamedDeclaration": NodeKind.EXPORT_NAMED,
    "ExportDefaultDeclaration": NodeKind.EXPORT_DEFAULT,
    "ExportAllDeclaration": NodeKind.EXPORT_ALL,
    "ImportDeclaration": NodeKind.IMPORT,
    "ImportExpression": NodeKind.IMPORT_CALL,
    "VariableDeclaration": NodeKind.VARIABLE_DECLARATION,
    "VariableDeclarator": NodeKind.VARIABLE_DECLARATOR,
    "FunctionDeclaration": NodeKind.DECLARATION,
    "ClassDeclaration": NodeKind.DECLARATION,
    "TSDeclareFunction": NodeKind.DECLARATION,
    "TSInterfaceDeclaration": NodeKind.DECLARATION,
    "TSTypeAliasDeclaration": NodeKind.DECLARATION,
    "TSEnumDeclaration": NodeKind.DECLARATION,
    "TSModuleDeclaration": NodeKind.DECLARATION,
    "ExportSpecifier": NodeKind.EXPORT_SPECIFIER,
    "ExportNamespaceSpecifier": NodeKind.EXPORT_SPECIFIER,
    "ExportDefaultSpecifier": NodeKind.EXPORT_SPECIFIER,
    "ImportSpecifier": NodeKind.IMPORT_SPECIFIER,
    "ImportDefaultSpecifier": NodeKind.IMPORT_DEFAULT_SPECIFIER,
    "ImportNamespaceSpecifier": NodeKind.IMPORT_NAMESPACE_SPECIFIER,
    "Identifier": NodeKind.IDENTIFIER,
    "StringLiteral": NodeKind.STRING,
}

# Position, back-reference and comment keys are never walked
SKIPPED_KEYS = frozenset(
    {
        "loc",
        "range",
        "span",
        "parent",
        "extra",
        "comments",
        "tokens",
        "leadingComments",
        "trailingComments",
        "innerComments",
    }
)


class EstreeNode(SyntaxNode):
    """SyntaxNode view of an ESTree dictionary."""

    def __init__(self, data: Dict[str, Any]) -> None:
        self._data = data
        self._kind = _classify(data)

    @property
    def kind(self) -> NodeKind:
        return self._kind

    @property
    def line(self) -> Optional[int]:
        loc = self._data.get("loc")
        if isinstance(loc, dict) and isinstance(loc.get("start"), dict):
            return loc["start"].get("line")
        return None

    @property
    def value(self) -> Optional[str]:
        if self._kind is NodeKind.IDENTIFIER:
            return self._data.get("name")
        if self._kind is NodeKind.STRING:
            return self._data.get("value")
        return None

    def children(self) -> List[SyntaxNode]:
        nodes: List[SyntaxNode] = []
        for key, item in self._data.items():
            if key in SKIPPED_KEYS:
                continue
            nodes.extend(_wrap(item))
        return nodes

    def fields(self, role: str) -> List[SyntaxNode]:
        if role == "argument" and self._kind is NodeKind.IMPORT_CALL:
            if self._data.get("type") == "ImportExpression":
                return _wrap(self._data.get("source"))
            return _wrap(self._data.get("arguments", [])[:1])
        return _wrap(self._data.get(role))

    def __repr__(self) -> str:
        return f"EstreeNode({self._data.get('type')}, kind={self._kind.value}, line={self.line})"


def _wrap(item: Any) -> List[SyntaxNode]:
    if isinstance(item, dict):
        return [EstreeNode(item)] if "type" in item else []
    if isinstance(item, list):
        return [EstreeNode(entry) for entry in item if isinstance(entry, dict) and "type" in entry]
    return []


def _classify(data: Dict[str, Any]) -> NodeKind:
    node_type = data.get("type")
    kind = KIND_BY_TYPE.get(node_type) if isinstance(node_type, str) else None
    if kind is not None:
        return kind
    if node_type == "Literal" and isinstance(data.get("value"), str):
        return NodeKind.STRING
    if node_type == "CallExpression":
        callee = data.get("callee")
        if isinstance(callee, dict) and callee.get("type") == "Import":
            return NodeKind.IMPORT_CALL
    return NodeKind.OTHER


class EstreeBackend(ParserBackend):
    """Backend delegating to a caller-supplied ESTree parse function.

    Args:
        parse_fn: Callable(source, options) returning the Program (or Babel
            File) node as a dict. Exceptions it raises become ParseError.
    """

    def __init__(self, parse_fn: Optional[ParseFunction] = None) -> None:
        self._parse_fn = parse_fn

    def name(self) -> str:
        return "estree"

    def check_available(self) -> None:
        if self._parse_fn is None:
            raise BackendUnavailableError(
                "estree",
                "a parse function returning ESTree dictionaries (EstreeBackend(parse_fn=...))",
                ["typescript", "javascript"],
            )

    def parse(self, source: str, options: ParseOptions) -> SyntaxNode:
        self.check_available()
        assert self._parse_fn is not None
        try:
            tree = self._parse_fn(source, options)
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(options.filename, str(e)) from e

        if not isinstance(tree, dict) or "type" not in tree:
            raise ParseError(options.filename, "parse function returned no syntax tree")

        # Babel errorRecovery mode reports problems instead of raising
        errors = tree.get("errors")
        if errors:
            first = errors[0] if isinstance(errors[0], dict) else {}
            line = first.get("loc", {}).get("line") if isinstance(first.get("loc"), dict) else None
            raise ParseError(options.filename, str(first.get("message", errors[0])), line)

        return EstreeNode(tree)
