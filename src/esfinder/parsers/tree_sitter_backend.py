# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tree-sitter parser backends for JavaScript and TypeScript.

Grammars are loaded lazily through importlib so that a missing grammar
package only affects the backend that needs it. Language objects are shared
process-wide; tree_sitter.Parser instances are kept per thread.

Grammar selection for the "typescript" backend:
- .ts / .mts / .cts, and Vue blocks with lang="ts": TypeScript grammar
- everything else (.js, .jsx, .tsx, .mjs, .cjs, ...): TSX grammar

The "javascript" backend always uses the JavaScript grammar (with JSX).
"""

import importlib
import logging
import os
import threading
from typing import Any, Dict, List, Optional, Tuple

from ..errors import BackendUnavailableError, ParseError
from .base import NodeKind, ParseOptions, ParserBackend, SyntaxNode

logger = logging.getLogger(__name__)

# grammar name -> (module, language function, distribution name)
GRAMMARS: Dict[str, Tuple[str, str, str]] = {
    "typescript": ("tree_sitter_typescript", "language_typescript", "tree-sitter-typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx", "tree-sitter-typescript"),
    "javascript": ("tree_sitter_javascript", "language", "tree-sitter-javascript"),
}

DIALECT_GRAMMARS: Dict[str, Tuple[str, ...]] = {
    "typescript": ("typescript", "tsx"),
    "javascript": ("javascript",),
}

TYPESCRIPT_EXTENSIONS = frozenset({".ts", ".mts", ".cts"})

DECLARATION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
        "class_declaration",
        "abstract_class_declaration",
        "interface_declaration",
        "type_alias_declaration",
        "enum_declaration",
        "internal_module",
        "module",
    }
)

VARIABLE_DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})

# "default" appears as a bare token in specifiers such as export { default } from './m'
IDENTIFIER_TYPES = frozenset({"identifier", "type_identifier", "property_identifier", "default"})

_languages: Dict[str, Any] = {}
_languages_lock = threading.Lock()


def load_language(grammar: str, backend: Optional[str] = None) -> Any:
    """Load and cache a tree-sitter Language.

    Args:
        grammar: Key of GRAMMARS.
        backend: Name of the backend needing the grammar, for error messages.

    Raises:
        BackendUnavailableError: If tree-sitter or the grammar package is
            missing or built for an incompatible tree-sitter version.
    """
    with _languages_lock:
        if grammar in _languages:
            return _languages[grammar]

        module_name, func_name, distribution = GRAMMARS[grammar]
        alternatives = [d for d in DIALECT_GRAMMARS if grammar not in DIALECT_GRAMMARS[d]]
        alternatives.append("estree")
        try:
            tree_sitter = importlib.import_module("tree_sitter")
            mod = importlib.import_module(module_name)
            lang_func = getattr(mod, func_name)
            language = tree_sitter.Language(lang_func())
        except (ImportError, AttributeError, OSError, ValueError) as e:
            logger.error(f"Failed to load tree-sitter grammar '{grammar}': {e}")
            raise BackendUnavailableError(
                backend or grammar,
                f"the 'tree-sitter' and '{distribution}' packages",
                alternatives,
            ) from e

        _languages[grammar] = language
        logger.debug(f"Loaded tree-sitter grammar '{grammar}' from {module_name}")
        return language


class TreeSitterNode(SyntaxNode):
    """SyntaxNode view of a tree_sitter.Node."""

    def __init__(self, node: Any, kind: Optional[NodeKind] = None) -> None:
        self._node = node
        self._kind = kind if kind is not None else _classify(node)

    @property
    def kind(self) -> NodeKind:
        return self._kind

    @property
    def line(self) -> Optional[int]:
        return self._node.start_point[0] + 1

    @property
    def value(self) -> Optional[str]:
        if self._kind is NodeKind.IDENTIFIER:
            return _text(self._node)
        if self._kind is NodeKind.STRING:
            text = _text(self._node)
            return text[1:-1] if len(text) >= 2 else ""
        return None

    def children(self) -> List[SyntaxNode]:
        return [TreeSitterNode(child) for child in self._node.named_children]

    def fields(self, role: str) -> List[SyntaxNode]:
        node = self._node
        kind = self._kind

        if role == "source":
            source = node.child_by_field_name("source")
            return [TreeSitterNode(source)] if source is not None else []

        if kind is NodeKind.EXPORT_NAMED:
            if role == "declaration":
                declaration = _unwrap_ambient(node.child_by_field_name("declaration"))
                return [TreeSitterNode(declaration)] if declaration is not None else []
            if role == "specifiers":
                return [
                    TreeSitterNode(spec)
                    for clause in node.named_children
                    if clause.type == "export_clause"
                    for spec in clause.named_children
                    if spec.type == "export_specifier"
                ]

        elif kind is NodeKind.EXPORT_DEFAULT and role == "declaration":
            target = node.child_by_field_name("declaration")
            if target is None:
                target = node.child_by_field_name("value")
            return [TreeSitterNode(target)] if target is not None else []

        elif kind is NodeKind.EXPORT_ALL and role == "exported":
            for child in node.named_children:
                if child.type == "namespace_export" and child.named_children:
                    return [TreeSitterNode(child.named_children[-1])]

        elif kind is NodeKind.VARIABLE_DECLARATION and role == "declarations":
            return [
                TreeSitterNode(child)
                for child in node.named_children
                if child.type == "variable_declarator"
            ]

        elif kind in (NodeKind.VARIABLE_DECLARATOR, NodeKind.DECLARATION) and role == "id":
            name = node.child_by_field_name("name")
            return [TreeSitterNode(name)] if name is not None else []

        elif kind is NodeKind.EXPORT_SPECIFIER:
            name = node.child_by_field_name("name")
            if role == "local":
                return [TreeSitterNode(name)] if name is not None else []
            if role == "exported":
                exported = node.child_by_field_name("alias")
                if exported is None:
                    exported = name
                return [TreeSitterNode(exported)] if exported is not None else []

        elif kind is NodeKind.IMPORT and role == "specifiers":
            return _import_specifiers(node)

        elif kind is NodeKind.IMPORT_SPECIFIER:
            name = node.child_by_field_name("name")
            if role == "imported":
                return [TreeSitterNode(name)] if name is not None else []
            if role == "local":
                local = node.child_by_field_name("alias")
                if local is None:
                    local = name
                return [TreeSitterNode(local)] if local is not None else []

        elif kind is NodeKind.IMPORT_DEFAULT_SPECIFIER and role == "local":
            return [TreeSitterNode(node)]

        elif kind is NodeKind.IMPORT_NAMESPACE_SPECIFIER and role == "local":
            return [
                TreeSitterNode(child) for child in node.named_children if child.type == "identifier"
            ][:1]

        elif kind is NodeKind.IMPORT_CALL and role == "argument":
            arguments = node.child_by_field_name("arguments")
            if arguments is not None and arguments.named_children:
                return [TreeSitterNode(arguments.named_children[0])]

        return []

    def __repr__(self) -> str:
        return f"TreeSitterNode({self._node.type}, kind={self._kind.value}, line={self.line})"


def _text(node: Any) -> str:
    raw = node.text
    return raw.decode("utf-8", errors="replace") if raw is not None else ""


def _classify(node: Any) -> NodeKind:
    node_type = node.type
    if node_type == "export_statement":
        child_types = {child.type for child in node.children}
        if "default" in child_types:
            return NodeKind.EXPORT_DEFAULT
        if "*" in child_types or "namespace_export" in child_types:
            return NodeKind.EXPORT_ALL
        return NodeKind.EXPORT_NAMED
    if node_type == "import_statement":
        return NodeKind.IMPORT
    if node_type == "call_expression":
        function = node.child_by_field_name("function")
        if function is not None and function.type == "import":
            return NodeKind.IMPORT_CALL
        return NodeKind.OTHER
    if node_type in VARIABLE_DECLARATION_TYPES:
        return NodeKind.VARIABLE_DECLARATION
    if node_type == "variable_declarator":
        return NodeKind.VARIABLE_DECLARATOR
    if node_type in DECLARATION_TYPES:
        return NodeKind.DECLARATION
    if node_type == "export_specifier":
        return NodeKind.EXPORT_SPECIFIER
    if node_type == "import_specifier":
        return NodeKind.IMPORT_SPECIFIER
    if node_type in IDENTIFIER_TYPES:
        return NodeKind.IDENTIFIER
    if node_type == "string":
        return NodeKind.STRING
    return NodeKind.OTHER


def _unwrap_ambient(node: Any) -> Any:
    # export declare const x: T; / export declare function f(): void;
    while node is not None and node.type == "ambient_declaration":
        inner = [child for child in node.named_children if child.type != "comment"]
        node = inner[0] if inner else None
    return node


def _import_specifiers(node: Any) -> List[SyntaxNode]:
    specifiers: List[SyntaxNode] = []
    for clause in node.named_children:
        if clause.type != "import_clause":
            continue
        for child in clause.named_children:
            if child.type == "identifier":
                specifiers.append(TreeSitterNode(child, NodeKind.IMPORT_DEFAULT_SPECIFIER))
            elif child.type == "namespace_import":
                specifiers.append(TreeSitterNode(child, NodeKind.IMPORT_NAMESPACE_SPECIFIER))
            elif child.type == "named_imports":
                specifiers.extend(
                    TreeSitterNode(spec)
                    for spec in child.named_children
                    if spec.type == "import_specifier"
                )
    return specifiers


def _first_error_line(root: Any) -> Optional[int]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


class TreeSitterBackend(ParserBackend):
    """Parser backend built on tree-sitter grammars.

    Args:
        dialect: "typescript" (TypeScript and TSX grammars) or "javascript".
    """

    def __init__(self, dialect: str = "typescript") -> None:
        if dialect not in DIALECT_GRAMMARS:
            raise ValueError(f"Unknown tree-sitter dialect '{dialect}'")
        self._dialect = dialect
        self._local = threading.local()

    def name(self) -> str:
        return self._dialect

    def check_available(self) -> None:
        for grammar in DIALECT_GRAMMARS[self._dialect]:
            load_language(grammar, self._dialect)

    def grammar_for(self, options: ParseOptions) -> str:
        if self._dialect == "javascript":
            return "javascript"
        ext = os.path.splitext(options.filename)[1].lower()
        if ext in TYPESCRIPT_EXTENSIONS:
            return "typescript"
        if options.typescript and ext != ".tsx":
            return "typescript"
        return "tsx"

    @staticmethod
    def _is_typescript_source(options: ParseOptions) -> bool:
        ext = os.path.splitext(options.filename)[1].lower()
        return bool(options.typescript) or ext in TYPESCRIPT_EXTENSIONS or ext == ".tsx"

    def _get_parser(self, grammar: str) -> Any:
        parsers = getattr(self._local, "parsers", None)
        if parsers is None:
            parsers = self._local.parsers = {}
        parser = parsers.get(grammar)
        if parser is None:
            tree_sitter = importlib.import_module("tree_sitter")
            parser = tree_sitter.Parser(load_language(grammar, self._dialect))
            parsers[grammar] = parser
        return parser

    def parse(self, source: str, options: ParseOptions) -> SyntaxNode:
        grammar = self.grammar_for(options)
        parser = self._get_parser(grammar)
        tree = parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            reason = f"syntax error ({grammar} grammar)"
            if grammar == "javascript" and self._is_typescript_source(options):
                reason += "; TypeScript source, use parser_backend='typescript'"
            raise ParseError(options.filename, reason, _first_error_line(root))
        return TreeSitterNode(root)
