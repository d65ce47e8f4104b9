# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Export and import extraction over backend-neutral syntax trees.

Export classification:
- export const a = 1, b = 2      -> a, b (destructuring patterns are skipped)
- export function f / class C    -> f / C (also interface, type, enum, namespace)
- export { a, b as c }           -> a, c (the exported name, not the local one)
- export default ...             -> "default"
- export * as ns from './m'      -> ns
- export * from './m'            -> nothing; wildcard re-exports are not expanded

Import extraction:
- import statements, with imported names ("default" for default imports,
  "*" for namespace imports)
- import('...') calls whose argument is a string literal

Re-exports (export ... from './m') are not counted as imports.

Both functions are pure. Missing nodes or fields mean "no data".
"""

from typing import Iterator, List, Optional, Set

from .models import DEFAULT_EXPORT, NAMESPACE_IMPORT, ImportReference
from .parsers.base import NodeKind, SyntaxNode

NAME_KINDS = (NodeKind.IDENTIFIER, NodeKind.STRING)


def walk(root: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield every node of the tree in document order.

    Uses an explicit stack so that deeply nested sources cannot exhaust
    the interpreter's recursion limit.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children())))


def _name(node: Optional[SyntaxNode]) -> Optional[str]:
    if node is None or node.kind not in NAME_KINDS:
        return None
    return node.value


def _declared_names(declaration: SyntaxNode) -> List[str]:
    if declaration.kind is NodeKind.VARIABLE_DECLARATION:
        names = []
        for declarator in declaration.fields("declarations"):
            identifier = declarator.field("id")
            # Only plain identifiers; { a, b } and [a, b] patterns are skipped
            if identifier is not None and identifier.kind is NodeKind.IDENTIFIER:
                if identifier.value:
                    names.append(identifier.value)
        return names
    if declaration.kind is NodeKind.DECLARATION:
        identifier = declaration.field("id")
        if identifier is not None and identifier.kind is NodeKind.IDENTIFIER and identifier.value:
            return [identifier.value]
    return []


def extract_exports(root: SyntaxNode) -> Set[str]:
    """Collect the names a module exports."""
    exports: Set[str] = set()

    for node in walk(root):
        kind = node.kind
        if kind is NodeKind.EXPORT_NAMED:
            declaration = node.field("declaration")
            if declaration is not None:
                exports.update(_declared_names(declaration))
            for specifier in node.fields("specifiers"):
                name = _name(specifier.field("exported"))
                if name:
                    exports.add(name)
        elif kind is NodeKind.EXPORT_DEFAULT:
            exports.add(DEFAULT_EXPORT)
        elif kind is NodeKind.EXPORT_ALL:
            # Bare "export *" re-exports are not expanded
            name = _name(node.field("exported"))
            if name:
                exports.add(name)

    return exports


def _imported_names(declaration: SyntaxNode) -> Set[str]:
    names: Set[str] = set()
    for specifier in declaration.fields("specifiers"):
        kind = specifier.kind
        if kind is NodeKind.IMPORT_DEFAULT_SPECIFIER:
            names.add(DEFAULT_EXPORT)
        elif kind is NodeKind.IMPORT_NAMESPACE_SPECIFIER:
            names.add(NAMESPACE_IMPORT)
        elif kind is NodeKind.IMPORT_SPECIFIER:
            name = _name(specifier.field("imported"))
            if name:
                names.add(name)
    return names


def extract_imports(root: SyntaxNode) -> List[ImportReference]:
    """Collect static imports and literal dynamic imports, in source order."""
    references: List[ImportReference] = []

    for node in walk(root):
        kind = node.kind
        if kind is NodeKind.IMPORT:
            source = node.field("source")
            if source is None or source.kind is not NodeKind.STRING or not source.value:
                continue
            references.append(
                ImportReference(
                    specifier=source.value,
                    imported_names=frozenset(_imported_names(node)),
                    line=node.line,
                )
            )
        elif kind is NodeKind.IMPORT_CALL:
            argument = node.field("argument")
            # import(`./${name}`) and import(variable) cannot be resolved statically
            if argument is None or argument.kind is not NodeKind.STRING or not argument.value:
                continue
            references.append(
                ImportReference(specifier=argument.value, is_dynamic=True, line=node.line)
            )

    return references
