# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Backend-neutral syntax tree interface.

Every parser backend adapts its native tree to SyntaxNode. Symbol
extraction (extractor.py) is written once against this interface, so the
analysis gives identical answers whichever backend produced the tree.

Only the node kinds that extraction consumes are distinguished. Every
other node is NodeKind.OTHER and is walked through via children().

Field roles follow ESTree naming:
- declaration: declared entity of a named export
- declarations: declarators of a variable declaration
- id: name of a declaration or declarator
- specifiers: specifiers of an import or export statement
- local / exported / imported: specifier names
- source: module string of an import or re-export
- argument: first argument of a dynamic import() call
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional


class NodeKind(Enum):
    """Node kinds consumed by symbol extraction."""

    EXPORT_NAMED = "export_named"  # export const a / export { a as b }
    EXPORT_DEFAULT = "export_default"  # export default x
    EXPORT_ALL = "export_all"  # export * from './m' / export * as ns from './m'
    IMPORT = "import"  # import x, { y } from './m'
    IMPORT_CALL = "import_call"  # import('./m')
    VARIABLE_DECLARATION = "variable_declaration"  # const a = 1, b = 2
    VARIABLE_DECLARATOR = "variable_declarator"  # a = 1
    DECLARATION = "declaration"  # function / class / interface / type / enum / namespace
    EXPORT_SPECIFIER = "export_specifier"
    IMPORT_SPECIFIER = "import_specifier"
    IMPORT_DEFAULT_SPECIFIER = "import_default_specifier"
    IMPORT_NAMESPACE_SPECIFIER = "import_namespace_specifier"
    IDENTIFIER = "identifier"
    STRING = "string"
    OTHER = "other"


class SyntaxNode(ABC):
    """A node of a parsed module, seen through the backend-neutral model."""

    @property
    @abstractmethod
    def kind(self) -> NodeKind:
        pass

    @property
    @abstractmethod
    def line(self) -> Optional[int]:
        """1-based start line, if the backend records positions."""
        pass

    @abstractmethod
    def children(self) -> Iterable["SyntaxNode"]:
        """All direct child nodes, for the generic recursive walk."""
        pass

    @abstractmethod
    def fields(self, role: str) -> List["SyntaxNode"]:
        """Child nodes playing the given role; empty when absent."""
        pass

    @property
    def value(self) -> Optional[str]:
        """Identifier name or string literal contents; None for other kinds."""
        return None

    def field(self, role: str) -> Optional["SyntaxNode"]:
        """First child node playing the given role, or None."""
        nodes = self.fields(role)
        return nodes[0] if nodes else None


@dataclass(frozen=True)
class ParseOptions:
    """Options passed to a backend for one file.

    Attributes:
        filename: Path of the file being parsed, used to pick a grammar
            dialect and for error messages.
        typescript: Parse with TypeScript syntax enabled. None lets the
            backend decide from the file extension.
    """

    filename: str
    typescript: Optional[bool] = None


class ParserBackend(ABC):
    """Turns source text into a SyntaxNode tree.

    Lifecycle:
    1. Backend is created by BackendRegistry
    2. check_available() runs once when an analysis context is created
    3. parse() is called for each file, possibly from several threads
    """

    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def check_available(self) -> None:
        """Verify the backend can run here.

        Raises:
            BackendUnavailableError: Naming the missing requirement and an
                alternative backend.
        """
        pass

    @abstractmethod
    def parse(self, source: str, options: ParseOptions) -> SyntaxNode:
        """Parse module source text.

        Raises:
            ParseError: If the source cannot be parsed.
        """
        pass
