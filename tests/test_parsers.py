# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for parser backends, the backend registry and SFC extraction.

The same module is parsed by every backend and the extracted symbols must
agree; the ESTree backend is fed hand-built trees shaped like Babel and
standard ESTree output.
"""

import importlib

import pytest

from esfinder.errors import BackendUnavailableError, ParseError
from esfinder.extractor import extract_exports, extract_imports
from esfinder.parsers import tree_sitter_backend
from esfinder.parsers.base import NodeKind, ParseOptions, ParserBackend
from esfinder.parsers.estree_backend import EstreeBackend
from esfinder.parsers.registry import BackendRegistry, create_default_registry
from esfinder.parsers.sfc import extract_script
from esfinder.parsers.tree_sitter_backend import TreeSitterBackend

JS_SOURCE = (
    "import def, { helper as h } from './helpers';\n"
    "import * as all from './all';\n"
    "export const a = 1;\n"
    "export function b() { return import('./lazy'); }\n"
    "export class C {}\n"
    "export { a as a1 };\n"
    "export * as ns from './ns';\n"
    "export default x;\n"
)

EXPECTED_EXPORTS = {"a", "b", "C", "a1", "ns", "default"}
EXPECTED_IMPORTS = [
    ("./helpers", frozenset({"default", "helper"}), False),
    ("./all", frozenset({"*"}), False),
    ("./lazy", frozenset(), True),
]


def ident(name):
    return {"type": "Identifier", "name": name}


def export_named(declaration=None, specifiers=(), source=None):
    return {
        "type": "ExportNamedDeclaration",
        "declaration": declaration,
        "specifiers": list(specifiers),
        "source": source,
    }


def js_module_tree(string_type="Literal", babel=False):
    """ESTree Program equivalent to JS_SOURCE."""

    def string(value):
        return {"type": string_type, "value": value}

    if babel:
        dynamic_import = {
            "type": "CallExpression",
            "callee": {"type": "Import"},
            "arguments": [string("./lazy")],
        }
        namespace_reexport = export_named(
            specifiers=[{"type": "ExportNamespaceSpecifier", "exported": ident("ns")}],
            source=string("./ns"),
        )
    else:
        dynamic_import = {"type": "ImportExpression", "source": string("./lazy")}
        namespace_reexport = {
            "type": "ExportAllDeclaration",
            "exported": ident("ns"),
            "source": string("./ns"),
        }

    return {
        "type": "Program",
        "sourceType": "module",
        "body": [
            {
                "type": "ImportDeclaration",
                "specifiers": [
                    {"type": "ImportDefaultSpecifier", "local": ident("def")},
                    {"type": "ImportSpecifier", "imported": ident("helper"), "local": ident("h")},
                ],
                "source": string("./helpers"),
                "loc": {"start": {"line": 1, "column": 0}},
            },
            {
                "type": "ImportDeclaration",
                "specifiers": [{"type": "ImportNamespaceSpecifier", "local": ident("all")}],
                "source": string("./all"),
                "loc": {"start": {"line": 2, "column": 0}},
            },
            export_named(
                {
                    "type": "VariableDeclaration",
                    "kind": "const",
                    "declarations": [
                        {
                            "type": "VariableDeclarator",
                            "id": ident("a"),
                            "init": {"type": "Literal", "value": 1},
                        }
                    ],
                }
            ),
            export_named(
                {
                    "type": "FunctionDeclaration",
                    "id": ident("b"),
                    "params": [],
                    "body": {
                        "type": "BlockStatement",
                        "body": [{"type": "ReturnStatement", "argument": dynamic_import}],
                    },
                }
            ),
            export_named(
                {
                    "type": "ClassDeclaration",
                    "id": ident("C"),
                    "superClass": None,
                    "body": {"type": "ClassBody", "body": []},
                }
            ),
            export_named(
                specifiers=[
                    {"type": "ExportSpecifier", "local": ident("a"), "exported": ident("a1")}
                ]
            ),
            namespace_reexport,
            {"type": "ExportDefaultDeclaration", "declaration": ident("x")},
        ],
    }


def summarize_imports(tree):
    return [(r.specifier, r.imported_names, r.is_dynamic) for r in extract_imports(tree)]


class TestBackendConsistency:
    """The same module gives the same answers through every backend."""

    @pytest.mark.parametrize("dialect", ["typescript", "javascript"])
    def test_tree_sitter_dialects(self, dialect):
        tree = TreeSitterBackend(dialect).parse(JS_SOURCE, ParseOptions(filename="module.js"))

        assert extract_exports(tree) == EXPECTED_EXPORTS
        assert summarize_imports(tree) == EXPECTED_IMPORTS

    def test_typescript_grammar_for_ts_files(self):
        tree = TreeSitterBackend("typescript").parse(JS_SOURCE, ParseOptions(filename="module.ts"))

        assert extract_exports(tree) == EXPECTED_EXPORTS
        assert summarize_imports(tree) == EXPECTED_IMPORTS

    def test_standard_estree(self):
        backend = EstreeBackend(lambda source, options: js_module_tree())
        tree = backend.parse(JS_SOURCE, ParseOptions(filename="module.js"))

        assert extract_exports(tree) == EXPECTED_EXPORTS
        assert summarize_imports(tree) == EXPECTED_IMPORTS

    def test_babel_flavoured_estree(self):
        babel_file = {
            "type": "File",
            "program": js_module_tree(string_type="StringLiteral", babel=True),
            "comments": [{"type": "CommentLine", "value": " ignored"}],
        }
        backend = EstreeBackend(lambda source, options: babel_file)
        tree = backend.parse(JS_SOURCE, ParseOptions(filename="module.js"))

        assert extract_exports(tree) == EXPECTED_EXPORTS
        assert summarize_imports(tree) == EXPECTED_IMPORTS

    def test_estree_line_numbers(self):
        backend = EstreeBackend(lambda source, options: js_module_tree())
        tree = backend.parse(JS_SOURCE, ParseOptions(filename="module.js"))

        assert [r.line for r in extract_imports(tree)][:2] == [1, 2]


class TestTreeSitterBackend:
    """Tests for the tree-sitter backend."""

    def test_grammar_selection(self):
        backend = TreeSitterBackend("typescript")

        assert backend.grammar_for(ParseOptions("a.ts")) == "typescript"
        assert backend.grammar_for(ParseOptions("a.mts")) == "typescript"
        assert backend.grammar_for(ParseOptions("a.tsx")) == "tsx"
        assert backend.grammar_for(ParseOptions("a.js")) == "tsx"
        assert backend.grammar_for(ParseOptions("a.vue", typescript=True)) == "typescript"
        assert backend.grammar_for(ParseOptions("a.vue")) == "tsx"
        assert TreeSitterBackend("javascript").grammar_for(ParseOptions("a.ts")) == "javascript"

    def test_unknown_dialect(self):
        with pytest.raises(ValueError, match="dialect"):
            TreeSitterBackend("coffeescript")

    def test_syntax_error_raises_parse_error(self):
        backend = TreeSitterBackend("typescript")

        with pytest.raises(ParseError) as exc_info:
            backend.parse("const ok = 1;\nexport const = ;\n", ParseOptions(filename="bad.ts"))

        assert exc_info.value.filepath == "bad.ts"
        assert exc_info.value.line == 2

    def test_typescript_under_javascript_grammar_suggests_backend(self):
        """Test that a lang="ts" component under the javascript backend names the fix."""
        backend = TreeSitterBackend("javascript")

        with pytest.raises(ParseError, match="parser_backend='typescript'") as exc_info:
            backend.parse("const x: number = 1;\n", ParseOptions("Comp.vue", typescript=True))

        assert exc_info.value.reason.startswith("syntax error (javascript grammar)")

    def test_javascript_syntax_error_has_no_backend_hint(self):
        with pytest.raises(ParseError) as exc_info:
            TreeSitterBackend("javascript").parse("export const = ;\n", ParseOptions("m.js"))

        assert "parser_backend" not in exc_info.value.reason

    def test_check_available(self):
        TreeSitterBackend("typescript").check_available()
        TreeSitterBackend("javascript").check_available()

    def test_missing_grammar_is_reported(self, monkeypatch):
        real_import = importlib.import_module

        def fake_import(name, *args, **kwargs):
            if name == "tree_sitter_javascript":
                raise ImportError("No module named 'tree_sitter_javascript'")
            return real_import(name, *args, **kwargs)

        monkeypatch.setattr(tree_sitter_backend, "_languages", {})
        monkeypatch.setattr(importlib, "import_module", fake_import)

        with pytest.raises(BackendUnavailableError) as exc_info:
            TreeSitterBackend("javascript").check_available()

        message = str(exc_info.value)
        assert "tree-sitter-javascript" in message
        assert "typescript" in message
        assert exc_info.value.backend == "javascript"

    def test_node_kinds(self):
        tree = TreeSitterBackend("typescript").parse(
            "import x from './x';\nexport default x;\n", ParseOptions(filename="m.ts")
        )

        kinds = [child.kind for child in tree.children()]

        assert kinds == [NodeKind.IMPORT, NodeKind.EXPORT_DEFAULT]
        assert tree.children()[0].field("source").value == "./x"


class TestEstreeBackend:
    """Tests for the ESTree adapter."""

    def test_requires_parse_function(self):
        with pytest.raises(BackendUnavailableError, match="parse function"):
            EstreeBackend().check_available()

    def test_parse_function_errors_become_parse_errors(self):
        def failing(source, options):
            raise SyntaxError("Unexpected token (3:4)")

        with pytest.raises(ParseError, match="Unexpected token"):
            EstreeBackend(failing).parse("export =", ParseOptions(filename="m.js"))

    def test_non_tree_result(self):
        with pytest.raises(ParseError, match="no syntax tree"):
            EstreeBackend(lambda s, o: None).parse("", ParseOptions(filename="m.js"))

    def test_recovered_errors_are_reported(self):
        tree = {
            "type": "File",
            "program": {"type": "Program", "body": []},
            "errors": [{"message": "Missing semicolon", "loc": {"line": 4, "column": 2}}],
        }

        with pytest.raises(ParseError) as exc_info:
            EstreeBackend(lambda s, o: tree).parse("", ParseOptions(filename="m.js"))

        assert exc_info.value.line == 4

    def test_options_are_forwarded(self):
        seen = []

        def record(source, options):
            seen.append((source, options.filename))
            return {"type": "Program", "body": []}

        EstreeBackend(record).parse("let a;", ParseOptions(filename="m.js"))

        assert seen == [("let a;", "m.js")]

    def test_typescript_declarations(self):
        program = {
            "type": "Program",
            "body": [
                export_named({"type": "TSInterfaceDeclaration", "id": ident("Props")}),
                export_named({"type": "TSTypeAliasDeclaration", "id": ident("Id")}),
                export_named({"type": "TSEnumDeclaration", "id": ident("Color")}),
            ],
        }
        tree = EstreeBackend(lambda s, o: program).parse("", ParseOptions(filename="m.ts"))

        assert extract_exports(tree) == {"Props", "Id", "Color"}


class TestBackendRegistry:
    """Tests for BackendRegistry."""

    def test_default_registry(self):
        registry = create_default_registry()

        assert registry.names() == ["estree", "javascript", "typescript"]
        assert registry.create("typescript").name() == "typescript"
        assert registry.create("javascript").name() == "javascript"

    def test_create_passes_arguments(self):
        registry = create_default_registry()
        parse_fn = lambda s, o: {"type": "Program", "body": []}  # noqa: E731

        backend = registry.create("estree", parse_fn=parse_fn)

        backend.check_available()
        assert isinstance(backend, EstreeBackend)

    def test_unknown_backend(self):
        with pytest.raises(KeyError, match="Unknown parser backend 'swc'"):
            create_default_registry().create("swc")

    def test_register_rejects_non_callable(self):
        with pytest.raises(TypeError):
            BackendRegistry().register("bad", "not callable")

    def test_factory_must_return_backend(self):
        registry = BackendRegistry()
        registry.register("bad", lambda: object())

        with pytest.raises(TypeError, match="ParserBackend"):
            registry.create("bad")

    def test_clear_and_count(self):
        registry = create_default_registry()
        assert registry.count() == 3

        registry.clear()

        assert registry.count() == 0

    def test_custom_backend(self):
        class StaticBackend(ParserBackend):
            def name(self):
                return "static"

            def check_available(self):
                pass

            def parse(self, source, options):
                return EstreeBackend(lambda s, o: {"type": "Program", "body": []}).parse(
                    source, options
                )

        registry = BackendRegistry()
        registry.register("static", StaticBackend)

        assert registry.create("static").name() == "static"


class TestExtractScript:
    """Tests for Vue single-file component script extraction."""

    COMPONENT = (
        "<template>\n"
        "  <div>{{ msg }}</div>\n"
        "</template>\n"
        '<script lang="ts">\n'
        "import { helper } from './helper';\n"
        "export default { name: 'Comp' };\n"
        "</script>\n"
        "<style>.a { color: red; }</style>\n"
    )

    def test_keeps_script_body_and_lines(self):
        code, lang = extract_script(self.COMPONENT)

        lines = code.split("\n")
        assert lang == "ts"
        assert len(lines) == len(self.COMPONENT.split("\n"))
        assert lines[4] == "import { helper } from './helper';"
        assert lines[0].strip() == ""
        assert "color" not in code

    def test_without_script(self):
        code, lang = extract_script("<template><div/></template>\n")

        assert code.strip() == ""
        assert lang is None

    def test_multiple_blocks(self):
        component = (
            "<script>\nexport const a = 1;\n</script>\n"
            "<script setup>\nimport b from './b';\n</script>\n"
        )

        code, lang = extract_script(component)

        assert "export const a = 1;" in code
        assert "import b from './b';" in code
        assert lang is None

    def test_extracted_code_parses(self):
        code, lang = extract_script(self.COMPONENT)
        tree = TreeSitterBackend("typescript").parse(
            code, ParseOptions(filename="Comp.vue", typescript=lang == "ts")
        )

        assert extract_exports(tree) == {"default"}
        assert [r.line for r in extract_imports(tree)] == [5]
