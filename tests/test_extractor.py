# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for export and import extraction."""

import pytest

from esfinder.extractor import extract_exports, extract_imports, walk
from esfinder.models import ImportReference
from esfinder.parsers.base import NodeKind, ParseOptions
from esfinder.parsers.tree_sitter_backend import TreeSitterBackend

CANONICAL_SOURCE = (
    "export const a = 1;\n"
    "export function b() {}\n"
    "export class C {}\n"
    "export { a as a1 };\n"
    "export default x;\n"
)


@pytest.fixture(scope="module")
def backend():
    return TreeSitterBackend("typescript")


@pytest.fixture
def parse(backend):
    def _parse(source, filename="module.ts"):
        return backend.parse(source, ParseOptions(filename=filename))

    return _parse


class TestExtractExports:
    """Tests for extract_exports."""

    def test_canonical_declarations(self, parse):
        """Test const, function, class, renamed specifier and default exports."""
        assert extract_exports(parse(CANONICAL_SOURCE)) == {"a", "b", "C", "a1", "default"}

    def test_every_declarator_is_exported(self, parse):
        source = "export const a = 1, b = 2;\nexport let c;\nexport var d = 3;\n"

        assert extract_exports(parse(source)) == {"a", "b", "c", "d"}

    def test_destructuring_patterns_are_skipped(self, parse):
        source = "export const { e, f } = obj;\nexport const [g] = arr;\nexport const h = 1;\n"

        assert extract_exports(parse(source)) == {"h"}

    def test_specifier_list_uses_exported_names(self, parse):
        source = "const a = 1, b = 2;\nexport { a, b as renamed };\n"

        assert extract_exports(parse(source)) == {"a", "renamed"}

    def test_typescript_declarations(self, parse):
        source = (
            "export interface Props { label: string }\n"
            "export type Id = string;\n"
            "export enum Color { Red }\n"
            "export abstract class Base {}\n"
            "export function* gen() {}\n"
            "export async function load() {}\n"
        )

        assert extract_exports(parse(source)) == {"Props", "Id", "Color", "Base", "gen", "load"}

    def test_namespace_declaration(self, parse):
        assert extract_exports(parse("export namespace Shapes { export const x = 1; }\n")) >= {
            "Shapes"
        }

    def test_default_declaration_only_adds_default(self, parse):
        source = "export default function named() {}\n"

        assert extract_exports(parse(source)) == {"default"}

    def test_default_class_expression(self, parse):
        assert extract_exports(parse("export default class {}\n")) == {"default"}

    def test_wildcard_reexport_is_not_expanded(self, parse):
        assert extract_exports(parse("export * from './other';\n")) == set()

    def test_namespace_reexport_binds_name(self, parse):
        assert extract_exports(parse("export * as helpers from './helpers';\n")) == {"helpers"}

    def test_reexport_list(self, parse):
        source = "export { add, sub as minus } from './math';\n"

        assert extract_exports(parse(source)) == {"add", "minus"}

    def test_alias_to_default(self, parse):
        assert extract_exports(parse("const x = 1;\nexport { x as default };\n")) == {"default"}

    def test_no_exports(self, parse):
        assert extract_exports(parse("const local = 1;\nconsole.log(local);\n")) == set()

    def test_jsx_module(self, parse):
        source = "export const View = () => <div className='x'>hi</div>;\n"

        assert extract_exports(parse(source, filename="view.jsx")) == {"View"}


class TestExtractImports:
    """Tests for extract_imports."""

    def test_static_import_forms(self, parse):
        source = (
            "import def, { a, b as c } from './m';\n"
            "import * as ns from './n';\n"
            "import './side-effect';\n"
        )

        references = extract_imports(parse(source))

        assert references == [
            ImportReference("./m", frozenset({"default", "a", "b"}), False, 1),
            ImportReference("./n", frozenset({"*"}), False, 2),
            ImportReference("./side-effect", frozenset(), False, 3),
        ]

    def test_dynamic_import_with_literal(self, parse):
        source = "async function load() {\n  return import('./lazy');\n}\n"

        references = extract_imports(parse(source))

        assert len(references) == 1
        assert references[0].specifier == "./lazy"
        assert references[0].is_dynamic is True
        assert references[0].line == 2

    def test_dynamic_import_without_literal_is_skipped(self, parse):
        source = "const name = './x';\nimport(name);\nimport(`./${name}`);\n"

        assert extract_imports(parse(source)) == []

    def test_package_imports_are_reported(self, parse):
        references = extract_imports(parse("import React from 'react';\n"))

        assert [r.specifier for r in references] == ["react"]

    def test_reexports_are_not_imports(self, parse):
        source = "export { a } from './a';\nexport * from './b';\n"

        assert extract_imports(parse(source)) == []

    def test_source_order(self, parse):
        source = (
            "import { x } from './first';\n"
            "function f() { return import('./second'); }\n"
            "import y from './third';\n"
        )

        assert [r.specifier for r in extract_imports(parse(source))] == [
            "./first",
            "./second",
            "./third",
        ]

    def test_type_only_imports(self, parse):
        references = extract_imports(parse("import type { Props } from './types';\n"))

        assert [r.specifier for r in references] == ["./types"]
        assert "Props" in references[0].imported_names


class TestWalk:
    """Tests for the generic tree walk."""

    def test_visits_root_first(self, parse):
        tree = parse("const a = 1;\n")

        nodes = list(walk(tree))

        assert nodes[0].kind is NodeKind.OTHER
        assert any(node.kind is NodeKind.IDENTIFIER and node.value == "a" for node in nodes)

    def test_deeply_nested_source(self, parse):
        depth = 300
        source = "export const deep = " + "[" * depth + "]" * depth + ";\n"

        assert extract_exports(parse(source)) == {"deep"}
