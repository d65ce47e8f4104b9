# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures: small JavaScript/TypeScript projects on disk."""

from pathlib import Path
from typing import Callable, Dict

import pytest

from esfinder.config import Config
from esfinder.context import AnalysisContext


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Return a helper writing {relative path: source} under tmp_path."""

    def _write(files: Dict[str, str]) -> Path:
        for rel_path, source in files.items():
            path = tmp_path / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def context() -> AnalysisContext:
    """Analysis context with default configuration and a small thread pool."""
    return AnalysisContext(config=Config.from_dict({"max_workers": 4}))


@pytest.fixture
def sample_project(write_files) -> Path:
    """Create a representative TypeScript project.

    Layout:
        src/index.ts            imports app and the utils directory
        src/app.tsx             imports Button by name, lazy-loads ./pages/home
        src/utils/index.ts      re-exports from ./math, exports helpers
        src/utils/math.ts       arithmetic helpers
        src/components/Button.tsx
        src/pages/home.js       imports api by default
        src/api.ts              default export plus named constant
        src/unused.ts           imported by nobody
        src/cycle/a.ts <-> src/cycle/b.ts

    Returns:
        Path to the project root directory
    """
    return write_files(
        {
            "src/index.ts": (
                "import { App } from './app';\n"
                "import { formatName } from './utils';\n"
                "import 'reflect-metadata';\n"
                "export const main = () => App(formatName('x'));\n"
            ),
            "src/app.tsx": (
                "import { Button } from './components/Button';\n"
                "export function App(name: string) {\n"
                "  const Home = import('./pages/home');\n"
                "  return <Button label={name} />;\n"
                "}\n"
            ),
            "src/utils/index.ts": (
                "export { add } from './math';\n"
                "export function formatName(name: string): string {\n"
                "  return name.trim();\n"
                "}\n"
                "export const VERSION = '1.0';\n"
            ),
            "src/utils/math.ts": (
                "export function add(a: number, b: number) { return a + b; }\n"
                "export const PI = 3.14;\n"
            ),
            "src/components/Button.tsx": (
                "export interface ButtonProps { label: string }\n"
                "export function Button(props: ButtonProps) {\n"
                "  return <button>{props.label}</button>;\n"
                "}\n"
                "export default Button;\n"
            ),
            "src/pages/home.js": (
                "import api from '../api';\n"
                "export default function Home() { return api; }\n"
            ),
            "src/api.ts": (
                "export const BASE_URL = '/api';\n"
                "const api = { get: () => BASE_URL };\n"
                "export default api;\n"
            ),
            "src/unused.ts": "export const orphan = 1;\nexport default orphan;\n",
            "src/cycle/a.ts": "import { b } from './b';\nexport const a = () => b();\n",
            "src/cycle/b.ts": "import { a } from './a';\nexport const b = () => a();\n",
            "node_modules/lib/index.js": "export const vendored = 1;\n",
        }
    )
