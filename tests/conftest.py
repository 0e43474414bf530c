"""Shared fixtures: on-disk sample projects and a scripted tool runner."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from code_score.api import build_context
from code_score.core.config import ScoreConfig
from code_score.core.tools import ToolOutput, ToolRunner
from code_score.errors import ExternalToolUnavailable
from code_score.model.context import ProjectContext, ScoreOptions


class FakeToolRunner(ToolRunner):
    """Tool runner that answers from a ``{tool name: stdout}`` table.

    Any tool not in the table raises ``ExternalToolUnavailable``, the same
    way a missing executable does.
    """

    def __init__(self, outputs: dict[str, str] | None = None) -> None:
        super().__init__(enabled=True)
        self.outputs = dict(outputs or {})
        self.calls: list[tuple[str, ...]] = []

    def run(self, command, *, cwd):
        self.calls.append(tuple(command))
        tool = Path(command[0]).name
        if tool not in self.outputs:
            raise ExternalToolUnavailable(tool, "executable not found on PATH")
        return ToolOutput(command=tuple(command), returncode=0, stdout=self.outputs[tool])


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative path: content}`` under *root*, dedenting each file."""
    for name, content in files.items():
        p = root / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return root


NODE_FILES = {
    "package.json": json.dumps(
        {
            "name": "shop-frontend",
            "version": "1.2.0",
            "description": "Storefront UI",
            "license": "MIT",
            "repository": "https://example.com/shop.git",
            "scripts": {"start": "vite", "build": "vite build", "test": "vitest run", "lint": "eslint ."},
            "dependencies": {"react": "^18.2.0", "react-dom": "^18.2.0", "zustand": "^4.0.0"},
            "devDependencies": {"vite": "^5.0.0", "vitest": "^1.0.0", "eslint": "^8.0.0", "prettier": "^3.0.0"},
        },
        indent=2,
    ),
    "package-lock.json": "{}",
    "README.md": """
        # Shop frontend

        ## Installation

        npm install

        ## Usage

        npm start
    """,
    ".gitignore": "node_modules\n.env\n",
    ".env.example": "API_URL=\n",
    "src/components/ProductCard.jsx": """
        import React, { useMemo } from 'react';

        /** Renders one product tile. */
        export function ProductCard({ product }) {
          const price = useMemo(() => product.price.toFixed(2), [product]);
          return <div>{price}</div>;
        }
    """,
    "src/services/api.js": """
        /** Fetch every product page in parallel. */
        export async function loadAll(ids) {
          return Promise.all(ids.map((id) => fetch(`/api/${id}`)));
        }
    """,
    "src/utils/format.js": """
        export const format = (value) => (value ? String(value) : '');
    """,
    "src/App.jsx": """
        import React, { lazy } from 'react';
        const Cart = lazy(() => import('./components/Cart'));
        export default function App() {
          return <Cart />;
        }
    """,
    "tests/format.test.js": """
        import { format } from '../src/utils/format';
        test('formats', () => expect(format(1)).toBe('1'));
    """,
}

PYTHON_FILES = {
    "pyproject.toml": """
        [build-system]
        requires = ["setuptools>=68"]
        build-backend = "setuptools.build_meta"

        [project]
        name = "inventory"
        version = "0.3.0"
        description = "Stock bookkeeping"
        license = "MIT"
        requires-python = ">=3.11"
        dependencies = ["requests>=2.31", "pydantic>=2"]

        [project.optional-dependencies]
        test = ["pytest>=7"]

        [tool.pytest.ini_options]
        testpaths = ["tests"]
    """,
    "README.md": """
        # inventory

        ## Installation

        pip install -e .
    """,
    ".gitignore": ".env\n__pycache__/\n",
    "src/inventory/__init__.py": '"""Stock bookkeeping."""\n',
    "src/inventory/stock.py": '''
        """Stock levels."""

        import os

        TOKEN = os.environ.get("INVENTORY_TOKEN", "")


        def level(item: str) -> int:
            """Current stock for *item*."""
            try:
                return int(item)
            except ValueError:
                return 0
    ''',
    "src/inventory/models/item.py": '''
        """Item model."""


        def describe(name: str) -> str:
            return name.title()
    ''',
    "tests/test_stock.py": """
        from inventory.stock import level


        def test_level():
            assert level("3") == 3
    """,
}


@pytest.fixture
def node_project(tmp_path: Path) -> Path:
    return write_tree(tmp_path / "shop", NODE_FILES)


@pytest.fixture
def python_project(tmp_path: Path) -> Path:
    return write_tree(tmp_path / "inventory", PYTHON_FILES)


@pytest.fixture
def empty_project(tmp_path: Path) -> Path:
    root = tmp_path / "empty"
    root.mkdir()
    return root


@pytest.fixture
def offline_config() -> ScoreConfig:
    return ScoreConfig(external_tools=False)


@pytest.fixture
def make_context(offline_config: ScoreConfig) -> Callable[..., ProjectContext]:
    """Build a ``ProjectContext`` for *root* the way the facade does."""

    def _make(root: Path, **options) -> ProjectContext:
        return build_context(root, offline_config, ScoreOptions(**options))

    return _make


@pytest.fixture
def fake_tools() -> Callable[..., FakeToolRunner]:
    return FakeToolRunner
