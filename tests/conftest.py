"""Pytest configuration and shared fixtures."""

import pytest

from repograph.context.repo_mapper import RepositoryMapper
from repograph.core.config import RepographConfig


@pytest.fixture
def config():
    """Default configuration."""
    return RepographConfig()


@pytest.fixture
def mapper(config):
    """Repository mapper with default configuration."""
    return RepositoryMapper(config)


@pytest.fixture
def example_batch():
    """Two TypeScript files: a.ts loads b.ts and calls its exported function."""
    return [
        {"path": "a.ts", "content": "import './b'; function f(){ g(); }"},
        {"path": "b.ts", "content": "export function g(){}"},
    ]


@pytest.fixture
def cycle_batch():
    """Three JavaScript files importing each other in a ring a -> b -> c -> a."""
    return [
        {"path": "src/a.js", "content": "import { b } from './b';\nexport const a = () => b();\n"},
        {"path": "src/b.js", "content": "import { c } from './c';\nexport const b = () => c();\n"},
        {"path": "src/c.js", "content": "import { a } from './a';\nexport const c = () => a();\n"},
    ]


@pytest.fixture
def chain_batch():
    """core.ts is imported by service.ts, which is imported by app.ts."""
    return [
        {
            "path": "src/core.ts",
            "content": "export function compute(x: number) {\n  return x * 2;\n}\n",
        },
        {
            "path": "src/service.ts",
            "content": (
                "import { compute } from './core';\n"
                "export function run(value: number) {\n"
                "  return compute(value);\n"
                "}\n"
            ),
        },
        {
            "path": "src/app.ts",
            "content": (
                "import { run } from './service';\n"
                "export function main() {\n"
                "  return run(21);\n"
                "}\n"
            ),
        },
    ]


@pytest.fixture
def python_batch():
    """Small Python package with relative and absolute imports."""
    return [
        {"path": "pkg/__init__.py", "content": ""},
        {
            "path": "pkg/models.py",
            "content": (
                "class BaseModel:\n"
                "    def save(self):\n"
                "        return True\n"
                "\n"
                "\n"
                "class User(BaseModel):\n"
                "    def __init__(self, name):\n"
                "        self.name = name\n"
            ),
        },
        {
            "path": "pkg/service.py",
            "content": (
                "from .models import User\n"
                "\n"
                "\n"
                "def create_user(name):\n"
                "    user = User(name)\n"
                "    user.save()\n"
                "    return user\n"
            ),
        },
        {
            "path": "app.py",
            "content": (
                "from pkg.service import create_user\n"
                "\n"
                "\n"
                "def main():\n"
                "    return create_user('admin')\n"
            ),
        },
    ]
