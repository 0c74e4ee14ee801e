"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable

import pytest

from cleaner.audit.base import AuditOptions
from cleaner.config import CleanerSettings

MISSING_LINTER = "cleaner-test-missing-linter"


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Create a source tree under tmp_path from a {relative path: content} mapping."""

    def _make(files: dict[str, str]) -> Path:
        for relative_path, content in files.items():
            path = tmp_path / relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def settings() -> CleanerSettings:
    """Settings whose lint command cannot be started, so lint auditors see no data."""
    return CleanerSettings(lint_command=[MISSING_LINTER])


@pytest.fixture
def dry_run_options() -> AuditOptions:
    return AuditOptions(dry_run=True)


@pytest.fixture
def canonical_module() -> str:
    """A module already in canonical whitespace form."""
    return (
        "import { a } from './a.js';\n"
        "\n"
        "\n"
        "function foo() {\n"
        "    return a;\n"
        "}\n"
        "\n"
        "\n"
        "function bar() {\n"
        "    return 1;\n"
        "}\n"
    )


@pytest.fixture
def canonical_class() -> str:
    """A class already in canonical whitespace form."""
    return (
        "export class Counter {\n"
        "\n"
        "    count = 0;\n"
        "\n"
        "    increment() {\n"
        "        this.count += 1;\n"
        "    }\n"
        "\n"
        "\n"
        "    reset() {\n"
        "        this.count = 0;\n"
        "    }\n"
        "\n"
        "}\n"
    )


@pytest.fixture
def messy_module() -> str:
    """A module with a comment, an extensionless import and bad spacing."""
    return (
        "import { helper } from './helper';\n"
        "// compute things\n"
        "export function compute(x) {   \n"
        "  return helper(x);\n"
        "}\n"
        "export function other() {\n"
        "  return 1;\n"
        "}\n"
    )


@pytest.fixture
def helper_module() -> str:
    return "export function helper(x) {\n  return x;\n}\n"
