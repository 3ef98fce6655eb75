from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture()
def sample_bundle() -> dict:
    """A small valid bundle exercising variables, conditionals and options."""

    return {
        "name": "Sample Bundle",
        "description": "Scaffolds a documented sample project",
        "version": "1.0.0",
        "options": [
            {"name": "projectName", "type": "string", "description": "Project name", "required": True},
            {"name": "withTests", "type": "boolean", "description": "Add tests", "default": True},
            {"name": "workers", "type": "number", "description": "Worker count", "default": 2},
        ],
        "files": [
            {"path": "README.md", "content": "# {{projectName}}\n{% if withTests %}Run pytest.\n{% endif %}"},
            {"path": "src/{{projectName}}/__init__.py", "content": "WORKERS = {{workers}}\n"},
            {"path": "tests/test_smoke.py", "content": "def test_ok():\n    assert True\n", "condition": "withTests"},
        ],
    }
