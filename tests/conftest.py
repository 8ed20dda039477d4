"""Shared pytest fixtures for the scaffoldgen test suite.

Provides reusable fixtures for:
- Temporary templates directories with a handful of ``*.tmpl`` files
- Sample config documents (as dicts and as files on disk)
- Output directories for file-tree mode
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from scaffoldgen.plan.models import GenerationPlan


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

SAMPLE_TEMPLATES: dict[str, str] = {
    "readme.tmpl": "# {{.Global.proj}}",
    "main.tmpl": (
        "package {{ Local.package }}\n"
        "\n"
        "// {{ Global.proj | ToUpper }} v{{ Global.version }}\n"
    ),
    "scopes.tmpl": "global={{ Global.name }} local={{ Local.name }}",
    "strict.tmpl": "value={{ Local.required }}",
    "list.tmpl": (
        "{% for dep in Local.deps %}\n"
        "- {{ dep }}\n"
        "{% endfor %}\n"
    ),
}


def write_templates(directory: Path, templates: dict[str, str]) -> Path:
    """Write *templates* (name -> source) into *directory* and return it."""
    directory.mkdir(parents=True, exist_ok=True)
    for name, source in templates.items():
        (directory / name).write_text(source, encoding="utf-8")
    return directory


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Temporary templates directory populated with SAMPLE_TEMPLATES."""
    return write_templates(tmp_path / "templates", SAMPLE_TEMPLATES)


# ---------------------------------------------------------------------------
# Config documents
# ---------------------------------------------------------------------------


@pytest.fixture
def demo_config_data() -> dict[str, Any]:
    """The README scenario: one file rendered from readme.tmpl."""
    return {
        "global": {"proj": "demo"},
        "files": [
            {"name": "README.md", "path": "", "template": "readme.tmpl", "local": {}},
        ],
    }


@pytest.fixture
def demo_plan(demo_config_data: dict[str, Any]) -> GenerationPlan:
    return GenerationPlan.model_validate(demo_config_data)


@pytest.fixture
def write_config(tmp_path: Path):
    """Factory fixture: write a config dict to ``tmp_path/<name>`` as JSON."""

    def _write(data: dict[str, Any], name: str = "scaffold.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Not-yet-existing output root (the materializer must create it)."""
    return tmp_path / "out"
