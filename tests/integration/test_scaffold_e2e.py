"""Integration tests for the config-then-scaffold pipeline.

These tests run ``python -m scaffoldgen`` as a subprocess against a small
but realistic project layout (README, Go sources, Makefile) and verify the
generated tree, the stream output, and post-generation commands.

No external services are required.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest
import yaml

from conftest import write_templates


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[2]

PROJECT_TEMPLATES: dict[str, str] = {
    "readme.tmpl": "# {{.Global.proj}}\n\n{{ Global.description }}\n",
    "main.tmpl": (
        "package main\n"
        "\n"
        'import "fmt"\n'
        "\n"
        "func main() {\n"
        '\tfmt.Println("{{ .Local.greeting | ToUpper }} from {{ .Global.proj }}")\n'
        "}\n"
    ),
    "pkg.tmpl": "package {{ .Local.name | ToLower }}\n",
    "makefile.tmpl": (
        "{% for target in Local.targets %}\n"
        "{{ target }}:\n"
        "\tgo {{ target }} ./...\n"
        "{% endfor %}\n"
    ),
}


def _project_config() -> dict[str, Any]:
    return {
        "global": {"proj": "demo", "description": "A generated demo project."},
        "files": [
            {"name": "README.md", "path": "", "template": "readme.tmpl"},
            {"name": "main.go", "path": "cmd/demo", "template": "main.tmpl", "local": {"greeting": "hello"}},
            {"name": "store.go", "path": "internal/store", "template": "pkg.tmpl", "local": {"name": "Store"}},
            {"name": "Makefile", "template": "makefile.tmpl", "local": {"targets": ["build", "test"]}},
        ],
        "commands": [
            {
                "name": sys.executable,
                "args": [
                    "-c",
                    "import os; print(sorted(os.path.join(d, f) for d, _, fs in os.walk('.') for f in fs))",
                ],
            }
        ],
    }


def _cli_env() -> dict[str, str]:
    env = dict(os.environ)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = str(REPO_ROOT) + (os.pathsep + existing if existing else "")
    return env


def _run_cli(*args: str, stdin: str | None = None, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "scaffoldgen", *args],
        input=stdin,
        capture_output=True,
        text=True,
        cwd=str(cwd) if cwd else None,
        env=_cli_env(),
        timeout=60,
    )


@pytest.fixture
def project_templates(tmp_path: Path) -> Path:
    return write_templates(tmp_path / "templates", PROJECT_TEMPLATES)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.integration
class TestScaffoldProject:
    def test_yaml_config_to_file_tree(self, project_templates: Path, tmp_path: Path) -> None:
        config_path = tmp_path / "scaffold.yaml"
        config_path.write_text(yaml.safe_dump(_project_config()), encoding="utf-8")
        out = tmp_path / "out"

        proc = _run_cli("-c", str(config_path), "-t", str(project_templates), "-o", str(out), "-p", "demo")
        assert proc.returncode == 0, proc.stderr

        root = out / "demo"
        assert (root / "README.md").read_text(encoding="utf-8") == "# demo\n\nA generated demo project.\n"
        assert 'fmt.Println("HELLO from demo")' in (root / "cmd" / "demo" / "main.go").read_text(encoding="utf-8")
        assert (root / "internal" / "store" / "store.go").read_text(encoding="utf-8") == "package store\n"
        assert (root / "Makefile").read_text(encoding="utf-8") == (
            "build:\n\tgo build ./...\ntest:\n\tgo test ./...\n"
        )
        assert proc.stdout == ""

    def test_stream_mode_from_stdin(self, project_templates: Path) -> None:
        config = _project_config()
        config["commands"] = []
        proc = _run_cli("-t", str(project_templates), "--separator", stdin=json.dumps(config))
        assert proc.returncode == 0, proc.stderr

        out = proc.stdout
        names = ["README.md", "main.go", "store.go", "Makefile"]
        positions = [out.index(f"---{name}") for name in names]
        assert positions == sorted(positions)
        assert out.startswith("---README.md# demo\n")

    def test_concrete_readme_scenario(self, tmp_path: Path) -> None:
        templates = write_templates(tmp_path / "tpl", {"readme.tmpl": "# {{.Global.proj}}"})
        config = {
            "global": {"proj": "demo"},
            "files": [{"name": "README.md", "path": "", "template": "readme.tmpl", "local": {}}],
        }
        out = tmp_path / "out"

        tree = _run_cli("-t", str(templates), "-o", str(out), stdin=json.dumps(config))
        assert tree.returncode == 0, tree.stderr
        assert (out / "README.md").read_text(encoding="utf-8") == "# demo"

        stream = _run_cli("-t", str(templates), "-s", stdin=json.dumps(config))
        assert stream.returncode == 0, stream.stderr
        assert stream.stdout == "---README.md# demo"

    def test_templates_default_to_working_directory(self, project_templates: Path) -> None:
        config = {"global": {"proj": "cwd"}, "files": [{"name": "R", "template": "readme.tmpl"}]}
        config["global"]["description"] = "d"
        proc = _run_cli(stdin=json.dumps(config), cwd=project_templates)
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout == "# cwd\n\nd\n"

    def test_verbose_run_reports_summary(self, project_templates: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        proc = _run_cli("-t", str(project_templates), "-o", str(out), "-v", stdin=json.dumps(_project_config()))
        assert proc.returncode == 0, proc.stderr
        assert "Generated 4 file(s)" in proc.stderr

    def test_fail_fast_on_render_error(self, project_templates: Path, tmp_path: Path) -> None:
        config = {
            "global": {"proj": "x", "description": "d"},
            "files": [
                {"name": "main.go", "template": "main.tmpl", "local": {}},
                {"name": "README.md", "template": "readme.tmpl"},
            ],
        }
        out = tmp_path / "out"
        proc = _run_cli("-t", str(project_templates), "-o", str(out), stdin=json.dumps(config))
        assert proc.returncode == 1
        assert "main.go" in proc.stderr
        assert not (out / "README.md").exists()

    def test_separator_with_output_is_usage_error(self, project_templates: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        proc = _run_cli("-t", str(project_templates), "-o", str(out), "-s", stdin="{}")
        assert proc.returncode == 2
        assert not out.exists()
