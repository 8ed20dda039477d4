"""scaffoldgen run configuration.

Centralised, typed settings for a single generation run.  The CLI builds one
``Config`` and passes it explicitly to the materializer and command runner;
no component reads settings from module-level state.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from scaffoldgen.errors import UsageError

TEMPLATE_SUFFIX = ".tmpl"


class Config(BaseModel):
    """Settings for one scaffoldgen run.

    ``output_dir`` selects the output mode: when it is ``None`` every file is
    rendered into one stream (stream mode), otherwise files are written under
    it (file-tree mode).
    """

    config_path: Path | None = Field(
        default=None, description="Config document path; None reads standard input"
    )
    templates_dir: Path | None = Field(
        default=None, description="Directory holding *.tmpl files; None means the working directory"
    )
    output_dir: Path | None = Field(default=None, description="Output root; None selects stream mode")
    separator: bool = Field(default=False, description="Emit a separator before each streamed file")
    project_name: str | None = Field(
        default=None, description="Optional segment inserted between output root and each file path"
    )
    verbose: bool = Field(default=False)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def stream_mode(self) -> bool:
        """``True`` when files are rendered to a stream rather than a directory."""
        return self.output_dir is None

    @property
    def generation_root(self) -> Path | None:
        """Directory that file paths are relative to and commands run in.

        ``None`` in stream mode.
        """
        if self.output_dir is None:
            return None
        if self.project_name:
            return self.output_dir / self.project_name
        return self.output_dir

    def resolved_templates_dir(self) -> Path:
        return self.templates_dir if self.templates_dir is not None else Path.cwd()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_usage(self) -> None:
        """Reject mutually exclusive settings before any I/O happens.

        Raises:
            UsageError: If the separator toggle is combined with an output root.
        """
        if self.separator and self.output_dir is not None:
            raise UsageError(
                "Cannot use the stream separator together with an output directory",
                subject=str(self.output_dir),
            )
        if self.project_name is not None and not self.project_name.strip():
            raise UsageError("Project name must not be empty")

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            SCAFFOLDGEN_CONFIG, SCAFFOLDGEN_TEMPLATES, SCAFFOLDGEN_OUTPUT,
            SCAFFOLDGEN_PROJECT_NAME.
        """
        config_path = os.environ.get("SCAFFOLDGEN_CONFIG")
        templates_dir = os.environ.get("SCAFFOLDGEN_TEMPLATES")
        output_dir = os.environ.get("SCAFFOLDGEN_OUTPUT")

        return cls(
            config_path=Path(config_path) if config_path else None,
            templates_dir=Path(templates_dir) if templates_dir else None,
            output_dir=Path(output_dir) if output_dir else None,
            project_name=os.environ.get("SCAFFOLDGEN_PROJECT_NAME") or None,
        )
