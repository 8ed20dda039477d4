"""Output dispatch for rendered files.

The FileMaterializer takes the file entries of a plan, in order, and renders
each into its sink.  The sink is either one shared text stream (stream mode)
or a file under the generation root (file-tree mode).  The mode is fixed for
the whole run by ``Config.output_dir``.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TextIO

from rich.markup import escape

from scaffoldgen.config import Config
from scaffoldgen.errors import FilesystemFailure, TemplateRenderFailure
from scaffoldgen.plan.models import FileEntry, GenerationPlan
from scaffoldgen.utils import console

from .context import build_context
from .templates import TemplateRegistry

DIR_MODE = 0o755
SEPARATOR_FORMAT = "---{}"
STREAM_LABEL = "<stdout>"


def make_dirs(path: Path, mode: int = DIR_MODE) -> Path:
    """Create *path* and any missing ancestors, each with *mode*.

    Unlike ``Path.mkdir(parents=True)`` the mode applies to every directory
    created, not only the leaf.  The process umask still applies.

    Raises:
        FilesystemFailure: If a directory cannot be created or *path* exists
            and is not a directory.
    """
    missing: list[Path] = []
    current = path
    while not current.exists() and current != current.parent:
        missing.append(current)
        current = current.parent

    try:
        for directory in reversed(missing):
            directory.mkdir(mode=mode, exist_ok=True)
        if not path.is_dir():
            raise NotADirectoryError(f"Not a directory: {path}")
    except OSError as exc:
        raise FilesystemFailure(
            f"Failed to create {path} directory: {exc}", path=str(path)
        ) from exc
    return path


class FileMaterializer:
    """Resolves sinks for file entries and drives the template registry.

    Args:
        registry: Loaded templates.
        config: Run settings; ``output_dir`` selects the output mode.
        stream: Text stream used in stream mode.  Defaults to ``sys.stdout``.
    """

    def __init__(
        self,
        registry: TemplateRegistry,
        config: Config,
        stream: TextIO | None = None,
    ) -> None:
        self.registry = registry
        self.config = config
        self.stream = stream if stream is not None else sys.stdout

    # -- Public API --------------------------------------------------------

    def prepare(self) -> Path | None:
        """Create the generation root before any entry is processed.

        Returns the generation root, or ``None`` in stream mode.
        """
        root = self.config.generation_root
        if root is None:
            return None
        return make_dirs(root)

    def materialize(self, plan: GenerationPlan) -> list[Path] | list[str]:
        """Render every file entry of *plan* in declaration order.

        Returns the written paths in file-tree mode, or the streamed file
        names in stream mode.  Every referenced template is checked before
        anything is written; after that the first failure aborts the
        remaining entries.
        """
        self.check_templates(plan)
        if self.config.stream_mode:
            return self.write_stream(plan)
        return self.write_tree(plan)

    def check_templates(self, plan: GenerationPlan) -> None:
        """Fail if any file entry names a template that is not loaded.

        Raises:
            TemplateRenderFailure: Naming the first entry that uses a missing
                template.
        """
        missing = [name for name in plan.template_names if name not in self.registry]
        if not missing:
            return
        entry = next(e for e in plan.files if e.template == missing[0])
        loaded = ", ".join(self.registry.names())
        raise TemplateRenderFailure(
            f"Failed to populate {entry.name}: unknown template '{entry.template}'. "
            f"Loaded templates: {loaded}",
            template=entry.template,
            file_name=entry.name,
        )

    def write_stream(self, plan: GenerationPlan) -> list[str]:
        """Render all entries into the stream, optionally separated by name.

        Raises:
            FilesystemFailure: If the stream cannot be written, for example
                because the reading end of a pipe was closed.
        """
        streamed: list[str] = []
        try:
            for entry in plan.files:
                if self.config.separator:
                    self.stream.write(SEPARATOR_FORMAT.format(entry.name))
                self._render(entry, plan.global_values, self.stream)
                streamed.append(entry.name)
            self.stream.flush()
        except (OSError, UnicodeEncodeError) as exc:
            raise FilesystemFailure(
                f"Failed to write to {STREAM_LABEL}: {exc}", path=STREAM_LABEL
            ) from exc
        return streamed

    def write_tree(self, plan: GenerationPlan) -> list[Path]:
        """Write every entry to its file under the generation root."""
        self.prepare()
        written: list[Path] = []
        for entry in plan.files:
            written.append(self.write_file(entry, plan.global_values))
        return written

    def write_file(self, entry: FileEntry, global_values: Mapping[str, Any]) -> Path:
        """Create the entry's directory and file, then render into it.

        An existing file at the target path is truncated and overwritten.
        """
        target = self.target_path(entry)
        make_dirs(target.parent)

        try:
            handle = target.open("w", encoding="utf-8", newline="")
        except OSError as exc:
            raise FilesystemFailure(
                f"Failed to create {entry.name} file at {target}: {exc}", path=str(target)
            ) from exc

        try:
            with handle:
                self._render(entry, global_values, handle)
        except (OSError, UnicodeEncodeError) as exc:
            raise FilesystemFailure(
                f"Failed to write {entry.name} file at {target}: {exc}", path=str(target)
            ) from exc

        if self.config.verbose:
            console.print(f"  [dim]wrote {escape(str(target))}[/dim]")
        return target

    def target_path(self, entry: FileEntry) -> Path:
        """Return ``<generation root>/<entry path>/<entry name>``.

        A leading ``/`` in the entry path is ignored; paths are always joined
        under the root.
        """
        root = self.config.generation_root
        if root is None:
            raise ValueError("target_path is only defined in file-tree mode")
        return root / entry.relative_path.lstrip("/") / entry.name

    # -- Internal ----------------------------------------------------------

    def _render(self, entry: FileEntry, global_values: Mapping[str, Any], sink: TextIO) -> None:
        context = build_context(global_values, entry.local_values)
        self.registry.render(entry.template, context, sink, file_name=entry.name)
