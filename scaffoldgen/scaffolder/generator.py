"""Main scaffolding orchestrator.

Takes a ``Config`` and a ``GenerationPlan`` and runs the generation stages
in order: validate usage, load templates, materialize every file entry, then
run the post-generation commands in the generation root.  Any failure stops
the run; nothing is retried.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from scaffoldgen.config import Config
from scaffoldgen.plan.loader import load_plan
from scaffoldgen.plan.models import GenerationPlan
from scaffoldgen.runner import CommandResult, CommandRunner

from .materializer import FileMaterializer
from .templates import TemplateRegistry


@dataclass
class GenerationResult:
    """Summary of a completed run."""

    artifacts: list[Path] = field(default_factory=list)
    streamed: list[str] = field(default_factory=list)
    commands_run: list[CommandResult] = field(default_factory=list)
    duration: float = 0.0

    @property
    def file_count(self) -> int:
        return len(self.artifacts) + len(self.streamed)


class ProjectGenerator:
    """Drives one generation run.

    Args:
        config: Run settings.  Passed explicitly to every stage.
        cancel_event: Cancellation token handed to the command runner.
        stream: Output stream for stream mode (defaults to stdout).
    """

    def __init__(
        self,
        config: Config,
        cancel_event: asyncio.Event | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.config = config
        self.cancel_event = cancel_event
        self.stream = stream

    # -- Public API --------------------------------------------------------

    async def generate(self, plan: GenerationPlan | None = None) -> GenerationResult:
        """Run the whole pipeline.

        Args:
            plan: Pre-parsed plan.  When omitted it is loaded from
                ``config.config_path`` (or standard input).

        Returns:
            A ``GenerationResult`` describing what was written and run.

        Raises:
            GenerationError: Any subclass, on the first failure.
        """
        start = time.monotonic()
        self.config.validate_usage()

        if plan is None:
            plan = load_plan(self.config.config_path)

        registry = TemplateRegistry.load(self.config.resolved_templates_dir())
        materializer = FileMaterializer(registry, self.config, stream=self.stream)

        result = GenerationResult()
        produced = materializer.materialize(plan)
        if self.config.stream_mode:
            result.streamed = produced
        else:
            result.artifacts = produced

        if plan.commands:
            runner = CommandRunner(
                cwd=self.config.generation_root,
                cancel_event=self.cancel_event,
                verbose=self.config.verbose,
            )
            result.commands_run = await runner.run_all(plan.commands)

        result.duration = time.monotonic() - start
        return result
