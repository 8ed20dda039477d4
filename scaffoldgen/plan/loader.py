"""Config document loading.

The plan is read either from a named file or, when no path is given, from
standard input.  JSON is the native format; files ending in ``.yaml`` or
``.yml`` are parsed as YAML instead.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, TextIO

import yaml
from pydantic import ValidationError

from scaffoldgen.errors import ConfigError, UsageError
from scaffoldgen.plan.models import GenerationPlan

YAML_SUFFIXES = frozenset({".yaml", ".yml"})
TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class DocumentLoader(yaml.SafeLoader):
    """SafeLoader that keeps unquoted dates and timestamps as strings.

    Config values must stay JSON-compatible, so ``released: 2024-01-01``
    loads as the string ``"2024-01-01"``.
    """


DocumentLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def parse_plan(raw: str, *, source: str = "<stdin>", fmt: str = "json") -> GenerationPlan:
    """Parse config text into a ``GenerationPlan``.

    Args:
        raw: The document text.
        source: Label used in error messages (a path or ``<stdin>``).
        fmt: ``"json"`` or ``"yaml"``.

    Raises:
        ConfigError: If the text is not a well-formed document, its top
            level is not a mapping, or it does not match the plan schema.
    """
    data: Any
    if fmt == "yaml":
        try:
            data = yaml.load(raw, Loader=DocumentLoader)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {source}: {exc}", subject=source) from exc
    else:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {source}: {exc}", subject=source) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config in {source} must be a mapping at the top level, got {type(data).__name__}",
            subject=source,
        )

    try:
        return GenerationPlan.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {source}: {exc}", subject=source) from exc


def load_plan(path: str | Path | None = None, stdin: TextIO | None = None) -> GenerationPlan:
    """Load the generation plan from *path*, or from *stdin* when *path* is ``None``.

    Reading from an interactive terminal is refused: config must be piped in
    when no path is given.

    Raises:
        UsageError: No path was given and stdin is a terminal.
        ConfigError: The file cannot be read or parsed.
    """
    if path is None:
        stream = stdin if stdin is not None else sys.stdin
        if stream is None or stream.isatty():
            raise UsageError("No config given: pass --configuration or pipe a config into stdin")
        try:
            raw = stream.read()
        except OSError as exc:
            raise ConfigError(f"Failed to read config from stdin: {exc}", subject="<stdin>") from exc
        return parse_plan(raw, source="<stdin>")

    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Failed to open config {config_path}: {exc}", subject=str(config_path)
        ) from exc

    fmt = "yaml" if config_path.suffix.lower() in YAML_SUFFIXES else "json"
    return parse_plan(raw, source=str(config_path), fmt=fmt)
