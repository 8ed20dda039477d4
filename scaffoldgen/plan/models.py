"""Pydantic v2 models for the generation plan.

The plan is the in-memory form of the config document: global values shared
by every file, the ordered file entries to render, and the ordered commands
to run afterwards.  All models are frozen; nothing downstream mutates a plan
once it has been parsed.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


class FileEntry(BaseModel):
    """One declared output artifact."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Base name of the generated file")
    relative_path: str = Field(
        default="",
        alias="path",
        description="Directory under the generation root; empty means the root itself",
    )
    template: str = Field(..., min_length=1, description="Name of a loaded template, e.g. 'readme.tmpl'")
    local_values: dict[str, JsonValue] = Field(
        default_factory=dict,
        alias="local",
        description="Values visible to this file's template as Local.*",
    )

    @field_validator("relative_path", mode="before")
    @classmethod
    def _null_path(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("local_values", mode="before")
    @classmethod
    def _null_local(cls, value: Any) -> Any:
        return {} if value is None else value


class CommandEntry(BaseModel):
    """A post-generation command: executable plus arguments."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Executable name or path")
    args: tuple[str, ...] = Field(default=(), description="Arguments passed verbatim")

    @field_validator("args", mode="before")
    @classmethod
    def _null_args(cls, value: Any) -> Any:
        return () if value is None else value

    def argv(self) -> list[str]:
        """Return the full argument vector, executable first."""
        return [self.name, *self.args]

    def display(self) -> str:
        return " ".join(self.argv())


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


class GenerationPlan(BaseModel):
    """Parsed config document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    global_values: dict[str, JsonValue] = Field(
        default_factory=dict,
        alias="global",
        description="Values shared by every file, visible as Global.*",
    )
    files: tuple[FileEntry, ...] = Field(default=(), description="Files in render order")
    commands: tuple[CommandEntry, ...] = Field(
        default=(), description="Commands run after every file is written"
    )

    @field_validator("global_values", mode="before")
    @classmethod
    def _null_global(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("files", "commands", mode="before")
    @classmethod
    def _null_sequence(cls, value: Any) -> Any:
        return () if value is None else value

    @property
    def template_names(self) -> list[str]:
        """Distinct template names referenced by the plan, in first-use order."""
        seen: dict[str, None] = {}
        for entry in self.files:
            seen.setdefault(entry.template, None)
        return list(seen)
