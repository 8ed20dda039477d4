"""Error taxonomy for scaffoldgen.

Every error raised by the generation pipeline derives from
``GenerationError`` so the CLI can report it uniformly.  Each subclass carries
the entity it is about (file name, directory path, command) as attributes in
addition to the human-readable message.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for all fatal scaffoldgen errors."""

    def __init__(self, message: str, subject: str = "") -> None:
        self.subject = subject
        super().__init__(message)


class UsageError(GenerationError):
    """Raised when CLI inputs are missing or mutually exclusive."""


class ConfigError(GenerationError):
    """Raised when the config document cannot be opened or parsed."""


class TemplateLoadFailure(GenerationError):
    """Raised when the templates directory or a template in it is unusable."""


class TemplateRenderFailure(GenerationError):
    """Raised when a template is unknown or fails while rendering."""

    def __init__(self, message: str, template: str = "", file_name: str = "") -> None:
        self.template = template
        self.file_name = file_name
        super().__init__(message, subject=file_name or template)


class FilesystemFailure(GenerationError):
    """Raised when an output directory or file cannot be created."""

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(message, subject=path)


class CommandFailure(GenerationError):
    """Raised when a post-generation command fails to start or exits non-zero."""

    def __init__(
        self,
        message: str,
        command: str = "",
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(message, subject=command)
