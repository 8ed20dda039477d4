"""Jinja2 template registry for project scaffolding.

Provides the TemplateRegistry class which loads every ``*.tmpl`` file that is
a direct child of a templates directory, compiles them all up front, and
renders a named template into a writable text sink.  A single malformed
template fails the whole load, so no output is produced from a broken set.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
    TemplateSyntaxError,
)
from jinja2.ext import Extension

from scaffoldgen.config import TEMPLATE_SUFFIX
from scaffoldgen.errors import TemplateLoadFailure, TemplateRenderFailure

from .context import RenderContext


class TextSink(Protocol):
    def write(self, text: str, /) -> Any: ...


# ---------------------------------------------------------------------------
# Jinja2 environment
# ---------------------------------------------------------------------------


class DocumentEnvironment(Environment):
    """Environment whose ``a.b`` lookup prefers mapping keys over attributes.

    Config values are plain JSON/YAML trees, so ``Local.items`` must mean the
    ``items`` key rather than ``dict.items``.  When the key is absent the
    normal attribute lookup applies, ending in a strict undefined.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except (KeyError, TypeError):
                pass
        return super().getattr(obj, attribute)


class DotReferenceExtension(Extension):
    """Accept ``{{.Global.name}}``-style references.

    A ``.`` that starts a field reference inside a variable or block tag is
    dropped before the template is parsed, so ``{{.Global.proj}}`` reads as
    ``{{ Global.proj }}``.  String literals inside the tag, comments and
    ``{% raw %}`` sections are copied through unchanged.
    """

    # Only a dot that follows whitespace or an operator starts a reference.
    _reference = re.compile(
        r"""("(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')"""
        r"""|(?<![\w)\]}.'"])\.(?=[A-Za-z_])"""
    )

    def preprocess(self, source: str, name: str | None, filename: str | None = None) -> str:
        env = self.environment
        delimiters = {
            "bs": re.escape(env.block_start_string),
            "be": re.escape(env.block_end_string),
            "vs": re.escape(env.variable_start_string),
            "ve": re.escape(env.variable_end_string),
            "cs": re.escape(env.comment_start_string),
            "ce": re.escape(env.comment_end_string),
        }
        tag = re.compile(
            r"(?P<raw>%(bs)s[-+]?\s*raw\s*[-+]?%(be)s.*?%(bs)s[-+]?\s*endraw\s*[-+]?%(be)s)"
            r"|(?P<comment>%(cs)s.*?%(ce)s)"
            r"|(?P<open>%(vs)s|%(bs)s)(?P<body>.*?)(?P<close>%(ve)s|%(be)s)" % delimiters,
            re.DOTALL,
        )
        return tag.sub(self._rewrite_tag, source)

    def _rewrite_tag(self, match: re.Match[str]) -> str:
        if match.group("body") is None:
            return match.group(0)
        body = self._reference.sub(lambda m: m.group(1) or "", match.group("body"))
        return f"{match.group('open')}{body}{match.group('close')}"


# ---------------------------------------------------------------------------
# Template helpers
# ---------------------------------------------------------------------------


def _to_upper(value: Any) -> str:
    return str(value).upper()


def _to_lower(value: Any) -> str:
    return str(value).lower()


def _to_title(value: Any) -> str:
    """Map every character to its title case (``"go lang"`` -> ``"GO LANG"``).

    The mapping is one character to one character: characters whose title
    case expands to several (``"ß"`` -> ``"Ss"``) are kept as they are.
    """
    return "".join(_title_char(ch) for ch in str(value))


def _title_char(ch: str) -> str:
    titled = ch.title()
    return titled if len(titled) == 1 else ch


TEMPLATE_HELPERS: dict[str, Any] = {
    "ToUpper": _to_upper,
    "ToLower": _to_lower,
    "ToTitle": _to_title,
}


def _build_environment(template_dir: Path) -> Environment:
    env = DocumentEnvironment(
        loader=FileSystemLoader(str(template_dir)),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        extensions=[DotReferenceExtension],
    )
    env.globals.update(TEMPLATE_HELPERS)
    env.filters.update(TEMPLATE_HELPERS)
    return env


# ---------------------------------------------------------------------------
# TemplateRegistry
# ---------------------------------------------------------------------------


class TemplateRegistry:
    """Named set of compiled templates.

    Templates are addressed by file name including the extension
    (``readme.tmpl``).  Use :meth:`load` to build a registry from a directory.
    """

    def __init__(self, template_dir: Path, env: Environment, templates: dict[str, Template]) -> None:
        self.template_dir = template_dir
        self.env = env
        self._templates = templates

    @classmethod
    def load(cls, template_dir: str | Path) -> "TemplateRegistry":
        """Load and compile every ``*.tmpl`` file directly inside *template_dir*.

        Raises:
            TemplateLoadFailure: If the directory is missing or unreadable,
                holds no templates, or any template has a syntax error.
        """
        directory = Path(template_dir)
        if not directory.is_dir():
            raise TemplateLoadFailure(
                f"Templates directory not found: {directory}", subject=str(directory)
            )

        try:
            candidates = sorted(
                p for p in directory.iterdir() if p.name.endswith(TEMPLATE_SUFFIX) and p.is_file()
            )
        except OSError as exc:
            raise TemplateLoadFailure(
                f"Cannot read templates directory {directory}: {exc}", subject=str(directory)
            ) from exc

        if not candidates:
            raise TemplateLoadFailure(
                f"No *{TEMPLATE_SUFFIX} templates found in {directory}", subject=str(directory)
            )

        env = _build_environment(directory)
        templates: dict[str, Template] = {}
        for path in candidates:
            try:
                templates[path.name] = env.get_template(path.name)
            except TemplateSyntaxError as exc:
                raise TemplateLoadFailure(
                    f"Invalid template {path.name} (line {exc.lineno}): {exc.message}",
                    subject=path.name,
                ) from exc
            except (OSError, UnicodeDecodeError) as exc:
                raise TemplateLoadFailure(
                    f"Cannot read template {path.name}: {exc}", subject=path.name
                ) from exc

        return cls(directory, env, templates)

    # -- Lookup ------------------------------------------------------------

    def names(self) -> list[str]:
        """Return the sorted names of all loaded templates."""
        return sorted(self._templates)

    def __contains__(self, template_name: object) -> bool:
        return template_name in self._templates

    # -- Rendering ---------------------------------------------------------

    def render(
        self,
        template_name: str,
        context: RenderContext,
        sink: TextSink,
        *,
        file_name: str = "",
    ) -> None:
        """Render *template_name* with *context*, writing chunks to *sink*.

        Output is written as it is produced, so a failing render may leave
        partial content in the sink.  Errors raised by ``sink.write`` itself
        propagate unchanged for the caller to attribute to its sink.

        Raises:
            TemplateRenderFailure: If the template is not loaded or fails
                while rendering (including references to missing fields).
        """
        template = self._templates.get(template_name)
        label = file_name or template_name
        if template is None:
            loaded = ", ".join(self.names()) or "<none>"
            raise TemplateRenderFailure(
                f"Failed to populate {label}: unknown template '{template_name}'. "
                f"Loaded templates: {loaded}",
                template=template_name,
                file_name=file_name,
            )

        chunks = template.generate(**context.template_vars())
        while True:
            try:
                chunk = next(chunks, None)
            except TemplateError as exc:
                raise TemplateRenderFailure(
                    f"Failed to populate {label} from {template_name}: {exc}",
                    template=template_name,
                    file_name=file_name,
                ) from exc
            except Exception as exc:
                raise TemplateRenderFailure(
                    f"Failed to populate {label} from {template_name}: {type(exc).__name__}: {exc}",
                    template=template_name,
                    file_name=file_name,
                ) from exc
            if chunk is None:
                break
            sink.write(chunk)

