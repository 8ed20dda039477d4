"""Two-scope rendering context.

Templates see global values as ``Global.*`` and per-file values as
``Local.*``.  The scopes are never flattened into one namespace, so a key
defined in both is reachable through either name without shadowing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

_EMPTY: Mapping[str, Any] = MappingProxyType({})

GLOBAL_SCOPE = "Global"
LOCAL_SCOPE = "Local"


@dataclass(frozen=True)
class RenderContext:
    """Values exposed to one template render.

    Both mappings are references to the plan's data, not copies.
    """

    global_values: Mapping[str, Any]
    local_values: Mapping[str, Any]

    def template_vars(self) -> dict[str, Mapping[str, Any]]:
        """Return the variables handed to the template engine."""
        return {
            GLOBAL_SCOPE: MappingProxyType(self.global_values),
            LOCAL_SCOPE: MappingProxyType(self.local_values),
        }


def build_context(
    global_values: Mapping[str, Any] | None,
    local_values: Mapping[str, Any] | None,
) -> RenderContext:
    """Build the context for a single file entry. Missing scopes are empty."""
    return RenderContext(
        global_values=global_values if global_values is not None else _EMPTY,
        local_values=local_values if local_values is not None else _EMPTY,
    )
