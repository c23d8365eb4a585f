"""
Profile descriptor for the viewbind generator.

Frozen dataclass with the marker name and the naming/emission conventions
shared by the generator and the runtime resolver.
Not user-selectable in v0 — use ``GeneratorProfile.v0()``.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GeneratorProfile:
    """viewbind v0 generation profile."""

    profile_id: str
    parser_name: str = "tree-sitter-python"
    marker_name: str = "bind_view"
    marker_keyword: str = "view_id"
    binder_suffix: str = "Binding"
    module_suffix: str = "_binding"
    lookup_method: str = "find_by_identifier"
    target_param: str = "target"

    @classmethod
    def v0(cls) -> GeneratorProfile:
        """The single supported profile for viewbind v0."""
        return cls(profile_id="python-treesitter-v0")


DEFAULT_PROFILE = GeneratorProfile.v0()
