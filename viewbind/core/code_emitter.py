"""
Code emitter — synthesize one binder module per BindingSpec.

Rendered layout (fixed; byte-identical for identical specs)::

    # Generated by viewbind v0. Do not edit.
    # owner: app.screens.MainScreen
    from typing import cast

    from viewbind.runtime.registry import register_binder

    from app.screens import MainScreen


    class MainScreenBinding:
        def __init__(self, target: MainScreen) -> None:
            target.content_view = cast("TextView", target.find_by_identifier(100))


    register_binder(MainScreen, MainScreenBinding, (
        ("content_view", 100),
    ))

No timestamps, absolute paths or environment details are written.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from viewbind import GENERATOR_VERSION
from viewbind.core.normalizer import raw_hash
from viewbind.core.spec_builder import BindingSpec
from viewbind.core.symbol_scanner import AnnotatedField
from viewbind.errors import EmitError
from viewbind.policy.profile import DEFAULT_PROFILE, GeneratorProfile

logger = logging.getLogger(__name__)

GENERATED_MARKER = "# Generated by viewbind"
GENERATED_HEADER = f"{GENERATED_MARKER} {GENERATOR_VERSION}. Do not edit."


@dataclass(frozen=True)
class GeneratedUnit:
    """Source text of one binder module."""
    module: str           # dotted binder module name
    path: str             # relative POSIX path, e.g. app/main_screen_binding.py
    source: str
    content_hash: str     # sha256 of source
    spec: BindingSpec


@dataclass(frozen=True)
class EmitResult:
    unit: GeneratedUnit
    changed: bool         # sink content differs from what was there before


def is_generated_source(text: str) -> bool:
    """True when *text* is a binder module written by this generator."""
    return text.startswith(GENERATED_MARKER)


# ── Rendering ────────────────────────────────────────────────────────────────

def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _assignment(f: AnnotatedField, profile: GeneratorProfile) -> str:
    target = profile.target_param
    lookup = f"{target}.{profile.lookup_method}({f.view_id})"
    if f.field_type is not None:
        lookup = f"cast({_quote(f.field_type)}, {lookup})"
    return f"{target}.{f.name} = {lookup}"


def render_unit(spec: BindingSpec, profile: GeneratorProfile | None = None) -> GeneratedUnit:
    """Render *spec* into a GeneratedUnit without touching any sink."""
    if profile is None:
        profile = DEFAULT_PROFILE

    lines: List[str] = [
        GENERATED_HEADER,
        f"# owner: {spec.owner_qualname}",
    ]
    if any(f.field_type is not None for f in spec.fields):
        lines += ["from typing import cast", ""]
    lines += [
        "from viewbind.runtime.registry import register_binder",
        "",
        f"from {spec.owner_module} import {spec.owner_name}",
        "",
        "",
        f"class {spec.binder_name}:",
        f"    def __init__(self, {profile.target_param}: {spec.owner_name}) -> None:",
    ]
    lines += [f"        {_assignment(f, profile)}" for f in spec.fields]
    lines += [
        "",
        "",
        f"register_binder({spec.owner_name}, {spec.binder_name}, (",
    ]
    lines += [f"    ({_quote(f.name)}, {f.view_id})," for f in spec.fields]
    lines.append("))")

    source = "\n".join(lines) + "\n"
    return GeneratedUnit(
        module=spec.binder_module,
        path=spec.unit_path,
        source=source,
        content_hash=raw_hash(source.encode("utf-8")),
        spec=spec,
    )


# ── Emitter ──────────────────────────────────────────────────────────────────

class CodeEmitter:
    """Render specs and hand each unit to an explicitly supplied sink."""

    def __init__(self, sink, profile: GeneratorProfile | None = None):
        self._sink = sink
        self._profile = profile or DEFAULT_PROFILE

    def emit(self, spec: BindingSpec) -> EmitResult:
        """
        Render *spec* and write it through the sink exactly once.

        Raises
        ------
        EmitError
            If the sink refuses the unit or the underlying write fails.
        """
        unit = render_unit(spec, self._profile)
        try:
            changed = self._sink.write(unit)
        except EmitError:
            raise
        except OSError as e:
            raise EmitError(f"failed to write {unit.path}: {e}", unit.path) from e

        logger.debug(
            "emitted %s (%d field(s), changed=%s)",
            unit.module, len(spec.fields), changed,
        )
        return EmitResult(unit=unit, changed=changed)
