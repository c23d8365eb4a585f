"""
Binding-spec builder — group scanned fields into one spec per owner.

Owners without annotated fields produce no spec.  Binder names come from
``viewbind.naming`` and are never disambiguated: an owner whose binder
module is already claimed is rejected with ``BinderCollisionError``.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from viewbind.core.symbol_scanner import AnnotatedField, DeclaredType
from viewbind.errors import BinderCollisionError, ScanError
from viewbind.naming import binder_names, module_path
from viewbind.policy.profile import DEFAULT_PROFILE, GeneratorProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BindingSpec:
    """Everything the emitter needs to synthesize one binder."""
    owner_module: str
    owner_name: str
    binder_module: str
    binder_name: str
    fields: Tuple[AnnotatedField, ...]

    @property
    def owner_qualname(self) -> str:
        if self.owner_module:
            return f"{self.owner_module}.{self.owner_name}"
        return self.owner_name

    @property
    def binder_qualname(self) -> str:
        return f"{self.binder_module}.{self.binder_name}"

    @property
    def unit_path(self) -> str:
        """Relative path of the generated module."""
        return module_path(self.binder_module)


@dataclass
class SpecBuildResult:
    """Output of one build: specs to emit, plus owners that get none."""
    specs: List[BindingSpec] = field(default_factory=list)
    skipped: List[DeclaredType] = field(default_factory=list)
    rejected: List[Tuple[DeclaredType, ScanError]] = field(default_factory=list)


def make_spec(
    declared: DeclaredType,
    profile: GeneratorProfile | None = None,
) -> BindingSpec:
    """Build the spec for one owner that has at least one field."""
    if profile is None:
        profile = DEFAULT_PROFILE
    if not declared.fields:
        raise ValueError(f"{declared.qualified_name} has no annotated fields")

    binder_module, binder_name = binder_names(
        declared.module, declared.name, profile, is_package=declared.is_package,
    )
    return BindingSpec(
        owner_module=declared.module,
        owner_name=declared.name,
        binder_module=binder_module,
        binder_name=binder_name,
        fields=declared.fields,
    )


def build_specs(
    declared_types: Iterable[DeclaredType],
    profile: GeneratorProfile | None = None,
    known_modules: Iterable[str] = (),
) -> SpecBuildResult:
    """
    Build the specs for one generation pass.

    Parameters
    ----------
    declared_types : Iterable[DeclaredType]
        Scanner output for every module in the pass.
    profile : GeneratorProfile, optional
        Defaults to ``GeneratorProfile.v0()``.
    known_modules : Iterable[str]
        Hand-written modules in the scanned tree.  A binder module may not
        shadow any of them.

    Returns
    -------
    SpecBuildResult
        Specs in input order; owners without fields in ``skipped``;
        owners with scan errors or name collisions in ``rejected``.
    """
    if profile is None:
        profile = DEFAULT_PROFILE

    result = SpecBuildResult()
    candidates: List[Tuple[DeclaredType, BindingSpec]] = []

    for declared in declared_types:
        if declared.error is not None:
            result.rejected.append((declared, declared.error))
        elif not declared.fields:
            result.skipped.append(declared)
        else:
            candidates.append((declared, make_spec(declared, profile)))

    claimed: Dict[str, List[str]] = defaultdict(list)
    for declared, spec in candidates:
        claimed[spec.binder_module].append(declared.qualified_name)

    hand_written = set(known_modules)
    for declared, spec in candidates:
        owners = claimed[spec.binder_module]
        if len(owners) > 1:
            error = BinderCollisionError(
                f"binder module '{spec.binder_module}' is claimed by "
                f"{', '.join(sorted(owners))}",
                declared.module, declared.line,
            )
        elif spec.binder_module in hand_written:
            error = BinderCollisionError(
                f"binder module '{spec.binder_module}' would replace a "
                f"hand-written module",
                declared.module, declared.line,
            )
        else:
            result.specs.append(spec)
            continue

        logger.warning("%s", error)
        result.rejected.append((declared, error))

    return result
