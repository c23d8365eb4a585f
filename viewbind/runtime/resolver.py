"""
Runtime resolver — ``bind(target)``.

Looks up the binder registered for ``type(target)`` and runs it.  When the
class declares markers but no binder is registered yet, the generated
module is imported once (its registration call fills the registry) and the
lookup is repeated.

Outcomes are never collapsed:

    NO_BINDER_NEEDED   class declares no markers, nothing registered
    BOUND              binder ran
    FAILED             ResolutionError   — binder missing, unimportable,
                                           or out of date with the class
                       InstantiationError — binder raised while populating
"""
from __future__ import annotations

import importlib
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from viewbind.annotations import declared_bindings
from viewbind.errors import BindError, InstantiationError, ResolutionError
from viewbind.naming import binder_module_name
from viewbind.policy.profile import DEFAULT_PROFILE, GeneratorProfile
from viewbind.runtime.registry import BinderEntry, BinderRegistry, default_registry

logger = logging.getLogger(__name__)

__all__ = ["BindOutcome", "BindResult", "bind"]


class BindOutcome(str, Enum):
    NO_BINDER_NEEDED = "NO_BINDER_NEEDED"
    BOUND = "BOUND"
    FAILED = "FAILED"


@dataclass(frozen=True)
class BindResult:
    """What ``bind()`` did for one host instance."""
    outcome: BindOutcome
    target_type: str
    binder: Optional[str] = None
    error: Optional[BindError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not BindOutcome.FAILED

    def raise_for_failure(self) -> "BindResult":
        """Raise the recorded error, if any; otherwise return self."""
        if self.error is not None:
            raise self.error
        return self


def _qualname(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _autoload(
    owner: type,
    registry: BinderRegistry,
    profile: GeneratorProfile,
) -> BinderEntry:
    """Import the generated module for *owner* and return its entry."""
    # classes defined in a package __init__ keep their binder inside it
    is_package = hasattr(sys.modules.get(owner.__module__), "__path__")
    module_name = binder_module_name(
        owner.__module__, owner.__name__, profile, is_package=is_package,
    )
    try:
        importlib.import_module(module_name)
    except (ImportError, SyntaxError) as e:
        if isinstance(e, ModuleNotFoundError) and e.name == module_name:
            message = (
                f"no binder for {_qualname(owner)}: module '{module_name}' not "
                f"found (generated sources missing or out of date)"
            )
        else:
            message = f"binder module '{module_name}' failed to import: {e}"
        raise ResolutionError(message) from e

    entry = registry.lookup(owner)
    if entry is None:
        raise ResolutionError(
            f"module '{module_name}' did not register a binder for {_qualname(owner)}"
        )
    return entry


def _check_current(entry: BinderEntry, declared: Dict[str, int]) -> None:
    """The binder must assign exactly the markers the class declares."""
    registered = dict(entry.bindings)
    if registered != declared:
        raise ResolutionError(
            f"binder {entry.binder_qualname} is out of date: it binds "
            f"{registered}, class declares {declared}; regenerate binders"
        )


def _failed(owner: type, error: BindError, entry: Optional[BinderEntry], strict: bool) -> BindResult:
    logger.error("bind(%s) failed: %s", _qualname(owner), error)
    if strict:
        raise error
    return BindResult(
        outcome=BindOutcome.FAILED,
        target_type=_qualname(owner),
        binder=entry.binder_qualname if entry is not None else None,
        error=error,
    )


def bind(
    target: Any,
    *,
    registry: Optional[BinderRegistry] = None,
    strict: bool = False,
    autoload: bool = True,
    profile: Optional[GeneratorProfile] = None,
) -> BindResult:
    """
    Populate the marker fields of *target* through its generated binder.

    Stateless: calling it again looks every element up afresh and
    reassigns the same fields.  Concurrent calls on the *same* instance
    must be serialized by the caller.

    Parameters
    ----------
    target
        The host instance.
    registry : BinderRegistry, optional
        Defaults to the process-wide registry that generated modules
        register into.
    strict : bool
        Raise the ResolutionError / InstantiationError instead of
        returning a FAILED result.
    autoload : bool
        Import the generated module on a registry miss.

    Returns
    -------
    BindResult
    """
    if registry is None:
        registry = default_registry
    if profile is None:
        profile = DEFAULT_PROFILE

    owner = type(target)
    declared = declared_bindings(owner)
    entry = registry.lookup(owner)

    if entry is None:
        if not declared:
            logger.debug("bind(%s): no bindings declared", _qualname(owner))
            return BindResult(BindOutcome.NO_BINDER_NEEDED, _qualname(owner))
        if not autoload:
            return _failed(owner, ResolutionError(
                f"no binder registered for {_qualname(owner)}"
            ), None, strict)
        try:
            entry = _autoload(owner, registry, profile)
        except ResolutionError as e:
            return _failed(owner, e, None, strict)

    try:
        _check_current(entry, declared)
    except ResolutionError as e:
        return _failed(owner, e, entry, strict)

    try:
        entry.binder(target)
    except Exception as e:
        error = InstantiationError(
            f"{entry.binder_qualname} raised {type(e).__name__}: {e}"
        )
        error.__cause__ = e
        return _failed(owner, error, entry, strict)

    logger.debug("bind(%s): bound via %s", _qualname(owner), entry.binder_qualname)
    return BindResult(BindOutcome.BOUND, _qualname(owner), entry.binder_qualname)
