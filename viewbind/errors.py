"""
Error hierarchy for both phases.

Generation phase (fail the affected owner, never swallowed):
    ScanError, BinderCollisionError, EmitError

Resolution phase (returned inside a BindResult unless ``strict``):
    ResolutionError, InstantiationError

Registration (raised when a binder module is imported):
    RegistrationError, BinderSignatureError
"""
from __future__ import annotations

from typing import Optional

__all__ = [
    "ViewbindError",
    "ScanError",
    "BinderCollisionError",
    "EmitError",
    "BindError",
    "ResolutionError",
    "InstantiationError",
    "RegistrationError",
    "BinderSignatureError",
]


class ViewbindError(Exception):
    """Base class for every viewbind failure."""


class ScanError(ViewbindError):
    """Malformed marker usage found while scanning a module."""

    def __init__(self, message: str, module: str = "", line: int = 0):
        self.module = module
        self.line = line
        self.message = message
        location = f"{module}:{line + 1}: " if module else ""
        super().__init__(f"{location}{message}")


class BinderCollisionError(ScanError):
    """Two owners (or an owner and a hand-written module) claim one binder name."""


class EmitError(ViewbindError):
    """The unit sink failed to accept a generated unit."""

    def __init__(self, message: str, unit_path: Optional[str] = None):
        self.unit_path = unit_path
        super().__init__(message)


class BindError(ViewbindError):
    """Base class for runtime binding failures."""


class ResolutionError(BindError):
    """No usable binder could be located for a host that declares bindings."""


class InstantiationError(BindError):
    """A binder was found but raised while populating the host."""


class RegistrationError(ViewbindError):
    """A binder could not be entered into the registry."""


class BinderSignatureError(RegistrationError):
    """A binder's constructor does not take exactly the host instance."""
