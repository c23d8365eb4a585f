"""
Binder naming — the one place that maps an owner to its binder names.

The emitter uses it to decide where a unit goes; the runtime resolver uses
it to import a binder module that has not been loaded yet.

    owner   app.screens.main.MainScreen
    binder  app.screens.main_screen_binding.MainScreenBinding
"""
from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Tuple

from viewbind.policy.profile import DEFAULT_PROFILE, GeneratorProfile

_CAMEL_HEAD_RE = re.compile(r"(.)([A-Z][a-z]+)")
_CAMEL_TAIL_RE = re.compile(r"([a-z0-9])([A-Z])")


def snake_case(name: str) -> str:
    """Transform CamelCase to snake_case (``HTTPView`` → ``http_view``)."""
    s1 = _CAMEL_HEAD_RE.sub(r"\1_\2", name)
    s2 = _CAMEL_TAIL_RE.sub(r"\1_\2", s1)
    return s2.lower()


def package_of(module: str) -> str:
    """Dotted parent of *module* ("" for a top-level module)."""
    return module.rpartition(".")[0]


def binder_class_name(owner_name: str, profile: GeneratorProfile = DEFAULT_PROFILE) -> str:
    return f"{owner_name}{profile.binder_suffix}"


def binder_module_name(
    owner_module: str,
    owner_name: str,
    profile: GeneratorProfile = DEFAULT_PROFILE,
    *,
    is_package: bool = False,
) -> str:
    """
    Generated module for *owner_name*, placed in the owner's package.

    An owner declared in a package's ``__init__`` (*is_package*) gets its
    binder inside that package, not next to it.
    """
    leaf = f"{snake_case(owner_name)}{profile.module_suffix}"
    package = owner_module if is_package else package_of(owner_module)
    return f"{package}.{leaf}" if package else leaf


def binder_names(
    owner_module: str,
    owner_name: str,
    profile: GeneratorProfile = DEFAULT_PROFILE,
    *,
    is_package: bool = False,
) -> Tuple[str, str]:
    """(binder module, binder class) for an owner."""
    return (
        binder_module_name(owner_module, owner_name, profile, is_package=is_package),
        binder_class_name(owner_name, profile),
    )


def module_path(module: str) -> str:
    """Relative POSIX file path of a dotted module name."""
    return str(PurePosixPath(*module.split("."))) + ".py"
