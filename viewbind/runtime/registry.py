"""
Binder registry — owner class → generated binder.

Every generated module ends with a ``register_binder(...)`` call, so
importing it is all it takes to make the binder available to ``bind()``.
Writes are serialized under a lock; reads go against a dict that is only
ever replaced wholesale, so lookups need no locking.
"""
from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from viewbind.errors import BinderSignatureError, RegistrationError

logger = logging.getLogger(__name__)

__all__ = ["BinderEntry", "BinderRegistry", "default_registry", "register_binder"]


@dataclass(frozen=True)
class BinderEntry:
    """A registered binder and the (field, view id) pairs it assigns."""
    owner: type
    binder: type
    bindings: Tuple[Tuple[str, int], ...]

    @property
    def binder_qualname(self) -> str:
        return _qualname(self.binder)


def _qualname(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _check_signature(owner: type, binder: type) -> None:
    """The binder constructor must take the host instance and nothing else."""
    try:
        sig = inspect.signature(binder)
    except (TypeError, ValueError) as e:
        raise BinderSignatureError(
            f"cannot inspect constructor of {_qualname(binder)}: {e}"
        ) from e

    params = list(sig.parameters.values())
    positional = (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    )
    if (
        len(params) != 1
        or params[0].kind not in positional
        or params[0].default is not inspect.Parameter.empty
    ):
        raise BinderSignatureError(
            f"{_qualname(binder)}{sig} must take exactly one positional "
            f"parameter, the {owner.__qualname__} instance"
        )


class BinderRegistry:
    """Process-wide map of owner classes to their binders."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Mapping[type, BinderEntry] = MappingProxyType({})

    def register(
        self,
        owner: type,
        binder: type,
        bindings: Iterable[Tuple[str, int]] = (),
    ) -> BinderEntry:
        """
        Register *binder* for *owner*.

        Re-registering a binder with the same qualified name (a reloaded
        module) replaces the entry.

        Raises
        ------
        BinderSignatureError
            If the binder constructor does not take exactly one parameter.
        RegistrationError
            If a different binder is already registered for *owner*.
        """
        if not isinstance(owner, type) or not isinstance(binder, type):
            raise RegistrationError(
                f"register() takes classes, got {owner!r} and {binder!r}"
            )
        _check_signature(owner, binder)
        entry = BinderEntry(owner, binder, tuple((str(n), int(v)) for n, v in bindings))

        with self._lock:
            current = self._entries.get(owner)
            if current is not None and current.binder_qualname != entry.binder_qualname:
                raise RegistrationError(
                    f"{_qualname(owner)} already has binder "
                    f"{current.binder_qualname}, refusing {entry.binder_qualname}"
                )
            entries = dict(self._entries)
            entries[owner] = entry
            self._entries = MappingProxyType(entries)

        logger.debug("registered %s for %s", entry.binder_qualname, _qualname(owner))
        return entry

    def lookup(self, owner: type) -> Optional[BinderEntry]:
        """The entry registered for exactly *owner* (no MRO walk)."""
        return self._entries.get(owner)

    def snapshot(self) -> Mapping[type, BinderEntry]:
        """Read-only view of the current entries."""
        return self._entries

    def __contains__(self, owner: object) -> bool:
        return owner in self._entries

    def __len__(self) -> int:
        return len(self._entries)


default_registry = BinderRegistry()


def register_binder(
    owner: type,
    binder: type,
    bindings: Iterable[Tuple[str, int]] = (),
) -> type:
    """Register *binder* in the default registry and return it."""
    default_registry.register(owner, binder, bindings)
    return binder
