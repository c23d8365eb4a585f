"""
The binding marker.

``bind_view(<int>)`` is assigned as the class-level value of an annotated
field::

    class MainScreen(Screen):
        content_view: TextView = bind_view(100)

The generator finds it statically; at runtime it is a non-data descriptor
so the class still exposes the marker while instances read ``None`` until
a binder assigns the real element.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = ["BindView", "bind_view", "declared_bindings"]


class BindView:
    """Marker recording the view identifier of one field."""

    __slots__ = ("view_id", "name", "owner")

    def __init__(self, view_id: int):
        if isinstance(view_id, bool) or not isinstance(view_id, int):
            raise TypeError(
                f"bind_view() takes an integer view identifier, got {view_id!r}"
            )
        self.view_id = view_id
        self.name: Optional[str] = None
        self.owner: Optional[type] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.owner = owner
        self.name = name

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return None

    def __repr__(self) -> str:
        return f"bind_view({self.view_id})"


def bind_view(view_id: int) -> Any:
    """Declare that a field is populated from the host's element *view_id*."""
    return BindView(view_id)


def declared_bindings(cls: type) -> Dict[str, int]:
    """
    Markers declared directly on *cls*, in declaration order.

    Inherited markers are not included: each class is bound by its own
    binder only.
    """
    return {
        name: value.view_id
        for name, value in vars(cls).items()
        if isinstance(value, BindView)
    }
