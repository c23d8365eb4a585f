"""
viewbind — generated view binding for Python UI hosts.

Two phases:

    generation   source modules → binding specs → binder modules on disk
    resolution   ``bind(host)`` → registered binder → fields populated

Quick start::

    from viewbind import bind, bind_view

    class MainScreen(Screen):
        content_view: TextView = bind_view(100)

        def on_create(self):
            bind(self).raise_for_failure()

Then run ``viewbind <source root>`` to (re)generate the binder modules.
"""

__version__ = "0.1.0"
GENERATOR_VERSION = "v0"
PACKAGE_NAME = "viewbind"
SCHEMA_VERSION = "0.1"

from viewbind.annotations import BindView, bind_view, declared_bindings
from viewbind.runtime.registry import register_binder
from viewbind.runtime.resolver import BindOutcome, BindResult, bind

__all__ = [
    "BindOutcome",
    "BindResult",
    "BindView",
    "bind",
    "bind_view",
    "declared_bindings",
    "register_binder",
]
