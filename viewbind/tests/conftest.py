"""
Shared pytest fixtures for viewbind tests.

Provides in-memory parsing of small host modules, and throw-away
importable packages for the end-to-end generate → import → bind tests.
Generated binders register into the process-wide registry, so every
package gets a name unique to the running test.
"""
import importlib
import re
import sys
import textwrap
from pathlib import Path

import pytest

from viewbind.core.py_parser import parse_source

# Host module used by the end-to-end tests.  ``Host.find_by_identifier``
# returns a fresh view per call and records every id it was asked for.
SCREENS_PY = textwrap.dedent("""\
    from viewbind import bind_view

    FOOTER_ID = 7


    class View:
        def __init__(self, view_id, serial):
            self.view_id = view_id
            self.serial = serial


    class TextView(View):
        pass


    class Host:
        def __init__(self, known=None):
            self.lookups = []
            self._known = known

        def find_by_identifier(self, view_id):
            if self._known is not None and view_id not in self._known:
                raise LookupError(f"no view with id {view_id}")
            self.lookups.append(view_id)
            return TextView(view_id, len(self.lookups))


    class MainScreen(Host):
        content_view: TextView = bind_view(100)
        title_view: TextView = bind_view(100)
        footer = bind_view(FOOTER_ID)


    class DetailScreen(Host):
        body_view: "TextView" = bind_view(view_id=200)


    class PlainScreen(Host):
        label = "plain"
""")


@pytest.fixture
def parse():
    """Parse dedented source text in memory."""
    def _parse(text: str):
        return parse_source(textwrap.dedent(text).encode("utf-8"))
    return _parse


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    """An empty import root for sample sources."""
    root = tmp_path / "src"
    root.mkdir()
    return root


@pytest.fixture
def package_name(request) -> str:
    """A package name unique to the running test."""
    return "vb_" + re.sub(r"\W", "_", request.node.name).lower()


@pytest.fixture
def host_package(source_root: Path, package_name: str, monkeypatch):
    """
    Write the screens host module as ``<package>.screens`` below
    *source_root* and put the root on ``sys.path``.

    Modules of the package are dropped from ``sys.modules`` afterwards.
    """
    pkg = source_root / package_name
    pkg.mkdir()
    (pkg / "__init__.py").write_text("")
    (pkg / "screens.py").write_text(SCREENS_PY)
    monkeypatch.syspath_prepend(str(source_root))

    yield pkg

    for name in list(sys.modules):
        if name == package_name or name.startswith(package_name + "."):
            del sys.modules[name]


@pytest.fixture
def import_screens(package_name: str):
    """Import ``<package>.screens``, seeing any binders written so far."""
    def _import():
        importlib.invalidate_caches()
        return importlib.import_module(f"{package_name}.screens")
    return _import
