"""
Unit sinks — where generated binder modules go.

The emitter never decides on its own where to write; it is handed one of:

    DirectorySink   <root>/<package path>/<snake_owner>_binding.py
    MemorySink      in-memory dict, for tests and dry runs

``DirectorySink`` only ever replaces files that carry the generated header,
skips writes whose content is unchanged, and in check mode records which
units are out of date instead of writing them.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Protocol, Set

from viewbind.core.code_emitter import GeneratedUnit, is_generated_source
from viewbind.errors import EmitError

logger = logging.getLogger(__name__)

_SKIP_DIRS = frozenset({"__pycache__", "node_modules"})


class UnitSink(Protocol):
    def write(self, unit: GeneratedUnit) -> bool:
        """Accept *unit*; return True when the stored content changed."""
        ...


class MemorySink:
    """Collect units in memory, keyed by relative path."""

    def __init__(self):
        self.units: Dict[str, GeneratedUnit] = {}
        self.write_count = 0

    def write(self, unit: GeneratedUnit) -> bool:
        self.write_count += 1
        previous = self.units.get(unit.path)
        self.units[unit.path] = unit
        return previous is None or previous.source != unit.source


class DirectorySink:
    """Write units below *root*, mirroring their package layout."""

    def __init__(self, root: Path, check_only: bool = False):
        self.root = Path(root)
        self.check_only = check_only
        self.written: List[str] = []
        self.unchanged: List[str] = []
        self.stale: List[str] = []
        self._seen: Set[str] = set()

    def write(self, unit: GeneratedUnit) -> bool:
        target = self.root / unit.path
        self._seen.add(unit.path)

        existing = None
        if target.exists():
            existing = target.read_text(encoding="utf-8")
            if not is_generated_source(existing):
                raise EmitError(
                    f"refusing to overwrite hand-written module {target}",
                    unit.path,
                )

        if existing == unit.source:
            self.unchanged.append(unit.path)
            return False

        if self.check_only:
            logger.info("stale: %s", target)
            self.stale.append(unit.path)
            return True

        target.parent.mkdir(parents=True, exist_ok=True)
        # newline="\n" keeps the bytes identical across platforms
        with target.open("w", encoding="utf-8", newline="\n") as fh:
            fh.write(unit.source)
        self.written.append(unit.path)
        logger.info("wrote %s", target)
        return True

    def generated_files(self) -> List[Path]:
        """Every generated unit currently below the root, sorted."""
        found: List[Path] = []
        if not self.root.is_dir():
            return found
        for path in sorted(self.root.rglob("*.py")):
            rel_parts = path.relative_to(self.root).parts
            if any(p in _SKIP_DIRS or p.startswith(".") for p in rel_parts[:-1]):
                continue
            with path.open(encoding="utf-8", errors="replace") as fh:
                if is_generated_source(fh.readline()):
                    found.append(path)
        return found

    def prune(self, keep: Iterable[str] = ()) -> List[str]:
        """
        Delete generated units not written (or confirmed) during this pass.

        Paths in *keep* are retained as well.  In check mode nothing is
        deleted; the would-be deletions are returned and recorded as stale.
        """
        retained = self._seen | set(keep)
        pruned: List[str] = []
        for path in self.generated_files():
            rel = path.relative_to(self.root).as_posix()
            if rel in retained:
                continue
            if self.check_only:
                self.stale.append(rel)
            else:
                path.unlink()
                logger.info("pruned %s", path)
            pruned.append(rel)
        return pruned
