"""
Generator runner — top-level orchestration: .py files → binders + report.

This module ties source discovery, scanning, spec building, verdicts,
emission and IO together into a single ``run_generator`` function that can
be called from the API endpoint, from a CLI, or programmatically.
"""
from __future__ import annotations

import argparse
import fnmatch
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from viewbind.config import settings
from viewbind.core.code_emitter import CodeEmitter, is_generated_source
from viewbind.core.py_parser import PARSER_VERSION, parse_module
from viewbind.core.spec_builder import BindingSpec, build_specs, make_spec
from viewbind.core.symbol_scanner import DeclaredType, scan_declared_types
from viewbind.errors import EmitError, ScanError
from viewbind.io.schema import (
    FieldBindingModel,
    GenerationReport,
    ModuleScanReport,
    OwnerCounts,
    OwnerReport,
    ScanErrorModel,
)
from viewbind.io.sink import DirectorySink
from viewbind.io.writer import write_report
from viewbind.naming import binder_module_name, module_path
from viewbind.policy.profile import GeneratorProfile
from viewbind.policy.verdict import (
    ModuleRejectReason,
    OwnerWarnReason,
    Verdict,
    gate_module,
    judge_owner,
    reject_reason,
)

logger = logging.getLogger(__name__)

_SKIP_DIRS = frozenset({"__pycache__", "node_modules", "build", "dist"})


# ── Discovery ────────────────────────────────────────────────────────────────

def module_name_for(py_path: Path, source_root: Path) -> str:
    """Dotted module name of *py_path* relative to *source_root*."""
    parts = list(py_path.relative_to(source_root).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def discover_modules(
    source_root: Path,
    exclude: Sequence[str] = (),
) -> List[Tuple[Path, str]]:
    """
    Hand-written ``.py`` files under *source_root*, sorted by path.

    Skips hidden and build directories, paths matching any *exclude* glob
    (relative POSIX path), and binder modules written by this generator.
    """
    found: List[Tuple[Path, str]] = []
    for py_path in sorted(source_root.rglob("*.py")):
        rel = py_path.relative_to(source_root)
        if any(p in _SKIP_DIRS or p.startswith(".") for p in rel.parts[:-1]):
            continue
        if any(fnmatch.fnmatch(rel.as_posix(), pattern) for pattern in exclude):
            logger.debug("excluded %s", rel)
            continue
        with py_path.open(encoding="utf-8", errors="replace") as fh:
            if is_generated_source(fh.readline()):
                continue
        module = module_name_for(py_path, source_root)
        if module:
            found.append((py_path, module))
    return found


# ── Conversion helpers ───────────────────────────────────────────────────────

def _error_model(error: ScanError) -> ScanErrorModel:
    return ScanErrorModel(module=error.module, line=error.line, message=error.message)


def _field_models(declared_fields) -> List[FieldBindingModel]:
    return [
        FieldBindingModel(
            name=f.name,
            field_type=f.field_type,
            view_id=f.view_id,
            line=f.line,
        )
        for f in declared_fields
    ]


def _rejected_owner(
    declared: DeclaredType,
    error: Exception,
    spec: Optional[BindingSpec] = None,
) -> OwnerReport:
    return OwnerReport(
        owner=declared.qualified_name,
        binder_module=spec.binder_module if spec else None,
        binder=spec.binder_name if spec else None,
        unit_path=spec.unit_path if spec else None,
        fields=_field_models(declared.fields),
        verdict=Verdict.REJECT.value,
        reasons=[reject_reason(error)],
        error=str(error),
    )


# ── Public API ───────────────────────────────────────────────────────────────

def run_generator(
    source_root: Path,
    output_root: Path | None = None,
    profile: GeneratorProfile | None = None,
    report_dir: Path | None = None,
    check_only: bool = False,
    prune: bool = True,
    exclude: Iterable[str] = (),
) -> GenerationReport:
    """
    Run one generation pass over every module below *source_root*.

    Parameters
    ----------
    source_root : Path
        Import root of the scanned sources (the directory on ``sys.path``).
    output_root : Path, optional
        Import root for generated binders.  Defaults to *source_root*.
    profile : GeneratorProfile, optional
        Defaults to GeneratorProfile.v0().
    report_dir : Path, optional
        Directory to write viewbind_report.json.  If None, the report is
        only returned.
    check_only : bool
        Do not write or delete anything; report stale units instead.
    prune : bool
        Delete generated units that no owner produced in this pass.
    exclude : Iterable[str]
        Glob patterns (relative POSIX paths) to leave out of the scan.

    Returns
    -------
    GenerationReport
    """
    if profile is None:
        profile = GeneratorProfile.v0()
    source_root = Path(source_root)
    output_root = Path(output_root) if output_root is not None else source_root

    report = GenerationReport(
        profile_id=profile.profile_id,
        parser_version=PARSER_VERSION,
        source_root=str(source_root),
        output_root=str(output_root),
        check_only=check_only,
    )
    counts = OwnerCounts()

    sink = DirectorySink(output_root, check_only=check_only)
    emitter = CodeEmitter(sink, profile)

    # ── Step 1: parse + scan every module ────────────────────────────
    modules = discover_modules(source_root, tuple(exclude))
    declared_types: List[DeclaredType] = []

    for py_path, module in modules:
        logger.info("Scanning module: %s", module)
        try:
            pr = parse_module(py_path)
        except OSError as e:
            logger.error("Failed to read %s: %s", py_path, e)
            report.modules.append(ModuleScanReport(
                module=module,
                path=str(py_path),
                source_hash="",
                parse_status="ERROR",
                verdict=Verdict.REJECT.value,
                reasons=[ModuleRejectReason.MODULE_READ_ERROR.value],
                errors=[ScanErrorModel(module=module, line=0, message=str(e))],
            ))
            continue

        module_verdict, module_reasons = gate_module(pr)
        module_report = ModuleScanReport(
            module=module,
            path=str(py_path),
            source_hash=pr.source_hash,
            parse_status=pr.parse_status,
            verdict=module_verdict.value,
            reasons=module_reasons,
        )
        report.modules.append(module_report)

        try:
            found = scan_declared_types(
                pr, module, profile, is_package=py_path.name == "__init__.py",
            )
        except ScanError as e:
            logger.error("%s", e)
            module_report.errors.append(_error_model(e))
            continue

        module_report.classes_scanned = len(found)
        declared_types.extend(found)

    # ── Step 2: build specs ──────────────────────────────────────────
    built = build_specs(
        declared_types,
        profile,
        known_modules=[module for _, module in modules],
    )
    counts.skipped = len(built.skipped)

    for declared, error in built.rejected:
        spec = make_spec(declared, profile) if declared.fields else None
        report.owners.append(_rejected_owner(declared, error, spec))

    # ── Step 3: judge + emit each owner ──────────────────────────────
    emitted_paths: List[str] = []
    declared_by_owner: Dict[str, DeclaredType] = {
        d.qualified_name: d for d in declared_types
    }

    for spec in built.specs:
        verdict, reasons = judge_owner(spec)
        try:
            result = emitter.emit(spec)
        except EmitError as e:
            logger.error("emit failed for %s: %s", spec.owner_qualname, e)
            report.owners.append(
                _rejected_owner(declared_by_owner[spec.owner_qualname], e, spec)
            )
            continue

        emitted_paths.append(result.unit.path)
        if check_only and result.changed:
            reasons.append(OwnerWarnReason.STALE_UNIT.value)
            verdict = Verdict.WARN

        report.owners.append(OwnerReport(
            owner=spec.owner_qualname,
            binder_module=spec.binder_module,
            binder=spec.binder_name,
            unit_path=result.unit.path,
            content_hash=result.unit.content_hash,
            changed=result.changed,
            fields=_field_models(spec.fields),
            verdict=verdict.value,
            reasons=reasons,
        ))

    # ── Step 4: prune units nobody produced ──────────────────────────
    # A rejected module may still own binders we cannot see; leave the
    # tree alone until it scans cleanly.
    modules_clean = all(m.verdict != Verdict.REJECT.value for m in report.modules)
    if prune and modules_clean:
        keep = emitted_paths + [
            module_path(binder_module_name(
                d.module, d.name, profile, is_package=d.is_package,
            ))
            for d, _ in built.rejected
        ]
        report.pruned_units = sink.prune(keep=keep)
    elif prune:
        logger.warning("Skipping prune: some modules were rejected")

    report.stale_units = sorted(set(sink.stale))

    for owner_report in report.owners:
        counts.total += 1
        if owner_report.verdict == Verdict.ACCEPT.value:
            counts.accept += 1
        elif owner_report.verdict == Verdict.WARN.value:
            counts.warn += 1
        else:
            counts.reject += 1
    report.owner_counts = counts

    # ── Write report ─────────────────────────────────────────────────
    if report_dir:
        write_report(report, Path(report_dir))
        logger.info("Wrote viewbind report to %s", report_dir)

    return report


# ── CLI ──────────────────────────────────────────────────────────────────────

def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point for the viewbind generator."""
    parser = argparse.ArgumentParser(
        description="viewbind — generate binder modules for bind_view() fields",
    )
    parser.add_argument(
        "source_root",
        nargs="?",
        default=settings.SOURCE_ROOT,
        help="Import root of the sources to scan (default: %(default)s)",
    )
    parser.add_argument(
        "-o", "--output-root",
        type=Path,
        default=settings.OUTPUT_ROOT,
        help="Import root for generated binders (default: the source root)",
    )
    parser.add_argument(
        "--report-dir",
        type=Path,
        default=settings.REPORT_DIR,
        help="Directory to write viewbind_report.json",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check that generated binders are up to date (for CI)",
    )
    parser.add_argument(
        "--no-prune",
        dest="prune",
        action="store_false",
        default=settings.PRUNE,
        help="Keep generated binders whose owner no longer declares bindings",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Relative path glob to leave out of the scan (repeatable)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    source_root = Path(args.source_root)
    if not source_root.is_dir():
        logger.error("Source root not found: %s", source_root)
        return 1

    report = run_generator(
        source_root=source_root,
        output_root=args.output_root,
        report_dir=args.report_dir,
        check_only=args.check,
        prune=args.prune,
        exclude=args.exclude,
    )

    # Print summary
    c = report.owner_counts
    print(f"Modules scanned: {len(report.modules)}")
    print(f"Owners: {c.total} "
          f"(accept={c.accept}, warn={c.warn}, reject={c.reject}, "
          f"no bindings={c.skipped})")
    for owner in report.owners:
        if owner.verdict == Verdict.REJECT.value:
            print(f"  REJECT {owner.owner}: {owner.error}", file=sys.stderr)
    for module in report.modules:
        for err in module.errors:
            print(f"  ERROR {err.module}:{err.line + 1}: {err.message}", file=sys.stderr)
    if report.pruned_units:
        print(f"Pruned: {len(report.pruned_units)}")
    if args.check and report.stale_units:
        print("Stale binders:", file=sys.stderr)
        for path in report.stale_units:
            print(f"  {path}", file=sys.stderr)
        print("  Run: viewbind <source root>", file=sys.stderr)

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
