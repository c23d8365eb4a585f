"""
Schema — Pydantic models for the viewbind generation report.

One output file:
  viewbind_report.json — per-module scan reports, per-owner verdicts,
                         counts, and pruned units.

Runtime contract fields (present in every output):
  package_name, generator_version, profile_id, schema_version.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from viewbind import GENERATOR_VERSION, PACKAGE_NAME, SCHEMA_VERSION


# ── Fields ───────────────────────────────────────────────────────────────────

class FieldBindingModel(BaseModel):
    """One annotated field of an owner."""
    name: str
    field_type: Optional[str] = None
    view_id: int
    line: int                # 0-based


# ── Module scan report ───────────────────────────────────────────────────────

class ScanErrorModel(BaseModel):
    """A scan or parse error, located in its module."""
    module: str
    line: int                # 0-based
    message: str


class ModuleScanReport(BaseModel):
    """Scan report for one source module."""
    module: str
    path: str
    source_hash: str
    parse_status: str        # OK | ERROR
    classes_scanned: int = 0
    verdict: str             # ACCEPT | REJECT
    reasons: List[str] = Field(default_factory=list)
    errors: List[ScanErrorModel] = Field(default_factory=list)


# ── Owner report ─────────────────────────────────────────────────────────────

class OwnerReport(BaseModel):
    """Outcome for one class that declares bindings."""
    owner: str
    binder_module: Optional[str] = None
    binder: Optional[str] = None
    unit_path: Optional[str] = None
    content_hash: Optional[str] = None
    changed: bool = False
    fields: List[FieldBindingModel] = Field(default_factory=list)
    verdict: str             # ACCEPT | WARN | REJECT
    reasons: List[str] = Field(default_factory=list)
    error: Optional[str] = None


# ── Counts ───────────────────────────────────────────────────────────────────

class OwnerCounts(BaseModel):
    total: int = 0
    accept: int = 0
    warn: int = 0
    reject: int = 0
    skipped: int = 0         # classes without bindings, nothing emitted


# ── Top-level output ─────────────────────────────────────────────────────────

class GenerationReport(BaseModel):
    """
    viewbind_report.json — one generation pass.
    """
    package_name: str = PACKAGE_NAME
    generator_version: str = GENERATOR_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str
    parser_version: str = ""
    source_root: str
    output_root: str
    check_only: bool = False
    modules: List[ModuleScanReport] = Field(default_factory=list)
    owners: List[OwnerReport] = Field(default_factory=list)
    owner_counts: OwnerCounts = OwnerCounts()
    stale_units: List[str] = Field(default_factory=list)
    pruned_units: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """False when anything was rejected, or a check found stale units."""
        if any(m.verdict == "REJECT" for m in self.modules):
            return False
        if self.owner_counts.reject:
            return False
        return not (self.check_only and self.stale_units)
