"""
Generate Router
Runs the viewbind generator over a server-side source tree.

The source root must be readable (and, unless ``check_only``, writable)
by the API process; binders are written next to the sources unless an
output root is given.
"""
import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from viewbind import GENERATOR_VERSION, PACKAGE_NAME, SCHEMA_VERSION
from viewbind.config import settings
from viewbind.policy.profile import GeneratorProfile
from viewbind.runner import run_generator

logger = logging.getLogger(__name__)


# =============================================================================
# Request/Response Models
# =============================================================================

class GenerateRequest(BaseModel):
    """Request to run one generation pass."""
    source_root: Optional[str] = Field(
        None,
        description="Override the configured source root",
    )
    output_root: Optional[str] = Field(
        None,
        description="Import root for generated binders (default: source root)",
    )
    check_only: bool = Field(
        False,
        description="Report stale binders without writing anything",
    )
    prune: bool = Field(
        True,
        description="Delete generated binders no owner produced",
    )
    exclude: List[str] = Field(
        default_factory=list,
        description="Relative path globs to leave out of the scan",
    )


class OwnerResult(BaseModel):
    """Result for a single owner class."""
    owner: str
    binder: Optional[str] = None
    unit_path: Optional[str] = None
    field_count: int
    verdict: str
    reasons: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class GenerateResponse(BaseModel):
    """Response from a generation pass."""
    package_name: str = PACKAGE_NAME
    generator_version: str = GENERATOR_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str
    ok: bool
    modules_scanned: int = 0
    accept_count: int = 0
    warn_count: int = 0
    reject_count: int = 0
    skipped_count: int = 0
    stale_units: List[str] = Field(default_factory=list)
    pruned_units: List[str] = Field(default_factory=list)
    results: List[OwnerResult] = Field(default_factory=list)


# =============================================================================
# Router
# =============================================================================

router = APIRouter()


@router.post(
    "/generate",
    response_model=GenerateResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate binder modules for bind_view() fields",
)
async def generate_endpoint(request: GenerateRequest):
    """
    Scan every module under the source root, emit one binder per owner
    class that declares bindings, and return per-owner verdicts.
    """
    profile = GeneratorProfile.v0()
    root = Path(request.source_root or settings.SOURCE_ROOT)

    if not root.is_dir():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Source root not found: {root}",
        )

    output_root = request.output_root or settings.OUTPUT_ROOT
    report = run_generator(
        source_root=root,
        output_root=Path(output_root) if output_root else None,
        profile=profile,
        check_only=request.check_only,
        prune=request.prune,
        exclude=request.exclude,
    )

    counts = report.owner_counts
    return GenerateResponse(
        profile_id=profile.profile_id,
        ok=report.ok,
        modules_scanned=len(report.modules),
        accept_count=counts.accept,
        warn_count=counts.warn,
        reject_count=counts.reject,
        skipped_count=counts.skipped,
        stale_units=report.stale_units,
        pruned_units=report.pruned_units,
        results=[
            OwnerResult(
                owner=o.owner,
                binder=o.binder,
                unit_path=o.unit_path,
                field_count=len(o.fields),
                verdict=o.verdict,
                reasons=o.reasons,
                error=o.error,
            )
            for o in report.owners
        ],
    )
