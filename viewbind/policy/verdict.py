"""
Verdict logic for viewbind v0.

Verdicts are derived from the scanned bindings and the emission outcome
only.  Nothing is imported or executed to reach them.
"""
from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from typing import List, Tuple

from viewbind.core.py_parser import ParseResult
from viewbind.core.spec_builder import BindingSpec
from viewbind.errors import BinderCollisionError, EmitError, ScanError

logger = logging.getLogger(__name__)


# ── Enums ────────────────────────────────────────────────────────────────────

class Verdict(str, Enum):
    ACCEPT = "ACCEPT"
    WARN = "WARN"
    REJECT = "REJECT"


class ModuleRejectReason(str, Enum):
    MODULE_PARSE_ERROR = "MODULE_PARSE_ERROR"
    MODULE_READ_ERROR = "MODULE_READ_ERROR"


class OwnerRejectReason(str, Enum):
    SCAN_ERROR = "SCAN_ERROR"
    BINDER_NAME_COLLISION = "BINDER_NAME_COLLISION"
    EMIT_ERROR = "EMIT_ERROR"


class OwnerWarnReason(str, Enum):
    DUPLICATE_VIEW_ID = "DUPLICATE_VIEW_ID"
    UNTYPED_FIELD = "UNTYPED_FIELD"
    STALE_UNIT = "STALE_UNIT"


# ── Module-level gate ────────────────────────────────────────────────────────

def gate_module(parse_result: ParseResult) -> Tuple[Verdict, List[str]]:
    """
    Module-level verdict.

    Unlike a best-effort index, a partial parse is never usable here: a
    binder generated from a broken module could silently miss fields.
    """
    if parse_result.parse_status == "ERROR":
        return Verdict.REJECT, [ModuleRejectReason.MODULE_PARSE_ERROR.value]
    return Verdict.ACCEPT, []


# ── Owner-level judge ────────────────────────────────────────────────────────

def judge_owner(spec: BindingSpec) -> Tuple[Verdict, List[str]]:
    """
    Verdict for an owner whose spec is about to be emitted.

    Shared view identifiers are allowed (one element may feed several
    fields) and only reported.
    """
    reasons: List[str] = []

    id_counts = Counter(f.view_id for f in spec.fields)
    if any(c > 1 for c in id_counts.values()):
        reasons.append(OwnerWarnReason.DUPLICATE_VIEW_ID.value)

    if any(f.field_type is None for f in spec.fields):
        reasons.append(OwnerWarnReason.UNTYPED_FIELD.value)

    if reasons:
        return Verdict.WARN, reasons
    return Verdict.ACCEPT, reasons


def reject_reason(error: Exception) -> str:
    """Reason tag for an owner that failed scanning, naming or emission."""
    if isinstance(error, BinderCollisionError):
        return OwnerRejectReason.BINDER_NAME_COLLISION.value
    if isinstance(error, ScanError):
        return OwnerRejectReason.SCAN_ERROR.value
    if isinstance(error, EmitError):
        return OwnerRejectReason.EMIT_ERROR.value
    raise TypeError(f"no reject reason for {type(error).__name__}")
