"""
Normalizer — deterministic text normalization and hashing.

v0 normalization of annotation text:
  - Drop the quotes of a string forward reference (``"TextView"``).
  - Collapse all whitespace to a single space, then tighten it around
    brackets and commas so multi-line annotations render on one line.
  - Do NOT rewrite names (no alias resolution, no import lookup).
"""
from __future__ import annotations

import hashlib
import re

_WHITESPACE_RE = re.compile(r"\s+")
_BRACKET_SPACE_RE = re.compile(r"\s*([\[\]\(\),|])\s*")


def normalize_type_text(raw: str) -> str:
    """Normalize the source text of a type annotation."""
    text = raw.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        text = text[1:-1].strip()
    text = _WHITESPACE_RE.sub(" ", text)
    text = _BRACKET_SPACE_RE.sub(r"\1", text)
    # one space after commas and around unions, as written by formatters
    text = text.replace(",", ", ").replace("|", " | ")
    return text.strip()


def raw_hash(raw: bytes) -> str:
    """SHA-256 hex digest of raw bytes (no normalization)."""
    return hashlib.sha256(raw).hexdigest()
