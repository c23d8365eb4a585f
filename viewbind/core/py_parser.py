"""
Tree-sitter front end for Python sources.

The scanner reads nothing but the tree produced here; host modules are
never imported or executed during generation.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List

import tree_sitter_python as tsp
from tree_sitter import Language, Parser, Tree

_PARSER = Parser(Language(tsp.language()))

try:
    PARSER_VERSION = f"tree-sitter-python=={version('tree-sitter-python')}"
except PackageNotFoundError:
    PARSER_VERSION = "tree-sitter-python==unknown"


@dataclass(frozen=True)
class ParseError:
    line: int        # 0-based
    column: int      # 0-based
    message: str     # "ERROR" or "MISSING(<node type>)"


@dataclass
class ParseResult:
    tree: Tree
    source_bytes: bytes
    path: str
    source_hash: str                     # sha256 of source_bytes
    parse_status: str                    # "OK" | "ERROR"
    parse_errors: List[ParseError] = field(default_factory=list)


def _error_nodes(tree: Tree) -> List[ParseError]:
    """ERROR and MISSING nodes in document order."""
    if not tree.root_node.has_error:
        return []
    found: List[ParseError] = []
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.is_missing:
            found.append(ParseError(*node.start_point, f"MISSING({node.type})"))
        elif node.type == "ERROR":
            found.append(ParseError(*node.start_point, "ERROR"))
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))
    return found


def parse_source(source_bytes: bytes, path: str = "<memory>") -> ParseResult:
    """Parse Python source held in memory."""
    tree = _PARSER.parse(source_bytes)
    errors = _error_nodes(tree)
    return ParseResult(
        tree=tree,
        source_bytes=source_bytes,
        path=path,
        source_hash=hashlib.sha256(source_bytes).hexdigest(),
        parse_status="ERROR" if errors else "OK",
        parse_errors=errors,
    )


def parse_module(py_path: Path) -> ParseResult:
    """Read and parse one ``.py`` file."""
    return parse_source(py_path.read_bytes(), str(py_path))
