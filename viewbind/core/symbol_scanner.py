"""
Symbol scanner — extract annotated fields from a tree-sitter CST.

For each top-level class (plain or decorated):
  - Direct class-body assignments to a single name are fields.
  - A field is annotated when its value is a call to the marker,
    ``bind_view(<id>)`` or ``<anything>.bind_view(<id>)``.
  - ``<id>`` is an integer literal or the name of a module-level constant
    bound once, above the class, to an integer literal.

Methods, nested classes, and statements under ``if``/``try``/... blocks
inside a class body are not fields and are skipped without error.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from viewbind.core.normalizer import normalize_type_text
from viewbind.core.py_parser import ParseResult, parse_module
from viewbind.errors import ScanError
from viewbind.policy.profile import DEFAULT_PROFILE, GeneratorProfile

logger = logging.getLogger(__name__)


# ── Data classes ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnnotatedField:
    """One marker-annotated field of an owner class."""
    owner: str                  # qualified owner name
    name: str
    field_type: Optional[str]   # normalized annotation text, None if untyped
    view_id: int
    line: int                   # 0-based


@dataclass(frozen=True)
class DeclaredType:
    """One top-level class and the annotated fields it declares."""
    module: str
    name: str
    line: int                   # 0-based
    fields: Tuple[AnnotatedField, ...] = ()
    is_package: bool = False    # declared in a package's __init__

    # Set when the class body carried malformed marker usage; fields is
    # then empty and the owner must not be emitted.
    error: Optional[ScanError] = field(default=None, compare=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}" if self.module else self.name


# ── Helpers ──────────────────────────────────────────────────────────────────

def _text(node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _line(node) -> int:
    return node.start_point[0]


def _assignment_of(statement) -> Optional[object]:
    """The ``assignment`` node of an expression statement, if any."""
    if statement.type != "expression_statement":
        return None
    for child in statement.named_children:
        if child.type == "assignment":
            return child
    return None


def _parse_int_literal(node) -> Optional[int]:
    if node.type != "integer":
        return None
    try:
        return int(_text(node), 0)
    except ValueError:
        return None


def _module_bindings(root) -> Dict[str, List[Tuple[int, Optional[int]]]]:
    """
    Every module-level rebinding of a plain name, as ``(line, value)``.

    ``value`` is the integer for ``NAME = <int>`` and None for anything
    else (other right-hand sides, ``NAME += ...``).  Annotation-only
    statements bind nothing and are left out.
    """
    bindings: Dict[str, List[Tuple[int, Optional[int]]]] = defaultdict(list)
    for statement in root.children:
        if statement.type != "expression_statement":
            continue
        for node in statement.named_children:
            if node.type not in ("assignment", "augmented_assignment"):
                continue
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if left is None or right is None or left.type != "identifier":
                continue
            value = _parse_int_literal(right) if node.type == "assignment" else None
            bindings[_text(left)].append((_line(node), value))
    return bindings


def _class_nodes(root) -> Iterator[object]:
    """Top-level class_definition nodes, unwrapping decorators."""
    for node in root.children:
        if node.type == "decorated_definition":
            node = node.child_by_field_name("definition")
            if node is None:
                continue
        if node.type == "class_definition":
            yield node


def _is_marker_call(node, profile: GeneratorProfile) -> bool:
    if node is None or node.type != "call":
        return False
    function = node.child_by_field_name("function")
    if function is None:
        return False
    if function.type == "identifier":
        return _text(function) == profile.marker_name
    if function.type == "attribute":
        attribute = function.child_by_field_name("attribute")
        return attribute is not None and _text(attribute) == profile.marker_name
    return False


def _marker_argument(call, module: str, profile: GeneratorProfile):
    """Return the single id argument node of a marker call."""
    arguments = call.child_by_field_name("arguments")
    args = [] if arguments is None else [
        a for a in arguments.named_children if a.type != "comment"
    ]
    if not args:
        raise ScanError(
            f"{profile.marker_name}() requires a view identifier argument",
            module, _line(call),
        )
    if len(args) > 1:
        raise ScanError(
            f"{profile.marker_name}() takes exactly one argument, got {len(args)}",
            module, _line(call),
        )

    arg = args[0]
    if arg.type == "keyword_argument":
        name = arg.child_by_field_name("name")
        if name is None or _text(name) != profile.marker_keyword:
            raise ScanError(
                f"{profile.marker_name}() got an unexpected keyword argument "
                f"'{_text(name) if name is not None else '?'}'",
                module, _line(arg),
            )
        arg = arg.child_by_field_name("value")
    elif arg.type in ("list_splat", "dictionary_splat"):
        raise ScanError(
            f"{profile.marker_name}() does not accept unpacked arguments",
            module, _line(arg),
        )
    return arg


def _resolve_constant(
    name: str,
    use_line: int,
    bindings: List[Tuple[int, Optional[int]]],
    module: str,
) -> Optional[int]:
    """
    Value of the module constant *name* as seen by a class body at
    *use_line*.  The constant must be bound exactly once, above the use,
    or the generated binder would disagree with the class at runtime.
    """
    if len(bindings) > 1:
        lines = ", ".join(str(line + 1) for line, _ in bindings)
        raise ScanError(
            f"constant '{name}' is assigned more than once (lines {lines}); "
            f"use a literal or a single assignment",
            module, use_line,
        )
    line, value = bindings[0]
    if line > use_line:
        raise ScanError(
            f"constant '{name}' is assigned on line {line + 1}, after its use",
            module, use_line,
        )
    return value


def _resolve_view_id(
    call,
    module: str,
    bindings: Dict[str, List[Tuple[int, Optional[int]]]],
    profile: GeneratorProfile,
) -> int:
    arg = _marker_argument(call, module, profile)

    value = _parse_int_literal(arg)
    if value is not None:
        return value

    if arg.type == "identifier" and _text(arg) in bindings:
        value = _resolve_constant(_text(arg), _line(arg), bindings[_text(arg)], module)
        if value is not None:
            return value

    raise ScanError(
        f"{profile.marker_name}() argument must be an integer literal or a "
        f"module-level integer constant, got '{_text(arg)}'",
        module, _line(arg),
    )


def _scan_class(
    class_node,
    module: str,
    bindings: Dict[str, List[Tuple[int, Optional[int]]]],
    profile: GeneratorProfile,
    is_package: bool = False,
) -> DeclaredType:
    """Build the DeclaredType for one class; raises ScanError on bad markers."""
    name = _text(class_node.child_by_field_name("name"))
    owner = f"{module}.{name}" if module else name
    body = class_node.child_by_field_name("body")

    fields: List[AnnotatedField] = []
    for statement in (body.named_children if body is not None else []):
        assignment = _assignment_of(statement)
        if assignment is None:
            continue

        right = assignment.child_by_field_name("right")
        if not _is_marker_call(right, profile):
            continue

        left = assignment.child_by_field_name("left")
        if left is None or left.type != "identifier":
            logger.debug(
                "%s:%d: marker on a non-field target '%s', skipped",
                module, _line(assignment) + 1, _text(left) if left else "?",
            )
            continue

        type_node = assignment.child_by_field_name("type")
        fields.append(AnnotatedField(
            owner=owner,
            name=_text(left),
            field_type=(
                normalize_type_text(_text(type_node)) if type_node is not None else None
            ),
            view_id=_resolve_view_id(right, module, bindings, profile),
            line=_line(assignment),
        ))

    return DeclaredType(
        module=module,
        name=name,
        line=_line(class_node),
        fields=tuple(fields),
        is_package=is_package,
    )


# ── Public API ───────────────────────────────────────────────────────────────

def scan_declared_types(
    parse_result: ParseResult,
    module: str,
    profile: GeneratorProfile | None = None,
    is_package: bool = False,
) -> List[DeclaredType]:
    """
    Extract every top-level class of a parsed module with its bindings.

    Parameters
    ----------
    parse_result : ParseResult
        Output from ``parse_module()``.
    module : str
        Dotted module name the source will be imported as.
    profile : GeneratorProfile, optional
        Defaults to ``GeneratorProfile.v0()``.
    is_package : bool
        The source is a package ``__init__``; binders of its classes go
        inside the package.

    Returns
    -------
    List[DeclaredType]
        One entry per class in source order, including classes with no
        bindings.  A class with malformed marker usage carries its
        ``ScanError`` in ``error``.

    Raises
    ------
    ScanError
        If the module itself has parse errors.
    """
    if profile is None:
        profile = DEFAULT_PROFILE

    if parse_result.parse_status != "OK":
        first = parse_result.parse_errors[0]
        raise ScanError(
            f"module has {len(parse_result.parse_errors)} parse error(s), "
            f"first: {first.message} at column {first.column}",
            module, first.line,
        )

    root = parse_result.tree.root_node  # type: ignore
    bindings = _module_bindings(root)

    declared: List[DeclaredType] = []
    for class_node in _class_nodes(root):
        try:
            declared.append(_scan_class(class_node, module, bindings, profile, is_package))
        except ScanError as e:
            logger.debug("scan error in %s: %s", module, e)
            declared.append(DeclaredType(
                module=module,
                name=_text(class_node.child_by_field_name("name")),
                line=_line(class_node),
                is_package=is_package,
                error=e,
            ))
    return declared


def scan_module(
    py_path: Path,
    module: str,
    profile: GeneratorProfile | None = None,
) -> List[DeclaredType]:
    """Parse and scan *py_path*, raising the first ScanError found."""
    declared = scan_declared_types(
        parse_module(py_path), module, profile,
        is_package=py_path.name == "__init__.py",
    )
    for declared_type in declared:
        if declared_type.error is not None:
            raise declared_type.error
    return declared
