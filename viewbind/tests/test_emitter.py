"""
Tests for binder rendering, the emitter, and the unit sinks.
"""
import pytest

from viewbind.core.code_emitter import (
    GENERATED_HEADER,
    CodeEmitter,
    is_generated_source,
    render_unit,
)
from viewbind.core.spec_builder import make_spec
from viewbind.core.symbol_scanner import AnnotatedField, DeclaredType
from viewbind.errors import EmitError
from viewbind.io.sink import DirectorySink, MemorySink


def _spec(module="app.screens", name="MainScreen", fields=(("content_view", "TextView", 100),)):
    owner = f"{module}.{name}"
    return make_spec(DeclaredType(
        module=module,
        name=name,
        line=0,
        fields=tuple(
            AnnotatedField(owner=owner, name=n, field_type=t, view_id=v, line=i)
            for i, (n, t, v) in enumerate(fields)
        ),
    ))


EXPECTED_MAIN_SCREEN = """\
# Generated by viewbind v0. Do not edit.
# owner: app.screens.MainScreen
from typing import cast

from viewbind.runtime.registry import register_binder

from app.screens import MainScreen


class MainScreenBinding:
    def __init__(self, target: MainScreen) -> None:
        target.content_view = cast("TextView", target.find_by_identifier(100))
        target.footer = target.find_by_identifier(7)


register_binder(MainScreen, MainScreenBinding, (
    ("content_view", 100),
    ("footer", 7),
))
"""


class _FailingSink:
    def __init__(self, exc):
        self.exc = exc
        self.calls = 0

    def write(self, unit):
        self.calls += 1
        raise self.exc


# ═══════════════════════════════════════════════════════════════════════════════
# Rendering
# ═══════════════════════════════════════════════════════════════════════════════

class TestRenderUnit:

    def test_exact_source(self):
        spec = _spec(fields=(("content_view", "TextView", 100), ("footer", None, 7)))
        assert render_unit(spec).source == EXPECTED_MAIN_SCREEN

    def test_one_assignment_per_field(self):
        spec = _spec(fields=(("a", "V", 1), ("b", "V", 1), ("c", "W", 2)))
        lines = render_unit(spec).source.splitlines()
        body = [ln for ln in lines if ln.startswith("        target.")]
        assert body == [
            '        target.a = cast("V", target.find_by_identifier(1))',
            '        target.b = cast("V", target.find_by_identifier(1))',
            '        target.c = cast("W", target.find_by_identifier(2))',
        ]

    def test_no_cast_import_without_types(self):
        source = render_unit(_spec(fields=(("footer", None, 7),))).source
        assert "from typing import cast" not in source
        assert "target.footer = target.find_by_identifier(7)" in source

    def test_generic_type_kept_as_string(self):
        source = render_unit(_spec(fields=(("items", "List[Row]", 3),))).source
        assert 'cast("List[Row]", target.find_by_identifier(3))' in source

    def test_deterministic(self):
        a = render_unit(_spec())
        b = render_unit(_spec())
        assert a.source == b.source
        assert a.content_hash == b.content_hash

    def test_unit_location(self):
        unit = render_unit(_spec())
        assert unit.module == "app.main_screen_binding"
        assert unit.path == "app/main_screen_binding.py"

    def test_header_marks_generated(self):
        source = render_unit(_spec()).source
        assert source.startswith(GENERATED_HEADER)
        assert is_generated_source(source)
        assert not is_generated_source("# my module\n")

    def test_rendered_source_compiles(self):
        compile(render_unit(_spec(fields=(("a", "V", 1), ("b", None, 2)))).source,
                "<binder>", "exec")


# ═══════════════════════════════════════════════════════════════════════════════
# Emitter
# ═══════════════════════════════════════════════════════════════════════════════

class TestCodeEmitter:

    def test_writes_once_per_spec(self):
        sink = MemorySink()
        result = CodeEmitter(sink).emit(_spec())
        assert sink.write_count == 1
        assert sink.units[result.unit.path].source == result.unit.source
        assert result.changed is True

    def test_unchanged_second_emit(self):
        sink = MemorySink()
        emitter = CodeEmitter(sink)
        emitter.emit(_spec())
        assert emitter.emit(_spec()).changed is False
        assert sink.write_count == 2

    def test_os_error_becomes_emit_error(self):
        sink = _FailingSink(PermissionError("read-only"))
        with pytest.raises(EmitError) as info:
            CodeEmitter(sink).emit(_spec())
        assert sink.calls == 1
        assert info.value.unit_path == "app/main_screen_binding.py"
        assert isinstance(info.value.__cause__, PermissionError)

    def test_emit_error_passes_through(self):
        error = EmitError("refused", "x.py")
        with pytest.raises(EmitError) as info:
            CodeEmitter(_FailingSink(error)).emit(_spec())
        assert info.value is error


# ═══════════════════════════════════════════════════════════════════════════════
# Directory sink
# ═══════════════════════════════════════════════════════════════════════════════

class TestDirectorySink:

    def test_writes_below_root(self, tmp_path):
        sink = DirectorySink(tmp_path)
        unit = render_unit(_spec())
        assert sink.write(unit) is True
        target = tmp_path / "app" / "main_screen_binding.py"
        assert target.read_bytes() == unit.source.encode("utf-8")
        assert sink.written == [unit.path]

    def test_unchanged_not_rewritten(self, tmp_path):
        unit = render_unit(_spec())
        DirectorySink(tmp_path).write(unit)
        target = tmp_path / unit.path
        mtime = target.stat().st_mtime_ns

        sink = DirectorySink(tmp_path)
        assert sink.write(unit) is False
        assert sink.unchanged == [unit.path]
        assert target.stat().st_mtime_ns == mtime

    def test_refuses_hand_written_module(self, tmp_path):
        target = tmp_path / "app" / "main_screen_binding.py"
        target.parent.mkdir()
        target.write_text("# hand-written\nVALUE = 1\n")
        with pytest.raises(EmitError, match="hand-written"):
            DirectorySink(tmp_path).write(render_unit(_spec()))
        assert target.read_text() == "# hand-written\nVALUE = 1\n"

    def test_check_mode_records_stale(self, tmp_path):
        sink = DirectorySink(tmp_path, check_only=True)
        unit = render_unit(_spec())
        assert sink.write(unit) is True
        assert sink.stale == [unit.path]
        assert not (tmp_path / unit.path).exists()

    def test_prune_removes_unclaimed_units(self, tmp_path):
        old = render_unit(_spec(name="OldScreen"))
        kept = render_unit(_spec(name="MainScreen"))
        DirectorySink(tmp_path).write(old)
        (tmp_path / "app" / "helpers.py").write_text("def f():\n    pass\n")

        sink = DirectorySink(tmp_path)
        sink.write(kept)
        assert sink.prune() == [old.path]
        assert not (tmp_path / old.path).exists()
        assert (tmp_path / kept.path).exists()
        assert (tmp_path / "app" / "helpers.py").exists()

    def test_prune_keep_list(self, tmp_path):
        old = render_unit(_spec(name="OldScreen"))
        DirectorySink(tmp_path).write(old)
        assert DirectorySink(tmp_path).prune(keep=[old.path]) == []
        assert (tmp_path / old.path).exists()

    def test_prune_in_check_mode_deletes_nothing(self, tmp_path):
        old = render_unit(_spec(name="OldScreen"))
        DirectorySink(tmp_path).write(old)
        sink = DirectorySink(tmp_path, check_only=True)
        assert sink.prune() == [old.path]
        assert sink.stale == [old.path]
        assert (tmp_path / old.path).exists()
