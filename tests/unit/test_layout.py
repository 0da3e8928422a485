"""Tests for frame slot allocation and the static data layout."""

import pytest

from minicc.layout import (
    LayoutContext,
    StaticLayout,
    StorageClass,
    outgoing_area_size,
)
from minicc.targets import Target
from minicc.types import CHAR, INT, ArrayType, PointerType, TypeModel


def _context(target=Target.AMD64, name="f"):
    return LayoutContext(name, TypeModel(target))


class TestFrameSlots:
    def test_slots_follow_declaration_order(self):
        ctx = _context()
        a = ctx.reserve("a", INT, StorageClass.LOCAL)
        b = ctx.reserve("b", INT, StorageClass.LOCAL)
        c = ctx.reserve("c", CHAR, StorageClass.LOCAL)
        arr = ctx.reserve("arr", ArrayType(INT, 3), StorageClass.LOCAL)

        assert (a.offset, b.offset, c.offset) == (-4, -8, -9)
        # 9 + 12 = 21, rounded up to int alignment
        assert arr.offset == -24
        assert arr.size == 12

    def test_pointer_slot_is_pointer_aligned(self):
        ctx = _context()
        ctx.reserve("x", INT, StorageClass.LOCAL)
        p = ctx.reserve("p", PointerType(INT), StorageClass.LOCAL)
        assert p.offset == -16
        assert p.offset % 8 == 0

    def test_slots_do_not_overlap(self):
        ctx = _context()
        for i, ctype in enumerate([CHAR, INT, PointerType(CHAR), ArrayType(CHAR, 5), INT]):
            ctx.reserve(f"v{i}", ctype, StorageClass.LOCAL)
        layout = ctx.finish()
        spans = sorted((s.offset, s.end) for s in layout.slots)
        for (_, end), (start, _) in zip(spans, spans[1:]):
            assert end <= start
        assert all(s.end <= 0 for s in layout.slots)

    def test_temporaries_are_hidden_names(self):
        ctx = _context()
        t0 = ctx.reserve_temp(INT)
        t1 = ctx.reserve_temp(INT)
        assert t0.name.startswith(".") and t0.name != t1.name
        assert t0.storage == StorageClass.TEMPORARY

    def test_reserve_after_finish_rejected(self):
        ctx = _context()
        ctx.finish()
        with pytest.raises(RuntimeError):
            ctx.reserve("late", INT, StorageClass.LOCAL)


class TestFrameSize:
    @pytest.mark.parametrize("target", list(Target))
    def test_linkage_plus_frame_is_aligned(self, target):
        for n in range(0, 12):
            ctx = _context(target)
            for i in range(n):
                ctx.reserve(f"v{i}", CHAR if i % 3 else INT, StorageClass.LOCAL)
            layout = ctx.finish()
            assert (layout.linkage_size + layout.frame_size) % 16 == 0
            assert layout.frame_size >= layout.locals_size

    def test_amd64_frame_size(self):
        ctx = _context(Target.AMD64)
        ctx.reserve("a", INT, StorageClass.LOCAL)
        ctx.reserve("b", ArrayType(INT, 5), StorageClass.LOCAL)
        layout = ctx.finish()
        assert layout.locals_size == 24
        assert layout.frame_size == 32

    def test_i386_frame_size(self):
        ctx = _context(Target.I386)
        ctx.reserve("a", INT, StorageClass.LOCAL)
        ctx.reserve("b", ArrayType(INT, 5), StorageClass.LOCAL)
        layout = ctx.finish()
        assert layout.linkage_size == 8
        assert layout.frame_size == 24

    def test_empty_frame(self):
        layout = _context(Target.AMD64).finish()
        assert layout.frame_size == 0

    def test_describe_lists_slots(self):
        ctx = _context(name="main")
        ctx.reserve("n", INT, StorageClass.PARAMETER)
        text = ctx.finish().describe()
        assert text.startswith("frame main:")
        assert "parameter" in text and "int n" in text


class TestOutgoingArea:
    def test_area_is_multiple_of_alignment(self):
        model = TypeModel(Target.AMD64)
        assert outgoing_area_size(0, model) == 0
        assert outgoing_area_size(1, model) == 16
        assert outgoing_area_size(2, model) == 16
        assert outgoing_area_size(3, model) == 32

    def test_i386_slots_are_four_bytes(self):
        model = TypeModel(Target.I386)
        assert outgoing_area_size(4, model) == 16
        assert outgoing_area_size(5, model) == 32


class TestStaticLayout:
    def test_globals_are_aligned(self):
        statics = StaticLayout(TypeModel(Target.AMD64))
        c = statics.allocate("c", CHAR)
        i = statics.allocate("i", INT)
        p = statics.allocate("p", PointerType(INT))
        assert c == 0x1000
        assert i == 0x1004
        assert p == 0x1008
        assert len(statics.image()) == 16

    def test_strings_are_pooled(self):
        statics = StaticLayout(TypeModel(Target.AMD64))
        first = statics.intern_string(b"hi")
        again = statics.intern_string(b"hi")
        other = statics.intern_string(b"yo")
        assert first == again
        assert other == first + 3
        assert statics.image() == b"hi\x00yo\x00"

    def test_write_int_little_endian(self):
        statics = StaticLayout(TypeModel(Target.AMD64))
        addr = statics.allocate("g", INT)
        statics.write_int(addr, -2, 4)
        assert statics.image() == b"\xfe\xff\xff\xff"
