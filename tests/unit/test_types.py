"""Tests for the type model and target descriptions."""

import pytest

from minicc.errors import TypeMismatch
from minicc.targets import Target, resolve_target
from minicc.types import (
    CHAR,
    INT,
    VOID,
    ArrayType,
    PointerType,
    TypeModel,
    adjust_parameter,
    align_up,
    decay,
    is_assignable,
    pointer_to,
)


class TestTargets:
    def test_pointer_size_per_target(self):
        assert Target.I386.pointer_size == 4
        assert Target.AMD64.pointer_size == 8
        assert Target.ARM64.pointer_size == 8

    def test_linkage_is_two_pointers(self):
        assert Target.I386.linkage_size == 8
        assert Target.AMD64.linkage_size == 16

    def test_stack_alignment_is_sixteen_everywhere(self):
        assert {t.stack_alignment for t in Target} == {16}

    def test_aliases(self):
        assert Target.from_string("x86_64") is Target.AMD64
        assert Target.from_string("AArch64") is Target.ARM64
        assert Target.from_string("i686") is Target.I386

    def test_native_resolves_to_a_known_target(self):
        assert Target.from_string("native") in set(Target)

    def test_unknown_target_rejected(self):
        with pytest.raises(ValueError, match="Unsupported target"):
            Target.from_string("mips")

    def test_resolve_target_passes_enum_through(self):
        assert resolve_target(Target.ARM64) is Target.ARM64
        assert resolve_target("amd64") is Target.AMD64


class TestSizes:
    def test_scalar_sizes_do_not_depend_on_target(self):
        for target in Target:
            model = TypeModel(target)
            assert model.size_of(INT) == 4
            assert model.size_of(CHAR) == 1

    def test_pointer_size_follows_target(self):
        assert TypeModel(Target.I386).size_of(PointerType(INT)) == 4
        assert TypeModel(Target.AMD64).size_of(PointerType(CHAR)) == 8

    def test_array_size_and_alignment(self):
        model = TypeModel(Target.AMD64)
        arr = ArrayType(INT, 5)
        assert model.size_of(arr) == 20
        assert model.align_of(arr) == 4
        assert model.align_of(ArrayType(PointerType(INT), 2)) == 8

    def test_void_has_no_size(self):
        with pytest.raises(TypeMismatch):
            TypeModel(Target.AMD64).size_of(VOID)

    def test_element_size(self):
        model = TypeModel(Target.AMD64)
        assert model.element_size(PointerType(INT)) == 4
        assert model.element_size(PointerType(PointerType(CHAR))) == 8
        assert model.element_size(ArrayType(CHAR, 3)) == 1

    def test_void_pointer_arithmetic_rejected(self):
        with pytest.raises(TypeMismatch, match="void"):
            TypeModel(Target.AMD64).element_size(PointerType(VOID))


class TestConversions:
    def test_decay_and_parameter_adjustment(self):
        assert decay(ArrayType(INT, 4)) == PointerType(INT)
        assert decay(INT) == INT
        assert adjust_parameter(ArrayType(CHAR, 0)) == PointerType(CHAR)

    def test_pointer_to_depth(self):
        assert pointer_to(INT, 2) == PointerType(PointerType(INT))
        assert str(pointer_to(CHAR, 2)) == "char**"

    def test_integers_interconvert(self):
        assert is_assignable(INT, CHAR)
        assert is_assignable(CHAR, INT)

    def test_pointer_assignment_rules(self):
        assert is_assignable(PointerType(INT), ArrayType(INT, 3))
        assert not is_assignable(PointerType(INT), PointerType(CHAR))
        assert is_assignable(PointerType(INT), PointerType(VOID))
        assert is_assignable(PointerType(CHAR), INT, source_is_null=True)
        assert not is_assignable(PointerType(CHAR), INT)
        assert not is_assignable(INT, PointerType(INT))

    def test_align_up(self):
        assert align_up(0, 16) == 0
        assert align_up(1, 16) == 16
        assert align_up(32, 16) == 32
        assert align_up(9, 4) == 12
