"""Type & size model for the supported C subset."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants
from .errors import TypeMismatch
from .targets import Target


@dataclass(frozen=True)
class CType:
    """Base of all C types. Instances are immutable and compare by value."""

    @property
    def is_scalar_int(self) -> bool:
        return isinstance(self, (IntType, CharType))

    @property
    def is_pointer(self) -> bool:
        return isinstance(self, PointerType)

    @property
    def is_array(self) -> bool:
        return isinstance(self, ArrayType)

    @property
    def is_void(self) -> bool:
        return isinstance(self, VoidType)


@dataclass(frozen=True)
class VoidType(CType):
    def __str__(self) -> str:
        return "void"


@dataclass(frozen=True)
class CharType(CType):
    def __str__(self) -> str:
        return "char"


@dataclass(frozen=True)
class IntType(CType):
    def __str__(self) -> str:
        return "int"


@dataclass(frozen=True)
class PointerType(CType):
    pointee: CType

    def __str__(self) -> str:
        return f"{self.pointee}*"


@dataclass(frozen=True)
class ArrayType(CType):
    element: CType
    length: int

    def __str__(self) -> str:
        return f"{self.element}[{self.length}]"


VOID = VoidType()
CHAR = CharType()
INT = IntType()


def pointer_to(ctype: CType, depth: int = 1) -> CType:
    for _ in range(depth):
        ctype = PointerType(ctype)
    return ctype


def decay(ctype: CType) -> CType:
    """Array-to-pointer conversion applied in expression contexts."""
    if isinstance(ctype, ArrayType):
        return PointerType(ctype.element)
    return ctype


def adjust_parameter(ctype: CType) -> CType:
    """A parameter declared as ``T name[]`` or ``T name[N]`` has type ``T*``."""
    return decay(ctype)


class TypeModel:
    """Sizes and alignments of every type shape on a given target."""

    def __init__(self, target: Target):
        self.target = target

    def size_of(self, ctype: CType, node=None) -> int:
        if isinstance(ctype, IntType):
            return constants.INT_SIZE
        if isinstance(ctype, CharType):
            return constants.CHAR_SIZE
        if isinstance(ctype, PointerType):
            return self.target.pointer_size
        if isinstance(ctype, ArrayType):
            return ctype.length * self.size_of(ctype.element, node)
        raise TypeMismatch(f"type '{ctype}' has no size", node)

    def align_of(self, ctype: CType, node=None) -> int:
        if isinstance(ctype, ArrayType):
            return self.align_of(ctype.element, node)
        return self.size_of(ctype, node)

    def element_size(self, ctype: CType, node=None) -> int:
        """Size of what a pointer points to, or of an array's element."""
        if isinstance(ctype, PointerType):
            if ctype.pointee.is_void:
                raise TypeMismatch("arithmetic on 'void*'", node)
            return self.size_of(ctype.pointee, node)
        if isinstance(ctype, ArrayType):
            return self.size_of(ctype.element, node)
        raise TypeMismatch(f"'{ctype}' is not a pointer or array", node)

    def is_signed(self, ctype: CType) -> bool:
        return ctype.is_scalar_int


def is_assignable(target: CType, source: CType, source_is_null: bool = False) -> bool:
    """C assignment compatibility, restricted to the supported subset."""
    source = decay(source)
    if target.is_scalar_int and source.is_scalar_int:
        return True
    if isinstance(target, PointerType):
        if source_is_null:
            return True
        if isinstance(source, PointerType):
            return (
                target == source or target.pointee.is_void or source.pointee.is_void
            )
    return False


def align_up(value: int, alignment: int) -> int:
    return (value + alignment - 1) // alignment * alignment
