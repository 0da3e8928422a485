"""Symbol & scope table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import DuplicateDeclaration, TypeMismatch, UnknownIdentifier
from .layout import FrameLayout, LayoutContext, StaticLayout, StorageClass
from .types import CType

logger = logging.getLogger(__name__)


@dataclass
class Symbol:
    name: str
    ctype: CType
    storage: StorageClass
    depth: int
    location: int | None = None  # frame offset, or static address for globals

    def assign_location(self, value: int) -> None:
        if self.location is not None:
            raise RuntimeError(f"storage for '{self.name}' is already assigned")
        self.location = value

    @property
    def is_global(self) -> bool:
        return self.storage == StorageClass.GLOBAL


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    return_type: CType
    param_types: tuple[CType, ...] = ()
    variadic: bool = False
    external: bool = False

    def same_shape(self, other: FunctionSignature) -> bool:
        return (
            self.return_type == other.return_type
            and self.param_types == other.param_types
            and self.variadic == other.variadic
        )


@dataclass
class Scope:
    depth: int
    symbols: dict[str, Symbol] = field(default_factory=dict)


class SymbolTable:
    """Nested scopes over a global scope that is frozen after the declaration pass.

    Frame slots are reserved through the active ``LayoutContext`` at the
    moment a parameter or local is declared, so offsets follow declaration
    order exactly.
    """

    def __init__(self, statics: StaticLayout):
        self._statics = statics
        self._global = Scope(depth=0)
        self._scopes: list[Scope] = [self._global]
        self._globals_frozen = False
        self._layout: LayoutContext | None = None
        self.functions: dict[str, FunctionSignature] = {}
        self.defined_functions: set[str] = set()

    # ── whole-program declarations ───────────────────────────────

    def declare_function(self, sig: FunctionSignature, node=None, definition=False):
        if sig.name in self._global.symbols:
            raise DuplicateDeclaration(
                f"'{sig.name}' is already declared as a variable", node
            )
        existing = self.functions.get(sig.name)
        if existing is not None and not existing.same_shape(sig):
            raise TypeMismatch(f"conflicting declarations of '{sig.name}'", node)
        if definition:
            if sig.name in self.defined_functions:
                raise DuplicateDeclaration(f"redefinition of '{sig.name}'", node)
            self.defined_functions.add(sig.name)
        if existing is None or definition:
            self.functions[sig.name] = sig

    def declare_global(self, name: str, ctype: CType, node=None) -> Symbol:
        if self._globals_frozen:
            raise RuntimeError("global scope is read-only after the declaration pass")
        if name in self.functions:
            raise DuplicateDeclaration(f"'{name}' is already declared as a function", node)
        symbol = self._insert(self._global, name, ctype, StorageClass.GLOBAL, node)
        symbol.assign_location(self._statics.allocate(name, ctype, node))
        return symbol

    def freeze_globals(self) -> None:
        self._globals_frozen = True

    # ── per-function scopes ──────────────────────────────────────

    def begin_function(self, layout: LayoutContext) -> None:
        self._layout = layout
        self._scopes = [self._global, Scope(depth=1)]

    def end_function(self) -> FrameLayout:
        layout = self._layout
        self._layout = None
        self._scopes = [self._global]
        return layout.finish()

    def push_scope(self) -> None:
        self._scopes.append(Scope(depth=len(self._scopes)))

    def pop_scope(self) -> None:
        if len(self._scopes) <= 2:
            raise RuntimeError("cannot pop the function's outermost scope")
        self._scopes.pop()

    @property
    def depth(self) -> int:
        return self._scopes[-1].depth

    def declare(self, name: str, ctype: CType, storage: StorageClass, node=None) -> Symbol:
        if self._layout is None:
            raise RuntimeError("declare() outside of a function; use declare_global()")
        symbol = self._insert(self._scopes[-1], name, ctype, storage, node)
        slot = self._layout.reserve(name, ctype, storage, node)
        symbol.assign_location(slot.offset)
        return symbol

    def resolve(self, name: str, node=None) -> Symbol:
        for scope in reversed(self._scopes):
            if name in scope.symbols:
                return scope.symbols[name]
        raise UnknownIdentifier(f"'{name}' is not declared", node)

    def lookup_function(self, name: str, node=None) -> FunctionSignature:
        if name not in self.functions:
            raise UnknownIdentifier(f"call to undeclared function '{name}'", node)
        return self.functions[name]

    def _insert(
        self, scope: Scope, name: str, ctype: CType, storage: StorageClass, node
    ) -> Symbol:
        if name in scope.symbols:
            raise DuplicateDeclaration(
                f"'{name}' is already declared in this scope", node
            )
        symbol = Symbol(name=name, ctype=ctype, storage=storage, depth=scope.depth)
        scope.symbols[name] = symbol
        return symbol
