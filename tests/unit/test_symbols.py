"""Tests for scopes, declarations and function signatures."""

import pytest

from minicc.errors import DuplicateDeclaration, TypeMismatch, UnknownIdentifier
from minicc.layout import LayoutContext, StaticLayout, StorageClass
from minicc.symbols import FunctionSignature, SymbolTable
from minicc.targets import Target
from minicc.types import CHAR, INT, PointerType, TypeModel


def _table():
    model = TypeModel(Target.AMD64)
    return SymbolTable(StaticLayout(model)), model


def _in_function(name="f"):
    table, model = _table()
    table.freeze_globals()
    table.begin_function(LayoutContext(name, model))
    return table


class TestScopes:
    def test_redeclaration_in_same_scope_rejected(self):
        table = _in_function()
        table.declare("x", INT, StorageClass.LOCAL)
        with pytest.raises(DuplicateDeclaration, match="'x'"):
            table.declare("x", CHAR, StorageClass.LOCAL)

    def test_parameter_and_body_local_share_scope(self):
        table = _in_function()
        table.declare("n", INT, StorageClass.PARAMETER)
        with pytest.raises(DuplicateDeclaration):
            table.declare("n", INT, StorageClass.LOCAL)

    def test_inner_scope_shadows_and_gets_own_slot(self):
        table = _in_function()
        outer = table.declare("x", INT, StorageClass.LOCAL)
        table.push_scope()
        inner = table.declare("x", INT, StorageClass.LOCAL)
        assert table.resolve("x") is inner
        assert inner.location != outer.location
        table.pop_scope()
        assert table.resolve("x") is outer

    def test_unknown_identifier(self):
        table = _in_function()
        with pytest.raises(UnknownIdentifier, match="'ghost'"):
            table.resolve("ghost")

    def test_cannot_pop_function_scope(self):
        table = _in_function()
        with pytest.raises(RuntimeError):
            table.pop_scope()

    def test_locals_get_negative_offsets(self):
        table = _in_function()
        a = table.declare("a", INT, StorageClass.LOCAL)
        p = table.declare("p", PointerType(CHAR), StorageClass.LOCAL)
        assert a.location == -4
        assert p.location == -16

    def test_end_function_returns_layout(self):
        table = _in_function("g")
        table.declare("a", INT, StorageClass.LOCAL)
        layout = table.end_function()
        assert layout.function_name == "g"
        assert layout.slot("a").offset == -4


class TestGlobals:
    def test_global_gets_static_address(self):
        table, _ = _table()
        g = table.declare_global("g", INT)
        assert g.is_global
        assert g.location == 0x1000

    def test_global_scope_frozen_after_declaration_pass(self):
        table, _ = _table()
        table.freeze_globals()
        with pytest.raises(RuntimeError):
            table.declare_global("late", INT)

    def test_global_visible_inside_function(self):
        table, model = _table()
        g = table.declare_global("g", INT)
        table.freeze_globals()
        table.begin_function(LayoutContext("f", model))
        assert table.resolve("g") is g

    def test_declare_outside_function_rejected(self):
        table, _ = _table()
        with pytest.raises(RuntimeError):
            table.declare("x", INT, StorageClass.LOCAL)


class TestFunctions:
    def test_prototype_then_definition(self):
        table, _ = _table()
        sig = FunctionSignature("f", INT, (INT,))
        table.declare_function(sig)
        table.declare_function(sig, definition=True)
        assert table.lookup_function("f") == sig
        assert "f" in table.defined_functions

    def test_redefinition_rejected(self):
        table, _ = _table()
        sig = FunctionSignature("f", INT)
        table.declare_function(sig, definition=True)
        with pytest.raises(DuplicateDeclaration, match="redefinition"):
            table.declare_function(sig, definition=True)

    def test_conflicting_prototypes_rejected(self):
        table, _ = _table()
        table.declare_function(FunctionSignature("f", INT, (INT,)))
        with pytest.raises(TypeMismatch, match="conflicting"):
            table.declare_function(FunctionSignature("f", INT, (CHAR,)))

    def test_function_and_variable_names_collide(self):
        table, _ = _table()
        table.declare_global("f", INT)
        with pytest.raises(DuplicateDeclaration):
            table.declare_function(FunctionSignature("f", INT))

    def test_lookup_unknown_function(self):
        table, _ = _table()
        with pytest.raises(UnknownIdentifier, match="undeclared function"):
            table.lookup_function("nope")
