"""CFrontend — tree-sitter C syntax tree -> minicc AST."""

from __future__ import annotations

import logging
import string
from typing import Callable

from . import ast_nodes as ast
from .errors import ParseError, TypeMismatch, UnsupportedConstruct
from .ir import SourceLocation
from .types import CHAR, INT, VOID, ArrayType, CType, PointerType, adjust_parameter

logger = logging.getLogger(__name__)

PREPROC_NOISE_TYPES = frozenset(
    {
        "preproc_include",
        "preproc_define",
        "preproc_ifdef",
        "preproc_ifndef",
        "preproc_if",
        "preproc_else",
        "preproc_elif",
        "preproc_endif",
        "preproc_call",
        "preproc_def",
        "preproc_function_def",
    }
)
COMMENT_TYPES = frozenset({"comment"})

PRIMITIVE_TYPES: dict[str, CType] = {"int": INT, "char": CHAR, "void": VOID}

BINARY_OPERATORS = frozenset(
    {"+", "-", "*", "/", "%", "<<", ">>", "&", "|", "^"}
    | {"<", "<=", ">", ">=", "==", "!="}
)
LOGICAL_OPERATORS = frozenset({"&&", "||"})
UNARY_OPERATORS = frozenset({"-", "+", "~", "!"})

POINTER_DECLARATORS = frozenset({"pointer_declarator", "abstract_pointer_declarator"})
ARRAY_DECLARATORS = frozenset({"array_declarator", "abstract_array_declarator"})
PAREN_DECLARATORS = frozenset(
    {"parenthesized_declarator", "abstract_parenthesized_declarator"}
)

_SIMPLE_ESCAPES = {
    "n": 0x0A,
    "t": 0x09,
    "r": 0x0D,
    "a": 0x07,
    "b": 0x08,
    "f": 0x0C,
    "v": 0x0B,
    "e": 0x1B,
    "\\": 0x5C,
    "'": 0x27,
    '"': 0x22,
    "?": 0x3F,
}
_OCTAL_DIGITS = "01234567"


def decode_c_escapes(text: str) -> bytes:
    """Decode the body of a C string or character literal into bytes."""
    out = bytearray()
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\":
            out.extend(ch.encode("utf-8"))
            i += 1
            continue
        if i + 1 >= len(text):
            raise ValueError("dangling backslash in literal")
        esc = text[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 2
        elif esc == "x":
            j = i + 2
            while j < len(text) and text[j] in string.hexdigits:
                j += 1
            if j == i + 2:
                raise ValueError("\\x used with no following hex digits")
            out.append(int(text[i + 2 : j], 16) & 0xFF)
            i = j
        elif esc in _OCTAL_DIGITS:
            j = i + 1
            while j < len(text) and j < i + 4 and text[j] in _OCTAL_DIGITS:
                j += 1
            out.append(int(text[i + 1 : j], 8) & 0xFF)
            i = j
        else:
            out.extend(esc.encode("utf-8"))
            i += 2
    return bytes(out)


def parse_integer_literal(text: str) -> int:
    """Value of a C integer constant; ``U``/``L`` suffixes are accepted and ignored."""
    body = text.lower().replace("'", "").rstrip("ul")
    sign = -1 if body.startswith("-") else 1
    # the C grammar folds a leading sign into the literal token
    body = body.lstrip("+-")
    if body.startswith("0x"):
        return sign * int(body[2:], 16)
    if body.startswith("0b"):
        return sign * int(body[2:], 2)
    if "." in body or "e" in body:
        raise ValueError(f"floating constant '{text}'")
    if len(body) > 1 and body.startswith("0"):
        return sign * int(body[1:], 8)
    return sign * int(body)


class CFrontend:
    """Builds a ``Program`` AST from a tree-sitter C parse tree.

    Only the supported subset is accepted: anything else raises
    ``UnsupportedConstruct`` naming the grammar node that was rejected.
    """

    def __init__(self):
        self._source: bytes = b""
        self._STMT_DISPATCH: dict[str, Callable] = {
            "compound_statement": self._lower_compound,
            "declaration": self._lower_local_declaration,
            "expression_statement": self._lower_expression_statement,
            "if_statement": self._lower_if,
            "while_statement": self._lower_while,
            "do_statement": self._lower_do_while,
            "for_statement": self._lower_for,
            "return_statement": self._lower_return,
            "break_statement": self._lower_break,
            "continue_statement": self._lower_continue,
        }
        self._EXPR_DISPATCH: dict[str, Callable] = {
            "identifier": self._lower_identifier,
            "number_literal": self._lower_number,
            "char_literal": self._lower_char,
            "string_literal": self._lower_string,
            "concatenated_string": self._lower_concatenated_string,
            "null": self._lower_zero,
            "false": self._lower_zero,
            "true": self._lower_one,
            "binary_expression": self._lower_binop,
            "unary_expression": self._lower_unop,
            "pointer_expression": self._lower_pointer_expr,
            "update_expression": self._lower_update_expr,
            "assignment_expression": self._lower_assignment_expr,
            "subscript_expression": self._lower_subscript_expr,
            "call_expression": self._lower_call,
            "conditional_expression": self._lower_ternary,
            "comma_expression": self._lower_comma_expr,
            "parenthesized_expression": self._lower_paren,
            "cast_expression": self._lower_cast_expr,
            "sizeof_expression": self._lower_sizeof,
        }

    # ── helpers ──────────────────────────────────────────────────

    def _node_text(self, node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _source_loc(self, node) -> SourceLocation:
        s, e = node.start_point, node.end_point
        return SourceLocation(
            start_line=s[0] + 1,
            start_col=s[1],
            end_line=e[0] + 1,
            end_col=e[1],
        )

    def _ref(self, node) -> ast.SyntaxRef:
        return ast.SyntaxRef(syntax_type=node.type, location=self._source_loc(node))

    def _unsupported(self, node, what: str = "") -> UnsupportedConstruct:
        detail = what or f"'{node.type}' is not part of the supported subset"
        return UnsupportedConstruct(detail, self._ref(node))

    @staticmethod
    def _named_children(node) -> list:
        return [
            c
            for c in node.named_children
            if c.type not in COMMENT_TYPES and c.type not in PREPROC_NOISE_TYPES
        ]

    @staticmethod
    def _operator(node) -> str:
        op_node = node.child_by_field_name("operator")
        if op_node is not None:
            return op_node.type
        return next(c.type for c in node.children if not c.is_named)

    # ── entry point ──────────────────────────────────────────────

    def lower(self, tree, source: bytes) -> ast.Program:
        self._source = source
        root = tree.root_node
        if root.has_error:
            raise self._syntax_error(root)
        items: list = []
        for child in self._named_children(root):
            if child.type == "function_definition":
                items.append(self._lower_function_def(child))
            elif child.type == "declaration":
                items.extend(self._lower_declaration(child, file_scope=True))
            else:
                raise self._unsupported(
                    child, f"'{child.type}' is not allowed at file scope"
                )
        logger.debug("CFrontend produced %d top-level items", len(items))
        return ast.Program(items=items, location=self._source_loc(root))

    def _syntax_error(self, root) -> ParseError:
        bad = self._first_error(root) or root
        snippet = self._node_text(bad).strip().splitlines()
        near = f" near '{snippet[0][:40]}'" if snippet else ""
        kind = "missing token" if bad.is_missing else "syntax error"
        return ParseError(f"{kind}{near}", self._ref(bad))

    def _first_error(self, node):
        if node.type == "ERROR" or node.is_missing:
            return node
        for child in node.children:
            if child.has_error or child.is_missing:
                found = self._first_error(child)
                if found is not None:
                    return found
        return None

    # ── types & declarators ──────────────────────────────────────

    def _base_type(self, decl_node) -> CType:
        type_node = decl_node.child_by_field_name("type")
        if type_node is None:
            raise self._unsupported(decl_node, "declaration without a type")
        if type_node.type != "primitive_type":
            raise self._unsupported(
                type_node, f"type '{self._node_text(type_node)}' is not supported"
            )
        name = self._node_text(type_node)
        if name not in PRIMITIVE_TYPES:
            raise self._unsupported(type_node, f"type '{name}' is not supported")
        return PRIMITIVE_TYPES[name]

    def _declarator(self, node, ctype: CType):
        """Unwrap a declarator chain.

        Returns ``(name, type, parameters)`` where *parameters* is the
        ``parameter_list`` node when the declarator declares a function (and
        *type* is then its return type), else ``None``.
        """
        if node is None:
            return None, ctype, None
        ntype = node.type
        if ntype == "identifier":
            return self._node_text(node), ctype, None
        if ntype in POINTER_DECLARATORS:
            return self._declarator(
                node.child_by_field_name("declarator"), PointerType(ctype)
            )
        if ntype in ARRAY_DECLARATORS:
            inner = node.child_by_field_name("declarator")
            if inner is not None and inner.type in ARRAY_DECLARATORS:
                raise self._unsupported(node, "multi-dimensional arrays")
            size_node = node.child_by_field_name("size")
            length = self._array_length(size_node) if size_node is not None else 0
            return self._declarator(inner, ArrayType(ctype, length))
        if ntype in PAREN_DECLARATORS:
            inner = next(iter(self._named_children(node)), None)
            return self._declarator(inner, ctype)
        if ntype == "function_declarator":
            inner = node.child_by_field_name("declarator")
            if inner is None or inner.type != "identifier":
                raise self._unsupported(node, "function pointers")
            if ctype.is_array:
                raise TypeMismatch("function cannot return an array", self._ref(node))
            return self._node_text(inner), ctype, node.child_by_field_name("parameters")
        raise self._unsupported(node)

    def _array_length(self, size_node) -> int:
        length = self._const_eval(size_node)
        if length <= 0:
            raise TypeMismatch(
                f"array size must be positive, got {length}", self._ref(size_node)
            )
        return length

    def _const_eval(self, node) -> int:
        """Integer constant expressions allowed as array sizes."""
        ntype = node.type
        if ntype == "number_literal":
            return self._lower_number(node).value
        if ntype == "char_literal":
            return self._lower_char(node).value
        if ntype == "parenthesized_expression":
            return self._const_eval(self._named_children(node)[0])
        if ntype == "unary_expression" and self._operator(node) in ("-", "+"):
            value = self._const_eval(node.child_by_field_name("argument"))
            return -value if self._operator(node) == "-" else value
        if ntype == "binary_expression":
            left = self._const_eval(node.child_by_field_name("left"))
            right = self._const_eval(node.child_by_field_name("right"))
            op = self._operator(node)
            folders = {
                "+": lambda: left + right,
                "-": lambda: left - right,
                "*": lambda: left * right,
                "<<": lambda: left << right,
            }
            if op in folders:
                return folders[op]()
            if op in ("/", "%") and right != 0:
                quotient = int(left / right)
                return quotient if op == "/" else left - quotient * right
        raise self._unsupported(node, "array size must be an integer constant")

    def _lower_params(self, params_node) -> tuple[list[ast.Param], bool]:
        params: list[ast.Param] = []
        variadic = False
        if params_node is None:
            return params, variadic
        decls = []
        for child in params_node.children:
            if child.type in ("variadic_parameter", "..."):
                variadic = True
            elif child.type == "parameter_declaration":
                decls.append(child)
            elif child.is_named and child.type not in COMMENT_TYPES:
                raise self._unsupported(child)
        if (
            len(decls) == 1
            and decls[0].child_by_field_name("declarator") is None
            and self._base_type(decls[0]).is_void
        ):
            return params, variadic  # f(void)
        for index, decl in enumerate(decls):
            name, ctype, nested = self._declarator(
                decl.child_by_field_name("declarator"), self._base_type(decl)
            )
            if nested is not None:
                raise self._unsupported(decl, "function parameters")
            if ctype.is_void:
                raise TypeMismatch("parameter has type void", self._ref(decl))
            params.append(
                ast.Param(
                    name=name or f".arg{index}",
                    ctype=adjust_parameter(ctype),
                    location=self._source_loc(decl),
                )
            )
        return params, variadic

    # ── declarations ─────────────────────────────────────────────

    def _storage_classes(self, node) -> list[str]:
        return [
            self._node_text(c)
            for c in node.children
            if c.type == "storage_class_specifier"
        ]

    def _lower_declaration(self, node, file_scope: bool) -> list:
        storage = self._storage_classes(node)
        base = self._base_type(node)
        items: list = []
        var_decls: list[ast.VarDecl] = []
        for decl in node.children_by_field_name("declarator"):
            value_node = None
            if decl.type == "init_declarator":
                value_node = decl.child_by_field_name("value")
                decl = decl.child_by_field_name("declarator")
            name, ctype, params_node = self._declarator(decl, base)
            if params_node is not None:
                if not file_scope:
                    raise self._unsupported(node, "block-scope function declarations")
                params, variadic = self._lower_params(params_node)
                items.append(
                    ast.FunctionDecl(
                        name=name,
                        return_type=ctype,
                        params=params,
                        variadic=variadic,
                        location=self._source_loc(decl),
                    )
                )
                continue
            if storage and (not file_scope or storage != ["static"]):
                raise self._unsupported(
                    node, f"storage class '{' '.join(storage)}' on variables"
                )
            init = self._lower_initializer(value_node) if value_node else None
            var_decls.append(
                ast.VarDecl(
                    name=name,
                    ctype=self._complete_array(ctype, init),
                    init=init,
                    location=self._source_loc(decl),
                )
            )
        if var_decls:
            items.append(ast.DeclStmt(decls=var_decls, location=self._source_loc(node)))
        return items

    def _lower_initializer(self, node):
        if node.type != "initializer_list":
            return self._lower_expr(node)
        values = []
        for child in self._named_children(node):
            if child.type in ("initializer_list", "initializer_pair"):
                raise self._unsupported(child, "nested or designated initializers")
            values.append(self._lower_expr(child))
        return ast.InitList(values=values, location=self._source_loc(node))

    @staticmethod
    def _complete_array(ctype: CType, init) -> CType:
        """``int a[] = {1, 2}`` and ``char s[] = "hi"`` take their length from the initializer."""
        if not isinstance(ctype, ArrayType) or ctype.length != 0:
            return ctype
        if isinstance(init, ast.InitList):
            return ArrayType(ctype.element, len(init.values))
        if isinstance(init, ast.StringLiteral):
            return ArrayType(ctype.element, len(init.value) + 1)
        return ctype

    def _lower_function_def(self, node) -> ast.FunctionDef:
        if self._storage_classes(node) not in ([], ["static"]):
            raise self._unsupported(node, "storage class on function definition")
        name, return_type, params_node = self._declarator(
            node.child_by_field_name("declarator"), self._base_type(node)
        )
        if params_node is None:
            raise self._unsupported(node, "function definition without parameter list")
        params, variadic = self._lower_params(params_node)
        if variadic:
            raise self._unsupported(node, "variadic function definitions")
        body = self._lower_compound(node.child_by_field_name("body"))
        return ast.FunctionDef(
            name=name,
            return_type=return_type,
            params=params,
            body=body,
            location=self._source_loc(node),
        )

    # ── statements ───────────────────────────────────────────────

    def _lower_stmt(self, node) -> ast.Stmt:
        handler = self._STMT_DISPATCH.get(node.type)
        if handler is None:
            raise self._unsupported(node)
        return handler(node)

    def _lower_compound(self, node) -> ast.Block:
        return ast.Block(
            statements=[self._lower_stmt(c) for c in self._named_children(node)],
            location=self._source_loc(node),
        )

    def _lower_local_declaration(self, node) -> ast.DeclStmt:
        items = self._lower_declaration(node, file_scope=False)
        if not items:
            return ast.DeclStmt(decls=[], location=self._source_loc(node))
        return items[0]

    def _lower_expression_statement(self, node) -> ast.ExprStmt:
        children = self._named_children(node)
        expr = self._lower_expr(children[0]) if children else None
        return ast.ExprStmt(expr=expr, location=self._source_loc(node))

    def _lower_if(self, node) -> ast.Stmt:
        condition = self._lower_expr(node.child_by_field_name("condition"))
        then = self._lower_stmt(node.child_by_field_name("consequence"))
        alt_node = node.child_by_field_name("alternative")
        loc = self._source_loc(node)
        if alt_node is None:
            return ast.IfThen(condition=condition, then=then, location=loc)
        if alt_node.type == "else_clause":
            alt_node = self._named_children(alt_node)[0]
        return ast.IfThenElse(
            condition=condition,
            then=then,
            otherwise=self._lower_stmt(alt_node),
            location=loc,
        )

    def _lower_while(self, node) -> ast.While:
        return ast.While(
            condition=self._lower_expr(node.child_by_field_name("condition")),
            body=self._lower_stmt(node.child_by_field_name("body")),
            location=self._source_loc(node),
        )

    def _lower_do_while(self, node) -> ast.DoWhile:
        return ast.DoWhile(
            body=self._lower_stmt(node.child_by_field_name("body")),
            condition=self._lower_expr(node.child_by_field_name("condition")),
            location=self._source_loc(node),
        )

    def _lower_for(self, node) -> ast.For:
        init_node = node.child_by_field_name("initializer")
        cond_node = node.child_by_field_name("condition")
        update_node = node.child_by_field_name("update")
        init = None
        if init_node is not None:
            if init_node.type == "declaration":
                init = self._lower_local_declaration(init_node)
            else:
                init = ast.ExprStmt(
                    expr=self._lower_expr(init_node),
                    location=self._source_loc(init_node),
                )
        return ast.For(
            init=init,
            condition=self._lower_expr(cond_node) if cond_node is not None else None,
            update=self._lower_expr(update_node) if update_node is not None else None,
            body=self._lower_stmt(node.child_by_field_name("body")),
            location=self._source_loc(node),
        )

    def _lower_return(self, node) -> ast.Return:
        children = self._named_children(node)
        value = self._lower_expr(children[0]) if children else None
        return ast.Return(value=value, location=self._source_loc(node))

    def _lower_break(self, node) -> ast.Break:
        return ast.Break(location=self._source_loc(node))

    def _lower_continue(self, node) -> ast.Continue:
        return ast.Continue(location=self._source_loc(node))

    # ── expressions ──────────────────────────────────────────────

    def _lower_expr(self, node) -> ast.Expr:
        handler = self._EXPR_DISPATCH.get(node.type)
        if handler is None:
            raise self._unsupported(node)
        return handler(node)

    def _lower_identifier(self, node) -> ast.Identifier:
        return ast.Identifier(name=self._node_text(node), location=self._source_loc(node))

    def _lower_number(self, node) -> ast.IntLiteral:
        text = self._node_text(node)
        try:
            value = parse_integer_literal(text)
        except ValueError as e:
            raise self._unsupported(node, f"numeric literal '{text}': {e}") from e
        return ast.IntLiteral(value=value, location=self._source_loc(node))

    def _literal_body(self, node, quote: str) -> bytes:
        text = self._node_text(node)
        body = text[text.index(quote) + 1 : text.rindex(quote)]
        try:
            return decode_c_escapes(body)
        except ValueError as e:
            raise ParseError(str(e), self._ref(node)) from e

    def _lower_char(self, node) -> ast.IntLiteral:
        data = self._literal_body(node, "'")
        if len(data) != 1:
            raise self._unsupported(node, "multi-character constants")
        value = data[0] - 256 if data[0] > 127 else data[0]
        return ast.IntLiteral(value=value, location=self._source_loc(node))

    def _lower_string(self, node) -> ast.StringLiteral:
        return ast.StringLiteral(
            value=self._literal_body(node, '"'), location=self._source_loc(node)
        )

    def _lower_concatenated_string(self, node) -> ast.StringLiteral:
        parts = [
            self._literal_body(c, '"')
            for c in self._named_children(node)
            if c.type == "string_literal"
        ]
        return ast.StringLiteral(value=b"".join(parts), location=self._source_loc(node))

    def _lower_zero(self, node) -> ast.IntLiteral:
        return ast.IntLiteral(value=0, location=self._source_loc(node))

    def _lower_one(self, node) -> ast.IntLiteral:
        return ast.IntLiteral(value=1, location=self._source_loc(node))

    def _lower_binop(self, node) -> ast.Expr:
        op = self._operator(node)
        left = self._lower_expr(node.child_by_field_name("left"))
        right = self._lower_expr(node.child_by_field_name("right"))
        loc = self._source_loc(node)
        if op in LOGICAL_OPERATORS:
            return ast.Logical(op=op, left=left, right=right, location=loc)
        if op not in BINARY_OPERATORS:
            raise self._unsupported(node, f"operator '{op}'")
        return ast.Binary(op=op, left=left, right=right, location=loc)

    def _lower_unop(self, node) -> ast.Unary:
        op = self._operator(node)
        if op not in UNARY_OPERATORS:
            raise self._unsupported(node, f"operator '{op}'")
        return ast.Unary(
            op=op,
            operand=self._lower_expr(node.child_by_field_name("argument")),
            location=self._source_loc(node),
        )

    def _lower_pointer_expr(self, node) -> ast.Expr:
        op = self._operator(node)
        operand = self._lower_expr(node.child_by_field_name("argument"))
        loc = self._source_loc(node)
        if op == "&":
            return ast.AddressOf(operand=operand, location=loc)
        return ast.Deref(operand=operand, location=loc)

    def _lower_update_expr(self, node) -> ast.IncDec:
        op = self._operator(node)
        prefix = node.children[0].type in ("++", "--")
        return ast.IncDec(
            op=op,
            target=self._lower_expr(node.child_by_field_name("argument")),
            prefix=prefix,
            location=self._source_loc(node),
        )

    def _lower_assignment_expr(self, node) -> ast.Expr:
        op = self._operator(node)
        target = self._lower_expr(node.child_by_field_name("left"))
        value = self._lower_expr(node.child_by_field_name("right"))
        loc = self._source_loc(node)
        if op == "=":
            return ast.Assign(target=target, value=value, location=loc)
        if op[:-1] not in BINARY_OPERATORS:
            raise self._unsupported(node, f"operator '{op}'")
        return ast.CompoundAssign(op=op[:-1], target=target, value=value, location=loc)

    def _lower_subscript_expr(self, node) -> ast.Index:
        index_node = node.child_by_field_name("index")
        if index_node is None:
            # older grammars wrap the index in a subscript_argument_list
            index_node = self._named_children(node)[-1]
        return ast.Index(
            base=self._lower_expr(node.child_by_field_name("argument")),
            index=self._lower_expr(index_node),
            location=self._source_loc(node),
        )

    def _lower_call(self, node) -> ast.Call:
        func_node = node.child_by_field_name("function")
        if func_node.type != "identifier":
            raise self._unsupported(node, "calls through expressions")
        args_node = node.child_by_field_name("arguments")
        return ast.Call(
            name=self._node_text(func_node),
            args=[self._lower_expr(a) for a in self._named_children(args_node)],
            location=self._source_loc(node),
        )

    def _lower_ternary(self, node) -> ast.Conditional:
        return ast.Conditional(
            condition=self._lower_expr(node.child_by_field_name("condition")),
            then=self._lower_expr(node.child_by_field_name("consequence")),
            otherwise=self._lower_expr(node.child_by_field_name("alternative")),
            location=self._source_loc(node),
        )

    def _lower_comma_expr(self, node) -> ast.Comma:
        return ast.Comma(
            left=self._lower_expr(node.child_by_field_name("left")),
            right=self._lower_expr(node.child_by_field_name("right")),
            location=self._source_loc(node),
        )

    def _lower_paren(self, node) -> ast.Expr:
        return self._lower_expr(self._named_children(node)[0])

    def _type_descriptor(self, node) -> CType:
        name, ctype, params = self._declarator(
            node.child_by_field_name("declarator"), self._base_type(node)
        )
        if name is not None or params is not None:
            raise self._unsupported(node, "named or function type in type name")
        return ctype

    def _lower_cast_expr(self, node) -> ast.Cast:
        return ast.Cast(
            ctype=self._type_descriptor(node.child_by_field_name("type")),
            operand=self._lower_expr(node.child_by_field_name("value")),
            location=self._source_loc(node),
        )

    def _lower_sizeof(self, node) -> ast.Expr:
        loc = self._source_loc(node)
        type_node = node.child_by_field_name("type")
        if type_node is not None:
            inner = type_node.child_by_field_name("type")
            if inner is not None and inner.type == "type_identifier":
                # sizeof(x) and sizeof(x[i]) on variables can parse as type names
                operand = ast.Identifier(
                    name=self._node_text(inner), location=self._source_loc(inner)
                )
                declarator = type_node.child_by_field_name("declarator")
                if declarator is not None:
                    size_node = declarator.child_by_field_name("size")
                    if (
                        declarator.type != "abstract_array_declarator"
                        or size_node is None
                        or declarator.child_by_field_name("declarator") is not None
                    ):
                        raise self._unsupported(type_node, "type name in sizeof")
                    operand = ast.Index(
                        base=operand,
                        index=self._lower_expr(size_node),
                        location=self._source_loc(type_node),
                    )
                return ast.SizeofExpr(operand=operand, location=loc)
            return ast.SizeofType(ctype=self._type_descriptor(type_node), location=loc)
        return ast.SizeofExpr(
            operand=self._lower_expr(node.child_by_field_name("value")), location=loc
        )
