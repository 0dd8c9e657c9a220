"""
Static type resolution for one Go compilation unit.

The detector asks one question of this module: "what is the static type of
this expression node, if it can be known?". TypeInfo answers it from the
declarations visible in the same file:

- package-level functions, methods, types, vars and consts
- function, method and func-literal parameters, receivers and named results
- ``var``/``const`` specs and ``:=`` declarations in blocks and in
  if/for/switch initializers, including multi-value calls and comma-ok forms
- ``for ... := range`` clauses

Whatever cannot be known from the file alone (imported packages, generic type
parameters, promoted fields of embedded types, type-switch bindings) resolves
to None. Callers treat None as "no information", never as an error.

Typical usage:
    info = TypeInfo(context)
    t = info.underlying(info.type_of(node))
    if t is not None and t.kind is Kind.POINTER:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from tree_sitter import Node as TSNode

from nilseeker.context import FileContext, get_source_span
from nilseeker.inspector import walk

logger = logging.getLogger(__name__)


class Kind(str, Enum):
    """Classification of a type's representation."""

    POINTER = "pointer"
    SLICE = "slice"
    MAP = "map"
    ARRAY = "array"
    CHAN = "chan"
    FUNC = "func"
    STRUCT = "struct"
    INTERFACE = "interface"
    BASIC = "basic"
    NAMED = "named"
    TUPLE = "tuple"


# Kinds whose zero value is nil and which the detector checks.
NILABLE_KINDS = frozenset({Kind.POINTER, Kind.SLICE, Kind.MAP})

BASIC_TYPE_NAMES = frozenset(
    {
        "bool",
        "string",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "byte",
        "rune",
        "float32",
        "float64",
        "complex64",
        "complex128",
    }
)

INTERFACE_TYPE_NAMES = frozenset({"error", "any", "comparable"})

COMPARISON_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">=", "&&", "||"})

# Node types that open a lexical scope for declarations made directly inside.
SCOPE_NODE_TYPES = frozenset(
    {
        "source_file",
        "block",
        "function_declaration",
        "method_declaration",
        "func_literal",
        "if_statement",
        "for_statement",
        "expression_switch_statement",
        "type_switch_statement",
        "select_statement",
        "expression_case",
        "type_case",
        "default_case",
        "communication_case",
    }
)


@dataclass(frozen=True)
class GoType:
    """
    A resolved static type.

    ``elem`` is the pointed-to / element / value type, ``key`` the map key,
    ``fields`` the struct fields and ``results`` the function (or tuple)
    result types. Unknown component types are None.
    """

    kind: Kind
    name: Optional[str] = None
    elem: Optional["GoType"] = None
    key: Optional["GoType"] = None
    fields: tuple[tuple[str, Optional["GoType"]], ...] = ()
    results: tuple[Optional["GoType"], ...] = ()

    def __str__(self) -> str:
        if self.kind is Kind.POINTER:
            return f"*{self.elem or '?'}"
        if self.kind is Kind.SLICE:
            return f"[]{self.elem or '?'}"
        if self.kind is Kind.ARRAY:
            return f"[...]{self.elem or '?'}"
        if self.kind is Kind.MAP:
            return f"map[{self.key or '?'}]{self.elem or '?'}"
        if self.kind is Kind.CHAN:
            return f"chan {self.elem or '?'}"
        if self.name:
            return self.name
        return self.kind.value


BOOL = GoType(Kind.BASIC, "bool")
INT = GoType(Kind.BASIC, "int")
BYTE = GoType(Kind.BASIC, "byte")
RUNE = GoType(Kind.BASIC, "rune")
STRING = GoType(Kind.BASIC, "string")
FLOAT64 = GoType(Kind.BASIC, "float64")
COMPLEX128 = GoType(Kind.BASIC, "complex128")

# Nested type_of() calls allowed before an expression is left unresolved.
# Each level costs a few interpreter frames.
MAX_EXPR_DEPTH = 100

LITERAL_TYPES: dict[str, GoType] = {
    "int_literal": INT,
    "float_literal": FLOAT64,
    "imaginary_literal": COMPLEX128,
    "rune_literal": RUNE,
    "interpreted_string_literal": STRING,
    "raw_string_literal": STRING,
    "true": BOOL,
    "false": BOOL,
}


def pointer_to(t: Optional[GoType]) -> GoType:
    return GoType(Kind.POINTER, elem=t)


def _first_named(node: TSNode) -> Optional[TSNode]:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def _key(node: TSNode) -> tuple[int, int, str]:
    """Identity of a node within one tree."""
    return node.start_byte, node.end_byte, node.type


def parse_type(context: FileContext, node: Optional[TSNode]) -> Optional[GoType]:
    """Convert a tree-sitter type node into a GoType, or None if unsupported."""
    if node is None:
        return None
    t = node.type
    if t in ("type_identifier", "identifier"):
        name = get_source_span(context, node)
        if name in BASIC_TYPE_NAMES:
            return GoType(Kind.BASIC, name)
        if name in INTERFACE_TYPE_NAMES:
            return GoType(Kind.INTERFACE, name)
        return GoType(Kind.NAMED, name)
    if t == "qualified_type":
        return GoType(Kind.NAMED, get_source_span(context, node))
    if t == "generic_type":
        base = node.child_by_field_name("type")
        return GoType(Kind.NAMED, get_source_span(context, base if base is not None else node))
    if t == "pointer_type":
        return pointer_to(parse_type(context, _first_named(node)))
    if t == "slice_type":
        return GoType(Kind.SLICE, elem=parse_type(context, node.child_by_field_name("element")))
    if t in ("array_type", "implicit_length_array_type"):
        return GoType(Kind.ARRAY, elem=parse_type(context, node.child_by_field_name("element")))
    if t == "map_type":
        return GoType(
            Kind.MAP,
            key=parse_type(context, node.child_by_field_name("key")),
            elem=parse_type(context, node.child_by_field_name("value")),
        )
    if t == "channel_type":
        return GoType(Kind.CHAN, elem=parse_type(context, node.child_by_field_name("value")))
    if t == "function_type":
        return GoType(Kind.FUNC, results=_result_types(context, node.child_by_field_name("result")))
    if t == "struct_type":
        return GoType(Kind.STRUCT, fields=_struct_fields(context, node))
    if t == "interface_type":
        return GoType(Kind.INTERFACE)
    if t == "parenthesized_type":
        return parse_type(context, _first_named(node))
    return None


def _result_types(context: FileContext, result: Optional[TSNode]) -> tuple[Optional[GoType], ...]:
    """Result types of a function signature; named results repeat per name."""
    if result is None:
        return ()
    if result.type != "parameter_list":
        return (parse_type(context, result),)
    types: list[Optional[GoType]] = []
    for param in result.named_children:
        if param.type not in ("parameter_declaration", "variadic_parameter_declaration"):
            continue
        ptype = parse_type(context, param.child_by_field_name("type"))
        count = max(1, len(param.children_by_field_name("name")))
        types.extend([ptype] * count)
    return tuple(types)


def _func_type(context: FileContext, node: TSNode) -> GoType:
    """Signature type of a function/method declaration or func literal."""
    return GoType(Kind.FUNC, results=_result_types(context, node.child_by_field_name("result")))


def _embedded_name(type_text: str) -> str:
    """Field name of an embedded type: pkg.T -> T, T[int] -> T."""
    return type_text.split("[", 1)[0].rsplit(".", 1)[-1]


def _struct_fields(context: FileContext, node: TSNode) -> tuple[tuple[str, Optional[GoType]], ...]:
    fields: list[tuple[str, Optional[GoType]]] = []
    for decl_list in node.named_children:
        if decl_list.type != "field_declaration_list":
            continue
        for decl in decl_list.named_children:
            if decl.type != "field_declaration":
                continue
            type_node = decl.child_by_field_name("type")
            ftype = parse_type(context, type_node)
            names = decl.children_by_field_name("name")
            if names:
                for name in names:
                    fields.append((get_source_span(context, name), ftype))
            elif type_node is not None:
                if any(c.type == "*" for c in decl.children):
                    ftype = pointer_to(ftype)
                fields.append((_embedded_name(get_source_span(context, type_node)), ftype))
    return tuple(fields)


@dataclass(eq=False)
class _Binding:
    """One declared name and enough information to compute its type lazily."""

    name: str
    scope: tuple[int, int, str]
    visible_from: int
    fixed: Optional[GoType] = None
    type_node: Optional[TSNode] = None
    values: list[TSNode] = field(default_factory=list)
    index: int = 0
    arity: int = 1
    range_node: Optional[TSNode] = None


class TypeInfo:
    """Type oracle for one FileContext. Built once per unit by the "types" pass."""

    def __init__(self, context: FileContext) -> None:
        self.context = context
        self._bindings: dict[str, list[_Binding]] = {}
        self._type_decls: dict[str, TSNode] = {}
        self._methods: dict[tuple[str, str], GoType] = {}
        self._expr_cache: dict[tuple[int, int, str], Optional[GoType]] = {}
        self._binding_cache: dict[int, Optional[GoType]] = {}
        self._resolving: set[int] = set()
        self._depth = 0
        self._collect(context.root_node)
        logger.debug(
            "Type info for %s: %d name(s), %d type declaration(s), %d method(s)",
            context.path,
            len(self._bindings),
            len(self._type_decls),
            len(self._methods),
        )

    # -- declaration collection -------------------------------------------

    def _span(self, node: TSNode) -> str:
        return get_source_span(self.context, node)

    def _enclosing_scope(self, node: TSNode) -> TSNode:
        scope = node.parent
        while scope is not None and scope.type not in SCOPE_NODE_TYPES:
            scope = scope.parent
        return scope if scope is not None else self.context.root_node

    def _add(self, name: str, binding: _Binding) -> None:
        if name == "_":
            return
        self._bindings.setdefault(name, []).append(binding)

    def _collect(self, root: TSNode) -> None:
        root_key = _key(root)
        for node in walk(root):
            t = node.type
            if t == "function_declaration":
                name = node.child_by_field_name("name")
                if name is not None:
                    text = self._span(name)
                    self._add(text, _Binding(text, root_key, 0, fixed=_func_type(self.context, node)))
                self._add_parameters(node)
            elif t == "method_declaration":
                receiver = self._receiver_type_name(node.child_by_field_name("receiver"))
                name = node.child_by_field_name("name")
                if receiver is not None and name is not None:
                    self._methods[(receiver, self._span(name))] = _func_type(self.context, node)
                self._add_parameters(node)
            elif t == "func_literal":
                self._add_parameters(node)
            elif t in ("type_spec", "type_alias"):
                name = node.child_by_field_name("name")
                type_node = node.child_by_field_name("type")
                if name is not None and type_node is not None:
                    self._type_decls[self._span(name)] = type_node
            elif t in ("var_spec", "const_spec"):
                self._add_spec(node)
            elif t == "short_var_declaration":
                self._add_short_var(node)
            elif t == "range_clause":
                self._add_range(node)

    def _add_parameters(self, fn: TSNode) -> None:
        body = fn.child_by_field_name("body")
        if body is None:
            return
        scope = _key(fn)
        for field_name in ("receiver", "parameters", "result"):
            plist = fn.child_by_field_name(field_name)
            if plist is None or plist.type != "parameter_list":
                continue
            for param in plist.named_children:
                if param.type not in ("parameter_declaration", "variadic_parameter_declaration"):
                    continue
                ptype = parse_type(self.context, param.child_by_field_name("type"))
                if param.type == "variadic_parameter_declaration":
                    ptype = GoType(Kind.SLICE, elem=ptype)
                for name in param.children_by_field_name("name"):
                    text = self._span(name)
                    self._add(text, _Binding(text, scope, body.start_byte, fixed=ptype))

    def _receiver_type_name(self, receiver: Optional[TSNode]) -> Optional[str]:
        if receiver is None:
            return None
        for param in receiver.named_children:
            if param.type != "parameter_declaration":
                continue
            rtype = parse_type(self.context, param.child_by_field_name("type"))
            if rtype is not None and rtype.kind is Kind.POINTER:
                rtype = rtype.elem
            if rtype is not None and rtype.kind is Kind.NAMED:
                return rtype.name
        return None

    def _add_spec(self, spec: TSNode) -> None:
        names = spec.children_by_field_name("name")
        value = spec.child_by_field_name("value")
        values = list(value.named_children) if value is not None else []
        scope = self._enclosing_scope(spec)
        visible_from = 0 if scope.type == "source_file" else spec.end_byte
        for i, name in enumerate(names):
            text = self._span(name)
            self._add(
                text,
                _Binding(
                    text,
                    _key(scope),
                    visible_from,
                    type_node=spec.child_by_field_name("type"),
                    values=values,
                    index=i,
                    arity=len(names),
                ),
            )

    def _add_short_var(self, decl: TSNode) -> None:
        left = decl.child_by_field_name("left")
        right = decl.child_by_field_name("right")
        if left is None:
            return
        names = [n for n in left.named_children if n.type == "identifier"]
        values = list(right.named_children) if right is not None else []
        scope = _key(self._enclosing_scope(decl))
        for i, name in enumerate(names):
            text = self._span(name)
            self._add(
                text,
                _Binding(text, scope, decl.end_byte, values=values, index=i, arity=len(names)),
            )

    def _add_range(self, clause: TSNode) -> None:
        left = clause.child_by_field_name("left")
        if left is None or not any(c.type == ":=" for c in clause.children):
            return
        scope = _key(self._enclosing_scope(clause))
        right = clause.child_by_field_name("right")
        for i, name in enumerate(n for n in left.named_children if n.type == "identifier"):
            text = self._span(name)
            self._add(text, _Binding(text, scope, clause.end_byte, index=i, range_node=right))

    # -- binding resolution ------------------------------------------------

    def _lookup(self, ident: TSNode) -> Optional[_Binding]:
        """Innermost binding of ident's name visible at ident's position."""
        candidates = self._bindings.get(self._span(ident))
        if not candidates:
            return None
        pos = ident.start_byte
        scope = ident.parent
        while scope is not None:
            if scope.type in SCOPE_NODE_TYPES:
                scope_key = _key(scope)
                best: Optional[_Binding] = None
                for b in candidates:
                    if b.scope == scope_key and b.visible_from <= pos:
                        if best is None or b.visible_from >= best.visible_from:
                            best = b
                if best is not None:
                    return best
            scope = scope.parent
        return None

    def _binding_type(self, b: _Binding) -> Optional[GoType]:
        if b.fixed is not None:
            return b.fixed
        ident = id(b)
        if ident in self._binding_cache:
            return self._binding_cache[ident]
        if ident in self._resolving:
            return None
        self._resolving.add(ident)
        try:
            t = self._compute_binding_type(b)
        finally:
            self._resolving.discard(ident)
        self._binding_cache[ident] = t
        return t

    def _compute_binding_type(self, b: _Binding) -> Optional[GoType]:
        if b.type_node is not None:
            return parse_type(self.context, b.type_node)
        if b.range_node is not None:
            return self._range_type(b.range_node, b.index)
        if len(b.values) == b.arity and b.index < len(b.values):
            return self.type_of(b.values[b.index])
        if len(b.values) == 1:
            value = b.values[0]
            vt = self.type_of(value)
            if vt is not None and vt.kind is Kind.TUPLE:
                return vt.results[b.index] if b.index < len(vt.results) else None
            if b.index == 0:
                return vt
            if b.index == 1 and value.type in (
                "index_expression",
                "type_assertion_expression",
                "unary_expression",
            ):
                # comma-ok: v, ok := m[k] / x.(T) / <-ch
                return BOOL
        return None

    def _range_type(self, operand: TSNode, index: int) -> Optional[GoType]:
        t = self.underlying(self.type_of(operand))
        if t is None:
            return None
        if t.kind is Kind.POINTER and t.elem is not None:
            t = self.underlying(t.elem)
            if t is None or t.kind is not Kind.ARRAY:
                return None
        if t.kind in (Kind.SLICE, Kind.ARRAY):
            return INT if index == 0 else t.elem
        if t.kind is Kind.MAP:
            return t.key if index == 0 else t.elem
        if t.kind is Kind.CHAN:
            return t.elem if index == 0 else None
        if t.kind is Kind.BASIC:
            if t.name == "string":
                return INT if index == 0 else RUNE
            return t if index == 0 else None
        return None

    # -- public oracle -----------------------------------------------------

    def underlying(self, t: Optional[GoType]) -> Optional[GoType]:
        """
        Follow same-file type declarations down to a type literal.

        Named types declared elsewhere stay NAMED; declaration cycles give None.
        """
        seen: set[str] = set()
        while t is not None and t.kind is Kind.NAMED:
            if t.name in seen:
                return None
            seen.add(t.name or "")
            decl = self._type_decls.get(t.name or "")
            if decl is None:
                return t
            t = parse_type(self.context, decl)
        return t

    def underlying_kind(self, expr: Optional[TSNode]) -> Optional[Kind]:
        """Kind of the underlying type of expr, or None when unresolved."""
        t = self.underlying(self.type_of(expr))
        return t.kind if t is not None else None

    def type_of(self, expr: Optional[TSNode]) -> Optional[GoType]:
        """Static type of an expression node, or None when it cannot be resolved."""
        if expr is None:
            return None
        key = _key(expr)
        if key in self._expr_cache:
            return self._expr_cache[key]
        if self._depth >= MAX_EXPR_DEPTH:
            logger.debug(
                "Expression at %s:%d nests too deep to type; leaving it unresolved",
                self.context.path,
                expr.start_point[0] + 1,
            )
            return None
        self._depth += 1
        try:
            t = self._compute(expr)
        finally:
            self._depth -= 1
        self._expr_cache[key] = t
        return t

    # -- expression typing -------------------------------------------------

    def _compute(self, expr: TSNode) -> Optional[GoType]:
        t = expr.type
        if t in LITERAL_TYPES:
            return LITERAL_TYPES[t]
        if t == "identifier":
            return self._identifier_type(expr)
        if t == "parenthesized_expression":
            return self.type_of(_first_named(expr))
        if t == "unary_expression":
            return self._unary_type(expr)
        if t == "binary_expression":
            return self._binary_type(expr)
        if t == "call_expression":
            return self._call_type(expr)
        if t == "selector_expression":
            return self._selector_type(expr)
        if t == "index_expression":
            return self._index_type(expr)
        if t == "slice_expression":
            return self._slice_type(expr)
        if t == "composite_literal":
            return parse_type(self.context, expr.child_by_field_name("type"))
        if t == "func_literal":
            return _func_type(self.context, expr)
        if t in ("type_assertion_expression", "type_conversion_expression"):
            return parse_type(self.context, expr.child_by_field_name("type"))
        return None

    def _identifier_type(self, ident: TSNode) -> Optional[GoType]:
        binding = self._lookup(ident)
        if binding is not None:
            return self._binding_type(binding)
        name = self._span(ident)
        if name in self._type_decls:
            return GoType(Kind.NAMED, name)
        return None

    def _unary_type(self, expr: TSNode) -> Optional[GoType]:
        operator = expr.child_by_field_name("operator")
        operand = expr.child_by_field_name("operand")
        op = operator.type if operator is not None else ""
        if op == "&":
            return pointer_to(self.type_of(operand))
        if op == "*":
            u = self.underlying(self.type_of(operand))
            return u.elem if u is not None and u.kind is Kind.POINTER else None
        if op == "!":
            return BOOL
        if op == "<-":
            u = self.underlying(self.type_of(operand))
            return u.elem if u is not None and u.kind is Kind.CHAN else None
        return self.type_of(operand)

    def _binary_type(self, expr: TSNode) -> Optional[GoType]:
        """
        Comparisons are bool; anything else takes the type of its left operand,
        falling back to the right one.

        Left-associative chains nest on the left, so the left spine is walked
        in a loop and the right operands are tried innermost first.
        """
        rights: list[Optional[TSNode]] = []
        node: Optional[TSNode] = expr
        result: Optional[GoType] = None
        while node is not None:
            if node.type != "binary_expression":
                result = self.type_of(node)
                break
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type in COMPARISON_OPERATORS:
                result = BOOL
                break
            rights.append(node.child_by_field_name("right"))
            node = node.child_by_field_name("left")
        for right in reversed(rights):
            if result is not None:
                break
            result = self.type_of(right)
        return result

    def _call_type(self, expr: TSNode) -> Optional[GoType]:
        fn = expr.child_by_field_name("function")
        args = expr.child_by_field_name("arguments")
        arg_nodes = [a for a in args.named_children if a.type != "comment"] if args is not None else []
        if fn is None:
            return None
        if fn.type == "identifier" and self._lookup(fn) is None:
            name = self._span(fn)
            if name == "new" and arg_nodes:
                return pointer_to(parse_type(self.context, arg_nodes[0]))
            if name == "make" and arg_nodes:
                return parse_type(self.context, arg_nodes[0])
            if name in ("len", "cap", "copy"):
                return INT
            if name == "append" and arg_nodes:
                return self.type_of(arg_nodes[0])
            if name in ("real", "imag"):
                return FLOAT64
            if name in BASIC_TYPE_NAMES or name in INTERFACE_TYPE_NAMES or name in self._type_decls:
                return parse_type(self.context, fn)
            return None
        if fn.type in ("parenthesized_type", "pointer_type", "slice_type", "map_type", "array_type"):
            return parse_type(self.context, fn)
        ft = self.underlying(self.type_of(fn))
        if ft is None or ft.kind is not Kind.FUNC:
            return None
        if not ft.results:
            return None
        if len(ft.results) == 1:
            return ft.results[0]
        return GoType(Kind.TUPLE, results=ft.results)

    def _selector_type(self, expr: TSNode) -> Optional[GoType]:
        field_node = expr.child_by_field_name("field")
        base = self.type_of(expr.child_by_field_name("operand"))
        if base is None or field_node is None:
            return None
        return self._member_type(base, self._span(field_node))

    def _member_type(self, t: GoType, name: str) -> Optional[GoType]:
        u = self.underlying(t)
        if u is not None and u.kind is Kind.POINTER:
            if u.elem is None:
                return None
            t = u.elem
        if t.kind is Kind.NAMED and (t.name or "", name) in self._methods:
            return self._methods[(t.name or "", name)]
        u = self.underlying(t)
        if u is not None and u.kind is Kind.STRUCT:
            for field_name, field_type in u.fields:
                if field_name == name:
                    return field_type
        return None

    def _index_type(self, expr: TSNode) -> Optional[GoType]:
        t = self.underlying(self.type_of(expr.child_by_field_name("operand")))
        if t is None:
            return None
        if t.kind is Kind.POINTER and t.elem is not None:
            t = self.underlying(t.elem)
            if t is None:
                return None
        if t.kind in (Kind.SLICE, Kind.ARRAY, Kind.MAP):
            return t.elem
        if t.kind is Kind.BASIC and t.name == "string":
            return BYTE
        return None

    def _slice_type(self, expr: TSNode) -> Optional[GoType]:
        t = self.type_of(expr.child_by_field_name("operand"))
        u = self.underlying(t)
        if u is None:
            return None
        if u.kind is Kind.POINTER and u.elem is not None:
            u = self.underlying(u.elem)
            if u is None:
                return None
        if u.kind is Kind.ARRAY:
            return GoType(Kind.SLICE, elem=u.elem)
        return t
