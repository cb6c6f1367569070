"""Parser for field type expressions.

Grammar (Go-style notation)::

    int32                       scalar kinds, plus byte, rune and any
    *T                          pointer to T
    []T                         slice of T
    map[K]V                     map from K to V
    struct{}                    empty anonymous record
    struct{Name string; Age int32}
    interface{}                 any value
    Person                      named record supplied by the caller
"""

from __future__ import annotations

from typing import Any, Mapping

import ply.yacc as yacc

from dynamic_records.parsing.type_lexer import TypeLexer
from dynamic_records.types import (
    INTERFACE_TYPE,
    KIND_NAMES,
    FieldDefinition,
    Kind,
    MapTypeDefinition,
    PointerTypeDefinition,
    RecordTypeDefinition,
    SliceTypeDefinition,
    TypeDefinition,
    type_of_kind,
)

# Alternative spellings of builtin kinds
KIND_ALIASES: dict[str, Kind] = {
    "byte": Kind.UINT8,
    "rune": Kind.INT32,
    "any": Kind.INTERFACE,
}


class TypeParser:
    """Parser for type expressions."""

    tokens = TypeLexer.tokens
    start = "type_expr"

    def __init__(self) -> None:
        self.lexer = TypeLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.records: Mapping[str, TypeDefinition] = {}

    def p_type_expr_name(self, p: yacc.YaccProduction) -> None:
        """type_expr : IDENTIFIER"""
        p[0] = self._resolve_name(p[1])

    def p_type_expr_pointer(self, p: yacc.YaccProduction) -> None:
        """type_expr : STAR type_expr"""
        p[0] = PointerTypeDefinition(p[2])

    def p_type_expr_slice(self, p: yacc.YaccProduction) -> None:
        """type_expr : LBRACKET RBRACKET type_expr"""
        p[0] = SliceTypeDefinition(p[3])

    def p_type_expr_map(self, p: yacc.YaccProduction) -> None:
        """type_expr : MAP LBRACKET type_expr RBRACKET type_expr"""
        p[0] = MapTypeDefinition(p[3], p[5])

    def p_type_expr_struct_empty(self, p: yacc.YaccProduction) -> None:
        """type_expr : STRUCT LBRACE RBRACE"""
        p[0] = RecordTypeDefinition()

    def p_type_expr_struct(self, p: yacc.YaccProduction) -> None:
        """type_expr : STRUCT LBRACE field_list RBRACE
                     | STRUCT LBRACE field_list separator RBRACE"""
        p[0] = RecordTypeDefinition(fields=p[3])

    def p_type_expr_interface(self, p: yacc.YaccProduction) -> None:
        """type_expr : INTERFACE LBRACE RBRACE"""
        p[0] = INTERFACE_TYPE

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : field"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list separator field"""
        p[0] = p[1] + [p[3]]

    def p_field(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER type_expr"""
        p[0] = FieldDefinition(name=p[1], type=p[2])

    def p_separator(self, p: yacc.YaccProduction) -> None:
        """separator : SEMI
                     | COMMA"""

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str, records: Mapping[str, TypeDefinition] | None = None) -> TypeDefinition:
        """Parse a type expression.

        Args:
            data: The expression, e.g. ``"map[string]*int64"``.
            records: Named types that identifiers may refer to.

        Raises:
            SyntaxError: If the expression is malformed.
            KeyError: If an identifier names no builtin kind or record.
        """
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.records = records or {}
        try:
            return self.parser.parse(data, lexer=self.lexer.lexer)
        finally:
            self.records = {}

    def _resolve_name(self, name: str) -> TypeDefinition:
        """Resolve an identifier to a builtin kind or a named record."""
        kind = KIND_NAMES.get(name) or KIND_ALIASES.get(name)
        if kind is not None:
            return type_of_kind(kind)
        type_def = self.records.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def


_default_parser: TypeParser | None = None


def parse_type(data: str, records: Mapping[str, TypeDefinition] | None = None) -> TypeDefinition:
    """Parse a type expression with a shared parser instance."""
    global _default_parser
    if _default_parser is None:
        _default_parser = TypeParser()
    return _default_parser.parse(data, records)
