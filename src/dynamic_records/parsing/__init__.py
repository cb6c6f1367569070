"""Parsing module for field type expressions."""

from dynamic_records.parsing.type_parser import TypeParser, parse_type

__all__ = [
    "TypeParser",
    "parse_type",
]
