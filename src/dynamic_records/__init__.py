"""Dynamic Records - build record types at runtime and access record fields by name."""

from dynamic_records.accessor import Accessor, FieldView, new_accessor, new_reader
from dynamic_records.builder import (
    Builder,
    DynamicStruct,
    FieldConfig,
    extend_struct,
    merge_structs,
    new_struct,
)
from dynamic_records.errors import (
    DynamicRecordError,
    FieldKindError,
    IncompatibleValueError,
    InvalidArgumentError,
    ReadOnlyFieldError,
    UnresolvedTypeError,
)
from dynamic_records.instance import RecordMapping, RecordSequence
from dynamic_records.parsing import TypeParser, parse_type
from dynamic_records.reflection import (
    Float32,
    Float64,
    Int,
    Int8,
    Int16,
    Int32,
    Int64,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    record_type_of,
    type_of_annotation,
)
from dynamic_records.types import (
    FieldDefinition,
    Kind,
    MapTypeDefinition,
    OpaqueTypeDefinition,
    PointerTypeDefinition,
    PrimitiveTypeDefinition,
    RecordTypeDefinition,
    SliceTypeDefinition,
    TypeDefinition,
    have_same_types,
)

__all__ = [
    # Main API
    "new_struct",
    "extend_struct",
    "merge_structs",
    "new_accessor",
    "new_reader",
    "Builder",
    "FieldConfig",
    "DynamicStruct",
    "Accessor",
    "FieldView",
    "RecordSequence",
    "RecordMapping",
    # Type definitions
    "Kind",
    "TypeDefinition",
    "PrimitiveTypeDefinition",
    "OpaqueTypeDefinition",
    "PointerTypeDefinition",
    "SliceTypeDefinition",
    "MapTypeDefinition",
    "RecordTypeDefinition",
    "FieldDefinition",
    "have_same_types",
    # Reflection
    "record_type_of",
    "type_of_annotation",
    "parse_type",
    "TypeParser",
    "Int",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Float32",
    "Float64",
    # Errors
    "DynamicRecordError",
    "FieldKindError",
    "IncompatibleValueError",
    "InvalidArgumentError",
    "ReadOnlyFieldError",
    "UnresolvedTypeError",
]

__version__ = "0.1.0"
