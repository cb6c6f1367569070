"""Typed field access over record instances.

An Accessor wraps any record instance, dynamically built or declared as a
dataclass, and exposes its fields by name::

    person = new_accessor(record)
    person.field("Age").set_int32(42)
    person.field("Age").int8()        # narrowed like a numeric cast
    person.field("Nick").pointer_string()   # None when absent
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any

from dynamic_records.errors import (
    FieldKindError,
    IncompatibleValueError,
    InvalidArgumentError,
    ReadOnlyFieldError,
)
from dynamic_records.reflection import conforms, record_type_of, type_of_value
from dynamic_records.types import (
    FieldDefinition,
    Kind,
    PointerTypeDefinition,
    PrimitiveTypeDefinition,
    RecordTypeDefinition,
    TypeDefinition,
    have_same_types,
    narrow,
    zero_value,
)

logger = logging.getLogger(__name__)


def _accepts(kind: Kind, value: Any) -> bool:
    """Check that a Python value fits the setter family of a kind."""
    if kind.is_integer:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind.is_float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is Kind.STRING:
        return isinstance(value, str)
    if kind is Kind.BOOL:
        return isinstance(value, bool)
    if kind is Kind.TIME:
        return isinstance(value, datetime)
    return False


def _is_frozen(value: Any) -> bool:
    params = getattr(type(value), "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def _copy_record(value: Any, record: RecordTypeDefinition) -> Any:
    """Copy a record and every record nested in it by value."""
    duplicate = copy.copy(value)
    for f in record.fields:
        nested = getattr(duplicate, f.name, None)
        if isinstance(f.type, RecordTypeDefinition) and nested is not None:
            object.__setattr__(duplicate, f.name, _copy_record(nested, f.type))
    return duplicate


class FieldView:
    """Named handle into one field of one record instance.

    Getters read the current value of the slot, setters write it in place.
    A view obtained through a read-only accessor raises ReadOnlyFieldError
    from every setter.
    """

    def __init__(self, instance: Any, definition: FieldDefinition, read_only: bool = False) -> None:
        self._instance = instance
        self._definition = definition
        self._read_only = read_only

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def type(self) -> TypeDefinition:
        return self._definition.type

    @property
    def kind(self) -> Kind:
        return self._definition.type.kind

    @property
    def tag(self) -> str:
        return self._definition.tag

    @property
    def embedded(self) -> bool:
        return self._definition.embedded

    @property
    def definition(self) -> FieldDefinition:
        return self._definition

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def is_pointer(self) -> bool:
        return isinstance(self._definition.type, PointerTypeDefinition)

    def _slot_type(self) -> TypeDefinition:
        """Return the declared type with one pointer level removed."""
        type_def = self._definition.type
        if isinstance(type_def, PointerTypeDefinition):
            return type_def.elem
        return type_def

    def _load(self) -> Any:
        return getattr(self._instance, self._definition.name)

    def _store(self, value: Any) -> None:
        if self._read_only:
            raise ReadOnlyFieldError(f'field "{self.name}" is read-only')
        setattr(self._instance, self._definition.name, value)

    def _check_kind(self, actual: Kind, requested: Kind) -> None:
        if actual.family is None or actual.family != requested.family:
            raise FieldKindError(
                f'field "{self.name}" of type {self.type} cannot be used as {requested.value}'
            )

    def _kind_of(self, value: Any) -> Kind:
        """Return the kind a stored value is read as."""
        slot_kind = self._slot_type().kind
        if slot_kind is Kind.INTERFACE:
            return type_of_value(value).kind
        return slot_kind

    def _read(self, kind: Kind) -> Any:
        value = self._load()
        if value is None and self.is_pointer:
            self._check_kind(self._slot_type().kind, kind)
            return zero_value(PrimitiveTypeDefinition(kind))
        self._check_kind(self._kind_of(value), kind)
        return narrow(value, kind)

    def _read_pointer(self, kind: Kind) -> Any:
        if self._load() is None and (self.is_pointer or self._slot_type().kind is Kind.INTERFACE):
            return None
        return self._read(kind)

    def _write(self, kind: Kind, value: Any) -> None:
        if self._read_only:
            raise ReadOnlyFieldError(f'field "{self.name}" is read-only')
        if not _accepts(kind, value):
            raise IncompatibleValueError(
                f'cannot set {kind.value} field "{self.name}" to {type(value).__name__}'
            )

        slot_type = self._slot_type()
        value = narrow(value, kind)
        if slot_type.kind is Kind.INTERFACE:
            if not conforms(value, slot_type):
                raise IncompatibleValueError(
                    f'cannot store {type(value).__name__} in field "{self.name}" of type {self.type}'
                )
        else:
            self._check_kind(slot_type.kind, kind)
            value = narrow(value, slot_type.kind)
        self._store(value)

    def _write_pointer(self, kind: Kind, value: Any) -> None:
        if value is None:
            self._store(zero_value(self._definition.type))
            return
        self._write(kind, value)

    def _normalize(self, value: Any) -> Any:
        slot_type = self._slot_type()
        if value is not None and (slot_type.kind.is_integer or slot_type.kind.is_float):
            return narrow(value, slot_type.kind)
        return value

    # Signed integers

    def pointer_int(self) -> int | None:
        return self._read_pointer(Kind.INT)

    def int(self) -> int:
        return self._read(Kind.INT)

    def pointer_int8(self) -> int | None:
        return self._read_pointer(Kind.INT8)

    def int8(self) -> int:
        return self._read(Kind.INT8)

    def pointer_int16(self) -> int | None:
        return self._read_pointer(Kind.INT16)

    def int16(self) -> int:
        return self._read(Kind.INT16)

    def pointer_int32(self) -> int | None:
        return self._read_pointer(Kind.INT32)

    def int32(self) -> int:
        return self._read(Kind.INT32)

    def pointer_int64(self) -> int | None:
        return self._read_pointer(Kind.INT64)

    def int64(self) -> int:
        return self._read(Kind.INT64)

    # Unsigned integers

    def pointer_uint(self) -> int | None:
        return self._read_pointer(Kind.UINT)

    def uint(self) -> int:
        return self._read(Kind.UINT)

    def pointer_uint8(self) -> int | None:
        return self._read_pointer(Kind.UINT8)

    def uint8(self) -> int:
        return self._read(Kind.UINT8)

    def pointer_uint16(self) -> int | None:
        return self._read_pointer(Kind.UINT16)

    def uint16(self) -> int:
        return self._read(Kind.UINT16)

    def pointer_uint32(self) -> int | None:
        return self._read_pointer(Kind.UINT32)

    def uint32(self) -> int:
        return self._read(Kind.UINT32)

    def pointer_uint64(self) -> int | None:
        return self._read_pointer(Kind.UINT64)

    def uint64(self) -> int:
        return self._read(Kind.UINT64)

    # Floats

    def pointer_float32(self) -> float | None:
        return self._read_pointer(Kind.FLOAT32)

    def float32(self) -> float:
        return self._read(Kind.FLOAT32)

    def pointer_float64(self) -> float | None:
        return self._read_pointer(Kind.FLOAT64)

    def float64(self) -> float:
        return self._read(Kind.FLOAT64)

    # Strings, booleans and timestamps

    def pointer_string(self) -> str | None:
        return self._read_pointer(Kind.STRING)

    def string(self) -> str:
        return self._read(Kind.STRING)

    def pointer_bool(self) -> bool | None:
        return self._read_pointer(Kind.BOOL)

    def bool(self) -> bool:
        return self._read(Kind.BOOL)

    def pointer_time(self) -> datetime | None:
        if self._read_pointer(Kind.TIME) is None:
            return None
        return self.time()

    def time(self) -> datetime:
        """Return the timestamp stored in the field.

        Raises:
            FieldKindError: If the stored value is not a datetime.
        """
        value = self._read(Kind.TIME)
        if not isinstance(value, datetime):
            raise FieldKindError(f'field "{self.name}" is not an instance of datetime')
        return value

    def interface(self) -> Any:
        """Return the stored value as is."""
        return self._load()

    # Setters

    def set_pointer_int(self, value: int | None) -> None:
        self._write_pointer(Kind.INT, value)

    def set_int(self, value: int) -> None:
        self._write(Kind.INT, value)

    def set_pointer_int8(self, value: int | None) -> None:
        self._write_pointer(Kind.INT8, value)

    def set_int8(self, value: int) -> None:
        self._write(Kind.INT8, value)

    def set_pointer_int16(self, value: int | None) -> None:
        self._write_pointer(Kind.INT16, value)

    def set_int16(self, value: int) -> None:
        self._write(Kind.INT16, value)

    def set_pointer_int32(self, value: int | None) -> None:
        self._write_pointer(Kind.INT32, value)

    def set_int32(self, value: int) -> None:
        self._write(Kind.INT32, value)

    def set_pointer_int64(self, value: int | None) -> None:
        self._write_pointer(Kind.INT64, value)

    def set_int64(self, value: int) -> None:
        self._write(Kind.INT64, value)

    def set_pointer_uint(self, value: int | None) -> None:
        self._write_pointer(Kind.UINT, value)

    def set_uint(self, value: int) -> None:
        self._write(Kind.UINT, value)

    def set_pointer_uint8(self, value: int | None) -> None:
        self._write_pointer(Kind.UINT8, value)

    def set_uint8(self, value: int) -> None:
        self._write(Kind.UINT8, value)

    def set_pointer_uint16(self, value: int | None) -> None:
        self._write_pointer(Kind.UINT16, value)

    def set_uint16(self, value: int) -> None:
        self._write(Kind.UINT16, value)

    def set_pointer_uint32(self, value: int | None) -> None:
        self._write_pointer(Kind.UINT32, value)

    def set_uint32(self, value: int) -> None:
        self._write(Kind.UINT32, value)

    def set_pointer_uint64(self, value: int | None) -> None:
        self._write_pointer(Kind.UINT64, value)

    def set_uint64(self, value: int) -> None:
        self._write(Kind.UINT64, value)

    def set_pointer_float32(self, value: float | None) -> None:
        self._write_pointer(Kind.FLOAT32, value)

    def set_float32(self, value: float) -> None:
        self._write(Kind.FLOAT32, value)

    def set_pointer_float64(self, value: float | None) -> None:
        self._write_pointer(Kind.FLOAT64, value)

    def set_float64(self, value: float) -> None:
        self._write(Kind.FLOAT64, value)

    def set_pointer_string(self, value: str | None) -> None:
        self._write_pointer(Kind.STRING, value)

    def set_string(self, value: str) -> None:
        self._write(Kind.STRING, value)

    def set_pointer_bool(self, value: bool | None) -> None:
        self._write_pointer(Kind.BOOL, value)

    def set_bool(self, value: bool) -> None:
        self._write(Kind.BOOL, value)

    def set_pointer_time(self, value: datetime | None) -> None:
        self._write_pointer(Kind.TIME, value)

    def set_time(self, value: datetime) -> None:
        self._write(Kind.TIME, value)

    def set_interface(self, value: Any) -> None:
        """Store any value that conforms to the field's declared type.

        Raises:
            IncompatibleValueError: If the value does not fit the field.
        """
        if self._read_only:
            raise ReadOnlyFieldError(f'field "{self.name}" is read-only')
        if not conforms(value, self._definition.type):
            raise IncompatibleValueError(
                f'cannot store {type(value).__name__} in field "{self.name}" of type {self.type}'
            )
        self._store(self._normalize(value))

    def __repr__(self) -> str:
        return f"FieldView({self.name!r}, {self.type})"


class Accessor:
    """Read/write view over the fields of a record instance.

    Fields are indexed by name when the accessor is created. A value that is
    not a record gives an accessor with no fields, which can still fan out
    over sequences and mappings of records.

    The accessor keeps a reference to the instance, so writes through its
    fields are visible to every other holder of the instance. Frozen
    dataclass instances are always viewed read-only.
    """

    def __init__(self, value: Any, read_only: bool = False) -> None:
        self._value = value
        self._read_only = read_only or _is_frozen(value)
        self._record_type: RecordTypeDefinition | None = None
        self._fields: dict[str, FieldView] = {}

        if value is not None and not isinstance(value, type):
            self._record_type = record_type_of(value)
        if self._record_type is not None:
            for definition in self._record_type.fields:
                self._fields[definition.name] = FieldView(value, definition, self._read_only)

    @property
    def record_type(self) -> RecordTypeDefinition | None:
        return self._record_type

    @property
    def read_only(self) -> bool:
        return self._read_only

    def has_field(self, name: str) -> bool:
        return name in self._fields

    def field(self, name: str) -> FieldView | None:
        """Get a field by name, or None if the record has no such field."""
        return self._fields.get(name)

    def fields(self) -> list[FieldView]:
        """Return all fields in declaration order."""
        return list(self._fields.values())

    def value(self) -> Any:
        """Return the wrapped instance."""
        return self._value

    def to_struct(self, destination: Any) -> None:
        """Copy matching fields into another record instance.

        A destination field receives the value of the same-named field of
        this record when it is settable and both field types are
        structurally equivalent; every other field is left unchanged.
        Nested records are copied by value; lists, dicts and nullable
        values are shared with the source.

        Raises:
            InvalidArgumentError: If ``destination`` is None, a class, not a
                record, or a frozen record.
            UnresolvedTypeError: If the destination is a dataclass whose
                annotations cannot be evaluated.
        """
        if destination is None:
            raise InvalidArgumentError("to_struct: expected a record instance, got None")
        if isinstance(destination, type):
            raise InvalidArgumentError(
                f"to_struct: expected a record instance, got the class {destination.__name__}"
            )

        record = record_type_of(destination)
        if record is None:
            raise InvalidArgumentError(
                f"to_struct: expected a record instance, got {type(destination).__name__}"
            )
        if _is_frozen(destination):
            raise InvalidArgumentError(
                f"to_struct: expected a mutable record, got frozen {type(destination).__name__}"
            )

        for definition in record.fields:
            source_field = self._fields.get(definition.name)
            if source_field is None:
                continue
            if not definition.exported:
                logger.debug("to_struct: skipping private field %s", definition.name)
                continue
            if not have_same_types(source_field.type, definition.type):
                logger.debug(
                    "to_struct: skipping field %s, %s is not compatible with %s",
                    definition.name,
                    source_field.type,
                    definition.type,
                )
                continue
            value = source_field.interface()
            if isinstance(definition.type, RecordTypeDefinition) and value is not None:
                value = _copy_record(value, definition.type)
            setattr(destination, definition.name, value)

    def to_slice_of_accessors(self) -> list[Accessor] | None:
        """Return one accessor per element of a list or tuple, or None for other values."""
        if not isinstance(self._value, (list, tuple)):
            return None
        return [Accessor(v, read_only=self._read_only) for v in self._value]

    def to_map_of_accessors(self) -> dict[Any, Accessor] | None:
        """Return one accessor per value of a dict, under the same keys, or None for other values."""
        if not isinstance(self._value, dict):
            return None
        return {k: Accessor(v, read_only=self._read_only) for k, v in self._value.items()}

    def __repr__(self) -> str:
        mode = "read-only" if self._read_only else "read-write"
        return f"Accessor({self._record_type!r}, {mode})"


def new_accessor(value: Any, read_only: bool = False) -> Accessor:
    """Create an accessor over a record instance.

    Raises:
        UnresolvedTypeError: If ``value`` is a dataclass whose annotations
            cannot be evaluated.
    """
    return Accessor(value, read_only=read_only)


def new_reader(value: Any) -> Accessor:
    """Create a read-only accessor over a record instance."""
    return Accessor(value, read_only=True)
