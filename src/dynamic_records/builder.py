"""Building record types at runtime from field lists."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from dynamic_records.instance import RecordMapping, RecordSequence, synthesize_record_class
from dynamic_records.parsing import parse_type
from dynamic_records.reflection import record_type_of, type_of_annotation, type_of_value
from dynamic_records.types import (
    FieldDefinition,
    MapTypeDefinition,
    RecordTypeDefinition,
    SliceTypeDefinition,
    TypeDefinition,
)

logger = logging.getLogger(__name__)


def resolve_type(typ: Any, records: Mapping[str, TypeDefinition] | None = None) -> TypeDefinition:
    """Resolve anything accepted as a field type to a type definition.

    Accepts a Kind, a TypeDefinition, a type expression string, a
    DynamicStruct, a record class or any Python annotation.
    """
    if isinstance(typ, str):
        return parse_type(typ, records)
    if isinstance(typ, DynamicStruct):
        return typ.record_type
    return type_of_annotation(typ)


class FieldConfig:
    """Mutable specification of one field of a record under construction."""

    def __init__(
        self,
        name: str,
        type_def: TypeDefinition,
        tag: str = "",
        embedded: bool = False,
        package: str = "",
        records: Mapping[str, TypeDefinition] | None = None,
    ) -> None:
        self._name = name
        self._type = type_def
        self._tag = tag
        self._embedded = embedded
        self._package = package
        self._records = records

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> TypeDefinition:
        return self._type

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def embedded(self) -> bool:
        return self._embedded

    @property
    def package(self) -> str:
        return self._package

    def set_type(self, typ: Any) -> FieldConfig:
        """Change the field's type."""
        self._type = resolve_type(typ, self._records)
        return self

    def set_tag(self, tag: str) -> FieldConfig:
        """Change the field's tag."""
        self._tag = tag
        return self

    def definition(self) -> FieldDefinition:
        """Return the immutable definition of the field as currently configured."""
        return FieldDefinition(
            name=self._name,
            type=self._type,
            tag=self._tag,
            embedded=self._embedded,
            package=self._package,
        )

    def __repr__(self) -> str:
        return f"FieldConfig({self._name!r}, {self._type}, tag={self._tag!r})"


class Builder:
    """Accumulates field specifications and compiles them into a DynamicStruct.

    Args:
        records: Named types that type expressions passed to ``add_field``
            and ``set_type`` may refer to. Values may be record classes,
            DynamicStructs or type definitions.
    """

    def __init__(self, records: Mapping[str, Any] | None = None) -> None:
        self._fields: list[FieldConfig] = []
        self._records: dict[str, TypeDefinition] = {
            name: resolve_type(value) for name, value in (records or {}).items()
        }

    def add_field(self, name: str, typ: Any, tag: str = "") -> Builder:
        """Append a field.

        An empty name adds an embedded field: its name is the type's own name
        and its package is the type's package.
        """
        type_def = resolve_type(typ, self._records)
        if not name:
            simple_name = type_def.name.rsplit(".", 1)[-1]
            return self._add_field(simple_name, type_def.package, type_def, tag, True)
        return self._add_field(name, "", type_def, tag, False)

    def _add_field(
        self, name: str, package: str, type_def: TypeDefinition, tag: str, embedded: bool
    ) -> Builder:
        self._fields.append(
            FieldConfig(
                name=name,
                type_def=type_def,
                tag=tag,
                embedded=embedded,
                package=package,
                records=self._records,
            )
        )
        return self

    def remove_field(self, name: str) -> Builder:
        """Remove the first field with the given name, if any."""
        for i, f in enumerate(self._fields):
            if f.name == name:
                del self._fields[i]
                break
        return self

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self._fields)

    def field(self, name: str) -> FieldConfig | None:
        """Get the first field with the given name, or None."""
        for f in self._fields:
            if f.name == name:
                return f
        return None

    def fields(self) -> list[FieldConfig]:
        """Return the fields in declaration order."""
        return list(self._fields)

    def build(self, name: str = "", package: str = "") -> DynamicStruct:
        """Compile the current field list into a new record type.

        Without a name the record type is anonymous and compares to other
        anonymous records field by field.

        Raises:
            ValueError: If two fields share a name or a name is not an identifier.
        """
        record = RecordTypeDefinition(
            name=name,
            package=package,
            fields=[f.definition() for f in self._fields],
        )
        synthesize_record_class(record)
        logger.debug("Built record %s with fields %s", record, [f.name for f in record.fields])
        return DynamicStruct(record)

    def __repr__(self) -> str:
        return f"Builder({[f.name for f in self._fields]})"


class DynamicStruct:
    """Compiled record type that instantiates records and record containers."""

    def __init__(self, record_type: RecordTypeDefinition) -> None:
        self._record_type = record_type

    @property
    def record_type(self) -> RecordTypeDefinition:
        return self._record_type

    @property
    def record_class(self) -> type:
        return self._record_type.ensure_class()

    def new(self) -> Any:
        """Create a zero-valued record."""
        return self.record_class()

    def new_slice_of_structs(self) -> RecordSequence:
        """Create an empty sequence of records of this type."""
        return RecordSequence(self._record_type)

    def new_map_of_structs(self, key: Any) -> RecordMapping:
        """Create an empty mapping to records of this type.

        The key type is taken from the runtime type of ``key``; the value
        itself is not stored.
        """
        return RecordMapping(type_of_value(key), self._record_type)

    def type_of_sequence(self) -> SliceTypeDefinition:
        return SliceTypeDefinition(self._record_type)

    def type_of_map(self, key: Any) -> MapTypeDefinition:
        return MapTypeDefinition(type_of_value(key), self._record_type)

    def __repr__(self) -> str:
        return f"DynamicStruct({self._record_type})"


def new_struct(records: Mapping[str, Any] | None = None) -> Builder:
    """Create an empty builder."""
    return Builder(records)


def extend_struct(value: Any) -> Builder:
    """Create a builder seeded with the fields of one record."""
    return merge_structs(value)


def merge_structs(*values: Any) -> Builder:
    """Create a builder seeded with the fields of several records.

    Fields are copied in declaration order, record after record. Fields
    sharing a name are all kept; ``build`` rejects such a list until the
    duplicates are removed.
    """
    builder = new_struct()

    for value in values:
        if isinstance(value, DynamicStruct):
            record = value.record_type
        else:
            record = record_type_of(value)
        if record is None:
            logger.debug("Skipping non-record %s in merge", type(value).__name__)
            continue
        for f in record.fields:
            builder._add_field(f.name, f.package, f.type, f.tag, f.embedded)

    logger.debug("Merged %d records into %r", len(values), builder)
    return builder
