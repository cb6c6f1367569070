"""Record classes and typed record containers."""

from __future__ import annotations

import dataclasses
import keyword
import logging
from collections import Counter
from functools import partial
from typing import Any, Iterable

from dynamic_records.errors import IncompatibleValueError
from dynamic_records.reflection import RECORD_TYPE_ATTRIBUTE, annotation_of, conforms
from dynamic_records.types import (
    MapTypeDefinition,
    RecordTypeDefinition,
    SliceTypeDefinition,
    TypeDefinition,
    zero_value,
)

logger = logging.getLogger(__name__)

# Class name used when a record is built without a name
DEFAULT_CLASS_NAME = "DynamicRecord"


def synthesize_record_class(record: RecordTypeDefinition, class_name: str | None = None) -> type:
    """Create the dataclass holding values of a record type.

    Every field defaults to a fresh zero value of its type and carries its
    definition, tag and embedded flag in the field metadata. The class is
    stored on ``record.record_class`` and returned.

    Raises:
        ValueError: If field names are duplicated or are not identifiers.
    """
    _check_field_names(record)

    specs = []
    for f in record.fields:
        specs.append(
            (
                f.name,
                annotation_of(f.type),
                dataclasses.field(
                    default_factory=partial(zero_value, f.type),
                    metadata={"tag": f.tag, "embedded": f.embedded, "definition": f},
                ),
            )
        )

    cls = dataclasses.make_dataclass(
        class_name or record.name or DEFAULT_CLASS_NAME,
        specs,
        namespace={RECORD_TYPE_ATTRIBUTE: record},
    )
    if record.package:
        cls.__module__ = record.package
    record.record_class = cls

    logger.debug("Synthesized record class %s with %d fields", cls.__qualname__, len(record.fields))
    return cls


def _check_field_names(record: RecordTypeDefinition) -> None:
    counts = Counter(f.name for f in record.fields)
    duplicates = sorted(name for name, n in counts.items() if n > 1)
    if duplicates:
        raise ValueError(f"Duplicate field names in record: {', '.join(duplicates)}")
    for name in counts:
        if not name.isidentifier() or keyword.iskeyword(name):
            raise ValueError(f"Field name '{name}' is not a valid identifier")


class RecordSequence(list):
    """Growable ordered sequence of records of one type.

    Every element stored is checked against ``record_type``.
    """

    def __init__(self, record_type: RecordTypeDefinition, values: Iterable[Any] = ()) -> None:
        super().__init__()
        self.record_type = record_type
        self.extend(values)

    @property
    def type_def(self) -> SliceTypeDefinition:
        return SliceTypeDefinition(self.record_type)

    def _check(self, value: Any) -> Any:
        if not conforms(value, self.record_type):
            raise IncompatibleValueError(
                f"Cannot store {type(value).__name__} in a sequence of {self.record_type}"
            )
        return value

    def new(self) -> Any:
        """Append a zero-valued record and return it."""
        value = self.record_type.new_zero()
        super().append(value)
        return value

    def append(self, value: Any) -> None:
        super().append(self._check(value))

    def insert(self, index: Any, value: Any) -> None:
        super().insert(index, self._check(value))

    def extend(self, values: Iterable[Any]) -> None:
        super().extend([self._check(v) for v in values])

    def __iadd__(self, values: Iterable[Any]) -> RecordSequence:  # type: ignore[override]
        self.extend(values)
        return self

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            value = [self._check(v) for v in value]
        else:
            self._check(value)
        super().__setitem__(index, value)

    def __repr__(self) -> str:
        return f"RecordSequence({self.record_type}, {list.__repr__(self)})"


class RecordMapping(dict):
    """Mapping from keys of one type to records of one type."""

    def __init__(self, key_type: TypeDefinition, record_type: RecordTypeDefinition) -> None:
        super().__init__()
        self.key_type = key_type
        self.record_type = record_type

    @property
    def type_def(self) -> MapTypeDefinition:
        return MapTypeDefinition(self.key_type, self.record_type)

    def _check(self, key: Any, value: Any) -> None:
        if not conforms(key, self.key_type):
            raise IncompatibleValueError(
                f"Cannot use {type(key).__name__} as a key of a mapping keyed by {self.key_type}"
            )
        if not conforms(value, self.record_type):
            raise IncompatibleValueError(
                f"Cannot store {type(value).__name__} in a mapping of {self.record_type}"
            )

    def new(self, key: Any) -> Any:
        """Store a zero-valued record under ``key`` and return it."""
        value = self.record_type.new_zero()
        self[key] = value
        return value

    def __setitem__(self, key: Any, value: Any) -> None:
        self._check(key, value)
        super().__setitem__(key, value)

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if key not in self:
            self[key] = default
        return self[key]

    def update(self, *args: Any, **kwargs: Any) -> None:  # type: ignore[override]
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def __repr__(self) -> str:
        return f"RecordMapping({self.key_type}, {self.record_type}, {dict.__repr__(self)})"
