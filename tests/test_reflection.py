"""Tests for annotation and value reflection."""

import gc
import weakref
from dataclasses import dataclass, field, make_dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Union

import pytest

from dynamic_records import UnresolvedTypeError, new_accessor

from dynamic_records.reflection import (
    Float32,
    Int8,
    Int16,
    Int32,
    Int64,
    Uint64,
    annotation_of,
    conforms,
    record_type_of,
    type_of_annotation,
    type_of_value,
)
from dynamic_records.types import (
    INTERFACE_TYPE,
    Kind,
    MapTypeDefinition,
    OpaqueTypeDefinition,
    PointerTypeDefinition,
    PrimitiveTypeDefinition,
    RecordTypeDefinition,
    SliceTypeDefinition,
)


@dataclass
class Address:
    Street: str = ""
    City: str = ""


@dataclass
class Person:
    Name: str = field(default="", metadata={"tag": 'json:"name"'})
    Age: Int32 = 0
    Score: float = 0.0
    Nick: Optional[str] = None
    Tags: list[str] = field(default_factory=list)
    Scores: dict[str, Int64] = field(default_factory=dict)
    Home: Address = field(default_factory=Address, metadata={"embedded": True})
    Extra: Any = None
    _secret: str = ""


@dataclass
class Node:
    Value: Int32 = 0
    Next: Optional["Node"] = None


class Money:
    pass


@dataclass
class Broken:
    Value: "Missing" = None  # noqa: F821


@dataclass
class Employee(Person):
    Salary: float = 0.0


class TestTypeOfAnnotation:
    """Tests for type_of_annotation."""

    def test_width_markers(self):
        """Test Annotated width markers."""
        assert type_of_annotation(Int8) == PrimitiveTypeDefinition(Kind.INT8)
        assert type_of_annotation(Uint64) == PrimitiveTypeDefinition(Kind.UINT64)
        assert type_of_annotation(Float32) == PrimitiveTypeDefinition(Kind.FLOAT32)

    def test_plain_scalars(self):
        """Test builtin scalar classes."""
        assert type_of_annotation(int) == PrimitiveTypeDefinition(Kind.INT)
        assert type_of_annotation(float) == PrimitiveTypeDefinition(Kind.FLOAT64)
        assert type_of_annotation(str) == PrimitiveTypeDefinition(Kind.STRING)
        assert type_of_annotation(bool) == PrimitiveTypeDefinition(Kind.BOOL)
        assert type_of_annotation(datetime) == PrimitiveTypeDefinition(Kind.TIME)

    def test_optional_is_pointer(self):
        """Test that Optional annotations become pointers."""
        expected = PointerTypeDefinition(PrimitiveTypeDefinition(Kind.INT16))
        assert type_of_annotation(Optional[Int16]) == expected
        assert type_of_annotation(Int16 | None) == expected

    def test_containers(self):
        """Test list, tuple and dict annotations."""
        assert type_of_annotation(list[str]) == SliceTypeDefinition(
            PrimitiveTypeDefinition(Kind.STRING)
        )
        assert type_of_annotation(tuple[int, ...]) == SliceTypeDefinition(
            PrimitiveTypeDefinition(Kind.INT)
        )
        assert type_of_annotation(dict[str, Int64]) == MapTypeDefinition(
            PrimitiveTypeDefinition(Kind.STRING), PrimitiveTypeDefinition(Kind.INT64)
        )
        assert type_of_annotation(list) == SliceTypeDefinition(INTERFACE_TYPE)

    def test_interface(self):
        """Test annotations that accept any value."""
        assert type_of_annotation(Any) == INTERFACE_TYPE
        assert type_of_annotation(object) == INTERFACE_TYPE
        assert type_of_annotation(Union[int, str]) == INTERFACE_TYPE

    def test_opaque_class(self):
        """Test classes without a record shape."""
        type_def = type_of_annotation(Money)
        assert isinstance(type_def, OpaqueTypeDefinition)
        assert type_def.name == "Money"
        assert type_def.kind is Kind.INTERFACE
        assert type_def.python_type is Money

    def test_kinds(self):
        """Test bare kinds."""
        assert type_of_annotation(Kind.INT32) == PrimitiveTypeDefinition(Kind.INT32)
        assert type_of_annotation(Kind.SLICE) == SliceTypeDefinition(INTERFACE_TYPE)
        record = type_of_annotation(Kind.STRUCT)
        assert isinstance(record, RecordTypeDefinition)
        assert record.is_anonymous

    def test_annotation_of_round_trip(self):
        """Test that annotation_of carries the definition itself."""
        type_def = PointerTypeDefinition(PrimitiveTypeDefinition(Kind.INT8))
        assert type_of_annotation(annotation_of(type_def)) is type_def


class TestRecordTypeOf:
    """Tests for record_type_of."""

    def test_fields_in_order(self):
        """Test that fields follow declaration order."""
        record = record_type_of(Person)
        assert [f.name for f in record.fields] == [
            "Name",
            "Age",
            "Score",
            "Nick",
            "Tags",
            "Scores",
            "Home",
            "Extra",
            "_secret",
        ]

    def test_field_types(self):
        """Test resolved field types."""
        record = record_type_of(Person)
        assert record.get_field("Age").type == PrimitiveTypeDefinition(Kind.INT32)
        assert record.get_field("Nick").type == PointerTypeDefinition(
            PrimitiveTypeDefinition(Kind.STRING)
        )
        assert record.get_field("Home").type is record_type_of(Address)
        assert record.get_field("Extra").type == INTERFACE_TYPE

    def test_name_and_package(self):
        """Test record naming."""
        record = record_type_of(Person)
        assert record.name == "Person"
        assert record.package == Person.__module__
        assert record.record_class is Person

    def test_tags_and_embedding(self):
        """Test tags and embedded fields from field metadata."""
        record = record_type_of(Person)
        assert record.get_field("Name").tag == 'json:"name"'
        assert record.get_field("Age").tag == ""

        home = record.get_field("Home")
        assert home.embedded
        assert home.package == Address.__module__
        assert not record.get_field("Name").embedded

    def test_private_fields(self):
        """Test that underscore fields carry their package and are not exported."""
        record = record_type_of(Person)
        secret = record.get_field("_secret")
        assert not secret.exported
        assert secret.package == Person.__module__
        assert record.get_field("Name").exported
        assert record.get_field("Name").package == ""

    def test_instances_share_the_class_record(self):
        """Test caching per class."""
        assert record_type_of(Person()) is record_type_of(Person)

    def test_self_reference(self):
        """Test a record that points to itself."""
        record = record_type_of(Node)
        next_type = record.get_field("Next").type
        assert isinstance(next_type, PointerTypeDefinition)
        assert next_type.elem is record

    def test_non_records(self):
        """Test values that are not records."""
        assert record_type_of(5) is None
        assert record_type_of("text") is None
        assert record_type_of(Money()) is None

    def test_record_is_stored_on_the_class(self):
        """Test that the derived record lives in the class namespace."""
        record = record_type_of(Address)
        assert Address.__dict__["__record_type__"] is record

    def test_subclass_derives_its_own_record(self):
        """Test that a dataclass subclass does not reuse its base record."""
        base = record_type_of(Person)
        derived = record_type_of(Employee)

        assert derived is not base
        assert derived.name == "Employee"
        assert derived.get_field("Salary") is not None
        assert base.get_field("Salary") is None

    def test_classes_can_be_collected(self):
        """Test that reflecting a class does not keep it alive."""
        cls = make_dataclass("Transient", [("Value", int, 0)])
        assert record_type_of(cls) is not None
        ref = weakref.ref(cls)

        del cls
        gc.collect()
        assert ref() is None

    def test_unresolved_annotations(self):
        """Test that an unknown annotation name is reported."""
        with pytest.raises(UnresolvedTypeError, match="Broken"):
            record_type_of(Broken)
        with pytest.raises(NameError):
            record_type_of(Broken())
        assert "__record_type__" not in Broken.__dict__

    def test_unresolved_nested_annotations(self):
        """Test that a failing nested record leaves the outer class clean."""
        Outer = make_dataclass("Outer", [("Inner", Broken, None)])

        with pytest.raises(UnresolvedTypeError):
            record_type_of(Outer)
        assert "__record_type__" not in Outer.__dict__
        assert "__record_type__" not in Broken.__dict__

    def test_accessor_reports_unresolved_annotations(self):
        """Test that building an accessor surfaces the failure."""
        with pytest.raises(UnresolvedTypeError):
            new_accessor(Broken())


class TestTypeOfValue:
    """Tests for type_of_value."""

    def test_scalars(self):
        """Test scalar values."""
        assert type_of_value(True) == PrimitiveTypeDefinition(Kind.BOOL)
        assert type_of_value(3) == PrimitiveTypeDefinition(Kind.INT)
        assert type_of_value(2.5) == PrimitiveTypeDefinition(Kind.FLOAT64)
        assert type_of_value("x") == PrimitiveTypeDefinition(Kind.STRING)
        assert type_of_value(datetime.now(timezone.utc)) == PrimitiveTypeDefinition(Kind.TIME)

    def test_other_values(self):
        """Test records, containers and opaque values."""
        assert type_of_value(Person()) is record_type_of(Person)
        assert type_of_value(None) == INTERFACE_TYPE
        assert type_of_value([1]) == SliceTypeDefinition(INTERFACE_TYPE)
        assert type_of_value({}) == MapTypeDefinition(INTERFACE_TYPE, INTERFACE_TYPE)
        assert type_of_value(Money()).python_type is Money


class TestConforms:
    """Tests for conforms."""

    def test_integer_ranges(self):
        """Test integer range checks."""
        int8 = PrimitiveTypeDefinition(Kind.INT8)
        assert conforms(127, int8)
        assert conforms(-128, int8)
        assert not conforms(128, int8)
        assert not conforms(True, int8)
        assert not conforms(1.0, int8)
        assert not conforms(-1, PrimitiveTypeDefinition(Kind.UINT32))

    def test_floats(self):
        """Test that floats accept integers but not booleans."""
        float64 = PrimitiveTypeDefinition(Kind.FLOAT64)
        assert conforms(1, float64)
        assert conforms(1.5, float64)
        assert not conforms(True, float64)
        assert not conforms("1.5", float64)

    def test_pointers(self):
        """Test that pointers accept None."""
        pointer = PointerTypeDefinition(PrimitiveTypeDefinition(Kind.STRING))
        assert conforms(None, pointer)
        assert conforms("x", pointer)
        assert not conforms(1, pointer)

    def test_containers(self):
        """Test element checks of slices and maps."""
        int32_slice = SliceTypeDefinition(PrimitiveTypeDefinition(Kind.INT32))
        assert conforms([1, 2], int32_slice)
        assert conforms([], int32_slice)
        assert not conforms(["a"], int32_slice)
        assert conforms((1, 2), int32_slice)
        assert not conforms(("a",), int32_slice)

        mapping = MapTypeDefinition(
            PrimitiveTypeDefinition(Kind.STRING), PrimitiveTypeDefinition(Kind.INT32)
        )
        assert conforms({"a": 1}, mapping)
        assert not conforms({1: 1}, mapping)
        assert not conforms({"a": "b"}, mapping)

    def test_records(self):
        """Test record values."""
        person = record_type_of(Person)
        assert conforms(Person(), person)
        assert not conforms(Address(), person)
        assert not conforms(None, person)
        assert not conforms(Person, person)

    def test_opaque(self):
        """Test opaque classes."""
        money = type_of_annotation(Money)
        assert conforms(Money(), money)
        assert conforms(None, money)
        assert not conforms(5, money)

    def test_interface(self):
        """Test that the interface type accepts anything."""
        assert conforms(object(), INTERFACE_TYPE)
        assert conforms(None, INTERFACE_TYPE)
