"""Example usage of the dynamic_records library."""

from dataclasses import dataclass, field
from typing import Optional

from dynamic_records import Int32, Kind, extend_struct, new_accessor, new_struct


@dataclass
class Person:
    Name: str = field(default="", metadata={"tag": 'json:"name"'})
    Age: Int32 = 0
    Nick: Optional[str] = None


# Build a record type at runtime
profile = (
    new_struct()
    .add_field("Name", Kind.STRING, 'json:"name"')
    .add_field("Age", Kind.INT32, 'json:"age"')
    .add_field("Tags", "[]string", 'json:"tags"')
    .add_field("Email", "*string", 'json:"email,omitempty"')
    .build()
)

# Create several records and fill them through accessors
people = profile.new_slice_of_structs()
for name, age in [("Alice", 30), ("Bob", 25), ("Charlie", 35)]:
    person = new_accessor(people.new())
    person.field("Name").set_string(name)
    person.field("Age").set_int32(age)

print("Records:")
for person in new_accessor(people).to_slice_of_accessors():
    email = person.field("Email").pointer_string()
    print(f"  {person.field('Name').string()}, age {person.field('Age').int32()}, email {email}")

# Typed getters narrow like numeric casts
wide = new_accessor(people[0])
wide.field("Age").set_int32(300)
print(f"\nAge 300 read as int8: {wide.field('Age').int8()}")

# Copy the fields a declared dataclass shares with the built record
alice = Person()
new_accessor(people[1]).to_struct(alice)
print(f"\nCopied into dataclass: {alice}")

# Extend a declared record with extra fields
employee = extend_struct(alice).add_field("Salary", Kind.FLOAT64, "").build()
print(f"\nExtended record type: {employee.record_type}")
print(f"Fields: {[f.name for f in new_accessor(employee.new()).fields()]}")
