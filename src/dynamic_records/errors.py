"""Exceptions raised by the dynamic_records library."""


class DynamicRecordError(Exception):
    """Base class for all dynamic_records errors."""


class InvalidArgumentError(DynamicRecordError, TypeError):
    """An argument has the wrong shape, e.g. a to_struct destination that is not a mutable record."""


class IncompatibleValueError(DynamicRecordError, TypeError):
    """A value does not conform to the declared type of the slot or container receiving it."""


class FieldKindError(DynamicRecordError, RuntimeError):
    """A typed accessor was used on a field of a different kind.

    This is a usage error rather than a data error and is never caught
    inside the library.
    """


class ReadOnlyFieldError(DynamicRecordError, AttributeError):
    """A write was attempted through a read-only view."""


class UnresolvedTypeError(DynamicRecordError, NameError):
    """The field annotations of a dataclass could not be evaluated."""
