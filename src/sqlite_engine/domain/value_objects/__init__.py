"""Value objects for the engine domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    Column values:
        - ColumnKind: Discriminator for the cell variants
        - ColumnValue: Union of TextValue, IntegerValue, RealValue,
          BooleanValue, NullValue
        - NULL: Shared NullValue instance

    Outcomes:
        - Result: Explicit success/failure returned by engine operations
"""

from sqlite_engine.domain.value_objects.column_values import (
    INT64_MAX,
    INT64_MIN,
    NULL,
    BooleanValue,
    ColumnKind,
    ColumnValue,
    IntegerValue,
    NullValue,
    RealValue,
    TextValue,
)
from sqlite_engine.domain.value_objects.result import Result

__all__ = [
    # Column values
    "ColumnKind",
    "ColumnValue",
    "TextValue",
    "IntegerValue",
    "RealValue",
    "BooleanValue",
    "NullValue",
    "NULL",
    "INT64_MIN",
    "INT64_MAX",
    # Outcomes
    "Result",
]
