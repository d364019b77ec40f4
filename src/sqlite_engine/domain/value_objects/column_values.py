"""Typed cell values produced by result materialization.

Every cell of a materialized result holds exactly one of a closed set of
variants. Each variant renders to a canonical string and serializes to a
``{kind, value}`` mapping.

Variants:
    - TextValue: character data (and the fallback for unknown declared types)
    - IntegerValue: 64-bit signed integer
    - RealValue: 64-bit floating point
    - BooleanValue: true/false
    - NullValue: absent cell, regardless of declared column type
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ColumnKind(Enum):
    """Discriminator for the ColumnValue variants."""

    TEXT = "text"
    INTEGER = "integer"
    REAL = "real"
    BOOLEAN = "boolean"
    NULL = "null"


@dataclass(frozen=True, slots=True)
class TextValue:
    """Character data."""

    value: str
    kind: ClassVar[ColumnKind] = ColumnKind.TEXT

    def as_string(self) -> str:
        return self.value

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value}


@dataclass(frozen=True, slots=True)
class IntegerValue:
    """64-bit signed integer.

    Example:
        >>> IntegerValue(42).as_string()
        '42'
    """

    value: int
    kind: ClassVar[ColumnKind] = ColumnKind.INTEGER

    def __post_init__(self) -> None:
        """Validate the 64-bit signed range."""
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise ValueError(f"integer out of 64-bit range: {self.value}")

    def as_string(self) -> str:
        return str(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value}


@dataclass(frozen=True, slots=True)
class RealValue:
    """64-bit floating point number.

    Rendering always carries a fractional part, so ``30`` stored as REAL
    renders as ``30.0``.
    """

    value: float
    kind: ClassVar[ColumnKind] = ColumnKind.REAL

    def as_string(self) -> str:
        return repr(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value}


@dataclass(frozen=True, slots=True)
class BooleanValue:
    """Boolean rendered as ``true``/``false``."""

    value: bool
    kind: ClassVar[ColumnKind] = ColumnKind.BOOLEAN

    def as_string(self) -> str:
        return "true" if self.value else "false"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value}


@dataclass(frozen=True, slots=True)
class NullValue:
    """An absent cell."""

    kind: ClassVar[ColumnKind] = ColumnKind.NULL

    def as_string(self) -> str:
        return "null"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "value": None}


ColumnValue = Union[TextValue, IntegerValue, RealValue, BooleanValue, NullValue]
"""A single typed cell. Exactly one variant is active per cell."""

NULL = NullValue()
