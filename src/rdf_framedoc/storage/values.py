"""
Typed literal values and their conversion to native Python scalars.

Literals live in the graph as (lexical form, datatype IRI) pairs. Documents
carry native scalars instead, and filters compare against native scalars, so
every consumer goes through the conversions defined here.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union

from rdf_framedoc.storage.vocab import XSD


class BaseTypeKind(Enum):
    """Comparison families for xsd base types."""
    STRING = "string"
    SMALL_INTEGER = "small_integer"
    BIG_INTEGER = "big_integer"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    FLOAT = "float"
    DECIMAL = "decimal"


_SMALL_INTEGER_TYPES = frozenset({
    "int", "short", "byte", "unsignedInt", "unsignedShort", "unsignedByte",
})
_BIG_INTEGER_TYPES = frozenset({
    "integer", "long", "unsignedLong", "positiveInteger", "nonNegativeInteger",
    "negativeInteger", "nonPositiveInteger",
})
_FLOAT_TYPES = frozenset({"float", "double"})
_DATETIME_TYPES = frozenset({"dateTime", "dateTimeStamp"})


def base_type_kind(local_name: str) -> BaseTypeKind:
    """
    Classify an xsd local type name (e.g. ``"integer"``).

    Anything that is not numeric, boolean or a timestamp compares as a string.
    """
    if local_name in _SMALL_INTEGER_TYPES:
        return BaseTypeKind.SMALL_INTEGER
    if local_name in _BIG_INTEGER_TYPES:
        return BaseTypeKind.BIG_INTEGER
    if local_name in _FLOAT_TYPES:
        return BaseTypeKind.FLOAT
    if local_name == "decimal":
        return BaseTypeKind.DECIMAL
    if local_name == "boolean":
        return BaseTypeKind.BOOLEAN
    if local_name in _DATETIME_TYPES:
        return BaseTypeKind.DATETIME
    return BaseTypeKind.STRING


@dataclass(frozen=True)
class Node:
    """A node object (IRI or blank node) as returned by the graph layer."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class TypedValue:
    """A literal object: lexical form plus datatype IRI and optional language."""
    lex: str
    datatype: str = f"{XSD}string"
    lang: Optional[str] = None

    @property
    def local_type(self) -> str:
        if self.datatype.startswith(XSD):
            return self.datatype[len(XSD):]
        return self.datatype

    @property
    def kind(self) -> BaseTypeKind:
        if not self.datatype.startswith(XSD):
            return BaseTypeKind.STRING
        return base_type_kind(self.local_type)

    @classmethod
    def of(cls, value: Any, datatype: Optional[str] = None) -> "TypedValue":
        """Build a typed value from a Python scalar, inferring the datatype."""
        if datatype is None:
            if isinstance(value, bool):
                datatype = f"{XSD}boolean"
            elif isinstance(value, int):
                datatype = f"{XSD}integer"
            elif isinstance(value, float):
                datatype = f"{XSD}double"
            elif isinstance(value, Decimal):
                datatype = f"{XSD}decimal"
            else:
                datatype = f"{XSD}string"
        if isinstance(value, bool):
            lex = "true" if value else "false"
        else:
            lex = str(value)
        return cls(lex=lex, datatype=datatype)


ObjectType = Union[Node, TypedValue]


def value_to_python(value: TypedValue) -> Any:
    """Convert a typed literal into the native scalar used in documents."""
    kind = value.kind
    lex = value.lex
    try:
        if kind in (BaseTypeKind.SMALL_INTEGER, BaseTypeKind.BIG_INTEGER):
            return int(lex)
        if kind == BaseTypeKind.FLOAT:
            return float(lex)
        if kind == BaseTypeKind.DECIMAL:
            return Decimal(lex)
    except (ValueError, InvalidOperation):
        # Ill-typed lexical forms are rendered as-is
        return lex
    if kind == BaseTypeKind.BOOLEAN:
        return lex in ("true", "1")
    return lex


def value_to_string(value: TypedValue) -> str:
    return value.lex


def value_to_usize(value: TypedValue) -> int:
    """Read an array index value; indexes are non-negative integers."""
    index = int(value.lex)
    if index < 0:
        raise ValueError(f"array index must be non-negative, got {index}")
    return index


def compare_scalars(left: Any, right: Any) -> int:
    """
    Three-way comparison of two native scalars.

    Values of incomparable types fall back to comparing their string forms
    so that ordering never fails on heterogeneous data.
    """
    try:
        if left < right:
            return -1
        if left > right:
            return 1
        return 0
    except TypeError:
        left_s, right_s = str(left), str(right)
        return (left_s > right_s) - (left_s < right_s)
