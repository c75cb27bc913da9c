"""
Filter AST and compiler.

A filter input is a nested dict keyed by field names of a class frame, plus
the structural keys ``_and``, ``_or``, ``_not`` and ``_restriction``:

    {
        "name": {"startsWith": "J"},
        "age": {"ge": 18},
        "friend": {"someHave": {"name": {"eq": "Jim"}}},
        "_or": [{"colour": {"eq": "red"}}, {"colour": {"eq": "green"}}],
    }

compile_filter resolves every field against the frames, picks the comparison
for the field's base type and coerces operands, producing an immutable
FilterObject. All input errors surface here, before any graph access.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum, auto
from typing import Any, Dict, Optional, Tuple, Union

from rdf_framedoc.exceptions import FilterCompileError
from rdf_framedoc.query.frames import (
    AllFrames,
    ClassDefinition,
    EnumDefinition,
    EnumRange,
    FieldDefinition,
    is_base_type,
)
from rdf_framedoc.storage.values import BaseTypeKind, base_type_kind


class GenericOperation(Enum):
    """Relational operators for scalar comparisons."""
    EQ = auto()
    NE = auto()
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()


class EnumOperation(Enum):
    EQ = auto()
    NE = auto()


class CollectionOperation(Enum):
    """Quantifier over the values of a multi-valued edge."""
    SOME_HAVE = auto()
    ALL_HAVE = auto()


_GENERIC_KEYS = (
    ("eq", GenericOperation.EQ),
    ("ne", GenericOperation.NE),
    ("lt", GenericOperation.LT),
    ("le", GenericOperation.LE),
    ("gt", GenericOperation.GT),
    ("ge", GenericOperation.GE),
)

_COLLECTION_KEYS = {
    "someHave": CollectionOperation.SOME_HAVE,
    "allHave": CollectionOperation.ALL_HAVE,
}


def ordering_matches_op(ordering: int, op: GenericOperation) -> bool:
    """Whether a three-way comparison result (-1, 0, 1) satisfies ``op``."""
    if ordering < 0:
        return op in (GenericOperation.LE, GenericOperation.LT, GenericOperation.NE)
    if ordering == 0:
        return op in (GenericOperation.EQ, GenericOperation.LE, GenericOperation.GE)
    return op in (GenericOperation.GE, GenericOperation.GT, GenericOperation.NE)


# =============================================================================
# Text operations
# =============================================================================

@dataclass(frozen=True)
class RegexMatch:
    pattern: "re.Pattern[str]"

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


@dataclass(frozen=True)
class StartsWith:
    prefix: str

    def matches(self, text: str) -> bool:
        return text.startswith(self.prefix)


@dataclass(frozen=True)
class AllOfTerms:
    terms: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        return all(term in text for term in self.terms)


@dataclass(frozen=True)
class AnyOfTerms:
    terms: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        return any(term in text for term in self.terms)


TextOperation = Union[RegexMatch, StartsWith, AllOfTerms, AnyOfTerms]


# =============================================================================
# Filter AST
# =============================================================================

@dataclass(frozen=True)
class ValueFilter:
    """A relational comparison against a coerced operand."""
    kind: BaseTypeKind
    op: GenericOperation
    operand: Any
    type_name: str


@dataclass(frozen=True)
class TextFilter:
    op: TextOperation
    type_name: str


@dataclass(frozen=True)
class EnumFilter:
    """Equality against a fully qualified enum value IRI."""
    op: EnumOperation
    value: str


FilterType = Union[ValueFilter, TextFilter, EnumFilter]


@dataclass(frozen=True)
class NodeFilter:
    """A nested filter applied to the node an edge points at."""
    filter: "FilterObject"
    class_name: str


FilterObjectType = Union[NodeFilter, ValueFilter, TextFilter, EnumFilter]


@dataclass(frozen=True)
class Required:
    object_type: FilterObjectType


@dataclass(frozen=True)
class Collection:
    op: CollectionOperation
    object_type: FilterObjectType


@dataclass(frozen=True)
class And:
    filters: Tuple["FilterObject", ...]


@dataclass(frozen=True)
class Or:
    filters: Tuple["FilterObject", ...]


@dataclass(frozen=True)
class Not:
    filter: "FilterObject"


FilterValue = Union[Required, Collection, And, Or, Not]


@dataclass(frozen=True)
class FilterObject:
    """Compiled filter: an optional restriction gate plus ordered edges."""
    restriction: Optional[str] = None
    edges: Tuple[Tuple[str, FilterValue], ...] = ()


# =============================================================================
# Operand coercion
# =============================================================================

def format_datetime(value: datetime) -> str:
    """Canonical xsd:dateTime form, UTC with a ``Z`` suffix."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


def coerce_operand(kind: BaseTypeKind, value: Any) -> Any:
    """Convert a filter operand to the native type compared for ``kind``."""
    try:
        if kind in (BaseTypeKind.SMALL_INTEGER, BaseTypeKind.BIG_INTEGER):
            if isinstance(value, bool) or not isinstance(value, (int, str)):
                raise TypeError(type(value).__name__)
            return int(value)
        if kind == BaseTypeKind.FLOAT:
            if isinstance(value, bool) or not isinstance(value, (int, float, str)):
                raise TypeError(type(value).__name__)
            return float(value)
        if kind == BaseTypeKind.DECIMAL:
            if isinstance(value, bool):
                raise TypeError("bool")
            if isinstance(value, float):
                return Decimal(str(value))
            if not isinstance(value, (int, str, Decimal)):
                raise TypeError(type(value).__name__)
            return Decimal(value)
        if kind == BaseTypeKind.BOOLEAN:
            if not isinstance(value, bool):
                raise TypeError(type(value).__name__)
            return value
        if kind == BaseTypeKind.DATETIME:
            if isinstance(value, datetime):
                return format_datetime(value)
            if not isinstance(value, str):
                raise TypeError(type(value).__name__)
            return value
        if not isinstance(value, str):
            raise TypeError(type(value).__name__)
        return value
    except (TypeError, ValueError, InvalidOperation) as e:
        raise FilterCompileError(f"Cannot use {value!r} as a {kind.value} operand ({e})") from e


def _compile_text_operation(key: str, value: Any) -> TextOperation:
    if key == "regex":
        if not isinstance(value, str):
            raise FilterCompileError(f"regex operand must be a string, got {value!r}")
        try:
            return RegexMatch(re.compile(value))
        except re.error as e:
            raise FilterCompileError(f"Could not compile regex {value!r}: {e}") from e
    if key == "startsWith":
        if not isinstance(value, str):
            raise FilterCompileError(f"startsWith operand must be a string, got {value!r}")
        return StartsWith(value)
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise FilterCompileError(f"{key} operand must be a list of strings, got {value!r}")
    if key == "allOfTerms":
        return AllOfTerms(tuple(value))
    return AnyOfTerms(tuple(value))


def compile_value_filter(type_name: str, value: Any) -> FilterType:
    """Compile a leaf filter for a base type such as ``xsd:integer``."""
    if not isinstance(value, dict):
        raise FilterCompileError(f"Expected an operator object for {type_name}, got {value!r}")
    kind = base_type_kind(type_name.partition(":")[2])

    keys = _GENERIC_KEYS
    if kind == BaseTypeKind.BOOLEAN:
        keys = _GENERIC_KEYS[:2]
    for key, op in keys:
        if value.get(key) is not None:
            return ValueFilter(kind, op, coerce_operand(kind, value[key]), type_name)

    if kind == BaseTypeKind.STRING:
        for key in ("regex", "startsWith", "allOfTerms", "anyOfTerms"):
            if value.get(key) is not None:
                return TextFilter(_compile_text_operation(key, value[key]), type_name)

    raise FilterCompileError(f"Unable to compile filter for {type_name}: {value!r}")


def compile_enum_filter(all_frames: AllFrames, enum_name: str, value: Any) -> EnumFilter:
    if isinstance(value, dict):
        for key, op in (("eq", EnumOperation.EQ), ("ne", EnumOperation.NE)):
            operand = value.get(key)
            if operand is not None:
                if not isinstance(operand, str):
                    raise FilterCompileError(f"Enum operand must be a string, got {operand!r}")
                return EnumFilter(op, all_frames.fully_qualified_enum_value(enum_name, operand))
    raise FilterCompileError(f"Unable to compile filter for enum {enum_name}: {value!r}")


# =============================================================================
# Compiler
# =============================================================================

def compile_typed_filter(
    all_frames: AllFrames,
    field: FieldDefinition,
    value: Any,
) -> FilterObjectType:
    range_name = field.range()
    if is_base_type(range_name):
        return compile_value_filter(range_name, value)

    definition = all_frames.frames.get(range_name)
    if isinstance(definition, EnumDefinition) or isinstance(field.field, EnumRange):
        return compile_enum_filter(all_frames, range_name, value)
    class_definition = all_frames.class_definition(range_name)
    if not isinstance(value, dict):
        raise FilterCompileError(f"Expected a filter object for {range_name}, got {value!r}")
    return NodeFilter(_compile_edges(all_frames, class_definition, value), range_name)


def _compile_collection_filter(all_frames: AllFrames, field: FieldDefinition, value: Any) -> Collection:
    if not isinstance(value, dict) or len(value) != 1:
        raise FilterCompileError(f"Collection filter needs exactly one of someHave/allHave: {value!r}")
    (key, inner), = value.items()
    op = _COLLECTION_KEYS.get(key)
    if op is None:
        raise FilterCompileError(f"Unknown collection filter {key!r}")
    return Collection(op, compile_typed_filter(all_frames, field, inner))


def _compile_filter_list(all_frames: AllFrames, class_definition: ClassDefinition, key: str, value: Any):
    if not isinstance(value, list):
        raise FilterCompileError(f"Invalid operand to {key}: expected a list")
    filters = []
    for element in value:
        if not isinstance(element, dict):
            raise FilterCompileError(f"Non-object element in {key} clause: {element!r}")
        filters.append(_compile_edges(all_frames, class_definition, element))
    return tuple(filters)


def _compile_edges(
    all_frames: AllFrames,
    class_definition: ClassDefinition,
    edges: Dict[str, Any],
) -> FilterObject:
    result = []
    restriction = None
    for name, value in edges.items():
        if name == "_and":
            result.append(("_and", And(_compile_filter_list(all_frames, class_definition, name, value))))
        elif name == "_or":
            result.append(("_or", Or(_compile_filter_list(all_frames, class_definition, name, value))))
        elif name == "_not":
            if not isinstance(value, dict):
                raise FilterCompileError("Invalid operand to _not: expected an object")
            result.append(("_not", Not(_compile_edges(all_frames, class_definition, value))))
        elif name == "_restriction":
            if not isinstance(value, str):
                raise FilterCompileError(f"Restriction must be a name, got {value!r}")
            restriction = value
        else:
            field = class_definition.resolve_field(name)
            prop = class_definition.fully_qualified_property_name(all_frames.context, name)
            if field.kind.is_collection:
                result.append((prop, _compile_collection_filter(all_frames, field, value)))
            else:
                result.append((prop, Required(compile_typed_filter(all_frames, field, value))))
    return FilterObject(restriction=restriction, edges=tuple(result))


def compile_filter(all_frames: AllFrames, class_name: str, filter_input: Dict[str, Any]) -> FilterObject:
    """Compile a filter input against the frame of ``class_name``."""
    if not isinstance(filter_input, dict):
        raise FilterCompileError(f"Filter must be an object, got {filter_input!r}")
    class_definition = all_frames.class_definition(class_name)
    return _compile_edges(all_frames, class_definition, filter_input)
