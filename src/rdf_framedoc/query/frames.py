"""
Type frames: the per-class field descriptions a filter is compiled against.

A frames dictionary maps type names to definitions and carries the database
``@context``:

    {
        "@context": {"@base": "terminusdb:///data/", "@schema": "terminusdb:///schema#"},
        "Person": {
            "@type": "Class",
            "name": "xsd:string",
            "friend": {"@type": "Set", "@class": "Person"},
            "address": {"@class": "Address", "@subdocument": []},
            "colour": {"@type": "Enum", "@id": "Colour", "@values": ["red", "green"]},
        },
        "Colour": {"@type": "Enum", "@values": ["red", "green"]},
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import quote

from rdf_framedoc.exceptions import SchemaContractError
from rdf_framedoc.storage.prefixes import Prefixes


def is_base_type(name: str) -> bool:
    return name.startswith("xsd:")


class FieldKind(Enum):
    """Cardinality of a field."""
    REQUIRED = "Required"
    OPTIONAL = "Optional"
    SET = "Set"
    LIST = "List"
    ARRAY = "Array"
    CARDINALITY = "Cardinality"

    @property
    def is_collection(self) -> bool:
        return self in (FieldKind.SET, FieldKind.LIST, FieldKind.ARRAY, FieldKind.CARDINALITY)


# =============================================================================
# Field ranges
# =============================================================================

@dataclass(frozen=True)
class BaseTypeRange:
    """A literal range such as ``xsd:string``."""
    name: str


@dataclass(frozen=True)
class DocumentRange:
    """A range pointing at another class."""
    type_name: str
    is_subdocument: bool = False


@dataclass(frozen=True)
class EnumRange:
    """An inline enum range."""
    name: str
    values: Tuple[str, ...] = ()


SimpleFieldDefinition = Union[BaseTypeRange, DocumentRange, EnumRange]


@dataclass(frozen=True)
class FieldDefinition:
    kind: FieldKind
    field: SimpleFieldDefinition
    dimensions: int = 1
    min: Optional[int] = None
    max: Optional[int] = None

    def range(self) -> str:
        if isinstance(self.field, BaseTypeRange):
            return self.field.name
        if isinstance(self.field, DocumentRange):
            return self.field.type_name
        return self.field.name

    def base_type(self) -> Optional[str]:
        """Local name of a base type range, e.g. ``"string"`` for ``xsd:string``."""
        if isinstance(self.field, BaseTypeRange):
            _, sep, local = self.field.name.partition(":")
            return local if sep else None
        return None

    def document_type(self) -> Optional[str]:
        if isinstance(self.field, DocumentRange):
            return self.field.type_name
        return None

    def enum_type(self) -> Optional[str]:
        if isinstance(self.field, EnumRange):
            return self.field.name
        return None


def _parse_simple_field(data: Any) -> SimpleFieldDefinition:
    if isinstance(data, str):
        if is_base_type(data):
            return BaseTypeRange(data)
        return DocumentRange(data)
    if isinstance(data, dict):
        if data.get("@type") == "Enum":
            return EnumRange(data["@id"], tuple(data.get("@values", ())))
        if "@class" in data:
            return DocumentRange(data["@class"], is_subdocument=True)
    raise SchemaContractError(f"Unrecognized field class definition: {data!r}")


def parse_field_definition(data: Any) -> FieldDefinition:
    """Parse one field entry of a class frame."""
    if isinstance(data, str):
        return FieldDefinition(FieldKind.REQUIRED, _parse_simple_field(data))
    if not isinstance(data, dict):
        raise SchemaContractError(f"Unrecognized field definition: {data!r}")

    typ = data.get("@type")
    if typ is None and "@class" in data:
        return FieldDefinition(FieldKind.REQUIRED, DocumentRange(data["@class"], is_subdocument=True))
    if typ == "Enum":
        return FieldDefinition(FieldKind.REQUIRED, _parse_simple_field(data))
    try:
        kind = FieldKind(typ)
    except ValueError:
        raise SchemaContractError(f"Unrecognized field type {typ!r}") from None
    if kind == FieldKind.REQUIRED or "@class" not in data:
        raise SchemaContractError(f"Field definition of type {typ!r} needs a @class")

    inner = _parse_simple_field(data["@class"])
    if kind == FieldKind.ARRAY:
        return FieldDefinition(kind, inner, dimensions=data.get("dimensions", 1))
    if kind == FieldKind.CARDINALITY:
        return FieldDefinition(kind, inner, min=data.get("min"), max=data.get("max"))
    return FieldDefinition(kind, inner)


# =============================================================================
# Type definitions
# =============================================================================

@dataclass
class ClassDefinition:
    name: str
    fields: Dict[str, FieldDefinition] = field(default_factory=dict)
    inherits: Tuple[str, ...] = ()
    subdocument: bool = False
    tagged_union: bool = False
    key: Optional[Dict[str, Any]] = None
    documentation: Optional[Dict[str, Any]] = None

    def resolve_field(self, name: str) -> FieldDefinition:
        try:
            return self.fields[name]
        except KeyError:
            raise SchemaContractError(f"Class {self.name} has no field {name!r}") from None

    def fully_qualified_property_name(self, prefixes: Prefixes, name: str) -> str:
        return prefixes.expand_schema(name)


@dataclass
class EnumDefinition:
    name: str
    values: Tuple[str, ...] = ()
    documentation: Optional[Dict[str, Any]] = None


TypeDefinition = Union[ClassDefinition, EnumDefinition]


def _parse_type_definition(name: str, data: Dict[str, Any]) -> TypeDefinition:
    typ = data.get("@type")
    if typ == "Enum":
        return EnumDefinition(name, tuple(data.get("@values", ())), data.get("@documentation"))
    if typ not in ("Class", "TaggedUnion"):
        raise SchemaContractError(f"Unknown type definition {typ!r} for {name}")

    inherits = data.get("@inherits", ())
    if isinstance(inherits, str):
        inherits = (inherits,)
    fields = {
        key: parse_field_definition(value)
        for key, value in data.items()
        if not key.startswith("@")
    }
    return ClassDefinition(
        name=name,
        fields=fields,
        inherits=tuple(inherits),
        subdocument="@subdocument" in data,
        tagged_union=typ == "TaggedUnion",
        key=data.get("@key"),
        documentation=data.get("@documentation"),
    )


@dataclass
class AllFrames:
    """All type frames of a database plus its prefix context."""
    context: Prefixes
    frames: Dict[str, TypeDefinition] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AllFrames":
        context = Prefixes.from_dict(data.get("@context", {}))
        frames = {
            name: _parse_type_definition(name, definition)
            for name, definition in data.items()
            if not name.startswith("@")
        }
        return cls(context=context, frames=frames)

    def class_definition(self, name: str) -> ClassDefinition:
        definition = self.frames.get(name)
        if definition is None:
            raise SchemaContractError(f"Unknown class {name!r}")
        if not isinstance(definition, ClassDefinition):
            raise SchemaContractError(f"{name!r} is not a class")
        return definition

    def subsumed(self, name: str) -> List[str]:
        """The class itself followed by all of its transitive subclasses."""
        result = [name]
        seen = {name}
        i = 0
        while i < len(result):
            parent = result[i]
            children = sorted(
                child for child, definition in self.frames.items()
                if isinstance(definition, ClassDefinition)
                and parent in definition.inherits
                and child not in seen
            )
            seen.update(children)
            result.extend(children)
            i += 1
        return result

    def fully_qualified_class_name(self, name: str) -> str:
        return self.context.expand_schema(name)

    def fully_qualified_enum_value(self, enum_name: str, value: str) -> str:
        return f"{self.context.expand_schema(enum_name)}/{quote(value, safe='')}"

    @staticmethod
    def is_base_type(name: str) -> bool:
        return is_base_type(name)
