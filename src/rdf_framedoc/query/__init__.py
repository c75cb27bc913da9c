"""
Filter queries: type frames, the filter compiler, the lazy executor and
path expressions.
"""

from rdf_framedoc.query.frames import (
    AllFrames,
    ClassDefinition,
    EnumDefinition,
    FieldDefinition,
    FieldKind,
    is_base_type,
)
from rdf_framedoc.query.filters import (
    GenericOperation,
    EnumOperation,
    CollectionOperation,
    FilterObject,
    FilterType,
    FilterValue,
    NodeFilter,
    compile_filter,
    ordering_matches_op,
)
from rdf_framedoc.query.executor import (
    QueryOrderKey,
    compile_query,
    generate_initial_iterator,
    object_type_filter,
    predicate_value_filter,
    predicate_value_iter,
    run_query,
)
from rdf_framedoc.query.path import parse_path, compile_path, path_to_class

__all__ = [
    "AllFrames",
    "ClassDefinition",
    "EnumDefinition",
    "FieldDefinition",
    "FieldKind",
    "is_base_type",
    "GenericOperation",
    "EnumOperation",
    "CollectionOperation",
    "FilterObject",
    "FilterType",
    "FilterValue",
    "NodeFilter",
    "compile_filter",
    "ordering_matches_op",
    "QueryOrderKey",
    "compile_query",
    "generate_initial_iterator",
    "object_type_filter",
    "predicate_value_filter",
    "predicate_value_iter",
    "run_query",
    "parse_path",
    "compile_path",
    "path_to_class",
]
