"""
rdf_framedoc storage layer.

Immutable, dictionary-encoded triple snapshots with sorted subject and
object indexes, plus the prefix, vocabulary and literal value helpers used
on top of them.
"""

from rdf_framedoc.storage.terms import (
    TermKind,
    TermId,
    TermDict,
    Term,
)
from rdf_framedoc.storage.indexing import SortedIndex, IndexStats
from rdf_framedoc.storage.graph import Graph, GraphBuilder, IdTriple
from rdf_framedoc.storage.prefixes import Prefixes
from rdf_framedoc.storage.values import (
    BaseTypeKind,
    Node,
    TypedValue,
    ObjectType,
    base_type_kind,
    compare_scalars,
    value_to_python,
    value_to_string,
    value_to_usize,
)

__all__ = [
    "TermKind",
    "TermId",
    "TermDict",
    "Term",
    "SortedIndex",
    "IndexStats",
    "Graph",
    "GraphBuilder",
    "IdTriple",
    "Prefixes",
    "BaseTypeKind",
    "Node",
    "TypedValue",
    "ObjectType",
    "base_type_kind",
    "compare_scalars",
    "value_to_python",
    "value_to_string",
    "value_to_usize",
]
