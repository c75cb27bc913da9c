"""
Immutable, dictionary-encoded triple snapshot.

A Graph holds its triples as integer ids in a Polars DataFrame sorted by
(subject, predicate, object), together with sorted indexes on the subject
and object columns. All read operations return plain tuples, so results can
be iterated any number of times and shared across threads.

Graphs are produced by GraphBuilder and never change afterwards.
"""

from __future__ import annotations

import bisect
import logging
from itertools import count
from typing import Any, Iterable, Iterator, NamedTuple, Optional, Sequence, Union

import polars as pl

from rdf_framedoc.storage.indexing import SortedIndex
from rdf_framedoc.storage.terms import TermDict, TermId
from rdf_framedoc.storage.values import Node, ObjectType, TypedValue
from rdf_framedoc.storage.vocab import (
    RDF_FIRST,
    RDF_NIL,
    RDF_REST,
    RDF_TYPE,
    RDF_LIST,
    SYS_ARRAY,
    SYS_VALUE,
    XSD,
    sys_index,
)

logger = logging.getLogger(__name__)


class IdTriple(NamedTuple):
    """A triple of term ids."""
    subject: int
    predicate: int
    object: int


_EMPTY: tuple[IdTriple, ...] = ()


class Graph:
    """
    Read-only triple store snapshot addressed by integer ids.

    Example:
        builder = GraphBuilder()
        builder.add("http://ex/alice", "http://ex/knows", "http://ex/bob")
        graph = builder.build()

        alice = graph.subject_id("http://ex/alice")
        for triple in graph.triples_s(alice):
            print(graph.id_predicate(triple.predicate))
    """

    def __init__(self, terms: TermDict, df: pl.DataFrame):
        self._terms = terms
        self._df = df

        self._triples: list[IdTriple] = [
            IdTriple(s, p, o)
            for s, p, o in zip(
                df["subject"].to_list(),
                df["predicate"].to_list(),
                df["object"].to_list(),
            )
        ]
        self._predicate_column: list[int] = [t.predicate for t in self._triples]
        self._object_column: list[int] = [t.object for t in self._triples]

        self._subject_index = SortedIndex("subject")
        self._subject_index.build(df)
        self._object_index = SortedIndex("object")
        self._object_index.build(df)

        self._subjects = frozenset(self._subject_index.keys())
        self._objects = frozenset(self._object_index.keys())
        self._predicates = frozenset(self._predicate_column)

    # =========================================================================
    # Name -> id
    # =========================================================================

    def subject_id(self, name: str) -> Optional[TermId]:
        term_id = self._terms.get_node_id(name)
        if term_id is not None and term_id in self._subjects:
            return term_id
        return None

    def predicate_id(self, name: str) -> Optional[TermId]:
        term_id = self._terms.get_node_id(name)
        if term_id is not None and term_id in self._predicates:
            return term_id
        return None

    def object_node_id(self, name: str) -> Optional[TermId]:
        term_id = self._terms.get_node_id(name)
        if term_id is not None and term_id in self._objects:
            return term_id
        return None

    def object_value_id(self, value: TypedValue) -> Optional[TermId]:
        term_id = self._terms.get_literal_id(value.lex, value.datatype, value.lang)
        if term_id is not None and term_id in self._objects:
            return term_id
        return None

    # =========================================================================
    # Id -> name / value
    # =========================================================================

    def id_subject(self, term_id: TermId) -> Optional[str]:
        term = self._terms.lookup(term_id)
        if term is None or not term.is_node:
            return None
        return term.lex

    def id_predicate(self, term_id: TermId) -> Optional[str]:
        if term_id not in self._predicates:
            return None
        return self.id_subject(term_id)

    def id_object(self, term_id: TermId) -> Optional[ObjectType]:
        """Resolve an id to a Node or a TypedValue."""
        term = self._terms.lookup(term_id)
        if term is None:
            return None
        if term.is_node:
            return Node(term.lex)
        return TypedValue(lex=term.lex, datatype=term.datatype, lang=term.lang)

    def id_object_node(self, term_id: TermId) -> Optional[str]:
        obj = self.id_object(term_id)
        return obj.name if isinstance(obj, Node) else None

    def id_object_value(self, term_id: TermId) -> Optional[TypedValue]:
        obj = self.id_object(term_id)
        return obj if isinstance(obj, TypedValue) else None

    # =========================================================================
    # Triple scans
    # =========================================================================

    def _subject_range(self, subject: TermId) -> tuple[int, int]:
        positions = self._subject_index.lookup(subject)
        if not positions:
            return 0, 0
        return positions[0], positions[-1] + 1

    def _sp_range(self, subject: TermId, predicate: TermId) -> tuple[int, int]:
        start, end = self._subject_range(subject)
        if start == end:
            return 0, 0
        lo = bisect.bisect_left(self._predicate_column, predicate, start, end)
        hi = bisect.bisect_right(self._predicate_column, predicate, lo, end)
        return lo, hi

    def triples_s(self, subject: TermId) -> tuple[IdTriple, ...]:
        """All triples of a subject, ordered by (predicate, object)."""
        start, end = self._subject_range(subject)
        if start == end:
            return _EMPTY
        return tuple(self._triples[start:end])

    def triples_sp(self, subject: TermId, predicate: TermId) -> tuple[IdTriple, ...]:
        """All triples of a subject/predicate pair, ordered by object."""
        lo, hi = self._sp_range(subject, predicate)
        if lo == hi:
            return _EMPTY
        return tuple(self._triples[lo:hi])

    def triples_o(self, obj: TermId) -> tuple[IdTriple, ...]:
        """All triples pointing at an object, ordered by (subject, predicate)."""
        return tuple(self._triples[i] for i in self._object_index.lookup(obj))

    def single_triple_sp(self, subject: TermId, predicate: TermId) -> Optional[IdTriple]:
        lo, hi = self._sp_range(subject, predicate)
        if lo == hi:
            return None
        return self._triples[lo]

    def triple_exists(self, subject: TermId, predicate: TermId, obj: TermId) -> bool:
        lo, hi = self._sp_range(subject, predicate)
        if lo == hi:
            return False
        idx = bisect.bisect_left(self._object_column, obj, lo, hi)
        return idx < hi and self._object_column[idx] == obj

    def subjects(self) -> Iterator[TermId]:
        """Distinct subject ids in ascending order."""
        return iter(self._subject_index.keys())

    @property
    def terms(self) -> TermDict:
        return self._terms

    def to_dataframe(self) -> pl.DataFrame:
        """The underlying (subject, predicate, object) id table."""
        return self._df

    def __len__(self) -> int:
        return len(self._triples)

    def __repr__(self) -> str:
        return f"Graph(triples={len(self._triples)}, subjects={len(self._subjects)})"


class GraphBuilder:
    """
    Collects triples by name and freezes them into a Graph.

    Besides plain triples the builder knows how the document encoding
    stores collections, so fixtures can write RDF lists and indexed arrays
    directly.
    """

    def __init__(self, terms: Optional[TermDict] = None):
        self._terms = terms if terms is not None else TermDict()
        self._rows: list[tuple[int, int, int]] = []
        self._bnode_counter = count(1)

    def _fresh_node(self, hint: str) -> str:
        return f"_:{hint}{next(self._bnode_counter)}"

    def add(self, subject: str, predicate: str, obj: str) -> "GraphBuilder":
        """Add a triple whose object is a node."""
        self._rows.append((
            self._terms.intern_node(subject),
            self._terms.intern_node(predicate),
            self._terms.intern_node(obj),
        ))
        return self

    def add_value(
        self,
        subject: str,
        predicate: str,
        value: Union[TypedValue, Any],
        datatype: Optional[str] = None,
    ) -> "GraphBuilder":
        """Add a triple whose object is a literal (a TypedValue or a Python scalar)."""
        if not isinstance(value, TypedValue):
            value = TypedValue.of(value, datatype)
        self._rows.append((
            self._terms.intern_node(subject),
            self._terms.intern_node(predicate),
            self._terms.intern_literal(value.lex, value.datatype, value.lang),
        ))
        return self

    def _add_object(self, subject: str, predicate: str, obj: Union[Node, TypedValue, Any]) -> None:
        if isinstance(obj, Node):
            self.add(subject, predicate, obj.name)
        else:
            self.add_value(subject, predicate, obj)

    def add_list(self, subject: str, predicate: str, items: Sequence[Any]) -> str:
        """
        Add an RDF list (``rdf:first``/``rdf:rest`` cons cells) as the object
        of ``subject predicate``. Node items must be wrapped in Node.

        Returns the name of the list head (``rdf:nil`` for an empty list).
        """
        if not items:
            self.add(subject, predicate, RDF_NIL)
            return RDF_NIL
        cells = [self._fresh_node("list") for _ in items]
        self.add(subject, predicate, cells[0])
        for i, (cell, item) in enumerate(zip(cells, items)):
            self.add(cell, RDF_TYPE, RDF_LIST)
            self._add_object(cell, RDF_FIRST, item)
            rest = cells[i + 1] if i + 1 < len(cells) else RDF_NIL
            self.add(cell, RDF_REST, rest)
        return cells[0]

    def add_array_cell(
        self,
        subject: str,
        predicate: str,
        index: Union[int, Sequence[int]],
        value: Any,
    ) -> str:
        """
        Add one array cell: ``subject predicate cell``, with the cell typed
        ``sys:Array`` and carrying ``sys:index``/``sys:index2``/... and
        ``sys:value``. Multi-dimensional indexes are given most significant
        first and stored least significant first.
        """
        if isinstance(index, int):
            index = [index]
        cell = self._fresh_node("array")
        self.add(subject, predicate, cell)
        self.add(cell, RDF_TYPE, SYS_ARRAY)
        for n, ix in enumerate(reversed(list(index)), start=1):
            self.add_value(cell, sys_index(n), TypedValue.of(ix, f"{XSD}nonNegativeInteger"))
        self._add_object(cell, SYS_VALUE, value)
        return cell

    def add_array(self, subject: str, predicate: str, values: Sequence[Any]) -> list[str]:
        """Add a dense one-dimensional array."""
        return [
            self.add_array_cell(subject, predicate, i, value)
            for i, value in enumerate(values)
        ]

    def extend(self, triples: Iterable[tuple[str, str, Any]]) -> "GraphBuilder":
        """Add (subject, predicate, object) tuples; objects that are not Node are literals."""
        for subject, predicate, obj in triples:
            self._add_object(subject, predicate, obj)
        return self

    def build(self) -> Graph:
        """Freeze the collected triples into an immutable Graph."""
        if self._rows:
            subjects, predicates, objects = zip(*self._rows)
        else:
            subjects, predicates, objects = (), (), ()
        df = pl.DataFrame({
            "subject": pl.Series(list(subjects), dtype=pl.UInt64),
            "predicate": pl.Series(list(predicates), dtype=pl.UInt64),
            "object": pl.Series(list(objects), dtype=pl.UInt64),
        })
        df = df.unique().sort(["subject", "predicate", "object"])
        logger.debug(f"Built graph with {df.height} triples from {len(self._rows)} additions")
        return Graph(self._terms, df)
